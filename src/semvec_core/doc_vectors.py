"""
semvec_core/doc_vectors.py - Document vectors derived from term vectors

    doc[d] = normalize( sum_t  freq(t, d) * term[t] )

IN-MEMORY (DocVectors):
    Walks the postings of every trained term and keeps all document vectors
    in RAM, keyed by str(doc_id) so they can serve as elemental document
    vectors for the next training cycle. make_writeable() re-keys them by
    document name for output.

INCREMENTAL (write_incremental_doc_vectors):
    Processes one document at a time from its term position vectors and
    streams the result straight to disk, so memory stays bounded by the
    term vectors. Needs an index with per-document term data.
    train_incremental_term_vectors() closes the loop for the next cycle by
    reading that file back as elemental document vectors.
"""
from __future__ import annotations

import logging
from pathlib import Path

from .doc_training import TermVectorsFromIndex
from .errors import ConfigMismatch, UnsupportedIndex
from .index import CorpusIndex, TermFilter
from .progress import LoggingProgress, ProgressReporter
from .serialization import VectorStoreWriter, load_vector_store_for_config
from .store import VectorStoreRAM
from .types import TrainingConfig
from .vectors import create_zero_vector

logger = logging.getLogger(__name__)


class DocVectors:
    """All document vectors, built in memory from trained term vectors."""

    def __init__(
        self,
        term_vectors: VectorStoreRAM,
        config: TrainingConfig,
        index: CorpusIndex,
        progress: ProgressReporter | None = None,
    ):
        self.config = config
        self.index = index
        self.progress = progress or LoggingProgress(logger)
        self.doc_vectors = VectorStoreRAM.from_config(config)
        self._build(term_vectors)

    def _build(self, term_vectors: VectorStoreRAM) -> None:
        num_docs = self.index.document_count()
        logger.info("Initializing %d document vectors", num_docs)
        for doc_id in range(num_docs):
            self.doc_vectors.put(
                str(doc_id), create_zero_vector(self.config.vector_type, self.config.dimension)
            )

        term_filter = TermFilter.from_config(self.config, self.index)
        logger.info("Building document vectors from %d term vectors", term_vectors.count())
        for tc, (term, term_vector) in enumerate(term_vectors.all()):
            self.progress.report("terms", tc)
            for field in self.config.contents_fields:
                if not term_filter(field, term):
                    continue
                for doc_id, frequency in self.index.postings(field, term):
                    self.doc_vectors.get(str(doc_id)).superpose(term_vector, frequency)

        self.doc_vectors.normalize_all()

    def make_writeable(self) -> VectorStoreRAM:
        """Same vectors keyed by document name instead of doc id."""
        writeable = VectorStoreRAM.from_config(self.config)
        for doc_id, vector in self.doc_vectors.all():
            writeable.put(self.index.document_name(int(doc_id)), vector)
        return writeable


def write_incremental_doc_vectors(
    term_vectors: VectorStoreRAM,
    config: TrainingConfig,
    index: CorpusIndex,
    path: str | Path,
    progress: ProgressReporter | None = None,
) -> Path:
    """Build document vectors one at a time and stream them to ``path``.

    Raises:
        UnsupportedIndex: the index holds no per-document term data
    """
    if not index.has_positions():
        raise UnsupportedIndex(
            "Incremental document vectors require an index with term position vectors"
        )
    progress = progress or LoggingProgress(logger)
    term_filter = TermFilter.from_config(config, index)

    with VectorStoreWriter(
        path, config.vector_type, config.dimension, config.index_file_format
    ) as writer:
        for doc_id in range(index.document_count()):
            progress.report("documents", doc_id)
            doc_vector = create_zero_vector(config.vector_type, config.dimension)
            for field in config.contents_fields:
                tpv = index.term_position_vector(doc_id, field)
                if tpv is None:
                    continue
                for term, frequency in zip(tpv.terms, tpv.frequencies):
                    term_vector = term_vectors.get(term)
                    if term_vector is not None and term_filter(field, term):
                        doc_vector.superpose(term_vector, frequency)
            doc_vector.normalize()
            writer.write(index.document_name(doc_id), doc_vector)
    return writer.path


def train_incremental_term_vectors(
    config: TrainingConfig,
    index: CorpusIndex,
    doc_vectors_path: str | Path,
    progress: ProgressReporter | None = None,
) -> TermVectorsFromIndex:
    """Retrain term vectors from a document vector file written by a previous cycle.

    Raises:
        ConfigMismatch: the file does not hold one vector per indexed document
    """
    by_name = load_vector_store_for_config(doc_vectors_path, config, config.index_file_format)
    elemental = VectorStoreRAM.from_config(config)
    for doc_id in range(index.document_count()):
        name = index.document_name(doc_id)
        vector = by_name.get(name)
        if vector is None:
            raise ConfigMismatch(f"{doc_vectors_path} has no vector for document {name!r}")
        elemental.put(str(doc_id), vector)
    if by_name.count() != elemental.count():
        raise ConfigMismatch(
            f"{doc_vectors_path} holds {by_name.count()} vectors for "
            f"{elemental.count()} documents"
        )
    return TermVectorsFromIndex.create(config, index, elemental, progress)
