"""
semvec_core/doc_training.py - Document-level Random Indexing

Term vectors are built by superposing the elemental vectors of the
documents each term occurs in, weighted by the term's frequency in that
document:

    term[t] = normalize( sum_d  freq(t, d) * elemental_doc[d] )

Elemental document vectors are keyed by str(doc_id). They are either
generated fresh or supplied by the caller (reflective retraining), in
which case their count must equal the index's document count.

A term that passes the filter in several contents fields collects the
contributions of all of them into one vector.
"""
from __future__ import annotations

import logging

from .elemental import ElementalVectorGenerator
from .errors import ConfigMismatch, InvalidParameter
from .index import CorpusIndex, TermFilter
from .progress import LoggingProgress, ProgressReporter
from .serialization import load_vector_store_for_config
from .store import VectorStoreRAM
from .types import TrainingConfig
from .vectors import Vector, create_zero_vector

logger = logging.getLogger(__name__)


class TermVectorsFromIndex:
    """Trains term vectors from elemental document vectors.

    Example:
        trained = TermVectorsFromIndex.create(config, index)
        trained.term_vectors.get("cat")
        trained.elemental_doc_vectors.get("0")
    """

    def __init__(
        self,
        config: TrainingConfig,
        index: CorpusIndex,
        progress: ProgressReporter | None = None,
    ):
        self.config = config
        self.index = index
        self.progress = progress or LoggingProgress(logger)
        self.term_filter = TermFilter.from_config(config, index)
        self.term_vectors = VectorStoreRAM.from_config(config)
        self.elemental_doc_vectors: VectorStoreRAM | None = None

    @classmethod
    def create(
        cls,
        config: TrainingConfig,
        index: CorpusIndex,
        elemental_doc_vectors: VectorStoreRAM | None = None,
        progress: ProgressReporter | None = None,
    ) -> TermVectorsFromIndex:
        """Train term vectors, generating elemental doc vectors if none are given.

        Raises:
            ConfigMismatch: supplied elemental vectors do not match the index
        """
        trainer = cls(config, index, progress)
        trainer.elemental_doc_vectors = trainer._prepare_elemental(elemental_doc_vectors)
        trainer._train()
        return trainer

    def _prepare_elemental(self, supplied: VectorStoreRAM | None) -> VectorStoreRAM:
        num_docs = self.index.document_count()
        if supplied is not None:
            logger.info("Reusing elemental doc vectors; number of documents: %d", supplied.count())
            if supplied.count() != num_docs:
                raise ConfigMismatch(
                    f"Wrong number of elemental doc vectors: got {supplied.count()}, "
                    f"index has {num_docs} documents"
                )
            if (supplied.vector_type, supplied.dimension) != (
                self.config.vector_type,
                self.config.dimension,
            ):
                raise ConfigMismatch(
                    f"Elemental doc vectors are {supplied.vector_type.value}/{supplied.dimension}, "
                    f"configuration expects {self.config.vector_type.value}/{self.config.dimension}"
                )
            return supplied

        logger.info("Populating elemental doc vector store, number of vectors: %d", num_docs)
        store = VectorStoreRAM.from_config(self.config)
        store.create_numbered_random_vectors(
            num_docs, self.config.seed_length, rng_seed=self.config.random_seed
        )
        return store

    def _elemental_for(self, doc_id: int) -> Vector:
        vector = self.elemental_doc_vectors.get(str(doc_id))
        if vector is None:
            raise ConfigMismatch(f"No elemental vector for document {doc_id}")
        return vector

    def _train(self) -> None:
        for field in self.config.contents_fields:
            logger.info(
                "There are %d terms (and %d docs) in field %s",
                len(self.index.terms_for_field(field)),
                self.index.document_count(),
                field,
            )

        accumulated: dict[str, Vector] = {}
        for field in self.config.contents_fields:
            logger.info("Training term vectors for field %s", field)
            for tc, term in enumerate(self.index.terms_for_field(field)):
                self.progress.report("terms", tc)
                if not self.term_filter(field, term):
                    continue
                term_vector = accumulated.get(term)
                if term_vector is None:
                    term_vector = create_zero_vector(self.config.vector_type, self.config.dimension)
                    accumulated[term] = term_vector
                for doc_id, frequency in self.index.postings(field, term):
                    term_vector.superpose(self._elemental_for(doc_id), frequency)

        for term, term_vector in accumulated.items():
            term_vector.normalize()
            self.term_vectors.put(term, term_vector)
        logger.info("Created %d term vectors", self.term_vectors.count())


def create_initial_term_vectors(
    config: TrainingConfig,
    index: CorpusIndex,
) -> VectorStoreRAM:
    """Starting term vectors for term-based reflective indexing.

    With ``initial_term_vectors == "random"`` every filtered term receives a
    fresh elemental vector; otherwise the option names a stored term vector
    file, which must match the configured type and dimension.
    """
    source = config.initial_term_vectors
    if source is None:
        raise InvalidParameter("initial_term_vectors is not configured")

    if source != "random":
        logger.info("Using term vectors from file %s", source)
        return load_vector_store_for_config(source, config)

    logger.info("Creating random term vectors")
    term_filter = TermFilter.from_config(config, index)
    generator = ElementalVectorGenerator.from_config(config)
    store = VectorStoreRAM.from_config(config)
    for field in config.contents_fields:
        for term in term_filter.filtered_terms(field):
            if term not in store:
                store.put(term, generator.generate(term))
    logger.info("Created %d random term vectors", store.count())
    return store
