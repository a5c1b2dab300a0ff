"""
semvec_core/build.py - Training cycle orchestration

Drives one or more training passes. Cycle i's derived vectors become cycle
i+1's elemental basis (Reflective Random Indexing), as a sequence of store
snapshots that are never mutated once their cycle is over:

DOCUMENT STRATEGY:
    cycle 1   elemental doc vectors -> term vectors -> doc vectors
    cycle i   doc vectors of cycle i-1 (as elemental) -> term -> doc
    With initial_term_vectors set, cycle 1 starts from elemental term
    vectors instead (term-based RRI) and derives doc vectors from them.

TERMTERM STRATEGY:
    cycle 1   elemental term vectors -> windowed term vectors
    cycle i   term vectors of cycle i-1 (as elemental) -> term vectors
    Document vectors are derived from the final term vectors.

OUTPUT FILES (suffix .bin or .txt):
    termvectors, docvectors                  training_cycles == 1
    termvectors<N>, docvectors<N>            training_cycles == N > 1
    incremental_docvectors[<N>]              incremental document mode
    incremental_termvectors<N>               incremental retraining
    elementalvectors[<i>]                    termterm with permutations

Usage:
    config = make_config(training_cycles=2)
    result = build_index(config, index, output_dir="vectors/")
    result.term_vectors.get("cat")
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path

from .doc_training import TermVectorsFromIndex, create_initial_term_vectors
from .doc_vectors import (
    DocVectors,
    train_incremental_term_vectors,
    write_incremental_doc_vectors,
)
from .errors import InvalidParameter, UnsupportedIndex
from .index import CorpusIndex
from .progress import LoggingProgress, ProgressReporter
from .serialization import load_vector_store_for_config, write_vectors
from .store import VectorStoreRAM
from .termterm import TermTermVectorsFromIndex
from .types import TrainingConfig

logger = logging.getLogger(__name__)

INCREMENTAL_PREFIX = "incremental_"


@dataclass
class CycleSnapshot:
    """Stores consumed and produced by one training cycle."""

    cycle: int
    elemental_vectors: VectorStoreRAM
    term_vectors: VectorStoreRAM
    doc_vectors: VectorStoreRAM | None = None


@dataclass
class BuildResult:
    config: TrainingConfig
    cycles: list[CycleSnapshot] = field(default_factory=list)
    files: dict[str, Path] = field(default_factory=dict)

    @property
    def final(self) -> CycleSnapshot:
        return self.cycles[-1]

    @property
    def term_vectors(self) -> VectorStoreRAM:
        return self.final.term_vectors

    @property
    def doc_vectors(self) -> VectorStoreRAM | None:
        return self.final.doc_vectors


def output_name(base: str, config: TrainingConfig, cycle: int | None = None, prefix: str = "") -> str:
    """File name for a store; the cycle count is appended only when above 1."""
    number = config.training_cycles if cycle is None else cycle
    return f"{prefix}{base}{number if number > 1 else ''}{config.file_suffix}"


class IndexBuilder:
    """Runs every training cycle for one configuration and writes the results."""

    def __init__(
        self,
        config: TrainingConfig,
        index: CorpusIndex,
        output_dir: str | Path | None = None,
        progress: ProgressReporter | None = None,
        persist_intermediate: bool = False,
    ):
        self.config = config
        self.index = index
        self.output_dir = Path(output_dir) if output_dir is not None else None
        self.progress = progress or LoggingProgress(logger)
        self.persist_intermediate = persist_intermediate
        self.result = BuildResult(config)

    def run(self) -> BuildResult:
        config = self.config
        logger.info(
            "Seed length: %d, dimension: %d, vector type: %s, minimum frequency: %d, "
            "maximum frequency: %d, non-alphabet characters: %d, contents fields: %s",
            config.seed_length,
            config.dimension,
            config.vector_type.value,
            config.min_frequency,
            config.max_frequency,
            config.max_nonalphabet_chars,
            list(config.contents_fields),
        )
        if config.doc_indexing == "incremental" and self.output_dir is None:
            raise InvalidParameter("Incremental document indexing requires an output directory")
        if config.training_strategy == "termterm" and not self.index.has_positions():
            raise UnsupportedIndex("Term-term training requires an index containing term positions")
        if config.doc_indexing == "incremental" and not self.index.has_positions():
            raise UnsupportedIndex(
                "Incremental document indexing requires an index with term position vectors"
            )

        if config.training_strategy == "termterm":
            self._run_termterm()
        elif config.doc_indexing == "incremental":
            self._run_incremental()
        else:
            self._run_document()
        return self.result

    # -------------------------------------------------------------------------
    # Output helpers
    # -------------------------------------------------------------------------

    def _path(self, name: str) -> Path:
        if self.output_dir is None:
            raise InvalidParameter("This build writes files; an output directory is required")
        return self.output_dir / name

    def _write(self, key: str, name: str, store: VectorStoreRAM) -> None:
        if self.output_dir is None:
            return
        path = write_vectors(self._path(name), store, self.config.index_file_format)
        self.result.files[key] = path

    def _snapshot(self, snapshot: CycleSnapshot) -> None:
        self.result.cycles.append(snapshot)
        logger.info(
            "Cycle %d produced %d term vectors", snapshot.cycle, snapshot.term_vectors.count()
        )
        if self.persist_intermediate and snapshot.cycle < self.config.training_cycles:
            self._write(
                f"term_vectors_cycle{snapshot.cycle}",
                output_name(self.config.term_vectors_file, self.config, snapshot.cycle),
                snapshot.term_vectors,
            )

    def _write_final(self, doc_store: VectorStoreRAM | None) -> None:
        self._write(
            "term_vectors",
            output_name(self.config.term_vectors_file, self.config),
            self.result.term_vectors,
        )
        if doc_store is not None:
            self._write(
                "doc_vectors", output_name(self.config.doc_vectors_file, self.config), doc_store
            )

    def _initial_term_basis(self) -> VectorStoreRAM:
        logger.info("Creating term vectors ...")
        return create_initial_term_vectors(self.config, self.index)

    # -------------------------------------------------------------------------
    # Strategies
    # -------------------------------------------------------------------------

    def _run_document(self) -> None:
        """In-memory document strategy (doc_indexing inmemory or none)."""
        config = self.config
        doc_input: VectorStoreRAM | None = None
        docs: DocVectors | None = None
        for cycle in range(1, config.training_cycles + 1):
            if cycle == 1 and config.initial_term_vectors is not None:
                term_vectors = self._initial_term_basis()
                elemental = term_vectors
            else:
                if cycle > 1:
                    logger.info("Retraining with learned document vectors (cycle %d)", cycle)
                trained = TermVectorsFromIndex.create(config, self.index, doc_input, self.progress)
                term_vectors = trained.term_vectors
                elemental = trained.elemental_doc_vectors

            needs_docs = cycle < config.training_cycles or config.doc_indexing == "inmemory"
            docs = DocVectors(term_vectors, config, self.index, self.progress) if needs_docs else None
            self._snapshot(
                CycleSnapshot(cycle, elemental, term_vectors, docs.doc_vectors if docs else None)
            )
            doc_input = docs.doc_vectors if docs else None

        self._write_final(docs.make_writeable() if docs and config.doc_indexing == "inmemory" else None)

    def _run_incremental(self) -> None:
        """Document strategy with doc vectors streamed to disk each cycle."""
        config = self.config
        if config.initial_term_vectors is not None:
            term_vectors = self._initial_term_basis()
            elemental = term_vectors
        else:
            trained = TermVectorsFromIndex.create(config, self.index, None, self.progress)
            term_vectors = trained.term_vectors
            elemental = trained.elemental_doc_vectors
        self._snapshot(CycleSnapshot(1, elemental, term_vectors))
        self._write(
            "term_vectors", output_name(config.term_vectors_file, config, cycle=1), term_vectors
        )

        doc_name = output_name(config.doc_vectors_file, config, cycle=1, prefix=INCREMENTAL_PREFIX)
        doc_path = write_incremental_doc_vectors(
            term_vectors, config, self.index, self._path(doc_name), self.progress
        )
        for cycle in range(2, config.training_cycles + 1):
            trained = train_incremental_term_vectors(config, self.index, doc_path, self.progress)
            term_vectors = trained.term_vectors
            self._snapshot(CycleSnapshot(cycle, trained.elemental_doc_vectors, term_vectors))
            self._write(
                "term_vectors",
                output_name(config.term_vectors_file, config, prefix=INCREMENTAL_PREFIX),
                term_vectors,
            )
            # Intermediate cycles overwrite the same doc file; the last one is numbered.
            final = cycle == config.training_cycles
            doc_name = output_name(
                config.doc_vectors_file,
                config,
                cycle=cycle if final else 1,
                prefix=INCREMENTAL_PREFIX,
            )
            doc_path = write_incremental_doc_vectors(
                term_vectors, config, self.index, self._path(doc_name), self.progress
            )
        self.result.files["doc_vectors"] = doc_path

    def _run_termterm(self) -> None:
        config = self.config
        elemental: VectorStoreRAM | None = None
        if config.initial_term_vectors not in (None, "random"):
            elemental = load_vector_store_for_config(config.initial_term_vectors, config)

        for cycle in range(1, config.training_cycles + 1):
            if cycle > 1:
                logger.info("Retraining with learned term vectors (cycle %d)", cycle)
            trained = TermTermVectorsFromIndex.create(config, self.index, elemental, self.progress)
            self._snapshot(
                CycleSnapshot(cycle, trained.elemental_term_vectors, trained.term_vectors)
            )
            if config.uses_permutations:
                # Needed to reproduce the positional encoding later.
                self._write(
                    f"elemental_vectors_cycle{cycle}",
                    output_name(config.elemental_vectors_file, config, cycle=cycle),
                    trained.elemental_term_vectors,
                )
            elemental = trained.term_vectors

        term_vectors = self.result.term_vectors
        if config.doc_indexing == "inmemory":
            docs = DocVectors(term_vectors, config, self.index, self.progress)
            self.result.final.doc_vectors = docs.doc_vectors
            self._write_final(docs.make_writeable())
        elif config.doc_indexing == "incremental":
            self._write_final(None)
            doc_name = output_name(config.doc_vectors_file, config, prefix=INCREMENTAL_PREFIX)
            self.result.files["doc_vectors"] = write_incremental_doc_vectors(
                term_vectors, config, self.index, self._path(doc_name), self.progress
            )
        else:
            self._write_final(None)


def build_index(
    config: TrainingConfig,
    index: CorpusIndex,
    output_dir: str | Path | None = None,
    progress: ProgressReporter | None = None,
    persist_intermediate: bool = False,
) -> BuildResult:
    """Train term (and document) vectors for ``index`` and write them.

    With ``output_dir=None`` nothing is written, except that incremental
    document indexing always streams to disk and then requires a directory.

    Raises:
        UnsupportedIndex: term-term or incremental training on an index
            without term positions
        ConfigMismatch: supplied elemental vectors do not fit the index
        InvalidParameter: incremental indexing without an output directory
    """
    return IndexBuilder(config, index, output_dir, progress, persist_intermediate).run()
