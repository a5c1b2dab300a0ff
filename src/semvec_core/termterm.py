"""
semvec_core/termterm.py - Sliding-window term-term Random Indexing

For every document and contents field, a position -> term table is built
from the term position vector (a short-lived arena, discarded after the
document), then a window of radius window_size // 2 is slid over it. Each
co-occurring term's elemental vector is superposed into the focus term's
vector with weight 1, permuted according to the positional method:

    none                    unpermuted
    directional             shift(-1) for earlier terms, shift(+1) for later
    permutation             shift(cursor - focus)
    permutation_plus_basic  unpermuted AND shift(cursor - focus)

With a window of 5 over "your life is your life", the elemental vectors of
"your" and "life" are each added to the vector for "is" twice.

Only filtered terms have elemental and derived vectors; contributions from
any other term are skipped. Derived vectors are normalized once, after the
whole collection has been processed.
"""
from __future__ import annotations

import logging

from .elemental import ElementalVectorGenerator
from .errors import ConfigMismatch, UnsupportedIndex
from .index import CorpusIndex, TermFilter, TermPositionVector
from .permutations import PermutationCache
from .progress import LoggingProgress, ProgressReporter
from .store import VectorStoreRAM
from .types import TrainingConfig
from .vectors import Vector, create_zero_vector

logger = logging.getLogger(__name__)

NONEXISTENT = -1


class TermTermVectorsFromIndex:
    """Trains term vectors from windowed term co-occurrence.

    Example:
        trained = TermTermVectorsFromIndex.create(config, index)
        trained.term_vectors.get("cat")

        # Reflective retraining: last cycle's output becomes the basis
        again = TermTermVectorsFromIndex.create(config, index, trained.term_vectors)
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
        self.permutation_cache = PermutationCache(
            config.positional_method,
            config.window_size,
            config.dimension,
            config.vector_type,
        )
        self.term_vectors = VectorStoreRAM.from_config(config)
        self.elemental_term_vectors: VectorStoreRAM | None = None
        self.retraining = False

    @classmethod
    def create(
        cls,
        config: TrainingConfig,
        index: CorpusIndex,
        elemental_term_vectors: VectorStoreRAM | None = None,
        progress: ProgressReporter | None = None,
    ) -> TermTermVectorsFromIndex:
        """Train term vectors over the whole collection.

        Raises:
            UnsupportedIndex: the index has no term positions
            ConfigMismatch: supplied elemental vectors have the wrong type/dimension
        """
        if not index.has_positions():
            raise UnsupportedIndex(
                "Term-term indexing requires an index containing term positions"
            )
        trainer = cls(config, index, progress)
        trainer._allocate(elemental_term_vectors)
        trainer._train()
        return trainer

    def _allocate(self, supplied: VectorStoreRAM | None) -> None:
        """Zero derived vectors for every filtered term, plus elemental ones if needed."""
        if supplied is not None:
            if (supplied.vector_type, supplied.dimension) != (
                self.config.vector_type,
                self.config.dimension,
            ):
                raise ConfigMismatch(
                    f"Elemental term vectors are {supplied.vector_type.value}/{supplied.dimension}, "
                    f"configuration expects {self.config.vector_type.value}/{self.config.dimension}"
                )
            self.retraining = True
            self.elemental_term_vectors = supplied
            logger.info("Reusing elemental term vectors; number of terms: %d", supplied.count())
        else:
            self.elemental_term_vectors = VectorStoreRAM.from_config(self.config)
        generator = None if self.retraining else ElementalVectorGenerator.from_config(self.config)

        for field in self.config.contents_fields:
            for term in self.term_filter.filtered_terms(field):
                if term in self.term_vectors:
                    continue
                self.term_vectors.put(
                    term, create_zero_vector(self.config.vector_type, self.config.dimension)
                )
                if generator is not None:
                    self.elemental_term_vectors.put(term, generator.generate(term))
        logger.info(
            "There are %d terms (and %d docs)",
            self.term_vectors.count(),
            self.index.document_count(),
        )

    def _train(self) -> None:
        logger.info("Window size is %d, positional method %s",
                    self.config.window_size, self.config.positional_method)
        for doc_id in range(self.index.document_count()):
            self.progress.report("documents", doc_id)
            for field in self.config.contents_fields:
                positions = self.index.term_position_vector(doc_id, field)
                if positions is not None:
                    self.process_term_position_vector(positions)

        logger.info("Normalizing %d term vectors", self.term_vectors.count())
        self.term_vectors.normalize_all()

    def process_term_position_vector(self, tpv: TermPositionVector) -> None:
        """Apply one document field's co-occurrence contributions."""
        num_positions = tpv.max_position() + 1
        if num_positions <= 0:
            return

        # Arena scoped to this document: position -> local term index.
        slots = [NONEXISTENT] * num_positions
        for local, term_positions in enumerate(tpv.positions):
            for position in term_positions:
                slots[position] = local
        local_derived: list[Vector | None] = [self.term_vectors.get(term) for term in tpv.terms]
        # A supplied elemental store may hold terms the filter rejects.
        local_elemental: list[Vector | None] = [
            self.elemental_term_vectors.get(term) if derived is not None else None
            for term, derived in zip(tpv.terms, local_derived)
        ]

        radius = self.config.window_radius
        plus_basic = self.config.positional_method == "permutation_plus_basic"
        for focus_position, focus in enumerate(slots):
            if focus == NONEXISTENT:
                continue
            target = local_derived[focus]
            if target is None:
                continue
            window_start = max(0, focus_position - radius)
            window_end = min(focus_position + radius, num_positions - 1)
            for cursor in range(window_start, window_end + 1):
                if cursor == focus_position:
                    continue
                coterm = slots[cursor]
                if coterm == NONEXISTENT:
                    continue
                source = local_elemental[coterm]
                if source is None:
                    continue
                if plus_basic:
                    target.superpose(source, 1)
                target.superpose(
                    source, 1, self.permutation_cache.for_offset(cursor - focus_position)
                )
