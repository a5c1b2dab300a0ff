"""
semvec_core/store.py - In-memory vector store

An ordered identifier -> vector mapping. Insertion order is preserved so
iteration and serialization are reproducible. All vectors in a store share
one type and dimension.

Usage:
    store = VectorStoreRAM(VectorType.REAL, 200)
    store.populate_random(["apple", "banana"], seed_length=10, rng_seed=7)
    for term, vector in store.all():
        ...
"""
from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator

from .elemental import ElementalVectorGenerator
from .errors import InvalidParameter
from .types import TrainingConfig, VectorType
from .vectors import Vector

logger = logging.getLogger(__name__)


class VectorStoreRAM:
    """Identifier -> vector mapping held in memory."""

    def __init__(self, vector_type: VectorType | str, dimension: int):
        self.vector_type = VectorType.parse(vector_type)
        self.dimension = dimension
        self._vectors: dict[str, Vector] = {}

    @classmethod
    def from_config(cls, config: TrainingConfig) -> VectorStoreRAM:
        return cls(config.vector_type, config.dimension)

    def get(self, identifier: str) -> Vector | None:
        return self._vectors.get(identifier)

    def put(self, identifier: str, vector: Vector) -> None:
        """Store ``vector`` under ``identifier``, replacing any previous one."""
        if vector.vector_type != self.vector_type or vector.dimension != self.dimension:
            raise InvalidParameter(
                f"Store holds {self.vector_type.value}/{self.dimension} vectors, "
                f"got {vector.vector_type.value}/{vector.dimension} for {identifier!r}"
            )
        self._vectors[identifier] = vector

    def all(self) -> Iterator[tuple[str, Vector]]:
        """Lazily yield (identifier, vector) pairs; call again to restart."""
        yield from self._vectors.items()

    def ids(self) -> list[str]:
        return list(self._vectors)

    def count(self) -> int:
        return len(self._vectors)

    def __len__(self) -> int:
        return len(self._vectors)

    def __contains__(self, identifier: object) -> bool:
        return identifier in self._vectors

    def normalize_all(self) -> None:
        for vector in self._vectors.values():
            vector.normalize()

    def populate_random(
        self,
        ids: Iterable[str],
        seed_length: int,
        rng_seed: int | None = None,
        deterministic: bool = False,
    ) -> int:
        """Create and store one elemental vector per identifier.

        Returns:
            Number of vectors created
        """
        generator = ElementalVectorGenerator(
            self.vector_type,
            self.dimension,
            seed_length,
            deterministic=deterministic,
            random_seed=rng_seed,
        )
        created = 0
        for identifier in ids:
            self.put(identifier, generator.generate(identifier))
            created += 1
        logger.debug("Populated %d elemental vectors", created)
        return created

    def create_numbered_random_vectors(
        self, count: int, seed_length: int, rng_seed: int | None = None
    ) -> int:
        """Elemental vectors keyed "0" .. str(count - 1), e.g. for document ids."""
        return self.populate_random(
            (str(i) for i in range(count)), seed_length, rng_seed=rng_seed
        )

    def __repr__(self) -> str:
        return (
            f"VectorStoreRAM({self.vector_type.value}, dimension={self.dimension}, "
            f"vectors={len(self)})"
        )
