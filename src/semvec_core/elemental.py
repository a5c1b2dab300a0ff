"""
semvec_core/elemental.py - Sparse random elemental vectors

Elemental vectors are the atomic units of the random projection. For real
and complex vectors, seed_length positions are drawn without replacement
and split between +1 and -1 (positives get the extra entry when seed_length
is odd). Binary elemental vectors are balanced instead: exactly half of
the bits are set, because a majority vote needs both bit values to carry
information.

Deterministic seeding hashes the identifier (SHA-256, first 8 bytes) into
a generator seed, so the same term always receives the same vector across
runs and processes.
"""
from __future__ import annotations

import hashlib

import torch

from .errors import InvalidParameter
from .types import TrainingConfig, VectorType
from .vectors import BinaryVector, ComplexVector, RealVector, Vector

_SEED_MASK = 0x7FFF_FFFF_FFFF_FFFF


def seed_for_identifier(identifier: str) -> int:
    """Stable 63-bit seed derived from an identifier string."""
    digest = hashlib.sha256(identifier.encode("utf-8")).digest()
    return int.from_bytes(digest[:8], "big") & _SEED_MASK


def _as_generator(seed: int | torch.Generator | None) -> torch.Generator:
    if isinstance(seed, torch.Generator):
        return seed
    generator = torch.Generator()
    if seed is None:
        generator.seed()
    else:
        generator.manual_seed(seed & _SEED_MASK)
    return generator


def check_seed_length(dimension: int, seed_length: int) -> None:
    if dimension <= 0:
        raise InvalidParameter(f"Dimension must be positive, got {dimension}")
    if seed_length <= 0 or seed_length > dimension:
        raise InvalidParameter(
            f"seed_length must lie in [1, {dimension}], got {seed_length}"
        )


def generate_random_vector(
    vector_type: VectorType | str,
    dimension: int,
    seed_length: int,
    seed: int | torch.Generator | None = None,
) -> Vector:
    """Generate one elemental vector.

    Args:
        vector_type: Space of the vector
        dimension: Number of components (bits for binary)
        seed_length: Number of non-zero entries (real/complex)
        seed: Integer seed, shared generator, or None for fresh entropy

    Raises:
        InvalidParameter: seed_length outside [1, dimension]
    """
    vector_type = VectorType.parse(vector_type)
    check_seed_length(dimension, seed_length)
    generator = _as_generator(seed)

    if vector_type == VectorType.BINARY:
        if dimension % 64:
            raise InvalidParameter(f"Binary dimension must be a multiple of 64, got {dimension}")
        bits = torch.zeros(dimension, dtype=torch.bool)
        on = torch.randperm(dimension, generator=generator)[: dimension // 2]
        bits[on] = True
        return BinaryVector(bits)

    positions = torch.randperm(dimension, generator=generator)[:seed_length]
    positives = (seed_length + 1) // 2
    values = torch.zeros(dimension, dtype=torch.float32)
    values[positions[:positives]] = 1.0
    values[positions[positives:]] = -1.0
    if vector_type == VectorType.COMPLEX:
        return ComplexVector(values.to(torch.complex64))
    return RealVector(values)


class ElementalVectorGenerator:
    """Produces elemental vectors for one construction run.

    With ``deterministic=True`` each identifier seeds its own generator;
    otherwise all vectors share one stream, seeded by ``random_seed`` when
    given.
    """

    def __init__(
        self,
        vector_type: VectorType | str,
        dimension: int,
        seed_length: int,
        deterministic: bool = False,
        random_seed: int | None = None,
    ):
        check_seed_length(dimension, seed_length)
        self.vector_type = VectorType.parse(vector_type)
        self.dimension = dimension
        self.seed_length = seed_length
        self.deterministic = deterministic
        self._generator = _as_generator(random_seed)

    @classmethod
    def from_config(cls, config: TrainingConfig) -> ElementalVectorGenerator:
        return cls(
            config.vector_type,
            config.dimension,
            config.seed_length,
            deterministic=config.deterministic_vectors,
            random_seed=config.random_seed,
        )

    def generate(self, identifier: str | None = None) -> Vector:
        if self.deterministic and identifier is not None:
            seed: int | torch.Generator = seed_for_identifier(identifier)
        else:
            seed = self._generator
        return generate_random_vector(
            self.vector_type, self.dimension, self.seed_length, seed
        )
