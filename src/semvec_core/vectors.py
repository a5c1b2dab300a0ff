"""
semvec_core/vectors.py - Vector algebra for Random Indexing

Three vector types share one contract:

    superpose(other, weight, permutation)  accumulate weight * permuted(other)
    normalize()                            collapse accumulated state
    similarity(other)                      proximity in [-1, 1]

REAL:
    Dense float32 coordinates. Superposition is scaled elementwise addition,
    normalization divides by the Euclidean norm (the zero vector is left
    alone), similarity is cosine.

BINARY:
    A bit array of dimension bits, grouped into 64-bit words. Superposition
    does not touch the bits directly: each bit keeps a signed vote counter
    (+weight for a set bit, -weight for a clear one) until normalize()
    thresholds the counters back into bits. A counter of exactly zero
    resolves to a clear bit. Permutations reorder whole words. Similarity is
    1 - 2 * hamming / dimension.

COMPLEX:
    complex64 coordinates accumulated as vector sums. normalize() rescales
    every non-zero component to unit amplitude, keeping its phase; zero
    components stay zero. Similarity is Re(<a, b*>) / (|a| |b|).

normalize() is idempotent for every type.
"""
from __future__ import annotations

from abc import ABC, abstractmethod

import torch

from .errors import InvalidParameter
from .permutations import permute_coordinates
from .types import BINARY_WORD_BITS, VectorType


class Vector(ABC):
    """A fixed-dimension point in one of the supported algebraic spaces."""

    vector_type: VectorType

    @property
    @abstractmethod
    def dimension(self) -> int:
        ...

    @abstractmethod
    def superpose(
        self,
        other: Vector,
        weight: float = 1.0,
        permutation: torch.Tensor | None = None,
    ) -> None:
        """Accumulate ``weight * permuted(other)`` into this vector."""

    @abstractmethod
    def normalize(self) -> None:
        ...

    @abstractmethod
    def similarity(self, other: Vector) -> float:
        ...

    @abstractmethod
    def components(self) -> torch.Tensor:
        """Flat component tensor used for serialization."""

    def _check_compatible(self, other: Vector) -> None:
        if other.vector_type != self.vector_type:
            raise InvalidParameter(
                f"Cannot combine {self.vector_type.value} and {other.vector_type.value} vectors"
            )
        if other.dimension != self.dimension:
            raise InvalidParameter(
                f"Dimension mismatch: {self.dimension} vs {other.dimension}"
            )

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Vector):
            return NotImplemented
        return (
            self.vector_type == other.vector_type
            and self.dimension == other.dimension
            and torch.equal(self.components(), other.components())
        )

    __hash__ = None  # mutable

    def __repr__(self) -> str:
        return f"{type(self).__name__}(dimension={self.dimension})"


# =============================================================================
# REAL
# =============================================================================

class RealVector(Vector):
    vector_type = VectorType.REAL

    def __init__(self, coordinates: torch.Tensor):
        self.coordinates = coordinates.to(torch.float32)
        # Set by normalize(), cleared by superpose().
        self._normalized = False

    @classmethod
    def zeros(cls, dimension: int) -> RealVector:
        return cls(torch.zeros(dimension, dtype=torch.float32))

    @property
    def dimension(self) -> int:
        return self.coordinates.shape[0]

    def superpose(self, other, weight=1.0, permutation=None):
        self._check_compatible(other)
        source = other.coordinates
        if permutation is not None:
            source = permute_coordinates(source, permutation)
        self.coordinates.add_(source, alpha=weight)
        self._normalized = False

    def normalize(self):
        if self._normalized:
            return
        self._normalized = True
        norm = torch.linalg.vector_norm(self.coordinates)
        if norm == 0:
            return
        self.coordinates.div_(norm)

    def similarity(self, other):
        self._check_compatible(other)
        norms = torch.linalg.vector_norm(self.coordinates) * torch.linalg.vector_norm(
            other.coordinates
        )
        if norms == 0:
            return 0.0
        return float(torch.dot(self.coordinates, other.coordinates) / norms)

    def components(self):
        return self.coordinates


# =============================================================================
# BINARY
# =============================================================================

class BinaryVector(Vector):
    vector_type = VectorType.BINARY

    def __init__(self, bits: torch.Tensor):
        if bits.shape[0] % BINARY_WORD_BITS:
            raise InvalidParameter(
                f"Binary dimension must be a multiple of {BINARY_WORD_BITS}, got {bits.shape[0]}"
            )
        self.bits = bits.to(torch.bool)
        # Pending majority-vote state; None once normalized.
        self._votes: torch.Tensor | None = None

    @classmethod
    def zeros(cls, dimension: int) -> BinaryVector:
        vector = cls(torch.zeros(dimension, dtype=torch.bool))
        vector._votes = torch.zeros(dimension, dtype=torch.float64)
        return vector

    @property
    def dimension(self) -> int:
        return self.bits.shape[0]

    @property
    def words(self) -> torch.Tensor:
        """Bits viewed as (dimension // 64, 64) blocks."""
        return self.bits.view(-1, BINARY_WORD_BITS)

    @property
    def has_pending_votes(self) -> bool:
        return self._votes is not None

    def superpose(self, other, weight=1.0, permutation=None):
        self._check_compatible(other)
        if self._votes is None:
            # Existing content counts as one vote per bit.
            self._votes = self.bits.to(torch.float64) * 2 - 1
        source = other.words
        if permutation is not None:
            source = permute_coordinates(source, permutation)
        signed = source.reshape(-1).to(torch.float64) * 2 - 1
        self._votes.add_(signed, alpha=weight)

    def normalize(self):
        if self._votes is None:
            return
        self.bits = self._votes > 0
        self._votes = None

    def similarity(self, other):
        self._check_compatible(other)
        hamming = int(torch.count_nonzero(self.bits ^ other.bits))
        return 1.0 - 2.0 * hamming / self.dimension

    def components(self):
        return self.bits


# =============================================================================
# COMPLEX
# =============================================================================

class ComplexVector(Vector):
    vector_type = VectorType.COMPLEX

    def __init__(self, coordinates: torch.Tensor):
        self.coordinates = coordinates.to(torch.complex64)
        self._normalized = False

    @classmethod
    def zeros(cls, dimension: int) -> ComplexVector:
        return cls(torch.zeros(dimension, dtype=torch.complex64))

    @property
    def dimension(self) -> int:
        return self.coordinates.shape[0]

    def superpose(self, other, weight=1.0, permutation=None):
        self._check_compatible(other)
        source = other.coordinates
        if permutation is not None:
            source = permute_coordinates(source, permutation)
        self.coordinates.add_(source * weight)
        self._normalized = False

    def normalize(self):
        if self._normalized:
            return
        self._normalized = True
        magnitudes = torch.abs(self.coordinates)
        nonzero = magnitudes > 0
        self.coordinates = torch.where(
            nonzero,
            self.coordinates / torch.where(nonzero, magnitudes, torch.ones_like(magnitudes)),
            self.coordinates,
        )

    def similarity(self, other):
        self._check_compatible(other)
        norms = torch.linalg.vector_norm(self.coordinates) * torch.linalg.vector_norm(
            other.coordinates
        )
        if norms == 0:
            return 0.0
        dot = torch.sum(self.coordinates * torch.conj(other.coordinates))
        return float(dot.real / norms)

    def components(self):
        """Real and imaginary parts interleaved."""
        return torch.view_as_real(self.coordinates).reshape(-1)


# =============================================================================
# FACTORIES
# =============================================================================

_VECTOR_CLASSES: dict[VectorType, type[Vector]] = {
    VectorType.REAL: RealVector,
    VectorType.BINARY: BinaryVector,
    VectorType.COMPLEX: ComplexVector,
}


def create_zero_vector(vector_type: VectorType | str, dimension: int) -> Vector:
    """Empty accumulator of the given type, ready for superposition."""
    if dimension <= 0:
        raise InvalidParameter(f"Dimension must be positive, got {dimension}")
    return _VECTOR_CLASSES[VectorType.parse(vector_type)].zeros(dimension)


def vector_from_components(
    vector_type: VectorType | str, dimension: int, components: torch.Tensor
) -> Vector:
    """Inverse of ``Vector.components()``."""
    vector_type = VectorType.parse(vector_type)
    if vector_type == VectorType.REAL:
        return RealVector(components.reshape(dimension))
    if vector_type == VectorType.BINARY:
        return BinaryVector(components.reshape(dimension))
    pairs = components.to(torch.float32).reshape(dimension, 2).contiguous()
    return ComplexVector(torch.view_as_complex(pairs))
