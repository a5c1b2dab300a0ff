"""
semvec_core/permutations.py - Permutations for positional encoding

A permutation is a LongTensor ``p`` of length n where ``p[i]`` is the
destination index of component i. Applying it to ``v`` produces ``out`` with
``out[p[i]] = v[i]``. The cyclic shift by k is therefore
``p[i] = (i + k) mod n``, which agrees with ``torch.roll(v, k)``.

PERMUTATION CACHE:
    Built once per training run from the positional method and window
    size, immutable thereafter, and keyed by the signed offset
    ``cursor - focus``:

    none                     -> empty
    directional              -> {-1: shift(-1), +1: shift(+1)}
    permutation(_plus_basic) -> {k: shift(k) for k in [-r, r]}, r = window // 2

    Binary vectors are permuted in whole 64-bit words, so their cache holds
    permutations of length dimension // 64.
"""
from __future__ import annotations

import torch

from .errors import InvalidParameter
from .types import (
    BINARY_WORD_BITS,
    PERMUTATION_METHODS,
    PositionalMethod,
    VectorType,
)


def shift_permutation(length: int, shift: int) -> torch.Tensor:
    """Permutation moving every index forward by ``shift`` (cyclically)."""
    if length <= 0:
        raise InvalidParameter(f"Permutation length must be positive, got {length}")
    return (torch.arange(length, dtype=torch.long) + shift) % length


def inverse_permutation(permutation: torch.Tensor) -> torch.Tensor:
    """Permutation that undoes ``permutation``."""
    inverse = torch.empty_like(permutation)
    inverse[permutation] = torch.arange(len(permutation), dtype=permutation.dtype)
    return inverse


def permute_coordinates(values: torch.Tensor, permutation: torch.Tensor) -> torch.Tensor:
    """Reorder the leading axis of ``values`` so that ``out[p[i]] = values[i]``.

    Works on 1-D coordinate arrays and on (words, bits) blocks alike.
    """
    if values.shape[0] != permutation.shape[0]:
        raise InvalidParameter(
            f"Permutation of length {permutation.shape[0]} cannot reorder "
            f"{values.shape[0]} components"
        )
    out = torch.empty_like(values)
    out[permutation] = values
    return out


def permutation_length(vector_type: VectorType, dimension: int) -> int:
    """Number of units a permutation reorders for this vector type."""
    if vector_type == VectorType.BINARY:
        return dimension // BINARY_WORD_BITS
    return dimension


class PermutationCache:
    """Precomputed positional permutations, looked up by signed offset.

    Example:
        cache = PermutationCache("permutation", window_size=5,
                                 dimension=200, vector_type=VectorType.REAL)
        len(cache)            # 5
        cache.for_offset(-2)  # shift by -2
    """

    def __init__(
        self,
        method: PositionalMethod,
        window_size: int,
        dimension: int,
        vector_type: VectorType = VectorType.REAL,
    ):
        if window_size < 1:
            raise InvalidParameter(f"window_size must be positive, got {window_size}")
        self.method = method
        self.window_size = window_size
        self.radius = window_size // 2
        self.length = permutation_length(vector_type, dimension)

        self._entries: dict[int, torch.Tensor] = {}
        if method == "none":
            pass
        elif method == "directional":
            self._entries[-1] = shift_permutation(self.length, -1)
            self._entries[1] = shift_permutation(self.length, 1)
        elif method in PERMUTATION_METHODS:
            for offset in range(-self.radius, self.radius + 1):
                self._entries[offset] = shift_permutation(self.length, offset)
        else:
            raise InvalidParameter(f"Unknown positional method: {method!r}")

    def __len__(self) -> int:
        return len(self._entries)

    def offsets(self) -> list[int]:
        return sorted(self._entries)

    def __getitem__(self, key: int) -> torch.Tensor:
        return self._entries[key]

    def for_offset(self, offset: int) -> torch.Tensor | None:
        """Permutation to apply to a co-occurring term at ``cursor - focus``.

        Returns None when no permutation applies (method "none").
        """
        if not self._entries:
            return None
        if self.method == "directional":
            return self._entries[1] if offset > 0 else self._entries[-1]
        try:
            return self._entries[offset]
        except KeyError:
            raise InvalidParameter(
                f"Offset {offset} lies outside the window radius {self.radius}"
            ) from None
