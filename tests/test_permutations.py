"""
tests/test_permutations.py - Positional permutation tests

Key Properties Tested:
    - Shift permutations agree with torch.roll and are invertible
    - Directional windows use only shift(-1) / shift(+1)
    - Permutation windows hold one entry per offset in [-r, r]
"""

import pytest
import torch

from semvec_core import (
    InvalidParameter,
    PermutationCache,
    VectorType,
    inverse_permutation,
    permute_coordinates,
    shift_permutation,
)


class TestShiftPermutation:
    @pytest.mark.parametrize("shift", [-3, -1, 0, 1, 2, 7])
    def test_matches_roll(self, shift):
        values = torch.arange(7, dtype=torch.float32)
        permuted = permute_coordinates(values, shift_permutation(7, shift))
        assert torch.equal(permuted, torch.roll(values, shift))

    def test_inverse_restores_order(self):
        values = torch.randn(11)
        p = shift_permutation(11, 4)
        restored = permute_coordinates(permute_coordinates(values, p), inverse_permutation(p))
        assert torch.equal(restored, values)

    def test_preserves_norm(self):
        values = torch.randn(32)
        permuted = permute_coordinates(values, shift_permutation(32, -5))
        assert torch.linalg.vector_norm(permuted).item() == pytest.approx(
            torch.linalg.vector_norm(values).item()
        )

    def test_reorders_word_blocks(self):
        blocks = torch.arange(6).reshape(3, 2)
        permuted = permute_coordinates(blocks, shift_permutation(3, 1))
        assert permuted.tolist() == [[4, 5], [0, 1], [2, 3]]

    def test_length_mismatch_rejected(self):
        with pytest.raises(InvalidParameter):
            permute_coordinates(torch.zeros(5), shift_permutation(4, 1))

    def test_non_positive_length_rejected(self):
        with pytest.raises(InvalidParameter):
            shift_permutation(0, 1)


class TestPermutationCache:
    def test_none_is_empty(self):
        cache = PermutationCache("none", 5, 16)
        assert len(cache) == 0
        assert cache.for_offset(2) is None

    def test_directional_uses_sign_only(self):
        """Window 4: every earlier term shifts left by one, every later one right."""
        cache = PermutationCache("directional", 4, 16)
        assert cache.offsets() == [-1, 1]
        assert torch.equal(cache.for_offset(-2), shift_permutation(16, -1))
        assert torch.equal(cache.for_offset(-1), shift_permutation(16, -1))
        assert torch.equal(cache.for_offset(1), shift_permutation(16, 1))
        assert torch.equal(cache.for_offset(2), shift_permutation(16, 1))

    @pytest.mark.parametrize("method", ["permutation", "permutation_plus_basic"])
    def test_permutation_has_entry_per_offset(self, method):
        cache = PermutationCache(method, 5, 16)
        assert len(cache) == 5
        assert cache.offsets() == [-2, -1, 0, 1, 2]
        assert torch.equal(cache.for_offset(-2), shift_permutation(16, -2))
        assert torch.equal(cache.for_offset(1), shift_permutation(16, 1))

    def test_offset_outside_window_rejected(self):
        cache = PermutationCache("permutation", 5, 16)
        with pytest.raises(InvalidParameter):
            cache.for_offset(3)

    def test_binary_permutes_words(self):
        cache = PermutationCache("permutation", 3, 256, VectorType.BINARY)
        assert cache[1].shape == (4,)

    def test_unknown_method_rejected(self):
        with pytest.raises(InvalidParameter):
            PermutationCache("sideways", 5, 16)

    def test_window_size_must_be_positive(self):
        with pytest.raises(InvalidParameter):
            PermutationCache("permutation", 0, 16)
