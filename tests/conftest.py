"""
Pytest fixtures for vector space construction tests.

Provides small in-memory corpora and configurations sized for fast runs.
"""

import pytest
import torch

from semvec_core import InMemoryIndex, RealVector, VectorStoreRAM, VectorType, make_config

# =============================================================================
# CORPUS FIXTURES
# =============================================================================

@pytest.fixture
def corpus_texts() -> dict[str, str]:
    """A few short documents with overlapping vocabulary."""
    return {
        "pets.txt": "the cat sat on the mat and the dog sat on the log",
        "farm.txt": "the cow and the horse ate hay on the farm",
        "city.txt": "the cat and the dog walked in the city park",
        "zoo.txt": "the lion and the tiger slept in the zoo",
    }


@pytest.fixture
def index(corpus_texts) -> InMemoryIndex:
    return InMemoryIndex.from_texts(corpus_texts)


@pytest.fixture
def index_without_positions(corpus_texts) -> InMemoryIndex:
    return InMemoryIndex.from_texts(corpus_texts, store_positions=False)


@pytest.fixture
def sentence_index() -> InMemoryIndex:
    """One document: "your life is your life"."""
    index = InMemoryIndex()
    index.add_document("life.txt", {"contents": "your life is your life"})
    return index


# =============================================================================
# CONFIGURATION FIXTURES
# =============================================================================

@pytest.fixture
def real_config():
    return make_config(dimension=64, seed_length=8, random_seed=7)


@pytest.fixture
def unit_config():
    """Dimension 8 with one-hot elemental vectors supplied by the test."""
    return make_config(dimension=8, seed_length=1, random_seed=3)


def one_hot(dimension: int, position: int) -> RealVector:
    values = torch.zeros(dimension)
    values[position] = 1.0
    return RealVector(values)


@pytest.fixture
def basis():
    """Factory for one-hot real vectors: basis(dimension, position)."""
    return one_hot


@pytest.fixture
def one_hot_terms() -> VectorStoreRAM:
    """your = e0, life = e1, is = e2 in dimension 8."""
    store = VectorStoreRAM(VectorType.REAL, 8)
    for position, term in enumerate(["your", "life", "is"]):
        store.put(term, one_hot(8, position))
    return store
