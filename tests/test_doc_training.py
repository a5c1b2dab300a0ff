"""
tests/test_doc_training.py - Document-level term vector training tests

Verifies:
    - Term vectors are frequency-weighted sums of elemental doc vectors
    - Fields accumulate into one vector per term
    - Supplied elemental vectors must match the collection
    - Term-based starting vectors ("random" or a file)
"""

import pytest
import torch

from semvec_core import (
    ConfigMismatch,
    InMemoryIndex,
    InvalidParameter,
    RealVector,
    RecordingProgress,
    TermVectorsFromIndex,
    VectorStoreRAM,
    VectorType,
    create_initial_term_vectors,
    make_config,
    write_vectors,
)

# =============================================================================
# FIXTURES
# =============================================================================


@pytest.fixture
def five_dim_config():
    return make_config(dimension=5, seed_length=2)


@pytest.fixture
def two_doc_elementals():
    store = VectorStoreRAM(VectorType.REAL, 5)
    store.put("0", RealVector(torch.tensor([1.0, 0.0, -1.0, 0.0, 0.0])))
    store.put("1", RealVector(torch.tensor([0.0, 1.0, 0.0, -1.0, 0.0])))
    return store


# =============================================================================
# TRAINING
# =============================================================================


class TestTermVectorsFromIndex:
    def test_weighted_by_frequency(self, five_dim_config, two_doc_elementals):
        index = InMemoryIndex()
        index.add_document("d1", {"contents": ["t", "t"]})
        index.add_document("d2", {"contents": ["t"]})

        trained = TermVectorsFromIndex.create(five_dim_config, index, two_doc_elementals)

        expected = torch.tensor([0.6325, 0.3162, -0.6325, -0.3162, 0.0])
        assert torch.allclose(trained.term_vectors.get("t").coordinates, expected, atol=1e-4)
        assert trained.elemental_doc_vectors is two_doc_elementals

    def test_fields_accumulate(self, two_doc_elementals):
        config = make_config(dimension=5, seed_length=2, contents_fields=["contents", "title"])
        index = InMemoryIndex()
        index.add_document("d1", {"contents": ["t"]})
        index.add_document("d2", {"title": ["t"]})

        trained = TermVectorsFromIndex.create(config, index, two_doc_elementals)

        expected = torch.tensor([1.0, 1.0, -1.0, -1.0, 0.0]) / 2
        assert torch.allclose(trained.term_vectors.get("t").coordinates, expected, atol=1e-6)
        assert trained.term_vectors.count() == 1

    def test_fresh_elementals(self, real_config, index):
        trained = TermVectorsFromIndex.create(real_config, index)

        assert trained.elemental_doc_vectors.ids() == ["0", "1", "2", "3"]
        assert set(trained.term_vectors.ids()) == set(index.terms_for_field("contents"))
        for _, vector in trained.term_vectors.all():
            norm = torch.linalg.vector_norm(vector.coordinates).item()
            assert norm == pytest.approx(1.0, abs=1e-5)

    def test_filter_excludes_terms(self, index):
        config = make_config(dimension=64, seed_length=8, min_frequency=2)
        trained = TermVectorsFromIndex.create(config, index)
        assert "sat" in trained.term_vectors
        assert "zoo" not in trained.term_vectors

    def test_same_documents_give_same_direction(self, real_config):
        index = InMemoryIndex()
        index.add_document("d1", {"contents": "alpha beta"})
        index.add_document("d2", {"contents": "gamma"})
        trained = TermVectorsFromIndex.create(real_config, index)
        alpha = trained.term_vectors.get("alpha")
        assert alpha.similarity(trained.term_vectors.get("beta")) == pytest.approx(1.0, abs=1e-5)

    @pytest.mark.parametrize("vector_type,dimension", [("binary", 128), ("complex", 32)])
    def test_other_vector_types(self, index, vector_type, dimension):
        config = make_config(vector_type=vector_type, dimension=dimension, seed_length=8)
        trained = TermVectorsFromIndex.create(config, index)
        cat = trained.term_vectors.get("cat")
        assert cat.vector_type == VectorType.parse(vector_type)
        assert cat.similarity(cat) == pytest.approx(1.0, abs=1e-5)

    def test_reports_progress(self, real_config, index):
        progress = RecordingProgress()
        TermVectorsFromIndex.create(real_config, index, progress=progress)
        assert ("terms", 0) in progress.checkpoints


class TestElementalMismatch:
    def test_wrong_document_count(self, five_dim_config, two_doc_elementals):
        index = InMemoryIndex()
        for name in ["a", "b", "c"]:
            index.add_document(name, {"contents": ["t"]})
        with pytest.raises(ConfigMismatch):
            TermVectorsFromIndex.create(five_dim_config, index, two_doc_elementals)

    def test_wrong_dimension(self, two_doc_elementals):
        config = make_config(dimension=8, seed_length=2)
        index = InMemoryIndex()
        index.add_document("a", {"contents": ["t"]})
        index.add_document("b", {"contents": ["t"]})
        with pytest.raises(ConfigMismatch):
            TermVectorsFromIndex.create(config, index, two_doc_elementals)


# =============================================================================
# TERM-BASED STARTING VECTORS
# =============================================================================


class TestInitialTermVectors:
    def test_random(self, index):
        config = make_config(
            dimension=64, seed_length=8, initial_term_vectors="random", min_frequency=2
        )
        store = create_initial_term_vectors(config, index)
        assert set(store.ids()) == {"the", "and", "on", "sat", "cat", "dog", "in"}
        assert torch.count_nonzero(store.get("cat").coordinates) == 8

    def test_from_file(self, tmp_path, index):
        source = VectorStoreRAM(VectorType.REAL, 64)
        source.populate_random(["cat", "dog"], seed_length=4, rng_seed=0)
        path = write_vectors(tmp_path / "start.bin", source)

        config = make_config(dimension=64, seed_length=8, initial_term_vectors=str(path))
        store = create_initial_term_vectors(config, index)
        assert store.get("cat") == source.get("cat")

    def test_not_configured(self, real_config, index):
        with pytest.raises(InvalidParameter):
            create_initial_term_vectors(real_config, index)
