"""
tests/test_build.py - Training cycle orchestration tests

Verifies:
    - Cycle chaining: each cycle's input basis is the previous cycle's output
    - Output file naming for single, multi-cycle and incremental runs
    - Elemental vectors are persisted for permutation methods
    - Index capability checks happen before any output is written
"""

import pytest
import torch

from semvec_core import (
    InvalidParameter,
    UnsupportedIndex,
    VectorType,
    build_index,
    load_vector_store,
    make_config,
)
from semvec_core.build import output_name


def file_names(directory):
    return sorted(path.name for path in directory.iterdir())


# =============================================================================
# DOCUMENT STRATEGY
# =============================================================================


class TestDocumentStrategy:
    def test_single_cycle(self, tmp_path, real_config, index):
        result = build_index(real_config, index, tmp_path)

        assert len(result.cycles) == 1
        assert file_names(tmp_path) == ["docvectors.bin", "termvectors.bin"]
        docs = load_vector_store(tmp_path / "docvectors.bin")
        assert docs.ids() == ["pets.txt", "farm.txt", "city.txt", "zoo.txt"]
        terms = load_vector_store(tmp_path / "termvectors.bin")
        assert terms.get("cat") == result.term_vectors.get("cat")

    def test_cycles_chain(self, tmp_path, index):
        config = make_config(dimension=64, seed_length=8, training_cycles=3, random_seed=1)
        result = build_index(config, index, tmp_path)

        assert [snapshot.cycle for snapshot in result.cycles] == [1, 2, 3]
        assert result.cycles[1].elemental_vectors is result.cycles[0].doc_vectors
        assert result.cycles[2].elemental_vectors is result.cycles[1].doc_vectors
        assert file_names(tmp_path) == ["docvectors3.bin", "termvectors3.bin"]

    def test_no_doc_indexing(self, tmp_path, index):
        config = make_config(dimension=64, seed_length=8, doc_indexing="none")
        result = build_index(config, index, tmp_path)
        assert result.doc_vectors is None
        assert file_names(tmp_path) == ["termvectors.bin"]

    def test_no_doc_indexing_still_retrains(self, index):
        config = make_config(dimension=64, seed_length=8, doc_indexing="none", training_cycles=2)
        result = build_index(config, index)
        assert result.cycles[1].elemental_vectors is result.cycles[0].doc_vectors
        assert result.doc_vectors is None

    def test_text_output(self, tmp_path, index):
        config = make_config(dimension=64, seed_length=8, index_file_format="text")
        build_index(config, index, tmp_path)
        assert file_names(tmp_path) == ["docvectors.txt", "termvectors.txt"]

    def test_without_output_dir(self, real_config, index):
        result = build_index(real_config, index)
        assert result.files == {}
        assert result.doc_vectors.count() == 4

    def test_random_initial_term_vectors(self, index):
        config = make_config(dimension=64, seed_length=8, initial_term_vectors="random")
        result = build_index(config, index)
        first = result.cycles[0]
        assert first.elemental_vectors is first.term_vectors
        assert torch.count_nonzero(first.term_vectors.get("cat").coordinates) == 8
        assert result.doc_vectors.count() == 4

    def test_persist_intermediate(self, tmp_path, index):
        config = make_config(dimension=64, seed_length=8, training_cycles=2)
        build_index(config, index, tmp_path, persist_intermediate=True)
        assert "termvectors.bin" in file_names(tmp_path)
        assert "termvectors2.bin" in file_names(tmp_path)


class TestIncremental:
    def test_single_cycle(self, tmp_path, index):
        config = make_config(dimension=64, seed_length=8, doc_indexing="incremental")
        result = build_index(config, index, tmp_path)
        assert file_names(tmp_path) == ["incremental_docvectors.bin", "termvectors.bin"]
        assert result.files["doc_vectors"] == tmp_path / "incremental_docvectors.bin"

    def test_retraining_cycles(self, tmp_path, index):
        config = make_config(
            dimension=64, seed_length=8, doc_indexing="incremental", training_cycles=2
        )
        result = build_index(config, index, tmp_path)
        assert "incremental_termvectors2.bin" in file_names(tmp_path)
        assert "incremental_docvectors2.bin" in file_names(tmp_path)
        assert len(result.cycles) == 2
        assert result.cycles[1].elemental_vectors.ids() == ["0", "1", "2", "3"]

    def test_retraining_snapshot_holds_previous_doc_vectors(self, tmp_path, index):
        config = make_config(
            dimension=64, seed_length=8, doc_indexing="incremental", training_cycles=2
        )
        result = build_index(config, index, tmp_path)
        previous = load_vector_store(tmp_path / "incremental_docvectors.bin")
        elemental = result.cycles[1].elemental_vectors
        for doc_id in range(index.document_count()):
            assert elemental.get(str(doc_id)) == previous.get(index.document_name(doc_id))

    def test_requires_positions(self, tmp_path, index_without_positions):
        config = make_config(dimension=64, seed_length=8, doc_indexing="incremental")
        with pytest.raises(UnsupportedIndex):
            build_index(config, index_without_positions, tmp_path)
        assert file_names(tmp_path) == []

    def test_requires_output_dir(self, index):
        config = make_config(dimension=64, seed_length=8, doc_indexing="incremental")
        with pytest.raises(InvalidParameter):
            build_index(config, index)


# =============================================================================
# TERM-TERM STRATEGY
# =============================================================================


class TestTermTermStrategy:
    def test_single_cycle_keeps_elementals(self, tmp_path, index):
        config = make_config(dimension=64, seed_length=4, training_strategy="termterm")
        result = build_index(config, index, tmp_path)

        snapshot = result.final
        assert snapshot.elemental_vectors is not snapshot.term_vectors
        for _, vector in snapshot.elemental_vectors.all():
            assert torch.count_nonzero(vector.coordinates) == 4
        assert file_names(tmp_path) == ["docvectors.bin", "termvectors.bin"]

    def test_cycles_chain(self, index):
        config = make_config(
            dimension=64, seed_length=4, training_strategy="termterm", training_cycles=3
        )
        result = build_index(config, index)
        assert result.cycles[1].elemental_vectors is result.cycles[0].term_vectors
        assert result.cycles[2].elemental_vectors is result.cycles[1].term_vectors
        assert result.cycles[0].doc_vectors is None
        assert result.doc_vectors.count() == 4

    def test_permutation_writes_elementals(self, tmp_path, index):
        config = make_config(
            dimension=64,
            seed_length=4,
            training_strategy="termterm",
            positional_method="permutation",
            training_cycles=2,
            doc_indexing="none",
        )
        result = build_index(config, index, tmp_path)
        assert file_names(tmp_path) == [
            "elementalvectors.bin",
            "elementalvectors2.bin",
            "termvectors2.bin",
        ]
        stored = load_vector_store(tmp_path / "elementalvectors.bin")
        assert stored.get("cat") == result.cycles[0].elemental_vectors.get("cat")

    def test_incremental_doc_vectors(self, tmp_path, index):
        config = make_config(
            dimension=64, seed_length=4, training_strategy="termterm", doc_indexing="incremental"
        )
        build_index(config, index, tmp_path)
        assert file_names(tmp_path) == ["incremental_docvectors.bin", "termvectors.bin"]

    def test_initial_term_vectors_from_file(self, tmp_path, index):
        first = make_config(dimension=64, seed_length=4, training_strategy="termterm")
        build_index(first, index, tmp_path / "first")

        second = first.with_options(
            initial_term_vectors=str(tmp_path / "first" / "termvectors.bin")
        )
        result = build_index(second, index)
        assert result.final.elemental_vectors.get("cat") is not None

    def test_unsupported_index_writes_nothing(self, tmp_path, index_without_positions):
        config = make_config(dimension=64, seed_length=4, training_strategy="termterm")
        with pytest.raises(UnsupportedIndex):
            build_index(config, index_without_positions, tmp_path)
        assert file_names(tmp_path) == []

    @pytest.mark.parametrize("vector_type,dimension", [
        (VectorType.REAL, 64),
        (VectorType.BINARY, 128),
        (VectorType.COMPLEX, 32),
    ])
    def test_all_vector_types_round_trip(self, tmp_path, index, vector_type, dimension):
        config = make_config(
            vector_type=vector_type,
            dimension=dimension,
            seed_length=4,
            training_strategy="termterm",
            positional_method="permutation_plus_basic",
            training_cycles=2,
        )
        result = build_index(config, index, tmp_path)
        loaded = load_vector_store(tmp_path / "termvectors2.bin", vector_type, dimension)
        assert loaded.get("dog") == result.term_vectors.get("dog")


class TestOutputName:
    def test_cycle_suffix(self):
        config = make_config(training_cycles=3)
        assert output_name("termvectors", config) == "termvectors3.bin"
        assert output_name("termvectors", config, cycle=1) == "termvectors.bin"
        assert output_name("docvectors", config, prefix="incremental_") == (
            "incremental_docvectors3.bin"
        )
