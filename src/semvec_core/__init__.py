"""
semvec_core - Random Indexing / Reflective Random Indexing vector spaces

Builds distributional semantic vectors for the terms and documents of an
indexed text collection by superposing sparse random elemental vectors.

Quick Start:
    from semvec_core import InMemoryIndex, build_index, make_config

    index = InMemoryIndex.from_texts({
        "a.txt": "the cat sat on the mat",
        "b.txt": "the dog sat on the log",
    })
    config = make_config(dimension=512, seed_length=10, training_cycles=2)
    result = build_index(config, index, output_dir="vectors/")

    cat = result.term_vectors.get("cat")
    dog = result.term_vectors.get("dog")
    print(cat.similarity(dog))

Modules:
    semvec_core.vectors        - Real, binary and complex vector algebra
    semvec_core.permutations   - Shift permutations and the positional cache
    semvec_core.elemental      - Sparse random elemental vectors
    semvec_core.store          - In-memory vector store
    semvec_core.serialization  - Binary/text vector store files
    semvec_core.index          - Corpus index interface and term filter
    semvec_core.doc_training   - Document-level term vector training
    semvec_core.termterm       - Sliding-window term-term training
    semvec_core.doc_vectors    - Document vectors (in-memory and incremental)
    semvec_core.build          - Training cycle orchestration
    semvec_core.loader         - YAML configuration loading
    semvec_core.types          - Pydantic type definitions
"""

__version__ = "1.0.0"

# Vectors
from .vectors import (
    Vector,
    RealVector,
    BinaryVector,
    ComplexVector,
    create_zero_vector,
    vector_from_components,
)

# Permutations
from .permutations import (
    PermutationCache,
    shift_permutation,
    inverse_permutation,
    permute_coordinates,
)

# Elemental vectors and storage
from .elemental import ElementalVectorGenerator, generate_random_vector, seed_for_identifier
from .store import VectorStoreRAM
from .serialization import (
    VectorStoreReader,
    VectorStoreWriter,
    iter_vectors,
    load_vector_store,
    write_vectors,
)

# Corpus access
from .index import CorpusIndex, InMemoryIndex, Posting, TermFilter, TermPositionVector

# Training
from .doc_training import TermVectorsFromIndex, create_initial_term_vectors
from .termterm import TermTermVectorsFromIndex
from .doc_vectors import (
    DocVectors,
    train_incremental_term_vectors,
    write_incremental_doc_vectors,
)
from .build import BuildResult, CycleSnapshot, build_index

# Configuration
from .types import TrainingConfig, VectorType
from .loader import load_config, make_config

# Progress and errors
from .progress import LoggingProgress, NullProgress, ProgressReporter, RecordingProgress
from .errors import (
    SemanticVectorsError,
    InvalidParameter,
    ConfigMismatch,
    UnsupportedIndex,
    FormatError,
)

__all__ = [
    # Version
    "__version__",
    # Vectors
    "Vector",
    "RealVector",
    "BinaryVector",
    "ComplexVector",
    "create_zero_vector",
    "vector_from_components",
    # Permutations
    "PermutationCache",
    "shift_permutation",
    "inverse_permutation",
    "permute_coordinates",
    # Elemental vectors and storage
    "ElementalVectorGenerator",
    "generate_random_vector",
    "seed_for_identifier",
    "VectorStoreRAM",
    "VectorStoreReader",
    "VectorStoreWriter",
    "iter_vectors",
    "load_vector_store",
    "write_vectors",
    # Corpus access
    "CorpusIndex",
    "InMemoryIndex",
    "Posting",
    "TermFilter",
    "TermPositionVector",
    # Training
    "TermVectorsFromIndex",
    "create_initial_term_vectors",
    "TermTermVectorsFromIndex",
    "DocVectors",
    "train_incremental_term_vectors",
    "write_incremental_doc_vectors",
    "BuildResult",
    "CycleSnapshot",
    "build_index",
    # Configuration
    "TrainingConfig",
    "VectorType",
    "load_config",
    "make_config",
    # Progress and errors
    "LoggingProgress",
    "NullProgress",
    "ProgressReporter",
    "RecordingProgress",
    "SemanticVectorsError",
    "InvalidParameter",
    "ConfigMismatch",
    "UnsupportedIndex",
    "FormatError",
]
