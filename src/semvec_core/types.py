"""
semvec_core/types.py - Pydantic type definitions for vector space construction

Uses Pydantic v2 for validation. The training configuration is frozen:
one run, one configuration.
"""
from __future__ import annotations

from enum import Enum
from typing import Any, Literal

from pydantic import BaseModel, Field, ValidationError, field_validator, model_validator

from .errors import InvalidParameter

# Word width used by binary vectors for bit grouping and permutation.
BINARY_WORD_BITS = 64

MAX_FREQUENCY = 2**31 - 1


class VectorType(str, Enum):
    """Algebraic space a vector lives in."""

    REAL = "real"
    BINARY = "binary"
    COMPLEX = "complex"

    @classmethod
    def parse(cls, value: str | VectorType) -> VectorType:
        """Accept either enum members or case-insensitive names."""
        if isinstance(value, VectorType):
            return value
        try:
            return cls(str(value).lower())
        except ValueError:
            raise InvalidParameter(f"Unknown vector type: {value!r}") from None


PositionalMethod = Literal["none", "directional", "permutation", "permutation_plus_basic"]
DocIndexing = Literal["incremental", "inmemory", "none"]
TrainingStrategy = Literal["document", "termterm"]
IndexFileFormat = Literal["binary", "text"]

PERMUTATION_METHODS = ("permutation", "permutation_plus_basic")


# =============================================================================
# TRAINING CONFIGURATION
# =============================================================================

class TrainingConfig(BaseModel):
    """Configuration for one vector space construction run."""

    vector_type: VectorType = Field(default=VectorType.REAL)
    dimension: int = Field(default=200, gt=0, description="Vector dimensionality")
    seed_length: int = Field(
        default=10, gt=0, description="Non-zero entries in elemental vectors"
    )

    # Term filtering
    min_frequency: int = Field(default=0, ge=0)
    max_frequency: int = Field(default=MAX_FREQUENCY, ge=0)
    max_nonalphabet_chars: int = Field(
        default=0, ge=-1, description="-1 allows any number"
    )
    filter_numbers: bool = False
    contents_fields: tuple[str, ...] = Field(default=("contents",), min_length=1)

    # Training
    training_strategy: TrainingStrategy = "document"
    window_size: int = Field(default=5, ge=1)
    positional_method: PositionalMethod = "none"
    training_cycles: int = Field(default=1, ge=1)
    deterministic_vectors: bool = False
    random_seed: int | None = None
    initial_term_vectors: str | None = Field(
        default=None, description='"random" or path to a stored term vector file'
    )

    # Output
    doc_indexing: DocIndexing = "inmemory"
    index_file_format: IndexFileFormat = "binary"
    term_vectors_file: str = Field(default="termvectors", min_length=1)
    doc_vectors_file: str = Field(default="docvectors", min_length=1)
    elemental_vectors_file: str = Field(default="elementalvectors", min_length=1)

    model_config = {"frozen": True, "extra": "forbid"}

    def __init__(self, **data: Any) -> None:
        try:
            super().__init__(**data)
        except ValidationError as exc:
            raise InvalidParameter(str(exc)) from exc

    @field_validator("vector_type", mode="before")
    @classmethod
    def parse_vector_type(cls, v: Any) -> Any:
        if isinstance(v, str):
            return v.lower()
        return v

    @field_validator("positional_method", mode="before")
    @classmethod
    def parse_positional_method(cls, v: Any) -> Any:
        # "basic" is the historical name for unpermuted windowing.
        if v is None or v == "basic":
            return "none"
        return v

    @model_validator(mode="after")
    def check_consistency(self) -> TrainingConfig:
        if self.seed_length > self.dimension:
            raise ValueError(
                f"seed_length ({self.seed_length}) exceeds dimension ({self.dimension})"
            )
        if self.min_frequency > self.max_frequency:
            raise ValueError("min_frequency exceeds max_frequency")
        if self.vector_type == VectorType.BINARY and self.dimension % BINARY_WORD_BITS:
            raise ValueError(
                f"binary vectors need a dimension divisible by {BINARY_WORD_BITS}, "
                f"got {self.dimension}"
            )
        return self

    @property
    def window_radius(self) -> int:
        return self.window_size // 2

    @property
    def uses_permutations(self) -> bool:
        return self.positional_method in PERMUTATION_METHODS

    @property
    def file_suffix(self) -> str:
        return ".txt" if self.index_file_format == "text" else ".bin"

    def with_options(self, **updates: Any) -> TrainingConfig:
        """Return a copy with some options replaced (re-validated)."""
        return TrainingConfig(**{**self.model_dump(), **updates})
