"""
semvec_core/loader.py - YAML configuration loading

A run can be described declaratively:

    # build.yaml
    vector_type: binary
    dimension: 4096
    seed_length: 20
    training_strategy: termterm
    positional_method: permutation
    window_size: 5
    contents_fields: [contents, title]

    config = load_config("build.yaml", training_cycles=2)

All values are validated by TrainingConfig; any problem is reported as
InvalidParameter.
"""
from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml

from .errors import InvalidParameter
from .types import TrainingConfig


def make_config(**options: Any) -> TrainingConfig:
    """Build a configuration from keyword options (unset ones use defaults)."""
    return TrainingConfig(**options)


def load_config(path: str | Path, **overrides: Any) -> TrainingConfig:
    """Load a configuration from a YAML mapping; ``overrides`` win over the file.

    Raises:
        InvalidParameter: the file is not a mapping or holds invalid values
        OSError: the file cannot be read
    """
    path = Path(path)
    with open(path) as f:
        try:
            raw = yaml.safe_load(f)
        except yaml.YAMLError as exc:
            raise InvalidParameter(f"{path}: not valid YAML: {exc}") from exc

    if raw is None:
        raw = {}
    if not isinstance(raw, dict):
        raise InvalidParameter(f"{path}: expected a mapping of options, got {type(raw).__name__}")
    return make_config(**{**raw, **overrides})
