"""
semvec_core/errors.py - Exception hierarchy for vector space construction

Every failure the construction engine reports deliberately is one of these.
I/O failures are not wrapped; OSError propagates unchanged.
"""
from __future__ import annotations


class SemanticVectorsError(Exception):
    """Base class for all construction engine errors."""


class InvalidParameter(SemanticVectorsError, ValueError):
    """A configuration value or call argument is out of range or unknown."""


class ConfigMismatch(SemanticVectorsError):
    """Externally supplied elemental vectors do not fit the indexed collection."""


class UnsupportedIndex(SemanticVectorsError):
    """The corpus index lacks data the requested training strategy needs."""


class FormatError(SemanticVectorsError):
    """A serialized vector store is malformed or disagrees with the configuration."""
