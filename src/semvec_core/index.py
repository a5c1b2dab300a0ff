"""
semvec_core/index.py - Read-only corpus index interface

The construction engine never tokenizes or stores text itself. It reads
from a corpus index exposing filtered terms per field, postings, and
per-document term position vectors. ``InMemoryIndex`` is a small
implementation over tokenized documents; any full-text engine can be
plugged in by implementing ``CorpusIndex``.

TERM FILTER:
    A term is kept for a field when
      - the field is one of the configured contents fields,
      - it has at most max_nonalphabet_chars non-letter characters
        (-1 disables the check),
      - it is not a number (only when filter_numbers is set),
      - its total frequency within that field lies in
        [min_frequency, max_frequency], both bounds inclusive.
"""
from __future__ import annotations

import re
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass
from typing import NamedTuple, Protocol

from .types import TrainingConfig

_TOKEN_RE = re.compile(r"\w+")
_NUMBER_RE = re.compile(r"[+-]?(\d+([.,]\d*)*|[.,]\d+)")


class Posting(NamedTuple):
    doc_id: int
    frequency: int


@dataclass(frozen=True)
class TermPositionVector:
    """Terms of one document field with their frequencies and positions.

    ``positions[i]`` lists the (0-based) token positions of ``terms[i]``.
    """

    terms: tuple[str, ...]
    frequencies: tuple[int, ...]
    positions: tuple[tuple[int, ...], ...]

    def max_position(self) -> int:
        """Highest occupied position, or -1 for an empty field."""
        return max((p for posns in self.positions for p in posns), default=-1)


class CorpusIndex(Protocol):
    """What the construction engine needs from a full-text index."""

    def fields(self) -> list[str]: ...

    def terms_for_field(self, field: str) -> Sequence[str]: ...

    def postings(self, field: str, term: str) -> Sequence[Posting]: ...

    def term_frequency(self, field: str, term: str) -> int: ...

    def term_position_vector(self, doc_id: int, field: str) -> TermPositionVector | None: ...

    def document_count(self) -> int: ...

    def has_positions(self) -> bool: ...

    def document_name(self, doc_id: int) -> str: ...


def tokenize(text: str) -> list[str]:
    """Lower-cased word tokens."""
    return _TOKEN_RE.findall(text.lower())


def is_number(term: str) -> bool:
    return _NUMBER_RE.fullmatch(term) is not None


# =============================================================================
# TERM FILTER
# =============================================================================

class TermFilter:
    """Decides which (field, term) pairs take part in training."""

    def __init__(
        self,
        index: CorpusIndex,
        fields: Iterable[str],
        min_frequency: int = 0,
        max_frequency: int = 2**31 - 1,
        max_nonalphabet_chars: int = -1,
        filter_numbers: bool = False,
    ):
        self.index = index
        self.fields = frozenset(fields)
        self.min_frequency = min_frequency
        self.max_frequency = max_frequency
        self.max_nonalphabet_chars = max_nonalphabet_chars
        self.filter_numbers = filter_numbers

    @classmethod
    def from_config(cls, config: TrainingConfig, index: CorpusIndex) -> TermFilter:
        return cls(
            index,
            config.contents_fields,
            min_frequency=config.min_frequency,
            max_frequency=config.max_frequency,
            max_nonalphabet_chars=config.max_nonalphabet_chars,
            filter_numbers=config.filter_numbers,
        )

    def __call__(self, field: str, term: str) -> bool:
        if field not in self.fields:
            return False
        if self.max_nonalphabet_chars != -1:
            nonalphabet = sum(1 for ch in term if not ch.isalpha())
            if nonalphabet > self.max_nonalphabet_chars:
                return False
        if self.filter_numbers and is_number(term):
            return False
        frequency = self.index.term_frequency(field, term)
        return self.min_frequency <= frequency <= self.max_frequency

    def filtered_terms(self, field: str) -> Iterable[str]:
        for term in self.index.terms_for_field(field):
            if self(field, term):
                yield term


# =============================================================================
# IN-MEMORY INDEX
# =============================================================================

class InMemoryIndex:
    """Inverted index over a handful of tokenized documents.

    Example:
        index = InMemoryIndex.from_texts({
            "a.txt": "the cat sat on the mat",
            "b.txt": "the dog sat on the log",
        })
        index.postings("contents", "sat")  # [Posting(0, 1), Posting(1, 1)]
    """

    def __init__(self, store_positions: bool = True):
        self.store_positions = store_positions
        self._names: list[str] = []
        # field -> term -> doc_id -> positions
        self._inverted: dict[str, dict[str, dict[int, list[int]]]] = {}
        # doc_id -> field -> term -> positions
        self._forward: list[dict[str, dict[str, list[int]]]] = []

    @classmethod
    def from_texts(
        cls,
        texts: Mapping[str, str],
        field: str = "contents",
        store_positions: bool = True,
    ) -> InMemoryIndex:
        index = cls(store_positions=store_positions)
        for name, text in texts.items():
            index.add_document(name, {field: text})
        return index

    def add_document(self, name: str, fields: Mapping[str, str | Sequence[str]]) -> int:
        """Index one document; strings are tokenized, sequences taken as tokens.

        Returns:
            The new document id
        """
        doc_id = len(self._names)
        self._names.append(name)
        forward: dict[str, dict[str, list[int]]] = {}
        for field, content in fields.items():
            tokens = tokenize(content) if isinstance(content, str) else list(content)
            by_term: dict[str, list[int]] = {}
            for position, token in enumerate(tokens):
                by_term.setdefault(token, []).append(position)
            forward[field] = by_term
            inverted = self._inverted.setdefault(field, {})
            for term, positions in by_term.items():
                inverted.setdefault(term, {})[doc_id] = positions
        self._forward.append(forward)
        return doc_id

    def fields(self) -> list[str]:
        return list(self._inverted)

    def terms_for_field(self, field: str) -> list[str]:
        return sorted(self._inverted.get(field, {}))

    def postings(self, field: str, term: str) -> list[Posting]:
        docs = self._inverted.get(field, {}).get(term, {})
        return [Posting(doc_id, len(docs[doc_id])) for doc_id in sorted(docs)]

    def term_frequency(self, field: str, term: str) -> int:
        docs = self._inverted.get(field, {}).get(term, {})
        return sum(len(positions) for positions in docs.values())

    def document_frequency(self, field: str, term: str) -> int:
        return len(self._inverted.get(field, {}).get(term, {}))

    def term_position_vector(self, doc_id: int, field: str) -> TermPositionVector | None:
        if not self.store_positions:
            return None
        by_term = self._forward[doc_id].get(field)
        if not by_term:
            return None
        terms = tuple(sorted(by_term))
        return TermPositionVector(
            terms=terms,
            frequencies=tuple(len(by_term[t]) for t in terms),
            positions=tuple(tuple(by_term[t]) for t in terms),
        )

    def document_count(self) -> int:
        return len(self._names)

    def has_positions(self) -> bool:
        return self.store_positions

    def document_name(self, doc_id: int) -> str:
        return self._names[doc_id]
