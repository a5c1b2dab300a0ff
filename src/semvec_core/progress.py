"""
semvec_core/progress.py - Progress reporting collaborators

Training engines never write progress output themselves; they call an
injected reporter. Reporters observe, they never influence results.
"""
from __future__ import annotations

import logging
from typing import Protocol

logger = logging.getLogger(__name__)


def is_checkpoint(count: int) -> bool:
    """Every 1,000 items below 10,000, then every 10,000."""
    return count % 10000 == 0 or (count < 10000 and count % 1000 == 0)


class ProgressReporter(Protocol):
    def report(self, stage: str, count: int) -> None:
        """Called once per processed item with the running count (0-based)."""


class NullProgress:
    """Discards all progress."""

    def report(self, stage: str, count: int) -> None:
        pass


class LoggingProgress:
    """Logs "Processed N <stage> ..." at coarse checkpoints."""

    def __init__(self, log: logging.Logger | None = None, level: int = logging.INFO):
        self.log = log or logger
        self.level = level

    def report(self, stage: str, count: int) -> None:
        if count and is_checkpoint(count):
            self.log.log(self.level, "Processed %d %s ...", count, stage)


class RecordingProgress:
    """Keeps every checkpoint it sees; handy for inspection and tests."""

    def __init__(self) -> None:
        self.checkpoints: list[tuple[str, int]] = []

    def report(self, stage: str, count: int) -> None:
        if is_checkpoint(count):
            self.checkpoints.append((stage, count))
