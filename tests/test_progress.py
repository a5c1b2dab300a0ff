"""
tests/test_progress.py - Progress reporter tests
"""

import logging

import pytest

from semvec_core import LoggingProgress, NullProgress, RecordingProgress
from semvec_core.progress import is_checkpoint


@pytest.mark.parametrize("count,expected", [
    (0, True),
    (999, False),
    (1000, True),
    (2500, False),
    (9000, True),
    (11000, False),
    (20000, True),
])
def test_checkpoints(count, expected):
    assert is_checkpoint(count) is expected


def test_recording_progress():
    progress = RecordingProgress()
    for count in range(2001):
        progress.report("terms", count)
    assert progress.checkpoints == [("terms", 0), ("terms", 1000), ("terms", 2000)]


def test_logging_progress(caplog):
    progress = LoggingProgress(logging.getLogger("semvec_core.test"))
    with caplog.at_level(logging.INFO, logger="semvec_core.test"):
        for count in range(1001):
            progress.report("documents", count)
    assert [r.getMessage() for r in caplog.records] == ["Processed 1000 documents ..."]


def test_null_progress_accepts_anything():
    NullProgress().report("terms", 10000)
