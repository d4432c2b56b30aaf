"""Pytest configuration for test isolation.

The CLI reads configuration from environment variables (and from a ``.env`` in
the working directory) and configures the package logger once per process.
Both leak between tests when left alone, so an autouse fixture clears the
relevant variables, runs each test from its own temporary directory, and
resets logging afterwards.
"""

from __future__ import annotations

from collections.abc import Iterator
from pathlib import Path

import pytest

from spending_analysis.logging_setup import reset_logging

_ENV_VARS = ("SPENDING_ANALYSIS_LOG_LEVEL", "SA_OUTLIER_THRESHOLD")


@pytest.fixture(autouse=True)
def _isolate_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    # Keep any developer .env out of CLI tests.
    monkeypatch.chdir(tmp_path)
    yield
    reset_logging()
