"""Logging for the ``spending_analysis`` package.

Library modules (``csv_import``, ``ledger``, ``cli``) log through
``get_logger("spending_analysis.<module>")`` and never attach handlers. Output
stays silent until an entrypoint calls :func:`configure_logging`, which the CLI
does once from its root callback.

The level comes from, in order: the explicit ``level`` argument, the
``SPENDING_ANALYSIS_LOG_LEVEL`` environment variable, then ``INFO``. Rejected
CSV rows and ledger reads/writes are logged at ``DEBUG``; per-command
selection summaries at ``INFO``.
"""

from __future__ import annotations

import logging
import os
import sys
from typing import IO

PACKAGE_LOGGER = "spending_analysis"
LEVEL_ENV_VAR = "SPENDING_ANALYSIS_LOG_LEVEL"
DEFAULT_FORMAT = "%(asctime)s %(levelname)-7s %(name)s: %(message)s"

# The single handler installed by configure_logging(); None until then.
_handler: logging.Handler | None = None


def _level_from_name(value: str) -> int:
    value = value.strip().upper()
    if value.isdigit():
        return int(value)
    return logging.getLevelNamesMapping().get(value, logging.INFO)


def resolve_level(level: int | str | None = None) -> int:
    """Return the effective numeric level; unknown names resolve to ``INFO``."""

    if isinstance(level, int):
        return level
    if level is None:
        level = os.getenv(LEVEL_ENV_VAR) or ""
    return _level_from_name(level) if level.strip() else logging.INFO


def configure_logging(
    level: int | str | None = None,
    *,
    fmt: str | None = None,
    stream: IO[str] | None = None,
) -> None:
    """Send package log records to ``stream`` (``sys.stderr`` at call time).

    Only the first call has an effect; :func:`reset_logging` undoes it.
    """

    global _handler
    if _handler is not None:
        return

    pkg = logging.getLogger(PACKAGE_LOGGER)
    for h in [h for h in pkg.handlers if isinstance(h, logging.NullHandler)]:
        pkg.removeHandler(h)

    resolved = resolve_level(level)
    _handler = logging.StreamHandler(stream if stream is not None else sys.stderr)
    _handler.setLevel(resolved)
    _handler.setFormatter(logging.Formatter(fmt or DEFAULT_FORMAT))

    pkg.setLevel(resolved)
    pkg.addHandler(_handler)
    pkg.propagate = False


def reset_logging() -> None:
    """Detach every package handler so the next CLI run can configure again."""

    global _handler
    pkg = logging.getLogger(PACKAGE_LOGGER)
    for h in list(pkg.handlers):
        pkg.removeHandler(h)
    pkg.setLevel(logging.NOTSET)
    pkg.propagate = True
    _handler = None


def get_logger(name: str) -> logging.Logger:
    pkg = logging.getLogger(PACKAGE_LOGGER)
    if _handler is None and not pkg.handlers:
        pkg.addHandler(logging.NullHandler())
    return logging.getLogger(name)


__all__ = ["configure_logging", "get_logger", "reset_logging", "resolve_level"]
