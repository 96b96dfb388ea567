"""Logging for ``expense_manager``: one stderr handler, configured once.

The CLI root callback calls :func:`configure_logging` with ``--log-level``
(or ``EXPENSE_MANAGER_LOG_LEVEL``) before any command runs; stdout is left to
the rendered month views. What gets logged where:

- ``expense_manager.normalize``: dropped undated entries and skipped buckets
  (WARNING), unrecognized types and malformed amounts (DEBUG).
- ``expense_manager.rpc`` / ``expense_manager.loader``: each backend action
  (DEBUG), rejected tokens (ERROR), degraded budget fetches (WARNING).
- ``expense_manager.selection`` / ``expense_manager.term_ui``: controller
  transitions and ignored expands.

Imported as a library (tests, other callers) nothing is emitted until a host
configures logging: :func:`get_logger` parks a ``NullHandler`` on the package
logger.
"""

from __future__ import annotations

import logging
import os
import sys
from typing import IO

_PKG_LOGGER_NAME = "expense_manager"
_LEVEL_ENV = "EXPENSE_MANAGER_LOG_LEVEL"
_DEFAULT_FORMAT = "%(asctime)s %(name)s %(levelname)s %(message)s"
_CONFIGURED = False


def _parse_level(level: int | str | None) -> int:
    """Resolve ``--log-level`` / the env var; unknown names fall back to WARNING.

    WARNING keeps per-fetch INFO lines out of the interactive browser unless
    asked for.
    """

    if level is None:
        level = os.getenv(_LEVEL_ENV)
    if isinstance(level, int):
        return level
    if isinstance(level, str):
        name = level.strip().upper()
        if name.isdigit():
            return int(name)
        numeric = logging.getLevelName(name)
        if isinstance(numeric, int):
            return numeric
    return logging.WARNING


def configure_logging(
    level: int | str | None = None,
    *,
    fmt: str | None = None,
    stream: IO[str] | None = None,
) -> None:
    """Attach the package's stderr handler; later calls are no-ops.

    ``stream`` defaults to the ``sys.stderr`` current at call time, so a test
    runner that swaps stderr captures the log lines too.
    """

    global _CONFIGURED
    if _CONFIGURED:
        return

    pkg_logger = logging.getLogger(_PKG_LOGGER_NAME)
    for h in [h for h in pkg_logger.handlers if isinstance(h, logging.NullHandler)]:
        pkg_logger.removeHandler(h)

    resolved = _parse_level(level)
    handler = logging.StreamHandler(stream if stream is not None else sys.stderr)
    handler.setLevel(resolved)
    handler.setFormatter(logging.Formatter(fmt or _DEFAULT_FORMAT))

    pkg_logger.setLevel(resolved)
    pkg_logger.addHandler(handler)
    # Rendered views go to stdout; keep log lines off any root handler.
    pkg_logger.propagate = False

    _CONFIGURED = True


def get_logger(name: str) -> logging.Logger:
    """Module logger under ``expense_manager``; silent until configured."""

    pkg_logger = logging.getLogger(_PKG_LOGGER_NAME)
    if not _CONFIGURED and not pkg_logger.handlers:
        pkg_logger.addHandler(logging.NullHandler())
    return logging.getLogger(name)


__all__ = ["configure_logging", "get_logger"]
