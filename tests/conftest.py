"""Pytest configuration for test isolation.

The CLI reads ``EXPENSE_MANAGER_*`` settings from the environment (and from a
``.env`` in the current directory). A developer's real backend URL or id token
must never leak into a test run, so every test starts from a clean
environment inside its own temporary working directory.

``configure_logging`` is also process-global: once a CLI test configures the
package logger it stops propagating to the root logger. We restore the logger
after each test so ``caplog`` keeps working regardless of test order.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from pathlib import Path

import pytest

from expense_manager import logging_setup

_ENV_VARS = (
    "EXPENSE_MANAGER_BACKEND_URL",
    "EXPENSE_MANAGER_ID_TOKEN",
    "EXPENSE_MANAGER_TIMEOUT",
    "EXPENSE_MANAGER_CURRENCY",
    "EXPENSE_MANAGER_LOG_LEVEL",
)


@pytest.fixture(autouse=True)
def _isolate_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """Drop backend settings and run each test from its own temp directory.

    Each variable is set before being deleted so monkeypatch records it even
    when absent; values a test loads from a ``.env`` are then undone too.
    """

    for name in _ENV_VARS:
        monkeypatch.setenv(name, "")
        monkeypatch.delenv(name)
    monkeypatch.chdir(tmp_path)


@pytest.fixture(autouse=True)
def _restore_package_logger() -> Iterator[None]:
    logger = logging.getLogger("expense_manager")
    handlers = list(logger.handlers)
    level = logger.level
    propagate = logger.propagate
    configured = logging_setup._CONFIGURED
    yield
    logger.handlers[:] = handlers
    logger.setLevel(level)
    logger.propagate = propagate
    logging_setup._CONFIGURED = configured
