import io
import logging

import pytest

from expense_manager import logging_setup
from expense_manager.logging_setup import configure_logging, get_logger


@pytest.fixture
def fresh_logging():
    # conftest restores the package logger and the configured flag afterwards
    logging_setup._CONFIGURED = False
    logger = logging.getLogger("expense_manager")
    logger.handlers[:] = []
    return logger


def _stream_handlers(logger: logging.Logger) -> list[logging.Handler]:
    return [h for h in logger.handlers if type(h) is logging.StreamHandler]


def test_level_comes_from_the_environment(fresh_logging, monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("EXPENSE_MANAGER_LOG_LEVEL", "debug")
    stream = io.StringIO()

    configure_logging(stream=stream)
    configure_logging(level="ERROR", stream=io.StringIO())

    assert fresh_logging.level == logging.DEBUG
    assert len(_stream_handlers(fresh_logging)) == 1
    assert fresh_logging.propagate is False

    get_logger("expense_manager.normalize").debug("Skipping %s", "bucket")
    assert "expense_manager.normalize DEBUG Skipping bucket" in stream.getvalue()


@pytest.mark.parametrize("level", [None, "chatty", ""])
def test_default_and_unknown_levels_fall_back_to_warning(fresh_logging, level):
    stream = io.StringIO()
    configure_logging(level, stream=stream)

    assert fresh_logging.level == logging.WARNING
    log = get_logger("expense_manager.rpc")
    log.info("Fetching month")
    log.warning("Budget unavailable")
    assert "Fetching month" not in stream.getvalue()
    assert "Budget unavailable" in stream.getvalue()


def test_explicit_level_wins_over_environment(fresh_logging, monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("EXPENSE_MANAGER_LOG_LEVEL", "DEBUG")
    configure_logging("error", fmt="%(levelname)s:%(message)s", stream=io.StringIO())
    assert fresh_logging.level == logging.ERROR


def test_numeric_levels_are_accepted(fresh_logging):
    configure_logging("15", stream=io.StringIO())
    assert fresh_logging.level == 15


def test_get_logger_is_silent_until_configured(fresh_logging):
    log = get_logger("expense_manager.loader")
    assert log.name == "expense_manager.loader"
    assert any(isinstance(h, logging.NullHandler) for h in fresh_logging.handlers)

    configure_logging(stream=io.StringIO())
    assert not any(isinstance(h, logging.NullHandler) for h in fresh_logging.handlers)
