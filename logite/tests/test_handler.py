"""Tests for the stdlib logging bridge."""

import logging

import pytest

from logite.handler import LogiteHandler, disable_database_logging, enable_database_logging
from logite.logger import Logite


@pytest.fixture
def app_logger():
    logger = logging.getLogger("logite_tests.app")
    logger.setLevel(logging.DEBUG)
    logger.propagate = False
    yield logger
    disable_database_logging(logger)


def test_records_are_persisted(logite, app_logger):
    enable_database_logging(logite, app_logger)

    app_logger.warning("disk at %d%%", 91)

    record = logite.records()[0]
    assert record.level == "warn"
    assert record.message == "disk at 91%"
    assert record.caller_package == "logite_tests.app"
    assert record.caller_line is not None


def test_level_mapping(logite, app_logger):
    enable_database_logging(logite, app_logger)

    app_logger.debug("d")
    app_logger.info("i")
    app_logger.error("e")
    app_logger.critical("c")

    assert [record.level for record in logite.records()] == ["debug", "info", "error", "fatal"]


def test_logite_minimum_level_still_applies(db_path, clock, app_logger):
    with Logite(path=db_path, level="error", clock=clock) as log:
        enable_database_logging(log, app_logger)

        app_logger.info("dropped")
        app_logger.error("kept")

        assert [record.message for record in log.records()] == ["kept"]


def test_handler_level(logite, app_logger):
    enable_database_logging(logite, app_logger, level=logging.ERROR)

    app_logger.warning("below handler level")
    app_logger.error("stored")

    assert [record.message for record in logite.records()] == ["stored"]


def test_exception_text_is_appended(logite, app_logger):
    enable_database_logging(logite, app_logger)

    try:
        raise RuntimeError("kaput")
    except RuntimeError:
        app_logger.exception("job failed")

    message = logite.records()[0].message
    first_line, rest = message.split("\n", 1)
    assert first_line == "job failed"
    assert "RuntimeError: kaput" in rest


def test_enable_is_idempotent(logite, app_logger):
    first = enable_database_logging(logite, app_logger)
    second = enable_database_logging(logite, "logite_tests.app")

    assert first is second
    assert sum(isinstance(handler, LogiteHandler) for handler in app_logger.handlers) == 1


def test_disable_detaches_handler(logite, app_logger):
    enable_database_logging(logite, app_logger)
    disable_database_logging(app_logger)

    app_logger.error("not stored")

    assert logite.count() == 0
    assert not any(isinstance(handler, LogiteHandler) for handler in app_logger.handlers)


def test_internal_records_are_skipped(logite):
    handler = LogiteHandler(logite)
    record = logging.LogRecord("logite.logger", logging.INFO, __file__, 1, "internal", None, None)

    handler.emit(record)

    assert logite.count() == 0


def test_write_failures_go_through_handle_error(db_path, app_logger, monkeypatch):
    log = Logite(path=db_path)
    handler = enable_database_logging(log, app_logger)
    log.close()
    failures = []
    monkeypatch.setattr(handler, "handleError", failures.append)

    app_logger.error("lost")

    assert len(failures) == 1
    assert failures[0].getMessage() == "lost"
