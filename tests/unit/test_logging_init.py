from __future__ import annotations

import logging
from io import StringIO

from user_import.logging.init import (
    SUMMARY_LEVEL,
    LabeledFormatter,
    get_logger,
    log_summary,
    set_debug,
    setup_logging,
)


def test_setup_logging_creates_logger_with_labeled_formatter():
    logger = setup_logging()

    assert logger.name == "user_import"
    assert logger.level == logging.INFO
    assert len(logger.handlers) == 1
    assert isinstance(logger.handlers[0].formatter, LabeledFormatter)
    assert logger.propagate is False


def test_setup_logging_is_idempotent():
    first = setup_logging()
    second = setup_logging()

    assert first is second
    assert len(second.handlers) == 1


def test_get_logger_sets_up_on_first_use():
    logger = get_logger()

    assert logger is setup_logging()


def test_logging_labeled_prefixes():
    captured_output = StringIO()
    logger = logging.getLogger("test_user_import_labels")
    logger.setLevel(logging.INFO)
    for handler in logger.handlers[:]:
        logger.removeHandler(handler)
    logging.addLevelName(SUMMARY_LEVEL, "SUMMARY")
    handler = logging.StreamHandler(captured_output)
    handler.setFormatter(LabeledFormatter())
    logger.addHandler(handler)
    logger.propagate = False

    logger.info("Test info message")
    logger.warning("Test warning message")
    logger.error("Test error message")
    logger.log(SUMMARY_LEVEL, "Test summary message")

    lines = captured_output.getvalue().strip().split("\n")
    assert lines == [
        "INFO Test info message",
        "WARN Test warning message",
        "ERROR Test error message",
        "SUMMARY Test summary message",
    ]


def test_child_loggers_share_the_app_handler(capsys):
    setup_logging()

    logging.getLogger("user_import.services.importer").info("child message")

    assert "INFO child message" in capsys.readouterr().out


def test_log_summary(capsys):
    setup_logging()

    log_summary("rows=1")

    assert capsys.readouterr().out.strip() == "SUMMARY rows=1"


def test_set_debug_enables_debug_output(capsys):
    logger = setup_logging()
    logger.debug("hidden")
    set_debug(logger)
    logger.debug("visible")

    out = capsys.readouterr().out
    assert "hidden" not in out
    assert "DEBUG visible" in out


def test_setup_logging_custom_stream():
    buf = StringIO()
    logger = setup_logging(stream=buf)

    logger.warning("row 2 rejected")
    log_summary("rows=2")

    assert buf.getvalue().splitlines() == ["WARN row 2 rejected", "SUMMARY rows=2"]
