from __future__ import annotations

import logging
import sys
from typing import TextIO

"""Logging initialization with labeled prefixes.

Every line printed by the tool starts with one of the labels
INFO|WARN|ERROR|SUMMARY followed by the message. Module loggers
(``logging.getLogger(__name__)`` inside the package) are children of the
``user_import`` logger and share its handler.
"""

__all__ = [
    "setup_logging",
    "get_logger",
    "log_summary",
    "set_debug",
    "reset_logging",
]

LOGGER_NAME = "user_import"

# between INFO=20 and WARNING=30
SUMMARY_LEVEL = 25

_logger: logging.Logger | None = None


class LabeledFormatter(logging.Formatter):
    """``<LABEL> <message>``; WARNING is shortened to WARN."""

    LEVEL_LABELS = {
        logging.WARNING: "WARN",
        SUMMARY_LEVEL: "SUMMARY",
    }

    def format(self, record: logging.LogRecord) -> str:
        label = self.LEVEL_LABELS.get(record.levelno, record.levelname)
        return f"{label} {record.getMessage()}"


def _console_handler(stream: TextIO | None) -> logging.Handler:
    handler = logging.StreamHandler(stream if stream is not None else sys.stdout)
    handler.setLevel(logging.INFO)
    handler.setFormatter(LabeledFormatter())
    return handler


def setup_logging(stream: TextIO | None = None) -> logging.Logger:
    """Configure the ``user_import`` logger and return it.

    Output goes to ``stream`` (stdout by default) at INFO. The logger does not
    propagate to the root logger. Calling this again returns the logger
    configured by the first call; use reset_logging() to start over.
    """
    global _logger

    if _logger is not None:
        return _logger

    logging.addLevelName(SUMMARY_LEVEL, "SUMMARY")

    logger = logging.getLogger(LOGGER_NAME)
    for old in list(logger.handlers):
        logger.removeHandler(old)
    logger.addHandler(_console_handler(stream))
    logger.setLevel(logging.INFO)
    logger.propagate = False

    _logger = logger
    return logger


def get_logger() -> logging.Logger:
    return _logger if _logger is not None else setup_logging()


def log_summary(message: str) -> None:
    get_logger().log(SUMMARY_LEVEL, message)


def set_debug(logger: logging.Logger) -> None:
    """Lower the logger and its handlers to DEBUG (``--debug``)."""
    logger.setLevel(logging.DEBUG)
    for h in logger.handlers:
        h.setLevel(logging.DEBUG)


def reset_logging() -> None:
    """Forget the configured logger (tests)."""
    global _logger
    _logger = None
