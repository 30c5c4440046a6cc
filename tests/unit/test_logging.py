"""Unit tests for logging module."""

import logging

import pytest

from gtfs_validation.utils import logging as logging_module
from gtfs_validation.utils.logging import LOG_FORMAT, get_logger, setup_logging


@pytest.fixture
def reset_logging():
    """Start each test with an unconfigured root logger."""
    root = logging.getLogger()
    saved_level = root.level
    root.handlers.clear()
    logging_module._logging_configured = False

    yield root

    for handler in list(root.handlers):
        handler.close()
    root.handlers.clear()
    root.setLevel(saved_level)
    logging_module._logging_configured = False


def test_console_handler_attached(reset_logging):
    setup_logging(log_level="INFO")

    handlers = reset_logging.handlers
    assert len(handlers) == 1
    assert isinstance(handlers[0], logging.StreamHandler)
    assert handlers[0].formatter._fmt == LOG_FORMAT


def test_file_handler_creates_directories(reset_logging, tmp_path):
    log_file = tmp_path / "logs" / "nested" / "validation.log"

    setup_logging(log_level="INFO", log_file=str(log_file))
    get_logger("gtfs_validation.test").info("written to file")
    for handler in reset_logging.handlers:
        handler.flush()

    assert any(isinstance(h, logging.FileHandler) for h in reset_logging.handlers)
    assert "written to file" in log_file.read_text(encoding="utf-8")


def test_get_logger_name(reset_logging):
    logger = get_logger("gtfs_validation.validation.stops")

    assert isinstance(logger, logging.Logger)
    assert logger.name == "gtfs_validation.validation.stops"


def test_log_line_format(reset_logging, capsys):
    setup_logging(log_level="INFO")
    get_logger("gtfs_validation.validation.blocks").info("Block check done")

    output = "".join(capsys.readouterr())

    # [YYYY-MM-DD HH:MM:SS] [LEVEL] [MODULE] Message
    assert "[INFO] [gtfs_validation.validation.blocks] Block check done" in output


def test_level_filters_lower_records(reset_logging, capsys):
    setup_logging(log_level="warning")
    logger = get_logger("gtfs_validation.test")

    logger.info("Info message")
    logger.warning("Warning message")

    output = "".join(capsys.readouterr())
    assert "Info message" not in output
    assert "Warning message" in output


def test_unknown_level_falls_back_to_info(reset_logging):
    setup_logging(log_level="CHATTY")
    assert reset_logging.level == logging.INFO


def test_numeric_level(reset_logging):
    setup_logging(log_level=logging.DEBUG)
    assert reset_logging.level == logging.DEBUG


def test_setup_logging_only_once(reset_logging):
    setup_logging(log_level="INFO")
    handlers_before = list(reset_logging.handlers)

    setup_logging(log_level="DEBUG")

    assert reset_logging.handlers == handlers_before
    assert reset_logging.level == logging.INFO
