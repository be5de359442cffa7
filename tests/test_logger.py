"""Unit tests for logging setup."""
import logging

from colquery.utils.logger import get_logger, logger_from_config


def test_file_handler_written_to_log_dir(tmp_path):
    logger = get_logger("colquery.test_file", log_dir=tmp_path / "logs")
    logger.info("hello from test")
    for handler in logger.handlers:
        handler.flush()
    files = list((tmp_path / "logs").glob("colquery_*.log"))
    assert len(files) == 1
    assert "hello from test" in files[0].read_text(encoding="utf-8")


def test_handlers_attached_once_level_adjusted():
    first = get_logger("colquery.test_once", level="INFO")
    second = get_logger("colquery.test_once", level="debug")
    assert first is second
    assert len(second.handlers) == 1
    assert second.level == logging.DEBUG


def test_verbose_overrides_config_level():
    logger = logger_from_config({"level": "WARNING"}, verbose=True)
    assert logger.level == logging.DEBUG
    logger_from_config({"level": "INFO"})
