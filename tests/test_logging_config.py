from __future__ import annotations

import logging

import pytest

from logging_config import get_logger, setup_logging


@pytest.fixture
def restore_root_logger():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield root
    for handler in root.handlers:
        handler.close()
    root.handlers[:] = handlers
    root.setLevel(level)


def test_get_logger_returns_named_logger() -> None:
    logger = get_logger("extractors.regex_extractor")

    assert logger is logging.getLogger("extractors.regex_extractor")


def test_unknown_level_is_rejected() -> None:
    with pytest.raises(ValueError, match="Unknown log level"):
        setup_logging(log_level="LOUD")


def test_log_file_is_written_to_log_dir(tmp_path, restore_root_logger) -> None:
    setup_logging(log_level="debug", log_file="app.log", console_output=False)

    get_logger("tests.logging").info("pipeline started")
    for handler in restore_root_logger.handlers:
        handler.flush()

    assert restore_root_logger.level == logging.DEBUG
    assert "pipeline started" in (tmp_path / "logs" / "app.log").read_text(encoding="utf-8")
