"""
Tests for logging setup.
"""

import logging

import pytest

from ops.logging import setup_logging


@pytest.fixture
def restore_root_logger():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield root
    for handler in root.handlers:
        if handler not in handlers:
            handler.close()
    root.handlers[:] = handlers
    root.setLevel(level)


def test_creates_log_directory_and_file(tmp_path, restore_root_logger):
    log_path = tmp_path / "logs" / "scanner.log"

    setup_logging(str(log_path), "DEBUG")
    logging.debug("scanner ready")
    for handler in restore_root_logger.handlers:
        handler.flush()

    assert restore_root_logger.level == logging.DEBUG
    assert "scanner ready" in log_path.read_text()


def test_empty_path_logs_to_stderr_only(restore_root_logger):
    setup_logging("", "WARNING")

    assert restore_root_logger.level == logging.WARNING
    assert not any(isinstance(h, logging.FileHandler) for h in restore_root_logger.handlers)
