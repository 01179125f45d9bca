"""Tests for logging setup."""

import logging
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from brunsviga.logging_config import setup_logging


class TestSetupLogging:
    """Test the package logger configuration."""

    def teardown_method(self):
        logger = logging.getLogger("brunsviga")
        for handler in list(logger.handlers):
            handler.close()
        logger.handlers.clear()

    def test_console_handler(self):
        setup_logging(logging.DEBUG)
        logger = logging.getLogger("brunsviga")
        assert logger.level == logging.DEBUG
        assert len(logger.handlers) == 1

    def test_repeated_setup_does_not_duplicate(self):
        setup_logging()
        setup_logging()
        assert len(logging.getLogger("brunsviga").handlers) == 1

    def test_log_file(self, tmp_path):
        log_file = tmp_path / "brunsviga.log"
        setup_logging(logging.INFO, str(log_file))
        logging.getLogger("brunsviga.calculator").info("Loaded sequence")

        for handler in logging.getLogger("brunsviga").handlers:
            handler.flush()
        assert "Loaded sequence" in log_file.read_text(encoding="utf-8")
