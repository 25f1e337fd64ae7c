"""
Unit tests for the logger module.

The CLI prints its summaries on stdout, so log records must only ever go to
stderr and the rotating file.
"""

import io
import logging
import sys
from logging.handlers import RotatingFileHandler

from jobcopilot.utils.logger import mask_email, set_level, setup_logger


def _cleanup(logger):
    for handler in logger.handlers[:]:
        handler.close()
        logger.removeHandler(handler)


class TestSetupLogger:
    def test_never_writes_to_stdout(self, monkeypatch, tmp_path):
        monkeypatch.setenv("JOBCOPILOT_LOG_DIR", str(tmp_path))
        captured = io.StringIO()
        monkeypatch.setattr(sys, "stdout", captured)
        logger = setup_logger("TestJobcopilotStdout")
        try:
            logger.info("Info message")
            logger.error("Error message")
            for handler in logger.handlers:
                handler.flush()
            assert captured.getvalue() == ""
        finally:
            _cleanup(logger)

    def test_rotating_file_handler(self, monkeypatch, tmp_path):
        monkeypatch.setenv("JOBCOPILOT_LOG_DIR", str(tmp_path))
        logger = setup_logger("TestJobcopilotFile")
        try:
            file_handlers = [h for h in logger.handlers if isinstance(h, RotatingFileHandler)]
            assert len(file_handlers) == 1
            assert file_handlers[0].maxBytes == 5 * 1024 * 1024
            assert file_handlers[0].backupCount == 3
            assert (tmp_path / "jobcopilot.log").exists()
        finally:
            _cleanup(logger)

    def test_no_duplicate_handlers(self, monkeypatch, tmp_path):
        monkeypatch.setenv("JOBCOPILOT_LOG_DIR", str(tmp_path))
        logger = setup_logger("TestJobcopilotDup")
        try:
            count = len(logger.handlers)
            setup_logger("TestJobcopilotDup")
            assert len(logger.handlers) == count
        finally:
            _cleanup(logger)


class TestHelpers:
    def test_set_level(self):
        original = logging.getLogger("jobcopilot").level
        try:
            set_level("debug")
            assert logging.getLogger("jobcopilot").level == logging.DEBUG
            set_level("nonsense")
            assert logging.getLogger("jobcopilot").level == logging.INFO
        finally:
            logging.getLogger("jobcopilot").setLevel(original)

    def test_mask_email(self):
        assert mask_email("jane@acme.io") == "jan***"
        assert mask_email("") == "***"
