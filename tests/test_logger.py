"""Unit tests for core.logger."""

import logging
from logging.handlers import RotatingFileHandler

from constraint_trader.core.logger import setup_logging


def test_rotating_file_and_quiet_clients(tmp_path):
    root = setup_logging("DEBUG", tmp_path / "logs", "trader.log", max_bytes=1024, backup_count=2)
    try:
        files = [h for h in root.handlers if isinstance(h, RotatingFileHandler)]
        assert len(files) == 1
        assert files[0].maxBytes == 1024
        assert files[0].backupCount == 2
        assert root.level == logging.DEBUG
        assert logging.getLogger("urllib3").level == logging.WARNING
        assert logging.getLogger("redis").level == logging.WARNING

        logging.getLogger("constraint_trader.test").info("hello")
        for h in root.handlers:
            h.flush()
        assert "hello" in (tmp_path / "logs" / "trader.log").read_text(encoding="utf-8")
    finally:
        for h in list(root.handlers):
            h.close()
        root.handlers.clear()


def test_console_only_without_log_dir():
    root = setup_logging("warning")
    try:
        assert root.level == logging.WARNING
        assert not any(isinstance(h, RotatingFileHandler) for h in root.handlers)
    finally:
        root.handlers.clear()
