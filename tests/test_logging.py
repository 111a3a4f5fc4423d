"""
Tests for logging configuration module.
"""

import logging
import tempfile
from pathlib import Path

import pytest

from toolchain_inventory.common import vlog
from toolchain_inventory.logging_config import (
    LOGGER_NAME,
    ColoredFormatter,
    get_logger,
    setup_logging,
)
from toolchain_inventory.parser import parse_environment_transcript


@pytest.fixture(autouse=True)
def reset_logger():
    yield
    logger = logging.getLogger(LOGGER_NAME)
    for handler in list(logger.handlers):
        handler.close()
        logger.removeHandler(handler)


def make_record(level=logging.INFO, msg="Test message", name="test"):
    return logging.LogRecord(
        name=name,
        level=level,
        pathname="",
        lineno=0,
        msg=msg,
        args=(),
        exc_info=None,
    )


class TestSetupLogging:
    """Test logging setup and configuration."""

    def test_setup_logging_default(self):
        """Test default logging setup."""
        logger = setup_logging()
        assert logger.name == "toolchain_inventory"
        assert logger.level == logging.INFO

    def test_setup_logging_verbose(self):
        """Test verbose logging enables DEBUG level."""
        logger = setup_logging(verbose=True)
        assert logger.level == logging.DEBUG

    def test_setup_logging_quiet(self):
        """Test quiet mode suppresses console output."""
        logger = setup_logging(quiet=True)
        assert logger.level == logging.WARNING
        console_handlers = [
            h for h in logger.handlers
            if isinstance(h, logging.StreamHandler) and not isinstance(h, logging.FileHandler)
        ]
        assert len(console_handlers) == 0

    def test_console_handler_on_stderr(self, capsys):
        """Test console messages stay off stdout."""
        logger = setup_logging()
        logger.info("to stderr")

        captured = capsys.readouterr()
        assert "to stderr" in captured.err
        assert "to stderr" not in captured.out

    def test_setup_logging_with_file(self):
        """Test logging to file."""
        with tempfile.TemporaryDirectory() as tmpdir:
            log_file = Path(tmpdir) / "test.log"
            logger = setup_logging(log_file=str(log_file))

            file_handlers = [h for h in logger.handlers if isinstance(h, logging.FileHandler)]
            assert len(file_handlers) == 1

            logger.info("Test message")
            file_handlers[0].flush()

            content = log_file.read_text(encoding="utf-8")
            assert "Test message" in content
            assert "[INFO] toolchain_inventory:" in content

    def test_setup_logging_creates_log_directory(self):
        """Test that log directory is created if it doesn't exist."""
        with tempfile.TemporaryDirectory() as tmpdir:
            log_file = Path(tmpdir) / "subdir" / "test.log"
            logger = setup_logging(log_file=str(log_file))

            logger.info("Test")
            assert log_file.exists()

    def test_setup_logging_custom_level(self):
        """Test custom log level."""
        logger = setup_logging(level="warning")
        assert logger.level == logging.WARNING

    def test_setup_logging_unknown_level(self):
        """Test an unknown level name is rejected."""
        with pytest.raises(ValueError, match="Unknown log level: loud"):
            setup_logging(level="loud")

    def test_console_colors_follow_env(self, monkeypatch):
        """Test TOOLCHAIN_INVENTORY_COLOR=0 disables console colors."""
        monkeypatch.setenv("TOOLCHAIN_INVENTORY_COLOR", "0")
        logger = setup_logging()
        assert logger.handlers[0].formatter.use_colors is False

    def test_module_loggers_reach_file(self, tmp_path):
        """Test child module loggers write through the package handlers."""
        log_file = tmp_path / "parse.log"
        logger = setup_logging(level="DEBUG", log_file=str(log_file), quiet=False)

        parse_environment_transcript("Python 3.9.12\n")
        for handler in logger.handlers:
            handler.flush()

        content = log_file.read_text(encoding="utf-8")
        assert "toolchain_inventory.parser" in content
        assert "Parsed 1 candidates into 1 records" in content


class TestGetLogger:
    """Test logger retrieval."""

    def test_get_logger_returns_instance(self):
        """Test get_logger returns logger instance."""
        assert isinstance(get_logger(), logging.Logger)

    def test_get_logger_singleton(self):
        """Test get_logger returns same instance."""
        assert get_logger() is get_logger()

    def test_get_logger_child(self):
        """Test module child loggers share the package handlers."""
        child = get_logger("scanner")
        assert child.name == "toolchain_inventory.scanner"
        assert child.parent is get_logger()


class TestColoredFormatter:
    """Test colored log formatter."""

    def test_colored_formatter_with_colors(self):
        """Test formatter with colors enabled."""
        formatter = ColoredFormatter("%(levelname_colored)s %(message)s", use_colors=True)
        formatted = formatter.format(make_record())

        assert "Test message" in formatted
        assert "\033[" in formatted

    def test_colored_formatter_without_colors(self):
        """Test formatter with colors disabled."""
        formatter = ColoredFormatter("%(levelname_colored)s %(message)s", use_colors=False)
        formatted = formatter.format(make_record())

        assert formatted == "INFO Test message"

    def test_colored_formatter_all_levels(self):
        """Test formatter with all log levels."""
        formatter = ColoredFormatter("%(levelname_colored)s", use_colors=True)
        for level in [logging.DEBUG, logging.INFO, logging.WARNING, logging.ERROR, logging.CRITICAL]:
            assert logging.getLevelName(level) in formatter.format(make_record(level, "Test"))

    def test_child_logger_name_shown(self):
        """Test messages from module loggers carry the module name."""
        formatter = ColoredFormatter(use_colors=False)
        record = make_record(name="toolchain_inventory.parser")
        assert formatter.format(record) == "INFO parser: Test message"

    def test_symbols_disabled(self, monkeypatch):
        """Test TOOLCHAIN_INVENTORY_EMOJI=0 drops the level symbols."""
        monkeypatch.setenv("TOOLCHAIN_INVENTORY_EMOJI", "0")
        formatter = ColoredFormatter("%(levelname_colored)s %(message)s", use_colors=True)
        assert formatter.format(make_record()) == "\033[32mINFO\033[0m Test message"


class TestVlog:
    """Test verbose logging helper."""

    def test_vlog_verbose(self, caplog):
        """Test vlog logs when verbose."""
        setup_logging(propagate=True)
        with caplog.at_level(logging.INFO, logger=LOGGER_NAME):
            vlog("Scanning probes", verbose=True)
        assert "Scanning probes" in caplog.text

    def test_vlog_silent(self, caplog, monkeypatch):
        """Test vlog is silent without verbose or debug env."""
        monkeypatch.delenv("TOOLCHAIN_INVENTORY_DEBUG", raising=False)
        setup_logging(propagate=True)
        with caplog.at_level(logging.INFO, logger=LOGGER_NAME):
            vlog("hidden", verbose=False)
        assert "hidden" not in caplog.text

    def test_vlog_debug_env(self, caplog, monkeypatch):
        """Test TOOLCHAIN_INVENTORY_DEBUG=1 enables vlog."""
        monkeypatch.setenv("TOOLCHAIN_INVENTORY_DEBUG", "1")
        setup_logging(propagate=True)
        with caplog.at_level(logging.INFO, logger=LOGGER_NAME):
            vlog("from env")
        assert "from env" in caplog.text
