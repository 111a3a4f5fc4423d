"""
Logging setup for the toolchain inventory.

All modules log under the "toolchain_inventory" logger tree. The console
handler writes to stderr so stdout stays free for tables and JSON; an
optional log file receives every record at DEBUG.
"""

import logging
import os
import sys
from pathlib import Path
from typing import Optional


LOGGER_NAME = "toolchain_inventory"

CONSOLE_FORMAT = "%(levelname_colored)s %(origin)s%(message)s"
FILE_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"

_logger: Optional[logging.Logger] = None


def _effective_level(level: str, verbose: bool, quiet: bool) -> int:
    if verbose:
        return logging.DEBUG
    if quiet:
        return logging.WARNING
    value = logging.getLevelName(level.upper())
    if not isinstance(value, int):
        raise ValueError(f"Unknown log level: {level}")
    return value


def _console_colors_enabled() -> bool:
    if os.environ.get("TOOLCHAIN_INVENTORY_COLOR", "1") != "1":
        return False
    return sys.stderr.isatty()


def setup_logging(
    level: str = "INFO",
    log_file: Optional[str] = None,
    verbose: bool = False,
    quiet: bool = False,
    propagate: bool = False,
) -> logging.Logger:
    """
    Configure the package logger, replacing any handlers from earlier calls.

    Args:
        level: Console level name (case-insensitive)
        log_file: Optional log file; parent directories are created
        verbose: Force DEBUG (the --verbose flag)
        quiet: No console handler, WARNING level
        propagate: Pass records on to the root logger (pytest caplog)

    Raises:
        ValueError: If level is not a logging level name
    """
    global _logger

    effective = _effective_level(level, verbose, quiet)
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(effective)
    for handler in list(logger.handlers):
        handler.close()
        logger.removeHandler(handler)

    if not quiet:
        console = logging.StreamHandler(sys.stderr)
        console.setLevel(effective)
        console.setFormatter(ColoredFormatter(CONSOLE_FORMAT, use_colors=_console_colors_enabled()))
        logger.addHandler(console)

    if log_file:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(logging.Formatter(FILE_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
        logger.addHandler(file_handler)

    logger.propagate = propagate
    _logger = logger
    return logger


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """
    Package logger, or the child logger for one module ("scanner" ->
    "toolchain_inventory.scanner"). Sets up defaults on first use.
    """
    global _logger
    if _logger is None:
        _logger = setup_logging()
    if not name:
        return _logger
    return _logger.getChild(name)


class ColoredFormatter(logging.Formatter):
    """
    Console formatter: level tag coloured by severity, and the module name
    in front of messages from child loggers.
    """

    COLORS = {
        logging.DEBUG: "\033[36m",
        logging.INFO: "\033[32m",
        logging.WARNING: "\033[33m",
        logging.ERROR: "\033[31m",
        logging.CRITICAL: "\033[1;31m",
    }
    RESET = "\033[0m"

    SYMBOLS = {
        logging.DEBUG: "🔍",
        logging.INFO: "✓",
        logging.WARNING: "⚠️",
        logging.ERROR: "✗",
        logging.CRITICAL: "🚨",
    }

    def __init__(self, fmt: str = CONSOLE_FORMAT, use_colors: bool = True):
        super().__init__(fmt)
        self.use_colors = use_colors
        self.use_symbols = os.environ.get("TOOLCHAIN_INVENTORY_EMOJI", "1") == "1"

    def level_tag(self, record: logging.LogRecord) -> str:
        if not self.use_colors:
            return record.levelname
        symbol = self.SYMBOLS.get(record.levelno, "") if self.use_symbols else ""
        tag = f"{symbol} {record.levelname}" if symbol else record.levelname
        return f"{self.COLORS.get(record.levelno, '')}{tag}{self.RESET}"

    def format(self, record: logging.LogRecord) -> str:
        record.levelname_colored = self.level_tag(record)
        # "toolchain_inventory.parser" -> "parser: "
        prefix = LOGGER_NAME + "."
        record.origin = f"{record.name[len(prefix):]}: " if record.name.startswith(prefix) else ""
        return super().format(record)
