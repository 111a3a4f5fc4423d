"""
Common utilities shared across toolchain_inventory modules.
"""

from __future__ import annotations

import os
import sys


def debug_enabled() -> bool:
    return os.environ.get("TOOLCHAIN_INVENTORY_DEBUG", "0") == "1"


def vlog(msg: str, verbose: bool = False) -> None:
    """
    Log verbose message using structured logging.

    Args:
        msg: Message to log
        verbose: Whether verbose mode is enabled
    """
    if verbose or debug_enabled():
        try:
            from .logging_config import get_logger
            logger = get_logger()
            logger.info(msg)
        except Exception:
            # Fallback to stderr if logging fails
            try:
                print(f"[toolchain_inventory] {msg}", file=sys.stderr)
            except Exception:
                pass
