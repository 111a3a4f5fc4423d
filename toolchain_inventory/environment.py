"""
Platform detection for path conventions and probe selection.
"""

from __future__ import annotations

import sys

from .common import vlog
from .models import Platform


def detect_platform() -> Platform:
    """Detect the platform hint from the running interpreter."""
    if sys.platform.startswith(("win32", "cygwin", "msys")):
        return Platform.WINDOWS
    return Platform.POSIX


def resolve_platform(setting: str | Platform | None = None, verbose: bool = False) -> Platform:
    """
    Resolve a configured platform setting.

    Args:
        setting: 'auto', 'posix', 'windows', a Platform, or None (auto)
        verbose: Enable verbose logging

    Returns:
        Platform hint

    Raises:
        ValueError: If the setting is not recognised
    """
    if isinstance(setting, Platform):
        return setting

    if not setting or setting.strip().lower() == "auto":
        detected = detect_platform()
        vlog(f"Platform detected: {detected.value}", verbose)
        return detected

    platform = Platform.coerce(setting)
    vlog(f"Platform explicitly set to: {platform.value}", verbose)
    return platform
