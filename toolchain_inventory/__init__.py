"""
Toolchain Inventory - detect and reconcile installed developer toolchains.

Core Modules:
- Parsing: transcript recognition and deduplication (parser, recognizer, merger)
- Inventory: cross-scan accumulation, snapshots, summaries
- Collection: probe runner producing transcripts
- Actions: install/uninstall/set-global command generation (never executed)
"""

__version__ = "1.0.0"

VERSION = __version__

# Parsing
from .models import (
    PATH_ACTIVE_SHIM,
    PATH_UNRESOLVED,
    PackageRecord,
    Platform,
    ToolRecord,
    ToolType,
)
from .parser import parse_environment_transcript, parse_package_listing
from .merger import Merger, merge_records
from .recognizer import Recognizer, recognize_line

# Inventory
from .inventory import Inventory, compare_versions, summarize
from .snapshot import load_inventory, write_snapshot

# Foundation
from .config import Config, PathTemplates, load_config
from .environment import detect_platform, resolve_platform
from .logging_config import setup_logging, get_logger

__all__ = [
    "__version__",
    "VERSION",
    # Parsing
    "PATH_ACTIVE_SHIM",
    "PATH_UNRESOLVED",
    "PackageRecord",
    "Platform",
    "ToolRecord",
    "ToolType",
    "parse_environment_transcript",
    "parse_package_listing",
    "Merger",
    "merge_records",
    "Recognizer",
    "recognize_line",
    # Inventory
    "Inventory",
    "compare_versions",
    "summarize",
    "load_inventory",
    "write_snapshot",
    # Foundation
    "Config",
    "PathTemplates",
    "load_config",
    "detect_platform",
    "resolve_platform",
    "setup_logging",
    "get_logger",
]
