"""
Record types shared by the parser, the inventory and the renderers.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any


# Placeholder paths: "no concrete filesystem path determined yet"
PATH_UNRESOLVED = "System Path (Detected)"
PATH_ACTIVE_SHIM = "Active Shim (Unresolved)"
SENTINEL_PATHS = frozenset({PATH_UNRESOLVED, PATH_ACTIVE_SHIM, ""})


class ToolType(str, Enum):
    """Tool family tag. The value is the sort key for parser output."""
    JAVA = "JAVA"
    PYTHON = "PYTHON"
    GO = "GO"
    NODE = "NODE"
    UNKNOWN = "UNKNOWN"

    @property
    def label(self) -> str:
        return TOOL_LABELS[self]


TOOL_LABELS = {
    ToolType.JAVA: "Java",
    ToolType.PYTHON: "Python",
    ToolType.GO: "Go",
    ToolType.NODE: "Node.js",
    ToolType.UNKNOWN: "Unknown",
}


class Platform(str, Enum):
    """Platform hint selecting path conventions."""
    POSIX = "posix"
    WINDOWS = "windows"

    @classmethod
    def coerce(cls, value: Platform | str) -> Platform:
        """Accept a Platform or its (case-insensitive) string value."""
        if isinstance(value, Platform):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            raise ValueError(
                f"Invalid platform: {value}. Must be 'posix' or 'windows'"
            ) from None


@dataclass(frozen=True)
class ToolRecord:
    """
    Single detected toolchain installation.

    Attributes:
        identifier: Token unique within one parse batch
        display_name: Human-readable label (informative only)
        tool_type: Tool family, part of the identity
        version: Version string as printed by the source, part of the identity
        install_path: Absolute path, or a sentinel when not yet known
        is_active_default: Best-effort guess that this version is active in the shell
        provenance: Detection source ("system", "package-manager", "pyenv", ...)
        discovered_at: ISO-8601 UTC timestamp of the parse that produced it
    """
    identifier: str
    display_name: str
    tool_type: ToolType
    version: str
    install_path: str = PATH_UNRESOLVED
    is_active_default: bool = False
    provenance: str = "system"
    discovered_at: str = ""

    @property
    def key(self) -> tuple[ToolType, str]:
        """Identity used for deduplication."""
        return (self.tool_type, self.version)

    @property
    def has_concrete_path(self) -> bool:
        return self.install_path not in SENTINEL_PATHS

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "id": self.identifier,
            "name": self.display_name,
            "type": self.tool_type.value,
            "version": self.version,
            "path": self.install_path,
            "is_system_default": self.is_active_default,
            "source": self.provenance,
            "detected_at": self.discovered_at,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ToolRecord:
        """Create from a dictionary produced by to_dict()."""
        try:
            tool_type = ToolType(str(data.get("type", "UNKNOWN")).upper())
        except ValueError:
            tool_type = ToolType.UNKNOWN
        return cls(
            identifier=data.get("id", ""),
            display_name=data.get("name", ""),
            tool_type=tool_type,
            version=str(data.get("version", "")),
            install_path=data.get("path", PATH_UNRESOLVED),
            is_active_default=bool(data.get("is_system_default", False)),
            provenance=data.get("source", "system"),
            discovered_at=data.get("detected_at", ""),
        )


@dataclass(frozen=True)
class PackageRecord:
    """Installed package from a pip-style listing."""
    name: str
    version: str
    is_core_tool: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "version": self.version,
            "is_core_tool": self.is_core_tool,
        }
