"""
Normalization helpers shared by the recognizer and the merger.
"""

from __future__ import annotations

import datetime
import re
import uuid

from .models import SENTINEL_PATHS, TOOL_LABELS, ToolType


ANSI_ESCAPE_RE = re.compile(r'\x1b\[[0-9;]*[A-Za-z]|\033\][^\x07\033]*(?:\x07|\033\\)')

# Package-name word tokens: "openjdk@17" -> ["openjdk"], "python-tk@3.11" -> ["python", "tk"]
NAME_TOKEN_SPLIT_RE = re.compile(r"[@\-_.+/\d]+")

# Absolute POSIX, home-relative, drive-letter, UNC or %VAR% Windows path
PATH_LIKE_RE = re.compile(r'^(?:/|~|[A-Za-z]:[\\/]|\\\\|%[A-Za-z_]+%)')

# Provenance tags that say nothing about how a tool was installed
GENERIC_PROVENANCE = frozenset({"system", "manual"})

# Labels that only repeat the tool family
GENERIC_DISPLAY_NAMES = frozenset(
    {label.lower() for label in TOOL_LABELS.values()} | {"java se", "node", "golang", ""}
)

# Vendor / product keywords that make a display name descriptive
DESCRIPTIVE_KEYWORDS = (
    "openjdk", "temurin", "adoptium", "zulu", "corretto", "graalvm", "oracle",
    "liberica", "semeru", "microsoft", "sapmachine", "dragonwell",
    "anaconda", "miniconda", "miniforge", "mambaforge", "pypy", "graalpy", "cpython",
    "homebrew",
)


def strip_ansi(text: str) -> str:
    """Remove ANSI colour and OSC sequences."""
    return ANSI_ESCAPE_RE.sub('', text)


def iter_clean_lines(text: str):
    """Yield trimmed, non-empty, ANSI-free lines of a transcript."""
    if not text:
        return
    for raw in text.splitlines():
        line = strip_ansi(raw).strip()
        if line:
            yield line


def is_sentinel_path(path: str | None) -> bool:
    return path is None or path in SENTINEL_PATHS


def looks_like_path(value: str) -> bool:
    """Whether a path-annotation value names a filesystem location."""
    return bool(value) and bool(PATH_LIKE_RE.match(value))


def name_tokens(name: str) -> list[str]:
    return [t for t in NAME_TOKEN_SPLIT_RE.split(name.lower()) if t]


def tool_type_for_name(name: str) -> ToolType:
    """Guess the tool family from a package name.

    Matching is done on word tokens so that names such as "django" or
    "mongodb" are not mistaken for Go.
    """
    tokens = name_tokens(name)
    if any("jdk" in t or t == "java" for t in tokens):
        return ToolType.JAVA
    if any(t in ("python", "pypy") for t in tokens):
        return ToolType.PYTHON
    if any(t in ("go", "golang") for t in tokens):
        return ToolType.GO
    if any(t in ("node", "nodejs") for t in tokens):
        return ToolType.NODE
    return ToolType.UNKNOWN


def is_generic_provenance(provenance: str) -> bool:
    return provenance.strip().lower() in GENERIC_PROVENANCE


def display_name_rank(name: str) -> int:
    """Rank how descriptive a display name is.

    0: repeats the tool family only, 1: any other label,
    2: names a vendor or distribution.
    """
    lowered = name.strip().lower()
    if lowered in GENERIC_DISPLAY_NAMES:
        return 0
    if any(kw in lowered for kw in DESCRIPTIVE_KEYWORDS):
        return 2
    return 1


def new_identifier(tool_type: ToolType, version: str) -> str:
    return f"{tool_type.value.lower()}-{version}-{uuid.uuid4().hex[:8]}"


def utc_timestamp() -> str:
    return datetime.datetime.now(datetime.UTC).replace(microsecond=0).isoformat().replace("+00:00", "Z")


def major_version(version: str) -> int | None:
    m = re.match(r"(\d+)", version)
    return int(m.group(1)) if m else None
