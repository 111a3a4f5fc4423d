"""
Output rendering and formatting.
"""

import os
import re
import sys
from typing import Any, Iterable, Sequence

from wcwidth import wcswidth

from .inventory import summarize
from .models import PackageRecord, ToolRecord, ToolType
from .normalize import is_sentinel_path


USE_EMOJI = os.environ.get("TOOLCHAIN_INVENTORY_EMOJI", "1") == "1"
USE_COLOR = os.environ.get("TOOLCHAIN_INVENTORY_COLOR", "1") == "1"

# ANSI color codes
GREEN = "\033[32m"
BOLD_GREEN = "\033[1;32m"
YELLOW = "\033[33m"
BLUE = "\033[34m"
DIM = "\033[2m"
RESET = "\033[0m"

CSI_RE = re.compile(r'\x1b\[[0-?]*[ -/]*[@-~]')

TYPE_ICON = {
    ToolType.JAVA: "☕",
    ToolType.PYTHON: "🐍",
    ToolType.GO: "🔵",
    ToolType.NODE: "📦",
    ToolType.UNKNOWN: "❓",
}

HEADERS = ("active", "name", "version", "source", "path")


def colorize(text: str, color: str) -> str:
    """Apply color to text, or return it unchanged if colors are disabled."""
    if not USE_COLOR or not text:
        return text
    return f"{color}{text}{RESET}"


def display_width(text: str) -> int:
    """Terminal width of text, ignoring ANSI sequences."""
    plain = CSI_RE.sub('', text)
    width = wcswidth(plain)
    return width if width >= 0 else len(plain)


def pad(text: str, width: int) -> str:
    return text + " " * max(0, width - display_width(text))


def format_table(rows: Sequence[Sequence[str]], gap: int = 2) -> list[str]:
    """Align rows into columns by display width."""
    if not rows:
        return []
    widths = [0] * max(len(r) for r in rows)
    for row in rows:
        for i, cell in enumerate(row):
            widths[i] = max(widths[i], display_width(cell))

    lines = []
    for row in rows:
        cells = [pad(cell, widths[i]) for i, cell in enumerate(row)]
        lines.append((" " * gap).join(cells).rstrip())
    return lines


def active_marker(record: ToolRecord) -> str:
    if record.is_active_default:
        return "✅" if USE_EMOJI else "*"
    return ""


def _record_row(record: ToolRecord) -> list[str]:
    path = record.install_path
    path_display = colorize(path, DIM) if is_sentinel_path(path) else path
    version_color = BOLD_GREEN if record.is_active_default else GREEN
    return [
        active_marker(record),
        record.display_name,
        colorize(record.version, version_color),
        colorize(record.provenance, YELLOW),
        path_display,
    ]


def render_records(records: Iterable[ToolRecord], out=None) -> None:
    """Render records as a table grouped by tool family.

    Group headings go to stderr so stdout stays a plain table.
    """
    out = out or sys.stdout
    records = list(records)

    grouped: dict[ToolType, list[ToolRecord]] = {}
    for record in records:
        grouped.setdefault(record.tool_type, []).append(record)

    rows: list[list[str]] = [list(HEADERS)]
    for tool_type in sorted(grouped, key=lambda t: t.value):
        rows.extend(_record_row(r) for r in grouped[tool_type])

    lines = format_table(rows)
    print(lines[0], file=out)

    idx = 1
    for tool_type in sorted(grouped, key=lambda t: t.value):
        group = grouped[tool_type]
        icon = f"{TYPE_ICON.get(tool_type, '')} " if USE_EMOJI else ""
        print(f"# {icon}{tool_type.label} ({len(group)})", file=sys.stderr)
        for line in lines[idx:idx + len(group)]:
            print(line, file=out)
        idx += len(group)


def render_packages(packages: Iterable[PackageRecord], out=None) -> None:
    """Render a package listing; core packaging tools are marked."""
    out = out or sys.stdout
    rows = [["package", "version", "core"]]
    for pkg in packages:
        rows.append([pkg.name, pkg.version, colorize("core", YELLOW) if pkg.is_core_tool else ""])
    for line in format_table(rows):
        print(line, file=out)


def print_summary(records: Iterable[ToolRecord], meta: dict[str, Any] | None = None) -> None:
    """Print per-family summary line to stderr."""
    records = list(records)
    parts = []
    for summary in summarize(records):
        active = f", active {'/'.join(summary.active_versions)}" if summary.active_versions else ""
        parts.append(f"{summary.tool_type.label} {summary.count} (newest {summary.newest_version}{active})")

    saved = ""
    if meta and meta.get("created_at"):
        saved = f" [snapshot {meta['created_at']}]"

    body = "; ".join(parts) if parts else "no toolchains detected"
    print(f"\nInventory ({len(records)} installations): {body}{saved}", file=sys.stderr)
