"""
Inventory accumulated across parse batches.

Each scan or paste produces a fresh batch of records; importing a batch
folds records that describe an installation already in the inventory
into the existing entry, using the same precedence as the in-batch merge.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from functools import cmp_to_key
from typing import Iterable

from packaging import version as pkg_version

from .merger import merge_records
from .models import PATH_UNRESOLVED, ToolRecord, ToolType
from .normalize import is_sentinel_path, new_identifier, utc_timestamp

logger = logging.getLogger(__name__)


def compare_versions(v1: str, v2: str) -> int:
    """
    Compare two version strings.

    Returns:
        -1 if v1 < v2, 0 if v1 == v2, 1 if v1 > v2
    """
    try:
        ver1 = pkg_version.parse(v1)
        ver2 = pkg_version.parse(v2)
    except pkg_version.InvalidVersion:
        # Fallback to string comparison ("1.8.0_351", "pypy3.9-7.3.9")
        ver1, ver2 = v1, v2

    if ver1 < ver2:
        return -1
    elif ver1 > ver2:
        return 1
    return 0


def newest(records: Iterable[ToolRecord]) -> ToolRecord | None:
    """Record with the highest version, or None for an empty input."""
    ordered = sorted(records, key=cmp_to_key(lambda a, b: compare_versions(a.version, b.version)))
    return ordered[-1] if ordered else None


@dataclass(frozen=True)
class FamilySummary:
    """Per tool-family summary line for the dashboard."""
    tool_type: ToolType
    count: int
    active_versions: tuple[str, ...]
    newest_version: str

    def to_dict(self) -> dict:
        return {
            "type": self.tool_type.value,
            "count": self.count,
            "active_versions": list(self.active_versions),
            "newest_version": self.newest_version,
        }


def summarize(records: Iterable[ToolRecord]) -> list[FamilySummary]:
    """Summarize records per tool family, in tool-type tag order."""
    by_type: dict[ToolType, list[ToolRecord]] = {}
    for record in records:
        by_type.setdefault(record.tool_type, []).append(record)

    summaries = []
    for tool_type in sorted(by_type, key=lambda t: t.value):
        group = by_type[tool_type]
        top = newest(group)
        summaries.append(FamilySummary(
            tool_type=tool_type,
            count=len(group),
            active_versions=tuple(r.version for r in group if r.is_active_default),
            newest_version=top.version if top else "",
        ))
    return summaries


class Inventory:
    """
    Tool records accumulated across scans.

    Usage::

        inventory = Inventory()
        added = inventory.import_records(parse_environment_transcript(text))
    """

    def __init__(self, records: Iterable[ToolRecord] = ()) -> None:
        self._records: list[ToolRecord] = []
        self.import_records(records)

    def __len__(self) -> int:
        return len(self._records)

    def __iter__(self):
        return iter(self._records)

    @property
    def records(self) -> list[ToolRecord]:
        return list(self._records)

    def _find_match(self, record: ToolRecord) -> int | None:
        for idx, existing in enumerate(self._records):
            if existing.tool_type != record.tool_type:
                continue
            if existing.version == record.version:
                return idx
            if (
                not is_sentinel_path(record.install_path)
                and existing.install_path == record.install_path
            ):
                return idx
        return None

    def import_records(self, records: Iterable[ToolRecord]) -> list[ToolRecord]:
        """
        Import a parse batch.

        A record matching an existing entry by (tool type, version) or by
        (tool type, concrete install path) is merged into that entry.

        Returns:
            Records that were newly added
        """
        added = []
        for record in records:
            idx = self._find_match(record)
            if idx is None:
                self._records.append(record)
                added.append(record)
                continue
            self._records[idx] = merge_records(self._records[idx], record)

        logger.debug("Imported %d new record(s), inventory size %d", len(added), len(self._records))
        return added

    def add_manual(
        self,
        tool_type: ToolType | str,
        version: str,
        path: str = PATH_UNRESOLVED,
        display_name: str | None = None,
    ) -> ToolRecord:
        """Add a manually entered installation (merged if already known)."""
        tool_type = ToolType(tool_type.upper()) if isinstance(tool_type, str) else tool_type
        record = ToolRecord(
            identifier=new_identifier(tool_type, version),
            display_name=display_name or tool_type.label,
            tool_type=tool_type,
            version=version,
            install_path=path or PATH_UNRESOLVED,
            is_active_default=False,
            provenance="manual",
            discovered_at=utc_timestamp(),
        )
        self.import_records([record])
        return self.get(record.identifier) or self._records[self._find_match(record)]

    def get(self, identifier: str) -> ToolRecord | None:
        for record in self._records:
            if record.identifier == identifier:
                return record
        return None

    def remove(self, identifier: str) -> ToolRecord | None:
        record = self.get(identifier)
        if record is not None:
            self._records.remove(record)
        return record

    def by_type(self, tool_type: ToolType) -> list[ToolRecord]:
        return [r for r in self._records if r.tool_type == tool_type]

    def distribution(self) -> dict[ToolType, int]:
        """Record counts per tool family, omitting empty families."""
        counts: dict[ToolType, int] = {}
        for record in self._records:
            counts[record.tool_type] = counts.get(record.tool_type, 0) + 1
        return counts
