"""
Deduplication of candidate records.

Candidates describing the same installation (same tool type and exact
version string) are folded left to right into one record.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import Iterable

from .models import ToolRecord, ToolType
from .normalize import display_name_rank, is_generic_provenance, is_sentinel_path

logger = logging.getLogger(__name__)


def merge_records(existing: ToolRecord, incoming: ToolRecord) -> ToolRecord:
    """
    Reconcile two records for the same (tool_type, version) key.

    Precedence:
    - install_path: first concrete path wins, sentinels never overwrite
    - is_active_default: logical OR
    - provenance: a generic tag ("system", "manual") gives way to a specific one
    - display_name: a strictly more descriptive name replaces the existing one
    - everything else is kept from existing

    Returns:
        New merged record (inputs are not modified)
    """
    changes = {}

    if is_sentinel_path(existing.install_path) and not is_sentinel_path(incoming.install_path):
        changes["install_path"] = incoming.install_path

    if incoming.is_active_default and not existing.is_active_default:
        changes["is_active_default"] = True

    if is_generic_provenance(existing.provenance) and not is_generic_provenance(incoming.provenance):
        changes["provenance"] = incoming.provenance

    if display_name_rank(incoming.display_name) > display_name_rank(existing.display_name):
        changes["display_name"] = incoming.display_name

    return replace(existing, **changes) if changes else existing


def sort_records(records: Iterable[ToolRecord]) -> list[ToolRecord]:
    """Sort by tool-family tag, keeping arrival order within a tag."""
    return sorted(records, key=lambda r: r.tool_type.value)


class Merger:
    """
    Accumulator folding a candidate stream into one record per installation.

    Usage::

        merger = Merger()
        merger.extend(candidates)
        records = merger.results()
    """

    def __init__(self) -> None:
        self._records: dict[tuple[ToolType, str], ToolRecord] = {}
        self.merged_count = 0

    def __len__(self) -> int:
        return len(self._records)

    def add(self, record: ToolRecord) -> ToolRecord:
        """Fold one candidate in; returns the accumulated record for its key."""
        existing = self._records.get(record.key)
        if existing is None:
            self._records[record.key] = record
            return record

        merged = merge_records(existing, record)
        self._records[record.key] = merged
        self.merged_count += 1
        logger.debug("Merged duplicate %s %s", record.tool_type.value, record.version)
        return merged

    def extend(self, records: Iterable[ToolRecord]) -> None:
        for record in records:
            self.add(record)

    def results(self) -> list[ToolRecord]:
        return sort_records(self._records.values())
