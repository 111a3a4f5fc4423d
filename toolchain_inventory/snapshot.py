"""
Snapshot persistence for the accumulated inventory.
"""

import datetime
import json
import os
from pathlib import Path
from typing import Any, Iterable

from .inventory import Inventory
from .models import ToolRecord

DEFAULT_SNAPSHOT_FILE = "toolchain_snapshot.json"
SCHEMA_VERSION = 1


def get_snapshot_path(configured: str | None = None) -> Path:
    """Get snapshot file path from env, config, or default.

    Args:
        configured: Snapshot path from the config file, if any

    Returns:
        Path to snapshot file
    """
    snapshot_file = os.environ.get("TOOLCHAIN_INVENTORY_SNAPSHOT_FILE") or configured or DEFAULT_SNAPSHOT_FILE
    snapshot_file = os.path.expanduser(snapshot_file)
    if os.path.isabs(snapshot_file):
        return Path(snapshot_file)
    return Path.cwd() / snapshot_file


def load_snapshot(path: Path | None = None) -> dict[str, Any]:
    """Load snapshot from file.

    Returns:
        Snapshot dictionary with __meta__ and tools keys (empty when missing or unreadable)
    """
    if path is None:
        path = get_snapshot_path()

    if not path.exists():
        return {"__meta__": {}, "tools": []}

    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, ValueError):
        return {"__meta__": {}, "tools": []}

    if not isinstance(data, dict) or not isinstance(data.get("tools", []), list):
        return {"__meta__": {}, "tools": []}
    return data


def write_snapshot(
    records: Iterable[ToolRecord],
    path: Path | None = None,
    extra_meta: dict[str, Any] | None = None,
) -> dict[str, Any]:
    """Write snapshot to file atomically.

    Returns:
        Metadata dictionary

    Raises:
        IOError: If the snapshot cannot be written
    """
    if path is None:
        path = get_snapshot_path()

    tools = [r.to_dict() for r in records]
    meta = {
        "schema_version": SCHEMA_VERSION,
        "created_at": datetime.datetime.now(datetime.UTC).replace(microsecond=0).isoformat().replace("+00:00", "Z"),
        "count": len(tools),
    }
    if extra_meta:
        meta.update(extra_meta)

    doc = {"__meta__": meta, "tools": tools}

    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        temp_path = path.with_suffix(".tmp")
        with open(temp_path, "w", encoding="utf-8") as f:
            json.dump(doc, f, indent=2, ensure_ascii=False, sort_keys=True)
        temp_path.replace(path)
    except OSError as e:
        raise IOError(f"Failed to write snapshot: {e}")

    return meta


def load_inventory(path: Path | None = None) -> Inventory:
    """Load the snapshot into an Inventory."""
    snapshot = load_snapshot(path)
    records = [
        ToolRecord.from_dict(item)
        for item in snapshot.get("tools", [])
        if isinstance(item, dict) and item.get("version")
    ]
    return Inventory(records)
