"""
Tests for the cross-batch inventory (toolchain_inventory/inventory.py).
"""

import pytest

from toolchain_inventory.inventory import Inventory, compare_versions, newest, summarize
from toolchain_inventory.models import PATH_UNRESOLVED, ToolRecord, ToolType
from toolchain_inventory.parser import parse_environment_transcript


def make_record(tool_type=ToolType.JAVA, version="17.0.2", path=PATH_UNRESOLVED,
                active=False, source="system", identifier=None, name="Java SE"):
    return ToolRecord(
        identifier=identifier or f"{tool_type.value.lower()}-{version}",
        display_name=name,
        tool_type=tool_type,
        version=version,
        install_path=path,
        is_active_default=active,
        provenance=source,
    )


class TestCompareVersions:
    """Tests for compare_versions()."""

    def test_numeric_ordering(self):
        """Test versions compare numerically, not lexically."""
        assert compare_versions("1.10.0", "1.9.0") == 1
        assert compare_versions("3.9.13", "3.10.4") == -1

    def test_equal(self):
        """Test equal versions."""
        assert compare_versions("3.9.13", "3.9.13") == 0

    def test_non_pep440_fallback(self):
        """Test non-PEP 440 strings fall back to string comparison."""
        assert compare_versions("1.8.0_351", "1.8.0_352") == -1
        assert compare_versions("pypy3.9-7.3.9", "pypy3.9-7.3.9") == 0


class TestSummaries:
    """Tests for newest() and summarize()."""

    def test_newest(self):
        """Test newest picks the highest version."""
        records = [make_record(ToolType.PYTHON, v) for v in ("3.9.13", "3.11.6", "3.10.4")]
        assert newest(records).version == "3.11.6"

    def test_newest_empty(self):
        """Test newest of nothing."""
        assert newest([]) is None

    def test_summarize(self):
        """Test per-family summary counts and active versions."""
        records = [
            make_record(ToolType.PYTHON, "3.10.4", active=True),
            make_record(ToolType.PYTHON, "3.9.13"),
            make_record(ToolType.GO, "1.21.4"),
        ]
        summaries = summarize(records)

        assert [s.tool_type for s in summaries] == [ToolType.GO, ToolType.PYTHON]
        python = summaries[1]
        assert python.count == 2
        assert python.active_versions == ("3.10.4",)
        assert python.newest_version == "3.10.4"
        assert python.to_dict()["type"] == "PYTHON"


class TestImport:
    """Tests for Inventory.import_records()."""

    def test_new_records_added(self):
        """Test records of an empty inventory are all new."""
        inventory = Inventory()
        added = inventory.import_records([make_record(version="17.0.2"), make_record(version="11.0.12")])

        assert len(added) == 2
        assert len(inventory) == 2

    def test_same_version_merged(self):
        """Test a known (type, version) is merged, not added."""
        inventory = Inventory([make_record(identifier="old")])
        added = inventory.import_records([make_record(identifier="new", path="/usr/bin/java", active=True)])

        assert added == []
        assert len(inventory) == 1
        record = inventory.records[0]
        assert record.identifier == "old"
        assert record.install_path == "/usr/bin/java"
        assert record.is_active_default is True

    def test_same_concrete_path_merged(self):
        """Test a matching concrete path identifies the same installation."""
        inventory = Inventory([make_record(version="17.0.2", path="/opt/jdk-17")])
        added = inventory.import_records([make_record(version="17", path="/opt/jdk-17")])

        assert added == []
        assert len(inventory) == 1
        assert inventory.records[0].version == "17.0.2"

    def test_sentinel_paths_do_not_match(self):
        """Test two unresolved paths are not the same installation."""
        inventory = Inventory([make_record(version="17.0.2")])
        added = inventory.import_records([make_record(version="11.0.12")])
        assert len(added) == 1

    def test_path_match_requires_same_family(self):
        """Test path matching stays within a tool family."""
        inventory = Inventory([make_record(ToolType.JAVA, "17", path="/opt/tool")])
        added = inventory.import_records([make_record(ToolType.GO, "1.21", path="/opt/tool")])
        assert len(added) == 1

    def test_reimport_of_parse_batch(self):
        """Test importing the same transcript twice adds nothing the second time."""
        text = "Python 3.9.12\nPath: /usr/bin/python3\ngo version go1.21.4 linux/amd64\n"
        inventory = Inventory()

        assert len(inventory.import_records(parse_environment_transcript(text))) == 2
        assert inventory.import_records(parse_environment_transcript(text)) == []
        assert len(inventory) == 2


class TestInventoryOperations:
    """Tests for manual entry and lookups."""

    def test_add_manual(self):
        """Test manual entry provenance and defaults."""
        inventory = Inventory()
        record = inventory.add_manual(ToolType.GO, "1.22.0", "/usr/local/go")

        assert record.provenance == "manual"
        assert record.display_name == "Go"
        assert record.install_path == "/usr/local/go"
        assert record.is_active_default is False
        assert inventory.get(record.identifier) == record

    def test_add_manual_string_type(self):
        """Test tool type given as a string."""
        record = Inventory().add_manual("java", "21.0.1", display_name="Temurin 21")

        assert record.tool_type == ToolType.JAVA
        assert record.display_name == "Temurin 21"
        assert record.install_path == PATH_UNRESOLVED

    def test_add_manual_unknown_type(self):
        """Test unknown tool type names are rejected."""
        with pytest.raises(ValueError):
            Inventory().add_manual("rust", "1.75.0")

    def test_add_manual_merges_known_installation(self):
        """Test manual entry of a known version returns the existing record."""
        inventory = Inventory([make_record(identifier="scan")])
        record = inventory.add_manual(ToolType.JAVA, "17.0.2", "/opt/jdk-17")

        assert len(inventory) == 1
        assert record.identifier == "scan"
        assert record.install_path == "/opt/jdk-17"

    def test_remove(self):
        """Test removal by identifier."""
        inventory = Inventory([make_record(identifier="a"), make_record(version="11", identifier="b")])

        removed = inventory.remove("a")
        assert removed.identifier == "a"
        assert inventory.get("a") is None
        assert len(inventory) == 1

    def test_remove_missing(self):
        """Test removing an unknown id."""
        assert Inventory().remove("nope") is None

    def test_by_type_and_distribution(self):
        """Test per-family filtering and counts."""
        inventory = Inventory([
            make_record(ToolType.JAVA, "17"),
            make_record(ToolType.JAVA, "11"),
            make_record(ToolType.NODE, "18.17.0"),
        ])

        assert [r.version for r in inventory.by_type(ToolType.JAVA)] == ["17", "11"]
        assert inventory.by_type(ToolType.GO) == []
        assert inventory.distribution() == {ToolType.JAVA: 2, ToolType.NODE: 1}

    def test_iteration(self):
        """Test iterating yields records in insertion order."""
        inventory = Inventory([make_record(version="17"), make_record(version="11")])
        assert [r.version for r in inventory] == ["17", "11"]
