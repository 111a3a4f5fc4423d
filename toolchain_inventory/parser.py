"""
Transcript parsing entry points.

parse_environment_transcript() turns the concatenated output of version
probes, path lookups and version/package-manager listings into a
deduplicated list of ToolRecords. parse_package_listing() reads a
pip-style installed-package listing.

Both functions are pure: they never raise for malformed text and keep no
state between calls.
"""

from __future__ import annotations

import logging
import re
from dataclasses import replace

from .config import PathTemplates
from .merger import Merger
from .models import PackageRecord, Platform, ToolRecord
from .normalize import is_sentinel_path, iter_clean_lines
from .recognizer import Recognizer, parse_path_annotation

logger = logging.getLogger(__name__)


# Packaging infrastructure shipped alongside every interpreter
CORE_PACKAGES = frozenset({"pip", "setuptools", "wheel", "distribute"})

PACKAGE_HEADER_TOKENS = ("Package", "----")
PACKAGE_LINE_RE = re.compile(r'^(?P<name>[A-Za-z0-9][\w.\-\[\]]*)(?:\s+|==)(?P<version>\d\S*)')


def parse_environment_transcript(
    text: str,
    platform: Platform | str = Platform.POSIX,
    templates: PathTemplates | None = None,
) -> list[ToolRecord]:
    """
    Parse a probe transcript into deduplicated tool records.

    Args:
        text: Raw multi-line transcript (pasted or collected by the scanner)
        platform: Platform hint selecting path conventions
        templates: Path template overrides (defaults for the platform)

    Returns:
        Records sorted by tool type, one per (tool type, version)
    """
    platform = Platform.coerce(platform)
    recognizer = Recognizer(
        platform=platform,
        templates=templates or PathTemplates.for_platform(platform),
    )

    candidates: list[ToolRecord] = []
    for line in iter_clean_lines(text):
        annotation = parse_path_annotation(line)
        if annotation is not None:
            # Only the most recent candidate can take the path, and only once
            if annotation and candidates and is_sentinel_path(candidates[-1].install_path):
                candidates[-1] = replace(candidates[-1], install_path=annotation)
            else:
                logger.debug("Dropped path annotation %r", line)
            continue

        record = recognizer.recognize(line)
        if record is not None:
            candidates.append(record)

    merger = Merger()
    merger.extend(candidates)
    results = merger.results()
    logger.debug(
        "Parsed %d candidates into %d records (%d merged)",
        len(candidates), len(results), merger.merged_count,
    )
    return results


def parse_package_listing(text: str) -> list[PackageRecord]:
    """
    Parse `pip list` (or `pip freeze`) output.

    Header and separator lines are skipped, as are lines whose second field
    is not a version (pip warnings and notices).

    Returns:
        Packages in listing order
    """
    packages: list[PackageRecord] = []
    for line in iter_clean_lines(text):
        if line.startswith(PACKAGE_HEADER_TOKENS):
            continue

        m = PACKAGE_LINE_RE.match(line)
        if not m:
            continue

        name = m.group("name")
        packages.append(PackageRecord(
            name=name,
            version=m.group("version"),
            is_core_tool=name.lower() in CORE_PACKAGES,
        ))

    return packages
