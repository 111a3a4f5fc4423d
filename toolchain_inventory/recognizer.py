"""
Line-level recognition of toolchain version output.

Each trimmed line of a transcript is matched against an ordered list of
pattern families; the first family that produces a record wins:

1. Deep enumeration listings (java_home -V, update-java-alternatives -l, py -0p)
2. Direct version probes (java -version, python --version, go version, node -v)
3. Version-manager listings (pyenv/goenv/jenv/nodenv versions, nvm, ~/sdk)
4. Package-manager listings (brew list --versions, scoop list)

"Path: <value>" annotation lines never create records; see
parse_path_annotation().
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import Callable

from .config import PathTemplates
from .models import PATH_ACTIVE_SHIM, PATH_UNRESOLVED, Platform, ToolRecord, ToolType
from .normalize import (
    looks_like_path,
    major_version,
    new_identifier,
    tool_type_for_name,
    utc_timestamp,
)

logger = logging.getLogger(__name__)


# 1. Deep enumeration
# 17.0.2 (x86_64) "Oracle Corporation" - "OpenJDK 17.0.2" /Library/Java/JavaVirtualMachines/openjdk-17.0.2.jdk/Contents/Home
JAVA_HOME_LISTING_RE = re.compile(
    r'^(?P<version>\d+(?:[._]\d+)*)(?:\s+\((?P<arch>[^)]*)\))?\s+'
    r'"(?P<vendor>[^"]*)"\s+-\s+"(?P<product>[^"]*)"\s+(?P<path>/.+)$'
)
# java-1.17.0-openjdk-amd64      1711       /usr/lib/jvm/java-1.17.0-openjdk-amd64
JAVA_ALTERNATIVES_RE = re.compile(
    r'^(?P<name>java-(?P<version>\d+(?:\.\d+)*)-[a-z][\w\-]*)\s+\d+\s+(?P<path>/\S+)$'
)
# -V:3.11 *        C:\Python311\python.exe   |   -3.9-64          C:\Python39\python.exe
PY_LAUNCHER_RE = re.compile(
    r'^-(?:V:)?(?P<version>\d+(?:\.\d+)+)(?:-(?:32|64|arm64))?\s+(?P<default>\*\s+)?'
    r'(?P<path>(?:[A-Za-z]:[\\/]|\\\\).+)$'
)

# 2. Direct probes
JAVA_BANNER_RE = re.compile(
    r'\b(?:java|openjdk)\s+(?:version\s+"(?P<quoted>\d[^"]*)"'
    r'|(?P<plain>\d+(?:\.\d+)*(?:[._]\d+)?)\s+\d{4}-\d{2}-\d{2})',
    re.IGNORECASE,
)
# Companion banners printed next to the runtime banner
JAVA_NOISE_RE = re.compile(
    r'javac|\b\d+-bit\b|\bserver vm\b|\bclient vm\b|runtime environment',
    re.IGNORECASE,
)
PYTHON_BANNER_RE = re.compile(r'\bPython (?P<version>\d+\.\d+\.\d+(?:(?:a|b|rc)\d+)?\+?)')
GO_BANNER_RE = re.compile(r'\bgo version go(?P<version>\d+\.\d+(?:\.\d+)?(?:(?:rc|beta)\d+)?)')
NODE_BANNER_RE = re.compile(r'^(?:node(?:\.js)?\s+)?v(?P<version>\d+\.\d+\.\d+)$', re.IGNORECASE)

# 3. Version-manager listings
MANAGER_LINE_RE = re.compile(
    r'^(?P<marker>\*|->)?\s*(?P<token>[A-Za-z0-9][\w.\-]*)\s*(?:\((?P<note>[^)]*)\))?\s*\*?$'
)
BARE_VERSION_RE = re.compile(r'^(?P<prefix>v)?(?P<version>\d+(?:\.\d+)+[\w\-]*)$')
GO_SDK_RE = re.compile(r'^go(?P<version>\d+\.\d+(?:\.\d+)?(?:(?:rc|beta)\d+)?)$')
FLAVOUR_RE = re.compile(r'^(?P<flavour>[a-z]+)\d*[\w.\-]*\d[\w.\-]*$')

PYTHON_FLAVOURS = {
    "pypy": "PyPy",
    "anaconda": "Anaconda",
    "miniconda": "Miniconda",
    "miniforge": "Miniforge",
    "mambaforge": "Mambaforge",
    "graalpy": "GraalPy",
    "stackless": "Stackless Python",
    "pyston": "Pyston",
}
JAVA_FLAVOURS = {
    "openjdk": "OpenJDK",
    "oracle": "Oracle JDK",
    "temurin": "Eclipse Temurin",
    "zulu": "Azul Zulu",
    "corretto": "Amazon Corretto",
    "graalvm": "GraalVM",
    "liberica": "Liberica JDK",
}

# Manager -> tool family
MANAGER_FAMILIES = {
    "pyenv": ToolType.PYTHON,
    "goenv": ToolType.GO,
    "go-sdk": ToolType.GO,
    "jenv": ToolType.JAVA,
    "nvm": ToolType.NODE,
    "nodenv": ToolType.NODE,
}

# "(set by <origin>)" directory markers
ORIGIN_MARKERS = (
    (".pyenv", "pyenv"),
    (".goenv", "goenv"),
    (".jenv", "jenv"),
    (".nodenv", "nodenv"),
)

# Manager -> platform -> (default root, install path under root)
MANAGER_LAYOUTS: dict[str, dict[Platform, tuple[str, str]]] = {
    "pyenv": {
        Platform.POSIX: ("{home}/.pyenv", "{root}/versions/{version}"),
        Platform.WINDOWS: ("{home}\\.pyenv", "{root}\\pyenv-win\\versions\\{version}"),
    },
    "goenv": {
        Platform.POSIX: ("{home}/.goenv", "{root}/versions/{version}"),
    },
    "nodenv": {
        Platform.POSIX: ("{home}/.nodenv", "{root}/versions/{version}"),
    },
    "nvm": {
        Platform.POSIX: ("{home}/.nvm", "{root}/versions/node/v{version}"),
        Platform.WINDOWS: ("{app_data}\\nvm", "{root}\\v{version}"),
    },
    "go-sdk": {
        Platform.POSIX: ("{home}/sdk", "{root}/go{version}"),
        Platform.WINDOWS: ("{home}\\sdk", "{root}\\go{version}"),
    },
    # jenv only links JDKs installed elsewhere
    "jenv": {},
}

# 4. Package-manager listings
PACKAGE_LINE_RE = re.compile(r'^(?P<name>[a-z][\w@.+\-]*)\s+(?P<version>\d[\w.+\-]*)(?:\s|$)')

# 5. Path annotations
PATH_ANNOTATION_RE = re.compile(r'^Path:\s*(?P<value>.*)$')


def parse_path_annotation(line: str) -> str | None:
    """Return the value of a "Path: <value>" line, or None for any other line.

    Values that do not look like a filesystem path (e.g. "java not found")
    are returned as an empty string so the caller drops them.
    """
    m = PATH_ANNOTATION_RE.match(line)
    if not m:
        return None
    value = m.group("value").strip()
    return value if looks_like_path(value) else ""


@dataclass(frozen=True)
class ManagerEntry:
    """A version-manager listing line after classification."""
    manager: str
    version: str
    active: bool
    origin: str | None = None
    flavour: str | None = None


def classify_manager_line(line: str) -> ManagerEntry | None:
    """Identify the version manager and version named by a listing line."""
    m = MANAGER_LINE_RE.match(line)
    if not m:
        return None

    token = m.group("token")
    marker = m.group("marker")
    note = (m.group("note") or "").strip()
    origin = note[len("set by"):].strip() if note.lower().startswith("set by") else None
    using = "currently using" in note.lower()
    active = bool(marker) or using or origin is not None

    if token.lower() == "system":
        return None

    origin_manager = None
    if origin:
        lowered = origin.lower()
        for marker_dir, name in ORIGIN_MARKERS:
            if marker_dir in lowered:
                origin_manager = name
                break

    flavour = None
    go_sdk = GO_SDK_RE.match(token)
    bare = BARE_VERSION_RE.match(token)
    if go_sdk:
        manager = origin_manager or "go-sdk"
        version = go_sdk.group("version")
    elif bare:
        version = bare.group("version")
        if origin_manager:
            manager = origin_manager
        elif bare.group("prefix") or using or marker == "->":
            manager = "nvm"
        elif origin is not None:
            # "(set by PYENV_VERSION environment variable)"
            manager = "pyenv"
        else:
            major = major_version(version)
            if major in (2, 3):
                manager = "pyenv"
            elif major == 1:
                manager = "goenv"
            else:
                manager = "nvm"
    else:
        fm = FLAVOUR_RE.match(token.lower())
        if not fm:
            return None
        prefix = fm.group("flavour")
        if prefix in PYTHON_FLAVOURS:
            manager = origin_manager or "pyenv"
            flavour = PYTHON_FLAVOURS[prefix]
        elif prefix in JAVA_FLAVOURS:
            manager = origin_manager or "jenv"
            flavour = JAVA_FLAVOURS[prefix]
        else:
            return None
        # Manager version names ("pypy3.9-7.3.9") are kept whole
        version = token

    return ManagerEntry(
        manager=manager,
        version=version,
        active=active,
        origin=origin,
        flavour=flavour,
    )


def manager_root(manager: str, origin: str | None) -> str | None:
    """Derive a manager's root directory from a "(set by ...)" origin path."""
    if not origin:
        return None
    for marker_dir, name in ORIGIN_MARKERS:
        if name != manager:
            continue
        idx = origin.lower().find(marker_dir)
        if idx >= 0:
            return origin[: idx + len(marker_dir)]
    return None


@dataclass
class Recognizer:
    """
    Ordered pattern families turning one line into at most one ToolRecord.

    The recognizer itself holds no per-line state; the timestamp is fixed for
    the batch it was created for.
    """
    platform: Platform = Platform.POSIX
    templates: PathTemplates = field(default_factory=PathTemplates)
    discovered_at: str = field(default_factory=utc_timestamp)

    def __post_init__(self):
        self.platform = Platform.coerce(self.platform)
        self.families: tuple[tuple[str, Callable[[str], ToolRecord | None]], ...] = (
            ("deep-enumeration", self.match_deep_enumeration),
            ("version-probe", self.match_version_probe),
            ("version-manager", self.match_version_manager),
            ("package-manager", self.match_package_listing),
        )

    def recognize(self, line: str) -> ToolRecord | None:
        """Classify a trimmed line; first matching family wins."""
        for name, matcher in self.families:
            record = matcher(line)
            if record is not None:
                logger.debug("%s: %s %s from %r", name, record.tool_type.value, record.version, line)
                return record
        return None

    def _record(
        self,
        tool_type: ToolType,
        version: str,
        display_name: str,
        install_path: str,
        is_active_default: bool,
        provenance: str,
    ) -> ToolRecord:
        return ToolRecord(
            identifier=new_identifier(tool_type, version),
            display_name=display_name,
            tool_type=tool_type,
            version=version,
            install_path=install_path,
            is_active_default=is_active_default,
            provenance=provenance,
            discovered_at=self.discovered_at,
        )

    def match_deep_enumeration(self, line: str) -> ToolRecord | None:
        m = JAVA_HOME_LISTING_RE.match(line)
        if m:
            product = m.group("product").strip() or m.group("vendor").strip() or "Java SE"
            return self._record(
                ToolType.JAVA, m.group("version"), product,
                m.group("path").strip(), False, "system-detected",
            )

        m = JAVA_ALTERNATIVES_RE.match(line)
        if m:
            return self._record(
                ToolType.JAVA, m.group("version"), m.group("name"),
                m.group("path"), False, "system-detected",
            )

        m = PY_LAUNCHER_RE.match(line)
        if m:
            return self._record(
                ToolType.PYTHON, m.group("version"), "Python (py launcher)",
                m.group("path").strip(), bool(m.group("default")), "system-detected",
            )

        return None

    def match_version_probe(self, line: str) -> ToolRecord | None:
        m = JAVA_BANNER_RE.search(line)
        if m and not JAVA_NOISE_RE.search(line):
            version = m.group("quoted") or m.group("plain")
            name = "OpenJDK" if "openjdk" in line.lower() else "Java SE"
            return self._record(ToolType.JAVA, version, name, PATH_UNRESOLVED, True, "system")

        m = PYTHON_BANNER_RE.search(line)
        if m:
            return self._record(ToolType.PYTHON, m.group("version"), "Python", PATH_UNRESOLVED, True, "system")

        m = GO_BANNER_RE.search(line)
        if m:
            return self._record(ToolType.GO, m.group("version"), "Go", PATH_UNRESOLVED, True, "system")

        m = NODE_BANNER_RE.match(line)
        if m:
            return self._record(ToolType.NODE, m.group("version"), "Node.js", PATH_UNRESOLVED, True, "system")

        return None

    def match_version_manager(self, line: str) -> ToolRecord | None:
        entry = classify_manager_line(line)
        if entry is None:
            return None

        tool_type = MANAGER_FAMILIES[entry.manager]
        display_name = f"{entry.flavour or tool_type.label} ({entry.manager})"
        return self._record(
            tool_type, entry.version, display_name,
            self.manager_install_path(entry), entry.active, entry.manager,
        )

    def manager_install_path(self, entry: ManagerEntry) -> str:
        """Synthesize the install path a version manager uses for a version."""
        layout = MANAGER_LAYOUTS.get(entry.manager, {}).get(self.platform)
        if layout is None:
            return PATH_ACTIVE_SHIM
        default_root, path_template = layout
        root = manager_root(entry.manager, entry.origin) or default_root.format(
            home=self.templates.home, app_data=self.templates.app_data,
        )
        return path_template.format(root=root, version=entry.version)

    def match_package_listing(self, line: str) -> ToolRecord | None:
        m = PACKAGE_LINE_RE.match(line)
        if not m:
            return None

        name, version = m.group("name"), m.group("version")
        tool_type = tool_type_for_name(name)
        if tool_type == ToolType.UNKNOWN:
            return None

        if self.platform == Platform.WINDOWS:
            path = f"{self.templates.scoop_root}\\apps\\{name}\\{version}"
        else:
            path = f"{self.templates.homebrew_cellar}/{name}/{version}"
        return self._record(tool_type, version, name, path, False, "package-manager")


def recognize_line(
    line: str,
    platform: Platform | str = Platform.POSIX,
    templates: PathTemplates | None = None,
) -> ToolRecord | None:
    """Classify a single trimmed line with a one-off Recognizer."""
    platform = Platform.coerce(platform)
    if templates is None:
        templates = PathTemplates.for_platform(platform)
    return Recognizer(platform=platform, templates=templates).recognize(line)
