"""
Configuration file parsing and management.

Supports YAML configuration files (JSON is accepted for *.json files).
Merges configurations from multiple sources (project → user → system → defaults).
"""

from __future__ import annotations

import json
import os
from dataclasses import dataclass, field, replace
from typing import Any

import yaml

from .common import vlog
from .models import Platform


# Configuration file locations (in priority order)
CONFIG_LOCATIONS = [
    ".toolchain-inventory.yml",                                  # Project root (highest priority)
    ".toolchain-inventory.yaml",
    os.path.expanduser("~/.config/toolchain-inventory/config.yml"),  # User global
    os.path.expanduser("~/.config/toolchain-inventory/config.yaml"),
    "/etc/toolchain-inventory/config.yml",                       # System global
    "/etc/toolchain-inventory/config.yaml",
]

VALID_PLATFORM_SETTINGS = {"auto", "posix", "windows"}
VALID_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


@dataclass(frozen=True)
class PathTemplates:
    """
    Base locations used to synthesize install paths.

    Attributes:
        home: User home directory as it should appear in synthesized paths
        app_data: Roaming application data directory (nvm-windows root)
        homebrew_cellar: Homebrew Cellar directory
        scoop_root: Scoop installation root
    """
    home: str = "~"
    app_data: str = "%APPDATA%"
    homebrew_cellar: str = "/usr/local/Cellar"
    scoop_root: str = "%USERPROFILE%\\scoop"

    @staticmethod
    def for_platform(platform: Platform | str) -> PathTemplates:
        """Default templates for a platform hint."""
        if Platform.coerce(platform) == Platform.WINDOWS:
            return PathTemplates(home="%USERPROFILE%")
        return PathTemplates()

    @staticmethod
    def from_dict(data: dict[str, Any], base: PathTemplates | None = None) -> PathTemplates:
        """Apply overrides from a dictionary on top of base templates."""
        base = base or PathTemplates()
        overrides = {
            key: str(data[key])
            for key in ("home", "app_data", "homebrew_cellar", "scoop_root")
            if data.get(key)
        }
        return replace(base, **overrides)


@dataclass(frozen=True)
class ScanPreferences:
    """
    Probe runner settings.

    Attributes:
        timeout_seconds: Timeout per probe command
        max_workers: Maximum number of probes run in parallel
    """
    timeout_seconds: int = 5
    max_workers: int = 8

    def __post_init__(self):
        if self.timeout_seconds < 1 or self.timeout_seconds > 60:
            raise ValueError(
                f"Invalid timeout_seconds: {self.timeout_seconds}. "
                "Must be between 1 and 60"
            )
        if self.max_workers < 1 or self.max_workers > 32:
            raise ValueError(
                f"Invalid max_workers: {self.max_workers}. "
                "Must be between 1 and 32"
            )

    @staticmethod
    def from_dict(data: dict[str, Any]) -> ScanPreferences:
        return ScanPreferences(
            timeout_seconds=data.get("timeout_seconds", 5),
            max_workers=data.get("max_workers", 8),
        )


@dataclass(frozen=True)
class Config:
    """
    Complete configuration for the toolchain inventory.

    Attributes:
        version: Config schema version
        platform: Platform hint ('auto', 'posix', 'windows')
        paths: Path template overrides (only the keys that were set)
        scan: Probe runner settings
        log_level: Console log level
        log_file: Optional log file path
        snapshot_file: Optional inventory snapshot path
        source: Path to the configuration file that was loaded
    """
    version: int = 1
    platform: str = "auto"
    paths: dict[str, str] = field(default_factory=dict)
    scan: ScanPreferences = field(default_factory=ScanPreferences)
    log_level: str = "INFO"
    log_file: str | None = None
    snapshot_file: str | None = None
    source: str = ""

    def __post_init__(self):
        """Validate config after initialization."""
        if self.version != 1:
            raise ValueError(f"Unsupported config version: {self.version}. Expected version 1")

        if self.platform not in VALID_PLATFORM_SETTINGS:
            raise ValueError(
                f"Invalid platform: {self.platform}. "
                f"Must be one of: {', '.join(sorted(VALID_PLATFORM_SETTINGS))}"
            )

        if self.log_level.upper() not in VALID_LOG_LEVELS:
            raise ValueError(
                f"Invalid log_level: {self.log_level}. "
                f"Must be one of: {', '.join(sorted(VALID_LOG_LEVELS))}"
            )

    @staticmethod
    def from_dict(data: dict[str, Any], source: str = "") -> Config:
        """Create Config from dictionary."""
        logging_data = data.get("logging", {}) or {}
        paths_data = data.get("paths", {}) or {}

        return Config(
            version=data.get("version", 1),
            platform=str(data.get("platform", "auto")).lower(),
            paths={k: str(v) for k, v in paths_data.items() if v},
            scan=ScanPreferences.from_dict(data.get("scan", {}) or {}),
            log_level=str(logging_data.get("level", "INFO")),
            log_file=logging_data.get("file"),
            snapshot_file=data.get("snapshot_file"),
            source=source,
        )

    def path_templates(self, platform: Platform | str) -> PathTemplates:
        """Templates for a platform with this config's overrides applied."""
        return PathTemplates.from_dict(self.paths, PathTemplates.for_platform(platform))

    def merge_with(self, other: Config) -> Config:
        """
        Merge this config with another, preferring values from this config.

        Args:
            other: Other config to merge (lower priority)

        Returns:
            New merged Config object
        """
        merged_paths = dict(other.paths)
        merged_paths.update(self.paths)

        merged_scan = ScanPreferences(
            timeout_seconds=self.scan.timeout_seconds if self.scan.timeout_seconds != 5 else other.scan.timeout_seconds,
            max_workers=self.scan.max_workers if self.scan.max_workers != 8 else other.scan.max_workers,
        )

        return Config(
            version=self.version,
            platform=self.platform if self.platform != "auto" else other.platform,
            paths=merged_paths,
            scan=merged_scan,
            log_level=self.log_level if self.log_level.upper() != "INFO" else other.log_level,
            log_file=self.log_file or other.log_file,
            snapshot_file=self.snapshot_file or other.snapshot_file,
            source=self.source or other.source,
        )


def _load_yaml(file_path: str) -> dict[str, Any] | None:
    """
    Load YAML configuration file.

    Returns:
        Parsed configuration dictionary, or None if the file is unreadable or invalid
    """
    try:
        with open(file_path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
            return data if isinstance(data, dict) else {}
    except (OSError, yaml.YAMLError):
        return None


def _load_json(file_path: str) -> dict[str, Any] | None:
    """
    Load JSON configuration file.

    Returns:
        Parsed configuration dictionary, or None if file invalid
    """
    try:
        with open(file_path, "r", encoding="utf-8") as f:
            data = json.load(f)
            return data if isinstance(data, dict) else {}
    except (OSError, json.JSONDecodeError):
        return None


def load_config_file(file_path: str, verbose: bool = False) -> Config | None:
    """
    Load configuration from a single file.

    Args:
        file_path: Path to configuration file (.yml, .yaml or .json)
        verbose: Enable verbose logging

    Returns:
        Config object, or None if file cannot be loaded
    """
    if not os.path.exists(file_path):
        return None

    vlog(f"Loading config from: {file_path}", verbose)

    if file_path.endswith(".json"):
        data = _load_json(file_path)
    else:
        data = _load_yaml(file_path)

    if data is None:
        vlog(f"Invalid config file: {file_path}", verbose)
        return None

    try:
        config = Config.from_dict(data, source=file_path)
        vlog(f"Loaded config successfully: {file_path}", verbose)
        return config
    except (ValueError, TypeError, AttributeError) as e:
        vlog(f"Config validation failed for {file_path}: {e}", verbose)
        return None


def load_config(
    custom_path: str | None = None,
    verbose: bool = False,
) -> Config:
    """
    Load and merge configuration from all sources.

    Configuration precedence (highest to lowest):
    1. Custom path (if provided)
    2. Project .toolchain-inventory.yml
    3. User ~/.config/toolchain-inventory/config.yml
    4. System /etc/toolchain-inventory/config.yml
    5. Default configuration

    Raises:
        ValueError: If custom_path is provided but file cannot be loaded
    """
    configs: list[Config] = []

    if custom_path:
        config = load_config_file(custom_path, verbose)
        if config is None:
            raise ValueError(f"Could not load config from specified path: {custom_path}")
        configs.append(config)
        vlog(f"Using custom config: {custom_path}", verbose)

    for location in CONFIG_LOCATIONS:
        config = load_config_file(location, verbose)
        if config is not None:
            configs.append(config)
            vlog(f"Found config at: {location}", verbose)

    if not configs:
        vlog("No config files found, using defaults", verbose)
        return Config()

    # First config has highest priority
    merged = configs[0]
    for config in configs[1:]:
        merged = merged.merge_with(config)

    vlog(f"Merged {len(configs)} config files", verbose)
    return merged


def validate_config(config: Config) -> list[str]:
    """
    Validate configuration and return list of warnings.

    Returns:
        List of validation warning messages (empty if valid)
    """
    warnings = []

    unknown_paths = set(config.paths) - {"home", "app_data", "homebrew_cellar", "scoop_root"}
    for key in sorted(unknown_paths):
        warnings.append(f"Unknown path template '{key}' is ignored")

    cellar = config.paths.get("homebrew_cellar")
    if cellar and not cellar.startswith("/"):
        warnings.append(f"homebrew_cellar should be an absolute path: {cellar}")

    if config.log_file and os.path.isdir(config.log_file):
        warnings.append(f"log_file points to a directory: {config.log_file}")

    return warnings
