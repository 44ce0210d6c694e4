"""Backup configuration: defaults and JSON config loading."""

import json
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path

logger = logging.getLogger(__name__)

PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent
DEFAULT_CONFIG = PROJECT_ROOT / "config" / "config.json"

# Drive root of the filesystem the tool runs from ("/" or "C:\\")
DEFAULT_SCAN_ROOTS = [os.path.abspath(os.sep)]

# Directory names recognised as installations
DEFAULT_PATTERNS = ["EnRoute*", "EzyNest*"]

# Top-level items backed up in curated mode
DEFAULT_MANIFEST = [
    "Config",
    "Drivers",
    "Macros",
    "Materials",
    "Setups",
    "Strategies",
    "Templates",
    "Tools",
    "Prefs.xml",
]

# Never copied, whatever the mode
DEFAULT_EXCLUSIONS = [".exe", ".dll", ".ocx", ".msi", ".tmp"]

DEFAULT_OUTPUT_DIR = os.path.join(os.path.expanduser("~"), "EnRouteBackups")

DEFAULT_ARCHIVE_PREFIX = "EnRoute_Backup"

# Timestamp format used for archive and staging directory names
TIMESTAMP_FORMAT = "%Y-%m-%d_%H-%M-%S"


def normalize_extensions(extensions) -> frozenset[str]:
    """Lower-case extensions and make sure each has a leading dot."""
    return frozenset(
        (ext if ext.startswith(".") else f".{ext}").lower()
        for ext in extensions
        if ext
    )


def _resolve_path(path_str: str) -> str:
    return os.path.expanduser(os.path.expandvars(path_str))


@dataclass
class BackupConfig:
    """Settings for one backup run."""
    scan_roots: list[str] = field(default_factory=lambda: list(DEFAULT_SCAN_ROOTS))
    scan_all_drives: bool = False
    patterns: list[str] = field(default_factory=lambda: list(DEFAULT_PATTERNS))
    manifest: list[str] = field(default_factory=lambda: list(DEFAULT_MANIFEST))
    exclusions: frozenset[str] = field(
        default_factory=lambda: normalize_extensions(DEFAULT_EXCLUSIONS)
    )
    output_dir: str = DEFAULT_OUTPUT_DIR
    staging_parent: str | None = None
    archive_prefix: str = DEFAULT_ARCHIVE_PREFIX

    @classmethod
    def from_dict(cls, data: dict) -> "BackupConfig":
        cfg = cls()
        section = data.get("backup", {})
        if section.get("scan_roots"):
            cfg.scan_roots = [_resolve_path(r) for r in section["scan_roots"]]
        if "scan_all_drives" in section:
            cfg.scan_all_drives = bool(section["scan_all_drives"])
        if "patterns" in section:
            cfg.patterns = list(section["patterns"])
        if "manifest" in section:
            cfg.manifest = list(section["manifest"])
        if "exclusions" in section:
            cfg.exclusions = normalize_extensions(section["exclusions"])
        if section.get("output_dir"):
            cfg.output_dir = _resolve_path(section["output_dir"])
        if section.get("staging_parent"):
            cfg.staging_parent = _resolve_path(section["staging_parent"])
        if section.get("archive_prefix"):
            cfg.archive_prefix = section["archive_prefix"]
        return cfg


def load_config(config_path: str | None = None) -> BackupConfig:
    """Load a BackupConfig from JSON.

    With no path, the bundled ``config/config.json`` is used when present
    and the built-in defaults otherwise. An explicit path must exist.
    """
    if config_path is None:
        if not DEFAULT_CONFIG.exists():
            logger.debug("No default config at %s, using built-in defaults",
                         DEFAULT_CONFIG)
            return BackupConfig()
        config_path = str(DEFAULT_CONFIG)

    path = Path(config_path)
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")
    with open(path) as f:
        data = json.load(f)
    logger.debug("Loaded config from %s", path)
    return BackupConfig.from_dict(data)
