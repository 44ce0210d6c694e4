"""Selection of the top-level items to back up from an installation."""

import enum
import logging
import os

logger = logging.getLogger(__name__)


class BackupMode(enum.Enum):
    """Policy deciding which items of an installation are copied."""
    CURATED = "curated"
    FULL_TREE = "full"


def top_level_items(installation_root: str) -> list[str]:
    """Return the sorted first path segments of every file under the root.

    Folders that contain no files anywhere beneath them are not returned.
    """
    segments: set[str] = set()

    def on_walk_error(exc: OSError):
        logger.warning("Cannot list %s, skipping: %s", exc.filename, exc)

    for dirpath, _dirnames, filenames in os.walk(installation_root, onerror=on_walk_error):
        if not filenames:
            continue
        rel_dir = os.path.relpath(dirpath, installation_root)
        if rel_dir == os.curdir:
            segments.update(filenames)
        else:
            segments.add(rel_dir.split(os.sep, 1)[0])
    return sorted(segments)


def resolve(installation_root: str, mode: BackupMode, manifest) -> list[str]:
    """Return the relative item names to copy for ``mode``.

    Curated mode returns the manifest unchanged; existence is checked
    later during planning.
    """
    if mode is BackupMode.CURATED:
        return list(manifest)
    if mode is BackupMode.FULL_TREE:
        items = top_level_items(installation_root)
        logger.debug("Full-tree items for %s: %s", installation_root, items)
        return items
    raise ValueError(f"Unknown backup mode: {mode!r}")
