"""Expansion of resolved items into concrete file copy tasks.

Destination layout inside an installation's backup subfolder::

    <installation>/
    +-- Drivers/             <- directory item keeps its name
    |   +-- Router/x.drv
    +-- Prefs.xml            <- file item lands at the top level
"""

import logging
import os
from dataclasses import dataclass, field

from enroute_backup.backup.exclusion_filter import is_excluded

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CopyTask:
    """One planned file copy."""
    source: str
    destination: str  # relative to the installation's backup subfolder


@dataclass
class PlanResult:
    """Copy tasks for one installation plus what could not be planned.

    ``unreadable`` holds directories that could not be listed and
    ``duplicates`` the file items whose flattened name was already taken.
    """
    tasks: list[CopyTask] = field(default_factory=list)
    missing: list[str] = field(default_factory=list)
    unreadable: list[str] = field(default_factory=list)
    duplicates: list[str] = field(default_factory=list)
    excluded: int = 0

    @property
    def total_bytes(self) -> int:
        total = 0
        for task in self.tasks:
            try:
                total += os.path.getsize(task.source)
            except OSError:
                continue
        return total


def _walk_files(directory: str, onerror=None):
    """Yield every file below ``directory`` in sorted, depth-first order."""
    for dirpath, dirnames, filenames in os.walk(directory, onerror=onerror):
        dirnames.sort()
        for name in sorted(filenames):
            yield os.path.join(dirpath, name)


def plan(installation_root: str, items, exclusions) -> PlanResult:
    """Build the full list of copy tasks for one installation."""
    result = PlanResult()
    planned: set[str] = set()

    def on_walk_error(exc: OSError):
        logger.warning("Cannot list %s, skipping: %s", exc.filename, exc)
        result.unreadable.append(str(exc.filename))

    for item in items:
        source = os.path.join(installation_root, item)

        if os.path.isdir(source):
            for file_path in _walk_files(source, onerror=on_walk_error):
                if is_excluded(file_path, exclusions):
                    result.excluded += 1
                    continue
                rel = os.path.relpath(file_path, installation_root)
                planned.add(os.path.normcase(rel))
                result.tasks.append(CopyTask(source=file_path, destination=rel))

        elif os.path.isfile(source):
            if is_excluded(source, exclusions):
                result.excluded += 1
                continue
            dest = os.path.basename(source)
            if os.path.normcase(dest) in planned:
                logger.warning("%s flattens onto an already planned %s; the later copy wins",
                               item, dest)
                result.duplicates.append(item)
            planned.add(os.path.normcase(dest))
            result.tasks.append(CopyTask(source=source, destination=dest))

        else:
            logger.warning("Item not found in %s: %s", installation_root, item)
            result.missing.append(item)

    logger.info("Planned %d file(s) from %s (%d missing, %d excluded, %d unreadable)",
                len(result.tasks), installation_root,
                len(result.missing), result.excluded, len(result.unreadable))
    return result
