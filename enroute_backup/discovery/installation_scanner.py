"""Installation discovery.

Walks each configured root exactly two levels deep and collects the
directories whose name matches the configured pattern set::

    root/
    +-- EnRoute9/            <- level 1, tested
    |   +-- Plugins/         <- level 2, tested
    +-- Program Files/       <- level 1, tested
        +-- EzyNest5/        <- level 2, tested
            +-- ...          <- never visited
"""

import logging
import os
from dataclasses import dataclass

import psutil

from enroute_backup.discovery.path_matcher import matches

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class InstallationPath:
    """A directory recognised as an installation of the application family."""
    path: str

    @property
    def name(self) -> str:
        """Leaf directory name, used as the backup subfolder name."""
        return os.path.basename(os.path.normpath(self.path))

    def __str__(self) -> str:
        return self.path


def list_subdirectories(path: str) -> list[str]:
    """Return the immediate subdirectories of ``path``, sorted by name.

    Directories that cannot be listed yield an empty list.
    """
    try:
        with os.scandir(path) as it:
            entries = []
            for entry in it:
                try:
                    if entry.is_dir():
                        entries.append(entry)
                except OSError:
                    continue
    except OSError as exc:
        logger.warning("Cannot list %s, skipping: %s", path, exc)
        return []
    entries.sort(key=lambda e: e.name)
    return [e.path for e in entries]


def scan(roots, patterns) -> list[InstallationPath]:
    """Find installation directories at levels 1 and 2 below each root.

    Result order is root order, then level-1 order, then for each level-1
    directory its own match followed by its level-2 matches.
    """
    roots = list(roots)
    found: list[InstallationPath] = []
    for root in roots:
        if not os.path.isdir(root):
            logger.debug("Scan root not present, skipping: %s", root)
            continue

        for level1 in list_subdirectories(root):
            if matches(os.path.basename(level1), patterns):
                found.append(InstallationPath(level1))
                logger.debug("Found installation: %s", level1)

            for level2 in list_subdirectories(level1):
                if matches(os.path.basename(level2), patterns):
                    found.append(InstallationPath(level2))
                    logger.debug("Found installation: %s", level2)

    logger.info("Scan complete: %d installation(s) under %d root(s)",
                len(found), len(roots))
    return found


def mounted_drive_roots() -> list[str]:
    """Return the mount points of all mounted partitions."""
    roots = []
    for part in psutil.disk_partitions(all=False):
        if part.mountpoint and part.mountpoint not in roots:
            roots.append(part.mountpoint)
    return roots


def find_running_instances(patterns) -> list[tuple[int, str]]:
    """Return (pid, name) of running processes whose name matches a pattern.

    The executable extension is ignored, so ``EnRoute.exe`` matches
    ``EnRoute*`` as well as an exact ``EnRoute`` pattern.
    """
    running = []
    for proc in psutil.process_iter(["pid", "name"]):
        try:
            name = proc.info["name"]
            if not name:
                continue
            stem, _ = os.path.splitext(name)
            if matches(name, patterns) or matches(stem, patterns):
                running.append((proc.info["pid"], name))
        except (psutil.NoSuchProcess, psutil.AccessDenied, psutil.ZombieProcess):
            continue
    return running
