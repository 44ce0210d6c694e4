"""Temporary staging tree for a backup run."""

import logging
import os
import shutil
import tempfile

import psutil

logger = logging.getLogger(__name__)

STAGING_PREFIX = "enroute_backup_"


class StagingArea:
    """Process-private staging directory, removed on exit.

    Usage::

        with StagingArea(timestamp) as staging_root:
            ...  # copy files into staging_root
    """

    def __init__(self, timestamp: str, parent: str | None = None):
        self.timestamp = timestamp
        self.parent = parent
        self.path: str | None = None

    def create(self) -> str:
        if self.parent:
            os.makedirs(self.parent, exist_ok=True)
        self.path = tempfile.mkdtemp(
            prefix=f"{STAGING_PREFIX}{self.timestamp}_", dir=self.parent,
        )
        logger.debug("Created staging directory %s", self.path)
        return self.path

    def cleanup(self):
        if self.path is None:
            return
        shutil.rmtree(self.path, ignore_errors=True)
        if os.path.exists(self.path):
            logger.error("Could not fully remove staging directory %s", self.path)
        else:
            logger.debug("Removed staging directory %s", self.path)
        self.path = None

    def __enter__(self) -> str:
        return self.create()

    def __exit__(self, exc_type, exc, tb):
        self.cleanup()
        return False


def free_space_shortfall(path: str, required_bytes: int) -> int:
    """Return how many bytes ``path``'s filesystem is short of, or 0."""
    try:
        free = psutil.disk_usage(path).free
    except OSError as exc:
        logger.debug("Could not read free space for %s: %s", path, exc)
        return 0
    return max(0, required_bytes - free)
