"""Compression of the staging tree into the final zip archive."""

import logging
import os
import shutil

logger = logging.getLogger(__name__)

ALL_LABEL = "All"


class ArchiveError(Exception):
    """The archive could not be written."""


def sanitize_label(value: str) -> str:
    cleaned = "".join(ch for ch in value if ch.isalnum() or ch in ("-", "_", "."))
    return cleaned or "installation"


def archive_name(prefix: str, label: str, timestamp: str) -> str:
    """Return the archive file name for a run (without directory)."""
    return f"{prefix}_{sanitize_label(label)}_{timestamp}.zip"


def create_archive(staging_root: str, output_dir: str, filename: str) -> str:
    """Zip the contents of ``staging_root`` into ``output_dir/filename``.

    Returns the archive path. Raises ArchiveError on failure, after
    removing any partially written archive.
    """
    if not filename.endswith(".zip"):
        raise ValueError(f"archive name must end with .zip: {filename}")

    try:
        os.makedirs(output_dir, exist_ok=True)
    except OSError as exc:
        raise ArchiveError(f"Cannot create output directory {output_dir}: {exc}") from exc

    base_name = os.path.join(output_dir, filename[: -len(".zip")])
    archive_path = base_name + ".zip"
    try:
        written = shutil.make_archive(base_name, "zip", root_dir=staging_root)
    except (OSError, ValueError) as exc:
        if os.path.exists(archive_path):
            try:
                os.remove(archive_path)
            except OSError:
                logger.error("Could not remove partial archive %s", archive_path)
        raise ArchiveError(f"Failed to write {archive_path}: {exc}") from exc

    logger.info("Archive written: %s (%d bytes)", written, os.path.getsize(written))
    return written
