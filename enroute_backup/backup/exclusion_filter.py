"""Extension-based exclusion of files from the backup."""

import os


def is_excluded(file_path: str, exclusions) -> bool:
    """Return True if the file's lower-cased extension is in ``exclusions``.

    ``exclusions`` holds lower-case extensions with their leading dot.
    Files without an extension are never excluded.
    """
    _, ext = os.path.splitext(file_path)
    if not ext:
        return False
    return ext.lower() in exclusions
