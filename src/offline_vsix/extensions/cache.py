"""
Cache gate for downloaded artifacts.

A cached artifact is a file named exactly as locator.file_name() in the
destination directory. Its existence is the only signal; the content is
never inspected.
"""

import os

from .interfaces import Pathish


def is_cached(file_path: Pathish) -> bool:
    """Return True if an artifact already exists at `file_path`."""
    return os.path.exists(file_path)


def should_fetch(file_path: Pathish, force: bool) -> bool:
    """
    Decide whether an artifact must be downloaded.

    Parameters:
        file_path (Pathish): Local path of the artifact.
        force (bool): Re-download even when the file exists.

    Returns:
        bool: `True` when `force` is set or nothing exists at `file_path`, `False` otherwise.
    """
    return force or not is_cached(file_path)
