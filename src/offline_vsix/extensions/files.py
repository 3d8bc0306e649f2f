"""
File Operations for the offline-vsix pipeline

Filesystem capability used by the orchestrator and the fetcher: directory
creation, existence checks and atomic binary writes.
"""

import os
import tempfile
from pathlib import Path
from typing import IO, Callable, Optional

from offline_vsix.log_utils import logger

from .interfaces import Pathish


def _sanitize_path_component(component: Optional[str]) -> Optional[str]:
    """
    Validate a single filesystem path component.

    Returns the component trimmed of surrounding whitespace if it is a safe, relative
    path segment. Returns None when the input is None or not a string, or when the
    component is empty after trimming, equals "." or "..", is an absolute path,
    contains a null byte, or contains a path separator.

    Parameters:
        component (Optional[str]): The candidate path component.

    Returns:
        Optional[str]: The trimmed, safe component, or `None` if it is unsafe.
    """
    if not isinstance(component, str):
        return None

    sanitized = component.strip()
    if not sanitized or sanitized in {".", ".."}:
        return None

    if os.path.isabs(sanitized):
        return None

    if "\x00" in sanitized:
        return None

    for separator in (os.sep, os.altsep):
        if separator and separator in sanitized:
            return None

    return sanitized


def _atomic_write(
    file_path: Pathish, writer_func: Callable[[IO[bytes]], None], suffix: str = ".tmp"
) -> None:
    """
    Write data to a file atomically by writing to a temporary file and replacing the target on success.

    The temporary file lives in the destination directory so os.replace() never
    crosses filesystems. On failure the temporary file is removed and the target
    is left untouched.

    Parameters:
        file_path (Pathish): Destination file path to be written.
        writer_func (Callable): Receives an open binary file object and writes the content to it.
        suffix (str): Suffix of the temporary file name.

    Raises:
        OSError: If the temporary file cannot be created, written, or moved into place.
    """
    target = os.fspath(file_path)
    temp_fd, temp_path = tempfile.mkstemp(
        dir=os.path.dirname(target) or ".", prefix="tmp-", suffix=suffix
    )
    try:
        with os.fdopen(temp_fd, "wb") as temp_f:
            writer_func(temp_f)
        os.replace(temp_path, target)
    finally:
        if os.path.exists(temp_path):
            try:
                os.remove(temp_path)
            except OSError as e:
                logger.debug(f"Could not remove temporary file {temp_path}: {e}")


class FileOperations:
    """
    Provides the file operations needed by the download pipeline.

    Includes methods for:
    - Recursive directory creation
    - Existence checks
    - Atomic binary writes
    """

    def ensure_directory_exists(self, directory: Pathish) -> Path:
        """
        Create `directory` (and its parents) if missing.

        Returns:
            Path: The directory path.

        Raises:
            OSError: If the directory cannot be created or the path is a file.
        """
        path = Path(directory)
        if not path.exists():
            logger.debug(f"Creating directory {path}")
        path.mkdir(parents=True, exist_ok=True)
        return path

    def exists(self, file_path: Pathish) -> bool:
        """Return True if `file_path` exists."""
        return os.path.exists(file_path)

    def atomic_write_bytes(self, file_path: Pathish, content: bytes) -> int:
        """
        Atomically write `content` to `file_path`.

        Returns:
            int: Number of bytes written.

        Raises:
            OSError: If the write or the final replace fails.
        """

        def _write_content(f: IO[bytes]) -> None:
            f.write(content)

        _atomic_write(file_path, _write_content, suffix=".part")
        return len(content)

    def get_file_size(self, file_path: Pathish) -> int:
        """Return the size of `file_path` in bytes."""
        return os.path.getsize(file_path)
