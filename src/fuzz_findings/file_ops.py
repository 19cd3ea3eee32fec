"""
Filesystem operations for fuzz-findings.

Thin wrappers over os/shutil that translate ``OSError`` into
:class:`StorageError` carrying the operation and path.
"""

import os
import shutil
from pathlib import Path
from typing import Union

from .exceptions import StorageError

PathLike = Union[str, Path]

# Read size for content comparison
CHUNK_SIZE = 64 * 1024


def path_exists(path: PathLike) -> bool:
    """
    Check whether a path exists.

    Unlike ``os.path.exists``, errors other than "not found" (permission
    denied, I/O errors) are raised rather than reported as missing.

    Raises:
        StorageError: If the path cannot be inspected
    """
    try:
        os.stat(path)
    except FileNotFoundError:
        return False
    except NotADirectoryError:
        return False
    except OSError as e:
        raise StorageError("stat", path, e.strerror or str(e)) from e
    return True


def ensure_dir(path: PathLike) -> Path:
    """Create a directory and its parents if missing."""
    try:
        os.makedirs(path, mode=0o755, exist_ok=True)
    except OSError as e:
        raise StorageError("create directory", path, e.strerror or str(e)) from e
    return Path(path)


def files_equal(first: PathLike, second: PathLike) -> bool:
    """
    Compare the full byte content of two files.

    Args:
        first: File to compare
        second: File to compare against

    Returns:
        True if both files hold identical bytes

    Raises:
        StorageError: If either file cannot be read
    """
    try:
        if os.path.getsize(first) != os.path.getsize(second):
            return False
    except OSError as e:
        raise StorageError("stat", e.filename or first, e.strerror or str(e)) from e

    try:
        with open(first, "rb") as a, open(second, "rb") as b:
            while True:
                chunk_a = a.read(CHUNK_SIZE)
                chunk_b = b.read(CHUNK_SIZE)
                if chunk_a != chunk_b:
                    return False
                if not chunk_a:
                    return True
    except OSError as e:
        raise StorageError("read", e.filename or first, e.strerror or str(e)) from e


def copy_file(source: PathLike, target: PathLike) -> Path:
    """
    Copy file content and permission bits.

    A copy rather than a rename, so source and target may live on
    different filesystems.

    Raises:
        StorageError: If the copy fails
    """
    try:
        return Path(shutil.copy(source, target))
    except OSError as e:
        raise StorageError("copy", source, e.strerror or str(e)) from e


def remove_file(path: PathLike) -> None:
    """Remove a single file."""
    try:
        os.remove(path)
    except OSError as e:
        raise StorageError("remove", path, e.strerror or str(e)) from e
