"""Gzip-compressed tar bundles of finding directories.

A manifest maps paths inside the archive to files or directories on disk.
Entries are written in sorted order of their archive path so the same
manifest always yields the same archive layout.
"""

from __future__ import annotations

import os
import posixpath
import shutil
import tarfile
from pathlib import Path, PurePosixPath
from typing import BinaryIO, Dict, Union

from .exceptions import ArchiveError
from .logging_config import get_logger

logger = get_logger(__name__)

Manifest = Dict[str, str]


def write_archive(out: BinaryIO, manifest: Manifest) -> None:
    """
    Write a gzip-compressed tar holding the files and directories of ``manifest``.

    Directories in the manifest become directory entries only; their
    contents are not added. Use :func:`add_dir_to_manifest` to register a
    whole tree. Symlinks are followed.

    Raises:
        ArchiveError: If an entry cannot be read or written
    """
    try:
        with tarfile.open(fileobj=out, mode="w:gz", dereference=True) as tar:
            for archive_path in sorted(manifest):
                _add_to_archive(tar, archive_path, manifest[archive_path])
    except (OSError, tarfile.TarError) as e:
        raise ArchiveError(f"failed to write archive: {e}") from e


def _add_to_archive(tar: tarfile.TarFile, archive_path: str, abs_path: str) -> None:
    try:
        info = tar.gettarinfo(abs_path, arcname=archive_path)
    except OSError as e:
        raise ArchiveError(f"failed to add {abs_path!r} at {archive_path!r}: {e}", Path(abs_path)) from e

    if info.isfile():
        with open(abs_path, "rb") as f:
            tar.addfile(info, f)
    else:
        tar.addfile(info)


def add_dir_to_manifest(manifest: Manifest, archive_base_path: str, directory: Union[str, Path]) -> None:
    """Register ``directory`` and everything below it under ``archive_base_path``."""
    directory = Path(directory)
    if not directory.is_dir():
        raise ArchiveError("not a directory", directory)

    manifest[archive_base_path] = str(directory)
    for dirpath, dirnames, filenames in os.walk(directory):
        dirnames.sort()
        rel_dir = Path(dirpath).relative_to(directory)
        for name in dirnames + sorted(filenames):
            rel = PurePosixPath(*rel_dir.parts, name)
            manifest[posixpath.join(archive_base_path, str(rel))] = os.path.join(dirpath, name)


def extract_archive(src: BinaryIO, directory: Union[str, Path]) -> None:
    """
    Extract a gzip-compressed tar into ``directory``.

    Only regular files and directories are supported.

    Raises:
        ArchiveError: On unsupported entry types, entries that would land
            outside ``directory``, or read/write failures
    """
    dest = Path(directory).resolve()
    try:
        with tarfile.open(fileobj=src, mode="r:gz") as tar:
            for member in tar:
                target = (dest / member.name).resolve()
                if target != dest and dest not in target.parents:
                    raise ArchiveError(f"entry escapes destination: {member.name}")

                if member.isdir():
                    target.mkdir(parents=True, exist_ok=True)
                elif member.isfile():
                    target.parent.mkdir(parents=True, exist_ok=True)
                    extracted = tar.extractfile(member)
                    if extracted is None:
                        raise ArchiveError(f"cannot read entry: {member.name}")
                    with extracted, open(target, "wb") as f:
                        shutil.copyfileobj(extracted, f)
                    os.chmod(target, member.mode & 0o777)
                else:
                    raise ArchiveError(f"unsupported file type: {member.type!r}")
    except (OSError, tarfile.TarError) as e:
        raise ArchiveError(f"failed to extract archive: {e}", dest) from e
