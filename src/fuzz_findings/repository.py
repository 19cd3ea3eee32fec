"""Finding repository: enumerate, load and create finding records.

Records live in ``<project_dir>/.cifuzz-findings/<name>/finding.json``. The
directory listing is the only index: a name is taken exactly when its
``finding.json`` exists.

Usage:
    from fuzz_findings.repository import FindingRepository

    repo = FindingRepository("/path/to/project")
    try:
        repo.save(finding)
    except FindingAlreadyExistsError:
        pass  # same crash seen before, merge the input below
    repo.store_input(finding, seed_corpus_dir)

    for f in repo.list():
        print(f.name, f.created_at)
"""

from __future__ import annotations

import os
import tempfile
from pathlib import Path
from typing import List, Optional, Union

from .exceptions import (
    FindingAlreadyExistsError,
    FindingNotExistError,
    StorageError,
)
from .file_ops import ensure_dir, path_exists
from .logging_config import get_logger
from .models import Finding
from .serialization import decode_finding, encode_finding

logger = get_logger(__name__)

FINDINGS_DIR_NAME = ".cifuzz-findings"
FINDING_JSON_NAME = "finding.json"

PathLike = Union[str, Path]


def findings_root(project_dir: PathLike) -> Path:
    """Return the directory holding all findings of a project."""
    return Path(project_dir) / FINDINGS_DIR_NAME


def finding_dir_path(project_dir: PathLike, name: str) -> Path:
    """Return the directory of one finding.

    Raises:
        ValueError: If ``name`` cannot be used as a single directory name
    """
    if not name or name in (".", "..") or "/" in name or os.sep in name:
        raise ValueError(f"Invalid finding name: {name!r}")
    if os.altsep and os.altsep in name:
        raise ValueError(f"Invalid finding name: {name!r}")
    return findings_root(project_dir) / name


def exists(project_dir: PathLike, name: str) -> bool:
    """Return whether a record for ``name`` is already persisted."""
    return path_exists(finding_dir_path(project_dir, name) / FINDING_JSON_NAME)


def save(project_dir: PathLike, finding: Finding) -> Path:
    """
    Create the finding directory and write the record.

    The record is created exclusively: if two processes race to save the
    same name, exactly one succeeds.

    Returns:
        Path of the written finding.json

    Raises:
        FindingAlreadyExistsError: If a record with this name exists
        StorageError: If the directory or file cannot be written
    """
    finding_dir = ensure_dir(finding_dir_path(project_dir, finding.name))
    json_path = finding_dir / FINDING_JSON_NAME

    if path_exists(json_path):
        raise FindingAlreadyExistsError(finding.name)

    content = encode_finding(finding)
    try:
        with open(json_path, "x", encoding="utf-8") as f:
            f.write(content)
    except FileExistsError as e:
        raise FindingAlreadyExistsError(finding.name) from e
    except OSError as e:
        raise StorageError("write", json_path, e.strerror or str(e)) from e

    logger.debug(f"Saved finding {finding.name} to {json_path}")
    return json_path


def replace_record(project_dir: PathLike, finding: Finding) -> Path:
    """
    Overwrite an existing record in one step.

    The new content goes to a temporary file in the finding directory that
    is then renamed over finding.json, so readers see either the old or the
    new record. Callers hold the finding lock.

    Raises:
        FindingNotExistError: If there is no record to replace
        StorageError: If the record cannot be written
    """
    finding_dir = finding_dir_path(project_dir, finding.name)
    json_path = finding_dir / FINDING_JSON_NAME
    if not path_exists(json_path):
        raise FindingNotExistError(finding.name, json_path)

    content = encode_finding(finding)
    try:
        fd, tmp_name = tempfile.mkstemp(prefix=".finding-", suffix=".tmp", dir=finding_dir)
    except OSError as e:
        raise StorageError("write", finding_dir, e.strerror or str(e)) from e

    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(content)
        os.chmod(tmp_name, 0o644)
        os.replace(tmp_name, json_path)
    except OSError as e:
        try:
            os.remove(tmp_name)
        except OSError:
            logger.debug(f"Could not remove temporary record {tmp_name}")
        raise StorageError("write", json_path, e.strerror or str(e)) from e

    logger.debug(f"Updated finding {finding.name} at {json_path}")
    return json_path


def load_finding(project_dir: PathLike, name: str) -> Finding:
    """
    Read and decode one finding record.

    Raises:
        FindingNotExistError: If no record exists for ``name``
        FindingDecodeError: If the record is malformed
        StorageError: If the record cannot be read
    """
    json_path = finding_dir_path(project_dir, name) / FINDING_JSON_NAME
    try:
        with open(json_path, "rb") as f:
            content = f.read()
    except (FileNotFoundError, NotADirectoryError) as e:
        raise FindingNotExistError(name, json_path) from e
    except OSError as e:
        raise StorageError("read", json_path, e.strerror or str(e)) from e

    return decode_finding(content, json_path)


def list_findings(project_dir: PathLike) -> List[Finding]:
    """
    Load every finding of a project, newest first.

    A missing findings root yields an empty list. Directories without a
    finding.json (a record that is still being created) are skipped.
    Findings without a creation time sort last.

    Raises:
        FindingDecodeError: If a record is malformed
        StorageError: If the findings root cannot be read
    """
    root = findings_root(project_dir)
    try:
        with os.scandir(root) as it:
            entries = sorted(e.name for e in it if e.is_dir())
    except FileNotFoundError:
        return []
    except OSError as e:
        raise StorageError("list", root, e.strerror or str(e)) from e

    findings: List[Finding] = []
    for name in entries:
        try:
            findings.append(load_finding(project_dir, name))
        except FindingNotExistError:
            logger.debug(f"Skipping {root / name}: no {FINDING_JSON_NAME}")

    # Stable sort, so findings with equal timestamps keep name order
    findings.sort(key=_created_sort_key, reverse=True)
    return findings


def _created_sort_key(finding: Finding):
    if finding.created_at is None:
        return (0, 0.0)
    return (1, finding.created_at.timestamp())


class FindingRepository:
    """Findings of a single project directory.

    Attributes:
        project_dir: Root of the project the findings belong to.
    """

    def __init__(self, project_dir: PathLike) -> None:
        self.project_dir = Path(project_dir)

    @property
    def findings_dir(self) -> Path:
        return findings_root(self.project_dir)

    def finding_dir(self, name: str) -> Path:
        return finding_dir_path(self.project_dir, name)

    def exists(self, name: str) -> bool:
        return exists(self.project_dir, name)

    def save(self, finding: Finding) -> Path:
        return save(self.project_dir, finding)

    def load(self, name: str) -> Finding:
        return load_finding(self.project_dir, name)

    def list(self) -> List[Finding]:
        return list_findings(self.project_dir)

    def store_input(self, finding: Finding, seed_corpus_dir: PathLike) -> Optional[Path]:
        """Relocate the finding's crashing input, see :func:`content_store.store_input`."""
        from .content_store import store_input

        return store_input(finding, self.project_dir, seed_corpus_dir)
