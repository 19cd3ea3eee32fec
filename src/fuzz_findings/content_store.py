"""Content store for crashing inputs.

Each finding directory holds its inputs in numbered slots
(``crashing-input-1``, ``crashing-input-2``, ...). A new input is compared
byte for byte with the existing slots: an identical input is a duplicate and
adds nothing, a different input that triggers the same finding gets the next
free slot. Every new slot is mirrored into the seed corpus as
``<finding-name>-<slot>``.

Slots are never reused or renumbered. Removing one out-of-band leaves a gap
that the next input fills, which keeps the scan correct without a counter.

Failures are not rolled back: a crash between the copies and the removal of
the source can leave an extra corpus entry, never a lost input.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Optional, Tuple, Union

from .exceptions import FindingNotExistError, StorageError
from .file_ops import copy_file, ensure_dir, files_equal, path_exists, remove_file
from .locking import finding_lock
from .logging_config import get_logger
from .models import Finding
from .repository import finding_dir_path, load_finding, replace_record

logger = get_logger(__name__)

CRASHING_INPUT_PREFIX = "crashing-input"

PathLike = Union[str, Path]


def slot_path(finding_dir: PathLike, index: int) -> Path:
    return Path(finding_dir) / f"{CRASHING_INPUT_PREFIX}-{index}"


def corpus_path(seed_corpus_dir: PathLike, name: str, index: int) -> Path:
    return Path(seed_corpus_dir) / f"{name}-{index}"


def store_input(
    finding: Finding,
    project_dir: PathLike,
    seed_corpus_dir: PathLike,
) -> Optional[Path]:
    """
    Move the finding's crashing input into its finding directory.

    Runs under the finding's lock. On success the source file is removed,
    ``finding.input_file`` points at the slot relative to ``project_dir``,
    and log lines mentioning the source path mention the slot instead
    (relative to the working directory). If the finding was saved first and
    its record still names the source file, the record is rewritten the same
    way. A duplicate input only removes the source file.

    Args:
        finding: Finding whose ``input_file`` names the input to store
        project_dir: Project root holding the findings directory
        seed_corpus_dir: Corpus directory that receives a copy of new inputs

    Returns:
        Path of the newly written slot, or None if the input was a
        duplicate of an existing slot

    Raises:
        StorageError: If reading, copying or removing a file fails
        LockError: If the finding lock cannot be acquired or released
    """
    finding_dir = finding_dir_path(project_dir, finding.name)
    with finding_lock(finding_dir):
        return _store_locked(finding, Path(project_dir), Path(seed_corpus_dir), finding_dir)


def _store_locked(
    finding: Finding,
    project_dir: Path,
    seed_corpus_dir: Path,
    finding_dir: Path,
) -> Optional[Path]:
    original = finding.input_file
    if not original:
        raise StorageError("store input for", finding_dir, "finding has no input file")

    source = Path(original)
    if not source.is_absolute() and not path_exists(source):
        # Already stored: input_file is relative to the project directory
        source = project_dir / source
    if not path_exists(source):
        raise StorageError("read", original, "input file does not exist")

    index = 1
    while True:
        target = slot_path(finding_dir, index)
        if not path_exists(target):
            break

        if _same_file(target, source):
            logger.debug(f"Input {original} is already stored for {finding.name}")
            return None

        if files_equal(target, source):
            # Don't add the duplicate to the seed corpus either: the input
            # is there already, or the user removed it on purpose.
            logger.debug(f"Input {original} duplicates {target}, discarding it")
            remove_file(source)
            return None

        index += 1

    copy_file(source, target)

    ensure_dir(seed_corpus_dir)
    seed_path = corpus_path(seed_corpus_dir, finding.name, index)
    copy_file(source, seed_path)
    finding._seed_path = str(seed_path)

    remove_file(source)

    log_path, input_path = _relocated_paths(target, project_dir)
    _point_at_slot(finding, original, log_path, input_path)
    _update_record(finding.name, original, log_path, input_path, project_dir)
    logger.debug(f"Moved input file from {original} to {target}")
    return target


def _same_file(first: Path, second: Path) -> bool:
    try:
        return os.path.samefile(first, second)
    except OSError as e:
        raise StorageError("stat", second, e.strerror or str(e)) from e


def _relocated_paths(target: Path, project_dir: Path) -> Tuple[str, str]:
    """Return the slot path as written to logs and to input_file."""
    # Logs may be shared with others, so they get a relative path that
    # does not reveal the user's directory layout.
    try:
        log_path = os.path.relpath(target, os.getcwd())
        input_path = os.path.relpath(target, project_dir)
    except (OSError, ValueError) as e:
        raise StorageError("relativize", target, str(e)) from e
    return log_path, input_path


def _point_at_slot(finding: Finding, original: str, log_path: str, input_path: str) -> None:
    finding.logs[:] = [line.replace(original, log_path) for line in finding.logs]
    finding.input_file = input_path


def _update_record(name: str, original: str, log_path: str, input_path: str, project_dir: Path) -> None:
    """Rewrite a saved record that still names the moved source file."""
    try:
        record = load_finding(project_dir, name)
    except FindingNotExistError:
        # Not saved yet, the caller saves the updated finding
        return

    if record.input_file != original:
        # The record describes an earlier input, this one is merged in
        return

    _point_at_slot(record, original, log_path, input_path)
    replace_record(project_dir, record)
