"""Finding persistence exceptions: record identity, locking, storage I/O.

Callers branch on the exception class, never on the message:

    FindingError
    ├── FindingAlreadyExistsError   a record with this name is persisted
    ├── FindingNotExistError        the requested record is absent
    ├── LockError                   advisory lock acquire/release failed
    └── StorageError                filesystem or encoding failure
        └── FindingDecodeError      finding.json is malformed
"""

from pathlib import Path
from typing import Union

from .base import FuzzFindingsError

PathLike = Union[str, Path]


class FindingError(FuzzFindingsError):
    """Base class for finding persistence errors."""

    code = "finding_error"


class FindingAlreadyExistsError(FindingError):
    """Raised when saving a finding whose record is already on disk.

    Callers treat this as "merge into the existing finding", not as a
    failure to retry.
    """

    code = "already_exists"

    def __init__(self, name: str):
        super().__init__(f"Finding {name} already exists", details={"name": name})
        self.name = name


class FindingNotExistError(FindingError):
    """Raised when loading a finding that has no record on disk."""

    code = "not_exist"

    def __init__(self, name: str, path: PathLike):
        super().__init__(
            f"Finding {name} does not exist",
            details={"name": name, "path": str(path)},
        )
        self.name = name
        self.path = Path(path)


class LockError(FindingError):
    """Raised when the per-finding lock cannot be acquired or released."""

    code = "lock_failure"

    def __init__(self, path: PathLike, reason: str):
        super().__init__(
            f"Lock failure on {path}",
            details={"path": str(path), "reason": reason},
        )
        self.path = Path(path)
        self.reason = reason


class StorageError(FindingError):
    """Raised when a filesystem or encoding operation fails."""

    code = "io_failure"

    def __init__(self, operation: str, path: PathLike, reason: str):
        super().__init__(
            f"Failed to {operation} {path}",
            details={"operation": operation, "path": str(path), "reason": reason},
        )
        self.operation = operation
        self.path = Path(path)
        self.reason = reason


class FindingDecodeError(StorageError):
    """Raised when a finding.json cannot be decoded."""

    def __init__(self, path: PathLike, reason: str):
        super().__init__("decode", path, reason)
