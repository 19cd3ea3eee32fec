"""Exception hierarchy for fuzz-findings."""

from .artifact import ArchiveError
from .base import FuzzFindingsError
from .config import (
    ConfigFileError,
    ConfigurationError,
    InvalidConfigError,
)
from .finding import (
    FindingAlreadyExistsError,
    FindingDecodeError,
    FindingError,
    FindingNotExistError,
    LockError,
    StorageError,
)

__all__ = [
    "FuzzFindingsError",
    "FindingError",
    "FindingAlreadyExistsError",
    "FindingNotExistError",
    "LockError",
    "StorageError",
    "FindingDecodeError",
    "ArchiveError",
    "ConfigurationError",
    "InvalidConfigError",
    "ConfigFileError",
]
