"""
fuzz-findings - persistence and crash-input deduplication for fuzzing findings

Records findings as ``.cifuzz-findings/<name>/finding.json``, stores their
crashing inputs in numbered, byte-deduplicated slots next to the record and
mirrors new inputs into a shared seed corpus. Concurrent writers on the same
machine are serialized by a per-finding advisory file lock.
"""

__version__ = "0.3.0"

from .content_store import store_input
from .exceptions import (
    FindingAlreadyExistsError,
    FindingError,
    FindingNotExistError,
    FuzzFindingsError,
    LockError,
    StorageError,
)
from .locking import finding_lock, with_lock
from .models import ErrorDetails, ErrorType, Finding, Severity, StackFrame
from .repository import FindingRepository, exists, list_findings, load_finding, save

__all__ = [
    "Finding",
    "ErrorType",
    "ErrorDetails",
    "Severity",
    "StackFrame",
    "FindingRepository",
    "exists",
    "save",
    "load_finding",
    "list_findings",
    "store_input",
    "finding_lock",
    "with_lock",
    "FuzzFindingsError",
    "FindingError",
    "FindingAlreadyExistsError",
    "FindingNotExistError",
    "LockError",
    "StorageError",
]
