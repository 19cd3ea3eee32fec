"""Data models for fuzz-findings.

A ``Finding`` is one detected fault (crash, sanitizer report, runtime error)
together with the evidence needed to reproduce it. The dataclasses here are
plain values; the on-disk ``finding.json`` encoding lives in
:mod:`fuzz_findings.serialization`.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, List, Optional, Union


class ErrorType(str, Enum):
    """Classification of a finding.

    The values are part of the finding.json contract and must stay the
    uppercase member names.
    """

    UNKNOWN_ERROR = "UNKNOWN_ERROR"
    COMPILATION_ERROR = "COMPILATION_ERROR"
    CRASH = "CRASH"
    WARNING = "WARNING"
    RUNTIME_ERROR = "RUNTIME_ERROR"


@dataclass
class Severity:
    description: str = ""
    score: float = 0.0


@dataclass
class ErrorDetails:
    """Classification details such as a CWE id and its severity."""

    id: str = ""
    name: str = ""
    severity: Optional[Severity] = None


@dataclass
class StackFrame:
    source_file: str = ""
    line: int = 0
    column: int = 0
    frame_number: int = 0
    function: str = ""


@dataclass
class Finding:
    """A single persisted fault plus its supporting evidence.

    ``input_file`` starts out as the (usually temporary, absolute) path
    the fuzzer wrote the crashing input to. Storing the input rewrites it
    to the slot path relative to the project directory.
    """

    name: str = ""
    type: Union[ErrorType, str] = ""
    input_data: bytes = b""
    logs: List[str] = field(default_factory=list)
    details: str = ""
    human_readable_input: str = ""
    more_details: Optional[ErrorDetails] = None
    tag: int = 0
    short_description: str = ""
    input_file: str = ""
    created_at: Optional[datetime] = None
    stack_trace: List[StackFrame] = field(default_factory=list)

    # Path of the seed corpus copy, set by store_input. Never serialized.
    _seed_path: str = field(default="", init=False, repr=False, compare=False)

    @property
    def seed_path(self) -> str:
        return self._seed_path

    def get_details(self) -> str:
        return self.details

    def to_dict(self) -> dict[str, Any]:
        from .serialization import finding_to_dict

        return finding_to_dict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Finding:
        from .serialization import finding_from_dict

        return finding_from_dict(data)
