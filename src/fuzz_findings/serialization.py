"""JSON encoding of finding records.

The layout of ``finding.json`` is consumed by other tooling, so key names,
key order and the omission rules below are fixed:

- Optional fields are omitted when empty (``""``, ``0``, ``[]``, ``None``).
- ``InputFile`` and ``created_at`` are always written.
- ``input_data`` is base64 (standard alphabet, padded).
- ``created_at`` is RFC 3339 with ``Z`` for UTC; an unset timestamp is
  written as ``0001-01-01T00:00:00Z`` and read back as ``None``.
- Stack frames use ``SourceFile``, ``Line``, ``Column``, ``FrameNumber`` and
  ``Function`` and are written in full.
"""

from __future__ import annotations

import base64
import binascii
import json
import re
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from .exceptions import FindingDecodeError
from .models import ErrorDetails, ErrorType, Finding, Severity, StackFrame

ZERO_TIME = "0001-01-01T00:00:00Z"

_TIMESTAMP_RE = re.compile(
    r"^(\d{4}-\d{2}-\d{2})[Tt](\d{2}:\d{2}:\d{2})(?:\.(\d+))?([Zz]|[+-]\d{2}:\d{2})$"
)


# ── Timestamps ───────────────────────────────────────────────────────


def format_timestamp(value: Optional[datetime]) -> str:
    """Format a datetime as RFC 3339, trimming trailing fractional zeros.

    Naive datetimes are taken to be UTC.
    """
    if value is None:
        return ZERO_TIME
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)

    text = value.strftime("%Y-%m-%dT%H:%M:%S")
    if value.microsecond:
        text += f".{value.microsecond:06d}".rstrip("0")

    offset = value.utcoffset() or timedelta(0)
    if offset == timedelta(0):
        return text + "Z"

    total = int(offset.total_seconds())
    sign = "+" if total >= 0 else "-"
    total = abs(total)
    return f"{text}{sign}{total // 3600:02d}:{(total % 3600) // 60:02d}"


def parse_timestamp(text: str) -> Optional[datetime]:
    """Parse an RFC 3339 timestamp, accepting nanosecond precision.

    Raises:
        ValueError: If the text is not a valid timestamp
    """
    if not text or text == ZERO_TIME:
        return None

    match = _TIMESTAMP_RE.match(text)
    if match is None:
        raise ValueError(f"invalid timestamp: {text!r}")
    date_part, time_part, fraction, zone = match.groups()

    parsed = datetime.strptime(f"{date_part}T{time_part}", "%Y-%m-%dT%H:%M:%S")
    if fraction:
        # Python datetimes stop at microseconds
        parsed = parsed.replace(microsecond=int(fraction[:6].ljust(6, "0")))

    if zone in ("Z", "z"):
        tz = timezone.utc
    else:
        sign = 1 if zone[0] == "+" else -1
        hours, minutes = int(zone[1:3]), int(zone[4:6])
        tz = timezone(sign * timedelta(hours=hours, minutes=minutes))

    result = parsed.replace(tzinfo=tz)
    if result.year == 1 and result.month == 1 and result.day == 1 and not result.time():
        return None
    return result


# ── Encoding ─────────────────────────────────────────────────────────


def _details_to_dict(details: ErrorDetails) -> Dict[str, Any]:
    data: Dict[str, Any] = {}
    if details.id:
        data["id"] = details.id
    if details.name:
        data["name"] = details.name
    if details.severity is not None:
        severity: Dict[str, Any] = {}
        if details.severity.description:
            severity["description"] = details.severity.description
        if details.severity.score:
            severity["score"] = details.severity.score
        data["severity"] = severity
    return data


def _frame_to_dict(frame: StackFrame) -> Dict[str, Any]:
    return {
        "SourceFile": frame.source_file,
        "Line": frame.line,
        "Column": frame.column,
        "FrameNumber": frame.frame_number,
        "Function": frame.function,
    }


def finding_to_dict(finding: Finding) -> Dict[str, Any]:
    """Convert a finding to its JSON-ready dict, in contract key order."""
    data: Dict[str, Any] = {}
    if finding.name:
        data["name"] = finding.name
    if finding.type:
        data["type"] = finding.type.value if isinstance(finding.type, ErrorType) else finding.type
    if finding.input_data:
        data["input_data"] = base64.b64encode(finding.input_data).decode("ascii")
    if finding.logs:
        data["logs"] = list(finding.logs)
    if finding.details:
        data["details"] = finding.details
    if finding.human_readable_input:
        data["human_readable_input"] = finding.human_readable_input
    if finding.more_details is not None:
        data["more_details"] = _details_to_dict(finding.more_details)
    if finding.tag:
        data["tag"] = finding.tag
    if finding.short_description:
        data["short_description"] = finding.short_description
    data["InputFile"] = finding.input_file
    data["created_at"] = format_timestamp(finding.created_at)
    if finding.stack_trace:
        data["stack_trace"] = [_frame_to_dict(f) for f in finding.stack_trace]
    return data


def encode_finding(finding: Finding) -> str:
    """Encode a finding as pretty-printed JSON (2-space indent)."""
    return json.dumps(finding_to_dict(finding), indent=2, ensure_ascii=False)


# ── Decoding ─────────────────────────────────────────────────────────


def _expect(data: Dict[str, Any], key: str, kind: Any, default: Any) -> Any:
    value = data.get(key)
    if value is None:
        return default
    kinds = kind if isinstance(kind, tuple) else (kind,)
    # bool is an int subclass; JSON true/false is never a valid number here
    if not isinstance(value, kinds) or isinstance(value, bool):
        expected = "/".join(k.__name__ for k in kinds)
        raise TypeError(f"field {key!r} must be {expected}, got {type(value).__name__}")
    return value


def _error_type(value: str) -> Union[ErrorType, str]:
    try:
        return ErrorType(value)
    except ValueError:
        return value


def _details_from_dict(data: Dict[str, Any]) -> ErrorDetails:
    if not isinstance(data, dict):
        raise TypeError("field 'more_details' must be an object")
    severity = None
    raw_severity = data.get("severity")
    if raw_severity is not None:
        if not isinstance(raw_severity, dict):
            raise TypeError("field 'severity' must be an object")
        severity = Severity(
            description=_expect(raw_severity, "description", str, ""),
            score=float(_expect(raw_severity, "score", (int, float), 0.0)),
        )
    return ErrorDetails(
        id=_expect(data, "id", str, ""),
        name=_expect(data, "name", str, ""),
        severity=severity,
    )


def _frame_from_dict(data: Dict[str, Any]) -> StackFrame:
    if not isinstance(data, dict):
        raise TypeError("stack frames must be objects")
    return StackFrame(
        source_file=_expect(data, "SourceFile", str, ""),
        line=_expect(data, "Line", int, 0),
        column=_expect(data, "Column", int, 0),
        frame_number=_expect(data, "FrameNumber", int, 0),
        function=_expect(data, "Function", str, ""),
    )


def finding_from_dict(data: Dict[str, Any]) -> Finding:
    """Build a finding from a decoded finding.json object.

    Raises:
        TypeError: If a field has the wrong JSON type
        ValueError: If a field has an invalid value (timestamp, base64)
    """
    if not isinstance(data, dict):
        raise TypeError("finding record must be a JSON object")

    raw_input = _expect(data, "input_data", str, "")
    try:
        input_data = base64.b64decode(raw_input, validate=True) if raw_input else b""
    except binascii.Error as e:
        raise ValueError(f"field 'input_data' is not valid base64: {e}") from e

    logs: List[str] = list(_expect(data, "logs", list, []))
    if not all(isinstance(line, str) for line in logs):
        raise TypeError("field 'logs' must be a list of strings")

    raw_details = data.get("more_details")
    raw_type = _expect(data, "type", str, "")

    return Finding(
        name=_expect(data, "name", str, ""),
        type=_error_type(raw_type) if raw_type else "",
        input_data=input_data,
        logs=logs,
        details=_expect(data, "details", str, ""),
        human_readable_input=_expect(data, "human_readable_input", str, ""),
        more_details=_details_from_dict(raw_details) if raw_details is not None else None,
        tag=_expect(data, "tag", int, 0),
        short_description=_expect(data, "short_description", str, ""),
        input_file=_expect(data, "InputFile", str, ""),
        created_at=parse_timestamp(_expect(data, "created_at", str, "")),
        stack_trace=[_frame_from_dict(f) for f in _expect(data, "stack_trace", list, [])],
    )


def decode_finding(text: Union[str, bytes], path: Union[str, Path] = "<memory>") -> Finding:
    """Decode finding.json content.

    Raises:
        FindingDecodeError: If the content is not a valid finding record
    """
    try:
        data = json.loads(text)
        return finding_from_dict(data)
    except (ValueError, TypeError) as e:
        raise FindingDecodeError(path, str(e)) from e
