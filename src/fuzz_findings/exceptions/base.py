"""Base exception for fuzz-findings.

Every error carries a stable ``code`` naming its kind and a ``details``
mapping with the values needed to act on it (finding name, path, failed
operation). Both survive into ``to_dict()``, which the CLI prints for
``--json`` output so scripts can branch on ``code`` instead of the message.
"""

from typing import Any, Dict, Optional


class FuzzFindingsError(Exception):
    """Base exception for all fuzz-findings errors."""

    code = "error"

    def __init__(self, message: str, details: Optional[Dict[str, str]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        if self.details:
            details_str = ", ".join(f"{k}={v}" for k, v in self.details.items())
            return f"{self.message} ({details_str})"
        return self.message

    def to_dict(self) -> Dict[str, Any]:
        """Machine-readable form: ``code``, ``message`` and the details."""
        return {"code": self.code, "message": self.message, **self.details}
