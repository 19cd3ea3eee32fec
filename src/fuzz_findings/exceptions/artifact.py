"""Archive exceptions: bundling and extracting finding directories."""

from pathlib import Path
from typing import Optional

from .base import FuzzFindingsError


class ArchiveError(FuzzFindingsError):
    """Raised when an archive cannot be written or extracted."""

    code = "archive_error"

    def __init__(self, reason: str, path: Optional[Path] = None):
        details = {"reason": reason}
        if path is not None:
            details["path"] = str(path)

        super().__init__(f"Archive error: {reason}", details=details)
        self.reason = reason
        self.path = path
