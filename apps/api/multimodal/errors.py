"""Typed failures raised by the reel processing stages."""

from enum import Enum
from typing import Optional


class ReelErrorKind(str, Enum):
    DEPENDENCY_MISSING = "dependency_missing"
    DOWNLOAD_FAILED = "download_failed"
    EXTRACTION_FAILED = "extraction_failed"
    MEDIA_NOT_AVAILABLE = "media_not_available"
    UPSTREAM_FAILED = "upstream_failed"
    DUPLICATE_REEL = "duplicate_reel"


class ReelProcessingError(Exception):
    """Single exception type for every classified stage failure.

    Callers switch on ``kind``. ``detail`` carries diagnostic output (process
    stderr, raw model content) meant for logs, not for end users.
    """

    def __init__(self, kind: ReelErrorKind, message: str, detail: Optional[str] = None):
        super().__init__(message)
        self.kind = kind
        self.message = message
        self.detail = detail

    def __str__(self) -> str:
        if self.detail:
            return f"{self.message}: {self.detail}"
        return self.message
