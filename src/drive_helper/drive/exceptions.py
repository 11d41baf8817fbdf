"""Google Drive exceptions."""

from __future__ import annotations


class DriveError(Exception):
    """Base exception for Drive operations."""


class DriveAPIError(DriveError):
    """Raised when the Drive API returns an error."""

    def __init__(self, message: str, status_code: int | None = None):
        self.status_code = status_code
        super().__init__(message)


class QuotaUnavailableError(DriveError):
    """Raised when the storage limit is zero or unreported, so usage has no percentage."""


class UploadSourceError(DriveError):
    """Raised when a local upload source cannot be opened."""

    def __init__(self, path: str, reason: Exception | str):
        self.path = path
        super().__init__(f"Cannot read upload source {path}: {reason}")


class DownloadLinkError(DriveError):
    """Raised when a signed download URL cannot be resolved."""
