# Path: notion_backup/core/errors.py
"""
Backup Errors

Exception hierarchy for the export pipeline.

Architecture:
- ConfigurationError: fatal, raised before any network activity
- NotionAPIError: submission / feed / task query failures
- ExportTimeoutError: watcher gave up waiting for a completion
- ExportFailedError: service reported the export task as failed
- DownloadError / ExtractionError: wrap failed result objects
"""

from typing import Optional


class NotionBackupError(Exception):
    """Base class for all backup errors."""


class ConfigurationError(NotionBackupError, ValueError):
    """Required configuration is missing or invalid."""


class NotionAPIError(NotionBackupError):
    """
    Request to the remote service failed.

    Attributes:
        endpoint: API endpoint that was called
        status: HTTP status code, if a response was received
    """

    def __init__(
        self,
        message: str,
        endpoint: Optional[str] = None,
        status: Optional[int] = None
    ):
        super().__init__(message)
        self.endpoint = endpoint
        self.status = status


class ExportTimeoutError(NotionBackupError):
    """Timed out waiting for an export to complete."""

    def __init__(self, export_format: str, attempts: int, elapsed: float):
        super().__init__(
            f"Timed out waiting for {export_format} export "
            f"after {attempts} polls ({elapsed:.0f}s)"
        )
        self.export_format = export_format
        self.attempts = attempts
        self.elapsed = elapsed


class ExportFailedError(NotionBackupError):
    """Export task finished in a failed state."""


class DownloadError(NotionBackupError):
    """Archive download failed. Carries the DownloadResult."""

    def __init__(self, message: str, result=None):
        super().__init__(message)
        self.result = result


class ExtractionError(NotionBackupError):
    """Archive extraction failed. Carries the ExtractionResult."""

    def __init__(self, message: str, result=None):
        super().__init__(message)
        self.result = result


__all__ = [
    'NotionBackupError',
    'ConfigurationError',
    'NotionAPIError',
    'ExportTimeoutError',
    'ExportFailedError',
    'DownloadError',
    'ExtractionError',
]
