# Path: notion_backup/engine/result.py
"""
Export Pipeline Data Objects

Type-safe, structured objects for the export pipeline.
Replaces raw dictionaries with proper data classes.

Architecture:
- ExportFormat: Supported export formats
- ExportJob: One submitted export (format + watermark)
- ActivityRecord: One parsed activity feed entry
- DownloadedArchive: Resolved archive location
- DownloadResult: Single file download
- ExtractionResult: Single archive extraction
- FormatResult: Complete submit+wait+download+extract workflow
- RunSummary: All formats of one run
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Any, Optional


class ExportFormat(str, Enum):
    """Export formats, declared in the order a run processes them."""
    MARKDOWN = 'markdown'
    HTML = 'html'

    @classmethod
    def ordered(cls, names: Optional[list[str]] = None) -> list['ExportFormat']:
        """
        Resolve format names into canonical run order.

        Args:
            names: Format names; all formats when None

        Returns:
            Formats in declaration order (markdown before html)

        Raises:
            ValueError: If a name is not a known format
        """
        if names is None:
            return list(cls)

        requested = {cls(name.strip().lower()) for name in names}
        return [fmt for fmt in cls if fmt in requested]


@dataclass(frozen=True)
class ExportJob:
    """
    A submitted export job.

    Attributes:
        format: Export format requested
        submitted_at: Wall-clock time of submission
        watched_since: Watermark in epoch milliseconds, taken before submission
        task_id: Task identifier from the submission response, if any
    """
    format: ExportFormat
    submitted_at: datetime
    watched_since: int
    task_id: Optional[str] = None


@dataclass(frozen=True)
class ActivityRecord:
    """
    One entry of the activity/notification feed.

    Attributes:
        id: Activity identifier (feed mapping key)
        type: Activity type, e.g. 'export-completed'
        start_time: Activity start in epoch milliseconds
        download_links: Links carried by the activity edits, in order
    """
    id: str
    type: str
    start_time: int
    download_links: tuple[str, ...] = ()

    @classmethod
    def from_feed_entry(cls, activity_id: str, entry: Any) -> Optional['ActivityRecord']:
        """
        Parse a raw recordMap.activity entry.

        Entries come wrapped either once ({'value': {...}}) or twice
        ({'value': {'value': {...}}}).

        Args:
            activity_id: Key of the entry in the activity mapping
            entry: Raw entry

        Returns:
            ActivityRecord, or None if the entry has no usable type/start_time
        """
        if not isinstance(entry, dict):
            return None

        value = entry.get('value')
        if isinstance(value, dict) and isinstance(value.get('value'), dict):
            value = value['value']
        if not isinstance(value, dict):
            return None

        activity_type = value.get('type')
        try:
            start_time = int(value.get('start_time'))
        except (TypeError, ValueError):
            return None

        if not activity_type:
            return None

        links = tuple(
            edit['link'] for edit in value.get('edits') or []
            if isinstance(edit, dict) and edit.get('link')
        )

        return cls(
            id=str(value.get('id', activity_id)),
            type=activity_type,
            start_time=start_time,
            download_links=links,
        )


@dataclass(frozen=True)
class DownloadedArchive:
    """
    Archive resolved from a completion record.

    Attributes:
        source_url: URL returned by the completion watcher
        local_path: Where the archive is written
        format: Export format of the archive
    """
    source_url: str
    local_path: Path
    format: ExportFormat


@dataclass
class DownloadResult:
    """
    Result of a single file download operation.

    Attributes:
        success: Whether download succeeded
        file_path: Path where file was downloaded
        file_size: Size of downloaded file in bytes
        url: Source URL
        duration: Download duration in seconds
        error_message: Error message if failed
        status_code: HTTP status code
        chunks_downloaded: Number of chunks downloaded
    """
    success: bool
    file_path: Optional[Path] = None
    file_size: int = 0
    url: str = ''
    duration: float = 0.0
    error_message: Optional[str] = None
    status_code: Optional[int] = None
    chunks_downloaded: int = 0
    timestamp: datetime = field(default_factory=datetime.now)

    @property
    def download_speed_mbps(self) -> float:
        """Calculate download speed in MB/s."""
        if self.duration > 0 and self.file_size > 0:
            mb = self.file_size / (1024 * 1024)
            return mb / self.duration
        return 0.0

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for logging."""
        return {
            'success': self.success,
            'file_path': str(self.file_path) if self.file_path else None,
            'file_size': self.file_size,
            'duration': self.duration,
            'error_message': self.error_message,
            'status_code': self.status_code,
            'chunks_downloaded': self.chunks_downloaded,
            'download_speed_mbps': self.download_speed_mbps,
            'timestamp': self.timestamp.isoformat(),
        }


@dataclass
class ExtractionResult:
    """
    Result of archive extraction operation.

    Attributes:
        success: Whether extraction succeeded
        extract_directory: Path where files were extracted
        files_extracted: Number of entries extracted
        archive_path: Path to archive file
        duration: Extraction duration in seconds
        error_message: Error message if failed
        directory_structure: Archive member names
    """
    success: bool
    extract_directory: Optional[Path] = None
    files_extracted: int = 0
    archive_path: Optional[Path] = None
    duration: float = 0.0
    error_message: Optional[str] = None
    directory_structure: list[str] = field(default_factory=list)
    timestamp: datetime = field(default_factory=datetime.now)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for logging."""
        return {
            'success': self.success,
            'extract_directory': str(self.extract_directory) if self.extract_directory else None,
            'files_extracted': self.files_extracted,
            'archive_path': str(self.archive_path) if self.archive_path else None,
            'duration': self.duration,
            'error_message': self.error_message,
            'timestamp': self.timestamp.isoformat(),
        }


@dataclass
class FormatResult:
    """
    Complete result for one format's pipeline.

    Attributes:
        format: Export format processed
        success: Whether the entire pipeline succeeded
        job: Submitted export job
        archive: Resolved archive
        download_result: Download operation result
        extraction_result: Outer archive extraction result
        part_results: Inner part extraction results
        output_directory: Final output directory
        total_duration: Total processing duration in seconds
        error_stage: submit, wait, download, extract, extract_parts, commit, unexpected
        error_message: Detailed error message
    """
    format: ExportFormat
    success: bool = False
    job: Optional[ExportJob] = None
    archive: Optional[DownloadedArchive] = None
    download_result: Optional[DownloadResult] = None
    extraction_result: Optional[ExtractionResult] = None
    part_results: list[ExtractionResult] = field(default_factory=list)
    output_directory: Optional[Path] = None
    total_duration: float = 0.0
    error_stage: Optional[str] = None
    error_message: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for logging."""
        return {
            'format': self.format.value,
            'success': self.success,
            'watched_since': self.job.watched_since if self.job else None,
            'task_id': self.job.task_id if self.job else None,
            'download_result': self.download_result.to_dict() if self.download_result else None,
            'extraction_result': self.extraction_result.to_dict() if self.extraction_result else None,
            'parts_extracted': len(self.part_results),
            'output_directory': str(self.output_directory) if self.output_directory else None,
            'total_duration': self.total_duration,
            'error_stage': self.error_stage,
            'error_message': self.error_message,
        }


@dataclass
class RunSummary:
    """Results of one backup run, in processing order."""
    results: list[FormatResult] = field(default_factory=list)
    duration: float = 0.0

    @property
    def succeeded(self) -> list[ExportFormat]:
        return [r.format for r in self.results if r.success]

    @property
    def failed(self) -> list[ExportFormat]:
        return [r.format for r in self.results if not r.success]

    def get(self, export_format: ExportFormat) -> Optional[FormatResult]:
        for result in self.results:
            if result.format == export_format:
                return result
        return None


__all__ = [
    'ExportFormat',
    'ExportJob',
    'ActivityRecord',
    'DownloadedArchive',
    'DownloadResult',
    'ExtractionResult',
    'FormatResult',
    'RunSummary',
]
