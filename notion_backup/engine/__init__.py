# Path: notion_backup/engine/__init__.py
"""
Notion Backup Engine Module

Export pipeline components.

Architecture:
- BackupCoordinator: Run controller
- ExportSubmitter: Enqueues export jobs
- CompletionWatcher: Waits for job completion
- HTTPHandler / StreamHandler: Archive download
- ArchiveHandler: Outer + part archive extraction
"""

from notion_backup.engine.api_client import NotionAPIClient
from notion_backup.engine.export_submitter import ExportSubmitter
from notion_backup.engine.completion_watcher import (
    CompletionWatcher,
    find_export_activity,
    parse_activities,
)
from notion_backup.engine.protocol_handlers import HTTPHandler
from notion_backup.engine.stream_handler import StreamHandler
from notion_backup.engine.extraction import ArchiveHandler, ZipExtractor
from notion_backup.engine.coordinator import BackupCoordinator
from notion_backup.engine.result import (
    ExportFormat,
    ExportJob,
    ActivityRecord,
    DownloadedArchive,
    DownloadResult,
    ExtractionResult,
    FormatResult,
    RunSummary,
)

__all__ = [
    # Run controller
    'BackupCoordinator',

    # Pipeline steps
    'NotionAPIClient',
    'ExportSubmitter',
    'CompletionWatcher',
    'find_export_activity',
    'parse_activities',
    'HTTPHandler',
    'StreamHandler',
    'ArchiveHandler',
    'ZipExtractor',

    # Results
    'ExportFormat',
    'ExportJob',
    'ActivityRecord',
    'DownloadedArchive',
    'DownloadResult',
    'ExtractionResult',
    'FormatResult',
    'RunSummary',
]
