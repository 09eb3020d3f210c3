# Path: notion_backup/engine/coordinator.py
"""
Backup Coordinator

Main workflow orchestrator for a backup run.
Coordinates: cleanup -> (submit -> wait -> download -> extract outer ->
extract parts -> commit) for each export format.

Architecture:
- Formats processed strictly one after another, markdown first
- Failure isolation per format: every error is caught at the format
  boundary, logged and recorded; the next format still runs
- Staged commit: a new export replaces the live backup only after it
  fully extracted (legacy mode deletes backups before the run)
- IPO logging throughout
"""

import json
import time
from typing import Optional

from notion_backup.core.logger import get_logger
from notion_backup.core.config_loader import ConfigLoader
from notion_backup.core.data_paths import DataPathsManager
from notion_backup.core.errors import (
    ConfigurationError,
    DownloadError,
    ExtractionError,
    NotionBackupError,
)
from notion_backup.engine.api_client import NotionAPIClient
from notion_backup.engine.export_submitter import ExportSubmitter
from notion_backup.engine.completion_watcher import CompletionWatcher
from notion_backup.engine.protocol_handlers import HTTPHandler
from notion_backup.engine.extraction.archive_handler import ArchiveHandler
from notion_backup.engine.result import (
    DownloadedArchive,
    ExportFormat,
    FormatResult,
    RunSummary,
)
from notion_backup.constants import (
    LOG_INPUT,
    LOG_PROCESS,
    LOG_OUTPUT,
)

logger = get_logger(__name__, 'engine')


class BackupCoordinator:
    """
    Coordinates a complete backup run.

    Workflow:
    1. Pre-run cleanup of stale output (idempotent)
    2. For each format (markdown, then html):
       a. Submit export job -> watermark
       b. Wait for completion -> archive URL
       c. Download archive to <format>.zip
       d. Extract outer archive
       e. Extract inner part archives
       f. Commit (staged mode)
    3. Failures are isolated per format

    Example:
        coordinator = BackupCoordinator()
        try:
            summary = await coordinator.run()
        finally:
            await coordinator.close()
    """

    def __init__(
        self,
        config: Optional[ConfigLoader] = None,
        api_client: Optional[NotionAPIClient] = None,
        submitter: Optional[ExportSubmitter] = None,
        watcher: Optional[CompletionWatcher] = None,
        http_handler: Optional[HTTPHandler] = None,
        archive_handler: Optional[ArchiveHandler] = None,
        path_manager: Optional[DataPathsManager] = None,
        formats: Optional[list[ExportFormat]] = None
    ):
        """
        Initialize backup coordinator.

        Args:
            config: Optional ConfigLoader instance
            api_client: Notion API client
            submitter: Export job submitter
            watcher: Completion watcher
            http_handler: Archive download handler
            archive_handler: Archive extractor
            path_manager: Filesystem paths manager
            formats: Formats to export (from config if None)
        """
        self.config = config if config else ConfigLoader()

        self.api_client = api_client if api_client else NotionAPIClient(self.config)
        self.submitter = submitter if submitter else ExportSubmitter(self.api_client, self.config)
        self.watcher = watcher if watcher else CompletionWatcher(self.api_client, self.config)
        self.http_handler = http_handler if http_handler else HTTPHandler(self.config)
        self.archive_handler = archive_handler if archive_handler else ArchiveHandler(self.config)
        self.path_manager = path_manager if path_manager else DataPathsManager(self.config)

        try:
            self.formats = ExportFormat.ordered(
                [fmt.value for fmt in formats] if formats is not None
                else self.config.get('export_formats')
            )
        except ValueError as e:
            raise ConfigurationError(f"Unsupported export format: {e}") from e
        self.keep_archives = self.config.get('keep_archives', True)

    async def run(self) -> RunSummary:
        """
        Run the backup for every configured format.

        Returns:
            RunSummary (informational; no failure is raised from here)
        """
        logger.info(
            f"{LOG_INPUT} Starting backup: formats={[fmt.value for fmt in self.formats]} "
            f"root={self.path_manager.backup_root} staged={self.path_manager.staged_commit}"
        )

        start_time = time.time()
        summary = RunSummary()

        if self.path_manager.staged_commit:
            logger.info(f"{LOG_PROCESS} Preparing backup directories...")
        else:
            logger.info(f"{LOG_PROCESS} Removing old backups...")
        self.path_manager.prepare_run(self.formats)

        for export_format in self.formats:
            result = await self.process_format(export_format)
            summary.results.append(result)

        summary.duration = time.time() - start_time

        logger.info(
            f"{LOG_OUTPUT} Backup finished in {summary.duration:.1f}s: "
            f"succeeded={[fmt.value for fmt in summary.succeeded]} "
            f"failed={[fmt.value for fmt in summary.failed]}"
        )
        return summary

    async def process_format(self, export_format: ExportFormat) -> FormatResult:
        """
        Run the full pipeline for one format.

        Never raises; the outcome is recorded in the returned result.

        Args:
            export_format: Format to export

        Returns:
            FormatResult
        """
        result = FormatResult(format=export_format)
        start_time = time.time()

        logger.info(f"{LOG_INPUT} Processing {export_format.value} export")

        try:
            await self._run_pipeline(result)

        except NotionBackupError as e:
            self._record_failure(result, e)

        except Exception as e:
            result.error_stage = result.error_stage or 'unexpected'
            self._record_failure(result, e, exc_info=True)

        finally:
            result.total_duration = time.time() - start_time

        if result.success:
            logger.info(
                f"{LOG_OUTPUT} {export_format.value} export complete in "
                f"{result.total_duration:.1f}s: {result.output_directory}"
            )

        logger.debug(f"{LOG_OUTPUT} {export_format.value} result: {json.dumps(result.to_dict())}")

        return result

    async def _run_pipeline(self, result: FormatResult) -> None:
        """Steps a-f. Sets result.error_stage before each step."""
        export_format = result.format

        result.error_stage = 'submit'
        job = await self.submitter.submit(export_format)
        result.job = job

        result.error_stage = 'wait'
        url = await self.watcher.wait_for_completion(job)

        result.error_stage = 'download'
        archive = DownloadedArchive(
            source_url=url,
            local_path=self.path_manager.archive_path(export_format),
            format=export_format,
        )
        result.archive = archive

        download_result = await self.http_handler.download(
            archive.source_url,
            archive.local_path,
            headers=self.api_client.auth_headers()
        )
        result.download_result = download_result
        if not download_result.success:
            raise DownloadError(
                f"Download failed: {download_result.error_message}",
                result=download_result
            )

        result.error_stage = 'extract'
        target_dir = self.path_manager.extraction_dir(export_format)
        extraction_result = self.archive_handler.extract(
            archive.local_path,
            target_dir,
            cleanup_archive=not self.keep_archives
        )
        result.extraction_result = extraction_result
        if not extraction_result.success:
            raise ExtractionError(
                f"Extraction failed: {extraction_result.error_message}",
                result=extraction_result
            )

        result.error_stage = 'extract_parts'
        part_results = self.archive_handler.extract_parts(target_dir)
        result.part_results = part_results
        failed_parts = [r for r in part_results if not r.success]
        if failed_parts:
            raise ExtractionError(
                f"Part extraction failed: {failed_parts[0].error_message}",
                result=failed_parts[0]
            )

        result.error_stage = 'commit'
        result.output_directory = self.path_manager.commit(export_format)

        result.error_stage = None
        result.success = True

    def _record_failure(
        self,
        result: FormatResult,
        error: Exception,
        exc_info: bool = False
    ) -> None:
        """Log a format failure and record it on the result."""
        result.success = False
        result.error_message = str(error)

        logger.error(
            f"{LOG_OUTPUT} {result.format.value} export failed at stage "
            f"'{result.error_stage}': {error}",
            exc_info=exc_info
        )

        logger.error(
            f"{LOG_OUTPUT} {result.format.value.capitalize()} export failed. "
            f"Skipping cleanup to retain old backups."
        )
        if self.path_manager.staged_commit:
            logger.info(
                f"{LOG_OUTPUT} Previous {result.format.value} backup left in place "
                f"at {self.path_manager.output_dir(result.format)}"
            )

    async def close(self):
        """Close coordinator and release network resources."""
        logger.info("Closing backup coordinator")
        await self.http_handler.close()
        await self.api_client.close()


__all__ = ['BackupCoordinator']
