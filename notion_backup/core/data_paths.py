# Path: notion_backup/core/data_paths.py
"""
Backup Data Paths Manager

Manages all filesystem paths of a backup run and the lifecycle of
each format's output directory.

Layout under the backup root:
    <root>/<format>             live backup (extraction target)
    <root>/<format>.zip         downloaded outer archive
    <root>/.<format>.staging    new export being assembled (staged mode)
    <root>/.<format>.previous   old backup during the swap (staged mode)

Staged mode keeps the live directory until a new export has fully
extracted, then swaps it in. Legacy mode deletes the live directories
at the start of the run and extracts in place.
"""

import shutil
from pathlib import Path
from typing import TYPE_CHECKING, Iterable, Optional

from notion_backup.core.config_loader import ConfigLoader
from notion_backup.core.logger import get_logger
from notion_backup.constants import (
    ARCHIVE_SUFFIX,
    STAGING_SUFFIX,
    PREVIOUS_SUFFIX,
    LOG_PROCESS,
    LOG_OUTPUT,
)

if TYPE_CHECKING:
    from notion_backup.engine.result import ExportFormat

logger = get_logger(__name__, 'core')


class DataPathsManager:
    """
    Backup filesystem paths manager.

    Example:
        paths = DataPathsManager()
        paths.prepare_run([ExportFormat.MARKDOWN, ExportFormat.HTML])
        target = paths.extraction_dir(ExportFormat.MARKDOWN)
        ...
        paths.commit(ExportFormat.MARKDOWN)
    """

    def __init__(
        self,
        config: Optional[ConfigLoader] = None,
        backup_root: Optional[Path] = None,
        staged_commit: Optional[bool] = None
    ):
        """
        Initialize paths manager.

        Args:
            config: Optional ConfigLoader instance
            backup_root: Root directory (from config if None)
            staged_commit: Staged vs legacy cleanup (from config if None)
        """
        self.config = config if config else ConfigLoader()

        self.backup_root = Path(
            backup_root if backup_root is not None else self.config.get('backup_dir')
        )
        self.staged_commit = staged_commit if staged_commit is not None else \
            self.config.get('staged_commit', True)

    def output_dir(self, export_format: 'ExportFormat') -> Path:
        return self.backup_root / export_format.value

    def archive_path(self, export_format: 'ExportFormat') -> Path:
        return self.backup_root / f"{export_format.value}{ARCHIVE_SUFFIX}"

    def staging_dir(self, export_format: 'ExportFormat') -> Path:
        return self.backup_root / f".{export_format.value}{STAGING_SUFFIX}"

    def previous_dir(self, export_format: 'ExportFormat') -> Path:
        return self.backup_root / f".{export_format.value}{PREVIOUS_SUFFIX}"

    def ensure_root(self) -> None:
        """Create the backup root if needed."""
        self.backup_root.mkdir(parents=True, exist_ok=True)

    def prepare_run(self, formats: Iterable['ExportFormat']) -> None:
        """
        Pre-run cleanup. Idempotent, absence is not an error.

        Staged mode: drop leftover staging directories and resolve any
        interrupted swap (restore .previous when the live directory is
        missing, otherwise delete it). Live backups are kept.

        Legacy mode: forcibly remove every format's output directory.

        Args:
            formats: Formats taking part in the run
        """
        self.ensure_root()

        for export_format in formats:
            if not self.staged_commit:
                logger.info(f"{LOG_PROCESS} Removing old {export_format.value} backup")
                self.remove_path(self.output_dir(export_format))
                continue

            self.remove_path(self.staging_dir(export_format))

            previous = self.previous_dir(export_format)
            output = self.output_dir(export_format)
            if previous.exists() and not output.exists():
                logger.warning(
                    f"{LOG_PROCESS} Restoring interrupted swap: {previous.name} -> {output.name}"
                )
                previous.rename(output)
            else:
                self.remove_path(previous)

    def extraction_dir(self, export_format: 'ExportFormat') -> Path:
        """
        Create and return the directory a new export is extracted into.

        Args:
            export_format: Format being extracted

        Returns:
            Staging directory (staged mode) or the output directory
        """
        if self.staged_commit:
            target = self.staging_dir(export_format)
            self.remove_path(target)
        else:
            target = self.output_dir(export_format)

        target.mkdir(parents=True, exist_ok=True)
        return target

    def commit(self, export_format: 'ExportFormat') -> Path:
        """
        Promote a fully extracted export to the live output directory.

        No-op in legacy mode, where extraction already happened in place.

        Args:
            export_format: Format to commit

        Returns:
            Live output directory
        """
        output = self.output_dir(export_format)
        if not self.staged_commit:
            return output

        staging = self.staging_dir(export_format)
        previous = self.previous_dir(export_format)

        if not staging.is_dir():
            raise FileNotFoundError(f"Nothing staged for {export_format.value}: {staging}")

        self.remove_path(previous)
        if output.exists():
            output.rename(previous)
        staging.rename(output)
        self.remove_path(previous)

        logger.info(f"{LOG_OUTPUT} Committed {export_format.value} backup to {output}")
        return output

    @staticmethod
    def remove_path(path: Path) -> bool:
        """
        Delete a file or directory tree if present.

        Args:
            path: Path to remove

        Returns:
            True if something was removed
        """
        if path.is_symlink() or path.is_file():
            path.unlink()
            return True
        if path.is_dir():
            shutil.rmtree(path)
            return True
        return False


__all__ = ['DataPathsManager']
