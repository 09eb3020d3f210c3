# Path: notion_backup/engine/extraction/archive_handler.py
"""
Archive Handler

Zip extraction for export archives, including the nested part layer.

Large exports arrive as an outer zip whose top level holds numbered
part archives (e.g. Export-1234-Part-1.zip, Export-1234-Part-2.zip).
ArchiveHandler extracts the outer archive, then every part found
directly in the extraction directory into that same directory, so the
final output holds plain content files.

Architecture:
- ZipExtractor: single archive, with safety validation
- ArchiveHandler: outer archive + part archives
- Common result type (ExtractionResult)
"""

import re
import time
import zipfile
from pathlib import Path
from typing import Optional

from notion_backup.core.logger import get_logger
from notion_backup.core.config_loader import ConfigLoader
from notion_backup.engine.result import ExtractionResult
from notion_backup.constants import (
    MAX_ARCHIVE_SIZE,
    MAX_EXTRACTION_DEPTH,
    PART_ARCHIVE_PATTERN,
    ZIP_READ_MODE,
    LOG_INPUT,
    LOG_PROCESS,
    LOG_OUTPUT,
)

logger = get_logger(__name__, 'extraction')


class ZipExtractor:
    """
    ZIP file extractor.

    Rejects archives with path traversal, excessive nesting or an
    uncompressed size above the configured limit.
    """

    def __init__(self, config: Optional[ConfigLoader] = None):
        """
        Initialize extractor.

        Args:
            config: Optional ConfigLoader instance
        """
        self.config = config if config else ConfigLoader()
        self.max_extraction_size = self.config.get('max_archive_size', MAX_ARCHIVE_SIZE)
        self.max_depth = self.config.get('max_extraction_depth', MAX_EXTRACTION_DEPTH)

    def extract(
        self,
        archive_path: Path,
        target_dir: Path,
        cleanup_archive: bool = False
    ) -> ExtractionResult:
        """
        Extract ZIP archive.

        Args:
            archive_path: Path to ZIP file
            target_dir: Target directory (created if absent)
            cleanup_archive: Whether to delete ZIP after extraction

        Returns:
            ExtractionResult
        """
        logger.info(f"{LOG_INPUT} Extracting ZIP: {archive_path.name}")

        start_time = time.time()
        result = ExtractionResult(
            success=False,
            archive_path=archive_path,
            extract_directory=target_dir
        )

        try:
            if not archive_path.exists():
                result.error_message = "ZIP file not found"
                logger.error(f"{LOG_OUTPUT} {result.error_message}")
                return result

            target_dir.mkdir(parents=True, exist_ok=True)

            with zipfile.ZipFile(archive_path, ZIP_READ_MODE) as zf:
                if not self._validate_zip_safe(zf, target_dir):
                    result.error_message = "ZIP contains unsafe paths"
                    logger.error(f"{LOG_OUTPUT} {result.error_message}")
                    return result

                total_size = sum(info.file_size for info in zf.infolist())
                if total_size > self.max_extraction_size:
                    result.error_message = f"ZIP too large: {total_size} bytes"
                    logger.error(f"{LOG_OUTPUT} {result.error_message}")
                    return result

                logger.info(f"{LOG_PROCESS} Extracting {len(zf.namelist())} entries...")

                zf.extractall(target_dir)

                result.files_extracted = len(zf.namelist())
                result.directory_structure = zf.namelist()

            result.success = True
            result.duration = time.time() - start_time

            logger.info(
                f"{LOG_OUTPUT} ZIP extraction complete: {result.files_extracted} entries "
                f"in {result.duration:.2f}s"
            )

            if cleanup_archive:
                try:
                    archive_path.unlink()
                    logger.info(f"{LOG_PROCESS} Deleted archive: {archive_path.name}")
                except OSError as e:
                    logger.warning(f"Cannot delete archive: {e}")

        except zipfile.BadZipFile as e:
            result.error_message = f"Invalid ZIP file: {e}"
            result.duration = time.time() - start_time
            logger.error(f"{LOG_OUTPUT} {result.error_message}")

        except (OSError, RuntimeError, zipfile.LargeZipFile) as e:
            result.error_message = f"ZIP extraction failed: {e}"
            result.duration = time.time() - start_time
            logger.error(f"{LOG_OUTPUT} {result.error_message}", exc_info=True)

        return result

    def _validate_zip_safe(self, zip_file: zipfile.ZipFile, target_dir: Path) -> bool:
        """Validate ZIP for path traversal and nesting depth."""
        root = target_dir.resolve()

        for member in zip_file.namelist():
            member_path = (target_dir / member).resolve()

            try:
                member_path.relative_to(root)
            except ValueError:
                logger.error(f"Unsafe path detected: {member}")
                return False

            depth = len(Path(member).parts)
            if depth > self.max_depth:
                logger.error(f"Path too deep: {member} (depth={depth})")
                return False

        return True


class ArchiveHandler:
    """
    Two-level export archive extraction.

    Example:
        handler = ArchiveHandler()
        outer = handler.extract(Path('markdown.zip'), Path('markdown'))
        parts = handler.extract_parts(Path('markdown'))
    """

    def __init__(
        self,
        config: Optional[ConfigLoader] = None,
        part_pattern: re.Pattern = PART_ARCHIVE_PATTERN
    ):
        """
        Initialize archive handler.

        Args:
            config: Optional ConfigLoader instance
            part_pattern: Regex identifying part archive file names
        """
        self.config = config if config else ConfigLoader()
        self.part_pattern = part_pattern
        self.extractor = ZipExtractor(config=self.config)

    def extract(
        self,
        archive_path: Path,
        target_dir: Path,
        cleanup_archive: bool = False
    ) -> ExtractionResult:
        """
        Extract an archive into target_dir.

        Args:
            archive_path: Path to archive file
            target_dir: Target directory for extraction
            cleanup_archive: Whether to delete archive after extraction

        Returns:
            ExtractionResult
        """
        return self.extractor.extract(archive_path, target_dir, cleanup_archive)

    def find_parts(self, directory: Path) -> list[Path]:
        """
        List part archives directly inside directory.

        Args:
            directory: Extracted outer archive directory

        Returns:
            Matching regular files, sorted by name
        """
        if not directory.is_dir():
            return []

        return sorted(
            (path for path in directory.iterdir()
             if path.is_file() and self.part_pattern.search(path.name)),
            key=lambda path: path.name
        )

    def extract_parts(self, directory: Path) -> list[ExtractionResult]:
        """
        Extract every part archive into the directory holding it.

        Each part is deleted once extracted. Stops at the first failure;
        the failed result is the last element of the returned list.
        Zero parts is a no-op.

        Args:
            directory: Extracted outer archive directory

        Returns:
            One ExtractionResult per part attempted
        """
        parts = self.find_parts(directory)

        if not parts:
            logger.info(f"{LOG_PROCESS} No part archives in {directory.name}")
            return []

        logger.info(f"{LOG_INPUT} Extracting {len(parts)} part archives in {directory.name}")

        results = []
        for part in parts:
            result = self.extractor.extract(part, directory, cleanup_archive=True)
            results.append(result)

            if not result.success:
                logger.error(f"{LOG_OUTPUT} Part extraction failed: {part.name}")
                break

        return results


__all__ = ['ArchiveHandler', 'ZipExtractor']
