# Path: notion_backup/engine/stream_handler.py
"""
Stream Handler

Memory-efficient streaming of large export archives to disk.
Writes directly to disk without loading the archive into memory.

Architecture:
- Chunk-based streaming
- Progress tracking
- Async I/O via aiofiles
"""

from pathlib import Path
from typing import Optional, AsyncIterator
import aiofiles

from notion_backup.core.logger import get_logger
from notion_backup.core.config_loader import ConfigLoader
from notion_backup.constants import (
    DEFAULT_CHUNK_SIZE,
    DEFAULT_LOG_PROGRESS_INTERVAL,
    LOG_PROCESS,
)

logger = get_logger(__name__, 'engine')


class StreamHandler:
    """
    Handles streaming download to disk.

    The file is closed before stream_to_file() returns; any error raised
    by the source stream propagates to the caller.

    Example:
        handler = StreamHandler(chunk_size=65536)
        written = await handler.stream_to_file(response_stream, path)
    """

    def __init__(
        self,
        chunk_size: Optional[int] = None,
        config: Optional[ConfigLoader] = None
    ):
        """
        Initialize stream handler.

        Args:
            chunk_size: Size of chunks to read/write (bytes)
            config: Optional ConfigLoader instance
        """
        self.config = config if config else ConfigLoader()

        self.chunk_size = chunk_size if chunk_size is not None else \
            self.config.get('chunk_size', DEFAULT_CHUNK_SIZE)
        self.progress_interval = self.config.get(
            'log_progress_interval', DEFAULT_LOG_PROGRESS_INTERVAL
        ) or DEFAULT_LOG_PROGRESS_INTERVAL

        self.bytes_written = 0
        self.chunks_written = 0

    async def stream_to_file(
        self,
        response_stream: AsyncIterator[bytes],
        output_path: Path,
        total_size: Optional[int] = None
    ) -> int:
        """
        Stream response to file.

        Args:
            response_stream: Async iterator of byte chunks
            output_path: Path where file will be written
            total_size: Total expected size (for progress)

        Returns:
            Total bytes written
        """
        logger.info(f"{LOG_PROCESS} Streaming to: {output_path.name}")

        self.reset()

        try:
            async with aiofiles.open(output_path, 'wb') as f:
                async for chunk in response_stream:
                    if chunk:
                        await f.write(chunk)
                        self.bytes_written += len(chunk)
                        self.chunks_written += 1

                        if self.chunks_written % self.progress_interval == 0:
                            self._log_progress(total_size)

        except Exception as e:
            logger.error(f"Streaming error after {self.bytes_written} bytes: {e}")
            raise

        logger.info(
            f"{LOG_PROCESS} Stream complete: {self.bytes_written} bytes "
            f"in {self.chunks_written} chunks"
        )

        return self.bytes_written

    def _log_progress(self, total_size: Optional[int]) -> None:
        progress = self.get_progress(total_size)
        if 'percent_complete' in progress:
            logger.info(
                f"{LOG_PROCESS} Progress: {progress['percent_complete']:.1f}% "
                f"({progress['bytes_written']}/{total_size} bytes)"
            )
        else:
            logger.info(f"{LOG_PROCESS} Downloaded: {progress['mb_written']:.1f} MB")

    def get_progress(self, total_size: Optional[int] = None) -> dict:
        """
        Get current progress statistics.

        Args:
            total_size: Total expected size (optional)

        Returns:
            Dictionary with progress stats
        """
        progress = {
            'bytes_written': self.bytes_written,
            'chunks_written': self.chunks_written,
            'mb_written': self.bytes_written / (1024 * 1024),
        }

        if total_size:
            progress['percent_complete'] = (self.bytes_written / total_size) * 100
            progress['bytes_remaining'] = total_size - self.bytes_written

        return progress

    def reset(self):
        """Reset progress counters."""
        self.bytes_written = 0
        self.chunks_written = 0


__all__ = ['StreamHandler']
