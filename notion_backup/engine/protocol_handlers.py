# Path: notion_backup/engine/protocol_handlers.py
"""
Protocol Handlers

HTTP/HTTPS archive download with streaming.

Architecture:
- Async HTTP client with streaming
- Caller-supplied headers (session cookies)
- Timeout configuration
- Partial files removed on failure
"""

import asyncio
import time
from pathlib import Path
from typing import Optional
import aiohttp

from notion_backup.core.logger import get_logger
from notion_backup.core.config_loader import ConfigLoader
from notion_backup.core.data_paths import DataPathsManager
from notion_backup.engine.stream_handler import StreamHandler
from notion_backup.engine.result import DownloadResult
from notion_backup.constants import (
    DEFAULT_CHUNK_SIZE,
    DEFAULT_CONNECT_TIMEOUT,
    DEFAULT_DOWNLOAD_TIMEOUT,
    DEFAULT_USER_AGENT,
    HEADER_USER_AGENT,
    HTTP_OK,
    LOG_INPUT,
    LOG_PROCESS,
    LOG_OUTPUT,
)

logger = get_logger(__name__, 'engine')


class HTTPHandler:
    """
    HTTP/HTTPS download handler with streaming.

    On success the file at output_path is complete and closed. On any
    failure the result carries the error and (by default) no partial
    file is left behind.

    Example:
        handler = HTTPHandler()
        result = await handler.download(
            url='https://file.notion.so/.../export.zip',
            output_path=Path('markdown.zip'),
            headers=api_client.auth_headers()
        )
    """

    def __init__(self, config: Optional[ConfigLoader] = None):
        """
        Initialize HTTP handler.

        Args:
            config: Optional ConfigLoader instance
        """
        self.config = config if config else ConfigLoader()

        self.chunk_size = self.config.get('chunk_size', DEFAULT_CHUNK_SIZE)
        self.timeout = self.config.get('download_timeout', DEFAULT_DOWNLOAD_TIMEOUT)
        self.connect_timeout = self.config.get('connect_timeout', DEFAULT_CONNECT_TIMEOUT)
        self.cleanup_failed = self.config.get('cleanup_failed_downloads', True)

        self._session: Optional[aiohttp.ClientSession] = None

    async def download(
        self,
        url: str,
        output_path: Path,
        headers: Optional[dict[str, str]] = None
    ) -> DownloadResult:
        """
        Download file from URL to local path.

        Args:
            url: Source URL
            output_path: Destination path
            headers: Optional custom headers

        Returns:
            DownloadResult with download statistics
        """
        logger.info(f"{LOG_INPUT} Downloading export archive")
        logger.debug(f"{LOG_INPUT} Source: {url}")
        logger.info(f"{LOG_INPUT} Output: {output_path}")

        start_time = time.time()
        result = DownloadResult(
            success=False,
            url=url,
            file_path=output_path
        )

        try:
            request_headers = {HEADER_USER_AGENT: DEFAULT_USER_AGENT}
            if headers:
                request_headers.update(headers)

            session = await self._get_session()
            output_path.parent.mkdir(parents=True, exist_ok=True)

            logger.info(f"{LOG_PROCESS} Sending HTTP GET request")

            async with session.get(
                url,
                headers=request_headers,
                timeout=aiohttp.ClientTimeout(
                    total=self.timeout,
                    connect=self.connect_timeout
                )
            ) as response:

                result.status_code = response.status

                if response.status != HTTP_OK:
                    result.error_message = f"HTTP {response.status}"
                    logger.error(f"{LOG_OUTPUT} HTTP error: {response.status}")
                    return self._fail(result, start_time)

                # Content-Length only matches the body when it is not re-encoded
                content_length = response.headers.get('Content-Length')
                encoded = response.headers.get('Content-Encoding', 'identity') != 'identity'
                total_size = int(content_length) if content_length and not encoded else None

                if total_size:
                    logger.info(f"{LOG_PROCESS} File size: {total_size} bytes")

                stream_handler = StreamHandler(chunk_size=self.chunk_size, config=self.config)

                bytes_written = await stream_handler.stream_to_file(
                    response_stream=response.content.iter_chunked(self.chunk_size),
                    output_path=output_path,
                    total_size=total_size
                )

                if total_size is not None and bytes_written != total_size:
                    result.error_message = (
                        f"Incomplete download: {bytes_written}/{total_size} bytes"
                    )
                    logger.error(f"{LOG_OUTPUT} {result.error_message}")
                    return self._fail(result, start_time)

                result.success = True
                result.file_size = bytes_written
                result.chunks_downloaded = stream_handler.chunks_written
                result.duration = time.time() - start_time

                logger.info(
                    f"{LOG_OUTPUT} Download complete: {bytes_written} bytes "
                    f"in {result.duration:.2f}s "
                    f"({result.download_speed_mbps:.2f} MB/s)"
                )

        except asyncio.TimeoutError as e:
            result.error_message = f"Timeout: {e}"
            logger.error(f"{LOG_OUTPUT} Download timeout: {e}")
            return self._fail(result, start_time)

        except aiohttp.ClientError as e:
            result.error_message = f"HTTP error: {e}"
            logger.error(f"{LOG_OUTPUT} Download failed: {e}")
            return self._fail(result, start_time)

        except OSError as e:
            result.error_message = f"Write error: {e}"
            logger.error(f"{LOG_OUTPUT} Download failed: {e}", exc_info=True)
            return self._fail(result, start_time)

        return result

    def _fail(self, result: DownloadResult, start_time: float) -> DownloadResult:
        """Finalize a failed result, removing any partial file."""
        result.success = False
        result.duration = time.time() - start_time

        if self.cleanup_failed and result.file_path is not None:
            if DataPathsManager.remove_path(result.file_path):
                logger.info(f"{LOG_PROCESS} Removed partial file: {result.file_path.name}")

        return result

    async def _get_session(self) -> aiohttp.ClientSession:
        """
        Get or create aiohttp session.

        Returns:
            ClientSession instance
        """
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self.timeout)
            )

        return self._session

    async def close(self):
        """Close HTTP session."""
        if self._session and not self._session.closed:
            await self._session.close()

    async def __aenter__(self):
        """Async context manager entry."""
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit."""
        await self.close()


__all__ = ['HTTPHandler']
