# Path: notion_backup/engine/api_client.py
"""
Notion API Client

Async JSON request/response client for the Notion web API.
Carries the session cookies and browser-like headers the API expects.

Architecture:
- Single aiohttp session, created on first use
- POST JSON -> parsed JSON dict
- Optional retry with exponential backoff (tenacity), off by default
- All failures surface as NotionAPIError
"""

import asyncio
import json
from typing import Any, Optional
import aiohttp
from tenacity import (
    AsyncRetrying,
    stop_after_attempt,
    wait_exponential,
    retry_if_exception,
)

from notion_backup.core.config_loader import ConfigLoader
from notion_backup.core.errors import NotionAPIError
from notion_backup.core.logger import get_logger
from notion_backup.constants import (
    API_HEADERS,
    BROWSER_HEADERS,
    DEFAULT_MAX_RETRY_DELAY,
    DEFAULT_USER_AGENT,
    HEADER_COOKIE,
    HEADER_USER_AGENT,
    RETRYABLE_STATUS_CODES,
    LOG_INPUT,
    LOG_PROCESS,
    LOG_OUTPUT,
)

logger = get_logger(__name__, 'engine')


class _RetryableStatus(Exception):
    """Internal marker for a retryable HTTP status."""

    def __init__(self, status: int, body: str):
        super().__init__(f"HTTP {status}")
        self.status = status
        self.body = body


def _is_retryable(error: BaseException) -> bool:
    """Connection problems, timeouts and throttling/5xx responses are retryable."""
    if isinstance(error, _RetryableStatus):
        return True
    return isinstance(error, (aiohttp.ClientError, asyncio.TimeoutError))


class NotionAPIClient:
    """
    Async HTTP client for the Notion web API.

    Features:
    - Cookie authentication (token_v2 + file_token)
    - Browser-like headers
    - JSON POST helper
    - Configurable retry for transient failures

    Example:
        async with NotionAPIClient() as client:
            data = await client.post('getNotificationLogV2', {...})
    """

    def __init__(
        self,
        config: Optional[ConfigLoader] = None,
        base_url: Optional[str] = None,
        retry_attempts: Optional[int] = None
    ):
        """
        Initialize API client.

        Args:
            config: Optional ConfigLoader instance
            base_url: API base URL (from config if None)
            retry_attempts: Total attempts per call (from config if None)

        Raises:
            ConfigurationError: If credentials are missing
        """
        self.config = config if config else ConfigLoader()
        self.config.validate()

        self.token = self.config['notion_token']
        self.file_token = self.config['notion_file_token']
        self.space_id = self.config['notion_space_id']

        self.base_url = (base_url or self.config.get('api_base_url')).rstrip('/')
        self.timeout = self.config.get('request_timeout')
        self.connect_timeout = self.config.get('connect_timeout')
        self.retry_delay = self.config.get('retry_delay')
        self.retry_attempts = retry_attempts if retry_attempts is not None else \
            self.config.get('request_retry_attempts', 1)

        self._session: Optional[aiohttp.ClientSession] = None

    def auth_headers(self) -> dict[str, str]:
        """
        Headers shared by API calls and archive downloads.

        Returns:
            Cookie, User-Agent and browser fetch headers
        """
        headers = {
            HEADER_COOKIE: f"token_v2={self.token}; file_token={self.file_token}",
            HEADER_USER_AGENT: DEFAULT_USER_AGENT,
        }
        headers.update(BROWSER_HEADERS)
        return headers

    async def _get_session(self) -> aiohttp.ClientSession:
        """Get or create aiohttp session."""
        if self._session is None or self._session.closed:
            headers = self.auth_headers()
            headers.update(API_HEADERS)

            self._session = aiohttp.ClientSession(
                headers=headers,
                timeout=aiohttp.ClientTimeout(
                    total=self.timeout,
                    connect=self.connect_timeout
                )
            )
        return self._session

    async def post(self, endpoint: str, payload: dict[str, Any]) -> dict[str, Any]:
        """
        POST a JSON payload and return the parsed JSON response.

        Args:
            endpoint: Endpoint name relative to the base URL (e.g. 'enqueueTask')
            payload: JSON body

        Returns:
            Parsed JSON response

        Raises:
            NotionAPIError: On connection failure, timeout, non-2xx status
                or a body that is not a JSON object
        """
        url = f"{self.base_url}/{endpoint}"
        logger.info(f"{LOG_INPUT} Sending request to {endpoint}")
        logger.debug(f"{LOG_INPUT} {endpoint} payload: {json.dumps(payload)}")

        retrying = AsyncRetrying(
            stop=stop_after_attempt(self.retry_attempts),
            wait=wait_exponential(multiplier=self.retry_delay, max=DEFAULT_MAX_RETRY_DELAY),
            retry=retry_if_exception(_is_retryable),
            before_sleep=self._log_retry,
            reraise=True
        )

        try:
            data = await retrying(self._post_once, url, payload)

        except _RetryableStatus as e:
            logger.error(f"{LOG_OUTPUT} API request to {endpoint} failed: HTTP {e.status} {e.body}")
            raise NotionAPIError(
                f"{endpoint} returned HTTP {e.status}: {e.body}",
                endpoint=endpoint,
                status=e.status
            ) from e

        except asyncio.TimeoutError as e:
            logger.error(f"{LOG_OUTPUT} API request to {endpoint} timed out")
            raise NotionAPIError(f"{endpoint} timed out", endpoint=endpoint) from e

        except aiohttp.ClientError as e:
            logger.error(f"{LOG_OUTPUT} API request to {endpoint} failed: {e}")
            raise NotionAPIError(f"{endpoint} failed: {e}", endpoint=endpoint) from e

        logger.debug(f"{LOG_OUTPUT} Response from {endpoint}: {data}")
        return data

    async def _post_once(self, url: str, payload: dict[str, Any]) -> dict[str, Any]:
        """Single POST attempt."""
        session = await self._get_session()

        async with session.post(url, json=payload) as response:
            logger.debug(f"{LOG_PROCESS} Response status: {response.status}")

            if response.status in RETRYABLE_STATUS_CODES:
                raise _RetryableStatus(response.status, await response.text())

            if response.status >= 400:
                body = await response.text()
                logger.error(f"{LOG_OUTPUT} API request to {url} failed: HTTP {response.status} {body}")
                raise NotionAPIError(
                    f"HTTP {response.status}: {body}",
                    endpoint=url.rsplit('/', 1)[-1],
                    status=response.status
                )

            try:
                data = await response.json(content_type=None)
            except ValueError as e:
                raise NotionAPIError(f"Invalid JSON response from {url}: {e}") from e

        if not isinstance(data, dict):
            raise NotionAPIError(f"Unexpected response from {url}: {data!r}")

        return data

    def _log_retry(self, retry_state) -> None:
        """tenacity before_sleep hook."""
        logger.warning(
            f"{LOG_PROCESS} Attempt {retry_state.attempt_number} failed: "
            f"{retry_state.outcome.exception()}. Retrying..."
        )

    async def close(self):
        """Close the HTTP session."""
        if self._session and not self._session.closed:
            await self._session.close()

    async def __aenter__(self):
        """Async context manager entry."""
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit."""
        await self.close()


__all__ = ['NotionAPIClient']
