# Path: notion_backup/constants.py
"""
Notion Backup Module Constants

Module-wide constants for export, polling, download and extraction.

No hardcoded paths - the backup root comes from .env via config_loader.
"""

import re

# ============================================================================
# REMOTE SERVICE
# ============================================================================
DEFAULT_API_BASE_URL: str = 'https://www.notion.so/api/v3'

ENDPOINT_ENQUEUE_TASK: str = 'enqueueTask'
ENDPOINT_NOTIFICATION_LOG: str = 'getNotificationLogV2'
ENDPOINT_GET_TASKS: str = 'getTasks'

EXPORT_EVENT_NAME: str = 'exportSpace'

# Activity feed
ACTIVITY_EXPORT_COMPLETED: str = 'export-completed'
FEED_PAGE_SIZE: int = 20
FEED_READ_STATE: str = 'unread_and_read'
FEED_VARIANT: str = 'no_grouping'

# Task status states (getTasks)
TASK_STATE_SUCCESS: str = 'success'
TASK_STATE_FAILURE: str = 'failure'

# ============================================================================
# HTTP
# ============================================================================
HTTP_OK: int = 200
HTTP_TOO_MANY_REQUESTS: int = 429
HTTP_SERVER_ERROR: int = 500
HTTP_BAD_GATEWAY: int = 502
HTTP_SERVICE_UNAVAILABLE: int = 503
HTTP_GATEWAY_TIMEOUT: int = 504
RETRYABLE_STATUS_CODES: list = [
    HTTP_TOO_MANY_REQUESTS,
    HTTP_SERVER_ERROR,
    HTTP_BAD_GATEWAY,
    HTTP_SERVICE_UNAVAILABLE,
    HTTP_GATEWAY_TIMEOUT
]

HEADER_COOKIE: str = 'Cookie'
HEADER_USER_AGENT: str = 'User-Agent'

DEFAULT_USER_AGENT: str = (
    'Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 '
    '(KHTML, like Gecko) Chrome/132.0.0.0 Safari/537.36'
)
NOTION_CLIENT_VERSION: str = '23.13.0.1773'

# Sent with every request (API and archive download)
BROWSER_HEADERS: dict = {
    'Accept-Language': 'en-US,en;q=0.9',
    'Sec-Fetch-Site': 'same-origin',
    'Sec-Fetch-Mode': 'cors',
    'Sec-Fetch-Dest': 'empty',
}

# Sent with API calls only
API_HEADERS: dict = {
    'Notion-Client-Version': NOTION_CLIENT_VERSION,
    'Notion-Audit-Log-Platform': 'web',
}

# ============================================================================
# ENVIRONMENT VARIABLES
# ============================================================================
ENV_NOTION_TOKEN: str = 'NOTION_TOKEN'
ENV_NOTION_FILE_TOKEN: str = 'NOTION_FILE_TOKEN'
ENV_NOTION_SPACE_ID: str = 'NOTION_SPACE_ID'
REQUIRED_ENV_VARS: tuple = (
    ENV_NOTION_TOKEN,
    ENV_NOTION_FILE_TOKEN,
    ENV_NOTION_SPACE_ID,
)

ENV_API_BASE_URL: str = 'NOTION_API_BASE_URL'
ENV_BACKUP_DIR: str = 'NOTION_BACKUP_DIR'
ENV_EXPORT_FORMATS: str = 'NOTION_EXPORT_FORMATS'
ENV_EXPORT_TIMEZONE: str = 'NOTION_EXPORT_TIMEZONE'
ENV_EXPORT_LOCALE: str = 'NOTION_EXPORT_LOCALE'
ENV_EXPORT_COMMENTS: str = 'NOTION_EXPORT_COMMENTS'
ENV_POLL_INTERVAL: str = 'NOTION_POLL_INTERVAL'
ENV_MAX_POLL_ATTEMPTS: str = 'NOTION_MAX_POLL_ATTEMPTS'
ENV_MAX_WAIT_SECONDS: str = 'NOTION_MAX_WAIT_SECONDS'
ENV_USE_TASK_STATUS: str = 'NOTION_USE_TASK_STATUS'
ENV_REQUEST_RETRY_ATTEMPTS: str = 'NOTION_REQUEST_RETRY_ATTEMPTS'
ENV_RETRY_DELAY: str = 'NOTION_RETRY_DELAY'
ENV_REQUEST_TIMEOUT: str = 'NOTION_REQUEST_TIMEOUT'
ENV_CONNECT_TIMEOUT: str = 'NOTION_CONNECT_TIMEOUT'
ENV_DOWNLOAD_TIMEOUT: str = 'NOTION_DOWNLOAD_TIMEOUT'
ENV_CHUNK_SIZE: str = 'NOTION_CHUNK_SIZE'
ENV_STAGED_COMMIT: str = 'NOTION_STAGED_COMMIT'
ENV_KEEP_ARCHIVES: str = 'NOTION_KEEP_ARCHIVES'
ENV_MAX_ARCHIVE_SIZE: str = 'NOTION_MAX_ARCHIVE_SIZE'
ENV_MAX_EXTRACTION_DEPTH: str = 'NOTION_MAX_EXTRACTION_DEPTH'
ENV_CLEANUP_FAILED: str = 'NOTION_CLEANUP_FAILED_DOWNLOADS'
ENV_LOG_PROGRESS_INTERVAL: str = 'NOTION_LOG_PROGRESS_INTERVAL'
ENV_LOG_LEVEL: str = 'LOG_LEVEL'
ENV_LOG_CONSOLE: str = 'LOG_CONSOLE'
ENV_LOG_DIR: str = 'NOTION_BACKUP_LOG_DIR'

# ============================================================================
# EXPORT DEFAULTS
# ============================================================================
DEFAULT_EXPORT_FORMATS: str = 'markdown,html'
DEFAULT_EXPORT_TIMEZONE: str = 'America/New_York'
DEFAULT_EXPORT_LOCALE: str = 'en'

# ============================================================================
# POLLING DEFAULTS
# ============================================================================
DEFAULT_POLL_INTERVAL: float = 10.0  # Seconds slept before every poll
DEFAULT_MAX_POLL_ATTEMPTS: int = 0  # 0 = no attempt cap
DEFAULT_MAX_WAIT_SECONDS: int = 7200  # 0 = no deadline

# ============================================================================
# REQUEST DEFAULTS
# ============================================================================
DEFAULT_REQUEST_RETRY_ATTEMPTS: int = 1  # Total attempts, 1 = no retry
DEFAULT_RETRY_DELAY: float = 1.0
DEFAULT_MAX_RETRY_DELAY: int = 60
DEFAULT_REQUEST_TIMEOUT: int = 60
DEFAULT_CONNECT_TIMEOUT: int = 30
DEFAULT_DOWNLOAD_TIMEOUT: int = 3600  # Large workspaces take a while
DEFAULT_CHUNK_SIZE: int = 65536

# ============================================================================
# EXTRACTION DEFAULTS
# ============================================================================
MAX_ARCHIVE_SIZE: int = 20 * 1024 ** 3  # 20GB uncompressed
MAX_EXTRACTION_DEPTH: int = 50
ZIP_READ_MODE: str = 'r'

# Inner part archives of a multi-part export, e.g. Export-1234-Part-1.zip
PART_ARCHIVE_PATTERN = re.compile(r'Part-\d+\.zip$', re.IGNORECASE)

# ============================================================================
# FILESYSTEM NAMING
# ============================================================================
ARCHIVE_SUFFIX: str = '.zip'
STAGING_SUFFIX: str = '.staging'
PREVIOUS_SUFFIX: str = '.previous'

# ============================================================================
# IPO LOGGING PREFIXES
# ============================================================================
LOG_INPUT: str = '[INPUT]'
LOG_PROCESS: str = '[PROCESS]'
LOG_OUTPUT: str = '[OUTPUT]'

# ============================================================================
# LOGGING COMPONENTS
# ============================================================================
LOGGER_ROOT: str = 'notion_backup'
LOGGER_CORE: str = 'notion_backup.core'
LOGGER_ENGINE: str = 'notion_backup.engine'
LOGGER_CLI: str = 'notion_backup.cli'
LOGGER_EXTRACTION: str = 'notion_backup.extraction'

DEFAULT_LOG_PROGRESS_INTERVAL: int = 100  # Chunks between progress lines

# ============================================================================
# LOG FORMAT
# ============================================================================
LOG_FORMAT: str = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
LOG_DATE_FORMAT: str = '%Y-%m-%d %H:%M:%S'
