# Path: notion_backup/core/config_loader.py
"""
Notion Backup Configuration Loader

Centralized configuration management for the backup module.
Loads environment variables with type conversion and defaults.

Credentials are loaded like every other value but only enforced by
validate(), so logging and path helpers can be constructed before the
entry point decides whether to abort.

Architecture:
- Singleton pattern for global configuration
- Type-safe access with defaults
- .env support via python-dotenv
"""

import os
from typing import Any, Optional
from pathlib import Path
from dotenv import load_dotenv

from notion_backup.core.errors import ConfigurationError
from notion_backup.constants import (
    ENV_NOTION_TOKEN,
    ENV_NOTION_FILE_TOKEN,
    ENV_NOTION_SPACE_ID,
    REQUIRED_ENV_VARS,
    ENV_API_BASE_URL,
    ENV_BACKUP_DIR,
    ENV_EXPORT_FORMATS,
    ENV_EXPORT_TIMEZONE,
    ENV_EXPORT_LOCALE,
    ENV_EXPORT_COMMENTS,
    ENV_POLL_INTERVAL,
    ENV_MAX_POLL_ATTEMPTS,
    ENV_MAX_WAIT_SECONDS,
    ENV_USE_TASK_STATUS,
    ENV_REQUEST_RETRY_ATTEMPTS,
    ENV_RETRY_DELAY,
    ENV_REQUEST_TIMEOUT,
    ENV_CONNECT_TIMEOUT,
    ENV_DOWNLOAD_TIMEOUT,
    ENV_CHUNK_SIZE,
    ENV_STAGED_COMMIT,
    ENV_KEEP_ARCHIVES,
    ENV_MAX_ARCHIVE_SIZE,
    ENV_MAX_EXTRACTION_DEPTH,
    ENV_CLEANUP_FAILED,
    ENV_LOG_PROGRESS_INTERVAL,
    ENV_LOG_LEVEL,
    ENV_LOG_CONSOLE,
    ENV_LOG_DIR,
    DEFAULT_API_BASE_URL,
    DEFAULT_EXPORT_FORMATS,
    DEFAULT_EXPORT_TIMEZONE,
    DEFAULT_EXPORT_LOCALE,
    DEFAULT_POLL_INTERVAL,
    DEFAULT_MAX_POLL_ATTEMPTS,
    DEFAULT_MAX_WAIT_SECONDS,
    DEFAULT_REQUEST_RETRY_ATTEMPTS,
    DEFAULT_RETRY_DELAY,
    DEFAULT_REQUEST_TIMEOUT,
    DEFAULT_CONNECT_TIMEOUT,
    DEFAULT_DOWNLOAD_TIMEOUT,
    DEFAULT_CHUNK_SIZE,
    DEFAULT_LOG_PROGRESS_INTERVAL,
    MAX_ARCHIVE_SIZE,
    MAX_EXTRACTION_DEPTH,
)


class ConfigLoader:
    """
    Singleton configuration loader.

    Example:
        config = ConfigLoader()
        config.validate()
        space_id = config.get('notion_space_id')
        backup_dir = config.get('backup_dir')
    """

    _instance: Optional['ConfigLoader'] = None
    _initialized: bool = False

    def __new__(cls) -> 'ConfigLoader':
        """Ensure only one instance exists (singleton pattern)."""
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __init__(self):
        """
        Initialize configuration loader.

        Only runs once due to singleton pattern.
        """
        if ConfigLoader._initialized:
            return

        # config_loader.py is at: <root>/notion_backup/core/config_loader.py
        # .env is at: <root>/.env
        current_file = Path(__file__).resolve()
        project_root = current_file.parent.parent.parent
        env_path = project_root / '.env'

        if env_path.exists():
            load_dotenv(dotenv_path=env_path, interpolate=True)

        self._config = self._load_configuration()
        ConfigLoader._initialized = True

    def _load_configuration(self) -> dict[str, Any]:
        """
        Load all configuration from environment.

        Returns:
            Dictionary of configuration values
        """
        config = {
            # ================================================================
            # CREDENTIALS (enforced by validate())
            # ================================================================
            'notion_token': self._get_env(ENV_NOTION_TOKEN),
            'notion_file_token': self._get_env(ENV_NOTION_FILE_TOKEN),
            'notion_space_id': self._get_env(ENV_NOTION_SPACE_ID),

            # ================================================================
            # REMOTE SERVICE
            # ================================================================
            'api_base_url': self._get_env(ENV_API_BASE_URL, DEFAULT_API_BASE_URL).rstrip('/'),
            'request_timeout': self._get_int(ENV_REQUEST_TIMEOUT, DEFAULT_REQUEST_TIMEOUT),
            'connect_timeout': self._get_int(ENV_CONNECT_TIMEOUT, DEFAULT_CONNECT_TIMEOUT),
            'download_timeout': self._get_int(ENV_DOWNLOAD_TIMEOUT, DEFAULT_DOWNLOAD_TIMEOUT),
            'request_retry_attempts': max(
                1, self._get_int(ENV_REQUEST_RETRY_ATTEMPTS, DEFAULT_REQUEST_RETRY_ATTEMPTS)
            ),
            'retry_delay': self._get_float(ENV_RETRY_DELAY, DEFAULT_RETRY_DELAY),
            'chunk_size': self._get_int(ENV_CHUNK_SIZE, DEFAULT_CHUNK_SIZE),

            # ================================================================
            # EXPORT OPTIONS
            # ================================================================
            'export_formats': self._get_list(ENV_EXPORT_FORMATS, DEFAULT_EXPORT_FORMATS),
            'export_timezone': self._get_env(ENV_EXPORT_TIMEZONE, DEFAULT_EXPORT_TIMEZONE),
            'export_locale': self._get_env(ENV_EXPORT_LOCALE, DEFAULT_EXPORT_LOCALE),
            'export_comments': self._get_bool(ENV_EXPORT_COMMENTS, False),

            # ================================================================
            # COMPLETION POLLING
            # ================================================================
            'poll_interval': self._get_float(ENV_POLL_INTERVAL, DEFAULT_POLL_INTERVAL),
            'max_poll_attempts': self._get_int(ENV_MAX_POLL_ATTEMPTS, DEFAULT_MAX_POLL_ATTEMPTS),
            'max_wait_seconds': self._get_int(ENV_MAX_WAIT_SECONDS, DEFAULT_MAX_WAIT_SECONDS),
            'use_task_status': self._get_bool(ENV_USE_TASK_STATUS, True),

            # ================================================================
            # FILESYSTEM
            # ================================================================
            'backup_dir': self._get_path(ENV_BACKUP_DIR) or Path.cwd(),
            'staged_commit': self._get_bool(ENV_STAGED_COMMIT, True),
            'keep_archives': self._get_bool(ENV_KEEP_ARCHIVES, True),
            'cleanup_failed_downloads': self._get_bool(ENV_CLEANUP_FAILED, True),

            # ================================================================
            # EXTRACTION
            # ================================================================
            'max_archive_size': self._get_int(ENV_MAX_ARCHIVE_SIZE, MAX_ARCHIVE_SIZE),
            'max_extraction_depth': self._get_int(ENV_MAX_EXTRACTION_DEPTH, MAX_EXTRACTION_DEPTH),

            # ================================================================
            # LOGGING
            # ================================================================
            'log_level': self._get_env(ENV_LOG_LEVEL, 'INFO'),
            'log_console': self._get_bool(ENV_LOG_CONSOLE, True),
            'log_dir': self._get_path(ENV_LOG_DIR),
            'log_progress_interval': self._get_int(
                ENV_LOG_PROGRESS_INTERVAL, DEFAULT_LOG_PROGRESS_INTERVAL
            ),
        }

        return config

    def validate(self) -> None:
        """
        Ensure all required credentials are present.

        Raises:
            ConfigurationError: Naming every missing variable
        """
        missing = [key for key in REQUIRED_ENV_VARS if not self._get_env(key)]
        if missing:
            raise ConfigurationError(
                f"Missing required environment variables: {', '.join(missing)}"
            )

    def _get_env(self, key: str, default: Optional[str] = None) -> Optional[str]:
        """
        Get string environment variable.

        Empty values count as missing.

        Args:
            key: Environment variable name
            default: Default value if not found

        Returns:
            Environment variable value or default
        """
        value = os.getenv(key)

        if value is None or not value.strip():
            return default

        return value.strip()

    def _get_bool(self, key: str, default: bool) -> bool:
        """
        Get boolean environment variable.

        Unrecognised values keep the default.

        Args:
            key: Environment variable name
            default: Default value if not found or unrecognised

        Returns:
            Boolean value
        """
        value = os.getenv(key)
        if value is None:
            return default

        value = value.strip().lower()
        if value in ('true', '1', 'yes', 'on'):
            return True
        if value in ('false', '0', 'no', 'off'):
            return False

        return default

    def _get_int(self, key: str, default: int) -> int:
        """
        Get integer environment variable.

        Args:
            key: Environment variable name
            default: Default value if not found or invalid

        Returns:
            Integer value
        """
        value = os.getenv(key)
        if value is None:
            return default

        try:
            return int(value.strip())
        except ValueError:
            return default

    def _get_float(self, key: str, default: float) -> float:
        """Get float environment variable, falling back on invalid input."""
        value = os.getenv(key)
        if value is None:
            return default

        try:
            return float(value.strip())
        except ValueError:
            return default

    def _get_list(self, key: str, default: str) -> list[str]:
        """Get comma-separated environment variable as a lowercase list."""
        value = self._get_env(key, default)
        return [item.strip().lower() for item in value.split(',') if item.strip()]

    def _get_path(self, key: str) -> Optional[Path]:
        """Get path environment variable or None."""
        value = self._get_env(key)

        if value is None:
            return None

        return Path(value).expanduser()

    def get(self, key: str, default: Any = None) -> Any:
        """
        Get configuration value.

        Args:
            key: Configuration key
            default: Default value if not found

        Returns:
            Configuration value or default
        """
        return self._config.get(key, default)

    def __getitem__(self, key: str) -> Any:
        """Dictionary-style access to configuration."""
        return self._config[key]

    @classmethod
    def reset(cls):
        """Reset singleton for testing purposes."""
        cls._instance = None
        cls._initialized = False


__all__ = ['ConfigLoader']
