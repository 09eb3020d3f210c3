# Path: notion_backup/core/logger.py
"""
Notion Backup Logger

Centralized logging configuration for the backup module.

Architecture:
- Component-based logging (core, engine, cli, extraction)
- File and console output
- Configurable log levels
- IPO (Input-Process-Output) structured logging
"""

import logging
from typing import Optional

from notion_backup.core.config_loader import ConfigLoader
from notion_backup.constants import (
    LOG_FORMAT,
    LOG_DATE_FORMAT,
    LOGGER_ROOT,
    LOGGER_CORE,
    LOGGER_ENGINE,
    LOGGER_CLI,
    LOGGER_EXTRACTION,
)


class BackupLogger:
    """
    Centralized logger for the backup module.

    Provides component-specific loggers with unified configuration.

    Example:
        logger = get_logger(__name__, 'engine')
        logger.info("[INPUT] Submitting markdown export")
        logger.info("[PROCESS] Polling activity feed")
        logger.info("[OUTPUT] Export URL found")
    """

    def __init__(self, config: Optional[ConfigLoader] = None):
        """
        Initialize backup logger.

        Args:
            config: Optional ConfigLoader instance (resolved on configure)
        """
        self.config = config
        self._configured = False

    def configure(self) -> None:
        """Configure logging system for the backup module."""
        if self._configured:
            return

        config = self.config if self.config else ConfigLoader()

        log_dir = config.get('log_dir')
        log_level = getattr(logging, str(config.get('log_level', 'INFO')).upper(), logging.INFO)
        console_output = config.get('log_console', True)

        formatter = logging.Formatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT)

        logger = logging.getLogger(LOGGER_ROOT)
        logger.setLevel(log_level)

        # Clear any existing handlers
        logger.handlers.clear()

        if log_dir:
            log_dir.mkdir(parents=True, exist_ok=True)

            file_handler = logging.FileHandler(log_dir / 'backup_activity.log')
            file_handler.setLevel(log_level)
            file_handler.setFormatter(formatter)
            logger.addHandler(file_handler)

            # Error-only log file
            error_handler = logging.FileHandler(log_dir / 'errors.log')
            error_handler.setLevel(logging.ERROR)
            error_handler.setFormatter(formatter)
            logger.addHandler(error_handler)

        if console_output:
            console_handler = logging.StreamHandler()
            console_handler.setLevel(log_level)
            console_handler.setFormatter(formatter)
            logger.addHandler(console_handler)

        self._configured = True

    def get_logger(self, name: str, component: str = 'core') -> logging.Logger:
        """
        Get logger for specific component.

        Logging is configured lazily by configure_logging() so importing
        a module never reads configuration.

        Args:
            name: Module name (typically __name__)
            component: Component type ('core', 'engine', 'cli', 'extraction')

        Returns:
            Logger instance
        """
        if component == 'core':
            logger_name = f"{LOGGER_CORE}.{name}"
        elif component == 'engine':
            logger_name = f"{LOGGER_ENGINE}.{name}"
        elif component == 'cli':
            logger_name = f"{LOGGER_CLI}.{name}"
        elif component == 'extraction':
            logger_name = f"{LOGGER_EXTRACTION}.{name}"
        else:
            logger_name = f"{LOGGER_ROOT}.{name}"

        return logging.getLogger(logger_name)


# Global logger instance
_backup_logger = BackupLogger()


def get_logger(name: str, component: str = 'core') -> logging.Logger:
    """
    Get logger for backup module component.

    Args:
        name: Module name (typically __name__)
        component: Component type ('core', 'engine', 'cli', 'extraction')

    Returns:
        Logger instance

    Example:
        from notion_backup.core.logger import get_logger

        logger = get_logger(__name__, 'engine')
        logger.info("[INPUT] Processing export request")
    """
    return _backup_logger.get_logger(name, component)


def configure_logging(config: Optional[ConfigLoader] = None) -> None:
    """
    Configure backup logging system.

    Call this once at process start.

    Args:
        config: Optional ConfigLoader instance
    """
    global _backup_logger

    if config:
        _backup_logger = BackupLogger(config)

    _backup_logger.configure()


__all__ = ['get_logger', 'configure_logging', 'BackupLogger']
