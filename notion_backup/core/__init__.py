# Path: notion_backup/core/__init__.py
"""
Notion Backup Core Module

Core utilities for the backup module: configuration, logging,
filesystem paths and the error hierarchy.
"""

from .config_loader import ConfigLoader
from .data_paths import DataPathsManager
from .errors import (
    NotionBackupError,
    ConfigurationError,
    NotionAPIError,
    ExportTimeoutError,
    ExportFailedError,
    DownloadError,
    ExtractionError,
)
from .logger import get_logger, configure_logging

__all__ = [
    'ConfigLoader',
    'DataPathsManager',
    'NotionBackupError',
    'ConfigurationError',
    'NotionAPIError',
    'ExportTimeoutError',
    'ExportFailedError',
    'DownloadError',
    'ExtractionError',
    'get_logger',
    'configure_logging',
]
