# Path: notion_backup/engine/extraction/__init__.py
"""
Extraction Module

Zip extraction for export archives and their nested part archives.
"""

from notion_backup.engine.extraction.archive_handler import (
    ArchiveHandler,
    ZipExtractor,
)

__all__ = [
    'ArchiveHandler',
    'ZipExtractor',
]
