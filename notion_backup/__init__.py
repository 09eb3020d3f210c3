# Path: notion_backup/__init__.py
"""
Notion Backup

Exports a Notion workspace as markdown and html, waits for the export
to finish, downloads the archives and unpacks them into local backup
directories.
"""

from .engine.coordinator import BackupCoordinator

__version__ = '1.0.0'

__all__ = ['BackupCoordinator']
