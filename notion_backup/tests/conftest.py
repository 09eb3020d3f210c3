# Path: notion_backup/tests/conftest.py
"""Shared pytest fixtures for the backup test suite."""

import pytest

from notion_backup.core.config_loader import ConfigLoader


@pytest.fixture(autouse=True)
def backup_env(monkeypatch, tmp_path):
    """Provide credentials and an isolated backup root for every test."""
    monkeypatch.setenv('NOTION_TOKEN', 'test-token')
    monkeypatch.setenv('NOTION_FILE_TOKEN', 'test-file-token')
    monkeypatch.setenv('NOTION_SPACE_ID', 'space-123')
    monkeypatch.setenv('NOTION_BACKUP_DIR', str(tmp_path / 'backup'))
    monkeypatch.setenv('LOG_CONSOLE', 'false')
    ConfigLoader.reset()
    yield
    ConfigLoader.reset()


@pytest.fixture
def config():
    """Fresh configuration built from the test environment."""
    return ConfigLoader()


@pytest.fixture
def backup_root(tmp_path):
    root = tmp_path / 'backup'
    root.mkdir()
    return root
