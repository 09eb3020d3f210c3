# Path: notion_backup/tests/test_backup.py
"""Process entry point tests."""

from unittest.mock import AsyncMock, MagicMock

from notion_backup import backup
from notion_backup.core.config_loader import ConfigLoader
from notion_backup.engine.result import ExportFormat, FormatResult, RunSummary


def fake_coordinator_class(summary=None, run_error=None):
    instance = MagicMock()
    instance.run = AsyncMock(return_value=summary or RunSummary(), side_effect=run_error)
    instance.close = AsyncMock()
    return MagicMock(return_value=instance), instance


def test_missing_credentials_exit_1_without_running(monkeypatch, capsys):
    monkeypatch.delenv('NOTION_TOKEN')
    monkeypatch.delenv('NOTION_FILE_TOKEN')
    ConfigLoader.reset()
    coordinator_class, _ = fake_coordinator_class()
    monkeypatch.setattr(backup, 'BackupCoordinator', coordinator_class)

    assert backup.main() == 1

    stderr = capsys.readouterr().err
    assert 'NOTION_TOKEN' in stderr
    assert 'NOTION_FILE_TOKEN' in stderr
    coordinator_class.assert_not_called()


def test_format_failures_still_exit_0(monkeypatch):
    summary = RunSummary(results=[
        FormatResult(format=ExportFormat.MARKDOWN, error_stage='download'),
        FormatResult(format=ExportFormat.HTML, success=True),
    ])
    coordinator_class, instance = fake_coordinator_class(summary=summary)
    monkeypatch.setattr(backup, 'BackupCoordinator', coordinator_class)

    assert backup.main() == 0

    instance.run.assert_awaited_once()
    instance.close.assert_awaited_once()


def test_fatal_error_exit_1_and_closes(monkeypatch, capsys):
    coordinator_class, instance = fake_coordinator_class(run_error=OSError('disk full'))
    monkeypatch.setattr(backup, 'BackupCoordinator', coordinator_class)

    assert backup.main() == 1

    assert 'disk full' in capsys.readouterr().err
    instance.close.assert_awaited_once()
