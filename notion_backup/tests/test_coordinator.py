# Path: notion_backup/tests/test_coordinator.py
"""
Backup Coordinator Tests

Runs complete backups with the network components faked and real
filesystem handling underneath, plus one run through every real
component against a local aiohttp server.
"""

import json
import logging
import time
from datetime import datetime
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

import pytest
from aiohttp import web
from aiohttp.test_utils import TestServer

from notion_backup.core.config_loader import ConfigLoader
from notion_backup.core.data_paths import DataPathsManager
from notion_backup.core.errors import ConfigurationError, ExportTimeoutError
from notion_backup.engine.coordinator import BackupCoordinator
from notion_backup.engine.extraction import ArchiveHandler
from notion_backup.engine.result import DownloadResult, ExportFormat, ExportJob
from notion_backup.tests.fixtures import (
    feed_entry,
    feed_response,
    make_export_zip,
    make_zip,
    zip_bytes,
)


class FakeHTTPHandler:
    """Writes prepared export archives instead of downloading them."""

    def __init__(self, archives):
        self.archives = archives
        self.calls = []
        self.close = AsyncMock()

    async def download(self, url, output_path: Path, headers=None) -> DownloadResult:
        self.calls.append((url, output_path, headers))
        build = self.archives.get(url)
        if build is None:
            return DownloadResult(
                success=False, url=url, file_path=output_path,
                status_code=403, error_message='HTTP 403'
            )

        build(output_path)
        return DownloadResult(
            success=True, url=url, file_path=output_path,
            file_size=output_path.stat().st_size, status_code=200
        )


def markdown_archive(path):
    make_export_zip(path, {
        'Export-md-Part-1.zip': {'Workspace/Home.md': '# new home'},
        'Export-md-Part-2.zip': {'Workspace/Todo.md': '- [ ] backup'},
    })


def html_archive(path):
    make_export_zip(path, {
        'Export-html-Part-1.zip': {'Workspace/Home.html': '<h1>new home</h1>'},
    })


def corrupt_archive(path):
    path.write_bytes(b'not a zip at all')


def make_coordinator(config, backup_root, archives, staged=True, wait_side_effect=None):
    order = []

    async def submit(export_format):
        order.append(export_format)
        return ExportJob(format=export_format, submitted_at=datetime.now(),
                         watched_since=1_700_000_000_000)

    async def wait_for_completion(job):
        return f'https://files/{job.format.value}.zip'

    api_client = MagicMock()
    api_client.auth_headers.return_value = {'Cookie': 'token_v2=t; file_token=f'}
    api_client.close = AsyncMock()

    submitter = MagicMock()
    submitter.submit = AsyncMock(side_effect=submit)

    watcher = MagicMock()
    watcher.wait_for_completion = AsyncMock(side_effect=wait_side_effect or wait_for_completion)

    http_handler = FakeHTTPHandler(archives)

    coordinator = BackupCoordinator(
        config,
        api_client=api_client,
        submitter=submitter,
        watcher=watcher,
        http_handler=http_handler,
        archive_handler=ArchiveHandler(config),
        path_manager=DataPathsManager(config, backup_root=backup_root, staged_commit=staged),
    )
    return coordinator, order


def seed_old_backups(backup_root):
    for fmt, name in (('markdown', 'Old.md'), ('html', 'Old.html')):
        directory = backup_root / fmt
        directory.mkdir(parents=True)
        (directory / name).write_text('old')


ALL_ARCHIVES = {
    'https://files/markdown.zip': markdown_archive,
    'https://files/html.zip': html_archive,
}


@pytest.mark.asyncio
async def test_full_run_populates_both_formats(config, backup_root):
    seed_old_backups(backup_root)
    coordinator, order = make_coordinator(config, backup_root, ALL_ARCHIVES)

    summary = await coordinator.run()

    assert order == [ExportFormat.MARKDOWN, ExportFormat.HTML]
    assert summary.succeeded == [ExportFormat.MARKDOWN, ExportFormat.HTML]
    assert summary.failed == []
    assert (backup_root / 'markdown' / 'Workspace' / 'Home.md').read_text() == '# new home'
    assert (backup_root / 'markdown' / 'Workspace' / 'Todo.md').exists()
    assert (backup_root / 'html' / 'Workspace' / 'Home.html').exists()
    assert not (backup_root / 'markdown' / 'Old.md').exists()
    assert not list((backup_root / 'markdown').glob('*.zip'))
    assert (backup_root / 'markdown.zip').exists()


@pytest.mark.asyncio
async def test_download_uses_session_headers(config, backup_root):
    coordinator, _ = make_coordinator(config, backup_root, ALL_ARCHIVES)

    await coordinator.run()

    url, output_path, headers = coordinator.http_handler.calls[0]
    assert url == 'https://files/markdown.zip'
    assert output_path == backup_root / 'markdown.zip'
    assert headers == {'Cookie': 'token_v2=t; file_token=f'}


@pytest.mark.asyncio
async def test_markdown_failure_does_not_stop_html_legacy(config, backup_root):
    seed_old_backups(backup_root)
    archives = {'https://files/html.zip': html_archive}
    coordinator, order = make_coordinator(config, backup_root, archives, staged=False)

    summary = await coordinator.run()

    markdown = summary.get(ExportFormat.MARKDOWN)
    assert order == [ExportFormat.MARKDOWN, ExportFormat.HTML]
    assert not markdown.success
    assert markdown.error_stage == 'download'
    assert 'HTTP 403' in markdown.error_message
    assert summary.succeeded == [ExportFormat.HTML]
    assert not (backup_root / 'markdown').exists()
    assert (backup_root / 'html' / 'Workspace' / 'Home.html').exists()
    assert not (backup_root / 'html' / 'Old.html').exists()


@pytest.mark.asyncio
async def test_markdown_failure_keeps_old_backup_staged(config, backup_root):
    seed_old_backups(backup_root)
    archives = {'https://files/html.zip': html_archive}
    coordinator, _ = make_coordinator(config, backup_root, archives, staged=True)

    summary = await coordinator.run()

    assert summary.failed == [ExportFormat.MARKDOWN]
    assert (backup_root / 'markdown' / 'Old.md').read_text() == 'old'
    assert (backup_root / 'html' / 'Workspace' / 'Home.html').exists()
    assert not (backup_root / 'html' / 'Old.html').exists()


@pytest.mark.asyncio
async def test_timeout_recorded_as_wait_failure(config, backup_root):
    async def wait_for_completion(job):
        if job.format is ExportFormat.MARKDOWN:
            raise ExportTimeoutError('markdown', 3, 30.0)
        return 'https://files/html.zip'

    coordinator, _ = make_coordinator(
        config, backup_root, ALL_ARCHIVES, wait_side_effect=wait_for_completion
    )

    summary = await coordinator.run()

    assert summary.get(ExportFormat.MARKDOWN).error_stage == 'wait'
    assert summary.succeeded == [ExportFormat.HTML]


@pytest.mark.asyncio
async def test_corrupt_archive_recorded_as_extract_failure(config, backup_root):
    seed_old_backups(backup_root)
    archives = dict(ALL_ARCHIVES)
    archives['https://files/markdown.zip'] = corrupt_archive
    coordinator, _ = make_coordinator(config, backup_root, archives)

    summary = await coordinator.run()

    markdown = summary.get(ExportFormat.MARKDOWN)
    assert markdown.error_stage == 'extract'
    assert markdown.extraction_result is not None
    assert (backup_root / 'markdown' / 'Old.md').exists()
    assert summary.succeeded == [ExportFormat.HTML]


@pytest.mark.asyncio
async def test_corrupt_part_recorded_as_part_failure(config, backup_root):
    def bad_parts(path):
        make_zip(path, {
            'Export-md-Part-1.zip': b'broken part',
        })

    archives = dict(ALL_ARCHIVES)
    archives['https://files/markdown.zip'] = bad_parts
    coordinator, _ = make_coordinator(config, backup_root, archives)

    summary = await coordinator.run()

    markdown = summary.get(ExportFormat.MARKDOWN)
    assert markdown.error_stage == 'extract_parts'
    assert len(markdown.part_results) == 1


@pytest.mark.asyncio
async def test_unexpected_error_is_contained(config, backup_root):
    coordinator, _ = make_coordinator(config, backup_root, ALL_ARCHIVES)
    coordinator.submitter.submit = AsyncMock(side_effect=[
        RuntimeError('boom'),
        ExportJob(format=ExportFormat.HTML, submitted_at=datetime.now(), watched_since=1),
    ])

    summary = await coordinator.run()

    markdown = summary.get(ExportFormat.MARKDOWN)
    assert markdown.error_stage == 'submit'
    assert markdown.error_message == 'boom'
    assert summary.succeeded == [ExportFormat.HTML]


@pytest.mark.asyncio
async def test_configured_formats_run_in_canonical_order(monkeypatch, backup_root):
    monkeypatch.setenv('NOTION_EXPORT_FORMATS', 'html,markdown')
    ConfigLoader.reset()
    coordinator, order = make_coordinator(ConfigLoader(), backup_root, ALL_ARCHIVES)

    await coordinator.run()

    assert order == [ExportFormat.MARKDOWN, ExportFormat.HTML]


@pytest.mark.asyncio
async def test_single_format_run(monkeypatch, backup_root):
    monkeypatch.setenv('NOTION_EXPORT_FORMATS', 'html')
    ConfigLoader.reset()
    seed_old_backups(backup_root)
    coordinator, order = make_coordinator(ConfigLoader(), backup_root, ALL_ARCHIVES,
                                          staged=False)

    await coordinator.run()

    assert order == [ExportFormat.HTML]
    assert (backup_root / 'markdown' / 'Old.md').exists()


def test_unknown_format_rejected(monkeypatch):
    monkeypatch.setenv('NOTION_EXPORT_FORMATS', 'markdown,pdf')
    ConfigLoader.reset()

    with pytest.raises(ConfigurationError, match='pdf'):
        BackupCoordinator(api_client=MagicMock(), http_handler=MagicMock())


@pytest.mark.asyncio
async def test_close_releases_clients(config, backup_root):
    coordinator, _ = make_coordinator(config, backup_root, ALL_ARCHIVES)

    await coordinator.close()

    coordinator.http_handler.close.assert_awaited_once()
    coordinator.api_client.close.assert_awaited_once()


@pytest.mark.asyncio
async def test_format_result_logged_as_json(config, backup_root, caplog):
    archives = {'https://files/html.zip': html_archive}
    coordinator, _ = make_coordinator(config, backup_root, archives)
    caplog.set_level(logging.DEBUG, logger='notion_backup')

    await coordinator.run()

    logged = {}
    for record in caplog.records:
        message = record.getMessage()
        if ' result: ' in message:
            export_format, _, payload = message.partition(' result: ')
            logged[export_format.split()[-1]] = json.loads(payload)

    assert logged['markdown']['success'] is False
    assert logged['markdown']['error_stage'] == 'download'
    assert logged['markdown']['download_result']['status_code'] == 403
    assert logged['html']['success'] is True
    assert logged['html']['parts_extracted'] == 1
    assert logged['html']['extraction_result']['success'] is True


@pytest.mark.asyncio
@pytest.mark.parametrize('staged, expected, unexpected', [
    (True, 'Preparing backup directories...', 'Removing old backups...'),
    (False, 'Removing old backups...', 'Preparing backup directories...'),
])
async def test_cleanup_message_matches_mode(config, backup_root, caplog,
                                            staged, expected, unexpected):
    coordinator, _ = make_coordinator(config, backup_root, ALL_ARCHIVES, staged=staged)
    caplog.set_level(logging.INFO, logger='notion_backup')

    await coordinator.run()

    messages = [record.getMessage() for record in caplog.records]
    assert any(expected in message for message in messages)
    assert not any(unexpected in message for message in messages)


EXPORT_CONTENTS = {
    'markdown': {
        'Export-md-Part-1.zip': {'Workspace/Home.md': '# home'},
        'Export-md-Part-2.zip': {'Workspace/Notes/Idea.md': 'idea'},
    },
    'html': {
        'Export-html-Part-1.zip': {'Workspace/Home.html': '<h1>home</h1>'},
        'Export-html-Part-2.zip': {'Workspace/Notes/Idea.html': '<p>idea</p>'},
        'Export-html-Part-3.zip': {'Workspace/Notes/image.png': b'\x89PNG'},
    },
}


def notion_app(state):
    """
    Local stand-in for the API and file host.

    The completion record of the current export appears on the second
    feed poll; an older completion record is always present.
    """
    async def enqueue(request):
        body = await request.json()
        state['format'] = body['task']['request']['exportOptions']['exportType']
        state['enqueued_at'] = int(time.time() * 1000)
        state['polls'][state['format']] = 0
        return web.json_response({})

    async def notification_log(request):
        export_format = state['format']
        state['polls'][export_format] += 1

        entries = [feed_entry(
            'export-completed',
            state['enqueued_at'] - 60_000,
            (str(request.url.with_path('/files/stale.zip')),),
        )]
        if state['polls'][export_format] >= 2:
            entries.insert(0, feed_entry(
                'export-completed',
                state['enqueued_at'],
                (str(request.url.with_path(f'/files/{export_format}.zip')),),
            ))
        return web.json_response(feed_response(*entries))

    async def export_file(request):
        cookie = request.headers.get('Cookie', '')
        state['download_cookies'].append(cookie)
        name = request.match_info['name']
        if 'file_token=test-file-token' not in cookie or name not in EXPORT_CONTENTS:
            return web.Response(status=403)

        parts = {part: zip_bytes(files) for part, files in EXPORT_CONTENTS[name].items()}
        return web.Response(body=zip_bytes(parts))

    app = web.Application()
    app.router.add_post('/api/v3/enqueueTask', enqueue)
    app.router.add_post('/api/v3/getNotificationLogV2', notification_log)
    app.router.add_get('/files/{name}.zip', export_file)
    return app


@pytest.mark.asyncio
async def test_run_against_local_server(monkeypatch, backup_root):
    state = {'polls': {}, 'download_cookies': []}
    seed_old_backups(backup_root)

    async with TestServer(notion_app(state)) as server:
        monkeypatch.setenv('NOTION_API_BASE_URL', str(server.make_url('/api/v3')))
        monkeypatch.setenv('NOTION_POLL_INTERVAL', '0')
        ConfigLoader.reset()

        coordinator = BackupCoordinator(ConfigLoader())
        try:
            summary = await coordinator.run()
        finally:
            await coordinator.close()

    assert summary.succeeded == [ExportFormat.MARKDOWN, ExportFormat.HTML]
    assert state['polls'] == {'markdown': 2, 'html': 2}
    assert len(state['download_cookies']) == 2
    assert all('token_v2=test-token' in cookie for cookie in state['download_cookies'])

    markdown = backup_root / 'markdown'
    html = backup_root / 'html'
    assert (markdown / 'Workspace' / 'Home.md').read_text() == '# home'
    assert (markdown / 'Workspace' / 'Notes' / 'Idea.md').exists()
    assert (html / 'Workspace' / 'Notes' / 'image.png').read_bytes() == b'\x89PNG'
    assert not (markdown / 'Old.md').exists()
    assert not list(markdown.glob('*.zip')) and not list(html.glob('*.zip'))
    assert (backup_root / 'markdown.zip').exists()
