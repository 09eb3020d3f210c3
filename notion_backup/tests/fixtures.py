# Path: notion_backup/tests/fixtures.py
"""
Test Fixtures for the backup module

Builders for export archives and activity feed responses.
"""

import io
import zipfile
from pathlib import Path
from typing import Optional, Union


def zip_bytes(files: dict[str, Union[str, bytes]]) -> bytes:
    """Build an in-memory zip archive from {member name: content}."""
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, 'w', zipfile.ZIP_DEFLATED) as zf:
        for name, content in files.items():
            zf.writestr(name, content)
    return buffer.getvalue()


def make_zip(path: Path, files: dict[str, Union[str, bytes]]) -> Path:
    """Write a zip archive to path."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(zip_bytes(files))
    return path


def make_export_zip(
    path: Path,
    parts: dict[str, dict[str, Union[str, bytes]]],
    extra_files: Optional[dict[str, Union[str, bytes]]] = None
) -> Path:
    """
    Write a multi-part export archive.

    Args:
        path: Where to write the outer archive
        parts: {part archive name: {member name: content}}
        extra_files: Plain files stored next to the parts

    Returns:
        path
    """
    members: dict[str, Union[str, bytes]] = dict(extra_files or {})
    for part_name, part_files in parts.items():
        members[part_name] = zip_bytes(part_files)
    return make_zip(path, members)


def feed_entry(
    activity_type: str,
    start_time: Union[int, str],
    links: tuple = (),
    nested: bool = True,
    activity_id: Optional[str] = None
) -> dict:
    """Build one recordMap.activity entry as the feed returns it."""
    value = {
        'type': activity_type,
        'start_time': start_time,
        'edits': [{'link': link} for link in links],
    }
    if activity_id:
        value['id'] = activity_id
    if nested:
        return {'value': {'value': value, 'role': 'reader'}}
    return {'value': value}


def feed_response(*entries: dict) -> dict:
    """Wrap feed entries in a getNotificationLogV2 response."""
    return {
        'notificationIds': [f'n{i}' for i in range(len(entries))],
        'recordMap': {
            'activity': {f'activity-{i}': entry for i, entry in enumerate(entries)},
        },
    }


def tree_snapshot(root: Path) -> list[str]:
    """Sorted relative paths of everything under root."""
    if not root.exists():
        return []
    return sorted(str(path.relative_to(root)) for path in root.rglob('*'))
