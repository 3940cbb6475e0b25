"""Map source notes to their published location and URL."""

import re
from typing import Optional
from urllib.parse import quote

from note_publisher.core.config import PublisherConfig
from note_publisher.core.models import NoteRef
from note_publisher.core.storage import Storage

# Characters encodeURIComponent leaves alone besides alphanumerics and "-_.~"
URL_SAFE_CHARS = "!*'()"


def target_path(note: NoteRef, config: PublisherConfig) -> str:
    """Compute where a note is copied to.

    Args:
        note: Source note
        config: Publisher settings

    Returns:
        Vault-relative destination path
    """
    target_root = config.target_folder_path.strip('/')
    file_name = f"{config.publish_prefix}{note.name}" if config.add_publish_prefix else note.name

    if config.preserve_folder_structure and note.parent:
        return f"{target_root}/{note.parent}/{file_name}"
    return f"{target_root}/{file_name}"


def parent_folder(path: str) -> str:
    """Folder part of a vault path ('' at the vault root)."""
    return path.rsplit('/', 1)[0] if '/' in path else ''


def ensure_folder(storage: Storage, folder_path: str) -> None:
    """Create a folder and all its ancestors, skipping existing ones."""
    current = ''
    for part in folder_path.strip('/').split('/'):
        if not part:
            continue
        current = f"{current}/{part}" if current else part
        if not storage.exists(current):
            storage.create_folder(current)


def url_segment(segment: str) -> str:
    """Make one path segment URL friendly.

    'A & B' -> 'A--and--B', whitespace runs -> '-', then percent-encoded.
    """
    segment = re.sub(r'\s*&\s*', '--and--', segment)
    segment = re.sub(r'\s+', '-', segment)
    return quote(segment, safe=URL_SAFE_CHARS)


def public_url(note: NoteRef, config: PublisherConfig) -> Optional[str]:
    """Shareable URL of a published note.

    Built from the note's source path, never from its copy in the target
    folder.

    Returns:
        URL string, or None when no base URL is configured
    """
    if not config.base_url:
        return None

    path = re.sub(r'\.md$', '', note.path)
    encoded = '/'.join(url_segment(segment) for segment in path.split('/'))
    return f"{config.base_url.rstrip('/')}/{encoded}"


def is_valid_target_path(folder_path: str) -> bool:
    """Check a target folder is a plain relative path inside the vault."""
    if not folder_path or '..' in folder_path or '\\' in folder_path:
        return False
    return not folder_path.startswith('/') and ':' not in folder_path
