"""Excalidraw drawing documents: detection, payload decoding and attachments."""

import base64
import json
import logging
import re
import time
from typing import Any, Dict, List, Tuple

import filetype
import yaml
from lzstring import LZString

from note_publisher.core.models import EmbeddedFile, NoteRef, RewriteError
from note_publisher.core.resolver import LinkResolver
from note_publisher.core.storage import Storage

logger = logging.getLogger(__name__)

DRAWING_EXTENSION = 'excalidraw'

# Only these extensions are read as text when classifying a link target
TEXT_EXTENSIONS = ('md', DRAWING_EXTENSION)

FRONTMATTER_PATTERN = re.compile(r'^---\s*([\s\S]*?)\s*---')
PLUGIN_MARKER_PATTERN = re.compile(r'excalidraw-plugin:\s*parsed', re.IGNORECASE)
EXCALIDRAW_PATTERN = re.compile(r'excalidraw', re.IGNORECASE)
DRAWING_HEADING_PATTERN = re.compile(r'##?\s*Drawing', re.IGNORECASE)

# Compressed scene inside a fenced block under the Drawing heading
DRAWING_COMPRESSED_PATTERN = re.compile(
    r'(\n##? Drawing\n[^`]*(?:```compressed-json\n))([\s\S]*?)(```\n)', re.MULTILINE
)
# Older layout: payload on the line right after the heading
DRAWING_COMPRESSED_FALLBACK_PATTERN = re.compile(
    r'(\n##? Drawing\n(?:```compressed-json\n)?)(.*)((```)?(%%)?)', re.MULTILINE
)

EMBEDDED_FILES_PATTERN = re.compile(r'## Embedded Files\s+([\s\S]*?)(?=\s*##|\Z)')
EMBEDDED_ENTRY_PATTERN = re.compile(r'([a-f0-9]+):\s*\[\[(.*?)\]\]')

DEFAULT_MIME_TYPE = 'image/png'


def _frontmatter_flags(block: str) -> Tuple[bool, bool]:
    """Return (has plugin marker, mentions excalidraw) for a frontmatter block."""
    try:
        frontmatter = yaml.safe_load(block)
    except yaml.YAMLError as e:
        logger.debug("Unparseable frontmatter, matching raw text: %s", e)
        frontmatter = None

    if not isinstance(frontmatter, dict):
        return bool(PLUGIN_MARKER_PATTERN.search(block)), bool(EXCALIDRAW_PATTERN.search(block))

    marker = str(frontmatter.get('excalidraw-plugin', '')).strip().lower() == 'parsed'

    tags = frontmatter.get('tags') or []
    if isinstance(tags, str):
        tags = [tags]
    tagged = any('excalidraw' in str(tag).lower() for tag in tags)
    tagged = tagged or any(str(key).lower().startswith('excalidraw') for key in frontmatter)

    return marker, tagged


def is_drawing_content(note: NoteRef, content: str, link_text: str = '') -> bool:
    """Classify already-loaded file content as a drawing document.

    A file is a drawing when any of these hold:
    - its frontmatter has ``excalidraw-plugin: parsed``
    - its frontmatter mentions excalidraw and it has a Drawing heading
    - its extension is .excalidraw

    Args:
        note: The file being classified
        content: Its text
        link_text: Link target used to reach it, if any

    Returns:
        True for drawing documents
    """
    if note.extension == DRAWING_EXTENSION:
        return True

    match = FRONTMATTER_PATTERN.match(content)
    if not match:
        return link_text.strip().endswith('.excalidraw') or note.name.endswith('.excalidraw')

    marker, tagged = _frontmatter_flags(match.group(1))
    if marker:
        return True
    return tagged and bool(DRAWING_HEADING_PATTERN.search(content))


def decompress_drawing(content: str) -> str:
    """Extract the scene JSON text from a drawing document.

    Content with no recognizable compressed block is assumed to already be
    plain scene JSON and is returned as is.

    Raises:
        RewriteError: If a compressed block is present but cannot be decoded
    """
    match = DRAWING_COMPRESSED_PATTERN.search(content)
    if match is None:
        match = DRAWING_COMPRESSED_FALLBACK_PATTERN.search(content)
    if match is None:
        return content

    cleaned = re.sub(r'[\n\r]', '', match.group(2))
    try:
        decompressed = LZString().decompressFromBase64(cleaned)
    except Exception as e:
        raise RewriteError(f"Decompression failed: {e}") from e

    if not decompressed:
        raise RewriteError("Decompression produced no data")
    return decompressed


class DrawingReader:
    """Loads drawing documents and their attachments from the vault."""

    def __init__(self, storage: Storage, resolver: LinkResolver):
        self.storage = storage
        self.resolver = resolver

    def is_drawing(self, note: NoteRef, link_text: str = '') -> bool:
        """Check whether a vault file is a drawing document.

        Read failures are logged and treated as "not a drawing".
        """
        if note.extension not in TEXT_EXTENSIONS:
            return False
        try:
            content = self.storage.read(note.path)
        except (OSError, UnicodeDecodeError) as e:
            logger.warning("Error reading file %s: %s", note.path, e)
            return False
        return is_drawing_content(note, content, link_text)

    def load_scene(self, note: NoteRef) -> Tuple[List[Dict[str, Any]], Dict[str, EmbeddedFile]]:
        """Load the elements and attachments of a drawing.

        Returns:
            Tuple of (elements, embedded files keyed by id)

        Raises:
            RewriteError: If the payload cannot be decoded or parsed
        """
        content = self.storage.read(note.path)
        scene_text = decompress_drawing(content)

        try:
            scene = json.loads(scene_text)
        except ValueError as e:
            raise RewriteError(f"Invalid drawing data in {note.path}: {e}") from e
        if not isinstance(scene, dict):
            raise RewriteError(f"Invalid drawing data in {note.path}: not an object")

        elements = scene.get('elements') or []
        return elements, self.load_embedded_files(content, note.path)

    def load_embedded_files(self, content: str, source_path: str) -> Dict[str, EmbeddedFile]:
        """Inline the attachments listed in the Embedded Files section.

        Attachments that cannot be resolved or read are skipped.
        """
        embedded: Dict[str, EmbeddedFile] = {}
        section = EMBEDDED_FILES_PATTERN.search(content)
        if not section or not section.group(1):
            return embedded

        for entry in section.group(1).strip().split('\n'):
            match = EMBEDDED_ENTRY_PATTERN.search(entry)
            if not match:
                continue

            file_id = match.group(1)
            file_path = match.group(2).strip()
            attachment = self.resolver.resolve(file_path, source_path)
            if attachment is None:
                logger.warning("Embedded file not found: %s (in %s)", file_path, source_path)
                continue

            try:
                data = self.storage.read_binary(attachment.path)
            except OSError as e:
                logger.error("Error loading embedded file %s: %s", file_path, e)
                continue

            kind = filetype.guess(data)
            mime_type = kind.mime if kind else DEFAULT_MIME_TYPE
            encoded = base64.b64encode(data).decode('ascii')
            now = int(time.time() * 1000)

            embedded[file_id] = EmbeddedFile(
                id=file_id,
                data_url=f"data:{mime_type};base64,{encoded}",
                mime_type=mime_type,
                created=now,
                last_retrieved=now,
            )

        return embedded


def scene_files_payload(files: Dict[str, EmbeddedFile]) -> Dict[str, Dict[str, Any]]:
    """Convert embedded files to the Excalidraw ``files`` mapping."""
    return {
        file_id: {
            'id': f.id,
            'dataURL': f.data_url,
            'mimeType': f.mime_type,
            'created': f.created,
            'lastRetrieved': f.last_retrieved,
        }
        for file_id, f in files.items()
    }
