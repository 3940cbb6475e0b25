"""
Note Publisher - Publish a note and its linked notes inside a vault

Copies a note and the notes reachable from it through wikilinks into a
publish folder, with support for:
- Depth-bounded, cycle-safe link following
- Exclusion patterns for links
- Excalidraw drawing to image conversion
- Shareable URL generation
"""

from note_publisher.core.models import NoteRef, PublishOptions, PublishResult, PublishStats
from note_publisher.core.config import PublisherConfig, load_config
from note_publisher.core.publisher import Publisher, create_publisher_from_config
from note_publisher.core.storage import VaultStorage

__version__ = "0.1.0"

__all__ = [
    "NoteRef",
    "PublishOptions",
    "PublishResult",
    "PublishStats",
    "PublisherConfig",
    "load_config",
    "Publisher",
    "create_publisher_from_config",
    "VaultStorage",
]
