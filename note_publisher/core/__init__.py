"""Core components for Note Publisher."""

from note_publisher.core.models import (
    ConfigError,
    EmbeddedFile,
    NoteRef,
    PublisherError,
    PublishOptions,
    PublishResult,
    PublishStats,
    RenderError,
    RewriteError,
    ValidationError,
)
from note_publisher.core.config import PublisherConfig, load_config
from note_publisher.core.storage import Storage, VaultStorage
from note_publisher.core.resolver import LinkResolver
from note_publisher.core.links import WikiLink, extract_links, is_excluded
from note_publisher.core.discovery import LinkDiscovery
from note_publisher.core.mapper import public_url, target_path
from note_publisher.core.processor import DrawingProcessor
from note_publisher.core.render import CommandRenderer, DrawingRenderer
from note_publisher.core.walker import PublishWalker
from note_publisher.core.publisher import Publisher, create_publisher_from_config

__all__ = [
    "ConfigError",
    "EmbeddedFile",
    "NoteRef",
    "PublisherError",
    "PublishOptions",
    "PublishResult",
    "PublishStats",
    "RenderError",
    "RewriteError",
    "ValidationError",
    "PublisherConfig",
    "load_config",
    "Storage",
    "VaultStorage",
    "LinkResolver",
    "WikiLink",
    "extract_links",
    "is_excluded",
    "LinkDiscovery",
    "public_url",
    "target_path",
    "DrawingProcessor",
    "CommandRenderer",
    "DrawingRenderer",
    "PublishWalker",
    "Publisher",
    "create_publisher_from_config",
]
