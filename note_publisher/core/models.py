"""Data models for Note Publisher."""

import posixpath
from dataclasses import dataclass, field
from typing import List, Optional, Set


class PublisherError(Exception):
    """Base class for errors raised by Note Publisher."""


class ValidationError(PublisherError):
    """A publish request failed its pre-flight checks."""


class ConfigError(PublisherError):
    """Configuration could not be loaded."""


class RenderError(PublisherError):
    """A drawing could not be rendered to an image."""


class RewriteError(PublisherError):
    """A single drawing link could not be rewritten."""


@dataclass(frozen=True)
class NoteRef:
    """Cheapest possible file reference - just the vault-relative path.

    Two references are equal when their paths are equal.
    """
    path: str

    @property
    def name(self) -> str:
        """File name including extension."""
        return posixpath.basename(self.path)

    @property
    def basename(self) -> str:
        """File name without its last extension."""
        name = self.name
        if '.' in name.lstrip('.'):
            return name.rsplit('.', 1)[0]
        return name

    @property
    def extension(self) -> str:
        """Last extension without the dot, lowercased ('' if none)."""
        name = self.name
        if '.' in name.lstrip('.'):
            return name.rsplit('.', 1)[1].lower()
        return ''

    @property
    def parent(self) -> str:
        """Folder path containing the file ('' for the vault root)."""
        return posixpath.dirname(self.path)


@dataclass
class PublishOptions:
    """Options for a single publish call.

    max_depth of None means "use the configured default".
    """
    include_linked: bool = True
    max_depth: Optional[int] = None
    exclude_patterns: Optional[List[str]] = None


@dataclass
class PublishResult:
    """Result of a publish operation."""
    published_files: Set[str] = field(default_factory=set)
    skipped_files: Set[str] = field(default_factory=set)
    errors: List[str] = field(default_factory=list)
    url: Optional[str] = None
    created_images: List[str] = field(default_factory=list)


@dataclass
class PublishStats:
    """What a publish would copy, without copying anything."""
    total_files: int = 1
    linked_files: List[NoteRef] = field(default_factory=list)
    estimated_size: int = 0


@dataclass
class EmbeddedFile:
    """An attachment of a drawing, inlined as a data URL.

    Keyed by the id declared in the drawing's Embedded Files section.
    Timestamps are milliseconds since the epoch.
    """
    id: str
    data_url: str
    mime_type: str
    created: int
    last_retrieved: int
