"""Link discovery: which notes does a note link to."""

import logging
from typing import List, Optional, Sequence, Set

from note_publisher.core.drawings import DrawingReader
from note_publisher.core.links import extract_links, is_excluded
from note_publisher.core.models import NoteRef
from note_publisher.core.resolver import LinkResolver
from note_publisher.core.storage import Storage

logger = logging.getLogger(__name__)

NOTE_EXTENSION = 'md'


class LinkDiscovery:
    """Finds the notes a note links to, honoring exclusion patterns."""

    def __init__(
        self,
        storage: Storage,
        resolver: LinkResolver,
        exclude_patterns: Optional[Sequence[str]] = None,
        reader: Optional[DrawingReader] = None,
    ):
        """Initialize LinkDiscovery.

        Args:
            storage: Vault storage
            resolver: Resolves link targets
            exclude_patterns: Link targets matching any of these are dropped
            reader: Drawing reader used to skip drawing documents
        """
        self.storage = storage
        self.resolver = resolver
        self.exclude_patterns = list(exclude_patterns or [])
        self.reader = reader or DrawingReader(storage, resolver)

    def get_linked_notes(self, note: NoteRef) -> List[NoteRef]:
        """Get the notes directly linked from a note.

        Excluded links, unresolvable links, non-markdown targets and drawing
        documents are dropped. A note that cannot be read links to nothing.

        Args:
            note: Source note

        Returns:
            Linked notes in document order, one entry per link
        """
        try:
            content = self.storage.read(note.path)
        except (OSError, UnicodeDecodeError) as e:
            logger.error("Error parsing wikilinks in %s: %s", note.path, e)
            return []

        linked = []
        for link in extract_links(content):
            link_text = link.target.strip()

            if is_excluded(link_text, self.exclude_patterns):
                logger.debug("Excluded link %s in %s", link_text, note.path)
                continue

            target = self.resolver.resolve(link_text, note.path)
            if target is None or target.extension != NOTE_EXTENSION:
                continue

            if self.reader.is_drawing(target, link_text):
                continue

            linked.append(target)

        return linked

    def collect_linked_notes(self, root: NoteRef, max_depth: int) -> List[NoteRef]:
        """Collect every note reachable from root within max_depth hops.

        The root itself is never included, and each note appears once.

        Args:
            root: Starting note
            max_depth: Maximum number of link hops to follow

        Returns:
            Reachable notes in depth-first discovery order
        """
        visited: Set[str] = set()
        found: List[NoteRef] = []
        seen: Set[str] = {root.path}

        def collect(note: NoteRef, depth: int) -> None:
            if depth >= max_depth or note.path in visited:
                return
            visited.add(note.path)

            for linked in self.get_linked_notes(note):
                if linked.path not in seen:
                    seen.add(linked.path)
                    found.append(linked)
                collect(linked, depth + 1)

        collect(root, 0)
        return found
