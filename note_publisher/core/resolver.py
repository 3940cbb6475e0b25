"""Resolve wikilink targets to files in the vault."""

import posixpath
from typing import Iterable, List, Optional

from note_publisher.core.models import NoteRef
from note_publisher.core.storage import Storage


class LinkResolver:
    """Resolves a raw link target to a concrete file.

    Resolution order:
    1. Exact vault path (with and without an implied .md extension)
    2. Path relative to the source note's folder
    3. Unique-suffix match anywhere in the vault, preferring files in the
       source note's folder, then the shortest path

    Files under an ignored folder (such as the publish folder) never match.
    """

    def __init__(self, storage: Storage, ignored_folders: Optional[Iterable[str]] = None):
        """Initialize LinkResolver.

        Args:
            storage: Vault storage
            ignored_folders: Vault folders whose files are never link targets
        """
        self.storage = storage
        self.ignored_folders = [f.strip('/') for f in (ignored_folders or []) if f.strip('/')]

    def resolve(self, link_text: str, source_path: str) -> Optional[NoteRef]:
        """Resolve a link target.

        Args:
            link_text: Raw target, e.g. "Note", "folder/Note#Heading", "img.png"
            source_path: Vault path of the note containing the link

        Returns:
            NoteRef of the target file, or None if nothing matches
        """
        link_path = self._strip_subpath(link_text)
        if not link_path:
            # [[#Heading]] points back at the source note
            return self.storage.get_file(source_path)

        candidates = self._candidates(link_path)
        source_folder = posixpath.dirname(source_path)

        for candidate in candidates:
            found = self._get_file(candidate)
            if found:
                return found

        for candidate in candidates:
            relative = posixpath.normpath(posixpath.join(source_folder, candidate))
            if relative.startswith('..'):
                continue
            found = self._get_file(relative)
            if found:
                return found

        files = [f for f in self.storage.list_files() if not self.is_ignored(f)]
        for candidate in candidates:
            matches = self._suffix_matches(posixpath.normpath(candidate), files)
            if not matches:
                continue
            same_folder = [m for m in matches if posixpath.dirname(m) == source_folder]
            best = same_folder[0] if same_folder else min(matches, key=lambda p: (len(p), p))
            return NoteRef(path=best)

        return None

    def is_ignored(self, path: str) -> bool:
        """Check whether a vault path lies inside an ignored folder."""
        return any(path == folder or path.startswith(folder + '/') for folder in self.ignored_folders)

    def _get_file(self, path: str) -> Optional[NoteRef]:
        found = self.storage.get_file(path)
        if found is None or self.is_ignored(found.path):
            return None
        return found

    def _strip_subpath(self, link_text: str) -> str:
        """Drop '#heading' and '#^block' parts of a link target."""
        return link_text.split('#', 1)[0].strip().strip('/')

    def _candidates(self, link_path: str) -> List[str]:
        if link_path.lower().endswith('.md'):
            return [link_path]
        return [link_path, f"{link_path}.md"]

    def _suffix_matches(self, candidate: str, files: List[str]) -> List[str]:
        target = candidate.lower()
        suffix = '/' + target
        return [f for f in files if f.lower() == target or f.lower().endswith(suffix)]
