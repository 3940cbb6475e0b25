"""Depth-first publish walk over the link graph."""

import logging
from dataclasses import dataclass, field
from typing import Callable, Set

from note_publisher.core.discovery import LinkDiscovery
from note_publisher.core.models import NoteRef, PublishResult

logger = logging.getLogger(__name__)

Materializer = Callable[[NoteRef], None]


@dataclass
class TraversalState:
    """Mutable state shared by one walk.

    visited holds notes whose subtree is finished; processing holds notes on
    the current recursion stack.
    """
    result: PublishResult = field(default_factory=PublishResult)
    visited: Set[str] = field(default_factory=set)
    processing: Set[str] = field(default_factory=set)


class PublishWalker:
    """Publishes a note and the notes it links to, recursively.

    Every note is materialized at most once per walk, cycles terminate, and
    notes deeper than max_depth are recorded as skipped.
    """

    def __init__(self, discovery: LinkDiscovery, materialize: Materializer):
        """Initialize PublishWalker.

        Args:
            discovery: Finds a note's outgoing links
            materialize: Copies one note to its target; raises on failure
        """
        self.discovery = discovery
        self.materialize = materialize

    def walk(self, root: NoteRef, max_depth: int) -> PublishResult:
        """Publish root and everything reachable within max_depth link hops.

        Args:
            root: Note to start from (depth 0)
            max_depth: Deepest level that is still published

        Returns:
            PublishResult with published and skipped paths and errors
        """
        state = TraversalState()
        self._visit(root, 0, max_depth, state)
        return state.result

    def _visit(self, note: NoteRef, depth: int, max_depth: int, state: TraversalState) -> None:
        path = note.path

        if path in state.visited or path in state.processing:
            return

        if depth > max_depth:
            logger.debug("Skipping %s: depth %d exceeds %d", path, depth, max_depth)
            state.result.skipped_files.add(path)
            return

        state.processing.add(path)
        try:
            self.materialize(note)
            state.result.published_files.add(path)
            logger.debug("Published %s (depth %d)", path, depth)

            for linked in self.discovery.get_linked_notes(note):
                self._visit(linked, depth + 1, max_depth, state)
        except Exception as e:
            message = f"Error processing {path}: {e}"
            state.result.errors.append(message)
            logger.error(message)
        finally:
            state.processing.discard(path)
            state.visited.add(path)
