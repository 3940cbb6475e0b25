"""Publisher: copies a note and its linked notes into the publish folder."""

import logging
from pathlib import Path
from typing import Any, Dict, Optional, Union

from note_publisher.core.config import PublisherConfig, load_config
from note_publisher.core.discovery import NOTE_EXTENSION, LinkDiscovery
from note_publisher.core.drawings import DrawingReader
from note_publisher.core.mapper import ensure_folder, is_valid_target_path, parent_folder, public_url, target_path
from note_publisher.core.models import NoteRef, PublishOptions, PublishResult, PublishStats, ValidationError
from note_publisher.core.processor import DrawingProcessor
from note_publisher.core.render import CommandRenderer, DrawingRenderer
from note_publisher.core.resolver import LinkResolver
from note_publisher.core.storage import Storage, VaultStorage
from note_publisher.core.walker import PublishWalker

logger = logging.getLogger(__name__)


class Publisher:
    """Publishes notes from a vault into its publish folder.

    Coordinates link discovery, the publish walk, drawing rewriting and
    target path mapping.
    """

    def __init__(
        self,
        storage: Storage,
        config: PublisherConfig,
        renderer: Optional[DrawingRenderer] = None,
        resolver: Optional[LinkResolver] = None,
    ):
        """Initialize Publisher.

        Args:
            storage: Vault storage
            config: Publisher settings
            renderer: Drawing renderer; drawings stay as links without one
            resolver: Link resolver (defaults to one over storage)
        """
        self.storage = storage
        self.config = config
        self.resolver = resolver or LinkResolver(storage, ignored_folders=[config.target_folder_path])
        self.reader = DrawingReader(storage, self.resolver)
        self.processor = DrawingProcessor(
            storage,
            self.resolver,
            renderer=renderer,
            target_folder_path=config.target_folder_path,
            reader=self.reader,
        )

    def publish_note(self, note: Optional[NoteRef], options: Optional[PublishOptions] = None) -> PublishResult:
        """Publish a note, optionally with the notes it links to.

        Never raises: validation failures and unexpected errors end up in
        result.errors.

        Args:
            note: Note to publish
            options: Publish options (defaults follow the config)

        Returns:
            PublishResult; result.url is set when something was published
        """
        if options is None:
            options = PublishOptions(include_linked=self.config.include_linked_notes)
        result = PublishResult()

        try:
            self.validate(note, options)
        except ValidationError as e:
            logger.warning("Cannot publish: %s", e)
            result.errors.append(str(e))
            return result

        self.processor.created_images = []
        self.processor.target_folder_path = self.config.target_folder_path.strip('/')

        try:
            if options.include_linked:
                max_depth = options.max_depth if options.max_depth is not None else self.config.max_depth
                walked = self._walker(options).walk(note, max_depth)
                result.published_files.update(walked.published_files)
                result.skipped_files.update(walked.skipped_files)
                result.errors.extend(walked.errors)
            else:
                self._publish_single_note(note, result)

            logger.info("Successfully published %d file(s)", len(result.published_files))
            if result.errors:
                logger.warning("Publishing completed with errors: %s", result.errors)
        except Exception as e:
            message = f"Error publishing note: {e}"
            result.errors.append(message)
            logger.exception("Publishing error")

        result.created_images = list(self.processor.created_images)

        if result.published_files:
            result.url = public_url(note, self.config)

        return result

    def validate(self, note: Optional[NoteRef], options: Optional[PublishOptions] = None) -> None:
        """Check a publish request before touching any files.

        Args:
            note: Note to publish
            options: Publish options, if any

        Raises:
            ValidationError: With a user-facing message
        """
        if note is None:
            raise ValidationError("No file provided")
        if note.extension != NOTE_EXTENSION:
            raise ValidationError("Can only publish markdown files")
        if not self.config.target_folder_path:
            raise ValidationError("Please configure target folder path in settings")
        if not is_valid_target_path(self.config.target_folder_path):
            raise ValidationError(f"Invalid target folder path: {self.config.target_folder_path}")
        if options is not None and options.max_depth is not None and options.max_depth < 0:
            raise ValidationError(f"Invalid max depth: {options.max_depth}")

    def _walker(self, options: PublishOptions) -> PublishWalker:
        patterns = options.exclude_patterns
        if patterns is None:
            patterns = self.config.exclude_patterns
        discovery = LinkDiscovery(self.storage, self.resolver, patterns, reader=self.reader)
        return PublishWalker(discovery, self.copy_note)

    def _publish_single_note(self, note: NoteRef, result: PublishResult) -> None:
        try:
            self.copy_note(note)
            result.published_files.add(note.path)
        except Exception as e:
            message = f"Failed to copy {note.path}: {e}"
            result.errors.append(message)
            logger.error(message)

    def copy_note(self, note: NoteRef) -> str:
        """Copy one note to its target path, rewriting drawing links.

        An existing file at the target is overwritten.

        Returns:
            The target path
        """
        content = self.storage.read(note.path)
        content = self.processor.process(content, note)

        destination = target_path(note, self.config)
        folder = parent_folder(destination)
        if folder:
            ensure_folder(self.storage, folder)

        self.storage.write(destination, content)
        logger.debug("Copied %s to %s", note.path, destination)
        return destination

    def get_publishing_stats(self, note: NoteRef, include_linked: bool = True) -> PublishStats:
        """Estimate what publishing a note would copy, without copying.

        Errors are logged, never raised; unreadable linked notes do not count
        towards the size.
        """
        stats = PublishStats()

        try:
            stats.estimated_size += len(self.storage.read(note.path))

            if include_linked:
                discovery = LinkDiscovery(
                    self.storage, self.resolver, self.config.exclude_patterns, reader=self.reader
                )
                stats.linked_files = discovery.collect_linked_notes(note, self.config.max_depth)
                stats.total_files += len(stats.linked_files)

                for linked in stats.linked_files:
                    try:
                        stats.estimated_size += len(self.storage.read(linked.path))
                    except (OSError, UnicodeDecodeError) as e:
                        logger.warning("Could not read %s for size calculation: %s", linked.path, e)
        except Exception as e:
            logger.error("Error calculating publishing stats: %s", e)

        return stats


def create_publisher_from_config(
    vault_path: Union[str, Path],
    config: Union[str, Path, Dict[str, Any], PublisherConfig, None] = None,
    renderer: Optional[DrawingRenderer] = None,
) -> Publisher:
    """Create a Publisher for a vault.

    Args:
        vault_path: Vault root directory
        config: PublisherConfig, settings dict, YAML file path, or None
        renderer: Drawing renderer; if omitted, config.renderer_command is used

    Returns:
        Configured Publisher
    """
    if not isinstance(config, PublisherConfig):
        config = load_config(config)

    if renderer is None and config.renderer_command:
        renderer = CommandRenderer(config.renderer_command)

    return Publisher(VaultStorage(Path(vault_path)), config, renderer=renderer)
