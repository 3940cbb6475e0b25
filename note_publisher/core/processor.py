"""Content processor replacing drawing links with rendered images."""

import logging
import re
from typing import Dict, List, Optional

from note_publisher.core.drawings import DrawingReader
from note_publisher.core.mapper import ensure_folder
from note_publisher.core.models import NoteRef
from note_publisher.core.render import DrawingRenderer
from note_publisher.core.resolver import LinkResolver
from note_publisher.core.storage import Storage

logger = logging.getLogger(__name__)

IMAGE_FOLDER_NAME = '_Image'
IMAGE_EXTENSION = '.png'


class DrawingProcessor:
    """Rewrites links to drawing documents into embeds of rendered images.

    Handles:
    - Plain and embed links, with or without display text
    - Attachments inlined from the drawing's Embedded Files section
    - Image name collisions in the image folder
    """

    # Pattern for links and embeds: [[target]], ![[target|display]]
    LINK_PATTERN = re.compile(r'(!?\[\[([^|\]]+)(?:\|([^\]]+))?\]\])')

    def __init__(
        self,
        storage: Storage,
        resolver: LinkResolver,
        renderer: Optional[DrawingRenderer] = None,
        target_folder_path: str = '',
        reader: Optional[DrawingReader] = None,
    ):
        """Initialize DrawingProcessor.

        Args:
            storage: Vault storage
            resolver: Resolves link targets
            renderer: Renders drawings; without one content is left unchanged
            target_folder_path: Publish folder; images go to its _Image folder
            reader: Drawing reader (built from storage and resolver if omitted)
        """
        self.storage = storage
        self.resolver = resolver
        self.renderer = renderer
        self.target_folder_path = target_folder_path.strip('/')
        self.reader = reader or DrawingReader(storage, resolver)
        self.created_images: List[str] = []

    @property
    def image_folder_path(self) -> str:
        if self.target_folder_path:
            return f"{self.target_folder_path}/{IMAGE_FOLDER_NAME}"
        return IMAGE_FOLDER_NAME

    def process(self, content: str, note: NoteRef) -> str:
        """Replace drawing links in a note's content with image embeds.

        A link that fails to convert is left as it was.

        Args:
            content: Note text
            note: The note the text belongs to, used to resolve links

        Returns:
            Content with drawing links rewritten
        """
        if self.renderer is None:
            return content

        # One image per drawing per note, however often it is linked
        rendered: Dict[str, Optional[str]] = {}

        def replace_link(match: re.Match) -> str:
            full_match = match.group(1)
            link_target = match.group(2)
            display = match.group(3)

            try:
                image_name = self._image_for_link(link_target, note, rendered)
            except Exception as e:
                logger.error("Failed to process file %s: %s", link_target, e)
                return full_match

            if image_name is None:
                return full_match
            if display:
                return f"![[{image_name}|{display}]]"
            return f"![[{image_name}]]"

        return self.LINK_PATTERN.sub(replace_link, content)

    def _image_for_link(self, link_target: str, note: NoteRef, rendered: Dict[str, Optional[str]]) -> Optional[str]:
        drawing = self.resolver.resolve(link_target, note.path)
        if drawing is None or not self.reader.is_drawing(drawing, link_target):
            return None

        if drawing.path not in rendered:
            rendered[drawing.path] = self.export_drawing(drawing)
        return rendered[drawing.path]

    def export_drawing(self, drawing: NoteRef) -> Optional[str]:
        """Render a drawing and save it into the image folder.

        Args:
            drawing: Drawing document to export

        Returns:
            File name of the saved image, or None if nothing was rendered
        """
        elements, files = self.reader.load_scene(drawing)
        image_data = self.renderer.render(elements, files)
        if not image_data:
            logger.warning("Renderer returned no image for %s", drawing.path)
            return None

        ensure_folder(self.storage, self.image_folder_path)
        image_path = self._free_image_path(drawing.basename)
        self.storage.write_binary(image_path, image_data)
        self.created_images.append(image_path)
        logger.debug("Exported %s to %s", drawing.path, image_path)

        return image_path.rsplit('/', 1)[-1]

    def _free_image_path(self, base_name: str) -> str:
        """First unused image path: name.png, then name_1.png, name_2.png, ..."""
        folder = self.image_folder_path
        path = f"{folder}/{base_name}{IMAGE_EXTENSION}"
        counter = 1
        while self.storage.exists(path):
            path = f"{folder}/{base_name}_{counter}{IMAGE_EXTENSION}"
            counter += 1
        return path
