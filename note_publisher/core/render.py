"""Drawing renderers.

The publisher does not rasterize drawings itself; it hands the parsed scene
to a renderer.
"""

import json
import logging
import subprocess
from typing import Any, Dict, List, Optional, Protocol

from note_publisher.core.drawings import scene_files_payload
from note_publisher.core.models import EmbeddedFile, RenderError

logger = logging.getLogger(__name__)

# Export settings passed along with every scene
DEFAULT_APP_STATE = {
    'exportBackground': True,
    'exportWithDarkMode': False,
    'exportScale': 1,
}


class DrawingRenderer(Protocol):
    """Turns drawing elements into PNG bytes, or None if nothing was produced."""

    def render(self, elements: List[Dict[str, Any]], files: Dict[str, EmbeddedFile]) -> Optional[bytes]: ...


class CommandRenderer:
    """Renders by piping the scene as JSON to an external command.

    The command reads an Excalidraw scene on stdin and writes PNG bytes to
    stdout, e.g. a small node script wrapping ``exportToBlob``.
    """

    def __init__(self, command: List[str], app_state: Optional[Dict[str, Any]] = None):
        """Initialize CommandRenderer.

        Args:
            command: Argument vector of the render command
            app_state: Excalidraw appState overrides for the export
        """
        if not command:
            raise ValueError("Render command must not be empty")
        self.command = list(command)
        self.app_state = {**DEFAULT_APP_STATE, **(app_state or {})}

    def render(self, elements: List[Dict[str, Any]], files: Dict[str, EmbeddedFile]) -> Optional[bytes]:
        scene = {
            'type': 'excalidraw',
            'elements': elements,
            'files': scene_files_payload(files),
            'appState': self.app_state,
        }

        try:
            completed = subprocess.run(
                self.command,
                input=json.dumps(scene).encode('utf-8'),
                capture_output=True,
                check=False,
            )
        except OSError as e:
            raise RenderError(f"Could not run {self.command[0]}: {e}") from e

        if completed.returncode != 0:
            stderr = completed.stderr.decode('utf-8', errors='replace').strip()
            raise RenderError(f"{self.command[0]} exited with {completed.returncode}: {stderr}")

        if not completed.stdout:
            logger.warning("Renderer %s produced no output", self.command[0])
            return None
        return completed.stdout
