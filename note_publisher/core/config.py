"""Publisher configuration."""

import logging
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import yaml

from note_publisher.core.models import ConfigError

logger = logging.getLogger(__name__)

MIN_DEPTH = 1
MAX_DEPTH = 20


@dataclass
class PublisherConfig:
    """User settings for publishing.

    Attributes:
        target_folder_path: Vault folder that receives published copies
        include_linked_notes: Follow wikilinks when publishing
        max_depth: How many link hops to follow from the published note
        exclude_patterns: Link targets matching any of these are not followed
        preserve_folder_structure: Mirror source folders under the target
        add_publish_prefix: Prefix published file names
        publish_prefix: The prefix used when add_publish_prefix is set
        base_url: Site root for the shareable URL ('' disables URLs)
        renderer_command: Command that renders drawings to PNG
    """
    target_folder_path: str = '700_Publish'
    include_linked_notes: bool = True
    max_depth: int = 5
    exclude_patterns: List[str] = field(default_factory=list)
    preserve_folder_structure: bool = True
    add_publish_prefix: bool = False
    publish_prefix: str = 'published_'
    base_url: str = ''
    renderer_command: Optional[List[str]] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PublisherConfig":
        """Build a config from a settings mapping.

        Unknown keys are ignored. An out-of-range max_depth keeps the default.
        """
        known = {f.name for f in fields(cls)}
        values = {k: v for k, v in data.items() if k in known}

        unknown = sorted(set(data) - known)
        if unknown:
            logger.warning("Ignoring unknown config keys: %s", ', '.join(unknown))

        if 'max_depth' in values:
            depth = values['max_depth']
            if not isinstance(depth, int) or isinstance(depth, bool) or not MIN_DEPTH <= depth <= MAX_DEPTH:
                logger.warning(
                    "max_depth must be between %d and %d, got %r; using default",
                    MIN_DEPTH, MAX_DEPTH, depth,
                )
                del values['max_depth']

        if isinstance(values.get('target_folder_path'), str):
            values['target_folder_path'] = values['target_folder_path'].strip()

        patterns = values.get('exclude_patterns')
        if isinstance(patterns, str):
            values['exclude_patterns'] = [patterns]
        elif patterns is None and 'exclude_patterns' in values:
            values['exclude_patterns'] = []

        command = values.get('renderer_command')
        if isinstance(command, str):
            values['renderer_command'] = command.split()

        return cls(**values)


def load_config(source: Union[str, Path, Dict[str, Any], None]) -> PublisherConfig:
    """Load configuration from a YAML file, a dict, or defaults.

    Args:
        source: Path to a YAML file, a settings dict, or None for defaults

    Returns:
        PublisherConfig

    Raises:
        ConfigError: If the file is missing, invalid YAML, or not a mapping
    """
    if source is None:
        return PublisherConfig()
    if isinstance(source, dict):
        return PublisherConfig.from_dict(source)

    path = Path(source)
    try:
        with open(path, 'r', encoding='utf-8') as f:
            data = yaml.safe_load(f)
    except OSError as e:
        raise ConfigError(f"Cannot read config file {path}: {e}") from e
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}") from e

    if data is None:
        return PublisherConfig()
    if not isinstance(data, dict):
        raise ConfigError(f"Config file {path} must contain a mapping")

    return PublisherConfig.from_dict(data)
