"""Wikilink extraction and exclusion filtering."""

import re
from dataclasses import dataclass
from typing import List, Optional, Sequence


# Pattern for wikilinks and embeds: [[target]], [[target|display]], ![[target]]
WIKILINK_PATTERN = re.compile(r'(!?)\[\[([^\]|]+)(?:\|([^\]]+))?\]\]')


@dataclass(frozen=True)
class WikiLink:
    """A single wikilink token found in note text."""
    raw: str
    target: str
    display: Optional[str] = None
    embed: bool = False


def extract_links(content: str) -> List[WikiLink]:
    """Find all wikilinks in content, in document order.

    Args:
        content: Note text

    Returns:
        List of WikiLink; targets are returned untrimmed
    """
    return [
        WikiLink(
            raw=match.group(0),
            target=match.group(2),
            display=match.group(3),
            embed=bool(match.group(1)),
        )
        for match in WIKILINK_PATTERN.finditer(content)
    ]


def is_excluded(link_text: str, patterns: Optional[Sequence[str]]) -> bool:
    """Check a link target against exclusion patterns.

    Each pattern is tried as a regular expression. Patterns that are not
    valid regular expressions are matched as plain substrings instead.

    Args:
        link_text: Link target, already stripped of surrounding whitespace
        patterns: Exclusion patterns in priority order

    Returns:
        True if any pattern matches
    """
    for pattern in patterns or []:
        try:
            if re.search(pattern, link_text):
                return True
        except re.error:
            if pattern in link_text:
                return True
    return False
