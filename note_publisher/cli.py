"""Command line interface for Note Publisher."""

import argparse
import logging
import sys
from typing import List, Optional

import inflection

from note_publisher.core.config import load_config
from note_publisher.core.models import ConfigError, PublishOptions
from note_publisher.core.publisher import create_publisher_from_config

logger = logging.getLogger(__name__)

# Linked files listed by the stats command before truncating
STATS_LISTED_FILES = 10


def _count(n: int, word: str) -> str:
    return f"{n} {word if n == 1 else inflection.pluralize(word)}"


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='note-publisher',
        description='Copy a note and its linked notes into the vault publish folder.',
    )
    parser.add_argument('-v', '--verbose', action='store_true', help='Enable debug logging')
    subparsers = parser.add_subparsers(dest='command', required=True)

    def add_common(sub: argparse.ArgumentParser) -> None:
        sub.add_argument('vault', help='Path to the vault root')
        sub.add_argument('note', help='Vault-relative path of the note, e.g. "Projects/Plan.md"')
        sub.add_argument('-c', '--config', help='YAML settings file')
        sub.add_argument('--only', action='store_true', help='Do not follow linked notes')

    publish = subparsers.add_parser('publish', help='Publish a note')
    add_common(publish)
    publish.add_argument('--max-depth', type=int, help='Override the configured link depth')
    publish.add_argument(
        '--exclude', action='append', metavar='PATTERN',
        help='Do not follow links matching PATTERN (repeatable, replaces configured patterns)',
    )
    publish.add_argument('--renderer-command', help='Command rendering drawing JSON on stdin to PNG on stdout')

    stats = subparsers.add_parser('stats', help='Show what publishing a note would copy')
    add_common(stats)

    return parser


def run_publish(args: argparse.Namespace) -> int:
    config = load_config(args.config)
    if args.renderer_command:
        config.renderer_command = args.renderer_command.split()
    publisher = create_publisher_from_config(args.vault, config)

    options = PublishOptions(
        include_linked=config.include_linked_notes and not args.only,
        max_depth=args.max_depth,
        exclude_patterns=args.exclude,
    )
    result = publisher.publish_note(publisher.storage.get_file(args.note), options)

    print(f"Published {_count(len(result.published_files), 'file')}")
    for path in sorted(result.published_files):
        print(f"  + {path}")
    for path in sorted(result.skipped_files):
        print(f"  - {path} (too deep)")
    for path in result.created_images:
        print(f"  * {path}")

    if result.errors:
        print(f"Published with {_count(len(result.errors), 'error')}:", file=sys.stderr)
        for error in result.errors:
            print(f"  {error}", file=sys.stderr)

    if result.url:
        print(f"URL: {result.url}")

    return 1 if result.errors else 0


def run_stats(args: argparse.Namespace) -> int:
    config = load_config(args.config)
    publisher = create_publisher_from_config(args.vault, config)

    note = publisher.storage.get_file(args.note)
    if note is None:
        print(f"No such note: {args.note}", file=sys.stderr)
        return 1

    include_linked = config.include_linked_notes and not args.only
    stats = publisher.get_publishing_stats(note, include_linked)
    size_kb = round(stats.estimated_size / 1024, 2)

    print("Publishing Statistics:")
    print(f"  Total files: {stats.total_files}")
    print(f"  Main file: {note.name}")
    print(f"  Linked files: {len(stats.linked_files)}")
    print(f"  Estimated size: {size_kb} KB")

    if stats.linked_files:
        print("\nLinked files:")
        for linked in stats.linked_files[:STATS_LISTED_FILES]:
            print(f"  - {linked.name}")
        remaining = len(stats.linked_files) - STATS_LISTED_FILES
        if remaining > 0:
            print(f"  ... and {remaining} more")

    return 0


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format='%(levelname)s %(name)s: %(message)s',
    )

    try:
        if args.command == 'publish':
            return run_publish(args)
        return run_stats(args)
    except ConfigError as e:
        logger.error("%s", e)
        return 1


if __name__ == '__main__':
    sys.exit(main())
