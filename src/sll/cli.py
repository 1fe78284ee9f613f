# src/sll/cli.py
"""
Command line entry point.

Usage:
    soundcloud-likes-log <USERNAME> --output likes.json

Example:
    soundcloud-likes-log someuser --output data/likes.json --concurrency 5
    SC_USERNAME=someuser SC_OUTPUT_PATH=likes.json soundcloud-likes-log
"""

from __future__ import annotations
import argparse
import asyncio
import sys
from typing import List, Optional

from loguru import logger

from sll.collectors.likes_log import create_likes_log
from sll.config import load_settings
from sll.errors import SoundCloudError


def configure_logging(level: str = "INFO"):
    logger.remove()
    logger.add(sys.stderr, level=level)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="soundcloud-likes-log",
        description="Archive the complete likes history of a SoundCloud user as JSON",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog='''
Examples:
  soundcloud-likes-log someuser --output likes.json
  soundcloud-likes-log someuser --output likes.json --concurrency 10
  soundcloud-likes-log someuser --output likes.json --max-pages 50 --deadline 600
        '''
    )

    parser.add_argument(
        'username',
        nargs='?',
        help='SoundCloud username (permalink) whose likes are archived (default: SC_USERNAME)'
    )

    parser.add_argument(
        '-o', '--output',
        dest='output_path',
        help='Path the JSON likes log is written to (default: SC_OUTPUT_PATH)'
    )

    parser.add_argument(
        '--concurrency',
        type=int,
        help='Maximum playlists hydrated concurrently (default: 5)'
    )

    parser.add_argument(
        '--max-pages',
        type=int,
        help='Fail if the likes span more than this many pages (default: unlimited)'
    )

    parser.add_argument(
        '--deadline',
        type=float,
        help='Fail if the run takes longer than this many seconds (default: none)'
    )

    parser.add_argument(
        '--preserve-playlist-order',
        action='store_true',
        default=None,
        help='Sort hydrated playlist tracks into the playlist\'s own order'
    )

    parser.add_argument(
        '--config',
        dest='config_file',
        help='YAML config file (default: CONFIG_FILE or configs/config.yaml)'
    )

    parser.add_argument(
        '-v', '--verbose',
        action='store_true',
        help='Enable debug logging'
    )

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Run one archive; returns the process exit code."""
    args = build_parser().parse_args(argv)

    overrides = {
        "username": args.username,
        "output_path": args.output_path,
        "concurrency": args.concurrency,
        "max_pages": args.max_pages,
        "deadline": args.deadline,
        "preserve_playlist_order": args.preserve_playlist_order,
        "log_level": "DEBUG" if args.verbose else None,
    }

    try:
        settings = load_settings(overrides, config_file=args.config_file)
    except SoundCloudError as e:
        configure_logging()
        logger.error(f"❌ Configuration error: {e}")
        return 1

    configure_logging(settings.log_level)

    try:
        asyncio.run(create_likes_log(settings))
    except KeyboardInterrupt:
        logger.warning("⚠️  Interrupted; no likes log written")
        return 1
    except SoundCloudError as e:
        logger.error(f"❌ {type(e).__name__}: {e}")
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
