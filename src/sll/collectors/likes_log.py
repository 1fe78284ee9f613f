# src/sll/collectors/likes_log.py
"""
Likes Log - ordered archive of a user's SoundCloud likes.

Pipeline, pulled from the end:

    pages (cursor-following) -> items -> narrowed likes
        -> playlist hydration (ordered, bounded concurrency) -> list -> JSON file

Nothing is written unless every stage succeeds; any error ends the run.
"""

from __future__ import annotations
import asyncio
import json
import os
import tempfile
import time
from pathlib import Path
from typing import Any, AsyncIterator, Dict, List, Optional

from loguru import logger

from sll.clean.normalize import narrow_like
from sll.collectors.hydration import PlaylistHydrator
from sll.collectors.ordered import ordered_map
from sll.collectors.pagination import iter_items, iter_pages
from sll.config import Settings
from sll.errors import ArchiveWriteError, DeadlineExceededError
from sll.io.resolve import discover_client_id, resolve_user_id
from sll.io.soundcloud_client import DEFAULT_POOL_SIZE, SCClient, make_client_from_env
from sll.models import Like
from sll.schemas.validator import Validator


class LikesLogBuilder:
    """
    Produces the enriched likes of one user, in the order the API lists them.

    Up to ``concurrency`` playlist hydrations are in flight at any time;
    pages are only fetched as the window asks for more likes.
    """

    def __init__(self, sc: SCClient, validator: Validator, concurrency: int = 5,
                 page_size: int = 100, max_pages: Optional[int] = None,
                 preserve_playlist_order: bool = False):
        if concurrency < 1:
            raise ValueError(f"concurrency must be a positive integer, got {concurrency}")
        self.sc = sc
        self.validator = validator
        self.concurrency = concurrency
        self.page_size = page_size
        self.max_pages = max_pages
        self.stats: Dict[str, int] = {
            "pages_fetched": 0,
            "likes_collected": 0,
            "playlists_hydrated": 0,
        }
        self.hydrator = PlaylistHydrator(sc, validator, preserve_playlist_order, stats=self.stats)

    async def iter_raw_likes(self, user_id: int) -> AsyncIterator[Dict[str, Any]]:
        pages = iter_pages(
            self.sc,
            self.validator,
            self.sc.likes_url(user_id, limit=self.page_size),
            max_pages=self.max_pages,
            stats=self.stats,
        )
        async for item in iter_items(pages):
            yield item

    async def iter_normalized(self, user_id: int) -> AsyncIterator[Like]:
        async for rec in self.iter_raw_likes(user_id):
            yield narrow_like(rec)

    def iter_likes(self, user_id: int) -> AsyncIterator[Like]:
        """Enriched likes of ``user_id``, lazily, in listing order."""
        return ordered_map(self.iter_normalized(user_id), self.hydrator, self.concurrency)

    async def collect(self, user_id: int) -> List[Like]:
        likes: List[Like] = []
        async for like in self.iter_likes(user_id):
            likes.append(like)
            if len(likes) % 500 == 0:
                logger.info(f"Progress: {len(likes)} likes collected")
        self.stats["likes_collected"] = len(likes)
        return likes


def dump_likes_log(likes: List[Like]) -> str:
    return json.dumps(likes, indent=2, ensure_ascii=False)


def write_likes_log(likes: List[Like], output_path: str | Path) -> Path:
    """
    Write ``likes`` as a JSON array, replacing whatever is at ``output_path``.

    The document goes to a temporary file next to the target first and is
    moved into place with ``os.replace``, so a failed write leaves any
    previous file untouched.

    Raises:
        ArchiveWriteError: if the file cannot be written.
    """
    target = Path(output_path)
    content = dump_likes_log(likes)
    tmp_path: Optional[Path] = None
    try:
        target.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(dir=str(target.parent), prefix=target.name, suffix=".tmp")
        tmp_path = Path(tmp_name)
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(content)
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp_path, target)
    except OSError as e:
        if tmp_path is not None:
            tmp_path.unlink(missing_ok=True)
        raise ArchiveWriteError(f"could not write likes log to {target}: {e}") from e
    return target


async def _run(settings: Settings, sc: SCClient, validator: Validator) -> Dict[str, int]:
    if not sc.client_id:
        sc.client_id = await discover_client_id(sc)
    user_id = await resolve_user_id(sc, validator, settings.username)

    builder = LikesLogBuilder(
        sc,
        validator,
        concurrency=settings.concurrency,
        page_size=settings.page_size,
        max_pages=settings.max_pages,
        preserve_playlist_order=settings.preserve_playlist_order,
    )
    likes = await builder.collect(user_id)
    path = write_likes_log(likes, settings.output_path)
    logger.info(f"Likes log written to: {path}")
    return builder.stats


async def create_likes_log(settings: Settings, sc: Optional[SCClient] = None,
                           validator: Optional[Validator] = None) -> Dict[str, int]:
    """
    Archive the likes of ``settings.username`` to ``settings.output_path``.

    Args:
        settings: Validated run settings
        sc: SoundCloud client; one is built from ``settings`` when omitted
        validator: Response validator; a default one is built when omitted

    Returns:
        Run statistics (pages, likes, hydrated playlists, API requests)
    """
    owns_client = sc is None
    if sc is None:
        sc = make_client_from_env(
            client_id=settings.client_id,
            base_url=settings.base_url,
            user_agent=settings.user_agent,
            request_timeout=settings.request_timeout,
            pool_size=max(DEFAULT_POOL_SIZE, settings.concurrency),
        )
    validator = validator or Validator()

    logger.info("=" * 70)
    logger.info(f"🎧 Archiving likes of {settings.username!r}")
    logger.info(f"Output: {settings.output_path}  Concurrency: {settings.concurrency}")
    logger.info("=" * 70)

    start_time = time.time()
    try:
        if settings.deadline is None:
            stats = await _run(settings, sc, validator)
        else:
            try:
                stats = await asyncio.wait_for(_run(settings, sc, validator), settings.deadline)
            except asyncio.TimeoutError:
                raise DeadlineExceededError(
                    f"likes log not finished within {settings.deadline:g}s deadline"
                ) from None
    finally:
        if owns_client:
            sc.close()

    stats["api_requests"] = sc.requests_made
    elapsed = time.time() - start_time
    logger.success("✅ Likes log complete!")
    logger.info(f"Pages fetched: {stats['pages_fetched']:,}")
    logger.info(f"Likes collected: {stats['likes_collected']:,}")
    logger.info(f"Playlists hydrated: {stats['playlists_hydrated']:,}")
    logger.info(f"API requests: {stats['api_requests']:,}")
    logger.info(f"Elapsed: {elapsed:.1f}s")
    return stats
