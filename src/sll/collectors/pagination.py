# src/sll/collectors/pagination.py
from __future__ import annotations
from typing import Any, AsyncIterator, Dict, Optional

from loguru import logger

from sll.errors import PaginationLimitError
from sll.io.soundcloud_client import SCClient
from sll.schemas.validator import Validator


async def iter_pages(sc: SCClient, validator: Validator, seed_url: str,
                     schema_id: str = "likes", max_pages: Optional[int] = None,
                     stats: Optional[Dict[str, int]] = None) -> AsyncIterator[Dict[str, Any]]:
    """
    Follow ``next_href`` cursors from ``seed_url`` and yield each validated page.

    The next page is only requested once the consumer asks for it. Cursor links
    come back without the client id, so it is re-attached to every one of them.

    Args:
        sc: SoundCloud API client
        validator: Validator used to check every page against ``schema_id``
        seed_url: First page URL, credential included
        max_pages: Fail instead of following a cursor past this many pages (None = unbounded)
        stats: Optional counter dict; ``pages_fetched`` is incremented per page

    Raises:
        PaginationLimitError: if the server still offers a next page after ``max_pages`` pages
    """
    url: Optional[str] = seed_url
    pages = 0
    while url is not None:
        if max_pages is not None and pages >= max_pages:
            raise PaginationLimitError(
                f"still more pages after {max_pages} pages; raise max_pages or leave it unset"
            )
        page = await sc.fetch_json(url)
        validator.validate(page, schema_id)
        pages += 1
        if stats is not None:
            stats["pages_fetched"] = stats.get("pages_fetched", 0) + 1
        logger.debug(f"Page {pages}: {len(page['collection'])} items")
        yield page
        next_href = page["next_href"]
        url = sc.with_client_id(next_href) if next_href is not None else None


async def iter_items(pages: AsyncIterator[Dict[str, Any]]) -> AsyncIterator[Dict[str, Any]]:
    """Flatten pages into their ``collection`` items, keeping page and item order."""
    async for page in pages:
        for item in page["collection"]:
            yield item
