# src/sll/io/resolve.py
"""
One-shot lookups that have to happen before the likes can be paged:
discovering a public client id from the web front end, and turning a
username into the numeric user id the API expects.
"""

from __future__ import annotations
import asyncio
import re
from typing import List

from loguru import logger

from sll.errors import ResolutionError, SoundCloudError
from sll.io.soundcloud_client import SCClient
from sll.schemas.validator import Validator

FRONT_PAGE_URL = "https://soundcloud.com/"

SCRIPT_RE = re.compile(r'<script crossorigin src="(.+?)">')
CLIENT_ID_RE = re.compile(r'client_id:"(.+?)"')

# soundcloud.com refuses some datacenter IP ranges (CI runners included) while
# the asset CDN stays reachable, so these are tried when the page is not.
FALLBACK_SCRIPT_SRCS = [
    "https://a-v2.sndcdn.com/assets/0-18778ebb.js",
    "https://a-v2.sndcdn.com/assets/3-d97f3637.js",
    "https://a-v2.sndcdn.com/assets/50-d480c257.js",
]


async def get_script_srcs(sc: SCClient) -> List[str]:
    """Return the script URLs listed on the front page, or the fallback list."""
    try:
        site = await sc.fetch_text(FRONT_PAGE_URL)
    except SoundCloudError as e:
        logger.warning(f"Front page not available ({e}); using fallback script list")
        return list(FALLBACK_SCRIPT_SRCS)
    srcs = SCRIPT_RE.findall(site)
    if not srcs:
        logger.warning("No scripts found on front page; using fallback script list")
        return list(FALLBACK_SCRIPT_SRCS)
    return srcs


async def client_id_from_script(sc: SCClient, script_src: str) -> str:
    script = await sc.fetch_text(script_src)
    m = CLIENT_ID_RE.search(script)
    if m is None:
        raise ResolutionError(f"client id not found in {script_src}")
    return m.group(1)


async def discover_client_id(sc: SCClient) -> str:
    """
    Scrape a public client id from the SoundCloud web player scripts.

    All scripts are fetched concurrently; the first one that yields a client
    id wins and the remaining fetches are cancelled.

    Raises:
        ResolutionError: if none of the scripts contains a client id.
    """
    srcs = await get_script_srcs(sc)
    tasks = [asyncio.create_task(client_id_from_script(sc, src)) for src in srcs]
    try:
        for fut in asyncio.as_completed(tasks):
            try:
                client_id = await fut
            except SoundCloudError as e:
                logger.debug(f"Script skipped: {e}")
                continue
            logger.info(f"🔑 Discovered client id from {len(srcs)} candidate scripts")
            return client_id
    finally:
        for t in tasks:
            t.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
    raise ResolutionError(f"Could not find client id within scripts {srcs}")


async def resolve_user_id(sc: SCClient, validator: Validator, username: str) -> int:
    """
    Look up the numeric id of ``username`` via the user search endpoint.

    Only an entry whose permalink equals the username exactly is accepted.
    """
    data = await sc.fetch_json(sc.search_users_url(username))
    validator.validate(data, "usersearch")
    for entry in data["collection"]:
        if entry["permalink"] == username:
            logger.info(f"👤 Resolved user {username!r} to id {entry['id']}")
            return entry["id"]
    raise ResolutionError(f'could not resolve user id for user name "{username}"')
