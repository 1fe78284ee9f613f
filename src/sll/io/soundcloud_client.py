# src/sll/io/soundcloud_client.py
from __future__ import annotations
import asyncio
import os
from typing import Any, Dict, Iterable, List, Optional, Union
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

import requests
from requests.adapters import HTTPAdapter
from loguru import logger

from sll.errors import SoundCloudError, TransportError

DEFAULT_BASE = "https://api-v2.soundcloud.com"
DEFAULT_USER_AGENT = "sll/0.1"
DEFAULT_TIMEOUT = 20.0
DEFAULT_POOL_SIZE = 10

Json = Union[Dict[str, Any], List[Dict[str, Any]]]


def _env(key: str, default: Optional[str] = None) -> Optional[str]:
    val = os.getenv(key, default)
    if val is not None and not val.strip():
        return default
    return val


def set_query_param(url: str, key: str, value: str) -> str:
    """Return ``url`` with query parameter ``key`` set to ``value``, replacing any previous value."""
    parts = urlsplit(url)
    query = [(k, v) for k, v in parse_qsl(parts.query, keep_blank_values=True) if k != key]
    query.append((key, value))
    return urlunsplit(parts._replace(query=urlencode(query)))


class SCClient:
    """
    Thin client for the public SoundCloud api-v2.

    Requests are authenticated with a ``client_id`` query parameter. The
    blocking ``get_*`` methods run on a shared ``requests.Session``; the
    ``fetch_*`` coroutines run them off the event loop, so several worker
    threads share the session. Its connection pool is sized to ``pool_size``,
    which should be at least the number of concurrent fetches.
    """

    def __init__(self, client_id: str | None = None, base_url: str = DEFAULT_BASE,
                 user_agent: str = DEFAULT_USER_AGENT, request_timeout: float = DEFAULT_TIMEOUT,
                 pool_size: int = DEFAULT_POOL_SIZE):
        self.client_id = client_id
        self.base_url = base_url.rstrip("/")
        self.request_timeout = request_timeout
        self.requests_made = 0
        self.session = requests.Session()
        self.session.headers.update({"User-Agent": user_agent})
        adapter = HTTPAdapter(pool_connections=pool_size, pool_maxsize=pool_size)
        self.session.mount("https://", adapter)
        self.session.mount("http://", adapter)

    def close(self):
        self.session.close()

    # --- URL construction ---

    def with_client_id(self, url: str) -> str:
        """
        Attach the client id to ``url``.

        Cursor links returned by the API omit the credential, so every
        ``next_href`` goes through here before it is requested.
        """
        if not self.client_id:
            raise SoundCloudError("No client id available; discover one or set SOUNDCLOUD_CLIENT_ID")
        return set_query_param(url, "client_id", self.client_id)

    def _url(self, path: str, params: Dict[str, Any]) -> str:
        url = f"{self.base_url}/{path.lstrip('/')}"
        if params:
            url = f"{url}?{urlencode(params)}"
        return self.with_client_id(url)

    def likes_url(self, user_id: int, limit: int = 100) -> str:
        return self._url(f"/users/{user_id}/likes", {"limit": limit})

    def playlist_url(self, playlist_id: int) -> str:
        return self._url(f"/playlists/{playlist_id}", {})

    def tracks_url(self, track_ids: Iterable[int]) -> str:
        return self._url("/tracks", {"ids": ",".join(str(i) for i in track_ids)})

    def search_users_url(self, query: str) -> str:
        return self._url("/search/users", {"q": query})

    # --- transport ---

    def _get(self, url: str) -> requests.Response:
        self.requests_made += 1
        logger.debug(f"GET {urlsplit(url).path}")
        try:
            r = self.session.get(url, timeout=self.request_timeout)
        except requests.RequestException as e:
            raise TransportError(f"request failed for {url}: {e}", url=url) from e
        if not r.ok:
            raise TransportError(f"{r.status_code} {r.reason} {url}", status_code=r.status_code, url=url)
        return r

    def get_json(self, url: str) -> Json:
        r = self._get(url)
        try:
            return r.json()
        except ValueError as e:
            raise TransportError(f"invalid JSON body from {url}: {e}", status_code=r.status_code, url=url) from e

    def get_text(self, url: str) -> str:
        return self._get(url).text

    async def fetch_json(self, url: str) -> Json:
        return await asyncio.to_thread(self.get_json, url)

    async def fetch_text(self, url: str) -> str:
        return await asyncio.to_thread(self.get_text, url)


def make_client_from_env(client_id: str | None = None, base_url: str | None = None,
                         user_agent: str | None = None,
                         request_timeout: float | None = None,
                         pool_size: int = DEFAULT_POOL_SIZE) -> SCClient:
    """Create a client, falling back to environment variables for anything not passed."""
    timeout = request_timeout
    if timeout is None:
        timeout = float(_env("SC_REQUEST_TIMEOUT", str(DEFAULT_TIMEOUT)))
    return SCClient(
        client_id=client_id or _env("SOUNDCLOUD_CLIENT_ID"),
        base_url=base_url or _env("SC_BASE_URL", DEFAULT_BASE),
        user_agent=user_agent or _env("SC_USER_AGENT", DEFAULT_USER_AGENT),
        request_timeout=timeout,
        pool_size=pool_size,
    )
