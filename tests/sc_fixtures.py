"""Builders for raw api-v2 records and an in-memory SoundCloud client."""

from __future__ import annotations
import copy
from typing import Any, Dict, List, Optional, Tuple
from urllib.parse import parse_qsl, urlsplit

from sll.errors import TransportError
from sll.io.soundcloud_client import DEFAULT_BASE, SCClient

CLIENT_ID = "test-client-id"


def raw_user(user_id: int, username: Optional[str] = None) -> Dict[str, Any]:
    username = username or f"user{user_id}"
    return {
        "id": user_id,
        "kind": "user",
        "permalink": username,
        "permalink_url": f"https://soundcloud.com/{username}",
        "username": username,
        "avatar_url": f"https://i1.sndcdn.com/avatars-{user_id}.jpg",
        "followers_count": 12,
    }


def raw_track(track_id: int, owner_id: int = 900) -> Dict[str, Any]:
    return {
        "id": track_id,
        "kind": "track",
        "permalink_url": f"https://soundcloud.com/user{owner_id}/track-{track_id}",
        "title": f"Track {track_id}",
        "user": raw_user(owner_id),
        "duration": 180000,
        "playback_count": 5000,
        "media": {"transcodings": []},
    }


def raw_playlist(playlist_id: int, track_ids: List[int], track_count: Optional[int] = None,
                 owner_id: int = 901, with_stubs: bool = False) -> Dict[str, Any]:
    pl = {
        "id": playlist_id,
        "kind": "playlist",
        "permalink_url": f"https://soundcloud.com/user{owner_id}/sets/set-{playlist_id}",
        "title": f"Playlist {playlist_id}",
        "track_count": len(track_ids) if track_count is None else track_count,
        "user": raw_user(owner_id),
        "artwork_url": None,
        "likes_count": 3,
    }
    if with_stubs:
        pl["tracks"] = [{"id": i, "kind": "track", "monetization_model": "NOT_APPLICABLE"} for i in track_ids]
    return pl


def raw_track_like(created_at: str, track_id: int) -> Dict[str, Any]:
    return {"created_at": created_at, "kind": "like", "track": raw_track(track_id)}


def raw_playlist_like(created_at: str, playlist_id: int, track_ids: List[int]) -> Dict[str, Any]:
    return {"created_at": created_at, "kind": "like", "playlist": raw_playlist(playlist_id, track_ids)}


def likes_page(items: List[Dict[str, Any]], next_href: Optional[str]) -> Dict[str, Any]:
    return {"collection": items, "next_href": next_href, "query_urn": None}


def route_key(url: str) -> Tuple[str, Tuple[Tuple[str, str], ...]]:
    parts = urlsplit(url)
    params = tuple(sorted((k, v) for k, v in parse_qsl(parts.query) if k != "client_id"))
    return parts.path, params


class FakeSCClient(SCClient):
    """
    SCClient answering from in-memory routes instead of the network.

    Routes are keyed by URL path and query parameters, ignoring ``client_id``;
    every requested URL is recorded in ``requested``.
    """

    def __init__(self, client_id: Optional[str] = CLIENT_ID):
        super().__init__(client_id=client_id, base_url=DEFAULT_BASE)
        self.json_routes: Dict[Tuple, Any] = {}
        self.text_routes: Dict[str, Any] = {}
        self.requested: List[str] = []

    def add_json(self, path: str, payload: Any, **params: Any) -> "FakeSCClient":
        key = (path, tuple(sorted((k, str(v)) for k, v in params.items())))
        self.json_routes[key] = payload
        return self

    def add_text(self, url: str, payload: Any) -> "FakeSCClient":
        self.text_routes[url] = payload
        return self

    def add_likes_pages(self, user_id: int, pages: List[List[Dict[str, Any]]], limit: int = 100) -> "FakeSCClient":
        """Register a cursor chain of pages; cursor links carry no client id."""
        path = f"/users/{user_id}/likes"
        for i, items in enumerate(pages):
            last = i == len(pages) - 1
            next_href = None if last else f"{DEFAULT_BASE}{path}?offset=cursor-{i + 1}&limit={limit}"
            params = {"limit": limit}
            if i > 0:
                params["offset"] = f"cursor-{i}"
            self.add_json(path, likes_page(items, next_href), **params)
        return self

    def add_playlist(self, playlist_id: int, track_ids: List[int], track_count: Optional[int] = None,
                     batch_order: Optional[List[int]] = None) -> "FakeSCClient":
        self.add_json(f"/playlists/{playlist_id}",
                      raw_playlist(playlist_id, track_ids, track_count, with_stubs=True))
        if track_ids:
            returned = track_ids if batch_order is None else batch_order
            self.add_json("/tracks", [raw_track(i) for i in returned], ids=",".join(str(i) for i in track_ids))
        return self

    def _answer(self, routes: Dict, key: Any, url: str) -> Any:
        self.requests_made += 1
        self.requested.append(url)
        if key not in routes:
            raise TransportError(f"404 Not Found {url}", status_code=404, url=url)
        payload = routes[key]
        if isinstance(payload, Exception):
            raise payload
        return copy.deepcopy(payload)

    def get_json(self, url: str):
        return self._answer(self.json_routes, route_key(url), url)

    def get_text(self, url: str) -> str:
        return self._answer(self.text_routes, url, url)

    def requested_paths(self) -> List[str]:
        return [urlsplit(u).path for u in self.requested]
