# src/sll/collectors/hydration.py
from __future__ import annotations
from typing import Any, Awaitable, Dict, List, Optional, Union

from loguru import logger

from sll.clean.normalize import narrow_tracks
from sll.io.soundcloud_client import SCClient
from sll.models import Like
from sll.schemas.validator import Validator


def order_by_ids(tracks: List[Dict[str, Any]], track_ids: List[int]) -> List[Dict[str, Any]]:
    """Reorder ``tracks`` to follow ``track_ids``; ids without a track are skipped."""
    by_id = {t["id"]: t for t in tracks}
    return [by_id[i] for i in track_ids if i in by_id]


def keep_requested(tracks: List[Dict[str, Any]], track_ids: List[int]) -> List[Dict[str, Any]]:
    """Drop tracks that were not asked for and repeats of an id, keeping the returned order."""
    wanted = set(track_ids)
    seen = set()
    kept = []
    for t in tracks:
        if t["id"] in wanted and t["id"] not in seen:
            seen.add(t["id"])
            kept.append(t)
    return kept


class PlaylistHydrator:
    """
    Attaches the track listing to liked playlists.

    Calling the hydrator with a like returns the like itself when it holds no
    playlist, and otherwise a coroutine producing a new like whose playlist
    carries ``tracks``. The input like is never modified.

    The batch track endpoint does not promise to answer in request order.
    Tracks are kept in the order it returns them unless
    ``preserve_playlist_order`` is set, in which case they are re-sorted to
    the playlist's own order. Either way only the requested ids survive, and
    ``track_count`` is taken from the freshly loaded playlist, so the
    hydrated listing never exceeds it.
    """

    def __init__(self, sc: SCClient, validator: Validator,
                 preserve_playlist_order: bool = False,
                 stats: Optional[Dict[str, int]] = None):
        self.sc = sc
        self.validator = validator
        self.preserve_playlist_order = preserve_playlist_order
        self.stats = stats if stats is not None else {}

    def __call__(self, like: Like) -> Union[Like, Awaitable[Like]]:
        if not like.get("playlist"):
            return like
        return self.hydrate(like)

    async def load_playlist(self, playlist_id: int) -> Dict[str, Any]:
        data = await self.sc.fetch_json(self.sc.playlist_url(playlist_id))
        return self.validator.validate(data, "playlist")

    async def load_tracks(self, track_ids: List[int]) -> List[Dict[str, Any]]:
        if not track_ids:
            return []
        data = await self.sc.fetch_json(self.sc.tracks_url(track_ids))
        return self.validator.validate(data, "tracks")

    async def hydrate(self, like: Like) -> Like:
        playlist = like["playlist"]
        loaded = await self.load_playlist(playlist["id"])
        track_ids = [t["id"] for t in loaded["tracks"]]
        tracks = await self.load_tracks(track_ids)
        if self.preserve_playlist_order:
            tracks = order_by_ids(tracks, track_ids)
        else:
            tracks = keep_requested(tracks, track_ids)
        if len(tracks) < len(track_ids):
            logger.debug(f"Playlist {playlist['id']}: {len(track_ids) - len(tracks)} tracks unavailable")
        logger.debug(f"Hydrated playlist {playlist['id']} ({playlist['title']!r}) with {len(tracks)} tracks")
        self.stats["playlists_hydrated"] = self.stats.get("playlists_hydrated", 0) + 1
        # the freshly loaded count bounds the stubs, and so the tracks
        hydrated = {**playlist, "track_count": loaded["track_count"], "tracks": narrow_tracks(tracks)}
        return {**like, "playlist": hydrated}
