# src/sll/clean/normalize.py
"""
Narrowing of raw api-v2 records.

These functions assume the record has already been validated against its
wire schema. They never validate; they only copy the fields the log keeps
and drop everything else.
"""

from __future__ import annotations
from typing import Any, Dict, List, Optional

from sll.models import Like, Playlist, Track, User, LIKE_BARE, LIKE_PLAYLIST, LIKE_TRACK


def narrow_user(u: Dict[str, Any]) -> User:
    return User(
        id=u["id"],
        kind=u["kind"],
        permalink_url=u["permalink_url"],
        username=u["username"],
    )


def narrow_track(t: Dict[str, Any]) -> Track:
    return Track(
        id=t["id"],
        kind=t["kind"],
        permalink_url=t["permalink_url"],
        title=t["title"],
        user=narrow_user(t["user"]),
    )


def narrow_playlist(pl: Dict[str, Any]) -> Playlist:
    return Playlist(
        id=pl["id"],
        kind=pl["kind"],
        permalink_url=pl["permalink_url"],
        title=pl["title"],
        track_count=pl["track_count"],
        user=narrow_user(pl["user"]),
    )


def narrow_tracks(tracks: List[Dict[str, Any]]) -> List[Track]:
    return [narrow_track(t) for t in tracks]


def narrow_like(rec: Dict[str, Any]) -> Like:
    """
    Narrow a raw like record.

    ``track`` and ``playlist`` are only present in the result when the raw
    record carries them; a null value upstream is treated as absent.
    """
    like = Like(created_at=rec["created_at"], kind=rec["kind"])
    track: Optional[Dict[str, Any]] = rec.get("track")
    playlist: Optional[Dict[str, Any]] = rec.get("playlist")
    if track:
        like["track"] = narrow_track(track)
    if playlist:
        like["playlist"] = narrow_playlist(playlist)
    return like


def classify_like(like: Like) -> str:
    """Return ``"playlist"``, ``"track"`` or ``"bare"``."""
    if like.get("playlist"):
        return LIKE_PLAYLIST
    if like.get("track"):
        return LIKE_TRACK
    return LIKE_BARE
