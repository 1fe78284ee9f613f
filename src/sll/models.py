# src/sll/models.py
"""Narrowed record shapes written to the likes log."""

from __future__ import annotations
from typing import List, Literal, TypedDict


class User(TypedDict):
    id: int
    kind: Literal["user"]
    permalink_url: str
    username: str


class Track(TypedDict):
    id: int
    kind: Literal["track"]
    permalink_url: str
    title: str
    user: User


class _PlaylistBase(TypedDict):
    id: int
    kind: Literal["playlist"]
    permalink_url: str
    title: str
    track_count: int
    user: User


class Playlist(_PlaylistBase, total=False):
    # absent until hydrated
    tracks: List[Track]


class _LikeBase(TypedDict):
    created_at: str
    kind: Literal["like"]


class Like(_LikeBase, total=False):
    track: Track
    playlist: Playlist


LIKE_TRACK = "track"
LIKE_PLAYLIST = "playlist"
LIKE_BARE = "bare"
