"""
Collectors module for SoundCloud Likes Log.

This module provides the cursor paginator, the ordered bounded-concurrency
window and the playlist hydration that together build a likes log.
"""

from .ordered import OrderedWindow, ordered_map
from .pagination import iter_pages, iter_items
from .hydration import PlaylistHydrator
from .likes_log import LikesLogBuilder, create_likes_log, write_likes_log

__all__ = [
    "OrderedWindow",
    "ordered_map",
    "iter_pages",
    "iter_items",
    "PlaylistHydrator",
    "LikesLogBuilder",
    "create_likes_log",
    "write_likes_log",
]
