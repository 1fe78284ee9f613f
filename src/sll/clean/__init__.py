"""
Clean module for SoundCloud Likes Log.

Projects raw api-v2 records onto the narrow shapes stored in the log.
"""

from .normalize import narrow_user, narrow_track, narrow_playlist, narrow_like, classify_like

__all__ = ["narrow_user", "narrow_track", "narrow_playlist", "narrow_like", "classify_like"]
