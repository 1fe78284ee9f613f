"""
IO module for SoundCloud Likes Log.

HTTP access to the SoundCloud api-v2 and the one-shot credential and user
lookups that precede an archive run.
"""

from .soundcloud_client import SCClient, make_client_from_env
from .resolve import discover_client_id, resolve_user_id

__all__ = ["SCClient", "make_client_from_env", "discover_client_id", "resolve_user_id"]
