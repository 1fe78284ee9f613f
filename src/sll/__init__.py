"""
SoundCloud Likes Log.

Archives the complete likes history of a SoundCloud user, hydrating every
liked playlist with its tracks, into a single ordered JSON document.
"""

__version__ = "0.1"
