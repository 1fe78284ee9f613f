"""
Schemas module for SoundCloud Likes Log.

Wire-format schemas for the api-v2 responses the archiver consumes, and the
validator that checks documents against them.
"""

from .validator import Validator, SCHEMAS

__all__ = ["Validator", "SCHEMAS"]
