#!/usr/bin/env python
"""
Create Likes Log - archive a SoundCloud user's likes as JSON.

Usage:
    python scripts/create_likes_log.py <USERNAME> --output likes.json

    # As a scheduled job, configured through the environment
    SC_USERNAME=someuser SC_OUTPUT_PATH=data/likes.json python scripts/create_likes_log.py
"""

import sys

from sll.cli import main

if __name__ == "__main__":
    sys.exit(main())
