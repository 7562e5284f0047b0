"""
Services layer for in-memory signaling state.

This layer handles:
- Room lifecycle and peer matching
- Per-room chat message archive
- Waiting room expiry
"""

from . import room_service
from . import chat_archive

__all__ = [
    "room_service",
    "chat_archive"
]
