from .room import Room, RoomState, PeerRole
from .connection import Connection

__all__ = [
    "Room",
    "RoomState",
    "PeerRole",
    "Connection",
]
