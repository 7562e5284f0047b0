# Chat message schemas
from .message import ChatMessage

# Signaling schemas
from .signaling import (
    ClientMessageType,
    ServerEventType,
    HANDSHAKE_TYPES,
    Envelope,
    ChatMessageIn,
    WaitingForPeerEvent,
    PeerFoundEvent,
    ChatMessageEvent,
    PeerDisconnectedEvent,
    ErrorEvent,
    relayed_handshake,
)

__all__ = [
    "ChatMessage",
    "ClientMessageType",
    "ServerEventType",
    "HANDSHAKE_TYPES",
    "Envelope",
    "ChatMessageIn",
    "WaitingForPeerEvent",
    "PeerFoundEvent",
    "ChatMessageEvent",
    "PeerDisconnectedEvent",
    "ErrorEvent",
    "relayed_handshake",
]
