"""
WebSocket 시그널링 메시지 스키마

클라이언트 → 서버 봉투(envelope)와 서버 → 클라이언트 이벤트를 정의합니다.
핸드셰이크 페이로드(offer/answer/candidate)는 내용을 해석하지 않습니다.
"""

from enum import Enum
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field, ConfigDict, field_validator
from pydantic.alias_generators import to_camel

from app.core.config import settings
from app.models.room import PeerRole
from app.schemas.message import ChatMessage


class ClientMessageType(str, Enum):
    FIND_PEER = "find-peer"
    WEBRTC_OFFER = "webrtc-offer"
    WEBRTC_ANSWER = "webrtc-answer"
    WEBRTC_ICE_CANDIDATE = "webrtc-ice-candidate"
    CHAT_MESSAGE = "chat-message"
    DISCONNECT = "disconnect"


HANDSHAKE_TYPES = frozenset({
    ClientMessageType.WEBRTC_OFFER,
    ClientMessageType.WEBRTC_ANSWER,
    ClientMessageType.WEBRTC_ICE_CANDIDATE,
})


class ServerEventType(str, Enum):
    WAITING_FOR_PEER = "waiting-for-peer"
    PEER_FOUND = "peer-found"
    CHAT_MESSAGE = "chat-message"
    PEER_DISCONNECTED = "peer-disconnected"
    ERROR = "error"


# =============================================================================
# 클라이언트 → 서버
# =============================================================================

class Envelope(BaseModel):
    """모든 수신 메시지의 공통 봉투 (type 외 필드는 그대로 보존)"""
    model_config = ConfigDict(extra="allow")

    type: str = Field(..., min_length=1, description="메시지 종류")


class ChatMessageIn(BaseModel):
    """chat-message 페이로드"""
    model_config = ConfigDict(extra="ignore")

    content: str = Field(..., description="메시지 내용")

    @field_validator("content")
    @classmethod
    def validate_content(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("Message content must not be empty")
        if len(value) > settings.max_chat_message_length:
            raise ValueError(
                f"Message content must be at most {settings.max_chat_message_length} characters"
            )
        return value


# =============================================================================
# 서버 → 클라이언트
# =============================================================================

class ServerEvent(BaseModel):
    """서버 이벤트 기본 스키마"""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    type: ServerEventType

    def to_wire(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class WaitingForPeerEvent(ServerEvent):
    type: ServerEventType = ServerEventType.WAITING_FOR_PEER
    room_id: str
    peer_role: PeerRole


class PeerFoundEvent(ServerEvent):
    type: ServerEventType = ServerEventType.PEER_FOUND
    room_id: str
    peer_role: PeerRole
    remote_peer_id: str


class ChatMessageEvent(ServerEvent):
    type: ServerEventType = ServerEventType.CHAT_MESSAGE
    message: ChatMessage


class PeerDisconnectedEvent(ServerEvent):
    type: ServerEventType = ServerEventType.PEER_DISCONNECTED


class ErrorEvent(ServerEvent):
    type: ServerEventType = ServerEventType.ERROR
    message: str


def relayed_handshake(envelope: Dict[str, Any], sender_id: str) -> Dict[str, Any]:
    """핸드셰이크 메시지를 원본 그대로 복사하고 senderId만 추가"""
    relayed = dict(envelope)
    relayed["senderId"] = sender_id
    return relayed


def parse_client_type(raw_type: str) -> Optional[ClientMessageType]:
    try:
        return ClientMessageType(raw_type)
    except ValueError:
        return None
