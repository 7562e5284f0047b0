from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Optional, Tuple
import uuid


class PeerRole(str, Enum):
    """대화방 안에서의 역할 (먼저 들어온 쪽이 initiator)"""
    INITIATOR = "initiator"
    RESPONDER = "responder"


class RoomState(str, Enum):
    WAITING = "waiting"  # 응답자 없음
    PAIRED = "paired"    # 두 명 매칭 완료
    CLOSED = "closed"    # 비활성화 (종료 상태)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class Room:
    """
    1:1 세션 대화방 스냅샷

    RoomStore만 생성/교체하며, 외부에서는 읽기 전용으로 사용합니다.
    """
    initiator_handle: str
    id: str = field(default_factory=lambda: uuid.uuid4().hex)
    responder_handle: Optional[str] = None
    active: bool = True
    created_at: datetime = field(default_factory=_utcnow)
    paired_at: Optional[datetime] = None
    closed_at: Optional[datetime] = None

    @property
    def state(self) -> RoomState:
        if not self.active:
            return RoomState.CLOSED
        if self.responder_handle is None:
            return RoomState.WAITING
        return RoomState.PAIRED

    @property
    def occupants(self) -> Tuple[str, ...]:
        """현재 방에 있는 핸들 목록 (initiator 먼저)"""
        if self.responder_handle is None:
            return (self.initiator_handle,)
        return (self.initiator_handle, self.responder_handle)

    def role_of(self, handle: str) -> Optional[PeerRole]:
        if handle == self.initiator_handle:
            return PeerRole.INITIATOR
        if handle == self.responder_handle:
            return PeerRole.RESPONDER
        return None

    def counterpart_of(self, handle: str) -> Optional[str]:
        """상대방 핸들 반환 (없으면 None)"""
        if handle == self.initiator_handle:
            return self.responder_handle
        if handle == self.responder_handle:
            return self.initiator_handle
        return None

    def __repr__(self):
        return (
            f"<Room(id={self.id}, initiator={self.initiator_handle}, "
            f"responder={self.responder_handle}, state={self.state.value})>"
        )
