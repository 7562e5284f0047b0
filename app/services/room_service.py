"""
대화방 저장소 및 매칭 로직

대화방의 생명주기(WAITING → PAIRED → CLOSED)를 소유합니다.
모든 메서드는 동기 함수이므로 await 지점 없이 한 번에 적용되며,
호출자는 SignalingHub.lock 안에서만 호출합니다.
"""

from collections import OrderedDict
from dataclasses import replace
from datetime import datetime, timedelta, timezone
from typing import Dict, List, NamedTuple, Optional

from app.core.logging import get_logger, log_room_event
from app.models.room import PeerRole, Room, RoomState

logger = get_logger(__name__)


class MatchResult(NamedTuple):
    room: Room
    role: PeerRole
    counterpart_handle: Optional[str]


class RoomStore:
    """대화방 저장소"""

    def __init__(self):
        # 모든 대화방 (종료된 방은 이력 조회용으로만 유지)
        self._rooms: Dict[str, Room] = {}
        # 매칭 가능한 WAITING 방 인덱스, 생성 순서 유지
        self._waiting: "OrderedDict[str, None]" = OrderedDict()

    def find_or_create(self, requester_handle: str) -> MatchResult:
        """
        대기 중인 방에 참여하거나 새 방을 생성합니다.

        먼저 생성된 WAITING 방부터 확인하며, 요청자가 만든 방은 건너뜁니다.
        응답자 지정과 PAIRED 전이는 한 단계로 처리됩니다.

        Args:
            requester_handle: 매칭을 요청한 연결 핸들

        Returns:
            MatchResult: 대화방, 요청자의 역할, 상대방 핸들 (없으면 None)
        """
        for room_id in self._waiting:
            room = self._rooms[room_id]
            if room.initiator_handle == requester_handle:
                continue

            paired = replace(
                room,
                responder_handle=requester_handle,
                paired_at=datetime.now(timezone.utc)
            )
            self._rooms[room_id] = paired
            del self._waiting[room_id]

            log_room_event(
                logger, "paired", room_id,
                initiator=paired.initiator_handle,
                responder=requester_handle
            )
            return MatchResult(paired, PeerRole.RESPONDER, paired.initiator_handle)

        room = Room(initiator_handle=requester_handle)
        self._rooms[room.id] = room
        self._waiting[room.id] = None

        log_room_event(logger, "created", room.id, initiator=requester_handle)
        return MatchResult(room, PeerRole.INITIATOR, None)

    def deactivate(self, room_id: str) -> Optional[Room]:
        """
        대화방을 비활성화합니다. (멱등)

        실제로 상태를 바꾼 첫 호출에서만 종료된 방을 반환하므로,
        호출자는 반환값이 있을 때만 상대방에게 알리면 됩니다.
        """
        room = self._rooms.get(room_id)
        if room is None or not room.active:
            return None

        closed = replace(room, active=False, closed_at=datetime.now(timezone.utc))
        self._rooms[room_id] = closed
        self._waiting.pop(room_id, None)

        log_room_event(
            logger, "closed", room_id,
            previous_state=room.state.value,
            occupants=list(room.occupants)
        )
        return closed

    def get(self, room_id: str) -> Optional[Room]:
        """대화방 ID로 조회"""
        return self._rooms.get(room_id)

    def active_rooms(self) -> List[Room]:
        return [room for room in self._rooms.values() if room.active]

    def waiting_count(self) -> int:
        return len(self._waiting)

    def expire_waiting(self, max_age_seconds: float, now: Optional[datetime] = None) -> List[Room]:
        """오래된 WAITING 방을 종료하고 종료된 방 목록을 반환합니다."""
        now = now or datetime.now(timezone.utc)
        cutoff = now - timedelta(seconds=max_age_seconds)

        expired_ids = [
            room_id for room_id in self._waiting
            if self._rooms[room_id].created_at <= cutoff
        ]

        expired = []
        for room_id in expired_ids:
            closed = self.deactivate(room_id)
            if closed is not None:
                expired.append(closed)

        if expired:
            logger.info(f"Expired {len(expired)} waiting room(s)", extra={
                "event_type": "room_expiry",
                "room_ids": [room.id for room in expired]
            })
        return expired

    def stats(self) -> Dict[str, int]:
        """상태별 대화방 수"""
        counts = {state.value: 0 for state in RoomState}
        for room in self._rooms.values():
            counts[room.state.value] += 1
        return counts
