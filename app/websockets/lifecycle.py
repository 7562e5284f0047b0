from typing import TYPE_CHECKING, Any, Optional

from app.core.logging import get_logger, log_websocket_event
from app.models.connection import Connection
from app.models.room import Room
from app.schemas.signaling import PeerDisconnectedEvent

if TYPE_CHECKING:
    from app.websockets.hub import SignalingHub

logger = get_logger(__name__)


class ConnectionLifecycleHandler:
    """연결 수립/해제 및 대화방 이탈 처리"""

    def __init__(self, hub: "SignalingHub"):
        self.hub = hub

    async def accept(self, websocket: Any) -> Connection:
        """수락된 WebSocket을 등록합니다. 대화방은 배정되지 않습니다."""
        async with self.hub.lock:
            connection = self.hub.registry.register(websocket)
        log_websocket_event(logger, "connected", connection.handle)
        return connection

    async def leave(self, handle: str) -> Optional[Room]:
        """연결은 유지한 채 현재 대화방에서 나갑니다."""
        async with self.hub.lock:
            return self.release_room(handle)

    async def disconnect(self, handle: str) -> bool:
        """
        연결 해제 처리 (명시적 종료 / 비정상 종료 공통)

        여러 번 호출되어도 첫 호출만 효과가 있습니다.

        Returns:
            bool: 이번 호출에서 실제로 정리가 일어났는지 여부
        """
        async with self.hub.lock:
            connection = self.hub.registry.lookup(handle)
            if connection is None:
                return False

            room_id = connection.room_id
            self.release_room(handle)
            self.hub.registry.unregister(handle)

        log_websocket_event(logger, "disconnected", handle, room_id)
        return True

    def release_room(self, handle: str) -> Optional[Room]:
        """
        연결이 속한 대화방을 종료하고 상대방에게 알립니다.

        hub.lock을 잡은 상태에서만 호출해야 합니다.
        대화방이 이번 호출로 종료된 경우에만 종료된 방을 반환합니다.
        """
        connection = self.hub.registry.lookup(handle)
        if connection is None or connection.room_id is None:
            return None

        room_id = connection.room_id
        self.hub.registry.clear_room(handle)

        closed = self.hub.rooms.deactivate(room_id)
        if closed is None:
            return None

        counterpart = closed.counterpart_of(handle)
        if counterpart is not None:
            delivered = self.hub.registry.send(counterpart, PeerDisconnectedEvent().to_wire())
            self.hub.registry.clear_room(counterpart, room_id)
            if not delivered:
                logger.debug(f"Peer-disconnected notice to {counterpart} was not delivered")

        log_websocket_event(logger, "left_room", handle, room_id, counterpart=counterpart)
        return closed
