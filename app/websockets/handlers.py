import json
from typing import TYPE_CHECKING, Any, Dict

from pydantic import ValidationError as PydanticValidationError

from app.core.errors import (
    BaseSignalingException,
    InvalidPayloadException,
    MalformedEnvelopeException,
    UnknownMessageTypeException,
    validation_errors_from_pydantic,
)
from app.core.logging import get_logger
from app.models.room import RoomState
from app.schemas.signaling import (
    HANDSHAKE_TYPES,
    ChatMessageEvent,
    ChatMessageIn,
    ClientMessageType,
    Envelope,
    PeerFoundEvent,
    WaitingForPeerEvent,
    parse_client_type,
    relayed_handshake,
)

if TYPE_CHECKING:
    from app.websockets.hub import SignalingHub
    from app.websockets.lifecycle import ConnectionLifecycleHandler

logger = get_logger(__name__)


class SignalingRelay:
    """WebSocket 시그널링 메시지 처리 핸들러"""

    def __init__(self, hub: "SignalingHub", lifecycle: "ConnectionLifecycleHandler"):
        self.hub = hub
        self.lifecycle = lifecycle

    async def handle_raw(self, handle: str, raw: Any):
        """
        WebSocket으로 받은 원본 프레임을 처리합니다.

        Args:
            handle: 발신 연결 핸들
            raw: 텍스트 또는 바이너리 프레임
        """
        try:
            if isinstance(raw, (bytes, bytearray)):
                raw = raw.decode("utf-8")
            data = json.loads(raw)
        except (TypeError, ValueError) as e:
            logger.warning(f"Invalid JSON from connection {handle}: {e}")
            self._report(handle, MalformedEnvelopeException())
            return

        await self.handle_message(handle, data)

    async def handle_message(self, handle: str, data: Any):
        """
        파싱된 메시지를 분류하여 처리합니다.

        시그널링 예외는 발신자에게만 error 이벤트로 전달되며 연결은 유지됩니다.
        """
        try:
            envelope = self._parse_envelope(data)
            message_type = parse_client_type(envelope.type)

            if message_type is None:
                raise UnknownMessageTypeException(envelope.type)

            if message_type == ClientMessageType.FIND_PEER:
                await self._handle_find_peer(handle)
            elif message_type in HANDSHAKE_TYPES:
                await self._handle_handshake(handle, data)
            elif message_type == ClientMessageType.CHAT_MESSAGE:
                await self._handle_chat_message(handle, data)
            elif message_type == ClientMessageType.DISCONNECT:
                await self.lifecycle.leave(handle)

        except BaseSignalingException as e:
            logger.warning(
                f"Rejected message from connection {handle}: {e.message}",
                extra={"error": e.error, "details": e.details}
            )
            self._report(handle, e)

    @staticmethod
    def _parse_envelope(data: Any) -> Envelope:
        if not isinstance(data, dict):
            raise MalformedEnvelopeException()
        try:
            return Envelope.model_validate(data)
        except PydanticValidationError:
            raise MalformedEnvelopeException()

    async def _handle_find_peer(self, handle: str):
        """매칭 요청을 처리합니다."""
        registry = self.hub.registry

        async with self.hub.lock:
            connection = registry.lookup(handle)
            if connection is None:
                return

            if connection.room_id is not None:
                current = self.hub.rooms.get(connection.room_id)
                if current is not None and current.state == RoomState.WAITING:
                    # 이미 대기 중이면 같은 방 정보를 다시 알려줌
                    registry.send(handle, WaitingForPeerEvent(
                        room_id=current.id,
                        peer_role=connection.role
                    ).to_wire())
                    return
                self.lifecycle.release_room(handle)

            result = self.hub.rooms.find_or_create(handle)
            room = result.room
            registry.assign_room(handle, room.id, result.role)

            if result.counterpart_handle is None:
                registry.send(handle, WaitingForPeerEvent(
                    room_id=room.id,
                    peer_role=result.role
                ).to_wire())
                logger.info(f"Connection {handle} waiting for peer in room {room.id}")
                return

            counterpart = result.counterpart_handle
            registry.send(counterpart, PeerFoundEvent(
                room_id=room.id,
                peer_role=room.role_of(counterpart),
                remote_peer_id=handle
            ).to_wire())
            registry.send(handle, PeerFoundEvent(
                room_id=room.id,
                peer_role=result.role,
                remote_peer_id=counterpart
            ).to_wire())

        logger.info(f"Connection {handle} paired with {counterpart} in room {room.id}")

    async def _handle_handshake(self, handle: str, data: Dict[str, Any]):
        """offer/answer/ice-candidate를 상대방에게 그대로 전달합니다."""
        async with self.hub.lock:
            connection = self.hub.registry.lookup(handle)
            if connection is None or connection.room_id is None:
                return

            room = self.hub.rooms.get(connection.room_id)
            if room is None or not room.active:
                return

            counterpart = room.counterpart_of(handle)
            if counterpart is None:
                return

            delivered = self.hub.registry.send(counterpart, relayed_handshake(data, handle))

        if not delivered:
            logger.debug(f"Dropped {data.get('type')} from {handle}: counterpart unreachable")

    async def _handle_chat_message(self, handle: str, data: Dict[str, Any]):
        """채팅 메시지를 저장하고 대화방 참여자 모두에게 전송합니다."""
        try:
            payload = ChatMessageIn.model_validate(data)
        except PydanticValidationError as e:
            errors = validation_errors_from_pydantic(e)
            reason = errors[0].message if errors else "invalid content"
            raise InvalidPayloadException(f"Invalid chat message: {reason}", errors)

        async with self.hub.lock:
            connection = self.hub.registry.lookup(handle)
            if connection is None or connection.room_id is None:
                return

            room = self.hub.rooms.get(connection.room_id)
            if room is None or not room.active:
                return

            message = self.hub.archive.append(room.id, handle, payload.content)
            event = ChatMessageEvent(message=message).to_wire()
            for occupant in room.occupants:
                self.hub.registry.send(occupant, event)

        logger.info(f"Message {message.id} sent from connection {handle} to room {room.id}")

    def _report(self, handle: str, exc: BaseSignalingException):
        self.hub.registry.send(handle, exc.to_event())
