import asyncio
import uuid
from typing import Any, Dict, Optional

from app.core.config import settings
from app.core.logging import get_logger
from app.models.connection import Connection
from app.models.room import PeerRole

logger = get_logger(__name__)

_CLOSE = object()  # writer 종료 신호


class ConnectionRegistry:
    """
    연결 핸들 → 살아있는 연결 매핑

    전송은 연결별 큐에 넣기만 하고(대기 없음), 연결마다 하나의 writer 태스크가
    순서대로 WebSocket에 씁니다. 따라서 같은 핸들로 보낸 메시지의 순서는 유지됩니다.
    """

    def __init__(self, queue_size: Optional[int] = None):
        # {handle: Connection}
        self._connections: Dict[str, Connection] = {}
        self._queue_size = queue_size if queue_size is not None else settings.outbound_queue_size

    def register(self, websocket: Any) -> Connection:
        """새 연결을 등록하고 핸들을 발급합니다."""
        handle = uuid.uuid4().hex
        connection = Connection(
            handle=handle,
            websocket=websocket,
            outbox=asyncio.Queue(maxsize=self._queue_size)
        )
        connection.writer_task = asyncio.create_task(
            self._writer(connection), name=f"ws-writer-{handle}"
        )
        self._connections[handle] = connection
        logger.info(f"Connection {handle} registered")
        return connection

    def lookup(self, handle: str) -> Optional[Connection]:
        return self._connections.get(handle)

    def unregister(self, handle: str) -> Optional[Connection]:
        """연결을 제거합니다. 이미 제거된 핸들이면 None을 반환합니다."""
        connection = self._connections.pop(handle, None)
        if connection is None:
            return None

        connection.writable = False
        connection.room_id = None
        connection.role = None
        try:
            connection.outbox.put_nowait(_CLOSE)
        except asyncio.QueueFull:
            if connection.writer_task:
                connection.writer_task.cancel()

        logger.info(f"Connection {handle} unregistered")
        return connection

    def send(self, handle: str, payload: Dict[str, Any]) -> bool:
        """
        특정 연결에 JSON 메시지를 전송합니다. (best-effort)

        핸들이 없거나 쓸 수 없는 상태이면 False를 반환하며 예외는 발생하지 않습니다.
        """
        connection = self._connections.get(handle)
        if connection is None or not connection.writable:
            return False

        try:
            connection.outbox.put_nowait(payload)
        except asyncio.QueueFull:
            logger.warning(f"Outbound queue full for connection {handle}, dropping message")
            return False
        return True

    def assign_room(self, handle: str, room_id: str, role: PeerRole) -> bool:
        connection = self._connections.get(handle)
        if connection is None:
            return False
        connection.room_id = room_id
        connection.role = role
        return True

    def clear_room(self, handle: str, room_id: Optional[str] = None) -> bool:
        """
        연결의 대화방 정보를 초기화합니다.

        room_id가 주어지면 해당 방을 가리키고 있을 때만 초기화합니다.
        """
        connection = self._connections.get(handle)
        if connection is None or connection.room_id is None:
            return False
        if room_id is not None and connection.room_id != room_id:
            return False
        connection.room_id = None
        connection.role = None
        return True

    def count(self) -> int:
        return len(self._connections)

    async def drain(self, handle: Optional[str] = None):
        """큐에 쌓인 메시지가 모두 처리될 때까지 대기합니다."""
        if handle is not None:
            connection = self._connections.get(handle)
            targets = [connection] if connection else []
        else:
            targets = list(self._connections.values())

        for connection in targets:
            await connection.outbox.join()

    async def close(self):
        """모든 연결을 제거하고 writer 태스크 종료를 기다립니다."""
        tasks = []
        for handle in list(self._connections.keys()):
            connection = self.unregister(handle)
            if connection is not None and connection.writer_task is not None:
                tasks.append(connection.writer_task)
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)

    async def _writer(self, connection: Connection):
        """연결별 전송 루프"""
        while True:
            payload = await connection.outbox.get()
            try:
                if payload is _CLOSE:
                    return
                if not connection.writable:
                    continue
                await connection.websocket.send_json(payload)
            except asyncio.CancelledError:
                raise
            except Exception as e:
                # 전송 실패 시 이후 메시지는 버리고, 정리는 수신 루프의 disconnect 경로가 담당
                connection.writable = False
                logger.warning(f"Failed to send to connection {connection.handle}: {e}")
            finally:
                connection.outbox.task_done()
