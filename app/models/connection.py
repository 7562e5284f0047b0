import asyncio
from dataclasses import dataclass
from typing import Any, Optional

from app.models.room import PeerRole


@dataclass(eq=False)
class Connection:
    """
    살아있는 WebSocket 세션 하나

    room_id / role은 ConnectionRegistry를 통해서만 변경됩니다.
    room_id는 대화방을 소유하지 않는 역참조입니다.
    """
    handle: str
    websocket: Any
    outbox: asyncio.Queue
    room_id: Optional[str] = None
    role: Optional[PeerRole] = None
    writable: bool = True
    writer_task: Optional[asyncio.Task] = None

    def __repr__(self):
        return f"<Connection(handle={self.handle}, room_id={self.room_id}, role={self.role})>"
