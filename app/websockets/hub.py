import asyncio
from typing import Any, Dict, Optional

from app.core.logging import get_logger
from app.services.chat_archive import ChatArchive
from app.services.room_service import RoomStore
from app.websockets.connection_registry import ConnectionRegistry
from app.websockets.handlers import SignalingRelay
from app.websockets.lifecycle import ConnectionLifecycleHandler

logger = get_logger(__name__)


class SignalingHub:
    """
    시그널링 서버의 공유 상태 묶음

    ConnectionRegistry와 RoomStore를 변경하는 모든 작업은 lock 하나로 직렬화됩니다.
    """

    def __init__(self, queue_size: Optional[int] = None):
        self.registry = ConnectionRegistry(queue_size)
        self.rooms = RoomStore()
        self.archive = ChatArchive()
        self.lock = asyncio.Lock()
        self.lifecycle = ConnectionLifecycleHandler(self)
        self.relay = SignalingRelay(self, self.lifecycle)

    def stats(self) -> Dict[str, Any]:
        return {
            "connections": self.registry.count(),
            "rooms": self.rooms.stats(),
            "messages": self.archive.count(),
        }

    async def shutdown(self):
        """서버 종료 시 남은 연결 정리"""
        remaining = self.registry.count()
        await self.registry.close()
        if remaining:
            logger.info(f"Closed {remaining} remaining connection(s) on shutdown")


# 전역 시그널링 허브 인스턴스
hub = SignalingHub()


def get_hub() -> SignalingHub:
    """FastAPI 의존성: 전역 허브 반환"""
    return hub
