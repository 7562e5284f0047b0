"""
대기방 만료 모니터링 서비스

상대를 찾지 못한 채 오래 남아 있는 WAITING 방을 주기적으로 종료합니다.
"""

import asyncio
from datetime import datetime
from typing import TYPE_CHECKING, List, Optional

from app.core.config import settings
from app.core.logging import get_logger
from app.models.room import Room
from app.schemas.signaling import ErrorEvent

if TYPE_CHECKING:
    from app.websockets.hub import SignalingHub

logger = get_logger(__name__)

EXPIRED_MESSAGE = "No peer found before the waiting room expired"


class WaitingRoomMonitor:
    """WAITING 방 만료 감지 및 처리"""

    def __init__(
        self,
        hub: "SignalingHub",
        timeout_seconds: Optional[float] = None,
        interval_seconds: Optional[float] = None
    ):
        self.hub = hub
        self.timeout_seconds = (
            settings.waiting_room_timeout_seconds if timeout_seconds is None else timeout_seconds
        )
        self.interval_seconds = (
            settings.waiting_room_sweep_interval_seconds if interval_seconds is None else interval_seconds
        )
        self.running = False
        self.task = None

    @property
    def enabled(self) -> bool:
        return self.timeout_seconds > 0

    async def start(self):
        """모니터링 시작"""
        if not self.enabled:
            logger.info("Waiting room expiry disabled")
            return

        if self.running:
            logger.warning("Waiting room monitor is already running")
            return

        self.running = True
        self.task = asyncio.create_task(self._monitor())
        logger.info("Waiting room monitor started")

    async def stop(self):
        """모니터링 중지"""
        self.running = False
        if self.task:
            self.task.cancel()
            try:
                await self.task
            except asyncio.CancelledError:
                pass
            self.task = None
        logger.info("Waiting room monitor stopped")

    async def sweep(self, now: Optional[datetime] = None) -> List[Room]:
        """
        만료된 대기방을 종료하고 생성자에게 알립니다.

        Returns:
            List[Room]: 이번 주기에 종료된 대화방 목록
        """
        async with self.hub.lock:
            expired = self.hub.rooms.expire_waiting(self.timeout_seconds, now)
            for room in expired:
                if self.hub.registry.clear_room(room.initiator_handle, room.id):
                    self.hub.registry.send(
                        room.initiator_handle,
                        ErrorEvent(message=EXPIRED_MESSAGE).to_wire()
                    )
        return expired

    async def _monitor(self):
        try:
            while self.running:
                await asyncio.sleep(self.interval_seconds)
                try:
                    await self.sweep()
                except Exception as e:
                    logger.error(f"Error in waiting room sweep: {e}", exc_info=True)

        except asyncio.CancelledError:
            logger.info("Waiting room monitor cancelled")
            raise
