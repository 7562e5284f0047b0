"""
대화방별 채팅 메시지 기록

메모리에만 보관하며 서버 재시작 시 사라집니다.
"""

from datetime import datetime, timezone
from typing import Dict, List

from app.core.logging import get_logger
from app.schemas.message import ChatMessage

logger = get_logger(__name__)


class ChatArchive:
    """대화방별로 순서가 보장되는 메시지 로그"""

    def __init__(self):
        self._messages: Dict[str, List[ChatMessage]] = {}

    def append(self, room_id: str, sender_id: str, content: str) -> ChatMessage:
        """
        메시지를 추가합니다.

        타임스탬프는 수신 시점에 부여하며, 같은 방 안에서 직전 메시지보다
        작아지지 않도록 보정합니다.
        """
        log = self._messages.setdefault(room_id, [])

        timestamp = datetime.now(timezone.utc)
        if log and timestamp < log[-1].timestamp:
            timestamp = log[-1].timestamp

        message = ChatMessage(
            room_id=room_id,
            sender_id=sender_id,
            content=content,
            timestamp=timestamp
        )
        log.append(message)

        logger.debug(f"Archived message {message.id} in room {room_id}")
        return message

    def messages(self, room_id: str) -> List[ChatMessage]:
        """대화방 메시지를 추가된 순서(= 타임스탬프 순서)로 반환"""
        return list(self._messages.get(room_id, []))

    def count(self, room_id: str = None) -> int:
        if room_id is not None:
            return len(self._messages.get(room_id, []))
        return sum(len(log) for log in self._messages.values())
