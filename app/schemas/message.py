from datetime import datetime
from typing import Any, Dict
import uuid

from pydantic import BaseModel, Field, ConfigDict
from pydantic.alias_generators import to_camel


class ChatMessage(BaseModel):
    """대화방 채팅 메시지 (저장 후 불변)"""
    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

    id: str = Field(default_factory=lambda: uuid.uuid4().hex, description="메시지 ID")
    room_id: str = Field(..., description="대화방 ID")
    sender_id: str = Field(..., description="발신 연결 핸들")
    content: str = Field(..., min_length=1, description="메시지 내용")
    timestamp: datetime = Field(..., description="서버 수신 시각")

    def to_wire(self) -> Dict[str, Any]:
        """클라이언트 전송용 camelCase 딕셔너리"""
        return self.model_dump(mode="json", by_alias=True)
