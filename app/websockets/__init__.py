"""
WebSocket 시그널링 모듈

익명 클라이언트를 1:1로 매칭하고 WebRTC 핸드셰이크와 채팅을 중계합니다.

주요 구성 요소:
- connection_registry: 연결 핸들 관리 및 best-effort 전송
- handlers: 수신 메시지 분류 및 중계
- lifecycle: 연결 수립/해제 처리
- hub: 공유 상태와 직렬화 lock
"""

from .connection_registry import ConnectionRegistry
from .hub import hub, get_hub, SignalingHub
from .handlers import SignalingRelay
from .lifecycle import ConnectionLifecycleHandler

__all__ = [
    "hub",
    "get_hub",
    "SignalingHub",
    "ConnectionRegistry",
    "SignalingRelay",
    "ConnectionLifecycleHandler",
]
