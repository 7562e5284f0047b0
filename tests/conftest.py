import pytest
import pytest_asyncio
from typing import Any, AsyncGenerator, Dict, Generator, List, Optional
from fastapi.testclient import TestClient
from httpx import AsyncClient, ASGITransport

from app.main import app
from app.websockets.hub import SignalingHub, get_hub


class FakeWebSocket:
    """테스트용 WebSocket 전송 계층 (보낸 JSON을 기록)"""

    def __init__(self, fail: bool = False):
        self.sent: List[Dict[str, Any]] = []
        self.fail = fail

    async def send_json(self, data: Dict[str, Any]):
        if self.fail:
            raise RuntimeError("transport is closed")
        self.sent.append(data)

    def of_type(self, message_type: str) -> List[Dict[str, Any]]:
        return [message for message in self.sent if message.get("type") == message_type]

    @property
    def last(self) -> Optional[Dict[str, Any]]:
        return self.sent[-1] if self.sent else None


class Peer:
    """허브에 등록된 테스트 클라이언트"""

    def __init__(self, hub: SignalingHub, handle: str, websocket: FakeWebSocket):
        self.hub = hub
        self.handle = handle
        self.ws = websocket

    @property
    def connection(self):
        return self.hub.registry.lookup(self.handle)

    async def send(self, data: Any):
        """메시지를 처리하고 큐에 쌓인 전송이 끝날 때까지 대기"""
        await self.hub.relay.handle_message(self.handle, data)
        await self.hub.registry.drain()

    async def send_raw(self, raw: Any):
        await self.hub.relay.handle_raw(self.handle, raw)
        await self.hub.registry.drain()

    async def disconnect(self):
        await self.hub.lifecycle.disconnect(self.handle)
        await self.hub.registry.drain()


@pytest_asyncio.fixture
async def hub() -> AsyncGenerator[SignalingHub, None]:
    """테스트마다 새로 만드는 시그널링 허브"""
    signaling_hub = SignalingHub()
    yield signaling_hub
    await signaling_hub.shutdown()


@pytest_asyncio.fixture
async def connect(hub):
    """새 클라이언트 연결을 만드는 팩토리"""
    async def _connect(fail: bool = False) -> Peer:
        websocket = FakeWebSocket(fail=fail)
        connection = await hub.lifecycle.accept(websocket)
        return Peer(hub, connection.handle, websocket)

    return _connect


@pytest_asyncio.fixture
async def paired(connect):
    """매칭이 끝난 두 클라이언트 (initiator, responder)"""
    initiator = await connect()
    responder = await connect()
    await initiator.send({"type": "find-peer"})
    await responder.send({"type": "find-peer"})
    initiator.ws.sent.clear()
    responder.ws.sent.clear()
    return initiator, responder


@pytest.fixture
def ws_client() -> Generator[TestClient, None, None]:
    """새 허브를 사용하는 WebSocket 테스트 클라이언트"""
    test_hub = SignalingHub()
    app.dependency_overrides[get_hub] = lambda: test_hub

    with TestClient(app) as client:
        client.hub = test_hub
        yield client

    app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def client(hub) -> AsyncGenerator[AsyncClient, None]:
    """테스트용 비동기 HTTP 클라이언트"""
    app.dependency_overrides[get_hub] = lambda: hub

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()


def pytest_configure(config):
    """pytest 설정"""
    config.addinivalue_line(
        "markers", "asyncio: mark test as async"
    )
