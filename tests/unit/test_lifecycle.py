import asyncio

import pytest

from app.models.room import RoomState


class TestDisconnect:
    """연결 해제 처리 테스트"""

    @pytest.mark.asyncio
    async def test_disconnect_before_pairing_request(self, connect, hub):
        """매칭 요청 전 해제 시 레지스트리에서만 제거"""
        a = await connect()

        assert await hub.lifecycle.disconnect(a.handle) is True

        assert hub.registry.lookup(a.handle) is None
        assert hub.rooms.stats() == {"waiting": 0, "paired": 0, "closed": 0}

    @pytest.mark.asyncio
    async def test_disconnect_while_waiting_closes_room(self, connect, hub):
        """대기 중 해제 시 대기방 종료"""
        a = await connect()
        await a.send({"type": "find-peer"})
        room_id = a.connection.room_id

        await a.disconnect()

        assert hub.rooms.get(room_id).state == RoomState.CLOSED
        assert hub.rooms.waiting_count() == 0
        assert hub.registry.count() == 0

        # 다음 요청자는 종료된 방에 들어가지 않음
        b = await connect()
        await b.send({"type": "find-peer"})
        assert b.ws.last["type"] == "waiting-for-peer"
        assert b.connection.room_id != room_id

    @pytest.mark.asyncio
    async def test_disconnect_while_paired_notifies_counterpart(self, paired, hub):
        """매칭 중 해제 시 상대방에게 peer-disconnected"""
        a, b = paired
        room_id = a.connection.room_id

        await b.disconnect()

        assert a.ws.sent == [{"type": "peer-disconnected"}]
        assert a.connection.room_id is None
        assert a.connection.role is None
        assert hub.rooms.get(room_id).state == RoomState.CLOSED

    @pytest.mark.asyncio
    async def test_counterpart_gets_new_room_after_peer_left(self, paired, hub):
        """남은 쪽의 다음 요청은 새 방을 생성"""
        a, b = paired
        old_room = a.connection.room_id
        await b.disconnect()

        await a.send({"type": "find-peer"})

        assert a.ws.last["type"] == "waiting-for-peer"
        assert a.ws.last["roomId"] != old_room
        assert a.ws.last["peerRole"] == "initiator"

    @pytest.mark.asyncio
    async def test_disconnect_is_idempotent(self, paired, hub):
        """중복 해제 시 알림은 한 번만"""
        a, b = paired

        assert await hub.lifecycle.disconnect(b.handle) is True
        assert await hub.lifecycle.disconnect(b.handle) is False
        await hub.registry.drain()

        assert a.ws.of_type("peer-disconnected") == [{"type": "peer-disconnected"}]

    @pytest.mark.asyncio
    async def test_leave_and_close_race_notifies_once(self, paired, hub):
        """명시적 leave와 전송 종료가 겹쳐도 알림은 한 번"""
        a, b = paired

        await asyncio.gather(
            b.send({"type": "disconnect"}),
            hub.lifecycle.disconnect(b.handle),
        )
        await hub.registry.drain()

        assert a.ws.of_type("peer-disconnected") == [{"type": "peer-disconnected"}]
        assert hub.registry.lookup(b.handle) is None

    @pytest.mark.asyncio
    async def test_both_sides_disconnect(self, paired, hub):
        """양쪽이 모두 끊겨도 남는 항목 없음"""
        a, b = paired

        await asyncio.gather(a.disconnect(), b.disconnect())

        assert hub.registry.count() == 0
        assert hub.rooms.active_rooms() == []


class TestLeaveRequest:
    """disconnect 메시지(대화방 이탈) 처리 테스트"""

    @pytest.mark.asyncio
    async def test_leave_keeps_transport_registered(self, paired, hub):
        """이탈 후에도 연결은 유지되고 다시 매칭 가능"""
        a, b = paired
        room_id = a.connection.room_id

        await a.send({"type": "disconnect"})

        assert b.ws.sent == [{"type": "peer-disconnected"}]
        assert hub.rooms.get(room_id).state == RoomState.CLOSED
        assert a.connection is not None
        assert a.connection.room_id is None
        assert a.ws.sent == []

        await a.send({"type": "find-peer"})
        assert a.ws.last["type"] == "waiting-for-peer"

        await b.send({"type": "find-peer"})
        assert a.ws.last["type"] == "peer-found"
        assert a.ws.last["peerRole"] == "initiator"
        assert a.ws.last["remotePeerId"] == b.handle
        assert b.ws.last["type"] == "peer-found"
        assert b.ws.last["remotePeerId"] == a.handle

    @pytest.mark.asyncio
    async def test_leave_without_room_is_noop(self, connect, hub):
        """대화방 없이 이탈 요청 시 아무 일도 없음"""
        a = await connect()

        await a.send({"type": "disconnect"})

        assert a.ws.sent == []
        assert a.connection is not None

    @pytest.mark.asyncio
    async def test_leave_while_waiting_closes_room(self, connect, hub):
        """대기 중 이탈 시 대기방 종료"""
        a = await connect()
        await a.send({"type": "find-peer"})
        room_id = a.connection.room_id

        await a.send({"type": "disconnect"})

        assert hub.rooms.get(room_id).state == RoomState.CLOSED
        assert hub.rooms.waiting_count() == 0
        assert a.connection.room_id is None
