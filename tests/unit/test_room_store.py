from datetime import datetime, timedelta, timezone

import pytest

from app.models.room import PeerRole, RoomState
from app.services.room_service import RoomStore


@pytest.fixture
def store() -> RoomStore:
    return RoomStore()


class TestFindOrCreate:
    """매칭 알고리즘 테스트"""

    def test_first_request_creates_waiting_room(self, store):
        """대기방이 없으면 새 방을 만들고 initiator가 됨"""
        result = store.find_or_create("a")

        assert result.role == PeerRole.INITIATOR
        assert result.counterpart_handle is None
        assert result.room.initiator_handle == "a"
        assert result.room.responder_handle is None
        assert result.room.state == RoomState.WAITING
        assert store.waiting_count() == 1

    def test_second_request_joins_waiting_room(self, store):
        """두 번째 요청은 기존 대기방의 responder가 됨"""
        first = store.find_or_create("a")
        second = store.find_or_create("b")

        assert second.room.id == first.room.id
        assert second.role == PeerRole.RESPONDER
        assert second.counterpart_handle == "a"
        assert second.room.state == RoomState.PAIRED
        assert second.room.paired_at is not None
        assert store.waiting_count() == 0

    def test_paired_room_is_never_matched_again(self, store):
        """PAIRED 방은 다시 선택되지 않음"""
        first = store.find_or_create("a")
        store.find_or_create("b")
        third = store.find_or_create("c")

        assert third.room.id != first.room.id
        assert third.role == PeerRole.INITIATOR
        assert store.get(first.room.id).responder_handle == "b"

    def test_room_never_matched_to_its_creator(self, store):
        """방을 만든 핸들이 자기 방의 responder가 되지 않음"""
        first = store.find_or_create("a")
        again = store.find_or_create("a")

        assert again.room.id != first.room.id
        assert again.role == PeerRole.INITIATOR
        assert store.get(first.room.id).responder_handle is None

    def test_first_created_waiting_room_is_matched_first(self, store):
        """여러 대기방 중 먼저 생성된 방부터 매칭"""
        oldest = store.find_or_create("a")
        store.find_or_create("a")  # a가 만든 두 번째 대기방
        result = store.find_or_create("b")

        assert result.room.id == oldest.room.id

    def test_creator_skip_falls_through_to_next_waiting_room(self, store):
        """자기 방은 건너뛰고 다음 대기방을 선택"""
        own = store.find_or_create("a")
        other = store.find_or_create("b")  # a의 방에 매칭됨
        assert other.room.id == own.room.id

        waiting_c = store.find_or_create("c")
        result = store.find_or_create("c")
        assert result.room.id != waiting_c.room.id

        waiting_d = store.find_or_create("d")
        assert waiting_d.room.id == waiting_c.room.id

    def test_exclusivity_over_many_requests(self, store):
        """연속된 요청에서 한 방에 responder는 하나뿐"""
        results = [store.find_or_create(f"h{i}") for i in range(10)]

        rooms = {}
        for result in results:
            rooms.setdefault(result.room.id, []).append(result.role)

        assert len(rooms) == 5
        for roles in rooms.values():
            assert sorted(roles) == [PeerRole.INITIATOR, PeerRole.RESPONDER]

        for room in store.active_rooms():
            assert room.initiator_handle != room.responder_handle


class TestDeactivate:
    """대화방 비활성화 테스트"""

    def test_deactivate_returns_closed_room_with_occupants(self, store):
        """비활성화 시 종료된 방과 이전 참여자 반환"""
        store.find_or_create("a")
        result = store.find_or_create("b")

        closed = store.deactivate(result.room.id)

        assert closed is not None
        assert closed.state == RoomState.CLOSED
        assert closed.occupants == ("a", "b")
        assert closed.closed_at is not None

    def test_deactivate_is_idempotent(self, store):
        """두 번째 비활성화는 아무 효과 없음"""
        room = store.find_or_create("a").room

        first = store.deactivate(room.id)
        snapshot = store.get(room.id)
        second = store.deactivate(room.id)

        assert first is not None
        assert second is None
        assert store.get(room.id) == snapshot

    def test_deactivate_unknown_room(self, store):
        """존재하지 않는 방 비활성화"""
        assert store.deactivate("missing") is None

    def test_closed_waiting_room_is_not_matchable(self, store):
        """종료된 대기방은 매칭 대상에서 제외"""
        room = store.find_or_create("a").room
        store.deactivate(room.id)

        result = store.find_or_create("b")

        assert result.room.id != room.id
        assert result.role == PeerRole.INITIATOR

    def test_closed_rooms_are_kept_for_history(self, store):
        """종료된 방도 조회는 가능"""
        room = store.find_or_create("a").room
        store.deactivate(room.id)

        assert store.get(room.id) is not None
        assert store.active_rooms() == []
        assert store.stats() == {"waiting": 0, "paired": 0, "closed": 1}


class TestExpireWaiting:
    """대기방 만료 테스트"""

    def test_expire_only_old_waiting_rooms(self, store):
        """오래된 WAITING 방만 종료"""
        old = store.find_or_create("a").room
        store.find_or_create("b")  # old 방을 PAIRED로 만듦
        waiting = store.find_or_create("c").room

        later = datetime.now(timezone.utc) + timedelta(seconds=120)
        expired = store.expire_waiting(60, now=later)

        assert [room.id for room in expired] == [waiting.id]
        assert store.get(old.id).state == RoomState.PAIRED
        assert store.get(waiting.id).state == RoomState.CLOSED

    def test_fresh_waiting_rooms_survive(self, store):
        """타임아웃 이전의 대기방은 유지"""
        room = store.find_or_create("a").room

        assert store.expire_waiting(60) == []
        assert store.get(room.id).state == RoomState.WAITING
