"""Tests for room and session data."""

from app.state import Player, RaceSession, Room, RoomStatus, StatsSnapshot
from app.timer import RaceClock

ALICE = Player("p1", "alice", is_host=True)
BOB = Player("p2", "bob")


class TestRoom:
    def test_quorum_needs_two_ready(self):
        room = Room("abc", players=[ALICE, BOB], ready=["p1"])
        assert not room.has_quorum()
        room.ready.append("p2")
        assert room.has_quorum()

    def test_set_players_caps_and_filters_ready(self):
        room = Room("abc", ready=["p1", "p3"])
        room.set_players([ALICE, BOB, Player("p3", "carol")])
        assert [p.id for p in room.players] == ["p1", "p2"]
        assert room.ready == ["p1"]

    def test_remove_player_downgrades_running(self):
        room = Room("abc", players=[ALICE, BOB], ready=["p1", "p2"], status=RoomStatus.RUNNING)
        room.remove_player("p2")
        assert room.status == RoomStatus.WAITING
        assert room.ready == ["p1"]

    def test_remove_player_keeps_finished(self):
        room = Room("abc", players=[ALICE, BOB], ready=["p1", "p2"], status=RoomStatus.FINISHED)
        room.remove_player("p2")
        assert room.status == RoomStatus.FINISHED

    def test_reset(self):
        room = Room("abc", players=[ALICE, BOB], ready=["p1", "p2"], status=RoomStatus.FINISHED)
        room.reset()
        assert room.status == RoomStatus.WAITING
        assert room.ready == []
        assert room.host == ALICE


class TestRaceSession:
    def test_complete_only_at_full_length(self):
        s = RaceSession(target_text="ab", typed_text="a")
        assert not s.is_complete
        s.typed_text = "ax"
        assert s.is_complete

    def test_empty_text_never_complete(self):
        assert not RaceSession().is_complete

    def test_start_keeps_first_timestamp(self):
        s = RaceSession(target_text="ab")
        s.start()
        first = s.started_at
        s.start()
        assert s.started_at == first


class TestStatsSnapshot:
    def test_marked_stale_copies(self):
        snap = StatsSnapshot("p2", "bob", 40, 95, 1)
        stale = snap.marked_stale()
        assert stale.stale and not snap.stale
        assert stale.wpm == 40


class TestRaceClock:
    def test_not_started(self):
        clock = RaceClock()
        assert not clock.started
        assert clock.elapsed_ms() == 0

    def test_start_and_reset(self):
        clock = RaceClock()
        clock.start()
        assert clock.started
        assert clock.elapsed_ms() >= 0
        clock.reset()
        assert not clock.started
