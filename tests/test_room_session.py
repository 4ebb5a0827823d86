"""Tests for the client-side room session against a fake transport."""

import pytest

from core.chrono import PreparationTimer
from services.room_session import NO_RESPONSE, ConnectionState, RoomSession
from services.typing_engine import ControllerState, KeystrokeController

TEXT = "go fast"
ALICE = {"id": "p1", "name": "alice", "isHost": True}
BOB = {"id": "p2", "name": "bob", "isHost": False}


def room_data(status="waiting", players=(ALICE, BOB), ready=(), text=TEXT, rid="abc"):
    return {"id": rid, "text": text, "players": list(players), "ready": list(ready), "status": status}


@pytest.fixture
def session(transport, clock):
    s = RoomSession(
        transport,
        timer=PreparationTimer(initial=3),
        controller=KeystrokeController(clock=clock),
        passage_picker=lambda: "picked passage",
    )
    s.errors = []
    s.notices = []
    s.finishes = []
    s.opponents = []
    s.errorChanged.connect(s.errors.append)
    s.notice.connect(lambda kind, msg: s.notices.append((kind, msg)))
    s.raceFinished.connect(s.finishes.append)
    s.opponentStatsChanged.connect(s.opponents.append)
    return s


@pytest.fixture
def hosted(session, transport):
    """Alice has created room 'abc' and Bob has joined it."""
    session.request_create("abc", "alice", "p1", TEXT)
    transport.inject("roomCreated", {"roomId": "abc", "playerId": "p1", "playerName": "alice", "text": TEXT})
    transport.inject("playerJoined", {
        "roomId": "abc", "playerId": "p2", "playerName": "bob", "players": [ALICE, BOB],
    })
    return session


def start_race(session, transport):
    transport.inject("roomData", room_data("running", ready=("p1", "p2")))
    session._begin_countdown()
    for _ in range(3):
        session.timer._on_tick()


class TestCreateAndJoin:
    def test_create_sends_request_and_identifies(self, session, transport):
        session.request_create("abc", "alice", "p1", TEXT)
        assert transport.events("setPlayerId") == [("setPlayerId", "p1")]
        assert transport.last("createRoom") == {
            "roomName": "abc", "playerName": "alice", "playerId": "p1", "text": TEXT,
        }
        assert session.awaiting == frozenset({"roomCreated", "roomError"})

    def test_room_created_makes_us_host(self, session, transport):
        session.request_create("abc", "alice", "p1", TEXT)
        transport.inject("roomCreated", {"roomId": "abc", "playerId": "p1", "playerName": "alice", "text": TEXT})
        assert session.room_id == "abc"
        assert session.is_host
        assert session.awaiting is None
        assert session.controller.session.target_text == TEXT

    def test_player_joined_updates_members(self, hosted):
        assert [p.id for p in hosted.room.players] == ["p1", "p2"]
        assert ("info", "Player bob joined the room") in hosted.notices

    def test_join_sends_request(self, session, transport):
        session.request_join("abc", "bob", "p2")
        assert transport.last("joinRoom") == {"roomName": "abc", "playerName": "bob", "playerId": "p2"}

    def test_room_joined_fetches_snapshot(self, session, transport):
        session.request_join("abc", "bob", "p2")
        transport.inject("roomJoined", {"roomId": "abc"})
        assert transport.last("getRoomData") == {"roomId": "abc"}
        assert ("success", "Joined room abc") in session.notices

    def test_room_full_sets_error(self, session, transport):
        session.request_join("abc", "carol", "p3")
        transport.inject("roomFull", {"message": "Room is full", "roomId": "abc"})
        assert session.error == "Room is full"
        assert ("error", "Room is full") in session.notices
        assert session.room is None

    def test_room_full_for_current_room_is_ignored(self, hosted, transport):
        transport.inject("roomFull", {"message": "Room is full", "roomId": "abc"})
        assert hosted.error is None

    def test_room_error_then_clear(self, session, transport):
        transport.inject("roomError", {"message": "Name taken"})
        assert session.error == "Name taken"
        session.clear_error()
        assert session.error is None
        assert session.errors == ["Name taken", None]

    def test_new_request_clears_error(self, session, transport):
        transport.inject("roomError", {"message": "Name taken"})
        session.request_join("abc", "bob", "p2")
        assert session.error is None


class TestEnterRoom:
    def test_missing_room_is_created_with_fresh_passage(self, session, transport):
        session.enter_room("abc", "p1", "alice")
        assert transport.last("getRoomData") == {"roomId": "abc"}
        transport.inject("roomData", None)
        assert transport.last("createRoom") == {
            "roomName": "abc", "playerName": "alice", "playerId": "p1", "text": "picked passage",
        }

    def test_existing_room_without_us_is_joined(self, session, transport):
        session.enter_room("abc", "p2", "bob")
        transport.inject("roomData", room_data(players=(ALICE,)))
        assert transport.last("joinRoom") == {"roomName": "abc", "playerName": "bob", "playerId": "p2"}
        # not a member until the server confirms
        assert session.room is None
        transport.inject("roomJoined", {"roomId": "abc"})
        transport.inject("roomData", room_data())
        assert session.room_id == "abc"
        assert session.is_member

    def test_full_room_rejection_surfaced_when_entering(self, session, transport):
        session.enter_room("abc", "p1", "alice")
        transport.inject("roomData", room_data(players=({"id": "p3", "name": "carol"}, {"id": "p4", "name": "dan"})))
        transport.inject("roomFull", {"message": "Room is full", "roomId": "abc"})
        assert session.room is None
        assert session.error == "Room is full"
        assert ("error", "Room is full") in session.notices

    def test_running_room_of_strangers_is_not_armed(self, session, transport):
        strangers = ({"id": "p3", "name": "carol"}, {"id": "p4", "name": "dan"})
        session.enter_room("abc", "p1", "alice")
        transport.inject("roomData", room_data("running", players=strangers, ready=("p3", "p4")))
        assert not session.countdown_scheduled
        session.request_ready()
        assert transport.events("playerReady") == []

    def test_existing_room_with_us_is_not_rejoined(self, session, transport):
        session.enter_room("abc", "p1", "alice")
        transport.inject("roomData", room_data())
        assert transport.events("joinRoom") == []


class TestRaceFlow:
    def test_ready_request(self, hosted, transport):
        hosted.request_ready()
        assert transport.last("playerReady") == {"playerId": "p1", "roomId": "abc"}

    def test_running_without_quorum_shown_as_waiting(self, hosted, transport):
        transport.inject("roomData", room_data("running", ready=("p1",)))
        assert hosted.room.status.value == "waiting"
        assert not hosted.countdown_scheduled

    def test_running_arms_countdown_after_settle(self, hosted, transport):
        transport.inject("roomData", room_data("running", ready=("p1", "p2")))
        assert hosted.room.status.value == "running"
        assert hosted.countdown_scheduled
        assert hosted.controller.state == ControllerState.IDLE
        hosted._begin_countdown()
        assert hosted.timer.running

    def test_countdown_end_activates_input(self, hosted, transport):
        start_race(hosted, transport)
        assert hosted.controller.state == ControllerState.ACTIVE

    def test_repeated_running_snapshot_does_not_rearm(self, hosted, transport):
        start_race(hosted, transport)
        hosted.controller.process_key("g")
        transport.inject("roomData", room_data("running", ready=("p1", "p2")))
        assert hosted.controller.session.typed_text == "g"

    def test_keystrokes_broadcast_stats(self, hosted, transport):
        start_race(hosted, transport)
        hosted.controller.process_key("g")
        hosted.controller.process_key("x")
        sent = transport.events("updateStats")
        assert len(sent) == 2
        assert sent[-1][1]["roomId"] == "abc"
        assert sent[-1][1]["stats"]["errors"] == 1
        assert [s[1]["stats"]["seq"] for s in sent] == [1, 2]

    def test_completion_finishes_locally(self, hosted, transport):
        start_race(hosted, transport)
        for ch in TEXT:
            hosted.controller.process_key(ch)
        assert hosted.room.status.value == "finished"
        assert len(hosted.finishes) == 1
        done = transport.last("raceCompleted")
        assert done["playerId"] == "p1"
        assert done["stats"]["accuracy"] == 100

    def test_running_snapshot_after_completion_stays_finished(self, hosted, transport):
        start_race(hosted, transport)
        for ch in TEXT:
            hosted.controller.process_key(ch)
        transport.inject("roomData", room_data("running", ready=("p1", "p2")))
        assert hosted.room.status.value == "finished"

    def test_ready_locked_outside_waiting(self, hosted, transport):
        start_race(hosted, transport)
        hosted.request_ready()
        assert transport.events("playerReady") == []

    def test_opponent_stats_forwarded(self, hosted, transport):
        start_race(hosted, transport)
        transport.inject("playerStats", {
            "playerId": "p2", "playerName": "bob", "stats": {"wpm": 42, "accuracy": 97, "errors": 1, "seq": 1},
        })
        assert hosted.opponents[-1].wpm == 42
        assert hosted.opponents[-1].player_name == "bob"

    def test_reset_during_countdown_keeps_input_closed(self, hosted, transport):
        transport.inject("roomData", room_data("running", ready=("p1", "p2")))
        hosted._begin_countdown()
        hosted.timer._on_tick()
        transport.inject("gameReset", {})
        for _ in range(hosted.timer.initial):
            hosted.timer._on_tick()
        assert hosted.timer.value == hosted.timer.initial
        assert not hosted.timer.running
        assert hosted.controller.state == ControllerState.IDLE

    def test_snapshot_without_us_does_not_arm(self, hosted, transport):
        strangers = ({"id": "p3", "name": "carol"}, {"id": "p4", "name": "dan"})
        transport.inject("roomData", room_data("running", players=strangers, ready=("p3", "p4")))
        assert not hosted.is_member
        assert not hosted.countdown_scheduled
        hosted.request_ready()
        assert transport.events("playerReady") == []

    def test_reset_sends_both_requests(self, hosted, transport):
        hosted.request_reset()
        assert transport.last("resetRoom") == {"roomId": "abc", "playerId": "p1"}
        assert transport.last("playerReset") == {"roomId": "abc", "playerId": "p1"}

    def test_game_reset_returns_to_waiting(self, hosted, transport):
        start_race(hosted, transport)
        hosted.controller.process_key("g")
        transport.inject("gameReset", {})
        assert hosted.room.status.value == "waiting"
        assert hosted.room.ready == []
        assert hosted.controller.state == ControllerState.IDLE
        assert hosted.controller.session.typed_text == ""
        assert not hosted.countdown_scheduled

    def test_new_race_after_reset(self, hosted, transport):
        start_race(hosted, transport)
        transport.inject("gameReset", {})
        start_race(hosted, transport)
        assert hosted.controller.state == ControllerState.ACTIVE


class TestDisconnects:
    def test_opponent_disconnect_mid_race(self, hosted, transport):
        start_race(hosted, transport)
        transport.inject("playerStats", {
            "playerId": "p2", "playerName": "bob", "stats": {"wpm": 30, "accuracy": 100, "errors": 0, "seq": 1},
        })
        transport.inject("playerDisconnected", {"playerId": "p2"})
        assert not hosted.room.has_player("p2")
        assert hosted.room.status.value == "waiting"
        assert hosted.opponents[-1].stale
        # the local race keeps going
        assert hosted.controller.state == ControllerState.ACTIVE
        assert ("warning", "Player p2 disconnected") in hosted.notices

    def test_rejoining_opponent_stats_resume(self, hosted, transport):
        start_race(hosted, transport)
        for seq in range(1, 4):
            transport.inject("playerStats", {
                "playerId": "p2", "playerName": "bob", "stats": {"wpm": 30 + seq, "accuracy": 100, "errors": 0, "seq": seq},
            })
        transport.inject("playerDisconnected", {"playerId": "p2"})
        transport.inject("playerStats", {
            "playerId": "p2", "playerName": "bob", "stats": {"wpm": 77, "accuracy": 100, "errors": 0, "seq": 1},
        })
        assert hosted.opponents[-1].wpm == 77
        assert not hosted.opponents[-1].stale

    def test_reconnect_without_room_clears_ambiguity(self, session, transport):
        states = []
        session.connectionChanged.connect(states.append)
        transport.drop()
        transport.restore()
        assert session.connection == ConnectionState.CONNECTED
        assert session.error is None
        assert states == ["ambiguous", "connected"]
        assert transport.events("getRoomData") == []

    def test_disconnect_of_unknown_player(self, hosted, transport):
        transport.inject("playerDisconnected", {"playerId": "ghost"})
        assert len(hosted.room.players) == 2

    def test_request_timeout_goes_ambiguous(self, session, transport):
        states = []
        session.connectionChanged.connect(states.append)
        session.request_join("abc", "bob", "p2")
        session._on_request_timeout()
        assert session.connection == ConnectionState.AMBIGUOUS
        assert session.error == NO_RESPONSE
        assert session.awaiting is None
        assert states == ["ambiguous"]

    def test_transport_drop_goes_ambiguous(self, hosted, transport):
        transport.drop()
        assert hosted.connection == ConnectionState.AMBIGUOUS
        assert hosted.error == NO_RESPONSE

    def test_reconnect_refreshes_room(self, hosted, transport):
        transport.drop()
        transport.sent.clear()
        transport.restore()
        assert transport.last("getRoomData") == {"roomId": "abc"}
        transport.inject("roomData", room_data())
        assert hosted.connection == ConnectionState.CONNECTED


class TestMalformedMessages:
    def test_missing_fields_dropped(self, session, transport):
        transport.inject("roomCreated", {"roomId": "abc"})
        assert session.room is None

    def test_non_object_dropped(self, hosted, transport):
        transport.inject("roomData", "garbage")
        assert len(hosted.room.players) == 2

    def test_unknown_event_ignored(self, session, transport):
        transport.inject("connected", {})
        transport.inject("somethingNew", {"x": 1})
        assert session.room is None
        assert session.error is None
