# services/room_session.py
from __future__ import annotations
import logging
from enum import Enum
from typing import Callable, Iterable, Optional

from PySide6.QtCore import QObject, QTimer, Signal

from app.calculation import RaceMetrics
from app.errors import ProtocolError, RoomFullError, RoomNotFoundError, TransportDisconnectError
from app.state import Player, Room, RoomStatus
from core.chrono import PreparationTimer
from core.transport import Transport
from services import protocol
from services.stats_channel import StatsBroadcastChannel
from services.typing_engine import ControllerState, KeystrokeController
from utils.file_handler import pick_passage

log = logging.getLogger(__name__)

NO_RESPONSE = "No response from the room server. Check your connection and try again."


class ConnectionState(str, Enum):
    CONNECTED = "connected"
    AMBIGUOUS = "ambiguous"


class RoomSession(QObject):
    """
    Client-side view of one server-owned room.

    The server is the authority: every inbound room broadcast replaces the
    local view. This object sends requests, reflects membership and
    readiness, and drives the local race (settle delay, countdown,
    keystroke controller) from the room status it is told about.
    """
    roomChanged = Signal(object)        # Room
    errorChanged = Signal(object)       # str or None
    notice = Signal(str, str)           # kind, message
    connectionChanged = Signal(str)
    raceFinished = Signal(object)       # RaceMetrics of the local player
    opponentStatsChanged = Signal(object)  # StatsSnapshot

    def __init__(
        self,
        transport: Transport,
        timer: Optional[PreparationTimer] = None,
        controller: Optional[KeystrokeController] = None,
        settle_delay_ms: int = 1000,
        request_timeout_ms: int = 10000,
        passage_picker: Callable[[], str] = pick_passage,
        parent=None,
    ):
        super().__init__(parent)
        self.transport = transport
        self.timer = timer if timer is not None else PreparationTimer(parent=self)
        self.controller = controller if controller is not None else KeystrokeController(parent=self)
        self.channel: Optional[StatsBroadcastChannel] = None
        self.pick_passage = passage_picker

        self.room: Optional[Room] = None
        self.player_id: Optional[str] = None
        self.player_name: Optional[str] = None
        self.error: Optional[str] = None
        self.connection = ConnectionState.CONNECTED

        self._entering = False
        self._entering_id: Optional[str] = None
        self._armed = False
        self._pending: Optional[frozenset] = None

        self._settle = QTimer(self)
        self._settle.setSingleShot(True)
        self._settle.setInterval(settle_delay_ms)
        self._settle.timeout.connect(self._begin_countdown)

        self._request_timer = QTimer(self)
        self._request_timer.setSingleShot(True)
        self._request_timer.setInterval(request_timeout_ms)
        self._request_timer.timeout.connect(self._on_request_timeout)

        self.timer.finished.connect(self._on_countdown_finished)
        self.controller.completed.connect(self._on_race_completed)
        transport.received.connect(self._on_received)
        transport.connected.connect(self._on_connected)
        transport.disconnected.connect(self._on_disconnected)

    # ---------- properties ----------
    @property
    def room_id(self) -> Optional[str]:
        return self.room.id if self.room else None

    @property
    def is_host(self) -> bool:
        me = self.room.player(self.player_id) if self.room and self.player_id else None
        return bool(me and me.is_host)

    @property
    def is_member(self) -> bool:
        return bool(self.room and self.player_id and self.room.has_player(self.player_id))

    @property
    def countdown_scheduled(self) -> bool:
        return self._settle.isActive()

    @property
    def awaiting(self) -> Optional[frozenset]:
        return self._pending

    # ---------- errors ----------
    def _set_error(self, message: str):
        self.error = message
        self.errorChanged.emit(message)

    def clear_error(self):
        """Called on the next user edit; a shown error never outlives it."""
        if self.error is not None:
            self.error = None
            self.errorChanged.emit(None)

    # ---------- requests ----------
    def _identify(self, player_id: str, player_name: str):
        if player_id != self.player_id:
            self.transport.identify(player_id)
        self.player_id = player_id
        self.player_name = player_name

    def _send(self, event: str, message: protocol.Message):
        self.transport.send(event, protocol.encode(event, message))

    def _await(self, events: Iterable[str]):
        self._pending = frozenset(events)
        self._request_timer.start()

    def _resolve(self, event: str):
        if self._pending is not None and event in self._pending:
            self._pending = None
            self._request_timer.stop()
        if self.connection != ConnectionState.CONNECTED:
            self.connection = ConnectionState.CONNECTED
            self.connectionChanged.emit(self.connection.value)

    def request_create(self, room_name: str, player_name: str, player_id: str, sample_text: Optional[str] = None):
        self.clear_error()
        self._identify(player_id, player_name)
        log.info("Creating room %s as %s", room_name, player_name)
        self._send("createRoom", protocol.CreateRoom(
            room_name=room_name, player_name=player_name, player_id=player_id, text=sample_text,
        ))
        self._await(("roomCreated", "roomError"))

    def request_join(self, room_name: str, player_name: str, player_id: str):
        self.clear_error()
        self._identify(player_id, player_name)
        log.info("Joining room %s as %s", room_name, player_name)
        self._send("joinRoom", protocol.JoinRoom(room_name=room_name, player_name=player_name, player_id=player_id))
        self._await(("roomJoined", "playerJoined", "roomFull", "roomError"))

    def request_room_data(self, room_id: str):
        self._send("getRoomData", protocol.GetRoomData(room_id=room_id))
        self._await(("roomData",))

    def enter_room(self, room_id: str, player_id: str, player_name: str):
        """
        Opens a room by id: fetches its snapshot, creating it with a fresh
        passage when it does not exist and joining it when we are not listed.
        """
        self.clear_error()
        self._identify(player_id, player_name)
        self._entering = True
        self._entering_id = room_id
        self.request_room_data(room_id)

    def request_ready(self, player_id: Optional[str] = None, room_id: Optional[str] = None):
        player_id = player_id or self.player_id
        room_id = room_id or self.room_id
        if not player_id or not room_id:
            log.warning("Ready requested outside a room")
            return
        if self.room and not self.room.has_player(player_id):
            log.warning("Ignoring ready in %s: %s is not a member", room_id, player_id)
            return
        if self.room and self.room.status != RoomStatus.WAITING:
            log.info("Ignoring ready in %s: room is %s", room_id, self.room.status.value)
            return
        self.clear_error()
        self._send("playerReady", protocol.PlayerReady(player_id=player_id, room_id=room_id))

    def request_reset(self, room_id: Optional[str] = None, player_id: Optional[str] = None):
        player_id = player_id or self.player_id
        room_id = room_id or self.room_id
        if not player_id or not room_id:
            log.warning("Reset requested outside a room")
            return
        self.clear_error()
        msg = protocol.ResetRoom(room_id=room_id, player_id=player_id)
        self._send("resetRoom", msg)
        self._send("playerReset", msg)

    # ---------- inbound ----------
    def _on_received(self, event: str, data):
        if event not in protocol.INBOUND:
            log.debug("Ignoring event %s", event)
            return
        handler = getattr(self, "_on_" + event, None)
        if handler is None:
            return
        try:
            msg = protocol.parse_inbound(event, data)
        except ProtocolError as e:
            log.warning("Dropping malformed message: %s", e)
            return
        handler(msg)

    def _on_roomCreated(self, msg: protocol.RoomCreated):
        self._resolve("roomCreated")
        self._entering = False
        log.info("Room %s created", msg.room_id)
        room = Room(id=msg.room_id, text=msg.text)
        room.set_players([Player(msg.player_id, msg.player_name, is_host=True)])
        self._apply_room(room)

    def _on_roomJoined(self, msg: protocol.RoomJoined):
        self._resolve("roomJoined")
        self.notice.emit("success", f"Joined room {msg.room_id}")
        self.request_room_data(msg.room_id)

    def _on_roomFull(self, msg: protocol.RoomFull):
        self._resolve("roomFull")
        self._entering = False
        if msg.room_id is not None and msg.room_id == self.room_id and self.is_member:
            return
        err = RoomFullError(msg.room_id or "", msg.message)
        log.info("Join rejected: %s", err)
        self._set_error(err.message)
        self.notice.emit("error", err.message)

    def _on_playerJoined(self, msg: protocol.PlayerJoined):
        players = [p.to_player() for p in msg.players]
        if msg.player_id and msg.player_id == self.player_id:
            self._resolve("playerJoined")
            self._entering = False
        if self.room and msg.room_id == self.room.id:
            self.room.set_players(players)
            self.roomChanged.emit(self.room)
        elif self.room is None and any(p.id == self.player_id for p in players):
            room = Room(id=msg.room_id)
            room.set_players(players)
            self._apply_room(room)
            self.request_room_data(msg.room_id)
        if msg.player_id and msg.player_id != self.player_id:
            self.notice.emit("info", f"Player {msg.player_name or msg.player_id} joined the room")

    def _on_playerDisconnected(self, msg: protocol.PlayerDisconnected):
        self.notice.emit("warning", f"Player {msg.player_id} disconnected")
        if self.channel is not None:
            self.channel.mark_stale(msg.player_id)
        if self.room is None or not self.room.has_player(msg.player_id):
            return
        self.room.remove_player(msg.player_id)
        # a race already underway runs on to completion for whoever is left
        self.roomChanged.emit(self.room)

    def _on_roomData(self, msg: Optional[protocol.RoomData]):
        self._resolve("roomData")
        if msg is None:
            wanted = self.room_id
            if self._entering:
                self._entering = False
                err = RoomNotFoundError(self._entering_id or "")
                log.info("%s, creating it", err)
                self.request_create(err.room_id, self.player_name, self.player_id, self.pick_passage())
            elif wanted:
                self._set_error(str(RoomNotFoundError(wanted)))
            return
        room = msg.to_room()
        if self._entering:
            self._entering = False
            if self.player_id and not room.has_player(self.player_id):
                # the snapshot is applied once the join is confirmed
                self.request_join(room.id, self.player_name, self.player_id)
                return
        self._apply_room(room)

    def _on_gameReset(self, msg: protocol.GameReset):
        log.info("Race reset in %s", self.room_id)
        self._reset_local()
        if self.room is not None:
            self.room.reset()
            self.roomChanged.emit(self.room)

    def _on_roomError(self, msg: protocol.RoomError):
        self._resolve("roomError")
        self._entering = False
        log.warning("Room error: %s", msg.message)
        self._set_error(msg.message)

    # ---------- transport state ----------
    def _on_request_timeout(self):
        pending = sorted(self._pending or ())
        self._pending = None
        self._entering = False
        log.warning("%s", TransportDisconnectError(f"no reply, expected one of {pending}"))
        self._go_ambiguous()

    def _on_disconnected(self):
        self._go_ambiguous()

    def _go_ambiguous(self):
        if self.channel is not None:
            self.channel.mark_stale()
        self.connection = ConnectionState.AMBIGUOUS
        self.connectionChanged.emit(self.connection.value)
        self._set_error(NO_RESPONSE)

    def _on_connected(self):
        if self.connection != ConnectionState.AMBIGUOUS:
            return
        if self.room is not None:
            log.info("Reconnected, refreshing room %s", self.room.id)
            self.request_room_data(self.room.id)
            return
        log.info("Reconnected")
        self.connection = ConnectionState.CONNECTED
        self.connectionChanged.emit(self.connection.value)
        if self.error == NO_RESPONSE:
            self.clear_error()

    # ---------- race ----------
    def _bind_room(self, room: Room):
        if self.channel is not None and self.channel.room_id == room.id:
            return
        if self.channel is not None:
            self.channel.detach()
        self.channel = StatsBroadcastChannel(self.transport, room.id, self.player_id or "", self.player_name or "", parent=self)
        self.channel.opponentStatsChanged.connect(self.opponentStatsChanged.emit)
        self.controller.channel = self.channel

    def _apply_room(self, room: Room):
        if self.room is not None and self.room.id != room.id:
            self._reset_local()
        self._bind_room(room)
        if room.text and room.text != self.controller.session.target_text:
            self.controller.set_text(room.text)
        if room.status == RoomStatus.RUNNING and not room.has_quorum():
            log.info("Room %s reported running without quorum, showing it as waiting", room.id)
            room.status = RoomStatus.WAITING
        if room.status == RoomStatus.RUNNING and self.controller.state == ControllerState.COMPLETED:
            room.status = RoomStatus.FINISHED
        self.room = room
        if room.status == RoomStatus.RUNNING and not self._armed and self.is_member:
            self._arm_race()
        self.roomChanged.emit(room)

    def _arm_race(self):
        """Fresh session on Running entry; the countdown starts after the settle delay."""
        self._armed = True
        self.timer.reset()
        self.controller.reset(self.room.text or None)
        self._settle.start()

    def _begin_countdown(self):
        if self._armed:
            self.timer.start()

    def _on_countdown_finished(self):
        if self._armed:
            self.controller.activate()

    def _on_race_completed(self, metrics: RaceMetrics):
        if self.channel is not None:
            self.channel.publish_completion(metrics)
        if self.room is not None and self.room.status == RoomStatus.RUNNING:
            self.room.status = RoomStatus.FINISHED
            self.roomChanged.emit(self.room)
        self.raceFinished.emit(metrics)

    def _reset_local(self):
        self._armed = False
        self._settle.stop()
        self.timer.reset()
        self.controller.reset()
        if self.channel is not None:
            self.channel.clear()
