"""Pydantic schemas for every event crossing the room-server boundary."""

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError
from pydantic.alias_generators import to_camel

from app.errors import ProtocolError
from app.state import Player, Room, RoomStatus


class Message(BaseModel):
    """Base for wire payloads: camelCase on the wire, snake_case in Python."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")

    def dump(self) -> dict:
        return self.model_dump(by_alias=True, exclude_none=True)


class StatsPayload(Message):
    wpm: float = Field(default=0, ge=0, description="Words per minute")
    accuracy: float = Field(default=100, ge=0, le=100, description="Accuracy percent")
    errors: int = Field(default=0, ge=0, description="Mismatched characters")
    seq: Optional[int] = Field(default=None, ge=0, description="Per-sender sequence number")


class PlayerPayload(Message):
    id: str
    name: str
    is_host: bool = False

    def to_player(self) -> Player:
        return Player(id=self.id, name=self.name, is_host=self.is_host)


# ---------- outbound ----------

class CreateRoom(Message):
    room_name: str = Field(..., min_length=1)
    player_name: str = Field(..., min_length=1)
    player_id: str = Field(..., min_length=1)
    text: Optional[str] = None


class JoinRoom(Message):
    room_name: str = Field(..., min_length=1)
    player_name: str = Field(..., min_length=1)
    player_id: str = Field(..., min_length=1)


class PlayerReady(Message):
    player_id: str
    room_id: str


class UpdateStats(Message):
    room_id: str
    player_id: str
    stats: StatsPayload


class RaceCompleted(Message):
    room_id: str
    player_id: str
    stats: StatsPayload


class ResetRoom(Message):
    room_id: str
    player_id: str


class GetRoomData(Message):
    room_id: str


# ---------- inbound ----------

class RoomCreated(Message):
    room_id: str
    player_id: str
    player_name: str
    text: str = ""


class RoomJoined(Message):
    room_id: str


class RoomFull(Message):
    message: str = "Room is full"
    room_id: Optional[str] = None


class PlayerJoined(Message):
    room_id: str
    player_id: Optional[str] = None
    player_name: Optional[str] = None
    players: List[PlayerPayload] = Field(default_factory=list)


class PlayerDisconnected(Message):
    player_id: str


class RoomData(Message):
    id: str
    text: str = ""
    players: List[PlayerPayload] = Field(default_factory=list)
    ready: List[str] = Field(default_factory=list)
    status: RoomStatus = RoomStatus.WAITING

    def to_room(self) -> Room:
        room = Room(id=self.id, text=self.text, status=self.status)
        room.set_players([p.to_player() for p in self.players])
        room.ready = [pid for pid in dict.fromkeys(self.ready) if room.has_player(pid)]
        return room


class PlayerStats(Message):
    player_id: str
    player_name: str = ""
    stats: StatsPayload


class GameReset(Message):
    pass


class RoomError(Message):
    message: str = "Unknown room error"


INBOUND = {
    "roomCreated": RoomCreated,
    "roomJoined": RoomJoined,
    "roomFull": RoomFull,
    "playerJoined": PlayerJoined,
    "playerDisconnected": PlayerDisconnected,
    "roomData": RoomData,
    "playerStats": PlayerStats,
    "gameReset": GameReset,
    "roomError": RoomError,
}

OUTBOUND = {
    "createRoom": CreateRoom,
    "joinRoom": JoinRoom,
    "playerReady": PlayerReady,
    "updateStats": UpdateStats,
    "raceCompleted": RaceCompleted,
    "resetRoom": ResetRoom,
    "playerReset": ResetRoom,
    "getRoomData": GetRoomData,
}


def parse_inbound(event: str, data) -> Optional[Message]:
    """
    Validates an inbound payload against its schema.

    Returns None for an empty ``roomData`` reply (the room does not exist).
    Raises ProtocolError for unknown events and malformed payloads.
    """
    model = INBOUND.get(event)
    if model is None:
        raise ProtocolError(event, "unknown event")
    if event == "roomData" and not data:
        return None
    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ProtocolError(event, f"expected an object, got {type(data).__name__}")
    try:
        return model.model_validate(data)
    except ValidationError as e:
        raise ProtocolError(event, str(e)) from e


def encode(event: str, message: Message) -> dict:
    expected = OUTBOUND.get(event)
    if expected is None or not isinstance(message, expected):
        raise ProtocolError(event, f"cannot send {type(message).__name__}")
    return message.dump()
