import uuid

from app.errors import ValidationError

NAME_MAX = 24
ROOM_MIN = 3
ROOM_MAX = 64


def sanitize_username(name: str) -> str:
    return "".join(ch for ch in name.strip() if ch.isalnum() or ch in ("_", "-"))[:NAME_MAX]


def _check_player_name(raw: str) -> str:
    name = sanitize_username(raw or "")
    if not name:
        raise ValidationError("playerName", "Display name is required")
    return name


def _check_room_name(raw: str) -> str:
    """Trimmed and checked; the id itself is sent as typed."""
    room = (raw or "").strip()
    if len(room) < ROOM_MIN:
        raise ValidationError("roomName", f"Room name must be at least {ROOM_MIN} characters")
    if len(room) > ROOM_MAX:
        raise ValidationError("roomName", f"Room name must be at most {ROOM_MAX} characters")
    if not room.isprintable():
        raise ValidationError("roomName", "Room name contains invalid characters")
    return room


def validate_create_room(player_name: str, room_name: str) -> dict:
    """Checks the lobby's create form and mints a player id for the request."""
    return {
        "playerName": _check_player_name(player_name),
        "roomName": _check_room_name(room_name),
        "playerId": str(uuid.uuid4()),
    }


def validate_join_room(player_name: str, room_id: str) -> dict:
    return {
        "playerName": _check_player_name(player_name),
        "roomName": _check_room_name(room_id),
        "playerId": str(uuid.uuid4()),
    }
