# app/errors.py
class TyperaceError(Exception):
    """Base for every error the client raises on purpose."""


class ValidationError(TyperaceError):
    def __init__(self, field: str, message: str):
        super().__init__(message)
        self.field = field
        self.message = message


class RoomFullError(TyperaceError):
    def __init__(self, room_id: str, message: str = "Room is full"):
        super().__init__(message)
        self.room_id = room_id
        self.message = message


class RoomNotFoundError(TyperaceError):
    def __init__(self, room_id: str):
        super().__init__(f"Room {room_id!r} does not exist")
        self.room_id = room_id


class TransportDisconnectError(TyperaceError):
    pass


class ProtocolError(TyperaceError):
    def __init__(self, event: str, message: str):
        super().__init__(f"{event}: {message}")
        self.event = event


class DatabaseError(TyperaceError):
    pass


class PersistenceWriteError(TyperaceError):
    pass
