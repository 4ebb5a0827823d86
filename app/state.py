from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum
from typing import List, Optional
import time

from app.calculation import RaceMetrics

QUORUM = 2
MAX_PLAYERS = 2


class RoomStatus(str, Enum):
    WAITING = "waiting"
    RUNNING = "running"
    FINISHED = "finished"


@dataclass(frozen=True)
class Player:
    id: str
    name: str
    is_host: bool = False


@dataclass
class Room:
    id: str
    text: str = ""
    players: List[Player] = field(default_factory=list)
    ready: List[str] = field(default_factory=list)
    status: RoomStatus = RoomStatus.WAITING

    def has_player(self, player_id: str) -> bool:
        return any(p.id == player_id for p in self.players)

    def player(self, player_id: str) -> Optional[Player]:
        return next((p for p in self.players if p.id == player_id), None)

    @property
    def host(self) -> Optional[Player]:
        return next((p for p in self.players if p.is_host), None)

    def is_ready(self, player_id: str) -> bool:
        return player_id in self.ready

    def has_quorum(self) -> bool:
        return len(self.players) >= QUORUM and len(self.ready) >= QUORUM

    def set_players(self, players: List[Player]):
        self.players = list(players)[:MAX_PLAYERS]
        # readiness can only refer to players still in the room
        ids = {p.id for p in self.players}
        self.ready = [pid for pid in self.ready if pid in ids]

    def remove_player(self, player_id: str):
        self.set_players([p for p in self.players if p.id != player_id])
        if self.status == RoomStatus.RUNNING and not self.has_quorum():
            self.status = RoomStatus.WAITING

    def reset(self):
        self.ready = []
        self.status = RoomStatus.WAITING


@dataclass
class RaceSession:
    """One player's attempt at the passage."""
    target_text: str = ""
    typed_text: str = ""
    started_at: Optional[float] = None
    error_count: int = 0
    metrics: RaceMetrics = field(default_factory=RaceMetrics)

    @property
    def position(self) -> int:
        return len(self.typed_text)

    @property
    def is_complete(self) -> bool:
        return bool(self.target_text) and self.position == len(self.target_text)

    def start(self):
        if self.started_at is None:
            self.started_at = time.time()

    def reset(self, text: Optional[str] = None):
        if text is not None:
            self.target_text = text
        self.typed_text = ""
        self.started_at = None
        self.error_count = 0
        self.metrics = RaceMetrics()


@dataclass(frozen=True)
class StatsSnapshot:
    player_id: str
    player_name: str
    wpm: float
    accuracy: float
    error_count: int
    stale: bool = False

    def marked_stale(self) -> "StatsSnapshot":
        return replace(self, stale=True)


@dataclass(frozen=True)
class LeaderboardRecord:
    id: str
    player_id: str
    wpm: float
    accuracy: float
    error_count: int
    updated_at: datetime
