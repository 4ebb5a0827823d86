# services/stats_channel.py
from __future__ import annotations
import logging
from typing import Dict, Optional

from PySide6.QtCore import QObject, Signal

from app.calculation import RaceMetrics
from app.errors import ProtocolError
from app.state import StatsSnapshot
from core.transport import Transport
from services.protocol import PlayerStats, RaceCompleted, StatsPayload, UpdateStats, encode, parse_inbound

log = logging.getLogger(__name__)


class StatsBroadcastChannel(QObject):
    """
    Carries the local player's metrics out as ``updateStats`` and keeps the
    latest ``playerStats`` snapshot per remote player. Each snapshot replaces
    the previous one for that player; snapshots older than the last applied
    one (by sender sequence number) are dropped.
    """
    opponentStatsChanged = Signal(object)   # StatsSnapshot

    def __init__(self, transport: Transport, room_id: str, player_id: str, player_name: str = "", parent=None):
        super().__init__(parent)
        self.transport = transport
        self.room_id = room_id
        self.player_id = player_id
        self.player_name = player_name
        self._seq = 0
        self._last_seq: Dict[str, int] = {}
        self._latest: Dict[str, StatsSnapshot] = {}
        transport.received.connect(self._on_received)

    def detach(self):
        self.transport.received.disconnect(self._on_received)

    # ---------- outbound ----------
    def _payload(self, metrics: RaceMetrics) -> StatsPayload:
        self._seq += 1
        return StatsPayload(wpm=metrics.wpm, accuracy=metrics.accuracy, errors=metrics.error_count, seq=self._seq)

    def publish(self, metrics: RaceMetrics):
        msg = UpdateStats(room_id=self.room_id, player_id=self.player_id, stats=self._payload(metrics))
        self.transport.send("updateStats", encode("updateStats", msg))

    def publish_completion(self, metrics: RaceMetrics):
        msg = RaceCompleted(room_id=self.room_id, player_id=self.player_id, stats=self._payload(metrics))
        self.transport.send("raceCompleted", encode("raceCompleted", msg))

    # ---------- inbound ----------
    def opponent(self) -> Optional[StatsSnapshot]:
        others = [s for pid, s in self._latest.items() if pid != self.player_id]
        return others[-1] if others else None

    def snapshot_for(self, player_id: str) -> Optional[StatsSnapshot]:
        return self._latest.get(player_id)

    def mark_stale(self, player_id: Optional[str] = None):
        """Flags one remote player's view (or all of them) as no longer live."""
        targets = [player_id] if player_id else list(self._latest)
        if player_id:
            # a reconnecting client restarts its sequence numbers
            self._last_seq.pop(player_id, None)
        for pid in targets:
            snap = self._latest.get(pid)
            if snap is not None and not snap.stale:
                self._latest[pid] = snap.marked_stale()
                self.opponentStatsChanged.emit(self._latest[pid])

    def clear(self):
        """Zeroes remote views for a new race, keeping the opponent's name."""
        self._last_seq.clear()
        self._seq = 0
        for pid, snap in list(self._latest.items()):
            self._latest[pid] = StatsSnapshot(pid, snap.player_name, 0, 100, 0)
            self.opponentStatsChanged.emit(self._latest[pid])

    def _on_received(self, event: str, data):
        if event != "playerStats":
            return
        try:
            msg = parse_inbound(event, data)
        except ProtocolError as e:
            log.warning("Ignoring malformed stats: %s", e)
            return
        self.apply(msg)

    def apply(self, msg: PlayerStats):
        if msg.player_id == self.player_id:
            return
        seq = msg.stats.seq
        if seq is not None:
            if seq <= self._last_seq.get(msg.player_id, 0):
                log.debug("Dropping out-of-order stats %s for %s", seq, msg.player_id)
                return
            self._last_seq[msg.player_id] = seq
        snap = StatsSnapshot(
            player_id=msg.player_id,
            player_name=msg.player_name,
            wpm=msg.stats.wpm,
            accuracy=msg.stats.accuracy,
            error_count=msg.stats.errors,
        )
        self._latest[msg.player_id] = snap
        self.opponentStatsChanged.emit(snap)
