# services/leaderboard.py
from __future__ import annotations
import logging
from typing import List, Optional

from PySide6.QtCore import QObject, Signal

from app.calculation import RaceMetrics
from app.errors import DatabaseError, PersistenceWriteError
from app.state import LeaderboardRecord
from core.threads import Worker, Workers
from services.scoring import RankedRecord, rank_records
from utils.db_helper import SqliteLeaderboardStore
from utils.stats_api import HttpLeaderboardStore

log = logging.getLogger(__name__)


def make_store(settings):
    if settings.stats_api_url:
        return HttpLeaderboardStore(settings.stats_api_url, timeout=settings.http_timeout_sec)
    return SqliteLeaderboardStore(settings.db_path)


class LeaderboardService(QObject):
    """
    Writes one record per finished race and reads the ranked board.
    Write failures are logged and otherwise dropped; the race simply goes unranked.
    """
    recordSaved = Signal(object)     # LeaderboardRecord
    rankingReady = Signal(list)      # [RankedRecord]
    fetchFailed = Signal(str)

    def __init__(self, store, pool=None, parent=None):
        super().__init__(parent)
        self.store = store
        self.pool = pool if pool is not None else Workers.pool

    def save_now(self, player_id: str, user_id: str, metrics: RaceMetrics) -> Optional[LeaderboardRecord]:
        try:
            record = self.store.insert_result(player_id, user_id, metrics.wpm, metrics.accuracy, metrics.error_count)
        except DatabaseError as e:
            log.error("%s", PersistenceWriteError(f"Could not store result for {player_id}: {e}"))
            return None
        log.info("Stored race result %s for %s", record.id, player_id)
        return record

    def ranked_now(self) -> List[RankedRecord]:
        return rank_records(self.store.fetch_results())

    def submit(self, player_id: str, user_id: str, metrics: RaceMetrics):
        worker = Worker(self.save_now, player_id, user_id, metrics)
        worker.signals.done.connect(self._on_saved)
        worker.signals.failed.connect(lambda msg: log.error("Result submission crashed: %s", msg))
        self.pool.start(worker)

    def refresh(self):
        worker = Worker(self.ranked_now)
        worker.signals.done.connect(self.rankingReady.emit)
        worker.signals.failed.connect(self._on_fetch_failed)
        self.pool.start(worker)

    def _on_saved(self, record):
        if record is not None:
            self.recordSaved.emit(record)

    def _on_fetch_failed(self, msg: str):
        log.warning("Leaderboard fetch failed: %s", msg)
        self.fetchFailed.emit(msg)
