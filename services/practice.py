# services/practice.py
from __future__ import annotations
import logging
from typing import List, Optional

from PySide6.QtCore import QObject, Signal

from app.calculation import RaceMetrics
from services.typing_engine import KeystrokeController
from utils.file_handler import pick_passage

log = logging.getLogger(__name__)


class PracticeRun(QObject):
    """
    Single-player race: no countdown, Ctrl+Backspace removes whole words.
    Ranked runs (``practice=False``) are submitted to the leaderboard on completion.
    """
    finished = Signal(object)   # RaceMetrics

    def __init__(self, leaderboard=None, player_id: str = "", user_id: str = "", practice: bool = True,
                 text: Optional[str] = None, passages: Optional[List[str]] = None, clock=None, parent=None):
        super().__init__(parent)
        self.leaderboard = leaderboard
        self.player_id = player_id
        self.user_id = user_id
        self.practice = practice
        self.passages = passages
        self.controller = KeystrokeController(text or pick_passage(passages), word_delete=True, clock=clock, parent=self)
        self.controller.completed.connect(self._on_completed)
        self.controller.activate()

    def replay(self, new_text: bool = False):
        self.controller.reset(pick_passage(self.passages) if new_text else None)
        self.controller.activate()

    def _on_completed(self, metrics: RaceMetrics):
        self.finished.emit(metrics)
        if self.practice or self.leaderboard is None:
            return
        log.info("Submitting solo run: %s WPM, %s%%", metrics.wpm, metrics.accuracy)
        self.leaderboard.submit(self.player_id, self.user_id, metrics)
