# ui/main_window.py
import logging
import uuid

from PySide6.QtWidgets import (
    QMainWindow, QWidget, QVBoxLayout, QHBoxLayout, QPushButton, QStackedWidget, QLabel
)
from PySide6.QtCore import Qt

from app.audio import AudioEngine
from core.chrono import PreparationTimer
from services.leaderboard import LeaderboardService, make_store
from services.practice import PracticeRun
from services.room_session import RoomSession
from services.typing_engine import KeystrokeController
from ui.leaderboard_view import LeaderboardDialog
from ui.lobby import LobbyView
from ui.practice_view import PracticeView
from ui.race_view import RaceView
from utils.file_handler import load_passages, pick_passage

log = logging.getLogger(__name__)

TOPBAR_QSS = """
QWidget#TopBar {
    background: rgba(255,255,255,0.04);
    border: 1px solid rgba(255,255,255,0.08);
    border-radius: 14px;
}
QPushButton#TopBtn {
    background: transparent;
    border: 1px solid rgba(255,255,255,0.10);
    border-radius: 9px;
    padding: 6px 12px;
}
QPushButton#TopBtn:hover {
    border-color: rgba(255,255,255,0.32);
    background: rgba(255,255,255,0.06);
}
"""


class MainWindow(QMainWindow):
    def __init__(self, settings, transport):
        super().__init__()
        self.setWindowTitle("Typerace")
        self.resize(1200, 720)
        self.settings = settings
        self.user_id = str(uuid.uuid4())
        self.passages = load_passages(settings.passages_file)

        self.audio = AudioEngine(settings.sfx_dir, enabled=settings.sound_enabled)
        self.leaderboard = LeaderboardService(make_store(settings), parent=self)

        self.session = RoomSession(
            transport,
            timer=PreparationTimer(initial=settings.countdown_seconds, parent=self),
            controller=KeystrokeController(parent=self),
            settle_delay_ms=settings.settle_delay_ms,
            request_timeout_ms=settings.request_timeout_ms,
            passage_picker=lambda: pick_passage(self.passages),
            parent=self,
        )
        self.session.raceFinished.connect(self._on_race_finished)
        self.session.errorChanged.connect(self._on_error)
        self.session.notice.connect(self._on_notice)
        self.session.connectionChanged.connect(self._on_connection)
        self.session.roomChanged.connect(self._on_room)

        root = QWidget(self)
        root_v = QVBoxLayout(root)
        root_v.setContentsMargins(16, 24, 16, 16)
        root_v.setSpacing(18)
        self._build_top_bar(root_v)

        self.lblNotice = QLabel("", root)
        self.lblNotice.setAlignment(Qt.AlignCenter)
        root_v.addWidget(self.lblNotice)

        self.stack = QStackedWidget(root)
        self.lobby = LobbyView(self.stack)
        self.lobby.createRequested.connect(self._on_create)
        self.lobby.joinRequested.connect(self._on_join)
        self.lobby.edited.connect(self.session.clear_error)
        self.race = RaceView(self.session, self.audio, self.stack)
        self.practice = None
        self.stack.addWidget(self.lobby)
        self.stack.addWidget(self.race)
        root_v.addWidget(self.stack, 1)
        self.setCentralWidget(root)
        self.setStyleSheet(TOPBAR_QSS)

    # ---------------- Top Bar ----------------
    def _build_top_bar(self, parent_layout):
        bar = QWidget(self)
        bar.setObjectName("TopBar")
        h = QHBoxLayout(bar)
        h.setContentsMargins(14, 12, 14, 12)
        h.setSpacing(10)
        for text, handler in (
            ("Rooms", self._show_lobby),
            ("Practice", self._show_practice),
            ("Leaderboard…", self._open_leaderboard),
        ):
            btn = QPushButton(text, bar)
            btn.setObjectName("TopBtn")
            btn.setFocusPolicy(Qt.NoFocus)
            btn.clicked.connect(handler)
            h.addWidget(btn)
        h.addStretch(1)
        self.btnSound = QPushButton("Sound: on" if self.audio.enabled else "Sound: off", bar)
        self.btnSound.setObjectName("TopBtn")
        self.btnSound.setFocusPolicy(Qt.NoFocus)
        self.btnSound.clicked.connect(self._toggle_sound)
        h.addWidget(self.btnSound)
        parent_layout.addWidget(bar)

    def _toggle_sound(self):
        self.audio.enabled = not self.audio.enabled
        self.btnSound.setText("Sound: on" if self.audio.enabled else "Sound: off")

    # ---------------- Navigation ----------------
    def _show_lobby(self):
        self.stack.setCurrentWidget(self.race if self.session.room else self.lobby)

    def _show_practice(self):
        if self.practice is None:
            run = PracticeRun(self.leaderboard, self.user_id, self.user_id, passages=self.passages, parent=self)
            self.practice = PracticeView(run, self.audio, self.stack)
            self.stack.addWidget(self.practice)
        self.stack.setCurrentWidget(self.practice)
        self.practice.typing.setFocus()

    def _open_leaderboard(self):
        LeaderboardDialog(self.leaderboard, self).exec()

    # ---------------- Room flow ----------------
    def _on_create(self, data):
        self.session.request_create(data["roomName"], data["playerName"], data["playerId"], pick_passage(self.passages))

    def _on_join(self, data):
        self.session.request_join(data["roomName"], data["playerName"], data["playerId"])

    def _on_room(self, room):
        if self.stack.currentWidget() is self.lobby:
            self.stack.setCurrentWidget(self.race)
            self.race.typing.setFocus()
        self.setWindowTitle(f"Typerace - {room.id}")

    def _on_error(self, message):
        self.lobby.show_error(message)
        self.lblNotice.setText(message or "")

    def _on_notice(self, kind, message):
        log.info("[%s] %s", kind, message)
        self.lblNotice.setText(message)

    def _on_connection(self, state):
        self.setWindowTitle("Typerace - reconnecting…" if state == "ambiguous" else "Typerace")

    def _on_race_finished(self, metrics):
        self.leaderboard.submit(self.session.player_id, self.user_id, metrics)
        self.setWindowTitle(f"Typerace - {metrics.wpm} WPM")
