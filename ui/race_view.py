# ui/race_view.py
from __future__ import annotations
import pyqtgraph as pg
from PySide6.QtCore import Qt
from PySide6.QtWidgets import QWidget, QLabel, QVBoxLayout, QHBoxLayout, QPushButton

from app.state import RoomStatus
from services.room_session import RoomSession
from ui.session_summary import RaceSummary
from ui.widgets.typing_area import TypingArea
from utils.graph_helper import OPPONENT_COLOR, SELF_COLOR, RaceChart

STATUS_ICONS = {RoomStatus.WAITING: "⏳", RoomStatus.RUNNING: "🏃", RoomStatus.FINISHED: "🏁"}


class RaceView(QWidget):
    """Room screen: players, ready button, countdown, live stats for both racers."""

    def __init__(self, session: RoomSession, audio=None, parent=None):
        super().__init__(parent)
        self.session = session
        self.audio = audio

        root = QVBoxLayout(self)
        root.setSpacing(18)

        self.lblTitle = QLabel("", self)
        self.lblTitle.setAlignment(Qt.AlignCenter)
        self.lblTitle.setStyleSheet("font-size: 28px; font-weight: bold;")
        self.lblStatus = QLabel("", self)
        self.lblStatus.setAlignment(Qt.AlignCenter)
        self.lblCountdown = QLabel("", self)
        self.lblCountdown.setAlignment(Qt.AlignCenter)
        self.lblCountdown.setStyleSheet("font-size: 40px;")
        for w in (self.lblTitle, self.lblStatus, self.lblCountdown):
            root.addWidget(w)

        players = QHBoxLayout()
        self.lblPlayers = QLabel("", self)
        self.lblPlayers.setAlignment(Qt.AlignCenter)
        self.btnReady = QPushButton("Ready", self)
        self.btnReady.setFocusPolicy(Qt.NoFocus)
        self.btnReady.clicked.connect(lambda: self.session.request_ready())
        players.addStretch(1)
        players.addWidget(self.lblPlayers)
        players.addWidget(self.btnReady)
        players.addStretch(1)
        root.addLayout(players)

        stats = QHBoxLayout()
        self.lblMine = QLabel("WPM: 0   Accuracy: 100%   Errors: 0", self)
        self.lblOpponent = QLabel("", self)
        stats.addWidget(self.lblMine)
        stats.addStretch(1)
        stats.addWidget(self.lblOpponent)
        root.addLayout(stats)

        self.lblWaiting = QLabel("", self)
        self.lblWaiting.setAlignment(Qt.AlignCenter)
        self.lblWaiting.setStyleSheet("font-size: 22px; color: #fdba74;")
        root.addWidget(self.lblWaiting)

        self.typing = TypingArea(session.controller, self)
        root.addWidget(self.typing, stretch=1)

        self.plot = pg.PlotWidget()
        self.plot.setMaximumHeight(160)
        self.chart = RaceChart(self.plot)
        root.addWidget(self.plot)

        session.roomChanged.connect(self._on_room)
        session.timer.valueChanged.connect(self._on_countdown)
        session.controller.metricsChanged.connect(self._on_metrics)
        session.controller.cueSelected.connect(self._on_cue)
        session.raceFinished.connect(self._on_finished)
        session.opponentStatsChanged.connect(self._on_opponent)

    def _on_room(self, room):
        self.lblTitle.setText(f"Room: “{room.id}”")
        self.lblStatus.setText(f"{STATUS_ICONS.get(room.status, '')} {room.status.value.upper()}")
        names = []
        for p in room.players:
            tag = "🎮 " if p.id == self.session.player_id else "🕹️ "
            host = " 👑Host" if p.is_host else ""
            ready = " ✔" if room.is_ready(p.id) else ""
            names.append(f"{tag}{p.name}{host}{ready}")
        self.lblPlayers.setText("   VS   ".join(names))
        me_ready = room.is_ready(self.session.player_id or "")
        self.btnReady.setVisible(room.status == RoomStatus.WAITING and not me_ready)
        if len(room.ready) < 2:
            self.lblWaiting.setText(f"Waiting for players to ready... {len(room.ready)}/2")
        else:
            self.lblWaiting.setText("")
        self.typing.setFocus()

    def _on_countdown(self, value: int):
        self.lblCountdown.setText(str(value) if value > 0 else "GO!")

    def _on_metrics(self, m):
        self.lblMine.setText(f"WPM: {m.wpm}   Accuracy: {m.accuracy}%   Errors: {m.error_count}")
        if self.session.controller.session.position == 0:
            self.chart.clear()
        else:
            self.chart.add_point("me", m.wpm, "You", SELF_COLOR)

    def _on_opponent(self, snap):
        stale = " (disconnected)" if snap.stale else ""
        self.lblOpponent.setText(
            f"{snap.player_name}{stale}: WPM {snap.wpm:g}   Accuracy {snap.accuracy:g}%   Errors {snap.error_count}"
        )
        if not snap.stale and snap.wpm:
            self.chart.add_point(snap.player_id, snap.wpm, snap.player_name, OPPONENT_COLOR)

    def _on_cue(self, cue: str):
        if self.audio is not None:
            self.audio.play(cue)

    def _on_finished(self, metrics):
        opp = self.session.channel.opponent() if self.session.channel else None
        dlg = RaceSummary(metrics, opp, parent=self)
        dlg.resetRequested.connect(lambda: self.session.request_reset())
        dlg.open()
