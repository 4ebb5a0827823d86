# ui/leaderboard_view.py
from PySide6.QtCore import Qt
from PySide6.QtWidgets import (
    QDialog, QVBoxLayout, QHBoxLayout, QLabel, QPushButton, QTableWidget, QTableWidgetItem
)

RANK_ICONS = {1: "👑", 2: "🥈", 3: "🥉"}
COLUMNS = ["Rank", "Player", "Score", "WPM", "Accuracy", "Errors", "Time Updated"]


class LeaderboardDialog(QDialog):
    def __init__(self, service, parent=None):
        super().__init__(parent)
        self.setWindowTitle("Typing Speed Leaderboard")
        self.resize(760, 520)
        self.service = service

        root = QVBoxLayout(self)
        self.lblState = QLabel("Loading leaderboard...", self)
        self.lblState.setAlignment(Qt.AlignCenter)
        root.addWidget(self.lblState)

        self.table = QTableWidget(0, len(COLUMNS))
        self.table.setHorizontalHeaderLabels(COLUMNS)
        self.table.horizontalHeader().setStretchLastSection(True)
        self.table.setEditTriggers(QTableWidget.NoEditTriggers)
        root.addWidget(self.table, stretch=1)

        row = QHBoxLayout()
        row.addStretch(1)
        btn_refresh = QPushButton("Refresh", self)
        btn_refresh.clicked.connect(self.refresh)
        btn_close = QPushButton("Close", self)
        btn_close.clicked.connect(self.accept)
        row.addWidget(btn_refresh)
        row.addWidget(btn_close)
        root.addLayout(row)

        service.rankingReady.connect(self._render)
        service.fetchFailed.connect(self._on_failed)
        self.refresh()

    def refresh(self):
        self.lblState.setText("Loading leaderboard...")
        self.lblState.setVisible(True)
        self.service.refresh()

    def _render(self, ranked):
        self.lblState.setVisible(not ranked)
        self.lblState.setText("No races yet.")
        self.table.setRowCount(len(ranked))
        for i, r in enumerate(ranked):
            rec = r.record
            cells = [
                f"{RANK_ICONS.get(r.rank, '')} {r.rank}".strip(),
                rec.player_id,
                f"{r.score:.1f}",
                f"{rec.wpm:g}",
                f"{rec.accuracy:g}%",
                str(rec.error_count),
                rec.updated_at.astimezone().strftime("%Y-%m-%d %H:%M"),
            ]
            for col, text in enumerate(cells):
                item = QTableWidgetItem(text)
                item.setTextAlignment(Qt.AlignCenter)
                self.table.setItem(i, col, item)

    def _on_failed(self, msg):
        self.lblState.setText(f"Error loading leaderboard: {msg}")
        self.lblState.setVisible(True)
