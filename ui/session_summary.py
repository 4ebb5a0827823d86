# ui/session_summary.py
from __future__ import annotations
from PySide6.QtCore import Signal
from PySide6.QtWidgets import QDialog, QVBoxLayout, QGridLayout, QLabel, QPushButton, QHBoxLayout


def _stat_grid(parent, wpm, acc, errors) -> QGridLayout:
    grid = QGridLayout()
    for col, (title, value, color) in enumerate((
        ("WPM", f"{wpm:g}", "#22c55e"),
        ("Accuracy", f"{acc:g}%", "#3b82f6"),
        ("Errors", f"{errors}", "#ef4444"),
    )):
        head = QLabel(title, parent)
        val = QLabel(value, parent)
        val.setStyleSheet(f"font-size: 24px; font-weight: bold; color: {color};")
        grid.addWidget(head, 0, col)
        grid.addWidget(val, 1, col)
    return grid


class RaceSummary(QDialog):
    """Final stats for the local player and, when known, the opponent."""
    resetRequested = Signal()

    def __init__(self, metrics, opponent=None, allow_reset: bool = True, parent=None):
        super().__init__(parent)
        self.setWindowTitle("Text Completed!")
        self.resize(520, 300)

        root = QVBoxLayout(self)
        root.addLayout(_stat_grid(self, metrics.wpm, metrics.accuracy, metrics.error_count))

        if opponent is not None:
            title = f"{opponent.player_name or opponent.player_id} Stats"
            if opponent.stale:
                title += " (disconnected)"
            lbl = QLabel(title, self)
            lbl.setStyleSheet("font-size: 18px; font-weight: bold; margin-top: 12px;")
            root.addWidget(lbl)
            root.addLayout(_stat_grid(self, opponent.wpm, opponent.accuracy, opponent.error_count))

        row = QHBoxLayout()
        if allow_reset:
            btn_reset = QPushButton("Reset Game", self)
            btn_reset.clicked.connect(self._on_reset)
            row.addWidget(btn_reset)
        btn_close = QPushButton("Close", self)
        btn_close.clicked.connect(self.accept)
        row.addWidget(btn_close)
        root.addLayout(row)

    def _on_reset(self):
        self.resetRequested.emit()
        self.accept()
