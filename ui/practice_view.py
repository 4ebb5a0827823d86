# ui/practice_view.py
from PySide6.QtCore import Qt
from PySide6.QtWidgets import QWidget, QLabel, QVBoxLayout, QHBoxLayout, QPushButton, QCheckBox

from services.practice import PracticeRun
from ui.session_summary import RaceSummary
from ui.widgets.typing_area import TypingArea


class PracticeView(QWidget):
    def __init__(self, run: PracticeRun, audio=None, parent=None):
        super().__init__(parent)
        self.run = run
        self.audio = audio

        root = QVBoxLayout(self)
        root.setSpacing(18)

        bar = QHBoxLayout()
        self.lblStats = QLabel("WPM: 0   Accuracy: 100%   Errors: 0", self)
        self.chkRanked = QCheckBox("Ranked run", self)
        self.chkRanked.setFocusPolicy(Qt.NoFocus)
        self.chkRanked.setChecked(not run.practice)
        self.chkRanked.toggled.connect(self._on_ranked)
        btn_replay = QPushButton("Replay", self)
        btn_replay.setFocusPolicy(Qt.NoFocus)
        btn_replay.clicked.connect(self._replay)
        btn_new = QPushButton("New text", self)
        btn_new.setFocusPolicy(Qt.NoFocus)
        btn_new.clicked.connect(lambda: self._replay(new_text=True))
        bar.addWidget(self.lblStats)
        bar.addStretch(1)
        for w in (self.chkRanked, btn_replay, btn_new):
            bar.addWidget(w)
        root.addLayout(bar)

        self.typing = TypingArea(run.controller, self)
        root.addWidget(self.typing, stretch=1)

        run.controller.metricsChanged.connect(self._on_metrics)
        run.controller.cueSelected.connect(lambda cue: self.audio and self.audio.play(cue))
        run.finished.connect(self._on_finished)

    def _on_ranked(self, checked: bool):
        self.run.practice = not checked

    def _replay(self, new_text: bool = False):
        self.run.replay(new_text=new_text)
        self.typing.setFocus()

    def _on_metrics(self, m):
        self.lblStats.setText(f"WPM: {m.wpm}   Accuracy: {m.accuracy}%   Errors: {m.error_count}")

    def _on_finished(self, metrics):
        dlg = RaceSummary(metrics, allow_reset=False, parent=self)
        dlg.accepted.connect(self._replay)
        dlg.open()
