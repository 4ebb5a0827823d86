# services/typing_engine.py
from __future__ import annotations
from enum import Enum

from PySide6.QtCore import QObject, Signal

from app.cues import KeyCue, select_cue
from app.calculation import RaceMetrics, compute_metrics
from app.state import RaceSession
from app.timer import RaceClock

BACKSPACE = "Backspace"
TAB = "Tab"


class ControllerState(str, Enum):
    IDLE = "idle"
    ACTIVE = "active"
    COMPLETED = "completed"


def delete_word(typed: str) -> str:
    """Ctrl+Backspace: drop trailing whitespace and the word before it, keeping the separator."""
    trimmed = typed.rstrip()
    cut = max((i for i, ch in enumerate(trimmed) if ch.isspace()), default=-1)
    return typed[:cut + 1] if cut != -1 else ""


class KeystrokeController(QObject):
    """
    Owns one player's typed text for one race.

    Idle until ``activate`` (the countdown reached zero), Active while the
    passage is incomplete, Completed once the last character is typed.
    Metrics are recomputed from the whole typed text on every accepted key.
    """
    metricsChanged = Signal(object)   # RaceMetrics
    completed = Signal(object)        # RaceMetrics, once per race
    cueSelected = Signal(str)         # KeyCue value
    stateChanged = Signal(str)

    def __init__(self, target_text: str = "", word_delete: bool = False, clock=None, channel=None, parent=None):
        super().__init__(parent)
        self.session = RaceSession(target_text=target_text or "")
        self.word_delete = word_delete
        self.clock = clock if clock is not None else RaceClock()
        self.channel = channel
        self._state = ControllerState.IDLE

    @property
    def state(self) -> ControllerState:
        return self._state

    @property
    def metrics(self) -> RaceMetrics:
        return self.session.metrics

    def _set_state(self, state: ControllerState):
        if state != self._state:
            self._state = state
            self.stateChanged.emit(state.value)

    def set_text(self, text: str):
        self.reset(text)

    def activate(self):
        if self._state == ControllerState.IDLE and self.session.target_text:
            self._set_state(ControllerState.ACTIVE)

    def process_key(self, key: str, ctrl: bool = False) -> bool:
        """
        Feeds one key. ``key`` is a single character, ``"Backspace"`` or
        another key name. Returns True when the view should swallow the event;
        Tab is always swallowed.
        """
        if key == TAB:
            return True
        if self._state != ControllerState.ACTIVE:
            return False
        if key == BACKSPACE:
            self._delete(word=ctrl and self.word_delete)
            return True
        if len(key) != 1:
            return False
        self._type_char(key)
        return True

    def _type_char(self, ch: str):
        s = self.session
        if s.position >= len(s.target_text):
            return
        if not self.clock.started:
            self.clock.start()
            s.start()
        cue = select_cue(ch, s.target_text[s.position])
        s.typed_text += ch
        self._recompute()
        self.cueSelected.emit(cue.value)
        if s.is_complete:
            self._complete()

    def _delete(self, word: bool):
        s = self.session
        if not s.typed_text:
            return
        s.typed_text = delete_word(s.typed_text) if word else s.typed_text[:-1]
        self._recompute()
        self.cueSelected.emit(KeyCue.CORRECT.value)

    def _recompute(self):
        s = self.session
        metrics = compute_metrics(s.target_text, s.typed_text, self.clock.elapsed_ms(), self.clock.started)
        s.metrics = metrics
        s.error_count = metrics.error_count
        self.metricsChanged.emit(metrics)
        if self.channel is not None:
            self.channel.publish(metrics)

    def _complete(self):
        self._set_state(ControllerState.COMPLETED)
        self.completed.emit(self.session.metrics)

    def reset(self, text: str | None = None):
        self.session.reset(text)
        self.clock.reset()
        self._set_state(ControllerState.IDLE)
        self.metricsChanged.emit(self.session.metrics)
