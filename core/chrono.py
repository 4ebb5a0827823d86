# core/chrono.py
from PySide6.QtCore import QObject, QTimer, Signal


class PreparationTimer(QObject):
    """
    Pre-race countdown. Ticks once per interval from the initial value down to
    zero and fires ``finished`` exactly once per start. ``reset`` cancels a
    running countdown without firing.
    """
    valueChanged = Signal(int)
    started = Signal()
    finished = Signal()

    def __init__(self, initial: int = 5, tick_ms: int = 1000, parent=None):
        super().__init__(parent)
        self._initial = max(0, int(initial))
        self._value = self._initial
        self._running = False

        self._tick = QTimer(self)
        self._tick.setInterval(tick_ms)
        self._tick.timeout.connect(self._on_tick)

    @property
    def value(self) -> int:
        return self._value

    @property
    def initial(self) -> int:
        return self._initial

    @property
    def running(self) -> bool:
        return self._running

    @property
    def expired(self) -> bool:
        return self._value == 0 and not self._running

    def start(self):
        if self._running:
            return
        self._value = self._initial
        self._running = True
        self.valueChanged.emit(self._value)
        self.started.emit()
        if self._value == 0:
            self._finish()
        else:
            self._tick.start()

    def reset(self):
        self._tick.stop()
        self._running = False
        if self._value != self._initial:
            self._value = self._initial
            self.valueChanged.emit(self._value)

    def _on_tick(self):
        if not self._running:
            return
        self._value = max(0, self._value - 1)
        self.valueChanged.emit(self._value)
        if self._value == 0:
            self._finish()

    def _finish(self):
        self._tick.stop()
        self._running = False
        self.finished.emit()
