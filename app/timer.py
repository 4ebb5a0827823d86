from PySide6.QtCore import QElapsedTimer


class RaceClock:
    """Stopwatch for one race. Starts on the first keystroke, not on focus."""

    def __init__(self):
        self.t = QElapsedTimer()

    def start(self):
        if not self.t.isValid():
            self.t.start()

    def reset(self):
        self.t.invalidate()

    @property
    def started(self) -> bool:
        return self.t.isValid()

    def elapsed_ms(self) -> float:
        return float(max(0, self.t.elapsed())) if self.t.isValid() else 0.0
