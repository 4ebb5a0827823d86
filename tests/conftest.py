"""Shared test fixtures for Typerace tests."""

import tempfile
from pathlib import Path

import pytest
from PySide6.QtCore import QCoreApplication

from core.transport import Transport


@pytest.fixture(scope="session", autouse=True)
def qt_app():
    """Timers and queued signals need an application object."""
    app = QCoreApplication.instance() or QCoreApplication([])
    yield app


class FakeTransport(Transport):
    """Records outgoing events; tests push inbound ones with ``inject``."""

    def __init__(self):
        super().__init__()
        self.sent = []
        self.online = True

    @property
    def is_connected(self) -> bool:
        return self.online

    def send(self, event, payload):
        self.sent.append((event, payload))

    def inject(self, event, payload=None):
        self.received.emit(event, payload)

    def events(self, name=None):
        return [e for e in self.sent if name is None or e[0] == name]

    def last(self, name):
        matches = self.events(name)
        return matches[-1][1] if matches else None

    def drop(self):
        self.online = False
        self.disconnected.emit()

    def restore(self):
        self.online = True
        self.connected.emit()


class FakeClock:
    """Stands in for RaceClock; tests move time with ``advance``."""

    def __init__(self):
        self._started = False
        self._elapsed = 0.0

    def start(self):
        self._started = True

    def reset(self):
        self._started = False
        self._elapsed = 0.0

    @property
    def started(self):
        return self._started

    def advance(self, ms):
        if self._started:
            self._elapsed += ms

    def elapsed_ms(self):
        return self._elapsed if self._started else 0.0


@pytest.fixture
def transport():
    return FakeTransport()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def temp_db_path():
    """Create a temporary database path and clean up afterwards."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir) / "test.db"
