# core/transport.py
from __future__ import annotations
import json
import logging
from collections import deque

from PySide6.QtCore import QObject, QTimer, QUrl, Signal
from PySide6.QtWebSockets import QWebSocket

log = logging.getLogger(__name__)


class Transport(QObject):
    """
    Named-event messaging boundary. Subclasses deliver ``send`` calls to the
    room server and report inbound events through ``received``. Delivery order
    of one sender's events is preserved.
    """
    received = Signal(str, object)   # event name, payload
    connected = Signal()
    disconnected = Signal()

    def send(self, event: str, payload) -> None:
        raise NotImplementedError

    def identify(self, player_id: str) -> None:
        self.send("setPlayerId", player_id)

    @property
    def is_connected(self) -> bool:
        return False


class WebSocketTransport(Transport):
    """
    JSON text frames of the form {"event": name, "data": payload} over a
    QWebSocket. Outgoing events are queued while the socket is down and
    flushed in order on reconnect.
    """

    def __init__(self, url: str, reconnect_ms: int = 2000, max_queue: int = 256, parent=None):
        super().__init__(parent)
        self._url = QUrl(url)
        self._open = False
        self._closing = False
        self._queue: deque[str] = deque(maxlen=max_queue)
        self._hello: str | None = None

        self._ws = QWebSocket()
        self._ws.setParent(self)
        self._ws.connected.connect(self._on_connected)
        self._ws.disconnected.connect(self._on_disconnected)
        self._ws.textMessageReceived.connect(self._on_text)

        self._retry = QTimer(self)
        self._retry.setSingleShot(True)
        self._retry.setInterval(reconnect_ms)
        self._retry.timeout.connect(self.open)

    @property
    def is_connected(self) -> bool:
        return self._open

    def open(self):
        self._closing = False
        log.info("Connecting to %s", self._url.toString())
        self._ws.open(self._url)

    def close(self):
        self._closing = True
        self._retry.stop()
        self._ws.close()

    def identify(self, player_id: str):
        """Sends setPlayerId now and again after every reconnect."""
        self._hello = json.dumps({"event": "setPlayerId", "data": player_id})
        if self._open:
            self._ws.sendTextMessage(self._hello)

    def send(self, event: str, payload) -> None:
        frame = json.dumps({"event": event, "data": payload})
        if self._open:
            self._ws.sendTextMessage(frame)
        else:
            if len(self._queue) == self._queue.maxlen:
                log.warning("Send queue full, dropping oldest event")
            self._queue.append(frame)

    def _on_connected(self):
        self._open = True
        log.info("Connected to room server")
        if self._hello:
            self._ws.sendTextMessage(self._hello)
        while self._queue:
            self._ws.sendTextMessage(self._queue.popleft())
        self.connected.emit()

    def _on_disconnected(self):
        was_open = self._open
        self._open = False
        if was_open:
            log.warning("Room server connection lost: %s", self._ws.errorString())
            self.disconnected.emit()
        if not self._closing:
            self._retry.start()

    def _on_text(self, text: str):
        try:
            msg = json.loads(text)
        except json.JSONDecodeError as e:
            log.warning("Dropping non-JSON frame: %s", e)
            return
        if not isinstance(msg, dict) or not isinstance(msg.get("event"), str):
            log.warning("Dropping frame without event name: %r", text[:200])
            return
        self.received.emit(msg["event"], msg.get("data"))
