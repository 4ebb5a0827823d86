# ui/lobby.py
from PySide6.QtCore import Qt, Signal
from PySide6.QtWidgets import (
    QWidget, QVBoxLayout, QHBoxLayout, QLabel, QLineEdit, QPushButton, QFrame
)

from app.errors import ValidationError
from app.validation import validate_create_room, validate_join_room


class _RoomCard(QFrame):
    submitted = Signal(str, str)   # player name, room name
    edited = Signal()

    def __init__(self, title: str, room_placeholder: str, button: str, parent=None):
        super().__init__(parent)
        self.setObjectName("RoomCard")
        v = QVBoxLayout(self)
        v.setSpacing(14)

        head = QLabel(title, self)
        head.setStyleSheet("font-size: 20px; font-weight: bold;")
        v.addWidget(head)

        self.lblError = QLabel("", self)
        self.lblError.setObjectName("lblError")
        self.lblError.setStyleSheet("color: #f87171;")
        self.lblError.setWordWrap(True)
        self.lblError.setVisible(False)
        v.addWidget(self.lblError)

        self.edName = QLineEdit(self)
        self.edName.setPlaceholderText("Player displayname")
        self.edRoom = QLineEdit(self)
        self.edRoom.setPlaceholderText(room_placeholder)
        for ed in (self.edName, self.edRoom):
            ed.textEdited.connect(self._on_edit)
            v.addWidget(ed)

        btn = QPushButton(button, self)
        btn.clicked.connect(lambda: self.submitted.emit(self.edName.text(), self.edRoom.text()))
        v.addWidget(btn)
        v.addStretch(1)

    def show_error(self, message: str):
        self.lblError.setText(message)
        self.lblError.setVisible(True)

    def clear_error(self):
        self.lblError.clear()
        self.lblError.setVisible(False)

    def _on_edit(self, _text):
        self.clear_error()
        self.edited.emit()


class LobbyView(QWidget):
    """Create / join forms. Emits validated requests; shows one inline error at a time."""
    createRequested = Signal(dict)
    joinRequested = Signal(dict)
    edited = Signal()

    def __init__(self, parent=None):
        super().__init__(parent)
        h = QHBoxLayout(self)
        h.setSpacing(48)
        h.addStretch(1)
        self.create = _RoomCard("Create Room", "Room name", "Create Room", self)
        self.join = _RoomCard("Join Room", "Room ID / Room name", "Join Room", self)
        for card in (self.create, self.join):
            card.setMinimumWidth(320)
            card.edited.connect(self.edited.emit)
            h.addWidget(card, alignment=Qt.AlignTop)
        h.addStretch(1)
        self._last = self.create

        self.create.submitted.connect(self._on_create)
        self.join.submitted.connect(self._on_join)

    def _on_create(self, name, room):
        self._last = self.create
        try:
            data = validate_create_room(name, room)
        except ValidationError as e:
            self.create.show_error(e.message)
            return
        self.createRequested.emit(data)

    def _on_join(self, name, room):
        self._last = self.join
        try:
            data = validate_join_room(name, room)
        except ValidationError as e:
            self.join.show_error(e.message)
            return
        self.joinRequested.emit(data)

    def show_error(self, message):
        """Server-side rejection for the form that was submitted last."""
        if message:
            self._last.show_error(message)
        else:
            self.create.clear_error()
            self.join.clear_error()
