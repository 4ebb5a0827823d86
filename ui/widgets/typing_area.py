# ui/widgets/typing_area.py
from html import escape

from PySide6.QtCore import Qt
from PySide6.QtWidgets import QLabel, QSizePolicy

from services.typing_engine import BACKSPACE, TAB

COLORS = {
    "ok": "#e5e7eb",
    "err": "#ef4444",
    "mut": "#6b7280",
    "caret_bg": "rgba(255,255,255,0.20)",
}


def normalize_key(ev):
    """Maps a QKeyEvent to the controller's key names; None for keys it never sees."""
    key = ev.key()
    if key == Qt.Key_Tab:
        return TAB
    if key == Qt.Key_Backspace:
        return BACKSPACE
    if ev.modifiers() & (Qt.AltModifier | Qt.MetaModifier):
        return None
    t = ev.text()
    if len(t) == 1 and t >= " ":
        return t
    return None


class TypingArea(QLabel):
    """Shows the passage coloured by what has been typed and feeds keys to a controller."""

    def __init__(self, controller, parent=None):
        super().__init__(parent)
        self.controller = controller
        self.setFocusPolicy(Qt.StrongFocus)
        self.setTextFormat(Qt.RichText)
        self.setWordWrap(True)
        self.setAlignment(Qt.AlignLeft | Qt.AlignTop)
        self.setSizePolicy(QSizePolicy.Expanding, QSizePolicy.Expanding)
        self.setMinimumHeight(200)
        self.setStyleSheet("font-family: monospace; font-size: 22px; padding: 16px;")
        controller.metricsChanged.connect(lambda _m: self.render())
        controller.stateChanged.connect(lambda _s: self.render())
        self.render()

    def render(self):
        s = self.controller.session
        tgt, typed = s.target_text, s.typed_text
        parts = []
        for i, ch in enumerate(tgt):
            txt = "&nbsp;" if ch == " " else escape(ch)
            if i < len(typed):
                color = COLORS["ok"] if typed[i] == ch else COLORS["err"]
                parts.append(f'<span style="color:{color}">{txt}</span>')
            elif i == len(typed):
                parts.append(f'<span style="color:{COLORS["ok"]}; background:{COLORS["caret_bg"]}">{txt}</span>')
            else:
                parts.append(f'<span style="color:{COLORS["mut"]}">{txt}</span>')
        self.setText("".join(parts))

    def focusNextPrevChild(self, _next):
        # keep Tab inside the race
        return False

    def keyPressEvent(self, ev):
        nk = normalize_key(ev)
        if nk is None:
            return super().keyPressEvent(ev)
        ctrl = bool(ev.modifiers() & Qt.ControlModifier)
        if self.controller.process_key(nk, ctrl=ctrl):
            ev.accept()
        else:
            super().keyPressEvent(ev)
