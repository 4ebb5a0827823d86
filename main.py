# main.py
from __future__ import annotations
import sys
import logging
from pathlib import Path

from PySide6.QtWidgets import QApplication, QMessageBox

from core.transport import WebSocketTransport
from ui.main_window import MainWindow
from utils.config import load_settings


def setup_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
        handlers=[
            logging.StreamHandler(sys.stdout),
            logging.FileHandler("typerace.log", encoding="utf-8"),
        ],
    )

    # Log any uncaught exceptions rather than silently dying
    def excepthook(exctype, value, tb):
        logging.critical("Unhandled exception", exc_info=(exctype, value, tb))
        if QApplication.instance() is not None:
            QMessageBox.critical(None, "Application Error", f"{exctype.__name__}: {value}")
        sys.exit(1)

    sys.excepthook = excepthook


def load_stylesheet(app: QApplication) -> None:
    qss = Path("resources/style.qss")
    if qss.exists():
        try:
            app.setStyleSheet(qss.read_text(encoding="utf-8"))
        except OSError as e:
            logging.warning("Failed to load stylesheet: %s", e)


def main() -> int:
    settings = load_settings()
    setup_logging(settings.log_level)

    app = QApplication.instance() or QApplication(sys.argv)
    app.setApplicationName("Typerace")
    app.setOrganizationName("Typerace")
    load_stylesheet(app)

    transport = WebSocketTransport(settings.server_url)
    win = MainWindow(settings, transport)
    transport.open()
    win.show()

    code = app.exec()
    transport.close()
    return code


if __name__ == "__main__":
    sys.exit(main())
