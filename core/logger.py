from __future__ import annotations
from PyQt6.QtCore import QObject, pyqtSignal


class AppLogger(QObject):
    """Category logger. Each entry is emitted as (category, message) and,
    unless *echo* is off, printed as ``[CATEGORY] message``."""

    message_logged = pyqtSignal(str, str)  # category, message

    def __init__(self, echo: bool = True, parent: QObject | None = None) -> None:
        super().__init__(parent)
        self._echo = echo

    def log(self, category: str, message: str) -> None:
        if self._echo:
            print(f"[{category}] {message}", flush=True)
        self.message_logged.emit(category, message)

    def sysex(self, message: str) -> None:
        self.log("SYSEX", message)

    def smf(self, message: str) -> None:
        self.log("SMF", message)

    def general(self, message: str) -> None:
        self.log("GENERAL", message)
