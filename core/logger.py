from __future__ import annotations
from PyQt6.QtCore import QObject, pyqtSignal


def hex_bytes(data: bytes | bytearray) -> str:
    return " ".join(f"{b:02x}" for b in data)


class AppLogger(QObject):
    message_logged = pyqtSignal(str, str)  # category, message

    def log(self, category: str, message: str) -> None:
        print(f"[{category}] {message}", flush=True)
        self.message_logged.emit(category, message)

    def system(self, message: str) -> None:
        self.log("SYSTEM", message)

    def _traffic(self, category: str, payload: bytes | bytearray | str, note: str) -> None:
        # Raw serial traffic is shown as hex, annotations in parentheses
        text = hex_bytes(payload) if isinstance(payload, (bytes, bytearray)) else payload
        self.log(category, f"{text} ({note})" if note else text)

    def tx(self, payload: bytes | bytearray | str, note: str = "") -> None:
        self._traffic("TX", payload, note)

    def rx(self, payload: bytes | bytearray | str, note: str = "") -> None:
        self._traffic("RX", payload, note)

    def error(self, message: str) -> None:
        self.log("ERROR", message)
