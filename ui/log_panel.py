from __future__ import annotations
from collections import deque
from datetime import datetime
from PyQt6.QtWidgets import (
    QWidget, QVBoxLayout, QPlainTextEdit, QPushButton, QHBoxLayout, QComboBox, QLabel,
)
from PyQt6.QtGui import QFont
from PyQt6.QtCore import QMetaObject, Qt, Q_ARG

MAX_LINES = 5000
CATEGORIES = ("SYSTEM", "TX", "RX", "ERROR")


class LogPanel(QWidget):
    """Timestamped serial/system log with a category filter."""

    def __init__(self, parent=None) -> None:
        super().__init__(parent)
        self._entries: deque[tuple[str, str]] = deque(maxlen=MAX_LINES)
        self._build_ui()

    def _build_ui(self) -> None:
        layout = QVBoxLayout(self)
        layout.setContentsMargins(0, 0, 0, 0)

        self.log_text = QPlainTextEdit()
        self.log_text.setReadOnly(True)
        self.log_text.setFont(QFont("Courier", 10))
        self.log_text.setMaximumBlockCount(MAX_LINES)
        layout.addWidget(self.log_text)

        btn_row = QHBoxLayout()
        btn_row.addWidget(QLabel("Show:"))
        self.filter_combo = QComboBox()
        self.filter_combo.addItem("All", None)
        for category in CATEGORIES:
            self.filter_combo.addItem(category, category)
        self.filter_combo.currentIndexChanged.connect(self._rerender)
        btn_row.addWidget(self.filter_combo)
        self.copy_btn = QPushButton("Copy Log")
        self.copy_btn.clicked.connect(self._copy_to_clipboard)
        self.clear_btn = QPushButton("Clear")
        self.clear_btn.clicked.connect(self.clear)
        btn_row.addStretch()
        btn_row.addWidget(self.clear_btn)
        btn_row.addWidget(self.copy_btn)
        layout.addLayout(btn_row)

    def _visible(self, category: str) -> bool:
        wanted = self.filter_combo.currentData()
        return wanted is None or wanted == category

    def append_message(self, category: str, message: str) -> None:
        timestamp = datetime.now().strftime("%H:%M:%S.%f")[:-3]
        line = f"[{timestamp}] [{category}] {message}"
        self._entries.append((category, line))
        if self._visible(category):
            QMetaObject.invokeMethod(
                self.log_text, "appendPlainText",
                Qt.ConnectionType.QueuedConnection,
                Q_ARG(str, line),
            )

    def _rerender(self) -> None:
        self.log_text.setPlainText(
            "\n".join(line for category, line in self._entries if self._visible(category))
        )

    def clear(self) -> None:
        self._entries.clear()
        self.log_text.clear()

    def _copy_to_clipboard(self) -> None:
        from PyQt6.QtWidgets import QApplication
        clipboard = QApplication.clipboard()
        if clipboard:
            clipboard.setText(self.log_text.toPlainText())
