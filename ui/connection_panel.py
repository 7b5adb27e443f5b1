from __future__ import annotations
from PyQt6.QtWidgets import (
    QWidget, QVBoxLayout, QHBoxLayout, QLabel, QLineEdit,
    QPushButton, QComboBox, QGroupBox, QMessageBox, QSpinBox,
)
from PyQt6.QtCore import pyqtSignal
from core.config import AppConfig
from link.commands import NUM_SLOTS, clamp_slot
from link.session import SyncState
from link.transport import BAUD_RATES, find_xva1_port, list_serial_ports

_STATE_LABELS = {
    SyncState.DISCONNECTED: "Not connected",
    SyncState.CONNECTING: "Connecting...",
    SyncState.INITIALIZING: "Initializing...",
    SyncState.SYNCING: "Syncing...",
    SyncState.CONNECTED: "Connected",
}


class ConnectionPanel(QWidget):
    """Port/baud selection plus the device and file actions.

    Only emits requests; the main window owns the session and acts on them.
    """

    connect_requested = pyqtSignal(str, int)   # port ("" = auto-detect), baud rate
    disconnect_requested = pyqtSignal()
    sync_requested = pyqtSignal()
    load_slot_requested = pyqtSignal(int)
    save_slot_requested = pyqtSignal(int)
    load_file_requested = pyqtSignal()
    save_file_requested = pyqtSignal()
    raw_command_requested = pyqtSignal(str)

    def __init__(self, config: AppConfig | None = None, parent=None) -> None:
        super().__init__(parent)
        self._config = config or AppConfig()
        self._state = SyncState.DISCONNECTED
        self._build_ui()
        self._refresh_ports()
        self.set_state(SyncState.DISCONNECTED)

    def _build_ui(self) -> None:
        layout = QVBoxLayout(self)

        conn_group = QGroupBox("Serial Port")
        conn_layout = QVBoxLayout(conn_group)

        self.port_combo = QComboBox()
        refresh_btn = QPushButton("Refresh")
        refresh_btn.clicked.connect(self._refresh_ports)
        port_row = QHBoxLayout()
        port_row.addWidget(self.port_combo, stretch=1)
        port_row.addWidget(refresh_btn)
        conn_layout.addLayout(port_row)

        baud_row = QHBoxLayout()
        baud_row.addWidget(QLabel("Baud Rate:"))
        self.baud_combo = QComboBox()
        for rate in BAUD_RATES:
            self.baud_combo.addItem(str(rate), rate)
        saved = self.baud_combo.findData(self._config.baud_rate)
        self.baud_combo.setCurrentIndex(saved if saved >= 0 else 0)
        self.baud_combo.currentIndexChanged.connect(self._on_baud_changed)
        baud_row.addWidget(self.baud_combo, stretch=1)
        conn_layout.addLayout(baud_row)

        self.connect_btn = QPushButton("Connect")
        self.connect_btn.clicked.connect(self._toggle_connect)
        conn_layout.addWidget(self.connect_btn)

        self.status_label = QLabel("Not connected")
        conn_layout.addWidget(self.status_label)
        layout.addWidget(conn_group)

        action_group = QGroupBox("Device")
        action_layout = QVBoxLayout(action_group)

        self.sync_btn = QPushButton("Sync from Synth")
        self.sync_btn.clicked.connect(self.sync_requested)
        action_layout.addWidget(self.sync_btn)

        slot_row = QHBoxLayout()
        slot_row.addWidget(QLabel("Slot:"))
        self.slot_spin = QSpinBox()
        self.slot_spin.setRange(0, NUM_SLOTS - 1)
        slot_row.addWidget(self.slot_spin)
        self.load_slot_btn = QPushButton("Load")
        self.load_slot_btn.clicked.connect(self._on_load_slot)
        self.save_slot_btn = QPushButton("Save")
        self.save_slot_btn.clicked.connect(self._on_save_slot)
        slot_row.addWidget(self.load_slot_btn)
        slot_row.addWidget(self.save_slot_btn)
        action_layout.addLayout(slot_row)

        raw_row = QHBoxLayout()
        self.raw_edit = QLineEdit()
        self.raw_edit.setPlaceholderText("Raw command")
        self.raw_edit.returnPressed.connect(self._on_send_raw)
        self.raw_send_btn = QPushButton("Send")
        self.raw_send_btn.clicked.connect(self._on_send_raw)
        raw_row.addWidget(self.raw_edit, stretch=1)
        raw_row.addWidget(self.raw_send_btn)
        action_layout.addLayout(raw_row)
        layout.addWidget(action_group)

        file_group = QGroupBox("Patch File")
        file_layout = QHBoxLayout(file_group)
        self.load_file_btn = QPushButton("Load File...")
        self.load_file_btn.clicked.connect(self.load_file_requested)
        self.save_file_btn = QPushButton("Save File...")
        self.save_file_btn.clicked.connect(self.save_file_requested)
        file_layout.addWidget(self.load_file_btn)
        file_layout.addWidget(self.save_file_btn)
        layout.addWidget(file_group)

        layout.addStretch()

    def _refresh_ports(self) -> None:
        self.port_combo.clear()
        self.port_combo.addItem("(auto-detect)", "")
        ports = list_serial_ports()
        for device, description, _ in ports:
            self.port_combo.addItem(f"{device} - {description}", device)
        select = 0
        saved = self.port_combo.findData(self._config.serial_port) if self._config.serial_port else -1
        if saved >= 0:
            select = saved
        else:
            idx = find_xva1_port(ports)
            if idx is not None:
                select = idx + 1
        self.port_combo.setCurrentIndex(select)

    def _on_baud_changed(self, idx: int) -> None:
        self._config.baud_rate = self.baud_combo.itemData(idx)
        self._config.save()

    @property
    def baud_rate(self) -> int:
        return self.baud_combo.currentData()

    @property
    def slot(self) -> int:
        return clamp_slot(self.slot_spin.value())

    def _toggle_connect(self) -> None:
        if self._state is SyncState.DISCONNECTED:
            port = self.port_combo.currentData() or ""
            if port:
                self._config.serial_port = port
                self._config.save()
            self.connect_requested.emit(port, self.baud_rate)
        else:
            self.disconnect_requested.emit()

    def _on_load_slot(self) -> None:
        self.load_slot_requested.emit(self.slot)

    def _on_save_slot(self) -> None:
        slot = self.slot
        reply = QMessageBox.question(
            self, "Save to Slot",
            f"Overwrite slot {slot} on the synth with the current patch?",
            QMessageBox.StandardButton.Yes | QMessageBox.StandardButton.No,
        )
        if reply == QMessageBox.StandardButton.Yes:
            self.save_slot_requested.emit(slot)

    def _on_send_raw(self) -> None:
        text = self.raw_edit.text()
        if text:
            self.raw_command_requested.emit(text)
            self.raw_edit.clear()

    def set_state(self, state: SyncState) -> None:
        self._state = state
        connected = state is SyncState.CONNECTED
        idle = state is SyncState.DISCONNECTED
        for w in (self.sync_btn, self.load_slot_btn, self.save_slot_btn,
                  self.raw_edit, self.raw_send_btn):
            w.setEnabled(connected)
        self.port_combo.setEnabled(idle)
        self.baud_combo.setEnabled(idle)
        self.connect_btn.setText("Connect" if idle else "Disconnect")
        self.status_label.setText(_STATE_LABELS[state])
