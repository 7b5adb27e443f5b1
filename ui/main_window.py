from __future__ import annotations
from pathlib import Path
from PyQt6.QtWidgets import (
    QMainWindow, QWidget, QHBoxLayout, QSplitter, QMessageBox, QFileDialog,
)
from PyQt6.QtCore import Qt
from core.config import AppConfig, documents_dir
from core.errors import MalformedImage
from core.logger import AppLogger
from link.session import SyncSession, SyncState
from model.patch import Patch
from model.patch_file import PATCH_FILE_SUFFIX, load_patch_file, save_patch_file, suggested_filename
from synth.codec import decode, encode
from synth.params import ParamMap
from ui.connection_panel import ConnectionPanel
from ui.log_panel import LogPanel
from ui.patch_panel import PatchPanel

_FILE_FILTER = f"XVA1 Patch (*{PATCH_FILE_SUFFIX});;All Files (*)"


class MainWindow(QMainWindow):
    def __init__(
        self,
        config: AppConfig | None = None,
        logger: AppLogger | None = None,
        session: SyncSession | None = None,
    ) -> None:
        super().__init__()
        self.setWindowTitle("XVA1 Patch Editor")
        self.resize(1100, 900)
        self._config = config or AppConfig()
        self._logger = logger or AppLogger()
        self._param_map = ParamMap()
        self._session = session or SyncSession(
            logger=self._logger, config=self._config, param_map=self._param_map, parent=self,
        )
        self._build_ui()
        self._connect_signals()
        self._patch_panel.load_patch(self._session.patch)

    def _build_ui(self) -> None:
        central = QWidget()
        self.setCentralWidget(central)
        layout = QHBoxLayout(central)

        h_splitter = QSplitter(Qt.Orientation.Horizontal)
        self._patch_panel = PatchPanel(self._param_map, on_user_change=self._on_user_change)
        self._connection_panel = ConnectionPanel(config=self._config)
        h_splitter.addWidget(self._patch_panel)
        h_splitter.addWidget(self._connection_panel)
        h_splitter.setSizes([800, 300])

        self._log_panel = LogPanel()

        v_splitter = QSplitter(Qt.Orientation.Vertical)
        v_splitter.addWidget(h_splitter)
        v_splitter.addWidget(self._log_panel)
        v_splitter.setSizes([720, 180])

        layout.addWidget(v_splitter)

    def _connect_signals(self) -> None:
        self._logger.message_logged.connect(self._log_panel.append_message)
        self._session.state_changed.connect(self._on_state_changed)
        self._session.patch_received.connect(self._on_patch_received)
        self._session.link_failed.connect(self._on_link_failed)

        cp = self._connection_panel
        cp.connect_requested.connect(self._on_connect_requested)
        cp.disconnect_requested.connect(self._session.disconnect)
        cp.sync_requested.connect(self._session.request_patch)
        cp.load_slot_requested.connect(self._session.read_slot)
        cp.save_slot_requested.connect(self._session.write_slot)
        cp.raw_command_requested.connect(self._on_raw_command)
        cp.load_file_requested.connect(self._on_load_file)
        cp.save_file_requested.connect(self._on_save_file)

    @property
    def session(self) -> SyncSession:
        return self._session

    # -- session events --

    def _on_connect_requested(self, port: str, baudrate: int) -> None:
        self._session.connect(baudrate, port or None)

    def _on_state_changed(self, state: SyncState) -> None:
        self._connection_panel.set_state(state)
        self.statusBar().showMessage(self._connection_panel.status_label.text())

    def _on_patch_received(self, patch: Patch) -> None:
        self._patch_panel.load_patch(patch)

    def _on_link_failed(self, exc: Exception) -> None:
        QMessageBox.warning(self, "Connection Lost", str(exc))

    def _on_user_change(self, path: str, value) -> None:
        self._session.set_param(path, value)

    def _on_raw_command(self, text: str) -> None:
        if self._session.connected:
            self._session.send_raw(text)

    # -- files --

    def _start_dir(self) -> str:
        return self._config.patch_dir or documents_dir()

    def load_file(self, path: Path) -> bool:
        try:
            data = load_patch_file(path)
        except MalformedImage as exc:
            self._logger.error(str(exc))
            QMessageBox.warning(self, "Invalid Patch File", str(exc))
            return False
        except OSError as exc:
            self._logger.error(f"Could not read {path}: {exc}")
            QMessageBox.warning(self, "Load Failed", str(exc))
            return False

        self._logger.system(f"Loaded {len(data)}-byte patch file {Path(path).name}.")
        self._session.patch = decode(data, self._session.patch, self._param_map)
        self._session.image = data
        self._patch_panel.load_patch(self._session.patch)
        if self._session.connected:
            self._session.inject_patch(data)
        return True

    def save_file(self, path: Path) -> bool:
        image = encode(self._session.patch, template=self._session.image, param_map=self._param_map)
        try:
            save_patch_file(path, image)
        except OSError as exc:
            self._logger.error(f"Could not write {path}: {exc}")
            QMessageBox.warning(self, "Save Failed", str(exc))
            return False
        self._logger.system(f"Saved patch to {path}.")
        return True

    def _on_load_file(self) -> None:
        path, _ = QFileDialog.getOpenFileName(self, "Load Patch", self._start_dir(), _FILE_FILTER)
        if path:
            self._remember_dir(path)
            self.load_file(Path(path))

    def _on_save_file(self) -> None:
        start = str(Path(self._start_dir()) / suggested_filename(self._session.patch))
        path, _ = QFileDialog.getSaveFileName(self, "Save Patch", start, _FILE_FILTER)
        if path:
            self._remember_dir(path)
            self.save_file(Path(path))

    def _remember_dir(self, path: str) -> None:
        self._config.patch_dir = str(Path(path).parent)
        self._config.save()

    def closeEvent(self, event) -> None:  # noqa: N802
        if self._session.state is not SyncState.DISCONNECTED:
            self._session.disconnect()
        super().closeEvent(event)
