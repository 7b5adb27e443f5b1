from __future__ import annotations
import threading
import time
from enum import Enum
from typing import Callable

from PyQt6.QtCore import QObject, QTimer, pyqtSignal

from core.config import AppConfig
from core.errors import (
    MalformedImage, SyncTimeout, TransportOpenFailed,
    TransportReadFailed, TransportWriteFailed,
)
from core.logger import AppLogger
from link.commands import (
    build_dump_request, build_init, build_inject, build_raw,
    build_read_slot, build_set_parameter, build_write_slot,
)
from link.framer import Ack, PatchFrame, PatchFramer
from link.transport import SerialTransport, find_xva1_port, list_serial_ports
from model.patch import Patch, default_patch, set_field
from synth.codec import decode, parameter_updates
from synth.params import IMAGE_SIZE, ParamMap


class SyncState(str, Enum):
    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    INITIALIZING = "initializing"
    SYNCING = "syncing"
    CONNECTED = "connected"


def _auto_detect_port() -> str | None:
    ports = list_serial_ports()
    idx = find_xva1_port(ports)
    return ports[idx][0] if idx is not None else None


class SyncSession(QObject):
    """Connection lifecycle and patch synchronisation with one XVA1.

    Owns the transport, the read thread, the sync timer and the current
    Patch.  State changes, received patches and terminal link errors are
    published as Qt signals; everything else goes to the AppLogger.

    Public methods must be called from the Qt thread that owns the
    session.  Bytes read on the worker thread are handed back to that
    thread through a queued signal before they reach the framer.
    """

    state_changed = pyqtSignal(object)   # SyncState
    patch_received = pyqtSignal(object)  # Patch
    link_failed = pyqtSignal(object)     # LinkError

    _chunk_received = pyqtSignal(object)  # bytes, from the read thread
    _read_failed = pyqtSignal(str)

    def __init__(
        self,
        logger: AppLogger | None = None,
        config: AppConfig | None = None,
        param_map: ParamMap | None = None,
        transport_factory: Callable[[str], object] | None = None,
        port_finder: Callable[[], str | None] | None = None,
        sync_timeout_ms: int | None = None,
        init_settle_ms: int | None = None,
        inject_delay_ms: int | None = None,
        slot_load_delay_ms: int | None = None,
        parent: QObject | None = None,
    ) -> None:
        super().__init__(parent)
        self._logger = logger or AppLogger()
        config = config or AppConfig()
        self._param_map = param_map or ParamMap()
        self._transport_factory = transport_factory or SerialTransport
        self._port_finder = port_finder or _auto_detect_port
        self._sync_timeout_ms = sync_timeout_ms if sync_timeout_ms is not None else config.sync_timeout_ms
        self._init_settle_ms = init_settle_ms if init_settle_ms is not None else config.init_settle_ms
        self._inject_delay_ms = inject_delay_ms if inject_delay_ms is not None else config.inject_delay_ms
        self._slot_load_delay_ms = (
            slot_load_delay_ms if slot_load_delay_ms is not None else config.slot_load_delay_ms
        )

        self._state = SyncState.DISCONNECTED
        self._patch: Patch = default_patch()
        self._image: bytes | None = None
        self._framer = PatchFramer()

        # Session handles, all cleared on disconnect
        self._transport = None
        self._reader: threading.Thread | None = None
        self._stop_reading: threading.Event | None = None
        self._write_lock = threading.Lock()
        self._sync_timer = QTimer(self)
        self._sync_timer.setSingleShot(True)
        self._sync_timer.timeout.connect(self._on_sync_timeout)

        self._chunk_received.connect(self._on_chunk)
        self._read_failed.connect(self._on_read_failed)

    # -- state --

    @property
    def state(self) -> SyncState:
        return self._state

    @property
    def connected(self) -> bool:
        return self._state is SyncState.CONNECTED

    @property
    def sync_pending(self) -> bool:
        return self._sync_timer.isActive()

    @property
    def patch(self) -> Patch:
        return self._patch

    @patch.setter
    def patch(self, patch: Patch) -> None:
        self._patch = patch

    @property
    def image(self) -> bytes | None:
        """The last full image received from the device, if any."""
        return self._image

    @image.setter
    def image(self, data: bytes | None) -> None:
        self._image = bytes(data) if data is not None else None

    @property
    def param_map(self) -> ParamMap:
        return self._param_map

    def _set_state(self, state: SyncState) -> None:
        if state is self._state:
            return
        self._state = state
        self.state_changed.emit(state)

    # -- lifecycle --

    def connect(self, baudrate: int, port: str | None = None) -> bool:
        if self._state is not SyncState.DISCONNECTED:
            self._logger.system(f"Cannot connect while {self._state.value}.")
            return False
        self._set_state(SyncState.CONNECTING)
        self._logger.system("Requesting serial port...")
        if port is None:
            port = self._port_finder()
        if port is None:
            self._logger.system("Port selection cancelled.")
            self._set_state(SyncState.DISCONNECTED)
            return False

        self._logger.system(f"Port {port} selected. Opening with baud rate {baudrate}...")
        transport = self._transport_factory(port)
        try:
            transport.open(baudrate)
        except TransportOpenFailed as exc:
            self._logger.error(f"Error connecting - {exc}")
            self._set_state(SyncState.DISCONNECTED)
            self.link_failed.emit(exc)
            return False
        self._logger.system("Port opened successfully.")

        self._transport = transport
        self._framer.reset()
        self._start_read_loop(transport)

        self._set_state(SyncState.INITIALIZING)
        self._logger.system("Initializing synth...")
        if not self._write(build_init(), "CMD"):
            return False
        self._pause(self._init_settle_ms)
        if not self.request_patch():
            return False
        self._logger.system("Port connected. Waiting for sync...")
        return True

    def disconnect(self) -> None:
        self._logger.system("Disconnecting...")
        self._sync_timer.stop()
        if self._stop_reading is not None:
            self._stop_reading.set()

        transport, self._transport = self._transport, None
        if transport is not None:
            # Interrupt a blocked read first; the loop exits on its own time
            try:
                transport.cancel_read()
            except Exception as exc:
                self._logger.system(f"Error cancelling read: {exc}")
            try:
                transport.close()
                self._logger.system("Port closed.")
            except Exception as exc:
                self._logger.error(f"Error closing port: {exc}")

        self._reader = None
        self._stop_reading = None
        self._framer.reset()
        self._set_state(SyncState.DISCONNECTED)
        self._logger.system("Port disconnected.")

    # -- commands --

    def request_patch(self) -> bool:
        """Ask the device for a full dump and arm the sync timeout.

        Only valid while Initializing (the connect sequence) or Connected
        (a manual resync); anywhere else the state is left alone.
        """
        if self._transport is None or self._state not in (
            SyncState.INITIALIZING, SyncState.CONNECTED,
        ):
            self._logger.system(f"Cannot request patch while {self._state.value}.")
            return False
        self._set_state(SyncState.SYNCING)
        self._logger.system("Requesting patch dump...")
        if not self._write(build_dump_request(), "CMD"):
            return False
        self._sync_timer.stop()
        self._sync_timer.start(self._sync_timeout_ms)
        return True

    def send_parameter(self, param_id: int, value: int) -> bool:
        return self._write(build_set_parameter(param_id, value), "PARAM")

    def send_raw(self, command: str) -> bool:
        return self._write(build_raw(command), "RAW")

    def inject_patch(self, data: bytes) -> bool:
        if len(data) != IMAGE_SIZE:
            exc = MalformedImage(
                f"Cannot inject patch. Data must be {IMAGE_SIZE} bytes, got {len(data)}"
            )
            self._logger.error(str(exc))
            return False
        self._logger.system("Injecting patch data into active memory...")
        if not self._write(build_inject(), "CMD"):
            return False
        # The device needs a moment to switch into receive mode
        self._pause(self._inject_delay_ms)
        return self._write(bytes(data), "PATCH")

    def read_slot(self, slot: int) -> bool:
        self._logger.system(f"Requesting load from EEPROM slot {slot}...")
        if not self._write(build_read_slot(slot), "CMD"):
            return False
        self._pause(self._slot_load_delay_ms)
        return self.request_patch()

    def write_slot(self, slot: int) -> bool:
        self._logger.system(f"Requesting save to EEPROM slot {slot}...")
        return self._write(build_write_slot(slot), "CMD")

    def set_param(self, path: str, value) -> int:
        """Apply a single field change to the patch and, when connected, to the device.

        Returns the number of set-parameter commands written.
        """
        set_field(self._patch, path, value)
        if not self.connected:
            return 0
        sent = 0
        for address, byte in parameter_updates(path, value, self._param_map):
            if not self.send_parameter(address, byte):
                break
            sent += 1
        return sent

    # -- internals --

    def _pause(self, ms: int) -> None:
        if ms > 0:
            time.sleep(ms / 1000)

    def _write(self, data: bytes, kind: str) -> bool:
        transport = self._transport
        if transport is None:
            self._logger.system("Write failed. Writer not available.")
            return False
        try:
            with self._write_lock:
                transport.write(data)
        except TransportWriteFailed as exc:
            self._logger.error(f"Error writing: {exc}")
            self.disconnect()
            self.link_failed.emit(exc)
            return False
        if kind == "PATCH":
            self._logger.tx(f"Sent {len(data)}-byte patch data")
        elif kind == "RAW":
            self._logger.tx(data.decode("utf-8", errors="replace"), "RAW")
        else:
            self._logger.tx(data, kind)
        return True

    def _start_read_loop(self, transport) -> None:
        stop = threading.Event()
        self._stop_reading = stop
        self._reader = threading.Thread(
            target=self._read_loop, args=(transport, stop), daemon=True,
        )
        self._reader.start()

    def _read_loop(self, transport, stop: threading.Event) -> None:
        """Worker thread: pull chunks until the session stops it."""
        self._logger.system("Read loop started.")
        while not stop.is_set():
            try:
                chunk = transport.read()
            except TransportReadFailed as exc:
                # A read interrupted by disconnect is a normal exit
                if not stop.is_set():
                    self._read_failed.emit(str(exc))
                break
            if chunk and not stop.is_set():
                self._chunk_received.emit(bytes(chunk))
        self._logger.system("Read loop ended.")

    def _on_chunk(self, chunk: bytes) -> None:
        if self._transport is None:
            return
        self._logger.rx(chunk, f"len: {len(chunk)}")
        for event in self._framer.feed(chunk):
            if isinstance(event, Ack):
                self._logger.rx("ACK", "0x00")
            elif isinstance(event, PatchFrame):
                self._on_patch_frame(event.data)

    def _on_patch_frame(self, data: bytes) -> None:
        self._logger.system(f"Full patch received ({len(data)} bytes). Processing...")
        self._sync_timer.stop()
        self._patch = decode(data, self._patch, self._param_map)
        self._image = data
        if self._state is SyncState.SYNCING:
            self._set_state(SyncState.CONNECTED)
        self._logger.system("Synthesizer state synced successfully!")
        self.patch_received.emit(self._patch)

    def _on_sync_timeout(self) -> None:
        if self._state is not SyncState.SYNCING:
            return
        exc = SyncTimeout("Sync timed out. The synth did not respond.")
        self._logger.error(str(exc))
        self._logger.system(
            "Ensure synth is powered and in normal operating mode (not firmware "
            "update mode). Try a different baud rate if needed."
        )
        # Observers may run a nested event loop, so the link is closed first
        self.disconnect()
        self.link_failed.emit(exc)

    def _on_read_failed(self, message: str) -> None:
        if self._transport is None:
            return
        exc = TransportReadFailed(message)
        self._logger.error(f"Error in read loop: {message}")
        self.disconnect()
        self.link_failed.emit(exc)
