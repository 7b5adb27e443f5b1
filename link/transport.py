from __future__ import annotations
import serial
from serial.tools import list_ports
from core.errors import TransportOpenFailed, TransportReadFailed, TransportWriteFailed

FTDI_VENDOR_ID = 0x0403
BAUD_RATES = [12000000, 500000, 115200, 57600, 38400, 9600]
READ_TIMEOUT_S = 0.1


def list_serial_ports() -> list[tuple[str, str, int | None]]:
    """Return (device, description, usb vendor id) for every serial port."""
    return [(p.device, p.description, p.vid) for p in list_ports.comports()]


def find_xva1_port(ports: list[tuple[str, str, int | None]]) -> int | None:
    # The XVA1 talks through an FTDI USB-serial bridge
    for i, (_, _, vid) in enumerate(ports):
        if vid == FTDI_VENDOR_ID:
            return i
    for i, (_, description, _) in enumerate(ports):
        if "FTDI" in description or "FT232" in description:
            return i
    return None


class SerialTransport:
    """Byte pipe to the synth over pyserial.

    ``read()`` returns whatever arrived (or ``b""`` after a short timeout)
    so the session's read loop can poll its stop flag between reads.
    """

    def __init__(self, port: str) -> None:
        self._port = port
        self._serial: serial.Serial | None = None

    @property
    def port(self) -> str:
        return self._port

    @property
    def is_open(self) -> bool:
        return self._serial is not None and self._serial.is_open

    def open(self, baudrate: int) -> None:
        try:
            self._serial = serial.Serial(
                port=self._port,
                baudrate=baudrate,
                bytesize=serial.EIGHTBITS,
                parity=serial.PARITY_NONE,
                stopbits=serial.STOPBITS_ONE,
                rtscts=False,
                xonxoff=False,
                timeout=READ_TIMEOUT_S,
            )
        except (serial.SerialException, ValueError) as exc:
            self._serial = None
            raise TransportOpenFailed(
                f"Could not open serial port '{self._port}' at {baudrate} baud: {exc}"
            ) from exc

    def read(self) -> bytes:
        ser = self._serial
        if ser is None:
            raise TransportReadFailed("Serial port is not open")
        try:
            return ser.read(ser.in_waiting or 1)
        except (serial.SerialException, OSError, TypeError) as exc:
            raise TransportReadFailed(str(exc)) from exc

    def write(self, data: bytes) -> None:
        ser = self._serial
        if ser is None:
            raise TransportWriteFailed("Serial port is not open")
        try:
            ser.write(data)
            ser.flush()
        except (serial.SerialException, OSError) as exc:
            raise TransportWriteFailed(str(exc)) from exc

    def cancel_read(self) -> None:
        ser = self._serial
        if ser is not None and hasattr(ser, "cancel_read"):
            ser.cancel_read()

    def close(self) -> None:
        ser, self._serial = self._serial, None
        if ser is not None:
            ser.close()
