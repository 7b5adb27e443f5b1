import pytest
import serial
from unittest.mock import MagicMock, PropertyMock, patch
from core.errors import TransportOpenFailed, TransportReadFailed, TransportWriteFailed
from link.transport import FTDI_VENDOR_ID, SerialTransport, find_xva1_port, list_serial_ports

def test_find_xva1_port_prefers_ftdi_vendor():
    ports = [("/dev/ttyS0", "n/a", None), ("/dev/ttyUSB0", "USB Serial", FTDI_VENDOR_ID)]
    assert find_xva1_port(ports) == 1

def test_find_xva1_port_falls_back_to_description():
    ports = [("COM1", "Communications Port", None), ("COM4", "FT232R USB UART", None)]
    assert find_xva1_port(ports) == 1

def test_find_xva1_port_none():
    assert find_xva1_port([("COM1", "Communications Port", None)]) is None

def test_list_serial_ports():
    info = MagicMock(device="/dev/ttyUSB0", description="FT232R", vid=FTDI_VENDOR_ID)
    with patch("link.transport.list_ports.comports", return_value=[info]):
        assert list_serial_ports() == [("/dev/ttyUSB0", "FT232R", FTDI_VENDOR_ID)]

def test_open_configures_8n1():
    with patch("link.transport.serial.Serial") as mock_serial:
        t = SerialTransport("/dev/ttyUSB0")
        t.open(500000)
    kwargs = mock_serial.call_args.kwargs
    assert kwargs["port"] == "/dev/ttyUSB0"
    assert kwargs["baudrate"] == 500000
    assert kwargs["bytesize"] == serial.EIGHTBITS
    assert kwargs["parity"] == serial.PARITY_NONE
    assert kwargs["stopbits"] == serial.STOPBITS_ONE
    assert kwargs["rtscts"] is False

def test_open_failure_is_wrapped():
    with patch("link.transport.serial.Serial", side_effect=serial.SerialException("busy")):
        t = SerialTransport("/dev/ttyUSB0")
        with pytest.raises(TransportOpenFailed, match="busy"):
            t.open(12000000)
    assert not t.is_open

def test_read_and_write():
    with patch("link.transport.serial.Serial") as mock_serial:
        port = mock_serial.return_value
        port.in_waiting = 3
        port.read.return_value = b"abc"
        t = SerialTransport("/dev/ttyUSB0")
        t.open(115200)
        assert t.read() == b"abc"
        port.read.assert_called_with(3)
        t.write(b"d")
        port.write.assert_called_with(b"d")
        port.flush.assert_called()

def test_io_errors_are_wrapped():
    with patch("link.transport.serial.Serial") as mock_serial:
        port = mock_serial.return_value
        port.in_waiting = 0
        port.read.side_effect = serial.SerialException("gone")
        port.write.side_effect = serial.SerialException("gone")
        t = SerialTransport("/dev/ttyUSB0")
        t.open(115200)
        with pytest.raises(TransportReadFailed):
            t.read()
        with pytest.raises(TransportWriteFailed):
            t.write(b"i")

def test_io_before_open_fails():
    t = SerialTransport("/dev/ttyUSB0")
    with pytest.raises(TransportReadFailed):
        t.read()
    with pytest.raises(TransportWriteFailed):
        t.write(b"i")

def test_close_is_idempotent():
    with patch("link.transport.serial.Serial") as mock_serial:
        t = SerialTransport("/dev/ttyUSB0")
        t.open(115200)
        t.close()
        t.close()
    mock_serial.return_value.close.assert_called_once()
    assert not t.is_open

def test_close_during_read_does_not_break_reader():
    with patch("link.transport.serial.Serial") as mock_serial:
        port = mock_serial.return_value
        port.read.return_value = b""
        t = SerialTransport("/dev/ttyUSB0")
        t.open(115200)

        # close() from another thread lands between the open check and the read
        def closing_in_waiting():
            t.close()
            return 0

        type(port).in_waiting = PropertyMock(side_effect=closing_in_waiting)
        assert t.read() == b""
        port.read.assert_called_with(1)
    assert not t.is_open
