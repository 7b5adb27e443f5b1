import sys
import pytest
from PyQt6.QtWidgets import QApplication

@pytest.fixture(scope="module")
def app():
    return QApplication.instance() or QApplication(sys.argv)


from core.logger import AppLogger, hex_bytes


def test_logger_emits_messages(app):
    logger = AppLogger()
    received = []
    logger.message_logged.connect(lambda cat, msg: received.append((cat, msg)))
    logger.log("SYSTEM", "Port opened successfully.")
    assert received == [("SYSTEM", "Port opened successfully.")]


def test_logger_categories(app):
    logger = AppLogger()
    received = []
    logger.message_logged.connect(lambda cat, msg: received.append(cat))
    logger.system("Initializing synth...")
    logger.tx("64 (CMD)")
    logger.rx("00 (len: 1)")
    logger.error("Sync timed out.")
    assert received == ["SYSTEM", "TX", "RX", "ERROR"]


def test_logger_echoes_to_stdout(app, capsys):
    AppLogger().tx("73 0a 40 (PARAM)")
    assert "[TX] 73 0a 40 (PARAM)" in capsys.readouterr().out


def test_traffic_bytes_are_hex_formatted(app):
    logger = AppLogger()
    received = []
    logger.message_logged.connect(lambda cat, msg: received.append((cat, msg)))
    logger.tx(bytes([0x73, 0xFF, 0x2C, 0x0A]), "PARAM")
    logger.rx(b"\x00", "len: 1")
    logger.tx("help", "RAW")
    logger.rx(bytearray(b"\x01\x02"))
    assert received == [
        ("TX", "73 ff 2c 0a (PARAM)"),
        ("RX", "00 (len: 1)"),
        ("TX", "help (RAW)"),
        ("RX", "01 02"),
    ]


def test_hex_bytes():
    assert hex_bytes(b"") == ""
    assert hex_bytes(bytes([0x73, 0x0A, 0xFF])) == "73 0a ff"
