import sys
import pytest
from unittest.mock import MagicMock, patch
from PyQt6.QtWidgets import QApplication
from core.config import AppConfig
from link.session import SyncState
from model.patch import Patch
from synth.codec import encode

@pytest.fixture(scope="module")
def app():
    return QApplication.instance() or QApplication(sys.argv)

@pytest.fixture
def main_window(app, tmp_path):
    with patch("ui.connection_panel.list_serial_ports", return_value=[]):
        from ui.main_window import MainWindow
        win = MainWindow(config=AppConfig(path=tmp_path / "config.json"))
    return win

def _image(name: str) -> bytes:
    p = Patch(name=name)
    p.lfos[0].speed = 33
    return encode(p)

def test_window_shows_session_patch(main_window):
    assert main_window._patch_panel.widget("name").text() == "Default Patch"
    assert main_window.session.state is SyncState.DISCONNECTED

def test_user_change_edits_session_patch(main_window):
    main_window._patch_panel.widget("volume").set_value(0)
    main_window._patch_panel.widget("volume")._slider.setValue(77)
    assert main_window.session.patch.volume == 77

def test_load_file_decodes_into_patch(main_window, tmp_path):
    path = tmp_path / "pad.xva1"
    path.write_bytes(_image("Loaded Pad"))
    assert main_window.load_file(path)
    assert main_window.session.patch.name == "Loaded Pad"
    assert main_window.session.patch.lfos[0].speed == 33
    assert main_window.session.image == path.read_bytes()
    assert main_window._patch_panel.widget("name").text() == "Loaded Pad"

def test_load_file_rejects_wrong_size(main_window, tmp_path, monkeypatch):
    shown = []
    monkeypatch.setattr(
        "ui.main_window.QMessageBox.warning",
        lambda *a, **kw: shown.append(a[2]),
    )
    path = tmp_path / "short.xva1"
    path.write_bytes(bytes(511))
    before = main_window.session.patch.copy()
    assert not main_window.load_file(path)
    assert shown == ["Invalid patch file. Expected 512 bytes, got 511."]
    assert main_window.session.patch == before

def test_load_file_injects_when_connected(main_window, tmp_path, monkeypatch):
    path = tmp_path / "pad.xva1"
    data = _image("Live")
    path.write_bytes(data)
    inject = MagicMock(return_value=True)
    monkeypatch.setattr(main_window.session, "inject_patch", inject)
    monkeypatch.setattr(type(main_window.session), "connected", property(lambda self: True))
    main_window.load_file(path)
    inject.assert_called_once_with(data)

def test_save_file_uses_last_image_as_template(main_window, tmp_path):
    template = bytearray(_image("Template"))
    template[8] = 0x5A  # reserved byte
    src = tmp_path / "src.xva1"
    src.write_bytes(bytes(template))
    main_window.load_file(src)
    main_window.session.set_param("name", "Edited")
    out = tmp_path / "out.xva1"
    assert main_window.save_file(out)
    data = out.read_bytes()
    assert len(data) == 512
    assert data[8] == 0x5A
    assert data[480:486] == b"Edited"

def test_raw_command_ignored_when_offline(main_window, monkeypatch):
    send = MagicMock()
    monkeypatch.setattr(main_window.session, "send_raw", send)
    main_window._on_raw_command("help")
    send.assert_not_called()

def test_link_failure_shows_alert(main_window, monkeypatch):
    shown = []
    monkeypatch.setattr(
        "ui.main_window.QMessageBox.warning",
        lambda *a, **kw: shown.append(a[2]),
    )
    from core.errors import SyncTimeout
    main_window.session.link_failed.emit(SyncTimeout("Sync timed out. The synth did not respond."))
    assert shown == ["Sync timed out. The synth did not respond."]
