import pytest
from PyQt6.QtWidgets import QApplication
from ui.log_panel import LogPanel

@pytest.fixture(scope="module")
def app():
    a = QApplication.instance() or QApplication([])
    yield a

def test_log_panel_appends_messages(app):
    panel = LogPanel()
    panel.append_message("TX", "64 (CMD)")
    panel.append_message("SYSTEM", "Waiting for sync...")
    app.processEvents()  # flush queued invokeMethod calls
    text = panel.log_text.toPlainText()
    assert "[TX] 64 (CMD)" in text
    assert "Waiting for sync..." in text

def test_log_panel_filters_by_category(app):
    panel = LogPanel()
    panel.append_message("RX", "00 (len: 1)")
    panel.append_message("ERROR", "Sync timed out.")
    app.processEvents()
    panel.filter_combo.setCurrentIndex(panel.filter_combo.findData("ERROR"))
    text = panel.log_text.toPlainText()
    assert "Sync timed out." in text
    assert "00 (len: 1)" not in text
    panel.filter_combo.setCurrentIndex(0)
    assert "00 (len: 1)" in panel.log_text.toPlainText()

def test_log_panel_clear(app):
    panel = LogPanel()
    panel.append_message("SYSTEM", "Port closed.")
    app.processEvents()
    panel.clear_btn.click()
    assert panel.log_text.toPlainText() == ""
    panel.filter_combo.setCurrentIndex(1)
    assert panel.log_text.toPlainText() == ""

def test_log_panel_copy_button_exists(app):
    panel = LogPanel()
    assert panel.copy_btn is not None
