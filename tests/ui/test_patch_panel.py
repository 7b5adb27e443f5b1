import pytest
from PyQt6.QtWidgets import QApplication
from model.patch import Patch
from synth.params import ParamMap
from ui.patch_panel import PatchPanel
from ui.widgets import ParamMask

@pytest.fixture(scope="module")
def app():
    return QApplication.instance() or QApplication([])

@pytest.fixture(scope="module")
def pm():
    return ParamMap()

def test_panel_has_a_tab_per_section(app, pm):
    panel = PatchPanel(pm)
    titles = [panel.tabs.tabText(i) for i in range(panel.tabs.count())]
    assert titles == [
        "Global", "Arpeggiator", "Sequencer", "Oscillators", "Filters",
        "LFOs", "Modulation", "Envelopes", "Effects",
    ]

def test_panel_has_a_widget_per_mapped_field(app, pm):
    panel = PatchPanel(pm)
    for path in pm.paths():
        assert panel.widget(path) is not None, path
    assert isinstance(panel.widget("osc_sync"), ParamMask)

def test_load_patch_updates_widgets_silently(app, pm):
    changes = []
    panel = PatchPanel(pm, on_user_change=lambda p, v: changes.append(p))
    patch = Patch(name="Strings")
    patch.oscillators[2].waveform = 4
    patch.effects.distortion.on = True
    patch.volume = 99
    panel.load_patch(patch)
    assert panel.widget("name").text() == "Strings"
    assert panel.widget("oscillators.2.waveform").currentIndex() == 4
    assert panel.widget("effects.distortion.on").isChecked()
    assert panel.widget("volume").value == 99
    assert changes == []

def test_user_change_triggers_callback(app, pm):
    changes = []
    panel = PatchPanel(pm, on_user_change=lambda p, v: changes.append((p, v)))
    panel.widget("filter_type").setCurrentIndex(3)
    assert changes == [("filter_type", 3)]

def test_on_param_changed_does_not_trigger_callback(app, pm):
    changes = []
    panel = PatchPanel(pm, on_user_change=lambda p, v: changes.append(p))
    panel.on_param_changed("lfos.1.speed", 64)
    panel.on_param_changed("unknown.path", 1)
    assert panel.widget("lfos.1.speed").value == 64
    assert changes == []
