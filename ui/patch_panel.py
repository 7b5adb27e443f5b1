"""Tabbed patch editor generated from the ParamMap.

One tab per map section, one group box per sub-object (``oscillators.0``,
``effects.delay`` ...), one widget per mapped field.
"""
from __future__ import annotations
from typing import Callable
from PyQt6.QtWidgets import (
    QWidget, QVBoxLayout, QGroupBox, QLabel, QScrollArea, QGridLayout, QTabWidget,
)
from model.patch import ENVELOPE_BITS, NUM_OSCILLATORS, Patch, get_field
from synth.params import ParamDef, ParamMap
from ui.widgets import widget_for

_TAB_TITLES = {
    "global": "Global",
    "arpeggiator": "Arpeggiator",
    "sequencer": "Sequencer",
    "oscillators": "Oscillators",
    "filters": "Filters",
    "lfos": "LFOs",
    "modulation": "Modulation",
    "envelopes": "Envelopes",
    "effects": "Effects",
}

_OSC_BITS = {f"Osc {i + 1}": i for i in range(NUM_OSCILLATORS)}
_EG_BITS = {target.title(): bit for target, bit in ENVELOPE_BITS.items()}
_MASK_FIELDS = {
    "osc_sync": _OSC_BITS,
    "osc_mode": _OSC_BITS,
    "eg_loop": _EG_BITS,
    "eg_loop_seg": _EG_BITS,
    "eg_restart": _EG_BITS,
}


def _group_key(param: ParamDef) -> str:
    """Sub-object a field belongs to; top-level fields group under their section."""
    parts = param.path.split(".")
    if parts[0] == "effects" and len(parts) > 2:
        return ".".join(parts[:2])
    if parts[0] == "step_sequencer" and "step_values" in parts:
        return "step_sequencer.step_values"
    if len(parts) > 2 and parts[1].isdigit():
        return ".".join(parts[:2])
    if len(parts) > 1:
        return parts[0] if parts[0] != "envelopes" else ".".join(parts[:2])
    return param.section


def _group_title(key: str) -> str:
    parts = key.split(".")
    if len(parts) == 2 and parts[1].isdigit():
        return f"{parts[0].rstrip('s').replace('_', ' ').title()} {int(parts[1]) + 1}"
    return parts[-1].replace("_", " ").title()


def _build_group(
    title: str,
    params: list[ParamDef],
    on_change: Callable[[str, object], None],
    widgets: dict[str, QWidget],
    columns: int = 2,
) -> QGroupBox:
    group = QGroupBox(title)
    layout = QGridLayout(group)
    for i, p in enumerate(params):
        row, col = divmod(i, columns)
        layout.addWidget(QLabel(f"{p.display_name}:"), row, col * 2)
        w = widget_for(p, on_change, _MASK_FIELDS.get(p.path))
        widgets[p.path] = w
        layout.addWidget(w, row, col * 2 + 1)
    return group


class PatchPanel(QWidget):
    """Every mapped patch field, grouped into tabs by section."""

    def __init__(
        self,
        param_map: ParamMap,
        on_user_change: Callable[[str, object], None] | None = None,
        parent: QWidget | None = None,
    ) -> None:
        super().__init__(parent)
        self._param_map = param_map
        self._on_user_change = on_user_change or (lambda p, v: None)
        self._widgets: dict[str, QWidget] = {}
        self._build_ui()

    def _build_ui(self) -> None:
        layout = QVBoxLayout(self)
        layout.setContentsMargins(0, 0, 0, 0)
        self.tabs = QTabWidget()
        for section in self._param_map.sections():
            self.tabs.addTab(self._build_tab(section), _TAB_TITLES.get(section, section.title()))
        layout.addWidget(self.tabs)

    def _build_tab(self, section: str) -> QScrollArea:
        groups: dict[str, list[ParamDef]] = {}
        for p in self._param_map.by_section(section):
            groups.setdefault(_group_key(p), []).append(p)

        scroll = QScrollArea()
        scroll.setWidgetResizable(True)
        inner = QWidget()
        layout = QVBoxLayout(inner)
        for key, params in groups.items():
            columns = 4 if key.endswith("step_values") else 2
            layout.addWidget(
                _build_group(_group_title(key), params, self._on_user_change, self._widgets, columns)
            )
        layout.addStretch()
        scroll.setWidget(inner)
        return scroll

    def widget(self, path: str) -> QWidget | None:
        return self._widgets.get(path)

    def on_param_changed(self, path: str, value) -> None:
        """Update a widget from an external source without echoing the change back."""
        w = self._widgets.get(path)
        if w is not None:
            w.set_value(value)

    def load_patch(self, patch: Patch) -> None:
        for path, w in self._widgets.items():
            w.set_value(get_field(patch, path))
