"""Editor widgets bound to a dotted patch field path.

Each widget reports user edits through ``on_change(path, value)`` and
accepts programmatic updates via ``set_value`` without calling back.
"""
from __future__ import annotations
from typing import Callable
from PyQt6.QtWidgets import (
    QWidget, QHBoxLayout, QLabel, QComboBox, QSlider, QCheckBox, QLineEdit,
)
from PyQt6.QtCore import Qt as QtCore_Qt
from model.patch import mask_bit, set_mask_bit
from synth.params import NAME_LENGTH, ParamDef


class ParamCombo(QComboBox):
    """A combo box whose item index is the stored value."""

    def __init__(
        self,
        path: str,
        labels: tuple[str, ...] | list[str],
        on_change: Callable[[str, object], None],
        parent: QWidget | None = None,
    ) -> None:
        super().__init__(parent)
        self.path = path
        self._on_change = on_change
        self.addItems(list(labels))
        self.currentIndexChanged.connect(self._emit_change)

    def _emit_change(self, idx: int) -> None:
        if idx >= 0:
            self._on_change(self.path, idx)

    def set_value(self, value: int) -> None:
        self.blockSignals(True)
        # Out-of-range bytes from the device still show, as raw entries
        while self.count() <= value:
            self.addItem(str(self.count()))
        self.setCurrentIndex(value)
        self.blockSignals(False)


class ParamSlider(QWidget):
    """A 0-255 slider with value label."""

    def __init__(
        self,
        path: str,
        on_change: Callable[[str, object], None],
        min_val: int = 0,
        max_val: int = 255,
        parent: QWidget | None = None,
    ) -> None:
        super().__init__(parent)
        self.path = path
        self._on_change = on_change
        layout = QHBoxLayout(self)
        layout.setContentsMargins(0, 0, 0, 0)
        self._slider = QSlider(QtCore_Qt.Orientation.Horizontal)
        self._slider.setRange(min_val, max_val)
        self._slider.setValue(0)
        self._label = QLabel("0")
        self._label.setMinimumWidth(30)
        self._slider.valueChanged.connect(self._on_slider)
        layout.addWidget(self._slider, stretch=1)
        layout.addWidget(self._label)

    @property
    def value(self) -> int:
        return self._slider.value()

    def _on_slider(self, value: int) -> None:
        self._label.setText(str(value))
        self._on_change(self.path, value)

    def set_value(self, value: int) -> None:
        self._slider.blockSignals(True)
        self._slider.setValue(value)
        self._label.setText(str(value))
        self._slider.blockSignals(False)


class ParamCheck(QCheckBox):
    """On/off switch for boolean fields."""

    def __init__(
        self,
        path: str,
        on_change: Callable[[str, object], None],
        parent: QWidget | None = None,
    ) -> None:
        super().__init__(parent)
        self.path = path
        self._on_change = on_change
        self.toggled.connect(lambda checked: self._on_change(self.path, checked))

    def set_value(self, value: bool) -> None:
        self.blockSignals(True)
        self.setChecked(bool(value))
        self.blockSignals(False)


class ParamNameEdit(QLineEdit):
    """Patch name entry.  Commits on Enter or focus loss."""

    def __init__(
        self,
        path: str,
        on_change: Callable[[str, object], None],
        parent: QWidget | None = None,
    ) -> None:
        super().__init__(parent)
        self.path = path
        self._on_change = on_change
        self.setMaxLength(NAME_LENGTH)
        self.editingFinished.connect(self._commit)

    def _commit(self) -> None:
        self._on_change(self.path, self.text())

    def set_value(self, value: str) -> None:
        self.blockSignals(True)
        self.setText(value)
        self.blockSignals(False)


class ParamMask(QWidget):
    """One checkbox per bit of a bitmask field.  ``bits`` maps label to bit index."""

    def __init__(
        self,
        path: str,
        bits: dict[str, int],
        on_change: Callable[[str, object], None],
        parent: QWidget | None = None,
    ) -> None:
        super().__init__(parent)
        self.path = path
        self._on_change = on_change
        self._mask = 0
        self._boxes: dict[int, QCheckBox] = {}
        layout = QHBoxLayout(self)
        layout.setContentsMargins(0, 0, 0, 0)
        for label, bit in bits.items():
            box = QCheckBox(label)
            box.toggled.connect(lambda checked, b=bit: self._on_toggled(b, checked))
            self._boxes[bit] = box
            layout.addWidget(box)
        layout.addStretch()

    @property
    def value(self) -> int:
        return self._mask

    def _on_toggled(self, bit: int, checked: bool) -> None:
        self._mask = set_mask_bit(self._mask, bit, checked)
        self._on_change(self.path, self._mask)

    def set_value(self, value: int) -> None:
        self._mask = value
        for bit, box in self._boxes.items():
            box.blockSignals(True)
            box.setChecked(mask_bit(value, bit))
            box.blockSignals(False)


def widget_for(param: ParamDef, on_change: Callable[[str, object], None],
               mask_bits: dict[str, int] | None = None) -> QWidget:
    """Pick the editor widget that suits a parameter definition."""
    if mask_bits:
        return ParamMask(param.path, mask_bits, on_change)
    if param.kind == "text":
        return ParamNameEdit(param.path, on_change)
    if param.kind == "bool":
        return ParamCheck(param.path, on_change)
    if param.options:
        return ParamCombo(param.path, param.options, on_change)
    return ParamSlider(param.path, on_change)
