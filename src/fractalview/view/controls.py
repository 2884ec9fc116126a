"""
Parameter Control Panel
"""
from __future__ import annotations

from typing import Any, Optional

from PySide6.QtCore import Qt, Signal
from PySide6.QtWidgets import (
    QCheckBox, QFormLayout, QGroupBox, QLabel, QLineEdit, QSlider, QVBoxLayout, QWidget
)

from fractalview import config
from fractalview.model.parameters import Field


class ControlPanel(QWidget):
    """
    Seed, noise, decay, pitch, yaw, iterations and bounded controls.

    The panel does not interpret values; every edit is forwarded as
    ``parameter_edited(field_name, raw_value)``.
    """
    # Signal emitted for every edit, passing the field name and the raw value
    parameter_edited = Signal(str, object)

    def __init__(self, point_count: int, parent: Optional[QWidget] = None) -> None:
        super().__init__(parent)

        layout = QVBoxLayout(self)

        # --- Generation Group ---
        grp_gen = QGroupBox("Generation")
        form_gen = QFormLayout(grp_gen)

        self.seed_edit = QLineEdit(config.DEFAULT_SEED)
        self.seed_edit.setPlaceholderText("unsigned 64-bit integer")
        self.seed_edit.textChanged.connect(lambda text: self._emit(Field.SEED, text))
        form_gen.addRow("Seed:", self.seed_edit)

        self.noise_edit = QLineEdit(config.DEFAULT_NOISE)
        self.noise_edit.textChanged.connect(lambda text: self._emit(Field.NOISE, text))
        form_gen.addRow("Noise:", self.noise_edit)

        self.decay_slider = self._make_slider(0, config.DECAY_MAX, config.DEFAULT_DECAY_RAW)
        self.decay_slider.valueChanged.connect(lambda v: self._emit(Field.DECAY, v))
        form_gen.addRow(f"Decay (/{config.DECAY_MAX}):", self.decay_slider)

        layout.addWidget(grp_gen)

        # --- View Group ---
        grp_view = QGroupBox("View")
        form_view = QFormLayout(grp_view)

        self.pitch_slider = self._make_slider(-config.ANGLE_RANGE, config.ANGLE_RANGE, config.DEFAULT_PITCH_RAW)
        self.pitch_slider.valueChanged.connect(lambda v: self._emit(Field.PITCH, v))
        form_view.addRow("Pitch:", self.pitch_slider)

        self.yaw_slider = self._make_slider(-config.ANGLE_RANGE, config.ANGLE_RANGE, config.DEFAULT_YAW_RAW)
        self.yaw_slider.valueChanged.connect(lambda v: self._emit(Field.YAW, v))
        form_view.addRow("Yaw:", self.yaw_slider)

        self.iterations_slider = self._make_slider(0, point_count, point_count)
        self.iterations_slider.valueChanged.connect(lambda v: self._emit(Field.ITERATIONS, v))
        form_view.addRow("Points:", self.iterations_slider)

        self.bound_check = QCheckBox("")
        self.bound_check.setChecked(config.DEFAULT_BOUNDED)
        self.bound_check.toggled.connect(lambda checked: self._emit(Field.BOUNDED, checked))
        form_view.addRow("Fit to canvas:", self.bound_check)

        layout.addWidget(grp_view)

        # --- Status Info ---
        self.lbl_status = QLabel("Loading...")
        self.lbl_status.setAlignment(Qt.AlignmentFlag.AlignCenter)
        self.lbl_status.setWordWrap(True)
        self.lbl_status.setStyleSheet("color: gray;")
        layout.addWidget(self.lbl_status)

        layout.addStretch()

    # --- PROPERTIES ---

    @property
    def status_message(self) -> str:
        return self.lbl_status.text()

    @status_message.setter
    def status_message(self, text: str) -> None:
        self.lbl_status.setText(text)
        self.lbl_status.setStyleSheet("color: gray;")

    def show_warning(self, text: str) -> None:
        self.lbl_status.setText(text)
        self.lbl_status.setStyleSheet("color: orange; font-weight: bold;")

    # --- HELPERS ---

    @staticmethod
    def _make_slider(minimum: int, maximum: int, value: int) -> QSlider:
        slider = QSlider(Qt.Orientation.Horizontal)
        slider.setRange(minimum, maximum)
        slider.setValue(value)
        return slider

    def _emit(self, field: Field, raw: Any) -> None:
        self.parameter_edited.emit(field.value, raw)
