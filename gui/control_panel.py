# gui/control_panel.py

from PyQt5.QtWidgets import (QWidget, QVBoxLayout, QHBoxLayout, QLabel, QSlider,
                              QGroupBox, QSpacerItem, QSizePolicy, QSpinBox, QComboBox,
                              QPushButton, QButtonGroup)
from PyQt5.QtCore import Qt, pyqtSignal

from processing.effects import (EFFECTS, EFFECT_SMEAR, EFFECT_BLUR, EFFECT_PIXELATE, QUALITY_LEVELS,
                                QUALITY_RAW, QUALITY_BLOCK_AVERAGE, QUALITY_GAUSSIAN)
from processing.session import MIN_BRUSH, MAX_BRUSH, DEFAULT_BRUSH_SIZE

EFFECT_LABELS = {
    EFFECT_SMEAR: "Smear",
    EFFECT_BLUR: "Blur",
    EFFECT_PIXELATE: "Pixelate",
}

QUALITY_LABELS = {
    QUALITY_RAW: "Light",
    QUALITY_BLOCK_AVERAGE: "Medium",
    QUALITY_GAUSSIAN: "Heavy",
}


class ControlPanel(QWidget):
    parameters_changed = pyqtSignal(dict)

    def __init__(self, max_brush: int = MAX_BRUSH, parent=None):
        super().__init__(parent)

        self._current_params = {}
        self._parameter_widgets = {}

        self.main_layout = QVBoxLayout(self)
        self.main_layout.setAlignment(Qt.AlignTop)

        # --- Effect Group ---
        self.effect_group = QGroupBox("Effect")
        self.effect_layout = QVBoxLayout(self.effect_group)

        self._effect_combo = QComboBox()
        for effect in EFFECTS:
            self._effect_combo.addItem(EFFECT_LABELS[effect], effect)
        self.effect_layout.addWidget(self._effect_combo)

        # Stretch level only affects Smear.
        self.quality_label = QLabel("Stretch Level:")
        self.effect_layout.addWidget(self.quality_label)

        quality_hbox = QHBoxLayout()
        self._quality_buttons = QButtonGroup(self)
        for level in QUALITY_LEVELS:
            button = QPushButton(QUALITY_LABELS[level])
            button.setCheckable(True)
            button.setToolTip(f"Stretch Level {level}")
            self._quality_buttons.addButton(button, level)
            quality_hbox.addWidget(button)
        self.effect_layout.addLayout(quality_hbox)

        self.main_layout.addWidget(self.effect_group)

        # --- Brush Group ---
        self.brush_group = QGroupBox("Brush")
        self.brush_layout = QVBoxLayout(self.brush_group)
        self._create_parameter_control("Size", MIN_BRUSH, max_brush, min(DEFAULT_BRUSH_SIZE, max_brush), 'size', self.brush_layout)
        self.brush_hint_label = QLabel("Hold Shift and scroll over the image to resize.")
        self.brush_hint_label.setWordWrap(True)
        self.brush_layout.addWidget(self.brush_hint_label)
        self.main_layout.addWidget(self.brush_group)

        self.main_layout.addSpacerItem(QSpacerItem(20, 40, QSizePolicy.Minimum, QSizePolicy.Expanding))

        self._current_params['effect'] = EFFECT_SMEAR
        self._current_params['quality'] = QUALITY_BLOCK_AVERAGE
        self._quality_buttons.button(QUALITY_BLOCK_AVERAGE).setChecked(True)

        self._connect_signals()

    def _create_parameter_control(self, label_text: str, min_val: int, max_val: int, default_val: int, param_name: str, parent_layout: QVBoxLayout):
        """Helper method to create a parameter control (Slider + SpinBox)."""
        hbox = QHBoxLayout()
        label = QLabel(label_text + ":")
        label.setFixedWidth(60)
        label.setAlignment(Qt.AlignRight | Qt.AlignVCenter)

        slider = QSlider(Qt.Horizontal)
        slider.setRange(min_val, max_val)
        slider.setValue(default_val)
        slider.setSingleStep(1)
        slider.setPageStep(5)

        spinbox = QSpinBox()
        spinbox.setRange(min_val, max_val)
        spinbox.setValue(default_val)
        spinbox.setFixedWidth(60)

        slider.valueChanged.connect(spinbox.setValue)
        spinbox.valueChanged.connect(slider.setValue)

        self._parameter_widgets[param_name] = {'slider': slider, 'spinbox': spinbox, 'default': default_val}
        self._current_params[param_name] = default_val

        hbox.addWidget(label)
        hbox.addWidget(slider, 1)
        hbox.addWidget(spinbox)

        parent_layout.addLayout(hbox)

        slider.valueChanged.connect(lambda value: self._on_parameter_changed(param_name, value))

    def _connect_signals(self):
        self._effect_combo.currentIndexChanged.connect(
            lambda index: self._on_parameter_changed('effect', self._effect_combo.itemData(index)))
        self._quality_buttons.buttonClicked[int].connect(
            lambda level: self._on_parameter_changed('quality', level))

    def _on_parameter_changed(self, param_name: str, value):
        """Internal slot: Updates param dict and emits signal."""
        if param_name == 'effect':
            self._update_quality_enabled(value)
        if self._current_params.get(param_name) == value:
            return
        self._current_params[param_name] = value
        self.parameters_changed.emit(self._current_params.copy())

    def _update_quality_enabled(self, effect: str):
        enabled = effect == EFFECT_SMEAR
        self.quality_label.setEnabled(enabled)
        for button in self._quality_buttons.buttons():
            button.setEnabled(enabled)

    def set_brush_size(self, size: int):
        """Reflects a brush size changed elsewhere (e.g. Shift+wheel) without re-emitting."""
        widgets = self._parameter_widgets['size']
        self._current_params['size'] = size
        widgets['slider'].blockSignals(True)
        widgets['spinbox'].blockSignals(True)
        widgets['slider'].setValue(size)
        widgets['spinbox'].setValue(size)
        widgets['slider'].blockSignals(False)
        widgets['spinbox'].blockSignals(False)

    def get_current_parameters(self) -> dict:
        """Returns current brush parameter values."""
        return self._current_params.copy()
