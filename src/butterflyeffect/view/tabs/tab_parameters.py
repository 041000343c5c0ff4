import logging

from PySide6.QtWidgets import (
    QWidget, QVBoxLayout, QLabel, QPushButton, QSlider, QHBoxLayout, QGroupBox, QFormLayout, QStyle
)
from PySide6.QtCore import Qt, Signal

from butterflyeffect.model.parameters import ParameterName, PARAMETER_BOUNDS, PARAMETER_LABELS
from butterflyeffect.model.state import ScenarioSession
from butterflyeffect.view.widgets.timeline_chart import TimelineChart

logger = logging.getLogger(__name__)

SLIDER_RESOLUTION = 10  # slider ticks per unit (0.1 step)


class ParametersControlPanel(QWidget):
    # Signal: (parameter name, new value)
    parameter_changed = Signal(str, float)
    run_requested = Signal()

    def __init__(self, session: ScenarioSession) -> None:
        super().__init__()
        self.session = session
        self.sliders: dict[ParameterName, QSlider] = {}
        self.value_labels: dict[ParameterName, QLabel] = {}

        layout = QVBoxLayout(self)

        # --- Header ---
        title = QLabel("The Butterfly Effect")
        title.setStyleSheet("font-size: 18pt; font-weight: bold;")
        layout.addWidget(title)
        hint = QLabel("Navigate through time using the arrow keys")
        hint.setStyleSheet("color: gray;")
        layout.addWidget(hint)

        # --- Parameters ---
        grp_params = QGroupBox("Parameters")
        form = QFormLayout(grp_params)
        for name in ParameterName:
            lo, hi = PARAMETER_BOUNDS[name]

            slider = QSlider(Qt.Horizontal)
            slider.setRange(int(lo * SLIDER_RESOLUTION), int(hi * SLIDER_RESOLUTION))
            slider.setValue(round(self.session.parameters.get(name) * SLIDER_RESOLUTION))
            slider.valueChanged.connect(lambda v, n=name: self._on_slider_changed(n, v))

            lbl_value = QLabel(f"{self.session.parameters.get(name):.1f}")
            lbl_value.setMinimumWidth(40)
            lbl_value.setAlignment(Qt.AlignRight | Qt.AlignVCenter)

            row = QHBoxLayout()
            row.addWidget(slider)
            row.addWidget(lbl_value)
            form.addRow(PARAMETER_LABELS[name], row)

            self.sliders[name] = slider
            self.value_labels[name] = lbl_value

        layout.addWidget(grp_params)

        # --- Forecast ---
        grp_run = QGroupBox("Forecast")
        l_run = QVBoxLayout(grp_run)

        self.btn_run = QPushButton("Submit Parameters / Run")
        self.btn_run.setIcon(self.style().standardIcon(QStyle.SP_MediaPlay))
        self.btn_run.setMinimumHeight(40)
        self.btn_run.clicked.connect(self.run_requested.emit)
        l_run.addWidget(self.btn_run)

        self.lbl_status = QLabel("Showing synthetic timeline.")
        self.lbl_status.setWordWrap(True)
        l_run.addWidget(self.lbl_status)

        layout.addWidget(grp_run)

        # --- Timeline ---
        grp_chart = QGroupBox("Timeline")
        l_chart = QVBoxLayout(grp_chart)
        self.chart = TimelineChart()
        l_chart.addWidget(self.chart)
        layout.addWidget(grp_chart)

        layout.addStretch()

    def _on_slider_changed(self, name: ParameterName, raw: int) -> None:
        value = raw / SLIDER_RESOLUTION
        self.value_labels[name].setText(f"{value:.1f}")
        self.parameter_changed.emit(name.value, value)

    def set_busy(self, busy: bool, message: str) -> None:
        self.btn_run.setEnabled(not busy)
        self.lbl_status.setText(message)

    def refresh_chart(self) -> None:
        self.chart.update_timepoints(self.session.timepoints, self.session.navigator.current_month)
