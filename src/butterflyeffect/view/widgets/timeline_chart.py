"""
Timeline Chart (PyQtGraph)
Plots the three statistics of every timepoint against its month offset.
"""
from __future__ import annotations

import logging
from typing import Optional, Sequence

import numpy as np
import pyqtgraph as pg
from PySide6.QtWidgets import QWidget, QVBoxLayout

from butterflyeffect.model.parameters import ParameterName, PARAMETER_LABELS
from butterflyeffect.model.statistics import StatisticsSource
from butterflyeffect.model.timepoints import Timepoint

logger = logging.getLogger(__name__)


class TimelineChart(QWidget):
    COLORS = {
        ParameterName.INFLATION_RATE: (214, 39, 40),
        ParameterName.INTEREST_RATE: (31, 119, 180),
        ParameterName.GDP_GROWTH_RATE: (44, 160, 44),
    }

    def __init__(self, parent: Optional[QWidget] = None) -> None:
        super().__init__(parent)
        layout = QVBoxLayout(self)
        layout.setContentsMargins(0, 0, 0, 0)

        self.plot_widget = pg.PlotWidget()
        self.plot_widget.setBackground('w')
        self.plot_widget.showGrid(x=True, y=True, alpha=0.3)
        self.plot_widget.setLabel('bottom', 'Months', color='black')
        self.plot_widget.setLabel('left', 'Rate [%]', color='black')
        self.plot_widget.getAxis('bottom').setPen('k')
        self.plot_widget.getAxis('left').setPen('k')
        self.plot_widget.getAxis('bottom').setTextPen('k')
        self.plot_widget.getAxis('left').setTextPen('k')
        self.plot_widget.setMinimumHeight(180)
        layout.addWidget(self.plot_widget)

        self._cursor: Optional[pg.InfiniteLine] = None

    def update_timepoints(self, timepoints: Sequence[Timepoint], current_month: Optional[int] = None) -> None:
        """Redraw all series; forecast-backed points are drawn as filled squares."""
        self.plot_widget.clear()
        self.plot_widget.addLegend(offset=(10, 10))

        if not timepoints:
            return

        months = np.array([tp.month_offset for tp in timepoints], dtype=np.float64)
        for name in ParameterName:
            values = np.array(
                [np.nan if tp.statistics.get(name) is None else tp.statistics.get(name) for tp in timepoints],
                dtype=np.float64,
            )
            color = self.COLORS[name]
            symbols = ['s' if tp.statistics.source is StatisticsSource.FORECAST else 'o' for tp in timepoints]
            self.plot_widget.plot(
                months, values,
                pen=pg.mkPen(color=color, width=2),
                name=PARAMETER_LABELS[name],
                symbol=symbols,
                symbolSize=7,
                symbolBrush=color,
                symbolPen=None,
                connect="finite",
            )

        self._cursor = None
        self.set_current_month(current_month)

    def set_current_month(self, month: Optional[int]) -> None:
        if self._cursor is not None:
            self.plot_widget.removeItem(self._cursor)
            self._cursor = None
        if month is None:
            return
        self._cursor = pg.InfiniteLine(
            pos=month,
            angle=90,
            pen=pg.mkPen(color=(120, 120, 120), width=1, style=pg.QtCore.Qt.DashLine),
        )
        self.plot_widget.addItem(self._cursor)
