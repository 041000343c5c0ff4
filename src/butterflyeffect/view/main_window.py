"""
Main Application Window
=======================
The primary GUI container: parameter panel on the left, the shared 3D view on
the right, timeline navigation at the bottom.

Why is this file needed?
------------------------
1. Layout: It organizes the high-level visual structure of the application.
2. Routing: It connects user input (sliders, arrow keys, the run button) to
   the ScenarioSession and starts forecast workers.
"""
import logging
from typing import Optional

from PySide6.QtWidgets import (
    QMainWindow, QWidget, QVBoxLayout, QHBoxLayout, QSplitter, QPushButton, QLabel
)
from PySide6.QtCore import Qt
from PySide6.QtGui import QAction, QKeySequence

from butterflyeffect.controller.forecast_client import ForecastClient
from butterflyeffect.controller.workers import ForecastWorker, wait_for_workers
from butterflyeffect.model.navigation import Direction
from butterflyeffect.model.state import ScenarioSession
from butterflyeffect.view.tabs.tab_parameters import ParametersControlPanel
from butterflyeffect.view.widgets.plot_3d import PyVistaWidget

logger = logging.getLogger(__name__)

VISIBLE_APP_NAME = "The Butterfly Effect"


class MainWindow(QMainWindow):
    def __init__(self, session: ScenarioSession, forecast_client: Optional[ForecastClient] = None) -> None:
        super().__init__()
        self.session: ScenarioSession = session
        self.forecast_client: ForecastClient = forecast_client or ForecastClient()
        self._workers: list[ForecastWorker] = []
        self._closing = False

        self.setWindowTitle(VISIBLE_APP_NAME)
        self.resize(1400, 900)

        # --- MAIN CONTAINER ---
        main_widget = QWidget()
        self.setCentralWidget(main_widget)
        main_layout = QVBoxLayout(main_widget)
        main_layout.setContentsMargins(0, 0, 0, 0)
        main_layout.setSpacing(0)

        splitter = QSplitter(Qt.Horizontal)
        main_layout.addWidget(splitter)

        # --- LEFT SIDE: Parameters ---
        self.params_panel = ParametersControlPanel(self.session)
        splitter.addWidget(self.params_panel)

        # --- RIGHT SIDE: 3D view + navigation bar ---
        right = QWidget()
        right_layout = QVBoxLayout(right)
        right_layout.setContentsMargins(0, 0, 0, 0)

        self.visualizer = PyVistaWidget(self.session)
        right_layout.addWidget(self.visualizer, stretch=1)
        right_layout.addLayout(self._build_navigation_bar())
        splitter.addWidget(right)

        # 1 part sidebar : 4 parts 3D view
        splitter.setSizes([350, 1050])

        # --- SIGNAL CONNECTIONS ---
        self.params_panel.parameter_changed.connect(self.on_parameter_changed)
        self.params_panel.run_requested.connect(self.on_run_requested)
        self.session.add_installed_listener(lambda _batch: self.refresh_timeline_views())
        self.session.add_statistics_listener(lambda _batch: self.refresh_timeline_views())
        self.visualizer.hovered_changed.connect(self.on_hovered_changed)
        self.visualizer.arrived.connect(self.refresh_timeline_views)

        # --- ACTIONS & MENUS ---
        self._create_actions()
        self._create_menus()

        self.refresh_timeline_views()

    def _build_navigation_bar(self) -> QHBoxLayout:
        bar = QHBoxLayout()
        bar.setContentsMargins(8, 6, 8, 6)
        bar.addStretch()

        self.btn_prev = QPushButton("←")
        self.btn_prev.setFlat(True)
        self.btn_prev.clicked.connect(lambda: self.navigate(Direction.PREV))
        bar.addWidget(self.btn_prev)

        self.lbl_month = QLabel()
        self.lbl_month.setAlignment(Qt.AlignCenter)
        self.lbl_month.setMinimumWidth(90)
        bar.addWidget(self.lbl_month)

        self.btn_next = QPushButton("→")
        self.btn_next.setFlat(True)
        self.btn_next.clicked.connect(lambda: self.navigate(Direction.NEXT))
        bar.addWidget(self.btn_next)

        bar.addStretch()
        return bar

    def _create_actions(self) -> None:
        # Application-wide so the arrows work while the 3D view has focus
        self.act_prev = QAction("Previous Timepoint", self)
        self.act_prev.setShortcut(QKeySequence(Qt.Key_Left))
        self.act_prev.setShortcutContext(Qt.ApplicationShortcut)
        self.act_prev.triggered.connect(lambda: self.navigate(Direction.PREV))

        self.act_next = QAction("Next Timepoint", self)
        self.act_next.setShortcut(QKeySequence(Qt.Key_Right))
        self.act_next.setShortcutContext(Qt.ApplicationShortcut)
        self.act_next.triggered.connect(lambda: self.navigate(Direction.NEXT))

        self.act_start = QAction("Start Timeline", self)
        self.act_start.setShortcut("Home")
        self.act_start.triggered.connect(self.start_timeline)

        self.act_exit = QAction("Exit", self)
        self.act_exit.triggered.connect(self.close)

    def _create_menus(self) -> None:
        menu_bar = self.menuBar()

        file_menu = menu_bar.addMenu("&File")
        file_menu.addAction(self.act_exit)

        nav_menu = menu_bar.addMenu("&Navigate")
        nav_menu.addAction(self.act_prev)
        nav_menu.addAction(self.act_next)
        nav_menu.addSeparator()
        nav_menu.addAction(self.act_start)

    # --- HELPER METHODS ---
    def refresh_timeline_views(self) -> None:
        self.lbl_month.setText(f"{self.session.navigator.current_month} Months")
        self.params_panel.refresh_chart()

    # --- SLOTS ---
    def on_parameter_changed(self, name: str, value: float) -> None:
        if not self.session.set_parameter(name, value):
            self.statusBar().showMessage("Integration diverged; keeping the previous trajectory.", 5000)

    def on_hovered_changed(self, timepoint) -> None:
        if timepoint is None:
            self.statusBar().clearMessage()
        else:
            self.statusBar().showMessage(f"{timepoint.title} ({timepoint.statistics.source.value})")

    def navigate(self, direction: Direction) -> None:
        if self.session.navigator.navigate_relative(direction):
            self.refresh_timeline_views()

    def start_timeline(self) -> None:
        if self.session.navigator.start_at_first():
            self.refresh_timeline_views()

    def on_run_requested(self) -> None:
        request = self.session.begin_forecast()
        self.params_panel.set_busy(True, "Requesting forecast...")

        worker = ForecastWorker(self.forecast_client, request)
        worker.forecast_ready.connect(self.on_forecast_ready)
        worker.error_occurred.connect(self.on_forecast_error)
        worker.finished.connect(lambda w=worker: self._release_worker(w))
        self._workers.append(worker)
        worker.start()

    def on_forecast_ready(self, token: int, forecast: dict) -> None:
        if self._closing:
            return
        result = self.session.apply_forecast(token, forecast)
        if result is None:
            # Stale: a newer request or a parameter change superseded it
            if not self.session.forecast_pending:
                self.params_panel.set_busy(False, "Parameters changed; forecast discarded.")
            return

        msg = f"Forecast merged for months {list(result.merged_months)}."
        if result.rejected:
            msg += f" {len(result.rejected)} out-of-range value(s) ignored."
        self.params_panel.set_busy(False, msg)
        self.start_timeline()

    def on_forecast_error(self, token: int, message: str) -> None:
        if self._closing:
            return
        if not self.session.is_current_forecast(token):
            if not self.session.forecast_pending:
                self.params_panel.set_busy(False, "Showing synthetic timeline.")
            return
        self.session.cancel_forecast(token)
        self.params_panel.set_busy(False, "Forecast unavailable; showing synthetic timeline.")
        self.statusBar().showMessage(f"Forecast failed: {message}", 8000)
        self.start_timeline()

    def _release_worker(self, worker: ForecastWorker) -> None:
        if worker in self._workers:
            self._workers.remove(worker)
        worker.deleteLater()
        if not any(w.isRunning() for w in self._workers):
            self.params_panel.btn_run.setEnabled(True)

    def closeEvent(self, event) -> None:
        self._closing = True
        self.hide()
        # Late results are ignored once closing; the threads must still finish
        wait_for_workers(list(self._workers))
        self.visualizer.close()
        super().closeEvent(event)
