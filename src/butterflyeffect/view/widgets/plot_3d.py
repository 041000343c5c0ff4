"""
3D Visualization Widget (PyVista Wrapper)
Draws the attractor point cloud and the timepoint markers, flies the camera
along the timeline and reports the marker under the pointer.
"""

from __future__ import annotations

import logging
from typing import Optional

import numpy as np
from PySide6.QtWidgets import QWidget, QVBoxLayout, QFrame, QLabel
from PySide6.QtCore import Qt, QTimer, QElapsedTimer, Signal
from PySide6.QtGui import QCloseEvent, QResizeEvent

from pyvistaqt import QtInteractor
import pyvista as pv

from butterflyeffect.model.picking import CameraProjection, MARKER_RADIUS, pointer_to_ndc
from butterflyeffect.model.state import ScenarioSession
from butterflyeffect.model.timepoints import Timepoint, TimepointBatch
from butterflyeffect.view.widgets.interaction import InteractionLock

logger = logging.getLogger(__name__)

BACKGROUND_COLOR = "#000819"
FRAME_INTERVAL_MS = 16
REFERENCE_FRAME_MS = 1000.0 / 60.0  # navigation damping is tuned per 60 Hz frame
POINT_SIZE = 4.0
POINT_OPACITY = 0.8
VIEW_ANGLE = 75.0


class PyVistaWidget(QWidget):
    # Emitted with the hovered Timepoint, or None when the pointer leaves all markers
    hovered_changed = Signal(object)
    # Emitted once when a camera flight reaches its target
    arrived = Signal()

    def __init__(self, session: ScenarioSession, parent: Optional[QWidget] = None) -> None:
        super().__init__(parent)
        self.session = session

        self.layout_box: QVBoxLayout = QVBoxLayout(self)
        self.layout_box.setContentsMargins(0, 0, 0, 0)

        self.plotter: QtInteractor = QtInteractor(self)
        self.layout_box.addWidget(self.plotter)

        self._init_plotter()
        self._interaction = InteractionLock(self.plotter.iren.interactor)

        # --- Actors state ---
        self._cloud_actor: Optional[pv.Actor] = None
        self._marker_actors: list[pv.Actor] = []

        self._attach_observers()
        self._setup_hover_overlay()

        # --- Session wiring ---
        self.session.add_disposer(self._dispose_batch)
        self.session.add_installed_listener(self._show_batch)
        self.session.add_statistics_listener(lambda _batch: self._refresh_hover_overlay())
        if self.session.batch is not None:
            self._show_batch(self.session.batch)

        # Per-frame tick driving the navigation state machine
        self._frame_clock = QElapsedTimer()
        self._frame_clock.start()
        self._tick_timer = QTimer(self)
        self._tick_timer.setInterval(FRAME_INTERVAL_MS)
        self._tick_timer.timeout.connect(self._on_tick)
        self._tick_timer.start()

    # ------------------------------------------------------------------------------
    # Internal: Layer Management
    # ------------------------------------------------------------------------------

    def _show_batch(self, batch: TimepointBatch) -> None:
        """Create actors for a freshly installed batch."""
        cloud = pv.PolyData(np.asarray(batch.points))
        cloud.point_data["colors"] = np.asarray(batch.colors)
        self._cloud_actor = self.plotter.add_mesh(
            cloud,
            scalars="colors",
            rgb=True,
            point_size=POINT_SIZE,
            render_points_as_spheres=True,
            opacity=POINT_OPACITY,
            pickable=False,
            show_scalar_bar=False,
            reset_camera=False,
        )

        for tp in batch.timepoints:
            # Sphere built at the origin so actor.scale grows it in place
            sphere = pv.Sphere(radius=MARKER_RADIUS, center=(0.0, 0.0, 0.0))
            actor = self.plotter.add_mesh(
                sphere,
                color="white",
                ambient=0.8,
                smooth_shading=True,
                pickable=False,
                reset_camera=False,
            )
            actor.position = tuple(float(v) for v in tp.position)
            self._marker_actors.append(actor)

        self._refresh_hover_overlay()
        self.plotter.render()

    def _dispose_batch(self, batch: TimepointBatch) -> None:
        """Remove (and release) every actor of the outgoing batch."""
        if self._cloud_actor is not None:
            self.plotter.remove_actor(self._cloud_actor, render=False)
            self._cloud_actor = None
        for actor in self._marker_actors:
            self.plotter.remove_actor(actor, render=False)
        self._marker_actors.clear()
        logger.debug(f"Disposed render resources of batch {batch.generation}.")

    def _apply_marker_scales(self, changes: dict[int, float]) -> None:
        for index, scale in changes.items():
            if 0 <= index < len(self._marker_actors):
                self._marker_actors[index].scale = (scale, scale, scale)

    # ------------------------------------------------------------------------------
    # Internal: Camera / Tick
    # ------------------------------------------------------------------------------

    def _on_tick(self) -> None:
        elapsed_ms = self._frame_clock.restart()
        navigator = self.session.navigator

        if not navigator.is_moving:
            # Pick up any orbit/zoom the user did while idle
            cam = self.plotter.camera
            navigator.sync_viewpoint(cam.position, cam.focal_point)
            return

        viewpoint = self.session.tick(dt=elapsed_ms / REFERENCE_FRAME_MS)
        self._apply_viewpoint()
        if not viewpoint.is_moving:
            logger.debug(f"Flight to {self.session.navigator.current_month} months finished.")
            self.arrived.emit()

    def _apply_viewpoint(self) -> None:
        viewpoint = self.session.navigator.viewpoint
        cam = self.plotter.camera
        cam.position = tuple(float(v) for v in viewpoint.position)
        cam.focal_point = tuple(float(v) for v in viewpoint.look_at)
        self._interaction.set_enabled(bool(viewpoint.interaction_enabled))
        self.plotter.render()

    def camera_projection(self) -> CameraProjection:
        cam = self.plotter.camera
        width, height = self.plotter.window_size
        return CameraProjection(
            position=tuple(cam.position),
            focal_point=tuple(cam.focal_point),
            view_up=tuple(cam.up),
            view_angle=float(cam.view_angle),
            aspect=width / height if height > 0 else 1.0,
        )

    # ------------------------------------------------------------------------------
    # Internal: Setup & Observers
    # ------------------------------------------------------------------------------

    def _init_plotter(self) -> None:
        self.plotter.set_background(BACKGROUND_COLOR)
        cam = self.plotter.camera
        viewpoint = self.session.navigator.viewpoint
        cam.position = tuple(float(v) for v in viewpoint.position)
        cam.focal_point = tuple(float(v) for v in viewpoint.look_at)
        cam.up = (0.0, 1.0, 0.0)
        cam.view_angle = VIEW_ANGLE

    def _attach_observers(self) -> None:
        iren = self.plotter.iren
        iren.add_observer("MouseMoveEvent", lambda *_: self._on_mouse_move())

    def _on_mouse_move(self) -> None:
        width, height = self.plotter.window_size
        if width <= 0 or height <= 0:
            return
        x, y = self.plotter.iren.get_event_position()
        ndc = pointer_to_ndc(x, y, width, height, origin="bottom")

        changes = self.session.pick(ndc, self.camera_projection())
        if not changes:
            return
        self._apply_marker_scales(changes)
        self._refresh_hover_overlay()
        self.plotter.render()

    def _setup_hover_overlay(self) -> None:
        """Floating statistics panel for the hovered marker."""
        self.overlay_widget = QFrame(self)
        self.overlay_widget.setStyleSheet("""
            QFrame { background-color: rgba(0, 0, 0, 110); border-radius: 8px; }
            QLabel { color: #e0e0e0; background: transparent; }
        """)
        layout = QVBoxLayout(self.overlay_widget)
        layout.setContentsMargins(12, 10, 12, 10)
        self.lbl_hover = QLabel()
        self.lbl_hover.setTextFormat(Qt.RichText)
        layout.addWidget(self.lbl_hover)
        self.overlay_widget.setVisible(False)

    def _refresh_hover_overlay(self) -> None:
        tp = self.session.hovered_timepoint()
        self.hovered_changed.emit(tp)
        if tp is None:
            self.overlay_widget.setVisible(False)
            return
        self.lbl_hover.setText(self._format_timepoint(tp))
        self.overlay_widget.adjustSize()
        self._place_overlay()
        self.overlay_widget.setVisible(True)
        self.overlay_widget.raise_()

    @staticmethod
    def _format_timepoint(tp: Timepoint) -> str:
        rows = [f"<b style='font-size:14pt'>{tp.title}</b>", f"Time: {tp.date}"]
        rows += [f"{label}: {value}" for label, value in tp.statistics.display_items()]
        return "<br>".join(rows)

    def _place_overlay(self) -> None:
        margin = 16
        self.overlay_widget.move(self.width() - self.overlay_widget.width() - margin, margin)

    def resizeEvent(self, event: QResizeEvent) -> None:
        super().resizeEvent(event)
        if self.overlay_widget.isVisible():
            self._place_overlay()

    def closeEvent(self, event: QCloseEvent) -> None:
        self._tick_timer.stop()
        self.plotter.close()
        event.accept()
