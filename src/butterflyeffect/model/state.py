"""
Scenario Session (Data Model)
=============================
The single owner of all mutable scenario state.

Why is this file needed?
------------------------
1. State Management: Parameters, the installed timepoint batch, the timeline,
   the viewpoint and the hover selection live in one explicitly passed object
   (no module-level singletons).
2. Atomic updates: A parameter change recomputes integrate -> sample ->
   statistics completely before anything is swapped in. The swap itself is
   detach old -> dispose old -> install new, so a render tick never sees a
   half-replaced scene.
3. Decoupling: Views register callbacks; the session never imports Qt.

Classes:
    ForecastRequest: Token + parameter snapshot of an issued forecast.
    ScenarioSession: The main container.
"""
from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Any, Callable, Mapping, Optional

from butterflyeffect.model.errors import NumericDivergence
from butterflyeffect.model.lorenz import LorenzIntegrator, point_colors
from butterflyeffect.model.navigation import Navigator
from butterflyeffect.model.parameters import ParameterName, Parameters
from butterflyeffect.model.picking import CameraProjection, HoverHighlight, pick
from butterflyeffect.model.timeline import (
    ForecastMerge, Timeline, attach_statistics, derive_timeline, merge_forecast
)
from butterflyeffect.model.timepoints import (
    MARKER_COUNT, MONTHS_PER_MARKER, VISUAL_SCALE, Timepoint, TimepointBatch, marker_positions, sample
)

logger = logging.getLogger(__name__)

BatchCallback = Callable[[TimepointBatch], None]


@dataclass(frozen=True)
class ForecastRequest:
    token: int
    parameters: Parameters


class ScenarioSession:
    """
    Pass this instance to the controllers and views.
    """

    def __init__(
        self,
        baseline: Optional[Parameters] = None,
        parameters: Optional[Parameters] = None,
        event: str = "",
        marker_count: int = MARKER_COUNT,
        integrator: Optional[LorenzIntegrator] = None,
        navigator: Optional[Navigator] = None,
    ) -> None:
        self.baseline: Parameters = baseline or Parameters()
        self.parameters: Parameters = parameters or self.baseline
        self.event = event
        self.marker_count = marker_count
        self.integrator = integrator or LorenzIntegrator()
        self.navigator = navigator or Navigator(months_per_marker=MONTHS_PER_MARKER)

        self.batch: Optional[TimepointBatch] = None
        self.timeline: Timeline = Timeline()
        self.hover = HoverHighlight()

        self._generation = 0
        self._forecast_token = 0
        self._pending_forecast: Optional[int] = None

        self._disposers: list[BatchCallback] = []
        self._installed_listeners: list[BatchCallback] = []
        self._statistics_listeners: list[BatchCallback] = []

    # ------------------------------------------------------------------------------
    # Listeners
    # ------------------------------------------------------------------------------

    def add_disposer(self, callback: BatchCallback) -> None:
        """Called with the outgoing batch after it is detached (free render resources here)."""
        self._disposers.append(callback)

    def add_installed_listener(self, callback: BatchCallback) -> None:
        """Called with the new batch once it is installed."""
        self._installed_listeners.append(callback)

    def add_statistics_listener(self, callback: BatchCallback) -> None:
        """Called when only the statistics of the installed batch changed."""
        self._statistics_listeners.append(callback)

    # ------------------------------------------------------------------------------
    # Read access
    # ------------------------------------------------------------------------------

    @property
    def timepoints(self) -> tuple[Timepoint, ...]:
        return self.batch.timepoints if self.batch is not None else ()

    @property
    def hovered_index(self) -> Optional[int]:
        return self.hover.current

    def hovered_timepoint(self) -> Optional[Timepoint]:
        index = self.hover.current
        if index is None or index >= len(self.timepoints):
            return None
        return self.timepoints[index]

    # ------------------------------------------------------------------------------
    # Parameters -> batch
    # ------------------------------------------------------------------------------

    def set_parameter(self, name: ParameterName | str, value: float) -> bool:
        """
        Change one parameter and recompute everything downstream.
        Returns False if the value was rejected or integration diverged.
        """
        if not math.isfinite(value):
            logger.warning(f"Rejected non-finite value {value} for {name}.")
            return False
        new_params = self.parameters.with_value(name, value)
        if new_params == self.parameters and self.batch is not None:
            return True
        return self.set_parameters(new_params)

    def set_parameters(self, params: Parameters) -> bool:
        """
        Replace all parameters. Returns False (and keeps the previous batch)
        if integration diverged.
        """
        previous = self.parameters
        self.parameters = params
        if not self.recompute():
            self.parameters = previous
            return False
        return True

    def recompute(self) -> bool:
        """
        Integrate, sample and attach statistics, then install the result.
        Any outstanding forecast becomes stale.
        """
        try:
            trajectory = self.integrator.integrate(self.parameters)
        except NumericDivergence as e:
            logger.error(f"Keeping previous trajectory: {e}")
            return False

        timepoints = sample(trajectory, self.marker_count, MONTHS_PER_MARKER, VISUAL_SCALE)
        timeline = derive_timeline(self.event, self.baseline, self.parameters)
        timepoints = attach_statistics(timepoints, timeline)

        self._generation += 1
        batch = TimepointBatch(
            points=trajectory * VISUAL_SCALE,
            colors=point_colors(len(trajectory)),
            timepoints=tuple(timepoints),
            generation=self._generation,
        )

        if self._pending_forecast is not None:
            logger.info(f"Parameters changed; forecast request {self._pending_forecast} is now stale.")
            self._pending_forecast = None

        self._install(batch, timeline)
        return True

    def _install(self, batch: TimepointBatch, timeline: Timeline) -> None:
        # 1. detach
        old, self.batch = self.batch, None
        self.hover.reset()

        # 2. dispose
        if old is not None:
            for dispose in self._disposers:
                dispose(old)

        # 3. install
        self.batch = batch
        self.timeline = timeline
        self.navigator.set_markers(marker_positions(batch.timepoints))
        logger.debug(f"Installed timepoint batch {batch.generation} with {batch.marker_count} markers.")

        for listener in self._installed_listeners:
            listener(batch)

    # ------------------------------------------------------------------------------
    # Forecast
    # ------------------------------------------------------------------------------

    def begin_forecast(self) -> ForecastRequest:
        """Issue a new request token; older tokens become stale."""
        self._forecast_token += 1
        self._pending_forecast = self._forecast_token
        logger.info(f"Forecast request {self._forecast_token} issued for {self.parameters}.")
        return ForecastRequest(token=self._forecast_token, parameters=self.parameters)

    @property
    def forecast_pending(self) -> bool:
        return self._pending_forecast is not None

    def is_current_forecast(self, token: int) -> bool:
        return self._pending_forecast is not None and token == self._pending_forecast

    def apply_forecast(self, token: int, forecast: Mapping[int, Mapping[str, Any]]) -> Optional[ForecastMerge]:
        """
        Merge a forecast response into the timeline and the installed markers.

        Returns:
            The merge result, or None if the response is stale (a newer request
            was issued or the parameters changed meanwhile).
        """
        if not self.is_current_forecast(token):
            logger.info(f"Discarding stale forecast response {token}.")
            return None
        self._pending_forecast = None

        if self.batch is None:
            logger.warning("Forecast arrived before any timepoints exist; ignored.")
            return None

        result = merge_forecast(self.timeline, forecast)
        self.timeline = result.timeline

        # Statistics only: positions and render resources stay as they are
        timepoints = attach_statistics(self.batch.timepoints, self.timeline)
        self.batch = TimepointBatch(
            points=self.batch.points,
            colors=self.batch.colors,
            timepoints=tuple(timepoints),
            generation=self.batch.generation,
        )
        for listener in self._statistics_listeners:
            listener(self.batch)
        return result

    def cancel_forecast(self, token: int) -> None:
        """Mark a failed request as finished (only if it is still the current one)."""
        if self.is_current_forecast(token):
            self._pending_forecast = None

    # ------------------------------------------------------------------------------
    # Per-tick / input
    # ------------------------------------------------------------------------------

    def tick(self, dt: float = 1.0):
        return self.navigator.tick(dt)

    def pick(self, pointer_ndc: tuple[float, float], camera: CameraProjection) -> dict[int, float]:
        """
        Update the hover selection from a pointer position.

        Returns:
            Marker scale changes for the renderer (empty if nothing changed).
        """
        if self.batch is None:
            logger.debug("Pick ignored: no timepoints yet.")
            return {}
        hit = pick(pointer_ndc, camera, self.navigator.markers)
        return self.hover.update(hit)
