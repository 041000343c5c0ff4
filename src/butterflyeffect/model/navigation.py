"""
Viewpoint Navigation
====================
State machine that flies the camera between timepoint markers.

States:
    IDLE   - the viewpoint rests; user orbit/zoom is allowed.
    MOVING - every tick moves position and look-at a fixed fraction of the
             remaining distance toward the target (exponential ease-out).
             Arrival is declared once both distances drop below epsilon.

There is no queue: a request issued while MOVING replaces the target, and
the abandoned target is simply forgotten.

Classes:
    Phase, Direction: Enumerations.
    ViewpointState: Immutable camera position/look-at pair plus targets.
    Navigator: Owns the current marker index and the viewpoint.

Functions:
    advance: Pure single-tick update of a ViewpointState.
"""
from __future__ import annotations

import logging
import math
from dataclasses import dataclass, replace
from enum import StrEnum
from typing import TYPE_CHECKING, Optional

import numpy as np

from butterflyeffect.model.errors import EmptyMarkerSet, NavigationOutOfRange, ScenarioError
from butterflyeffect.model.timepoints import MONTHS_PER_MARKER

if TYPE_CHECKING:
    import numpy.typing as npt

logger = logging.getLogger(__name__)

DAMPING = 0.05           # fraction of the remaining distance covered per tick
ARRIVAL_EPSILON = 0.1    # scene units
CAMERA_DISTANCE = 40.0   # distance of the camera from the marker it looks at
INITIAL_CAMERA_POSITION = (0.0, 0.0, 30.0)
INITIAL_LOOK_AT = (0.0, 0.0, 0.0)


class Phase(StrEnum):
    IDLE = "idle"
    MOVING = "moving"


class Direction(StrEnum):
    PREV = "prev"
    NEXT = "next"


def _vec(value) -> npt.NDArray[np.float64]:
    arr = np.array(value, dtype=np.float64).reshape(3)
    arr.setflags(write=False)
    return arr


def camera_offset(radius: float = CAMERA_DISTANCE) -> npt.NDArray[np.float64]:
    """Offset of the camera from its look-at point: 45 deg around, slightly above."""
    return np.array([
        radius * math.cos(math.pi / 4),
        radius * 0.5,
        radius * math.sin(math.pi / 4),
    ])


@dataclass(frozen=True, eq=False)
class ViewpointState:
    position: npt.NDArray[np.float64]
    look_at: npt.NDArray[np.float64]
    target_position: npt.NDArray[np.float64]
    target_look_at: npt.NDArray[np.float64]
    phase: Phase = Phase.IDLE
    interaction_enabled: bool = True

    @classmethod
    def at(cls, position=INITIAL_CAMERA_POSITION, look_at=INITIAL_LOOK_AT) -> ViewpointState:
        """An idle viewpoint whose target equals its current state."""
        pos, look = _vec(position), _vec(look_at)
        return cls(position=pos, look_at=look, target_position=pos, target_look_at=look)

    @property
    def is_moving(self) -> bool:
        return self.phase is Phase.MOVING

    def position_distance(self) -> float:
        return float(np.linalg.norm(self.target_position - self.position))

    def look_at_distance(self) -> float:
        return float(np.linalg.norm(self.target_look_at - self.look_at))

    def has_arrived(self, epsilon: float = ARRIVAL_EPSILON) -> bool:
        return self.position_distance() < epsilon and self.look_at_distance() < epsilon

    def retarget(self, position, look_at, suppress_interaction: bool = True) -> ViewpointState:
        """Moving toward a new target (the previous target is dropped)."""
        return replace(
            self,
            target_position=_vec(position),
            target_look_at=_vec(look_at),
            phase=Phase.MOVING,
            interaction_enabled=not suppress_interaction,
        )


def advance(
    viewpoint: ViewpointState,
    dt: float = 1.0,
    damping: float = DAMPING,
    epsilon: float = ARRIVAL_EPSILON,
) -> ViewpointState:
    """
    One scheduling tick of the state machine.

    Args:
        viewpoint: Current state (not modified).
        dt: Elapsed time in reference ticks; the blend factor is
            1 - (1 - damping) ** dt, which equals `damping` for dt == 1.
        damping: Fraction of the remaining distance covered per reference tick.
        epsilon: Arrival threshold for both position and look-at.

    Returns:
        The next state. IDLE states are returned unchanged.
    """
    if not viewpoint.is_moving:
        return viewpoint

    alpha = 1.0 - (1.0 - damping) ** max(dt, 0.0)
    position = viewpoint.position + (viewpoint.target_position - viewpoint.position) * alpha
    look_at = viewpoint.look_at + (viewpoint.target_look_at - viewpoint.look_at) * alpha
    position.setflags(write=False)
    look_at.setflags(write=False)

    moved = replace(viewpoint, position=position, look_at=look_at)
    if moved.has_arrived(epsilon):
        logger.debug("Camera reached target position.")
        return replace(moved, phase=Phase.IDLE, interaction_enabled=True)
    return moved


class Navigator:
    """
    Directional and absolute navigation over a snapshot of marker positions.

    All public operations are soft: invalid requests are logged and leave the
    state untouched, and they report success as a bool.
    """

    def __init__(
        self,
        viewpoint: Optional[ViewpointState] = None,
        damping: float = DAMPING,
        epsilon: float = ARRIVAL_EPSILON,
        months_per_marker: int = MONTHS_PER_MARKER,
        suppress_interaction: bool = True,
    ) -> None:
        self.viewpoint: ViewpointState = viewpoint or ViewpointState.at()
        self.damping = damping
        self.epsilon = epsilon
        self.months_per_marker = months_per_marker
        self.suppress_interaction = suppress_interaction
        self.current_index: int = 0
        self._markers: npt.NDArray[np.float64] = np.empty((0, 3), dtype=np.float64)

    # ------------------------------------------------------------------------------
    # Markers
    # ------------------------------------------------------------------------------

    @property
    def marker_count(self) -> int:
        return len(self._markers)

    @property
    def markers(self) -> npt.NDArray[np.float64]:
        return self._markers

    @property
    def current_month(self) -> int:
        return self.current_index * self.months_per_marker

    @property
    def is_moving(self) -> bool:
        return self.viewpoint.is_moving

    def set_markers(self, positions: npt.NDArray[np.float64]) -> None:
        """Install a new marker snapshot; the current index is clamped into range."""
        snapshot = np.array(positions, dtype=np.float64).reshape(-1, 3)
        snapshot.setflags(write=False)
        self._markers = snapshot
        if self.marker_count == 0:
            self.current_index = 0
        else:
            self.current_index = min(self.current_index, self.marker_count - 1)

    def target_for_index(self, index: int) -> tuple[npt.NDArray[np.float64], npt.NDArray[np.float64]]:
        """(camera position, look-at) used to frame the given marker."""
        look_at = self._markers[index]
        return look_at + camera_offset(), look_at

    # ------------------------------------------------------------------------------
    # Public operations
    # ------------------------------------------------------------------------------

    def navigate_to_month(self, month: float) -> bool:
        try:
            index = self._index_for_month(month)
        except ScenarioError as e:
            logger.warning(f"Navigation ignored: {e}")
            return False
        return self._go_to(index)

    def navigate_to_index(self, index: int) -> bool:
        try:
            self._check_index(index)
        except ScenarioError as e:
            logger.warning(f"Navigation ignored: {e}")
            return False
        return self._go_to(index)

    def navigate_relative(self, direction: Direction | str) -> bool:
        """Move one marker back or forward; a no-op at either end."""
        try:
            step = -1 if Direction(direction) is Direction.PREV else 1
        except ValueError:
            logger.warning(f"Navigation ignored: unknown direction {direction!r}")
            return False

        if self.marker_count == 0:
            logger.warning(f"Navigation ignored: {EmptyMarkerSet('no timepoints yet')}")
            return False

        index = self.current_index + step
        if index < 0 or index > self.marker_count - 1:
            logger.debug(f"Already at the {'first' if step < 0 else 'last'} timepoint.")
            return False
        return self._go_to(index)

    def start_at_first(self) -> bool:
        """Fly to marker 0, re-triggering motion even if already there."""
        if self.marker_count == 0:
            logger.error("No markers found, cannot start timeline")
            return False
        logger.info("Starting timeline...")
        return self._go_to(0, force=True)

    def tick(self, dt: float = 1.0) -> ViewpointState:
        self.viewpoint = advance(self.viewpoint, dt=dt, damping=self.damping, epsilon=self.epsilon)
        return self.viewpoint

    def sync_viewpoint(self, position, look_at) -> None:
        """
        Adopt the camera state after the user orbited the scene.
        Ignored while MOVING (the flight owns the camera then).
        """
        if self.is_moving:
            return
        self.viewpoint = ViewpointState.at(position, look_at)

    # ------------------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------------------

    def _check_index(self, index: int) -> None:
        if self.marker_count == 0:
            raise EmptyMarkerSet("no timepoints yet")
        if not 0 <= index < self.marker_count:
            raise NavigationOutOfRange(f"index {index} outside [0, {self.marker_count - 1}]")

    def _index_for_month(self, month: float) -> int:
        if self.marker_count == 0:
            raise EmptyMarkerSet("no timepoints yet")
        ratio = month / self.months_per_marker
        if not float(ratio).is_integer():
            raise NavigationOutOfRange(f"month {month} is not a multiple of {self.months_per_marker}")
        index = int(ratio)
        self._check_index(index)
        return index

    def _go_to(self, index: int, force: bool = False) -> bool:
        position, look_at = self.target_for_index(index)
        self.current_index = index

        current = self.viewpoint
        already_there = (
            np.linalg.norm(position - current.position) < self.epsilon
            and np.linalg.norm(look_at - current.look_at) < self.epsilon
        )
        if already_there and not force:
            # Nothing to animate; keep whatever phase we are in but drop old targets
            self.viewpoint = replace(current, target_position=_vec(position), target_look_at=_vec(look_at))
            return True

        self.viewpoint = current.retarget(position, look_at, suppress_interaction=self.suppress_interaction)
        logger.debug(f"Navigating to timepoint {index} ({self.current_month} months).")
        return True
