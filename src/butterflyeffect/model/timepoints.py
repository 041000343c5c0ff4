"""
Timepoint Sampler
=================
Discretizes a trajectory into a handful of addressable markers.

Classes:
    Timepoint: One marker (index, month offset, scene position, statistics).
    TimepointBatch: Everything derived from a single trajectory.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Sequence

import numpy as np

from butterflyeffect.model.statistics import Statistics

if TYPE_CHECKING:
    import numpy.typing as npt

logger = logging.getLogger(__name__)

MONTHS_PER_MARKER = 3
MARKER_COUNT = 5
VISUAL_SCALE = 2.0


@dataclass(frozen=True, eq=False)
class Timepoint:
    index: int
    month_offset: int
    position: npt.NDArray[np.float64]  # (3,), already scaled to scene units
    statistics: Statistics = field(default_factory=Statistics)

    @property
    def title(self) -> str:
        return f"{self.month_offset} Months"

    @property
    def date(self) -> str:
        return f"{self.month_offset} Months from start"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Timepoint):
            return NotImplemented
        return (
            self.index == other.index
            and self.month_offset == other.month_offset
            and np.array_equal(self.position, other.position)
            and self.statistics == other.statistics
        )


def sample(
    trajectory: npt.NDArray[np.float64],
    marker_count: int = MARKER_COUNT,
    months_per_marker: int = MONTHS_PER_MARKER,
    scale: float = VISUAL_SCALE,
) -> list[Timepoint]:
    """
    Pick `marker_count` evenly spaced samples from the trajectory.

    The stride is floor(N / (marker_count - 1)) and indices are clamped to the
    last sample, so the final marker always sits at (or near) the end.

    Raises:
        ValueError: If marker_count < 2 or the trajectory is empty.
    """
    points = np.asarray(trajectory, dtype=np.float64).reshape(-1, 3)
    if marker_count < 2:
        raise ValueError(f"marker_count must be at least 2, got {marker_count}.")
    if len(points) == 0:
        raise ValueError("Cannot sample an empty trajectory.")

    n = len(points)
    step = n // (marker_count - 1)

    timepoints = []
    for i in range(marker_count):
        idx = min(i * step, n - 1)
        position = points[idx] * scale
        position.setflags(write=False)
        timepoints.append(Timepoint(index=i, month_offset=i * months_per_marker, position=position))
    return timepoints


def marker_positions(timepoints: Sequence[Timepoint]) -> npt.NDArray[np.float64]:
    """(n, 3) read-only snapshot of marker positions."""
    if not timepoints:
        snapshot = np.empty((0, 3), dtype=np.float64)
    else:
        snapshot = np.vstack([tp.position for tp in timepoints])
    snapshot.setflags(write=False)
    return snapshot


@dataclass(frozen=True, eq=False)
class TimepointBatch:
    """
    Trajectory-derived data installed as one unit: the scaled point cloud,
    its colours and the markers sampled from it.
    """
    points: npt.NDArray[np.float64]  # (N, 3), scene units
    colors: npt.NDArray[np.uint8]    # (N, 3)
    timepoints: tuple[Timepoint, ...]
    generation: int = 0

    @property
    def marker_count(self) -> int:
        return len(self.timepoints)
