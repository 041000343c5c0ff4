"""
Pointer Picking
===============
Ray casting from a 2D pointer position against the spherical markers.

Picking works on an immutable snapshot of marker positions, so a pick can
never observe a half-replaced trajectory.
"""
from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import TYPE_CHECKING, Optional

import numpy as np

if TYPE_CHECKING:
    import numpy.typing as npt

logger = logging.getLogger(__name__)

MARKER_RADIUS = 0.8
HIGHLIGHT_SCALE = 1.2
DEFAULT_SCALE = 1.0


@dataclass(frozen=True)
class CameraProjection:
    """Perspective camera description (VTK conventions: vertical view angle in degrees)."""
    position: tuple[float, float, float]
    focal_point: tuple[float, float, float]
    view_up: tuple[float, float, float] = (0.0, 1.0, 0.0)
    view_angle: float = 75.0
    aspect: float = 1.0

    def ray(self, pointer_ndc: tuple[float, float]) -> tuple[npt.NDArray[np.float64], npt.NDArray[np.float64]]:
        """
        World-space ray through a pointer in normalised device coordinates
        ([-1, 1] on both axes, +y up).

        Returns:
            (origin, unit direction)
        """
        origin = np.asarray(self.position, dtype=np.float64)
        forward = np.asarray(self.focal_point, dtype=np.float64) - origin
        norm = np.linalg.norm(forward)
        if norm == 0.0:
            raise ValueError("Camera position and focal point coincide.")
        forward /= norm

        right = np.cross(forward, np.asarray(self.view_up, dtype=np.float64))
        right_norm = np.linalg.norm(right)
        if right_norm == 0.0:
            raise ValueError("Camera view-up is parallel to the view direction.")
        right /= right_norm
        up = np.cross(right, forward)

        tan_half = math.tan(math.radians(self.view_angle) / 2.0)
        x, y = pointer_ndc
        direction = forward + right * (x * tan_half * self.aspect) + up * (y * tan_half)
        return origin, direction / np.linalg.norm(direction)


def pointer_to_ndc(x: float, y: float, width: float, height: float, origin: str = "bottom") -> tuple[float, float]:
    """
    Convert display coordinates to NDC.

    Args:
        origin: "bottom" for VTK display coordinates, "top" for Qt widget coordinates.
    """
    if width <= 0 or height <= 0:
        raise ValueError(f"Viewport size must be positive, got {width}x{height}.")
    ndc_x = (x / width) * 2.0 - 1.0
    ndc_y = (y / height) * 2.0 - 1.0
    if origin == "top":
        ndc_y = -ndc_y
    return ndc_x, ndc_y


def pick(
    pointer_ndc: tuple[float, float],
    camera: CameraProjection,
    markers: npt.NDArray[np.float64],
    radius: float | npt.NDArray[np.float64] = MARKER_RADIUS,
) -> Optional[int]:
    """
    Index of the nearest marker hit by the pointer ray, or None.

    Args:
        pointer_ndc: Pointer in normalised device coordinates.
        camera: Projection used to build the ray.
        markers: (n, 3) marker centres.
        radius: Sphere radius, scalar or per marker.
    """
    centres = np.asarray(markers, dtype=np.float64).reshape(-1, 3)
    if len(centres) == 0:
        return None

    origin, direction = camera.ray(pointer_ndc)
    radii = np.broadcast_to(np.asarray(radius, dtype=np.float64), (len(centres),))

    # |o + t d - c|^2 = r^2 with |d| = 1  ->  t^2 + 2 b t + c = 0
    oc = origin - centres
    b = oc @ direction
    c = np.einsum("ij,ij->i", oc, oc) - radii ** 2
    disc = b * b - c

    hit = disc >= 0.0
    root = np.sqrt(np.where(hit, disc, 0.0))
    t_near = -b - root
    t_far = -b + root
    # Ray origin inside a sphere: the exit point counts
    t = np.where(t_near >= 0.0, t_near, t_far)
    hit &= t >= 0.0

    if not hit.any():
        return None
    t = np.where(hit, t, np.inf)
    return int(np.argmin(t))


@dataclass
class HoverHighlight:
    """
    Tracks which marker is enlarged. `update` returns only the scale changes
    the renderer has to apply, so repeated picks of the same marker are no-ops.
    """
    highlight_scale: float = HIGHLIGHT_SCALE
    default_scale: float = DEFAULT_SCALE
    current: Optional[int] = None

    def update(self, hit: Optional[int]) -> dict[int, float]:
        if hit == self.current:
            return {}
        changes: dict[int, float] = {}
        if self.current is not None:
            changes[self.current] = self.default_scale
        if hit is not None:
            changes[hit] = self.highlight_scale
        self.current = hit
        return changes

    def reset(self) -> None:
        """Forget the highlight (markers were replaced, nothing to restore)."""
        self.current = None
