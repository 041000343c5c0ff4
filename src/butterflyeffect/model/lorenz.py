"""
Lorenz Trajectory Integrator
============================
Turns the three scenario parameters into a 3D trajectory of the Lorenz system.

    dx/dt = sigma * (y - x)
    dy/dt = x * (rho - z) - y
    dz/dt = x * y - beta * z

The parameter transform keeps every slider position inside the chaotic regime
(rho stays above the Hopf bifurcation for all sigma/beta pairs), so the
attractor never collapses to a fixed point or runs off to infinity.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

import numba as nb
import numpy as np

from butterflyeffect.model.errors import NumericDivergence
from butterflyeffect.model.parameters import Parameters

if TYPE_CHECKING:
    import numpy.typing as npt

logger = logging.getLogger(__name__)

TRAJECTORY_LENGTH = 1000
TIME_STEP = 0.01
INITIAL_STATE: tuple[float, float, float] = (0.1, 0.0, 0.0)


@dataclass(frozen=True)
class LorenzCoefficients:
    sigma: float
    rho: float
    beta: float

    @classmethod
    def from_parameters(cls, params: Parameters) -> LorenzCoefficients:
        """
        Monotonic map from the economic parameters to (sigma, rho, beta).

        inflation  0..100 -> sigma 10..15
        interest   0..20  -> rho   28..48
        gdp growth 0..5   -> beta  2..8/3
        """
        return cls(
            sigma=10.0 + 0.05 * params.inflation_rate,
            rho=28.0 + params.interest_rate,
            beta=2.0 + params.gdp_growth_rate * (2.0 / 15.0),
        )


# ---- JIT'd kernels ----

# No fastmath in either kernel: a diverging run has to surface as inf/nan.
@nb.njit(cache=True)
def _derivative(x: float, y: float, z: float, sigma: float, rho: float, beta: float) -> tuple[float, float, float]:
    return sigma * (y - x), x * (rho - z) - y, x * y - beta * z


@nb.njit(cache=True)
def _rk4_kernel(
    x0: float, y0: float, z0: float,
    sigma: float, rho: float, beta: float,
    dt: float, n_points: int,
) -> npt.NDArray[np.float64]:
    out = np.empty((n_points, 3), dtype=np.float64)
    x, y, z = x0, y0, z0
    out[0, 0] = x
    out[0, 1] = y
    out[0, 2] = z
    half = 0.5 * dt
    for i in range(1, n_points):
        k1x, k1y, k1z = _derivative(x, y, z, sigma, rho, beta)
        k2x, k2y, k2z = _derivative(x + half * k1x, y + half * k1y, z + half * k1z, sigma, rho, beta)
        k3x, k3y, k3z = _derivative(x + half * k2x, y + half * k2y, z + half * k2z, sigma, rho, beta)
        k4x, k4y, k4z = _derivative(x + dt * k3x, y + dt * k3y, z + dt * k3z, sigma, rho, beta)

        x = x + dt / 6.0 * (k1x + 2.0 * k2x + 2.0 * k3x + k4x)
        y = y + dt / 6.0 * (k1y + 2.0 * k2y + 2.0 * k3y + k4y)
        z = z + dt / 6.0 * (k1z + 2.0 * k2z + 2.0 * k3z + k4z)

        out[i, 0] = x
        out[i, 1] = y
        out[i, 2] = z
    return out


@dataclass(frozen=True)
class LorenzIntegrator:
    """
    Fixed-step RK4 integrator. All constants are fixed per instance, so the
    output is a pure function of the parameters.
    """
    dt: float = TIME_STEP
    n_points: int = TRAJECTORY_LENGTH
    initial_state: tuple[float, float, float] = INITIAL_STATE

    def __post_init__(self) -> None:
        if self.n_points < 1:
            raise ValueError(f"n_points must be positive, got {self.n_points}.")
        if not self.dt > 0:
            raise ValueError(f"dt must be positive, got {self.dt}.")

    def integrate(self, params: Parameters) -> npt.NDArray[np.float64]:
        """
        Integrate the attractor for the given parameters.

        Returns:
            (n_points, 3) array of x, y, z coordinates.

        Raises:
            NumericDivergence: If any coordinate is NaN or infinite.
        """
        return self.integrate_coefficients(LorenzCoefficients.from_parameters(params))

    def integrate_coefficients(self, coeffs: LorenzCoefficients) -> npt.NDArray[np.float64]:
        x0, y0, z0 = self.initial_state
        points = _rk4_kernel(
            float(x0), float(y0), float(z0),
            float(coeffs.sigma), float(coeffs.rho), float(coeffs.beta),
            float(self.dt), int(self.n_points),
        )

        finite = np.isfinite(points).all(axis=1)
        if not finite.all():
            first_bad = int(np.argmin(finite))
            raise NumericDivergence(
                f"Trajectory diverged at step {first_bad} "
                f"(sigma={coeffs.sigma:.3f}, rho={coeffs.rho:.3f}, beta={coeffs.beta:.3f}, dt={self.dt})."
            )

        logger.debug(
            f"Integrated {self.n_points} points, "
            f"bounds min={points.min(axis=0).round(2)}, max={points.max(axis=0).round(2)}"
        )
        return points


def integrate(params: Parameters) -> npt.NDArray[np.float64]:
    """Integrate with the default step, length and initial condition."""
    return LorenzIntegrator().integrate(params)


def point_colors(n_points: int, saturation: float = 1.0, lightness: float = 0.5) -> npt.NDArray[np.uint8]:
    """
    HSL colour ramp along the trajectory (hue = i / n), as (n, 3) uint8 RGB.
    """
    hue = np.arange(n_points, dtype=np.float64) / max(n_points, 1)

    # HSL -> RGB, vectorised
    a = saturation * min(lightness, 1.0 - lightness)

    def channel(n: float) -> npt.NDArray[np.float64]:
        k = (n + hue * 12.0) % 12.0
        return lightness - a * np.clip(np.minimum(k - 3.0, 9.0 - k), -1.0, 1.0)

    rgb = np.stack([channel(0.0), channel(8.0), channel(4.0)], axis=1)
    return np.round(rgb * 255.0).astype(np.uint8)
