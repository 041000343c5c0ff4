"""
Scenario Parameters
===================
The three macroeconomic inputs that drive the attractor.

Classes:
    ParameterName: Identifiers of the three fields.
    Parameters: Immutable value holding one scenario's inputs.
"""
from __future__ import annotations

import logging
import math
from dataclasses import dataclass, replace, asdict
from enum import StrEnum

logger = logging.getLogger(__name__)


class ParameterName(StrEnum):
    INFLATION_RATE = "inflation_rate"
    INTEREST_RATE = "interest_rate"
    GDP_GROWTH_RATE = "gdp_growth_rate"


# Slider ranges (inclusive)
PARAMETER_BOUNDS: dict[ParameterName, tuple[float, float]] = {
    ParameterName.INFLATION_RATE: (0.0, 100.0),
    ParameterName.INTEREST_RATE: (0.0, 20.0),
    ParameterName.GDP_GROWTH_RATE: (0.0, 5.0),
}

PARAMETER_LABELS: dict[ParameterName, str] = {
    ParameterName.INFLATION_RATE: "Inflation Rate",
    ParameterName.INTEREST_RATE: "Interest Rate",
    ParameterName.GDP_GROWTH_RATE: "GDP Growth Rate",
}


def clamp(value: float, bounds: tuple[float, float]) -> float:
    lo, hi = bounds
    return min(max(value, lo), hi)


@dataclass(frozen=True)
class Parameters:
    inflation_rate: float = 50.0
    interest_rate: float = 5.0
    gdp_growth_rate: float = 1.5

    def __post_init__(self) -> None:
        for name, (lo, hi) in PARAMETER_BOUNDS.items():
            value = getattr(self, name)
            if not lo <= value <= hi:
                raise ValueError(f"{name}={value} outside [{lo:g}, {hi:g}]")

    def get(self, name: ParameterName | str) -> float:
        return getattr(self, ParameterName(name).value)

    def with_value(self, name: ParameterName | str, value: float) -> Parameters:
        """
        Return a copy with one field changed.
        Values outside the allowed range are clamped (with a warning);
        NaN or infinite values are rejected and the parameters stay as they are.
        """
        key = ParameterName(name)
        number = float(value)
        if not math.isfinite(number):
            logger.warning(f"Ignoring non-finite {key.value}={value}.")
            return self
        bounds = PARAMETER_BOUNDS[key]
        clamped = clamp(number, bounds)
        if clamped != number:
            logger.warning(f"{key.value}={value} clamped to {clamped} (range {bounds}).")
        return replace(self, **{key.value: clamped})

    def as_dict(self) -> dict[str, float]:
        return asdict(self)
