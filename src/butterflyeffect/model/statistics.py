"""
Per-timepoint statistics with a fixed set of named fields.
"""
from __future__ import annotations

from dataclasses import dataclass, replace
from enum import StrEnum
from typing import Optional

from butterflyeffect.model.parameters import ParameterName, PARAMETER_LABELS, Parameters


class StatisticsSource(StrEnum):
    NONE = "none"
    SYNTHETIC = "synthetic"
    FORECAST = "forecast"


@dataclass(frozen=True)
class Statistics:
    inflation_rate: Optional[float] = None
    interest_rate: Optional[float] = None
    gdp_growth_rate: Optional[float] = None
    source: StatisticsSource = StatisticsSource.NONE

    @classmethod
    def from_parameters(cls, params: Parameters, source: StatisticsSource) -> Statistics:
        return cls(
            inflation_rate=params.inflation_rate,
            interest_rate=params.interest_rate,
            gdp_growth_rate=params.gdp_growth_rate,
            source=source,
        )

    def get(self, name: ParameterName | str) -> Optional[float]:
        return getattr(self, ParameterName(name).value)

    def with_fields(self, source: StatisticsSource, **values: float) -> Statistics:
        fields = {ParameterName(k).value: float(v) for k, v in values.items()}
        return replace(self, source=source, **fields)

    def display_items(self, decimals: int = 1) -> list[tuple[str, str]]:
        """(label, "value%") pairs for the overlay, skipping missing fields."""
        items = []
        for name in ParameterName:
            value = self.get(name)
            if value is not None:
                items.append((PARAMETER_LABELS[name], f"{value:.{decimals}f}%"))
        return items
