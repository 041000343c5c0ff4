"""
Scenario Timeline
=================
Statistics per month offset, derived synthetically from the parameter
perturbation or overwritten by an external forecast.

Why is this file needed?
------------------------
1. Synthetic view: Before (or without) a forecast, each marker still shows
   how the current parameters drift away from the baseline over time.
2. Forecast merge: Remote predictions arrive as a loosely shaped mapping;
   every field is validated individually before it reaches a marker.

Functions:
    derive_timeline: Baseline vs. current parameters -> Timeline.
    parse_forecast_payload: Decoded JSON -> {month: {field: value}}.
    merge_forecast: Overlay validated forecast fields onto a Timeline.
    attach_statistics: Copy Timeline statistics onto Timepoints by month.
"""
from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field, replace
from typing import Any, Iterable, Mapping, Sequence

from butterflyeffect.model.errors import ForecastOutOfRange
from butterflyeffect.model.parameters import ParameterName, PARAMETER_BOUNDS, Parameters, clamp
from butterflyeffect.model.statistics import Statistics, StatisticsSource
from butterflyeffect.model.timepoints import MONTHS_PER_MARKER, Timepoint

logger = logging.getLogger(__name__)

HORIZON_MONTHS = 15
TIMELINE_MONTHS: tuple[int, ...] = tuple(range(0, HORIZON_MONTHS + 1, MONTHS_PER_MARKER))

# A perturbation grows by this factor every marker step
DRIFT_GROWTH = 1.25

# Accepted ranges of forecast values (tighter than the slider ranges)
FORECAST_BOUNDS: dict[ParameterName, tuple[float, float]] = {
    ParameterName.INFLATION_RATE: (1.0, 20.0),
    ParameterName.INTEREST_RATE: (1.0, 10.0),
    ParameterName.GDP_GROWTH_RATE: (1.0, 5.0),
}

ForecastPayload = Mapping[int, Mapping[str, Any]]


@dataclass(frozen=True)
class TimelineEntry:
    month_offset: int
    statistics: Statistics


@dataclass(frozen=True)
class Timeline:
    entries: tuple[TimelineEntry, ...] = ()
    event: str = ""

    def __post_init__(self) -> None:
        months = [e.month_offset for e in self.entries]
        if any(b <= a for a, b in zip(months, months[1:])):
            raise ValueError(f"Timeline month offsets must be strictly increasing, got {months}.")

    @property
    def months(self) -> list[int]:
        return [e.month_offset for e in self.entries]

    def statistics_for(self, month_offset: int) -> Statistics | None:
        for entry in self.entries:
            if entry.month_offset == month_offset:
                return entry.statistics
        return None

    def __len__(self) -> int:
        return len(self.entries)


@dataclass(frozen=True)
class ForecastMerge:
    timeline: Timeline
    rejected: tuple[ForecastOutOfRange, ...] = ()
    merged_months: tuple[int, ...] = field(default_factory=tuple)


def derive_timeline(
    event: str,
    baseline: Parameters,
    current: Parameters,
    months: Iterable[int] = TIMELINE_MONTHS,
) -> Timeline:
    """
    Build the synthetic timeline.

    The difference between current and baseline parameters is treated as the
    initial perturbation; at month m it has grown by DRIFT_GROWTH ** (m / 3).
    Values are clamped to each field's parameter range.
    """
    entries = []
    for month in months:
        amplification = DRIFT_GROWTH ** (month / MONTHS_PER_MARKER) - 1.0
        values = {}
        for name in ParameterName:
            now = current.get(name)
            delta = now - baseline.get(name)
            values[name.value] = clamp(now + delta * amplification, PARAMETER_BOUNDS[name])
        entries.append(TimelineEntry(
            month_offset=month,
            statistics=Statistics(source=StatisticsSource.SYNTHETIC, **values),
        ))
    return Timeline(entries=tuple(entries), event=event)


def parse_forecast_payload(payload: Any) -> dict[int, dict[str, Any]]:
    """
    Normalise a decoded forecast response.

    Month keys may be ints or numeric strings; entries that are not mappings
    or whose key is not an integer month are skipped with a warning. Field
    values are passed through untouched (merge_forecast validates them).
    """
    if not isinstance(payload, Mapping):
        logger.warning(f"Forecast payload is not an object: {type(payload).__name__}")
        return {}

    result: dict[int, dict[str, Any]] = {}
    for raw_key, raw_entry in payload.items():
        try:
            month = int(str(raw_key).strip())
        except ValueError:
            logger.warning(f"Skipping forecast entry with non-integer month key {raw_key!r}.")
            continue
        if not isinstance(raw_entry, Mapping):
            logger.warning(f"Skipping forecast month {month}: entry is not an object.")
            continue
        result[month] = dict(raw_entry)
    return result


def _validate_field(month: int, name: ParameterName, value: Any) -> float | ForecastOutOfRange:
    bounds = FORECAST_BOUNDS[name]
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return ForecastOutOfRange(month, name.value, value, bounds)
    number = float(value)
    lo, hi = bounds
    if not math.isfinite(number) or not lo <= number <= hi:
        return ForecastOutOfRange(month, name.value, value, bounds)
    return number


def merge_forecast(timeline: Timeline, forecast: ForecastPayload) -> ForecastMerge:
    """
    Overlay forecast values onto matching timeline months.

    Every field is checked on its own: an out-of-range or non-numeric field is
    dropped (and reported), the remaining fields of the same entry still merge.
    Months absent from the timeline are ignored. The number and order of
    entries never change.
    """
    by_month = {e.month_offset: i for i, e in enumerate(timeline.entries)}
    entries = list(timeline.entries)
    rejected: list[ForecastOutOfRange] = []
    merged: list[int] = []

    for month, values in sorted(parse_forecast_payload(forecast).items()):
        if month not in by_month:
            logger.debug(f"Forecast month {month} has no matching timeline entry, ignored.")
            continue

        accepted: dict[str, float] = {}
        for name in ParameterName:
            if name.value not in values:
                continue
            checked = _validate_field(month, name, values[name.value])
            if isinstance(checked, ForecastOutOfRange):
                logger.warning(str(checked))
                rejected.append(checked)
            else:
                accepted[name.value] = checked

        if not accepted:
            continue

        i = by_month[month]
        entries[i] = replace(
            entries[i],
            statistics=entries[i].statistics.with_fields(StatisticsSource.FORECAST, **accepted),
        )
        merged.append(month)

    logger.info(f"Merged forecast into months {merged}, rejected {len(rejected)} field(s).")
    return ForecastMerge(
        timeline=replace(timeline, entries=tuple(entries)),
        rejected=tuple(rejected),
        merged_months=tuple(merged),
    )


def attach_statistics(timepoints: Sequence[Timepoint], timeline: Timeline) -> list[Timepoint]:
    """
    Return copies of the timepoints carrying the timeline's statistics for
    their month. Timepoints without a matching month keep what they had.
    """
    result = []
    for tp in timepoints:
        stats = timeline.statistics_for(tp.month_offset)
        result.append(tp if stats is None else replace(tp, statistics=stats))
    return result
