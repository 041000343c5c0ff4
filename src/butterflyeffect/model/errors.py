"""
Scenario Engine Errors
All faults raised by the model layer. None of them is fatal to the
application: callers keep the last known good state and log the problem.
"""


class ScenarioError(Exception):
    """Base class for scenario engine faults."""


class NumericDivergence(ScenarioError):
    """The integrator produced a non-finite coordinate."""


class ForecastOutOfRange(ScenarioError):
    """
    A single forecast field was rejected.

    Instances are collected and logged as warnings by the merge layer,
    they are never raised out of it.
    """

    def __init__(self, month_offset: int, field_name: str, value: object, bounds: tuple[float, float]) -> None:
        self.month_offset = month_offset
        self.field_name = field_name
        self.value = value
        self.bounds = bounds
        lo, hi = bounds
        super().__init__(
            f"Forecast month {month_offset}: {field_name}={value!r} outside [{lo:g}, {hi:g}]"
        )


class NavigationOutOfRange(ScenarioError):
    """Requested month or marker index does not exist."""


class EmptyMarkerSet(ScenarioError):
    """Navigation or picking attempted before any timepoints exist."""
