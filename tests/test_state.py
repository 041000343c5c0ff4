"""Tests for the scenario session (recompute, install order, forecast tokens)."""

import math

import numpy as np
import pytest

from butterflyeffect.model.errors import NumericDivergence
from butterflyeffect.model.navigation import camera_offset
from butterflyeffect.model.picking import CameraProjection
from butterflyeffect.model.statistics import StatisticsSource
from butterflyeffect.model.state import ScenarioSession


class DivergingIntegrator:
    def integrate(self, params):
        raise NumericDivergence("boom")


def test_recompute_installs_batch(session):
    batch = session.batch
    assert batch is not None
    assert batch.generation == 1
    assert batch.points.shape == (1000, 3)
    assert batch.colors.shape == (1000, 3)
    assert [tp.month_offset for tp in session.timepoints] == [0, 3, 6, 9, 12]
    assert all(tp.statistics.source is StatisticsSource.SYNTHETIC for tp in session.timepoints)
    assert session.navigator.marker_count == 5
    np.testing.assert_array_equal(session.navigator.markers[1], session.timepoints[1].position)


def test_install_order(session):
    events = []

    def on_dispose(old):
        # the outgoing batch is already detached
        events.append(("dispose", old.generation, session.batch))

    session.add_disposer(on_dispose)
    session.add_installed_listener(lambda new: events.append(("install", new.generation, session.batch)))

    assert session.set_parameter("interest_rate", 8.0)

    assert events[0] == ("dispose", 1, None)
    kind, generation, installed = events[1]
    assert (kind, generation) == ("install", 2)
    assert installed is session.batch


def test_unchanged_parameter_does_not_recompute(session):
    batch = session.batch
    assert session.set_parameter("interest_rate", session.parameters.interest_rate)
    assert session.batch is batch


def test_parameter_is_clamped(session):
    assert session.set_parameter("gdp_growth_rate", 12.0)
    assert session.parameters.gdp_growth_rate == 5.0


@pytest.mark.parametrize("value", [math.nan, math.inf, -math.inf])
def test_non_finite_parameter_rejected(session, value):
    batch, params = session.batch, session.parameters

    assert not session.set_parameter("interest_rate", value)
    assert session.batch is batch
    assert session.parameters == params


def test_default_scenario_navigation(session):
    # {50, 5, 1.5}: month 6 is the third integrated timepoint
    navigator = session.navigator
    target = session.timepoints[2].position

    assert navigator.navigate_to_month(6)
    assert navigator.current_index == 2
    np.testing.assert_allclose(navigator.viewpoint.target_look_at, target)
    np.testing.assert_allclose(navigator.viewpoint.target_position, target + camera_offset())

    before = navigator.viewpoint
    assert not navigator.navigate_to_month(7)
    assert navigator.viewpoint is before
    assert navigator.current_index == 2


def test_divergence_keeps_previous_state(session):
    batch, params = session.batch, session.parameters
    session.integrator = DivergingIntegrator()

    assert not session.set_parameter("interest_rate", 9.0)
    assert session.batch is batch
    assert session.parameters == params


def test_synthetic_statistics_follow_parameters(session):
    session.set_parameter("inflation_rate", 60.0)
    first = session.timepoints[0].statistics
    assert first.inflation_rate == 60.0
    assert session.timepoints[4].statistics.inflation_rate > 60.0


class TestForecast:
    def test_last_request_wins(self, session):
        older = session.begin_forecast()
        newer = session.begin_forecast()

        assert session.apply_forecast(older.token, {3: {"interest_rate": 4}}) is None
        assert session.timepoints[1].statistics.source is StatisticsSource.SYNTHETIC

        result = session.apply_forecast(newer.token, {3: {"interest_rate": 4}})
        assert result.merged_months == (3,)
        assert session.timepoints[1].statistics.interest_rate == 4.0
        assert not session.forecast_pending

    def test_parameter_change_makes_forecast_stale(self, session):
        request = session.begin_forecast()
        session.set_parameter("interest_rate", 7.0)

        assert not session.forecast_pending
        assert session.apply_forecast(request.token, {3: {"interest_rate": 4}}) is None
        assert session.timepoints[1].statistics.source is StatisticsSource.SYNTHETIC

    def test_forecast_updates_statistics_only(self, session):
        seen = []
        session.add_statistics_listener(seen.append)
        installed = []
        session.add_installed_listener(installed.append)
        before = session.batch

        request = session.begin_forecast()
        session.apply_forecast(request.token, {6: {"inflation_rate": 12, "gdp_growth_rate": 9}})

        after = session.batch
        assert after.generation == before.generation
        assert after.points is before.points
        for old, new in zip(before.timepoints, after.timepoints):
            np.testing.assert_array_equal(old.position, new.position)

        stats = session.timepoints[2].statistics
        assert stats.source is StatisticsSource.FORECAST
        assert stats.inflation_rate == 12.0
        assert stats.gdp_growth_rate == 1.5
        assert seen == [after]
        assert installed == []

    def test_cancel(self, session):
        request = session.begin_forecast()
        session.cancel_forecast(request.token + 1)
        assert session.is_current_forecast(request.token)
        session.cancel_forecast(request.token)
        assert not session.forecast_pending

    def test_forecast_before_any_batch(self):
        session = ScenarioSession()
        request = session.begin_forecast()
        assert session.apply_forecast(request.token, {3: {"interest_rate": 4}}) is None


class TestPick:
    def test_hover_and_reset_on_install(self, session):
        target = session.timepoints[2].position
        camera = CameraProjection(position=tuple(target + np.array([0.0, 0.0, 30.0])), focal_point=tuple(target))

        changes = session.pick((0.0, 0.0), camera)
        assert changes == {2: 1.2}
        assert session.hovered_index == 2
        assert session.hovered_timepoint() is session.timepoints[2]
        assert session.pick((0.0, 0.0), camera) == {}

        session.set_parameter("interest_rate", 6.0)
        assert session.hovered_index is None

    def test_pick_without_batch(self):
        session = ScenarioSession()
        camera = CameraProjection(position=(0.0, 0.0, 30.0), focal_point=(0.0, 0.0, 0.0))
        assert session.pick((0.0, 0.0), camera) == {}
