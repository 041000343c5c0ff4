"""Tests for the viewpoint state machine and the navigator."""

import math

import numpy as np
import pytest

from butterflyeffect.model.navigation import (
    ARRIVAL_EPSILON, DAMPING, Direction, Navigator, Phase, ViewpointState, advance, camera_offset
)


def _run_until_idle(nav, limit=1000):
    for ticks in range(1, limit + 1):
        if not nav.tick().is_moving:
            return ticks
    raise AssertionError("navigator never arrived")


class TestAdvance:
    def test_idle_is_unchanged(self):
        viewpoint = ViewpointState.at()
        assert advance(viewpoint) is viewpoint

    def test_converges_monotonically(self):
        viewpoint = ViewpointState.at().retarget((100.0, 0.0, 30.0), (50.0, 0.0, 0.0))
        start = viewpoint.position_distance()
        bound = math.ceil(math.log(ARRIVAL_EPSILON / start) / math.log(1.0 - DAMPING)) + 1

        distances = [start]
        for _ in range(bound):
            viewpoint = advance(viewpoint)
            distances.append(viewpoint.position_distance())
            if not viewpoint.is_moving:
                break

        assert viewpoint.phase is Phase.IDLE
        assert viewpoint.interaction_enabled
        assert all(b < a for a, b in zip(distances, distances[1:]))
        # no snap: the camera rests short of the exact target
        assert 0.0 < viewpoint.position_distance() < ARRIVAL_EPSILON

    def test_single_tick_covers_damping_fraction(self):
        viewpoint = ViewpointState.at((0.0, 0.0, 0.0), (0.0, 0.0, 0.0)).retarget((10.0, 0.0, 0.0), (0.0, 0.0, 0.0))
        moved = advance(viewpoint)
        np.testing.assert_allclose(moved.position, [10.0 * DAMPING, 0.0, 0.0])

    def test_elapsed_time_scaling(self):
        viewpoint = ViewpointState.at().retarget((40.0, 20.0, 40.0), (5.0, 5.0, 5.0))
        twice = advance(advance(viewpoint, dt=1.0), dt=1.0)
        once = advance(viewpoint, dt=2.0)
        np.testing.assert_allclose(once.position, twice.position)
        np.testing.assert_allclose(once.look_at, twice.look_at)

    def test_input_not_modified(self):
        viewpoint = ViewpointState.at().retarget((10.0, 0.0, 0.0), (1.0, 0.0, 0.0))
        before = viewpoint.position.copy()
        advance(viewpoint)
        np.testing.assert_array_equal(viewpoint.position, before)


class TestNavigator:
    def test_navigate_to_month_targets_marker(self, navigator, line_markers):
        assert navigator.navigate_to_month(6)
        assert navigator.current_index == 2
        assert navigator.current_month == 6
        assert navigator.viewpoint.phase is Phase.MOVING
        np.testing.assert_allclose(navigator.viewpoint.target_look_at, line_markers[2])
        np.testing.assert_allclose(navigator.viewpoint.target_position, line_markers[2] + camera_offset())

    @pytest.mark.parametrize("month", [7, 15, -3])
    def test_invalid_month_is_a_noop(self, navigator, month):
        before = navigator.viewpoint
        assert not navigator.navigate_to_month(month)
        assert navigator.viewpoint is before
        assert navigator.current_index == 0

    def test_relative_stops_at_both_ends(self, navigator):
        assert not navigator.navigate_relative(Direction.PREV)
        assert navigator.viewpoint.phase is Phase.IDLE

        assert navigator.navigate_to_index(4)
        _run_until_idle(navigator)
        assert not navigator.navigate_relative("next")
        assert navigator.current_index == 4
        assert navigator.viewpoint.phase is Phase.IDLE

    def test_relative_steps(self, navigator):
        assert navigator.navigate_relative("next")
        assert navigator.navigate_relative("next")
        assert navigator.current_index == 2
        assert navigator.navigate_relative(Direction.PREV)
        assert navigator.current_index == 1

    def test_unknown_direction(self, navigator):
        assert not navigator.navigate_relative("up")

    def test_new_request_replaces_target(self, navigator, line_markers):
        navigator.navigate_to_index(3)
        navigator.tick()
        navigator.navigate_to_index(1)
        np.testing.assert_allclose(navigator.viewpoint.target_look_at, line_markers[1])

        _run_until_idle(navigator)
        assert np.linalg.norm(navigator.viewpoint.look_at - line_markers[1]) < ARRIVAL_EPSILON

    def test_interaction_suppressed_while_moving(self, navigator):
        navigator.navigate_to_index(2)
        assert not navigator.viewpoint.interaction_enabled
        _run_until_idle(navigator)
        assert navigator.viewpoint.interaction_enabled

    def test_start_at_first_retriggers(self, navigator):
        assert navigator.start_at_first()
        _run_until_idle(navigator)
        assert not navigator.is_moving

        assert navigator.start_at_first()
        assert navigator.is_moving

    def test_navigate_to_current_location_stays_idle(self, navigator):
        navigator.start_at_first()
        _run_until_idle(navigator)
        assert navigator.navigate_to_index(0)
        assert not navigator.is_moving

    def test_empty_marker_set(self):
        nav = Navigator()
        assert not nav.navigate_to_month(0)
        assert not nav.navigate_to_index(0)
        assert not nav.navigate_relative("next")
        assert not nav.start_at_first()
        assert nav.viewpoint.phase is Phase.IDLE

    def test_set_markers_clamps_index(self, navigator):
        navigator.navigate_to_index(4)
        navigator.set_markers(np.zeros((2, 3)))
        assert navigator.current_index == 1
        navigator.set_markers(np.empty((0, 3)))
        assert navigator.current_index == 0

    def test_sync_viewpoint_ignored_while_moving(self, navigator):
        navigator.navigate_to_index(2)
        target = navigator.viewpoint.target_position
        navigator.sync_viewpoint((1.0, 2.0, 3.0), (0.0, 0.0, 0.0))
        np.testing.assert_array_equal(navigator.viewpoint.target_position, target)

        _run_until_idle(navigator)
        navigator.sync_viewpoint((1.0, 2.0, 3.0), (0.0, 0.0, 0.0))
        np.testing.assert_array_equal(navigator.viewpoint.position, [1.0, 2.0, 3.0])
        assert not navigator.is_moving
