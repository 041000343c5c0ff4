"""Tests for trajectory sampling."""

import numpy as np
import pytest

from butterflyeffect.model.lorenz import integrate
from butterflyeffect.model.parameters import Parameters
from butterflyeffect.model.statistics import Statistics
from butterflyeffect.model.timepoints import TimepointBatch, marker_positions, sample


def test_default_sampling(trajectory):
    timepoints = sample(trajectory)
    assert [tp.index for tp in timepoints] == [0, 1, 2, 3, 4]
    assert [tp.month_offset for tp in timepoints] == [0, 3, 6, 9, 12]
    # stride 1000 // 4 = 250
    np.testing.assert_allclose(timepoints[2].position, trajectory[500] * 2.0)
    np.testing.assert_allclose(timepoints[-1].position, trajectory[999] * 2.0)


@pytest.mark.parametrize("n_points", [1, 3, 7, 1000])
@pytest.mark.parametrize("marker_count", [2, 5, 11])
def test_marker_count_is_exact(n_points, marker_count):
    traj = np.arange(n_points * 3, dtype=np.float64).reshape(n_points, 3)
    timepoints = sample(traj, marker_count=marker_count)
    assert len(timepoints) == marker_count
    months = [tp.month_offset for tp in timepoints]
    assert months[0] == 0
    assert all(b > a for a, b in zip(months, months[1:]))


def test_indices_clamped_to_last_sample():
    traj = np.arange(9, dtype=np.float64).reshape(3, 3)
    timepoints = sample(traj, marker_count=5, scale=1.0)
    # 3 // 4 == 0, every marker sits on the first sample
    for tp in timepoints:
        np.testing.assert_array_equal(tp.position, traj[0])


def test_positions_are_read_only(trajectory):
    tp = sample(trajectory)[0]
    with pytest.raises(ValueError):
        tp.position[0] = 1.0


@pytest.mark.parametrize("marker_count", [0, 1])
def test_too_few_markers(trajectory, marker_count):
    with pytest.raises(ValueError):
        sample(trajectory, marker_count=marker_count)


def test_empty_trajectory():
    with pytest.raises(ValueError):
        sample(np.empty((0, 3)))


def test_same_parameters_same_timepoints():
    first = sample(integrate(Parameters()))
    second = sample(integrate(Parameters()))
    assert first == second


def test_titles(trajectory):
    tp = sample(trajectory)[3]
    assert tp.title == "9 Months"
    assert tp.date == "9 Months from start"


def test_marker_positions(trajectory):
    timepoints = sample(trajectory)
    positions = marker_positions(timepoints)
    assert positions.shape == (5, 3)
    assert not positions.flags.writeable
    assert marker_positions([]).shape == (0, 3)


def test_batch_marker_count(trajectory):
    timepoints = tuple(sample(trajectory, marker_count=7))
    batch = TimepointBatch(points=trajectory, colors=np.zeros((1000, 3), np.uint8), timepoints=timepoints)
    assert batch.marker_count == 7


def test_statistics_display_items():
    stats = Statistics(inflation_rate=12.345, gdp_growth_rate=2.0)
    assert stats.display_items() == [("Inflation Rate", "12.3%"), ("GDP Growth Rate", "2.0%")]
