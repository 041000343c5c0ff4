"""Shared fixtures for the scenario engine tests."""

import numpy as np
import pytest

from butterflyeffect.model.lorenz import integrate
from butterflyeffect.model.navigation import Navigator
from butterflyeffect.model.parameters import Parameters
from butterflyeffect.model.state import ScenarioSession


@pytest.fixture()
def params():
    return Parameters()


@pytest.fixture(scope="session")
def trajectory():
    """Default-parameter trajectory (integrated once per test run)."""
    return integrate(Parameters())


@pytest.fixture()
def session():
    """A session with its first batch installed."""
    s = ScenarioSession()
    assert s.recompute()
    return s


@pytest.fixture()
def line_markers():
    """Five markers spaced 10 units apart along x."""
    return np.array([[10.0 * i, 0.0, 0.0] for i in range(5)])


@pytest.fixture()
def navigator(line_markers):
    nav = Navigator()
    nav.set_markers(line_markers)
    return nav
