"""
test_trajectory_utils.py - Tests for path tracing and finite-difference helpers.
"""
from __future__ import annotations

import numpy as np
import pytest

from configs.mech_models import Point
from mech_tools.trajectory_utils import calculate_acceleration
from mech_tools.trajectory_utils import calculate_velocity
from mech_tools.trajectory_utils import finite_difference_accelerations
from mech_tools.trajectory_utils import finite_difference_velocities
from mech_tools.trajectory_utils import max_step
from mech_tools.trajectory_utils import path_length
from mech_tools.trajectory_utils import PathTrace


# =============================================================================
# Test Fixtures
# =============================================================================

@pytest.fixture
def square_path() -> list[Point]:
    """Unit square, counterclockwise from the origin."""
    return [Point(x=0, y=0), Point(x=1, y=0), Point(x=1, y=1), Point(x=0, y=1)]


@pytest.fixture
def parabola_path() -> list[Point]:
    """x = t, y = t^2 sampled at dt = 0.5, so acceleration is constant (0, 2)."""
    ts = np.arange(0, 3, 0.5)
    return [Point(x=float(t), y=float(t * t)) for t in ts]


# =============================================================================
# Test: PathTrace
# =============================================================================

def test_path_trace_drops_oldest_when_full():
    trace = PathTrace('C', max_length=3)
    for i in range(5):
        trace.append(Point(x=i, y=0))

    assert len(trace) == 3
    assert [p.x for p in trace] == [2, 3, 4]
    assert trace.as_array().shape == (3, 2)

    trace.clear()
    assert len(trace) == 0
    assert trace.as_array().shape == (0, 2)


def test_path_trace_rejects_zero_length():
    with pytest.raises(ValueError):
        PathTrace('C', max_length=0)


def test_path_trace_extend(square_path):
    trace = PathTrace('C')
    trace.extend(square_path)
    assert trace.points == square_path


# =============================================================================
# Test: Finite Differences
# =============================================================================

def test_calculate_velocity_and_acceleration():
    v = calculate_velocity(Point(x=2, y=4), Point(x=1, y=1), 0.5)
    assert v == pytest.approx((2.0, 6.0))
    a = calculate_acceleration((2.0, 6.0), (0.0, 0.0), 2.0)
    assert a == pytest.approx((1.0, 3.0))

    with pytest.raises(ValueError):
        calculate_velocity(Point(), Point(), 0)


def test_finite_difference_shapes(parabola_path):
    velocities = finite_difference_velocities(parabola_path, 0.5)
    accelerations = finite_difference_accelerations(parabola_path, 0.5)
    assert velocities.shape == (5, 2)
    assert accelerations.shape == (4, 2)
    np.testing.assert_allclose(accelerations, np.tile([0.0, 2.0], (4, 1)), atol=1e-9)

    assert finite_difference_velocities(parabola_path[:1], 0.5).shape == (0, 2)
    assert finite_difference_accelerations(parabola_path[:2], 0.5).shape == (0, 2)


def test_path_length(square_path):
    assert path_length(square_path) == pytest.approx(3.0)
    assert path_length(square_path, closed=True) == pytest.approx(4.0)
    assert path_length(square_path[:1]) == 0.0


def test_max_step():
    path = [Point(x=0, y=0), Point(x=1, y=0), Point(x=1, y=5)]
    assert max_step(path) == pytest.approx(5.0)
    assert max_step(path[:1]) == 0.0
