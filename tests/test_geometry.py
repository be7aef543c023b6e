from __future__ import annotations

import numpy as np
import pytest

from configs.mech_models import Point
from mech_tools.geometry import angle_between
from mech_tools.geometry import circle_intersections
from mech_tools.geometry import circle_line_intersections
from mech_tools.geometry import clamp
from mech_tools.geometry import closest_point
from mech_tools.geometry import distance
from mech_tools.geometry import lerp
from mech_tools.geometry import normalize_angle
from mech_tools.geometry import polar_offset
from mech_tools.geometry import rotate_point


def P(x, y):
    return Point(x=x, y=y)


def test_distance_and_angle():
    """3-4-5 triangle, and atan2 direction of a vertical vector"""
    assert distance(P(0, 0), P(3, 4)) == pytest.approx(5.0)
    assert angle_between(P(0, 0), P(0, 2)) == pytest.approx(np.pi / 2)


def test_rotate_point_quarter_turn():
    rotated = rotate_point(P(1, 0), P(0, 0), np.pi / 2)
    assert rotated.x == pytest.approx(0.0, abs=1e-12)
    assert rotated.y == pytest.approx(1.0)


def test_circle_intersections_root_order():
    """Circles at (0,0) r=5 and (8,0) r=5 meet at (4, -3) then (4, 3)"""
    first, second = circle_intersections(P(0, 0), 5, P(8, 0), 5)
    assert first.as_tuple() == pytest.approx((4.0, -3.0))
    assert second.as_tuple() == pytest.approx((4.0, 3.0))


def test_circle_intersections_tangent_returns_double_root():
    roots = circle_intersections(P(0, 0), 5, P(10, 0), 5)
    assert len(roots) == 2
    assert roots[0].as_tuple() == pytest.approx((5.0, 0.0))
    assert roots[1].as_tuple() == pytest.approx((5.0, 0.0))


@pytest.mark.parametrize('c2, r2', [
    ((20, 0), 5),   # disjoint
    ((1, 0), 1),    # nested
    ((0, 0), 5),    # concentric
])
def test_circle_intersections_degenerate_is_empty(c2, r2):
    assert circle_intersections(P(0, 0), 5, P(*c2), r2) == []


def test_circle_line_intersections():
    """Horizontal line y=3 crosses the r=5 circle at x=-4 then x=4"""
    roots = circle_line_intersections(P(0, 0), 5, P(-10, 3), (1.0, 0.0))
    assert [p.as_tuple() for p in roots] == [pytest.approx((-4.0, 3.0)), pytest.approx((4.0, 3.0))]

    assert circle_line_intersections(P(0, 0), 5, P(-10, 6), (1.0, 0.0)) == []

    with pytest.raises(ValueError):
        circle_line_intersections(P(0, 0), 5, P(0, 0), (0.0, 0.0))


def test_closest_point():
    candidates = [P(0, 0), P(10, 0)]
    assert closest_point(candidates, P(9, 1)) == P(10, 0)
    # No reference: first candidate wins
    assert closest_point(candidates, None) == P(0, 0)
    assert closest_point([], P(0, 0)) is None


def test_polar_offset():
    p = polar_offset(P(150, 300), 120, 0.0)
    assert p.as_tuple() == pytest.approx((270.0, 300.0))


def test_normalize_angle_range():
    assert normalize_angle(3 * np.pi) == pytest.approx(np.pi)
    assert normalize_angle(-np.pi) == pytest.approx(np.pi)
    assert normalize_angle(0.5) == pytest.approx(0.5)
    assert normalize_angle(-0.5 - 4 * np.pi) == pytest.approx(-0.5)


def test_scalar_helpers():
    assert clamp(5, 0, 3) == 3
    assert clamp(-1, 0, 3) == 0
    assert lerp(10, 20, 0.25) == pytest.approx(12.5)
