"""
geometry.py - Planar geometry primitives shared by the gear and linkage engines.

Leaf module: depends only on numpy and the Point model.

Degenerate configurations (disjoint, nested or concentric circles, a line that
misses a circle) are not errors here. They return an empty list, which the
linkage solver reads as "no real pose at this driver angle".
"""
from __future__ import annotations

from typing import Iterable
from typing import Optional

import numpy as np

from configs.mech_models import Point


def distance(p1: Point, p2: Point) -> float:
    """Euclidean distance between two points."""
    return float(np.hypot(p2.x - p1.x, p2.y - p1.y))


def angle_between(p1: Point, p2: Point) -> float:
    """Direction of the vector p1 -> p2, in radians, via atan2."""
    return float(np.arctan2(p2.y - p1.y, p2.x - p1.x))


def rotate_point(point: Point, center: Point, angle: float) -> Point:
    """Rigidly rotate `point` about `center` by `angle` radians (counterclockwise in math axes)."""
    cos = np.cos(angle)
    sin = np.sin(angle)
    dx = point.x - center.x
    dy = point.y - center.y
    return Point(
        x=float(center.x + dx * cos - dy * sin),
        y=float(center.y + dx * sin + dy * cos),
    )


def circle_intersections(
    center1: Point,
    radius1: float,
    center2: Point,
    radius2: float,
) -> list[Point]:
    """
    Intersect two circles.

    Args:
        center1, radius1: First circle
        center2, radius2: Second circle

    Returns:
        [] when the circles are disjoint, nested or concentric; otherwise the
        two intersection points (identical at tangency). The order is fixed:
        the first root lies to the right of the center1 -> center2 direction
        in math axes.
    """
    dx = center2.x - center1.x
    dy = center2.y - center1.y
    d = float(np.hypot(dx, dy))

    if d == 0 or d > radius1 + radius2 or d < abs(radius1 - radius2):
        return []

    a = (radius1 * radius1 - radius2 * radius2 + d * d) / (2 * d)
    # Clamp absorbs round-off at tangency
    h = float(np.sqrt(max(0.0, radius1 * radius1 - a * a)))

    px = center1.x + (a * dx) / d
    py = center1.y + (a * dy) / d

    return [
        Point(x=px + (h * dy) / d, y=py - (h * dx) / d),
        Point(x=px - (h * dy) / d, y=py + (h * dx) / d),
    ]


def circle_line_intersections(
    center: Point,
    radius: float,
    line_point: Point,
    direction: tuple[float, float],
) -> list[Point]:
    """
    Intersect a circle with the infinite line through `line_point` along `direction`.

    Returns [] when the line misses the circle, otherwise two points ordered by
    increasing line parameter (identical at tangency).
    """
    ux, uy = direction
    norm = float(np.hypot(ux, uy))
    if norm == 0:
        raise ValueError("line direction must be non-zero")
    ux, uy = ux / norm, uy / norm

    # Solve |line_point + t*u - center|^2 = r^2 for t
    fx = line_point.x - center.x
    fy = line_point.y - center.y
    b = fx * ux + fy * uy
    c = fx * fx + fy * fy - radius * radius
    disc = b * b - c
    if disc < 0:
        return []

    root = float(np.sqrt(disc))
    return [
        Point(x=line_point.x + (-b - root) * ux, y=line_point.y + (-b - root) * uy),
        Point(x=line_point.x + (-b + root) * ux, y=line_point.y + (-b + root) * uy),
    ]


def closest_point(candidates: Iterable[Point], reference: Optional[Point]) -> Optional[Point]:
    """
    Pick the candidate nearest to `reference`.

    With no reference the first candidate wins, so replays stay reproducible.
    Ties keep the earlier candidate.
    """
    candidates = list(candidates)
    if not candidates:
        return None
    if reference is None:
        return candidates[0]
    return min(candidates, key=lambda p: distance(p, reference))


def polar_offset(origin: Point, length: float, angle: float) -> Point:
    """origin + length * (cos(angle), sin(angle))."""
    return Point(
        x=float(origin.x + length * np.cos(angle)),
        y=float(origin.y + length * np.sin(angle)),
    )


def normalize_angle(angle: float) -> float:
    """Wrap an angle into (-pi, pi]. For display only; engine angles stay unbounded."""
    wrapped = float(np.mod(angle + np.pi, 2 * np.pi) - np.pi)
    if wrapped == -np.pi:
        return float(np.pi)
    return wrapped


def degrees_to_radians(degrees: float) -> float:
    return float(np.deg2rad(degrees))


def radians_to_degrees(radians: float) -> float:
    return float(np.rad2deg(radians))


def clamp(value: float, min_value: float, max_value: float) -> float:
    return min(max(value, min_value), max_value)


def lerp(start: float, end: float, t: float) -> float:
    return start + (end - start) * t
