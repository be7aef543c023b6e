"""
pulleys.py - Closed-form pulley system metrics.

No iteration or graph structure: mechanical advantage comes from counting
the rope segments that hold up the load, then derating by friction.
"""
from __future__ import annotations

import numpy as np

from configs.appconfig import GRAVITY
from configs.appconfig import PULLEY_FRICTION
from configs.mech_models import Load
from configs.mech_models import Point
from configs.mech_models import Pulley
from mech_tools.geometry import distance
from mech_tools.schemas import PulleyMetrics


def calculate_weight(mass: float) -> float:
    return mass * GRAVITY


def count_supporting_ropes(pulleys: list[Pulley]) -> int:
    """Two segments per movable pulley; a bare fixed pulley still holds the load on one."""
    count = sum(2 for p in pulleys if not p.is_fixed)
    return max(count, 1)


def calculate_ideal_ma(pulleys: list[Pulley]) -> float:
    return float(count_supporting_ropes(pulleys))


def calculate_pulley_efficiency(pulleys: list[Pulley], friction: float = PULLEY_FRICTION) -> float:
    return friction ** len(pulleys)


def calculate_actual_ma(pulleys: list[Pulley], friction: float = PULLEY_FRICTION) -> float:
    return calculate_ideal_ma(pulleys) * calculate_pulley_efficiency(pulleys, friction)


def calculate_required_effort(load: Load, actual_ma: float) -> float:
    if actual_ma <= 0:
        raise ValueError(f"Mechanical advantage must be positive, got {actual_ma}")
    return load.weight / actual_ma


def calculate_distance_ratio(ma: float) -> float:
    """Rope pulled per unit of lift; equal to the ideal mechanical advantage."""
    return ma


def calculate_rope_length(pulleys: list[Pulley], load: Load) -> float:
    """Polyline through the pulleys in order, then down to the load."""
    total = sum(distance(a.position, b.position) for a, b in zip(pulleys, pulleys[1:]))
    if pulleys:
        total += distance(pulleys[-1].position, load.position)
    return float(total)


def calculate_pulley_system_metrics(
    pulleys: list[Pulley],
    load: Load,
    friction: float = PULLEY_FRICTION,
) -> PulleyMetrics:
    ideal_ma = calculate_ideal_ma(pulleys)
    actual_ma = calculate_actual_ma(pulleys, friction)
    return PulleyMetrics(
        ideal_ma=ideal_ma,
        actual_ma=actual_ma,
        required_effort=calculate_required_effort(load, actual_ma),
        distance_ratio=calculate_distance_ratio(ideal_ma),
        rope_length=calculate_rope_length(pulleys, load),
        efficiency=calculate_pulley_efficiency(pulleys, friction),
    )


def calculate_catenary_points(start: Point, end: Point, sag: float, segments: int = 20) -> list[Point]:
    """Sagging rope between two points (sine-shaped approximation of a catenary)."""
    t = np.linspace(0, 1, segments + 1)
    xs = start.x + (end.x - start.x) * t
    ys = start.y + (end.y - start.y) * t + sag * np.sin(t * np.pi)
    return [Point(x=float(x), y=float(y)) for x, y in zip(xs, ys)]


def calculate_rope_tension(effort: float, ma: float, segment_index: int, total_segments: int) -> float:
    """Tension ramps from the effort at the free end to effort * ma at the load end."""
    ratio = segment_index / total_segments
    return effort * (1 + ratio * (ma - 1))
