"""
trajectory_utils.py - Path tracing and motion estimates for linkage playback.

This module provides:
  - PathTrace: a bounded trailing history of a joint's positions, for drawing
    coupler curves while the crank turns
  - Finite-difference velocity and acceleration between ticks

=============================================================================
TRACE LENGTH
=============================================================================

The trace keeps the most recent TRACE_LENGTH samples (200 by default). At
one sample per tick and 0.02 rad per tick, 200 samples cover about 4 rad of
crank travel, i.e. most of one revolution. Longer traces draw the full curve
at the cost of memory; the oldest sample is dropped once the buffer is full.
=============================================================================
"""
from __future__ import annotations

from collections import deque
from typing import Iterable

import numpy as np

from configs.appconfig import TRACE_LENGTH
from configs.mech_models import Point


# =============================================================================
# Type Definitions
# =============================================================================

Vector = tuple[float, float]
TrajectoryArray = np.ndarray  # Shape: (n_points, 2)


# =============================================================================
# Path Trace
# =============================================================================

class PathTrace:
    """Ring buffer of the most recent positions of one joint."""

    def __init__(self, joint_id: str, max_length: int = TRACE_LENGTH):
        if max_length < 1:
            raise ValueError(f"max_length must be at least 1, got {max_length}")
        self.joint_id = joint_id
        self.max_length = max_length
        self._points: deque[Point] = deque(maxlen=max_length)

    def __len__(self) -> int:
        return len(self._points)

    def __iter__(self):
        return iter(self._points)

    def append(self, point: Point) -> None:
        self._points.append(point)

    def extend(self, points: Iterable[Point]) -> None:
        self._points.extend(points)

    def clear(self) -> None:
        self._points.clear()

    @property
    def points(self) -> list[Point]:
        return list(self._points)

    def as_array(self) -> TrajectoryArray:
        if not self._points:
            return np.empty((0, 2))
        return np.array([p.as_tuple() for p in self._points])


# =============================================================================
# Finite Differences
# =============================================================================

def _check_dt(dt: float) -> None:
    if dt <= 0:
        raise ValueError(f"dt must be positive, got {dt}")


def calculate_velocity(current: Point, previous: Point, dt: float) -> Vector:
    """Backward-difference velocity between two ticks."""
    _check_dt(dt)
    return ((current.x - previous.x) / dt, (current.y - previous.y) / dt)


def calculate_acceleration(current_velocity: Vector, previous_velocity: Vector, dt: float) -> Vector:
    _check_dt(dt)
    return (
        (current_velocity[0] - previous_velocity[0]) / dt,
        (current_velocity[1] - previous_velocity[1]) / dt,
    )


def finite_difference_velocities(path: list[Point], dt: float) -> TrajectoryArray:
    """
    Velocities along a sampled path.

    Returns:
        Array of shape (len(path) - 1, 2); empty for fewer than two samples
    """
    _check_dt(dt)
    if len(path) < 2:
        return np.empty((0, 2))
    traj = np.array([p.as_tuple() for p in path])
    return np.diff(traj, axis=0) / dt


def finite_difference_accelerations(path: list[Point], dt: float) -> TrajectoryArray:
    """Accelerations along a sampled path, shape (len(path) - 2, 2)."""
    velocities = finite_difference_velocities(path, dt)
    if len(velocities) < 2:
        return np.empty((0, 2))
    return np.diff(velocities, axis=0) / dt


def path_length(path: list[Point], closed: bool = False) -> float:
    """Total polyline length, optionally including the closing segment."""
    if len(path) < 2:
        return 0.0
    traj = np.array([p.as_tuple() for p in path])
    if closed:
        traj = np.vstack([traj, traj[:1]])
    return float(np.sum(np.linalg.norm(np.diff(traj, axis=0), axis=1)))


def max_step(path: list[Point]) -> float:
    """Largest distance between consecutive samples; a branch jump shows up here."""
    if len(path) < 2:
        return 0.0
    traj = np.array([p.as_tuple() for p in path])
    return float(np.max(np.linalg.norm(np.diff(traj, axis=0), axis=1)))
