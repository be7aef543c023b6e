"""
kinematic.py - Planar linkage position solving.

This module provides reusable functions for:
  - Identifying the roles of joints and links in a four-bar (or slider-crank)
  - Solving joint positions for a given crank angle (crank geometry,
    circle-circle intersection, continuity-based branch selection)
  - Sweeping a crank through many angles and tracing coupler curves
  - Grashof classification, dead-point and transmission-angle analysis

Design notes:
  - Solvers are pure: they take the host's joints/links snapshot and return a
    new LinkageSolution; nothing is remembered between calls
  - Branch continuity is threaded by the caller through `previous_position`
  - A pose with no real solution (dead point) freezes the joints and sets
    `locked` instead of raising
  - Malformed mechanisms raise InvalidTopologyError before solving
"""
from __future__ import annotations

import logging
import math
from typing import Iterable

import numpy as np

from configs.appconfig import N_STEPS
from configs.mech_models import Joint
from configs.mech_models import Link
from configs.mech_models import Point
from mech_tools.errors import InvalidTopologyError
from mech_tools.geometry import circle_intersections
from mech_tools.geometry import circle_line_intersections
from mech_tools.geometry import closest_point
from mech_tools.geometry import distance
from mech_tools.geometry import polar_offset
from mech_tools.schemas import FourBarMechanism
from mech_tools.schemas import LinkageSolution
from mech_tools.schemas import SliderCrankMechanism

logger = logging.getLogger(__name__)


# =============================================================================
# Link Construction & Length Checks
# =============================================================================

def make_link(link_id: str, joint1: Joint, joint2: Joint, is_driver: bool = False) -> Link:
    """Create a link whose rigid length is the design-time distance between its joints."""
    return Link(
        id=link_id,
        joint1_id=joint1.id,
        joint2_id=joint2.id,
        length=distance(joint1.position, joint2.position),
        is_driver=is_driver,
    )


def check_link_lengths(
    joints: list[Joint],
    links: list[Link],
    rel_tol: float = 1e-6,
) -> list[tuple[str, float, float]]:
    """
    Find links whose joints are not at the declared length apart.

    Returns:
        [(link_id, declared_length, actual_distance), ...] for each violation
    """
    joint_by_id = _index_joints(joints)
    violations = []
    for link in links:
        _require_ends(link, joint_by_id)
        actual = distance(joint_by_id[link.joint1_id].position, joint_by_id[link.joint2_id].position)
        if not math.isclose(actual, link.length, rel_tol=rel_tol):
            violations.append((link.id, link.length, actual))
    return violations


def _index_joints(joints: list[Joint]) -> dict[str, Joint]:
    joint_by_id: dict[str, Joint] = {}
    for joint in joints:
        if joint.id in joint_by_id:
            raise InvalidTopologyError(f"Duplicate joint id '{joint.id}'")
        joint_by_id[joint.id] = joint
    return joint_by_id


def _require_ends(link: Link, joint_by_id: dict[str, Joint]) -> None:
    for joint_id in (link.joint1_id, link.joint2_id):
        if joint_id not in joint_by_id:
            raise InvalidTopologyError(f"Link '{link.id}' references unknown joint '{joint_id}'")


def _find_driver_link(links: list[Link], joint_by_id: dict[str, Joint]) -> tuple[Link, str, str]:
    """Return (driver link, fixed base id, crank joint id)."""
    drivers = [link for link in links if link.is_driver]
    if len(drivers) != 1:
        raise InvalidTopologyError(f"Need exactly one driver link, got {len(drivers)}")

    crank = drivers[0]
    fixed_ends = [j for j in (crank.joint1_id, crank.joint2_id) if joint_by_id[j].is_fixed]
    if len(fixed_ends) != 1:
        raise InvalidTopologyError(
            f"Driver link '{crank.id}' must run from a fixed joint to a free joint",
        )
    base_id = fixed_ends[0]
    return crank, base_id, crank.other_joint(base_id)


def _find_coupler(links: list[Link], crank: Link, crank_joint_id: str, joint_by_id: dict[str, Joint]) -> tuple[Link, str]:
    """Return (coupler link, id of its free far end)."""
    couplers = [
        link for link in links
        if link is not crank
        and link.connects(crank_joint_id)
        and not joint_by_id[link.other_joint(crank_joint_id)].is_fixed
    ]
    if len(couplers) != 1:
        raise InvalidTopologyError(
            f"Need exactly one coupler link from crank joint '{crank_joint_id}' to a free joint, got {len(couplers)}",
        )
    coupler = couplers[0]
    return coupler, coupler.other_joint(crank_joint_id)


# =============================================================================
# Mechanism Identification
# =============================================================================

def identify_four_bar(joints: list[Joint], links: list[Link]) -> FourBarMechanism:
    """
    Work out which joint and link plays which role in a four-bar.

    Requires exactly two fixed joints, exactly one driver link from a fixed
    joint to a free (crank) joint, one coupler from the crank joint to the
    other free joint, and one rocker from there to the second fixed joint.
    Link orientation does not matter; a ground link is optional since the
    ground length is the distance between the fixed joints.

    Raises:
        InvalidTopologyError: if any role cannot be filled unambiguously
    """
    joint_by_id = _index_joints(joints)
    for link in links:
        _require_ends(link, joint_by_id)

    fixed = [j for j in joints if j.is_fixed]
    if len(fixed) != 2:
        raise InvalidTopologyError(f"A four-bar needs exactly two fixed joints, got {len(fixed)}")

    crank, base_id, crank_joint_id = _find_driver_link(links, joint_by_id)
    pivot_id = next(j.id for j in fixed if j.id != base_id)
    coupler, coupler_joint_id = _find_coupler(links, crank, crank_joint_id, joint_by_id)

    rockers = [
        link for link in links
        if link is not crank and link is not coupler
        and link.connects(coupler_joint_id) and link.connects(pivot_id)
    ]
    if len(rockers) != 1:
        raise InvalidTopologyError(
            f"Need exactly one rocker link from '{coupler_joint_id}' to fixed joint '{pivot_id}', got {len(rockers)}",
        )

    return FourBarMechanism(
        fixed_base_id=base_id,
        fixed_pivot_id=pivot_id,
        crank_joint_id=crank_joint_id,
        coupler_joint_id=coupler_joint_id,
        crank=crank,
        coupler=coupler,
        rocker=rockers[0],
        ground_length=distance(joint_by_id[base_id].position, joint_by_id[pivot_id].position),
    )


def identify_slider_crank(joints: list[Joint], links: list[Link]) -> SliderCrankMechanism:
    """
    Identify a slider-crank: one fixed joint, a driver crank, and a connecting
    rod ending at a slider that runs on the horizontal line through its
    current position.
    """
    joint_by_id = _index_joints(joints)
    for link in links:
        _require_ends(link, joint_by_id)

    fixed = [j for j in joints if j.is_fixed]
    if len(fixed) != 1:
        raise InvalidTopologyError(f"A slider-crank needs exactly one fixed joint, got {len(fixed)}")

    crank, base_id, crank_joint_id = _find_driver_link(links, joint_by_id)
    rod, slider_id = _find_coupler(links, crank, crank_joint_id, joint_by_id)

    return SliderCrankMechanism(
        fixed_base_id=base_id,
        crank_joint_id=crank_joint_id,
        slider_joint_id=slider_id,
        crank=crank,
        connecting_rod=rod,
        guide_y=joint_by_id[slider_id].position.y,
    )


# =============================================================================
# Analysis
# =============================================================================

def classify_grashof(ground: float, crank: float, coupler: float, rocker: float) -> str:
    """
    Classify a four-bar by the Grashof condition s + l vs p + q.

    Returns:
        'double-crank'  - Grashof, ground is shortest
        'crank-rocker'  - Grashof, crank (or rocker) is shortest
        'double-rocker' - Grashof, coupler is shortest
        'change-point'  - s + l == p + q, can fold flat
        'non-grashof'   - no link fully rotates
    """
    lengths = (ground, crank, coupler, rocker)
    if min(lengths) <= 0:
        raise ValueError(f"Link lengths must be positive, got {lengths}")

    s = min(lengths)
    l = max(lengths)
    p_plus_q = sum(lengths) - s - l

    if math.isclose(s + l, p_plus_q, rel_tol=1e-9):
        return 'change-point'
    if s + l > p_plus_q:
        return 'non-grashof'

    shortest = lengths.index(s)
    if shortest == 0:
        return 'double-crank'
    if shortest == 2:
        return 'double-rocker'
    return 'crank-rocker'


def has_dead_point(mechanism: FourBarMechanism) -> bool:
    """
    True when some crank angle leaves the mechanism without a real pose.

    The crank-joint-to-pivot distance sweeps [|g - a|, g + a]; the crank turns
    fully only if that whole range fits inside [|c - r|, c + r].
    """
    g, a, c, r = mechanism.lengths
    eps = 1e-9 * max(g, a, c, r)
    fits_inside = abs(g - a) >= abs(c - r) - eps and g + a <= c + r + eps
    return not fits_inside


def transmission_angle(coupler_length: float, rocker_length: float, crank_to_pivot: float) -> float:
    """Angle between coupler and rocker at their shared joint, via the law of cosines."""
    cos_mu = (
        coupler_length ** 2 + rocker_length ** 2 - crank_to_pivot ** 2
    ) / (2 * coupler_length * rocker_length)
    return float(np.arccos(np.clip(cos_mu, -1.0, 1.0)))


# =============================================================================
# Solvers
# =============================================================================

def _replace_positions(joints: list[Joint], positions: dict[str, Point]) -> tuple[Joint, ...]:
    return tuple(
        j.model_copy(update={'position': positions[j.id]}) if j.id in positions else j.model_copy()
        for j in joints
    )


def _frozen_solution(
    joints: list[Joint],
    joint_by_id: dict[str, Joint],
    crank_joint_id: str,
    coupler_joint_id: str,
    crank_angle: float,
) -> LinkageSolution:
    return LinkageSolution(
        joints=tuple(j.model_copy() for j in joints),
        crank_angle=crank_angle,
        crank_position=joint_by_id[crank_joint_id].position,
        coupler_position=joint_by_id[coupler_joint_id].position,
        locked=True,
    )


def solve_four_bar(
    joints: list[Joint],
    links: list[Link],
    crank_angle: float,
    previous_position: Point | None = None,
) -> LinkageSolution:
    """
    Solve a four-bar for one crank angle.

    Steps:
      1. Crank joint = fixed base + crank_length * (cos, sin)(crank_angle)
      2. Coupler joint candidates = intersections of the coupler circle about
         the crank joint and the rocker circle about the second fixed joint
      3. Keep the candidate closest to `previous_position` (first root when
         none is given)

    At a dead point all joints keep their input positions and the result is
    marked `locked`.

    Args:
        joints: Current joints (returned as new values in the same order)
        links: Links of the mechanism
        crank_angle: Driver angle in radians
        previous_position: Coupler joint position from the previous tick

    Returns:
        LinkageSolution
    """
    mechanism = identify_four_bar(joints, links)
    joint_by_id = {j.id: j for j in joints}

    base = joint_by_id[mechanism.fixed_base_id].position
    pivot = joint_by_id[mechanism.fixed_pivot_id].position
    crank_position = polar_offset(base, mechanism.crank.length, crank_angle)

    candidates = circle_intersections(
        crank_position, mechanism.coupler.length,
        pivot, mechanism.rocker.length,
    )
    if not candidates:
        logger.debug(f"Dead point at crank angle {crank_angle:.4f}, freezing joints")
        return _frozen_solution(
            joints, joint_by_id, mechanism.crank_joint_id, mechanism.coupler_joint_id, crank_angle,
        )

    coupler_position = closest_point(candidates, previous_position)

    return LinkageSolution(
        joints=_replace_positions(joints, {
            mechanism.crank_joint_id: crank_position,
            mechanism.coupler_joint_id: coupler_position,
        }),
        crank_angle=crank_angle,
        crank_position=crank_position,
        coupler_position=coupler_position,
        locked=False,
        transmission_angle=transmission_angle(
            mechanism.coupler.length, mechanism.rocker.length, distance(crank_position, pivot),
        ),
    )


def solve_slider_crank(
    joints: list[Joint],
    links: list[Link],
    crank_angle: float,
    previous_position: Point | None = None,
) -> LinkageSolution:
    """
    Solve a slider-crank for one crank angle.

    The slider is the intersection of the connecting-rod circle about the
    crank joint with the horizontal guide; branch selection and dead-point
    freezing follow solve_four_bar.
    """
    mechanism = identify_slider_crank(joints, links)
    joint_by_id = {j.id: j for j in joints}

    base = joint_by_id[mechanism.fixed_base_id].position
    crank_position = polar_offset(base, mechanism.crank.length, crank_angle)

    candidates = circle_line_intersections(
        crank_position, mechanism.connecting_rod.length,
        Point(x=base.x, y=mechanism.guide_y), (1.0, 0.0),
    )
    if not candidates:
        logger.debug(f"Connecting rod cannot reach the guide at crank angle {crank_angle:.4f}")
        return _frozen_solution(
            joints, joint_by_id, mechanism.crank_joint_id, mechanism.slider_joint_id, crank_angle,
        )

    slider_position = closest_point(candidates, previous_position)

    return LinkageSolution(
        joints=_replace_positions(joints, {
            mechanism.crank_joint_id: crank_position,
            mechanism.slider_joint_id: slider_position,
        }),
        crank_angle=crank_angle,
        crank_position=crank_position,
        coupler_position=slider_position,
        locked=False,
    )


def solve_linkage(
    joints: list[Joint],
    links: list[Link],
    crank_angle: float,
    previous_position: Point | None = None,
) -> LinkageSolution:
    """Dispatch on ground count: two fixed joints solve as a four-bar, one as a slider-crank."""
    n_fixed = sum(1 for j in joints if j.is_fixed)
    if n_fixed == 2:
        return solve_four_bar(joints, links, crank_angle, previous_position)
    if n_fixed == 1:
        return solve_slider_crank(joints, links, crank_angle, previous_position)
    raise InvalidTopologyError(f"Unsupported mechanism with {n_fixed} fixed joints")


def _output_joint_id(joints: list[Joint], links: list[Link]) -> str:
    if sum(1 for j in joints if j.is_fixed) == 1:
        return identify_slider_crank(joints, links).slider_joint_id
    return identify_four_bar(joints, links).coupler_joint_id


# =============================================================================
# Sweeps
# =============================================================================

def sweep_linkage(
    joints: list[Joint],
    links: list[Link],
    angles: Iterable[float],
    seed_position: Point | None = None,
) -> list[LinkageSolution]:
    """
    Solve a sequence of crank angles, threading the previous coupler position.

    The first tick is matched against `seed_position`, defaulting to the
    output joint's design position so the sweep stays on the drawn branch.
    Locked ticks carry the last valid pose forward.
    """
    output_id = _output_joint_id(joints, links)
    previous = seed_position or next(j.position for j in joints if j.id == output_id)

    solutions = []
    current = list(joints)
    n_locked = 0
    for angle in angles:
        solution = solve_linkage(current, links, angle, previous)
        solutions.append(solution)
        if solution.locked:
            n_locked += 1
        else:
            current = list(solution.joints)
            previous = solution.coupler_position

    if n_locked:
        logger.warning(f"Mechanism locked on {n_locked}/{len(solutions)} crank angles")
    return solutions


# Four-bar entry point kept for callers that want the four-bar validation
def sweep_four_bar(
    joints: list[Joint],
    links: list[Link],
    angles: Iterable[float],
    seed_position: Point | None = None,
) -> list[LinkageSolution]:
    identify_four_bar(joints, links)
    return sweep_linkage(joints, links, angles, seed_position)


def trace_coupler_curve(
    joints: list[Joint],
    links: list[Link],
    n_steps: int = N_STEPS,
    joint_id: str | None = None,
    start_angle: float = 0.0,
) -> list[Point]:
    """
    Sample one full crank revolution and return the path of a joint.

    Args:
        joints, links: Mechanism snapshot
        n_steps: Samples per revolution
        joint_id: Joint to trace; defaults to the coupler (or slider) joint
        start_angle: Crank angle of the first sample

    Returns:
        Positions of the joint on every non-locked sample
    """
    if n_steps < 1:
        raise ValueError(f"n_steps must be at least 1, got {n_steps}")

    target_id = joint_id or _output_joint_id(joints, links)
    if not any(j.id == target_id for j in joints):
        raise InvalidTopologyError(f"Unknown joint '{target_id}'")

    angles = start_angle + np.linspace(0, 2 * np.pi, n_steps, endpoint=False)
    return [
        solution.joint(target_id).position
        for solution in sweep_linkage(joints, links, angles)
        if not solution.locked
    ]
