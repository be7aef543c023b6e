from __future__ import annotations

import numpy as np
import pytest

from configs.mech_models import Joint
from configs.mech_models import Link
from configs.mech_models import Point
from configs.presets import load_linkage_preset
from mech_tools.errors import InvalidTopologyError
from mech_tools.geometry import distance
from mech_tools.kinematic import check_link_lengths
from mech_tools.kinematic import classify_grashof
from mech_tools.kinematic import has_dead_point
from mech_tools.kinematic import identify_four_bar
from mech_tools.kinematic import identify_slider_crank
from mech_tools.kinematic import make_link
from mech_tools.kinematic import solve_four_bar
from mech_tools.kinematic import solve_linkage
from mech_tools.kinematic import sweep_four_bar
from mech_tools.kinematic import sweep_linkage
from mech_tools.kinematic import trace_coupler_curve
from mech_tools.kinematic import transmission_angle
from mech_tools.trajectory_utils import max_step


def J(joint_id, x, y, is_fixed=False):
    return Joint(id=joint_id, position=Point(x=x, y=y), is_fixed=is_fixed)


def L(link_id, j1, j2, length, is_driver=False):
    return Link(id=link_id, joint1_id=j1, joint2_id=j2, length=length, is_driver=is_driver)


@pytest.fixture
def crank_rocker():
    """Grashof crank-rocker: ground 100, crank 40, coupler 120, rocker 80"""
    joints = [J('A', 0, 0, True), J('D', 100, 0, True), J('B', 40, 0), J('C', 130, 70)]
    links = [
        L('crank', 'A', 'B', 40, is_driver=True),
        L('coupler', 'B', 'C', 120),
        L('rocker', 'C', 'D', 80),
    ]
    return joints, links


# =============================================================================
# Identification
# =============================================================================

def test_identify_four_bar_roles(crank_rocker):
    joints, links = crank_rocker
    mech = identify_four_bar(joints, links)
    assert (mech.fixed_base_id, mech.fixed_pivot_id) == ('A', 'D')
    assert (mech.crank_joint_id, mech.coupler_joint_id) == ('B', 'C')
    assert mech.lengths == (100, 40, 120, 80)


def test_identify_four_bar_ignores_link_orientation(crank_rocker):
    joints, _ = crank_rocker
    flipped = [
        L('crank', 'B', 'A', 40, is_driver=True),
        L('coupler', 'C', 'B', 120),
        L('rocker', 'D', 'C', 80),
        L('ground', 'D', 'A', 100),
    ]
    assert identify_four_bar(joints, flipped).coupler_joint_id == 'C'


def test_identify_four_bar_errors(crank_rocker):
    joints, links = crank_rocker
    no_driver = [links[0].model_copy(update={'is_driver': False})] + links[1:]
    with pytest.raises(InvalidTopologyError):
        identify_four_bar(joints, no_driver)

    dangling = links + [L('extra', 'C', 'Z', 10)]
    with pytest.raises(InvalidTopologyError):
        identify_four_bar(joints, dangling)

    duplicate = joints + [J('A', 5, 5)]
    with pytest.raises(InvalidTopologyError):
        identify_four_bar(duplicate, links)


def test_solve_linkage_rejects_unsupported_ground_count(crank_rocker):
    joints, links = crank_rocker
    all_fixed = [j.model_copy(update={'is_fixed': True}) for j in joints]
    with pytest.raises(InvalidTopologyError):
        solve_linkage(all_fixed, links, 0.0)


# =============================================================================
# Analysis
# =============================================================================

@pytest.mark.parametrize('lengths, expected', [
    ((100, 40, 120, 80), 'crank-rocker'),
    ((40, 100, 120, 80), 'double-crank'),
    ((100, 80, 40, 120), 'double-rocker'),
    ((300, 160, 300, 160), 'change-point'),
    ((300, 120, 180, 140), 'non-grashof'),
])
def test_classify_grashof(lengths, expected):
    assert classify_grashof(*lengths) == expected


def test_classify_grashof_rejects_non_positive():
    with pytest.raises(ValueError):
        classify_grashof(100, 0, 50, 50)


def test_has_dead_point(crank_rocker):
    joints, links = crank_rocker
    assert not has_dead_point(identify_four_bar(joints, links))

    joints, links = load_linkage_preset('fourbar')
    assert has_dead_point(identify_four_bar(joints, links))


def test_transmission_angle_right_angle():
    """3-4-5: coupler 3, rocker 4, diagonal 5 -> 90 degrees"""
    assert transmission_angle(3, 4, 5) == pytest.approx(np.pi / 2)


# =============================================================================
# Solving
# =============================================================================

def test_solve_four_bar_preset_at_zero():
    """Four-bar preset: crank joint lands at base + 120 along x"""
    joints, links = load_linkage_preset('fourbar')
    sol = solve_four_bar(joints, links, 0.0, previous_position=joints[3].position)

    assert not sol.locked
    assert sol.crank_position.as_tuple() == pytest.approx((270.0, 300.0))
    assert distance(sol.coupler_position, sol.crank_position) == pytest.approx(180)
    assert distance(sol.coupler_position, Point(x=450, y=300)) == pytest.approx(140)
    # stays on the drawn branch (above the ground line in canvas coordinates)
    assert sol.coupler_position.y < 300
    assert sol.transmission_angle is not None


def test_solve_four_bar_fixed_joints_untouched():
    joints, links = load_linkage_preset('fourbar')
    sol = solve_four_bar(joints, links, 0.3)
    assert sol.joint('0').position == joints[0].position
    assert sol.joint('1').position == joints[1].position
    with pytest.raises(KeyError):
        sol.joint('missing')


def test_dead_point_freezes_joints():
    """At pi the crank joint is 420 from the pivot, beyond coupler + rocker = 320"""
    joints, links = load_linkage_preset('fourbar')
    sol = solve_four_bar(joints, links, np.pi)
    assert sol.locked
    assert sol.transmission_angle is None
    assert [j.position for j in sol.joints] == [j.position for j in joints]


def test_without_previous_position_first_root_wins(crank_rocker):
    joints, links = crank_rocker
    a = solve_four_bar(joints, links, 1.0)
    b = solve_four_bar(joints, links, 1.0)
    assert a.coupler_position == b.coupler_position


def test_previous_position_selects_branch(crank_rocker):
    joints, links = crank_rocker
    up = solve_four_bar(joints, links, 0.0, previous_position=Point(x=130, y=70))
    down = solve_four_bar(joints, links, 0.0, previous_position=Point(x=130, y=-70))
    assert up.coupler_position.y > 0
    assert down.coupler_position.y < 0


def test_make_link_uses_design_distance():
    link = make_link('l', J('a', 0, 0), J('b', 3, 4))
    assert link.length == pytest.approx(5)


# =============================================================================
# Sweeps
# =============================================================================

def test_sweep_keeps_link_lengths_and_continuity(crank_rocker):
    joints, links = crank_rocker
    angles = np.linspace(0, 2 * np.pi, 360, endpoint=False)
    solutions = sweep_linkage(joints, links, angles)

    assert len(solutions) == 360
    assert not any(s.locked for s in solutions)
    for s in solutions:
        assert check_link_lengths(list(s.joints), links) == []

    path = [s.coupler_position for s in solutions]
    # a branch flip would jump ~140 units
    assert max_step(path) < 10


def test_sweep_locked_tick_carries_last_pose(caplog):
    joints, links = load_linkage_preset('fourbar')
    solutions = sweep_four_bar(joints, links, [0.0, np.pi])
    valid, locked = solutions
    assert not valid.locked
    assert locked.locked
    assert [j.position for j in locked.joints] == [j.position for j in valid.joints]
    assert 'locked' in caplog.text


def test_check_link_lengths_reports_violations(crank_rocker):
    joints, links = crank_rocker
    violations = check_link_lengths(joints, links)
    # design coupler joint (130, 70) is not exactly on both circles
    assert {v[0] for v in violations} <= {'coupler', 'rocker'}
    assert check_link_lengths(joints, links[:1]) == []


def test_trace_coupler_curve(crank_rocker):
    joints, links = crank_rocker
    curve = trace_coupler_curve(joints, links, n_steps=36)
    assert len(curve) == 36
    for p in curve:
        assert distance(p, Point(x=100, y=0)) == pytest.approx(80)

    crank_path = trace_coupler_curve(joints, links, n_steps=4, joint_id='B')
    assert crank_path[1].as_tuple() == pytest.approx((0.0, 40.0), abs=1e-9)

    with pytest.raises(ValueError):
        trace_coupler_curve(joints, links, n_steps=0)
    with pytest.raises(InvalidTopologyError):
        trace_coupler_curve(joints, links, joint_id='nope')


# =============================================================================
# Slider-Crank
# =============================================================================

def test_slider_crank_preset():
    joints, links = load_linkage_preset('slider')
    mech = identify_slider_crank(joints, links)
    assert mech.slider_joint_id == '1'
    assert mech.guide_y == 300

    at_zero = solve_linkage(joints, links, 0.0, previous_position=joints[1].position)
    assert at_zero.coupler_position.as_tuple() == pytest.approx((500.0, 300.0))

    quarter = solve_linkage(joints, links, np.pi / 2, previous_position=at_zero.coupler_position)
    assert quarter.crank_position.as_tuple() == pytest.approx((200.0, 400.0))
    assert quarter.coupler_position.x == pytest.approx(200 + np.sqrt(200 ** 2 - 100 ** 2))


def test_slider_crank_sweep_stays_on_guide():
    joints, links = load_linkage_preset('slider')
    solutions = sweep_linkage(joints, links, np.linspace(0, 2 * np.pi, 90, endpoint=False))
    assert not any(s.locked for s in solutions)
    for s in solutions:
        assert s.coupler_position.y == pytest.approx(300)
        assert distance(s.coupler_position, s.crank_position) == pytest.approx(200)
    xs = [s.coupler_position.x for s in solutions]
    assert min(xs) == pytest.approx(300, abs=1)
    assert max(xs) == pytest.approx(500, abs=1e-6)


def test_slider_crank_rod_too_short_freezes_joints():
    """Crank 50, rod 20: at pi/2 the crank joint sits 50 above the guide and the rod cannot reach it"""
    joints = [J('A', 0, 0, True), J('S', 60, 0), J('B', 50, 0)]
    links = [L('crank', 'A', 'B', 50, is_driver=True), L('rod', 'B', 'S', 20)]

    sol = solve_linkage(joints, links, np.pi / 2)
    assert sol.locked is True
    assert sol.transmission_angle is None
    assert [j.position for j in sol.joints] == [j.position for j in joints]

    valid, locked = sweep_linkage(joints, links, [0.0, np.pi / 2])
    assert not valid.locked
    assert valid.coupler_position.as_tuple() == pytest.approx((70.0, 0.0))
    assert locked.locked
    assert [j.position for j in locked.joints] == [j.position for j in valid.joints]
