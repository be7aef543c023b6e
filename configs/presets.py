"""
presets.py - Static starting configurations for gears, linkages and pulleys.

Gear positions are laid out so neighbouring pitch circles touch
(centre distance = (T1 + T2) * module / 2).
"""
from __future__ import annotations

import logging

from configs.appconfig import GEAR_MODULE
from configs.mech_models import Gear
from configs.mech_models import GearConnection
from configs.mech_models import GearPreset
from configs.mech_models import GearSpec
from configs.mech_models import Joint
from configs.mech_models import JointSpec
from configs.mech_models import Link
from configs.mech_models import LinkagePreset
from configs.mech_models import LinkSpec
from configs.mech_models import Load
from configs.mech_models import Point
from configs.mech_models import Pulley
from configs.mech_models import PulleyPreset
from configs.mech_models import PulleySpec
from mech_tools.geometry import circle_intersections
from mech_tools.geometry import polar_offset

logger = logging.getLogger(__name__)


def _r(teeth: int) -> float:
    return teeth * GEAR_MODULE / 2


def _gear(teeth, x, y, is_driver=False) -> GearSpec:
    return GearSpec(teeth=teeth, position=Point(x=x, y=y), is_driver=is_driver)


def _joint(x, y, is_fixed=False) -> JointSpec:
    return JointSpec(position=Point(x=x, y=y), is_fixed=is_fixed)


def _link(j1, j2, length, is_driver=False) -> LinkSpec:
    return LinkSpec(joint1_id=j1, joint2_id=j2, length=length, is_driver=is_driver)


def _four_bar_joints(base, pivot, crank, coupler, rocker) -> list[JointSpec]:
    """
    Ground joints plus the crank and coupler joints solved at crank angle 0,
    so every link starts at its declared length. The coupler joint takes the
    upper root (smaller y on the canvas).
    """
    base_point = Point(x=base[0], y=base[1])
    pivot_point = Point(x=pivot[0], y=pivot[1])
    crank_point = polar_offset(base_point, crank, 0.0)
    coupler_point = circle_intersections(crank_point, coupler, pivot_point, rocker)[0]
    return [
        _joint(*base, True),
        _joint(*pivot, True),
        _joint(*crank_point.as_tuple()),
        _joint(*coupler_point.as_tuple()),
    ]


def _pulley(x, y, radius, is_fixed=True) -> PulleySpec:
    return PulleySpec(position=Point(x=x, y=y), radius=radius, is_fixed=is_fixed)


GEAR_PRESETS: dict[str, GearPreset] = {
    'simple': GearPreset(
        name='Simple Reduction',
        description='2 gears (60T -> 20T = 3:1 speedup)',
        gears=[
            _gear(60, 200, 300, is_driver=True),
            _gear(20, 200 + _r(60) + _r(20), 300),
        ],
    ),
    'compound': GearPreset(
        name='Compound Gear Train',
        description='4 gears achieving high ratio (9:1)',
        gears=[
            _gear(60, 150, 300, is_driver=True),
            _gear(20, 150 + _r(60) + _r(20), 300),
            _gear(60, 150 + _r(60) + _r(20), 200),
            _gear(20, 150 + _r(60) + _r(20) + _r(60) + _r(20), 200),
        ],
        connections=[GearConnection(gear1_id='g1', gear2_id='g2', type='axle')],
    ),
    'clockwork': GearPreset(
        name='Clock Mechanism',
        description='Two reductions on a shared axle (24:1)',
        gears=[
            _gear(10, 200, 300, is_driver=True),
            _gear(40, 200 + _r(10) + _r(40), 300),
            _gear(10, 200 + _r(10) + _r(40), 200),
            _gear(60, 200 + _r(10) + _r(40) + _r(10) + _r(60), 200),
        ],
        connections=[GearConnection(gear1_id='g1', gear2_id='g2', type='axle')],
    ),
    'bicycle': GearPreset(
        name='Bicycle Drivetrain',
        description='Chainring to cassette (2.5:1 ratio)',
        gears=[
            _gear(40, 200, 300, is_driver=True),
            _gear(16, 200 + _r(40) + _r(16), 300),
        ],
        connections=[GearConnection(gear1_id='g0', gear2_id='g1', type='chain')],
    ),
    'reversal': GearPreset(
        name='Direction Reversal',
        description='3 gears to reverse direction twice',
        gears=[
            _gear(30, 150, 300, is_driver=True),
            _gear(30, 150 + _r(30) + _r(30), 300),
            _gear(30, 150 + 2 * (_r(30) + _r(30)), 300),
        ],
    ),
}


LINKAGE_PRESETS: dict[str, LinkagePreset] = {
    'fourbar': LinkagePreset(
        name='Four-Bar Linkage',
        description='Basic four-bar mechanism',
        joints=_four_bar_joints((150, 300), (450, 300), crank=120, coupler=180, rocker=140),
        links=[
            _link('0', '2', 120, is_driver=True),
            _link('2', '3', 180),
            _link('3', '1', 140),
            _link('0', '1', 300),
        ],
    ),
    'slider': LinkagePreset(
        name='Slider-Crank (Engine)',
        description='Converts rotary to linear motion',
        joints=[_joint(200, 300, True), _joint(500, 300), _joint(300, 300)],
        links=[
            _link('0', '2', 100, is_driver=True),
            _link('2', '1', 200),
        ],
    ),
    'wiper': LinkagePreset(
        name='Windshield Wiper',
        description='Parallel motion four-bar',
        # standing parallelogram; at crank angle 0 this linkage folds flat
        joints=[_joint(150, 350, True), _joint(450, 350, True), _joint(150, 190), _joint(450, 190)],
        links=[
            _link('0', '2', 160, is_driver=True),
            _link('2', '3', 300),
            _link('3', '1', 160),
            _link('0', '1', 300),
        ],
    ),
    'oscillator': LinkagePreset(
        name='Oscillating Rocker',
        description='Crank converts to rocking motion',
        joints=_four_bar_joints((200, 300), (500, 300), crank=90, coupler=200, rocker=80),
        links=[
            _link('0', '2', 90, is_driver=True),
            _link('2', '3', 200),
            _link('3', '1', 80),
            _link('0', '1', 300),
        ],
    ),
    'draglink': LinkagePreset(
        name='Drag-Link (Double Crank)',
        description='Both cranks rotate fully',
        joints=_four_bar_joints((200, 300), (400, 300), crank=75, coupler=120, rocker=75),
        links=[
            _link('0', '2', 75, is_driver=True),
            _link('2', '3', 120),
            _link('3', '1', 75),
            _link('0', '1', 200),
        ],
    ),
}


PULLEY_PRESETS: dict[str, PulleyPreset] = {
    'single_fixed': PulleyPreset(
        name='Single Fixed Pulley',
        description='MA = 1 (direction change only)',
        pulleys=[_pulley(300, 100, 30)],
        load_mass=50,
    ),
    'single_movable': PulleyPreset(
        name='Single Movable Pulley',
        description='MA = 2',
        pulleys=[_pulley(300, 100, 30), _pulley(300, 250, 30, is_fixed=False)],
        load_mass=100,
    ),
    'block_tackle_4': PulleyPreset(
        name='Block and Tackle (4:1)',
        description='2 fixed, 2 movable pulleys',
        pulleys=[
            _pulley(250, 100, 30), _pulley(350, 100, 30),
            _pulley(250, 250, 30, is_fixed=False), _pulley(350, 250, 30, is_fixed=False),
        ],
        load_mass=200,
    ),
    'block_tackle_6': PulleyPreset(
        name='Block and Tackle (6:1)',
        description='3 fixed, 3 movable pulleys',
        pulleys=[
            _pulley(200, 100, 25), _pulley(300, 100, 25), _pulley(400, 100, 25),
            _pulley(200, 250, 25, is_fixed=False), _pulley(300, 250, 25, is_fixed=False),
            _pulley(400, 250, 25, is_fixed=False),
        ],
        load_mass=300,
    ),
    'crane': PulleyPreset(
        name='Crane System',
        description='Complex 8:1 ratio',
        pulleys=[
            _pulley(200, 80, 25), _pulley(280, 80, 25), _pulley(360, 80, 25), _pulley(440, 80, 25),
            _pulley(200, 220, 25, is_fixed=False), _pulley(280, 220, 25, is_fixed=False),
            _pulley(360, 220, 25, is_fixed=False), _pulley(440, 220, 25, is_fixed=False),
        ],
        load_mass=500,
    ),
    'z_rig': PulleyPreset(
        name='Z-Rig (3:1)',
        description='Rock climbing rescue system',
        pulleys=[
            _pulley(300, 100, 30),
            _pulley(300, 200, 30, is_fixed=False),
            _pulley(300, 300, 30, is_fixed=False),
        ],
        load_mass=150,
    ),
}

LOAD_POSITION = Point(x=300, y=350)


def load_gear_preset(key: str) -> list[Gear]:
    """Instantiate a gear preset: idle gears with ids 'g0'.., each meshed with the next."""
    preset = GEAR_PRESETS[key]
    ids = [f"g{i}" for i in range(len(preset.gears))]
    gears = []
    for i, spec in enumerate(preset.gears):
        neighbors = [ids[j] for j in (i - 1, i + 1) if 0 <= j < len(ids)]
        gears.append(Gear(
            id=ids[i],
            teeth=spec.teeth,
            position=spec.position,
            is_driver=spec.is_driver,
            gear_type=spec.gear_type,
            connected_to=tuple(neighbors),
        ))
    logger.info(f"Loaded gear preset '{key}' ({len(gears)} gears)")
    return gears


def load_gear_connections(key: str) -> list[GearConnection]:
    """Typed (chain/axle) edges of a gear preset, using the ids from load_gear_preset."""
    return list(GEAR_PRESETS[key].connections or [])


def load_linkage_preset(key: str) -> tuple[list[Joint], list[Link]]:
    """Instantiate a linkage preset; joint ids are their indices as strings."""
    preset = LINKAGE_PRESETS[key]
    joints = [
        Joint(id=str(i), position=spec.position, is_fixed=spec.is_fixed)
        for i, spec in enumerate(preset.joints)
    ]
    links = [
        Link(id=f"link{i}", **spec.model_dump())
        for i, spec in enumerate(preset.links)
    ]
    logger.info(f"Loaded linkage preset '{key}' ({len(joints)} joints, {len(links)} links)")
    return joints, links


def load_pulley_preset(key: str) -> tuple[list[Pulley], Load]:
    preset = PULLEY_PRESETS[key]
    pulleys = [
        Pulley(id=f"p{i}", **spec.model_dump())
        for i, spec in enumerate(preset.pulleys)
    ]
    return pulleys, Load(id='load', position=LOAD_POSITION, mass=preset.load_mass)
