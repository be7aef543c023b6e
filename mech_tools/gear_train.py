"""
gear_train.py - Gear mesh propagation engine.

This module provides:
  - Motion propagation from a single driver gear through the mesh graph
    (breadth-first, one assignment per gear)
  - Closed-form gear train metrics between two endpoint gears
  - Pure connectivity edits a host applies between ticks (place, connect,
    move, remove, change driver, advance angles)

Design notes:
  - Gears are addressed by id; connectivity lives in a networkx.Graph built per
    call, so no engine state survives between calls
  - Every function returns new Gear values and never mutates its inputs
  - Invalid topology raises InvalidTopologyError before anything is computed
"""
from __future__ import annotations

import logging
import uuid
from typing import Iterable
from typing import Union

import networkx as nx
import numpy as np

from configs.appconfig import FRICTION_COEFFICIENT
from configs.appconfig import GEAR_MODULE
from configs.appconfig import MESH_TOLERANCE
from configs.mech_models import ConnectionType
from configs.mech_models import Gear
from configs.mech_models import GearConnection
from configs.mech_models import GearType
from configs.mech_models import Point
from mech_tools.errors import InvalidTopologyError
from mech_tools.geometry import distance
from mech_tools.schemas import GearTrainMetrics

logger = logging.getLogger(__name__)

GearRef = Union[Gear, str]


# =============================================================================
# Closed-form relations
# =============================================================================

def get_pitch_radius(teeth: int, module: float = GEAR_MODULE) -> float:
    """Effective rolling radius: teeth * module / 2."""
    return teeth * module / 2


def calculate_gear_ratio(driver_teeth: int, driven_teeth: int) -> float:
    return driven_teeth / driver_teeth


def calculate_gear_speed(driver_rpm: float, driver_teeth: int, driven_teeth: int) -> float:
    """Pitch-line velocity is shared, so speed scales with the inverse tooth ratio."""
    return driver_rpm * driver_teeth / driven_teeth


def calculate_gear_torque(
    driver_torque: float,
    driver_teeth: int,
    driven_teeth: int,
    efficiency: float = FRICTION_COEFFICIENT,
) -> float:
    return driver_torque * (driven_teeth / driver_teeth) * efficiency


def calculate_direction(connection_type: ConnectionType = 'mesh') -> int:
    """Sign multiplier across one connection: meshing reverses, chain and shared axle preserve."""
    if connection_type == 'mesh':
        return -1
    return 1


def rpm_to_angular_velocity(rpm: float, direction: int = 1) -> float:
    return rpm * 2 * np.pi / 60 * direction


def calculate_system_efficiency(gear_count: int, efficiency: float = FRICTION_COEFFICIENT) -> float:
    """Overall efficiency of a train of `gear_count` gears (one loss per pair)."""
    if gear_count < 1:
        return 1.0
    return efficiency ** (gear_count - 1)


def calculate_compound_gear_ratio(
    gears: list[Gear],
    connections: Iterable[Union[GearConnection, tuple[str, str]]],
) -> float:
    """
    Product of pairwise ratios along the given connections.

    Connections naming unknown gears are ignored.
    """
    by_id = {g.id: g for g in gears}
    total_ratio = 1.0
    for connection in connections:
        if isinstance(connection, GearConnection):
            id1, id2 = connection.gear1_id, connection.gear2_id
        else:
            id1, id2 = connection
        gear1 = by_id.get(id1)
        gear2 = by_id.get(id2)
        if gear1 is not None and gear2 is not None:
            total_ratio *= calculate_gear_ratio(gear1.teeth, gear2.teeth)
    return total_ratio


def calculate_gear_system_metrics(
    input_rpm: float,
    input_torque: float,
    gears: list[Gear],
    driver_gear_id: str,
    output_gear_id: str,
    efficiency: float = FRICTION_COEFFICIENT,
) -> GearTrainMetrics:
    """
    Derive ratio, output speed/torque and efficiency between two gears.

    Only the endpoint tooth counts and the number of gears matter; intermediate
    idlers cancel out of the ratio.
    """
    by_id = {g.id: g for g in gears}
    if driver_gear_id not in by_id:
        raise InvalidTopologyError(f"Driver gear '{driver_gear_id}' not found")
    if output_gear_id not in by_id:
        raise InvalidTopologyError(f"Output gear '{output_gear_id}' not found")

    driver = by_id[driver_gear_id]
    output = by_id[output_gear_id]

    gear_ratio = calculate_gear_ratio(driver.teeth, output.teeth)
    speed_ratio = 1 / gear_ratio
    system_efficiency = calculate_system_efficiency(len(gears), efficiency)

    return GearTrainMetrics(
        gear_ratio=gear_ratio,
        speed_ratio=speed_ratio,
        torque_multiplication=gear_ratio,
        mechanical_advantage=gear_ratio,
        efficiency=system_efficiency,
        output_rpm=input_rpm * speed_ratio,
        output_torque=input_torque * gear_ratio * system_efficiency,
    )


# =============================================================================
# Mesh Graph
# =============================================================================

def build_mesh_graph(
    gears: list[Gear],
    connections: Iterable[GearConnection] | None = None,
) -> nx.Graph:
    """
    Build the undirected connectivity graph keyed by gear id.

    Edges come from each gear's `connected_to` (typed 'mesh') and from the
    optional typed `connections`, which override the type of an existing edge.
    References to unknown gears are skipped with a warning.
    """
    graph = nx.Graph()
    for gear in gears:
        graph.add_node(gear.id, teeth=gear.teeth)

    for gear in gears:
        for neighbor_id in gear.connected_to:
            if neighbor_id not in graph:
                logger.warning(f"Gear '{gear.id}' lists unknown neighbor '{neighbor_id}', skipping")
                continue
            if not graph.has_edge(gear.id, neighbor_id):
                graph.add_edge(gear.id, neighbor_id, type='mesh')

    for connection in connections or ():
        if connection.gear1_id not in graph or connection.gear2_id not in graph:
            logger.warning(f"Connection {connection.gear1_id}-{connection.gear2_id} names an unknown gear, skipping")
            continue
        graph.add_edge(connection.gear1_id, connection.gear2_id, type=connection.type)

    return graph


def _validate_gear_set(gears: list[Gear]) -> None:
    seen = set()
    for gear in gears:
        if gear.id in seen:
            raise InvalidTopologyError(f"Duplicate gear id '{gear.id}'")
        seen.add(gear.id)
        # model validation already rejects this; model_construct() does not
        if gear.teeth <= 0:
            raise InvalidTopologyError(f"Gear '{gear.id}' has {gear.teeth} teeth, must be positive")


def _resolve_id(ref: GearRef) -> str:
    return ref.id if isinstance(ref, Gear) else ref


# =============================================================================
# Propagation
# =============================================================================

def propagate_gear_motion(
    gears: list[Gear],
    driver: GearRef,
    driver_rpm: float,
    driver_torque: float,
    connections: Iterable[GearConnection] | None = None,
    efficiency: float = FRICTION_COEFFICIENT,
) -> list[Gear]:
    """
    Propagate speed, torque and spin direction from the driver to every reachable gear.

    Breadth-first from the driver (direction +1). Across each traversed edge:
      - mesh:  rpm * Tc/Tn, torque * Tn/Tc * efficiency, direction reversed
      - chain: same speed/torque rule, direction preserved
      - axle:  rpm, torque and direction carried over unchanged

    Each gear is assigned exactly once; the visited set terminates closed
    loops. Gears outside the driver's component come back idle (zero rpm,
    torque and angular velocity).

    Args:
        gears: Full gear set, returned in the same order
        driver: Driver gear or its id; must be in `gears`
        driver_rpm: Driver speed, negative for a reversed driver
        driver_torque: Driver torque, used as a magnitude
        connections: Optional typed edges (chain/axle); untyped edges mesh
        efficiency: Per-pair efficiency, 0 < efficiency <= 1

    Returns:
        New list of Gear values

    Raises:
        InvalidTopologyError: driver missing, duplicate ids, non-positive
            teeth, efficiency out of range, or a second driver in the
            driver's component
    """
    _validate_gear_set(gears)
    if not 0 < efficiency <= 1:
        raise InvalidTopologyError(f"Efficiency must be in (0, 1], got {efficiency}")

    driver_id = _resolve_id(driver)
    graph = build_mesh_graph(gears, connections)
    if driver_id not in graph:
        raise InvalidTopologyError(f"Driver gear '{driver_id}' not found")

    by_id = {g.id: g for g in gears}
    component = nx.node_connected_component(graph, driver_id)
    rival_drivers = sorted(gid for gid in component if gid != driver_id and by_id[gid].is_driver)
    if rival_drivers:
        raise InvalidTopologyError(
            f"Gear '{driver_id}' shares a mesh with other driver(s) {rival_drivers}",
        )

    # gear id -> (rpm, torque, direction)
    state: dict[str, tuple[float, float, int]] = {
        driver_id: (driver_rpm, abs(driver_torque), 1),
    }

    for current_id, neighbor_id in nx.bfs_edges(graph, driver_id):
        rpm, torque, direction = state[current_id]
        current_teeth = by_id[current_id].teeth
        neighbor_teeth = by_id[neighbor_id].teeth
        connection_type = graph.edges[current_id, neighbor_id]['type']

        if connection_type == 'axle':
            state[neighbor_id] = (rpm, torque, direction)
        else:
            state[neighbor_id] = (
                calculate_gear_speed(rpm, current_teeth, neighbor_teeth),
                calculate_gear_torque(torque, current_teeth, neighbor_teeth, efficiency),
                direction * calculate_direction(connection_type),
            )
        logger.debug(f"  {connection_type} {current_id} -> {neighbor_id}: {state[neighbor_id]}")

    updated = []
    for gear in gears:
        if gear.id in state:
            rpm, torque, direction = state[gear.id]
            updated.append(gear.model_copy(update={
                'rpm': rpm,
                'torque': torque,
                'direction': direction,
                'angular_velocity': rpm_to_angular_velocity(rpm, direction),
            }))
        else:
            updated.append(gear.model_copy(update={
                'rpm': 0.0,
                'torque': 0.0,
                'angular_velocity': 0.0,
            }))

    logger.debug(f"Propagated from '{driver_id}' to {len(state)}/{len(gears)} gears")
    return updated


# =============================================================================
# Connectivity Edits
# =============================================================================

def are_gears_meshing(gear1: Gear, gear2: Gear, tolerance: float = MESH_TOLERANCE) -> bool:
    """Centre distance within `tolerance` of the sum of pitch radii."""
    ideal_distance = get_pitch_radius(gear1.teeth) + get_pitch_radius(gear2.teeth)
    return abs(distance(gear1.position, gear2.position) - ideal_distance) < ideal_distance * tolerance


def find_driver(gears: list[Gear]) -> Gear | None:
    return next((g for g in gears if g.is_driver), None)


def _require(gears: list[Gear], *gear_ids: str) -> None:
    known = {g.id for g in gears}
    missing = [gid for gid in gear_ids if gid not in known]
    if missing:
        raise InvalidTopologyError(f"Unknown gear id(s): {missing}")


def _with_neighbors(gear: Gear, neighbors) -> Gear:
    return gear.model_copy(update={'connected_to': tuple(dict.fromkeys(neighbors))})


def add_gear(
    gears: list[Gear],
    teeth: int,
    position: Point,
    gear_id: str | None = None,
    gear_type: GearType = 'spur',
) -> list[Gear]:
    """Place a new idle gear. The first gear in an empty system becomes the driver."""
    new_gear = Gear(
        id=gear_id or uuid.uuid4().hex[:9],
        teeth=teeth,
        position=position,
        is_driver=not gears,
        gear_type=gear_type,
    )
    if any(g.id == new_gear.id for g in gears):
        raise InvalidTopologyError(f"Duplicate gear id '{new_gear.id}'")
    return [g.model_copy() for g in gears] + [new_gear]


def connect_gears(gears: list[Gear], gear1_id: str, gear2_id: str) -> list[Gear]:
    """Add the symmetric mesh relation between two gears."""
    _require(gears, gear1_id, gear2_id)
    if gear1_id == gear2_id:
        raise InvalidTopologyError(f"Gear '{gear1_id}' cannot mesh with itself")

    updated = []
    for gear in gears:
        if gear.id == gear1_id:
            updated.append(_with_neighbors(gear, (*gear.connected_to, gear2_id)))
        elif gear.id == gear2_id:
            updated.append(_with_neighbors(gear, (*gear.connected_to, gear1_id)))
        else:
            updated.append(gear.model_copy())
    return updated


def disconnect_gears(gears: list[Gear], gear1_id: str, gear2_id: str) -> list[Gear]:
    """Remove the mesh relation in both directions."""
    updated = []
    for gear in gears:
        if gear.id == gear1_id:
            updated.append(_with_neighbors(gear, (n for n in gear.connected_to if n != gear2_id)))
        elif gear.id == gear2_id:
            updated.append(_with_neighbors(gear, (n for n in gear.connected_to if n != gear1_id)))
        else:
            updated.append(gear.model_copy())
    return updated


def auto_connect(gears: list[Gear], gear_id: str, tolerance: float = MESH_TOLERANCE) -> list[Gear]:
    """Mesh `gear_id` with every gear whose pitch circle it now touches."""
    _require(gears, gear_id)
    target = next(g for g in gears if g.id == gear_id)
    updated = [g.model_copy() for g in gears]
    for other in gears:
        if other.id != gear_id and are_gears_meshing(target, other, tolerance):
            logger.debug(f"Auto-meshing '{gear_id}' with '{other.id}'")
            updated = connect_gears(updated, gear_id, other.id)
    return updated


def move_gear(gears: list[Gear], gear_id: str, position: Point) -> list[Gear]:
    """
    Drag a gear to a new position.

    The moved gear drops all its connections (and is stripped from its former
    neighbors), then meshes with whatever it touches at the new position.
    """
    _require(gears, gear_id)
    detached = []
    for gear in gears:
        if gear.id == gear_id:
            detached.append(gear.model_copy(update={'position': position, 'connected_to': ()}))
        else:
            detached.append(_with_neighbors(gear, (n for n in gear.connected_to if n != gear_id)))
    return auto_connect(detached, gear_id)


def remove_gears(gears: list[Gear], gear_ids: Iterable[str]) -> list[Gear]:
    """Delete gears and strip their ids from every survivor's `connected_to`."""
    doomed = set(gear_ids)
    return [
        _with_neighbors(gear, (n for n in gear.connected_to if n not in doomed))
        for gear in gears
        if gear.id not in doomed
    ]


def set_driver(gears: list[Gear], gear_id: str) -> list[Gear]:
    """Make `gear_id` the only driver."""
    _require(gears, gear_id)
    return [g.model_copy(update={'is_driver': g.id == gear_id}) for g in gears]


def advance_gear_angles(gears: list[Gear], dt: float) -> list[Gear]:
    """Integrate one tick: angle += angular_velocity * dt. Angles are left unbounded."""
    return [
        g.model_copy(update={'angle': g.angle + g.angular_velocity * dt}) if g.angular_velocity != 0
        else g.model_copy()
        for g in gears
    ]
