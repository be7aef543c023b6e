"""
schemas.py - Result structures for the mechanism engines.

Dataclasses returned by gear_train, kinematic and pulleys.
"""
from __future__ import annotations

from dataclasses import dataclass

from configs.mech_models import Joint
from configs.mech_models import Link
from configs.mech_models import Point


@dataclass(frozen=True)
class GearTrainMetrics:
    """Aggregate figures between a driver gear and a chosen output gear."""
    gear_ratio: float            # output teeth / driver teeth
    speed_ratio: float
    torque_multiplication: float
    mechanical_advantage: float
    efficiency: float
    output_rpm: float
    output_torque: float

    def to_dict(self) -> dict:
        return {
            'gear_ratio': self.gear_ratio,
            'speed_ratio': self.speed_ratio,
            'torque_multiplication': self.torque_multiplication,
            'mechanical_advantage': self.mechanical_advantage,
            'efficiency': self.efficiency,
            'output_rpm': self.output_rpm,
            'output_torque': self.output_torque,
        }


@dataclass(frozen=True)
class FourBarMechanism:
    """The roles each joint and link play in a four-bar linkage."""
    fixed_base_id: str       # ground joint the crank turns about
    fixed_pivot_id: str      # ground joint the rocker turns about
    crank_joint_id: str      # free end of the driver link
    coupler_joint_id: str    # shared end of coupler and rocker
    crank: Link
    coupler: Link
    rocker: Link
    ground_length: float

    @property
    def lengths(self) -> tuple[float, float, float, float]:
        """(ground, crank, coupler, rocker)"""
        return (self.ground_length, self.crank.length, self.coupler.length, self.rocker.length)


@dataclass(frozen=True)
class SliderCrankMechanism:
    """Crank, connecting rod and a slider running on a horizontal guide."""
    fixed_base_id: str
    crank_joint_id: str
    slider_joint_id: str
    crank: Link
    connecting_rod: Link
    guide_y: float


@dataclass(frozen=True)
class LinkageSolution:
    """
    Result of one solver tick.

    When `locked` is True the mechanism has no real pose at `crank_angle`: the
    joints are returned at their input positions and `transmission_angle` is None.
    """
    joints: tuple[Joint, ...]
    crank_angle: float
    crank_position: Point
    coupler_position: Point
    locked: bool
    transmission_angle: float | None = None

    def joint(self, joint_id: str) -> Joint:
        for j in self.joints:
            if j.id == joint_id:
                return j
        raise KeyError(joint_id)

    def to_dict(self) -> dict:
        return {
            'joints': [j.model_dump() for j in self.joints],
            'crank_angle': self.crank_angle,
            'crank_position': self.crank_position.as_tuple(),
            'coupler_position': self.coupler_position.as_tuple(),
            'locked': self.locked,
            'transmission_angle': self.transmission_angle,
        }


@dataclass(frozen=True)
class PulleyMetrics:
    """Closed-form figures of a pulley system."""
    ideal_ma: float
    actual_ma: float
    required_effort: float
    distance_ratio: float
    rope_length: float
    efficiency: float

    def to_dict(self) -> dict:
        return {
            'ideal_ma': self.ideal_ma,
            'actual_ma': self.actual_ma,
            'required_effort': self.required_effort,
            'distance_ratio': self.distance_ratio,
            'rope_length': self.rope_length,
            'efficiency': self.efficiency,
        }
