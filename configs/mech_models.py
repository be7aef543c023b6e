from __future__ import annotations

import math
from typing import Literal
from typing import Optional

from pydantic import BaseModel, Field, field_validator, model_validator
from typing_extensions import Annotated

from configs.appconfig import GRAVITY


# Immutable value models: the engine returns new instances via model_copy()
# and never aliases into its inputs.
VALUE_MODEL_CONFIG = {
    "frozen": True,
    "extra": "forbid",
}

GearType = Literal['spur', 'planetary', 'bevel', 'rack']
ConnectionType = Literal['mesh', 'chain', 'axle']


class Point(BaseModel):
    """A 2-D point (pixels in the playground's canvas frame)."""
    x: float = Field(default=0.0, description="X coordinate")
    y: float = Field(default=0.0, description="Y coordinate")

    model_config = VALUE_MODEL_CONFIG

    @field_validator('x', 'y')
    @classmethod
    def validate_finite(cls, v):
        if not math.isfinite(v):
            raise ValueError("point coordinates must be finite")
        return v

    def as_tuple(self) -> tuple[float, float]:
        return (self.x, self.y)

    @classmethod
    def from_tuple(cls, xy) -> Point:
        return cls(x=float(xy[0]), y=float(xy[1]))


class Gear(BaseModel):
    """A spur gear in the mesh network."""
    id: str = Field(description="Unique identifier for the gear")
    teeth: Annotated[int, Field(gt=0, description="Tooth count, sets the pitch radius")]
    position: Point = Field(default_factory=Point, description="Centre of rotation")
    angle: float = Field(default=0.0, description="Accumulated rotation in radians (unbounded)")
    angular_velocity: float = Field(default=0.0, description="Signed angular velocity in rad/s")
    rpm: float = Field(default=0.0, description="Rotational speed, sign encodes a reversed driver")
    torque: float = Field(default=0.0, description="Torque magnitude in Nm")
    is_driver: bool = Field(default=False, description="Whether speed/torque are external inputs")
    direction: Literal[1, -1] = Field(default=1, description="1 = clockwise, -1 = counterclockwise")
    connected_to: tuple[str, ...] = Field(default=(), description="Ids of gears meshing with this one")
    gear_type: GearType = Field(default='spur', description="Gear family, display only")

    model_config = VALUE_MODEL_CONFIG

    @field_validator('connected_to')
    @classmethod
    def validate_connected_to(cls, v):
        # keep first occurrence order, drop duplicates
        return tuple(dict.fromkeys(v))

    @model_validator(mode='after')
    def validate_no_self_mesh(self) -> Gear:
        if self.id in self.connected_to:
            raise ValueError(f"gear '{self.id}' cannot mesh with itself")
        return self


class GearConnection(BaseModel):
    """Typed edge between two gears. Untagged edges are direct meshes."""
    gear1_id: str
    gear2_id: str
    type: ConnectionType = Field(default='mesh', description="mesh reverses spin, chain/axle preserve it")

    model_config = VALUE_MODEL_CONFIG

    @model_validator(mode='after')
    def validate_distinct(self) -> GearConnection:
        if self.gear1_id == self.gear2_id:
            raise ValueError("a connection needs two distinct gears")
        return self


class Joint(BaseModel):
    """A revolute joint of a planar linkage."""
    id: str = Field(description="Unique identifier for the joint")
    position: Point = Field(default_factory=Point, description="Current position")
    is_fixed: bool = Field(default=False, description="Ground-pinned, never moved by the solver")

    model_config = VALUE_MODEL_CONFIG


class Link(BaseModel):
    """A rigid bar between two joints. Its length never changes after creation."""
    id: str = Field(description="Unique identifier for the link")
    joint1_id: str
    joint2_id: str
    length: Annotated[float, Field(gt=0, description="Rigid length constraint")]
    is_driver: bool = Field(default=False, description="Whether the link is the angle-driven crank")

    model_config = VALUE_MODEL_CONFIG

    @model_validator(mode='after')
    def validate_distinct(self) -> Link:
        if self.joint1_id == self.joint2_id:
            raise ValueError(f"link '{self.id}' must connect two distinct joints")
        return self

    def other_joint(self, joint_id: str) -> str:
        if joint_id == self.joint1_id:
            return self.joint2_id
        if joint_id == self.joint2_id:
            return self.joint1_id
        raise KeyError(f"joint '{joint_id}' is not an end of link '{self.id}'")

    def connects(self, joint_id: str) -> bool:
        return joint_id in (self.joint1_id, self.joint2_id)


class Pulley(BaseModel):
    """A sheave; fixed pulleys hang from the ceiling, movable ones travel with the load."""
    id: str
    position: Point = Field(default_factory=Point)
    radius: Annotated[float, Field(gt=0)]
    is_fixed: bool = True
    angle: float = 0.0

    model_config = VALUE_MODEL_CONFIG


class Load(BaseModel):
    id: str
    position: Point = Field(default_factory=Point)
    mass: Annotated[float, Field(ge=0, description="Mass in kg")]

    model_config = VALUE_MODEL_CONFIG

    @property
    def weight(self) -> float:
        """Weight in N."""
        return self.mass * GRAVITY


class GearSpec(BaseModel):
    """Preset entry for a gear: everything but the derived motion state."""
    teeth: Annotated[int, Field(gt=0)]
    position: Point
    is_driver: bool = False
    gear_type: GearType = 'spur'

    model_config = VALUE_MODEL_CONFIG


class JointSpec(BaseModel):
    position: Point
    is_fixed: bool = False

    model_config = VALUE_MODEL_CONFIG


class LinkSpec(BaseModel):
    joint1_id: str
    joint2_id: str
    length: Annotated[float, Field(gt=0)]
    is_driver: bool = False

    model_config = VALUE_MODEL_CONFIG


class PulleySpec(BaseModel):
    position: Point
    radius: Annotated[float, Field(gt=0)]
    is_fixed: bool = True

    model_config = VALUE_MODEL_CONFIG


class GearPreset(BaseModel):
    name: str
    description: str
    gears: list[GearSpec]
    connections: Optional[list[GearConnection]] = None


class LinkagePreset(BaseModel):
    name: str
    description: str
    joints: list[JointSpec]
    links: list[LinkSpec]


class PulleyPreset(BaseModel):
    name: str
    description: str
    pulleys: list[PulleySpec]
    load_mass: Annotated[float, Field(ge=0)]
