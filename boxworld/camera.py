"""A yaw/pitch perspective camera."""

from __future__ import annotations

import math
from dataclasses import dataclass, field

import numpy as np

from boxworld import vecmath

__all__ = ["Camera", "direction_from_yaw_pitch"]

_WORLD_UP = np.array([0.0, 1.0, 0.0])


def direction_from_yaw_pitch(yaw_degrees: float, pitch_degrees: float) -> np.ndarray:
    """Unit view direction for the given yaw and pitch in degrees."""
    yaw = math.radians(yaw_degrees)
    pitch = math.radians(pitch_degrees)
    direction = np.array(
        [
            math.cos(yaw) * math.cos(pitch),
            math.sin(pitch),
            math.sin(yaw) * math.cos(pitch),
        ]
    )
    return vecmath.normalize(direction)


@dataclass(eq=False)
class Camera:
    """Position, orientation and projection settings of the viewer."""

    position: np.ndarray = field(default_factory=lambda: vecmath.vec3(0.0, 0.0, 3.0))
    yaw_degrees: float = -90.0
    pitch_degrees: float = 0.0
    fov_degrees: float = 60.0
    near_plane: float = 0.1
    far_plane: float = 200.0
    aspect: float = 16.0 / 9.0

    def __post_init__(self) -> None:
        self.position = np.array(self.position, dtype=float)

    def forward(self) -> np.ndarray:
        return direction_from_yaw_pitch(self.yaw_degrees, self.pitch_degrees)

    def right(self) -> np.ndarray:
        return vecmath.normalize(np.cross(self.forward(), _WORLD_UP))

    def up(self) -> np.ndarray:
        return vecmath.normalize(np.cross(self.right(), self.forward()))

    def view_matrix(self) -> np.ndarray:
        position = np.asarray(self.position, dtype=float)
        return vecmath.look_at(position, position + self.forward(), _WORLD_UP)

    def proj_matrix(self) -> np.ndarray:
        return vecmath.perspective(
            math.radians(self.fov_degrees), self.aspect, self.near_plane, self.far_plane
        )