"""Layer, body-identifier and ray-hit types shared by the physics code."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field

import numpy as np

__all__ = [
    "PhysicsLayer",
    "PhysicsBodyID",
    "RaycastHit",
    "to_layer_mask",
    "LAYER_MASK_ALL",
    "INVALID_BODY_VALUE",
]

LAYER_MASK_ALL = 0xFFFFFFFF
INVALID_BODY_VALUE = 0xFFFFFFFF


class PhysicsLayer(enum.IntEnum):
    """Collision layer a body belongs to."""

    WORLD_STATIC = 0
    WORLD_DYNAMIC = 1
    PLAYER = 2
    TRIGGER = 3


def to_layer_mask(layer: PhysicsLayer) -> int:
    """Return the bit mask selecting ``layer``."""
    return 1 << int(layer)


@dataclass(frozen=True)
class PhysicsBodyID:
    """Opaque handle to a physics body; the default value is invalid."""

    value: int = INVALID_BODY_VALUE

    def is_valid(self) -> bool:
        return self.value != INVALID_BODY_VALUE


@dataclass(eq=False)
class RaycastHit:
    """Result of a ray query; ``hit`` is false when nothing was struck."""

    hit: bool = False
    body_id: PhysicsBodyID = field(default_factory=PhysicsBodyID)
    entity_id: int = 0
    point: np.ndarray = field(default_factory=lambda: np.zeros(3))
    normal: np.ndarray = field(default_factory=lambda: np.array([0.0, 1.0, 0.0]))
    distance: float = 0.0