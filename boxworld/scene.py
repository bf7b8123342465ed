"""Entities with transform and mesh-renderer components."""

from __future__ import annotations

import math
from dataclasses import dataclass, field

import numpy as np

from boxworld import vecmath

__all__ = ["Entity", "Transform", "MeshRenderer", "Scene"]

Entity = int

_X_AXIS = (1.0, 0.0, 0.0)
_Y_AXIS = (0.0, 1.0, 0.0)
_Z_AXIS = (0.0, 0.0, 1.0)


def _vec(values) -> np.ndarray:
    return np.array(values, dtype=float)


@dataclass(eq=False)
class Transform:
    """Position, Euler rotation in degrees (pitch, yaw, roll) and scale."""

    position: np.ndarray = field(default_factory=lambda: np.zeros(3))
    rotation_euler_degrees: np.ndarray = field(default_factory=lambda: np.zeros(3))
    scale: np.ndarray = field(default_factory=lambda: np.ones(3))

    def __post_init__(self) -> None:
        self.position = _vec(self.position)
        self.rotation_euler_degrees = _vec(self.rotation_euler_degrees)
        self.scale = _vec(self.scale)

    def matrix(self) -> np.ndarray:
        """Model matrix: translate, then yaw, pitch and roll, then scale."""
        pitch, yaw, roll = (math.radians(a) for a in np.asarray(self.rotation_euler_degrees, dtype=float))
        return (
            vecmath.translation(self.position)
            @ vecmath.rotation(yaw, _Y_AXIS)
            @ vecmath.rotation(pitch, _X_AXIS)
            @ vecmath.rotation(roll, _Z_AXIS)
            @ vecmath.scaling(self.scale)
        )


@dataclass(eq=False)
class MeshRenderer:
    """Which mesh to draw for an entity, its colour and its local bounds."""

    mesh_index: int = 0
    albedo: np.ndarray = field(default_factory=lambda: _vec([0.8, 0.4, 0.2]))
    local_aabb_min: np.ndarray = field(default_factory=lambda: _vec([-0.5, -0.5, -0.5]))
    local_aabb_max: np.ndarray = field(default_factory=lambda: _vec([0.5, 0.5, 0.5]))
    enable_ground_grid: bool = False

    def __post_init__(self) -> None:
        self.albedo = _vec(self.albedo)
        self.local_aabb_min = _vec(self.local_aabb_min)
        self.local_aabb_max = _vec(self.local_aabb_max)


class Scene:
    """A set of entities and the components attached to them."""

    def __init__(self) -> None:
        self._next: Entity = 1
        self._transforms: dict[Entity, Transform] = {}
        self._mesh_renderers: dict[Entity, MeshRenderer] = {}

    def create_entity(self) -> Entity:
        """Return a new entity identifier; identifiers start at 1."""
        entity = self._next
        self._next += 1
        return entity

    def add_transform(self, entity: Entity) -> Transform:
        """Attach a transform to ``entity``, or return the one it already has."""
        return self._transforms.setdefault(entity, Transform())

    def add_mesh_renderer(self, entity: Entity) -> MeshRenderer:
        """Attach a mesh renderer to ``entity``, or return the one it already has."""
        return self._mesh_renderers.setdefault(entity, MeshRenderer())

    def transform(self, entity: Entity) -> Transform | None:
        """Return the transform of ``entity``, or None."""
        return self._transforms.get(entity)

    def mesh_renderer(self, entity: Entity) -> MeshRenderer | None:
        """Return the mesh renderer of ``entity``, or None."""
        return self._mesh_renderers.get(entity)

    def mesh_renderer_entities(self) -> list[Entity]:
        """Entities with a mesh renderer, in the order the renderers were added."""
        return list(self._mesh_renderers)