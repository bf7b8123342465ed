"""Ray picking of scene entities by their world-space bounding boxes."""

from __future__ import annotations

import itertools
import math
from dataclasses import dataclass, field

import numpy as np

from boxworld.scene import Entity, MeshRenderer, Scene, Transform

__all__ = ["Ray", "world_aabb", "ray_intersects_aabb", "pick_entity", "highlighted_albedo", "HIGHLIGHT_GAIN"]

HIGHLIGHT_GAIN = 1.55
_PARALLEL_EPSILON = 1.0e-6


@dataclass(eq=False)
class Ray:
    """A half-line starting at ``origin`` heading along ``direction``."""

    origin: np.ndarray = field(default_factory=lambda: np.zeros(3))
    direction: np.ndarray = field(default_factory=lambda: np.array([0.0, 0.0, -1.0]))

    def __post_init__(self) -> None:
        self.origin = np.array(self.origin, dtype=float)
        self.direction = np.array(self.direction, dtype=float)


def world_aabb(transform: Transform, mesh_renderer: MeshRenderer) -> tuple[np.ndarray, np.ndarray]:
    """Axis-aligned box enclosing the renderer's local bounds after ``transform``."""
    m = transform.matrix()
    bounds = zip(mesh_renderer.local_aabb_min, mesh_renderer.local_aabb_max)
    corners = np.array([[*corner, 1.0] for corner in itertools.product(*bounds)])
    world = (m @ corners.T).T[:, :3]
    return world.min(axis=0), world.max(axis=0)


def ray_intersects_aabb(ray: Ray, aabb_min, aabb_max) -> float | None:
    """Distance parameter of the first point of the box on the ray, or None on a miss."""
    t_min = 0.0
    t_max = math.inf
    for origin, direction, lo, hi in zip(ray.origin, ray.direction, aabb_min, aabb_max):
        if abs(direction) < _PARALLEL_EPSILON:
            if origin < lo or origin > hi:
                return None
            continue
        t1, t2 = sorted(((lo - origin) / direction, (hi - origin) / direction))
        t_min = max(t_min, t1)
        t_max = min(t_max, t2)
        if t_max < t_min:
            return None
    return float(t_min)


def pick_entity(scene: Scene, ray: Ray) -> Entity | None:
    """Nearest rendered entity hit by ``ray``; ground-grid surfaces are ignored."""
    best_t = math.inf
    best: Entity | None = None
    for entity in scene.mesh_renderer_entities():
        transform = scene.transform(entity)
        renderer = scene.mesh_renderer(entity)
        if transform is None or renderer is None or renderer.enable_ground_grid:
            continue
        t = ray_intersects_aabb(ray, *world_aabb(transform, renderer))
        if t is not None and t < best_t:
            best_t = t
            best = entity
    return best


def highlighted_albedo(base_albedo) -> np.ndarray:
    """Brightened colour used for the selected entity, clamped to 1."""
    return np.minimum(np.asarray(base_albedo, dtype=float) * HIGHLIGHT_GAIN, 1.0)