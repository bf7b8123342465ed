"""Rigid-body world with boxes, capsules, gravity, collision layers and ray queries.

Boxes collide through their world-space bounding boxes; capsules collide
exactly against boxes and other capsules. Fast movers are handled by
splitting a step into sub-steps.
"""

from __future__ import annotations

import itertools
import math
from dataclasses import dataclass, field
from typing import Callable

import numpy as np

from boxworld import log, vecmath
from boxworld.physics_types import (
    LAYER_MASK_ALL,
    PhysicsBodyID,
    PhysicsLayer,
    RaycastHit,
    to_layer_mask,
)
from boxworld.scene import Entity, Scene, Transform

__all__ = [
    "PhysicsSystem",
    "layer_in_mask",
    "object_layers_collide",
    "object_vs_broad_phase_collide",
    "MAX_BODIES",
    "DEFAULT_CONVEX_RADIUS",
]

MAX_BODIES = 4096
DEFAULT_CONVEX_RADIUS = 0.05
DEFAULT_DENSITY = 1000.0
PLAYER_MASS = 85.0
DEFAULT_GRAVITY = (0.0, -9.81, 0.0)

_SOLVER_ITERATIONS = 4
_MAX_SUBSTEPS = 8
_MAX_SUBSTEP_TRAVEL = 0.1
_SEARCH_ITERATIONS = 48
_EPSILON = 1.0e-9


def layer_in_mask(layer: PhysicsLayer, mask: int) -> bool:
    """Return True when ``layer`` is selected by ``mask``."""
    return (int(mask) & to_layer_mask(layer)) != 0


def object_layers_collide(layer1: PhysicsLayer, layer2: PhysicsLayer) -> bool:
    """Return True when bodies on the two object layers may touch."""
    if layer1 == PhysicsLayer.TRIGGER or layer2 == PhysicsLayer.TRIGGER:
        return True
    if layer1 == PhysicsLayer.WORLD_STATIC:
        return layer2 in (PhysicsLayer.WORLD_DYNAMIC, PhysicsLayer.PLAYER)
    if layer1 == PhysicsLayer.WORLD_DYNAMIC:
        return layer2 != PhysicsLayer.TRIGGER
    if layer1 == PhysicsLayer.PLAYER:
        return layer2 in (PhysicsLayer.WORLD_STATIC, PhysicsLayer.WORLD_DYNAMIC)
    return False


def object_vs_broad_phase_collide(layer: PhysicsLayer, broad_phase_layer: int) -> bool:
    """Return True when an object layer may touch bodies in a broad-phase layer."""
    broad = int(broad_phase_layer)
    if layer == PhysicsLayer.WORLD_STATIC:
        return broad in (1, 2)
    if layer == PhysicsLayer.WORLD_DYNAMIC:
        return broad in (0, 1, 2)
    if layer == PhysicsLayer.PLAYER:
        return broad in (0, 1)
    if layer == PhysicsLayer.TRIGGER:
        return True
    return False


def _layers_interact(layer1: PhysicsLayer, layer2: PhysicsLayer) -> bool:
    return (
        object_layers_collide(layer1, layer2)
        and object_vs_broad_phase_collide(layer1, int(layer2))
        and object_vs_broad_phase_collide(layer2, int(layer1))
    )


def _quat_mul(a: np.ndarray, b: np.ndarray) -> np.ndarray:
    w1, x1, y1, z1 = a
    w2, x2, y2, z2 = b
    return np.array(
        [
            w1 * w2 - x1 * x2 - y1 * y2 - z1 * z2,
            w1 * x2 + x1 * w2 + y1 * z2 - z1 * y2,
            w1 * y2 - x1 * z2 + y1 * w2 + z1 * x2,
            w1 * z2 + x1 * y2 - y1 * x2 + z1 * w2,
        ]
    )


def _conjugate(q: np.ndarray) -> np.ndarray:
    return q * np.array([1.0, -1.0, -1.0, -1.0])


def _rotation_matrix(q: np.ndarray) -> np.ndarray:
    return np.column_stack([vecmath.rotate_by_quat(q, axis) for axis in np.identity(3)])


def _smallest_non_negative_root(a: float, b: float, c: float) -> float | None:
    disc = b * b - 4.0 * a * c
    if disc < 0.0 or a <= _EPSILON:
        return None
    t = (-b - math.sqrt(disc)) / (2.0 * a)
    return t if t >= 0.0 else None


def _minimize_on_unit_interval(fn: Callable[[float], float]) -> float:
    """Parameter in [0, 1] minimising a convex function."""
    lo, hi = 0.0, 1.0
    for _ in range(_SEARCH_ITERATIONS):
        m1 = lo + (hi - lo) / 3.0
        m2 = hi - (hi - lo) / 3.0
        if fn(m1) <= fn(m2):
            hi = m2
        else:
            lo = m1
    return 0.5 * (lo + hi)


def _closest_between_segments(p1, q1, p2, q2) -> tuple[np.ndarray, np.ndarray]:
    d1 = q1 - p1
    d2 = q2 - p2
    r = p1 - p2
    a = float(np.dot(d1, d1))
    e = float(np.dot(d2, d2))
    f = float(np.dot(d2, r))
    if a <= _EPSILON and e <= _EPSILON:
        return p1, p2
    if a <= _EPSILON:
        s, t = 0.0, min(1.0, max(0.0, f / e))
    else:
        c = float(np.dot(d1, r))
        if e <= _EPSILON:
            t, s = 0.0, min(1.0, max(0.0, -c / a))
        else:
            b = float(np.dot(d1, d2))
            denom = a * e - b * b
            s = min(1.0, max(0.0, (b * f - c * e) / denom)) if denom > _EPSILON else 0.0
            t = (b * s + f) / e
            if t < 0.0:
                t, s = 0.0, min(1.0, max(0.0, -c / a))
            elif t > 1.0:
                t, s = 1.0, min(1.0, max(0.0, (b - c) / a))
    return p1 + d1 * s, p2 + d2 * t


@dataclass(eq=False)
class _BoxShape:
    half_extents: np.ndarray

    def volume(self) -> float:
        return 8.0 * float(np.prod(self.half_extents))

    def local_half_extent(self) -> np.ndarray:
        return self.half_extents

    def raycast(self, origin: np.ndarray, direction: np.ndarray, max_dist: float) -> float | None:
        t_min, t_max = 0.0, max_dist
        for o, d, h in zip(origin, direction, self.half_extents):
            if abs(d) < 1.0e-12:
                if o < -h or o > h:
                    return None
                continue
            t1, t2 = sorted(((-h - o) / d, (h - o) / d))
            t_min = max(t_min, t1)
            t_max = min(t_max, t2)
            if t_max < t_min:
                return None
        return t_min


@dataclass(eq=False)
class _CapsuleShape:
    radius: float
    half_height: float

    def local_half_extent(self) -> np.ndarray:
        return np.array([self.radius, self.half_height + self.radius, self.radius])

    def raycast(self, origin: np.ndarray, direction: np.ndarray, max_dist: float) -> float | None:
        r, h = self.radius, self.half_height
        axis_point = np.array([0.0, min(h, max(-h, origin[1])), 0.0])
        if np.linalg.norm(origin - axis_point) <= r:
            return 0.0

        candidates = []
        a = direction[0] ** 2 + direction[2] ** 2
        b = 2.0 * (origin[0] * direction[0] + origin[2] * direction[2])
        c = origin[0] ** 2 + origin[2] ** 2 - r * r
        t = _smallest_non_negative_root(a, b, c)
        if t is not None and -h <= origin[1] + t * direction[1] <= h:
            candidates.append(t)

        for cap_y in (-h, h):
            oc = origin - np.array([0.0, cap_y, 0.0])
            t = _smallest_non_negative_root(
                float(np.dot(direction, direction)),
                2.0 * float(np.dot(oc, direction)),
                float(np.dot(oc, oc)) - r * r,
            )
            if t is not None:
                candidates.append(t)

        return min((t for t in candidates if t <= max_dist), default=None)


@dataclass(eq=False)
class _Body:
    key: int
    shape: _BoxShape | _CapsuleShape
    layer: PhysicsLayer
    dynamic: bool
    inverse_mass: float
    position: np.ndarray
    rotation: np.ndarray
    friction: float
    restitution: float
    linear_damping: float = 0.05
    angular_damping: float = 0.05
    linear_velocity: np.ndarray = field(default_factory=lambda: np.zeros(3))
    angular_velocity: np.ndarray = field(default_factory=lambda: np.zeros(3))

    def to_local(self, point) -> np.ndarray:
        return vecmath.rotate_by_quat(_conjugate(self.rotation), np.asarray(point) - self.position)

    def direction_to_local(self, direction) -> np.ndarray:
        return vecmath.rotate_by_quat(_conjugate(self.rotation), direction)

    def direction_to_world(self, direction) -> np.ndarray:
        return vecmath.rotate_by_quat(self.rotation, direction)

    def world_aabb(self) -> tuple[np.ndarray, np.ndarray]:
        extent = np.abs(_rotation_matrix(self.rotation)) @ self.shape.local_half_extent()
        return self.position - extent, self.position + extent

    def capsule_segment(self) -> tuple[np.ndarray, np.ndarray]:
        axis = self.direction_to_world(np.array([0.0, 1.0, 0.0])) * self.shape.half_height
        return self.position - axis, self.position + axis


def _aabb_contact(a: _Body, b: _Body) -> tuple[np.ndarray, float] | None:
    a_min, a_max = a.world_aabb()
    b_min, b_max = b.world_aabb()
    overlap = np.minimum(a_max, b_max) - np.maximum(a_min, b_min)
    if np.any(overlap <= 0.0):
        return None
    axis = int(np.argmin(overlap))
    normal = np.zeros(3)
    normal[axis] = 1.0 if a.position[axis] >= b.position[axis] else -1.0
    return normal, float(overlap[axis])


def _capsule_box_contact(capsule: _Body, box: _Body) -> tuple[np.ndarray, float] | None:
    """Contact normal pointing from the box towards the capsule, and depth."""
    radius = capsule.shape.radius
    start_world, end_world = capsule.capsule_segment()
    start = box.to_local(start_world)
    end = box.to_local(end_world)
    half = box.shape.half_extents

    def gap(s: float) -> float:
        point = start + (end - start) * s
        return float(np.linalg.norm(point - np.clip(point, -half, half)))

    point = start + (end - start) * _minimize_on_unit_interval(gap)
    offset = point - np.clip(point, -half, half)
    dist = float(np.linalg.norm(offset))
    if dist >= radius:
        return None
    if dist > _EPSILON:
        normal_local = offset / dist
        depth = radius - dist
    else:
        penetration = half - np.abs(point)
        axis = int(np.argmin(penetration))
        normal_local = np.zeros(3)
        normal_local[axis] = 1.0 if point[axis] >= 0.0 else -1.0
        depth = float(penetration[axis]) + radius
    return box.direction_to_world(normal_local), depth


def _capsule_capsule_contact(a: _Body, b: _Body) -> tuple[np.ndarray, float] | None:
    closest_a, closest_b = _closest_between_segments(*a.capsule_segment(), *b.capsule_segment())
    offset = closest_a - closest_b
    dist = float(np.linalg.norm(offset))
    reach = a.shape.radius + b.shape.radius
    if dist >= reach:
        return None
    normal = offset / dist if dist > _EPSILON else np.array([0.0, 1.0, 0.0])
    return normal, reach - dist


def _contact(a: _Body, b: _Body) -> tuple[np.ndarray, float] | None:
    """Contact normal pointing from ``b`` towards ``a``, and penetration depth."""
    a_capsule = isinstance(a.shape, _CapsuleShape)
    b_capsule = isinstance(b.shape, _CapsuleShape)
    if a_capsule and b_capsule:
        return _capsule_capsule_contact(a, b)
    if a_capsule:
        return _capsule_box_contact(a, b)
    if b_capsule:
        found = _capsule_box_contact(b, a)
        return None if found is None else (-found[0], found[1])
    return _aabb_contact(a, b)


def _resolve(a: _Body, b: _Body, normal: np.ndarray, depth: float) -> None:
    total = a.inverse_mass + b.inverse_mass
    if total <= 0.0:
        return
    a.position = a.position + normal * depth * (a.inverse_mass / total)
    b.position = b.position - normal * depth * (b.inverse_mass / total)

    relative = a.linear_velocity - b.linear_velocity
    normal_speed = float(np.dot(relative, normal))
    if normal_speed >= 0.0:
        return
    restitution = max(a.restitution, b.restitution)
    normal_impulse = -(1.0 + restitution) * normal_speed / total
    a.linear_velocity = a.linear_velocity + normal * normal_impulse * a.inverse_mass
    b.linear_velocity = b.linear_velocity - normal * normal_impulse * b.inverse_mass

    tangent = relative - normal * normal_speed
    tangent_speed = float(np.linalg.norm(tangent))
    if tangent_speed < _EPSILON:
        return
    friction = math.sqrt(a.friction * b.friction)
    tangent_impulse = min(tangent_speed / total, friction * normal_impulse)
    direction = tangent / tangent_speed
    a.linear_velocity = a.linear_velocity - direction * tangent_impulse * a.inverse_mass
    b.linear_velocity = b.linear_velocity + direction * tangent_impulse * b.inverse_mass


def _integrate_rotation(q: np.ndarray, omega: np.ndarray, dt: float) -> np.ndarray:
    if not np.any(omega):
        return q
    spin = _quat_mul(np.array([0.0, *omega]), q) * (0.5 * dt)
    updated = q + spin
    return updated / np.linalg.norm(updated)


class PhysicsSystem:
    """A world of rigid bodies stepped at a fixed rate."""

    def __init__(self) -> None:
        self.gravity = vecmath.vec3(*DEFAULT_GRAVITY)
        self._bodies: dict[int, _Body] = {}
        self._entity_to_body: dict[Entity, PhysicsBodyID] = {}
        self._body_to_entity: dict[int, Entity] = {}
        self._next_key = 0
        self._started = False

    def __enter__(self) -> PhysicsSystem:
        self.init()
        return self

    def __exit__(self, *exc_info) -> None:
        self.shutdown()

    def init(self) -> bool:
        """Start the world; starting an already started world does nothing."""
        if self._started:
            return True
        self._bodies = {}
        self._next_key = 0
        self.gravity = vecmath.vec3(*DEFAULT_GRAVITY)
        self._started = True
        log.info("PhysicsSystem initialized")
        return True

    def shutdown(self) -> None:
        """Drop every body and entity binding and stop the world."""
        if not self._started:
            return
        self._body_to_entity.clear()
        self._entity_to_body.clear()
        self._bodies = {}
        self._started = False
        log.info("PhysicsSystem shutdown")

    def is_initialized(self) -> bool:
        return self._started

    def step(self, fixed_dt: float) -> None:
        """Advance the simulation by ``fixed_dt`` seconds."""
        if not self.is_initialized() or fixed_dt <= 0.0:
            return
        gravity_speed = float(np.linalg.norm(self.gravity)) * fixed_dt
        travel = max(
            (
                (float(np.linalg.norm(body.linear_velocity)) + gravity_speed) * fixed_dt
                for body in self._bodies.values()
                if body.dynamic
            ),
            default=0.0,
        )
        substeps = min(_MAX_SUBSTEPS, max(1, math.ceil(travel / _MAX_SUBSTEP_TRAVEL)))
        dt = fixed_dt / substeps
        for _ in range(substeps):
            self._integrate(dt)
            for _ in range(_SOLVER_ITERATIONS):
                self._solve_contacts()

    def _integrate(self, dt: float) -> None:
        for body in self._bodies.values():
            if not body.dynamic:
                continue
            velocity = body.linear_velocity + self.gravity * dt
            body.linear_velocity = velocity * max(0.0, 1.0 - body.linear_damping * dt)
            body.angular_velocity = body.angular_velocity * max(0.0, 1.0 - body.angular_damping * dt)
            body.position = body.position + body.linear_velocity * dt
            body.rotation = _integrate_rotation(body.rotation, body.angular_velocity, dt)

    def _solve_contacts(self) -> None:
        for a, b in itertools.combinations(self._bodies.values(), 2):
            if not (a.dynamic or b.dynamic) or not _layers_interact(a.layer, b.layer):
                continue
            a_min, a_max = a.world_aabb()
            b_min, b_max = b.world_aabb()
            if np.any(a_max < b_min) or np.any(b_max < a_min):
                continue
            found = _contact(a, b)
            if found is not None:
                _resolve(a, b, *found)

    def create_static_box(self, transform: Transform, half_extents, layer: PhysicsLayer) -> PhysicsBodyID:
        return self._create_box(transform, half_extents, 0.0, False, layer)

    def create_dynamic_box(
        self, transform: Transform, half_extents, mass: float, layer: PhysicsLayer
    ) -> PhysicsBodyID:
        """Create a movable box; a non-positive mass is derived from the box volume."""
        return self._create_box(transform, half_extents, mass, True, layer)

    def _create_box(
        self, transform: Transform, half_extents, mass: float, dynamic: bool, layer: PhysicsLayer
    ) -> PhysicsBodyID:
        if not self.is_initialized():
            return PhysicsBodyID()
        half = np.asarray(half_extents, dtype=float)
        if np.any(half < DEFAULT_CONVEX_RADIUS):
            log.error("Failed to create box shape")
            return PhysicsBodyID()
        shape = _BoxShape(half.copy())
        if dynamic:
            inverse_mass = 1.0 / (mass if mass > 0.0 else DEFAULT_DENSITY * shape.volume())
        else:
            inverse_mass = 0.0
        rotation = vecmath.quat_from_euler(np.radians(np.asarray(transform.rotation_euler_degrees, dtype=float)))
        body_id = self._add_body(
            shape=shape,
            layer=PhysicsLayer(layer),
            dynamic=dynamic,
            inverse_mass=inverse_mass,
            position=np.array(transform.position, dtype=float),
            rotation=rotation,
            friction=0.8,
            restitution=0.0,
        )
        if body_id.is_valid():
            log.info("Created dynamic box body" if dynamic else "Created static box body")
        return body_id

    def create_player_capsule(self, position, radius: float, half_height: float) -> PhysicsBodyID:
        """Create the upright player capsule on the player layer."""
        if not self.is_initialized():
            return PhysicsBodyID()
        if radius <= 0.0 or half_height <= 0.0:
            log.error("Failed to create player capsule shape")
            return PhysicsBodyID()
        body_id = self._add_body(
            shape=_CapsuleShape(float(radius), float(half_height)),
            layer=PhysicsLayer.PLAYER,
            dynamic=True,
            inverse_mass=1.0 / PLAYER_MASS,
            position=np.array(position, dtype=float),
            rotation=np.array([1.0, 0.0, 0.0, 0.0]),
            friction=0.0,
            restitution=0.0,
            linear_damping=0.05,
            angular_damping=0.95,
        )
        if body_id.is_valid():
            log.info("Created player capsule body")
        return body_id

    def _add_body(self, **settings) -> PhysicsBodyID:
        if len(self._bodies) >= MAX_BODIES:
            log.error("Failed to create body")
            return PhysicsBodyID()
        key = self._next_key
        self._next_key += 1
        self._bodies[key] = _Body(key=key, **settings)
        return PhysicsBodyID(key)

    def raycast(self, origin, direction, max_dist: float, mask: int = LAYER_MASK_ALL) -> RaycastHit:
        """Return the nearest hit along ``direction`` within ``max_dist`` on layers in ``mask``."""
        out = RaycastHit()
        if not self.is_initialized():
            return out
        ray_dir = vecmath.normalized_or_zero(direction)
        if float(np.dot(ray_dir, ray_dir)) <= 1.0e-8:
            return out
        start = np.asarray(origin, dtype=float)

        best: tuple[float, _Body] | None = None
        for body in self._bodies.values():
            if not layer_in_mask(body.layer, mask):
                continue
            t = body.shape.raycast(body.to_local(start), body.direction_to_local(ray_dir), max_dist)
            if t is not None and (best is None or t < best[0]):
                best = (t, body)
        if best is None:
            return out

        distance, body = best
        out.hit = True
        out.body_id = PhysicsBodyID(body.key)
        out.distance = float(distance)
        out.point = start + ray_dir * distance
        out.entity_id = self._body_to_entity.get(body.key, 0)
        return out

    def bind_entity_to_body(self, entity: Entity, body_id: PhysicsBodyID) -> None:
        """Associate a scene entity with a body; invalid ids are ignored."""
        if not body_id.is_valid():
            return
        self._entity_to_body[entity] = body_id
        self._body_to_entity[body_id.value] = entity

    def sync_transforms_to_scene(self, scene: Scene) -> None:
        """Copy body positions and rotations into the bound entities' transforms."""
        if not self.is_initialized():
            return
        for entity, body_id in self._entity_to_body.items():
            transform = scene.transform(entity)
            body = self._body(body_id)
            if transform is None or body is None:
                continue
            transform.position = body.position.copy()
            transform.rotation_euler_degrees = np.degrees(vecmath.euler_from_quat(body.rotation))

    def sync_scene_to_physics(self, scene: Scene) -> None:
        """Move bodies on the dynamic layer to their entities' transform positions."""
        if not self.is_initialized():
            return
        for entity, body_id in self._entity_to_body.items():
            transform = scene.transform(entity)
            body = self._body(body_id)
            if transform is None or body is None or body.layer != PhysicsLayer.WORLD_DYNAMIC:
                continue
            body.position = np.array(transform.position, dtype=float)

    def _body(self, body_id: PhysicsBodyID) -> _Body | None:
        if not self.is_initialized() or not body_id.is_valid():
            return None
        return self._bodies.get(body_id.value)

    def body_position(self, body_id: PhysicsBodyID) -> np.ndarray:
        body = self._body(body_id)
        return np.zeros(3) if body is None else body.position.copy()

    def body_linear_velocity(self, body_id: PhysicsBodyID) -> np.ndarray:
        body = self._body(body_id)
        return np.zeros(3) if body is None else body.linear_velocity.copy()

    def set_body_linear_velocity(self, body_id: PhysicsBodyID, velocity) -> None:
        """Set a body's velocity; static bodies do not move and ignore it."""
        body = self._body(body_id)
        if body is None or not body.dynamic:
            return
        body.linear_velocity = np.array(velocity, dtype=float)

    def set_body_rotation_identity(self, body_id: PhysicsBodyID) -> None:
        """Stop a body spinning and reset its orientation."""
        body = self._body(body_id)
        if body is None:
            return
        body.angular_velocity = np.zeros(3)
        body.rotation = np.array([1.0, 0.0, 0.0, 0.0])

    def body_layer(self, body_id: PhysicsBodyID) -> PhysicsLayer:
        body = self._body(body_id)
        return PhysicsLayer.WORLD_STATIC if body is None else body.layer