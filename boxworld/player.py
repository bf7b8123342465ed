"""First-person player movement driven by a physics capsule."""

from __future__ import annotations

import math
from dataclasses import dataclass, field

import numpy as np

from boxworld import vecmath
from boxworld.camera import Camera
from boxworld.input import Input, Scancode
from boxworld.physics import PhysicsSystem
from boxworld.physics_types import PhysicsBodyID, PhysicsLayer, to_layer_mask

__all__ = ["PlayerController"]

_UP = np.array([0.0, 1.0, 0.0])
_DOWN = np.array([0.0, -1.0, 0.0])
_WISH_EPSILON = 1.0e-6
_GROUND_PROBE_LIFT = 0.05
_GROUND_PROBE_LENGTH = 0.15
_EYE_SMOOTHING = 0.25

_CROUCH_KEYS = (Scancode.LCTRL, Scancode.RCTRL, Scancode.C)
_SPRINT_KEYS = (Scancode.LSHIFT, Scancode.RSHIFT)


@dataclass(eq=False)
class PlayerController:
    """Walks, sprints, crouches and jumps a capsule body from keyboard input."""

    body_id: PhysicsBodyID = field(default_factory=PhysicsBodyID)
    capsule_radius: float = 0.35
    capsule_half_height: float = 0.55
    move_speed: float = 6.0
    sprint_multiplier: float = 1.6
    crouch_speed_multiplier: float = 0.5
    ground_acceleration: float = 45.0
    air_acceleration: float = 14.0
    air_control_speed_multiplier: float = 1.15
    jump_speed: float = 6.25
    gravity: float = -20.0
    standing_eye_offset: float = 0.85
    crouching_eye_offset: float = 0.45
    eye_offset: float = 0.85
    ground_stick_speed: float = 2.0
    _jump_held: bool = field(default=False, init=False, repr=False)

    def init(self, physics: PhysicsSystem, spawn_position) -> bool:
        """Create the player capsule at ``spawn_position``; return whether it exists."""
        self.body_id = physics.create_player_capsule(
            spawn_position, self.capsule_radius, self.capsule_half_height
        )
        return self.body_id.is_valid()

    def fixed_update(self, physics: PhysicsSystem, input: Input, camera: Camera, fixed_dt: float) -> None:
        """Turn the held keys into a new body velocity for one fixed step."""
        if not self.body_id.is_valid():
            return

        yaw = math.radians(camera.yaw_degrees)
        fwd = vecmath.normalize(vecmath.vec3(math.cos(yaw), 0.0, math.sin(yaw)))
        right = vecmath.normalize(np.cross(fwd, _UP))

        wish = np.zeros(3)
        for code, direction in (
            (Scancode.W, fwd),
            (Scancode.S, -fwd),
            (Scancode.D, right),
            (Scancode.A, -right),
        ):
            if input.key_down(code):
                wish = wish + direction
        has_wish = float(np.dot(wish, wish)) > _WISH_EPSILON
        if has_wish:
            wish = vecmath.normalize(wish)

        crouching = any(input.key_down(code) for code in _CROUCH_KEYS)
        sprinting = not crouching and any(input.key_down(code) for code in _SPRINT_KEYS)

        target_eye = self.crouching_eye_offset if crouching else self.standing_eye_offset
        self.eye_offset += (target_eye - self.eye_offset) * _EYE_SMOOTHING

        speed = self.move_speed
        if sprinting:
            speed *= self.sprint_multiplier
        if crouching:
            speed *= self.crouch_speed_multiplier

        velocity = physics.body_linear_velocity(self.body_id)
        grounded = self.is_grounded(physics)

        horizontal = np.array([velocity[0], velocity[2]])
        target = np.zeros(2)
        if has_wish:
            wish_speed = speed if grounded else speed * self.air_control_speed_multiplier
            target = np.array([wish[0], wish[2]]) * wish_speed
        elif not grounded:
            # Keep airborne momentum when there is no input.
            target = horizontal.copy()

        accel = self.ground_acceleration if grounded else self.air_acceleration
        max_delta = accel * fixed_dt
        delta = target - horizontal
        delta_len = float(np.linalg.norm(delta))
        if delta_len > max_delta and delta_len > _WISH_EPSILON:
            horizontal = horizontal + (delta / delta_len) * max_delta
        else:
            horizontal = target

        velocity[0] = horizontal[0]
        velocity[2] = horizontal[1]

        jump_now = input.key_down(Scancode.SPACE)
        if jump_now and not self._jump_held and grounded:
            velocity[1] = self.jump_speed
        elif not grounded:
            velocity[1] += self.gravity * fixed_dt
        else:
            # A light downward push keeps the capsule from floating off the ground.
            velocity[1] = -self.ground_stick_speed
        self._jump_held = jump_now

        physics.set_body_rotation_identity(self.body_id)
        physics.set_body_linear_velocity(self.body_id, velocity)

    def update_camera_from_player(self, physics: PhysicsSystem, camera: Camera) -> None:
        """Place the camera at the player's eye height."""
        if not self.body_id.is_valid():
            return
        p = physics.body_position(self.body_id)
        camera.position = np.array([p[0], p[1] + self.eye_offset, p[2]])

    def is_grounded(self, physics: PhysicsSystem) -> bool:
        """Return True when world geometry lies just below the capsule's feet."""
        p = physics.body_position(self.body_id)
        foot_offset = self.capsule_half_height + self.capsule_radius
        origin = np.array([p[0], p[1] - foot_offset + _GROUND_PROBE_LIFT, p[2]])
        mask = to_layer_mask(PhysicsLayer.WORLD_STATIC) | to_layer_mask(PhysicsLayer.WORLD_DYNAMIC)
        return physics.raycast(origin, _DOWN, _GROUND_PROBE_LENGTH, mask).hit