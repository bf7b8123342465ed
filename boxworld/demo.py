"""Demo world: a ground plane, a few boxes, a falling crate and a walking player."""

from __future__ import annotations

import argparse
from pathlib import Path

import numpy as np

from boxworld import log, vecmath
from boxworld.camera import Camera
from boxworld.debug_draw import DebugDraw
from boxworld.engine import App, Engine, EngineConfig
from boxworld.input import MouseButton
from boxworld.mesh import Mesh
from boxworld.physics import PhysicsSystem
from boxworld.physics_types import PhysicsLayer, to_layer_mask
from boxworld.picking import Ray, highlighted_albedo, pick_entity
from boxworld.player import PlayerController
from boxworld.render_system import DirectionalLight
from boxworld.scene import Entity, Scene

__all__ = ["DemoApp", "main"]

MOUSE_SENSITIVITY = 0.08
PITCH_LIMIT = 89.0
PICK_RAY_LENGTH = 150.0
PLAYER_SPAWN = (0.0, 1.7, 6.5)
_WORLD_MASK = to_layer_mask(PhysicsLayer.WORLD_STATIC) | to_layer_mask(PhysicsLayer.WORLD_DYNAMIC)


class DemoApp(App):
    """Walk around a small world; the box under the crosshair is highlighted."""

    def __init__(self) -> None:
        self.scene = Scene()
        self.cube_mesh_index = 0
        self.ground_entity: Entity = 0
        self.cube_entity: Entity = 0
        self.second_entity: Entity = 0
        self.dynamic_entity: Entity = 0
        self.base_albedo: dict[Entity, np.ndarray] = {}
        self.selected_entity: Entity | None = None
        self.camera = Camera()
        self.light = DirectionalLight()
        self.debug_draw = DebugDraw()
        self.physics = PhysicsSystem()
        self.player_controller = PlayerController()
        self._prev_left_mouse = False

    def on_init(self, engine: Engine) -> None:
        self.debug_draw.init(engine.config.assets_dir)
        if not self.physics.init():
            raise RuntimeError("Physics init failed")

        self.cube_mesh_index = engine.meshes.add(Mesh.make_cube())
        self.setup_world()

        self.camera.position = vecmath.vec3(0.0, 2.2, 8.0)
        self.camera.yaw_degrees = -90.0
        self.camera.pitch_degrees = -8.0
        self.camera.near_plane = 0.05
        self.camera.far_plane = 250.0
        width, height = engine.window.drawable_size()
        self.camera.aspect = width / height if height > 0 else 16.0 / 9.0

        self.light.direction = vecmath.normalize([-0.7, -1.0, -0.45])
        self.light.color = vecmath.vec3(1.0, 0.98, 0.93)

    def on_shutdown(self, engine: Engine) -> None:
        self.physics.shutdown()
        self.debug_draw.destroy()

    def on_update(self, engine: Engine, dt: float) -> None:
        width, height = engine.window.drawable_size()
        if height > 0:
            self.camera.aspect = width / height

        self.camera.yaw_degrees += engine.input.mouse_delta_x * MOUSE_SENSITIVITY
        self.camera.pitch_degrees -= engine.input.mouse_delta_y * MOUSE_SENSITIVITY
        self.camera.pitch_degrees = min(PITCH_LIMIT, max(-PITCH_LIMIT, self.camera.pitch_degrees))

        self.player_controller.update_camera_from_player(self.physics, self.camera)

        center_ray = Ray(self.camera.position, self.camera.forward())
        self.selected_entity = pick_entity(self.scene, center_ray)
        self.update_highlight_colors()

        # A tiny camera-facing plus in front of the eye serves as the crosshair.
        white = np.ones(3)
        crosshair = center_ray.origin + center_ray.direction * 0.9
        right = np.asarray(self.camera.right()) * 0.010
        up = np.asarray(self.camera.up()) * 0.010
        self.debug_draw.line(crosshair - right, crosshair + right, white)
        self.debug_draw.line(crosshair - up, crosshair + up, white)
        ray_end = center_ray.origin + center_ray.direction * 40.0
        self.debug_draw.line(center_ray.origin, ray_end, vecmath.vec3(1.0, 0.95, 0.2))

        left_mouse = engine.input.mouse_button_down(MouseButton.LEFT)
        if left_mouse and not self._prev_left_mouse:
            hit = self.physics.raycast(center_ray.origin, center_ray.direction, PICK_RAY_LENGTH, _WORLD_MASK)
            if hit.hit:
                log.info(
                    f"Physics ray hit body={hit.body_id.value} entity={hit.entity_id} "
                    f"distance={hit.distance:.6f}"
                )
            else:
                log.info("Physics ray missed")
        self._prev_left_mouse = left_mouse

    def on_fixed_update(self, engine: Engine, fixed_dt: float) -> None:
        self.player_controller.fixed_update(self.physics, engine.input, self.camera, fixed_dt)
        self.physics.step(fixed_dt)
        self.physics.sync_transforms_to_scene(self.scene)

    def on_render(self, engine: Engine) -> None:
        engine.renderer.render(self.scene, self.camera, self.light, engine.meshes)
        self.debug_draw.render(self.camera)

    def _add_box(self, position, scale, albedo) -> tuple[Entity, object]:
        entity = self.scene.create_entity()
        transform = self.scene.add_transform(entity)
        transform.position = np.array(position, dtype=float)
        transform.scale = np.array(scale, dtype=float)
        renderer = self.scene.add_mesh_renderer(entity)
        renderer.mesh_index = self.cube_mesh_index
        renderer.albedo = np.array(albedo, dtype=float)
        self.base_albedo[entity] = renderer.albedo.copy()
        return entity, transform

    def setup_world(self) -> None:
        """Create the ground, two static boxes, a falling box and the player; needs started physics."""
        self.ground_entity, ground_tr = self._add_box((0.0, -0.05, 0.0), (80.0, 0.1, 80.0), (0.24, 0.34, 0.24))
        self.scene.mesh_renderer(self.ground_entity).enable_ground_grid = True
        body = self.physics.create_static_box(ground_tr, (40.0, 0.05, 40.0), PhysicsLayer.WORLD_STATIC)
        self.physics.bind_entity_to_body(self.ground_entity, body)

        self.cube_entity, cube_tr = self._add_box((0.0, 0.5, 0.0), (1.0, 1.0, 1.0), (0.95, 0.54, 0.21))
        body = self.physics.create_static_box(cube_tr, (0.5, 0.5, 0.5), PhysicsLayer.WORLD_STATIC)
        self.physics.bind_entity_to_body(self.cube_entity, body)

        self.second_entity, second_tr = self._add_box((2.4, 0.75, -2.0), (1.5, 1.5, 1.5), (0.22, 0.68, 0.92))
        body = self.physics.create_static_box(second_tr, (0.75, 0.75, 0.75), PhysicsLayer.WORLD_STATIC)
        self.physics.bind_entity_to_body(self.second_entity, body)

        self.dynamic_entity, dyn_tr = self._add_box((-2.0, 4.0, 0.0), (1.0, 1.0, 1.0), (0.92, 0.80, 0.30))
        body = self.physics.create_dynamic_box(dyn_tr, (0.5, 0.5, 0.5), 5.0, PhysicsLayer.WORLD_DYNAMIC)
        self.physics.bind_entity_to_body(self.dynamic_entity, body)

        if not self.player_controller.init(self.physics, vecmath.vec3(*PLAYER_SPAWN)):
            raise RuntimeError("Player controller init failed")

    def update_highlight_colors(self) -> None:
        """Brighten the selected entity and restore every other one to its base colour."""
        for entity in self.scene.mesh_renderer_entities():
            renderer = self.scene.mesh_renderer(entity)
            base = self.base_albedo.get(entity)
            if renderer is None or base is None:
                continue
            if self.selected_entity is not None and self.selected_entity == entity:
                renderer.albedo = highlighted_albedo(base)
            else:
                renderer.albedo = base.copy()


def main(argv=None) -> int:
    """Open the demo window and run until it is closed."""
    parser = argparse.ArgumentParser(prog="boxworld", description="Walk around a small physics world.")
    parser.add_argument("--assets-dir", type=Path, default=None, help="directory holding the shaders/ folder")
    args = parser.parse_args(argv)

    config = EngineConfig(title="World Demo - OpenGL 4.1", capture_mouse=True, vsync=True)
    if args.assets_dir is not None:
        config.assets_dir = args.assets_dir

    with Engine(config) as engine:
        engine.run(DemoApp())
    return 0


if __name__ == "__main__":
    raise SystemExit(main())