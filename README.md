# boxworld

A small first-person world made of boxes. You walk around a flat green
ground with a few coloured cubes on it, one of which falls under gravity.
It has a fixed 60 Hz simulation step, a capsule-shaped player with
ground, air, sprint and crouch movement, ray picking against the scene,
and an OpenGL 4.1 core renderer with a gradient sky, distance fog and
debug lines.

## Install

    pip install .

The window and rendering use `pyglet`; the maths uses `numpy`.

## Run the demo

    boxworld --assets-dir path/to/assets

`--assets-dir` names the directory that holds a `shaders/` folder; it
defaults to `assets` in the current directory. The renderer loads these
files from it:

- `shaders/mesh.vert`, `shaders/mesh.frag`
- `shaders/sky.vert`, `shaders/sky.frag`
- `shaders/debug_line.vert`, `shaders/debug_line.frag`

Controls:

- Mouse: look around
- W A S D: move
- Shift: sprint
- Ctrl or C: crouch
- Space: jump
- Left mouse button: cast a physics ray from the screen centre and log what it hit
- Escape: toggle mouse capture

The box under the crosshair is highlighted. Log lines go to standard
error in the form `[<milliseconds since epoch>][INFO ] message`.

## What is in the package

- `boxworld.physics` – `PhysicsSystem`: static and dynamic boxes, a player
  capsule, gravity, collision layers, `raycast`, and syncing body poses to
  and from a `Scene`. Boxes collide through their world-space bounding
  boxes; capsules collide exactly against boxes and other capsules.
- `boxworld.physics_types` – `PhysicsLayer`, `PhysicsBodyID`, `RaycastHit`,
  `to_layer_mask`.
- `boxworld.scene` – `Scene`, `Transform`, `MeshRenderer`.
- `boxworld.player` – `PlayerController`, movement driven by `Input`.
- `boxworld.picking` – `Ray`, `world_aabb`, `ray_intersects_aabb`,
  `pick_entity`, `highlighted_albedo`.
- `boxworld.camera`, `boxworld.vecmath`, `boxworld.input`, `boxworld.clock`,
  `boxworld.log`.
- `boxworld.engine` – `Engine`, `EngineConfig` and the `App` base class.
- `boxworld.window`, `boxworld.render_system`, `boxworld.mesh`,
  `boxworld.shader`, `boxworld.debug_draw`, `boxworld.gl_debug` – the
  window and OpenGL side.
- `boxworld.demo` – `DemoApp` and the `main` behind the `boxworld` command.

## Using the simulation on its own

The physics, scene, picking and player code do not need a window:

```python
from boxworld.physics import PhysicsSystem
from boxworld.physics_types import PhysicsLayer, to_layer_mask
from boxworld.scene import Scene
from boxworld.vecmath import vec3

scene = Scene()
crate = scene.create_entity()
transform = scene.add_transform(crate)
transform.position = vec3(0.0, 4.0, 0.0)

physics = PhysicsSystem()
physics.init()
body = physics.create_dynamic_box(transform, vec3(0.5, 0.5, 0.5), 5.0,
                                  PhysicsLayer.WORLD_DYNAMIC)
physics.bind_entity_to_body(crate, body)

for _ in range(60):
    physics.step(1.0 / 60.0)
physics.sync_transforms_to_scene(scene)

hit = physics.raycast(vec3(0.0, 10.0, 0.0), vec3(0.0, -1.0, 0.0), 50.0,
                      to_layer_mask(PhysicsLayer.WORLD_DYNAMIC))
print(hit.hit, hit.entity_id, hit.distance)
```

`PhysicsSystem` also works as a context manager: `with PhysicsSystem() as
physics:` starts it and shuts it down afterwards.

To write your own application, subclass `boxworld.engine.App`, implement
`on_init`, `on_update`, `on_fixed_update`, `on_render` and `on_shutdown`,
and pass an instance to `Engine.run`.

## What it does not do

- The package ships no GLSL shader files. The renderer, the debug-line
  drawer and so the `boxworld` command need the shader files listed above
  in the assets directory; without them startup fails with a
  `ShaderError`.
- There is no in-game overlay or menu; status goes to the log only.
- Rotated boxes are treated as their axis-aligned bounds when colliding
  with other boxes; there is no general convex collision.

## Tests

    pip install .[test]
    pytest