import numpy as np
import pytest

from boxworld.physics import (
    PhysicsSystem,
    layer_in_mask,
    object_layers_collide,
    object_vs_broad_phase_collide,
)
from boxworld.physics_types import LAYER_MASK_ALL, PhysicsBodyID, PhysicsLayer, to_layer_mask
from boxworld.scene import Scene, Transform

STATIC = PhysicsLayer.WORLD_STATIC
DYNAMIC = PhysicsLayer.WORLD_DYNAMIC
PLAYER = PhysicsLayer.PLAYER
TRIGGER = PhysicsLayer.TRIGGER


@pytest.fixture
def physics():
    system = PhysicsSystem()
    system.init()
    yield system
    system.shutdown()


def _run(system, seconds=2.0, dt=1.0 / 60.0):
    for _ in range(int(round(seconds / dt))):
        system.step(dt)


def test_layer_in_mask_selects_only_masked_layers():
    mask = to_layer_mask(STATIC) | to_layer_mask(DYNAMIC)
    assert layer_in_mask(STATIC, mask)
    assert layer_in_mask(DYNAMIC, mask)
    assert not layer_in_mask(PLAYER, mask)
    assert not layer_in_mask(TRIGGER, mask)
    assert all(layer_in_mask(layer, LAYER_MASK_ALL) for layer in PhysicsLayer)


@pytest.mark.parametrize(
    "first, second, expected",
    [
        (STATIC, STATIC, False),
        (STATIC, DYNAMIC, True),
        (STATIC, PLAYER, True),
        (DYNAMIC, DYNAMIC, True),
        (DYNAMIC, PLAYER, True),
        (PLAYER, PLAYER, False),
        (TRIGGER, STATIC, True),
        (PLAYER, TRIGGER, True),
    ],
)
def test_object_layer_pairs(first, second, expected):
    assert object_layers_collide(first, second) is expected


def test_object_layer_pairs_are_symmetric():
    for first in PhysicsLayer:
        for second in PhysicsLayer:
            assert object_layers_collide(first, second) == object_layers_collide(second, first)


@pytest.mark.parametrize(
    "layer, broad, expected",
    [
        (STATIC, 0, False),
        (STATIC, 1, True),
        (STATIC, 2, True),
        (DYNAMIC, 3, False),
        (PLAYER, 2, False),
        (PLAYER, 1, True),
        (TRIGGER, 3, True),
    ],
)
def test_object_vs_broad_phase(layer, broad, expected):
    assert object_vs_broad_phase_collide(layer, broad) is expected


def test_init_and_shutdown_state():
    system = PhysicsSystem()
    assert not system.is_initialized()
    assert system.init() is True
    assert system.init() is True
    assert system.is_initialized()
    system.shutdown()
    assert not system.is_initialized()


def test_context_manager_starts_and_stops():
    with PhysicsSystem() as system:
        assert system.is_initialized()
    assert not system.is_initialized()


def test_uninitialized_system_creates_nothing():
    system = PhysicsSystem()
    body = system.create_static_box(Transform(), (1.0, 1.0, 1.0), STATIC)
    assert not body.is_valid()
    assert not system.create_player_capsule((0.0, 0.0, 0.0), 0.3, 0.5).is_valid()
    assert system.raycast((0.0, 5.0, 0.0), (0.0, -1.0, 0.0), 10.0).hit is False


def test_created_bodies_have_distinct_ids_and_layers(physics):
    first = physics.create_static_box(Transform(position=(1.0, 2.0, 3.0)), (1.0, 1.0, 1.0), STATIC)
    second = physics.create_dynamic_box(Transform(), (0.5, 0.5, 0.5), 5.0, DYNAMIC)
    assert first.is_valid() and second.is_valid()
    assert first != second
    np.testing.assert_allclose(physics.body_position(first), [1.0, 2.0, 3.0])
    assert physics.body_layer(first) == STATIC
    assert physics.body_layer(second) == DYNAMIC


def test_too_thin_box_is_rejected(physics):
    assert not physics.create_static_box(Transform(), (1.0, 0.01, 1.0), STATIC).is_valid()


def test_degenerate_capsule_is_rejected(physics):
    assert not physics.create_player_capsule((0.0, 0.0, 0.0), 0.0, 0.5).is_valid()
    assert not physics.create_player_capsule((0.0, 0.0, 0.0), 0.3, 0.0).is_valid()


def test_capsule_is_on_player_layer(physics):
    body = physics.create_player_capsule((0.0, 2.0, 0.0), 0.35, 0.55)
    assert physics.body_layer(body) == PLAYER


def test_unknown_body_queries_return_defaults(physics):
    missing = PhysicsBodyID()
    np.testing.assert_allclose(physics.body_position(missing), [0.0, 0.0, 0.0])
    np.testing.assert_allclose(physics.body_linear_velocity(missing), [0.0, 0.0, 0.0])
    assert physics.body_layer(missing) == STATIC


def test_raycast_hits_top_face_of_box(physics):
    body = physics.create_static_box(Transform(), (1.0, 1.0, 1.0), STATIC)
    hit = physics.raycast((0.0, 5.0, 0.0), (0.0, -1.0, 0.0), 10.0, LAYER_MASK_ALL)
    assert hit.hit
    assert hit.body_id == body
    assert hit.distance == pytest.approx(4.0)
    np.testing.assert_allclose(hit.point, [0.0, 1.0, 0.0], atol=1e-9)


def test_raycast_direction_length_does_not_matter(physics):
    physics.create_static_box(Transform(), (1.0, 1.0, 1.0), STATIC)
    unit = physics.raycast((0.0, 5.0, 0.0), (0.0, -1.0, 0.0), 10.0)
    long = physics.raycast((0.0, 5.0, 0.0), (0.0, -7.0, 0.0), 10.0)
    assert long.distance == pytest.approx(unit.distance)


def test_raycast_respects_max_distance(physics):
    physics.create_static_box(Transform(), (1.0, 1.0, 1.0), STATIC)
    assert not physics.raycast((0.0, 5.0, 0.0), (0.0, -1.0, 0.0), 3.0).hit


def test_raycast_respects_layer_mask(physics):
    physics.create_static_box(Transform(), (1.0, 1.0, 1.0), STATIC)
    hit = physics.raycast((0.0, 5.0, 0.0), (0.0, -1.0, 0.0), 10.0, to_layer_mask(DYNAMIC))
    assert not hit.hit


def test_raycast_zero_direction_misses(physics):
    physics.create_static_box(Transform(), (1.0, 1.0, 1.0), STATIC)
    assert not physics.raycast((0.0, 5.0, 0.0), (0.0, 0.0, 0.0), 10.0).hit


def test_raycast_reports_nearest_body(physics):
    far = physics.create_static_box(Transform(position=(0.0, 0.0, -10.0)), (1.0, 1.0, 1.0), STATIC)
    near = physics.create_static_box(Transform(position=(0.0, 0.0, -4.0)), (1.0, 1.0, 1.0), STATIC)
    hit = physics.raycast((0.0, 0.0, 0.0), (0.0, 0.0, -1.0), 50.0)
    assert hit.body_id == near
    assert hit.body_id != far


def test_raycast_from_inside_box_hits_at_zero(physics):
    physics.create_static_box(Transform(), (1.0, 1.0, 1.0), STATIC)
    hit = physics.raycast((0.0, 0.0, 0.0), (1.0, 0.0, 0.0), 10.0)
    assert hit.hit
    assert hit.distance == 0.0


def test_rotated_box_reaches_further(physics):
    physics.create_static_box(Transform(), (1.0, 1.0, 1.0), STATIC)
    straight = physics.raycast((5.0, 0.0, 0.0), (-1.0, 0.0, 0.0), 10.0)
    physics.shutdown()
    physics.init()
    physics.create_static_box(Transform(rotation_euler_degrees=(0.0, 45.0, 0.0)), (1.0, 1.0, 1.0), STATIC)
    rotated = physics.raycast((5.0, 0.0, 0.0), (-1.0, 0.0, 0.0), 10.0)
    assert rotated.hit and straight.hit
    assert rotated.distance < straight.distance


def test_raycast_hits_capsule_surface(physics):
    radius = 0.5
    body = physics.create_player_capsule((0.0, 0.0, 0.0), radius, 1.0)
    hit = physics.raycast((5.0, 0.0, 0.0), (-1.0, 0.0, 0.0), 10.0)
    assert hit.body_id == body
    assert hit.point[0] == pytest.approx(radius)


def test_raycast_entity_binding(physics):
    bound = physics.create_static_box(Transform(), (1.0, 1.0, 1.0), STATIC)
    physics.bind_entity_to_body(42, bound)
    assert physics.raycast((0.0, 5.0, 0.0), (0.0, -1.0, 0.0), 10.0).entity_id == 42
    physics.create_static_box(Transform(position=(10.0, 0.0, 0.0)), (1.0, 1.0, 1.0), STATIC)
    assert physics.raycast((10.0, 5.0, 0.0), (0.0, -1.0, 0.0), 10.0).entity_id == 0


def test_dynamic_box_falls(physics):
    body = physics.create_dynamic_box(Transform(position=(0.0, 10.0, 0.0)), (0.5, 0.5, 0.5), 5.0, DYNAMIC)
    physics.step(1.0 / 60.0)
    assert physics.body_position(body)[1] < 10.0
    assert physics.body_linear_velocity(body)[1] < 0.0


def test_dynamic_box_rests_on_ground(physics):
    ground_top = 0.5
    half = 0.5
    physics.create_static_box(Transform(), (10.0, ground_top, 10.0), STATIC)
    body = physics.create_dynamic_box(Transform(position=(0.0, 3.0, 0.0)), (half, half, half), 5.0, DYNAMIC)
    _run(physics)
    position = physics.body_position(body)
    assert position[1] - half == pytest.approx(ground_top, abs=0.05)
    assert np.linalg.norm(physics.body_linear_velocity(body)) < 0.1


def test_player_capsule_lands_on_ground(physics):
    ground_top = 0.5
    radius, half_height = 0.35, 0.55
    physics.create_static_box(Transform(), (10.0, ground_top, 10.0), STATIC)
    body = physics.create_player_capsule((0.0, 4.0, 0.0), radius, half_height)
    _run(physics)
    bottom = physics.body_position(body)[1] - (half_height + radius)
    assert bottom == pytest.approx(ground_top, abs=0.05)


def test_wall_stops_sliding_box(physics):
    physics.gravity = np.zeros(3)
    wall_x, wall_half = 3.0, 0.5
    box_half = 0.5
    physics.create_static_box(Transform(position=(wall_x, 0.0, 0.0)), (wall_half, 2.0, 2.0), STATIC)
    body = physics.create_dynamic_box(Transform(), (box_half, box_half, box_half), 1.0, DYNAMIC)
    physics.set_body_linear_velocity(body, (5.0, 0.0, 0.0))
    _run(physics)
    assert physics.body_position(body)[0] <= wall_x - wall_half - box_half + 0.01
    assert physics.body_linear_velocity(body)[0] <= 1e-6


def test_set_velocity_applies_only_to_dynamic_bodies(physics):
    static = physics.create_static_box(Transform(), (1.0, 1.0, 1.0), STATIC)
    dynamic = physics.create_dynamic_box(Transform(position=(5.0, 0.0, 0.0)), (0.5, 0.5, 0.5), 1.0, DYNAMIC)
    physics.set_body_linear_velocity(static, (1.0, 2.0, 3.0))
    physics.set_body_linear_velocity(dynamic, (1.0, 2.0, 3.0))
    np.testing.assert_allclose(physics.body_linear_velocity(static), [0.0, 0.0, 0.0])
    np.testing.assert_allclose(physics.body_linear_velocity(dynamic), [1.0, 2.0, 3.0])


def test_sync_transforms_follow_bodies(physics):
    scene = Scene()
    entity = scene.create_entity()
    transform = scene.add_transform(entity)
    transform.position = np.array([0.0, 10.0, 0.0])
    body = physics.create_dynamic_box(transform, (0.5, 0.5, 0.5), 5.0, DYNAMIC)
    physics.bind_entity_to_body(entity, body)
    physics.step(1.0 / 60.0)
    physics.sync_transforms_to_scene(scene)
    np.testing.assert_allclose(scene.transform(entity).position, physics.body_position(body))
    assert scene.transform(entity).position[1] < 10.0


def test_rotation_identity_resets_synced_rotation(physics):
    scene = Scene()
    entity = scene.create_entity()
    transform = scene.add_transform(entity)
    transform.rotation_euler_degrees = np.array([0.0, 45.0, 0.0])
    body = physics.create_dynamic_box(transform, (0.5, 0.5, 0.5), 5.0, DYNAMIC)
    physics.bind_entity_to_body(entity, body)
    physics.sync_transforms_to_scene(scene)
    assert scene.transform(entity).rotation_euler_degrees[1] == pytest.approx(45.0)
    physics.set_body_rotation_identity(body)
    physics.sync_transforms_to_scene(scene)
    np.testing.assert_allclose(scene.transform(entity).rotation_euler_degrees, [0.0, 0.0, 0.0], atol=1e-9)


def test_sync_scene_to_physics_moves_only_dynamic_layer(physics):
    scene = Scene()
    moving = scene.create_entity()
    fixed = scene.create_entity()
    moving_tr = scene.add_transform(moving)
    fixed_tr = scene.add_transform(fixed)
    moving_body = physics.create_dynamic_box(moving_tr, (0.5, 0.5, 0.5), 1.0, DYNAMIC)
    fixed_body = physics.create_static_box(fixed_tr, (0.5, 0.5, 0.5), STATIC)
    physics.bind_entity_to_body(moving, moving_body)
    physics.bind_entity_to_body(fixed, fixed_body)
    moving_tr.position = np.array([5.0, 5.0, 5.0])
    fixed_tr.position = np.array([7.0, 7.0, 7.0])
    physics.sync_scene_to_physics(scene)
    np.testing.assert_allclose(physics.body_position(moving_body), [5.0, 5.0, 5.0])
    np.testing.assert_allclose(physics.body_position(fixed_body), [0.0, 0.0, 0.0])


def test_binding_invalid_body_is_ignored(physics):
    scene = Scene()
    entity = scene.create_entity()
    transform = scene.add_transform(entity)
    transform.position = np.array([1.0, 2.0, 3.0])
    physics.bind_entity_to_body(entity, PhysicsBodyID())
    physics.sync_transforms_to_scene(scene)
    np.testing.assert_allclose(scene.transform(entity).position, [1.0, 2.0, 3.0])


def test_shutdown_forgets_bodies(physics):
    body = physics.create_static_box(Transform(position=(1.0, 2.0, 3.0)), (1.0, 1.0, 1.0), STATIC)
    physics.shutdown()
    np.testing.assert_allclose(physics.body_position(body), [0.0, 0.0, 0.0])
    physics.init()
    assert not physics.raycast((1.0, 10.0, 3.0), (0.0, -1.0, 0.0), 20.0).hit