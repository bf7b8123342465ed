import numpy as np
import pytest

from boxworld.picking import Ray, highlighted_albedo, pick_entity, ray_intersects_aabb, world_aabb
from boxworld.scene import MeshRenderer, Scene, Transform


def _add_box(scene, position, ground=False):
    entity = scene.create_entity()
    scene.add_transform(entity).position = np.array(position, dtype=float)
    scene.add_mesh_renderer(entity).enable_ground_grid = ground
    return entity


def test_ray_defaults():
    ray = Ray()
    assert np.array_equal(ray.origin, [0.0, 0.0, 0.0])
    assert np.array_equal(ray.direction, [0.0, 0.0, -1.0])


def test_world_aabb_identity_is_local_bounds():
    renderer = MeshRenderer()
    lo, hi = world_aabb(Transform(), renderer)
    assert np.allclose(lo, renderer.local_aabb_min)
    assert np.allclose(hi, renderer.local_aabb_max)


def test_world_aabb_translated_and_scaled():
    position = np.array([1.0, 2.0, 3.0])
    lo, hi = world_aabb(Transform(position=position, scale=(2.0, 2.0, 2.0)), MeshRenderer())
    assert np.allclose(lo, position - 1.0)
    assert np.allclose(hi, position + 1.0)


def test_world_aabb_yaw_swaps_extents():
    transform = Transform(rotation_euler_degrees=(0.0, 90.0, 0.0), scale=(2.0, 1.0, 1.0))
    lo, hi = world_aabb(transform, MeshRenderer())
    assert np.allclose(lo, [-0.5, -0.5, -1.0])
    assert np.allclose(hi, [0.5, 0.5, 1.0])


def test_ray_hits_front_face():
    ray = Ray(origin=(0.0, 0.0, 5.0), direction=(0.0, 0.0, -1.0))
    t = ray_intersects_aabb(ray, (-0.5, -0.5, -0.5), (0.5, 0.5, 0.5))
    point = ray.origin + ray.direction * t
    assert point[2] == pytest.approx(0.5)


def test_ray_misses_to_the_side():
    ray = Ray(origin=(5.0, 0.0, 5.0), direction=(0.0, 0.0, -1.0))
    assert ray_intersects_aabb(ray, (-0.5, -0.5, -0.5), (0.5, 0.5, 0.5)) is None


def test_ray_box_behind_is_missed():
    ray = Ray(origin=(0.0, 0.0, 5.0), direction=(0.0, 0.0, 1.0))
    assert ray_intersects_aabb(ray, (-0.5, -0.5, -0.5), (0.5, 0.5, 0.5)) is None


def test_ray_starting_inside_returns_zero():
    ray = Ray(origin=(0.0, 0.0, 0.0), direction=(1.0, 0.0, 0.0))
    assert ray_intersects_aabb(ray, (-0.5, -0.5, -0.5), (0.5, 0.5, 0.5)) == 0.0


def test_pick_nearest_entity():
    scene = Scene()
    far = _add_box(scene, (0.0, 0.0, -5.0))
    near = _add_box(scene, (0.0, 0.0, 0.0))
    ray = Ray(origin=(0.0, 0.0, 5.0), direction=(0.0, 0.0, -1.0))
    assert pick_entity(scene, ray) == near
    assert far != near


def test_pick_skips_ground_grid():
    scene = Scene()
    _add_box(scene, (0.0, 0.0, 2.0), ground=True)
    target = _add_box(scene, (0.0, 0.0, -2.0))
    ray = Ray(origin=(0.0, 0.0, 5.0), direction=(0.0, 0.0, -1.0))
    assert pick_entity(scene, ray) == target


def test_pick_skips_entity_without_transform():
    scene = Scene()
    entity = scene.create_entity()
    scene.add_mesh_renderer(entity)
    assert pick_entity(scene, Ray(origin=(0.0, 0.0, 5.0))) is None


def test_pick_nothing_hit():
    scene = Scene()
    _add_box(scene, (10.0, 0.0, 0.0))
    assert pick_entity(scene, Ray(origin=(0.0, 0.0, 5.0))) is None


def test_highlight_clamps_to_one():
    assert np.array_equal(highlighted_albedo((1.0, 1.0, 1.0)), [1.0, 1.0, 1.0])
    assert np.array_equal(highlighted_albedo((0.0, 0.0, 0.0)), [0.0, 0.0, 0.0])


def test_highlight_brightens_dark_components():
    base = np.array([0.5, 0.1, 0.9])
    result = highlighted_albedo(base)
    assert result[1] / base[1] == pytest.approx(1.55)
    assert result[2] == 1.0
    assert np.all(result >= base)
    assert np.all(result <= 1.0)