"""
Spawn placement tests.

Covers:
1. Floor-only overlaps are safe
2. Any non-floor overlap is unsafe
3. Bounded search returns the last candidate on exhaustion
4. In-front-of-fire placement faces the chosen fire
"""

import sys, os
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

import logging

import numpy as np
import pytest

from firefighter.entities import FireUnit
from firefighter.fire_field import FireField
from firefighter.geometry import Pose, yaw_rotation
from firefighter.physics import BoxCollider, PhysicsWorld, SphereCollider
from firefighter.spawn import SpawnPlacer


def make_world(with_floor=True):
    world = PhysicsWorld()
    if with_floor:
        world.add_collider(BoxCollider((0.0, -0.5, 0.0), (20.0, 0.5, 20.0), tag="floor", name="Floor"))
    return world


def add_fire(world, field, name, position, facing):
    placement = Pose(position, yaw_rotation(facing))
    interactive = world.add_collider(BoxCollider(
        placement.transform_point((0.0, 0.0, 0.15)), (0.4, 0.4, 0.3),
        rotation=placement.rotation, tag="fire_collider", is_trigger=True,
    ))
    solid = world.add_collider(BoxCollider(position, (0.3, 0.3, 0.15), rotation=placement.rotation, tag="solid_fire"))
    fire = FireUnit(name, interactive, solid, placement=placement)
    field.register(fire)
    return fire


def test_floor_only_is_safe():
    print("\n" + "=" * 70)
    print("SPAWN PLACEMENT")
    print("=" * 70)

    world = make_world()
    placer = SpawnPlacer(world, FireField())
    result = placer.place(np.random.default_rng(0))

    print(f"  position={np.round(result.position, 3)}, attempts={result.attempts}")
    assert result.safe
    assert result.attempts == 1, "Only the floor overlaps, first candidate should be accepted"
    assert np.linalg.norm(result.position[[0, 2]]) <= 5.0 + 1e-9
    print("  ✓ Floor overlap accepted on first attempt")


def test_nothing_overlapping_is_safe():
    placer = SpawnPlacer(make_world(with_floor=False), FireField())
    assert placer.is_safe(np.zeros(3))


def test_non_floor_overlap_is_unsafe():
    world = make_world()
    world.add_collider(BoxCollider((0.0, 0.5, 0.0), (0.5, 0.5, 0.5), tag="obstacle"))
    placer = SpawnPlacer(world, FireField())

    assert not placer.is_safe(np.zeros(3))
    assert placer.is_safe(np.array([3.0, 0.0, 0.0]))


def test_disabled_colliders_do_not_block():
    world = make_world()
    crate = world.add_collider(BoxCollider((0.0, 0.5, 0.0), (0.5, 0.5, 0.5), tag="obstacle"))
    crate.enabled = False
    assert SpawnPlacer(world, FireField()).is_safe(np.zeros(3))


def test_ignored_colliders_do_not_block():
    world = make_world()
    own = world.add_collider(SphereCollider((0.0, 0.5, 0.0), 0.5, tag="agent"))
    placer = SpawnPlacer(world, FireField())
    assert not placer.is_safe(np.zeros(3))
    assert placer.is_safe(np.zeros(3), ignore=[own])


def test_exhaustion_returns_last_candidate(caplog):
    print("\n[Test] Exhausted search")
    world = make_world()
    # Covers the whole spawn disc
    world.add_collider(BoxCollider((0.0, 0.5, 0.0), (10.0, 0.5, 10.0), tag="obstacle"))
    placer = SpawnPlacer(world, FireField(), max_attempts=7)

    rng = np.random.default_rng(123)
    with caplog.at_level(logging.ERROR, logger="firefighter.spawn"):
        result = placer.place(rng)

    # Replay the same draws to find the last candidate
    replay = np.random.default_rng(123)
    last = None
    for _ in range(7):
        last = placer._random_in_area(replay)

    assert not result.safe
    assert result.attempts == 7
    assert np.allclose(result.position, last[0])
    assert any("7 attempts" in r.getMessage() for r in caplog.records)
    print("  ✓ Logged at ERROR, last candidate returned with safe=False")


def test_in_front_of_fire_faces_fire():
    print("\n[Test] In front of fire")
    world = make_world()
    field = FireField()
    fire = add_fire(world, field, "Fire0", (0.0, 0.5, 6.0), 180.0)
    placer = SpawnPlacer(world, field, front_distance=(0.8, 1.3))

    result = placer.place(np.random.default_rng(5), in_front_of_fire=True)
    offset = fire.position - result.position
    distance = np.linalg.norm(offset[[0, 2]])

    print(f"  position={np.round(result.position, 3)}, distance={distance:.3f}")
    assert result.safe
    assert 0.8 - 1e-9 <= distance <= 1.3 + 1e-9
    assert result.position[1] == pytest.approx(0.0)

    forward = result.rotation.apply([0.0, 0.0, 1.0])
    up = result.rotation.apply([0.0, 1.0, 0.0])
    assert forward[1] == pytest.approx(0.0, abs=1e-9), "Spawn rotation must not pitch"
    assert np.allclose(up, [0.0, 1.0, 0.0], atol=1e-9), "Spawned agent must stay upright"

    to_center = fire.center_position - result.position
    to_center[1] = 0.0
    to_center /= np.linalg.norm(to_center)
    assert np.allclose(forward, to_center, atol=1e-6)
    print("  ✓ Spawned in front of the fire, upright and facing it")


def test_in_front_of_fire_skips_dead_fires():
    world = make_world()
    field = FireField()
    dead = add_fire(world, field, "Dead", (0.0, 0.5, 6.0), 180.0)
    alive = add_fire(world, field, "Alive", (0.0, 0.5, -6.0), 0.0)
    dead.extinguish(1.0)

    placer = SpawnPlacer(world, field)
    rng = np.random.default_rng(0)
    for _ in range(10):
        result = placer.place(rng, in_front_of_fire=True)
        assert result.position[2] < 0.0, "Should only spawn in front of the live fire"


def test_in_front_of_fire_without_fires_falls_back(caplog):
    placer = SpawnPlacer(make_world(), FireField())
    with caplog.at_level(logging.WARNING, logger="firefighter.spawn"):
        result = placer.place(np.random.default_rng(0), in_front_of_fire=True)
    assert result.safe
    assert caplog.records


def test_invalid_attempts():
    with pytest.raises(ValueError):
        SpawnPlacer(make_world(), FireField(), max_attempts=0)
