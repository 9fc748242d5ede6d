"""
Agent perception-action-reward loop tests.

Covers:
1. Dead-centre hit: extinguish + reward in training, extinguish only in play
2. Graze penalty away from the tool tip (every tick, every mode)
3. Boundary penalty once per new collision (training only)
4. Frozen agents ignore actions and do not extinguish
5. Observation layout and the zero observation
6. Yaw smoothing and movement
7. Target re-selection after a hit and after another agent's hit
8. Episode reset and max step
"""

import sys, os
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

import numpy as np
import pytest

from firefighter.env import ArenaEnvironment
from firefighter.geometry import yaw_of, yaw_rotation
from firefighter.layouts import build_single_fire_arena
from firefighter.physics import BoxCollider

IDLE = [0.0, 0.0, 0.0]


def place(agent, position, yaw=0.0):
    """Teleport an agent and re-select its target."""
    agent.body.teleport(position, yaw_rotation(yaw))
    agent.update_nearest_fire()


def single_fire(training=True, **overrides):
    env = build_single_fire_arena({"training_mode": training, **overrides})
    env.reset(seed=0)
    return env, env.agents["agent"], env.field.fires[0]


def two_fire_arena(**overrides):
    env = ArenaEnvironment(overrides)
    env.add_static("Floor", "floor", BoxCollider((0.0, -0.5, 0.0), (10.0, 0.5, 10.0)))
    env.add_fire("Fire0", (0.0, 0.5, 3.0), 180.0)
    env.add_fire("Fire1", (4.0, 0.5, 3.0), 180.0)
    env.build_field()
    return env


def test_dead_centre_hit_training():
    print("\n" + "=" * 70)
    print("AGENT: DEAD-CENTRE HIT (TRAINING)")
    print("=" * 70)

    env, agent, fire = single_fire(training=True)
    place(agent, (0.0, 0.0, 2.0))

    rewards = env.step({"agent": IDLE})
    print(f"  reward={rewards['agent']:.4f}, health={fire.health:.4f}")
    assert rewards["agent"] == pytest.approx(0.04), f"Expected 0.02 + 0.02, got {rewards['agent']}"
    assert fire.health == pytest.approx(0.99)
    assert agent.fires_extinguished == pytest.approx(0.01)
    print("  ✓ One tick of contact: -0.01 health, +0.04 reward")

    # Contact continues (trigger stay)
    rewards = env.step({"agent": IDLE})
    assert rewards["agent"] == pytest.approx(0.04)
    assert fire.health == pytest.approx(0.98)


def test_dead_centre_hit_play_mode():
    env, agent, fire = single_fire(training=False)
    place(agent, (0.0, 0.0, 2.0))

    rewards = env.step({"agent": IDLE})
    assert rewards["agent"] == 0.0, "No shaped reward outside training"
    assert fire.health == pytest.approx(0.99)
    assert agent.fires_extinguished == pytest.approx(0.01)


def test_hit_until_extinguished():
    print("\n[Test] Hit until out")
    env, agent, fire = single_fire(training=True)
    place(agent, (0.0, 0.0, 2.0))
    assert agent.nearest_fire is fire

    total = 0.0
    for _ in range(120):
        total += env.step({"agent": IDLE})["agent"]

    print(f"  total reward={total:.3f}, fires_extinguished={agent.fires_extinguished:.3f}")
    assert not fire.on_fire
    assert agent.fires_extinguished == pytest.approx(1.0)
    assert total == pytest.approx(100 * 0.04)
    assert agent.nearest_fire is None
    print("  ✓ Fire out after 100 ticks, target cleared")


def test_graze_penalty_every_tick():
    print("\n[Test] Graze")
    for training in (True, False):
        env, agent, fire = single_fire(training=training)
        # Back to the fire: hull overlaps the fire region, tool tip is far away
        place(agent, (0.0, 0.0, 2.1), yaw=180.0)

        first = env.step({"agent": IDLE})["agent"]
        second = env.step({"agent": IDLE})["agent"]
        assert first == pytest.approx(-0.05)
        assert second == pytest.approx(-0.05)
        assert fire.health == 1.0, "Grazing must not extinguish"
        assert agent.fires_extinguished == 0.0
    print("  ✓ -0.05 per tick, in training and play")


def boundary_arena(training=True):
    env = ArenaEnvironment({"training_mode": training})
    env.add_static("Floor", "floor", BoxCollider((0.0, -0.5, 0.0), (10.0, 0.5, 10.0)))
    env.add_static("Wall", "boundary", BoxCollider((0.0, 1.0, 5.25), (5.0, 1.0, 0.25)))
    env.add_static("Crate", "obstacle", BoxCollider((-3.0, 0.5, 0.0), (0.5, 0.5, 0.5)))
    env.build_field()
    agent = env.add_agent("agent")
    env.reset(seed=0)
    return env, agent


def test_boundary_penalty_once_per_entry():
    print("\n[Test] Boundary")
    env, agent = boundary_arena(training=True)
    place(agent, (0.0, 0.0, 4.6))

    rewards = [env.step({"agent": IDLE})["agent"] for _ in range(5)]
    print(f"  rewards={rewards}")
    assert rewards[0] == pytest.approx(-0.5)
    assert sum(rewards) == pytest.approx(-0.5), "Continued contact must not be penalised again"
    assert agent.pose.position[2] <= 4.5 + 1e-9, "Hull should be pushed out of the wall"

    # Leave and come back: a new entry
    place(agent, (0.0, 0.0, 0.0))
    env.step({"agent": IDLE})
    place(agent, (0.0, 0.0, 4.6))
    assert env.step({"agent": IDLE})["agent"] == pytest.approx(-0.5)
    print("  ✓ -0.5 once per new collision")


def test_boundary_penalty_training_only():
    env, agent = boundary_arena(training=False)
    place(agent, (0.0, 0.0, 4.6))
    assert env.step({"agent": IDLE})["agent"] == 0.0


def test_other_solids_are_not_penalised():
    env, agent = boundary_arena(training=True)
    place(agent, (-2.1, 0.0, 0.0))
    assert env.step({"agent": IDLE})["agent"] == 0.0
    assert agent.body.contacts, "Crate contact should be registered"


def test_frozen_agent_ignores_actions():
    print("\n[Test] Frozen")
    env, agent, fire = single_fire(training=True)
    place(agent, (0.0, 0.0, 2.0))
    agent.freeze()
    before = agent.pose.position.copy()

    rewards = env.step({"agent": [1.0, 1.0, 1.0]})
    assert rewards["agent"] == 0.0
    assert agent.step_count == 0
    assert agent.smoothed_yaw == 0.0
    assert np.allclose(agent.pose.position, before)
    assert fire.health == 1.0, "Sleeping body generates no contacts"

    agent.unfreeze()
    assert env.step({"agent": IDLE})["agent"] == pytest.approx(0.04)
    print("  ✓ No-op while frozen, contact resumes after unfreeze")


def test_observation_layout():
    print("\n[Test] Observation")
    env, agent, fire = single_fire()
    place(agent, (0.0, 0.0, 2.0))
    obs = agent.collect_observations()

    print(f"  obs={np.round(obs, 4)}")
    assert obs.shape == (10,)
    assert obs.dtype == np.float32
    assert np.allclose(obs[0:4], [0.0, 0.0, 0.0, 1.0], atol=1e-6)
    assert np.allclose(obs[4:7], [0.0, 0.0, 1.0], atol=1e-6)
    assert obs[7] == pytest.approx(1.0, abs=1e-6)
    assert obs[8] == pytest.approx(1.0, abs=1e-6)
    assert obs[9] == pytest.approx(0.15 / 25.0, abs=1e-6)
    print("  ✓ Quaternion, direction, alignments and distance in place")


def test_observation_rotation():
    env, agent, fire = single_fire()
    place(agent, (0.0, 0.0, 0.0), yaw=90.0)
    obs = agent.collect_observations()
    half = np.sqrt(0.5)
    assert np.allclose(obs[0:4], [0.0, half, 0.0, half], atol=1e-6)
    # Tool points along +x, fire faces -z
    assert obs[8] == pytest.approx(0.0, abs=1e-6)


def test_observation_zero_without_target():
    env, agent, fire = single_fire()
    fire.extinguish(1.0)
    agent.update_nearest_fire()
    obs = agent.collect_observations()
    assert obs.shape == (10,)
    assert not obs.any()


def test_yaw_smoothing():
    print("\n[Test] Yaw smoothing")
    env, agent, _ = single_fire()
    place(agent, (0.0, 0.0, -2.0))

    env.step({"agent": [0.0, 0.0, 1.0]})
    assert agent.smoothed_yaw == pytest.approx(0.04)
    assert yaw_of(agent.pose.rotation) == pytest.approx(0.04 * 0.02 * 100.0)

    for _ in range(30):
        env.step({"agent": [0.0, 0.0, 1.0]})
    assert agent.smoothed_yaw == pytest.approx(1.0)

    # Releasing the input winds down gradually
    env.step({"agent": IDLE})
    assert agent.smoothed_yaw == pytest.approx(0.96)

    # Pitch and roll stay zero
    assert np.allclose(agent.pose.up, [0.0, 1.0, 0.0])
    print("  ✓ Smoothed yaw ramps at 2 per second")


def test_movement_is_world_frame():
    env, agent, _ = single_fire()
    place(agent, (0.0, 0.0, -2.0), yaw=90.0)

    for _ in range(5):
        env.step({"agent": [1.0, 0.0, 0.0]})
    position = agent.pose.position
    assert position[0] > 0.0, "Positive a0 moves along world +x"
    assert position[1] == 0.0
    assert position[2] == pytest.approx(-2.0)


def test_none_action_repeats_last():
    env, agent, _ = single_fire()
    place(agent, (0.0, 0.0, -2.0))
    env.step({"agent": [0.0, 0.5, 0.0]})
    agent.on_action_received(None, env.fixed_dt)
    assert np.allclose(agent.last_action, [0.0, 0.5, 0.0])
    assert agent.step_count == 2


def test_action_is_clipped():
    env, agent, _ = single_fire()
    env.step({"agent": [5.0, -5.0, 0.0]})
    assert np.allclose(agent.last_action, [1.0, -1.0, 0.0])


def test_reselect_after_killing_hit():
    print("\n[Test] Re-selection")
    env = two_fire_arena()
    agent = env.add_agent("agent")
    env.reset(seed=0)
    fire0, fire1 = env.field.fires

    place(agent, (0.0, 0.0, 2.0))
    assert agent.nearest_fire is fire0
    fire0.extinguish(0.995)

    env.step({"agent": IDLE})
    assert not fire0.on_fire
    assert agent.nearest_fire is fire1
    print("  ✓ Next target chosen right after the fire went out")


def test_reselect_after_other_agent_hit():
    env = two_fire_arena()
    hitter = env.add_agent("hitter")
    watcher = env.add_agent("watcher")
    env.reset(seed=0)
    fire0, fire1 = env.field.fires

    place(hitter, (0.0, 0.0, -5.0))
    place(watcher, (0.0, 0.0, -1.0))
    assert watcher.nearest_fire is fire0

    # Put out by someone else between our own hits
    fire0.extinguish(1.0)
    env.step({"hitter": IDLE, "watcher": IDLE})
    assert watcher.nearest_fire is fire1


def test_two_agents_same_fire_same_tick():
    env = build_single_fire_arena({"training_mode": False})
    second = env.add_agent("second")
    env.reset(seed=0)
    first = env.agents["agent"]
    fire = env.field.fires[0]

    place(first, (0.0, 0.0, 2.0))
    place(second, (0.1, 0.0, 2.0))
    env.step({"agent": IDLE, "second": IDLE})

    assert fire.health == pytest.approx(0.98)
    assert first.fires_extinguished == pytest.approx(0.01)
    assert second.fires_extinguished == pytest.approx(0.01)


def test_episode_reset():
    print("\n[Test] Episode reset")
    env, agent, fire = single_fire(training=True)
    place(agent, (0.0, 0.0, 2.0))
    for _ in range(10):
        env.step({"agent": [0.0, 0.0, 1.0]})
    assert agent.fires_extinguished > 0.0

    agent.on_episode_begin(env.rng)
    assert agent.fires_extinguished == 0.0
    assert agent.smoothed_yaw == 0.0
    assert agent.step_count == 0
    assert not agent.body.velocity.any()
    assert fire.health == 1.0, "Training agents reset the field"
    assert agent.last_spawn is not None and agent.last_spawn.safe
    assert agent.nearest_fire is fire
    print("  ✓ Counters, velocity and fires reset")


def test_play_mode_agent_does_not_reset_fires():
    env, agent, fire = single_fire(training=False)
    fire.extinguish(0.5)
    agent.on_episode_begin(env.rng)
    assert fire.health == pytest.approx(0.5)

    # The environment resets the field itself in play mode
    env.reset()
    assert fire.health == 1.0


def test_max_step():
    env, agent, _ = single_fire(training=True, max_steps=10)
    place(agent, (0.0, 0.0, -2.0))
    for _ in range(9):
        env.step()
    assert not env.is_done()
    env.step()
    assert env.is_done()

    play_env, play_agent, _ = single_fire(training=False, max_steps=10)
    for _ in range(20):
        play_env.step()
    assert play_agent.max_step == 0
    assert not play_env.is_done(), "Play mode runs forever"
