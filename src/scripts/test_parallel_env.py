"""
PettingZoo parallel environment test.

Checks spaces, the reset/step contract, truncation at max steps and
termination at the winning fire count.
"""

import sys, os
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

import numpy as np
import pytest

from firefighter.config import MatchConfig
from firefighter.layouts import build_single_fire_arena
from firefighter.geometry import yaw_rotation
from firefighter_rl.parallel_env import FirefighterParallelEnv, parallel_env

SMALL = {"max_steps": 20, "num_obstacles": 0, "num_fires": 4}


def test_spaces_and_reset():
    print("\n" + "=" * 70)
    print("PARALLEL ENV: RESET")
    print("=" * 70)

    env = FirefighterParallelEnv(SMALL)
    observations, infos = env.reset(seed=42)

    assert env.possible_agents == ["player", "opponent"]
    assert env.agents == ["player", "opponent"]
    for agent_id in env.agents:
        obs_space = env.observation_space(agent_id)
        act_space = env.action_space(agent_id)
        assert obs_space.shape == (10,)
        assert act_space.shape == (3,)
        assert np.all(act_space.low == -1.0) and np.all(act_space.high == 1.0)
        assert observations[agent_id].shape == (10,)
        assert obs_space.contains(observations[agent_id])
        assert infos[agent_id]["fires_extinguished"] == 0.0
    print(f"  Observation (player): {np.round(observations['player'], 3)}")
    print("  ✓ Spaces and initial observations are consistent")


def test_reset_is_seeded():
    first = FirefighterParallelEnv(SMALL)
    second = FirefighterParallelEnv(SMALL)
    obs_a, _ = first.reset(seed=7)
    obs_b, _ = second.reset(seed=7)
    for agent_id in first.possible_agents:
        assert np.allclose(obs_a[agent_id], obs_b[agent_id])


def test_truncation_at_max_steps():
    print("\n[Test] Truncation")
    env = parallel_env(config=SMALL)
    env.reset(seed=0)

    steps = 0
    while env.agents:
        actions = {a: env.action_space(a).sample() for a in env.agents}
        observations, rewards, terminations, truncations, infos = env.step(actions)
        steps += 1
        assert set(rewards) == {"player", "opponent"}
        assert all(isinstance(r, float) for r in rewards.values())
        assert steps <= 4, "max_steps 20 / decision_period 5 = 4 decisions"

    assert steps == 4
    assert all(truncations.values())
    assert not any(terminations.values())
    assert env.arena.time_step == 20
    print(f"  ✓ Truncated after {steps} decisions")


def test_termination_at_winning_fires():
    print("\n[Test] Termination")
    arena = build_single_fire_arena({"training_mode": True})
    env = FirefighterParallelEnv(arena=arena, match=MatchConfig(winning_fires=0.045))
    env.reset(seed=0)

    agent = arena.agents["agent"]
    agent.body.teleport((0.0, 0.0, 2.0), yaw_rotation(0.0))
    agent.update_nearest_fire()

    idle = {"agent": np.zeros(3, dtype=np.float32)}
    _, rewards, terminations, truncations, infos = env.step(idle)

    assert rewards["agent"] == pytest.approx(5 * 0.04)
    assert terminations["agent"]
    assert not truncations["agent"]
    assert infos["agent"]["fires_extinguished"] == pytest.approx(0.05)
    assert env.agents == []
    print("  ✓ Terminated once the winning amount was reached")


def test_play_mode_game_timer():
    arena_config = {**SMALL, "training_mode": False}
    env = FirefighterParallelEnv(arena_config, match=MatchConfig(game_timer=0.15))
    env.reset(seed=0)

    zeros = {a: np.zeros(3, dtype=np.float32) for a in env.agents}
    _, _, _, truncations, _ = env.step(zeros)
    assert not any(truncations.values())
    _, _, _, truncations, _ = env.step(zeros)
    assert all(truncations.values())
