"""
Run evaluation episodes between two policies and log the results.

Examples:
    python src/scripts/run_match.py --episodes 5
    python src/scripts/run_match.py --player torch --checkpoint actor.pt --play_mode
"""

import sys, os
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

import logging
from typing import Dict, Optional

import numpy as np

from firefighter.agent import FirefighterAgent
from firefighter.config import MatchConfig, load_config
from firefighter_rl.logging_utils import ExperimentLogger
from firefighter_rl.parallel_env import FirefighterParallelEnv
from firefighter_rl.policies import RandomPolicy, TorchPolicy


def make_policy(kind: str, seed: int, checkpoint: Optional[str]):
    """Build a decision provider by name."""
    if kind == 'random':
        return RandomPolicy(seed)
    if kind == 'torch':
        if checkpoint is None:
            raise ValueError("--checkpoint is required for torch policies")
        return TorchPolicy.load(checkpoint)
    if kind == 'idle':
        return None
    raise ValueError(f"Unknown policy kind: {kind}")


def decide(agent: FirefighterAgent, observation: np.ndarray) -> np.ndarray:
    """Ask the agent's policy for an action (idle when it has none)."""
    if agent.policy is None:
        return np.zeros(3, dtype=np.float32)
    agent.policy.observe(observation)
    return np.clip(np.asarray(agent.policy.act(), dtype=np.float32), -1.0, 1.0)


def run_episode(env: FirefighterParallelEnv, seed: int) -> Dict:
    observations, _ = env.reset(seed=seed)
    returns = {name: 0.0 for name in env.possible_agents}
    terminations = {}

    while env.agents:
        actions = {
            name: decide(env.arena.agents[name], observations[name])
            for name in env.agents
        }
        observations, rewards, terminations, truncations, _ = env.step(actions)
        for name, reward in rewards.items():
            returns[name] += reward

    winner = None
    if any(terminations.values()):
        winner = max(env.possible_agents, key=lambda n: env.arena.agents[n].fires_extinguished)
    return {"returns": returns, "winner": winner, "statistics": env.arena.get_statistics()}


def run_match(args):
    config = load_config(args.config, training_mode=not args.play_mode)
    match = MatchConfig.load(args.match) if args.match else MatchConfig()
    env = FirefighterParallelEnv(config, match=match)

    env.arena.agents["player"].policy = make_policy(args.player, args.seed, args.checkpoint)
    env.arena.agents["opponent"].policy = make_policy(args.opponent, args.seed + 1, args.checkpoint)

    logger = ExperimentLogger(args.log_dir, f"{args.player}_vs_{args.opponent}", use_tensorboard=args.tensorboard)

    print(f"\n{'='*60}")
    print(f"🔥 {args.player} vs {args.opponent}, {args.episodes} episodes "
          f"({'play' if args.play_mode else 'training'} mode)")
    print(f"{'='*60}")

    wins = {name: 0 for name in env.possible_agents}
    for episode in range(args.episodes):
        result = run_episode(env, seed=args.seed + episode)
        stats = result["statistics"]
        logger.log_episode(episode, stats, result["returns"], result["winner"])
        if result["winner"]:
            wins[result["winner"]] += 1

        print(f"Episode {episode + 1}/{args.episodes}: "
              f"t={stats['elapsed_seconds']:.1f}s "
              + " ".join(
                  f"{name}: return={result['returns'][name]:.2f} fires={agent['fires_extinguished']:.2f}"
                  for name, agent in stats['agents'].items()
              )
              + f" winner={result['winner']}")

    logger.close()

    print(f"\n{'='*60}")
    print(f"📊 Wins: {wins}")
    print(f"{'='*60}\n")
    return wins


if __name__ == "__main__":
    import argparse

    parser = argparse.ArgumentParser(description="Run firefighter matches between two policies")
    parser.add_argument(
        '--player',
        type=str,
        choices=['random', 'torch', 'idle'],
        default='random',
        help="Policy driving the player agent"
    )
    parser.add_argument(
        '--opponent',
        type=str,
        choices=['random', 'torch', 'idle'],
        default='random',
        help="Policy driving the opponent agent"
    )
    parser.add_argument(
        '--checkpoint',
        type=str,
        default=None,
        help="Actor state dict for torch policies"
    )
    parser.add_argument(
        '--episodes',
        type=int,
        default=3,
        help="Number of episodes to run"
    )
    parser.add_argument(
        '--seed',
        type=int,
        default=0,
        help="Base seed; episode i uses seed + i"
    )
    parser.add_argument(
        '--config',
        type=str,
        default=None,
        help="YAML file with arena config overrides"
    )
    parser.add_argument(
        '--match',
        type=str,
        default=None,
        help="JSON file with match settings (winning fires, game timer)"
    )
    parser.add_argument(
        '--play_mode',
        action='store_true',
        help="Run in play mode: no shaped rewards, game timer instead of max steps"
    )
    parser.add_argument(
        '--log_dir',
        type=str,
        default='logs',
        help="Base directory for experiment logs"
    )
    parser.add_argument(
        '--tensorboard',
        action='store_true',
        help="Also write TensorBoard summaries"
    )

    args = parser.parse_args()
    logging.basicConfig(level=logging.WARNING)
    run_match(args)
