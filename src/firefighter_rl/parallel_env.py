"""
PettingZoo parallel environment around the firefighter arena.

Both agents act simultaneously; one ``step`` covers one decision period of
fixed physics steps with each agent's action held constant.
"""

from typing import Dict, Iterable, Optional

import numpy as np
from gymnasium.spaces import Box
from pettingzoo.utils.env import ParallelEnv

from firefighter.config import ACTION_DIM, OBSERVATION_DIM, MatchConfig
from firefighter.env import ArenaEnvironment
from firefighter.layouts import build_standard_arena


class FirefighterParallelEnv(ParallelEnv):
    """Two-agent competitive firefighting with continuous actions."""

    metadata = {"name": "firefighter_arena_v0", "render_modes": []}

    def __init__(
        self,
        config: Optional[Dict] = None,
        match: Optional[MatchConfig] = None,
        agent_names: Iterable[str] = ("player", "opponent"),
        arena: Optional[ArenaEnvironment] = None,
    ):
        """
        Args:
            config: Arena configuration overrides
            match: Termination thresholds (winning fires, game timer)
            agent_names: Agent names (ignored when ``arena`` is given)
            arena: Pre-built arena to wrap instead of the standard one
        """
        super().__init__()
        self.arena = arena or build_standard_arena(config, agent_names=agent_names)
        self.match = match or MatchConfig()
        self.possible_agents = list(self.arena.agents)
        self.agents = []
        self.render_mode = None

        self._observation_spaces = {
            agent_id: Box(low=-np.inf, high=np.inf, shape=(OBSERVATION_DIM,), dtype=np.float32)
            for agent_id in self.possible_agents
        }
        self._action_spaces = {
            agent_id: Box(low=-1.0, high=1.0, shape=(ACTION_DIM,), dtype=np.float32)
            for agent_id in self.possible_agents
        }

    def observation_space(self, agent):
        return self._observation_spaces[agent]

    def action_space(self, agent):
        return self._action_spaces[agent]

    def reset(self, seed: Optional[int] = None, options: Optional[Dict] = None):
        observations = self.arena.reset(seed=seed)
        self.agents = list(self.possible_agents)
        infos = {agent_id: self._info(agent_id) for agent_id in self.agents}
        return observations, infos

    def step(self, actions: Dict[str, np.ndarray]):
        rewards = self.arena.run_decision(actions)
        observations = self.arena.get_observations()

        winning = self.match.winning_fires
        someone_won = any(
            self.arena.agents[a].fires_extinguished >= winning for a in self.possible_agents
        )
        out_of_time = (
            not self.arena.training_mode
            and self.arena.time_step * self.arena.fixed_dt >= self.match.game_timer
        )
        truncated = self.arena.is_done() or out_of_time

        terminations = {agent_id: someone_won for agent_id in self.agents}
        truncations = {agent_id: truncated and not someone_won for agent_id in self.agents}
        infos = {agent_id: self._info(agent_id) for agent_id in self.agents}
        rewards = {agent_id: rewards[agent_id] for agent_id in self.agents}
        observations = {agent_id: observations[agent_id] for agent_id in self.agents}

        if someone_won or truncated:
            self.agents = []
        return observations, rewards, terminations, truncations, infos

    def _info(self, agent_id: str) -> Dict:
        agent = self.arena.agents[agent_id]
        nearest = agent.nearest_fire
        return {
            "fires_extinguished": agent.fires_extinguished,
            "nearest_fire": nearest.name if nearest is not None else None,
            "time_step": self.arena.time_step,
        }

    def close(self):
        pass


def parallel_env(**kwargs):
    """Create the parallel firefighter environment."""
    return FirefighterParallelEnv(**kwargs)


def env(**kwargs):
    """Alias for parallel_env for PettingZoo compatibility."""
    return parallel_env(**kwargs)
