"""
Decision providers for firefighter agents.

Every provider follows the PolicyProvider protocol: ``observe`` receives the
10-value observation of a decision step, ``act`` returns the 3-value action.
"""

from typing import Iterable, Optional

import numpy as np
import torch
import torch.nn as nn

from firefighter.agent import FirefighterAgent
from firefighter.config import ACTION_DIM, OBSERVATION_DIM
from firefighter.geometry import normalized


class KeyboardPolicy:
    '''
    Direct user input mapped to actions.

    W/S move along the agent's facing, D/A strafe, the arrow keys turn.
    The combined move direction is normalised and expressed in world x/z.
    '''
    def __init__(self, agent: FirefighterAgent) -> None:
        self.agent = agent
        self.pressed: set = set()

    def press(self, *keys: str) -> None:
        self.pressed.update(k.lower() for k in keys)

    def release(self, *keys: str) -> None:
        self.pressed.difference_update(k.lower() for k in keys)

    def set_keys(self, keys: Iterable[str]) -> None:
        self.pressed = {k.lower() for k in keys}

    def observe(self, observation: np.ndarray) -> None:
        # Input does not depend on the observation
        pass

    def act(self) -> np.ndarray:
        forward = np.zeros(3)
        right = np.zeros(3)
        yaw = 0.0

        # Forward and backward
        if "w" in self.pressed:
            forward = self.agent.forward
        elif "s" in self.pressed:
            forward = -self.agent.forward

        # Right and left
        if "d" in self.pressed:
            right = self.agent.right
        elif "a" in self.pressed:
            right = -self.agent.right

        # Turn left and right
        if "left" in self.pressed:
            yaw = -1.0
        elif "right" in self.pressed:
            yaw = 1.0

        combined = normalized(forward + right)
        return np.array([combined[0], combined[2], yaw], dtype=np.float32)


class RandomPolicy:
    '''
    Uniform random actions in [-1, 1], reproducible through its own generator.
    '''
    def __init__(self, seed: Optional[int] = None) -> None:
        self.rng = np.random.default_rng(seed)

    def observe(self, observation: np.ndarray) -> None:
        pass

    def act(self) -> np.ndarray:
        return self.rng.uniform(-1.0, 1.0, size=ACTION_DIM).astype(np.float32)


class ActorNetwork(nn.Module):
    '''
    Actor network; maps an observation to a bounded continuous action
    '''
    def __init__(
        self,
        obs_dim: int = OBSERVATION_DIM,
        act_dim: int = ACTION_DIM,
        hidden: int = 64,
    ) -> None:
        super().__init__()
        self.dense: nn.Sequential = nn.Sequential(
            nn.Linear(obs_dim, hidden),
            nn.Tanh(),
            nn.Linear(hidden, hidden),
            nn.Tanh(),
            nn.Linear(hidden, act_dim),
        )

    def forward(
        self,
        obs: torch.Tensor,
    ) -> torch.Tensor:
        '''
        Compute actions of the policy based on observations

        Args:
            obs (Tensor[B, 10]): Observations from the environment

        Returns:
            action (Tensor[B, 3]): Actions in [-1, 1]
        '''
        return torch.tanh(self.dense(obs))


class TorchPolicy:
    '''
    Inference wrapper around an ActorNetwork (no training happens here)
    '''
    def __init__(
        self,
        model: Optional[ActorNetwork] = None,
        device: str = "cpu",
    ) -> None:
        self.device = torch.device(device)
        self.model: ActorNetwork = (model or ActorNetwork()).to(self.device)
        self.model.eval()
        self._obs: Optional[torch.Tensor] = None

    @classmethod
    def load(cls, path: str, device: str = "cpu", **network_kwargs) -> 'TorchPolicy':
        '''
        Load actor weights saved with ``save``

        Args:
            path (str): Checkpoint file holding a state dict
            device (str): Torch device for inference
        '''
        model = ActorNetwork(**network_kwargs)
        state = torch.load(path, map_location=device)
        model.load_state_dict(state)
        return cls(model, device=device)

    def save(self, path: str) -> None:
        torch.save(self.model.state_dict(), path)

    def observe(self, observation: np.ndarray) -> None:
        self._obs = torch.as_tensor(observation, dtype=torch.float32, device=self.device)

    def act(self) -> np.ndarray:
        if self._obs is None:
            return np.zeros(ACTION_DIM, dtype=np.float32)
        with torch.no_grad():
            action: torch.Tensor = self.model(self._obs.unsqueeze(0)).squeeze(0)
        return action.cpu().numpy().astype(np.float32)
