"""
Reward shaping for firefighter agents.

Reward components:
1. Hit reward: +base for every fixed step the tool tip extinguishes a fire,
   plus a bonus for facing straight into the fire's face
2. Graze penalty: -penalty for every step a fire is touched away from the tool tip
3. Boundary penalty: -penalty once per new collision with the arena boundary
"""

from typing import Dict, Optional

import numpy as np

from .config import DEFAULT_CONFIG
from .geometry import clamp01, normalized


class RewardShaper:
    """Computes the shaped rewards an agent adds during training."""

    def __init__(
        self,
        hit_base: float = 0.02,
        hit_alignment: float = 0.02,
        graze: float = -0.05,
        boundary: float = -0.5,
    ):
        """
        Args:
            hit_base: Reward per valid extinguishing step
            hit_alignment: Maximum extra reward for perfect alignment
            graze: Penalty per step of touching a fire with the body
            boundary: Penalty per new boundary collision
        """
        self.w_hit_base = hit_base
        self.w_hit_alignment = hit_alignment
        self.w_graze = graze
        self.w_boundary = boundary

    @classmethod
    def from_config(cls, config: Optional[Dict] = None) -> "RewardShaper":
        cfg = {**DEFAULT_CONFIG, **(config or {})}
        return cls(
            hit_base=cfg["reward_hit_base"],
            hit_alignment=cfg["reward_hit_alignment"],
            graze=cfg["reward_graze"],
            boundary=cfg["reward_boundary"],
        )

    def hit_reward(self, agent_forward: np.ndarray, fire_up: np.ndarray) -> float:
        """Base reward plus a bonus in [0, hit_alignment] for facing into the fire."""
        alignment = float(np.dot(normalized(agent_forward), -normalized(fire_up)))
        return self.w_hit_base + self.w_hit_alignment * clamp01(alignment)

    def graze_penalty(self) -> float:
        return self.w_graze

    def boundary_penalty(self) -> float:
        return self.w_boundary
