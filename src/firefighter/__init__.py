"""
Firefighter Arena Package
=========================

A two-agent competitive reinforcement learning game. Firefighter agents move
around an arena, aim their tool at fires and put them out over time. This
package models:

1. Fires with health and interactive/solid colliders
2. The fire field of an arena, discovered from a scene hierarchy
3. Agents with observations, continuous actions and shaped rewards
4. Safe spawn placement and nearest-fire tracking
5. A headless game controller for player-vs-opponent matches

Usage:
    from firefighter import build_standard_arena

    env = build_standard_arena()
    obs = env.reset(seed=42)

    while not env.is_done():
        rewards = env.step({"player": [0.0, 1.0, 0.0], "opponent": [0.0, 1.0, 0.0]})
"""

# Main environment class
from .env import ArenaEnvironment

# Pre-built layouts
from .layouts import build_standard_arena, build_single_fire_arena

# Core components
from .agent import FirefighterAgent, PolicyProvider
from .entities import FireState, FireUnit, SceneNode
from .fire_field import FireField
from .spawn import SpawnPlacer, SpawnResult
from .targeting import TargetTracker, select_nearest
from .rewards import RewardShaper
from .game import GameManager, GameState, GameView

# Configuration constants
from .config import (
    ACTION_DIM,
    AREA_DIAMETER,
    DEFAULT_CONFIG,
    OBSERVATION_DIM,
    MatchConfig,
    load_config,
)
from .errors import FirefighterError, FireLookupError, FireStateError, SceneError

# Version info
__version__ = "1.0.0"

# Public API
__all__ = [
    "ArenaEnvironment",
    "build_standard_arena",
    "build_single_fire_arena",
    "FirefighterAgent",
    "PolicyProvider",
    "FireState",
    "FireUnit",
    "SceneNode",
    "FireField",
    "SpawnPlacer",
    "SpawnResult",
    "TargetTracker",
    "select_nearest",
    "RewardShaper",
    "GameManager",
    "GameState",
    "GameView",
    "ACTION_DIM",
    "AREA_DIAMETER",
    "DEFAULT_CONFIG",
    "OBSERVATION_DIM",
    "MatchConfig",
    "load_config",
    "FirefighterError",
    "FireLookupError",
    "FireStateError",
    "SceneError",
]
