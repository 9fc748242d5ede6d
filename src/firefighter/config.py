import json
from dataclasses import dataclass, asdict
from typing import Any, Dict, Optional

from yaml import safe_load

# Collider tags used by the arena, the agents and the spawn check
TAGS = {
    "floor": "floor",               # walkable surface, never blocks a spawn
    "boundary": "boundary",         # arena walls, penalised on contact in training
    "fire": "fire",                 # scene node carrying a FireUnit
    "fire_collider": "fire_collider",   # interactive (trigger) region of a fire
    "solid_fire": "solid_fire",     # physical region of a fire
    "obstacle": "obstacle",         # crates, pillars, anything else solid
    "agent": "agent",               # agent hull and tool
}

# Observation: [4 quaternion] + [3 direction] + [approach dot, aim dot, distance] = 10D
OBSERVATION_DIM = 10

# Action: [lateral move, forward move, yaw delta]
ACTION_DIM = 3

# Diameter of the area where agents and fires can be, used to normalise distance
AREA_DIAMETER = 25.0


# Default configuration values
DEFAULT_CONFIG = {

    # STEPPING

    "fixed_dt": 0.02,                # Fixed physics timestep (50 steps per second)
    "decision_period": 5,            # Fixed steps between decision requests (action repeats in between)
    "max_steps": 5000,               # Fixed steps per training episode (0 = play forever)
    "training_mode": True,           # Training: agent resets fires itself and receives shaped rewards

    # AGENT BODY AND MOTION

    "move_force": 2000.0,            # Force applied per unit of move input
    "yaw_speed": 100.0,              # Degrees per second at full smoothed yaw input
    "yaw_smoothing_rate": 2.0,       # Max change of smoothed yaw input per second
    "body_mass": 100.0,              # Rigid body mass
    "body_drag": 10.0,               # Linear drag (1/s), caps top speed at force / (mass * drag)
    "body_radius": 0.5,              # Hull sphere radius
    "body_height": 0.5,              # Hull centre above the body origin
    "tool_tip_offset": (0.0, 0.5, 0.7),  # Tool tip in agent-local coordinates
    "tool_radius": 0.1,              # Collision radius around the tool tip

    # EXTINGUISHING AND REWARDS

    "tool_tip_radius": 0.35,         # Closest point on a fire must be this close to the tool tip
    "extinguish_rate": 0.01,         # Health removed per fixed step of valid contact (0.5 per second)
    "reward_hit_base": 0.02,         # Reward per valid extinguishing step
    "reward_hit_alignment": 0.02,    # Extra reward scaled by clamp01(dot(forward, -fire_up))
    "reward_graze": -0.05,           # Per-step penalty for touching a fire away from the tool tip
    "reward_boundary": -0.5,         # Penalty per new collision with the arena boundary

    # SPAWNING

    "spawn_attempts": 100,           # Bounded retries before giving up
    "spawn_check_radius": 0.35,      # Overlap check around a candidate position
    "spawn_max_radius": 5.0,         # Random spawn radius around the area centre
    "spawn_front_min": 0.8,          # Distance in front of a fire (in-front-of-fire mode)
    "spawn_front_max": 1.3,
    "spawn_in_front_of_fire": False, # Spawn facing a random live fire instead of at random

    # ARENA LAYOUT

    "arena_half_size": 10.0,         # Walls sit at +/- this distance from the centre
    "wall_height": 2.0,
    "wall_thickness": 0.5,
    "num_fires": 8,                  # Fires on a ring of pillars around the centre
    "fire_ring_radius": 8.0,
    "fire_height": 0.5,              # Height of the fire face above the floor
    "num_obstacles": 4,              # Crates scattered between spawn area and fires
    "obstacle_ring_radius": 3.5,
}


@dataclass
class MatchConfig:
    """
    Settings of a player-vs-opponent match.

    Structured config for the game controller, serialisable for reproducible runs.
    """

    winning_fires: float = 10.0          # Game ends when an agent extinguishes this much fire
    game_timer: float = 70.0             # Game ends after this many seconds of play
    countdown: tuple = ("3", "2", "1", "Go!")  # Banners shown before play starts
    countdown_interval: float = 1.0      # Seconds each countdown banner is shown

    def to_dict(self) -> dict:
        """Convert config to dictionary."""
        return asdict(self)

    def save(self, path: str):
        """Save config to JSON file."""
        with open(path, 'w') as f:
            json.dump(self.to_dict(), f, indent=2)

    @classmethod
    def load(cls, path: str) -> 'MatchConfig':
        """Load config from JSON file."""
        with open(path, 'r') as f:
            config_dict = json.load(f)
        if "countdown" in config_dict:
            config_dict["countdown"] = tuple(config_dict["countdown"])
        return cls(**config_dict)


def load_config(path: Optional[str] = None, **overrides: Any) -> Dict[str, Any]:
    """
    Build an arena configuration from the defaults, a YAML file and keyword overrides.

    Args:
        path: Optional YAML file with a flat mapping of config keys
        **overrides: Highest-priority overrides

    Returns:
        Complete configuration dictionary
    """
    file_config: Dict[str, Any] = {}
    if path is not None:
        with open(path, 'r') as f:
            file_config = safe_load(f) or {}
        if not isinstance(file_config, dict):
            raise ValueError(f"Config file {path} must contain a mapping, got {type(file_config).__name__}")

    merged = {**file_config, **overrides}
    unknown = sorted(set(merged) - set(DEFAULT_CONFIG))
    if unknown:
        raise ValueError(f"Unknown config keys: {unknown}. Must be among {sorted(DEFAULT_CONFIG)}")

    config = {**DEFAULT_CONFIG, **merged}
    config["tool_tip_offset"] = tuple(config["tool_tip_offset"])
    return config
