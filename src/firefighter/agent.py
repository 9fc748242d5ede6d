"""
Firefighter agent: perception, action, extinguishing and reward.

Actions (3 continuous values in [-1, 1]):
    0: move along world x (+1 = right, -1 = left)
    1: move along world z (+1 = forward, -1 = backward)
    2: yaw (+1 = turn right, -1 = turn left)

Observation (10 values):
    [0:4]  agent rotation quaternion (x, y, z, w)
    [4:7]  unit vector from the tool tip to the nearest fire's centre
    [7]    dot(that vector, -fire up): +1 when the tip is right in front of the fire
    [8]    dot(tool forward, -fire up): +1 when the tool points straight at the fire
    [9]    tool-tip-to-fire distance / AREA_DIAMETER
All zeros when no fire is burning.
"""

import logging
from typing import Dict, Optional, Protocol

import numpy as np

from .config import ACTION_DIM, AREA_DIAMETER, DEFAULT_CONFIG, OBSERVATION_DIM, TAGS
from .entities import FireUnit
from .errors import FireLookupError
from .fire_field import FireField
from .geometry import Pose, move_towards, normalized, yaw_of, yaw_rotation
from .physics import Collider, PhysicsWorld, RigidBody, SphereCollider
from .rewards import RewardShaper
from .spawn import SpawnPlacer, SpawnResult
from .targeting import TargetTracker

logger = logging.getLogger(__name__)


class PolicyProvider(Protocol):
    """Decision maker feeding an agent: a trained policy or direct user input."""

    def observe(self, observation: np.ndarray) -> None: ...

    def act(self) -> np.ndarray: ...


class FirefighterAgent:
    """
    A firefighter agent moving in a FireField.

    The agent owns a rigid body registered with the physics world and receives
    its collision callbacks. Rewards accumulate until collected by the
    learning side.
    """

    def __init__(
        self,
        name: str,
        world: PhysicsWorld,
        field: FireField,
        config: Optional[Dict] = None,
        policy: Optional[PolicyProvider] = None,
        spawner: Optional[SpawnPlacer] = None,
    ):
        """
        Args:
            name: Agent name ("player", "opponent", ...)
            world: Physics world the body is added to
            field: Fires this agent works on
            config: Configuration overrides (see DEFAULT_CONFIG)
            policy: Decision provider queried on decision requests
            spawner: Spawn placer (built from config if omitted)
        """
        cfg = {**DEFAULT_CONFIG, **(config or {})}
        self.name = name
        self.world = world
        self.field = field
        self.policy = policy
        self.training_mode: bool = bool(cfg["training_mode"])
        self.spawn_in_front_of_fire: bool = bool(cfg["spawn_in_front_of_fire"])

        self.move_force = float(cfg["move_force"])
        self.yaw_speed = float(cfg["yaw_speed"])
        self.yaw_smoothing_rate = float(cfg["yaw_smoothing_rate"])
        self.tool_tip_radius = float(cfg["tool_tip_radius"])
        self.extinguish_rate = float(cfg["extinguish_rate"])

        # If not in training mode, no max step, play forever
        self.max_step: int = int(cfg["max_steps"]) if self.training_mode else 0

        self.rewards = RewardShaper.from_config(cfg)
        self.spawner = spawner or SpawnPlacer.from_config(world, field, cfg)
        self.tracker = TargetTracker(field)

        self.body = RigidBody(
            Pose(field.center),
            hull_radius=cfg["body_radius"],
            hull_center=(0.0, cfg["body_height"], 0.0),
            mass=cfg["body_mass"],
            drag=cfg["body_drag"],
            tag=TAGS["agent"],
            name=name,
        )
        self.tool = self.body.add_collider(
            SphereCollider((0.0, 0.0, 0.0), cfg["tool_radius"], tag=TAGS["agent"], name=f"{name}/tool"),
            cfg["tool_tip_offset"],
        )
        world.add_body(self.body, listener=self)

        # Episode state
        self.frozen = False
        self.smoothed_yaw = 0.0
        self.fires_extinguished = 0.0
        self.cumulative_reward = 0.0
        self.step_count = 0
        self.last_action = np.zeros(ACTION_DIM, dtype=np.float32)
        self.last_spawn: Optional[SpawnResult] = None
        self._pending_reward = 0.0

    # pose helpers

    @property
    def pose(self) -> Pose:
        return self.body.pose

    @property
    def forward(self) -> np.ndarray:
        return self.body.pose.forward

    @property
    def right(self) -> np.ndarray:
        return self.body.pose.right

    @property
    def tool_tip_position(self) -> np.ndarray:
        return self.tool.center

    @property
    def nearest_fire(self) -> Optional[FireUnit]:
        return self.tracker.target

    # episode control

    def on_episode_begin(self, rng: np.random.Generator, in_front_of_fire: Optional[bool] = None) -> None:
        """
        Reset the agent when an episode begins.

        Args:
            rng: Random generator for spawn placement
            in_front_of_fire: Override the configured spawn mode
        """
        if self.training_mode:
            # Only reset fires in training, where there is one agent per field
            self.field.reset_all()

        self.fires_extinguished = 0.0
        self.cumulative_reward = 0.0
        self._pending_reward = 0.0
        self.step_count = 0
        self.smoothed_yaw = 0.0
        self.last_action = np.zeros(ACTION_DIM, dtype=np.float32)

        # Stop movement before the new episode
        self.body.velocity = np.zeros(3)
        self.body.angular_velocity = np.zeros(3)

        if in_front_of_fire is None:
            in_front_of_fire = self.spawn_in_front_of_fire
        self.last_spawn = self.spawner.place(rng, in_front_of_fire, ignore=self.body.colliders)
        self.body.teleport(self.last_spawn.position, self.last_spawn.rotation)

        self.update_nearest_fire()

    def freeze(self) -> None:
        """Stop the agent from moving and taking actions."""
        self.frozen = True
        self.body.sleep()

    def unfreeze(self) -> None:
        """Resume movement and actions."""
        self.frozen = False
        self.body.wake_up()

    # rewards

    def add_reward(self, reward: float) -> None:
        self._pending_reward += reward
        self.cumulative_reward += reward

    def collect_reward(self) -> float:
        """Reward accumulated since the previous call."""
        reward, self._pending_reward = self._pending_reward, 0.0
        return reward

    # perception

    def collect_observations(self) -> np.ndarray:
        fire = self.nearest_fire
        if fire is None:
            # Keep the vector size fixed
            return np.zeros(OBSERVATION_DIM, dtype=np.float32)

        tip = self.tool_tip_position
        to_fire = fire.center_position - tip
        direction = normalized(to_fire)
        fire_down = -normalized(fire.up_vector)

        obs = np.concatenate([
            self.body.pose.quaternion(),
            direction,
            [np.dot(direction, fire_down)],
            [np.dot(normalized(self.forward), fire_down)],
            [np.linalg.norm(to_fire) / AREA_DIAMETER],
        ])
        return obs.astype(np.float32)

    def request_decision(self) -> np.ndarray:
        """Send an observation to the policy and store its action for the following steps."""
        observation = self.collect_observations()
        if self.policy is not None:
            self.policy.observe(observation)
            self.last_action = np.clip(np.asarray(self.policy.act(), dtype=np.float32), -1.0, 1.0)
        return observation

    # action

    def on_action_received(self, action: Optional[np.ndarray], fixed_dt: float) -> None:
        """
        Apply one fixed step of an action.

        Args:
            action: 3 values in [-1, 1]; None repeats the last action
            fixed_dt: Fixed timestep in seconds
        """
        if self.frozen:
            return

        if action is not None:
            action = np.clip(np.asarray(action, dtype=np.float32).reshape(ACTION_DIM), -1.0, 1.0)
            self.last_action = action
        action = self.last_action
        self.step_count += 1

        move = np.array([action[0], 0.0, action[1]], dtype=np.float64)
        self.body.add_force(move * self.move_force)

        self.smoothed_yaw = move_towards(
            self.smoothed_yaw, float(action[2]), self.yaw_smoothing_rate * fixed_dt
        )
        yaw = yaw_of(self.body.pose.rotation) + self.smoothed_yaw * fixed_dt * self.yaw_speed
        self.body.pose.rotation = yaw_rotation(yaw)

    def fixed_update(self) -> None:
        """Per-step bookkeeping after physics."""
        # Our fire may have been put out by another agent
        self.tracker.refresh_if_stale(self.tool_tip_position)

    def update_nearest_fire(self) -> Optional[FireUnit]:
        return self.tracker.update(self.tool_tip_position)

    @property
    def max_step_reached(self) -> bool:
        return self.max_step > 0 and self.step_count >= self.max_step

    # collision callbacks

    def on_trigger_enter(self, other: Collider) -> None:
        self._trigger_enter_or_stay(other)

    def on_trigger_stay(self, other: Collider) -> None:
        self._trigger_enter_or_stay(other)

    def on_collision_enter(self, other: Collider) -> None:
        if self.training_mode and other.tag == TAGS["boundary"]:
            self.add_reward(self.rewards.boundary_penalty())

    def _trigger_enter_or_stay(self, collider: Collider) -> None:
        if collider.tag != TAGS["fire_collider"]:
            return

        tip = self.tool_tip_position
        closest = collider.closest_point(tip)

        # Only contact near the tool tip counts
        if np.linalg.norm(tip - closest) >= self.tool_tip_radius:
            self.add_reward(self.rewards.graze_penalty())
            return

        try:
            fire = self.field.lookup(collider.collider_id)
        except FireLookupError:
            logger.warning("Agent %s touched an unregistered fire collider %r", self.name, collider)
            return

        # Happens every fixed step of contact (50 times per second)
        put_off = fire.extinguish(self.extinguish_rate)
        self.fires_extinguished += put_off

        if self.training_mode:
            self.add_reward(self.rewards.hit_reward(self.forward, fire.up_vector))

        if not fire.on_fire:
            self.update_nearest_fire()
