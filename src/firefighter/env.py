from typing import Dict, List, Optional

import numpy as np

from .agent import FirefighterAgent, PolicyProvider
from .config import DEFAULT_CONFIG, TAGS
from .entities import FireUnit, SceneNode
from .fire_field import FireField
from .geometry import Pose, yaw_rotation
from .physics import BoxCollider, Collider, PhysicsWorld
from .scene import Scene


# main environment class

class ArenaEnvironment:
    """
    Main simulation environment for the firefighter arena.

    This class manages:
    - Arena composition (scene hierarchy of floor, walls, obstacles and fires)
    - The physics world stepping at a fixed timestep
    - The fire field shared by all agents
    - Firefighter agents, their decisions and rewards

    Time advances in fixed steps of ``config["fixed_dt"]`` seconds. Agents ask
    their policies for a new action every ``config["decision_period"]`` steps
    and repeat it in between.
    """

    def __init__(self, config: Optional[Dict] = None):
        """
        Initialize the environment.

        Args:
            config: Optional configuration dictionary (uses defaults if not provided)
        """
        self.config = {**DEFAULT_CONFIG, **(config or {})}
        if self.config["decision_period"] < 1:
            raise ValueError(f"decision_period must be at least 1, got {self.config['decision_period']}")
        if self.config["fixed_dt"] <= 0:
            raise ValueError(f"fixed_dt must be positive, got {self.config['fixed_dt']}")

        self.world = PhysicsWorld()
        self.scene = Scene()
        self.field = FireField()
        self.agents: Dict[str, FirefighterAgent] = {}

        self.time_step = 0
        self._rng = np.random.default_rng()

    @property
    def fixed_dt(self) -> float:
        return float(self.config["fixed_dt"])

    @property
    def training_mode(self) -> bool:
        return bool(self.config["training_mode"])

    # construct arena

    def add_group(self, name: str, parent: str = Scene.ROOT, position=(0.0, 0.0, 0.0)) -> SceneNode:
        """Add an untagged grouping node."""
        return self.scene.add_node(name, parent=parent, pose=Pose(position))

    def add_static(self, name: str, tag: str, collider: Collider, parent: str = Scene.ROOT) -> SceneNode:
        """Add a static collider (floor, wall, obstacle) to the scene and the physics world."""
        collider.tag = tag
        collider.name = name
        self.world.add_collider(collider)
        return self.scene.add_node(
            name, tag=tag, parent=parent,
            pose=Pose(collider.center, collider.rotation), collider=collider,
        )

    def add_fire(
        self,
        name: str,
        position,
        facing_deg: float,
        parent: str = Scene.ROOT,
        region_depth: float = 0.3,
        region_size: float = 0.4,
    ) -> FireUnit:
        """
        Place a fire whose face points along ``facing_deg`` (heading in degrees).

        The solid region sits on the placement; the interactive region extends
        in front of the face so the tool tip can reach it.
        """
        placement = Pose(position, yaw_rotation(facing_deg))
        interactive = BoxCollider(
            placement.transform_point((0.0, 0.0, region_depth / 2)),
            (region_size, region_size, region_depth),
            rotation=placement.rotation,
            tag=TAGS["fire_collider"], is_trigger=True, name=f"{name}/fire_collider",
        )
        solid = BoxCollider(
            placement.position,
            (region_size * 0.75, region_size * 0.75, region_depth / 2),
            rotation=placement.rotation,
            tag=TAGS["solid_fire"], name=f"{name}/solid_fire_collider",
        )
        self.world.add_collider(interactive)
        self.world.add_collider(solid)

        fire = FireUnit(name=name, interactive_region=interactive, solid_region=solid, placement=placement)
        self.scene.add_node(name, tag=TAGS["fire"], parent=parent, pose=placement, fire=fire)
        return fire

    def build_field(self, root: str = Scene.ROOT) -> FireField:
        """Discover the fires below ``root``. Call once, after the scene is composed."""
        if self.agents:
            raise ValueError("The fire field must be built before agents are added")
        self.field = FireField.from_scene(self.scene, root)
        return self.field

    def add_agent(
        self,
        name: str,
        policy: Optional[PolicyProvider] = None,
        **overrides,
    ) -> FirefighterAgent:
        """
        Add a firefighter agent.

        Args:
            name: Unique agent name
            policy: Decision provider for this agent
            **overrides: Per-agent config overrides
        """
        if name in self.agents:
            raise ValueError(f"Agent {name} already exists")
        agent = FirefighterAgent(
            name, self.world, self.field,
            config={**self.config, **overrides},
            policy=policy,
        )
        self.agents[name] = agent
        return agent

    def seed(self, seed: Optional[int] = None) -> None:
        """Set random seed for deterministic behavior."""
        self._rng = np.random.default_rng(seed)

    @property
    def rng(self) -> np.random.Generator:
        return self._rng

    # episode

    def reset(self, seed: Optional[int] = None) -> Dict[str, np.ndarray]:
        """
        Reset fires and agents for a new episode.

        In play mode the environment resets the fires itself; in training mode
        each agent does it on episode begin.

        Returns:
            Initial observation of every agent
        """
        if seed is not None:
            self.seed(seed)
        self.time_step = 0

        if not self.training_mode:
            self.field.reset_all()

        for agent in self.agents.values():
            agent.on_episode_begin(self._rng)

        return self.get_observations()

    def step(self, actions: Optional[Dict[str, np.ndarray]] = None) -> Dict[str, float]:
        """
        Advance the arena by one fixed step.

        Args:
            actions: Optional actions by agent name; agents without one ask their
                policy on decision steps and otherwise repeat their last action

        Returns:
            Reward collected by each agent during this step
        """
        actions = actions or {}
        decision_step = self.time_step % self.config["decision_period"] == 0

        for name, agent in self.agents.items():
            if name not in actions and decision_step and not agent.frozen:
                agent.request_decision()
            agent.on_action_received(actions.get(name), self.fixed_dt)

        self.world.step(self.fixed_dt)

        for agent in self.agents.values():
            agent.fixed_update()

        self.time_step += 1
        return {name: agent.collect_reward() for name, agent in self.agents.items()}

    def run_decision(self, actions: Dict[str, np.ndarray]) -> Dict[str, float]:
        """
        Apply the given actions for one decision period.

        Returns:
            Reward summed over the period for each agent
        """
        totals = {name: 0.0 for name in self.agents}
        for _ in range(self.config["decision_period"]):
            for name, reward in self.step(actions).items():
                totals[name] += reward
            if self.is_done():
                break
        return totals

    def is_done(self) -> bool:
        """Episode ends when an agent hits its max step (never in play mode)."""
        return any(agent.max_step_reached for agent in self.agents.values())

    # observation and statistics

    def get_observations(self) -> Dict[str, np.ndarray]:
        return {name: agent.collect_observations() for name, agent in self.agents.items()}

    def get_statistics(self) -> Dict:
        """Summary of the current episode."""
        fires = self.field.fires
        return {
            "time_step": self.time_step,
            "elapsed_seconds": self.time_step * self.fixed_dt,
            "fires_total": len(fires),
            "fires_burning": sum(1 for f in fires if f.on_fire),
            "fire_health": self.field.total_health,
            "agents": {
                name: {
                    "fires_extinguished": agent.fires_extinguished,
                    "cumulative_reward": agent.cumulative_reward,
                    "nearest_fire": agent.nearest_fire.name if agent.nearest_fire else None,
                    "frozen": agent.frozen,
                }
                for name, agent in self.agents.items()
            },
        }

    def agent_names(self) -> List[str]:
        return list(self.agents)
