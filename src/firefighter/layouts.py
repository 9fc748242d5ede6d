import math
from typing import Dict, Iterable, Optional

from .agent import PolicyProvider
from .config import TAGS
from .env import ArenaEnvironment
from .geometry import yaw_rotation
from .physics import BoxCollider

# Build the layout


def build_standard_arena(
    config: Optional[Dict] = None,
    agent_names: Iterable[str] = ("player", "opponent"),
    policies: Optional[Dict[str, PolicyProvider]] = None,
) -> ArenaEnvironment:
    """
    Build the standard square arena:
    - Floor covering the whole area (never blocks spawning)
    - 4 boundary walls at +/- arena_half_size
    - num_fires fires on pillars around a ring, facing the centre,
      grouped in pairs under untagged cluster nodes
    - num_obstacles crates between the spawn area and the fires
    - One agent per name in ``agent_names``

    Returns:
        Initialized ArenaEnvironment (call reset() before stepping)
    """
    env = ArenaEnvironment(config)
    cfg = env.config
    half = float(cfg["arena_half_size"])
    height = float(cfg["wall_height"])
    thickness = float(cfg["wall_thickness"])

    # FLOOR (top surface at y = 0)
    env.add_static(
        "Floor", TAGS["floor"],
        BoxCollider((0.0, -0.5, 0.0), (half + thickness, 0.5, half + thickness)),
    )

    # BOUNDARY WALLS
    env.add_group("Boundary")
    walls = {
        "WallNorth": ((0.0, height / 2, half + thickness / 2), (half + thickness, height / 2, thickness / 2)),
        "WallSouth": ((0.0, height / 2, -half - thickness / 2), (half + thickness, height / 2, thickness / 2)),
        "WallEast": ((half + thickness / 2, height / 2, 0.0), (thickness / 2, height / 2, half + thickness)),
        "WallWest": ((-half - thickness / 2, height / 2, 0.0), (thickness / 2, height / 2, half + thickness)),
    }
    for name, (center, half_extents) in walls.items():
        env.add_static(name, TAGS["boundary"], BoxCollider(center, half_extents), parent="Boundary")

    # FIRES ON PILLARS - ring around the centre, faces pointing inward
    num_fires = int(cfg["num_fires"])
    ring = float(cfg["fire_ring_radius"])
    fire_height = float(cfg["fire_height"])
    env.add_group("Fires")
    for i in range(num_fires):
        cluster = f"FireCluster{i // 2}"
        if cluster not in env.scene.nodes:
            env.add_group(cluster, parent="Fires")

        angle = 360.0 * i / num_fires
        rad = math.radians(angle)
        position = (ring * math.sin(rad), fire_height, ring * math.cos(rad))
        facing = angle + 180.0

        # Pillar behind the fire
        pillar_rot = yaw_rotation(facing)
        pillar_center = pillar_rot.apply((0.0, 0.0, -0.5)) + (position[0], height / 2, position[2])
        env.add_static(
            f"Pillar{i}", TAGS["obstacle"],
            BoxCollider(pillar_center, (0.35, height / 2, 0.35), rotation=pillar_rot),
            parent=cluster,
        )
        env.add_fire(f"Fire{i}", position, facing, parent=cluster)

    # CRATES - offset from the fire directions
    num_obstacles = int(cfg["num_obstacles"])
    obstacle_ring = float(cfg["obstacle_ring_radius"])
    if num_obstacles:
        env.add_group("Obstacles")
    for i in range(num_obstacles):
        rad = math.radians(360.0 * (i + 0.5) / num_obstacles)
        center = (obstacle_ring * math.sin(rad), 0.5, obstacle_ring * math.cos(rad))
        env.add_static(f"Crate{i}", TAGS["obstacle"], BoxCollider(center, (0.4, 0.5, 0.4)), parent="Obstacles")

    env.build_field()

    policies = policies or {}
    for name in agent_names:
        env.add_agent(name, policy=policies.get(name))

    return env


def build_single_fire_arena(config: Optional[Dict] = None, agent_name: str = "agent") -> ArenaEnvironment:
    """
    Small arena with one fire in front of the centre and no obstacles.

    Useful for tests and debugging a single agent.
    """
    overrides = {"num_obstacles": 0, **(config or {})}
    env = ArenaEnvironment(overrides)
    half = float(env.config["arena_half_size"])
    env.add_static("Floor", TAGS["floor"], BoxCollider((0.0, -0.5, 0.0), (half, 0.5, half)))
    env.add_fire("Fire0", (0.0, float(env.config["fire_height"]), 3.0), 180.0)
    env.build_field()
    env.add_agent(agent_name)
    return env
