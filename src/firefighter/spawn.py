"""
Spawn placement.

Searches for a pose where an agent can appear without overlapping anything
except the floor. The search is bounded; when every attempt fails the last
candidate is still returned (flagged unsafe) so the agent is never left in an
undefined pose.
"""

import logging
from dataclasses import dataclass
from typing import Dict, Iterable, Optional, Tuple

import numpy as np
from scipy.spatial.transform import Rotation

from .config import DEFAULT_CONFIG, TAGS
from .fire_field import FireField
from .geometry import FORWARD, look_rotation, yaw_rotation
from .physics import Collider, PhysicsWorld

logger = logging.getLogger(__name__)


@dataclass
class SpawnResult:
    position: np.ndarray
    rotation: Rotation
    safe: bool
    attempts: int


class SpawnPlacer:
    """Bounded random search for a collision-free spawn pose."""

    def __init__(
        self,
        world: PhysicsWorld,
        field: FireField,
        max_attempts: int = 100,
        check_radius: float = 0.35,
        max_radius: float = 5.0,
        front_distance: Tuple[float, float] = (0.8, 1.3),
    ):
        if max_attempts < 1:
            raise ValueError(f"max_attempts must be at least 1, got {max_attempts}")
        self.world = world
        self.field = field
        self.max_attempts = max_attempts
        self.check_radius = check_radius
        self.max_radius = max_radius
        self.front_distance = front_distance

    @classmethod
    def from_config(cls, world: PhysicsWorld, field: FireField, config: Optional[Dict] = None) -> "SpawnPlacer":
        cfg = {**DEFAULT_CONFIG, **(config or {})}
        return cls(
            world,
            field,
            max_attempts=cfg["spawn_attempts"],
            check_radius=cfg["spawn_check_radius"],
            max_radius=cfg["spawn_max_radius"],
            front_distance=(cfg["spawn_front_min"], cfg["spawn_front_max"]),
        )

    def place(
        self,
        rng: np.random.Generator,
        in_front_of_fire: bool = False,
        ignore: Iterable[Collider] = (),
    ) -> SpawnResult:
        """
        Find a safe pose.

        Args:
            rng: Random generator driving every draw
            in_front_of_fire: Spawn facing a random live fire instead of anywhere in the area
            ignore: Colliders excluded from the overlap check (the agent's own)

        Returns:
            The accepted pose, or the last candidate with safe=False
        """
        ignore = tuple(ignore)
        if in_front_of_fire and not self.field.burning():
            logger.warning("No burning fire to spawn in front of; spawning at random in the area")
            in_front_of_fire = False

        position, rotation = np.zeros(3), Rotation.identity()
        for attempt in range(1, self.max_attempts + 1):
            if in_front_of_fire:
                position, rotation = self._in_front_of_fire(rng)
            else:
                position, rotation = self._random_in_area(rng)

            if self.is_safe(position, ignore):
                return SpawnResult(position, rotation, True, attempt)

        logger.error(
            "Could not find a safe position to spawn after %d attempts; using last candidate %s",
            self.max_attempts, np.round(position, 3).tolist(),
        )
        return SpawnResult(position, rotation, False, self.max_attempts)

    def is_safe(self, position: np.ndarray, ignore: Iterable[Collider] = ()) -> bool:
        """Safe when the check touches nothing, or only floor colliders."""
        hits = self.world.overlap_sphere(position, self.check_radius, ignore=ignore)
        return all(c.tag == TAGS["floor"] for c in hits)

    def _random_in_area(self, rng: np.random.Generator):
        radius = rng.uniform(0.0, self.max_radius)
        direction = yaw_rotation(rng.uniform(-180.0, 180.0))
        position = self.field.center + direction.apply(FORWARD) * radius
        rotation = yaw_rotation(rng.uniform(-180.0, 180.0))
        return position, rotation

    def _in_front_of_fire(self, rng: np.random.Generator):
        burning = self.field.burning()
        fire = burning[int(rng.integers(len(burning)))]
        distance = rng.uniform(*self.front_distance)
        position = fire.position + fire.up_vector * distance
        # Agents stand on the floor of the area
        position[1] = self.field.center[1]
        rotation = look_rotation(fire.center_position - position)
        return position, rotation
