"""
Fire field: the collection of fires in one arena.

Fires are discovered once from the scene hierarchy. The field owns them in
registration order and maps each fire's interactive collider back to it.
"""

import logging
from typing import Dict, List, Optional, Tuple

import numpy as np

from .config import TAGS
from .entities import FireUnit
from .errors import FireLookupError
from .scene import Scene

logger = logging.getLogger(__name__)


class FireField:
    """Manages a collection of fires and looks fires up from their colliders."""

    def __init__(self, center=(0.0, 0.0, 0.0)):
        self.center = np.asarray(center, dtype=np.float64)
        self._fires: List[FireUnit] = []
        self._by_region: Dict[int, FireUnit] = {}
        self.config_errors: List[str] = []

    @classmethod
    def from_scene(cls, scene: Scene, root: Optional[str] = None) -> "FireField":
        """Build a field centred on ``root`` (the scene root by default) and discover its fires."""
        root_name = root or Scene.ROOT
        field = cls(center=scene.nodes[root_name].pose.position)
        field.discover(scene, root_name)
        return field

    @property
    def fires(self) -> Tuple[FireUnit, ...]:
        """All fires in registration order (read-only view)"""
        return tuple(self._fires)

    def __len__(self) -> int:
        return len(self._fires)

    def discover(self, scene: Scene, root: str = Scene.ROOT) -> int:
        """
        Recursively register the fires below ``root``.

        Nodes tagged "fire" must carry a FireUnit component and are not searched
        further; other nodes are searched for tagged descendants. A tagged node
        without a FireUnit is logged and skipped.

        Returns:
            Number of fires newly registered
        """
        before = len(self._fires)
        self._find_child_fires(scene, root)
        return len(self._fires) - before

    def _find_child_fires(self, scene: Scene, parent: str) -> None:
        for child in scene.children(parent):
            if child.tag != TAGS["fire"]:
                # Not a fire, check children
                self._find_child_fires(scene, child.name)
                continue

            fire = child.get_component("fire")
            if not isinstance(fire, FireUnit):
                message = f"Node {child.name!r} is tagged 'fire' but has no FireUnit component"
                self.config_errors.append(message)
                logger.error(message)
                continue

            self.register(fire)

    def register(self, fire: FireUnit) -> bool:
        """Add a fire to the sequence and the lookup table; duplicates are ignored."""
        region_id = fire.interactive_region.collider_id
        if region_id in self._by_region:
            logger.warning("Fire %r is already registered; skipping", fire.name)
            return False
        self._fires.append(fire)
        self._by_region[region_id] = fire
        return True

    def reset_all(self) -> None:
        """Reset every fire, in registration order."""
        for fire in self._fires:
            fire.reset()

    def lookup(self, region_id: int) -> FireUnit:
        """
        Get the fire that an interactive collider belongs to.

        Raises:
            FireLookupError: the collider id was never registered
        """
        try:
            return self._by_region[region_id]
        except KeyError:
            logger.error("No fire registered for collider id %s", region_id)
            raise FireLookupError(region_id) from None

    def burning(self) -> List[FireUnit]:
        return [f for f in self._fires if f.on_fire]

    @property
    def total_health(self) -> float:
        return float(sum(f.health for f in self._fires))
