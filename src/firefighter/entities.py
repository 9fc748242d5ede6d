from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional

import numpy as np

from .errors import FireStateError
from .geometry import Pose
from .physics import Collider

# DATA CLASSES


class FireState(Enum):
    """Visual/particle state of a fire."""
    BURNING = "burning"
    EXTINGUISHED = "extinguished"


@dataclass(eq=False)
class FireUnit:
    """
    A single extinguishable fire.

    Attributes:
        name: Scene name of the fire
        interactive_region: Trigger collider the tool must touch to put the fire out
        solid_region: Physical collider of the fire object
        placement: Pose of the fire; its forward axis points out of the fire's face
        health: Remaining fire (0-1); 0 means extinguished
        state: Visual state, BURNING while health > 0
    """
    name: str
    interactive_region: Collider
    solid_region: Collider
    placement: Optional[Pose] = None
    health: float = 1.0
    state: FireState = FireState.BURNING

    @property
    def on_fire(self) -> bool:
        """Fire is burning while any health is left"""
        return self.health > 0.0

    @property
    def up_vector(self) -> np.ndarray:
        """Unit vector pointing straight out of the fire's face"""
        return self._require_placement().forward

    @property
    def center_position(self) -> np.ndarray:
        """Centre of the interactive region"""
        self._require_placement()
        return self.interactive_region.center

    @property
    def position(self) -> np.ndarray:
        """Position of the fire's placement"""
        return self._require_placement().position

    def _require_placement(self) -> Pose:
        if self.placement is None:
            raise FireStateError(f"Fire {self.name!r} is not attached to a placement")
        return self.placement

    def extinguish(self, amount: float) -> float:
        """
        Attempt to put out some of the remaining fire.

        The removed amount is clamped to [0, health], so negative or over-large
        requests are bounded rather than rejected.

        Args:
            amount: Health to remove

        Returns:
            The amount of fire actually put out
        """
        removed = min(max(amount, 0.0), self.health)
        self.health -= removed

        if self.health <= 0.0 and removed > 0.0:
            self.health = 0.0
            self.interactive_region.enabled = False
            self.solid_region.enabled = False
            self.state = FireState.EXTINGUISHED

        return removed

    def reset(self) -> None:
        """Restart the fire at full health."""
        self.health = 1.0
        self.interactive_region.enabled = True
        self.solid_region.enabled = True
        self.state = FireState.BURNING


@dataclass
class SceneNode:
    """
    Metadata for each node of the scene hierarchy.

    Components are looked up by kind (e.g. "fire" -> FireUnit).
    """
    name: str
    tag: str = "untagged"
    pose: Pose = field(default_factory=Pose)
    components: Dict[str, Any] = field(default_factory=dict)

    def get_component(self, kind: str) -> Optional[Any]:
        return self.components.get(kind)
