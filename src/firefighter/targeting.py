"""
Nearest-target selection.

A target is tracked as an index into ``FireField.fires`` so it stays valid
when fires are reset, and is re-resolved through the field on every read.
"""

from typing import Optional, Sequence

import numpy as np

from .entities import FireUnit
from .fire_field import FireField


def select_nearest(fires: Sequence[FireUnit], point: np.ndarray) -> Optional[int]:
    """
    Index of the burning fire closest to ``point``.

    Distance is measured to each fire's placement position. Among equal
    distances the earliest fire wins. Returns None when nothing is burning.
    """
    best_index: Optional[int] = None
    best_distance = np.inf
    for i, fire in enumerate(fires):
        if not fire.on_fire:
            continue
        distance = float(np.linalg.norm(fire.position - point))
        if distance < best_distance:
            best_index, best_distance = i, distance
    return best_index


class TargetTracker:
    """Keeps an agent's nearest live fire up to date."""

    def __init__(self, field: FireField):
        self.field = field
        self.index: Optional[int] = None

    @property
    def target(self) -> Optional[FireUnit]:
        if self.index is None:
            return None
        fires = self.field.fires
        if self.index >= len(fires):
            self.index = None
            return None
        return fires[self.index]

    def update(self, point: np.ndarray) -> Optional[FireUnit]:
        """Re-select the nearest burning fire from ``point``."""
        self.index = select_nearest(self.field.fires, point)
        return self.target

    def refresh_if_stale(self, point: np.ndarray) -> bool:
        """
        Re-select when the tracked fire is no longer burning.

        Catches fires put out by another agent between our own hits.

        Returns:
            True if a re-selection happened
        """
        target = self.target
        if target is not None and not target.on_fire:
            self.update(point)
            return True
        return False
