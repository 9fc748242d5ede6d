"""
Vector and rotation helpers.

World frame: +y is up, +z is forward, +x is right. A yaw of +90 degrees turns
the forward axis onto +x. Rotations are scipy ``Rotation`` objects; quaternions
are reported in (x, y, z, w) order.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field

import numpy as np
from scipy.spatial.transform import Rotation

UP = np.array([0.0, 1.0, 0.0])
FORWARD = np.array([0.0, 0.0, 1.0])
RIGHT = np.array([1.0, 0.0, 0.0])

# Vectors shorter than this normalise to zero
_NORMALIZE_EPS = 1e-5


def vec3(values) -> np.ndarray:
    """Coerce any 3-sequence to a float64 array."""
    arr = np.asarray(values, dtype=np.float64).reshape(3)
    return arr.copy()


def normalized(v: np.ndarray) -> np.ndarray:
    """Unit vector in the direction of ``v``, or zero for a near-zero vector."""
    norm = float(np.linalg.norm(v))
    if norm < _NORMALIZE_EPS:
        return np.zeros(3)
    return v / norm


def clamp01(x: float) -> float:
    return min(1.0, max(0.0, x))


def move_towards(current: float, target: float, max_delta: float) -> float:
    """Move ``current`` toward ``target`` by at most ``max_delta``."""
    if abs(target - current) <= max_delta:
        return target
    return current + math.copysign(max_delta, target - current)


def yaw_rotation(yaw_deg: float) -> Rotation:
    """Rotation about the vertical axis only."""
    return Rotation.from_euler("y", yaw_deg, degrees=True)


def yaw_of(rotation: Rotation) -> float:
    """Heading in degrees of a rotation's forward axis, in [-180, 180]."""
    fwd = rotation.apply(FORWARD)
    return math.degrees(math.atan2(fwd[0], fwd[2]))


def look_rotation(direction: np.ndarray) -> Rotation:
    """
    Upright rotation facing the horizontal part of ``direction``.

    Only heading is set, so forward stays level and +y stays up.
    """
    d = vec3(direction)
    if not normalized(np.array([d[0], 0.0, d[2]])).any():
        return Rotation.identity()
    return yaw_rotation(math.degrees(math.atan2(d[0], d[2])))


@dataclass
class Pose:
    """Position and orientation of a placed object."""
    position: np.ndarray = field(default_factory=lambda: np.zeros(3))
    rotation: Rotation = field(default_factory=Rotation.identity)

    def __post_init__(self):
        self.position = vec3(self.position)

    @property
    def forward(self) -> np.ndarray:
        return self.rotation.apply(FORWARD)

    @property
    def right(self) -> np.ndarray:
        return self.rotation.apply(RIGHT)

    @property
    def up(self) -> np.ndarray:
        return self.rotation.apply(UP)

    def transform_point(self, local) -> np.ndarray:
        """Map a point from local to world coordinates."""
        return self.position + self.rotation.apply(vec3(local))

    def quaternion(self) -> np.ndarray:
        """Normalised (x, y, z, w) quaternion of the orientation."""
        q = self.rotation.as_quat()
        return q / np.linalg.norm(q)
