"""
Minimal rigid-body physics for the arena.

Provides what the agents need from a physics engine and nothing more:
- sphere and oriented-box colliders with closest-point queries
- sphere overlap queries
- planar rigid bodies driven by forces, with sleep/wake control
- trigger enter/stay and collision enter events delivered to a listener

Bodies move on the horizontal plane and do not rotate under physics; their
owners set orientation directly. Bodies collide with static solid colliders
only (other bodies are not resolved against each other).
"""

from __future__ import annotations

import itertools
from typing import Dict, Iterable, List, Optional, Protocol, Set

import numpy as np
from scipy.spatial.transform import Rotation

from .config import TAGS
from .geometry import Pose, vec3

_collider_ids = itertools.count(1)


class Collider:
    """Base collider. Static unless attached to a rigid body."""

    def __init__(self, tag: str = "untagged", is_trigger: bool = False, name: str = ""):
        self.collider_id: int = next(_collider_ids)
        self.tag = tag
        self.is_trigger = is_trigger
        self.name = name
        self.enabled = True
        self.body: Optional[RigidBody] = None
        self._center = np.zeros(3)
        self._rotation = Rotation.identity()

    def __repr__(self) -> str:
        return f"{type(self).__name__}(id={self.collider_id}, tag={self.tag!r}, name={self.name!r})"

    @property
    def center(self) -> np.ndarray:
        if self.body is not None:
            return self.body.pose.transform_point(self._center)
        return self._center

    @property
    def rotation(self) -> Rotation:
        if self.body is not None:
            return self.body.pose.rotation * self._rotation
        return self._rotation

    def attach(self, body: "RigidBody", local_center) -> None:
        """Make the collider follow ``body``; ``local_center`` is in body coordinates."""
        self.body = body
        self._center = vec3(local_center)

    def closest_point(self, point: np.ndarray) -> np.ndarray:
        raise NotImplementedError

    def overlaps_sphere(self, center: np.ndarray, radius: float) -> bool:
        closest = self.closest_point(center)
        return float(np.linalg.norm(closest - center)) <= radius


class SphereCollider(Collider):

    def __init__(self, center, radius: float, **kwargs):
        super().__init__(**kwargs)
        if radius <= 0:
            raise ValueError(f"Sphere radius must be positive, got {radius}")
        self._center = vec3(center)
        self.radius = float(radius)

    def closest_point(self, point: np.ndarray) -> np.ndarray:
        """Closest point on or inside the sphere (the point itself when inside)."""
        c = self.center
        offset = point - c
        dist = float(np.linalg.norm(offset))
        if dist <= self.radius:
            return np.array(point, dtype=np.float64)
        return c + offset * (self.radius / dist)


class BoxCollider(Collider):

    def __init__(self, center, half_extents, rotation: Optional[Rotation] = None, **kwargs):
        super().__init__(**kwargs)
        self._center = vec3(center)
        self.half_extents = vec3(half_extents)
        if np.any(self.half_extents <= 0):
            raise ValueError(f"Box half extents must be positive, got {self.half_extents}")
        self._rotation = rotation if rotation is not None else Rotation.identity()

    def closest_point(self, point: np.ndarray) -> np.ndarray:
        """Closest point on or inside the oriented box (the point itself when inside)."""
        rot = self.rotation
        c = self.center
        local = rot.inv().apply(point - c)
        clamped = np.clip(local, -self.half_extents, self.half_extents)
        return c + rot.apply(clamped)


class CollisionEvents(Protocol):
    """Callbacks a rigid body's owner receives from the physics world."""

    def on_trigger_enter(self, other: Collider) -> None: ...

    def on_trigger_stay(self, other: Collider) -> None: ...

    def on_collision_enter(self, other: Collider) -> None: ...


class RigidBody:
    """
    Planar rigid body with a sphere hull.

    Forces accumulate until the next integration step. A sleeping body does
    not integrate and generates no contacts.
    """

    def __init__(
        self,
        pose: Pose,
        hull_radius: float,
        hull_center=(0.0, 0.0, 0.0),
        mass: float = 1.0,
        drag: float = 0.0,
        tag: str = "untagged",
        name: str = "",
    ):
        if mass <= 0:
            raise ValueError(f"Mass must be positive, got {mass}")
        self.pose = pose
        self.mass = float(mass)
        self.drag = float(drag)
        self.name = name
        self.velocity = np.zeros(3)
        self.angular_velocity = np.zeros(3)
        self.sleeping = False
        self._force = np.zeros(3)

        self.hull = SphereCollider((0.0, 0.0, 0.0), hull_radius, tag=tag, name=f"{name}/hull")
        self.colliders: List[SphereCollider] = []
        self.add_collider(self.hull, hull_center)

        # Collider ids touched during the previous step
        self.contacts: Set[int] = set()
        self.triggers: Set[int] = set()

    def add_collider(self, collider: SphereCollider, local_center) -> SphereCollider:
        if not isinstance(collider, SphereCollider):
            raise ValueError("Rigid bodies only carry sphere colliders")
        collider.attach(self, local_center)
        self.colliders.append(collider)
        return collider

    def add_force(self, force) -> None:
        self._force += vec3(force)

    def sleep(self) -> None:
        self.sleeping = True
        self.velocity = np.zeros(3)
        self.angular_velocity = np.zeros(3)
        self._force = np.zeros(3)

    def wake_up(self) -> None:
        self.sleeping = False

    def teleport(self, position, rotation: Rotation) -> None:
        """Place the body without sweeping; previous contacts are forgotten."""
        self.pose.position = vec3(position)
        self.pose.rotation = rotation
        self.contacts = set()
        self.triggers = set()

    def integrate(self, dt: float) -> None:
        if self.sleeping:
            self._force = np.zeros(3)
            return
        self.velocity = self.velocity + (self._force / self.mass) * dt
        self.velocity *= max(0.0, 1.0 - self.drag * dt)
        self.velocity[1] = 0.0
        self.pose.position = self.pose.position + self.velocity * dt
        self._force = np.zeros(3)


class PhysicsWorld:
    """Registry of colliders and bodies; advances bodies and reports contacts."""

    def __init__(self):
        self.colliders: Dict[int, Collider] = {}
        self.bodies: List[RigidBody] = []
        self._listeners: Dict[int, CollisionEvents] = {}

    def add_collider(self, collider: Collider) -> Collider:
        self.colliders[collider.collider_id] = collider
        return collider

    def add_body(self, body: RigidBody, listener: Optional[CollisionEvents] = None) -> RigidBody:
        self.bodies.append(body)
        for collider in body.colliders:
            self.add_collider(collider)
        if listener is not None:
            self._listeners[id(body)] = listener
        return body

    def overlap_sphere(
        self,
        center,
        radius: float,
        ignore: Iterable[Collider] = (),
    ) -> List[Collider]:
        """Enabled colliders touching the sphere, in registration order."""
        center = vec3(center)
        ignored = {c.collider_id for c in ignore}
        hits = []
        for cid, collider in self.colliders.items():
            if cid in ignored or not collider.enabled:
                continue
            if collider.overlaps_sphere(center, radius):
                hits.append(collider)
        return hits

    def step(self, dt: float) -> None:
        """Integrate every body, resolve solid contacts, then deliver trigger events."""
        for body in self.bodies:
            body.integrate(dt)
        for body in self.bodies:
            if not body.sleeping:
                self._resolve_solids(body)
        for body in self.bodies:
            if not body.sleeping:
                self._dispatch_triggers(body)

    # contacts

    def _static_colliders(self, is_trigger: bool) -> List[Collider]:
        return [
            c for c in self.colliders.values()
            if c.enabled and c.body is None and c.is_trigger == is_trigger
        ]

    def _resolve_solids(self, body: RigidBody) -> None:
        hull = body.hull
        touching: Set[int] = set()
        for collider in self._static_colliders(is_trigger=False):
            if collider.tag == TAGS["floor"]:
                continue
            center = hull.center
            closest = collider.closest_point(center)
            delta = center - closest
            dist = float(np.linalg.norm(delta))
            if dist > hull.radius:
                continue
            touching.add(collider.collider_id)

            # Push out horizontally and cancel velocity into the surface
            delta[1] = 0.0
            planar = float(np.linalg.norm(delta))
            if planar < 1e-9:
                normal, depth = _escape_direction(collider, center)
                push = hull.radius + depth
            else:
                normal = delta / planar
                push = hull.radius - dist
            body.pose.position = body.pose.position + normal * max(0.0, push)
            into = float(np.dot(body.velocity, normal))
            if into < 0:
                body.velocity = body.velocity - into * normal

        entered = sorted(touching - body.contacts)
        body.contacts = touching
        listener = self._listeners.get(id(body))
        if listener is None:
            return
        for cid in entered:
            listener.on_collision_enter(self.colliders[cid])

    def _dispatch_triggers(self, body: RigidBody) -> None:
        overlapping = []
        for trigger in self._static_colliders(is_trigger=True):
            if any(trigger.overlaps_sphere(c.center, c.radius) for c in body.colliders):
                overlapping.append(trigger)

        listener = self._listeners.get(id(body))
        previous = body.triggers
        if listener is not None:
            for trigger in overlapping:
                # A callback earlier this step may have disabled it
                if not trigger.enabled:
                    continue
                if trigger.collider_id in previous:
                    listener.on_trigger_stay(trigger)
                else:
                    listener.on_trigger_enter(trigger)
        body.triggers = {t.collider_id for t in overlapping if t.enabled}


def _escape_direction(collider: Collider, point: np.ndarray):
    """Horizontal direction and depth to leave a collider whose volume contains ``point``."""
    if isinstance(collider, BoxCollider):
        rot = collider.rotation
        local = rot.inv().apply(point - collider.center)
        depths = collider.half_extents - np.abs(local)
        axis = 0 if depths[0] <= depths[2] else 2
        local_normal = np.zeros(3)
        local_normal[axis] = 1.0 if local[axis] >= 0 else -1.0
        normal = rot.apply(local_normal)
        normal[1] = 0.0
        norm = float(np.linalg.norm(normal))
        if norm > 1e-9:
            return normal / norm, float(depths[axis])
    offset = point - collider.center
    offset[1] = 0.0
    norm = float(np.linalg.norm(offset))
    if norm < 1e-9:
        return np.array([0.0, 0.0, 1.0]), 0.0
    depth = getattr(collider, "radius", 0.0) - norm
    return offset / norm, max(0.0, depth)
