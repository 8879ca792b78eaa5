#!/usr/bin/env python3
"""
Ship - a single simulated unit.

A ship is steered by its swarm (which sets target_pos) but moves on its own
using a greedy bang-bang controller:

- Compute the highest speed from which the ship can still brake to a stop
  exactly at the target (discrete-time stopping distance).
- Steer the velocity toward "full safe speed straight at the target".
- Corrections that oppose the current velocity are braking and are limited
  by max_decel; everything else is thrust limited by max_accel.

The controller is not an optimal planner. Lateral velocity is only removed as
part of the same capped correction, so curved approaches are not the shortest
possible path.

Combat state (lock_target, lock_progress, fired_at, lock_target_pos) is
written by the owning swarm during the fight phase; the ship only holds it.
"""

from __future__ import annotations

import itertools
import math
from dataclasses import dataclass, field
from typing import Optional

from .config import ShipConfig
from .physics import EPSILON, Vector2D


# Process-wide ship ids; never reused
_ship_ids = itertools.count(1)


def next_ship_id() -> int:
    """Issue the next unique ship id."""
    return next(_ship_ids)


def max_safe_speed(distance: float, decel: float, max_speed: float) -> float:
    """
    Highest speed that still allows stopping exactly at distance.

    Positive root of v² + 2·decel·v − 2·decel·d = 0, capped at max_speed.
    """
    if distance <= 0:
        return 0.0
    v = -decel + math.sqrt(decel * decel + 2.0 * decel * distance)
    return min(v, max_speed)


@dataclass(eq=False)
class Ship:
    """
    A single unit. Controlled by a swarm, but moves independently.

    Attributes:
        config: Shared ship limits (never mutated).
        pos: World position.
        vel: World velocity (units per tick).
        target_pos: Destination set by the swarm or an external caller.
        health: Remaining hit points, never below zero.
        id: Unique ship id.
        lock_target: Id of the enemy ship this ship is locking onto.
        lock_progress: Ticks of sustained lock so far.
        fired_at: Position shot at this tick (render hint).
        fired_target: Id of the ship shot at this tick.
        lock_target_pos: Position of the locked enemy this tick (render hint).
        lock_acquired: Whether the lock was (re)acquired this tick.
    """
    config: ShipConfig
    pos: Vector2D = field(default_factory=Vector2D.zero)
    vel: Vector2D = field(default_factory=Vector2D.zero)
    target_pos: Optional[Vector2D] = None
    health: int = -1
    id: int = field(default_factory=next_ship_id)

    lock_target: Optional[int] = None
    lock_progress: int = 0

    fired_at: Optional[Vector2D] = None
    fired_target: Optional[int] = None
    lock_target_pos: Optional[Vector2D] = None
    lock_acquired: bool = False

    def __post_init__(self) -> None:
        if self.target_pos is None:
            self.target_pos = self.pos.copy()
        if self.health < 0:
            self.health = self.config.health

    @classmethod
    def spawn(cls, pos: Vector2D, config: ShipConfig) -> Ship:
        """Spawn a ship at rest at pos with full health."""
        return cls(config=config, pos=pos.copy())

    # -------------------------------------------------------------------------
    # State
    # -------------------------------------------------------------------------

    @property
    def is_alive(self) -> bool:
        return self.health > 0

    @property
    def speed(self) -> float:
        return self.vel.magnitude

    @property
    def speed_ratio(self) -> float:
        """Current speed as a fraction of max speed, capped at 1."""
        return min(self.speed / self.config.max_speed, 1.0)

    def set_target(self, pos: Vector2D) -> None:
        self.target_pos = pos.copy()

    def take_hit(self, damage: int = 1) -> int:
        """
        Apply damage, saturating at zero.

        Returns:
            Remaining health.
        """
        self.health = max(0, self.health - damage)
        return self.health

    # -------------------------------------------------------------------------
    # Lock-on state
    # -------------------------------------------------------------------------

    def required_lock_time(self, target: Ship) -> float:
        """
        Ticks of lock needed before firing at target.

        Faster targets (relative to their own max speed) take longer:
        fire_delay × (1 + speed_ratio × (lock_time_factor − 1)).
        """
        factor = self.config.lock_time_factor
        return self.config.fire_delay * (1.0 + target.speed_ratio * (factor - 1.0))

    def acquire_lock(self, target: Ship) -> None:
        self.lock_target = target.id
        self.lock_progress = 0
        self.lock_target_pos = target.pos.copy()
        self.lock_acquired = True

    def release_lock(self) -> None:
        self.lock_target = None
        self.lock_progress = 0

    def clear_render_hints(self) -> None:
        self.fired_at = None
        self.fired_target = None
        self.lock_target_pos = None
        self.lock_acquired = False

    # -------------------------------------------------------------------------
    # Movement
    # -------------------------------------------------------------------------

    def move(self, accel_factor: float = 1.0) -> None:
        """
        Advance position and velocity by one tick.

        Args:
            accel_factor: Multiplier on both max_accel and max_decel
                          (1.0 = normal operation).
        """
        to_target = self.target_pos - self.pos
        dist = to_target.magnitude
        speed = self.vel.magnitude

        # close enough and slow enough -> stop exactly on target
        if dist < EPSILON and speed < EPSILON:
            self.vel = Vector2D.zero()
            self.pos = self.target_pos.copy()
            return

        accel = self.config.max_accel * accel_factor
        decel = self.config.max_decel * accel_factor
        max_speed = self.config.max_speed

        desired = Vector2D.zero()
        if dist > EPSILON:
            desired = to_target.normalized() * max_safe_speed(dist, decel, max_speed)

        delta = desired - self.vel
        if delta.dot(self.vel) < 0:
            delta = delta.clamp_magnitude(decel)
        else:
            delta = delta.clamp_magnitude(accel)

        self.vel = (self.vel + delta).clamp_magnitude(max_speed)
        self.pos = self.pos + self.vel

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "pos": list(self.pos.to_tuple()),
            "vel": list(self.vel.to_tuple()),
            "target_pos": list(self.target_pos.to_tuple()),
            "health": self.health,
            "lock_target": self.lock_target,
            "lock_progress": self.lock_progress,
            "fired_at": list(self.fired_at.to_tuple()) if self.fired_at else None,
        }
