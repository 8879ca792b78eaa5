#!/usr/bin/env python3
"""
Swarm - a formation of ships sharing one strategic target.

Each ship holds a fixed offset relative to the swarm's target position. When
the swarm turns toward a new target the offsets are rotated rigidly, so the
formation keeps its shape and only changes orientation.

Per tick a swarm:
- decides (flee / chase / hold) from the swarms it can see,
- re-targets its ships when a decision is applied,
- runs the lock-on protocol against visible enemy ships,
- drops dead ships and recomputes its centroid.

Decision rule summary:
- A visible swarm with at least as many ships (minus prey_size_slack) is a
  threat. Any threat makes the swarm flee along the heading picked by a
  RepulsionMap.
- Otherwise the nearest visible weaker swarm is chased.
- Otherwise nothing changes.
"""

from __future__ import annotations

import math
from collections import Counter
from dataclasses import dataclass
from enum import Enum, auto
from typing import Optional, Sequence

from .bounds import Bounds
from .config import ShipConfig, SwarmConfig
from .physics import EPSILON, Vector2D, angle_diff
from .repulsion import RepulsionMap
from .ship import Ship


# Golden angle for the sunflower spawn layout (radians)
GOLDEN_ANGLE = math.pi * (3.0 - math.sqrt(5.0))


# =============================================================================
# DECISIONS
# =============================================================================

class DecisionMode(Enum):
    """What a swarm decided to do this tick."""
    FLEE = auto()
    CHASE = auto()


@dataclass
class SwarmDecision:
    """
    A swarm's decision for one tick.

    Attributes:
        target: New target position for the swarm.
        is_threat: True when the decision was driven by a threat (flee).
        mode: FLEE or CHASE.
        prey_center: Center of the chased swarm (chase only).
    """
    target: Vector2D
    is_threat: bool
    mode: DecisionMode
    prey_center: Optional[Vector2D] = None


# =============================================================================
# FORMATION
# =============================================================================

@dataclass(eq=False)
class SwarmMember:
    """A ship and its offset relative to the swarm target."""
    ship: Ship
    offset: Vector2D


def sunflower_offsets(count: int, scale: float) -> list[Vector2D]:
    """
    Evenly packed disc of offsets (golden-angle spiral).

    Offset i sits at radius scale·sqrt(i + 0.5) and angle i·GOLDEN_ANGLE.
    """
    return [
        Vector2D.from_angle(i * GOLDEN_ANGLE, scale * math.sqrt(i + 0.5))
        for i in range(count)
    ]


# =============================================================================
# SWARM
# =============================================================================

class Swarm:
    """
    Swarm consisting of multiple ships.

    The swarm's own position (center) is the mean position of its live
    ships; it is recomputed every tick, never simulated on its own.

    Attributes:
        config: Shared swarm config.
        ship_config: Shared ship config used for spawned ships.
        target_pos: Shared destination; each ship steers to target + offset.
        direction: Current heading in radians.
        center: Centroid of live ships.
        prev_center: Centroid from the previous finalize.
        velocity: center - prev_center (AI signal only).
        fleeing: Whether the last applied decision was a flee.
        manual_override: Set by override_target; the next apply phase leaves
                         this swarm alone once.
    """

    def __init__(
        self,
        members: Sequence[SwarmMember],
        config: SwarmConfig,
        ship_config: ShipConfig,
        target_pos: Vector2D,
        direction: float = 0.0
    ) -> None:
        self._members: list[SwarmMember] = list(members)
        self.config = config
        self.ship_config = ship_config
        self.target_pos = target_pos.copy()
        self.direction = direction

        self.center = self._centroid() if self._members else target_pos.copy()
        self.prev_center = self.center.copy()
        self.velocity = Vector2D.zero()

        self.fleeing = False
        self.manual_override = False

    @classmethod
    def spawn(
        cls,
        pos: Vector2D,
        ship_count: int,
        config: SwarmConfig,
        ship_config: ShipConfig
    ) -> Swarm:
        """
        Spawn a new swarm with ship_count ships around pos.

        Ships are laid out in a sunflower spiral; the count is capped at
        config.max_ships.
        """
        if ship_count < 1:
            raise ValueError(f"A swarm needs at least one ship, got {ship_count}")
        count = min(ship_count, config.max_ships)

        members = []
        for offset in sunflower_offsets(count, config.scale):
            ship = Ship.spawn(pos + offset, ship_config)
            members.append(SwarmMember(ship=ship, offset=offset))

        return cls(members, config, ship_config, target_pos=pos)

    # -------------------------------------------------------------------------
    # Read-only views
    # -------------------------------------------------------------------------

    @property
    def ships(self) -> list[Ship]:
        return [m.ship for m in self._members]

    @property
    def members(self) -> tuple[SwarmMember, ...]:
        return tuple(self._members)

    @property
    def ship_count(self) -> int:
        return len(self._members)

    @property
    def is_empty(self) -> bool:
        return not self._members

    # -------------------------------------------------------------------------
    # Targeting
    # -------------------------------------------------------------------------

    def set_target(self, pos: Vector2D) -> None:
        """
        Point the swarm at a new target.

        The formation is rotated rigidly by the change in heading (bearing
        from the current center to pos); ship targets become pos + offset.
        """
        to_target = pos - self.center
        if to_target.magnitude > EPSILON:
            new_direction = to_target.angle()
            delta = angle_diff(new_direction, self.direction)
            if delta != 0.0:
                for member in self._members:
                    member.offset = member.offset.rotated(delta)
            self.direction = new_direction

        self.target_pos = pos.copy()
        for member in self._members:
            member.ship.set_target(pos + member.offset)

    def override_target(self, pos: Vector2D) -> None:
        """External control: set the target and skip the next AI apply."""
        self.set_target(pos)
        self.fleeing = False
        self.manual_override = True

    def apply_decision(self, decision: SwarmDecision) -> None:
        self.fleeing = decision.is_threat
        self.set_target(decision.target)

    # -------------------------------------------------------------------------
    # Decision
    # -------------------------------------------------------------------------

    def is_threat(self, other: Swarm) -> bool:
        """Whether other is big enough to make this swarm flee."""
        return other.ship_count >= self.ship_count - self.config.prey_size_slack

    def decide(self, visible: Sequence[Swarm], bounds: Bounds) -> Optional[SwarmDecision]:
        """
        Decide what to do this tick. Read-only.

        Args:
            visible: Other swarms within vision range, nearest first.
            bounds: Arena bounds.

        Returns:
            Flee or chase decision, or None to hold the current target.
        """
        threats = [s for s in visible if self.is_threat(s)]
        if threats:
            return SwarmDecision(
                target=self._flee_target(threats, bounds),
                is_threat=True,
                mode=DecisionMode.FLEE
            )

        # nearest weaker swarm; visible is sorted by distance
        for other in visible:
            if not self.is_threat(other):
                return SwarmDecision(
                    target=other.center.copy(),
                    is_threat=False,
                    mode=DecisionMode.CHASE,
                    prey_center=other.center.copy()
                )

        return None

    def _flee_target(self, threats: Sequence[Swarm], bounds: Bounds) -> Vector2D:
        """Pick a flee target away from threats, walls and sharp reversals."""
        cfg = self.config
        rmap = RepulsionMap()
        own = max(self.ship_count, 1)

        for threat in threats:
            offset = threat.center - self.center
            distance = max(offset.magnitude, 1.0)
            strength = (threat.ship_count / own) * cfg.vision_range / distance
            rmap.add_repulsor(offset.angle(), strength, cfg.threat_sigma)

        rmap.add_wall_repulsion(self.center, bounds, cfg.wall_detect_range, cfg.wall_sigma)
        rmap.add_velocity_penalty(self.velocity, cfg.velocity_penalty, cfg.velocity_sigma)

        heading = rmap.best_angle()
        target = self.center + Vector2D.from_angle(heading, cfg.flee_distance)
        return bounds.clamp(target, cfg.arena_margin)

    # -------------------------------------------------------------------------
    # Movement
    # -------------------------------------------------------------------------

    def move(self) -> None:
        """Advance every ship by one tick."""
        factor = self.config.flee_accel_factor if self.fleeing else 1.0
        for member in self._members:
            member.ship.move(factor)

    # -------------------------------------------------------------------------
    # Combat
    # -------------------------------------------------------------------------

    def fight(self, enemies: Sequence[Ship]) -> list[int]:
        """
        Run one pass of the lock-on protocol against visible enemy ships.

        Only this swarm's ships are mutated; enemies are read.

        Args:
            enemies: Enemy ships currently visible to this swarm.

        Returns:
            Ids of enemy ships hit this tick, one entry per hit.
        """
        ships = self.ships
        enemy_by_id = {enemy.id: enemy for enemy in enemies}
        aim_range_sq = self.ship_config.aim_range ** 2

        for ship in ships:
            ship.clear_render_hints()

        locks: Counter[int] = Counter(
            ship.lock_target for ship in ships if ship.lock_target is not None
        )

        # drop locks on vanished, out-of-range or over-allocated enemies
        for ship in ships:
            if ship.lock_target is None:
                continue
            enemy = enemy_by_id.get(ship.lock_target)
            if (enemy is None
                    or ship.pos.distance_squared_to(enemy.pos) > aim_range_sq
                    or locks[ship.lock_target] > enemy.health):
                locks[ship.lock_target] -= 1
                ship.release_lock()

        hits: list[int] = []
        pending: Counter[int] = Counter()

        for ship in ships:
            if ship.lock_target is None:
                continue
            enemy = enemy_by_id[ship.lock_target]
            ship.lock_progress += 1
            ship.lock_target_pos = enemy.pos.copy()
            if ship.lock_progress >= ship.required_lock_time(enemy):
                hits.append(enemy.id)
                pending[enemy.id] += 1
                locks[enemy.id] -= 1
                ship.fired_at = enemy.pos.copy()
                ship.fired_target = enemy.id
                ship.release_lock()

        for ship in ships:
            if ship.lock_target is not None:
                continue
            best: Optional[Ship] = None
            best_dist_sq = aim_range_sq
            for enemy in enemies:
                if locks[enemy.id] >= enemy.health - pending[enemy.id]:
                    continue
                dist_sq = ship.pos.distance_squared_to(enemy.pos)
                if dist_sq <= aim_range_sq and (best is None or dist_sq < best_dist_sq):
                    best = enemy
                    best_dist_sq = dist_sq
            if best is not None:
                ship.acquire_lock(best)
                locks[best.id] += 1

        return hits

    def locks_by_target(self) -> Counter[int]:
        """Number of this swarm's ships locked onto each enemy id."""
        return Counter(s.lock_target for s in self.ships if s.lock_target is not None)

    # -------------------------------------------------------------------------
    # Finalize
    # -------------------------------------------------------------------------

    def finalize(self) -> list[Ship]:
        """
        Drop dead ships and recompute center and velocity.

        An emptied swarm keeps its last center; the simulation removes it
        before it is used again.

        Returns:
            Ships removed this tick.
        """
        dead = [m.ship for m in self._members if not m.ship.is_alive]
        if dead:
            self._members = [m for m in self._members if m.ship.is_alive]

        if self._members:
            self.prev_center = self.center
            self.center = self._centroid()
            self.velocity = self.center - self.prev_center

        return dead

    def _centroid(self) -> Vector2D:
        n = len(self._members)
        sx = sum(m.ship.pos.x for m in self._members)
        sy = sum(m.ship.pos.y for m in self._members)
        return Vector2D(sx / n, sy / n)

    def to_dict(self) -> dict:
        return {
            "center": list(self.center.to_tuple()),
            "target_pos": list(self.target_pos.to_tuple()),
            "direction": self.direction,
            "velocity": list(self.velocity.to_tuple()),
            "fleeing": self.fleeing,
            "ships": [ship.to_dict() for ship in self.ships],
        }
