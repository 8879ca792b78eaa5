"""
Scenario spawning helpers.

Random battle setups for headless runs and tests: swarms dropped at random
interior points at startup, and reinforcements arriving from the arena edges
whenever the swarm count falls below a target.

All randomness goes through the random.Random passed in, so a seeded
generator reproduces the same battle.
"""

from __future__ import annotations

import random
from typing import Optional

from .bounds import Bounds
from .physics import Vector2D
from .simulation import Simulation


# Default ship count range for random swarms (inclusive)
MIN_SWARM_SHIPS = 2
MAX_SWARM_SHIPS = 30

# Distance kept from the walls for interior spawns
SPAWN_MARGIN = 100.0


def random_interior_position(
    bounds: Bounds,
    rng: random.Random,
    margin: float = SPAWN_MARGIN
) -> Vector2D:
    """Uniform random point at least margin away from every wall."""
    inner = bounds.clamp(bounds.min, margin)
    outer = bounds.clamp(bounds.max, margin)
    return Vector2D(
        rng.uniform(inner.x, outer.x),
        rng.uniform(inner.y, outer.y)
    )


def random_edge_position(bounds: Bounds, rng: random.Random) -> Vector2D:
    """Uniform random point on one of the four arena edges."""
    edge = rng.randrange(4)
    if edge == 0:
        return Vector2D(rng.uniform(bounds.min.x, bounds.max.x), bounds.min.y)
    if edge == 1:
        return Vector2D(rng.uniform(bounds.min.x, bounds.max.x), bounds.max.y)
    if edge == 2:
        return Vector2D(bounds.min.x, rng.uniform(bounds.min.y, bounds.max.y))
    return Vector2D(bounds.max.x, rng.uniform(bounds.min.y, bounds.max.y))


def random_ship_count(
    rng: random.Random,
    min_ships: int = MIN_SWARM_SHIPS,
    max_ships: int = MAX_SWARM_SHIPS
) -> int:
    if min_ships < 1 or max_ships < min_ships:
        raise ValueError(f"Invalid ship count range {min_ships}..{max_ships}")
    return rng.randint(min_ships, max_ships)


def populate(
    sim: Simulation,
    count: Optional[int] = None,
    rng: Optional[random.Random] = None,
    min_ships: int = MIN_SWARM_SHIPS,
    max_ships: int = MAX_SWARM_SHIPS
) -> list[int]:
    """
    Spawn swarms at random interior positions.

    Args:
        sim: Simulation to populate.
        count: Number of swarms (defaults to config.init_swarms), capped by
               the free swarm slots.
        rng: Random source (defaults to the simulation's seeded rng).

    Returns:
        Indices of the spawned swarms.
    """
    rng = rng or sim.rng
    if count is None:
        count = sim.config.init_swarms
    free = sim.config.max_swarms - len(sim.swarms())
    count = max(0, min(count, free))

    return [
        sim.spawn_swarm(
            random_interior_position(sim.bounds(), rng),
            random_ship_count(rng, min_ships, max_ships)
        )
        for _ in range(count)
    ]


def replenish(
    sim: Simulation,
    target_count: int,
    rng: Optional[random.Random] = None,
    min_ships: int = MIN_SWARM_SHIPS,
    max_ships: int = MAX_SWARM_SHIPS
) -> list[int]:
    """
    Respawn swarms at the arena edges until target_count swarms exist.

    Returns:
        Indices of the spawned swarms.
    """
    rng = rng or sim.rng
    target_count = min(target_count, sim.config.max_swarms)

    spawned = []
    while len(sim.swarms()) < target_count:
        spawned.append(sim.spawn_swarm(
            random_edge_position(sim.bounds(), rng),
            random_ship_count(rng, min_ships, max_ships)
        ))
    return spawned
