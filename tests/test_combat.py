#!/usr/bin/env python3
"""
Test Suite for the Lock-On Fight Protocol

Tests cover:
1. Lock acquisition (nearest enemy in aim range)
2. Firing after the required lock time (stationary and moving targets)
3. Lock release (enemy gone, out of range, over-allocated)
4. Contention bound: no more locks on an enemy than its health
5. Render hints (fired_at, lock_target_pos)
"""

import pytest

from swarmsim.config import ShipConfig, SwarmConfig
from swarmsim.physics import Vector2D
from swarmsim.ship import Ship
from swarmsim.swarm import Swarm


# =============================================================================
# FIXTURES
# =============================================================================

@pytest.fixture
def ship_config():
    """fire_delay 10, health 2, aim range 50."""
    return ShipConfig()


@pytest.fixture
def lone_attacker(ship_config):
    """A single-ship swarm with its ship exactly at (100, 100)."""
    return Swarm.spawn(Vector2D(100, 100), 1, SwarmConfig(scale=0.0), ship_config)


@pytest.fixture
def pack(ship_config):
    """Ten ships packed around (100, 100)."""
    return Swarm.spawn(Vector2D(100, 100), 10, SwarmConfig(), ship_config)


def fight_until_hit(swarm, enemies, max_passes=100):
    """
    Run fight passes until something is hit.

    Returns:
        (pass number of the first hit, hits of that pass)
    """
    for n in range(1, max_passes + 1):
        hits = swarm.fight(enemies)
        if hits:
            return n, hits
    return -1, []


# =============================================================================
# ACQUISITION TESTS
# =============================================================================

class TestAcquisition:
    """Tests for picking lock targets."""

    def test_locks_on_first_pass(self, lone_attacker, ship_config):
        enemy = Ship.spawn(Vector2D(110, 100), ship_config)
        hits = lone_attacker.fight([enemy])

        ship = lone_attacker.ships[0]
        assert hits == []
        assert ship.lock_target == enemy.id
        assert ship.lock_progress == 0
        assert ship.lock_target_pos == enemy.pos

    def test_nearest_enemy_wins(self, lone_attacker, ship_config):
        far = Ship.spawn(Vector2D(130, 100), ship_config)
        near = Ship.spawn(Vector2D(100, 110), ship_config)
        lone_attacker.fight([far, near])
        assert lone_attacker.ships[0].lock_target == near.id

    def test_out_of_range_ignored(self, lone_attacker, ship_config):
        enemy = Ship.spawn(Vector2D(100 + ship_config.aim_range + 1, 100), ship_config)
        lone_attacker.fight([enemy])
        assert lone_attacker.ships[0].lock_target is None

    def test_aim_range_is_inclusive(self, lone_attacker, ship_config):
        enemy = Ship.spawn(Vector2D(100 + ship_config.aim_range, 100), ship_config)
        lone_attacker.fight([enemy])
        assert lone_attacker.ships[0].lock_target == enemy.id

    def test_no_enemies(self, lone_attacker):
        assert lone_attacker.fight([]) == []
        assert lone_attacker.ships[0].lock_target is None


# =============================================================================
# FIRING TESTS
# =============================================================================

class TestFiring:
    """Tests for lock progress and firing."""

    def test_stationary_target_fire_delay(self, lone_attacker, ship_config):
        """Lock on pass 1, progress 1..fire_delay on the next passes."""
        enemy = Ship.spawn(Vector2D(110, 100), ship_config)
        n, hits = fight_until_hit(lone_attacker, [enemy])
        assert n == ship_config.fire_delay + 1
        assert hits == [enemy.id]

    def test_fast_target_takes_longer(self, lone_attacker, ship_config):
        enemy = Ship(config=ship_config, pos=Vector2D(110, 100),
                     vel=Vector2D(0, ship_config.max_speed))
        n, hits = fight_until_hit(lone_attacker, [enemy])
        assert n == int(ship_config.fire_delay * ship_config.lock_time_factor) + 1
        assert hits == [enemy.id]

    def test_zero_fire_delay_fires_next_pass(self, ship_config):
        cfg = ShipConfig(fire_delay=0)
        swarm = Swarm.spawn(Vector2D(100, 100), 1, SwarmConfig(scale=0.0), cfg)
        enemy = Ship.spawn(Vector2D(110, 100), cfg)
        assert swarm.fight([enemy]) == []
        assert swarm.fight([enemy]) == [enemy.id]

    def test_relocks_after_firing(self, lone_attacker, ship_config):
        enemy = Ship.spawn(Vector2D(110, 100), ship_config)
        fight_until_hit(lone_attacker, [enemy])

        ship = lone_attacker.ships[0]
        # health 2 and one pending hit: one more lock is still useful
        assert ship.lock_target == enemy.id
        assert ship.lock_progress == 0

    def test_relock_is_flagged_as_new(self, lone_attacker, ship_config):
        enemy = Ship.spawn(Vector2D(110, 100), ship_config)
        lone_attacker.fight([enemy])
        ship = lone_attacker.ships[0]
        assert ship.lock_acquired

        fight_until_hit(lone_attacker, [enemy])
        assert ship.lock_target == enemy.id
        assert ship.lock_acquired

        lone_attacker.fight([enemy])
        assert not ship.lock_acquired

    def test_no_relock_on_doomed_enemy(self, pack, ship_config):
        """Two hits pending on a 2-health enemy: nobody locks it again."""
        enemy = Ship.spawn(Vector2D(100, 100), ship_config)
        n, hits = fight_until_hit(pack, [enemy])

        assert n == ship_config.fire_delay + 1
        assert hits == [enemy.id, enemy.id]
        assert pack.locks_by_target()[enemy.id] == 0

    def test_fired_at_hint(self, lone_attacker, ship_config):
        enemy = Ship.spawn(Vector2D(110, 100), ship_config)
        fight_until_hit(lone_attacker, [enemy])

        ship = lone_attacker.ships[0]
        assert ship.fired_at == enemy.pos
        assert ship.fired_target == enemy.id

        lone_attacker.fight([enemy])
        assert ship.fired_at is None
        assert ship.fired_target is None

    def test_enemies_are_not_mutated(self, lone_attacker, ship_config):
        enemy = Ship.spawn(Vector2D(110, 100), ship_config)
        fight_until_hit(lone_attacker, [enemy])
        assert enemy.health == ship_config.health
        assert enemy.lock_target is None


# =============================================================================
# RELEASE TESTS
# =============================================================================

class TestRelease:
    """Tests for dropping locks."""

    def test_release_when_enemy_leaves_range(self, lone_attacker, ship_config):
        enemy = Ship.spawn(Vector2D(110, 100), ship_config)
        lone_attacker.fight([enemy])
        lone_attacker.fight([enemy])

        enemy.pos = Vector2D(300, 100)
        assert lone_attacker.fight([enemy]) == []
        assert lone_attacker.ships[0].lock_target is None
        assert lone_attacker.ships[0].lock_progress == 0

    def test_release_when_enemy_vanishes(self, lone_attacker, ship_config):
        enemy = Ship.spawn(Vector2D(110, 100), ship_config)
        lone_attacker.fight([enemy])
        lone_attacker.fight([])
        assert lone_attacker.ships[0].lock_target is None

    def test_switch_when_enemy_vanishes(self, lone_attacker, ship_config):
        first = Ship.spawn(Vector2D(110, 100), ship_config)
        second = Ship.spawn(Vector2D(120, 100), ship_config)
        lone_attacker.fight([first, second])
        lone_attacker.fight([second])
        assert lone_attacker.ships[0].lock_target == second.id

    def test_release_excess_locks_when_health_drops(self, pack, ship_config):
        enemy = Ship.spawn(Vector2D(100, 100), ship_config)
        pack.fight([enemy])
        assert pack.locks_by_target()[enemy.id] == 2

        enemy.take_hit()
        pack.fight([enemy])
        assert pack.locks_by_target()[enemy.id] == 1


# =============================================================================
# CONTENTION TESTS
# =============================================================================

class TestContention:
    """Locks on an enemy never exceed its remaining health."""

    def test_single_enemy(self, pack, ship_config):
        enemy = Ship.spawn(Vector2D(100, 100), ship_config)
        pack.fight([enemy])
        locks = pack.locks_by_target()
        assert locks[enemy.id] == ship_config.health
        assert sum(locks.values()) == ship_config.health

    def test_spread_over_enemies(self, pack, ship_config):
        enemies = [
            Ship.spawn(Vector2D(100, 100), ship_config),
            Ship.spawn(Vector2D(105, 100), ship_config),
            Ship.spawn(Vector2D(95, 100), ship_config),
        ]
        for _ in range(30):
            pack.fight(enemies)
            locks = pack.locks_by_target()
            for enemy in enemies:
                assert locks[enemy.id] <= enemy.health

    def test_bound_holds_with_damaged_enemy(self, pack, ship_config):
        enemy = Ship.spawn(Vector2D(100, 100), ship_config)
        enemy.take_hit()
        pack.fight([enemy])
        assert pack.locks_by_target()[enemy.id] == 1

    def test_each_hit_counts(self, ship_config):
        """A tough enemy can take several hits in the same pass."""
        tough = ShipConfig(health=5)
        swarm = Swarm.spawn(Vector2D(100, 100), 8, SwarmConfig(), ship_config)
        enemy = Ship.spawn(Vector2D(100, 100), tough)
        n, hits = fight_until_hit(swarm, [enemy])
        assert hits == [enemy.id] * 5
