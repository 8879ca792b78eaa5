#!/usr/bin/env python3
"""
Test Suite for the Repulsion Map

Tests cover:
1. Gaussian repulsors (centre penalty, falloff, wrap-around)
2. Best-angle selection and tie-breaking
3. Wall repulsion (raycast, strength cap)
4. Velocity continuity penalty
5. Determinism of the whole field
"""

import math

import numpy as np
import pytest
from numpy.testing import assert_array_almost_equal, assert_array_equal

from swarmsim.bounds import Bounds
from swarmsim.physics import Vector2D, angle_diff
from swarmsim.repulsion import (
    ANGLE_STEP,
    MAX_WALL_WEIGHT,
    NUM_ANGLES,
    RepulsionMap,
    bucket_to_angle,
)


# =============================================================================
# FIXTURES
# =============================================================================

@pytest.fixture
def rmap():
    """Fresh repulsion map."""
    return RepulsionMap()


@pytest.fixture
def arena():
    """1000 x 1000 arena."""
    return Bounds.from_size(1000, 1000)


# =============================================================================
# REPULSOR TESTS
# =============================================================================

class TestRepulsor:
    """Tests for add_repulsor."""

    def test_new_map_is_zero(self, rmap):
        assert_array_equal(rmap.weights, np.zeros(NUM_ANGLES))

    def test_center_bucket_gets_full_strength(self, rmap):
        rmap.add_repulsor(0.0, 2.0, 0.5)
        assert rmap.weights[0] == pytest.approx(-2.0)

    def test_penalty_falls_off_with_angle(self, rmap):
        rmap.add_repulsor(0.0, 1.0, 0.5)
        weights = rmap.weights
        # buckets 0..16 move away from the repulsor, penalty shrinks
        assert all(weights[i] < weights[i + 1] for i in range(16))

    def test_penalty_wraps_around(self, rmap):
        """Buckets just below 2π are close to angle 0."""
        rmap.add_repulsor(0.0, 1.0, 0.5)
        weights = rmap.weights
        assert weights[1] == pytest.approx(weights[NUM_ANGLES - 1])
        assert weights[2] == pytest.approx(weights[NUM_ANGLES - 2])

    def test_gaussian_value(self, rmap):
        sigma = 0.4
        rmap.add_repulsor(0.0, 1.0, sigma)
        d = ANGLE_STEP * 3
        expected = -math.exp(-d * d / (2 * sigma * sigma))
        assert rmap.weights[3] == pytest.approx(expected)

    def test_negative_angle_is_equivalent(self):
        a = RepulsionMap()
        b = RepulsionMap()
        a.add_repulsor(-math.pi / 2, 1.0, 0.5)
        b.add_repulsor(3 * math.pi / 2, 1.0, 0.5)
        assert_array_almost_equal(a.weights, b.weights)

    def test_repulsors_accumulate(self, rmap):
        rmap.add_repulsor(1.0, 1.0, 0.5)
        once = rmap.weights
        rmap.add_repulsor(1.0, 1.0, 0.5)
        assert_array_almost_equal(rmap.weights, once * 2)

    def test_weights_property_is_a_copy(self, rmap):
        w = rmap.weights
        w[0] = 100.0
        assert rmap.weights[0] == 0.0


# =============================================================================
# BEST ANGLE TESTS
# =============================================================================

class TestBestAngle:
    """Tests for best_angle selection."""

    def test_empty_map_picks_angle_zero(self, rmap):
        """All buckets tie; the first one wins."""
        assert rmap.best_angle() == 0.0

    @pytest.mark.parametrize("threat_bucket", [0, 5, 16, 32, 47, 63])
    def test_single_threat_flees_opposite(self, rmap, threat_bucket):
        threat_angle = bucket_to_angle(threat_bucket)
        rmap.add_repulsor(threat_angle, 1.0, 0.8)
        best = rmap.best_angle()
        assert abs(angle_diff(best, threat_angle)) == pytest.approx(math.pi)

    def test_two_threats_flee_between_gap(self, rmap):
        """Threats east and north: flee toward the south-west quadrant."""
        rmap.add_repulsor(0.0, 1.0, 0.8)
        rmap.add_repulsor(math.pi / 2, 1.0, 0.8)
        best = rmap.best_angle()
        assert abs(angle_diff(best, 5 * math.pi / 4)) <= ANGLE_STEP

    def test_stronger_threat_dominates(self, rmap):
        rmap.add_repulsor(0.0, 5.0, 0.8)
        rmap.add_repulsor(math.pi, 0.5, 0.8)
        best = rmap.best_angle()
        # pushed away from the strong threat at 0, sideways from the weak one
        assert abs(angle_diff(best, 0.0)) > math.pi / 2

    def test_tie_breaks_on_first_bucket(self, rmap):
        """A narrow repulsor at π leaves many buckets at exactly zero."""
        rmap.add_repulsor(math.pi, 1.0, 0.05)
        weights = rmap.weights
        assert weights[0] == weights[1] == 0.0
        assert rmap.best_bucket() == 0
        assert rmap.best_angle() == 0.0


# =============================================================================
# WALL REPULSION TESTS
# =============================================================================

class TestWallRepulsion:
    """Tests for add_wall_repulsion."""

    def test_no_walls_in_range(self, rmap, arena):
        rmap.add_wall_repulsion(Vector2D(500, 500), arena, detect_range=100, sigma=0.4)
        assert_array_equal(rmap.weights, np.zeros(NUM_ANGLES))

    def test_near_right_wall_avoids_east(self, rmap, arena):
        rmap.add_wall_repulsion(Vector2D(980, 500), arena, detect_range=100, sigma=0.4)
        weights = rmap.weights
        west = NUM_ANGLES // 2
        assert weights[0] < weights[west]
        best = rmap.best_angle()
        assert abs(angle_diff(best, 0.0)) > math.pi / 2

    def test_wall_weight_is_capped(self, rmap, arena):
        """Corner position: raw strengths are large but total is capped."""
        sigma = 0.01
        rmap.add_wall_repulsion(Vector2D(1, 1), arena, detect_range=500, sigma=sigma)
        # with a tiny sigma each repulsor only hits its own bucket,
        # so the total penalty equals the summed (scaled) strengths
        assert -rmap.weights.sum() == pytest.approx(MAX_WALL_WEIGHT, rel=1e-6)

    def test_weak_walls_are_not_amplified(self, rmap, arena):
        sigma = 0.01
        pos = Vector2D(500, 995)
        detect_range = 6.0
        rmap.add_wall_repulsion(pos, arena, detect_range=detect_range, sigma=sigma)

        raw_total = 0.0
        for bucket in range(NUM_ANGLES):
            dist = arena.raycast(pos, Vector2D.from_angle(bucket_to_angle(bucket)))
            if dist < detect_range:
                raw_total += 1.0 - dist / detect_range

        assert raw_total < MAX_WALL_WEIGHT
        assert -rmap.weights.sum() == pytest.approx(raw_total, rel=1e-6)


# =============================================================================
# VELOCITY PENALTY TESTS
# =============================================================================

class TestVelocityPenalty:
    """Tests for add_velocity_penalty."""

    def test_penalizes_reversal(self, rmap):
        rmap.add_velocity_penalty(Vector2D(3, 0), strength=1.0, sigma=0.5)
        weights = rmap.weights
        west = NUM_ANGLES // 2
        assert weights[west] == pytest.approx(-1.0)
        assert weights[0] > weights[west]

    def test_stationary_is_noop(self, rmap):
        rmap.add_velocity_penalty(Vector2D(0.001, 0.0), strength=1.0, sigma=0.5)
        assert_array_equal(rmap.weights, np.zeros(NUM_ANGLES))


# =============================================================================
# DETERMINISM
# =============================================================================

class TestDeterminism:

    def build(self, arena):
        rmap = RepulsionMap()
        rmap.add_repulsor(1.2, 2.0, 0.8)
        rmap.add_repulsor(4.0, 0.7, 0.8)
        rmap.add_wall_repulsion(Vector2D(60, 900), arena, detect_range=150, sigma=0.4)
        rmap.add_velocity_penalty(Vector2D(-1.0, 2.0), strength=0.5, sigma=1.0)
        return rmap

    def test_same_calls_same_result(self, arena):
        results = {self.build(arena).best_bucket() for _ in range(20)}
        assert len(results) == 1

    def test_same_weights(self, arena):
        assert_array_equal(self.build(arena).weights, self.build(arena).weights)
