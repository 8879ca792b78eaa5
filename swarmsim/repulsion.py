#!/usr/bin/env python3
"""
Repulsion Map for flee-direction selection.

A swarm under threat scores a fixed set of candidate headings. Every threat,
nearby wall and the swarm's own momentum subtract a gaussian-shaped penalty
from the headings around them; the heading with the least accumulated
penalty is where the swarm flees.

This is a greedy local field, not a path planner: it reacts to what is
visible this tick and nothing else.
"""

from __future__ import annotations

import math

import numpy as np

from .bounds import Bounds
from .physics import EPSILON, TAU, Vector2D, wrap_angle


# =============================================================================
# CONSTANTS
# =============================================================================

NUM_ANGLES = 64
ANGLE_STEP = TAU / NUM_ANGLES

# Upper limit on the summed wall repulsor strength
MAX_WALL_WEIGHT = 1.5

_BUCKET_ANGLES = np.arange(NUM_ANGLES, dtype=np.float64) * ANGLE_STEP


def bucket_to_angle(bucket: int) -> float:
    """Angle in radians of a bucket index."""
    return float(bucket) * ANGLE_STEP


# =============================================================================
# REPULSION MAP
# =============================================================================

class RepulsionMap:
    """
    Directional weights over NUM_ANGLES evenly spaced headings.

    All weights start at zero. Repulsors only ever subtract, so the best
    heading is the one with the highest (least negative) weight.

    Usage:
        rmap = RepulsionMap()
        rmap.add_repulsor(bearing_to_enemy, strength=2.0, sigma=0.8)
        rmap.add_wall_repulsion(pos, bounds, detect_range=150.0, sigma=0.4)
        heading = rmap.best_angle()
    """

    def __init__(self) -> None:
        self._weights = np.zeros(NUM_ANGLES, dtype=np.float64)

    @property
    def weights(self) -> np.ndarray:
        """Copy of the current bucket weights."""
        return self._weights.copy()

    def add_repulsor(self, angle: float, strength: float, sigma: float) -> None:
        """
        Subtract a gaussian penalty centred on angle from every bucket.

        Args:
            angle: Centre of the repulsor in radians (any range).
            strength: Penalty at the centre bucket.
            sigma: Angular width of the falloff in radians.
        """
        # shortest signed distance, wrapped to [-π, π]
        diff = np.mod(_BUCKET_ANGLES - angle, TAU)
        diff = np.where(diff > math.pi, diff - TAU, diff)
        self._weights -= strength * np.exp(-(diff * diff) / (2.0 * sigma * sigma))

    def add_wall_repulsion(
        self,
        pos: Vector2D,
        bounds: Bounds,
        detect_range: float,
        sigma: float
    ) -> None:
        """
        Penalise headings that run into a nearby arena wall.

        A ray is cast along every bucket heading. Walls hit within
        detect_range add a repulsor of strength 1 - dist/detect_range
        (1.0 touching the wall, 0.0 at the edge of the range). When the raw
        strengths sum above MAX_WALL_WEIGHT they are scaled down to that
        total so walls cannot drown out real threats.
        """
        wall_repulsors: list[tuple[float, float]] = []
        total_strength = 0.0

        for bucket in range(NUM_ANGLES):
            angle = bucket_to_angle(bucket)
            dist = bounds.raycast(pos, Vector2D.from_angle(angle))
            if dist < detect_range:
                strength = 1.0 - dist / detect_range
                wall_repulsors.append((angle, strength))
                total_strength += strength

        scale = 1.0
        if total_strength > MAX_WALL_WEIGHT:
            scale = MAX_WALL_WEIGHT / total_strength

        for angle, strength in wall_repulsors:
            self.add_repulsor(angle, strength * scale, sigma)

    def add_velocity_penalty(self, velocity: Vector2D, strength: float, sigma: float) -> None:
        """Penalise reversing direction. No-op for a (near) stationary swarm."""
        if velocity.magnitude_squared < EPSILON:
            return
        opposite = wrap_angle(velocity.angle() + math.pi)
        self.add_repulsor(opposite, strength, sigma)

    def best_bucket(self) -> int:
        """Index of the highest weight; the lowest index wins ties."""
        return int(np.argmax(self._weights))

    def best_angle(self) -> float:
        """Heading in radians with the least repulsion."""
        return bucket_to_angle(self.best_bucket())
