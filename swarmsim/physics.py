#!/usr/bin/env python3
"""
Planar Vector Math for the Swarm Simulation

Provides the 2D vector type used for every position, velocity and formation
offset in the simulation, plus the angle helpers shared by the repulsion
field and the swarm formation logic.

World coordinates:
- X grows to the right
- Y grows downward (screen space, matching the arena bounds)
- Angles are radians, measured from +X toward +Y
"""

from __future__ import annotations

import math
from dataclasses import dataclass


# =============================================================================
# CONSTANTS
# =============================================================================

# Magnitudes below this are treated as zero (no normalisation, snap to stop)
EPSILON = 1e-3

TAU = 2.0 * math.pi


# =============================================================================
# ANGLE HELPERS
# =============================================================================

def wrap_angle(angle: float) -> float:
    """Wrap an angle into [0, 2π)."""
    wrapped = math.fmod(angle, TAU)
    if wrapped < 0:
        wrapped += TAU
    # fmod of a tiny negative value can round back up to TAU
    if wrapped >= TAU:
        wrapped = 0.0
    return wrapped


def angle_diff(a: float, b: float) -> float:
    """
    Shortest signed angular distance from b to a.

    Returns:
        Difference in radians within [-π, π]
    """
    diff = wrap_angle(a - b)
    if diff > math.pi:
        diff -= TAU
    return diff


# =============================================================================
# VECTOR2D CLASS
# =============================================================================

@dataclass
class Vector2D:
    """
    2D vector for positions, velocities, offsets and directions.

    Units are arena units (positions) and arena units per tick (velocities).
    """
    x: float = 0.0
    y: float = 0.0

    def __add__(self, other: Vector2D) -> Vector2D:
        """Vector addition."""
        return Vector2D(self.x + other.x, self.y + other.y)

    def __sub__(self, other: Vector2D) -> Vector2D:
        """Vector subtraction."""
        return Vector2D(self.x - other.x, self.y - other.y)

    def __mul__(self, scalar: float) -> Vector2D:
        """Scalar multiplication."""
        return Vector2D(self.x * scalar, self.y * scalar)

    def __rmul__(self, scalar: float) -> Vector2D:
        """Right scalar multiplication."""
        return self.__mul__(scalar)

    def __truediv__(self, scalar: float) -> Vector2D:
        """Scalar division."""
        if scalar == 0:
            raise ValueError("Cannot divide vector by zero")
        return Vector2D(self.x / scalar, self.y / scalar)

    def __neg__(self) -> Vector2D:
        """Negation."""
        return Vector2D(-self.x, -self.y)

    def __eq__(self, other: object) -> bool:
        """Equality check with tolerance."""
        if not isinstance(other, Vector2D):
            return False
        eps = 1e-10
        return abs(self.x - other.x) < eps and abs(self.y - other.y) < eps

    def dot(self, other: Vector2D) -> float:
        """Dot product."""
        return self.x * other.x + self.y * other.y

    @property
    def magnitude(self) -> float:
        """Vector magnitude (length)."""
        return math.hypot(self.x, self.y)

    @property
    def magnitude_squared(self) -> float:
        """Squared magnitude (avoids sqrt for comparisons)."""
        return self.x * self.x + self.y * self.y

    def normalized(self) -> Vector2D:
        """
        Return unit vector in same direction.

        Vectors shorter than EPSILON come back as the zero vector instead of
        being divided by their (near-zero) length.
        """
        mag = self.magnitude
        if mag <= EPSILON:
            return Vector2D(0.0, 0.0)
        return Vector2D(self.x / mag, self.y / mag)

    def clamp_magnitude(self, max_length: float) -> Vector2D:
        """Return this vector shortened to at most max_length."""
        mag = self.magnitude
        if mag <= max_length or mag == 0:
            return Vector2D(self.x, self.y)
        scale = max_length / mag
        return Vector2D(self.x * scale, self.y * scale)

    def distance_to(self, other: Vector2D) -> float:
        """Distance to another point."""
        return math.hypot(self.x - other.x, self.y - other.y)

    def distance_squared_to(self, other: Vector2D) -> float:
        """Squared distance to another point."""
        dx = self.x - other.x
        dy = self.y - other.y
        return dx * dx + dy * dy

    def angle(self) -> float:
        """Heading of this vector in radians (atan2, range [-π, π])."""
        return math.atan2(self.y, self.x)

    def rotated(self, angle_rad: float) -> Vector2D:
        """Rotate counter-clockwise (from +X toward +Y) by angle_rad."""
        cos_a = math.cos(angle_rad)
        sin_a = math.sin(angle_rad)
        return Vector2D(
            self.x * cos_a - self.y * sin_a,
            self.x * sin_a + self.y * cos_a
        )

    def copy(self) -> Vector2D:
        """Independent copy."""
        return Vector2D(self.x, self.y)

    def to_tuple(self) -> tuple[float, float]:
        """Convert to tuple."""
        return (self.x, self.y)

    @classmethod
    def from_tuple(cls, t: tuple[float, float]) -> Vector2D:
        """Create from tuple (or any two-item sequence)."""
        return cls(float(t[0]), float(t[1]))

    @classmethod
    def from_angle(cls, angle_rad: float, length: float = 1.0) -> Vector2D:
        """Vector of the given length pointing along angle_rad."""
        return cls(math.cos(angle_rad) * length, math.sin(angle_rad) * length)

    @classmethod
    def zero(cls) -> Vector2D:
        """Zero vector."""
        return cls(0.0, 0.0)

    def __repr__(self) -> str:
        return f"Vector2D({self.x:.6g}, {self.y:.6g})"
