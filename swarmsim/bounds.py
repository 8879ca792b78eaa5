"""
Arena bounds for the swarm simulation.

The arena is an axis-aligned rectangle. Swarms use it to keep flee targets
inside the playing field and the repulsion map raycasts against its edges.
"""

from __future__ import annotations

import math
from dataclasses import dataclass

from .physics import Vector2D


@dataclass(frozen=True)
class Bounds:
    """
    Axis-aligned arena rectangle.

    Attributes:
        min: Corner with the smallest x and y.
        max: Corner with the largest x and y.
    """
    min: Vector2D
    max: Vector2D

    def __post_init__(self) -> None:
        if not (self.min.x < self.max.x and self.min.y < self.max.y):
            raise ValueError(
                f"Invalid bounds: min {self.min} must be strictly below max {self.max}"
            )

    @classmethod
    def from_size(cls, width: float, height: float) -> Bounds:
        """Arena anchored at the origin with the given size."""
        return cls(Vector2D(0.0, 0.0), Vector2D(float(width), float(height)))

    @property
    def width(self) -> float:
        return self.max.x - self.min.x

    @property
    def height(self) -> float:
        return self.max.y - self.min.y

    @property
    def center(self) -> Vector2D:
        return Vector2D(
            (self.min.x + self.max.x) / 2,
            (self.min.y + self.max.y) / 2
        )

    def contains(self, pos: Vector2D) -> bool:
        """Check whether a point lies inside (or on the edge of) the arena."""
        return (self.min.x <= pos.x <= self.max.x and
                self.min.y <= pos.y <= self.max.y)

    def clamp(self, pos: Vector2D, margin: float = 0.0) -> Vector2D:
        """
        Clamp a point into the arena shrunk by margin on every side.

        If the margin is larger than half the arena on an axis, that axis
        collapses onto the arena center.
        """
        lo_x, hi_x = self.min.x + margin, self.max.x - margin
        lo_y, hi_y = self.min.y + margin, self.max.y - margin
        if lo_x > hi_x:
            lo_x = hi_x = (self.min.x + self.max.x) / 2
        if lo_y > hi_y:
            lo_y = hi_y = (self.min.y + self.max.y) / 2
        return Vector2D(
            max(lo_x, min(hi_x, pos.x)),
            max(lo_y, min(hi_y, pos.y))
        )

    def distance_to_wall(self, pos: Vector2D) -> float:
        """Distance from pos to the closest edge (negative when outside)."""
        return min(
            pos.x - self.min.x,
            self.max.x - pos.x,
            pos.y - self.min.y,
            self.max.y - pos.y
        )

    def raycast(self, pos: Vector2D, direction: Vector2D) -> float:
        """
        Distance along direction from pos to the first wall it hits.

        Args:
            pos: Ray origin.
            direction: Unit direction of the ray.

        Returns:
            Distance to the closest wall intersection in front of the ray,
            or math.inf if none (zero direction).
        """
        min_dist = math.inf

        if direction.x < 0:
            t = (self.min.x - pos.x) / direction.x
            if t > 0:
                min_dist = min(min_dist, t)
        elif direction.x > 0:
            t = (self.max.x - pos.x) / direction.x
            if t > 0:
                min_dist = min(min_dist, t)

        if direction.y < 0:
            t = (self.min.y - pos.y) / direction.y
            if t > 0:
                min_dist = min(min_dist, t)
        elif direction.y > 0:
            t = (self.max.y - pos.y) / direction.y
            if t > 0:
                min_dist = min(min_dist, t)

        return min_dist

    def to_dict(self) -> dict:
        return {"min": list(self.min.to_tuple()), "max": list(self.max.to_tuple())}
