"""Rays and ray/segment hit records"""

from __future__ import annotations

import math
from dataclasses import dataclass

from penpath.consts import RAY_NORMAL_EPSILON, RAY_T_EPSILON
from penpath.exceptions import GeometryError
from penpath.vector import Vector2


###############################################################################
# Ray2
###############################################################################
class Ray2:
    """A half-infinite ray starting at _position_ with a unit _direction_."""

    def __init__(self, position: Vector2, direction: Vector2):
        self.position: Vector2 = position
        self.direction: Vector2 = direction.normalized()

    def point_at_distance(self, distance: float) -> Vector2:
        """Point at _distance_ along the ray."""
        return self.position + self.direction * distance

    def shifted(self, distance: float) -> Ray2:
        """Ray with the same direction, starting _distance_ further along."""
        return Ray2(self.point_at_distance(distance), self.direction)

    def __repr__(self) -> str:
        return f"Ray2(position={self.position}, direction={self.direction})"


###############################################################################
# RayIntersection
###############################################################################
@dataclass
class RayIntersection:
    """
    Hit of a ray with a segment.

    Attributes:
        distance (float): distance from the ray origin to the hit point (>= 0)
        point (Vector2): the hit point
        normal (Vector2): unit normal of the segment at the hit, facing the ray origin
        wind (int): +1 or -1 winding contribution
        t (float): parametric value of the hit on the segment, clamped to [0, 1]
    """

    distance: float
    point: Vector2
    normal: Vector2
    wind: int
    t: float

    def __post_init__(self):
        if not math.isfinite(self.distance) or self.distance < 0:
            raise GeometryError(f"Invalid intersection distance: {self.distance}")
        if abs(self.normal.magnitude - 1) >= RAY_NORMAL_EPSILON:
            raise GeometryError(f"Intersection normal must be a unit vector: {self.normal}")
        if self.t < -RAY_T_EPSILON or self.t > 1 + RAY_T_EPSILON:
            raise GeometryError(f"Intersection t out of range: {self.t}")
        self.t = min(max(self.t, 0.0), 1.0)
