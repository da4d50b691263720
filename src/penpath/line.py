"""Straight line segments"""

from __future__ import annotations

from typing import TYPE_CHECKING, List, Optional, Tuple

import numpy as np
from numpy.typing import NDArray

from penpath.bounds import Bounds2
from penpath.consts import (
    ARC_LENGTH_CURVE_EPSILON,
    ARC_LENGTH_DISTANCE_EPSILON,
    ARC_LENGTH_MAX_LEVELS,
    LINE_INTERSECTION_EPSILON,
    TWO_PI,
)
from penpath.ray import Ray2, RayIntersection
from penpath.segment import ClosestToPointResult, PiecewiseLinearOptions, Segment, polar_point_map
from penpath.svgpath import svg_number
from penpath.vector import Vector2

if TYPE_CHECKING:
    from penpath.context import PathContext
    from penpath.matrix import Matrix3


###############################################################################
# Line
###############################################################################
class Line(Segment):
    """A straight segment from _start_ to _end_. Degenerate iff start == end."""

    SEGMENT_TYPE = "Line"

    def __init__(self, start: Vector2, end: Vector2):
        self._start = start
        self._end = end
        tangent = (end - start).normalized_or_zero()
        self._start_tangent = tangent
        self._end_tangent = tangent
        self._bounds = Bounds2.point(start).with_point(end)

    def position_at(self, t: float) -> Vector2:
        return self._start + (self._end - self._start) * t

    def positions_at(self, ts: NDArray[np.float64]) -> NDArray[np.float64]:
        ts = np.asarray(ts, dtype=np.float64)[:, np.newaxis]
        start = self._start.to_array()
        return start + (self._end.to_array() - start) * ts

    def tangent_at(self, t: float) -> Vector2:
        """The constant derivative end - start."""
        return self._end - self._start

    def curvature_at(self, t: float) -> float:
        """Lines are straight, curvature is 0."""
        return 0.0

    def get_interior_extrema_ts(self) -> List[float]:
        return []

    def subdivided(self, t: float) -> List[Segment]:
        point = self.position_at(t)
        return [Line(self._start, point), Line(point, self._end)]

    def get_nondegenerate_segments(self) -> List[Segment]:
        if self._start == self._end:
            return []
        return [self]

    def reversed(self) -> Line:
        return Line(self._end, self._start)

    def reparameterized(self, a: float, b: float) -> Line:
        """Line whose t maps to a*t + b of this line."""
        return Line(self.position_at(b), self.position_at(a + b))

    def explicit_closest_to_point(self, point: Vector2) -> Tuple[Vector2, float, float]:
        """
        Closest point on the line to _point_.

        Returns:
            Tuple[Vector2, float, float]: (closest point, its t value, squared distance)
        """
        delta = self._end - self._start
        length_squared = delta.magnitude_squared
        if length_squared == 0:
            t = 0.0
        else:
            t = min(max((point - self._start).dot(delta) / length_squared, 0.0), 1.0)
        closest = self.position_at(t)
        return closest, t, closest.distance_squared(point)

    def get_closest_points(self, point: Vector2) -> List[ClosestToPointResult]:
        closest, t, distance_squared = self.explicit_closest_to_point(point)
        return [ClosestToPointResult(self, t, closest, distance_squared)]

    def slice(self, t0: float, t1: float) -> Line:
        self._check_slice_range(t0, t1)
        return self.reparameterized(t1 - t0, t0)

    def polar_to_cartesian(self, options: Optional[PiecewiseLinearOptions] = None) -> List[Segment]:
        """
        Exact for constant angle (a radial line) and constant radius (an arc around the origin),
        a line approximation otherwise.
        """
        from penpath.arc import Arc  # pylint: disable=import-outside-toplevel

        start = self._start
        end = self._end
        if start.x == end.x:
            return [Line(polar_point_map(start), polar_point_map(end))]
        if start.y == end.y and abs(end.x - start.x) <= TWO_PI:
            return [Arc(Vector2.ZERO, start.y, start.x, end.x, start.x > end.x)]
        return super().polar_to_cartesian(options)

    def stroke_left(self, line_width: float) -> List[Segment]:
        offset = self._end_tangent.perpendicular.negated() * (line_width / 2)
        return [Line(self._start + offset, self._end + offset)]

    def stroke_right(self, line_width: float) -> List[Segment]:
        offset = self._start_tangent.perpendicular * (line_width / 2)
        return [Line(self._end + offset, self._start + offset)]

    def intersection(self, ray: Ray2) -> List[RayIntersection]:
        start = self._start
        end = self._end
        diff = end - start
        if diff.magnitude_squared == 0:
            return []

        direction = ray.direction
        position = ray.position
        denom = direction.y * diff.x - direction.x * diff.y
        if denom == 0:
            return []

        # t along the line, s along the ray
        t = (direction.x * (start.y - position.y) - direction.y * (start.x - position.x)) / denom
        if t < 0 or t >= 1:
            return []
        s = (diff.x * (start.y - position.y) - diff.y * (start.x - position.x)) / denom
        if s < LINE_INTERSECTION_EPSILON:
            return []

        perp = diff.perpendicular
        normal = (perp.negated() if perp.dot(direction) > 0 else perp).normalized()
        wind = 1 if direction.perpendicular.dot(diff) < 0 else -1
        return [RayIntersection(s, self.position_at(t), normal, wind, t)]

    def get_signed_area_fragment(self) -> float:
        return 0.5 * (self._start.x * self._end.y - self._start.y * self._end.x)

    def get_arc_length(
        self,
        distance_epsilon: float = ARC_LENGTH_DISTANCE_EPSILON,
        curve_epsilon: float = ARC_LENGTH_CURVE_EPSILON,
        max_levels: int = ARC_LENGTH_MAX_LEVELS,
    ) -> float:
        """Exact length, the tolerances are not needed."""
        return self._start.distance(self._end)

    def get_svg_path_fragment(self) -> str:
        return f"L {svg_number(self._end.x)} {svg_number(self._end.y)}"

    def write_to_context(self, context: PathContext) -> None:
        context.line_to(self._end.x, self._end.y)

    def transformed(self, matrix: Matrix3) -> Line:
        return Line(matrix.times_vector2(self._start), matrix.times_vector2(self._end))

    def _key(self) -> Tuple:
        return (self._start, self._end)

    def to_dict(self) -> dict:
        return {
            "type": self.SEGMENT_TYPE,
            "start_x": self._start.x,
            "start_y": self._start.y,
            "end_x": self._end.x,
            "end_y": self._end.y,
        }

    @classmethod
    def _from_dict(cls, data: dict) -> Line:
        return cls(Vector2(data["start_x"], data["start_y"]), Vector2(data["end_x"], data["end_y"]))

    def __repr__(self) -> str:
        return f"Line(start={self._start}, end={self._end})"
