"""Circular arc segments"""

from __future__ import annotations

import math
from typing import TYPE_CHECKING, List, Tuple, Union

import numpy as np
from numpy.typing import NDArray

from penpath.bounds import Bounds2
from penpath.consts import (
    ARC_ANGLE_SNAP_EPSILON,
    ARC_LENGTH_CURVE_EPSILON,
    ARC_LENGTH_DISTANCE_EPSILON,
    ARC_LENGTH_MAX_LEVELS,
    EXTREMA_EPSILON,
    SVG_FULL_CIRCLE_EPSILON,
    TWO_PI,
)
from penpath.exceptions import ArcAngleRangeError, GeometryError
from penpath.geom_math import GeomMath
from penpath.line import Line
from penpath.ray import Ray2, RayIntersection
from penpath.segment import Segment
from penpath.svgpath import svg_number
from penpath.vector import Vector2

if TYPE_CHECKING:
    from penpath.context import PathContext
    from penpath.matrix import Matrix3

# relative tolerance for treating a matrix as a similarity (rotation + uniform scale)
_SIMILARITY_EPSILON: float = 1.0e-12

# angles where x or y of a circle is extremal
_AXIS_ANGLES: Tuple[float, ...] = (0.0, math.pi / 2, math.pi, 3 * math.pi / 2)


def validate_angle_range(start_angle: float, end_angle: float, anticlockwise: bool) -> None:
    """
    Reject arcs sweeping more than one full turn in their direction of travel.

    Raises:
        GeometryError: for non-finite angles
        ArcAngleRangeError: for ranges outside (-2*pi, 2*pi] relative to the direction
    """
    if not (math.isfinite(start_angle) and math.isfinite(end_angle)):
        raise GeometryError(f"Arc angles must be finite: start={start_angle}, end={end_angle}")
    sweep = start_angle - end_angle if anticlockwise else end_angle - start_angle
    if sweep <= -TWO_PI or sweep > TWO_PI:
        raise ArcAngleRangeError(start_angle, end_angle, anticlockwise)


def compute_actual_end_angle(start_angle: float, end_angle: float, anticlockwise: bool) -> float:
    """End angle such that t in [0, 1] sweeps monotonically from the start angle to it."""
    if anticlockwise:
        if start_angle > end_angle:
            return end_angle
        if start_angle < end_angle:
            return end_angle - TWO_PI
        return start_angle
    if start_angle < end_angle:
        return end_angle
    if start_angle > end_angle:
        return end_angle + TWO_PI
    return start_angle


def compute_angle_difference(start_angle: float, end_angle: float, anticlockwise: bool) -> float:
    """Swept angle in [0, 2*pi]."""
    difference = start_angle - end_angle if anticlockwise else end_angle - start_angle
    if difference < 0:
        difference += TWO_PI
    return difference


###############################################################################
# Arc
###############################################################################
class Arc(Segment):
    """
    Circular arc around _center_ from _start_angle_ to _end_angle_.

    anticlockwise=False sweeps in the direction of increasing angle, anticlockwise=True
    in the direction of decreasing angle (canvas convention). A negative radius is
    normalized by flipping its sign and rotating both angles by pi.
    """

    SEGMENT_TYPE = "Arc"

    def __init__(
        self,
        center: Vector2,
        radius: float,
        start_angle: float,
        end_angle: float,
        anticlockwise: bool = False,
    ):
        if not (center.is_finite() and math.isfinite(radius)):
            raise GeometryError(f"Arc center and radius must be finite: {center}, {radius}")
        if radius < 0:
            radius = -radius
            start_angle += math.pi
            end_angle += math.pi
        validate_angle_range(start_angle, end_angle, anticlockwise)

        self._center = center
        self._radius = float(radius)
        self._start_angle = float(start_angle)
        self._end_angle = float(end_angle)
        self._anticlockwise = bool(anticlockwise)

        self._actual_end_angle = compute_actual_end_angle(self._start_angle, self._end_angle, self._anticlockwise)
        self._angle_difference = compute_angle_difference(self._start_angle, self._end_angle, self._anticlockwise)

        self._start = self.position_at_angle(self._start_angle)
        self._end = self.position_at_angle(self._end_angle)
        self._start_tangent = self.tangent_at_angle(self._start_angle)
        self._end_tangent = self.tangent_at_angle(self._end_angle)
        self._bounds = self._compute_bounds()

    @classmethod
    def create_from_points(cls, start: Vector2, middle: Vector2, end: Vector2) -> Union[Arc, Line]:
        """
        Arc from _start_ through _middle_ to _end_.

        Returns:
            Union[Arc, Line]: the arc, or a Line from start to end if the points are collinear
        """
        center = GeomMath.circle_center_from_points(start, middle, end)
        if center is None:
            return Line(start, end)
        # counter-clockwise point order means increasing angles
        anticlockwise = GeomMath.triangle_area_signed(start, middle, end) < 0
        return cls(center, center.distance(start), (start - center).angle, (end - center).angle, anticlockwise)

    ###########################################################################
    # Properties
    ###########################################################################
    @property
    def center(self) -> Vector2:
        """Vector2: Center of the circle."""
        return self._center

    @property
    def radius(self) -> float:
        """float: Radius (always >= 0 after normalization)."""
        return self._radius

    @property
    def start_angle(self) -> float:
        """float: Start angle in radians."""
        return self._start_angle

    @property
    def end_angle(self) -> float:
        """float: End angle in radians as given."""
        return self._end_angle

    @property
    def anticlockwise(self) -> bool:
        """bool: True if the arc sweeps towards decreasing angles."""
        return self._anticlockwise

    @property
    def actual_end_angle(self) -> float:
        """float: End angle reached by sweeping monotonically from the start angle."""
        return self._actual_end_angle

    @property
    def angle_difference(self) -> float:
        """float: Swept angle in [0, 2*pi]."""
        return self._angle_difference

    def is_full_perimeter(self) -> bool:
        """True if the arc covers the whole circle."""
        return self._angle_difference >= TWO_PI

    ###########################################################################
    # Angles
    ###########################################################################
    def angle_at(self, t: float) -> float:
        """Angle at parametric value _t_."""
        return self._start_angle + (self._actual_end_angle - self._start_angle) * t

    def position_at_angle(self, angle: float) -> Vector2:
        """Point of the circle at _angle_."""
        return self._center + Vector2.create_polar(self._radius, angle)

    def tangent_at_angle(self, angle: float) -> Vector2:
        """Unit tangent at _angle_ in the direction of travel."""
        normal = Vector2.create_polar(1.0, angle)
        return normal.perpendicular if self._anticlockwise else normal.perpendicular.negated()

    def contains_angle(self, angle: float) -> bool:
        """True if _angle_ (any multiple of 2*pi) lies within the swept range."""
        normalized = angle - self._end_angle if self._anticlockwise else angle - self._start_angle
        return GeomMath.modulo_between_down(normalized, 0, TWO_PI) <= self._angle_difference

    def map_angle(self, angle: float) -> float:
        """Equivalent of _angle_ within the range between start angle and actual end angle."""
        if abs(GeomMath.modulo_between_down(angle - self._start_angle, -math.pi, math.pi)) < ARC_ANGLE_SNAP_EPSILON:
            return self._start_angle
        if (
            abs(GeomMath.modulo_between_down(angle - self._actual_end_angle, -math.pi, math.pi))
            < ARC_ANGLE_SNAP_EPSILON
        ):
            return self._actual_end_angle
        if self._start_angle > self._actual_end_angle:
            return GeomMath.modulo_between_up(angle, self._start_angle - TWO_PI, self._start_angle)
        return GeomMath.modulo_between_down(angle, self._start_angle, self._start_angle + TWO_PI)

    def t_at_angle(self, angle: float) -> float:
        """Parametric value of _angle_ (only meaningful for contained angles)."""
        if self._actual_end_angle == self._start_angle:
            return 0.0
        return (self.map_angle(angle) - self._start_angle) / (self._actual_end_angle - self._start_angle)

    ###########################################################################
    # Evaluation
    ###########################################################################
    def position_at(self, t: float) -> Vector2:
        return self.position_at_angle(self.angle_at(t))

    def positions_at(self, ts: NDArray[np.float64]) -> NDArray[np.float64]:
        angles = self._start_angle + (self._actual_end_angle - self._start_angle) * np.asarray(ts, dtype=np.float64)
        return self._center.to_array() + self._radius * np.column_stack((np.cos(angles), np.sin(angles)))

    def tangent_at(self, t: float) -> Vector2:
        """Derivative with respect to t (unit tangent scaled by radius * swept angle)."""
        return self.tangent_at_angle(self.angle_at(t)) * (self._radius * self._angle_difference)

    def curvature_at(self, t: float) -> float:
        return (-1 if self._anticlockwise else 1) / self._radius

    def _compute_bounds(self) -> Bounds2:
        bounds = Bounds2.point(self._start).with_point(self._end)
        if self._start_angle != self._end_angle:
            for angle in _AXIS_ANGLES:
                if self.contains_angle(angle):
                    bounds = bounds.with_point(self.position_at_angle(angle))
        return bounds

    def get_interior_extrema_ts(self) -> List[float]:
        result: List[float] = []
        for angle in _AXIS_ANGLES:
            if self.contains_angle(angle):
                t = self.t_at_angle(angle)
                if EXTREMA_EPSILON < t < 1 - EXTREMA_EPSILON:
                    result.append(t)
        return sorted(result)

    ###########################################################################
    # Decomposition
    ###########################################################################
    def subdivided(self, t: float) -> List[Segment]:
        angle0 = self.angle_at(0)
        angle_t = self.angle_at(t)
        angle1 = self.angle_at(1)
        return [
            Arc(self._center, self._radius, angle0, angle_t, self._anticlockwise),
            Arc(self._center, self._radius, angle_t, angle1, self._anticlockwise),
        ]

    def get_nondegenerate_segments(self) -> List[Segment]:
        if self._radius <= 0 or self._start_angle == self._end_angle:
            return []
        return [self]

    def reversed(self) -> Arc:
        return Arc(self._center, self._radius, self._end_angle, self._start_angle, not self._anticlockwise)

    ###########################################################################
    # Stroking
    ###########################################################################
    def stroke_left(self, line_width: float) -> List[Segment]:
        radius_change = (1 if self._anticlockwise else -1) * line_width / 2
        return [
            Arc(self._center, self._radius + radius_change, self._start_angle, self._end_angle, self._anticlockwise)
        ]

    def stroke_right(self, line_width: float) -> List[Segment]:
        radius_change = (-1 if self._anticlockwise else 1) * line_width / 2
        return [
            Arc(
                self._center,
                self._radius + radius_change,
                self._end_angle,
                self._start_angle,
                not self._anticlockwise,
            )
        ]

    ###########################################################################
    # Hit testing
    ###########################################################################
    def intersection(self, ray: Ray2) -> List[RayIntersection]:
        result: List[RayIntersection] = []

        direction = ray.direction
        center_to_ray = ray.position - self._center
        tmp = direction.dot(center_to_ray)
        center_to_ray_dist_sq = center_to_ray.magnitude_squared
        discriminant = 4 * tmp * tmp - 4 * (center_to_ray_dist_sq - self._radius * self._radius)
        if discriminant < 0:
            return result

        base = direction.dot(self._center) - direction.dot(ray.position)
        sqrt_d = math.sqrt(discriminant) / 2
        ta = base - sqrt_d
        tb = base + sqrt_d
        if tb < 0:
            # circle is behind the ray
            return result

        point_b = ray.point_at_distance(tb)
        normal_b = (point_b - self._center).normalized()
        angle_b = normal_b.angle

        if ta < 0:
            # ray starts inside the circle, only the exit point counts
            if self.contains_angle(angle_b):
                result.append(
                    RayIntersection(
                        tb, point_b, normal_b.negated(), -1 if self._anticlockwise else 1, self.t_at_angle(angle_b)
                    )
                )
        else:
            point_a = ray.point_at_distance(ta)
            normal_a = (point_a - self._center).normalized()
            angle_a = normal_a.angle
            if self.contains_angle(angle_a):
                result.append(
                    RayIntersection(ta, point_a, normal_a, 1 if self._anticlockwise else -1, self.t_at_angle(angle_a))
                )
            if self.contains_angle(angle_b):
                result.append(
                    RayIntersection(
                        tb, point_b, normal_b.negated(), -1 if self._anticlockwise else 1, self.t_at_angle(angle_b)
                    )
                )
        return result

    ###########################################################################
    # Measures
    ###########################################################################
    def get_signed_area_fragment(self) -> float:
        t0 = self._start_angle
        t1 = self._actual_end_angle
        return (
            0.5
            * self._radius
            * (
                self._radius * (t1 - t0)
                + self._center.x * (math.sin(t1) - math.sin(t0))
                - self._center.y * (math.cos(t1) - math.cos(t0))
            )
        )

    def get_arc_length(
        self,
        distance_epsilon: float = ARC_LENGTH_DISTANCE_EPSILON,
        curve_epsilon: float = ARC_LENGTH_CURVE_EPSILON,
        max_levels: int = ARC_LENGTH_MAX_LEVELS,
    ) -> float:
        """Exact length, the tolerances are not needed."""
        return self._radius * self._angle_difference

    ###########################################################################
    # Output
    ###########################################################################
    def get_svg_path_fragment(self) -> str:
        sweep_flag = "0" if self._anticlockwise else "1"
        radius = svg_number(self._radius)
        if self._angle_difference < TWO_PI - SVG_FULL_CIRCLE_EPSILON:
            large_arc_flag = "0" if self._angle_difference < math.pi else "1"
            return (
                f"A {radius} {radius} 0 {large_arc_flag} {sweep_flag} "
                f"{svg_number(self._end.x)} {svg_number(self._end.y)}"
            )
        # SVG cannot draw a full circle with a single arc command
        split_point = self.position_at_angle((self._start_angle + self._actual_end_angle) / 2)
        return (
            f"A {radius} {radius} 0 0 {sweep_flag} {svg_number(split_point.x)} {svg_number(split_point.y)} "
            f"A {radius} {radius} 0 0 {sweep_flag} {svg_number(self._end.x)} {svg_number(self._end.y)}"
        )

    def write_to_context(self, context: PathContext) -> None:
        context.arc(
            self._center.x, self._center.y, self._radius, self._start_angle, self._end_angle, self._anticlockwise
        )

    def transformed(self, matrix: Matrix3) -> Segment:
        """
        Arc under an affine map; stays an Arc for similarity transforms,
        otherwise the result is an EllipticalArc.
        """
        from penpath.elliptical_arc import EllipticalArc  # pylint: disable=import-outside-toplevel

        values = matrix.values
        scale = matrix.scale_vector
        orthogonal = abs(values[0, 0] * values[0, 1] + values[1, 0] * values[1, 1])
        tolerance = _SIMILARITY_EPSILON * max(scale.x, scale.y, 1.0) ** 2
        if abs(scale.x - scale.y) > _SIMILARITY_EPSILON * max(scale.x, scale.y, 1.0) or orthogonal > tolerance:
            return EllipticalArc(
                self._center,
                self._radius,
                self._radius,
                0.0,
                self._start_angle,
                self._end_angle,
                self._anticlockwise,
            ).transformed(matrix)

        origin = matrix.times_vector2(Vector2.ZERO)
        start_angle = (matrix.times_vector2(Vector2.create_polar(1.0, self._start_angle)) - origin).angle
        end_angle = (matrix.times_vector2(Vector2.create_polar(1.0, self._end_angle)) - origin).angle
        # reflections reverse the direction of travel
        anticlockwise = self._anticlockwise != (matrix.determinant < 0)

        if abs(self._end_angle - self._start_angle) == TWO_PI:
            end_angle = start_angle - TWO_PI if anticlockwise else start_angle + TWO_PI

        return Arc(matrix.times_vector2(self._center), scale.x * self._radius, start_angle, end_angle, anticlockwise)

    ###########################################################################
    # Value semantics / serialization
    ###########################################################################
    def _key(self) -> Tuple:
        return (self._center, self._radius, self._start_angle, self._end_angle, self._anticlockwise)

    def to_dict(self) -> dict:
        return {
            "type": self.SEGMENT_TYPE,
            "center_x": self._center.x,
            "center_y": self._center.y,
            "radius": self._radius,
            "start_angle": self._start_angle,
            "end_angle": self._end_angle,
            "anticlockwise": self._anticlockwise,
        }

    @classmethod
    def _from_dict(cls, data: dict) -> Arc:
        return cls(
            Vector2(data["center_x"], data["center_y"]),
            data["radius"],
            data["start_angle"],
            data["end_angle"],
            data.get("anticlockwise", False),
        )

    def __repr__(self) -> str:
        return (
            f"Arc(center={self._center}, radius={self._radius}, start_angle={self._start_angle}, "
            f"end_angle={self._end_angle}, anticlockwise={self._anticlockwise})"
        )
