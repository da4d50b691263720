"""Cubic Bezier segments"""

from __future__ import annotations

import math
from typing import TYPE_CHECKING, List, Optional, Tuple

import numpy as np
from numpy.typing import NDArray

from penpath.bounds import Bounds2
from penpath.consts import (
    COLLINEAR_EPSILON,
    CURVATURE_EPSILON,
    CUSP_EPSILON,
    DEGREE_REDUCTION_EPSILON,
    EXTREMA_EPSILON,
    OFFSET_SAMPLE_COUNT,
)
from penpath.geom_math import GeomMath
from penpath.line import Line
from penpath.matrix import Matrix3
from penpath.quadratic import Quadratic
from penpath.ray import Ray2, RayIntersection
from penpath.segment import Segment
from penpath.svgpath import svg_number
from penpath.vector import Vector2

if TYPE_CHECKING:
    from penpath.context import PathContext


###############################################################################
# Cubic
###############################################################################
class Cubic(Segment):
    """
    Cubic Bezier curve
        B(t) = (1-t)^3 * start + 3 * (1-t)^2 * t * control1 + 3 * (1-t) * t^2 * control2 + t^3 * end

    In polynomial form B(t) = a*t^3 + b*t^2 + c*t + d the coefficients determine the
    cusp parameter and the inflection points:
        t_cusp        = -0.5 * (a_perp . c) / (a_perp . b)
        t_determinant = t_cusp^2 - (1/3) * (b_perp . c) / (a_perp . b)
    A cusp exists if t_cusp is in [0, 1] and the tangent vanishes there.
    """

    SEGMENT_TYPE = "Cubic"

    def __init__(self, start: Vector2, control1: Vector2, control2: Vector2, end: Vector2):
        self._start = start
        self._control1 = control1
        self._control2 = control2
        self._end = end

        self._start_tangent = self.tangent_at(0).normalized_or_zero()
        self._end_tangent = self.tangent_at(1).normalized_or_zero()
        if self._start_tangent == Vector2.ZERO:
            self._start_tangent = (end - start).normalized_or_zero()
        if self._end_tangent == Vector2.ZERO:
            self._end_tangent = (end - start).normalized_or_zero()

        self._t_cusp, self._t_determinant = self._compute_cusp_info()
        self._has_cusp = self._compute_has_cusp()
        self._bounds = self._compute_bounds()

    @property
    def control1(self) -> Vector2:
        """Vector2: The first control point."""
        return self._control1

    @property
    def control2(self) -> Vector2:
        """Vector2: The second control point."""
        return self._control2

    ###########################################################################
    # Cusp / inflection analysis
    ###########################################################################
    def _compute_cusp_info(self) -> Tuple[float, float]:
        a = self._start * -1 + self._control1 * 3 + self._control2 * -3 + self._end
        b = self._start * 3 + self._control1 * -6 + self._control2 * 3
        c = self._start * -3 + self._control1 * 3

        a_perp = a.perpendicular
        b_perp = b.perpendicular
        a_perp_dot_b = a_perp.dot(b)
        if a_perp_dot_b == 0:
            return math.nan, math.nan

        t_cusp = -0.5 * (a_perp.dot(c) / a_perp_dot_b)
        t_determinant = t_cusp * t_cusp - (1.0 / 3.0) * (b_perp.dot(c) / a_perp_dot_b)
        return t_cusp, t_determinant

    def _compute_has_cusp(self) -> bool:
        t = self._t_cusp
        if math.isnan(t) or not 0 <= t <= 1:
            return False
        return self.tangent_at(t).magnitude < CUSP_EPSILON

    @property
    def t_cusp(self) -> float:
        """float: Parameter of the (potential) cusp, NaN if undefined."""
        return self._t_cusp

    @property
    def t_determinant(self) -> float:
        """float: Determinant deciding whether inflection points exist."""
        return self._t_determinant

    def has_cusp(self) -> bool:
        """True if the tangent vanishes at t_cusp within [0, 1]."""
        return self._has_cusp

    def get_inflection_ts(self) -> List[float]:
        """The (up to two) inflection parameters, not restricted to [0, 1]."""
        if math.isnan(self._t_determinant) or self._t_determinant < 0:
            return []
        sqrt_det = math.sqrt(self._t_determinant)
        return [self._t_cusp - sqrt_det, self._t_cusp + sqrt_det]

    ###########################################################################
    # Extrema / bounds
    ###########################################################################
    @staticmethod
    def extrema_ts(v0: float, v1: float, v2: float, v3: float) -> List[float]:
        """t values in [0, 1] where the 1D cubic with the given coordinates has zero derivative."""
        if v0 == v1 == v2 == v3:
            return []
        # derivative coefficients
        a = -3 * v0 + 9 * v1 - 9 * v2 + 3 * v3
        b = 6 * v0 - 12 * v1 + 6 * v2
        c = -3 * v0 + 3 * v1
        roots = GeomMath.solve_quadratic_roots_real(a, b, c) or []
        return [t for t in roots if 0 <= t <= 1]

    def _compute_bounds(self) -> Bounds2:
        bounds = Bounds2.point(self._start).with_point(self._end)
        for t in Cubic.extrema_ts(self._start.x, self._control1.x, self._control2.x, self._end.x):
            bounds = bounds.with_point(self.position_at(t))
        for t in Cubic.extrema_ts(self._start.y, self._control1.y, self._control2.y, self._end.y):
            bounds = bounds.with_point(self.position_at(t))
        if self._has_cusp:
            bounds = bounds.with_point(self.position_at(self._t_cusp))
        return bounds

    def get_interior_extrema_ts(self) -> List[float]:
        ts = Cubic.extrema_ts(self._start.x, self._control1.x, self._control2.x, self._end.x) + Cubic.extrema_ts(
            self._start.y, self._control1.y, self._control2.y, self._end.y
        )
        result: List[float] = []
        for t in sorted(ts):
            if not EXTREMA_EPSILON < t < 1 - EXTREMA_EPSILON:
                continue
            if result and abs(result[-1] - t) < EXTREMA_EPSILON:
                continue
            result.append(t)
        return result

    ###########################################################################
    # Evaluation
    ###########################################################################
    def position_at(self, t: float) -> Vector2:
        mt = 1 - t
        return (
            self._start * (mt * mt * mt)
            + self._control1 * (3 * mt * mt * t)
            + self._control2 * (3 * mt * t * t)
            + self._end * (t * t * t)
        )

    def positions_at(self, ts: NDArray[np.float64]) -> NDArray[np.float64]:
        t = np.asarray(ts, dtype=np.float64)[:, np.newaxis]
        omt = 1 - t
        return (
            omt**3 * self._start.to_array()
            + 3 * omt**2 * t * self._control1.to_array()
            + 3 * omt * t**2 * self._control2.to_array()
            + t**3 * self._end.to_array()
        )

    def tangent_at(self, t: float) -> Vector2:
        mt = 1 - t
        return (
            self._start * (-3 * mt * mt)
            + self._control1 * (3 * mt * mt - 6 * mt * t)
            + self._control2 * (6 * mt * t - 3 * t * t)
            + self._end * (3 * t * t)
        )

    def curvature_at(self, t: float) -> float:
        if abs(t - 0.5) > 0.5 - CURVATURE_EPSILON:
            is_zero = t < 0.5
            p0 = self._start if is_zero else self._end
            p1 = self._control1 if is_zero else self._control2
            p2 = self._control2 if is_zero else self._control1
            d10 = p1 - p0
            a = d10.magnitude
            h = (-1 if is_zero else 1) * d10.perpendicular.normalized().dot(p2 - p1)
            degree = 3
            return (h * (degree - 1)) / (degree * a * a)
        return self.subdivided(t)[0].curvature_at(1)

    ###########################################################################
    # Decomposition
    ###########################################################################
    def subdivided(self, t: float) -> List[Segment]:
        # de Casteljau
        start = self._start
        control1 = self._control1
        control2 = self._control2
        end = self._end
        left_mid = start.blend(control1, t)
        middle = control1.blend(control2, t)
        right_mid = control2.blend(end, t)
        left_control = left_mid.blend(middle, t)
        right_control = middle.blend(right_mid, t)
        split = left_control.blend(right_control, t)
        return [Cubic(start, left_mid, left_control, split), Cubic(split, right_control, right_mid, end)]

    def degree_reduced(self, epsilon: float = DEGREE_REDUCTION_EPSILON) -> Optional[Quadratic]:
        """
        The equivalent Quadratic if this cubic is a degree-elevated quadratic.

        Returns:
            Optional[Quadratic]: the quadratic, or None if the control points do not allow it
        """
        control_a = (self._control1 * 3 - self._start) / 2
        control_b = (self._control2 * 3 - self._end) / 2
        if (control_a - control_b).magnitude <= epsilon:
            return Quadratic(self._start, control_a.average(control_b), self._end)
        return None

    def get_cusp_quadratics(self) -> List[Quadratic]:
        """Two quadratics split exactly at the cusp (one if the cusp is at an end)."""
        if self._t_cusp == 0:
            return [Quadratic(self._start, self._control2, self._end)]
        if self._t_cusp == 1:
            return [Quadratic(self._start, self._control1, self._end)]
        left, right = self.subdivided(self._t_cusp)
        return [
            Quadratic(left.start, left.control1, left.end),  # type: ignore[attr-defined]
            Quadratic(right.start, right.control2, right.end),  # type: ignore[attr-defined]
        ]

    def get_nondegenerate_segments(self) -> List[Segment]:
        start = self._start
        control1 = self._control1
        control2 = self._control2
        end = self._end

        reduced = self.degree_reduced(DEGREE_REDUCTION_EPSILON)

        if start == end and start == control1 and start == control2:
            return []
        if self._has_cusp:
            result: List[Segment] = []
            for quadratic in self.get_cusp_quadratics():
                result.extend(quadratic.get_nondegenerate_segments())
            return result
        if reduced is not None:
            return reduced.get_nondegenerate_segments()
        if (
            GeomMath.are_points_collinear(start, control1, end)
            and GeomMath.are_points_collinear(start, control2, end)
            and not start.equals_epsilon(end, COLLINEAR_EPSILON)
        ):
            # a straight curve that may reverse, split into lines at the turning points
            points = [start] + [self.position_at(t) for t in self.get_interior_extrema_ts()] + [end]
            lines: List[Segment] = []
            for point, next_point in zip(points, points[1:]):
                lines.extend(Line(point, next_point).get_nondegenerate_segments())
            return lines
        return [self]

    def reversed(self) -> Cubic:
        return Cubic(self._end, self._control2, self._control1, self._start)

    ###########################################################################
    # Stroking
    ###########################################################################
    def offset_to(self, r: float, reverse: bool) -> List[Segment]:
        """
        Approximate offset curve at signed distance _r_ (along perpendicular),
        sampled at OFFSET_SAMPLE_COUNT points and connected by lines.
        """
        points: List[Vector2] = []
        for t in np.linspace(0.0, 1.0, OFFSET_SAMPLE_COUNT):
            t = float(1 - t) if reverse else float(t)
            points.append(self.position_at(t) + self.tangent_at(t).perpendicular.normalized() * r)
        return [Line(point, next_point) for point, next_point in zip(points, points[1:])]

    def stroke_left(self, line_width: float) -> List[Segment]:
        return self.offset_to(-line_width / 2, False)

    def stroke_right(self, line_width: float) -> List[Segment]:
        return self.offset_to(line_width / 2, True)

    ###########################################################################
    # Hit testing
    ###########################################################################
    def intersection(self, ray: Ray2) -> List[RayIntersection]:
        result: List[RayIntersection] = []

        # rotate and translate so the ray lies on the positive x axis
        inverse = Matrix3.rotation2(-ray.direction.angle) @ Matrix3.translation(-ray.position.x, -ray.position.y)
        p0 = inverse.times_vector2(self._start)
        p1 = inverse.times_vector2(self._control1)
        p2 = inverse.times_vector2(self._control2)
        p3 = inverse.times_vector2(self._end)

        # y(t) = a*t^3 + b*t^2 + c*t + d
        a = -p0.y + 3 * p1.y - 3 * p2.y + p3.y
        b = 3 * p0.y - 6 * p1.y + 3 * p2.y
        c = -3 * p0.y + 3 * p1.y
        d = p0.y

        for t in GeomMath.solve_cubic_roots_real(a, b, c, d) or []:
            if 0 <= t <= 1:
                hit_point = self.position_at(t)
                tangent = self.tangent_at(t)
                if tangent.magnitude_squared == 0:
                    continue
                unit_tangent = tangent.normalized()
                perp = unit_tangent.perpendicular
                to_hit = hit_point - ray.position

                # only hits in front of the ray
                if to_hit.dot(ray.direction) > 0:
                    normal = perp.negated() if perp.dot(ray.direction) > 0 else perp
                    wind = 1 if ray.direction.perpendicular.dot(unit_tangent) < 0 else -1
                    result.append(RayIntersection(to_hit.magnitude, hit_point, normal, wind, t))
        return result

    ###########################################################################
    # Measures / output
    ###########################################################################
    def get_signed_area_fragment(self) -> float:
        s = self._start
        c1 = self._control1
        c2 = self._control2
        e = self._end
        return (1.0 / 20.0) * (
            s.x * (6 * c1.y + 3 * c2.y + e.y)
            + c1.x * (-6 * s.y + 3 * c2.y + 3 * e.y)
            + c2.x * (-3 * s.y - 3 * c1.y + 6 * e.y)
            + e.x * (-s.y - 3 * c1.y - 6 * c2.y)
        )

    def get_svg_path_fragment(self) -> str:
        return (
            f"C {svg_number(self._control1.x)} {svg_number(self._control1.y)} "
            f"{svg_number(self._control2.x)} {svg_number(self._control2.y)} "
            f"{svg_number(self._end.x)} {svg_number(self._end.y)}"
        )

    def write_to_context(self, context: PathContext) -> None:
        context.bezier_curve_to(
            self._control1.x, self._control1.y, self._control2.x, self._control2.y, self._end.x, self._end.y
        )

    def transformed(self, matrix: Matrix3) -> Cubic:
        return Cubic(
            matrix.times_vector2(self._start),
            matrix.times_vector2(self._control1),
            matrix.times_vector2(self._control2),
            matrix.times_vector2(self._end),
        )

    def _key(self) -> Tuple:
        return (self._start, self._control1, self._control2, self._end)

    def to_dict(self) -> dict:
        return {
            "type": self.SEGMENT_TYPE,
            "start_x": self._start.x,
            "start_y": self._start.y,
            "control1_x": self._control1.x,
            "control1_y": self._control1.y,
            "control2_x": self._control2.x,
            "control2_y": self._control2.y,
            "end_x": self._end.x,
            "end_y": self._end.y,
        }

    @classmethod
    def _from_dict(cls, data: dict) -> Cubic:
        return cls(
            Vector2(data["start_x"], data["start_y"]),
            Vector2(data["control1_x"], data["control1_y"]),
            Vector2(data["control2_x"], data["control2_y"]),
            Vector2(data["end_x"], data["end_y"]),
        )

    def __repr__(self) -> str:
        return (
            f"Cubic(start={self._start}, control1={self._control1}, "
            f"control2={self._control2}, end={self._end})"
        )
