"""Quadratic Bezier segments"""

from __future__ import annotations

import math
from typing import TYPE_CHECKING, List, Tuple

import numpy as np
from numpy.typing import NDArray

from penpath.bounds import Bounds2
from penpath.consts import CURVATURE_EPSILON, EXTREMA_EPSILON, QUADRATIC_OFFSET_LEVELS
from penpath.geom_math import GeomMath
from penpath.line import Line
from penpath.matrix import Matrix3
from penpath.ray import Ray2, RayIntersection
from penpath.segment import Segment
from penpath.svgpath import svg_number
from penpath.vector import Vector2

if TYPE_CHECKING:
    from penpath.context import PathContext
    from penpath.cubic import Cubic


###############################################################################
# Quadratic
###############################################################################
class Quadratic(Segment):
    """
    Quadratic Bezier curve
        B(t) = (1-t)^2 * start + 2 * (1-t) * t * control + t^2 * end
    """

    SEGMENT_TYPE = "Quadratic"

    def __init__(self, start: Vector2, control: Vector2, end: Vector2):
        self._start = start
        self._control = control
        self._end = end

        # tangents fall back to the chord where the control point coincides with an end
        start_direction = (end - start) if start == control else (control - start)
        end_direction = (end - start) if end == control else (end - control)
        self._start_tangent = start_direction.normalized_or_zero()
        self._end_tangent = end_direction.normalized_or_zero()

        self._bounds = self._compute_bounds()

    @property
    def control(self) -> Vector2:
        """Vector2: The control point."""
        return self._control

    @staticmethod
    def extrema_t(start: float, control: float, end: float) -> float:
        """
        t where the 1D quadratic with the given coordinates has zero derivative.

        Returns:
            float: the t value (not restricted to [0, 1]), NaN if the derivative is constant
        """
        divisor = 2 * (end - 2 * control + start)
        if divisor != 0:
            return -2 * (control - start) / divisor
        return math.nan

    def _compute_bounds(self) -> Bounds2:
        bounds = Bounds2.point(self._start).with_point(self._end)
        for t in (
            Quadratic.extrema_t(self._start.x, self._control.x, self._end.x),
            Quadratic.extrema_t(self._start.y, self._control.y, self._end.y),
        ):
            if 0 < t < 1:
                bounds = bounds.with_point(self.position_at(t))
        return bounds

    ###########################################################################
    # Evaluation
    ###########################################################################
    def position_at(self, t: float) -> Vector2:
        mt = 1 - t
        return self._start * (mt * mt) + self._control * (2 * mt * t) + self._end * (t * t)

    def positions_at(self, ts: NDArray[np.float64]) -> NDArray[np.float64]:
        t = np.asarray(ts, dtype=np.float64)[:, np.newaxis]
        omt = 1 - t
        return (
            omt**2 * self._start.to_array()
            + 2 * omt * t * self._control.to_array()
            + t**2 * self._end.to_array()
        )

    def tangent_at(self, t: float) -> Vector2:
        return (self._control - self._start) * (2 * (1 - t)) + (self._end - self._control) * (2 * t)

    def curvature_at(self, t: float) -> float:
        if abs(t - 0.5) > 0.5 - CURVATURE_EPSILON:
            is_zero = t < 0.5
            p0 = self._start if is_zero else self._end
            p1 = self._control
            p2 = self._end if is_zero else self._start
            d10 = p1 - p0
            a = d10.magnitude
            h = (-1 if is_zero else 1) * d10.perpendicular.normalized().dot(p2 - p1)
            degree = 2
            return (h * (degree - 1)) / (degree * a * a)
        return self.subdivided(t)[0].curvature_at(1)

    def get_interior_extrema_ts(self) -> List[float]:
        result: List[float] = []
        for t in (
            Quadratic.extrema_t(self._start.x, self._control.x, self._end.x),
            Quadratic.extrema_t(self._start.y, self._control.y, self._end.y),
        ):
            if EXTREMA_EPSILON < t < 1 - EXTREMA_EPSILON:
                result.append(t)
        return sorted(result)

    ###########################################################################
    # Decomposition
    ###########################################################################
    def subdivided(self, t: float) -> List[Segment]:
        # de Casteljau
        left_mid = self._start.blend(self._control, t)
        right_mid = self._control.blend(self._end, t)
        mid = left_mid.blend(right_mid, t)
        return [Quadratic(self._start, left_mid, mid), Quadratic(mid, right_mid, self._end)]

    def get_nondegenerate_segments(self) -> List[Segment]:
        start = self._start
        control = self._control
        end = self._end

        start_is_end = start == end
        start_is_control = start == control
        end_is_control = end == control

        if start_is_end and start_is_control:
            return []
        if start_is_end:
            # out and back along the same line
            half = self.position_at(0.5)
            return [Line(start, half), Line(half, end)]
        if GeomMath.are_points_collinear(start, control, end):
            if start_is_control or end_is_control:
                return [Line(start, end)]
            # the control point may project outside the chord, then the curve turns back
            delta = end - start
            p1d = (control - start).dot(delta.normalized()) / delta.magnitude
            t = Quadratic.extrema_t(0, p1d, 1)
            if not math.isnan(t) and 0 < t < 1:
                point = self.position_at(t)
                return Line(start, point).get_nondegenerate_segments() + Line(point, end).get_nondegenerate_segments()
            return [Line(start, end)]
        return [self]

    def reversed(self) -> Quadratic:
        return Quadratic(self._end, self._control, self._start)

    def reparameterized(self, a: float, b: float) -> Quadratic:
        """Quadratic whose t maps to a*t + b of this curve."""
        # polynomial form p*t^2 + q*t + r
        p = self._start + self._end - self._control * 2
        q = (self._control - self._start) * 2
        r = self._start

        alpha = p * (a * a)
        beta = p * (2 * a * b) + q * a
        gamma = p * (b * b) + q * b + r
        return Quadratic(gamma, gamma + beta * 0.5, alpha + beta + gamma)

    def slice(self, t0: float, t1: float) -> Quadratic:
        self._check_slice_range(t0, t1)
        return self.reparameterized(t1 - t0, t0)

    def degree_elevated(self) -> Cubic:
        """The same curve as a Cubic."""
        from penpath.cubic import Cubic  # pylint: disable=import-outside-toplevel

        return Cubic(
            self._start,
            self._start.blend(self._control, 2.0 / 3.0),
            self._end.blend(self._control, 2.0 / 3.0),
            self._end,
        )

    ###########################################################################
    # Stroking
    ###########################################################################
    def approximate_offset(self, r: float) -> Quadratic:
        """Quadratic with every control-polygon vertex moved _r_ along its local normal."""
        start = self._start
        control = self._control
        end = self._end
        chord = end - start
        start_direction = chord if start == control else control - start
        end_direction = chord if end == control else end - control
        return Quadratic(
            start + start_direction.perpendicular.normalized() * r,
            control + chord.perpendicular.normalized() * r,
            end + end_direction.perpendicular.normalized() * r,
        )

    def offset_to(self, r: float, reverse: bool) -> List[Segment]:
        """
        Approximate offset curve at signed distance _r_ (along perpendicular).

        The curve is split QUADRATIC_OFFSET_LEVELS times in half (32 pieces), each piece
        is offset via approximate_offset().
        """
        curves: List[Quadratic] = [self]
        for _ in range(QUADRATIC_OFFSET_LEVELS):
            halves: List[Quadratic] = []
            for curve in curves:
                halves.extend(curve.subdivided(0.5))  # type: ignore[arg-type]
            curves = halves

        offset_curves: List[Segment] = [curve.approximate_offset(r) for curve in curves]
        if reverse:
            offset_curves = [curve.reversed() for curve in reversed(offset_curves)]
        return offset_curves

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
        p1 = inverse.times_vector2(self._control)
        p2 = inverse.times_vector2(self._end)

        # y(t) = a*t^2 + b*t + c
        a = p0.y - 2 * p1.y + p2.y
        b = -2 * p0.y + 2 * p1.y
        c = p0.y

        for t in GeomMath.solve_quadratic_roots_real(a, b, c) or []:
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
        c = self._control
        e = self._end
        return (1.0 / 6.0) * (s.x * (2 * c.y + e.y) + c.x * (-2 * s.y + 2 * e.y) + e.x * (-s.y - 2 * c.y))

    def get_svg_path_fragment(self) -> str:
        return (
            f"Q {svg_number(self._control.x)} {svg_number(self._control.y)} "
            f"{svg_number(self._end.x)} {svg_number(self._end.y)}"
        )

    def write_to_context(self, context: PathContext) -> None:
        context.quadratic_curve_to(self._control.x, self._control.y, self._end.x, self._end.y)

    def transformed(self, matrix: Matrix3) -> Quadratic:
        return Quadratic(
            matrix.times_vector2(self._start),
            matrix.times_vector2(self._control),
            matrix.times_vector2(self._end),
        )

    def _key(self) -> Tuple:
        return (self._start, self._control, self._end)

    def to_dict(self) -> dict:
        return {
            "type": self.SEGMENT_TYPE,
            "start_x": self._start.x,
            "start_y": self._start.y,
            "control_x": self._control.x,
            "control_y": self._control.y,
            "end_x": self._end.x,
            "end_y": self._end.y,
        }

    @classmethod
    def _from_dict(cls, data: dict) -> Quadratic:
        return cls(
            Vector2(data["start_x"], data["start_y"]),
            Vector2(data["control_x"], data["control_y"]),
            Vector2(data["end_x"], data["end_y"]),
        )

    def __repr__(self) -> str:
        return f"Quadratic(start={self._start}, control={self._control}, end={self._end})"
