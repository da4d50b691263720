"""Scalar math helpers for geometry handling"""

from __future__ import annotations

import math
from typing import List, Optional

from penpath.vector import Vector2

# coefficient ratio above which a polynomial is solved as one of lower degree
_DEGREE_DROP_RATIO: float = 1.0e7
# cubic discriminant magnitude treated as zero (double root)
_CUBIC_DISCRIMINANT_THRESHOLD: float = 1.0e-7
# denominator magnitude below which two lines count as parallel
_PARALLEL_EPSILON: float = 1.0e-10


###############################################################################
# GeomMath
###############################################################################
class GeomMath:
    """Class to provide various static methods related to geometry handling."""

    ###########################################################################
    # Scalars
    ###########################################################################
    @staticmethod
    def clamp(value: float, lower: float, upper: float) -> float:
        """Clamp _value_ into [lower, upper]."""
        return max(lower, min(upper, value))

    @staticmethod
    def modulo_between_down(value: float, lower: float, upper: float) -> float:
        """
        Map _value_ into [lower, upper) by adding/subtracting multiples of (upper - lower).

        Args:
            value (float): the value to map
            lower (float): inclusive lower end
            upper (float): exclusive upper end

        Returns:
            float: the mapped value
        """
        divisor = upper - lower
        modulus = math.fmod(value - lower, divisor)
        if modulus < 0:
            modulus += divisor
        return modulus + lower

    @staticmethod
    def modulo_between_up(value: float, lower: float, upper: float) -> float:
        """Map _value_ into (lower, upper], see modulo_between_down()."""
        return -GeomMath.modulo_between_down(-value, -upper, -lower)

    @staticmethod
    def linear(a1: float, a2: float, b1: float, b2: float, a3: float) -> float:
        """Map _a3_ linearly from the range [a1, a2] onto [b1, b2]."""
        return (b2 - b1) / (a2 - a1) * (a3 - a1) + b1

    @staticmethod
    def to_degrees(radians: float) -> float:
        """Radians to degrees."""
        return radians * 180.0 / math.pi

    @staticmethod
    def to_radians(degrees: float) -> float:
        """Degrees to radians."""
        return degrees * math.pi / 180.0

    @staticmethod
    def cube_root(value: float) -> float:
        """Real cube root, also for negative values."""
        return math.copysign(abs(value) ** (1.0 / 3.0), value)

    ###########################################################################
    # Polynomial roots
    ###########################################################################
    @staticmethod
    def solve_linear_roots_real(a: float, b: float) -> Optional[List[float]]:
        """
        Real roots of a*x + b = 0.

        Returns:
            Optional[List[float]]: None if every x is a root (a == b == 0), else the roots.
        """
        if a == 0:
            if b == 0:
                return None
            return []
        return [-b / a]

    @staticmethod
    def solve_quadratic_roots_real(a: float, b: float, c: float) -> Optional[List[float]]:
        """
        Real roots of a*x^2 + b*x + c = 0.

        A double root is returned twice. If _a_ is zero or orders of magnitude smaller than
        the other coefficients the linear equation is solved instead.

        Returns:
            Optional[List[float]]: None if every x is a root, else the (possibly empty) roots.
        """
        if a == 0 or abs(b / a) > _DEGREE_DROP_RATIO or abs(c / a) > _DEGREE_DROP_RATIO:
            return GeomMath.solve_linear_roots_real(b, c)

        discriminant = b * b - 4 * a * c
        if discriminant < 0:
            return []
        sqrt_d = math.sqrt(discriminant)
        return [(-b - sqrt_d) / (2 * a), (-b + sqrt_d) / (2 * a)]

    @staticmethod
    def solve_cubic_roots_real(
        a: float, b: float, c: float, d: float, discriminant_threshold: float = _CUBIC_DISCRIMINANT_THRESHOLD
    ) -> Optional[List[float]]:
        """
        Real roots of a*x^3 + b*x^2 + c*x + d = 0 (Cardano / trigonometric method).

        Degenerate leading coefficients fall back to the quadratic solver.
        A vanishing constant term yields the root 0 plus the quadratic roots.

        Returns:
            Optional[List[float]]: None if every x is a root, else the roots (double roots repeated).
        """
        if a == 0 or abs(b / a) > _DEGREE_DROP_RATIO or abs(c / a) > _DEGREE_DROP_RATIO or abs(d / a) > _DEGREE_DROP_RATIO:
            return GeomMath.solve_quadratic_roots_real(b, c, d)

        if d == 0 or abs(a / d) > _DEGREE_DROP_RATIO or abs(b / d) > _DEGREE_DROP_RATIO or abs(c / d) > _DEGREE_DROP_RATIO:
            quadratic_roots = GeomMath.solve_quadratic_roots_real(a, b, c)
            return [0.0] + (quadratic_roots or [])

        b /= a
        c /= a
        d /= a

        q = (3.0 * c - b * b) / 9.0
        r = (-(27.0 * d) + b * (9.0 * c - 2.0 * (b * b))) / 54.0
        discriminant = q * q * q + r * r
        b3 = b / 3.0

        if discriminant > discriminant_threshold:
            # one real root
            sqrt_d = math.sqrt(discriminant)
            return [GeomMath.cube_root(r + sqrt_d) + GeomMath.cube_root(r - sqrt_d) - b3]
        if discriminant > -discriminant_threshold:
            # double root
            r_cbrt = GeomMath.cube_root(r)
            double_root = -b3 - r_cbrt
            return [-b3 + 2.0 * r_cbrt, double_root, double_root]

        # three distinct real roots
        q_angle = math.acos(GeomMath.clamp(r / math.sqrt(-q * q * q), -1.0, 1.0))
        radius = 2.0 * math.sqrt(-q)
        return [
            -b3 + radius * math.cos(q_angle / 3.0),
            -b3 + radius * math.cos((q_angle + 2.0 * math.pi) / 3.0),
            -b3 + radius * math.cos((q_angle + 4.0 * math.pi) / 3.0),
        ]

    ###########################################################################
    # Points and lines
    ###########################################################################
    @staticmethod
    def line_line_intersection(p1: Vector2, p2: Vector2, p3: Vector2, p4: Vector2) -> Optional[Vector2]:
        """
        Intersection of the infinite line through p1, p2 with the one through p3, p4.

        Returns:
            Optional[Vector2]: the intersection point, None for (nearly) parallel lines.
        """
        x12 = p1.x - p2.x
        x34 = p3.x - p4.x
        y12 = p1.y - p2.y
        y34 = p3.y - p4.y

        denom = x12 * y34 - y12 * x34
        if abs(denom) < _PARALLEL_EPSILON:
            return None

        a = p1.x * p2.y - p1.y * p2.x
        b = p3.x * p4.y - p3.y * p4.x
        return Vector2((a * x34 - x12 * b) / denom, (a * y34 - y12 * b) / denom)

    @staticmethod
    def line_segment_intersection(p1: Vector2, p2: Vector2, p3: Vector2, p4: Vector2) -> Optional[Vector2]:
        """Intersection point of the finite segments p1-p2 and p3-p4, or None."""
        denom = (p4.y - p3.y) * (p2.x - p1.x) - (p4.x - p3.x) * (p2.y - p1.y)
        if denom == 0:
            return None
        ua = ((p4.x - p3.x) * (p1.y - p3.y) - (p4.y - p3.y) * (p1.x - p3.x)) / denom
        ub = ((p2.x - p1.x) * (p1.y - p3.y) - (p2.y - p1.y) * (p1.x - p3.x)) / denom
        if ua < 0 or ua > 1 or ub < 0 or ub > 1:
            return None
        return p1.blend(p2, ua)

    @staticmethod
    def dist_to_segment_squared(point: Vector2, a: Vector2, b: Vector2) -> float:
        """Squared distance of _point_ to the segment a-b."""
        length_squared = a.distance_squared(b)
        if length_squared == 0:
            return point.distance_squared(a)
        t = ((point.x - a.x) * (b.x - a.x) + (point.y - a.y) * (b.y - a.y)) / length_squared
        if t < 0:
            return point.distance_squared(a)
        if t > 1:
            return point.distance_squared(b)
        return point.distance_squared(a.blend(b, t))

    @staticmethod
    def dist_to_segment(point: Vector2, a: Vector2, b: Vector2) -> float:
        """Distance of _point_ to the segment a-b."""
        return math.sqrt(GeomMath.dist_to_segment_squared(point, a, b))

    @staticmethod
    def triangle_area_signed(a: Vector2, b: Vector2, c: Vector2) -> float:
        """Twice the signed area of triangle abc, positive for counter-clockwise order."""
        return a.x * (b.y - c.y) + b.x * (c.y - a.y) + c.x * (a.y - b.y)

    @staticmethod
    def are_points_collinear(a: Vector2, b: Vector2, c: Vector2, epsilon: float = 0.0) -> bool:
        """True if the three points lie on one line (triangle area within _epsilon_)."""
        return abs(GeomMath.triangle_area_signed(a, b, c)) * 0.5 <= epsilon

    @staticmethod
    def circle_center_from_points(p1: Vector2, p2: Vector2, p3: Vector2) -> Optional[Vector2]:
        """Center of the circle through three points, None if they are collinear."""
        denom = 2.0 * (p1.x * (p2.y - p3.y) + p2.x * (p3.y - p1.y) + p3.x * (p1.y - p2.y))
        if denom == 0:
            return None
        s1 = p1.magnitude_squared
        s2 = p2.magnitude_squared
        s3 = p3.magnitude_squared
        x = (s1 * (p2.y - p3.y) + s2 * (p3.y - p1.y) + s3 * (p1.y - p2.y)) / denom
        y = (s1 * (p3.x - p2.x) + s2 * (p1.x - p3.x) + s3 * (p2.x - p1.x)) / denom
        return Vector2(x, y)

    @staticmethod
    def is_sufficiently_flat(
        distance_epsilon: float, curve_epsilon: float, start: Vector2, middle: Vector2, end: Vector2
    ) -> bool:
        """
        Flatness test on three curve points (start, midpoint, end).

        The curve is flat if the midpoint's squared deviation from the chord is below
        _distance_epsilon_ and, relative to the squared chord length, below _curve_epsilon_.
        """
        deviation = GeomMath.dist_to_segment_squared(middle, start, end)
        chord = start.distance_squared(end)
        if chord == 0:
            if deviation > 0:
                return False
        elif deviation / chord > curve_epsilon:
            return False
        return deviation <= distance_epsilon
