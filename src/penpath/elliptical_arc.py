"""Elliptical arc segments"""

from __future__ import annotations

import math
from typing import TYPE_CHECKING, List, Tuple

import numpy as np
from numpy.typing import NDArray

from penpath.arc import Arc, compute_actual_end_angle, compute_angle_difference, validate_angle_range
from penpath.bounds import Bounds2
from penpath.consts import EXTREMA_EPSILON, HALF_PI, OFFSET_SAMPLE_COUNT, SVG_FULL_CIRCLE_EPSILON, TWO_PI
from penpath.exceptions import GeometryError
from penpath.geom_math import GeomMath
from penpath.line import Line
from penpath.matrix import Matrix3, Transform3
from penpath.ray import Ray2, RayIntersection
from penpath.segment import Segment
from penpath.svgpath import svg_number
from penpath.vector import Vector2

if TYPE_CHECKING:
    from penpath.context import PathContext


###############################################################################
# EllipticalArc
###############################################################################
class EllipticalArc(Segment):
    """
    Arc of an ellipse with semi-axes _radius_x_ and _radius_y_, rotated by _rotation_.

    The arc is the image of the unit-circle arc Arc(ZERO, 1, start_angle, end_angle,
    anticlockwise) under the unit transform
        translation(center) * rotation2(rotation) * scaling(radius_x, radius_y)
    so all angles are parameters of that unit circle, not polar angles of the ellipse.

    Normalization keeps radius_x >= radius_y >= 0: negative radii flip the angles and
    the direction, a larger radius_y rotates the frame by pi/2 and swaps the radii.
    """

    SEGMENT_TYPE = "EllipticalArc"

    def __init__(
        self,
        center: Vector2,
        radius_x: float,
        radius_y: float,
        rotation: float,
        start_angle: float,
        end_angle: float,
        anticlockwise: bool = False,
    ):
        if not (center.is_finite() and math.isfinite(radius_x) and math.isfinite(radius_y) and math.isfinite(rotation)):
            raise GeometryError(
                f"EllipticalArc parameters must be finite: {center}, {radius_x}, {radius_y}, {rotation}"
            )
        if radius_x < 0:
            # mirror along the y axis of the ellipse
            radius_x = -radius_x
            start_angle = math.pi - start_angle
            end_angle = math.pi - end_angle
            anticlockwise = not anticlockwise
        if radius_y < 0:
            # mirror along the x axis of the ellipse
            radius_y = -radius_y
            start_angle = -start_angle
            end_angle = -end_angle
            anticlockwise = not anticlockwise
        if radius_x < radius_y:
            rotation += HALF_PI
            start_angle -= HALF_PI
            end_angle -= HALF_PI
            radius_x, radius_y = radius_y, radius_x
        validate_angle_range(start_angle, end_angle, anticlockwise)

        self._center = center
        self._radius_x = float(radius_x)
        self._radius_y = float(radius_y)
        self._rotation = float(rotation)
        self._start_angle = float(start_angle)
        self._end_angle = float(end_angle)
        self._anticlockwise = bool(anticlockwise)

        self._actual_end_angle = compute_actual_end_angle(self._start_angle, self._end_angle, self._anticlockwise)
        self._angle_difference = compute_angle_difference(self._start_angle, self._end_angle, self._anticlockwise)
        self._unit_transform = Transform3(
            Matrix3.translation_from_vector(center)
            @ Matrix3.rotation2(self._rotation)
            @ Matrix3.scaling(self._radius_x, self._radius_y)
        )
        self._unit_arc = Arc(Vector2.ZERO, 1.0, self._start_angle, self._end_angle, self._anticlockwise)

        self._start = self.position_at_angle(self._start_angle)
        self._end = self.position_at_angle(self._end_angle)
        self._start_tangent = self.tangent_at_angle(self._start_angle)
        self._end_tangent = self.tangent_at_angle(self._end_angle)
        self._bounds = self._compute_bounds()

    ###########################################################################
    # Properties
    ###########################################################################
    @property
    def center(self) -> Vector2:
        """Vector2: Center of the ellipse."""
        return self._center

    @property
    def radius_x(self) -> float:
        """float: Semi-major axis."""
        return self._radius_x

    @property
    def radius_y(self) -> float:
        """float: Semi-minor axis."""
        return self._radius_y

    @property
    def rotation(self) -> float:
        """float: Rotation of the semi-major axis in radians."""
        return self._rotation

    @property
    def start_angle(self) -> float:
        """float: Start parameter angle."""
        return self._start_angle

    @property
    def end_angle(self) -> float:
        """float: End parameter angle as given."""
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
        """float: Swept parameter angle in [0, 2*pi]."""
        return self._angle_difference

    @property
    def unit_transform(self) -> Transform3:
        """Transform3: Map from the unit circle onto this ellipse."""
        return self._unit_transform

    @property
    def unit_arc_segment(self) -> Arc:
        """Arc: The corresponding arc on the unit circle."""
        return self._unit_arc

    ###########################################################################
    # Angles
    ###########################################################################
    def angle_at(self, t: float) -> float:
        """Parameter angle at _t_."""
        return self._start_angle + (self._actual_end_angle - self._start_angle) * t

    def position_at_angle(self, angle: float) -> Vector2:
        """Point of the ellipse at parameter _angle_."""
        return self._unit_transform.transform_position2(Vector2.create_polar(1.0, angle))

    def tangent_at_angle(self, angle: float) -> Vector2:
        """Unit tangent at parameter _angle_ in the direction of travel."""
        normal = Vector2.create_polar(1.0, angle)
        unit_tangent = normal.perpendicular if self._anticlockwise else normal.perpendicular.negated()
        return self._unit_transform.transform_delta2(unit_tangent).normalized_or_zero()

    def contains_angle(self, angle: float) -> bool:
        """True if the parameter _angle_ lies within the swept range."""
        return self._unit_arc.contains_angle(angle)

    def map_angle(self, angle: float) -> float:
        """Equivalent of _angle_ between start angle and actual end angle."""
        return self._unit_arc.map_angle(angle)

    def t_at_angle(self, angle: float) -> float:
        """Parametric value of the parameter _angle_."""
        return self._unit_arc.t_at_angle(angle)

    ###########################################################################
    # Evaluation
    ###########################################################################
    def position_at(self, t: float) -> Vector2:
        return self.position_at_angle(self.angle_at(t))

    def positions_at(self, ts: NDArray[np.float64]) -> NDArray[np.float64]:
        angles = self._start_angle + (self._actual_end_angle - self._start_angle) * np.asarray(ts, dtype=np.float64)
        unit_points = np.column_stack((np.cos(angles), np.sin(angles), np.ones_like(angles)))
        return (unit_points @ self._unit_transform.matrix.values.T)[:, :2]

    def tangent_at(self, t: float) -> Vector2:
        """Derivative with respect to t."""
        angle = self.angle_at(t)
        normal = Vector2.create_polar(1.0, angle)
        unit_tangent = normal.perpendicular if self._anticlockwise else normal.perpendicular.negated()
        return self._unit_transform.transform_delta2(unit_tangent) * self._angle_difference

    def curvature_at(self, t: float) -> float:
        angle = self.angle_at(t)
        aq = self._radius_x * math.sin(angle)
        bq = self._radius_y * math.cos(angle)
        denominator = (bq * bq + aq * aq) ** 1.5
        return (-1 if self._anticlockwise else 1) * self._radius_x * self._radius_y / denominator

    def _extremal_angles(self) -> List[float]:
        if self._radius_x <= 0:
            return []
        ratio = self._radius_y / self._radius_x
        tan_rotation = math.tan(self._rotation)
        x_angle = math.atan(-ratio * tan_rotation)
        y_angle = HALF_PI if tan_rotation == 0 else math.atan(ratio / tan_rotation)
        return [x_angle, x_angle + math.pi, y_angle, y_angle + math.pi]

    def _compute_bounds(self) -> Bounds2:
        bounds = Bounds2.point(self._start).with_point(self._end)
        if self._start_angle != self._end_angle:
            for angle in self._extremal_angles():
                if self._unit_arc.contains_angle(angle):
                    bounds = bounds.with_point(self.position_at_angle(angle))
        return bounds

    def get_interior_extrema_ts(self) -> List[float]:
        ts: List[float] = []
        for angle in self._extremal_angles():
            if self._unit_arc.contains_angle(angle):
                t = self.t_at_angle(angle)
                if EXTREMA_EPSILON < t < 1 - EXTREMA_EPSILON:
                    ts.append(t)
        result: List[float] = []
        for t in sorted(ts):
            if not result or abs(result[-1] - t) >= EXTREMA_EPSILON:
                result.append(t)
        return result

    ###########################################################################
    # Decomposition
    ###########################################################################
    def subdivided(self, t: float) -> List[Segment]:
        angle0 = self.angle_at(0)
        angle_t = self.angle_at(t)
        angle1 = self.angle_at(1)
        return [
            EllipticalArc(
                self._center, self._radius_x, self._radius_y, self._rotation, angle0, angle_t, self._anticlockwise
            ),
            EllipticalArc(
                self._center, self._radius_x, self._radius_y, self._rotation, angle_t, angle1, self._anticlockwise
            ),
        ]

    def get_nondegenerate_segments(self) -> List[Segment]:
        if self._radius_x <= 0 or self._radius_y <= 0 or self._start_angle == self._end_angle:
            return []
        if self._radius_x == self._radius_y:
            # a circle: rotation moves into the angles
            start_angle = self._start_angle + self._rotation
            end_angle = self._end_angle + self._rotation
            if abs(self._end_angle - self._start_angle) == TWO_PI:
                end_angle = start_angle - TWO_PI if self._anticlockwise else start_angle + TWO_PI
            return [Arc(self._center, self._radius_x, start_angle, end_angle, self._anticlockwise)]
        return [self]

    def reversed(self) -> EllipticalArc:
        return EllipticalArc(
            self._center,
            self._radius_x,
            self._radius_y,
            self._rotation,
            self._end_angle,
            self._start_angle,
            not self._anticlockwise,
        )

    ###########################################################################
    # Stroking
    ###########################################################################
    def offset_to(self, r: float, reverse: bool) -> List[Segment]:
        """
        Approximate offset curve at signed distance _r_ (along perpendicular),
        sampled at OFFSET_SAMPLE_COUNT points and connected by lines.
        """
        points: List[Vector2] = []
        for ratio in np.linspace(0.0, 1.0, OFFSET_SAMPLE_COUNT):
            ratio = float(1 - ratio) if reverse else float(ratio)
            angle = self.angle_at(ratio)
            points.append(self.position_at_angle(angle) + self.tangent_at_angle(angle).perpendicular.normalized() * r)
        return [Line(point, next_point) for point, next_point in zip(points, points[1:])]

    def stroke_left(self, line_width: float) -> List[Segment]:
        return self.offset_to(-line_width / 2, False)

    def stroke_right(self, line_width: float) -> List[Segment]:
        return self.offset_to(line_width / 2, True)

    ###########################################################################
    # Hit testing
    ###########################################################################
    def intersection(self, ray: Ray2) -> List[RayIntersection]:
        # solve on the unit circle, map the hits back
        transform = self._unit_transform
        unit_ray = transform.inverse_ray2(ray)
        result: List[RayIntersection] = []
        for hit in self._unit_arc.intersection(unit_ray):
            point = transform.transform_position2(hit.point)
            normal = transform.transform_normal2(hit.normal)
            result.append(RayIntersection(ray.position.distance(point), point, normal, hit.wind, hit.t))
        return result

    def winding_intersection(self, ray: Ray2) -> int:
        return self._unit_arc.winding_intersection(self._unit_transform.inverse_ray2(ray))

    ###########################################################################
    # Measures
    ###########################################################################
    def get_signed_area_fragment(self) -> float:
        t0 = self._start_angle
        t1 = self._actual_end_angle
        sin0 = math.sin(t0)
        sin1 = math.sin(t1)
        cos0 = math.cos(t0)
        cos1 = math.cos(t1)
        rx = self._radius_x
        ry = self._radius_y
        cx = self._center.x
        cy = self._center.y
        return 0.5 * (
            ry * rx * (t1 - t0)
            + math.cos(self._rotation) * (rx * cy * (cos0 - cos1) + ry * cx * (sin1 - sin0))
            + math.sin(self._rotation) * (rx * cx * (cos1 - cos0) + ry * cy * (sin1 - sin0))
        )

    ###########################################################################
    # Output
    ###########################################################################
    def get_svg_path_fragment(self) -> str:
        sweep_flag = "0" if self._anticlockwise else "1"
        radii = f"{svg_number(self._radius_x)} {svg_number(self._radius_y)}"
        degrees = svg_number(GeomMath.to_degrees(self._rotation))
        if self._angle_difference < TWO_PI - SVG_FULL_CIRCLE_EPSILON:
            large_arc_flag = "0" if self._angle_difference < math.pi else "1"
            return (
                f"A {radii} {degrees} {large_arc_flag} {sweep_flag} "
                f"{svg_number(self._end.x)} {svg_number(self._end.y)}"
            )
        # SVG cannot draw a full ellipse with a single arc command
        split_point = self.position_at_angle((self._start_angle + self._actual_end_angle) / 2)
        return (
            f"A {radii} {degrees} 0 {sweep_flag} {svg_number(split_point.x)} {svg_number(split_point.y)} "
            f"A {radii} {degrees} 0 {sweep_flag} {svg_number(self._end.x)} {svg_number(self._end.y)}"
        )

    def write_to_context(self, context: PathContext) -> None:
        ellipse = getattr(context, "ellipse", None)
        if ellipse is not None:
            ellipse(
                self._center.x,
                self._center.y,
                self._radius_x,
                self._radius_y,
                self._rotation,
                self._start_angle,
                self._end_angle,
                self._anticlockwise,
            )
            return
        # draw the unit arc inside the unit transform
        values = self._unit_transform.matrix.values
        context.save()
        context.transform(
            float(values[0, 0]),
            float(values[1, 0]),
            float(values[0, 1]),
            float(values[1, 1]),
            float(values[0, 2]),
            float(values[1, 2]),
        )
        context.arc(0, 0, 1, self._start_angle, self._end_angle, self._anticlockwise)
        context.restore()

    def transformed(self, matrix: Matrix3) -> EllipticalArc:
        """
        The elliptical arc under an affine map.

        The linear part of matrix * unit transform is split by a singular value
        decomposition U * diag(sigma) * Vt: U gives the new axes, sigma the new radii
        and Vt maps the old parameter angles onto the new ones.
        """
        linear = matrix.values[:2, :2] @ self._unit_transform.matrix.values[:2, :2]
        u_matrix, sigma, vt_matrix = np.linalg.svd(linear)
        if np.linalg.det(u_matrix) < 0:
            u_matrix[:, 1] *= -1
            vt_matrix[1, :] *= -1
        reflected = bool(np.linalg.det(vt_matrix) < 0)

        def map_angle(angle: float) -> float:
            mapped = vt_matrix @ np.array([math.cos(angle), math.sin(angle)])
            return math.atan2(mapped[1], mapped[0])

        rotation = math.atan2(u_matrix[1, 0], u_matrix[0, 0])
        anticlockwise = self._anticlockwise != reflected
        start_angle = map_angle(self._start_angle)
        end_angle = map_angle(self._end_angle)
        if abs(self._end_angle - self._start_angle) == TWO_PI:
            end_angle = start_angle - TWO_PI if anticlockwise else start_angle + TWO_PI

        return EllipticalArc(
            matrix.times_vector2(self._center),
            float(sigma[0]),
            float(sigma[1]),
            rotation,
            start_angle,
            end_angle,
            anticlockwise,
        )

    ###########################################################################
    # Value semantics / serialization
    ###########################################################################
    def _key(self) -> Tuple:
        return (
            self._center,
            self._radius_x,
            self._radius_y,
            self._rotation,
            self._start_angle,
            self._end_angle,
            self._anticlockwise,
        )

    def to_dict(self) -> dict:
        return {
            "type": self.SEGMENT_TYPE,
            "center_x": self._center.x,
            "center_y": self._center.y,
            "radius_x": self._radius_x,
            "radius_y": self._radius_y,
            "rotation": self._rotation,
            "start_angle": self._start_angle,
            "end_angle": self._end_angle,
            "anticlockwise": self._anticlockwise,
        }

    @classmethod
    def _from_dict(cls, data: dict) -> EllipticalArc:
        return cls(
            Vector2(data["center_x"], data["center_y"]),
            data["radius_x"],
            data["radius_y"],
            data.get("rotation", 0.0),
            data["start_angle"],
            data["end_angle"],
            data.get("anticlockwise", False),
        )

    def __repr__(self) -> str:
        return (
            f"EllipticalArc(center={self._center}, radius_x={self._radius_x}, radius_y={self._radius_y}, "
            f"rotation={self._rotation}, start_angle={self._start_angle}, end_angle={self._end_angle}, "
            f"anticlockwise={self._anticlockwise})"
        )
