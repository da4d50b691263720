"""Shape: a list of subpaths built with a canvas-like path construction API"""

from __future__ import annotations

import logging
import math
from functools import reduce
from typing import TYPE_CHECKING, ClassVar, Dict, List, Optional, Sequence, Union

import numpy as np
import shapely.geometry
import shapely.geometry.polygon
import shapely.ops

from penpath.arc import Arc
from penpath.bounds import Bounds2
from penpath.consts import (
    ARC_LENGTH_CURVE_EPSILON,
    ARC_LENGTH_DISTANCE_EPSILON,
    ARC_LENGTH_MAX_LEVELS,
    AREA_POLYGONIZE_STEPS,
    DASH_CURVE_EPSILON,
    DASH_DISTANCE_EPSILON,
    HALF_PI,
    PIECEWISE_LINEAR_CURVE_EPSILON,
    TWO_PI,
)
from penpath.cubic import Cubic
from penpath.elliptical_arc import EllipticalArc
from penpath.exceptions import GeometryError, UnknownPathCommandError
from penpath.geom_math import GeomMath
from penpath.line import Line
from penpath.line_styles import LineStyles
from penpath.quadratic import Quadratic
from penpath.ray import Ray2, RayIntersection
from penpath.segment import ClosestToPointResult, PiecewiseLinearOptions, PointMap, Segment
from penpath.subpath import Subpath
from penpath.svgpath import SvgPathParser, svg_number
from penpath.vector import Vector2

if TYPE_CHECKING:
    from penpath.context import PathContext
    from penpath.matrix import Matrix3

logger = logging.getLogger(__name__)

# seed of the generator perturbing containment rays that hit a vertex exactly
_RAY_PERTURBATION_SEED: int = 0

# tolerance for consecutive segments in Shape.from_segments
_SEGMENT_CONTINUITY_EPSILON: float = 1.0e-6


###############################################################################
# Shape
###############################################################################
class Shape:
    """
    A 2D shape made of subpaths, built like a canvas path.

    Construction methods mutate the shape and return it for chaining, e.g.
        Shape().move_to(0, 0).line_to(10, 0).line_to(10, 10).close()
    Every construction method has a *_relative variant (arguments relative to the
    current point) and, where it takes points, a *_point variant taking Vector2.

    The shape can also be created from SVG path data:
        Shape("M 0 0 L 10 0 L 10 10 Z")

    Subpaths should be changed through the Shape methods only, otherwise the cached
    bounds are not invalidated.
    """

    # parsed SVG path command -> construction method
    SVG_COMMAND_METHODS: ClassVar[Dict[str, str]] = {
        "moveTo": "move_to",
        "moveToRelative": "move_to_relative",
        "lineTo": "line_to",
        "lineToRelative": "line_to_relative",
        "horizontalLineTo": "horizontal_line_to",
        "horizontalLineToRelative": "horizontal_line_to_relative",
        "verticalLineTo": "vertical_line_to",
        "verticalLineToRelative": "vertical_line_to_relative",
        "cubicCurveTo": "cubic_curve_to",
        "cubicCurveToRelative": "cubic_curve_to_relative",
        "smoothCubicCurveTo": "smooth_cubic_curve_to",
        "smoothCubicCurveToRelative": "smooth_cubic_curve_to_relative",
        "quadraticCurveTo": "quadratic_curve_to",
        "quadraticCurveToRelative": "quadratic_curve_to_relative",
        "smoothQuadraticCurveTo": "smooth_quadratic_curve_to",
        "smoothQuadraticCurveToRelative": "smooth_quadratic_curve_to_relative",
        "ellipticalArcTo": "elliptical_arc_to",
        "ellipticalArcToRelative": "elliptical_arc_to_relative",
        "close": "close",
    }

    def __init__(
        self,
        subpaths: Optional[Union[Sequence[Subpath], str]] = None,
        bounds: Optional[Bounds2] = None,
    ):
        """
        Initialize a shape.

        Args:
            subpaths (Union[Sequence[Subpath], str], optional): subpaths, or SVG path data
                to replay through the construction methods. Defaults to an empty shape.
            bounds (Bounds2, optional): known bounds of the subpaths. Defaults to None (computed lazily).

        Raises:
            SvgPathSyntaxError: for malformed SVG path data
            UnknownPathCommandError: for parsed commands without construction method
        """
        self.subpaths: List[Subpath] = []
        self._bounds: Optional[Bounds2] = None
        self._last_quadratic_control_point: Optional[Vector2] = None
        self._last_cubic_control_point: Optional[Vector2] = None

        if isinstance(subpaths, str):
            self._apply_svg_path(subpaths)
        elif subpaths is not None:
            for subpath in subpaths:
                self._add_subpath(subpath)

        self._bounds = bounds

    @classmethod
    def from_svg_path(cls, path_string: str) -> Shape:
        """Create a shape from SVG path data."""
        return cls(path_string)

    def _apply_svg_path(self, path_string: str) -> None:
        for command in SvgPathParser.parse(path_string):
            method_name = self.SVG_COMMAND_METHODS.get(command.cmd)
            if method_name is None:
                raise UnknownPathCommandError(command.cmd)
            getattr(self, method_name)(*command.args)

    ###########################################################################
    # Internal state
    ###########################################################################
    def invalidate(self) -> None:
        """Drop the cached bounds."""
        self._bounds = None

    def _reset_control_points(self) -> None:
        self._last_quadratic_control_point = None
        self._last_cubic_control_point = None

    def _set_quadratic_control_point(self, point: Vector2) -> None:
        self._last_quadratic_control_point = point
        self._last_cubic_control_point = None

    def _set_cubic_control_point(self, point: Vector2) -> None:
        self._last_quadratic_control_point = None
        self._last_cubic_control_point = point

    def _add_subpath(self, subpath: Subpath) -> Shape:
        self.subpaths.append(subpath)
        self.invalidate()
        return self

    def _has_subpaths(self) -> bool:
        return len(self.subpaths) > 0

    def _get_last_subpath(self) -> Subpath:
        return self.subpaths[-1]

    def _has_current_point(self) -> bool:
        return self._has_subpaths() and self._get_last_subpath().get_length() > 0

    def _add_segment_and_bounds(self, segment: Segment) -> None:
        self._get_last_subpath().add_segment(segment)
        self.invalidate()

    def ensure(self, point: Vector2) -> None:
        """Start a subpath at _point_ if there is no current point yet."""
        if not self._has_subpaths():
            self._add_subpath(Subpath())
        if self._get_last_subpath().get_length() == 0:
            self._get_last_subpath().add_point(point)

    def get_last_point(self) -> Vector2:
        """The current point."""
        if not self._has_subpaths():
            raise IndexError("Shape has no subpaths")
        return self._get_last_subpath().get_last_point()

    def get_relative_point(self) -> Vector2:
        """The current point, or ZERO for an empty shape."""
        if self._has_current_point():
            return self._get_last_subpath().get_last_point()
        return Vector2.ZERO

    def _get_smooth_quadratic_control_point(self) -> Vector2:
        last_point = self.get_last_point()
        if self._last_quadratic_control_point is not None:
            return last_point + (last_point - self._last_quadratic_control_point)
        return last_point

    def _get_smooth_cubic_control_point(self) -> Vector2:
        last_point = self.get_last_point()
        if self._last_cubic_control_point is not None:
            return last_point + (last_point - self._last_cubic_control_point)
        return last_point

    ###########################################################################
    # Move / line
    ###########################################################################
    def move_to(self, x: float, y: float) -> Shape:
        return self.move_to_point(Vector2(x, y))

    def move_to_relative(self, x: float, y: float) -> Shape:
        return self.move_to_point_relative(Vector2(x, y))

    def move_to_point_relative(self, displacement: Vector2) -> Shape:
        return self.move_to_point(self.get_relative_point() + displacement)

    def move_to_point(self, point: Vector2) -> Shape:
        """Start a new subpath at _point_."""
        self._add_subpath(Subpath().add_point(point))
        self._reset_control_points()
        return self

    def line_to(self, x: float, y: float) -> Shape:
        return self.line_to_point(Vector2(x, y))

    def line_to_relative(self, x: float, y: float) -> Shape:
        return self.line_to_point_relative(Vector2(x, y))

    def line_to_point_relative(self, displacement: Vector2) -> Shape:
        return self.line_to_point(self.get_relative_point() + displacement)

    def line_to_point(self, point: Vector2) -> Shape:
        """Straight line from the current point to _point_ (only a move for an empty shape)."""
        if self._has_current_point():
            start = self._get_last_subpath().get_last_point()
            self._get_last_subpath().add_point(point)
            self._add_segment_and_bounds(Line(start, point))
        else:
            self.ensure(point)
        self._reset_control_points()
        return self

    def horizontal_line_to(self, x: float) -> Shape:
        return self.line_to(x, self.get_relative_point().y)

    def horizontal_line_to_relative(self, x: float) -> Shape:
        return self.line_to_relative(x, 0)

    def vertical_line_to(self, y: float) -> Shape:
        return self.line_to(self.get_relative_point().x, y)

    def vertical_line_to_relative(self, y: float) -> Shape:
        return self.line_to_relative(0, y)

    ###########################################################################
    # Bezier curves
    ###########################################################################
    def quadratic_curve_to(self, cpx: float, cpy: float, x: float, y: float) -> Shape:
        return self.quadratic_curve_to_point(Vector2(cpx, cpy), Vector2(x, y))

    def quadratic_curve_to_relative(self, cpx: float, cpy: float, x: float, y: float) -> Shape:
        return self.quadratic_curve_to_point_relative(Vector2(cpx, cpy), Vector2(x, y))

    def quadratic_curve_to_point_relative(self, control_point: Vector2, point: Vector2) -> Shape:
        relative_point = self.get_relative_point()
        return self.quadratic_curve_to_point(relative_point + control_point, relative_point + point)

    def smooth_quadratic_curve_to(self, x: float, y: float) -> Shape:
        """Quadratic with the previous control point reflected at the current point."""
        return self.quadratic_curve_to_point(self._get_smooth_quadratic_control_point(), Vector2(x, y))

    def smooth_quadratic_curve_to_relative(self, x: float, y: float) -> Shape:
        return self.quadratic_curve_to_point(
            self._get_smooth_quadratic_control_point(), Vector2(x, y) + self.get_relative_point()
        )

    def quadratic_curve_to_point(self, control_point: Vector2, point: Vector2) -> Shape:
        self.ensure(control_point)
        start = self._get_last_subpath().get_last_point()
        self._get_last_subpath().add_point(point)
        self._add_segment_and_bounds(Quadratic(start, control_point, point))
        self._set_quadratic_control_point(control_point)
        return self

    def cubic_curve_to(self, cp1x: float, cp1y: float, cp2x: float, cp2y: float, x: float, y: float) -> Shape:
        return self.cubic_curve_to_point(Vector2(cp1x, cp1y), Vector2(cp2x, cp2y), Vector2(x, y))

    def cubic_curve_to_relative(
        self, cp1x: float, cp1y: float, cp2x: float, cp2y: float, x: float, y: float
    ) -> Shape:
        return self.cubic_curve_to_point_relative(Vector2(cp1x, cp1y), Vector2(cp2x, cp2y), Vector2(x, y))

    def cubic_curve_to_point_relative(self, control1: Vector2, control2: Vector2, point: Vector2) -> Shape:
        relative_point = self.get_relative_point()
        return self.cubic_curve_to_point(relative_point + control1, relative_point + control2, relative_point + point)

    def smooth_cubic_curve_to(self, cp2x: float, cp2y: float, x: float, y: float) -> Shape:
        """Cubic with the first control point reflected from the previous cubic."""
        return self.cubic_curve_to_point(self._get_smooth_cubic_control_point(), Vector2(cp2x, cp2y), Vector2(x, y))

    def smooth_cubic_curve_to_relative(self, cp2x: float, cp2y: float, x: float, y: float) -> Shape:
        relative_point = self.get_relative_point()
        return self.cubic_curve_to_point(
            self._get_smooth_cubic_control_point(),
            Vector2(cp2x, cp2y) + relative_point,
            Vector2(x, y) + relative_point,
        )

    def cubic_curve_to_point(self, control1: Vector2, control2: Vector2, point: Vector2) -> Shape:
        self.ensure(control1)
        start = self._get_last_subpath().get_last_point()
        self._add_segment_and_bounds(Cubic(start, control1, control2, point))
        self._get_last_subpath().add_point(point)
        self._set_cubic_control_point(control2)
        return self

    ###########################################################################
    # Arcs
    ###########################################################################
    def arc(
        self,
        center_x: float,
        center_y: float,
        radius: float,
        start_angle: float,
        end_angle: float,
        anticlockwise: bool = False,
    ) -> Shape:
        return self.arc_point(Vector2(center_x, center_y), radius, start_angle, end_angle, anticlockwise)

    def arc_point(
        self,
        center: Vector2,
        radius: float,
        start_angle: float,
        end_angle: float,
        anticlockwise: bool = False,
    ) -> Shape:
        """
        Circular arc; a line connects the current point to the arc start if they differ.

        Args:
            center (Vector2): circle center
            radius (float): circle radius
            start_angle (float): start angle in radians
            end_angle (float): end angle in radians
            anticlockwise (bool, optional): direction of travel. Defaults to False.

        Returns:
            Shape: self
        """
        return self._add_arc_segment(Arc(center, radius, start_angle, end_angle, anticlockwise))

    def elliptical_arc(
        self,
        center_x: float,
        center_y: float,
        radius_x: float,
        radius_y: float,
        rotation: float,
        start_angle: float,
        end_angle: float,
        anticlockwise: bool = False,
    ) -> Shape:
        return self.elliptical_arc_point(
            Vector2(center_x, center_y), radius_x, radius_y, rotation, start_angle, end_angle, anticlockwise
        )

    def elliptical_arc_point(
        self,
        center: Vector2,
        radius_x: float,
        radius_y: float,
        rotation: float,
        start_angle: float,
        end_angle: float,
        anticlockwise: bool = False,
    ) -> Shape:
        """Elliptical arc (rotation in radians); connected like arc_point."""
        return self._add_arc_segment(
            EllipticalArc(center, radius_x, radius_y, rotation, start_angle, end_angle, anticlockwise)
        )

    def _add_arc_segment(self, arc: Union[Arc, EllipticalArc]) -> Shape:
        start_point = arc.start
        end_point = arc.end

        if self._has_current_point() and start_point != self._get_last_subpath().get_last_point():
            self._add_segment_and_bounds(Line(self._get_last_subpath().get_last_point(), start_point))
        if not self._has_subpaths():
            self._add_subpath(Subpath())

        self._get_last_subpath().add_point(start_point)
        self._get_last_subpath().add_point(end_point)
        self._add_segment_and_bounds(arc)
        self._reset_control_points()
        return self

    def elliptical_arc_to(
        self,
        radius_x: float,
        radius_y: float,
        rotation: float,
        large_arc: bool,
        sweep: bool,
        x: float,
        y: float,
    ) -> Shape:
        """
        Elliptical arc to (x, y) with SVG arc parameters.

        The center is computed with the SVG endpoint to center conversion; radii too small
        to reach the end point are scaled up.

        Args:
            radius_x (float): x radius (sign ignored)
            radius_y (float): y radius (sign ignored)
            rotation (float): x-axis rotation in degrees
            large_arc (bool): choose the arc spanning more than pi
            sweep (bool): True for increasing angles
            x (float): end point x
            y (float): end point y

        Returns:
            Shape: self
        """
        large_arc = bool(large_arc)
        sweep = bool(sweep)
        rotation = GeomMath.to_radians(rotation)
        end_point = Vector2(x, y)
        self.ensure(end_point)

        start_point = self._get_last_subpath().get_last_point()
        self._get_last_subpath().add_point(end_point)
        self._reset_control_points()

        radius_x = abs(radius_x)
        radius_y = abs(radius_y)
        if start_point == end_point:
            return self
        if radius_x == 0 or radius_y == 0:
            # out-of-range radii: straight line
            self._add_segment_and_bounds(Line(start_point, end_point))
            return self

        rxs = radius_x * radius_x
        rys = radius_y * radius_y
        prime = ((start_point - end_point) / 2).rotated(-rotation)
        pxs = prime.x * prime.x
        pys = prime.y * prime.y

        size = pxs / rxs + pys / rys
        if size > 1:
            radius_x *= math.sqrt(size)
            radius_y *= math.sqrt(size)
            rxs = radius_x * radius_x
            rys = radius_y * radius_y

        center_prime = Vector2(radius_x * prime.y / radius_y, -radius_y * prime.x / radius_x)
        center_prime = center_prime * math.sqrt(max(0.0, (rxs * rys - rxs * pys - rys * pxs) / (rxs * pys + rys * pxs)))
        if large_arc == sweep:
            center_prime = center_prime.negated()
        center = start_point.blend(end_point, 0.5) + center_prime.rotated(rotation)

        def signed_angle(u: Vector2, v: Vector2) -> float:
            return (1 if u.x * v.y - u.y * v.x > 0 else -1) * u.angle_between(v)

        victor = Vector2((prime.x - center_prime.x) / radius_x, (prime.y - center_prime.y) / radius_y)
        ross = Vector2((-prime.x - center_prime.x) / radius_x, (-prime.y - center_prime.y) / radius_y)
        start_angle = signed_angle(Vector2.X_UNIT, victor)
        delta_angle = math.fmod(signed_angle(victor, ross), TWO_PI)
        if not sweep and delta_angle > 0:
            delta_angle -= TWO_PI
        if sweep and delta_angle < 0:
            delta_angle += TWO_PI

        self._add_segment_and_bounds(
            EllipticalArc(center, radius_x, radius_y, rotation, start_angle, start_angle + delta_angle, not sweep)
        )
        return self

    def elliptical_arc_to_relative(
        self,
        radius_x: float,
        radius_y: float,
        rotation: float,
        large_arc: bool,
        sweep: bool,
        x: float,
        y: float,
    ) -> Shape:
        relative_point = self.get_relative_point()
        return self.elliptical_arc_to(
            radius_x, radius_y, rotation, large_arc, sweep, x + relative_point.x, y + relative_point.y
        )

    ###########################################################################
    # Closing and compound figures
    ###########################################################################
    def close(self) -> Shape:
        """Close the current subpath; a new subpath starts at its first point."""
        if self._has_subpaths():
            previous_path = self._get_last_subpath()
            previous_path.close()
            if previous_path.get_length() > 0:
                next_path = Subpath()
                self._add_subpath(next_path)
                next_path.add_point(previous_path.get_first_point())
            self.invalidate()
        self._reset_control_points()
        return self

    def new_subpath(self) -> Shape:
        """Start an empty subpath; the next command sets its first point."""
        self._add_subpath(Subpath())
        self._reset_control_points()
        return self

    def circle(self, center_x: float, center_y: float, radius: float) -> Shape:
        return self.circle_point(Vector2(center_x, center_y), radius)

    def circle_point(self, center: Vector2, radius: float) -> Shape:
        """Full circle starting at angle 0, closed."""
        return self.arc_point(center, radius, 0, TWO_PI, False).close()

    def ellipse(self, center_x: float, center_y: float, radius_x: float, radius_y: float, rotation: float = 0.0) -> Shape:
        return self.ellipse_point(Vector2(center_x, center_y), radius_x, radius_y, rotation)

    def ellipse_point(self, center: Vector2, radius_x: float, radius_y: float, rotation: float = 0.0) -> Shape:
        """Full ellipse starting at parameter angle 0, closed."""
        return self.elliptical_arc_point(center, radius_x, radius_y, rotation, 0, TWO_PI, False).close()

    def rect(self, x: float, y: float, width: float, height: float) -> Shape:
        """Closed rectangle as its own subpath; afterwards the current point is (x, y)."""
        subpath = Subpath()
        self._add_subpath(subpath)
        subpath.add_point(Vector2(x, y))
        subpath.add_point(Vector2(x + width, y))
        subpath.add_point(Vector2(x + width, y + height))
        subpath.add_point(Vector2(x, y + height))
        self._add_segment_and_bounds(Line(subpath.points[0], subpath.points[1]))
        self._add_segment_and_bounds(Line(subpath.points[1], subpath.points[2]))
        self._add_segment_and_bounds(Line(subpath.points[2], subpath.points[3]))
        subpath.close()
        self._add_subpath(Subpath())
        self._get_last_subpath().add_point(Vector2(x, y))
        self._reset_control_points()
        return self

    def round_rect(self, x: float, y: float, width: float, height: float, arc_width: float, arc_height: float) -> Shape:
        """Rectangle with circular (equal radii) or elliptical corners."""
        low_x = x + arc_width
        high_x = x + width - arc_width
        low_y = y + arc_height
        high_y = y + height - arc_height
        if arc_width == arc_height:
            (
                self.arc(high_x, low_y, arc_width, -HALF_PI, 0, False)
                .arc(high_x, high_y, arc_width, 0, HALF_PI, False)
                .arc(low_x, high_y, arc_width, HALF_PI, math.pi, False)
                .arc(low_x, low_y, arc_width, math.pi, 3 * HALF_PI, False)
                .close()
            )
        else:
            (
                self.elliptical_arc(high_x, low_y, arc_width, arc_height, 0, -HALF_PI, 0, False)
                .elliptical_arc(high_x, high_y, arc_width, arc_height, 0, 0, HALF_PI, False)
                .elliptical_arc(low_x, high_y, arc_width, arc_height, 0, HALF_PI, math.pi, False)
                .elliptical_arc(low_x, low_y, arc_width, arc_height, 0, math.pi, 3 * HALF_PI, False)
                .close()
            )
        return self

    def polygon(self, vertices: Sequence[Vector2]) -> Shape:
        """Closed polygon through _vertices_."""
        if vertices:
            self.move_to_point(vertices[0])
            for vertex in vertices[1:]:
                self.line_to_point(vertex)
        return self.close()

    ###########################################################################
    # Queries
    ###########################################################################
    @property
    def bounds(self) -> Bounds2:
        """Bounds2: Union of the subpath bounds."""
        if self._bounds is None:
            bounds = Bounds2.NOTHING
            for subpath in self.subpaths:
                bounds = bounds.union(subpath.bounds)
            self._bounds = bounds
        return self._bounds

    def get_stroked_bounds(self, line_styles: LineStyles) -> Bounds2:
        """Bounds including the stroke outline for _line_styles_."""
        bounds = self.bounds
        for subpath in self.subpaths:
            for stroked_subpath in subpath.stroked(line_styles):
                bounds = bounds.union(stroked_subpath.bounds)
        return bounds

    def contains_point(self, point: Vector2, rng: Optional[np.random.Generator] = None) -> bool:
        """
        Nonzero winding containment test with a ray in +x direction.

        If the ray would pass exactly through a segment start point, it is rotated by a
        random angle (at most 5 attempts).

        Args:
            point (Vector2): the point to test
            rng (np.random.Generator, optional): source of the rotation angles. Defaults to
                a generator with a fixed seed, so repeated calls give the same answer.
        """
        ray_direction = Vector2.X_UNIT
        for _ in range(5):
            if not self._ray_hits_segment_vertex(point, ray_direction):
                break
            if rng is None:
                rng = np.random.default_rng(_RAY_PERTURBATION_SEED)
            ray_direction = ray_direction.rotated(float(rng.random()))
        return self.winding_intersection(Ray2(point, ray_direction)) != 0

    def get_closest_points(self, point: Vector2) -> List[ClosestToPointResult]:
        """
        Points of the outline closest to _point_.

        Several results are returned if they are equally close (e.g. for the center of an
        arc, although that case subdivides the arc down to the threshold and is slow).
        """
        results: List[ClosestToPointResult] = []
        for subpath in self.subpaths:
            results.extend(subpath.get_closest_points(point))
        return Segment.filter_closest_to_point_result(results)

    def get_closest_point(self, point: Vector2) -> Optional[Vector2]:
        """A point of the outline closest to _point_, None for an empty shape."""
        results = self.get_closest_points(point)
        return results[0].closest_point if results else None

    def _ray_hits_segment_vertex(self, point: Vector2, ray_direction: Vector2) -> bool:
        for subpath in self.subpaths:
            for segment in subpath.segments:
                delta = segment.start - point
                magnitude = delta.magnitude
                if magnitude != 0 and (delta / magnitude - ray_direction).magnitude_squared < 1e-9:
                    return True
        return False

    def intersection(self, ray: Ray2) -> List[RayIntersection]:
        """All hits with segments and implicit closing lines, sorted by distance."""
        hits: List[RayIntersection] = []
        for subpath in self.subpaths:
            if not subpath.is_drawable():
                continue
            for segment in subpath.segments:
                hits.extend(segment.intersection(ray))
            if subpath.has_closing_segment():
                hits.extend(subpath.get_closing_segment().intersection(ray))
        return sorted(hits, key=lambda hit: hit.distance)

    def winding_intersection(self, ray: Ray2) -> int:
        """Sum of the winding contributions of all hits."""
        wind = 0
        for subpath in self.subpaths:
            if not subpath.is_drawable():
                continue
            for segment in subpath.segments:
                wind += segment.winding_intersection(ray)
            if subpath.has_closing_segment():
                wind += subpath.get_closing_segment().winding_intersection(ray)
        return wind

    def intersects_bounds(self, bounds: Bounds2) -> bool:
        """True if the outline of the shape touches _bounds_ or lies inside it."""
        if self.bounds.is_empty():
            return False
        if bounds.contains_bounds(self.bounds):
            return True

        min_corner = Vector2(bounds.min_x, bounds.min_y)
        max_corner = Vector2(bounds.max_x, bounds.max_y)
        horizontal_hits = self.intersection(Ray2(min_corner, Vector2(1, 0))) + self.intersection(
            Ray2(max_corner, Vector2(-1, 0))
        )
        if any(bounds.min_x <= hit.point.x <= bounds.max_x for hit in horizontal_hits):
            return True
        vertical_hits = self.intersection(Ray2(min_corner, Vector2(0, 1))) + self.intersection(
            Ray2(max_corner, Vector2(0, -1))
        )
        return any(bounds.min_y <= hit.point.y <= bounds.max_y for hit in vertical_hits)

    def interior_intersects_line_segment(self, start_point: Vector2, end_point: Vector2) -> bool:
        """True if the line segment runs through the filled interior or crosses the outline."""
        if self.contains_point(start_point.blend(end_point, 0.5)):
            return True
        length = start_point.distance(end_point)
        if length == 0:
            return False
        hits = self.intersection(Ray2(start_point, end_point - start_point))
        return any(hit.distance <= length for hit in hits)

    ###########################################################################
    # Measures
    ###########################################################################
    def get_nonoverlapping_area(self) -> float:
        """Area assuming that no subpaths overlap or self-intersect."""
        return abs(sum(subpath.get_signed_area() for subpath in self.subpaths))

    def to_polygons(self, steps: int = AREA_POLYGONIZE_STEPS) -> shapely.geometry.base.BaseGeometry:
        """
        Filled area as shapely geometry.

        Each drawable subpath is polygonized and cleaned with buffer(0). Subpaths with the
        orientation of the largest subpath add to the area, the others cut holes.

        Args:
            steps (int, optional): samples per curved segment. Defaults to AREA_POLYGONIZE_STEPS.

        Returns:
            shapely.geometry.base.BaseGeometry: Polygon or MultiPolygon (empty if nothing is filled)
        """
        rings = []
        for subpath in self.subpaths:
            if not subpath.is_drawable():
                continue
            points = subpath.polygonize(steps)
            if points.shape[0] < 3:
                logger.warning("Skipping subpath with fewer than 3 polygon points")
                continue
            cleaned = shapely.geometry.Polygon(points.tolist()).buffer(0)
            if cleaned.is_empty:
                logger.warning("Skipping subpath without area after cleanup")
                continue
            rings.append((subpath.get_signed_area(), cleaned))

        if not rings:
            return shapely.geometry.Polygon()

        additive_is_positive = max(rings, key=lambda ring: abs(ring[0]))[0] > 0
        additive = [polygon for area, polygon in rings if (area > 0) == additive_is_positive]
        subtractive = [polygon for area, polygon in rings if (area > 0) != additive_is_positive]

        result = shapely.ops.unary_union(additive)
        if subtractive:
            result = result.difference(shapely.ops.unary_union(subtractive))
        return result

    def get_area(self, steps: int = AREA_POLYGONIZE_STEPS) -> float:
        """Area of the filled region with overlaps counted once (polygon approximation)."""
        return float(self.to_polygons(steps).area)

    def get_approximate_area(self, num_samples: int, seed: Optional[int] = None) -> float:
        """Monte-Carlo estimate of the filled area from _num_samples_ points in the bounds."""
        bounds = self.bounds
        if bounds.is_empty() or num_samples <= 0:
            return 0.0
        rng = np.random.default_rng(seed)
        samples = rng.random((num_samples, 2))
        xs = bounds.min_x + samples[:, 0] * bounds.width
        ys = bounds.min_y + samples[:, 1] * bounds.height
        count = sum(1 for x, y in zip(xs, ys) if self.contains_point(Vector2(float(x), float(y)), rng))
        return bounds.width * bounds.height * count / num_samples

    def get_arc_length(
        self,
        distance_epsilon: float = ARC_LENGTH_DISTANCE_EPSILON,
        curve_epsilon: float = ARC_LENGTH_CURVE_EPSILON,
        max_levels: int = ARC_LENGTH_MAX_LEVELS,
    ) -> float:
        return sum(subpath.get_arc_length(distance_epsilon, curve_epsilon, max_levels) for subpath in self.subpaths)

    ###########################################################################
    # Derived shapes
    ###########################################################################
    def copy(self) -> Shape:
        """Copy with copied subpaths."""
        return Shape([subpath.copy() for subpath in self.subpaths], self._bounds)

    def transformed(self, matrix: Matrix3) -> Shape:
        """Shape mapped by _matrix_; bounds are recomputed from the mapped segments."""
        subpaths = [subpath.transformed(matrix) for subpath in self.subpaths]
        bounds = Bounds2.NOTHING
        for subpath in subpaths:
            bounds = bounds.union(subpath.bounds)
        return Shape(subpaths, bounds)

    def reversed(self) -> Shape:
        """Shape with every subpath traversed backwards."""
        return Shape([subpath.reversed() for subpath in self.subpaths])

    def get_stroked_shape(self, line_styles: Optional[LineStyles] = None) -> Shape:
        """Shape made of the stroke outlines of all subpaths."""
        subpaths: List[Subpath] = []
        for subpath in self.subpaths:
            subpaths.extend(subpath.stroked(line_styles))
        bounds = Bounds2.NOTHING
        for subpath in subpaths:
            bounds = bounds.union(subpath.bounds)
        return Shape(subpaths, bounds)

    def get_offset_shape(self, distance: float) -> Shape:
        """Shape with every subpath offset by _distance_."""
        subpaths = [subpath.offset(distance) for subpath in self.subpaths]
        bounds = Bounds2.NOTHING
        for subpath in subpaths:
            bounds = bounds.union(subpath.bounds)
        return Shape(subpaths, bounds)

    def get_dashed_shape(
        self,
        line_dash: Sequence[float],
        line_dash_offset: float = 0.0,
        distance_epsilon: float = DASH_DISTANCE_EPSILON,
        curve_epsilon: float = DASH_CURVE_EPSILON,
    ) -> Shape:
        """
        Shape of the pieces drawn by the dash pattern, every subpath dashed on its own.

        Raises:
            ValueError: if _line_dash_ is empty or has no positive length
        """
        subpaths: List[Subpath] = []
        for subpath in self.subpaths:
            subpaths.extend(subpath.dashed(line_dash, line_dash_offset, distance_epsilon, curve_epsilon))
        return Shape(subpaths)

    def get_dashed_shape_for_styles(self, line_styles: LineStyles) -> Shape:
        """Dashed shape for the pattern of _line_styles_; a copy if it draws solid lines."""
        if sum(line_styles.line_dash) <= 0:
            return self.copy()
        return self.get_dashed_shape(line_styles.line_dash, line_styles.line_dash_offset)

    ###########################################################################
    # Nonlinear transforms
    ###########################################################################
    def nonlinear_transformed(
        self,
        point_map: PointMap,
        options: Optional[PiecewiseLinearOptions] = None,
        include_curvature: bool = False,
    ) -> Shape:
        """
        Line approximation of the shape mapped point by point by _point_map_.

        Args:
            point_map (PointMap): any function from Vector2 to Vector2
            options (PiecewiseLinearOptions, optional): approximation settings. Defaults to the
                standard levels, with a curvature limit if _include_curvature_ is set.
            include_curvature (bool, optional): also subdivide where the mapped curve bends
                strongly relative to its length. Defaults to False.
        """
        if options is None:
            options = PiecewiseLinearOptions(
                curve_epsilon=PIECEWISE_LINEAR_CURVE_EPSILON if include_curvature else None
            )
        return Shape([subpath.nonlinear_transformed(point_map, options) for subpath in self.subpaths])

    def polar_to_cartesian(self, options: Optional[PiecewiseLinearOptions] = None) -> Shape:
        """Shape with x read as angle and y as radius; constant radius lines become arcs."""
        return Shape([subpath.polar_to_cartesian(options) for subpath in self.subpaths])

    def to_piecewise_linear(self, options: Optional[PiecewiseLinearOptions] = None) -> Shape:
        """Shape made of lines only."""
        return Shape([subpath.to_piecewise_linear(options) for subpath in self.subpaths])

    ###########################################################################
    # Boolean operations
    ###########################################################################
    @classmethod
    def from_polygons(cls, geometry: shapely.geometry.base.BaseGeometry) -> Shape:
        """
        Shape of closed line subpaths from shapely geometry.

        Polygon exteriors run counterclockwise and holes clockwise (in a y-up frame), so the
        result fills the same region under the nonzero rule. Geometry without area in a
        collection (points, lines) is dropped.
        """
        shape = cls()
        if geometry.is_empty:
            return shape
        if isinstance(geometry, shapely.geometry.Polygon):
            polygon = shapely.geometry.polygon.orient(geometry, 1.0)
            for ring in [polygon.exterior] + list(polygon.interiors):
                points = [Vector2(float(x), float(y)) for x, y in ring.coords]
                lines = [Line(start, end) for start, end in zip(points, points[1:])]
                shape._add_subpath(Subpath(lines, None, True))
        elif isinstance(geometry, (shapely.geometry.MultiPolygon, shapely.geometry.GeometryCollection)):
            for part in geometry.geoms:
                for subpath in cls.from_polygons(part).subpaths:
                    shape._add_subpath(subpath)
        else:
            logger.debug("Dropping %s without area", geometry.geom_type)
        return shape

    def shape_union(self, other: Shape) -> Shape:
        """Region filled by either shape, as lines (curves are polygonized)."""
        return Shape.from_polygons(self.to_polygons().union(other.to_polygons()))

    def shape_intersection(self, other: Shape) -> Shape:
        """Region filled by both shapes, as lines."""
        return Shape.from_polygons(self.to_polygons().intersection(other.to_polygons()))

    def shape_difference(self, other: Shape) -> Shape:
        """Region filled by this shape but not by _other_, as lines."""
        return Shape.from_polygons(self.to_polygons().difference(other.to_polygons()))

    def shape_xor(self, other: Shape) -> Shape:
        """Region filled by exactly one of both shapes, as lines."""
        return Shape.from_polygons(self.to_polygons().symmetric_difference(other.to_polygons()))

    @classmethod
    def union_all(cls, shapes: Sequence[Shape]) -> Shape:
        """Region filled by any of _shapes_."""
        return cls.from_polygons(shapely.ops.unary_union([shape.to_polygons() for shape in shapes]))

    @classmethod
    def intersection_all(cls, shapes: Sequence[Shape]) -> Shape:
        """Region filled by all of _shapes_ (empty for no shapes)."""
        if not shapes:
            return cls()
        return cls.from_polygons(reduce(lambda a, b: a.intersection(b), [shape.to_polygons() for shape in shapes]))

    @classmethod
    def xor_all(cls, shapes: Sequence[Shape]) -> Shape:
        """Region filled by an odd number of _shapes_."""
        if not shapes:
            return cls()
        return cls.from_polygons(
            reduce(lambda a, b: a.symmetric_difference(b), [shape.to_polygons() for shape in shapes])
        )

    ###########################################################################
    # Output
    ###########################################################################
    def get_svg_path(self) -> str:
        """SVG path data: "M x y <segments> [Z]" per drawable subpath."""
        parts: List[str] = []
        for subpath in self.subpaths:
            if not subpath.is_drawable():
                continue
            start_point = subpath.segments[0].start
            parts.append(f"M {svg_number(start_point.x)} {svg_number(start_point.y)}")
            parts.extend(segment.get_svg_path_fragment() for segment in subpath.segments)
            if subpath.is_closed():
                parts.append("Z")
        return " ".join(parts)

    def write_to_context(self, context: PathContext) -> None:
        for subpath in self.subpaths:
            subpath.write_to_context(context)

    def to_dict(self) -> dict:
        """Convert the shape to a dictionary for serialization."""
        return {"type": "Shape", "subpaths": [subpath.to_dict() for subpath in self.subpaths]}

    @classmethod
    def from_dict(cls, data: dict) -> Shape:
        """Create a Shape from a dictionary."""
        if data.get("type", "Shape") != "Shape":
            raise ValueError(f"Not a shape: {data.get('type')}")
        return cls([Subpath.from_dict(subpath) for subpath in data.get("subpaths", [])])

    def __repr__(self) -> str:
        return f"Shape({self.get_svg_path()!r})"

    ###########################################################################
    # Constructors
    ###########################################################################
    @classmethod
    def rectangle(cls, x: float, y: float, width: float, height: float) -> Shape:
        return cls().rect(x, y, width, height)

    @classmethod
    def round_rectangle(
        cls, x: float, y: float, width: float, height: float, arc_width: float, arc_height: float
    ) -> Shape:
        return cls().round_rect(x, y, width, height, arc_width, arc_height)

    @classmethod
    def bounds_shape(cls, bounds: Bounds2) -> Shape:
        """Rectangle covering _bounds_."""
        return cls().rect(bounds.min_x, bounds.min_y, bounds.width, bounds.height)

    @classmethod
    def line_segment(cls, x1: float, y1: float, x2: float, y2: float) -> Shape:
        return cls().move_to(x1, y1).line_to(x2, y2)

    @classmethod
    def regular_polygon(cls, sides: int, radius: float) -> Shape:
        """Regular polygon around the origin, first vertex on the positive x axis."""
        shape = cls()
        for k in range(sides):
            point = Vector2.create_polar(radius, TWO_PI * k / sides)
            if k == 0:
                shape.move_to_point(point)
            else:
                shape.line_to_point(point)
        return shape.close()

    @classmethod
    def circle_shape(cls, radius: float, center: Vector2 = Vector2.ZERO) -> Shape:
        return cls().circle_point(center, radius)

    @classmethod
    def ellipse_shape(
        cls, radius_x: float, radius_y: float, rotation: float = 0.0, center: Vector2 = Vector2.ZERO
    ) -> Shape:
        return cls().ellipse_point(center, radius_x, radius_y, rotation)

    @classmethod
    def arc_shape(
        cls,
        center: Vector2,
        radius: float,
        start_angle: float,
        end_angle: float,
        anticlockwise: bool = False,
    ) -> Shape:
        return cls().arc_point(center, radius, start_angle, end_angle, anticlockwise)

    @classmethod
    def polygon_shape(cls, vertices: Sequence[Vector2]) -> Shape:
        return cls().polygon(vertices)

    @classmethod
    def from_segments(cls, segments: Sequence[Segment], closed: bool = False) -> Shape:
        """
        Shape with a single subpath made of connected _segments_.

        Raises:
            GeometryError: if a segment does not start where the previous one ends
        """
        for previous, segment in zip(segments, segments[1:]):
            if not previous.end.equals_epsilon(segment.start, _SEGMENT_CONTINUITY_EPSILON):
                raise GeometryError(f"Mismatched segments: {previous.end} != {segment.start}")
        return cls([Subpath(segments, None, closed)])
