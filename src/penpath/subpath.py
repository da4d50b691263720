"""A connected chain of segments and its stroked outline"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, List, Optional, Sequence

import numpy as np
from numpy.typing import NDArray

from penpath.arc import Arc
from penpath.bounds import Bounds2
from penpath.consts import (
    ARC_LENGTH_CURVE_EPSILON,
    ARC_LENGTH_DISTANCE_EPSILON,
    ARC_LENGTH_MAX_LEVELS,
    CLOSING_SEGMENT_EPSILON,
    DASH_CURVE_EPSILON,
    DASH_DISTANCE_EPSILON,
    DASH_JOIN_EPSILON,
)
from penpath.exceptions import GeometryError
from penpath.line import Line
from penpath.line_styles import LineStyles
from penpath.segment import ClosestToPointResult, PiecewiseLinearOptions, PointMap, Segment
from penpath.vector import Vector2

if TYPE_CHECKING:
    from penpath.context import PathContext
    from penpath.matrix import Matrix3

logger = logging.getLogger(__name__)


###############################################################################
# Subpath
###############################################################################
class Subpath:
    """
    One continuous pen stroke: a list of segments, the points passed through while
    constructing it, and a closed flag.

    Closing a subpath only marks it closed. If the last point differs from the first
    point, the line back to the start stays implicit (see get_closing_segment).

    Bounds and the stroked outline are cached and invalidated by every mutation.
    """

    def __init__(
        self,
        segments: Optional[Sequence[Segment]] = None,
        points: Optional[Sequence[Vector2]] = None,
        closed: bool = False,
    ):
        self.segments: List[Segment] = []
        if points is not None:
            self.points: List[Vector2] = list(points)
        elif segments:
            self.points = [segment.start for segment in segments] + [segments[-1].end]
        else:
            self.points = []
        self.closed: bool = closed

        self._bounds: Optional[Bounds2] = None
        self._stroked_subpaths: Optional[List[Subpath]] = None
        self._stroked_styles: Optional[LineStyles] = None

        for segment in segments or []:
            for nondegenerate in segment.get_nondegenerate_segments():
                self._add_segment_directly(nondegenerate)

    ###########################################################################
    # Mutation
    ###########################################################################
    def invalidate(self) -> None:
        """Drop cached bounds and stroke outline."""
        self._bounds = None
        self._stroked_subpaths = None
        self._stroked_styles = None

    def _add_segment_directly(self, segment: Segment) -> None:
        if not (segment.start.is_finite() and segment.end.is_finite()):
            raise GeometryError(f"Segment with non-finite end points: {segment!r}")
        self.segments.append(segment)

    def add_segment(self, segment: Segment) -> Subpath:
        """Append the nondegenerate pieces of _segment_."""
        nondegenerate_segments = segment.get_nondegenerate_segments()
        if not nondegenerate_segments:
            logger.debug("Dropping degenerate segment %r", segment)
        for nondegenerate in nondegenerate_segments:
            self._add_segment_directly(nondegenerate)
        self.invalidate()
        return self

    def add_point(self, point: Vector2) -> Subpath:
        """Record a point passed by the pen."""
        self.points.append(point)
        return self

    def close(self) -> None:
        """Mark the subpath closed."""
        self.closed = True
        self.invalidate()

    ###########################################################################
    # Accessors
    ###########################################################################
    @property
    def bounds(self) -> Bounds2:
        """Bounds2: Union of the bounds of all segments."""
        if self._bounds is None:
            bounds = Bounds2.NOTHING
            for segment in self.segments:
                bounds = bounds.union(segment.bounds)
            self._bounds = bounds
        return self._bounds

    def get_length(self) -> int:
        """Number of recorded points."""
        return len(self.points)

    def get_first_point(self) -> Vector2:
        if not self.points:
            raise IndexError("Subpath has no points")
        return self.points[0]

    def get_last_point(self) -> Vector2:
        if not self.points:
            raise IndexError("Subpath has no points")
        return self.points[-1]

    def get_first_segment(self) -> Segment:
        if not self.segments:
            raise IndexError("Subpath has no segments")
        return self.segments[0]

    def get_last_segment(self) -> Segment:
        if not self.segments:
            raise IndexError("Subpath has no segments")
        return self.segments[-1]

    def is_drawable(self) -> bool:
        """True if there is at least one segment."""
        return len(self.segments) > 0

    def is_closed(self) -> bool:
        return self.closed

    def has_closing_segment(self) -> bool:
        """True if the first and last point differ, i.e. closing needs an extra line."""
        if not self.points:
            return False
        return not self.get_first_point().equals_epsilon(self.get_last_point(), CLOSING_SEGMENT_EPSILON)

    def get_closing_segment(self) -> Line:
        """The implicit line from the last point back to the first point."""
        if not self.has_closing_segment():
            raise GeometryError("Subpath does not need a closing segment")
        return Line(self.get_last_point(), self.get_first_point())

    def get_fill_segments(self) -> List[Segment]:
        """Segments bounding the filled area, including the implicit closing line."""
        segments = list(self.segments)
        if self.has_closing_segment():
            segments.append(self.get_closing_segment())
        return segments

    ###########################################################################
    # Measures
    ###########################################################################
    def get_signed_area(self) -> float:
        """Signed area enclosed by the fill segments (positive for clockwise on screen)."""
        return sum(segment.get_signed_area_fragment() for segment in self.get_fill_segments())

    def get_arc_length(
        self,
        distance_epsilon: float = ARC_LENGTH_DISTANCE_EPSILON,
        curve_epsilon: float = ARC_LENGTH_CURVE_EPSILON,
        max_levels: int = ARC_LENGTH_MAX_LEVELS,
    ) -> float:
        """Length of all segments (without the implicit closing line)."""
        return sum(segment.get_arc_length(distance_epsilon, curve_epsilon, max_levels) for segment in self.segments)

    def polygonize(self, steps: int) -> NDArray[np.float64]:
        """
        Approximate the fill outline by a polygon.

        Lines contribute their end points only, curves are sampled at _steps_ + 1 values.

        Returns:
            NDArray[np.float64]: points of shape (n, 2), the last point is not repeated
        """
        fill_segments = self.get_fill_segments()
        if not fill_segments:
            return np.empty((0, 2), dtype=np.float64)
        parts = [segment.polygonize(1 if isinstance(segment, Line) else steps)[:-1] for segment in fill_segments]
        return np.vstack(parts)

    def get_closest_points(self, point: Vector2) -> List[ClosestToPointResult]:
        """Points of the drawn segments closest to _point_ (the closing line counts if closed)."""
        segments = self.get_fill_segments() if self.closed else self.segments
        return Segment.filter_closest_to_point_result(
            [result for segment in segments for result in segment.get_closest_points(point)]
        )

    ###########################################################################
    # Derived subpaths
    ###########################################################################
    def copy(self) -> Subpath:
        """Copy with its own segment and point lists."""
        return Subpath(list(self.segments), list(self.points), self.closed)

    def reversed(self) -> Subpath:
        """The same subpath traversed backwards."""
        return Subpath(
            [segment.reversed() for segment in reversed(self.segments)],
            list(reversed(self.points)),
            self.closed,
        )

    def transformed(self, matrix: Matrix3) -> Subpath:
        return Subpath(
            [segment.transformed(matrix) for segment in self.segments],
            [matrix.times_vector2(point) for point in self.points],
            self.closed,
        )

    def offset(self, distance: float) -> Subpath:
        """
        Subpath offset by _distance_ to the left, corners connected by circular arcs.

        Args:
            distance (float): signed offset distance

        Returns:
            Subpath: the offset subpath
        """
        if not self.is_drawable():
            return Subpath([], None, self.closed)
        if distance == 0:
            return Subpath(list(self.segments), None, self.closed)

        offsets = [segment.stroke_left(2 * distance) for segment in self.segments]
        segments: List[Segment] = []
        for i, segment in enumerate(self.segments):
            if self.closed or i > 0:
                previous = self.segments[i - 1]
                from_tangent = previous.end_tangent
                to_tangent = segment.start_tangent
                start_angle = (from_tangent.perpendicular.negated() * distance).angle
                end_angle = (to_tangent.perpendicular.negated() * distance).angle
                anticlockwise = from_tangent.perpendicular.dot(to_tangent) > 0
                segments.append(Arc(segment.start, abs(distance), start_angle, end_angle, anticlockwise))
            segments.extend(offsets[i])
        return Subpath(segments, None, self.closed)

    def to_piecewise_linear(self, options: Optional[PiecewiseLinearOptions] = None) -> Subpath:
        """Subpath with every segment replaced by its line approximation."""
        lines: List[Segment] = []
        for segment in self.segments:
            lines.extend(segment.to_piecewise_linear_segments(options))
        return Subpath(lines, None, self.closed)

    def nonlinear_transformed(self, point_map: PointMap, options: Optional[PiecewiseLinearOptions] = None) -> Subpath:
        """
        Line approximation of the subpath with _point_map_ applied to every point.

        A closed subpath maps its implicit closing line as well, since its image is
        generally not straight.
        """
        segments = self.get_fill_segments() if self.closed else self.segments
        lines: List[Segment] = []
        for segment in segments:
            lines.extend(segment.to_piecewise_linear_segments(options, point_map))
        return Subpath(lines, None, self.closed)

    def polar_to_cartesian(self, options: Optional[PiecewiseLinearOptions] = None) -> Subpath:
        """Subpath with x read as angle and y as radius, mapped to cartesian coordinates."""
        segments = self.get_fill_segments() if self.closed else self.segments
        mapped: List[Segment] = []
        for segment in segments:
            mapped.extend(segment.polar_to_cartesian(options))
        return Subpath(mapped, None, self.closed)

    def dashed(
        self,
        line_dash: Sequence[float],
        line_dash_offset: float = 0.0,
        distance_epsilon: float = DASH_DISTANCE_EPSILON,
        curve_epsilon: float = DASH_CURVE_EPSILON,
    ) -> List[Subpath]:
        """
        Split the subpath into the pieces drawn by a dash pattern.

        The pattern runs continuously over segment boundaries. For a closed subpath the
        implicit closing line is dashed too, and a dash running over the start point is
        joined with the first dash.

        Args:
            line_dash (Sequence[float]): alternating dash and gap lengths, positive sum
            line_dash_offset (float): distance into the pattern at the start point
            distance_epsilon (float): flatness distance threshold for measuring lengths
            curve_epsilon (float): flatness curvature threshold for measuring lengths

        Returns:
            List[Subpath]: open subpaths for the dashes, or a closed copy if the pattern
            never switches off
        """
        segments = self.get_fill_segments() if self.closed else self.segments
        if not segments:
            return []

        runs: List[List[Segment]] = []
        current: List[Segment] = []
        started_inside = False
        switched = False
        offset = line_dash_offset
        for index, segment in enumerate(segments):
            dash_values = segment.get_dash_values(line_dash, offset, distance_epsilon, curve_epsilon)
            offset += dash_values.arc_length
            inside = dash_values.initially_inside
            if index == 0:
                started_inside = inside
            if not inside and current:
                runs.append(current)
                current = []

            ts = [0.0] + dash_values.values + [1.0]
            for i in range(len(ts) - 1):
                t0 = ts[i]
                t1 = ts[i + 1]
                if inside and t1 > t0:
                    current.append(segment if t0 == 0 and t1 == 1 else segment.slice(t0, t1))
                if i < len(dash_values.values):
                    switched = True
                    if inside and current:
                        runs.append(current)
                        current = []
                    inside = not inside

        if self.closed and not switched and current and not runs:
            return [Subpath(current, None, True)]

        if current:
            if (
                self.closed
                and started_inside
                and runs
                and current[-1].end.equals_epsilon(runs[0][0].start, DASH_JOIN_EPSILON)
            ):
                runs[0] = current + runs[0]
            else:
                runs.append(current)

        logger.debug("Dashed subpath of %d segments into %d pieces", len(segments), len(runs))
        return [Subpath(run) for run in runs]

    def stroked(self, line_styles: Optional[LineStyles] = None) -> List[Subpath]:
        """
        Outline of the stroke as closed subpaths.

        An open subpath gives one ring (left side, end cap, right side, start cap),
        a closed subpath gives two rings (left and right side).
        The result is cached for styles equal by value to the last call.

        Args:
            line_styles (LineStyles, optional): stroke styles, defaults to LineStyles()

        Returns:
            List[Subpath]: the outline rings, empty if nothing is drawable
        """
        if not self.is_drawable():
            return []
        if line_styles is None:
            line_styles = LineStyles()

        if self._stroked_subpaths is not None and self._stroked_styles == line_styles:
            logger.debug("Reusing cached stroke outline")
            return self._stroked_subpaths

        logger.debug("Stroking subpath of %d segments with width %s", len(self.segments), line_styles.line_width)
        line_width = line_styles.line_width
        segments = self.segments
        first_segment = segments[0]
        last_segment = segments[-1]

        left_segments: List[Segment] = []
        right_segments: List[Segment] = []

        already_closed = last_segment.end.equals_epsilon(first_segment.start, CLOSING_SEGMENT_EPSILON)
        closing_segment = None if already_closed else Line(last_segment.end, first_segment.start)

        # left side, from start to end
        for i, segment in enumerate(segments):
            if i > 0:
                left_segments.extend(
                    line_styles.left_join(segment.start, segments[i - 1].end_tangent, segment.start_tangent)
                )
            left_segments.extend(segment.stroke_left(line_width))

        # right side, from end to start
        for i in range(len(segments) - 1, -1, -1):
            if i < len(segments) - 1:
                right_segments.extend(
                    line_styles.right_join(segments[i].end, segments[i].end_tangent, segments[i + 1].start_tangent)
                )
            right_segments.extend(segments[i].stroke_right(line_width))

        if self.closed:
            if closing_segment is None:
                left_segments.extend(
                    line_styles.left_join(last_segment.end, last_segment.end_tangent, first_segment.start_tangent)
                )
                right_segments.extend(
                    line_styles.right_join(last_segment.end, last_segment.end_tangent, first_segment.start_tangent)
                )
            else:
                left_segments.extend(
                    line_styles.left_join(closing_segment.start, last_segment.end_tangent, closing_segment.start_tangent)
                )
                left_segments.extend(closing_segment.stroke_left(line_width))
                left_segments.extend(
                    line_styles.left_join(closing_segment.end, closing_segment.end_tangent, first_segment.start_tangent)
                )

                right_segments.extend(
                    line_styles.right_join(closing_segment.end, closing_segment.end_tangent, first_segment.start_tangent)
                )
                right_segments.extend(closing_segment.stroke_right(line_width))
                right_segments.extend(
                    line_styles.right_join(closing_segment.start, last_segment.end_tangent, closing_segment.start_tangent)
                )
            subpaths = [Subpath(left_segments, None, True), Subpath(right_segments, None, True)]
        else:
            subpaths = [
                Subpath(
                    left_segments
                    + line_styles.cap(last_segment.end, last_segment.end_tangent)
                    + right_segments
                    + line_styles.cap(first_segment.start, first_segment.start_tangent.negated()),
                    None,
                    True,
                )
            ]

        self._stroked_subpaths = subpaths
        self._stroked_styles = line_styles
        return subpaths

    ###########################################################################
    # Output
    ###########################################################################
    def write_to_context(self, context: PathContext) -> None:
        """Draw into a canvas-like context: move to the start, every segment, close."""
        if not self.is_drawable():
            return
        start_point = self.segments[0].start
        context.move_to(start_point.x, start_point.y)
        for segment in self.segments:
            segment.write_to_context(context)
        if self.closed:
            context.close_path()

    ###########################################################################
    # Serialization
    ###########################################################################
    def to_dict(self) -> dict:
        """Convert the subpath to a dictionary for serialization."""
        return {
            "type": "Subpath",
            "segments": [segment.to_dict() for segment in self.segments],
            "points": [{"x": point.x, "y": point.y} for point in self.points],
            "closed": self.closed,
        }

    @classmethod
    def from_dict(cls, data: dict) -> Subpath:
        """Create a Subpath from a dictionary."""
        if data.get("type", "Subpath") != "Subpath":
            raise ValueError(f"Not a subpath: {data.get('type')}")
        return cls(
            [Segment.from_dict(segment) for segment in data.get("segments", [])],
            [Vector2(point["x"], point["y"]) for point in data.get("points", [])],
            data.get("closed", False),
        )

    def __repr__(self) -> str:
        return f"Subpath(segments={len(self.segments)}, points={len(self.points)}, closed={self.closed})"
