"""Common base of all path segments"""

from __future__ import annotations

import math
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import TYPE_CHECKING, Callable, ClassVar, Dict, List, Optional, Sequence, Tuple, Type

import numpy as np
from numpy.typing import NDArray

from penpath.bounds import Bounds2
from penpath.consts import (
    ARC_LENGTH_CURVE_EPSILON,
    ARC_LENGTH_DISTANCE_EPSILON,
    ARC_LENGTH_MAX_LEVELS,
    CLOSEST_POINT_EPSILON,
    CLOSEST_POINT_THRESHOLD,
    DASH_MAX_DEPTH,
    PIECEWISE_LINEAR_DISTANCE_EPSILON,
    PIECEWISE_LINEAR_MAX_LEVELS,
    PIECEWISE_LINEAR_MIN_LEVELS,
)
from penpath.geom_math import GeomMath
from penpath.ray import Ray2, RayIntersection
from penpath.vector import Vector2

if TYPE_CHECKING:
    from penpath.context import PathContext
    from penpath.line import Line
    from penpath.matrix import Matrix3

PointMap = Callable[[Vector2], Vector2]


def _identity_point_map(point: Vector2) -> Vector2:
    return point


def polar_point_map(point: Vector2) -> Vector2:
    """Polar (x = angle, y = radius) to cartesian."""
    return Vector2.create_polar(point.y, point.x)


###############################################################################
# Result and option types
###############################################################################
@dataclass(frozen=True)
class PiecewiseLinearOptions:
    """
    Controls the adaptive line approximation of segments.

    Attributes:
        min_levels (int): subdivision levels forced regardless of flatness
        max_levels (int): subdivision levels never exceeded
        distance_epsilon (float, optional): maximum squared deviation of the midpoint, None for no limit
        curve_epsilon (float, optional): maximum squared deviation relative to the squared chord, None for no limit
    """

    min_levels: int = PIECEWISE_LINEAR_MIN_LEVELS
    max_levels: int = PIECEWISE_LINEAR_MAX_LEVELS
    distance_epsilon: Optional[float] = PIECEWISE_LINEAR_DISTANCE_EPSILON
    curve_epsilon: Optional[float] = None

    def __post_init__(self):
        if self.min_levels > self.max_levels:
            raise ValueError(f"min_levels {self.min_levels} exceeds max_levels {self.max_levels}")


@dataclass(frozen=True)
class ClosestToPointResult:
    """A point on _segment_ at parameter _t_ closest to some query point."""

    segment: Segment
    t: float
    closest_point: Vector2
    distance_squared: float


@dataclass(frozen=True)
class DashValues:
    """
    Where a dash pattern switches between drawn and skipped along one segment.

    Attributes:
        values (List[float]): t values of the switches, increasing
        arc_length (float): approximate length of the segment
        initially_inside (bool): True if the segment starts inside a drawn dash
    """

    values: List[float]
    arc_length: float
    initially_inside: bool


###############################################################################
# Segment
###############################################################################
class Segment(ABC):
    """
    A single curve piece parametrized by t in [0, 1].

    Segments are immutable. Subclasses compute start/end points, unit tangents and
    bounds eagerly in their constructor (stored in _start, _end, _start_tangent,
    _end_tangent and _bounds) so that all read accessors are plain attribute reads.

    Invariants:
        position_at(0) == start and position_at(1) == end (within floating tolerance)
        start_tangent and end_tangent are unit vectors in the direction of travel
    """

    SEGMENT_TYPE: ClassVar[str] = ""
    _registry: ClassVar[Dict[str, Type[Segment]]] = {}

    _start: Vector2
    _end: Vector2
    _start_tangent: Vector2
    _end_tangent: Vector2
    _bounds: Bounds2

    def __init_subclass__(cls, **kwargs):
        super().__init_subclass__(**kwargs)
        if cls.SEGMENT_TYPE:
            Segment._registry[cls.SEGMENT_TYPE] = cls

    ###########################################################################
    # Accessors
    ###########################################################################
    @property
    def start(self) -> Vector2:
        """Vector2: The start point (t=0)."""
        return self._start

    @property
    def end(self) -> Vector2:
        """Vector2: The end point (t=1)."""
        return self._end

    @property
    def start_tangent(self) -> Vector2:
        """Vector2: Unit tangent at the start point."""
        return self._start_tangent

    @property
    def end_tangent(self) -> Vector2:
        """Vector2: Unit tangent at the end point."""
        return self._end_tangent

    @property
    def bounds(self) -> Bounds2:
        """Bounds2: Box containing the whole curve."""
        return self._bounds

    ###########################################################################
    # Evaluation
    ###########################################################################
    @abstractmethod
    def position_at(self, t: float) -> Vector2:
        """Point on the curve at parametric value _t_."""

    @abstractmethod
    def positions_at(self, ts: NDArray[np.float64]) -> NDArray[np.float64]:
        """Points on the curve for all values in _ts_, as array of shape (len(ts), 2)."""

    @abstractmethod
    def tangent_at(self, t: float) -> Vector2:
        """Non-normalized derivative of the curve at _t_."""

    @abstractmethod
    def curvature_at(self, t: float) -> float:
        """Signed curvature at _t_ (positive for visually clockwise curves)."""

    @abstractmethod
    def get_interior_extrema_ts(self) -> List[float]:
        """Sorted t values in (0, 1) where dx/dt or dy/dt vanishes."""

    ###########################################################################
    # Decomposition
    ###########################################################################
    @abstractmethod
    def subdivided(self, t: float) -> List[Segment]:
        """The two segments [0, t] and [t, 1]."""

    @abstractmethod
    def get_nondegenerate_segments(self) -> List[Segment]:
        """Equivalent list of non-degenerate (possibly simpler) segments, empty for a single point."""

    @abstractmethod
    def reversed(self) -> Segment:
        """The same curve traversed from end to start."""

    def slice(self, t0: float, t1: float) -> Segment:
        """
        The part of this segment between the parametric values _t0_ and _t1_.

        Args:
            t0 (float): start value, 0 <= t0 < t1
            t1 (float): end value, t1 <= 1

        Returns:
            Segment: the sliced segment
        """
        self._check_slice_range(t0, t1)
        segment: Segment = self
        if t1 < 1:
            segment = segment.subdivided(t1)[0]
        if t0 > 0:
            segment = segment.subdivided(GeomMath.linear(0, t1, 0, 1, t0))[1]
        return segment

    @staticmethod
    def _check_slice_range(t0: float, t1: float) -> None:
        if not (0 <= t0 <= 1 and 0 <= t1 <= 1 and t0 < t1):
            raise ValueError(f"Invalid slice range [{t0}, {t1}]")

    def subdivisions(self, ts: Sequence[float]) -> List[Segment]:
        """Split at every value of the sorted sequence _ts_ (all within (0, 1))."""
        remaining = list(ts)
        right: Segment = self
        result: List[Segment] = []
        for i, t in enumerate(remaining):
            left, right = right.subdivided(t)
            result.append(left)
            for j in range(i + 1, len(remaining)):
                remaining[j] = GeomMath.linear(t, 1, 0, 1, remaining[j])
        result.append(right)
        return result

    def subdivided_into_monotone(self) -> List[Segment]:
        """Pieces that are monotone in x and y."""
        return self.subdivisions(self.get_interior_extrema_ts())

    ###########################################################################
    # Line approximation
    ###########################################################################
    def to_piecewise_linear_segments(
        self,
        options: Optional[PiecewiseLinearOptions] = None,
        point_map: Optional[PointMap] = None,
    ) -> List[Line]:
        """
        Approximate the segment by lines through adaptive halving.

        With a _point_map_ every sampled point is mapped before the lines are created and
        the flatness test is done on the mapped points, so the lines follow the mapped curve.

        Args:
            options (PiecewiseLinearOptions, optional): levels and flatness thresholds.
                Defaults to PiecewiseLinearOptions().
            point_map (PointMap, optional): (possibly nonlinear) point transformation. Defaults to None.

        Returns:
            List[Line]: connected lines from the (mapped) start to the (mapped) end
        """
        if options is None:
            options = PiecewiseLinearOptions()
        if point_map is None:
            point_map = _identity_point_map
        distance_epsilon = math.inf if options.distance_epsilon is None else options.distance_epsilon
        curve_epsilon = math.inf if options.curve_epsilon is None else options.curve_epsilon

        lines: List[Line] = []
        self._append_piecewise_linear(
            lines,
            point_map,
            options.min_levels,
            options.max_levels,
            distance_epsilon,
            curve_epsilon,
            point_map(self.start),
            point_map(self.end),
        )
        return lines

    def _append_piecewise_linear(
        self,
        lines: List[Line],
        point_map: PointMap,
        min_levels: int,
        max_levels: int,
        distance_epsilon: float,
        curve_epsilon: float,
        start: Vector2,
        end: Vector2,
    ) -> None:
        from penpath.line import Line  # pylint: disable=import-outside-toplevel

        middle = point_map(self.position_at(0.5))
        finished = max_levels <= 0
        if not finished and min_levels <= 0:
            finished = GeomMath.is_sufficiently_flat(distance_epsilon, curve_epsilon, start, middle, end)

        if finished:
            lines.append(Line(start, end))
            return
        left, right = self.subdivided(0.5)
        left._append_piecewise_linear(
            lines, point_map, min_levels - 1, max_levels - 1, distance_epsilon, curve_epsilon, start, middle
        )
        right._append_piecewise_linear(
            lines, point_map, min_levels - 1, max_levels - 1, distance_epsilon, curve_epsilon, middle, end
        )

    def polar_to_cartesian(self, options: Optional[PiecewiseLinearOptions] = None) -> List[Segment]:
        """
        Map the segment from polar coordinates (x = angle, y = radius) to cartesian ones.

        The general case is a line approximation; Line maps exactly where it can.
        """
        return list(self.to_piecewise_linear_segments(options, polar_point_map))

    ###########################################################################
    # Closest points
    ###########################################################################
    def get_closest_points(self, point: Vector2) -> List[ClosestToPointResult]:
        """Points of this segment closest to _point_ (several if equally close)."""
        return Segment.filter_closest_to_point_result(
            Segment.closest_to_point([self], point, CLOSEST_POINT_THRESHOLD)
        )

    @staticmethod
    def closest_to_point(
        segments: Sequence[Segment], point: Vector2, threshold: float
    ) -> List[ClosestToPointResult]:
        """
        Candidate closest points of _segments_ to _point_.

        Lines are solved exactly. Curves are split into monotone pieces whose end point boxes
        bound the curve; pieces that cannot be closer than the best known distance are
        dropped, the others halved until all remaining pieces are shorter than _threshold_.

        Returns:
            List[ClosestToPointResult]: unfiltered candidates, see filter_closest_to_point_result
        """
        from penpath.line import Line  # pylint: disable=import-outside-toplevel

        threshold_squared = threshold * threshold
        best: List[ClosestToPointResult] = []
        best_distance_squared = math.inf
        # (ta, tb, pa, pb, segment, minimum squared distance)
        pieces: List[Tuple[float, float, Vector2, Vector2, Segment, float]] = []

        def add_piece(segment: Segment, ta: float, tb: float, pa: Vector2, pb: Vector2) -> None:
            nonlocal best, best_distance_squared
            bounds = Bounds2.point(pa).with_point(pb)
            minimum = bounds.minimum_distance_to_point_squared(point)
            if minimum > best_distance_squared:
                return
            maximum = bounds.maximum_distance_to_point_squared(point)
            if maximum < best_distance_squared:
                best_distance_squared = maximum
                best = []
            pieces.append((ta, tb, pa, pb, segment, minimum))

        for segment in segments:
            if isinstance(segment, Line):
                closest, t, distance_squared = segment.explicit_closest_to_point(point)
                result = ClosestToPointResult(segment, t, closest, distance_squared)
                if distance_squared < best_distance_squared:
                    best = [result]
                    best_distance_squared = distance_squared
                elif distance_squared == best_distance_squared:
                    best.append(result)
                continue
            ts = [0.0] + segment.get_interior_extrema_ts() + [1.0]
            for ta, tb in zip(ts, ts[1:]):
                add_piece(segment, ta, tb, segment.position_at(ta), segment.position_at(tb))

        threshold_reached = False
        while pieces and not threshold_reached:
            current_pieces = pieces
            pieces = []
            threshold_reached = True
            for ta, tb, pa, pb, segment, minimum in current_pieces:
                if minimum > best_distance_squared:
                    continue
                if threshold_reached and pa.distance_squared(pb) > threshold_squared:
                    threshold_reached = False
                t_middle = (ta + tb) / 2
                p_middle = segment.position_at(t_middle)
                add_piece(segment, ta, t_middle, pa, p_middle)
                add_piece(segment, t_middle, tb, p_middle, pb)

        for ta, tb, _, _, segment, _ in pieces:
            t = (ta + tb) / 2
            closest = segment.position_at(t)
            best.append(ClosestToPointResult(segment, t, closest, point.distance_squared(closest)))
        return best

    @staticmethod
    def filter_closest_to_point_result(results: Sequence[ClosestToPointResult]) -> List[ClosestToPointResult]:
        """Results at the smallest distance, without duplicate points."""
        if not results:
            return []
        closest_distance_squared = min(result.distance_squared for result in results)
        filtered: List[ClosestToPointResult] = []
        for result in results:
            if abs(result.distance_squared - closest_distance_squared) >= CLOSEST_POINT_EPSILON:
                continue
            if any(
                kept.closest_point.distance_squared(result.closest_point) < CLOSEST_POINT_EPSILON for kept in filtered
            ):
                continue
            filtered.append(result)
        return filtered

    ###########################################################################
    # Dashing
    ###########################################################################
    def get_dash_values(
        self,
        line_dash: Sequence[float],
        line_dash_offset: float,
        distance_epsilon: float,
        curve_epsilon: float,
    ) -> DashValues:
        """
        Find where the dash pattern switches along this segment.

        The segment is halved until the pieces are flat; their chord lengths approximate
        the arc length that the pattern is laid out on.

        Args:
            line_dash (Sequence[float]): alternating dash and gap lengths, positive sum
            line_dash_offset (float): distance into the pattern at the segment start
            distance_epsilon (float): flatness distance threshold
            curve_epsilon (float): flatness curvature threshold

        Returns:
            DashValues: switch t values, arc length, and whether the start is drawn
        """
        dash_sum = sum(line_dash)
        if not line_dash or dash_sum <= 0:
            raise ValueError(f"Dash pattern needs a positive total length: {list(line_dash)}")

        # python's modulo is already non-negative for a positive divisor
        remaining_offset = line_dash_offset % dash_sum
        dash_index = 0
        dash_offset = 0.0
        inside = True
        while remaining_offset > 0:
            if remaining_offset >= line_dash[dash_index]:
                remaining_offset -= line_dash[dash_index]
                dash_index = (dash_index + 1) % len(line_dash)
                inside = not inside
            else:
                dash_offset = remaining_offset
                remaining_offset = 0
        initially_inside = inside

        values: List[float] = []
        arc_length = 0.0

        def recurse(t0: float, t1: float, p0: Vector2, p1: Vector2, depth: int) -> None:
            nonlocal arc_length, dash_index, dash_offset, inside
            t_middle = (t0 + t1) / 2
            p_middle = self.position_at(t_middle)
            if depth > DASH_MAX_DEPTH or GeomMath.is_sufficiently_flat(
                distance_epsilon, curve_epsilon, p0, p_middle, p1
            ):
                total_length = p0.distance(p_middle) + p_middle.distance(p1)
                arc_length += total_length
                length_left = total_length
                while dash_offset + length_left >= line_dash[dash_index]:
                    values.append(
                        GeomMath.linear(
                            0, total_length, t0, t1, total_length - length_left + line_dash[dash_index] - dash_offset
                        )
                    )
                    length_left -= line_dash[dash_index] - dash_offset
                    dash_offset = 0.0
                    dash_index = (dash_index + 1) % len(line_dash)
                    inside = not inside
                dash_offset += length_left
            else:
                recurse(t0, t_middle, p0, p_middle, depth + 1)
                recurse(t_middle, t1, p_middle, p1, depth + 1)

        recurse(0.0, 1.0, self.start, self.end, 0)
        return DashValues(values, arc_length, initially_inside)

    ###########################################################################
    # Stroking
    ###########################################################################
    @abstractmethod
    def stroke_left(self, line_width: float) -> List[Segment]:
        """Offset curve at line_width/2 to the left of the travel direction."""

    @abstractmethod
    def stroke_right(self, line_width: float) -> List[Segment]:
        """Offset curve at line_width/2 to the right, traversed from end to start."""

    ###########################################################################
    # Hit testing
    ###########################################################################
    @abstractmethod
    def intersection(self, ray: Ray2) -> List[RayIntersection]:
        """All hits of _ray_ with this segment."""

    def winding_intersection(self, ray: Ray2) -> int:
        """Sum of the winding contributions of all hits of _ray_."""
        return sum(hit.wind for hit in self.intersection(ray))

    def intersects_bounds(self, bounds: Bounds2) -> bool:
        """
        True if the segment touches the given box.

        Either an end point lies in the box, or one of the box edges (cast as a ray from
        one corner to the next) hits the segment within the edge length.
        """
        if bounds.contains_point(self.start) or bounds.contains_point(self.end):
            return True
        if not self.bounds.intersects_bounds(bounds):
            return False
        corners = [
            Vector2(bounds.min_x, bounds.min_y),
            Vector2(bounds.max_x, bounds.min_y),
            Vector2(bounds.max_x, bounds.max_y),
            Vector2(bounds.min_x, bounds.max_y),
        ]
        for corner, next_corner in zip(corners, corners[1:] + corners[:1]):
            length = corner.distance(next_corner)
            if length == 0:
                continue
            hits = self.intersection(Ray2(corner, next_corner - corner))
            if any(hit.distance <= length for hit in hits):
                return True
        return False

    ###########################################################################
    # Measures
    ###########################################################################
    @abstractmethod
    def get_signed_area_fragment(self) -> float:
        """Contribution of this segment to the signed area of a closed path (Green's theorem)."""

    def is_sufficiently_flat(self, distance_epsilon: float, curve_epsilon: float) -> bool:
        """Flatness test on start, midpoint and end point."""
        return GeomMath.is_sufficiently_flat(distance_epsilon, curve_epsilon, self.start, self.position_at(0.5), self.end)

    def get_arc_length(
        self,
        distance_epsilon: float = ARC_LENGTH_DISTANCE_EPSILON,
        curve_epsilon: float = ARC_LENGTH_CURVE_EPSILON,
        max_levels: int = ARC_LENGTH_MAX_LEVELS,
    ) -> float:
        """Arc length by recursive halving until the pieces are flat."""
        if max_levels <= 0 or self.is_sufficiently_flat(distance_epsilon, curve_epsilon):
            return self.start.distance(self.end)
        left, right = self.subdivided(0.5)
        return left.get_arc_length(distance_epsilon, curve_epsilon, max_levels - 1) + right.get_arc_length(
            distance_epsilon, curve_epsilon, max_levels - 1
        )

    def polygonize(self, steps: int) -> NDArray[np.float64]:
        """
        Sample the curve at _steps_ + 1 equidistant parametric values.

        Returns:
            NDArray[np.float64]: array of shape (steps + 1, 2), first row is start, last row is end
        """
        return self.positions_at(np.linspace(0.0, 1.0, steps + 1, dtype=np.float64))

    ###########################################################################
    # Output
    ###########################################################################
    @abstractmethod
    def get_svg_path_fragment(self) -> str:
        """SVG path data for this segment, assuming the current point is start."""

    @abstractmethod
    def write_to_context(self, context: PathContext) -> None:
        """Draw this segment into a canvas-like context whose current point is start."""

    @abstractmethod
    def transformed(self, matrix: Matrix3) -> Segment:
        """The segment mapped by an affine _matrix_."""

    ###########################################################################
    # Value semantics / serialization
    ###########################################################################
    @abstractmethod
    def _key(self) -> Tuple:
        """Defining parameters, used for equality and hashing."""

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Segment):
            return NotImplemented
        return type(self) is type(other) and self._key() == other._key()

    def __hash__(self) -> int:
        return hash((type(self).__name__, self._key()))

    @abstractmethod
    def to_dict(self) -> dict:
        """Convert the segment to a dictionary (tagged with "type")."""

    @classmethod
    def from_dict(cls, data: dict) -> Segment:
        """Create a segment of the type named by data["type"]."""
        segment_type = data.get("type")
        if segment_type not in Segment._registry:
            raise ValueError(f"Unknown segment type: {segment_type}")
        return Segment._registry[segment_type]._from_dict(data)

    @classmethod
    @abstractmethod
    def _from_dict(cls, data: dict) -> Segment:
        """Create an instance of this segment type from its dictionary."""
