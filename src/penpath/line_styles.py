"""Stroke styles: width, caps, joins, miter limit and dash pattern"""

from __future__ import annotations

import math
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import List, Tuple

from penpath.arc import Arc
from penpath.consts import HALF_PI, JOIN_CONVEX_EPSILON, MITER_ANGLE_EPSILON
from penpath.exceptions import LineStylesError
from penpath.geom_math import GeomMath
from penpath.line import Line
from penpath.segment import Segment
from penpath.vector import Vector2


class LineCap(str, Enum):
    """Shape of the two free ends of an open stroke."""

    BUTT = "butt"
    ROUND = "round"
    SQUARE = "square"


class LineJoin(str, Enum):
    """Shape of the corner between two stroked segments."""

    MITER = "miter"
    ROUND = "round"
    BEVEL = "bevel"


###############################################################################
# LineStyles
###############################################################################
@dataclass(frozen=True)
class LineStyles:
    """
    Value object describing how a path is stroked.

    Two LineStyles are equal iff every field is equal, including the dash pattern.
    The dash pattern is not applied when stroking; Shape.get_dashed_shape_for_styles
    cuts a shape into its dashes.

    Attributes:
        line_width: full width of the stroke, > 0
        line_cap: cap at the free ends of open subpaths
        line_join: join between consecutive segments
        miter_limit: maximum ratio of miter length to half the line width
        line_dash: dash pattern lengths
        line_dash_offset: offset into the dash pattern
    """

    line_width: float = 1.0
    line_cap: LineCap = LineCap.BUTT
    line_join: LineJoin = LineJoin.MITER
    miter_limit: float = 10.0
    line_dash: Tuple[float, ...] = field(default_factory=tuple)
    line_dash_offset: float = 0.0

    def __post_init__(self):
        try:
            object.__setattr__(self, "line_cap", LineCap(self.line_cap))
            object.__setattr__(self, "line_join", LineJoin(self.line_join))
        except ValueError as e:
            raise LineStylesError(str(e)) from e
        object.__setattr__(self, "line_dash", tuple(float(value) for value in self.line_dash))

        if not (math.isfinite(self.line_width) and self.line_width > 0):
            raise LineStylesError(f"line_width must be finite and positive, got {self.line_width}")
        if not math.isfinite(self.miter_limit):
            raise LineStylesError(f"miter_limit must be finite, got {self.miter_limit}")
        if not math.isfinite(self.line_dash_offset):
            raise LineStylesError(f"line_dash_offset must be finite, got {self.line_dash_offset}")
        for value in self.line_dash:
            if not math.isfinite(value) or value < 0:
                raise LineStylesError(f"line_dash entries must be finite and non-negative, got {value}")

    def with_changes(self, **changes) -> LineStyles:
        """Copy with the given fields replaced."""
        return replace(self, **changes)

    ###########################################################################
    # Joins and caps
    ###########################################################################
    def left_join(self, center: Vector2, from_tangent: Vector2, to_tangent: Vector2) -> List[Segment]:
        """
        Segments joining the left offsets of two segments meeting at _center_.

        Args:
            center (Vector2): common point of both segments
            from_tangent (Vector2): end tangent of the incoming segment
            to_tangent (Vector2): start tangent of the outgoing segment

        Returns:
            List[Segment]: join geometry, from the incoming offset point to the outgoing one
        """
        from_tangent = from_tangent.normalized()
        to_tangent = to_tangent.normalized()
        half_width = self.line_width / 2

        from_point = center + from_tangent.perpendicular.negated() * half_width
        to_point = center + to_tangent.perpendicular.negated() * half_width
        bevel: List[Segment] = [] if from_point == to_point else [Line(from_point, to_point)]

        # only the convex side gets join geometry
        if from_tangent.perpendicular.dot(to_tangent) <= JOIN_CONVEX_EPSILON:
            return bevel

        if self.line_join is LineJoin.ROUND:
            from_angle = from_tangent.angle + HALF_PI
            to_angle = to_tangent.angle + HALF_PI
            return [Arc(center, half_width, from_angle, to_angle, True)]
        if self.line_join is LineJoin.MITER:
            theta = from_tangent.angle_between(to_tangent.negated())
            if 1 / math.sin(theta / 2) <= self.miter_limit and theta < math.pi - MITER_ANGLE_EPSILON:
                miter_point = GeomMath.line_line_intersection(
                    from_point, from_point + from_tangent, to_point, to_point + to_tangent
                )
                if miter_point is None:
                    return [Line(from_point, to_point)]
                return [Line(from_point, miter_point), Line(miter_point, to_point)]
            return bevel
        return bevel

    def right_join(self, center: Vector2, from_tangent: Vector2, to_tangent: Vector2) -> List[Segment]:
        """Join on the right side; traversed in the opposite direction."""
        return self.left_join(center, to_tangent.negated(), from_tangent.negated())

    def cap(self, center: Vector2, tangent: Vector2) -> List[Segment]:
        """
        Cap at the free end _center_ of an open stroke, _tangent_ pointing outwards.

        Returns:
            List[Segment]: cap geometry from the left offset point to the right one
        """
        tangent = tangent.normalized()
        half_width = self.line_width / 2

        from_point = center + tangent.perpendicular * (-half_width)
        to_point = center + tangent.perpendicular * half_width

        if self.line_cap is LineCap.BUTT:
            return [Line(from_point, to_point)]
        if self.line_cap is LineCap.ROUND:
            tangent_angle = tangent.angle
            return [Arc(center, half_width, tangent_angle + HALF_PI, tangent_angle - HALF_PI, True)]

        to_left = tangent.perpendicular.negated() * half_width
        to_right = tangent.perpendicular * half_width
        to_front = tangent * half_width
        left = center + to_left + to_front
        right = center + to_right + to_front
        return [Line(from_point, left), Line(left, right), Line(right, to_point)]

    ###########################################################################
    # Serialization
    ###########################################################################
    def to_dict(self) -> dict:
        """Convert line styles to a dictionary for serialization."""
        return {
            "line_width": self.line_width,
            "line_cap": self.line_cap.value,
            "line_join": self.line_join.value,
            "miter_limit": self.miter_limit,
            "line_dash": list(self.line_dash),
            "line_dash_offset": self.line_dash_offset,
        }

    @classmethod
    def from_dict(cls, data: dict) -> LineStyles:
        """Create LineStyles from a dictionary."""
        return cls(
            line_width=data.get("line_width", 1.0),
            line_cap=data.get("line_cap", LineCap.BUTT),
            line_join=data.get("line_join", LineJoin.MITER),
            miter_limit=data.get("miter_limit", 10.0),
            line_dash=tuple(data.get("line_dash", ())),
            line_dash_offset=data.get("line_dash_offset", 0.0),
        )
