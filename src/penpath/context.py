"""Canvas-like drawing contexts that segments, subpaths and shapes can be written to"""

from __future__ import annotations

from typing import List, Optional, Protocol

from penpath.arc import Arc
from penpath.elliptical_arc import EllipticalArc
from penpath.matrix import Matrix3
from penpath.segment import Segment
from penpath.svgpath import svg_number
from penpath.vector import Vector2

# current point and arc start closer than this are treated as the same point
_CONNECT_EPSILON: float = 1.0e-9


class PathContext(Protocol):
    """
    Immediate-mode 2D path sink with the primitives of a canvas rendering context.

    A context may additionally offer
        ellipse(x, y, radius_x, radius_y, rotation, start_angle, end_angle, anticlockwise)
    which elliptical arcs use when present.
    """

    def move_to(self, x: float, y: float) -> None: ...

    def line_to(self, x: float, y: float) -> None: ...

    def quadratic_curve_to(self, cpx: float, cpy: float, x: float, y: float) -> None: ...

    def bezier_curve_to(self, cp1x: float, cp1y: float, cp2x: float, cp2y: float, x: float, y: float) -> None: ...

    def arc(
        self, x: float, y: float, radius: float, start_angle: float, end_angle: float, anticlockwise: bool = False
    ) -> None: ...

    def close_path(self) -> None: ...

    def save(self) -> None: ...

    def transform(self, a: float, b: float, c: float, d: float, e: float, f: float) -> None: ...

    def restore(self) -> None: ...


###############################################################################
# SvgPathContext
###############################################################################
class SvgPathContext:
    """
    PathContext that records the drawing calls as SVG path data.

    Coordinates pass through the current transformation (set with transform, saved and
    restored with save / restore). Arcs and ellipses become SVG arc commands; like
    on a canvas, a line connects the current point to the start of an arc.

    Example:
        context = SvgPathContext()
        Shape().circle(0, 0, 5).write_to_context(context)
        context.to_path_string()  # "M 5 0 A 5 5 0 0 1 -5 ... Z"
    """

    def __init__(self):
        self._commands: List[str] = []
        self._matrix: Matrix3 = Matrix3.identity()
        self._matrix_stack: List[Matrix3] = []
        self._current_point: Optional[Vector2] = None
        self._subpath_start: Optional[Vector2] = None

    ###########################################################################
    # Transformation state
    ###########################################################################
    @property
    def matrix(self) -> Matrix3:
        """Matrix3: The current transformation."""
        return self._matrix

    def save(self) -> None:
        self._matrix_stack.append(self._matrix)

    def restore(self) -> None:
        if self._matrix_stack:
            self._matrix = self._matrix_stack.pop()

    def transform(self, a: float, b: float, c: float, d: float, e: float, f: float) -> None:
        """Multiply the current transformation with [[a, c, e], [b, d, f], [0, 0, 1]]."""
        self._matrix = self._matrix @ Matrix3.affine(a, c, e, b, d, f)

    def set_transform(self, a: float, b: float, c: float, d: float, e: float, f: float) -> None:
        self._matrix = Matrix3.affine(a, c, e, b, d, f)

    ###########################################################################
    # Path primitives
    ###########################################################################
    def _point(self, x: float, y: float) -> Vector2:
        return self._matrix.times_vector2(Vector2(x, y))

    def _append(self, letter: str, *points: Vector2) -> None:
        values = " ".join(f"{svg_number(point.x)} {svg_number(point.y)}" for point in points)
        self._commands.append(f"{letter} {values}")
        self._current_point = points[-1]

    def move_to(self, x: float, y: float) -> None:
        point = self._point(x, y)
        self._append("M", point)
        self._subpath_start = point

    def line_to(self, x: float, y: float) -> None:
        point = self._point(x, y)
        if self._current_point is None:
            self.move_to(x, y)
            return
        self._append("L", point)

    def quadratic_curve_to(self, cpx: float, cpy: float, x: float, y: float) -> None:
        if self._current_point is None:
            self.move_to(cpx, cpy)
        self._append("Q", self._point(cpx, cpy), self._point(x, y))

    def bezier_curve_to(self, cp1x: float, cp1y: float, cp2x: float, cp2y: float, x: float, y: float) -> None:
        if self._current_point is None:
            self.move_to(cp1x, cp1y)
        self._append("C", self._point(cp1x, cp1y), self._point(cp2x, cp2y), self._point(x, y))

    def arc(
        self, x: float, y: float, radius: float, start_angle: float, end_angle: float, anticlockwise: bool = False
    ) -> None:
        self._append_arc_segment(Arc(Vector2(x, y), radius, start_angle, end_angle, anticlockwise))

    def ellipse(
        self,
        x: float,
        y: float,
        radius_x: float,
        radius_y: float,
        rotation: float,
        start_angle: float,
        end_angle: float,
        anticlockwise: bool = False,
    ) -> None:
        self._append_arc_segment(
            EllipticalArc(Vector2(x, y), radius_x, radius_y, rotation, start_angle, end_angle, anticlockwise)
        )

    def _append_arc_segment(self, segment: Segment) -> None:
        if not self._matrix.is_identity():
            segment = segment.transformed(self._matrix)
        start = segment.start
        if self._current_point is None:
            self._append("M", start)
            self._subpath_start = start
        elif not self._current_point.equals_epsilon(start, _CONNECT_EPSILON):
            self._append("L", start)
        if segment.get_nondegenerate_segments():
            self._commands.append(segment.get_svg_path_fragment())
        self._current_point = segment.end

    def close_path(self) -> None:
        if self._current_point is None:
            return
        self._commands.append("Z")
        self._current_point = self._subpath_start

    ###########################################################################
    # Output
    ###########################################################################
    def to_path_string(self) -> str:
        """The recorded SVG path data."""
        return " ".join(self._commands)

    def clear(self) -> None:
        """Forget all recorded commands and reset the transformation."""
        self._commands = []
        self._matrix = Matrix3.identity()
        self._matrix_stack = []
        self._current_point = None
        self._subpath_start = None
