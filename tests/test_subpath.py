"""Test module for penpath.subpath

The tests are run using pytest.
These tests ensure that Subpath closing, measures, derived subpaths, offsetting
and stroking (including the stroke cache) remain working correctly after
changes and refactoring.
"""

import math
from unittest.mock import patch

import pytest

from penpath.arc import Arc
from penpath.bounds import Bounds2
from penpath.exceptions import GeometryError
from penpath.line import Line
from penpath.line_styles import LineCap, LineStyles
from penpath.matrix import Matrix3
from penpath.subpath import Subpath
from penpath.vector import Vector2


def polyline(*coordinates):
    """Lines through the given (x, y) tuples."""
    points = [Vector2(x, y) for x, y in coordinates]
    return [Line(start, end) for start, end in zip(points, points[1:])]


@pytest.fixture
def square():
    """Closed 10 x 10 square, counterclockwise with y up."""
    return Subpath(polyline((0, 0), (10, 0), (10, 10), (0, 10), (0, 0)), closed=True)


@pytest.fixture
def corner():
    """Open path going right, then turning up."""
    return Subpath(polyline((0, 0), (10, 0), (10, 10)))


###############################################################################
# Structure
###############################################################################


class TestSubpathStructure:
    """Points, closing segment and fill segments."""

    def test_points_from_segments(self, corner):
        """Test points from segments."""
        assert corner.points == [Vector2(0, 0), Vector2(10, 0), Vector2(10, 10)]
        assert corner.get_length() == 3
        assert corner.get_first_point() == Vector2(0, 0)
        assert corner.get_last_point() == Vector2(10, 10)
        assert corner.is_drawable()
        assert not corner.is_closed()

    def test_closing_segment(self, corner):
        """Test closing segment."""
        assert corner.has_closing_segment()
        assert corner.get_closing_segment() == Line(Vector2(10, 10), Vector2(0, 0))
        assert len(corner.get_fill_segments()) == 3

    def test_no_closing_segment_when_back_at_start(self, square):
        """Test no closing segment when back at start."""
        assert not square.has_closing_segment()
        with pytest.raises(GeometryError):
            square.get_closing_segment()
        assert len(square.get_fill_segments()) == 4

    def test_empty_subpath(self):
        """Test empty subpath."""
        subpath = Subpath()
        assert not subpath.is_drawable()
        assert not subpath.has_closing_segment()
        assert subpath.stroked(LineStyles(2)) == []
        with pytest.raises(IndexError):
            subpath.get_first_point()
        with pytest.raises(IndexError):
            subpath.get_last_segment()

    def test_degenerate_segments_dropped(self):
        """Test degenerate segments dropped."""
        subpath = Subpath()
        subpath.add_segment(Line(Vector2(1, 1), Vector2(1, 1)))
        assert not subpath.is_drawable()
        subpath.add_segment(Line(Vector2(1, 1), Vector2(2, 1)))
        assert len(subpath.segments) == 1

    def test_close_marks_only(self, corner):
        """Test close marks only."""
        corner.close()
        assert corner.is_closed()
        assert len(corner.segments) == 2


###############################################################################
# Measures
###############################################################################


class TestSubpathMeasures:
    """Bounds, signed area, length and polygonization."""

    def test_bounds_cached(self, square):
        """Test bounds cached."""
        assert square.bounds == Bounds2(0, 0, 10, 10)
        assert square.bounds is square.bounds

    def test_bounds_invalidated(self, corner):
        """Test bounds invalidated."""
        assert corner.bounds == Bounds2(0, 0, 10, 10)
        corner.add_segment(Line(Vector2(10, 10), Vector2(20, 10)))
        assert corner.bounds == Bounds2(0, 0, 20, 10)

    def test_signed_area(self, square, corner):
        """Test signed area."""
        assert square.get_signed_area() == pytest.approx(100)
        assert square.reversed().get_signed_area() == pytest.approx(-100)
        assert corner.get_signed_area() == pytest.approx(50)

    def test_arc_length_ignores_closing_line(self, square, corner):
        """Test arc length ignores closing line."""
        assert square.get_arc_length() == pytest.approx(40)
        assert corner.get_arc_length() == pytest.approx(20)

    def test_polygonize(self, square):
        """Test polygonize."""
        points = square.polygonize(8)
        assert points.shape == (4, 2)
        assert points.tolist() == [[0, 0], [10, 0], [10, 10], [0, 10]]

    def test_polygonize_samples_curves(self):
        """Test polygonize samples curves."""
        subpath = Subpath([Arc(Vector2.ZERO, 1, 0, 3.0)])
        assert subpath.polygonize(8).shape == (9, 2)


###############################################################################
# Derived subpaths
###############################################################################


class TestSubpathDerived:
    """copy, reversed, transformed, offset and serialization."""

    def test_copy_is_independent(self, corner):
        """Test copy is independent."""
        copy = corner.copy()
        copy.add_segment(Line(Vector2(10, 10), Vector2(0, 10)))
        assert len(copy.segments) == 3
        assert len(corner.segments) == 2

    def test_reversed(self, corner):
        """Test reversed."""
        reversed_subpath = corner.reversed()
        assert reversed_subpath.get_first_point() == Vector2(10, 10)
        assert reversed_subpath.segments[0] == Line(Vector2(10, 10), Vector2(10, 0))

    def test_transformed(self, square):
        """Test transformed."""
        scaled = square.transformed(Matrix3.scaling(2))
        assert scaled.bounds == Bounds2(0, 0, 20, 20)
        assert scaled.is_closed()
        assert scaled.get_last_point() == Vector2(0, 0)

    def test_offset_rounds_convex_corner(self):
        """Test offset rounds convex corner."""
        subpath = Subpath(polyline((0, 0), (10, 0), (10, -10)))
        offset = subpath.offset(1)
        assert [type(segment) for segment in offset.segments] == [Line, Arc, Line]
        assert offset.segments[0] == Line(Vector2(0, 1), Vector2(10, 1))
        arc = offset.segments[1]
        assert arc.center == Vector2(10, 0)
        assert arc.start.equals_epsilon(Vector2(10, 1), 1e-12)
        assert arc.end.equals_epsilon(Vector2(11, 0), 1e-12)
        assert offset.segments[2].end.equals_epsilon(Vector2(11, -10), 1e-12)

    def test_offset_zero_and_empty(self, corner):
        """Test offset zero and empty."""
        assert corner.offset(0).segments == corner.segments
        assert not Subpath().offset(1).is_drawable()

    def test_dict_round_trip(self, corner):
        """Test dict round trip."""
        corner.close()
        restored = Subpath.from_dict(corner.to_dict())
        assert restored.segments == corner.segments
        assert restored.points == corner.points
        assert restored.is_closed()

    def test_from_dict_rejects_other_types(self):
        """Test from dict rejects other types."""
        with pytest.raises(ValueError):
            Subpath.from_dict({"type": "Shape"})


###############################################################################
# Stroking
###############################################################################


class TestSubpathStroke:
    """Stroke outlines of open and closed subpaths."""

    def test_closed_square_gives_two_rings(self, square):
        """Test closed square gives two rings."""
        rings = square.stroked(LineStyles(2))
        assert len(rings) == 2
        assert all(ring.is_closed() for ring in rings)
        assert all(isinstance(segment, Line) for ring in rings for segment in ring.segments)
        assert rings[0].bounds.equals_epsilon(Bounds2(0, 0, 10, 10), 1e-9)
        assert rings[1].bounds.equals_epsilon(Bounds2(-1, -1, 11, 11), 1e-9)

    def test_open_line_butt(self):
        """Test open line butt."""
        rings = Subpath(polyline((0, 0), (10, 0))).stroked(LineStyles(2))
        assert len(rings) == 1
        ring = rings[0]
        assert ring.is_closed()
        assert len(ring.segments) == 4
        assert ring.bounds == Bounds2(0, -1, 10, 1)
        assert ring.get_signed_area() == pytest.approx(-20)

    @pytest.mark.parametrize("line_cap", [LineCap.ROUND, LineCap.SQUARE])
    def test_open_line_caps_extend(self, line_cap):
        """Test open line caps extend."""
        rings = Subpath(polyline((0, 0), (10, 0))).stroked(LineStyles(2, line_cap))
        assert rings[0].bounds.equals_epsilon(Bounds2(-1, -1, 11, 1), 1e-9)

    def test_open_corner_outline(self, corner):
        """Test open corner outline."""
        ring = corner.stroked(LineStyles(2))[0]
        assert ring.bounds.equals_epsilon(Bounds2(0, -1, 11, 10), 1e-9)

    def test_default_styles(self, corner):
        """Test default styles."""
        assert corner.stroked() is corner.stroked(LineStyles())

    def test_stroke_cached_for_equal_styles(self, square):
        """Test stroke cached for equal styles."""
        first = square.stroked(LineStyles(2))
        assert square.stroked(LineStyles(2.0)) is first

    def test_stroke_cache_skips_offsetting(self, square):
        """Test stroke cache skips offsetting."""
        with patch.object(Line, "stroke_left", autospec=True, side_effect=Line.stroke_left) as stroke_left:
            square.stroked(LineStyles(2))
            square.stroked(LineStyles(2.0))
            assert stroke_left.call_count == 4
            square.stroked(LineStyles(3))
            assert stroke_left.call_count == 8

    def test_stroke_recomputed_for_other_styles(self, square):
        """Test stroke recomputed for other styles."""
        first = square.stroked(LineStyles(2))
        second = square.stroked(LineStyles(4))
        assert second is not first
        assert second[1].bounds.equals_epsilon(Bounds2(-2, -2, 12, 12), 1e-9)

    def test_stroke_invalidated_by_mutation(self, corner):
        """Test stroke invalidated by mutation."""
        first = corner.stroked(LineStyles(2))
        corner.add_segment(Line(Vector2(10, 10), Vector2(0, 10)))
        assert corner.stroked(LineStyles(2)) is not first

    def test_implicitly_closed_triangle(self, corner):
        """Test implicitly closed triangle."""
        corner.close()
        rings = corner.stroked(LineStyles(2))
        assert len(rings) == 2
        # the closing line from (10, 10) to (0, 0) is stroked as well
        assert rings[1].bounds.contains_bounds(Bounds2(0, -1, 11, 10))


###############################################################################
# Dashing / line approximation / closest points
###############################################################################


def open_square():
    """Closed square with an implicit closing line back to (0, 0)."""
    return Subpath(polyline((0, 0), (10, 0), (10, 10), (0, 10)), closed=True)


class TestSubpathDashing:
    """Dash patterns over segment boundaries and the closing line."""

    def test_dashed_line(self):
        """Test that a line is cut into the drawn dashes."""
        dashes = Subpath(polyline((0, 0), (10, 0))).dashed([2, 3])
        assert len(dashes) == 2
        assert dashes[0].segments[0].start == Vector2(0, 0)
        assert dashes[0].segments[0].end.equals_epsilon(Vector2(2, 0), 1e-9)
        assert dashes[1].segments[0].start.equals_epsilon(Vector2(5, 0), 1e-9)
        assert dashes[1].segments[0].end.equals_epsilon(Vector2(7, 0), 1e-9)
        assert not any(dash.is_closed() for dash in dashes)

    def test_dash_continues_over_corner(self, corner):
        """Test that a dash running over a corner stays one subpath."""
        dashes = corner.dashed([15, 5])
        assert len(dashes) == 1
        assert len(dashes[0].segments) == 2
        assert dashes[0].get_arc_length() == pytest.approx(15)

    def test_closed_square_dashes_closing_line(self):
        """Test that the implicit closing line is dashed like the other sides."""
        dashes = open_square().dashed([5, 5])
        assert len(dashes) == 4
        assert dashes[-1].segments[0].start == Vector2(0, 10)
        assert dashes[-1].segments[0].end.equals_epsilon(Vector2(0, 5), 1e-9)

    def test_dash_over_start_point_is_joined(self):
        """Test that the last dash of a closed subpath joins the first one."""
        dashes = open_square().dashed([5, 5], 2.5)
        assert len(dashes) == 4
        for dash in dashes:
            assert len(dash.segments) == 2
            assert dash.get_arc_length() == pytest.approx(5)
        first = dashes[0]
        assert first.segments[0].start.equals_epsilon(Vector2(0, 2.5), 1e-9)
        assert first.segments[-1].end.equals_epsilon(Vector2(2.5, 0), 1e-9)

    def test_solid_pattern_keeps_closed_subpath(self):
        """Test that a pattern that never switches off returns the closed subpath."""
        dashes = open_square().dashed([100, 1])
        assert len(dashes) == 1
        assert dashes[0].is_closed()
        assert len(dashes[0].segments) == 4

    def test_dashed_empty_subpath(self):
        """Test that nothing is drawn for an empty subpath."""
        assert Subpath().dashed([1, 1]) == []

    def test_dashed_invalid_pattern(self, corner):
        """Test that a pattern without length is rejected."""
        with pytest.raises(ValueError):
            corner.dashed([0])


class TestSubpathApproximation:
    """Line approximation, nonlinear maps and closest points."""

    def test_to_piecewise_linear(self):
        """Test that curves are replaced by lines and the closed flag is kept."""
        subpath = Subpath([Arc(Vector2(0, 0), 5, 0, math.pi)], closed=True)
        linear = subpath.to_piecewise_linear()
        assert linear.is_closed()
        assert len(linear.segments) > 1
        assert all(isinstance(segment, Line) for segment in linear.segments)
        assert linear.segments[-1].end.equals_epsilon(Vector2(-5, 0), 1e-9)

    def test_nonlinear_transformed_maps_closing_line(self):
        """Test that the implicit closing line is mapped as well."""
        mapped = open_square().nonlinear_transformed(lambda point: point * 2)
        assert mapped.is_closed()
        assert mapped.segments[-1].end == Vector2(0, 0)
        assert mapped.bounds == Bounds2(0, 0, 20, 20)
        assert not mapped.has_closing_segment()

    def test_polar_to_cartesian(self):
        """Test that a polar rectangle becomes an annulus sector."""
        subpath = Subpath(polyline((0, 1), (math.pi / 2, 1), (math.pi / 2, 2), (0, 2)), closed=True)
        mapped = subpath.polar_to_cartesian()
        assert [type(segment) for segment in mapped.segments] == [Arc, Line, Arc, Line]
        assert mapped.segments[0].end.equals_epsilon(Vector2(0, 1), 1e-12)
        assert mapped.segments[2].end.equals_epsilon(Vector2(2, 0), 1e-12)
        assert mapped.segments[3].end.equals_epsilon(Vector2(1, 0), 1e-12)

    def test_closest_points_includes_closing_line(self):
        """Test that the closing line of a closed subpath is searched."""
        results = open_square().get_closest_points(Vector2(-3, 5))
        assert len(results) == 1
        assert results[0].closest_point.equals_epsilon(Vector2(0, 5), 1e-12)

    def test_closest_points_at_shared_corner(self, corner):
        """Test that a corner closest to the point is reported once."""
        results = corner.get_closest_points(Vector2(12, -2))
        assert len(results) == 1
        assert results[0].closest_point == Vector2(10, 0)
