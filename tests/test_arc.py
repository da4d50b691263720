"""Test module for penpath.arc

The tests are run using pytest.
These tests ensure that circular Arc angles, bounds, ray intersection,
stroking and transformation remain working correctly after changes and refactoring.
"""

import math

import pytest

from penpath.arc import Arc
from penpath.bounds import Bounds2
from penpath.elliptical_arc import EllipticalArc
from penpath.exceptions import ArcAngleRangeError, GeometryError
from penpath.line import Line
from penpath.matrix import Matrix3
from penpath.ray import Ray2
from penpath.segment import Segment
from penpath.vector import Vector2

###############################################################################
# Construction / angles
###############################################################################


class TestArcAngles:
    """Normalization, angle ranges and angle mapping."""

    def test_quarter_arc(self):
        """Test quarter arc."""
        arc = Arc(Vector2.ZERO, 1, 0, math.pi / 2)
        assert arc.start == Vector2(1, 0)
        assert arc.end.equals_epsilon(Vector2(0, 1), 1e-12)
        assert arc.start_tangent.equals_epsilon(Vector2(0, 1), 1e-12)
        assert arc.end_tangent.equals_epsilon(Vector2(-1, 0), 1e-12)
        assert arc.bounds.equals_epsilon(Bounds2(0, 0, 1, 1), 1e-12)
        assert arc.angle_difference == pytest.approx(math.pi / 2)

    def test_anticlockwise_takes_long_way(self):
        """Test anticlockwise takes long way."""
        arc = Arc(Vector2.ZERO, 1, 0, math.pi / 2, True)
        assert arc.actual_end_angle == pytest.approx(-3 * math.pi / 2)
        assert arc.angle_difference == pytest.approx(3 * math.pi / 2)
        assert arc.bounds.equals_epsilon(Bounds2(-1, -1, 1, 1), 1e-12)

    def test_negative_radius_normalized(self):
        """Test negative radius normalized."""
        arc = Arc(Vector2.ZERO, -1, 0, math.pi / 2)
        assert arc.radius == 1
        assert arc.start_angle == pytest.approx(math.pi)
        assert arc.start.equals_epsilon(Vector2(-1, 0), 1e-12)

    def test_full_circle_allowed(self):
        """Test full circle allowed."""
        arc = Arc(Vector2.ZERO, 1, 0, 2 * math.pi)
        assert arc.is_full_perimeter()
        assert arc.bounds.equals_epsilon(Bounds2(-1, -1, 1, 1), 1e-12)

    def test_more_than_full_turn_rejected(self):
        """Test more than full turn rejected."""
        with pytest.raises(ArcAngleRangeError):
            Arc(Vector2.ZERO, 1, 0, 3 * math.pi)
        with pytest.raises(ArcAngleRangeError):
            Arc(Vector2.ZERO, 1, 0, 3 * math.pi, True)

    def test_non_finite_rejected(self):
        """Test non finite rejected."""
        with pytest.raises(GeometryError):
            Arc(Vector2.ZERO, math.inf, 0, 1)
        with pytest.raises(GeometryError):
            Arc(Vector2.ZERO, 1, 0, math.nan)

    def test_contains_angle(self):
        """Test contains angle."""
        arc = Arc(Vector2.ZERO, 1, 0, math.pi / 2)
        assert arc.contains_angle(math.pi / 4)
        assert arc.contains_angle(2 * math.pi + 0.1)
        assert not arc.contains_angle(math.pi)

    def test_t_at_angle(self):
        """Test t at angle."""
        arc = Arc(Vector2.ZERO, 1, 0, math.pi / 2)
        assert arc.t_at_angle(math.pi / 4) == pytest.approx(0.5)
        assert arc.t_at_angle(0) == 0
        anticlockwise = Arc(Vector2.ZERO, 1, 0, -math.pi / 2, True)
        assert anticlockwise.t_at_angle(-math.pi / 4) == pytest.approx(0.5)

    def test_create_from_points(self):
        """Test create from points."""
        arc = Arc.create_from_points(Vector2(1, 0), Vector2(0, 1), Vector2(-1, 0))
        assert isinstance(arc, Arc)
        assert arc.center.equals_epsilon(Vector2.ZERO, 1e-12)
        assert arc.radius == pytest.approx(1)
        assert not arc.anticlockwise
        assert arc.position_at(0.5).equals_epsilon(Vector2(0, 1), 1e-12)

    def test_create_from_collinear_points(self):
        """Test create from collinear points."""
        line = Arc.create_from_points(Vector2(0, 0), Vector2(1, 1), Vector2(2, 2))
        assert line == Line(Vector2(0, 0), Vector2(2, 2))


###############################################################################
# Decomposition / stroking
###############################################################################


class TestArcDecomposition:
    """Subdivision, extrema, degeneracy, reversal and offsets."""

    def test_subdivided(self):
        """Test subdivided."""
        left, right = Arc(Vector2.ZERO, 1, 0, math.pi / 2).subdivided(0.5)
        assert left.end_angle == pytest.approx(math.pi / 4)
        assert right.start_angle == pytest.approx(math.pi / 4)
        assert left.end.equals_epsilon(right.start, 1e-12)

    def test_interior_extrema(self):
        """Test interior extrema."""
        arc = Arc(Vector2.ZERO, 1, -math.pi / 4, math.pi / 4)
        assert arc.get_interior_extrema_ts() == [pytest.approx(0.5)]

    def test_degenerate(self):
        """Test degenerate."""
        assert Arc(Vector2.ZERO, 0, 0, 1).get_nondegenerate_segments() == []
        assert Arc(Vector2.ZERO, 1, 1, 1).get_nondegenerate_segments() == []

    def test_reversed(self):
        """Test reversed."""
        arc = Arc(Vector2.ZERO, 1, 0, math.pi / 2)
        reversed_arc = arc.reversed()
        assert reversed_arc.anticlockwise
        assert reversed_arc.start.equals_epsilon(arc.end, 1e-12)
        assert reversed_arc.position_at(0.25).equals_epsilon(arc.position_at(0.75), 1e-12)

    def test_stroke_sides(self):
        """Test stroke sides."""
        arc = Arc(Vector2.ZERO, 5, 0, math.pi / 2)
        left = arc.stroke_left(2)
        right = arc.stroke_right(2)
        assert left[0].radius == 4
        assert right[0].radius == 6
        assert right[0].start.equals_epsilon(Vector2(0, 6), 1e-12)

    def test_curvature_sign(self):
        """Test curvature sign."""
        assert Arc(Vector2.ZERO, 2, 0, 1).curvature_at(0.5) == 0.5
        assert Arc(Vector2.ZERO, 2, 0, -1, True).curvature_at(0.5) == -0.5


###############################################################################
# Hit testing / measures
###############################################################################


class TestArcIntersection:
    """Ray hits, winding, area and length."""

    def test_ray_through_circle(self):
        """Test ray through circle."""
        circle = Arc(Vector2.ZERO, 1, 0, 2 * math.pi)
        hits = circle.intersection(Ray2(Vector2(-5, 0), Vector2(1, 0)))
        assert [hit.distance for hit in hits] == pytest.approx([4, 6])
        assert hits[0].normal.equals_epsilon(Vector2(-1, 0), 1e-12)
        assert hits[1].normal.equals_epsilon(Vector2(-1, 0), 1e-12)
        assert circle.winding_intersection(Ray2(Vector2(-5, 0), Vector2(1, 0))) == 0

    def test_ray_from_inside(self):
        """Test ray from inside."""
        circle = Arc(Vector2.ZERO, 1, 0, 2 * math.pi)
        assert circle.winding_intersection(Ray2(Vector2.ZERO, Vector2(1, 0))) == 1
        reversed_circle = Arc(Vector2.ZERO, 1, 0, -2 * math.pi, True)
        assert reversed_circle.winding_intersection(Ray2(Vector2.ZERO, Vector2(1, 0))) == -1

    def test_ray_misses_partial_arc(self):
        """Test ray misses partial arc."""
        arc = Arc(Vector2.ZERO, 1, 0, math.pi / 2)
        assert arc.intersection(Ray2(Vector2(0, -0.5), Vector2(1, 0))) == []

    def test_ray_behind(self):
        """Test ray behind."""
        circle = Arc(Vector2.ZERO, 1, 0, 2 * math.pi)
        assert circle.intersection(Ray2(Vector2(5, 0), Vector2(1, 0))) == []

    def test_signed_area_full_circle(self):
        """Test signed area full circle."""
        circle = Arc(Vector2(3, 4), 2, 0, 2 * math.pi)
        assert circle.get_signed_area_fragment() == pytest.approx(4 * math.pi)

    def test_arc_length(self):
        """Test arc length."""
        assert Arc(Vector2.ZERO, 2, 0, math.pi).get_arc_length() == pytest.approx(2 * math.pi)


###############################################################################
# Output / transformation
###############################################################################


class TestArcOutput:
    """SVG fragments, affine maps and serialization."""

    def test_svg_fragment(self):
        """Test svg fragment."""
        fragment = Arc(Vector2.ZERO, 1, 0, math.pi / 2).get_svg_path_fragment()
        assert fragment.startswith("A 1 1 0 0 1 ")
        x, y = (float(value) for value in fragment.split()[-2:])
        assert x == pytest.approx(0, abs=1e-12)
        assert y == pytest.approx(1)

    def test_svg_large_arc_flag(self):
        """Test svg large arc flag."""
        fragment = Arc(Vector2.ZERO, 1, 0, 3 * math.pi / 2).get_svg_path_fragment()
        assert fragment.startswith("A 1 1 0 1 1 ")

    def test_svg_full_circle_split(self):
        """Test svg full circle split."""
        fragment = Arc(Vector2.ZERO, 1, 0, 2 * math.pi).get_svg_path_fragment()
        assert fragment.count("A") == 2

    def test_similarity_transform_keeps_arc(self):
        """Test similarity transform keeps arc."""
        arc = Arc(Vector2.ZERO, 1, 0, math.pi / 2).transformed(Matrix3.translation(1, 1) @ Matrix3.scaling(2))
        assert isinstance(arc, Arc)
        assert arc.center == Vector2(1, 1)
        assert arc.radius == 2
        assert arc.end.equals_epsilon(Vector2(1, 3), 1e-12)

    def test_reflection_flips_direction(self):
        """Test reflection flips direction."""
        arc = Arc(Vector2.ZERO, 1, 0, math.pi / 2).transformed(Matrix3.scaling(1, -1))
        assert isinstance(arc, Arc)
        assert arc.anticlockwise
        assert arc.angle_difference == pytest.approx(math.pi / 2)
        assert arc.end.equals_epsilon(Vector2(0, -1), 1e-12)

    def test_full_circle_stays_full_after_transform(self):
        """Test full circle stays full after transform."""
        circle = Arc(Vector2.ZERO, 1, 0, 2 * math.pi).transformed(Matrix3.rotation2(1.0))
        assert circle.is_full_perimeter()

    def test_non_uniform_scale_gives_elliptical_arc(self):
        """Test non uniform scale gives elliptical arc."""
        arc = Arc(Vector2.ZERO, 1, 0, math.pi / 2).transformed(Matrix3.scaling(2, 1))
        assert isinstance(arc, EllipticalArc)
        assert arc.start.equals_epsilon(Vector2(2, 0), 1e-9)
        assert arc.end.equals_epsilon(Vector2(0, 1), 1e-9)

    def test_dict_round_trip(self):
        """Test dict round trip."""
        arc = Arc(Vector2(1, 2), 3, 0.5, 2.0, True)
        assert Segment.from_dict(arc.to_dict()) == arc
