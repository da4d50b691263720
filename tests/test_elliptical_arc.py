"""Test module for penpath.elliptical_arc

The tests are run using pytest.
These tests ensure that EllipticalArc normalization, evaluation, bounds,
ray intersection and affine transformation remain working correctly after
changes and refactoring.
"""

import math

import numpy as np
import pytest

from penpath.arc import Arc
from penpath.bounds import Bounds2
from penpath.elliptical_arc import EllipticalArc
from penpath.exceptions import ArcAngleRangeError
from penpath.line import Line
from penpath.matrix import Matrix3
from penpath.ray import Ray2
from penpath.segment import Segment
from penpath.vector import Vector2


@pytest.fixture
def quarter():
    """Quarter of the ellipse with semi-axes 2 (x) and 1 (y) around the origin."""
    return EllipticalArc(Vector2.ZERO, 2, 1, 0, 0, math.pi / 2)


@pytest.fixture
def full_ellipse():
    return EllipticalArc(Vector2.ZERO, 2, 1, 0, 0, 2 * math.pi)


###############################################################################
# Construction
###############################################################################


class TestEllipticalArcConstruction:
    """Radius normalization and angle range validation."""

    def test_quarter(self, quarter):
        """Test quarter."""
        assert quarter.start.equals_epsilon(Vector2(2, 0), 1e-12)
        assert quarter.end.equals_epsilon(Vector2(0, 1), 1e-12)
        assert quarter.start_tangent.equals_epsilon(Vector2(0, 1), 1e-12)
        assert quarter.end_tangent.equals_epsilon(Vector2(-1, 0), 1e-12)
        assert quarter.bounds.equals_epsilon(Bounds2(0, 0, 2, 1), 1e-12)

    def test_larger_y_radius_swapped(self):
        """Test larger y radius swapped."""
        arc = EllipticalArc(Vector2.ZERO, 1, 2, 0, 0, math.pi / 2)
        assert arc.radius_x == 2
        assert arc.radius_y == 1
        assert arc.rotation == pytest.approx(math.pi / 2)
        assert arc.start.equals_epsilon(Vector2(1, 0), 1e-12)
        assert arc.end.equals_epsilon(Vector2(0, 2), 1e-12)

    def test_negative_radius_mirrored(self):
        """Test negative radius mirrored."""
        arc = EllipticalArc(Vector2.ZERO, -2, 1, 0, 0, math.pi / 2)
        assert arc.radius_x == 2
        assert arc.anticlockwise
        assert arc.start.equals_epsilon(Vector2(-2, 0), 1e-12)
        assert arc.end.equals_epsilon(Vector2(0, 1), 1e-12)

    def test_more_than_full_turn_rejected(self):
        """Test more than full turn rejected."""
        with pytest.raises(ArcAngleRangeError):
            EllipticalArc(Vector2.ZERO, 2, 1, 0, 0, 5 * math.pi)

    def test_unit_arc_segment(self, quarter):
        """Test unit arc segment."""
        unit_arc = quarter.unit_arc_segment
        assert isinstance(unit_arc, Arc)
        assert unit_arc.radius == 1
        assert quarter.unit_transform.transform_position2(unit_arc.end).equals_epsilon(quarter.end, 1e-12)


###############################################################################
# Evaluation / bounds
###############################################################################


class TestEllipticalArcEvaluation:
    """Positions, curvature, extrema and bounds of rotated ellipses."""

    def test_positions_at(self, quarter):
        """Test positions at."""
        ts = np.linspace(0, 1, 5)
        points = quarter.positions_at(ts)
        for t, point in zip(ts, points):
            assert np.allclose(point, quarter.position_at(float(t)).to_array())

    def test_curvature_at_axis_ends(self, quarter):
        """Test curvature at axis ends."""
        assert quarter.curvature_at(0) == pytest.approx(2)
        assert quarter.curvature_at(1) == pytest.approx(0.25)

    def test_interior_extrema(self):
        """Test interior extrema."""
        arc = EllipticalArc(Vector2.ZERO, 2, 1, 0, -math.pi / 4, math.pi / 4)
        assert arc.get_interior_extrema_ts() == [pytest.approx(0.5)]

    def test_rotated_full_ellipse_bounds(self):
        """Test rotated full ellipse bounds."""
        arc = EllipticalArc(Vector2.ZERO, 2, 1, math.pi / 4, 0, 2 * math.pi)
        half = math.sqrt(2.5)
        assert arc.bounds.equals_epsilon(Bounds2(-half, -half, half, half), 1e-9)

    def test_subdivided_continuity(self, quarter):
        """Test subdivided continuity."""
        left, right = quarter.subdivided(0.4)
        assert left.end.equals_epsilon(quarter.position_at(0.4), 1e-12)
        assert right.start.equals_epsilon(left.end, 1e-12)
        assert right.end.equals_epsilon(quarter.end, 1e-12)

    def test_reversed(self, quarter):
        """Test reversed."""
        reversed_arc = quarter.reversed()
        assert reversed_arc.position_at(0.3).equals_epsilon(quarter.position_at(0.7), 1e-12)


###############################################################################
# Degeneracy / stroking
###############################################################################


class TestEllipticalArcDegeneracy:
    """Circles become Arcs, zero radii vanish, offsets are sampled."""

    def test_equal_radii_become_arc(self):
        """Test equal radii become arc."""
        arc = EllipticalArc(Vector2.ZERO, 1, 1, 0.5, 0, math.pi / 2)
        pieces = arc.get_nondegenerate_segments()
        assert len(pieces) == 1
        assert isinstance(pieces[0], Arc)
        assert pieces[0].start.equals_epsilon(arc.start, 1e-12)
        assert pieces[0].end.equals_epsilon(arc.end, 1e-12)

    def test_zero_radius_is_empty(self):
        """Test zero radius is empty."""
        assert EllipticalArc(Vector2.ZERO, 2, 0, 0, 0, 1).get_nondegenerate_segments() == []

    def test_ellipse_is_itself(self, quarter):
        """Test ellipse is itself."""
        assert quarter.get_nondegenerate_segments() == [quarter]

    def test_stroke_left(self, quarter):
        """Test stroke left."""
        pieces = quarter.stroke_left(2)
        assert len(pieces) == 31
        assert all(isinstance(piece, Line) for piece in pieces)
        assert pieces[0].start.equals_epsilon(Vector2(1, 0), 1e-12)
        assert pieces[-1].end.equals_epsilon(Vector2(0, 0), 1e-12)

    def test_stroke_right(self, quarter):
        """Test stroke right."""
        pieces = quarter.stroke_right(2)
        assert pieces[0].start.equals_epsilon(Vector2(0, 2), 1e-12)
        assert pieces[-1].end.equals_epsilon(Vector2(3, 0), 1e-12)


###############################################################################
# Hit testing / measures / output
###############################################################################


class TestEllipticalArcIntersection:
    """Ray hits mapped back from the unit circle, area and SVG output."""

    def test_ray_through_ellipse(self, full_ellipse):
        """Test ray through ellipse."""
        ray = Ray2(Vector2(-5, 0), Vector2(1, 0))
        hits = full_ellipse.intersection(ray)
        assert [hit.distance for hit in hits] == pytest.approx([3, 7])
        assert hits[0].point.equals_epsilon(Vector2(-2, 0), 1e-12)
        assert hits[0].normal.equals_epsilon(Vector2(-1, 0), 1e-12)
        assert full_ellipse.winding_intersection(ray) == 0

    def test_ray_from_inside(self, full_ellipse):
        """Test ray from inside."""
        assert full_ellipse.winding_intersection(Ray2(Vector2(0.5, 0.1), Vector2(0, 1))) != 0

    def test_signed_area_full_ellipse(self):
        """Test signed area full ellipse."""
        arc = EllipticalArc(Vector2(1, 1), 3, 2, 0.3, 0, 2 * math.pi)
        assert arc.get_signed_area_fragment() == pytest.approx(6 * math.pi)

    def test_svg_fragment(self, quarter):
        """Test svg fragment."""
        fragment = quarter.get_svg_path_fragment()
        assert fragment.startswith("A 2 1 0 0 1 ")

    def test_svg_rotation_in_degrees(self):
        """Test svg rotation in degrees."""
        arc = EllipticalArc(Vector2.ZERO, 2, 1, math.pi / 2, 0, 1)
        fields = arc.get_svg_path_fragment().split()
        assert fields[:3] == ["A", "2", "1"]
        assert float(fields[3]) == pytest.approx(90)

    def test_svg_full_ellipse_split(self, full_ellipse):
        """Test svg full ellipse split."""
        assert full_ellipse.get_svg_path_fragment().count("A") == 2

    def test_dict_round_trip(self, quarter):
        """Test dict round trip."""
        assert Segment.from_dict(quarter.to_dict()) == quarter


###############################################################################
# Transformation
###############################################################################


class TestEllipticalArcTransform:
    """Affine maps, including shear and reflection, keep the parameterization."""

    @pytest.mark.parametrize(
        "matrix",
        [
            Matrix3.rotation2(math.pi / 2),
            Matrix3.translation(3, -2) @ Matrix3.scaling(1.5, 0.5),
            Matrix3.affine(1, 1, 0, 0, 1, 0),
            Matrix3.scaling(-1, 1),
        ],
    )
    def test_positions_follow_matrix(self, quarter, matrix):
        """Test positions follow matrix."""
        transformed = quarter.transformed(matrix)
        assert isinstance(transformed, EllipticalArc)
        for t in (0.0, 0.25, 0.5, 0.75, 1.0):
            expected = matrix.times_vector2(quarter.position_at(t))
            assert transformed.position_at(t).equals_epsilon(expected, 1e-9)

    def test_rotation_keeps_radii(self, quarter):
        """Test rotation keeps radii."""
        transformed = quarter.transformed(Matrix3.rotation2(math.pi / 2))
        assert transformed.radius_x == pytest.approx(2)
        assert transformed.radius_y == pytest.approx(1)

    def test_full_ellipse_stays_full(self, full_ellipse):
        """Test full ellipse stays full."""
        transformed = full_ellipse.transformed(Matrix3.affine(1, 1, 0, 0, 1, 0))
        assert transformed.angle_difference == pytest.approx(2 * math.pi)
