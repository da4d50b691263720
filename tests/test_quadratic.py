"""Test module for penpath.quadratic

The tests are run using pytest.
These tests ensure that Quadratic evaluation, degeneracy handling, offsetting
and ray intersection remain working correctly after changes and refactoring.
"""

import math

import numpy as np
import pytest

from penpath.bounds import Bounds2
from penpath.line import Line
from penpath.quadratic import Quadratic
from penpath.ray import Ray2
from penpath.vector import Vector2


@pytest.fixture
def arch():
    """Symmetric arch from (0, 0) to (10, 0) with control point (5, 10)."""
    return Quadratic(Vector2(0, 0), Vector2(5, 10), Vector2(10, 0))


###############################################################################
# Evaluation
###############################################################################


class TestQuadraticEvaluation:
    """Positions, tangents, bounds and curvature."""

    def test_end_points(self, arch):
        """Test end points."""
        assert arch.position_at(0) == Vector2(0, 0)
        assert arch.position_at(1) == Vector2(10, 0)
        assert arch.position_at(0.5) == Vector2(5, 5)

    def test_positions_at_matches_position_at(self, arch):
        """Test positions at matches position at."""
        ts = np.linspace(0, 1, 7)
        points = arch.positions_at(ts)
        for t, point in zip(ts, points):
            assert np.allclose(point, arch.position_at(float(t)).to_array())

    def test_tangents(self, arch):
        """Test tangents."""
        assert arch.start_tangent.equals_epsilon(Vector2(1, 2).normalized(), 1e-12)
        assert arch.end_tangent.equals_epsilon(Vector2(1, -2).normalized(), 1e-12)
        assert arch.tangent_at(0.5) == Vector2(10, 0)

    def test_bounds_include_extremum(self, arch):
        """Test bounds include extremum."""
        assert arch.bounds == Bounds2(0, 0, 10, 5)
        assert arch.get_interior_extrema_ts() == [0.5]

    def test_tangent_fallback_when_control_on_end(self):
        """Test tangent fallback when control on end."""
        curve = Quadratic(Vector2(0, 0), Vector2(0, 0), Vector2(4, 3))
        assert curve.start_tangent == Vector2(0.8, 0.6)

    def test_curvature_matches_degree_elevated_cubic(self, arch):
        """Test curvature matches degree elevated cubic."""
        cubic = arch.degree_elevated()
        for t in (0.0, 0.25, 0.5, 1.0):
            assert arch.curvature_at(t) == pytest.approx(cubic.curvature_at(t), rel=1e-6)
        assert arch.curvature_at(0) == pytest.approx(-0.08 / math.sqrt(5))


###############################################################################
# Decomposition
###############################################################################


class TestQuadraticDecomposition:
    """Subdivision, degeneracy and reparameterization."""

    def test_subdivided_continuity(self, arch):
        """Test subdivided continuity."""
        left, right = arch.subdivided(0.3)
        assert left.start == arch.start
        assert right.end == arch.end
        assert left.end.equals_epsilon(arch.position_at(0.3), 1e-12)
        assert right.start == left.end
        assert left.position_at(0.5).equals_epsilon(arch.position_at(0.15), 1e-12)

    def test_collinear_control_gives_line(self):
        """Test collinear control gives line."""
        curve = Quadratic(Vector2(0, 0), Vector2(5, 0), Vector2(10, 0))
        assert curve.get_nondegenerate_segments() == [Line(Vector2(0, 0), Vector2(10, 0))]

    def test_collinear_overshoot_gives_two_lines(self):
        """Test collinear overshoot gives two lines."""
        curve = Quadratic(Vector2(0, 0), Vector2(20, 0), Vector2(10, 0))
        pieces = curve.get_nondegenerate_segments()
        assert len(pieces) == 2
        assert all(isinstance(piece, Line) for piece in pieces)
        assert pieces[0].end.x == pytest.approx(40 / 3)
        assert pieces[1].end == Vector2(10, 0)

    def test_closed_quadratic_gives_out_and_back(self):
        """Test closed quadratic gives out and back."""
        curve = Quadratic(Vector2(0, 0), Vector2(5, 5), Vector2(0, 0))
        assert curve.get_nondegenerate_segments() == [
            Line(Vector2(0, 0), Vector2(2.5, 2.5)),
            Line(Vector2(2.5, 2.5), Vector2(0, 0)),
        ]

    def test_point_quadratic_is_empty(self):
        """Test point quadratic is empty."""
        point = Vector2(1, 1)
        assert Quadratic(point, point, point).get_nondegenerate_segments() == []

    def test_curved_quadratic_is_itself(self, arch):
        """Test curved quadratic is itself."""
        assert arch.get_nondegenerate_segments() == [arch]

    def test_reparameterized(self, arch):
        """Test reparameterized."""
        piece = arch.reparameterized(0.5, 0.25)
        for t in (0.0, 0.3, 1.0):
            assert piece.position_at(t).equals_epsilon(arch.position_at(0.5 * t + 0.25), 1e-12)

    def test_slice_is_reparameterized(self, arch):
        """Test that slicing a quadratic gives the reparameterized curve."""
        assert arch.slice(0.25, 0.75) == arch.reparameterized(0.5, 0.25)
        with pytest.raises(ValueError):
            arch.slice(0.5, 0.5)

    def test_closest_point_is_apex(self, arch):
        """Test that the apex is the closest point to a point above it."""
        results = arch.get_closest_points(Vector2(5, 10))
        assert len(results) == 1
        assert results[0].closest_point.equals_epsilon(Vector2(5, 5), 1e-6)
        assert results[0].t == pytest.approx(0.5, abs=1e-6)
        assert results[0].distance_squared == pytest.approx(25, abs=1e-6)

    def test_piecewise_linear_follows_curve(self, arch):
        """Test that the line approximation starts, ends and bends with the curve."""
        lines = arch.to_piecewise_linear_segments()
        assert len(lines) > 2
        assert all(isinstance(line, Line) for line in lines)
        assert lines[0].start == arch.start
        assert lines[-1].end == arch.end
        assert sum(line.get_arc_length() for line in lines) == pytest.approx(arch.get_arc_length(), rel=3e-2)

    def test_reversed(self, arch):
        """Test reversed."""
        reversed_curve = arch.reversed()
        assert reversed_curve.position_at(0.2).equals_epsilon(arch.position_at(0.8), 1e-12)

    def test_degree_elevated_same_curve(self, arch):
        """Test degree elevated same curve."""
        cubic = arch.degree_elevated()
        for t in (0.1, 0.5, 0.9):
            assert cubic.position_at(t).equals_epsilon(arch.position_at(t), 1e-12)


###############################################################################
# Stroking / hit testing / measures
###############################################################################


class TestQuadraticStrokeAndIntersection:
    """Offset pieces, ray hits, area fragment and SVG output."""

    def test_stroke_left_pieces(self, arch):
        """Test stroke left pieces."""
        pieces = arch.stroke_left(2)
        assert len(pieces) == 32
        assert pieces[0].start.equals_epsilon(Vector2(-2, 1) / math.sqrt(5), 1e-12)
        for piece, next_piece in zip(pieces, pieces[1:]):
            assert piece.end.equals_epsilon(next_piece.start, 1e-9)

    def test_stroke_right_runs_backwards(self, arch):
        """Test stroke right runs backwards."""
        pieces = arch.stroke_right(2)
        assert len(pieces) == 32
        assert pieces[-1].end.equals_epsilon(Vector2(2, -1) / math.sqrt(5), 1e-12)

    def test_ray_hit(self, arch):
        """Test ray hit."""
        hits = arch.intersection(Ray2(Vector2(5, -1), Vector2(0, 1)))
        assert len(hits) == 1
        hit = hits[0]
        assert hit.distance == pytest.approx(6)
        assert hit.t == pytest.approx(0.5)
        assert hit.normal.equals_epsilon(Vector2(0, -1), 1e-9)
        assert hit.wind == -1

    def test_ray_misses(self, arch):
        """Test ray misses."""
        assert arch.intersection(Ray2(Vector2(5, 6), Vector2(0, 1))) == []

    def test_signed_area_of_closed_arch(self, arch):
        """Test signed area of closed arch."""
        closing = Line(Vector2(10, 0), Vector2(0, 0))
        area = arch.get_signed_area_fragment() + closing.get_signed_area_fragment()
        assert area == pytest.approx(-100 / 3)

    def test_arc_length(self):
        """Test arc length."""
        curve = Quadratic(Vector2(0, 0), Vector2(5, 0), Vector2(10, 0.000001))
        assert curve.get_arc_length() == pytest.approx(10, rel=1e-6)

    def test_svg_fragment(self, arch):
        """Test svg fragment."""
        assert arch.get_svg_path_fragment() == "Q 5 10 10 0"
