"""Test module for penpath.context

The tests are run using pytest.
These tests ensure that writing segments and shapes into canvas-like contexts
(the SVG path recorder and contexts without an ellipse primitive) remains
working correctly after changes and refactoring.
"""

import math

import pytest

from penpath.context import SvgPathContext
from penpath.elliptical_arc import EllipticalArc
from penpath.matrix import Matrix3
from penpath.shape import Shape
from penpath.vector import Vector2


class RecordingContext:
    """Context offering only the canvas primitives, recording every call."""

    def __init__(self):
        self.calls = []

    def __getattr__(self, name):
        if name not in (
            "move_to",
            "line_to",
            "quadratic_curve_to",
            "bezier_curve_to",
            "arc",
            "close_path",
            "save",
            "transform",
            "restore",
        ):
            raise AttributeError(name)

        def record(*args):
            self.calls.append((name, args))

        return record


@pytest.fixture
def context():
    return SvgPathContext()


###############################################################################
# SvgPathContext
###############################################################################


class TestSvgPathContext:
    """SVG path data recorded from drawing calls."""

    def test_line(self, context):
        """Test line."""
        Shape("M 0 0 L 10 0").write_to_context(context)
        assert context.to_path_string() == "M 0 0 L 10 0"

    def test_closed_square(self, context):
        """Test closed square."""
        Shape("M 0 0 L 10 0 L 10 10 Z").write_to_context(context)
        assert context.to_path_string() == "M 0 0 L 10 0 L 10 10 Z"

    def test_curves(self, context):
        """Test curves."""
        Shape("M 0 0 Q 5 10 10 0 C 10 10 20 10 20 0").write_to_context(context)
        assert context.to_path_string() == "M 0 0 Q 5 10 10 0 C 10 10 20 10 20 0"

    def test_line_to_without_current_point_moves(self, context):
        """Test line to without current point moves."""
        context.line_to(1, 2)
        assert context.to_path_string() == "M 1 2"

    def test_arc_connected_with_line(self, context):
        """Test arc connected with line."""
        context.move_to(0, 0)
        context.arc(10, 0, 2, 0, math.pi)
        fields = context.to_path_string().split()
        assert fields[:7] == ["M", "0", "0", "L", "12", "0", "A"]
        assert fields[7:10] == ["2", "2", "0"]
        assert fields[11] == "1"
        assert float(fields[12]) == pytest.approx(8)
        assert float(fields[13]) == pytest.approx(0, abs=1e-12)

    def test_circle(self, context):
        """Test circle."""
        Shape.circle_shape(5).write_to_context(context)
        path = context.to_path_string()
        assert path.startswith("M 5 0 A 5 5 0 0 1 ")
        assert path.count("A") == 2
        assert path.endswith("Z")

    def test_ellipse_primitive(self, context):
        """Test ellipse primitive."""
        EllipticalArc(Vector2.ZERO, 2, 1, 0, 0, math.pi / 2).write_to_context(context)
        assert context.to_path_string().startswith("M 2 0 A 2 1 0 0 1 ")

    def test_transform_save_restore(self, context):
        """Test transform save restore."""
        context.save()
        context.transform(2, 0, 0, 2, 10, 0)
        context.move_to(1, 1)
        context.restore()
        context.line_to(1, 1)
        assert context.to_path_string() == "M 12 2 L 1 1"
        assert context.matrix.is_identity()

    def test_restore_without_save(self, context):
        """Test restore without save."""
        context.restore()
        assert context.matrix.is_identity()

    def test_set_transform(self, context):
        """Test set transform."""
        context.transform(2, 0, 0, 2, 0, 0)
        context.set_transform(1, 0, 0, 1, 5, 5)
        assert context.matrix == Matrix3.translation(5, 5)

    def test_arc_under_non_uniform_scaling(self, context):
        """Test arc under non uniform scaling."""
        context.save()
        context.transform(2, 0, 0, 1, 1, 2)
        context.move_to(1, 0)
        context.arc(0, 0, 1, 0, math.pi / 2)
        context.restore()
        fields = context.to_path_string().split()
        assert fields[:4] == ["M", "3", "2", "A"]
        assert fields[4:6] == ["2", "1"]
        assert fields[7:9] == ["0", "1"]
        assert float(fields[9]) == pytest.approx(1)
        assert float(fields[10]) == pytest.approx(3)

    def test_close_path_without_current_point(self, context):
        """Test close path without current point."""
        context.close_path()
        assert context.to_path_string() == ""

    def test_clear(self, context):
        """Test clear."""
        context.transform(2, 0, 0, 2, 0, 0)
        context.move_to(1, 1)
        context.clear()
        assert context.to_path_string() == ""
        assert context.matrix.is_identity()


###############################################################################
# Contexts without ellipse support
###############################################################################


class TestEllipseFallback:
    """Elliptical arcs drawn as unit arcs inside the unit transform."""

    def test_fallback_calls(self):
        """Test fallback calls."""
        recorder = RecordingContext()
        EllipticalArc(Vector2(1, 2), 2, 1, 0, 0, math.pi / 2).write_to_context(recorder)
        assert [name for name, _ in recorder.calls] == ["save", "transform", "arc", "restore"]
        assert recorder.calls[1][1] == pytest.approx((2, 0, 0, 1, 1, 2))
        assert recorder.calls[2][1][:5] == pytest.approx((0, 0, 1, 0, math.pi / 2))
        assert recorder.calls[2][1][5] is False

    def test_fallback_matches_ellipse_primitive(self):
        """Test fallback matches ellipse primitive."""
        arc = EllipticalArc(Vector2(1, 2), 2, 1, 0.3, 0, math.pi / 2)

        direct = SvgPathContext()
        direct.move_to(arc.start.x, arc.start.y)
        arc.write_to_context(direct)

        values = arc.unit_transform.matrix.values
        fallback = SvgPathContext()
        fallback.move_to(arc.start.x, arc.start.y)
        fallback.save()
        fallback.transform(values[0, 0], values[1, 0], values[0, 1], values[1, 1], values[0, 2], values[1, 2])
        fallback.arc(0, 0, 1, arc.start_angle, arc.end_angle, arc.anticlockwise)
        fallback.restore()

        direct_end = [float(value) for value in direct.to_path_string().split()[-2:]]
        fallback_end = [float(value) for value in fallback.to_path_string().split()[-2:]]
        assert fallback_end == pytest.approx(direct_end)

    def test_shape_with_recorder(self):
        """Test shape with recorder."""
        recorder = RecordingContext()
        Shape("M 0 0 L 10 0 Z").write_to_context(recorder)
        assert recorder.calls == [("move_to", (0.0, 0.0)), ("line_to", (10.0, 0.0)), ("close_path", ())]
