"""Test module for penpath.bounds and penpath.ray

The tests are run using pytest.
These tests ensure that Bounds2 combination and containment, Ray2 and the
RayIntersection validation remain working correctly after changes and refactoring.
"""

import math

import pytest

from penpath.bounds import Bounds2
from penpath.exceptions import GeometryError
from penpath.matrix import Matrix3
from penpath.ray import Ray2, RayIntersection
from penpath.vector import Vector2

###############################################################################
# Bounds2
###############################################################################


class TestBounds2:
    """Empty box, union, containment and transformation."""

    def test_nothing_is_empty_and_union_identity(self):
        """Test nothing is empty and union identity."""
        box = Bounds2(0, 0, 2, 3)
        assert Bounds2.NOTHING.is_empty()
        assert Bounds2.NOTHING.union(box) == box
        assert box.union(Bounds2.NOTHING) == box

    def test_point_and_with_point(self):
        """Test point and with point."""
        box = Bounds2.point(Vector2(1, 1)).with_point(Vector2(-1, 4))
        assert box == Bounds2(-1, 1, 1, 4)
        assert box.width == 2
        assert box.height == 3
        assert box.area == 6
        assert box.center == Vector2(0, 2.5)

    def test_from_points(self):
        """Test from points."""
        assert Bounds2.from_points([]) == Bounds2.NOTHING
        assert Bounds2.from_points([Vector2(1, 2), Vector2(3, -1)]) == Bounds2(1, -1, 3, 2)

    def test_contains(self):
        """Test contains."""
        box = Bounds2.rect(0, 0, 10, 10)
        assert box.contains_point(Vector2(10, 5))
        assert not box.contains_point(Vector2(10.1, 5))
        assert box.contains_bounds(Bounds2(1, 1, 9, 9))
        assert not box.contains_bounds(Bounds2(1, 1, 11, 9))

    def test_intersects(self):
        """Test intersects."""
        box = Bounds2(0, 0, 1, 1)
        assert box.intersects_bounds(Bounds2(1, 1, 2, 2))
        assert not box.intersects_bounds(Bounds2(1.5, 0, 2, 1))
        assert not box.intersects_bounds(Bounds2.NOTHING)

    def test_transformed(self):
        """Test transformed."""
        box = Bounds2(0, 0, 2, 1).transformed(Matrix3.rotation2(math.pi / 2))
        assert box.equals_epsilon(Bounds2(-1, 0, 0, 2), 1e-12)
        assert Bounds2.NOTHING.transformed(Matrix3.scaling(2)) == Bounds2.NOTHING

    def test_equals(self):
        """Test equals."""
        assert Bounds2(0, 0, 1, 1).equals(Bounds2(0.0, 0.0, 1.0, 1.0))
        assert not Bounds2(0, 0, 1, 1).equals(Bounds2(0, 0, 1, 2))

    def test_equals_epsilon_with_infinite_values(self):
        """Test equals epsilon with infinite values."""
        assert Bounds2.NOTHING.equals_epsilon(Bounds2.NOTHING, 1e-9)
        assert not Bounds2.NOTHING.equals_epsilon(Bounds2(0, 0, 0, 0), 1e-9)

    def test_dict_round_trip(self):
        """Test dict round trip."""
        box = Bounds2(1, 2, 3, 4)
        assert Bounds2.from_dict(box.to_dict()) == box


###############################################################################
# Ray2 / RayIntersection
###############################################################################


class TestRay:
    """Rays are normalized; intersections validate their fields."""

    def test_direction_normalized(self):
        """Test direction normalized."""
        ray = Ray2(Vector2(1, 1), Vector2(0, 5))
        assert ray.direction == Vector2(0, 1)
        assert ray.point_at_distance(2) == Vector2(1, 3)
        assert ray.shifted(1).position == Vector2(1, 2)

    def test_zero_direction_raises(self):
        """Test zero direction raises."""
        with pytest.raises(GeometryError):
            Ray2(Vector2(0, 0), Vector2.ZERO)

    def test_intersection_validation(self):
        """Test intersection validation."""
        with pytest.raises(GeometryError):
            RayIntersection(-1, Vector2(0, 0), Vector2(1, 0), 1, 0.5)
        with pytest.raises(GeometryError):
            RayIntersection(1, Vector2(0, 0), Vector2(2, 0), 1, 0.5)
        with pytest.raises(GeometryError):
            RayIntersection(1, Vector2(0, 0), Vector2(1, 0), 1, 1.5)

    def test_intersection_t_clamped(self):
        """Test intersection t clamped."""
        hit = RayIntersection(1, Vector2(0, 0), Vector2(1, 0), 1, 1 + 1e-12)
        assert hit.t == 1
