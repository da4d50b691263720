"""Axis-aligned bounding boxes"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import TYPE_CHECKING, ClassVar, Iterable, Tuple

from penpath.vector import Vector2

if TYPE_CHECKING:
    from penpath.matrix import Matrix3


###############################################################################
# Bounds2
###############################################################################
@dataclass(frozen=True)
class Bounds2:
    """
    Represents an axis-aligned box.

    Unlike a plain rectangle, the box may be empty: Bounds2.NOTHING has all
    coordinates inverted (+inf minimum, -inf maximum) and is the identity for union().

    Attributes:
        min_x (float): The minimum x-coordinate.
        min_y (float): The minimum y-coordinate.
        max_x (float): The maximum x-coordinate.
        max_y (float): The maximum y-coordinate.
    """

    min_x: float
    min_y: float
    max_x: float
    max_y: float

    NOTHING: ClassVar[Bounds2]
    EVERYTHING: ClassVar[Bounds2]

    @classmethod
    def point(cls, point: Vector2) -> Bounds2:
        """Zero-size box at _point_."""
        return cls(point.x, point.y, point.x, point.y)

    @classmethod
    def from_points(cls, points: Iterable[Vector2]) -> Bounds2:
        """Smallest box containing all _points_ (NOTHING for no points)."""
        bounds = cls.NOTHING
        for point in points:
            bounds = bounds.with_point(point)
        return bounds

    @classmethod
    def rect(cls, x: float, y: float, width: float, height: float) -> Bounds2:
        """Box from its minimum corner and size."""
        return cls(x, y, x + width, y + height)

    ###########################################################################
    # Properties
    ###########################################################################
    @property
    def width(self) -> float:
        """float: The width of the box (difference between max_x and min_x)."""
        return self.max_x - self.min_x

    @property
    def height(self) -> float:
        """float: The height of the box (difference between max_y and min_y)."""
        return self.max_y - self.min_y

    @property
    def area(self) -> float:
        """float: The area of the box."""
        return self.width * self.height

    @property
    def center(self) -> Vector2:
        """Vector2: The center point of the box."""
        return Vector2((self.min_x + self.max_x) / 2.0, (self.min_y + self.max_y) / 2.0)

    @property
    def extent(self) -> Tuple[float, float, float, float]:
        """The extent of the box as Tuple (min_x, min_y, max_x, max_y)."""
        return self.min_x, self.min_y, self.max_x, self.max_y

    def is_empty(self) -> bool:
        """True if the box contains no point (negative width or height)."""
        return self.width < 0 or self.height < 0

    def is_finite(self) -> bool:
        """True if all coordinates are finite."""
        return all(math.isfinite(value) for value in self.extent)

    ###########################################################################
    # Combination
    ###########################################################################
    def union(self, other: Bounds2) -> Bounds2:
        """Smallest box containing both boxes."""
        return Bounds2(
            min(self.min_x, other.min_x),
            min(self.min_y, other.min_y),
            max(self.max_x, other.max_x),
            max(self.max_y, other.max_y),
        )

    def intersection(self, other: Bounds2) -> Bounds2:
        """Overlap of both boxes (possibly empty)."""
        return Bounds2(
            max(self.min_x, other.min_x),
            max(self.min_y, other.min_y),
            min(self.max_x, other.max_x),
            min(self.max_y, other.max_y),
        )

    def with_point(self, point: Vector2) -> Bounds2:
        """Smallest box containing this box and _point_."""
        return Bounds2(
            min(self.min_x, point.x),
            min(self.min_y, point.y),
            max(self.max_x, point.x),
            max(self.max_y, point.y),
        )

    def dilated(self, amount: float) -> Bounds2:
        """Box grown by _amount_ on every side."""
        return Bounds2(self.min_x - amount, self.min_y - amount, self.max_x + amount, self.max_y + amount)

    def transformed(self, matrix: Matrix3) -> Bounds2:
        """Box containing the four transformed corners."""
        if self.is_empty():
            return Bounds2.NOTHING
        corners = [
            Vector2(self.min_x, self.min_y),
            Vector2(self.max_x, self.min_y),
            Vector2(self.max_x, self.max_y),
            Vector2(self.min_x, self.max_y),
        ]
        return Bounds2.from_points(matrix.times_vector2(corner) for corner in corners)

    ###########################################################################
    # Tests
    ###########################################################################
    def contains_point(self, point: Vector2) -> bool:
        """True if _point_ lies inside or on the border of the box."""
        return self.min_x <= point.x <= self.max_x and self.min_y <= point.y <= self.max_y

    def contains_bounds(self, other: Bounds2) -> bool:
        """True if _other_ lies completely inside this box."""
        return (
            self.min_x <= other.min_x
            and self.max_x >= other.max_x
            and self.min_y <= other.min_y
            and self.max_y >= other.max_y
        )

    def intersects_bounds(self, other: Bounds2) -> bool:
        """True if both boxes overlap (touching counts)."""
        return not self.intersection(other).is_empty()

    def minimum_distance_to_point_squared(self, point: Vector2) -> float:
        """Squared distance from _point_ to the closest point of the box (0 inside)."""
        dx = max(self.min_x - point.x, 0.0, point.x - self.max_x)
        dy = max(self.min_y - point.y, 0.0, point.y - self.max_y)
        return dx * dx + dy * dy

    def maximum_distance_to_point_squared(self, point: Vector2) -> float:
        """Squared distance from _point_ to the farthest corner of the box."""
        dx = max(abs(self.min_x - point.x), abs(self.max_x - point.x))
        dy = max(abs(self.min_y - point.y), abs(self.max_y - point.y))
        return dx * dx + dy * dy

    def equals(self, other: Bounds2) -> bool:
        return self.extent == other.extent

    def equals_epsilon(self, other: Bounds2, epsilon: float) -> bool:
        """Equality with per-coordinate tolerance; infinite coordinates must match exactly."""
        for mine, theirs in zip(self.extent, other.extent):
            if math.isfinite(mine) and math.isfinite(theirs):
                if abs(mine - theirs) > epsilon:
                    return False
            elif mine != theirs:
                return False
        return True

    ###########################################################################
    # Serialization
    ###########################################################################
    def to_dict(self) -> dict:
        """Convert the Bounds2 instance to a dictionary."""
        return {
            "min_x": self.min_x,
            "min_y": self.min_y,
            "max_x": self.max_x,
            "max_y": self.max_y,
        }

    @classmethod
    def from_dict(cls, data: dict) -> Bounds2:
        """Create a Bounds2 instance from a dictionary."""
        return cls(
            min_x=data.get("min_x", math.inf),
            min_y=data.get("min_y", math.inf),
            max_x=data.get("max_x", -math.inf),
            max_y=data.get("max_y", -math.inf),
        )

    def __str__(self):
        """Returns a string representation of the Bounds2 instance."""
        return (
            f"Bounds2(min_x={self.min_x}, min_y={self.min_y}, "
            f"max_x={self.max_x}, max_y={self.max_y}, "
            f"width={self.width}, height={self.height})"
        )


Bounds2.NOTHING = Bounds2(math.inf, math.inf, -math.inf, -math.inf)
Bounds2.EVERYTHING = Bounds2(-math.inf, -math.inf, math.inf, math.inf)
