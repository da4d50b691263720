"""Immutable 2D vector used for points and directions"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import ClassVar, Tuple

import numpy as np
from numpy.typing import NDArray

from penpath.exceptions import GeometryError


###############################################################################
# Vector2
###############################################################################
@dataclass(frozen=True)
class Vector2:
    """
    A 2D vector (x, y), used both as a free vector and as an absolute point.

    Instances are immutable; every operation returns a new vector.
    Angles follow the mathematical convention: angle = atan2(y, x).
    """

    x: float
    y: float

    ZERO: ClassVar[Vector2]
    X_UNIT: ClassVar[Vector2]
    Y_UNIT: ClassVar[Vector2]

    @classmethod
    def create_polar(cls, magnitude: float, angle: float) -> Vector2:
        """Vector with the given magnitude pointing at the given angle (radians)."""
        return cls(magnitude * math.cos(angle), magnitude * math.sin(angle))

    @classmethod
    def from_sequence(cls, values) -> Vector2:
        """Vector from any (x, y) pair, e.g. a tuple or a numpy row."""
        return cls(float(values[0]), float(values[1]))

    ###########################################################################
    # Arithmetic
    ###########################################################################
    def __add__(self, other: Vector2) -> Vector2:
        return Vector2(self.x + other.x, self.y + other.y)

    def __sub__(self, other: Vector2) -> Vector2:
        return Vector2(self.x - other.x, self.y - other.y)

    def __neg__(self) -> Vector2:
        return Vector2(-self.x, -self.y)

    def __mul__(self, scalar: float) -> Vector2:
        return Vector2(self.x * scalar, self.y * scalar)

    def __rmul__(self, scalar: float) -> Vector2:
        return Vector2(self.x * scalar, self.y * scalar)

    def __truediv__(self, scalar: float) -> Vector2:
        return Vector2(self.x / scalar, self.y / scalar)

    def plus(self, other: Vector2) -> Vector2:
        """Sum of both vectors."""
        return self + other

    def minus(self, other: Vector2) -> Vector2:
        """Difference of both vectors."""
        return self - other

    def times_scalar(self, scalar: float) -> Vector2:
        """Vector scaled by _scalar_."""
        return self * scalar

    def divided_scalar(self, scalar: float) -> Vector2:
        """Vector divided by _scalar_."""
        return self / scalar

    def negated(self) -> Vector2:
        """Vector pointing in the opposite direction."""
        return -self

    ###########################################################################
    # Metrics
    ###########################################################################
    @property
    def magnitude(self) -> float:
        """float: Euclidean length."""
        return math.hypot(self.x, self.y)

    @property
    def magnitude_squared(self) -> float:
        """float: Squared Euclidean length."""
        return self.x * self.x + self.y * self.y

    @property
    def angle(self) -> float:
        """float: Angle of the vector in radians, atan2(y, x)."""
        return math.atan2(self.y, self.x)

    @property
    def perpendicular(self) -> Vector2:
        """Vector2: The vector rotated by -90 degrees, i.e. (y, -x)."""
        return Vector2(self.y, -self.x)

    def distance(self, point: Vector2) -> float:
        """Distance between two points."""
        return math.hypot(self.x - point.x, self.y - point.y)

    def distance_squared(self, point: Vector2) -> float:
        """Squared distance between two points."""
        dx = self.x - point.x
        dy = self.y - point.y
        return dx * dx + dy * dy

    def dot(self, other: Vector2) -> float:
        """Dot product."""
        return self.x * other.x + self.y * other.y

    def cross(self, other: Vector2) -> float:
        """z component of the 3D cross product (self.x, self.y, 0) x (other.x, other.y, 0)."""
        return self.x * other.y - self.y * other.x

    def angle_between(self, other: Vector2) -> float:
        """Unsigned angle in [0, pi] between both vectors."""
        cos_angle = self.normalized().dot(other.normalized())
        return math.acos(max(-1.0, min(1.0, cos_angle)))

    ###########################################################################
    # Derived vectors
    ###########################################################################
    def normalized(self) -> Vector2:
        """
        Unit vector in the same direction.

        Raises:
            GeometryError: if the vector has zero magnitude.
        """
        mag = self.magnitude
        if mag == 0:
            raise GeometryError("Cannot normalize a zero-magnitude vector")
        return Vector2(self.x / mag, self.y / mag)

    def normalized_or_zero(self) -> Vector2:
        """Unit vector in the same direction, ZERO for a zero vector."""
        if self.magnitude_squared == 0:
            return Vector2.ZERO
        return self.normalized()

    def rotated(self, angle: float) -> Vector2:
        """Vector rotated counter-clockwise by _angle_ radians."""
        cos_a = math.cos(angle)
        sin_a = math.sin(angle)
        return Vector2(self.x * cos_a - self.y * sin_a, self.x * sin_a + self.y * cos_a)

    def blend(self, other: Vector2, ratio: float) -> Vector2:
        """Linear interpolation, ratio 0 gives self and 1 gives _other_."""
        return Vector2(self.x + (other.x - self.x) * ratio, self.y + (other.y - self.y) * ratio)

    def average(self, other: Vector2) -> Vector2:
        """Midpoint of both points."""
        return self.blend(other, 0.5)

    ###########################################################################
    # Comparison / conversion
    ###########################################################################
    def equals(self, other: Vector2) -> bool:
        """Exact equality."""
        return self.x == other.x and self.y == other.y

    def equals_epsilon(self, other: Vector2, epsilon: float) -> bool:
        """Equality where each component may differ by at most _epsilon_."""
        return abs(self.x - other.x) <= epsilon and abs(self.y - other.y) <= epsilon

    def is_finite(self) -> bool:
        """True if both components are finite."""
        return math.isfinite(self.x) and math.isfinite(self.y)

    def to_tuple(self) -> Tuple[float, float]:
        """The vector as (x, y)."""
        return (self.x, self.y)

    def to_array(self) -> NDArray[np.float64]:
        """The vector as numpy array of shape (2,)."""
        return np.array([self.x, self.y], dtype=np.float64)

    def __str__(self) -> str:
        return f"({self.x}, {self.y})"


Vector2.ZERO = Vector2(0.0, 0.0)
Vector2.X_UNIT = Vector2(1.0, 0.0)
Vector2.Y_UNIT = Vector2(0.0, 1.0)
