"""3x3 matrices for 2D affine (and projective) transformations"""

from __future__ import annotations

import math
from enum import Enum, auto
from typing import List, Optional

import numpy as np
from numpy.typing import ArrayLike, NDArray

from penpath.exceptions import SingularMatrixError
from penpath.ray import Ray2
from penpath.vector import Vector2


class MatrixType(Enum):
    """
    Enum to classify matrices for fast paths
    """

    IDENTITY = auto()
    TRANSLATION_2D = auto()
    SCALING = auto()
    AFFINE = auto()
    OTHER = auto()


###############################################################################
# Matrix3
###############################################################################
class Matrix3:
    """
    Immutable 3x3 matrix acting on homogeneous 2D coordinates:
        | x' |   | m00 m01 m02 |   | x |
        | y' | = | m10 m11 m12 | * | y |
        | w' |   | m20 m21 m22 |   | 1 |
    The values are kept in a read-only numpy array.
    """

    def __init__(self, values: Optional[ArrayLike] = None):
        if values is None:
            array = np.identity(3, dtype=np.float64)
        else:
            array = np.array(values, dtype=np.float64).reshape(3, 3)
        array.setflags(write=False)
        self._values: NDArray[np.float64] = array
        self._type: MatrixType = self._classify(array)

    @staticmethod
    def _classify(values: NDArray[np.float64]) -> MatrixType:
        if values[2, 0] != 0 or values[2, 1] != 0 or values[2, 2] != 1:
            return MatrixType.OTHER
        if values[0, 1] != 0 or values[1, 0] != 0:
            return MatrixType.AFFINE
        if values[0, 0] == 1 and values[1, 1] == 1:
            if values[0, 2] == 0 and values[1, 2] == 0:
                return MatrixType.IDENTITY
            return MatrixType.TRANSLATION_2D
        if values[0, 2] == 0 and values[1, 2] == 0:
            return MatrixType.SCALING
        return MatrixType.AFFINE

    ###########################################################################
    # Factories
    ###########################################################################
    @classmethod
    def identity(cls) -> Matrix3:
        """The identity matrix."""
        return cls()

    @classmethod
    def translation(cls, x: float, y: float) -> Matrix3:
        """Translation by (x, y)."""
        return cls([[1, 0, x], [0, 1, y], [0, 0, 1]])

    @classmethod
    def translation_from_vector(cls, vector: Vector2) -> Matrix3:
        """Translation by the given vector."""
        return cls.translation(vector.x, vector.y)

    @classmethod
    def scaling(cls, x: float, y: Optional[float] = None) -> Matrix3:
        """Scaling by x (and y, which defaults to x)."""
        if y is None:
            y = x
        return cls([[x, 0, 0], [0, y, 0], [0, 0, 1]])

    @classmethod
    def rotation2(cls, angle: float) -> Matrix3:
        """Counter-clockwise rotation by _angle_ radians around the origin."""
        cos_a = math.cos(angle)
        sin_a = math.sin(angle)
        return cls([[cos_a, -sin_a, 0], [sin_a, cos_a, 0], [0, 0, 1]])

    @classmethod
    def affine(cls, m00: float, m01: float, m02: float, m10: float, m11: float, m12: float) -> Matrix3:
        """Affine matrix from its first two rows."""
        return cls([[m00, m01, m02], [m10, m11, m12], [0, 0, 1]])

    ###########################################################################
    # Accessors
    ###########################################################################
    @property
    def values(self) -> NDArray[np.float64]:
        """NDArray: read-only 3x3 array of the matrix entries."""
        return self._values

    @property
    def matrix_type(self) -> MatrixType:
        """MatrixType: classification of this matrix."""
        return self._type

    def m(self, row: int, col: int) -> float:
        """Entry at _row_, _col_."""
        return float(self._values[row, col])

    @property
    def determinant(self) -> float:
        """float: The determinant; negative for reflections."""
        v = self._values
        return float(
            v[0, 0] * (v[1, 1] * v[2, 2] - v[1, 2] * v[2, 1])
            - v[0, 1] * (v[1, 0] * v[2, 2] - v[1, 2] * v[2, 0])
            + v[0, 2] * (v[1, 0] * v[2, 1] - v[1, 1] * v[2, 0])
        )

    @property
    def scale_vector(self) -> Vector2:
        """Vector2: Lengths of the transformed unit axes (x and y scale)."""
        v = self._values
        return Vector2(math.hypot(v[0, 0], v[1, 0]), math.hypot(v[0, 1], v[1, 1]))

    @property
    def rotation(self) -> float:
        """float: Angle of the transformed x axis."""
        return math.atan2(self._values[1, 0], self._values[0, 0])

    @property
    def translation_vector(self) -> Vector2:
        """Vector2: The translation part."""
        return Vector2(float(self._values[0, 2]), float(self._values[1, 2]))

    def is_identity(self) -> bool:
        """True if this is exactly the identity."""
        return self._type == MatrixType.IDENTITY

    def is_finite(self) -> bool:
        """True if all entries are finite."""
        return bool(np.all(np.isfinite(self._values)))

    ###########################################################################
    # Products
    ###########################################################################
    def times_matrix(self, other: Matrix3) -> Matrix3:
        """Matrix product self * other (other is applied first)."""
        if self._type == MatrixType.IDENTITY:
            return other
        if other._type == MatrixType.IDENTITY:
            return self
        return Matrix3(self._values @ other._values)

    def __matmul__(self, other: Matrix3) -> Matrix3:
        return self.times_matrix(other)

    def times_vector2(self, point: Vector2) -> Vector2:
        """Transform a point (translation included, projective divide for OTHER)."""
        v = self._values
        if self._type == MatrixType.IDENTITY:
            return point
        if self._type == MatrixType.TRANSLATION_2D:
            return Vector2(point.x + float(v[0, 2]), point.y + float(v[1, 2]))
        x = float(v[0, 0] * point.x + v[0, 1] * point.y + v[0, 2])
        y = float(v[1, 0] * point.x + v[1, 1] * point.y + v[1, 2])
        if self._type == MatrixType.OTHER:
            w = float(v[2, 0] * point.x + v[2, 1] * point.y + v[2, 2])
            return Vector2(x / w, y / w)
        return Vector2(x, y)

    def times_relative_vector2(self, vector: Vector2) -> Vector2:
        """Transform a direction/delta (no translation)."""
        v = self._values
        return Vector2(
            float(v[0, 0] * vector.x + v[0, 1] * vector.y),
            float(v[1, 0] * vector.x + v[1, 1] * vector.y),
        )

    def times_transpose_vector2(self, vector: Vector2) -> Vector2:
        """Transform by the transposed linear part (no translation)."""
        v = self._values
        return Vector2(
            float(v[0, 0] * vector.x + v[1, 0] * vector.y),
            float(v[0, 1] * vector.x + v[1, 1] * vector.y),
        )

    ###########################################################################
    # Derived matrices
    ###########################################################################
    def inverted(self) -> Matrix3:
        """
        The inverse matrix.

        Raises:
            SingularMatrixError: if the determinant is zero.
        """
        v = self._values
        if self._type == MatrixType.IDENTITY:
            return self
        if self._type == MatrixType.TRANSLATION_2D:
            return Matrix3.translation(-float(v[0, 2]), -float(v[1, 2]))
        det = self.determinant
        if det == 0:
            raise SingularMatrixError(f"Matrix could not be inverted, determinant is 0:\n{v}")
        if self._type == MatrixType.SCALING:
            return Matrix3.scaling(1.0 / float(v[0, 0]), 1.0 / float(v[1, 1]))
        return Matrix3(np.linalg.inv(v))

    def transposed(self) -> Matrix3:
        """The transposed matrix."""
        return Matrix3(self._values.T)

    ###########################################################################
    # Comparison / conversion
    ###########################################################################
    def equals(self, other: Matrix3) -> bool:
        """Exact equality of all entries."""
        return bool(np.array_equal(self._values, other._values))

    def equals_epsilon(self, other: Matrix3, epsilon: float) -> bool:
        """Equality where each entry may differ by at most _epsilon_."""
        return bool(np.all(np.abs(self._values - other._values) <= epsilon))

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Matrix3):
            return NotImplemented
        return self.equals(other)

    __hash__ = None  # type: ignore[assignment]

    def to_affine_list(self) -> List[float]:
        """Affine part as [a00, a01, a10, a11, b0, b1] (shapely order)."""
        v = self._values
        return [float(v[0, 0]), float(v[0, 1]), float(v[1, 0]), float(v[1, 1]), float(v[0, 2]), float(v[1, 2])]

    def __repr__(self) -> str:
        rows = ", ".join("[" + ", ".join(f"{value:g}" for value in row) + "]" for row in self._values)
        return f"Matrix3({rows})"


###############################################################################
# Transform3
###############################################################################
class Transform3:
    """
    A Matrix3 together with its lazily computed inverse, for applying a transform
    and its inverse to positions, deltas, normals and rays.
    """

    def __init__(self, matrix: Optional[Matrix3] = None):
        self._matrix: Matrix3 = matrix if matrix is not None else Matrix3.identity()
        self._inverse: Optional[Matrix3] = None

    @property
    def matrix(self) -> Matrix3:
        """Matrix3: The forward matrix."""
        return self._matrix

    def set_matrix(self, matrix: Matrix3) -> None:
        """Replace the forward matrix and drop the cached inverse."""
        self._matrix = matrix
        self._inverse = None

    @property
    def inverse(self) -> Matrix3:
        """Matrix3: The inverse matrix (computed on first access)."""
        if self._inverse is None:
            self._inverse = self._matrix.inverted()
        return self._inverse

    def is_identity(self) -> bool:
        """True if the forward matrix is the identity."""
        return self._matrix.is_identity()

    def transform_position2(self, point: Vector2) -> Vector2:
        """Forward transform of a point."""
        return self._matrix.times_vector2(point)

    def transform_delta2(self, vector: Vector2) -> Vector2:
        """Forward transform of a delta (no translation)."""
        return self._matrix.times_relative_vector2(vector)

    def transform_normal2(self, normal: Vector2) -> Vector2:
        """Forward transform of a normal (inverse transpose), normalized."""
        return self.inverse.times_transpose_vector2(normal).normalized()

    def transform_ray2(self, ray: Ray2) -> Ray2:
        """Forward transform of a ray."""
        return Ray2(self.transform_position2(ray.position), self.transform_delta2(ray.direction))

    def inverse_position2(self, point: Vector2) -> Vector2:
        """Inverse transform of a point."""
        return self.inverse.times_vector2(point)

    def inverse_delta2(self, vector: Vector2) -> Vector2:
        """Inverse transform of a delta (no translation)."""
        return self.inverse.times_relative_vector2(vector)

    def inverse_normal2(self, normal: Vector2) -> Vector2:
        """Inverse transform of a normal (transpose of the forward matrix), normalized."""
        return self._matrix.times_transpose_vector2(normal).normalized()

    def inverse_ray2(self, ray: Ray2) -> Ray2:
        """Inverse transform of a ray."""
        return Ray2(self.inverse_position2(ray.position), self.inverse_delta2(ray.direction))
