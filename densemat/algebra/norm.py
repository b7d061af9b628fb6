"""Euclidean (L2) norm of vector-shaped matrices."""

from __future__ import annotations

import math

from ..errors import ShapeError, format_size
from ..matrix import Matrix


def norm(vector: Matrix) -> float:
    """
    Calculate the Euclidean norm of a row or column vector.

    Complex entries contribute their squared modulus.

    Raises:
        ShapeError: If the matrix is not vector-shaped

    Examples:
        >>> norm(Matrix([[3], [4]]))
        5.0
    """
    if not isinstance(vector, Matrix):
        raise TypeError(f"norm() requires a Matrix, got {type(vector).__name__}")
    if not vector.is_vector:
        raise ShapeError(
            f"Euclidean norm needs a vector, got matrix of size {format_size(vector.shape)}",
            vector.shape,
        )
    return math.sqrt(sum(value.real * value.real + value.imag * value.imag for value in vector.entries()))
