"""
Scalar kinds for matrix entries.

A matrix stores either real (``float``) or complex (``complex``) entries.
Kinds form a promotion hierarchy: combining a real operand with a complex
one yields a complex result.
"""

from __future__ import annotations

import numbers
from enum import IntEnum
from typing import Any, Union

Scalar = Union[float, complex]


class ScalarKind(IntEnum):
    """
    Scalar promotion precedence.

    Lower values promote to higher values.
    """

    REAL = 0
    COMPLEX = 1

    def coerce(self, value: Any) -> Scalar:
        """
        Convert a Python/numpy number into this kind.

        Raises:
            TypeError: If value is not a number, or is a complex number
                being stored as real
        """
        if not is_scalar(value):
            raise TypeError(f"Matrix entries must be numbers, got {type(value).__name__}")
        if self is ScalarKind.COMPLEX:
            return complex(value)
        if isinstance(value, numbers.Complex) and not isinstance(value, numbers.Real):
            if value.imag != 0:
                raise TypeError("Cannot store a complex value in a real matrix")
            return float(value.real)
        return float(value)

    @property
    def zero(self) -> Scalar:
        return 0j if self is ScalarKind.COMPLEX else 0.0


def is_scalar(value: Any) -> bool:
    """True for ints, floats, complex numbers and numpy scalars (bool excluded)."""
    return isinstance(value, numbers.Number) and not isinstance(value, bool)


def kind_of(value: Any) -> ScalarKind:
    """Return the smallest kind able to hold ``value``."""
    if isinstance(value, numbers.Real):
        return ScalarKind.REAL
    return ScalarKind.COMPLEX


def promote(*kinds: ScalarKind) -> ScalarKind:
    """
    Promote several kinds to a common one.

    Example:
        promote(ScalarKind.REAL, ScalarKind.COMPLEX) -> ScalarKind.COMPLEX
    """
    return max(kinds, default=ScalarKind.REAL)
