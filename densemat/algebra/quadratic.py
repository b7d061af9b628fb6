"""Roots of a real scalar quadratic."""

from __future__ import annotations

import cmath

from ..errors import InvalidArgumentError


def solve_quadratic(a: float, b: float, c: float) -> tuple[complex, complex]:
    """
    Solve a*x**2 + b*x + c = 0.

    Returns:
        (r1, r2) with r1 = (-b + sqrt(D)) / 2a and r2 = (-b - sqrt(D)) / 2a.
        A non-negative discriminant gives two real-valued complex numbers,
        a negative one a conjugate pair.

    Raises:
        InvalidArgumentError: If a == 0

    Examples:
        >>> solve_quadratic(1, -3, 2)
        ((2+0j), (1+0j))
        >>> solve_quadratic(1, 0, 1)
        (1j, -1j)
    """
    if a == 0:
        raise InvalidArgumentError("Leading coefficient of a quadratic must be non-zero")
    discriminant = b * b - 4 * a * c
    root = cmath.sqrt(complex(discriminant))
    return (-b + root) / (2 * a), (-b - root) / (2 * a)
