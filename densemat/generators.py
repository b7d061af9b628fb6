"""
Random matrix factories.

Each thread keeps its own numpy Generator so concurrent callers get
reproducible, independent streams. Passing a seed reseeds the calling
thread's generator; omitting it continues the existing stream (or starts
one from fresh OS entropy).
"""

from __future__ import annotations

import threading
from typing import Optional

import numpy as np

from .errors import InvalidArgumentError
from .matrix import Matrix
from .scalar import ScalarKind

_local = threading.local()


def get_generator(seed: Optional[int] = None) -> np.random.Generator:
    """Return the calling thread's generator, reseeding it when seed is given."""
    generator = getattr(_local, "generator", None)
    if generator is None or seed is not None:
        generator = np.random.default_rng(seed)
        _local.generator = generator
    return generator


def random_matrix(
    rows: int, cols: int, low: float = 0.0, high: float = 1.0, seed: Optional[int] = None
) -> Matrix:
    """
    Matrix with entries drawn uniformly from [low, high).

    Raises:
        InvalidArgumentError: If low > high or a dimension is negative
    """
    if low > high:
        raise InvalidArgumentError(f"Empty range [{low}, {high})")
    if rows < 0 or cols < 0:
        raise InvalidArgumentError(f"Matrix dimensions must be non-negative, got ({rows}; {cols})")
    values = get_generator(seed).uniform(low, high, size=rows * cols)
    return Matrix._from_values(rows, cols, [float(v) for v in values], ScalarKind.REAL)


def random_int_matrix(rows: int, cols: int, low: int, high: int, seed: Optional[int] = None) -> Matrix:
    """Matrix with integer entries drawn uniformly from [low, high] (inclusive)."""
    if low > high:
        raise InvalidArgumentError(f"Empty range [{low}, {high}]")
    if rows < 0 or cols < 0:
        raise InvalidArgumentError(f"Matrix dimensions must be non-negative, got ({rows}; {cols})")
    values = get_generator(seed).integers(low, high, endpoint=True, size=rows * cols)
    return Matrix._from_values(rows, cols, [float(v) for v in values], ScalarKind.REAL)
