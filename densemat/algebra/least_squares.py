"""
Minimal least-squares solve.

Solves ``min ||L c - r||`` for a tall real design matrix L with numpy.
The system counts as singular when the smallest eigenvalue of the
normal-equations matrix ``L^T L`` (the squared smallest singular value of L)
is within eps of zero.
"""

from __future__ import annotations

import logging
from typing import Optional

import numpy as np

from ..context import NumericContext, resolve_context
from ..errors import InvalidArgumentError, ShapeError, SingularSystemError, format_size
from ..matrix import Matrix
from ..scalar import ScalarKind

logger = logging.getLogger(__name__)


def least_squares(design: Matrix, target: Matrix, context: Optional[NumericContext] = None) -> Matrix:
    """
    Return the coefficient vector c (k x 1) minimising ||design @ c - target||.

    Args:
        design: Real n x k matrix with n >= k
        target: Real n x 1 column vector
        context: Numeric context supplying eps (defaults to the current one)

    Raises:
        ShapeError: If target is not an n x 1 column or n < k
        InvalidArgumentError: If either operand is complex
        SingularSystemError: If the normal-equations matrix is not
            invertible within eps
    """
    eps = resolve_context(context).eps
    n, k = design.shape
    if target.shape != (n, 1):
        raise ShapeError(
            f"Target must be a ({n}; 1) column, got {format_size(target.shape)}",
            design.shape,
            target.shape,
        )
    if n < k:
        raise ShapeError(f"Underdetermined system of size {format_size(design.shape)}", design.shape)
    if design.is_complex or target.is_complex:
        raise InvalidArgumentError("least_squares works on real matrices only")
    if k == 0:
        return Matrix._from_values(0, 1, [], ScalarKind.REAL)

    lhs = design.to_numpy()
    rhs = target.to_numpy()

    try:
        singular_values = np.linalg.svd(lhs, compute_uv=False)
        pivot = float(singular_values[-1]) ** 2
        if not pivot > eps:
            logger.debug("singular least-squares system (smallest normal eigenvalue %g)", pivot)
            raise SingularSystemError(pivot, eps)
        solution = np.linalg.lstsq(lhs, rhs, rcond=None)[0]
    except np.linalg.LinAlgError as exc:
        logger.debug("numpy rejected the least-squares system: %s", exc)
        raise SingularSystemError(0.0, eps) from exc

    return Matrix._from_values(k, 1, [float(c) for c in solution.ravel()], ScalarKind.REAL)
