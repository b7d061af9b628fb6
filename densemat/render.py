"""
Text renderings of matrices.

Two formats are provided:
- ``format_matrix``: an aligned, fixed-precision dump for humans
- ``to_wolfram``: a bracketed list (``{{1,2},{3,4}}``) for pasting into
  symbolic-math tools
"""

from __future__ import annotations

from typing import Optional

from .context import get_precision
from .matrix import Matrix
from .scalar import Scalar


def format_scalar(value: Scalar, precision: int) -> str:
    """Fixed-point text for a real or complex entry."""
    if isinstance(value, complex):
        return f"({value.real:.{precision}f},{value.imag:.{precision}f})"
    return f"{value:.{precision}f}"


def format_matrix(matrix: Matrix, precision: Optional[int] = None) -> str:
    """
    Render a matrix with right-aligned columns.

    Example:
        >>> print(format_matrix(Matrix([[1, 2], [3, 40]]), precision=1))
        [ 1.0,  2.0,
          3.0, 40.0]
    """
    precision = get_precision() if precision is None else precision
    cells = [[format_scalar(value, precision) for value in row] for row in matrix.to_python()]
    width = max((len(cell) for row in cells for cell in row), default=0)

    lines = []
    last_row = len(cells) - 1
    for i, row in enumerate(cells):
        items = [cell.rjust(width) for cell in row]
        line = ", ".join(items)
        if i < last_row and items:
            line += ","
        lines.append(("[" if i == 0 else " ") + line)
    if not lines:
        return "[]"
    return "\n".join(lines) + "]"


def to_wolfram(matrix: Matrix, precision: Optional[int] = None) -> str:
    """
    Render a matrix as a nested bracketed list.

    Example:
        >>> to_wolfram(Matrix([[1, 2], [3, 4]]), precision=0)
        '{{1,2},{3,4}}'
    """
    precision = get_precision() if precision is None else precision
    rows = (",".join(format_scalar(value, precision) for value in row) for row in matrix.to_python())
    return "{" + ",".join("{" + row + "}" for row in rows) + "}"
