"""
Exceptions raised by densemat.

Shape, index and argument violations are raised immediately where they are
detected. Convergence failures of the iterative eigen methods are never
raised; they are reported through the iteration-count sentinel instead.
"""

from __future__ import annotations

from typing import Any, Dict, Optional


def format_size(size: tuple[int, int]) -> str:
    """Render a (rows, cols) pair the way error messages show it."""
    return f"({size[0]}; {size[1]})"


class MatrixError(Exception):
    """Base exception for densemat errors"""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)


class ShapeError(MatrixError, ValueError):
    """Raised when operand shapes are incompatible"""

    def __init__(self, message: str, *shapes: tuple[int, int]):
        super().__init__(message, details={"shapes": list(shapes)} if shapes else None)


class MatrixIndexError(MatrixError, IndexError):
    """Raised when an element or window lies outside the logical matrix"""

    def __init__(self, index: tuple[int, ...], size: tuple[int, int]):
        super().__init__(
            message=f"Indexes {index} out of matrix size {format_size(size)}",
            details={"index": index, "size": size},
        )


class InvalidArgumentError(MatrixError, ValueError):
    """Raised for malformed arguments (degenerate quadratic, bad literal)"""


class RaggedRowsError(ShapeError, InvalidArgumentError):
    """Raised when literal rows have different lengths"""

    def __init__(self, expected: int, got: int):
        MatrixError.__init__(
            self,
            message=f"All rows should have same size, got {got} instead of {expected}",
            details={"expected": expected, "got": got},
        )


class SingularSystemError(MatrixError, ArithmeticError):
    """Raised when a least-squares system is not invertible within eps"""

    def __init__(self, pivot: float, eps: float):
        super().__init__(
            message=f"Normal-equations matrix is singular (pivot {pivot!r} <= eps {eps!r})",
            details={"pivot": pivot, "eps": eps},
        )
