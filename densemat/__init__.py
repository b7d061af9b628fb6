"""
densemat - dense real/complex matrices with power-iteration eigen solvers

Features:
- Matrices as windows onto shared buffers (cheap row/column/block views)
- Real to complex promotion in mixed arithmetic
- Epsilon-tolerant, NaN-aware equality
- Dominant eigenpairs: real, +/- pairs and complex-conjugate pairs
"""

from .algebra import (
    EigenPair,
    EigenResult,
    Method,
    least_squares,
    norm,
    power_method_complex,
    power_method_dominant,
    power_method_eigenvalues,
    power_method_squared,
    solve_quadratic,
)
from .context import NumericContext, get_context, get_eps, get_precision, local_context, set_eps
from .errors import (
    InvalidArgumentError,
    MatrixError,
    MatrixIndexError,
    RaggedRowsError,
    ShapeError,
    SingularSystemError,
)
from .generators import random_int_matrix, random_matrix
from .matrix import Matrix
from .render import format_matrix, to_wolfram
from .scalar import ScalarKind

__version__ = "0.1.0"

__all__ = [
    "Matrix",
    "ScalarKind",
    "NumericContext",
    "get_context",
    "get_eps",
    "get_precision",
    "set_eps",
    "local_context",
    "MatrixError",
    "ShapeError",
    "MatrixIndexError",
    "InvalidArgumentError",
    "RaggedRowsError",
    "SingularSystemError",
    "format_matrix",
    "to_wolfram",
    "random_matrix",
    "random_int_matrix",
    "norm",
    "least_squares",
    "solve_quadratic",
    "Method",
    "EigenPair",
    "EigenResult",
    "power_method_dominant",
    "power_method_squared",
    "power_method_complex",
    "power_method_eigenvalues",
]
