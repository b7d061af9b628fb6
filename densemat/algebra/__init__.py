"""
Numerical routines built on densemat.Matrix.

- Euclidean norm of vectors
- Least-squares solve by modified Gram-Schmidt
- Quadratic roots
- Power-iteration eigenvalue extraction
"""

from .least_squares import least_squares
from .norm import norm
from .power_iteration import (
    ConvergenceStatus,
    ConvergenceTracker,
    EigenPair,
    EigenResult,
    Method,
    power_method_complex,
    power_method_dominant,
    power_method_eigenvalues,
    power_method_squared,
)
from .quadratic import solve_quadratic

__all__ = [
    "norm",
    "least_squares",
    "solve_quadratic",
    "Method",
    "EigenPair",
    "EigenResult",
    "ConvergenceStatus",
    "ConvergenceTracker",
    "power_method_dominant",
    "power_method_squared",
    "power_method_complex",
    "power_method_eigenvalues",
]
