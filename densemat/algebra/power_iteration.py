"""
Power-iteration eigenvalue extraction.

Three variants share one convergence idiom (``ConvergenceTracker``):

- ``power_method_dominant``: the single dominant real eigenvalue via the
  Rayleigh quotient of the normalised iterate.
- ``power_method_squared``: a dominant pair ``+lambda, -lambda`` of equal
  magnitude, found by iterating on ``A @ A``.
- ``power_method_complex``: a dominant complex-conjugate pair, found by
  fitting the monic quadratic annihilating ``u, A u, A^2 u`` at every step.

``power_method_eigenvalues`` picks among them: a cheap, loose probe of the
squared variant first, then a full-precision squared pass, and the complex
variant as the method of last resort.

Non-convergence is never raised. Every result carries an iteration count
that is ``-1`` when the run stalled, hit its cap or produced nothing usable;
the pairs are then a best-effort estimate.
"""

from __future__ import annotations

import logging
import math
from enum import Enum, IntEnum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..context import NumericContext, resolve_context
from ..errors import InvalidArgumentError, ShapeError, SingularSystemError, format_size
from ..matrix import Matrix
from .least_squares import least_squares
from .norm import norm
from .quadratic import solve_quadratic

logger = logging.getLogger(__name__)

NOT_CONVERGED = -1

DEFAULT_MAX_ITERS = 100
DEFAULT_PROBE_ITERS = 10
DEFAULT_STEP = 5
DEFAULT_PROBE_EPS = 0.1

# Reported pairs satisfy ||A v - lambda v|| <= RESIDUAL_FACTOR * eps * max(1, |lambda|).
RESIDUAL_FACTOR = 10


class Method(IntEnum):
    """Power-iteration variants, selectable by the dispatcher."""

    DOMINANT_REAL = 1
    SQUARED_PAIR = 2
    COMPLEX_PAIR = 3


class EigenPair(BaseModel):
    """An eigenvalue with its unit-length column eigenvector."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    value: complex
    vector: Matrix

    @field_validator("vector")
    @classmethod
    def _validate_vector(cls, value: Matrix) -> Matrix:
        if not value.is_col_vector:
            raise ValueError(f"Eigenvector must be a column, got size {format_size(value.shape)}")
        return value

    def residual(self, a: Matrix) -> float:
        """||A v - lambda v||, the accuracy of this pair for matrix A."""
        return norm(a @ self.vector - self.value * self.vector)


class EigenResult(BaseModel):
    """
    Outcome of a power-iteration run.

    Attributes:
        pairs: Zero, one or two eigenpairs, in the order found
        iterations: Update steps used, or -1 when the run did not converge
        method: Variant that produced the pairs
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    pairs: tuple[EigenPair, ...] = Field(default_factory=tuple)
    iterations: int
    method: Method

    @property
    def converged(self) -> bool:
        return self.iterations != NOT_CONVERGED

    def __len__(self) -> int:
        return len(self.pairs)

    def __getitem__(self, index: int) -> EigenPair:
        return self.pairs[index]

    @property
    def values(self) -> list[complex]:
        return [pair.value for pair in self.pairs]

    @property
    def vectors(self) -> list[Matrix]:
        return [pair.vector for pair in self.pairs]


class ConvergenceStatus(Enum):
    RUNNING = "running"
    CONVERGED = "converged"
    STALLED = "stalled"


class ConvergenceTracker:
    """
    Watches the differences between successive estimates.

    ``update`` reports CONVERGED once the latest difference is within eps,
    and STALLED when it shows no improvement over the difference recorded
    ``step`` updates earlier (it is not smaller, or within eps of it).
    """

    def __init__(self, eps: float, step: int = DEFAULT_STEP):
        if step < 1:
            raise InvalidArgumentError(f"Lookback step must be positive, got {step}")
        self.eps = eps
        self.step = step
        self.diffs: list[float] = []

    def update(self, diff: float) -> ConvergenceStatus:
        self.diffs.append(diff)
        if diff != diff:
            return ConvergenceStatus.STALLED
        if diff <= self.eps:
            return ConvergenceStatus.CONVERGED
        if len(self.diffs) > self.step:
            earlier = self.diffs[-1 - self.step]
            if diff >= earlier or abs(diff - earlier) <= self.eps:
                return ConvergenceStatus.STALLED
        return ConvergenceStatus.RUNNING


def _require_square(a: Matrix) -> None:
    if not a.is_square:
        raise ShapeError(f"Matrix of size {format_size(a.shape)} is not square.", a.shape)
    if a.rows == 0:
        raise ShapeError("Cannot extract eigenvalues of an empty matrix", a.shape)


def _require_iteration_cap(max_iters: int) -> None:
    if max_iters < 0:
        raise InvalidArgumentError(f"Iteration cap must be non-negative, got {max_iters}")


def _start_vector(n: int, start: Optional[Matrix], eps: float, fill_all: bool = False) -> Matrix:
    """Unit start vector: the caller's, all-ones, or the first basis vector."""
    if start is None:
        start = Matrix(n, 1, 1.0 if fill_all else 0.0)
        start[0] = 1.0
    elif start.shape != (n, 1):
        raise ShapeError(
            f"Start vector must be a ({n}; 1) column, got {format_size(start.shape)}",
            start.shape,
        )
    length = norm(start)
    if length <= eps:
        raise InvalidArgumentError("Start vector must be non-zero")
    return start / length


def _hermitian_rayleigh(u: Matrix, au: Matrix) -> complex:
    numerator = sum(x.conjugate() * y for x, y in zip(u.entries(), au.entries()))
    denominator = sum(abs(x) ** 2 for x in u.entries())
    return numerator / denominator


def _residual_tolerance(eps: float, value: complex) -> float:
    return RESIDUAL_FACTOR * eps * max(1.0, abs(value))


def _accept(a: Matrix, value: complex, candidate: Matrix, eps: float) -> Optional[EigenPair]:
    """
    Normalise a candidate eigenvector, or drop it.

    Candidates with norm <= eps are degenerate; candidates whose residual
    exceeds RESIDUAL_FACTOR * eps * max(1, |value|) do not belong to ``value``.
    """
    length = norm(candidate)
    if not length > eps:
        return None
    pair = EigenPair(value=complex(value), vector=(candidate / length).to_complex())
    tolerance = _residual_tolerance(eps, value)
    if not pair.residual(a) <= tolerance:
        logger.debug("dropping candidate %r: residual above %g", value, tolerance)
        return None
    return pair


def _rayleigh_iterate(
    a: Matrix,
    u: Matrix,
    max_iters: int,
    tracker: ConvergenceTracker,
    collapse_eps: float,
    residual_eps: float,
) -> tuple[ConvergenceStatus, int, float, Matrix]:
    """
    Run ``u <- A u / ||A u||`` tracking the Rayleigh quotient ``u . A u``.

    Settled Rayleigh quotients only count as converged once the iterate also
    satisfies ``||A u - estimate u|| <= residual_eps * max(1, |estimate|)``;
    until then the run continues within ``max_iters``.

    Returns (status, iterations, last estimate, last iterate).
    """
    estimate = u.scalar_product(a @ u)
    status = ConvergenceStatus.RUNNING
    iterations = 0
    while iterations < max_iters:
        y = a @ u
        y_norm = norm(y)
        if y_norm <= collapse_eps:
            logger.debug("iterate collapsed after %d iterations", iterations)
            status = ConvergenceStatus.STALLED
            break
        u = y / y_norm
        au = a @ u
        previous, estimate = estimate, u.scalar_product(au)
        iterations += 1
        status = tracker.update(abs(estimate - previous))
        if status is ConvergenceStatus.CONVERGED:
            residual = norm(au - estimate * u)
            if residual <= residual_eps * max(1.0, abs(estimate)):
                break
            status = ConvergenceStatus.RUNNING
        elif status is ConvergenceStatus.STALLED:
            break
    return status, iterations, estimate, u


def power_method_dominant(
    a: Matrix,
    max_iters: int = DEFAULT_MAX_ITERS,
    step: int = DEFAULT_STEP,
    context: Optional[NumericContext] = None,
    start: Optional[Matrix] = None,
) -> EigenResult:
    """
    Dominant real eigenvalue by plain power iteration.

    Starts from the first basis vector unless ``start`` is given. The run
    converges when successive Rayleigh quotients differ by at most eps and
    the residual ``||A u - lambda u||`` is within
    ``RESIDUAL_FACTOR * eps * max(1, |lambda|)``. It fails softly when the
    iterate collapses, stalls or hits ``max_iters`` first.

    Returns:
        EigenResult with one pair (the last estimate) and the iteration
        count, -1 on failure

    Raises:
        ShapeError: If ``a`` is not square (or is empty)
    """
    _require_square(a)
    _require_iteration_cap(max_iters)
    eps = resolve_context(context).eps

    u = _start_vector(a.rows, start, eps)
    tracker = ConvergenceTracker(eps, step)
    status, iterations, estimate, u = _rayleigh_iterate(
        a, u, max_iters, tracker, eps, residual_eps=RESIDUAL_FACTOR * eps
    )

    converged = status is ConvergenceStatus.CONVERGED
    logger.debug("dominant method: %s after %d iterations, lambda=%r", status.value, iterations, estimate)
    return EigenResult(
        pairs=(EigenPair(value=complex(estimate), vector=u.to_complex()),),
        iterations=iterations if converged else NOT_CONVERGED,
        method=Method.DOMINANT_REAL,
    )


def power_method_squared(
    a: Matrix,
    max_iters: int = DEFAULT_MAX_ITERS,
    step: int = DEFAULT_STEP,
    eps: Optional[float] = None,
    context: Optional[NumericContext] = None,
    start: Optional[Matrix] = None,
) -> EigenResult:
    """
    Dominant equal-magnitude pair ``+lambda, -lambda`` via ``A @ A``.

    Iterates on A^2 to estimate mu = lambda^2, then recovers

        v+ = (lambda A u + A^2 u) / (2 lambda^2)
        v- = (-lambda A u + A^2 u) / (2 lambda^2)

    Starts from the normalised all-ones vector unless ``start`` is given.

    Args:
        a: Square real matrix
        max_iters: Iteration cap
        step: Lookback window for stall detection
        eps: Convergence tolerance; defaults to the context eps. The
            dispatcher passes a loose value here for its cheap probe.
        context: Numeric context (defaults to the current one)
        start: Optional real start column

    Returns:
        EigenResult with up to two pairs. The count is -1 when the run did
        not converge, when A^2 has a negative dominant Rayleigh quotient
        (the dominant pair of A is then not real), or when no candidate
        survives.
    """
    _require_square(a)
    _require_iteration_cap(max_iters)
    context_eps = resolve_context(context).eps
    tolerance = context_eps if eps is None else eps

    a2 = a @ a
    u = _start_vector(a.rows, start, context_eps, fill_all=True)
    tracker = ConvergenceTracker(tolerance, step)
    # A tight residual on A^2 keeps the recovered v+ and v- within the bound on A.
    status, iterations, mu, u = _rayleigh_iterate(
        a2, u, max_iters, tracker, context_eps, residual_eps=tolerance
    )

    lam = math.sqrt(abs(mu))
    pairs = []
    if lam > context_eps:
        au = a @ u
        a2u = a2 @ u
        denominator = 2 * lam * lam
        for value, candidate in (
            (lam, (lam * au + a2u) / denominator),
            (-lam, (a2u - lam * au) / denominator),
        ):
            pair = _accept(a, value, candidate, tolerance)
            if pair is not None:
                pairs.append(pair)

    converged = status is ConvergenceStatus.CONVERGED and mu >= -tolerance and bool(pairs)
    logger.debug(
        "squared method (eps=%g): %s after %d iterations, mu=%r, %d pairs",
        tolerance, status.value, iterations, mu, len(pairs),
    )
    return EigenResult(
        pairs=tuple(pairs),
        iterations=iterations if converged else NOT_CONVERGED,
        method=Method.SQUARED_PAIR,
    )


def _quadratic_estimate(
    u: Matrix, au: Matrix, a2u: Matrix, context: NumericContext
) -> tuple[complex, complex]:
    """Roots of the monic quadratic best annihilating (u, A u, A^2 u)."""
    if u.rows < 2:
        # One equation cannot pin down two coefficients.
        raise SingularSystemError(0.0, context.eps)
    design = Matrix(u.rows, 2)
    design.col(0).assign(u.real)
    design.col(1).assign(au.real)
    target = (-1 * a2u).real
    c = least_squares(design, target, context=context)
    return solve_quadratic(1.0, c[1], c[0])


def _complex_candidates(
    complex_a: Matrix,
    complex_a2: Matrix,
    u: Matrix,
    roots: tuple[complex, complex],
    invariant_line: bool,
    eps: float,
) -> list[tuple[complex, Matrix]]:
    """Unnormalised (value, eigenvector) candidates for the fitted roots."""
    r1, r2 = roots
    if invariant_line:
        return [(r1, u)]
    au = complex_a @ u
    a2u = complex_a2 @ u
    candidates = [(r1, a2u - r2 * au)]
    if abs(r1) > eps:
        candidates.append((r2, au - a2u / r1))
    return candidates


def _settled(a: Matrix, candidates: list[tuple[complex, Matrix]], eps: float) -> bool:
    """True when every non-degenerate candidate meets the residual bound."""
    for value, candidate in candidates:
        length = norm(candidate)
        if length > eps and norm(a @ candidate - value * candidate) > _residual_tolerance(eps, value) * length:
            return False
    return True


def power_method_complex(
    a: Matrix,
    max_iters: int = DEFAULT_MAX_ITERS,
    step: int = DEFAULT_STEP,
    context: Optional[NumericContext] = None,
    start: Optional[Matrix] = None,
) -> EigenResult:
    """
    Dominant complex-conjugate pair by quadratic deflation.

    Each step normalises ``u <- A u``, fits ``c0 u + c1 A u ~ -A^2 u`` by
    least squares on the real parts, and takes the roots r1, r2 of
    ``x^2 + c1 x + c0``. Convergence is judged on both roots jointly, and
    is only declared once every candidate eigenvector also meets the
    residual bound. The eigenvectors are then

        v1 = A^2 u - r2 A u        (for r1)
        v2 = A u - A^2 u / r1      (for r2)

    When the least-squares system is singular the iterate spans a real
    invariant line; both roots collapse to its Rayleigh quotient and the
    iterate itself is reported as the single eigenvector.

    This is the method of last resort: its result is final even when empty
    or marked non-convergent.
    """
    _require_square(a)
    _require_iteration_cap(max_iters)
    context = resolve_context(context)
    eps = context.eps

    complex_a = a.to_complex()
    complex_a2 = (a @ a).to_complex()
    u = _start_vector(a.rows, start, eps).to_complex()

    tracker = ConvergenceTracker(eps, step)
    status = ConvergenceStatus.RUNNING
    roots: Optional[tuple[complex, complex]] = None
    invariant_line = False
    iterations = 0
    while iterations < max_iters:
        y = complex_a @ u
        y_norm = norm(y)
        if y_norm <= eps:
            logger.debug("complex iterate collapsed after %d iterations", iterations)
            status = ConvergenceStatus.STALLED
            break
        u = y / y_norm
        au = complex_a @ u
        previous = roots
        try:
            roots = _quadratic_estimate(u, au, complex_a2 @ u, context)
            invariant_line = False
        except SingularSystemError:
            rayleigh = _hermitian_rayleigh(u, au)
            roots = (rayleigh, rayleigh)
            invariant_line = True
        iterations += 1

        if previous is None:
            diff = math.inf
        else:
            diff = max(abs(roots[0] - previous[0]), abs(roots[1] - previous[1]))
        status = tracker.update(diff)
        if status is ConvergenceStatus.CONVERGED and not _settled(
            complex_a, _complex_candidates(complex_a, complex_a2, u, roots, invariant_line, eps), eps
        ):
            status = ConvergenceStatus.RUNNING
        if status is not ConvergenceStatus.RUNNING:
            break

    pairs = []
    if roots is not None:
        for value, candidate in _complex_candidates(complex_a, complex_a2, u, roots, invariant_line, eps):
            pair = _accept(complex_a, value, candidate, eps)
            if pair is not None:
                pairs.append(pair)

    converged = status is ConvergenceStatus.CONVERGED
    logger.debug(
        "complex method: %s after %d iterations, roots=%r, %d pairs",
        status.value, iterations, roots, len(pairs),
    )
    return EigenResult(
        pairs=tuple(pairs),
        iterations=iterations if converged else NOT_CONVERGED,
        method=Method.COMPLEX_PAIR,
    )


def power_method_eigenvalues(
    a: Matrix,
    max_iters: int = DEFAULT_MAX_ITERS,
    probe_iters: int = DEFAULT_PROBE_ITERS,
    step: int = DEFAULT_STEP,
    method: Optional[Method | int] = None,
    probe_eps: float = DEFAULT_PROBE_EPS,
    context: Optional[NumericContext] = None,
) -> EigenResult:
    """
    Extract the dominant eigenpair(s) of a square real matrix.

    Args:
        a: Square real matrix
        max_iters: Iteration cap of each full-precision run
        probe_iters: Iteration cap of the cheap loose-eps probe
        step: Lookback window for stall detection
        method: Force one variant (Method or its number 1-3)
        probe_eps: Tolerance of the probe run
        context: Numeric context (defaults to the current one)

    Returns:
        EigenResult. Without a forced method: the squared variant's result
        when both its probe and its full pass converge with at least one
        pair (iterations = probe + full), otherwise the complex variant's
        result, whatever it is.

    Raises:
        ShapeError: If ``a`` is not square (or is empty)
    """
    _require_square(a)
    _require_iteration_cap(max_iters)
    context = resolve_context(context)

    if method is not None:
        method = Method(method)
        logger.debug("running forced method %s", method.name)
        if method is Method.DOMINANT_REAL:
            return power_method_dominant(a, max_iters=max_iters, step=step, context=context)
        if method is Method.SQUARED_PAIR:
            return power_method_squared(a, max_iters=max_iters, step=step, context=context)
        return power_method_complex(a, max_iters=max_iters, step=step, context=context)

    probe = power_method_squared(a, max_iters=probe_iters, step=step, eps=probe_eps, context=context)
    if probe.converged:
        full = power_method_squared(a, max_iters=max_iters, step=step, context=context)
        if full.converged and full.pairs:
            return full.model_copy(update={"iterations": probe.iterations + full.iterations})
        logger.debug("full-precision squared pass failed, falling back to complex method")
    else:
        logger.debug("squared probe did not converge, falling back to complex method")

    return power_method_complex(a, max_iters=max_iters, step=step, context=context)
