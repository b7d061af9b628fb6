"""
Numeric context for densemat.

The context holds the tolerance used by every matrix comparison and every
convergence check, together with the display precision used by the text
renderers. A process-wide current context provides the defaults; every
algorithm also accepts an explicit context so callers (and test suites)
can vary tolerance without touching global state.
"""

from __future__ import annotations

import math
from contextlib import contextmanager
from typing import Iterator, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

DEFAULT_EPS = 1e-10
DEFAULT_PRECISION = 6


class NumericContext(BaseModel):
    """
    Tolerance and display settings.

    Attributes:
        eps: Absolute tolerance for equality and convergence checks
        precision: Number of decimals used when rendering matrices
    """

    model_config = ConfigDict(validate_assignment=True)

    eps: float = Field(default=DEFAULT_EPS, gt=0.0)
    precision: int = Field(default=DEFAULT_PRECISION, ge=0)

    @field_validator("eps")
    @classmethod
    def _validate_eps(cls, value: float) -> float:
        if not math.isfinite(value):
            raise ValueError("eps must be finite")
        return value

    def copy_with(self, eps: Optional[float] = None, precision: Optional[int] = None) -> NumericContext:
        """Return a validated copy with some settings replaced."""
        return NumericContext(
            eps=self.eps if eps is None else eps,
            precision=self.precision if precision is None else precision,
        )


_current_context: Optional[NumericContext] = None


def get_context() -> NumericContext:
    """
    Get the current process-wide context.

    Returns:
        Current context (creates the default one if none exists)
    """
    global _current_context

    if _current_context is None:
        _current_context = NumericContext()
    return _current_context


def resolve_context(context: Optional[NumericContext] = None) -> NumericContext:
    """Return ``context`` or fall back to the process-wide one."""
    return context if context is not None else get_context()


def get_eps() -> float:
    return get_context().eps


def get_precision() -> int:
    return get_context().precision


def set_eps(eps: float, precision: Optional[int] = None) -> NumericContext:
    """
    Replace the process-wide tolerance (and optionally the display precision).

    Args:
        eps: New comparison/convergence tolerance
        precision: New display precision (unchanged when omitted)

    Returns:
        The new current context

    Raises:
        pydantic.ValidationError: If eps is not a positive finite number or
            precision is negative
    """
    global _current_context

    _current_context = get_context().copy_with(eps=eps, precision=precision)
    return _current_context


@contextmanager
def local_context(
    eps: Optional[float] = None, precision: Optional[int] = None
) -> Iterator[NumericContext]:
    """
    Temporarily replace the process-wide context.

    Example:
        >>> with local_context(eps=1e-6):
        ...     assert get_eps() == 1e-6
    """
    global _current_context

    previous = _current_context
    _current_context = get_context().copy_with(eps=eps, precision=precision)
    try:
        yield _current_context
    finally:
        _current_context = previous
