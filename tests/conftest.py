"""
Shared pytest fixtures for densemat tests.

This module provides:
- Isolation of the process-wide numeric context between tests
- Reference matrices with known spectra
- Helpers for checking eigenpairs against numpy
"""

import numpy as np
import pytest

import densemat.context as context_module
from densemat import Matrix, get_eps
from densemat.algebra.power_iteration import RESIDUAL_FACTOR


@pytest.fixture(autouse=True)
def isolated_context():
    """Reset the process-wide context before and after every test."""
    context_module._current_context = None
    yield
    context_module._current_context = None


@pytest.fixture
def rotation():
    """Quarter-turn rotation: eigenvalues +i and -i."""
    return Matrix([[0, -1], [1, 0]])


@pytest.fixture
def symmetric():
    """Symmetric 2x2 with eigenvalues (5 +/- sqrt(5)) / 2."""
    return Matrix([[2, 1], [1, 3]])


@pytest.fixture
def assert_eigenpair():
    """Assert that (value, vector) satisfies A v = lambda v within tolerance.

    The default tolerance is RESIDUAL_FACTOR * eps * max(1, |lambda|).
    """
    def _assert_eigenpair(a: Matrix, value: complex, vector: Matrix, tol: float | None = None) -> None:
        if tol is None:
            tol = RESIDUAL_FACTOR * get_eps() * max(1.0, abs(value))
        a_np = a.to_numpy().astype(complex)
        v_np = vector.to_numpy().ravel()
        residual = np.linalg.norm(a_np @ v_np - value * v_np)
        assert residual <= tol, f"residual {residual} too large for eigenvalue {value}"
        assert np.linalg.norm(v_np) == pytest.approx(1.0)

    return _assert_eigenpair
