"""
Dense matrix with shared-buffer views.

A Matrix is a rectangular window onto a flat, row-major backing buffer.
Slicing (``submatrix``, ``row``, ``col`` or 2-D slice indexing) returns a
view sharing that buffer, so writes through a view are visible in the
parent. Copies, arithmetic results and transposes always own a fresh
buffer.
"""

from __future__ import annotations

import math
import operator
from typing import Any, Callable, Iterable, Iterator, Optional

import numpy as np

from .context import NumericContext, resolve_context
from .errors import (
    InvalidArgumentError,
    MatrixIndexError,
    RaggedRowsError,
    ShapeError,
    format_size,
)
from .scalar import Scalar, ScalarKind, is_scalar, kind_of, promote


class Matrix:
    """
    Dense 2-D matrix of real or complex entries.

    Construction:
        Matrix(2, 3)                 # 2x3 filled with zeros
        Matrix(2, 3, 1.5)            # 2x3 filled with 1.5
        Matrix([[1, 2], [3, 4]])     # literal rows
        Matrix(np.eye(3))            # from a 2-D numpy array
        Matrix(other)                # deep copy of another Matrix

    Element access uses ``m[i, j]``; vectors (1xn or nx1) also accept a
    single index ``v[i]``.
    """

    __slots__ = ("_data", "_data_rows", "_data_cols", "_rows", "_cols", "_offset_i", "_offset_j", "_kind")

    # Matrices are mutable; keep numpy from swallowing them in mixed expressions.
    __hash__ = None
    __array_ufunc__ = None

    def __init__(
        self,
        source: int | Iterable[Iterable[Any]] | np.ndarray | Matrix | None = None,
        cols: Optional[int] = None,
        fill: Scalar = 0.0,
        *,
        kind: Optional[ScalarKind] = None,
    ) -> None:
        if source is None:
            rows, cols, values = 0, 0, []
            kind = kind or kind_of(fill)
        elif isinstance(source, int) and not isinstance(source, bool):
            rows = source
            cols = rows if cols is None else cols
            if rows < 0 or cols < 0:
                raise InvalidArgumentError(f"Matrix dimensions must be non-negative, got {format_size((rows, cols))}")
            if not is_scalar(fill):
                raise TypeError(f"Fill value must be a number, got {type(fill).__name__}")
            kind = kind or kind_of(fill)
            values = [fill] * (rows * cols)
        else:
            if cols is not None:
                raise InvalidArgumentError("Column count is only accepted together with a row count")
            rows, cols, values, inferred = self._coerce_rows(source)
            kind = kind or inferred

        self._kind = kind
        self._data = [kind.coerce(value) for value in values]
        self._data_rows = rows
        self._data_cols = cols
        self._rows = rows
        self._cols = cols
        self._offset_i = 0
        self._offset_j = 0

    @staticmethod
    def _coerce_rows(raw_rows: Any) -> tuple[int, int, list[Any], ScalarKind]:
        """Flatten literal rows into (rows, cols, row-major values, kind)."""
        if isinstance(raw_rows, Matrix):
            return raw_rows._rows, raw_rows._cols, list(raw_rows.entries()), raw_rows._kind

        if isinstance(raw_rows, np.ndarray):
            if raw_rows.ndim != 2:
                raise ShapeError(f"Expected a 2-D array, got {raw_rows.ndim} dimensions")
            kind = ScalarKind.COMPLEX if np.iscomplexobj(raw_rows) else ScalarKind.REAL
            return raw_rows.shape[0], raw_rows.shape[1], raw_rows.ravel().tolist(), kind

        if not isinstance(raw_rows, Iterable) or isinstance(raw_rows, str):
            raise TypeError("Matrix rows must be iterable sequences")

        values: list[Any] = []
        n_rows = 0
        n_cols: Optional[int] = None
        kind = ScalarKind.REAL
        for row in raw_rows:
            if isinstance(row, np.ndarray):
                row = row.tolist()
            if not isinstance(row, Iterable) or isinstance(row, str):
                raise TypeError("Matrix rows must be iterable sequences")
            row = list(row)
            if n_cols is None:
                n_cols = len(row)
            elif len(row) != n_cols:
                raise RaggedRowsError(expected=n_cols, got=len(row))
            for cell in row:
                if not is_scalar(cell):
                    raise TypeError(f"Matrix entries must be numbers, got {type(cell).__name__}")
                kind = promote(kind, kind_of(cell))
            values.extend(row)
            n_rows += 1

        return n_rows, n_cols or 0, values, kind

    @classmethod
    def _from_values(cls, rows: int, cols: int, values: list[Scalar], kind: ScalarKind) -> Matrix:
        """Wrap an already coerced row-major list as a fresh owned matrix."""
        matrix = cls.__new__(cls)
        matrix._kind = kind
        matrix._data = values
        matrix._data_rows = rows
        matrix._data_cols = cols
        matrix._rows = rows
        matrix._cols = cols
        matrix._offset_i = 0
        matrix._offset_j = 0
        return matrix

    # Factories

    @classmethod
    def zeros(cls, rows: int, cols: int) -> Matrix:
        return cls(rows, cols)

    @classmethod
    def identity(cls, n: int) -> Matrix:
        """Return the n x n identity matrix."""
        matrix = cls(n, n)
        for i in range(n):
            matrix[i, i] = 1.0
        return matrix

    @classmethod
    def column_vector(cls, values: Iterable[Scalar]) -> Matrix:
        return cls([[value] for value in values])

    @classmethod
    def row_vector(cls, values: Iterable[Scalar]) -> Matrix:
        return cls([list(values)])

    @classmethod
    def random(
        cls, rows: int, cols: int, low: float = 0.0, high: float = 1.0, seed: Optional[int] = None
    ) -> Matrix:
        """Uniformly distributed real entries (see densemat.generators)."""
        from .generators import random_matrix

        return random_matrix(rows, cols, low, high, seed=seed)

    @classmethod
    def random_ints(cls, rows: int, cols: int, low: int, high: int, seed: Optional[int] = None) -> Matrix:
        """Uniformly distributed integer entries in [low, high]."""
        from .generators import random_int_matrix

        return random_int_matrix(rows, cols, low, high, seed=seed)

    # Dimensions

    @property
    def rows(self) -> int:
        return self._rows

    @property
    def cols(self) -> int:
        return self._cols

    @property
    def shape(self) -> tuple[int, int]:
        """Get matrix dimensions (rows, cols)."""
        return (self._rows, self._cols)

    @property
    def kind(self) -> ScalarKind:
        return self._kind

    @property
    def is_complex(self) -> bool:
        return self._kind is ScalarKind.COMPLEX

    @property
    def is_square(self) -> bool:
        return self._rows == self._cols

    @property
    def is_row_vector(self) -> bool:
        return self._rows == 1

    @property
    def is_col_vector(self) -> bool:
        return self._cols == 1

    @property
    def is_vector(self) -> bool:
        return self.is_row_vector or self.is_col_vector

    @property
    def is_view(self) -> bool:
        """True when this matrix is a window onto a larger buffer."""
        return not (
            self._rows == self._data_rows
            and self._cols == self._data_cols
            and self._offset_i == 0
            and self._offset_j == 0
        )

    @property
    def size(self) -> int:
        """Length of a vector-shaped matrix."""
        self._require_vector()
        return max(self._rows, self._cols)

    def shares_buffer(self, other: Matrix) -> bool:
        """True when both matrices are windows onto the same storage."""
        return self._data is other._data

    # Element access

    def _require_vector(self) -> None:
        if not self.is_vector:
            raise ShapeError(
                f"Trying to use a single index in matrix of size {format_size(self.shape)}",
                self.shape,
            )

    def _position(self, i: int, j: int) -> int:
        if not (0 <= i < self._rows and 0 <= j < self._cols):
            raise MatrixIndexError((i, j), self.shape)
        return (i + self._offset_i) * self._data_cols + self._offset_j + j

    def _vector_coords(self, i: int) -> tuple[int, int]:
        self._require_vector()
        return (0, i) if self.is_row_vector else (i, 0)

    def __getitem__(self, index: Any) -> Any:
        """Get element by (row, col), vector element by position, or a view by slices."""
        if isinstance(index, tuple):
            if len(index) != 2:
                raise InvalidArgumentError(f"Expected two indexes, got {len(index)}")
            i, j = index
            if isinstance(i, slice) or isinstance(j, slice):
                return self._slice_view(i, j)
            return self._data[self._position(i, j)]
        if isinstance(index, slice):
            raise InvalidArgumentError("Slicing requires both a row and a column slice")
        return self._data[self._position(*self._vector_coords(index))]

    def __setitem__(self, index: Any, value: Scalar) -> None:
        """Set element by (row, col) or vector element by position."""
        if isinstance(index, tuple):
            if len(index) != 2:
                raise InvalidArgumentError(f"Expected two indexes, got {len(index)}")
            i, j = index
            if isinstance(i, slice) or isinstance(j, slice):
                raise InvalidArgumentError("Use assign() on a view to write a block")
            position = self._position(i, j)
        else:
            position = self._position(*self._vector_coords(index))
        self._data[position] = self._kind.coerce(value)

    def at(self, i: int, j: Optional[int] = None) -> Scalar:
        """Bounds-checked element read, ``at(i)`` for vectors."""
        if j is None:
            return self[i]
        return self[i, j]

    def entries(self) -> Iterator[Scalar]:
        """Iterate over the window's entries in row-major order."""
        for i in range(self._rows):
            start = (i + self._offset_i) * self._data_cols + self._offset_j
            yield from self._data[start:start + self._cols]

    def __iter__(self) -> Iterator[Scalar]:
        return self.entries()

    def _row_values(self) -> list[list[Scalar]]:
        step = self._data_cols
        base = self._offset_i * step + self._offset_j
        return [self._data[base + i * step:base + i * step + self._cols] for i in range(self._rows)]

    # Views

    def submatrix(self, i: int, j: int, n: int = -1, m: int = -1) -> Matrix:
        """
        Return an n x m view starting at (i, j).

        Args:
            i, j: Top-left corner inside this matrix
            n, m: Window size; -1 means "to the end"

        Raises:
            MatrixIndexError: If the window does not fit inside this matrix
        """
        if n == -1:
            n = self._rows - i
        if m == -1:
            m = self._cols - j
        if i < 0 or j < 0 or n < 0 or m < 0 or i + n > self._rows or j + m > self._cols:
            raise MatrixIndexError((i, j, n, m), self.shape)

        view = Matrix.__new__(Matrix)
        view._kind = self._kind
        view._data = self._data
        view._data_rows = self._data_rows
        view._data_cols = self._data_cols
        view._rows = n
        view._cols = m
        view._offset_i = self._offset_i + i
        view._offset_j = self._offset_j + j
        return view

    def row(self, i: int) -> Matrix:
        """Row i as a 1 x cols view."""
        return self.submatrix(i, 0, 1, self._cols)

    def col(self, j: int) -> Matrix:
        """Column j as a rows x 1 view."""
        return self.submatrix(0, j, self._rows, 1)

    def _slice_view(self, rows: Any, cols: Any) -> Matrix:
        row_start, row_stop = self._slice_bounds(rows, self._rows)
        col_start, col_stop = self._slice_bounds(cols, self._cols)
        return self.submatrix(row_start, col_start, row_stop - row_start, col_stop - col_start)

    @staticmethod
    def _slice_bounds(index: Any, length: int) -> tuple[int, int]:
        if isinstance(index, slice):
            start, stop, step = index.indices(length)
            if step != 1:
                raise InvalidArgumentError("Matrix views do not support strided slices")
            return start, max(start, stop)
        return index, index + 1

    # Copying

    def assign(self, other: Matrix) -> Matrix:
        """
        Copy other's entries into this window (in place, through views).

        Raises:
            ShapeError: If shapes differ
        """
        self._check_same_shape(other)
        for i, row in enumerate(other._row_values()):
            start = self._position(i, 0) if self._cols else 0
            self._data[start:start + self._cols] = [self._kind.coerce(value) for value in row]
        return self

    def copy(self) -> Matrix:
        """
        Create a deep copy of the matrix.

        Returns:
            New Matrix owning its own buffer
        """
        return Matrix._from_values(self._rows, self._cols, list(self.entries()), self._kind)

    def to_complex(self) -> Matrix:
        """Elementwise lift to complex entries."""
        return Matrix._from_values(
            self._rows, self._cols, [complex(value) for value in self.entries()], ScalarKind.COMPLEX
        )

    @property
    def real(self) -> Matrix:
        """Real parts as an owned real matrix."""
        return Matrix._from_values(
            self._rows, self._cols, [float(value.real) for value in self.entries()], ScalarKind.REAL
        )

    @property
    def imag(self) -> Matrix:
        """Imaginary parts as an owned real matrix."""
        return Matrix._from_values(
            self._rows, self._cols, [float(value.imag) for value in self.entries()], ScalarKind.REAL
        )

    def transpose(self) -> Matrix:
        """Return the transpose as a new owned matrix (never a view)."""
        rows = self._row_values()
        values = [rows[i][j] for j in range(self._cols) for i in range(self._rows)]
        return Matrix._from_values(self._cols, self._rows, values, self._kind)

    # Conversion helpers

    def to_python(self) -> list[list[Scalar]]:
        """Convert to Python nested list."""
        return self._row_values()

    def to_numpy(self) -> np.ndarray:
        """Convert to NumPy array."""
        dtype = complex if self.is_complex else float
        return np.array(self.to_python(), dtype=dtype).reshape(self.shape)

    def to_sympy(self):
        """Convert to a sympy Matrix for symbolic post-processing."""
        import sympy as sp

        return sp.Matrix(self._rows, self._cols, list(self.entries()))

    def __str__(self) -> str:
        from .render import format_matrix

        return format_matrix(self)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.to_python()!r})"

    # Arithmetic

    def _check_same_shape(self, other: Matrix) -> None:
        if self.shape != other.shape:
            raise ShapeError(
                f"Wrong matrix sizes: {format_size(self.shape)} {format_size(other.shape)}",
                self.shape,
                other.shape,
            )

    def _elementwise(self, other: Matrix, op: Callable[[Any, Any], Any]) -> Matrix:
        self._check_same_shape(other)
        kind = promote(self._kind, other._kind)
        values = [kind.coerce(op(a, b)) for a, b in zip(self.entries(), other.entries())]
        return Matrix._from_values(self._rows, self._cols, values, kind)

    def _scaled(self, scalar: Scalar, op: Callable[[Any, Any], Any]) -> Matrix:
        kind = promote(self._kind, kind_of(scalar))
        values = [kind.coerce(op(value, scalar)) for value in self.entries()]
        return Matrix._from_values(self._rows, self._cols, values, kind)

    def matmul(self, other: Matrix) -> Matrix:
        """
        Matrix product by triple-nested accumulation.

        Raises:
            ShapeError: If self.cols != other.rows
        """
        if self._cols != other._rows:
            raise ShapeError(
                f"Bad matrix sizes {format_size(self.shape)} {format_size(other.shape)}",
                self.shape,
                other.shape,
            )
        kind = promote(self._kind, other._kind)
        n, inner, m = self._rows, self._cols, other._cols
        lhs = self._row_values()
        rhs = other._row_values()
        values = [kind.zero] * (n * m)
        for i in range(n):
            base = i * m
            for k in range(inner):
                a_ik = lhs[i][k]
                rhs_row = rhs[k]
                for j in range(m):
                    values[base + j] += a_ik * rhs_row[j]
        return Matrix._from_values(n, m, [kind.coerce(value) for value in values], kind)

    def scalar_product(self, other: Matrix) -> Scalar:
        """
        Sum of products of corresponding entries (no conjugation).

        Raises:
            ShapeError: If either operand is not a vector or lengths differ
        """
        if not self.is_vector or not other.is_vector:
            raise ShapeError(
                f"Matrices of sizes {format_size(self.shape)} and {format_size(other.shape)} are not both vectors",
                self.shape,
                other.shape,
            )
        if self.size != other.size:
            raise ShapeError(
                f"Wrong vector lengths: {format_size(self.shape)} {format_size(other.shape)}",
                self.shape,
                other.shape,
            )
        kind = promote(self._kind, other._kind)
        total = kind.zero
        for a, b in zip(self.entries(), other.entries()):
            total += a * b
        return total

    def __add__(self, other: Any) -> Matrix:
        """Matrix addition."""
        if isinstance(other, Matrix):
            return self._elementwise(other, operator.add)
        return NotImplemented

    def __sub__(self, other: Any) -> Matrix:
        """Matrix subtraction."""
        if isinstance(other, Matrix):
            return self._elementwise(other, operator.sub)
        return NotImplemented

    def __mul__(self, other: Any) -> Matrix:
        """Matrix multiplication or scalar multiplication."""
        if isinstance(other, Matrix):
            return self.matmul(other)
        if is_scalar(other):
            return self._scaled(other, operator.mul)
        return NotImplemented

    def __rmul__(self, other: Any) -> Matrix:
        """Right multiplication (scalar only)."""
        if is_scalar(other):
            return self._scaled(other, lambda value, scalar: scalar * value)
        return NotImplemented

    def __matmul__(self, other: Any) -> Matrix:
        if isinstance(other, Matrix):
            return self.matmul(other)
        return NotImplemented

    def __truediv__(self, other: Any) -> Matrix:
        """Scalar division."""
        if is_scalar(other):
            if other == 0:
                raise ZeroDivisionError("Matrix division by zero")
            return self._scaled(other, operator.truediv)
        return NotImplemented

    def __rtruediv__(self, other: Any) -> Matrix:
        """Right division not supported."""
        raise TypeError("Cannot divide scalar by matrix")

    def __neg__(self) -> Matrix:
        return self._scaled(-1.0, operator.mul)

    def __pos__(self) -> Matrix:
        return self.copy()

    # In-place operators write through the current window.

    def _update(self, values: Iterable[Scalar]) -> None:
        # Coerce everything first so a rejected value leaves the window untouched.
        values = iter([self._kind.coerce(value) for value in values])
        for i in range(self._rows):
            start = (i + self._offset_i) * self._data_cols + self._offset_j
            for j in range(self._cols):
                self._data[start + j] = next(values)

    def _check_in_place_scalar(self, scalar: Any) -> None:
        if kind_of(scalar) > self._kind:
            raise TypeError("Cannot scale a real matrix in place by a complex scalar")

    def _check_in_place_operand(self, other: Matrix) -> None:
        self._check_same_shape(other)
        if promote(self._kind, other._kind) > self._kind:
            raise TypeError("Cannot combine a complex matrix in place into a real matrix")

    def __iadd__(self, other: Any) -> Matrix:
        if not isinstance(other, Matrix):
            return NotImplemented
        self._check_in_place_operand(other)
        self._update([a + b for a, b in zip(self.entries(), other.entries())])
        return self

    def __isub__(self, other: Any) -> Matrix:
        if not isinstance(other, Matrix):
            return NotImplemented
        self._check_in_place_operand(other)
        self._update([a - b for a, b in zip(self.entries(), other.entries())])
        return self

    def __imul__(self, other: Any) -> Matrix:
        if not is_scalar(other):
            # Matrix operands fall back to __mul__ and rebind the name.
            return NotImplemented
        self._check_in_place_scalar(other)
        self._update([value * other for value in self.entries()])
        return self

    def __itruediv__(self, other: Any) -> Matrix:
        if not is_scalar(other):
            return NotImplemented
        if other == 0:
            raise ZeroDivisionError("Matrix division by zero")
        self._check_in_place_scalar(other)
        self._update([value / other for value in self.entries()])
        return self

    # Comparison

    def equals(self, other: Matrix, eps: Optional[float] = None, context: Optional[NumericContext] = None) -> bool:
        """
        Epsilon-tolerant equality.

        Two matrices are equal when they have the same shape and every pair
        of entries differs by at most eps. A NaN on either side makes them
        unequal.
        """
        if not isinstance(other, Matrix) or self.shape != other.shape:
            return False
        tolerance = resolve_context(context).eps if eps is None else eps
        for a, b in zip(self.entries(), other.entries()):
            if a != a or b != b:
                return False
            if abs(a - b) > tolerance:
                return False
        return True

    def __eq__(self, other: Any) -> bool:
        if not isinstance(other, Matrix):
            return NotImplemented
        return self.equals(other)

    def __ne__(self, other: Any) -> bool:
        if not isinstance(other, Matrix):
            return NotImplemented
        return not self.equals(other)

    def is_finite(self) -> bool:
        """True when no entry is NaN or infinite."""
        return all(math.isfinite(abs(value)) for value in self.entries())
