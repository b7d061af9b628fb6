"""Tests for the Matrix container."""

import math

import numpy as np
import pytest
import sympy as sp

from densemat import Matrix, ScalarKind, local_context
from densemat.errors import (
    InvalidArgumentError,
    MatrixIndexError,
    RaggedRowsError,
    ShapeError,
)


class TestMatrixConstruction:
    """Test matrix construction scenarios."""

    def test_create_zero_filled_matrix(self):
        """Test creating a matrix from dimensions."""
        matrix = Matrix(2, 3)
        assert matrix.shape == (2, 3)
        assert list(matrix) == [0.0] * 6

    def test_single_dimension_gives_square_matrix(self):
        """Test that a lone row count builds a square matrix."""
        assert Matrix(3).shape == (3, 3)

    def test_create_filled_matrix(self):
        """Test the fill value."""
        matrix = Matrix(2, 2, 1.5)
        assert list(matrix) == [1.5, 1.5, 1.5, 1.5]

    def test_create_from_literal(self):
        """Test creating a matrix from nested rows."""
        matrix = Matrix([[1, 2], [3, 4]])
        assert matrix.shape == (2, 2)
        assert matrix[1, 0] == 3.0
        assert isinstance(matrix[1, 0], float)
        assert matrix.kind is ScalarKind.REAL

    def test_complex_literal_promotes_kind(self):
        """Test that a complex entry makes the whole matrix complex."""
        matrix = Matrix([[1, 2j]])
        assert matrix.is_complex
        assert matrix[0, 0] == complex(1, 0)

    def test_ragged_rows_raise(self):
        """Test that ragged rows raise an error that is both shape and argument error."""
        with pytest.raises(RaggedRowsError) as exc_info:
            Matrix([[1, 2], [3]])
        assert isinstance(exc_info.value, ShapeError)
        assert isinstance(exc_info.value, InvalidArgumentError)
        assert isinstance(exc_info.value, ValueError)

    def test_create_from_numpy(self):
        """Test creating a matrix from a 2-D numpy array."""
        matrix = Matrix(np.eye(2))
        assert matrix == Matrix.identity(2)

    def test_one_dimensional_array_rejected(self):
        """Test that numpy vectors must be reshaped first."""
        with pytest.raises(ShapeError):
            Matrix(np.array([1.0, 2.0]))

    def test_copy_constructor_owns_buffer(self):
        """Test that constructing from a Matrix deep-copies it."""
        original = Matrix([[1, 2], [3, 4]])
        duplicate = Matrix(original)
        duplicate[0, 0] = 9
        assert original[0, 0] == 1.0
        assert not duplicate.shares_buffer(original)

    def test_negative_dimensions_rejected(self):
        """Test that negative sizes are argument errors."""
        with pytest.raises(InvalidArgumentError):
            Matrix(-1, 2)

    def test_empty_matrix(self):
        """Test creating an empty matrix."""
        assert Matrix().shape == (0, 0)
        assert Matrix([]).shape == (0, 0)

    def test_non_numeric_entries_rejected(self):
        """Test that strings are not matrix entries."""
        with pytest.raises(TypeError):
            Matrix([["a", 1]])

    def test_factories(self):
        """Test identity, zeros and vector factories."""
        assert Matrix.identity(2) == Matrix([[1, 0], [0, 1]])
        assert Matrix.zeros(1, 2) == Matrix([[0, 0]])
        assert Matrix.column_vector([1, 2]).shape == (2, 1)
        assert Matrix.row_vector([1, 2]).shape == (1, 2)


class TestMatrixElementAccess:
    """Test indexing and bounds checking."""

    def test_out_of_range_index_raises(self):
        """Test reading outside the window."""
        matrix = Matrix(2, 2)
        with pytest.raises(MatrixIndexError):
            matrix[2, 0]
        with pytest.raises(IndexError):
            matrix[0, 5]

    def test_negative_index_is_out_of_range(self):
        """Test that negative indexes do not wrap around."""
        with pytest.raises(MatrixIndexError):
            Matrix(2, 2)[-1, 0]

    def test_single_index_on_vectors(self):
        """Test vector element access by position."""
        assert Matrix.column_vector([1, 2, 3])[2] == 3.0
        assert Matrix.row_vector([1, 2, 3]).at(1) == 2.0

    def test_single_index_on_matrix_raises(self):
        """Test that a single index needs a vector."""
        with pytest.raises(ShapeError):
            Matrix(2, 2)[0]

    def test_setitem_coerces_to_kind(self):
        """Test that stored values follow the matrix kind."""
        matrix = Matrix(1, 2)
        matrix[0, 1] = 5
        assert matrix[0, 1] == 5.0
        assert isinstance(matrix[0, 1], float)

    def test_complex_value_rejected_by_real_matrix(self):
        """Test that a real matrix cannot silently drop an imaginary part."""
        matrix = Matrix(1, 1)
        with pytest.raises(TypeError):
            matrix[0, 0] = 1 + 2j

    def test_size_requires_vector(self):
        """Test vector length."""
        assert Matrix.column_vector([1, 2, 3]).size == 3
        with pytest.raises(ShapeError):
            Matrix(2, 2).size

    def test_entries_are_row_major(self):
        """Test iteration order."""
        assert list(Matrix([[1, 2], [3, 4]])) == [1.0, 2.0, 3.0, 4.0]


class TestMatrixViews:
    """Test submatrix views sharing the parent buffer."""

    @pytest.fixture
    def grid(self):
        return Matrix([[1, 2, 3], [4, 5, 6], [7, 8, 9]])

    def test_submatrix_to_the_end(self, grid):
        """Test that -1 sizes extend the view to the edges."""
        view = grid.submatrix(1, 1)
        assert view.shape == (2, 2)
        assert view == Matrix([[5, 6], [8, 9]])
        assert view.is_view
        assert view.shares_buffer(grid)

    def test_write_through_view(self, grid):
        """Test that writes via a view are visible in the parent."""
        view = grid.submatrix(1, 1, 1, 2)
        view[0, 1] = 60
        assert grid[1, 2] == 60.0

    def test_row_and_col_views(self, grid):
        """Test row/col helpers."""
        assert grid.row(2) == Matrix([[7, 8, 9]])
        assert grid.col(0) == Matrix.column_vector([1, 4, 7])
        grid.col(1).assign(Matrix.column_vector([0, 0, 0]))
        assert grid == Matrix([[1, 0, 3], [4, 0, 6], [7, 0, 9]])

    def test_slice_view(self, grid):
        """Test 2-D slicing."""
        view = grid[0:2, 1:]
        assert view == Matrix([[2, 3], [5, 6]])
        view[1, 1] = -6
        assert grid[1, 2] == -6.0

    def test_strided_slice_rejected(self, grid):
        """Test that views must be contiguous windows."""
        with pytest.raises(InvalidArgumentError):
            grid[::2, :]

    def test_nested_views_keep_offsets(self, grid):
        """Test a view of a view."""
        inner = grid.submatrix(1, 0).submatrix(1, 1, 1, 1)
        assert inner[0, 0] == 8.0
        inner[0, 0] = 80
        assert grid[2, 1] == 80.0

    def test_window_outside_matrix_raises(self, grid):
        """Test that a view may not leave the parent."""
        with pytest.raises(MatrixIndexError):
            grid.submatrix(2, 2, 2, 1)
        with pytest.raises(MatrixIndexError):
            grid.submatrix(1, 1).submatrix(0, 0, 3, 1)

    def test_view_bounds_are_its_own(self, grid):
        """Test that a view cannot read parent entries outside its window."""
        view = grid.submatrix(0, 0, 2, 2)
        with pytest.raises(MatrixIndexError):
            view[0, 2]

    def test_rebinding_does_not_write(self, grid):
        """Test that rebinding a name leaves the parent untouched."""
        view = grid.row(0)
        view = Matrix.row_vector([0, 0, 0])
        assert view[0] == 0.0
        assert grid.row(0) == Matrix([[1, 2, 3]])

    def test_copy_is_owned(self, grid):
        """Test that copies never alias."""
        duplicate = grid.submatrix(1, 1).copy()
        assert not duplicate.is_view
        assert not duplicate.shares_buffer(grid)

    def test_assign_shape_mismatch(self, grid):
        """Test assign requires equal shapes."""
        with pytest.raises(ShapeError):
            grid.row(0).assign(Matrix.row_vector([1, 2]))


class TestMatrixArithmetic:
    """Test matrix operators."""

    def test_addition_and_subtraction(self):
        """Test elementwise operators."""
        a = Matrix([[1, 2], [3, 4]])
        b = Matrix([[4, 3], [2, 1]])
        assert a + b == Matrix([[5, 5], [5, 5]])
        assert a - b == Matrix([[-3, -1], [1, 3]])

    def test_addition_shape_mismatch(self):
        """Test that shapes must match."""
        with pytest.raises(ShapeError):
            Matrix(2, 2) + Matrix(2, 3)

    def test_scalar_addition_unsupported(self):
        """Test that adding a scalar is a TypeError."""
        with pytest.raises(TypeError):
            Matrix(2, 2) + 1

    def test_product(self):
        """Test the matrix product."""
        a = Matrix([[1, 2], [3, 4]])
        b = Matrix([[5, 6], [7, 8]])
        assert a @ b == Matrix([[19, 22], [43, 50]])
        assert a * b == a @ b

    def test_product_matches_numpy(self):
        """Test a rectangular product against numpy."""
        a = Matrix.random(3, 4, seed=1)
        b = Matrix.random(4, 2, seed=2)
        expected = a.to_numpy() @ b.to_numpy()
        assert np.allclose((a @ b).to_numpy(), expected)

    def test_product_bad_sizes(self):
        """Test that inner dimensions must agree."""
        with pytest.raises(ShapeError):
            Matrix(2, 3) @ Matrix(2, 3)

    def test_scalar_multiplication(self):
        """Test scaling from either side."""
        a = Matrix([[1, 2]])
        assert a * 2 == Matrix([[2, 4]])
        assert 2 * a == Matrix([[2, 4]])
        assert np.float64(0.5) * a == Matrix([[0.5, 1]])

    def test_scalar_division(self):
        """Test division by scalars."""
        assert Matrix([[2, 4]]) / 2 == Matrix([[1, 2]])
        with pytest.raises(ZeroDivisionError):
            Matrix([[1]]) / 0
        with pytest.raises(TypeError):
            1 / Matrix([[1]])

    def test_negation(self):
        """Test unary minus."""
        assert -Matrix([[1, -2]]) == Matrix([[-1, 2]])

    def test_mixed_kinds_promote(self):
        """Test real and complex operands give complex results."""
        result = Matrix([[1, 0]]) + Matrix([[0, 1j]])
        assert result.is_complex
        assert result == Matrix([[1, 1j]])
        assert (Matrix([[1.0]]) * 1j).is_complex

    def test_scalar_product(self):
        """Test the dot product of vectors."""
        u = Matrix.column_vector([1, 2, 3])
        v = Matrix.column_vector([4, 5, 6])
        assert u.scalar_product(v) == 32.0
        assert Matrix.row_vector([1, 2, 3]).scalar_product(v) == 32.0

    def test_scalar_product_does_not_conjugate(self):
        """Test that complex entries are multiplied as they are."""
        u = Matrix.column_vector([1j])
        assert u.scalar_product(u) == -1

    def test_scalar_product_requires_vectors(self):
        """Test shape checks of the dot product."""
        with pytest.raises(ShapeError):
            Matrix(2, 2).scalar_product(Matrix(2, 2))
        with pytest.raises(ShapeError):
            Matrix.column_vector([1, 2]).scalar_product(Matrix.column_vector([1, 2, 3]))


class TestMatrixInPlace:
    """Test compound assignment through views."""

    def test_iadd_through_view(self):
        """Test that += on a row view updates the parent."""
        matrix = Matrix.zeros(2, 2)
        row = matrix.row(1)
        row += Matrix.row_vector([1, 2])
        assert matrix == Matrix([[0, 0], [1, 2]])

    def test_isub_and_scalar_updates(self):
        """Test -=, *= and /= in place."""
        matrix = Matrix([[2, 4], [6, 8]])
        col = matrix.col(0)
        col *= 3
        col /= 2
        col -= Matrix.column_vector([1, 1])
        assert matrix == Matrix([[2, 4], [8, 8]])
        assert col.shares_buffer(matrix)

    def test_in_place_complex_scale_of_real_rejected(self):
        """Test in-place operations never change the kind."""
        matrix = Matrix([[1.0]])
        with pytest.raises(TypeError):
            matrix *= 1j

    def test_rejected_iadd_leaves_matrix_unchanged(self):
        """Test adding a complex matrix into a real one writes nothing."""
        matrix = Matrix([[1, 2]])
        with pytest.raises(TypeError):
            matrix += Matrix([[1, 1j]])
        assert matrix.to_python() == [[1.0, 2.0]]
        assert not matrix.is_complex

    def test_rejected_isub_through_view_leaves_parent_unchanged(self):
        """Test a rejected -= on a view keeps the parent intact."""
        grid = Matrix([[1, 2], [3, 4]])
        row = grid.row(1)
        with pytest.raises(TypeError):
            row -= Matrix.row_vector([1, 1j])
        assert grid.to_python() == [[1.0, 2.0], [3.0, 4.0]]

    def test_in_place_division_by_zero(self):
        """Test /= 0."""
        matrix = Matrix([[1.0]])
        with pytest.raises(ZeroDivisionError):
            matrix /= 0

    def test_imul_by_matrix_rebinds(self):
        """Test that *= with a matrix operand rebinds to the product."""
        a = Matrix([[1, 2], [3, 4]])
        original = a
        a *= Matrix([[0, 1], [1, 0]])
        assert a is not original
        assert a == Matrix([[2, 1], [4, 3]])
        assert original == Matrix([[1, 2], [3, 4]])


class TestMatrixEquality:
    """Test epsilon-tolerant equality."""

    def test_equal_within_eps(self):
        """Test differences below eps are ignored."""
        assert Matrix([[1.0]]) == Matrix([[1.0 + 1e-12]])
        assert Matrix([[1.0]]) != Matrix([[1.0 + 1e-6]])

    def test_shape_mismatch_is_unequal(self):
        """Test that shapes take part in equality."""
        assert Matrix(1, 2) != Matrix(2, 1)

    def test_nan_is_unequal_to_itself(self):
        """Test that NaN entries make matrices unequal."""
        matrix = Matrix([[math.nan]])
        assert matrix != matrix
        assert not (matrix == matrix)
        assert not matrix.is_finite()

    def test_explicit_eps(self):
        """Test equals() with a caller tolerance."""
        assert Matrix([[1.0]]).equals(Matrix([[1.001]]), eps=0.01)

    def test_local_context_changes_tolerance(self):
        """Test that == follows the current context."""
        with local_context(eps=0.01):
            assert Matrix([[1.0]]) == Matrix([[1.001]])
        assert Matrix([[1.0]]) != Matrix([[1.001]])

    def test_matrices_are_unhashable(self):
        """Test that mutable matrices cannot be hashed."""
        with pytest.raises(TypeError):
            hash(Matrix(1, 1))

    def test_comparison_with_other_types(self):
        """Test equality with non-matrices is False."""
        assert (Matrix([[1]]) == 1) is False


class TestMatrixConversions:
    """Test transpose, kinds and interop."""

    def test_transpose(self):
        """Test transpose of a view is an owned matrix."""
        grid = Matrix([[1, 2, 3], [4, 5, 6]])
        transposed = grid.submatrix(0, 1).transpose()
        assert transposed == Matrix([[2, 5], [3, 6]])
        assert not transposed.is_view
        assert not transposed.shares_buffer(grid)

    def test_double_transpose_restores_without_aliasing(self):
        """Test transposing twice gives an equal, independent matrix."""
        matrix = Matrix([[1, 2, 3], [4, 5, 6]])
        restored = matrix.transpose().transpose()
        assert restored == matrix
        assert not restored.shares_buffer(matrix)
        restored[0, 0] = 99
        assert matrix[0, 0] == 1.0

    def test_double_transpose_of_view(self):
        """Test a view transposed twice leaves its parent alone when mutated."""
        grid = Matrix([[1, 2, 3], [4, 5, 6], [7, 8, 9]])
        view = grid.submatrix(1, 1)
        restored = view.transpose().transpose()
        assert restored == view
        assert not restored.shares_buffer(grid)
        restored[1, 1] = 0
        assert grid[2, 2] == 9.0

    def test_to_complex_real_imag(self):
        """Test lifting to complex and splitting parts."""
        matrix = Matrix([[1, 2]]).to_complex() + Matrix([[1j, -1j]])
        assert matrix.is_complex
        assert matrix.real == Matrix([[1, 2]])
        assert matrix.imag == Matrix([[1, -1]])
        assert not matrix.real.is_complex

    def test_to_numpy(self):
        """Test numpy conversion."""
        array = Matrix([[1, 2], [3, 4]]).submatrix(1, 0).to_numpy()
        assert array.shape == (1, 2)
        assert array.dtype == np.float64
        assert Matrix([[1j]]).to_numpy().dtype == np.complex128

    def test_to_sympy(self):
        """Test sympy conversion."""
        converted = Matrix([[1, 2], [3, 4]]).to_sympy()
        assert converted.shape == (2, 2)
        assert float(converted.det()) == pytest.approx(-2.0)
        assert isinstance(converted, sp.Matrix)

    def test_str_and_repr(self):
        """Test textual forms."""
        matrix = Matrix([[1, 2]])
        assert str(matrix) == "[1.000000, 2.000000]"
        assert repr(matrix) == "Matrix([[1.0, 2.0]])"
