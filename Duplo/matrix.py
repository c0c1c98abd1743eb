# =============================================================================
# module: matrix.py
# Purpose: Dense 2-D numeric matrix used by the least-squares solver
# Key Types/Classes: Matrix
# Key Functions: multiply, transpose, inverse, det, map
# Dependencies: numpy, typing, .errors
# =============================================================================

from typing import Any, Callable, List, Sequence, Tuple, Union

import numpy as np

from .errors import DimensionMismatchError, InvalidArgumentError, SingularMatrixError

# |det(A)| relative to the product of row norms (Hadamard bound) at or below
# which a square matrix is treated as singular.
SINGULAR_TOLERANCE = 1e-12


class Matrix:
    """
    Immutable wrapper around a rectangular float array.

    Every operation returns a new Matrix, so calls chain naturally:

    >>> xt = x.transpose()
    >>> beta = xt.multiply(x).inverse().multiply(xt).multiply(y)

    Parameters
    ----------
    data : array-like or Matrix
        Two-dimensional numeric data. Rows must all have the same length.

    Raises
    ------
    InvalidArgumentError
        If the data is empty, ragged, not two-dimensional or not numeric.
    """

    def __init__(self, data: Union['Matrix', np.ndarray, Sequence[Sequence[float]]]):
        if isinstance(data, Matrix):
            self._data = data._data
            return

        if isinstance(data, (str, bytes)) or data is None:
            raise InvalidArgumentError("Argument type mismatch. 2-D numeric array expected.")

        try:
            arr = np.array(data, dtype=float)
        except (TypeError, ValueError) as exc:
            raise InvalidArgumentError(f"Matrix data must be a rectangular numeric array: {exc}") from exc

        if arr.ndim != 2:
            raise InvalidArgumentError(f"Matrix data must be two-dimensional, got {arr.ndim} dimension(s).")
        if arr.shape[0] == 0 or arr.shape[1] == 0:
            raise InvalidArgumentError("Matrix data must not be empty.")

        arr.setflags(write=False)
        self._data = arr

    @classmethod
    def create(cls, data: Any) -> 'Matrix':
        """Create a matrix from a nested list or array."""
        return cls(data)

    @classmethod
    def column(cls, values: Sequence[float]) -> 'Matrix':
        """Create an N×1 column matrix from a flat sequence."""
        try:
            arr = np.asarray(values, dtype=float)
        except (TypeError, ValueError) as exc:
            raise InvalidArgumentError(f"Column values must be numeric: {exc}") from exc
        if arr.ndim != 1:
            raise InvalidArgumentError("Column values must be one-dimensional.")
        return cls(arr.reshape(-1, 1))

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------

    def size(self) -> Tuple[int, int]:
        """Return (rows, cols)."""
        rows, cols = self._data.shape
        return rows, cols

    @property
    def shape(self) -> Tuple[int, int]:
        return self.size()

    def get_row(self, row_index: int) -> np.ndarray:
        """Return a copy of row ``row_index``."""
        self._check_index(row_index, self._data.shape[0], 'row')
        return self._data[row_index].copy()

    def get_column(self, column_index: int) -> np.ndarray:
        """Return a copy of column ``column_index``."""
        self._check_index(column_index, self._data.shape[1], 'column')
        return self._data[:, column_index].copy()

    def to_array(self) -> np.ndarray:
        """Return a writable copy of the underlying array."""
        return self._data.copy()

    def to_list(self) -> List[List[float]]:
        return self._data.tolist()

    # ------------------------------------------------------------------
    # Algebra
    # ------------------------------------------------------------------

    def multiply(self, other: 'Matrix') -> 'Matrix':
        """
        Standard matrix product ``self @ other``.

        Raises
        ------
        DimensionMismatchError
            If the inner dimensions differ.
        """
        other = other if isinstance(other, Matrix) else Matrix(other)
        if self._data.shape[1] != other._data.shape[0]:
            raise DimensionMismatchError(
                f"Cannot multiply {self.size()} by {other.size()}: inner dimensions differ."
            )
        return Matrix(self._data @ other._data)

    def transpose(self) -> 'Matrix':
        return Matrix(self._data.T)

    def det(self) -> float:
        """
        Determinant of a square matrix.

        Raises
        ------
        DimensionMismatchError
            If the matrix is not square.
        """
        self._require_square('det')
        return float(np.linalg.det(self._data))

    def is_singular(self) -> bool:
        """
        True when the determinant is numerically zero.

        The determinant is compared against the product of the row norms,
        which bounds it from above, so the check does not depend on scale.
        """
        self._require_square('is_singular')
        det = self.det()
        if not np.isfinite(det):
            return True
        row_norms = np.linalg.norm(self._data, axis=1)
        bound = float(np.prod(row_norms))
        if bound == 0.0 or not np.isfinite(bound):
            return True
        return abs(det) <= SINGULAR_TOLERANCE * bound

    def inverse(self) -> 'Matrix':
        """
        Inverse of a square, non-singular matrix.

        Raises
        ------
        DimensionMismatchError
            If the matrix is not square.
        SingularMatrixError
            If the determinant is numerically zero.
        """
        self._require_square('inverse')
        if self.is_singular():
            raise SingularMatrixError(f"Matrix of size {self.size()} is singular and cannot be inverted.")
        try:
            inv = np.linalg.inv(self._data)
        except np.linalg.LinAlgError as exc:
            raise SingularMatrixError(str(exc)) from exc
        return Matrix(inv)

    def map(self, fn: Callable[[float, int, int], float]) -> 'Matrix':
        """
        Apply ``fn(value, row_index, col_index)`` to every cell.

        Returns
        -------
        Matrix
            New matrix with the mapped values.
        """
        rows, cols = self._data.shape
        out = np.empty((rows, cols), dtype=float)
        for i in range(rows):
            for j in range(cols):
                out[i, j] = fn(float(self._data[i, j]), i, j)
        return Matrix(out)

    # ------------------------------------------------------------------
    # Dunder helpers
    # ------------------------------------------------------------------

    def __eq__(self, other: Any) -> bool:
        if not isinstance(other, Matrix):
            return NotImplemented
        return np.array_equal(self._data, other._data)

    __hash__ = None

    def __array__(self, dtype=None, copy=None):
        arr = self._data.copy()
        return arr if dtype is None else arr.astype(dtype)

    def __repr__(self) -> str:
        rows, cols = self.size()
        return f"Matrix({rows}x{cols})"

    def _require_square(self, op: str) -> None:
        rows, cols = self._data.shape
        if rows != cols:
            raise DimensionMismatchError(f"{op} requires a square matrix, got {rows}x{cols}.")

    @staticmethod
    def _check_index(index: int, bound: int, label: str) -> None:
        if isinstance(index, bool) or not isinstance(index, (int, np.integer)):
            raise InvalidArgumentError(f"{label} index must be an integer, got {index!r}.")
        if not 0 <= index < bound:
            raise InvalidArgumentError(f"{label} index {index} out of range [0, {bound}).")
