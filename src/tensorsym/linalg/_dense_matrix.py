from __future__ import annotations

__all__ = ["DenseMatrix"]

import operator
import warnings
from numbers import Real
from typing import Any, Callable

import numpy as np
import scipy.linalg

from ._exceptions import SingularMatrixError


class DenseMatrix:
    """Immutable two-dimensional array of floats."""

    __slots__ = ("_array",)

    def __init__(self, array):
        array = np.array(array, dtype=float)
        if array.ndim != 2:
            raise ValueError(f"Expected a two-dimensional array, but found shape {array.shape}")
        array.setflags(write=False)
        self._array = array

    @staticmethod
    def from_lol(lol: list[list[float]]) -> DenseMatrix:
        return DenseMatrix(lol)

    @staticmethod
    def identity(size: int) -> DenseMatrix:
        return DenseMatrix(np.eye(size))

    @property
    def rows(self) -> int:
        return self._array.shape[0]

    @property
    def columns(self) -> int:
        return self._array.shape[1]

    @property
    def dimensions(self) -> tuple[int, int]:
        return self._array.shape

    def elements(self) -> list[float]:
        return [float(value) for value in self._array.flat]

    def to_numpy(self) -> np.ndarray:
        return self._array.copy()

    def to_lol(self) -> list[list[float]]:
        return self._array.tolist()

    def transpose(self) -> DenseMatrix:
        return DenseMatrix(self._array.T)

    def inverse(self) -> DenseMatrix:
        """Invert by LU factorisation."""
        if self.rows != self.columns:
            raise ValueError(
                f"Expected a square matrix to invert, but found dimensions {self.dimensions}"
            )
        with warnings.catch_warnings():
            # A zero pivot is reported by the check below
            warnings.simplefilter("ignore", scipy.linalg.LinAlgWarning)
            factorization = scipy.linalg.lu_factor(self._array)
        lu, _ = factorization
        if np.any(np.diag(lu) == 0.0):
            raise SingularMatrixError(self.rows, self.columns)
        return DenseMatrix(scipy.linalg.lu_solve(factorization, np.eye(self.rows)))

    def determinant(self) -> float:
        if self.rows != self.columns:
            raise ValueError(
                f"Cannot take the determinant of a non-square matrix with dimensions "
                f"{self.dimensions}"
            )
        return float(scipy.linalg.det(self._array))

    def map(self, function: Callable[[np.ndarray], np.ndarray]) -> DenseMatrix:
        return DenseMatrix(function(self._array))

    def __matmul__(self, other) -> DenseMatrix:
        if isinstance(other, DenseMatrix):
            if self.columns != other.rows:
                raise ValueError(
                    f"Cannot multiply matrix with dimensions {self.dimensions} by matrix with "
                    f"dimensions {other.dimensions}"
                )
            return DenseMatrix(self._array @ other._array)
        else:
            return NotImplemented

    def __add__(self, other) -> DenseMatrix:
        return evaluate_elementwise_operator(self, other, operator.add)

    def __radd__(self, other) -> DenseMatrix:
        return evaluate_elementwise_operator(other, self, operator.add)

    def __sub__(self, other) -> DenseMatrix:
        return evaluate_elementwise_operator(self, other, operator.sub)

    def __rsub__(self, other) -> DenseMatrix:
        return evaluate_elementwise_operator(other, self, operator.sub)

    def __mul__(self, other) -> DenseMatrix:
        return evaluate_elementwise_operator(self, other, operator.mul)

    def __rmul__(self, other) -> DenseMatrix:
        return evaluate_elementwise_operator(other, self, operator.mul)

    def __truediv__(self, other) -> DenseMatrix:
        if isinstance(other, DenseMatrix):
            return self @ other.inverse()
        elif isinstance(other, Real):
            return DenseMatrix(self._array / float(other))
        else:
            return NotImplemented

    def __rtruediv__(self, other) -> DenseMatrix:
        if isinstance(other, Real):
            return DenseMatrix(float(other) * self.inverse()._array)
        else:
            return NotImplemented

    def __neg__(self) -> DenseMatrix:
        return DenseMatrix(-self._array)

    def __eq__(self, other):
        if isinstance(other, DenseMatrix):
            return bool(np.array_equal(self._array, other._array))
        else:
            return NotImplemented

    def __hash__(self):
        return hash((self._array.shape, self._array.tobytes()))

    def __repr__(self):
        return f"DenseMatrix({self._array.tolist()!r})"


def evaluate_elementwise_operator(
    left: DenseMatrix | Real, right: DenseMatrix | Real, function: Callable[[Any, Any], Any]
) -> DenseMatrix:
    if isinstance(left, DenseMatrix) and isinstance(right, DenseMatrix):
        if left.dimensions != right.dimensions:
            raise ValueError(
                f"Cannot apply operator {function.__name__} between matrix with dimensions "
                f"{left.dimensions} and matrix with dimensions {right.dimensions}"
            )
        return DenseMatrix(function(left._array, right._array))
    elif isinstance(left, DenseMatrix) and isinstance(right, Real):
        return DenseMatrix(function(left._array, float(right)))
    elif isinstance(left, Real) and isinstance(right, DenseMatrix):
        return DenseMatrix(function(float(left), right._array))
    else:
        return NotImplemented
