from __future__ import annotations

__all__ = ["ConstantValue", "ScalarValue", "TensorValue", "MatrixValue", "to_constant_value"]

import operator
from dataclasses import dataclass
from numbers import Real
from typing import Any, Callable

import numpy as np

from .exceptions import ShapeMismatchError, VariantMismatchError
from .linalg import DenseMatrix, SparseTensor
from .size import Size


class ConstantValue:
    """A numeric value: a scalar, a sparse tensor, or a dense matrix.

    Arithmetic broadcasts a scalar into a tensor or a matrix. Tensor with tensor and matrix with
    matrix need identical dimensions. Tensor with matrix is never allowed.
    """

    __slots__ = ()

    def dimensions(self) -> tuple[int, ...]:
        raise NotImplementedError()

    def sizes(self) -> tuple[Size, ...]:
        return tuple(Size.from_dimension(dimension) for dimension in self.dimensions())

    def elements(self) -> list[float]:
        raise NotImplementedError()

    def map(self, function: Callable[[Any], Any]) -> ConstantValue:
        """Apply a NumPy ufunc to every element."""
        raise NotImplementedError()

    def as_scalar(self) -> float:
        raise VariantMismatchError("as_scalar", self)

    def as_tensor(self) -> SparseTensor:
        raise VariantMismatchError("as_tensor", self)

    def as_matrix(self) -> DenseMatrix:
        raise VariantMismatchError("as_matrix", self)

    def __add__(self, other: ConstantValue) -> ConstantValue:
        return evaluate_binary_operator(self, other, operator.add)

    def __sub__(self, other: ConstantValue) -> ConstantValue:
        return evaluate_binary_operator(self, other, operator.sub)

    def __mul__(self, other: ConstantValue) -> ConstantValue:
        return evaluate_binary_operator(self, other, operator.mul)

    def __truediv__(self, other: ConstantValue) -> ConstantValue:
        return evaluate_binary_operator(self, other, operator.truediv)

    def __neg__(self) -> ConstantValue:
        return self.map(np.negative)


@dataclass(frozen=True, slots=True)
class ScalarValue(ConstantValue):
    value: float

    def dimensions(self) -> tuple[int, ...]:
        return ()

    def elements(self) -> list[float]:
        return [self.value]

    def map(self, function: Callable[[Any], Any]) -> ConstantValue:
        with np.errstate(divide="ignore", invalid="ignore"):
            return ScalarValue(float(function(self.value)))

    def as_scalar(self) -> float:
        return self.value

    def as_tensor(self) -> SparseTensor:
        return SparseTensor.from_scalar(self.value)


@dataclass(frozen=True, slots=True)
class TensorValue(ConstantValue):
    tensor: SparseTensor

    def dimensions(self) -> tuple[int, ...]:
        return self.tensor.dimensions

    def elements(self) -> list[float]:
        return [float(value) for value in self.tensor.to_numpy().flat]

    def map(self, function: Callable[[Any], Any]) -> ConstantValue:
        with np.errstate(divide="ignore", invalid="ignore"):
            return TensorValue(self.tensor.map(function))

    def as_scalar(self) -> float:
        if self.tensor.total_size != 1:
            raise VariantMismatchError("as_scalar", self)
        return float(self.tensor)

    def as_tensor(self) -> SparseTensor:
        return self.tensor

    def as_matrix(self) -> DenseMatrix:
        if self.tensor.order != 2:
            raise VariantMismatchError("as_matrix", self)
        return DenseMatrix(self.tensor.to_numpy())


@dataclass(frozen=True, slots=True)
class MatrixValue(ConstantValue):
    matrix: DenseMatrix

    def dimensions(self) -> tuple[int, ...]:
        return self.matrix.dimensions

    def elements(self) -> list[float]:
        return self.matrix.elements()

    def map(self, function: Callable[[Any], Any]) -> ConstantValue:
        with np.errstate(divide="ignore", invalid="ignore"):
            return MatrixValue(self.matrix.map(function))

    def as_scalar(self) -> float:
        if self.matrix.dimensions != (1, 1):
            raise VariantMismatchError("as_scalar", self)
        return self.matrix.elements()[0]

    def as_tensor(self) -> SparseTensor:
        return SparseTensor.from_numpy(self.matrix.to_numpy())

    def as_matrix(self) -> DenseMatrix:
        return self.matrix


def to_constant_value(value: ConstantValue | SparseTensor | DenseMatrix | Real) -> ConstantValue:
    match value:
        case ConstantValue():
            return value
        case SparseTensor():
            return TensorValue(value)
        case DenseMatrix():
            return MatrixValue(value)
        case Real():
            return ScalarValue(float(value))
        case _:
            raise TypeError(f"Cannot convert {value!r} to a constant value")


def evaluate_binary_operator(
    left: ConstantValue, right: ConstantValue, function: Callable[[Any, Any], Any]
) -> ConstantValue:
    name = function.__name__
    match (left, right):
        case (ScalarValue(left_value), ScalarValue(right_value)):
            with np.errstate(divide="ignore", invalid="ignore"):
                return ScalarValue(float(function(np.float64(left_value), right_value)))
        case (ScalarValue(left_value), TensorValue(right_value)):
            return TensorValue(function(left_value, right_value))
        case (TensorValue(left_value), ScalarValue(right_value)):
            return TensorValue(function(left_value, right_value))
        case (TensorValue(left_value), TensorValue(right_value)):
            if (
                left_value.order != 0
                and right_value.order != 0
                and left_value.dimensions != right_value.dimensions
            ):
                raise ShapeMismatchError(name, left.sizes(), right.sizes())
            return TensorValue(function(left_value, right_value))
        case (ScalarValue(left_value), MatrixValue(right_value)):
            return MatrixValue(function(left_value, right_value))
        case (MatrixValue(left_value), ScalarValue(right_value)):
            return MatrixValue(function(left_value, right_value))
        case (MatrixValue(left_value), MatrixValue(right_value)):
            if function is operator.truediv:
                if (
                    right_value.rows != right_value.columns
                    or left_value.columns != right_value.rows
                ):
                    raise ShapeMismatchError(name, left.sizes(), right.sizes())
            elif left_value.dimensions != right_value.dimensions:
                raise ShapeMismatchError(name, left.sizes(), right.sizes())
            return MatrixValue(function(left_value, right_value))
        case _:
            raise VariantMismatchError(name, (left, right))
