import math

import numpy as np
import pytest

from tensorsym import (
    DenseMatrix,
    MatrixValue,
    ScalarValue,
    ShapeMismatchError,
    Size,
    SparseTensor,
    TensorValue,
    VariantMismatchError,
)
from tensorsym.constant_value import to_constant_value


def test_scalar_arithmetic():
    assert ScalarValue(2.0) + ScalarValue(3.0) == ScalarValue(5.0)
    assert ScalarValue(2.0) - ScalarValue(3.0) == ScalarValue(-1.0)
    assert ScalarValue(2.0) * ScalarValue(3.0) == ScalarValue(6.0)
    assert ScalarValue(3.0) / ScalarValue(2.0) == ScalarValue(1.5)
    assert -ScalarValue(2.0) == ScalarValue(-2.0)


def test_scalar_division_by_zero_is_infinite():
    assert math.isinf((ScalarValue(1.0) / ScalarValue(0.0)).as_scalar())


def test_scalar_broadcasts_into_tensor():
    tensor = TensorValue(SparseTensor.from_lol([1, 2]))

    assert ScalarValue(2.0) * tensor == TensorValue(SparseTensor.from_lol([2, 4]))
    assert tensor + ScalarValue(1.0) == TensorValue(SparseTensor.from_lol([2, 3]))


def test_scalar_broadcasts_into_matrix():
    matrix = MatrixValue(DenseMatrix.from_lol([[1.0, 2.0], [3.0, 4.0]]))

    expected = MatrixValue(DenseMatrix.from_lol([[0.0, 1.0], [2.0, 3.0]]))
    assert matrix - ScalarValue(1.0) == expected


def test_tensor_dimensions_must_match():
    left = TensorValue(SparseTensor.from_lol([1, 2]))
    right = TensorValue(SparseTensor.from_lol([1, 2, 3]))

    with pytest.raises(ShapeMismatchError):
        left + right


def test_tensor_with_matrix_is_a_variant_mismatch():
    tensor = TensorValue(SparseTensor.from_lol([[1, 2], [3, 4]]))
    matrix = MatrixValue(DenseMatrix.from_lol([[1.0, 2.0], [3.0, 4.0]]))

    with pytest.raises(VariantMismatchError):
        tensor / matrix


def test_matrix_division_multiplies_by_inverse():
    left = MatrixValue(DenseMatrix.from_lol([[4.0, 7.0], [2.0, 6.0]]))

    actual = left / left

    assert np.allclose(actual.matrix.to_numpy(), np.eye(2))


def test_sizes():
    value = TensorValue(SparseTensor.from_lol([[1, 2, 3]]))

    assert value.dimensions() == (1, 3)
    assert value.sizes() == (Size.one, Size.many)
    assert ScalarValue(1.0).sizes() == ()


def test_as_scalar_requires_one_element():
    with pytest.raises(VariantMismatchError):
        TensorValue(SparseTensor.from_lol([1, 2])).as_scalar()

    assert TensorValue(SparseTensor.from_lol([[5]])).as_scalar() == 5.0


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        (2, ScalarValue(2.0)),
        (SparseTensor.from_lol([1]), TensorValue(SparseTensor.from_lol([1]))),
        (DenseMatrix.from_lol([[1.0]]), MatrixValue(DenseMatrix.from_lol([[1.0]]))),
        (ScalarValue(3.0), ScalarValue(3.0)),
    ],
)
def test_to_constant_value(value, expected):
    assert to_constant_value(value) == expected
