import numpy as np
import pytest

from tensorsym.linalg import (
    DenseMatrix,
    SingularMatrixError,
    SparseTensor,
    contract,
    generate_rank_combinations,
    kronecker_deltas,
)


def test_from_lol():
    tensor = SparseTensor.from_lol([[1, 0, 2], [0, 0, 3]])

    assert tensor.order == 2
    assert tensor.dimensions == (2, 3)
    assert tensor.size(1) == 3
    assert tensor.to_dok() == {(0, 0): 1.0, (0, 2): 2.0, (1, 2): 3.0}


def test_zeros_are_not_stored():
    tensor = SparseTensor.from_dok({(0,): 0.0, (1,): 4.0}, dimensions=(3,))

    assert list(tensor.items()) == [((1,), 4.0)]


def test_default_dok_dimensions():
    tensor = SparseTensor.from_dok({(0, 3): 1.0, (2, 1): 2.0})

    assert tensor.dimensions == (3, 4)


def test_coordinate_outside_dimensions():
    with pytest.raises(ValueError):
        SparseTensor.from_dok({(3,): 1.0}, dimensions=(3,))


def test_scalar_tensor():
    tensor = SparseTensor.from_scalar(2.5)

    assert tensor.order == 0
    assert tensor.total_size == 1
    assert float(tensor) == 2.5


def test_slice_leading_ranks():
    tensor = SparseTensor.from_lol([[1, 2], [3, 4]])

    assert tensor.slice((1,)) == SparseTensor.from_lol([3, 4])
    assert float(tensor.slice((0, 1))) == 2.0


@pytest.mark.parametrize(
    ("left", "right", "expected"),
    [
        (SparseTensor.from_lol([1, 2]), SparseTensor.from_lol([3, 4]), [4, 6]),
        (SparseTensor.from_lol([1, 2]), 3.0, [4, 5]),
        (3.0, SparseTensor.from_lol([1, 2]), [4, 5]),
        (SparseTensor.from_scalar(3.0), SparseTensor.from_lol([1, 2]), [4, 5]),
    ],
)
def test_sparse_add(left, right, expected):
    assert left + right == SparseTensor.from_lol(expected)


def test_sparse_mismatched_dimensions():
    with pytest.raises(ValueError):
        SparseTensor.from_lol([1, 2]) + SparseTensor.from_lol([1, 2, 3])


def test_dense_inverse():
    matrix = DenseMatrix.from_lol([[4.0, 7.0], [2.0, 6.0]])

    product = matrix @ matrix.inverse()

    assert np.allclose(product.to_numpy(), np.eye(2))


def test_dense_determinant():
    matrix = DenseMatrix.from_lol([[4.0, 7.0], [2.0, 6.0]])

    assert matrix.determinant() == pytest.approx(10.0)


def test_singular_matrix():
    matrix = DenseMatrix.from_lol([[1.0, 2.0], [2.0, 4.0]])

    with pytest.raises(SingularMatrixError):
        matrix.inverse()


def test_dense_elementwise():
    left = DenseMatrix.from_lol([[1.0, 2.0], [3.0, 4.0]])
    right = DenseMatrix.from_lol([[5.0, 6.0], [7.0, 8.0]])

    assert left + right == DenseMatrix.from_lol([[6.0, 8.0], [10.0, 12.0]])
    assert left * right == DenseMatrix.from_lol([[5.0, 12.0], [21.0, 32.0]])
    assert left - 1.0 == DenseMatrix.from_lol([[0.0, 1.0], [2.0, 3.0]])
    assert left.transpose() == DenseMatrix.from_lol([[1.0, 3.0], [2.0, 4.0]])


def test_dense_is_immutable():
    matrix = DenseMatrix.from_lol([[1.0, 2.0], [3.0, 4.0]])

    array = matrix.to_numpy()
    array[0, 0] = 10.0

    assert matrix.to_lol() == [[1.0, 2.0], [3.0, 4.0]]


def test_generate_rank_combinations():
    left, right = generate_rank_combinations([(1, 0), (2, 1)])

    assert left == {1: 0, 2: 1}
    assert right == {0: 0, 1: 1}


def test_contract_matrix_vector():
    matrix = SparseTensor.from_lol([[1, 2], [3, 4]])
    vector = SparseTensor.from_lol([5, 6])

    actual = contract([matrix, vector], [{1: 0}, {0: 0}])

    assert np.array_equal(actual, np.array([17.0, 39.0]))


def test_contract_free_ranks_stay_in_place():
    vector = SparseTensor.from_lol([1, 2])
    other = SparseTensor.from_lol([[3], [4]])

    # The size-one rank of other stays at position 1
    actual = contract([vector, other], [{}, {0: 0}])

    assert actual.shape == (2, 1)
    assert np.array_equal(actual, np.array([[7.0], [14.0]]))


def test_contract_kronecker_deltas_transpose():
    matrix = np.array([[1.0, 2.0], [3.0, 4.0]])

    actual = contract([matrix, kronecker_deltas([(0, 3), (1, 2)])], [{0: 0, 1: 1}, {2: 0, 3: 1}])

    assert np.array_equal(actual, matrix.T)


def test_contract_trace_with_kronecker_deltas():
    matrix = np.array([[1.0, 2.0], [3.0, 4.0]])

    actual = contract([matrix, kronecker_deltas([(0, 1)])], [{0: 0, 1: 1}, {0: 0, 1: 1}])

    assert float(actual) == 5.0


def test_contract_unresolvable_kronecker_deltas():
    with pytest.raises(ValueError):
        contract([kronecker_deltas([(0, 1)])], [{}])


def test_contract_inconsistent_dimensions():
    with pytest.raises(ValueError):
        contract([np.ones(2), np.ones(3)], [{0: 0}, {0: 0}])
