from fractions import Fraction

import pytest

from tensorsym import (
    AlgebraError,
    DenseMatrix,
    IndexOutOfRangeError,
    ShapeMismatchError,
    SingularMatrixError,
    Size,
    SparseTensor,
    UnimplementedError,
    VariantMismatchError,
    constant,
    exp,
    log,
    power,
    render_source,
    symbol,
)
from tensorsym.ast import (
    Add,
    AsMatrix,
    Determinant,
    Divide,
    Matrix,
    Multiply,
    MulScalarLhs,
    Negate,
    Power,
    Subtract,
    Symbol,
    TensorConstant,
    TensorElement,
    TensorSymbol,
    Transcendental,
    Transpose,
)
from tensorsym.operators import add, det, determinant, inverse, multiply, negate, transpose
from tensorsym.shape import node_shape

x = symbol("x")
y = symbol("y")
v = symbol("v", (Size.many,))
w = symbol("w", (Size.many,))
M = symbol("M", (Size.many, Size.many))


@pytest.mark.parametrize(
    ("actual", "expected"),
    [
        (x + 0, x),
        (0 + x, x),
        (x - 0, x),
        (0 - x, Negate(x)),
        (x * 1, x),
        (1 * x, x),
        (x * 0, constant(0.0)),
        (0 * x, constant(0.0)),
        (x / 1, x),
        (0 / x, constant(0.0)),
        (-(-x), x),
        (x**1, x),
        (x**0, constant(1.0)),
    ],
)
def test_identities(actual, expected):
    assert actual == expected


@pytest.mark.parametrize(
    ("actual", "expected"),
    [
        (constant(2.0) + constant(3.0), 5.0),
        (constant(2.0) - constant(3.0), -1.0),
        (constant(2.0) * constant(3.0), 6.0),
        (constant(3.0) / constant(2.0), 1.5),
        (-constant(2.0), -2.0),
        (constant(2.0) ** 3, 8.0),
        (exp(constant(0.0)), 1.0),
        (log(constant(2.0), constant(8.0)), 3.0),
    ],
)
def test_constant_folding(actual, expected):
    assert actual.value.as_scalar() == pytest.approx(expected)


def test_scalar_nodes():
    assert x + y == Add(x, y)
    assert x - y == Subtract(x, y)
    assert x * y == Multiply(x, y)
    assert x / y == Divide(x, y)
    assert -x == Negate(x)


def test_subtraction_is_not_simplified():
    assert x - x == Subtract(x, x)


def test_rational_exponents():
    assert x ** Fraction(1, 2) == Power(x, Fraction(1, 2))
    assert x**-1 == Power(x, Fraction(-1))
    assert x**0.5 == Power(x, Fraction(1, 2))


def test_symbolic_exponent_is_transcendental():
    assert isinstance(power(x, y), Transcendental)


def test_scalar_times_vector_is_a_tensor():
    product = x * v

    assert node_shape(product) == (Size.many,)
    assert product.tensor == MulScalarLhs(x, TensorSymbol("v", (Size.many,)))


def test_vectors_at_same_position_do_not_multiply():
    with pytest.raises(ShapeMismatchError):
        v * w


def test_vectors_of_different_ranks_do_not_add():
    with pytest.raises(ShapeMismatchError):
        v + M


@pytest.mark.parametrize(
    "shape", [(Size.many, Size.one), (Size.one, Size.one), (Size.one,) * 3]
)
def test_addition_needs_equal_ranks(shape):
    c = symbol("c", shape)

    with pytest.raises(ShapeMismatchError):
        c + v
    with pytest.raises(ShapeMismatchError):
        v - c


def test_addition_broadcasts_ranks_with_one_element():
    c = symbol("c", (Size.many, Size.one))

    assert node_shape(c + M) == (Size.many, Size.many)


def test_vector_plus_vector():
    assert node_shape(v + w) == (Size.many,)


def test_transcendental_of_vector_fails():
    with pytest.raises(ShapeMismatchError):
        exp(v)


def test_transcendental_of_scalar_like_squeezes():
    s = symbol("s", (Size.one, Size.one))

    assert node_shape(exp(s)) == ()


def test_constant_tensor_rank_zero_is_scalar():
    assert constant(SparseTensor.from_scalar(2.0)) == constant(2.0)


def test_double_transpose_cancels():
    matrix = AsMatrix(TensorSymbol("M", (Size.many, Size.many)))

    assert transpose(transpose(matrix)) == matrix
    assert inverse(inverse(matrix)) == matrix
    assert transpose(matrix) == Transpose(matrix)


def test_determinant_rules():
    matrix = AsMatrix(TensorSymbol("M", (Size.many, Size.many)))

    assert determinant(transpose(matrix)) == Matrix(Determinant(matrix))
    assert determinant(inverse(matrix)) == Divide(constant(1.0), Matrix(Determinant(matrix)))


def test_matrix_methods():
    assert M.t().t() == M
    assert node_shape(M.det()) == ()
    assert node_shape(M.inv()) == (Size.many, Size.many)


def test_determinant_of_vector_fails():
    with pytest.raises(VariantMismatchError):
        v.det()


def test_determinant_of_determinant_fails():
    with pytest.raises(VariantMismatchError):
        M.det().det()


def test_constant_matrix_folds():
    matrix = constant(SparseTensor.from_lol([[4.0, 7.0], [2.0, 6.0]]))

    assert matrix.det().value.as_scalar() == pytest.approx(10.0)
    assert matrix.inv().inv().value.elements() == pytest.approx([4.0, 7.0, 2.0, 6.0])


def test_symbolic_element():
    element = v[0]

    assert element == TensorElement(TensorSymbol("v", (Size.many,)), (0,))
    assert node_shape(element) == ()


def test_partial_element_keeps_trailing_ranks():
    assert node_shape(M[1]) == (Size.many,)


def test_constant_element():
    tensor = constant(SparseTensor.from_lol([[1, 2], [3, 4]]))

    assert tensor[1, 0] == constant(3.0)
    assert tensor[1] == constant(SparseTensor.from_lol([3, 4]))


@pytest.mark.parametrize("index", [(0, 0), (-1,)])
def test_element_out_of_range(index):
    with pytest.raises(IndexOutOfRangeError):
        v.element(*index)


def test_element_of_constant_past_its_dimension():
    tensor = constant(SparseTensor.from_lol([1, 2]))

    with pytest.raises(IndexOutOfRangeError):
        tensor[2]


def test_arithmetic_on_partial_symbolic_slice_is_unimplemented():
    with pytest.raises(UnimplementedError):
        M[0] + w


def test_normalizing_constructors_are_used_by_operators():
    assert add(x, 0) == x
    assert multiply(2.0, 3.0) == constant(6.0)
    assert negate(negate(y)) == y
    assert isinstance(x, Symbol)


@pytest.mark.parametrize("method", ["inv", "det"])
def test_non_square_constant_matrix(method):
    matrix = constant(DenseMatrix.from_lol([[1.0, 2.0, 3.0], [4.0, 5.0, 6.0]]))

    with pytest.raises(ShapeMismatchError):
        getattr(matrix, method)()


@pytest.mark.parametrize("method", ["inv", "det"])
def test_non_square_symbolic_matrix(method):
    row = symbol("r", (Size.one, Size.many))

    with pytest.raises(ShapeMismatchError):
        getattr(row, method)()


@pytest.mark.parametrize(
    "tensor",
    [
        TensorConstant(SparseTensor.from_lol([[1.0, 2.0, 3.0], [4.0, 5.0, 6.0]])),
        TensorSymbol("r", (Size.one, Size.many)),
    ],
)
def test_non_square_tensor_determinant(tensor):
    with pytest.raises(ShapeMismatchError):
        det(tensor)


def test_singular_matrix_is_an_algebra_error():
    matrix = constant(DenseMatrix.from_lol([[1.0, 2.0], [2.0, 4.0]]))

    with pytest.raises(SingularMatrixError) as info:
        matrix.inv()
    assert isinstance(info.value, AlgebraError)


@pytest.mark.parametrize(
    ("exponent", "expected"),
    [
        (0.1, Fraction(1, 10)),
        (1 / 3, Fraction(1, 3)),
        (2.5, Fraction(5, 2)),
        (constant(0.25), Fraction(1, 4)),
    ],
)
def test_float_exponent_has_short_fraction(exponent, expected):
    assert power(x, exponent) == Power(x, expected)


def test_float_exponent_renders_short_fraction():
    assert render_source(x**0.1) == "np.power(x, 1 / 10)"
