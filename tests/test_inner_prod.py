import pytest

from tensorsym import (
    AmbiguousContractionError,
    IndexOutOfRangeError,
    ShapeMismatchError,
    Size,
    SparseTensor,
    constant,
    inner_prod,
    symbol,
)
from tensorsym.ast import (
    InnerProd,
    KroneckerDeltas,
    MulScalarLhs,
    TensorConstant,
    TensorNegate,
    TensorSymbol,
    Zero,
)
from tensorsym.operators import dot
from tensorsym.shape import node_shape

A = TensorSymbol("A", (Size.many, Size.many))
B = TensorSymbol("B", (Size.many, Size.many))
v = TensorSymbol("v", (Size.many,))
w = TensorSymbol("w", (Size.many,))
x = symbol("x")


def test_matrix_vector():
    actual = inner_prod([A, v], [[(1, 0)], [(0, 0)]])

    assert actual == InnerProd((A, v), (((1, 0),), ((0, 0),)))
    assert node_shape(actual) == (Size.many,)


def test_identifiers_are_renumbered():
    actual = inner_prod([A, v], [{1: "i"}, {0: "i"}])

    assert actual == inner_prod([A, v], [[(1, 0)], [(0, 0)]])


def test_dot_pairs_ranks():
    assert dot(A, v, [(1, 0)]) == inner_prod([A, v], [[(1, 0)], [(0, 0)]])


def test_free_ranks_keep_their_positions():
    outer = inner_prod([v, TensorSymbol("r", (Size.one, Size.many))], [[], []])

    assert node_shape(outer) == (Size.many, Size.many)


def test_zero_absorbs_product():
    assert inner_prod([Zero(), v], [[], [(0, 0)]]) == Zero()


def test_empty_product_is_one():
    assert inner_prod([], []) == TensorConstant(SparseTensor.from_scalar(1.0))


def test_nested_contractions_flatten_identically():
    left_first = inner_prod([inner_prod([A, B], [[(1, 0)], [(0, 0)]]), v], [[(1, 0)], [(0, 0)]])
    right_first = inner_prod([A, inner_prod([B, v], [[(1, 0)], [(0, 0)]])], [[(1, 0)], [(0, 0)]])

    expected = InnerProd((A, B, v), (((1, 0),), ((0, 0), (1, 1)), ((0, 1),)))
    assert left_first == expected
    assert right_first == expected


def test_ambiguous_nested_contraction():
    s = TensorSymbol("s", (Size.one, Size.many))
    nested = InnerProd((s,), (((1, 0),),))

    with pytest.raises(AmbiguousContractionError) as info:
        inner_prod([nested, TensorSymbol("u", (Size.one,))], [[(0, 0)], [(0, 0)]])

    assert info.value == AmbiguousContractionError(0, 0)


def test_two_free_many_ranks_at_same_position():
    with pytest.raises(ShapeMismatchError):
        inner_prod([v, w], [[], []])


@pytest.mark.parametrize(
    "combinations",
    [
        [[(1, 0)], [(0, 0)]],
        [[(0, 0)], [(-1, 0)]],
    ],
)
def test_rank_out_of_range(combinations):
    with pytest.raises(IndexOutOfRangeError):
        inner_prod([v, w], combinations)


def test_one_combination_per_term():
    with pytest.raises(ValueError):
        inner_prod([v, w], [[(0, 0)]])


def test_renaming_kronecker_delta_is_removed():
    assert inner_prod([KroneckerDeltas(((0, 1),)), v], [[(1, 0)], [(0, 0)]]) == v


def test_kronecker_deltas_fuse_into_one_leading_term():
    actual = inner_prod(
        [A, KroneckerDeltas(((0, 3), (1, 2)))], [[(0, 0), (1, 1)], [(2, 0), (3, 1)]]
    )

    assert isinstance(actual, InnerProd)
    assert isinstance(actual.terms[0], KroneckerDeltas)
    assert sum(isinstance(term, KroneckerDeltas) for term in actual.terms) == 1
    assert node_shape(actual) == (Size.many, Size.many)


def test_scalar_factors_are_hoisted():
    actual = inner_prod([MulScalarLhs(x, v), w], [[(0, 0)], [(0, 0)]])

    assert actual == MulScalarLhs(x, InnerProd((v, w), (((0, 0),), ((0, 0),))))


def test_single_element_constant_is_hoisted():
    actual = inner_prod([TensorConstant(SparseTensor.from_scalar(2.0)), v], [[], []])

    assert actual == MulScalarLhs(constant(2.0), v)


def test_negation_is_hoisted():
    actual = inner_prod([TensorNegate(v), w], [[(0, 0)], [(0, 0)]])

    assert actual == MulScalarLhs(constant(-1.0), InnerProd((v, w), (((0, 0),), ((0, 0),))))


def test_constants_are_folded():
    matrix = TensorConstant(SparseTensor.from_lol([[1, 2], [3, 4]]))
    vector = TensorConstant(SparseTensor.from_lol([5, 6]))

    actual = inner_prod([matrix, vector], [[(1, 0)], [(0, 0)]])

    assert actual == TensorConstant(SparseTensor.from_lol([17, 39]))


def test_constant_with_kronecker_delta_is_folded():
    matrix = TensorConstant(SparseTensor.from_lol([[1, 2], [3, 4]]))

    actual = inner_prod(
        [matrix, KroneckerDeltas(((0, 3), (1, 2)))], [[(0, 0), (1, 1)], [(2, 0), (3, 1)]]
    )

    assert actual == TensorConstant(SparseTensor.from_lol([[1, 3], [2, 4]]))
