import json
from fractions import Fraction

import pytest

from tensorsym import (
    DenseMatrix,
    Size,
    SparseTensor,
    VariantMismatchError,
    constant,
    decode,
    encode,
    exp,
    from_json,
    symbol,
    to_json,
)
from tensorsym.ast import Zero

x = symbol("x")
v = symbol("v", (Size.many,))
A = symbol("A", (Size.many, Size.many))


def test_encode_symbol():
    assert encode(v) == {
        "type": "Symbol",
        "name": "v",
        "shape": [{"type": "Size", "value": "many"}],
    }


def test_encode_rational_exponent():
    assert encode(x ** Fraction(1, 2)) == {
        "type": "Power",
        "base": {"type": "Symbol", "name": "x", "shape": []},
        "exponent": {"type": "Fraction", "numerator": 1, "denominator": 2},
    }


def test_encode_sparse_tensor():
    tensor = SparseTensor.from_lol([[0, 2], [3, 0]])

    assert encode(tensor) == {
        "type": "SparseTensor",
        "dimensions": [2, 2],
        "items": [[[0, 1], 2.0], [[1, 0], 3.0]],
    }


def test_encode_field_free_node():
    assert encode(Zero()) == {"type": "Zero"}


@pytest.mark.parametrize(
    "node",
    [
        x,
        constant(2.5),
        constant(SparseTensor.from_lol([[1, 0], [0, 4]])),
        constant(DenseMatrix.from_lol([[1.0, 2.0], [3.0, 4.0]])),
        exp(-(x**2) / 2),
        A.dot(v, [(1, 0)]).dot(v, [(0, 0)]),
        A.inv().det(),
        v[0],
    ],
)
def test_round_trip(node):
    assert decode(encode(node)) == node
    assert from_json(to_json(node)) == node


def test_round_trip_derivative():
    [gradient] = exp(-0.5 * v.dot(A.dot(v, [(1, 0)]), [(0, 0)])).differential(["v"])

    assert from_json(to_json(gradient)) == gradient


def test_json_is_plain_data():
    text = to_json(x + 1, sort_keys=True)

    assert json.loads(text)["type"] == "Add"


def test_encode_unknown_object():
    with pytest.raises(VariantMismatchError):
        encode(object())


@pytest.mark.parametrize(
    "data",
    [
        {"type": "Unknown"},
        {"type": "Symbol", "name": "x"},
        {"name": "x", "shape": []},
    ],
)
def test_decode_malformed(data):
    with pytest.raises(VariantMismatchError):
        decode(data)
