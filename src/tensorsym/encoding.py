"""Lossless conversion of trees to and from JSON-compatible data.

Every node and value becomes a dictionary with a `"type"` key naming its class and one key per
field. Tuples become lists. Decoding rebuilds the exact node without normalizing it.
"""

from __future__ import annotations

__all__ = ["encode", "decode", "to_json", "from_json"]

import json
from dataclasses import fields, is_dataclass
from fractions import Fraction
from typing import Any

from . import ast
from .constant_value import MatrixValue, ScalarValue, TensorValue
from .exceptions import VariantMismatchError
from .linalg import DenseMatrix, SparseTensor
from .size import Size

node_classes = {name: getattr(ast, name) for name in ast.__all__}
value_classes = {cls.__name__: cls for cls in (ScalarValue, TensorValue, MatrixValue)}
registry = {
    name: cls for name, cls in {**node_classes, **value_classes}.items() if is_dataclass(cls)
}


def encode(item: Any) -> Any:
    """Convert a node, value, or field of one into plain data."""
    match item:
        case Size():
            return {"type": "Size", "value": item.value}
        case Fraction():
            return {
                "type": "Fraction",
                "numerator": item.numerator,
                "denominator": item.denominator,
            }
        case SparseTensor():
            return {
                "type": "SparseTensor",
                "dimensions": list(item.dimensions),
                "items": [[list(coordinate), value] for coordinate, value in item.items()],
            }
        case DenseMatrix():
            return {"type": "DenseMatrix", "rows": item.to_lol()}
        case bool() | int() | float() | str() | None:
            return item
        case tuple() | list():
            return [encode(element) for element in item]
        case _ if type(item).__name__ in registry:
            data = {"type": type(item).__name__}
            for field in fields(item):
                data[field.name] = encode(getattr(item, field.name))
            return data
        case _:
            raise VariantMismatchError("encode", item)


def decode(data: Any) -> Any:
    """Inverse of `encode`."""
    match data:
        case list():
            return tuple(decode(element) for element in data)
        case {"type": "Size", "value": value}:
            return Size(value)
        case {"type": "Fraction", "numerator": numerator, "denominator": denominator}:
            return Fraction(numerator, denominator)
        case {"type": "SparseTensor", "dimensions": dimensions, "items": items}:
            return SparseTensor.from_dok(
                {tuple(coordinate): value for coordinate, value in items},
                dimensions=tuple(dimensions),
            )
        case {"type": "DenseMatrix", "rows": rows}:
            return DenseMatrix.from_lol(rows)
        case {"type": str(tag)}:
            cls = registry.get(tag)
            if cls is None:
                raise VariantMismatchError("decode", tag)
            missing = [field.name for field in fields(cls) if field.name not in data]
            if len(missing) > 0:
                raise VariantMismatchError(f"decode {tag} without {', '.join(missing)}", data)
            return cls(
                **{field.name: decode(data[field.name]) for field in fields(cls) if field.init}
            )
        case dict():
            raise VariantMismatchError("decode", data)
        case _:
            return data


def to_json(item: Any, **kwargs) -> str:
    return json.dumps(encode(item), **kwargs)


def from_json(text: str) -> Any:
    return decode(json.loads(text))
