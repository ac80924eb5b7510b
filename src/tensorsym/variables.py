from __future__ import annotations

__all__ = ["children", "variable_shapes", "variable_names"]

from dataclasses import fields
from typing import Iterator

from .ast import Node, Symbol, TensorSymbol
from .size import Size


def children(node: Node) -> Iterator[Node]:
    """Direct child nodes, in field order."""
    for field in fields(node):
        value = getattr(node, field.name)
        if isinstance(value, Node):
            yield value
        elif isinstance(value, tuple):
            yield from (item for item in value if isinstance(item, Node))


def variable_shapes(node: Node) -> dict[str, tuple[Size, ...]]:
    """Map each free symbol name to its shape, in order of first appearance."""
    shapes = {}

    def recurse(current: Node):
        if isinstance(current, (Symbol, TensorSymbol)):
            shapes.setdefault(current.name, current.shape)
        for child in children(current):
            recurse(child)

    recurse(node)

    return shapes


def variable_names(node: Node) -> list[str]:
    return list(variable_shapes(node))
