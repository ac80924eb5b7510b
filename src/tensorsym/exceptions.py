__all__ = [
    "AlgebraError",
    "ShapeMismatchError",
    "AmbiguousContractionError",
    "IndexOutOfRangeError",
    "VariantMismatchError",
    "UnimplementedError",
]

from dataclasses import dataclass
from typing import Any

from .size import Size


class AlgebraError(Exception):
    """Base class of every error raised while building or transforming a tree."""

    __slots__ = ()


def format_shape(shape: tuple[Size, ...]) -> str:
    return "(" + ", ".join(size.name for size in shape) + ")"


@dataclass(frozen=True, slots=True)
class ShapeMismatchError(AlgebraError):
    operation: str
    left: tuple[Size, ...]
    right: tuple[Size, ...]

    def __str__(self):
        return (
            f"Expected compatible shapes for {self.operation}, but found "
            f"{format_shape(self.left)} and {format_shape(self.right)}"
        )


@dataclass(frozen=True, slots=True)
class AmbiguousContractionError(AlgebraError):
    rank: int
    candidates: int

    def __str__(self):
        return (
            f"Expected exactly one free rank with many elements at position {self.rank} of a "
            f"nested contraction, but found {self.candidates}"
        )


@dataclass(frozen=True, slots=True)
class IndexOutOfRangeError(AlgebraError):
    index: Any
    rank: int

    def __str__(self):
        return f"Expected an index inside a tensor of rank {self.rank}, but found {self.index}"


@dataclass(frozen=True, slots=True)
class VariantMismatchError(AlgebraError):
    operation: str
    operand: Any

    def __str__(self):
        return f"Cannot apply {self.operation} to {self.operand!r}"


@dataclass(frozen=True, slots=True)
class UnimplementedError(AlgebraError):
    feature: str

    def __str__(self):
        return f"Not implemented: {self.feature}"
