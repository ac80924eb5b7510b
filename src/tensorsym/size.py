from __future__ import annotations

__all__ = ["Size", "broadcast_shapes", "is_scalar_like"]

from enum import Enum


class Size(Enum):
    """Whether an axis has exactly one element or possibly more."""

    one = "one"
    many = "many"

    @staticmethod
    def from_dimension(dimension: int) -> Size:
        return Size.one if dimension == 1 else Size.many

    def __repr__(self):
        return f"Size.{self.name}"


def broadcast_shapes(left: tuple[Size, ...], right: tuple[Size, ...]) -> tuple[Size, ...]:
    """Combine two shapes elementwise, letting `one` broadcast against anything.

    A rank-0 shape broadcasts against every shape. Otherwise the shorter shape is padded with
    trailing `one` axes.
    """
    if len(left) == 0:
        return right
    if len(right) == 0:
        return left

    length = max(len(left), len(right))
    left = left + (Size.one,) * (length - len(left))
    right = right + (Size.one,) * (length - len(right))

    return tuple(
        Size.many if Size.many in (left_size, right_size) else Size.one
        for left_size, right_size in zip(left, right)
    )


def is_scalar_like(shape: tuple[Size, ...]) -> bool:
    return all(size is Size.one for size in shape)
