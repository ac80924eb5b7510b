from __future__ import annotations

__all__ = ["SparseTensor"]

import operator
from numbers import Real
from typing import Any, Callable, Iterable, Iterator

import numpy as np


class SparseTensor:
    """Tensor stored as a dictionary of keys.

    Only nonzero elements are stored. Arithmetic is done densely with NumPy and the result is
    converted back to the sparse representation. An instance should be constructed via the
    `SparseTensor.from_*` static methods.
    """

    __slots__ = ("_dimensions", "_dok")

    def __init__(self, dimensions: tuple[int, ...], dok: dict[tuple[int, ...], float]):
        for coordinate in dok:
            if len(coordinate) != len(dimensions) or any(
                not 0 <= index < dimension for index, dimension in zip(coordinate, dimensions)
            ):
                raise ValueError(
                    f"Expected every coordinate to fit inside dimensions {dimensions}, "
                    f"but found {coordinate}"
                )

        self._dimensions = tuple(dimensions)
        self._dok = {coordinate: float(value) for coordinate, value in dok.items() if value != 0.0}

    @staticmethod
    def from_dok(
        dictionary: dict[tuple[int, ...], float], *, dimensions: tuple[int, ...] | None = None
    ) -> SparseTensor:
        if dimensions is None:
            dimensions = default_dok_dimensions(dictionary.keys())

        return SparseTensor(dimensions, dictionary)

    @staticmethod
    def from_lol(lol, *, dimensions: tuple[int, ...] | None = None) -> SparseTensor:
        if dimensions is None:
            dimensions = default_lol_dimensions(lol)

        return SparseTensor(dimensions, dict(lol_to_items(lol)))

    @staticmethod
    def from_numpy(array) -> SparseTensor:
        array = np.asarray(array, dtype=float)
        return SparseTensor(
            array.shape,
            {
                index: float(array[index])
                for index in np.ndindex(array.shape)
                if array[index] != 0.0
            },
        )

    @staticmethod
    def from_scalar(scalar: float) -> SparseTensor:
        return SparseTensor((), {(): scalar})

    @property
    def order(self) -> int:
        return len(self._dimensions)

    @property
    def dimensions(self) -> tuple[int, ...]:
        return self._dimensions

    def size(self, rank: int) -> int:
        return self._dimensions[rank]

    @property
    def total_size(self) -> int:
        total = 1
        for dimension in self._dimensions:
            total *= dimension
        return total

    def items(self) -> Iterator[tuple[tuple[int, ...], float]]:
        return iter(sorted(self._dok.items()))

    def to_dok(self) -> dict[tuple[int, ...], float]:
        return dict(self._dok)

    def to_numpy(self) -> np.ndarray:
        array = np.zeros(self._dimensions, dtype=float)
        for coordinate, value in self._dok.items():
            array[coordinate] = value
        return array

    def __getitem__(self, coordinate: tuple[int, ...]) -> float:
        return self._dok.get(coordinate, 0.0)

    def slice(self, index: tuple[int, ...]) -> SparseTensor:
        """Fix the leading ranks to `index` and return the remaining sub-tensor."""
        return SparseTensor.from_numpy(self.to_numpy()[index])

    def map(self, function: Callable[[np.ndarray], np.ndarray]) -> SparseTensor:
        return SparseTensor.from_numpy(function(self.to_numpy()))

    def __add__(self, other) -> SparseTensor:
        return evaluate_binary_operator(self, other, operator.add)

    def __radd__(self, other) -> SparseTensor:
        return evaluate_binary_operator(other, self, operator.add)

    def __sub__(self, other) -> SparseTensor:
        return evaluate_binary_operator(self, other, operator.sub)

    def __rsub__(self, other) -> SparseTensor:
        return evaluate_binary_operator(other, self, operator.sub)

    def __mul__(self, other) -> SparseTensor:
        return evaluate_binary_operator(self, other, operator.mul)

    def __rmul__(self, other) -> SparseTensor:
        return evaluate_binary_operator(other, self, operator.mul)

    def __truediv__(self, other) -> SparseTensor:
        return evaluate_binary_operator(self, other, operator.truediv)

    def __rtruediv__(self, other) -> SparseTensor:
        return evaluate_binary_operator(other, self, operator.truediv)

    def __neg__(self) -> SparseTensor:
        return SparseTensor(self._dimensions, {key: -value for key, value in self._dok.items()})

    def __float__(self):
        if self.total_size != 1:
            raise ValueError(f"Can only convert a tensor with one element to float, not {self}")
        return self[(0,) * self.order]

    def __eq__(self, other):
        if isinstance(other, SparseTensor):
            return self._dimensions == other._dimensions and self._dok == other._dok
        else:
            return NotImplemented

    def __hash__(self):
        return hash((self._dimensions, frozenset(self._dok.items())))

    def __repr__(self):
        return f"SparseTensor.from_dok({self._dok!r}, dimensions={self._dimensions!r})"


def evaluate_binary_operator(
    left: SparseTensor | Real, right: SparseTensor | Real, function: Callable[[Any, Any], Any]
) -> SparseTensor:
    if isinstance(left, SparseTensor) and isinstance(right, SparseTensor):
        if left.order == 0 or right.order == 0:
            pass
        elif left.dimensions != right.dimensions:
            raise ValueError(
                f"Cannot apply operator {function.__name__} between tensor with dimensions "
                f"{left.dimensions} and tensor with dimensions {right.dimensions}"
            )
        with np.errstate(divide="ignore", invalid="ignore"):
            return SparseTensor.from_numpy(function(left.to_numpy(), right.to_numpy()))
    elif isinstance(left, SparseTensor) and isinstance(right, Real):
        with np.errstate(divide="ignore", invalid="ignore"):
            return SparseTensor.from_numpy(function(left.to_numpy(), float(right)))
    elif isinstance(left, Real) and isinstance(right, SparseTensor):
        with np.errstate(divide="ignore", invalid="ignore"):
            return SparseTensor.from_numpy(function(float(left), right.to_numpy()))
    else:
        return NotImplemented


def lol_to_items(data: Any) -> list[tuple[tuple[int, ...], float]]:
    items = []

    def recurse(tree: Any, indexes: tuple[int, ...]):
        if isinstance(tree, Real):
            # A leaf was reached
            if tree != 0.0:
                items.append((indexes, float(tree)))
        else:
            for i_element, element in enumerate(tree):
                recurse(element, indexes + (i_element,))

    recurse(data, ())

    return items


def default_lol_dimensions(lol) -> tuple[int, ...]:
    """Extract dimensions from dense list-of-lists.

    The length of the top-level list is the size of the first dimension, the length of the first
    element of that list is the size of the second dimension, and so on until a scalar is
    encountered. A scalar value translates to dimensions equal to `()`.
    """
    dimensions = []
    subdata = lol
    while isinstance(subdata, list):
        dimensions.append(len(subdata))
        if len(subdata) > 0:
            subdata = subdata[0]
        else:
            break

    return tuple(dimensions)


def default_dok_dimensions(coordinates: Iterable[tuple[int, ...]]) -> tuple[int, ...]:
    order = None
    maximums = []
    for coordinate in coordinates:
        if order is None:
            order = len(coordinate)
            maximums = list(coordinate)
        else:
            if len(coordinate) != order:
                raise ValueError(
                    f"All coordinates must be the same length; the first coordinate has length "
                    f"{order}, but this coordinate is not that length: {coordinate}"
                )
            maximums = [max(maximum, index) for maximum, index in zip(maximums, coordinate)]

    if order is None:
        raise ValueError("Cannot infer the dimensions of a tensor without any coordinates")

    return tuple(maximum + 1 for maximum in maximums)
