from __future__ import annotations

__all__ = ["KroneckerDeltaOperand", "kronecker_deltas", "generate_rank_combinations", "contract"]

import itertools
from dataclasses import dataclass
from typing import Iterable, Mapping, Sequence

import numpy as np

from ._dense_matrix import DenseMatrix
from ._sparse_tensor import SparseTensor


@dataclass(frozen=True, slots=True)
class KroneckerDeltaOperand:
    """Product of identity maps between pairs of ranks.

    The dimension of each pair is not stored; it is taken from whatever the pair is contracted
    with, or from the output rank it lands on.
    """

    pairs: tuple[tuple[int, int], ...]

    @property
    def order(self) -> int:
        return max((max(pair) for pair in self.pairs), default=-1) + 1


def kronecker_deltas(pairs: Iterable[tuple[int, int]]) -> KroneckerDeltaOperand:
    return KroneckerDeltaOperand(tuple((int(left), int(right)) for left, right in pairs))


def generate_rank_combinations(
    rank_pairs: Iterable[tuple[int, int]],
) -> tuple[dict[int, int], dict[int, int]]:
    """Number each pair of contracted ranks between a left and a right operand.

    Returns:
        The rank-to-identifier maps of the left operand and the right operand.
    """
    left_combination = {}
    right_combination = {}
    for identifier, (left_rank, right_rank) in enumerate(rank_pairs):
        left_combination[left_rank] = identifier
        right_combination[right_rank] = identifier
    return left_combination, right_combination


Operand = SparseTensor | DenseMatrix | KroneckerDeltaOperand | np.ndarray | float


def contract(
    operands: Sequence[Operand], rank_combinations: Sequence[Mapping[int, int]]
) -> np.ndarray:
    """Sum products of operands over shared identifiers.

    Each operand has a map from some of its ranks to identifiers. Ranks that share an identifier
    are summed over. Every other rank is free and lands at the same position in the output. A rank
    of size one broadcasts against any size.
    """
    if len(operands) != len(rank_combinations):
        raise ValueError(
            f"Expected one rank combination per operand, but found {len(operands)} operands and "
            f"{len(rank_combinations)} rank combinations"
        )

    identifier_sizes: dict[int, int] = {}
    position_sizes: dict[int, int] = {}
    arrays: list[np.ndarray | None] = []
    for operand, combination in zip(operands, rank_combinations):
        if isinstance(operand, KroneckerDeltaOperand):
            arrays.append(None)
            continue

        array = to_array(operand)
        for rank in combination:
            if not 0 <= rank < array.ndim:
                raise ValueError(
                    f"Expected contracted ranks of an operand with {array.ndim} ranks, "
                    f"but found rank {rank}"
                )
        for rank, dimension in enumerate(array.shape):
            if rank in combination:
                record_size(identifier_sizes, combination[rank], dimension)
            else:
                record_size(position_sizes, rank, dimension)
        arrays.append(array)

    delta_indexes = [
        i for i, operand in enumerate(operands) if isinstance(operand, KroneckerDeltaOperand)
    ]
    pair_sizes = resolve_kronecker_sizes(
        [(operands[i].pairs, rank_combinations[i]) for i in delta_indexes],
        identifier_sizes,
        position_sizes,
    )
    for i, sizes in zip(delta_indexes, pair_sizes):
        arrays[i] = kronecker_array(operands[i], sizes)

    symbols = itertools.count()
    identifier_symbols: dict[int, int] = {}
    position_symbols: dict[int, int] = {}
    output_rank = 0
    arguments = []
    for operand, array, combination in zip(operands, arrays, rank_combinations):
        is_delta = isinstance(operand, KroneckerDeltaOperand)
        paired_ranks = {rank for pair in operand.pairs for rank in pair} if is_delta else None

        subscripts = []
        target_shape = list(array.shape)
        for rank, dimension in enumerate(array.shape):
            if rank in combination:
                identifier = combination[rank]
                if identifier not in identifier_symbols:
                    identifier_symbols[identifier] = next(symbols)
                target_shape[rank] = identifier_sizes[identifier]
                subscripts.append(identifier_symbols[identifier])
            else:
                if not is_delta or rank in paired_ranks:
                    output_rank = max(output_rank, rank + 1)
                if dimension == 1:
                    # Summing over a single element drops the rank; it is restored by reshape
                    subscripts.append(next(symbols))
                else:
                    if rank not in position_symbols:
                        position_symbols[rank] = next(symbols)
                    subscripts.append(position_symbols[rank])

        if tuple(target_shape) != array.shape:
            array = np.broadcast_to(array, target_shape)
        arguments.extend([array, subscripts])

    output_subscripts = [
        position_symbols[position]
        for position in range(output_rank)
        if position_sizes.get(position, 1) > 1
    ]
    result = np.einsum(*arguments, output_subscripts)

    return np.reshape(
        result, tuple(position_sizes.get(position, 1) for position in range(output_rank))
    )


def to_array(operand: Operand) -> np.ndarray:
    if isinstance(operand, (SparseTensor, DenseMatrix)):
        return operand.to_numpy()
    else:
        return np.asarray(operand, dtype=float)


def record_size(sizes: dict[int, int], key: int, dimension: int):
    existing = sizes.get(key)
    if existing is None or existing == 1:
        sizes[key] = dimension
    elif dimension != 1 and dimension != existing:
        raise ValueError(
            f"Expected ranks sharing an index to have the same dimension, but found {existing} "
            f"and {dimension}"
        )


def resolve_kronecker_sizes(
    deltas: list[tuple[tuple[tuple[int, int], ...], Mapping[int, int]]],
    identifier_sizes: dict[int, int],
    position_sizes: dict[int, int],
) -> list[list[int]]:
    def end_size(rank: int, combination: Mapping[int, int]) -> int | None:
        if rank in combination:
            return identifier_sizes.get(combination[rank])
        else:
            return position_sizes.get(rank)

    resolved: list[list[int | None]] = [[None] * len(pairs) for pairs, _ in deltas]

    # Pairs may only learn their dimension from another delta, so repeat until nothing changes
    progress = True
    while progress:
        progress = False
        for (pairs, combination), sizes in zip(deltas, resolved):
            for i_pair, pair in enumerate(pairs):
                if sizes[i_pair] is not None:
                    continue
                known = [end_size(rank, combination) for rank in pair]
                known = [size for size in known if size is not None]
                if len(known) == 0:
                    continue
                size = max(known)
                sizes[i_pair] = size
                for rank in pair:
                    if rank in combination:
                        record_size(identifier_sizes, combination[rank], size)
                    else:
                        record_size(position_sizes, rank, size)
                progress = True

    for (pairs, _), sizes in zip(deltas, resolved):
        for pair, size in zip(pairs, sizes):
            if size is None:
                raise ValueError(f"Cannot resolve the dimension of Kronecker delta pair {pair}")

    return resolved


def kronecker_array(operand: KroneckerDeltaOperand, sizes: list[int]) -> np.ndarray:
    shape = [1] * operand.order
    for (left, right), size in zip(operand.pairs, sizes):
        shape[left] = size
        shape[right] = size

    array = np.ones(shape)
    for (left, right), size in zip(operand.pairs, sizes):
        if left == right:
            continue
        identity_shape = [1] * operand.order
        identity_shape[left] = size
        identity_shape[right] = size
        array = array * np.eye(size).reshape(identity_shape)

    return array
