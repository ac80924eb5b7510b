"""Index-contraction engine.

An `InnerProd` is the sum, over shared identifiers, of the elementwise product of its terms.
Construction keeps the node canonical:

1. nested contractions are flattened into one
2. a `Zero` term absorbs the whole product
3. scalar factors are hoisted out into a single `MulScalarLhs`
4. Kronecker deltas are fused into one leading term, or removed where they only rename
5. all-numeric products are folded with `tensorsym.linalg.contract`
6. a single term with no identifiers is returned as is
7. identifiers are renumbered in first-seen order
"""

from __future__ import annotations

__all__ = ["inner_prod", "append_variable_ranks"]

import itertools
import logging
from functools import reduce
from typing import Iterable, Mapping

from .ast import (
    InnerProd,
    KroneckerDeltas,
    MulScalarLhs,
    MulScalarRhs,
    TensorConstant,
    TensorExpression,
    TensorNegate,
    Zero,
)
from .exceptions import AmbiguousContractionError, IndexOutOfRangeError, ShapeMismatchError
from .linalg import SparseTensor, contract, kronecker_deltas
from .operators import constant, mul_scalar_lhs, multiply
from .shape import free_ranks, inner_prod_shape, node_shape
from .size import Size

logger = logging.getLogger(__name__)

Combination = dict[int, int]


def inner_prod(
    terms: Iterable[TensorExpression],
    rank_combinations: Iterable[Iterable[tuple[int, int]] | Mapping[int, int]],
) -> TensorExpression:
    """Contract terms over shared identifiers.

    Args:
        terms: The factors of the product.
        rank_combinations: For each term, its `(rank, identifier)` pairs. Ranks sharing an
            identifier are summed over. Identifiers may be any hashable values.

    Raises:
        IndexOutOfRangeError: A pair names a rank the term does not have.
        AmbiguousContractionError: A contracted rank of a nested contraction does not map to
            exactly one free rank with many elements.
        ShapeMismatchError: Two terms leave a rank with many elements free at the same position.
    """
    terms = list(terms)
    raw_combinations = [
        dict(combination.items() if isinstance(combination, Mapping) else combination)
        for combination in rank_combinations
    ]
    if len(terms) != len(raw_combinations):
        raise ValueError(
            f"Expected one rank combination per term, but found {len(terms)} terms and "
            f"{len(raw_combinations)} rank combinations"
        )
    if len(terms) == 0:
        return TensorConstant(SparseTensor.from_scalar(1.0))

    if any(isinstance(term, Zero) for term in terms):
        return Zero()

    for term, combination in zip(terms, raw_combinations):
        order = len(node_shape(term))
        for rank in combination:
            if not 0 <= rank < order:
                raise IndexOutOfRangeError(rank, order)

    combinations = renumber(raw_combinations)
    fresh = itertools.count(max_identifier(combinations) + 1)

    scalars, terms = unwrap_scalars(terms)
    terms, combinations = flatten(terms, combinations, fresh)
    if any(isinstance(term, Zero) for term in terms):
        return Zero()
    scalars, terms, combinations = hoist_constant_scalars(scalars, terms, combinations)
    terms, combinations = fuse_kronecker_deltas(terms, combinations)
    combinations = renumber(combinations)

    inner_prod_shape(
        tuple(terms), tuple(tuple(sorted(combination.items())) for combination in combinations)
    )

    folded = fold_constants(terms, combinations)
    if folded is not None:
        result = folded
    elif len(terms) == 1 and len(combinations[0]) == 0:
        result = terms[0]
    else:
        result = InnerProd(
            tuple(terms),
            tuple(tuple(sorted(combination.items())) for combination in combinations),
        )

    if len(scalars) > 0:
        result = mul_scalar_lhs(reduce(multiply, scalars), result)

    return result


def max_identifier(combinations: list[Combination]) -> int:
    return max((identifier for c in combinations for identifier in c.values()), default=-1)


def renumber(combinations: list[dict]) -> list[Combination]:
    """Replace identifiers with integers counting up in order of first appearance."""
    numbering = {}
    renumbered = []
    for combination in combinations:
        new_combination = {}
        for rank, identifier in sorted(combination.items()):
            if identifier not in numbering:
                numbering[identifier] = len(numbering)
            new_combination[rank] = numbering[identifier]
        renumbered.append(new_combination)
    return renumbered


def unwrap_scalars(terms: list[TensorExpression]):
    scalars = []
    unwrapped = []
    for term in terms:
        while True:
            match term:
                case MulScalarLhs(scalar, tensor) | MulScalarRhs(tensor, scalar):
                    scalars.append(scalar)
                    term = tensor
                case TensorNegate(operand):
                    scalars.append(constant(-1.0))
                    term = operand
                case _:
                    break
        unwrapped.append(term)
    return scalars, unwrapped


def flatten(
    terms: list[TensorExpression],
    combinations: list[Combination],
    fresh: Iterable[int],
) -> tuple[list[TensorExpression], list[Combination]]:
    fresh = iter(fresh)
    new_terms = []
    new_combinations = []
    for term, combination in zip(terms, combinations):
        if not isinstance(term, InnerProd):
            new_terms.append(term)
            new_combinations.append(combination)
            continue

        logger.debug("Flattening nested contraction of %d terms", len(term.terms))

        renaming = {}
        inner_combinations = []
        for inner_combination in term.rank_combinations:
            renamed = {}
            for rank, identifier in inner_combination:
                if identifier not in renaming:
                    renaming[identifier] = next(fresh)
                renamed[rank] = renaming[identifier]
            inner_combinations.append(renamed)

        for rank, identifier in combination.items():
            candidates = [
                (i_inner, rank)
                for i_inner, (inner_term, inner_combination) in enumerate(
                    zip(term.terms, term.rank_combinations)
                )
                if free_ranks(inner_term, inner_combination).get(rank) is Size.many
            ]
            if len(candidates) != 1:
                raise AmbiguousContractionError(rank, len(candidates))
            [(i_inner, inner_rank)] = candidates
            inner_combinations[i_inner][inner_rank] = identifier

        new_terms.extend(term.terms)
        new_combinations.extend(inner_combinations)

    return new_terms, new_combinations


def hoist_constant_scalars(
    scalars: list, terms: list[TensorExpression], combinations: list[Combination]
):
    """Pull constants with a single element out of the product as scalar factors."""
    original_scalars = scalars
    scalars = list(scalars)
    kept_terms = []
    kept_combinations = []
    for term, combination in zip(terms, combinations):
        if isinstance(term, TensorConstant) and term.value.total_size == 1:
            scalars.append(constant(float(term.value)))
        else:
            kept_terms.append(term)
            kept_combinations.append(combination)

    if len(kept_terms) == 0:
        # Nothing to multiply into; leave the constants to be folded
        return list(original_scalars), terms, combinations

    return scalars, kept_terms, kept_combinations


class DisjointSet:
    def __init__(self):
        self.parents = {}

    def find(self, node):
        self.parents.setdefault(node, node)
        while self.parents[node] != node:
            self.parents[node] = self.parents[self.parents[node]]
            node = self.parents[node]
        return node

    def union(self, left, right):
        self.parents[self.find(left)] = self.find(right)

    def groups(self) -> list[list]:
        groups = {}
        for node in self.parents:
            groups.setdefault(self.find(node), []).append(node)
        return list(groups.values())


def fuse_kronecker_deltas(
    terms: list[TensorExpression], combinations: list[Combination]
) -> tuple[list[TensorExpression], list[Combination]]:
    """Merge all Kronecker deltas into at most one leading term.

    The ends of every pair are either a free output position or an identifier. Ends connected
    through pairs are one identity class. Identifiers in a class are merged into one. A class
    that ties an output position to a single rank at that same position is dropped and the rank
    is made free.
    """
    delta_indexes = [i for i, term in enumerate(terms) if isinstance(term, KroneckerDeltas)]
    if len(delta_indexes) == 0:
        return terms, combinations

    classes = DisjointSet()
    for i in delta_indexes:
        combination = combinations[i]
        for left, right in terms[i].pairs:
            classes.union(delta_end(left, combination), delta_end(right, combination))

    other_indexes = [i for i in range(len(terms)) if i not in delta_indexes]
    other_combinations = {i: dict(combinations[i]) for i in other_indexes}

    def occurrences(identifier: int) -> list[tuple[int, int]]:
        return [
            (i, rank)
            for i in other_indexes
            for rank, other_identifier in other_combinations[i].items()
            if other_identifier == identifier
        ]

    free_pairs = []
    id_ends = []
    for group in classes.groups():
        positions = sorted(value for kind, value in group if kind == "free")
        identifiers = sorted(value for kind, value in group if kind == "id")

        if len(identifiers) == 0:
            free_pairs.extend((positions[0], position) for position in positions[1:])
            continue

        merged = identifiers[0]
        for i in other_indexes:
            for rank, identifier in other_combinations[i].items():
                if identifier in identifiers:
                    other_combinations[i][rank] = merged
        uses = occurrences(merged)

        if len(uses) == 0:
            if len(positions) >= 2:
                free_pairs.extend((positions[0], position) for position in positions[1:])
            elif len(positions) == 1:
                id_ends.append((positions[0], merged))
            else:
                # A trace of the identity; its dimension is unknown
                id_ends.append((None, merged))
                id_ends.append((None, merged))
            continue

        if len(positions) == 0:
            continue

        if len(positions) == 1 and len(uses) == 1 and uses[0][1] == positions[0]:
            i, rank = uses[0]
            del other_combinations[i][rank]
            continue

        for position in positions:
            id_ends.append((position, merged))

    if len(free_pairs) == 0 and len(id_ends) == 0:
        return (
            [terms[i] for i in other_indexes],
            [other_combinations[i] for i in other_indexes],
        )

    next_position = 1 + max(
        [rank for pair in free_pairs for rank in pair]
        + [position for position, _ in id_ends if position is not None],
        default=-1,
    )
    pairs = list(free_pairs)
    delta_combination = {}
    pending_trace = None
    for position, identifier in id_ends:
        end = next_position
        next_position += 1
        delta_combination[end] = identifier
        if position is not None:
            pairs.append((position, end))
        elif pending_trace is None:
            pending_trace = end
        else:
            pairs.append((pending_trace, end))
            pending_trace = None

    delta = KroneckerDeltas(tuple(sorted(pairs)))
    logger.debug("Fused Kronecker deltas into %s", delta)

    return (
        [delta] + [terms[i] for i in other_indexes],
        [delta_combination] + [other_combinations[i] for i in other_indexes],
    )


def delta_end(rank: int, combination: Combination) -> tuple[str, int]:
    if rank in combination:
        return ("id", combination[rank])
    else:
        return ("free", rank)


def fold_constants(
    terms: list[TensorExpression], combinations: list[Combination]
) -> TensorExpression | None:
    """Contract numerically if every term is a constant or a resolvable Kronecker delta."""
    if not all(isinstance(term, (TensorConstant, KroneckerDeltas)) for term in terms):
        return None
    if all(isinstance(term, KroneckerDeltas) for term in terms):
        return None

    constant_identifiers = set()
    constant_positions = set()
    for term, combination in zip(terms, combinations):
        if isinstance(term, TensorConstant):
            constant_identifiers.update(combination.values())
            constant_positions.update(
                rank for rank in range(term.value.order) if rank not in combination
            )

    for term, combination in zip(terms, combinations):
        if isinstance(term, KroneckerDeltas):
            for pair in term.pairs:
                if not any(
                    combination[rank] in constant_identifiers
                    if rank in combination
                    else rank in constant_positions
                    for rank in pair
                ):
                    return None

    operands = [
        term.value if isinstance(term, TensorConstant) else kronecker_deltas(term.pairs)
        for term in terms
    ]
    try:
        array = contract(operands, combinations)
    except ValueError as error:
        raise ShapeMismatchError(
            "inner product", node_shape(terms[0]), node_shape(terms[-1])
        ) from error

    logger.debug("Folded a contraction of %d constant terms", len(terms))
    return TensorConstant(SparseTensor.from_numpy(array))


def append_variable_ranks(
    terms: list[TensorExpression],
    rank_combinations: list[Iterable[tuple[int, int]] | Mapping[int, int]],
    derivative_index: int,
    term_rank: int,
    output_rank: int,
    variable_shape: tuple[Size, ...],
) -> TensorExpression:
    """Contract terms where one term is a derivative carrying extra variable ranks.

    `terms[derivative_index]` has the ranks of the term it differentiates, `term_rank` of them,
    followed by one rank per rank of the variable. Those trailing ranks are moved with a
    Kronecker delta so that they land after the `output_rank` ranks of the contraction.
    """
    combinations = [
        dict(combination.items() if isinstance(combination, Mapping) else combination)
        for combination in rank_combinations
    ]
    terms = list(terms)
    if term_rank != output_rank:
        combinations = renumber(combinations)
        fresh = itertools.count(max_identifier(combinations) + 1)
        variable_rank = len(variable_shape)
        pairs = []
        delta_combination = {}
        for j, size in enumerate(variable_shape):
            if size is Size.many:
                identifier = next(fresh)
                combinations[derivative_index][term_rank + j] = identifier
                end = output_rank + variable_rank + j
                pairs.append((output_rank + j, end))
                delta_combination[end] = identifier
        if len(pairs) > 0:
            terms.append(KroneckerDeltas(tuple(pairs)))
            combinations.append(delta_combination)

    return inner_prod(terms, combinations)
