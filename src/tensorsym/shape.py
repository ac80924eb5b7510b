from __future__ import annotations

__all__ = ["node_shape", "inner_prod_shape", "free_ranks", "kronecker_deltas_shape"]

from functools import singledispatch

from .ast import (
    Abs,
    Add,
    AsMatrix,
    Constant,
    Cos,
    Det,
    Determinant,
    Divide,
    Exp,
    InnerProd,
    Inverse,
    KroneckerDeltas,
    Ln,
    Log,
    Mat,
    Matrix,
    MatrixConstant,
    MulScalarLhs,
    MulScalarRhs,
    Multiply,
    Negate,
    Node,
    Pow,
    Power,
    Sin,
    Subtract,
    Symbol,
    Tan,
    Tensor,
    TensorAdd,
    TensorConstant,
    TensorElement,
    TensorExpression,
    TensorNegate,
    TensorSubtract,
    TensorSymbol,
    Transcendental,
    Transpose,
    Zero,
)
from .exceptions import ShapeMismatchError
from .size import Size, broadcast_shapes


@singledispatch
def node_shape(self: Node) -> tuple[Size, ...]:
    """Per-rank size class of the value a node evaluates to."""
    raise NotImplementedError(f"node_shape not implemented for {type(self)}: {self}")


@node_shape.register(Symbol)
@node_shape.register(TensorSymbol)
def node_shape_symbol(self: Symbol | TensorSymbol):
    return self.shape


@node_shape.register(Constant)
def node_shape_constant(self: Constant):
    return self.value.sizes()


@node_shape.register(Add)
@node_shape.register(Subtract)
@node_shape.register(Multiply)
@node_shape.register(Divide)
@node_shape.register(TensorAdd)
@node_shape.register(TensorSubtract)
def node_shape_binary(self: Add | Subtract | Multiply | Divide | TensorAdd | TensorSubtract):
    return broadcast_shapes(node_shape(self.left), node_shape(self.right))


@node_shape.register(Negate)
@node_shape.register(TensorNegate)
def node_shape_negate(self: Negate | TensorNegate):
    return node_shape(self.operand)


@node_shape.register(Power)
@node_shape.register(Transcendental)
@node_shape.register(Abs)
@node_shape.register(Pow)
@node_shape.register(Exp)
@node_shape.register(Log)
@node_shape.register(Ln)
@node_shape.register(Sin)
@node_shape.register(Cos)
@node_shape.register(Tan)
@node_shape.register(Det)
@node_shape.register(Determinant)
@node_shape.register(Zero)
def node_shape_scalar(self: Node):
    return ()


@node_shape.register(Tensor)
@node_shape.register(AsMatrix)
def node_shape_tensor(self: Tensor | AsMatrix):
    return node_shape(self.tensor)


@node_shape.register(Matrix)
@node_shape.register(Mat)
@node_shape.register(Inverse)
def node_shape_matrix(self: Matrix | Mat | Inverse):
    return node_shape(self.matrix)


@node_shape.register(TensorElement)
def node_shape_tensor_element(self: TensorElement):
    return node_shape(self.tensor)[len(self.index) :]


@node_shape.register(TensorConstant)
@node_shape.register(MatrixConstant)
def node_shape_numeric(self: TensorConstant | MatrixConstant):
    return tuple(Size.from_dimension(dimension) for dimension in self.value.dimensions)


@node_shape.register(KroneckerDeltas)
def node_shape_kronecker_deltas(self: KroneckerDeltas):
    return kronecker_deltas_shape(self.pairs)


@node_shape.register(MulScalarLhs)
@node_shape.register(MulScalarRhs)
def node_shape_mul_scalar(self: MulScalarLhs | MulScalarRhs):
    return node_shape(self.tensor)


@node_shape.register(InnerProd)
def node_shape_inner_prod(self: InnerProd):
    return inner_prod_shape(self.terms, self.rank_combinations)


@node_shape.register(Transpose)
def node_shape_transpose(self: Transpose):
    return tuple(reversed(node_shape(self.matrix)))


def kronecker_deltas_shape(pairs: tuple[tuple[int, int], ...]) -> tuple[Size, ...]:
    paired = {rank for pair in pairs for rank in pair}
    order = max(paired, default=-1) + 1
    return tuple(Size.many if rank in paired else Size.one for rank in range(order))


def free_ranks(
    term: TensorExpression, combination: tuple[tuple[int, int], ...]
) -> dict[int, Size]:
    """Ranks of a term that are not contracted, mapped to their sizes.

    Unpaired ranks of Kronecker deltas broadcast and are not reported.
    """
    contracted = {rank for rank, _ in combination}
    if isinstance(term, KroneckerDeltas):
        return {
            rank: Size.many
            for pair in term.pairs
            for rank in pair
            if rank not in contracted
        }
    else:
        return {
            rank: size for rank, size in enumerate(node_shape(term)) if rank not in contracted
        }


def inner_prod_shape(
    terms: tuple[TensorExpression, ...],
    rank_combinations: tuple[tuple[tuple[int, int], ...], ...],
) -> tuple[Size, ...]:
    """Shape of a contraction, raising if two terms claim the same output rank as many."""
    sizes: dict[int, Size] = {}
    claims: dict[int, tuple[Size, ...]] = {}
    for term, combination in zip(terms, rank_combinations):
        for rank, size in free_ranks(term, combination).items():
            if size is Size.many:
                if rank in claims:
                    raise ShapeMismatchError("inner product", claims[rank], node_shape(term))
                claims[rank] = node_shape(term)
                sizes[rank] = Size.many
            else:
                sizes.setdefault(rank, Size.one)

    order = max(sizes, default=-1) + 1
    return tuple(sizes.get(rank, Size.one) for rank in range(order))
