"""Structural differentiation.

The derivative of a node with shape `S` with respect to a variable with shape `V` has shape
`S + V`: the ranks of the variable are appended after the ranks of the node. Scalar nodes
differentiate to scalar nodes when the variable is a scalar and to tensor-valued expressions
otherwise.
"""

from __future__ import annotations

__all__ = ["differential", "derivative", "identity"]

import logging
from functools import singledispatch
from typing import Iterable

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
    Expression,
    InnerProd,
    Inverse,
    KroneckerDeltas,
    Ln,
    Log,
    Mat,
    Matrix,
    MatrixConstant,
    MatrixExpression,
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
from .inner_prod import append_variable_ranks, inner_prod
from .linalg import SparseTensor
from .operators import (
    absolute,
    add,
    as_matrix,
    as_tensor,
    constant,
    cos,
    divide,
    exp,
    from_matrix,
    from_tensor,
    inverse,
    is_zero,
    ln,
    mat,
    mul_scalar_lhs,
    multiply,
    negate,
    power,
    sin,
    subtract,
    tensor_add,
    tensor_element,
    tensor_negate,
    tensor_subtract,
    transpose,
)
from .shape import node_shape
from .size import Size
from .variables import variable_shapes

logger = logging.getLogger(__name__)


def differential(node: Node, variables: Iterable[str]) -> list:
    """Differentiate a node with respect to each named variable.

    Returns:
        One derivative per variable, in the same order. Variables that do not appear in the node
        give zero.
    """
    shapes = variable_shapes(node)
    results = []
    for name in variables:
        shape = shapes.get(name, ())
        logger.debug("Differentiating with respect to %s of shape %s", name, shape)
        results.append(derivative(node, name, shape))
    return results


def identity(shape: tuple[Size, ...]) -> TensorExpression:
    """Derivative of a variable with respect to itself."""
    rank = len(shape)
    pairs = tuple((k, k + rank) for k, size in enumerate(shape) if size is Size.many)
    if len(pairs) == 0:
        return TensorConstant(
            SparseTensor.from_dok({(0,) * (2 * rank): 1.0}, dimensions=(1,) * (2 * rank))
        )
    return KroneckerDeltas(pairs)


def rank(node: Node) -> int:
    return len(node_shape(node))


def align(
    derivative_of_term: TensorExpression,
    term_rank: int,
    output_rank: int,
    shape: tuple[Size, ...],
) -> TensorExpression:
    """Move the variable ranks of a broadcast operand's derivative after the output ranks."""
    if isinstance(derivative_of_term, Zero) or term_rank == output_rank:
        return derivative_of_term
    return append_variable_ranks([derivative_of_term], [()], 0, term_rank, output_rank, shape)


@singledispatch
def derivative(self: Node, name: str, shape: tuple[Size, ...]):
    raise NotImplementedError(f"derivative not implemented for {type(self)}: {self}")


###################
# Scalar expressions
###################


@derivative.register(Symbol)
def derivative_symbol(self: Symbol, name: str, shape: tuple[Size, ...]):
    if self.name != name:
        return constant(0.0)
    elif self.shape == ():
        return constant(1.0)
    else:
        return from_tensor(identity(self.shape))


@derivative.register(Constant)
def derivative_constant(self: Constant, name: str, shape: tuple[Size, ...]):
    return constant(0.0)


@derivative.register(Add)
def derivative_add(self: Add, name: str, shape: tuple[Size, ...]):
    return add(derivative(self.left, name, shape), derivative(self.right, name, shape))


@derivative.register(Subtract)
def derivative_subtract(self: Subtract, name: str, shape: tuple[Size, ...]):
    return subtract(derivative(self.left, name, shape), derivative(self.right, name, shape))


@derivative.register(Multiply)
def derivative_multiply(self: Multiply, name: str, shape: tuple[Size, ...]):
    return add(
        multiply(derivative(self.left, name, shape), self.right),
        multiply(self.left, derivative(self.right, name, shape)),
    )


@derivative.register(Divide)
def derivative_divide(self: Divide, name: str, shape: tuple[Size, ...]):
    left, right = self.left, self.right
    return subtract(
        divide(derivative(left, name, shape), right),
        divide(multiply(left, derivative(right, name, shape)), power(right, 2)),
    )


@derivative.register(Negate)
def derivative_negate(self: Negate, name: str, shape: tuple[Size, ...]):
    return negate(derivative(self.operand, name, shape))


@derivative.register(Power)
def derivative_power(self: Power, name: str, shape: tuple[Size, ...]):
    coefficient = multiply(float(self.exponent), power(self.base, self.exponent - 1))
    return multiply(coefficient, derivative(self.base, name, shape))


@derivative.register(Transcendental)
def derivative_transcendental(self: Transcendental, name: str, shape: tuple[Size, ...]):
    return derivative(self.function, name, shape)


@derivative.register(Tensor)
def derivative_tensor(self: Tensor, name: str, shape: tuple[Size, ...]):
    return from_tensor(derivative(self.tensor, name, shape))


@derivative.register(Matrix)
def derivative_matrix(self: Matrix, name: str, shape: tuple[Size, ...]):
    return from_tensor(derivative(self.matrix, name, shape))


@derivative.register(TensorElement)
def derivative_tensor_element(self: TensorElement, name: str, shape: tuple[Size, ...]):
    # The element's position selects the leading ranks of the tensor's derivative
    return tensor_element(derivative(self.tensor, name, shape), self.index)


###################
# Transcendental functions
###################


@derivative.register(Abs)
def derivative_abs(self: Abs, name: str, shape: tuple[Size, ...]):
    u = self.argument
    return multiply(divide(u, absolute(u)), derivative(u, name, shape))


@derivative.register(Exp)
def derivative_exp(self: Exp, name: str, shape: tuple[Size, ...]):
    return multiply(exp(self.argument), derivative(self.argument, name, shape))


@derivative.register(Ln)
def derivative_ln(self: Ln, name: str, shape: tuple[Size, ...]):
    return divide(derivative(self.argument, name, shape), self.argument)


@derivative.register(Sin)
def derivative_sin(self: Sin, name: str, shape: tuple[Size, ...]):
    return multiply(cos(self.argument), derivative(self.argument, name, shape))


@derivative.register(Cos)
def derivative_cos(self: Cos, name: str, shape: tuple[Size, ...]):
    return negate(multiply(sin(self.argument), derivative(self.argument, name, shape)))


@derivative.register(Tan)
def derivative_tan(self: Tan, name: str, shape: tuple[Size, ...]):
    return divide(derivative(self.argument, name, shape), power(cos(self.argument), 2))


@derivative.register(Log)
def derivative_log(self: Log, name: str, shape: tuple[Size, ...]):
    # log_b(a) = ln(a) / ln(b)
    base, antilogarithm = self.base, self.antilogarithm
    ln_base = ln(base)
    numerator = subtract(
        multiply(divide(derivative(antilogarithm, name, shape), antilogarithm), ln_base),
        multiply(ln(antilogarithm), divide(derivative(base, name, shape), base)),
    )
    return divide(numerator, power(ln_base, 2))


@derivative.register(Pow)
def derivative_pow(self: Pow, name: str, shape: tuple[Size, ...]):
    # d(b^e) = b^e (e' ln(b) + e b' / b)
    base, exponent = self.base, self.exponent
    inner = add(
        multiply(derivative(exponent, name, shape), ln(base)),
        divide(multiply(exponent, derivative(base, name, shape)), base),
    )
    return multiply(power(base, exponent), inner)


###################
# Tensor expressions
###################


@derivative.register(TensorSymbol)
def derivative_tensor_symbol(self: TensorSymbol, name: str, shape: tuple[Size, ...]):
    if self.name != name:
        return Zero()
    else:
        return identity(self.shape)


@derivative.register(TensorConstant)
@derivative.register(Zero)
@derivative.register(KroneckerDeltas)
@derivative.register(MatrixConstant)
def derivative_tensor_constant(self: Node, name: str, shape: tuple[Size, ...]):
    return Zero()


@derivative.register(TensorAdd)
def derivative_tensor_add(self: TensorAdd, name: str, shape: tuple[Size, ...]):
    output_rank = rank(self)
    return tensor_add(
        align(derivative(self.left, name, shape), rank(self.left), output_rank, shape),
        align(derivative(self.right, name, shape), rank(self.right), output_rank, shape),
    )


@derivative.register(TensorSubtract)
def derivative_tensor_subtract(self: TensorSubtract, name: str, shape: tuple[Size, ...]):
    output_rank = rank(self)
    return tensor_subtract(
        align(derivative(self.left, name, shape), rank(self.left), output_rank, shape),
        align(derivative(self.right, name, shape), rank(self.right), output_rank, shape),
    )


@derivative.register(TensorNegate)
def derivative_tensor_negate(self: TensorNegate, name: str, shape: tuple[Size, ...]):
    return tensor_negate(derivative(self.operand, name, shape))


def derivative_scaled(
    scalar: Expression, tensor: TensorExpression, name: str, shape: tuple[Size, ...]
) -> TensorExpression:
    derivative_of_scalar = derivative(scalar, name, shape)
    if is_zero(derivative_of_scalar):
        scalar_part = Zero()
    elif shape == ():
        scalar_part = mul_scalar_lhs(derivative_of_scalar, tensor)
    else:
        scalar_part = append_variable_ranks(
            [as_tensor(derivative_of_scalar), tensor], [(), ()], 0, 0, rank(tensor), shape
        )
    return tensor_add(scalar_part, mul_scalar_lhs(scalar, derivative(tensor, name, shape)))


@derivative.register(MulScalarLhs)
@derivative.register(MulScalarRhs)
def derivative_mul_scalar(self: MulScalarLhs | MulScalarRhs, name: str, shape: tuple[Size, ...]):
    return derivative_scaled(self.scalar, self.tensor, name, shape)


@derivative.register(InnerProd)
def derivative_inner_prod(self: InnerProd, name: str, shape: tuple[Size, ...]):
    # Leibniz rule: one contraction per term, with that term replaced by its derivative
    output_rank = rank(self)
    total = Zero()
    for i, term in enumerate(self.terms):
        derivative_of_term = derivative(term, name, shape)
        if isinstance(derivative_of_term, Zero):
            continue
        terms = list(self.terms)
        terms[i] = derivative_of_term
        total = tensor_add(
            total,
            append_variable_ranks(
                terms, list(self.rank_combinations), i, rank(term), output_rank, shape
            ),
        )
    return total


def jacobi(
    value: Expression, matrix: MatrixExpression, name: str, shape: tuple[Size, ...]
) -> TensorExpression:
    """Derivative of a determinant: det(M) tr(M^-1 dM)."""
    derivative_of_matrix = derivative(matrix, name, shape)
    if isinstance(derivative_of_matrix, Zero):
        return Zero()
    trace = append_variable_ranks(
        [mat(inverse(matrix)), derivative_of_matrix],
        [((0, 0), (1, 1)), ((0, 1), (1, 0))],
        1,
        2,
        0,
        shape,
    )
    return mul_scalar_lhs(value, trace)


@derivative.register(Det)
def derivative_det(self: Det, name: str, shape: tuple[Size, ...]):
    return jacobi(from_tensor(self), as_matrix(self.tensor), name, shape)


@derivative.register(Mat)
def derivative_mat(self: Mat, name: str, shape: tuple[Size, ...]):
    return derivative(self.matrix, name, shape)


###################
# Matrix expressions
###################


@derivative.register(AsMatrix)
def derivative_as_matrix(self: AsMatrix, name: str, shape: tuple[Size, ...]):
    return derivative(self.tensor, name, shape)


@derivative.register(Transpose)
def derivative_transpose(self: Transpose, name: str, shape: tuple[Size, ...]):
    derivative_of_matrix = derivative(self.matrix, name, shape)
    if isinstance(derivative_of_matrix, Zero):
        return Zero()
    if len(shape) == 0:
        return mat(transpose(as_matrix(derivative_of_matrix)))

    # Swap the first two ranks; the variable ranks stay in place. A rank with one element is
    # left free, where it broadcasts against the swapped rank.
    pairs = []
    matrix_combination = []
    delta_combination = []
    for rank, size in enumerate(node_shape(self.matrix)):
        if size is Size.many:
            pairs.append((1 - rank, 2 + rank))
            matrix_combination.append((rank, rank))
            delta_combination.append((2 + rank, rank))
    if len(pairs) == 0:
        return derivative_of_matrix
    return inner_prod(
        [derivative_of_matrix, KroneckerDeltas(tuple(sorted(pairs)))],
        [matrix_combination, sorted(delta_combination)],
    )


@derivative.register(Inverse)
def derivative_inverse(self: Inverse, name: str, shape: tuple[Size, ...]):
    # d(M^-1) = -M^-1 dM M^-1
    derivative_of_matrix = derivative(self.matrix, name, shape)
    if isinstance(derivative_of_matrix, Zero):
        return Zero()
    inverse_tensor = mat(self)
    return tensor_negate(
        append_variable_ranks(
            [inverse_tensor, derivative_of_matrix, inverse_tensor],
            [((1, 0),), ((0, 0), (1, 1)), ((0, 1),)],
            1,
            2,
            2,
            shape,
        )
    )


@derivative.register(Determinant)
def derivative_determinant(self: Determinant, name: str, shape: tuple[Size, ...]):
    return jacobi(from_matrix(self), self.matrix, name, shape)
