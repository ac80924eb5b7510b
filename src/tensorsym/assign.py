from __future__ import annotations

__all__ = ["assign"]

import logging
from functools import singledispatch
from typing import Mapping

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
    TensorNegate,
    TensorSubtract,
    TensorSymbol,
    Transcendental,
    Transpose,
    Zero,
)
from .constant_value import ConstantValue, to_constant_value
from .exceptions import ShapeMismatchError, VariantMismatchError
from .inner_prod import inner_prod
from .operators import (
    absolute,
    add,
    as_matrix,
    constant,
    cos,
    det,
    determinant,
    divide,
    exp,
    from_matrix,
    from_tensor,
    inverse,
    ln,
    log,
    mat,
    mul_scalar_lhs,
    mul_scalar_rhs,
    multiply,
    negate,
    power,
    sin,
    subtract,
    tan,
    tensor_add,
    tensor_element,
    tensor_negate,
    tensor_subtract,
    transpose,
)
from .size import Size

logger = logging.getLogger(__name__)


def assign(node: Node, bindings: Mapping[str, object]):
    """Replace bound symbols with constants and rebuild the tree through the constructors.

    Values may be any `ConstantValue`, `SparseTensor`, `DenseMatrix`, or number. Symbols without
    a binding are left in place.

    Raises:
        ShapeMismatchError: A bound value has more than one element along a rank that the symbol
            declares to have one.
    """
    values = {name: to_constant_value(value) for name, value in bindings.items()}
    logger.debug("Assigning %s", ", ".join(values))
    return assign_node(node, values)


def check_binding(name: str, shape: tuple[Size, ...], value: ConstantValue):
    value_shape = value.sizes()
    padded = shape + (Size.one,) * (len(value_shape) - len(shape))
    for declared, actual in zip(padded, value_shape):
        if declared is Size.one and actual is Size.many:
            raise ShapeMismatchError(f"assign to {name}", shape, value_shape)


@singledispatch
def assign_node(self: Node, values: Mapping[str, ConstantValue]):
    raise NotImplementedError(f"assign not implemented for {type(self)}: {self}")


@assign_node.register(Symbol)
def assign_symbol(self: Symbol, values: Mapping[str, ConstantValue]):
    value = values.get(self.name)
    if value is None:
        return self
    check_binding(self.name, self.shape, value)
    return constant(value)


@assign_node.register(TensorSymbol)
def assign_tensor_symbol(self: TensorSymbol, values: Mapping[str, ConstantValue]):
    value = values.get(self.name)
    if value is None:
        return self
    check_binding(self.name, self.shape, value)
    return TensorConstant(value.as_tensor())


@assign_node.register(Constant)
@assign_node.register(TensorConstant)
@assign_node.register(MatrixConstant)
@assign_node.register(Zero)
@assign_node.register(KroneckerDeltas)
def assign_leaf(self: Node, values: Mapping[str, ConstantValue]):
    return self


@assign_node.register(Add)
def assign_add(self: Add, values: Mapping[str, ConstantValue]):
    return add(assign_node(self.left, values), assign_node(self.right, values))


@assign_node.register(Subtract)
def assign_subtract(self: Subtract, values: Mapping[str, ConstantValue]):
    return subtract(assign_node(self.left, values), assign_node(self.right, values))


@assign_node.register(Multiply)
def assign_multiply(self: Multiply, values: Mapping[str, ConstantValue]):
    return multiply(assign_node(self.left, values), assign_node(self.right, values))


@assign_node.register(Divide)
def assign_divide(self: Divide, values: Mapping[str, ConstantValue]):
    return divide(assign_node(self.left, values), assign_node(self.right, values))


@assign_node.register(Negate)
def assign_negate(self: Negate, values: Mapping[str, ConstantValue]):
    return negate(assign_node(self.operand, values))


@assign_node.register(Power)
def assign_power(self: Power, values: Mapping[str, ConstantValue]):
    return power(assign_node(self.base, values), self.exponent)


@assign_node.register(Transcendental)
def assign_transcendental(self: Transcendental, values: Mapping[str, ConstantValue]):
    return assign_node(self.function, values)


@assign_node.register(Tensor)
def assign_tensor(self: Tensor, values: Mapping[str, ConstantValue]):
    return from_tensor(assign_node(self.tensor, values))


@assign_node.register(Matrix)
def assign_matrix(self: Matrix, values: Mapping[str, ConstantValue]):
    if isinstance(self.matrix, Determinant):
        return determinant(assign_node(self.matrix.matrix, values))
    return from_matrix(assign_node(self.matrix, values))


@assign_node.register(TensorElement)
def assign_tensor_element(self: TensorElement, values: Mapping[str, ConstantValue]):
    return tensor_element(assign_node(self.tensor, values), self.index)


@assign_node.register(Abs)
def assign_abs(self: Abs, values: Mapping[str, ConstantValue]):
    return absolute(assign_node(self.argument, values))


@assign_node.register(Exp)
def assign_exp(self: Exp, values: Mapping[str, ConstantValue]):
    return exp(assign_node(self.argument, values))


@assign_node.register(Ln)
def assign_ln(self: Ln, values: Mapping[str, ConstantValue]):
    return ln(assign_node(self.argument, values))


@assign_node.register(Sin)
def assign_sin(self: Sin, values: Mapping[str, ConstantValue]):
    return sin(assign_node(self.argument, values))


@assign_node.register(Cos)
def assign_cos(self: Cos, values: Mapping[str, ConstantValue]):
    return cos(assign_node(self.argument, values))


@assign_node.register(Tan)
def assign_tan(self: Tan, values: Mapping[str, ConstantValue]):
    return tan(assign_node(self.argument, values))


@assign_node.register(Log)
def assign_log(self: Log, values: Mapping[str, ConstantValue]):
    return log(assign_node(self.base, values), assign_node(self.antilogarithm, values))


@assign_node.register(Pow)
def assign_pow(self: Pow, values: Mapping[str, ConstantValue]):
    return power(assign_node(self.base, values), assign_node(self.exponent, values))


@assign_node.register(TensorAdd)
def assign_tensor_add(self: TensorAdd, values: Mapping[str, ConstantValue]):
    return tensor_add(assign_node(self.left, values), assign_node(self.right, values))


@assign_node.register(TensorSubtract)
def assign_tensor_subtract(self: TensorSubtract, values: Mapping[str, ConstantValue]):
    return tensor_subtract(assign_node(self.left, values), assign_node(self.right, values))


@assign_node.register(TensorNegate)
def assign_tensor_negate(self: TensorNegate, values: Mapping[str, ConstantValue]):
    return tensor_negate(assign_node(self.operand, values))


@assign_node.register(MulScalarLhs)
def assign_mul_scalar_lhs(self: MulScalarLhs, values: Mapping[str, ConstantValue]):
    return mul_scalar_lhs(assign_node(self.scalar, values), assign_node(self.tensor, values))


@assign_node.register(MulScalarRhs)
def assign_mul_scalar_rhs(self: MulScalarRhs, values: Mapping[str, ConstantValue]):
    return mul_scalar_rhs(assign_node(self.tensor, values), assign_node(self.scalar, values))


@assign_node.register(InnerProd)
def assign_inner_prod(self: InnerProd, values: Mapping[str, ConstantValue]):
    return inner_prod(
        [assign_node(term, values) for term in self.terms], self.rank_combinations
    )


@assign_node.register(Det)
def assign_det(self: Det, values: Mapping[str, ConstantValue]):
    return det(assign_node(self.tensor, values))


@assign_node.register(Mat)
def assign_mat(self: Mat, values: Mapping[str, ConstantValue]):
    return mat(assign_node(self.matrix, values))


@assign_node.register(AsMatrix)
def assign_as_matrix(self: AsMatrix, values: Mapping[str, ConstantValue]):
    return as_matrix(assign_node(self.tensor, values))


@assign_node.register(Transpose)
def assign_transpose(self: Transpose, values: Mapping[str, ConstantValue]):
    return transpose(assign_node(self.matrix, values))


@assign_node.register(Inverse)
def assign_inverse(self: Inverse, values: Mapping[str, ConstantValue]):
    return inverse(assign_node(self.matrix, values))


@assign_node.register(Determinant)
def assign_determinant(self: Determinant, values: Mapping[str, ConstantValue]):
    raise VariantMismatchError("assign", self)
