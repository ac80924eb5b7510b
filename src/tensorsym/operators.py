"""Normalizing constructors.

Every function here returns a canonical node: constants are folded, identities are removed,
and the result has the narrowest representation (a `Constant` rather than a wrapped
`TensorConstant`, a `Symbol` rather than a wrapped `TensorSymbol`, and so on).
"""

from __future__ import annotations

__all__ = [
    "constant",
    "symbol",
    "tensor_symbol",
    "to_expression",
    "to_tensor",
    "from_tensor",
    "from_matrix",
    "as_tensor",
    "as_matrix",
    "as_matrix_expression",
    "scalarize",
    "squeeze",
    "is_zero",
    "is_one",
    "add",
    "subtract",
    "multiply",
    "divide",
    "negate",
    "power",
    "absolute",
    "exp",
    "ln",
    "log",
    "sin",
    "cos",
    "tan",
    "tensor_add",
    "tensor_subtract",
    "tensor_negate",
    "mul_scalar_lhs",
    "mul_scalar_rhs",
    "dot",
    "det",
    "mat",
    "tensor_element",
    "transpose",
    "inverse",
    "determinant",
]

from fractions import Fraction
from numbers import Real
from typing import Callable, Iterable

import numpy as np

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
    TranscendentalExpression,
    Transpose,
    Zero,
)
from .constant_value import ConstantValue, MatrixValue, ScalarValue, TensorValue, to_constant_value
from .exceptions import (
    IndexOutOfRangeError,
    ShapeMismatchError,
    UnimplementedError,
    VariantMismatchError,
)
from .linalg import DenseMatrix, SparseTensor, generate_rank_combinations
from .shape import node_shape
from .size import Size, is_scalar_like


def constant(value: ConstantValue | SparseTensor | DenseMatrix | float) -> Constant:
    value = to_constant_value(value)
    if isinstance(value, TensorValue) and value.tensor.order == 0:
        value = ScalarValue(float(value.tensor))
    return Constant(value)


def symbol(name: str, shape: Iterable[Size] = ()) -> Symbol:
    return Symbol(name, tuple(shape))


def tensor_symbol(name: str, shape: Iterable[Size]) -> TensorSymbol:
    return TensorSymbol(name, tuple(shape))


def to_expression(value) -> Expression:
    match value:
        case Expression():
            return value
        case TensorExpression():
            return from_tensor(value)
        case MatrixExpression():
            return from_matrix(value)
        case _:
            return constant(value)


def to_tensor(value) -> TensorExpression:
    if isinstance(value, TensorExpression):
        return value
    else:
        return as_tensor(to_expression(value))


def is_zero(expression: Expression) -> bool:
    return isinstance(expression, Constant) and expression.value == ScalarValue(0.0)


def is_one(expression: Expression) -> bool:
    return isinstance(expression, Constant) and expression.value == ScalarValue(1.0)


def is_scalar(expression: Expression) -> bool:
    return node_shape(expression) == ()


####################
# Family conversions
####################


def from_tensor(tensor: TensorExpression) -> Expression:
    match tensor:
        case TensorConstant(value):
            return constant(value)
        case Zero():
            return constant(0.0)
        case TensorSymbol(name, shape):
            return Symbol(name, shape)
        case Mat(matrix):
            return from_matrix(matrix)
        case _:
            return Tensor(tensor)


def from_matrix(matrix: MatrixExpression) -> Expression:
    match matrix:
        case MatrixConstant(value):
            return constant(value)
        case AsMatrix(tensor):
            return from_tensor(tensor)
        case _:
            return Matrix(matrix)


def as_tensor(expression: Expression) -> TensorExpression:
    """View an expression as a tensor expression.

    A rank-0 expression with no tensor form of its own becomes a scalar multiple of a rank-0 one.
    """
    match expression:
        case Constant(ScalarValue(0.0)):
            return Zero()
        case Constant(value):
            return TensorConstant(value.as_tensor())
        case Symbol(name, shape):
            return TensorSymbol(name, shape)
        case Tensor(tensor):
            return tensor
        case Matrix(Determinant()):
            return MulScalarLhs(expression, TensorConstant(SparseTensor.from_scalar(1.0)))
        case Matrix(matrix):
            return mat(matrix)
        case TensorElement() if not is_scalar(expression):
            raise UnimplementedError("tensor arithmetic on a partial slice of a symbolic tensor")
        case _:
            return MulScalarLhs(expression, TensorConstant(SparseTensor.from_scalar(1.0)))


def mat(matrix: MatrixExpression) -> TensorExpression:
    match matrix:
        case AsMatrix(tensor):
            return tensor
        case MatrixConstant(value):
            return TensorConstant(SparseTensor.from_numpy(value.to_numpy()))
        case Determinant():
            raise VariantMismatchError("matrix to tensor", matrix)
        case _:
            return Mat(matrix)


def as_matrix(tensor: TensorExpression) -> MatrixExpression:
    match tensor:
        case Mat(matrix):
            return matrix
        case _ if len(node_shape(tensor)) != 2:
            raise VariantMismatchError("tensor to matrix", tensor)
        case TensorConstant(value):
            return MatrixConstant(DenseMatrix(value.to_numpy()))
        case _:
            return AsMatrix(tensor)


def as_matrix_expression(expression: Expression) -> MatrixExpression:
    match expression:
        case Matrix(Determinant()):
            raise VariantMismatchError("scalar to matrix", expression)
        case Matrix(matrix):
            return matrix
        case Constant(MatrixValue(value)):
            return MatrixConstant(value)
        case _:
            return as_matrix(as_tensor(expression))


def scalarize(expression: Expression, operation: str) -> Expression:
    """Reduce an expression whose every rank has one element to rank 0."""
    shape = node_shape(expression)
    if shape == ():
        return expression
    elif is_scalar_like(shape):
        return from_tensor(squeeze(as_tensor(expression)))
    else:
        raise ShapeMismatchError(operation, shape, ())


def squeeze(tensor: TensorExpression) -> TensorExpression:
    from .inner_prod import inner_prod

    shape = node_shape(tensor)
    if isinstance(tensor, TensorConstant):
        return TensorConstant(SparseTensor.from_scalar(float(tensor.value)))
    # Summing a rank of one element drops it
    return inner_prod([tensor], [[(rank, rank) for rank in range(len(shape))]])


######################
# Scalar arithmetic
######################


def add(left, right) -> Expression:
    left, right = to_expression(left), to_expression(right)
    match (left, right):
        case (Constant(left_value), Constant(right_value)):
            return constant(left_value + right_value)
        case (_, _) if is_zero(right):
            return left
        case (_, _) if is_zero(left):
            return right
        case (_, _) if is_scalar(left) and is_scalar(right):
            return Add(left, right)
        case _:
            return from_tensor(tensor_add(as_tensor(left), as_tensor(right)))


def subtract(left, right) -> Expression:
    left, right = to_expression(left), to_expression(right)
    match (left, right):
        case (Constant(left_value), Constant(right_value)):
            return constant(left_value - right_value)
        case (_, _) if is_zero(right):
            return left
        case (_, _) if is_zero(left):
            return negate(right)
        case (_, _) if is_scalar(left) and is_scalar(right):
            return Subtract(left, right)
        case _:
            return from_tensor(tensor_subtract(as_tensor(left), as_tensor(right)))


def multiply(left, right) -> Expression:
    from .inner_prod import inner_prod

    left, right = to_expression(left), to_expression(right)
    match (left, right):
        case (Constant(left_value), Constant(right_value)):
            return constant(left_value * right_value)
        case (_, _) if is_zero(left) or is_zero(right):
            return constant(0.0)
        case (_, _) if is_one(right):
            return left
        case (_, _) if is_one(left):
            return right
        case (_, _) if is_scalar(left) and is_scalar(right):
            return Multiply(left, right)
        case (_, _) if is_scalar(left):
            return from_tensor(mul_scalar_lhs(left, as_tensor(right)))
        case (_, _) if is_scalar(right):
            return from_tensor(mul_scalar_rhs(as_tensor(left), right))
        case _:
            return from_tensor(inner_prod([as_tensor(left), as_tensor(right)], [(), ()]))


def divide(left, right) -> Expression:
    left, right = to_expression(left), to_expression(right)
    match (left, right):
        case (Constant(left_value), Constant(right_value)):
            return constant(left_value / right_value)
        case (_, _) if is_one(right):
            return left
        case (_, _) if is_zero(left):
            return constant(0.0)

    right = scalarize(right, "divide")
    if is_scalar(left):
        return Divide(left, right)
    else:
        return from_tensor(mul_scalar_rhs(as_tensor(left), divide(1.0, right)))


def negate(operand) -> Expression:
    operand = to_expression(operand)
    match operand:
        case Constant(value):
            return constant(-value)
        case Negate(inner):
            return inner
        case _ if is_scalar(operand):
            return Negate(operand)
        case _:
            return from_tensor(tensor_negate(as_tensor(operand)))


def shortest_fraction(value: float) -> Fraction:
    """Fraction with a small denominator that converts back to exactly the same float."""
    exact = Fraction(value)
    limited = exact.limit_denominator()
    return limited if float(limited) == value else exact


def to_exponent(value) -> Fraction | None:
    """Exact rational form of a numeric exponent, or None if it has none."""
    match value:
        case Fraction() | int():
            return Fraction(value)
        case Constant(ScalarValue(scalar)) if np.isfinite(scalar):
            return shortest_fraction(scalar)
        case Real() if np.isfinite(value):
            return shortest_fraction(float(value))
        case _:
            return None


def power(base, exponent) -> Expression:
    """Raise to a power.

    A numeric exponent is kept as an exact `Fraction`. Any other exponent makes a general
    transcendental power.
    """
    base = to_expression(base)
    rational = to_exponent(exponent)
    if rational is None:
        return general_power(base, to_expression(exponent))

    exponent = rational
    if exponent == 1:
        return base
    elif exponent == 0:
        return constant(1.0)
    elif isinstance(base, Constant):
        return constant(base.value.map(lambda value: np.power(value, float(exponent))))
    else:
        return Power(scalarize(base, "power"), exponent)


######################
# Transcendental functions
######################


def make_transcendental(
    node: Callable[[Expression], TranscendentalExpression],
    function: Callable[[float], float],
    argument,
) -> Expression:
    argument = to_expression(argument)
    if isinstance(argument, Constant):
        return constant(argument.value.map(function))
    else:
        return Transcendental(node(scalarize(argument, node.__name__.lower())))


def absolute(argument) -> Expression:
    return make_transcendental(Abs, np.abs, argument)


def exp(argument) -> Expression:
    return make_transcendental(Exp, np.exp, argument)


def ln(argument) -> Expression:
    return make_transcendental(Ln, np.log, argument)


def sin(argument) -> Expression:
    return make_transcendental(Sin, np.sin, argument)


def cos(argument) -> Expression:
    return make_transcendental(Cos, np.cos, argument)


def tan(argument) -> Expression:
    return make_transcendental(Tan, np.tan, argument)


def log(base, antilogarithm) -> Expression:
    """Logarithm of `antilogarithm` in `base`."""
    base, antilogarithm = to_expression(base), to_expression(antilogarithm)
    match (base, antilogarithm):
        case (Constant(ScalarValue(base_value)), Constant(value)):
            return constant(value.map(np.log) / ScalarValue(float(np.log(base_value))))
        case _:
            return Transcendental(
                Log(scalarize(base, "log"), scalarize(antilogarithm, "log"))
            )


def general_power(base: Expression, exponent: Expression) -> Expression:
    match (base, exponent):
        case (Constant(base_value), Constant(ScalarValue(exponent_value))):
            return constant(base_value.map(lambda value: np.power(value, exponent_value)))
        case _ if is_zero(exponent):
            return constant(1.0)
        case _:
            return Transcendental(Pow(scalarize(base, "pow"), scalarize(exponent, "pow")))


######################
# Tensor arithmetic
######################


def check_addable(left: TensorExpression, right: TensorExpression, operation: str):
    left_shape, right_shape = node_shape(left), node_shape(right)
    if left_shape == () or right_shape == ():
        return
    if len(left_shape) != len(right_shape):
        raise ShapeMismatchError(operation, left_shape, right_shape)


def tensor_add(left: TensorExpression, right: TensorExpression) -> TensorExpression:
    match (left, right):
        case (TensorConstant(left_value), TensorConstant(right_value)):
            return TensorConstant((TensorValue(left_value) + TensorValue(right_value)).as_tensor())
        case (Zero(), _):
            return right
        case (_, Zero()):
            return left
        case _:
            check_addable(left, right, "add")
            return TensorAdd(left, right)


def tensor_subtract(left: TensorExpression, right: TensorExpression) -> TensorExpression:
    match (left, right):
        case (TensorConstant(left_value), TensorConstant(right_value)):
            return TensorConstant((TensorValue(left_value) - TensorValue(right_value)).as_tensor())
        case (_, Zero()):
            return left
        case (Zero(), _):
            return tensor_negate(right)
        case _:
            check_addable(left, right, "subtract")
            return TensorSubtract(left, right)


def tensor_negate(operand: TensorExpression) -> TensorExpression:
    match operand:
        case TensorConstant(value):
            return TensorConstant(-value)
        case TensorNegate(inner):
            return inner
        case Zero():
            return operand
        case _:
            return TensorNegate(operand)


def mul_scalar_lhs(scalar, tensor: TensorExpression) -> TensorExpression:
    scalar = scalarize(to_expression(scalar), "scalar multiply")
    match (scalar, tensor):
        case (_, Zero()):
            return Zero()
        case _ if is_zero(scalar):
            return Zero()
        case _ if is_one(scalar):
            return tensor
        case (Constant(value), TensorConstant(tensor_value)):
            return TensorConstant(value.as_scalar() * tensor_value)
        case (_, MulScalarLhs(inner_scalar, inner_tensor)):
            return mul_scalar_lhs(multiply(scalar, inner_scalar), inner_tensor)
        case (_, MulScalarRhs(inner_tensor, inner_scalar)):
            return mul_scalar_lhs(multiply(scalar, inner_scalar), inner_tensor)
        case (_, TensorNegate(inner_tensor)):
            return mul_scalar_lhs(negate(scalar), inner_tensor)
        case _:
            return MulScalarLhs(scalar, tensor)


def mul_scalar_rhs(tensor: TensorExpression, scalar) -> TensorExpression:
    scalar = scalarize(to_expression(scalar), "scalar multiply")
    match (tensor, scalar):
        case (Zero(), _):
            return Zero()
        case _ if is_zero(scalar):
            return Zero()
        case _ if is_one(scalar):
            return tensor
        case (TensorConstant(tensor_value), Constant(value)):
            return TensorConstant(tensor_value * value.as_scalar())
        case (MulScalarRhs(inner_tensor, inner_scalar), _):
            return mul_scalar_rhs(inner_tensor, multiply(inner_scalar, scalar))
        case (MulScalarLhs(inner_scalar, inner_tensor), _):
            return mul_scalar_lhs(multiply(inner_scalar, scalar), inner_tensor)
        case (TensorNegate(inner_tensor), _):
            return mul_scalar_rhs(inner_tensor, negate(scalar))
        case _:
            return MulScalarRhs(tensor, scalar)


def dot(
    left: TensorExpression, right: TensorExpression, rank_pairs: Iterable[tuple[int, int]]
) -> TensorExpression:
    from .inner_prod import inner_prod

    left_combination, right_combination = generate_rank_combinations(rank_pairs)
    return inner_prod(
        [left, right], [sorted(left_combination.items()), sorted(right_combination.items())]
    )


def det(tensor: TensorExpression) -> TensorExpression:
    if len(node_shape(tensor)) != 2:
        raise VariantMismatchError("determinant", tensor)
    check_square(tensor, "determinant")
    match tensor:
        case TensorConstant(value):
            determinant_value = DenseMatrix(value.to_numpy()).determinant()
            return TensorConstant(SparseTensor.from_scalar(determinant_value))
        case _:
            return Det(tensor)


def tensor_element(tensor: TensorExpression, index: Iterable[int]) -> Expression:
    """Element of a tensor, or the sub-tensor left after fixing the leading ranks."""
    index = tuple(int(i) for i in index)
    if isinstance(tensor, Zero):
        return constant(0.0)

    shape = node_shape(tensor)
    if len(index) > len(shape) or any(i < 0 for i in index):
        raise IndexOutOfRangeError(index, len(shape))
    for i, size in zip(index, shape):
        if size is Size.one and i != 0:
            raise IndexOutOfRangeError(index, len(shape))

    match tensor:
        case _ if len(index) == 0:
            return from_tensor(tensor)
        case TensorConstant(value):
            if any(i >= dimension for i, dimension in zip(index, value.dimensions)):
                raise IndexOutOfRangeError(index, value.order)
            return constant(value.slice(index))
        case KroneckerDeltas(pairs) if len(index) == len(shape):
            return constant(float(all(index[left] == index[right] for left, right in pairs)))
        case _:
            return TensorElement(tensor, index)


######################
# Matrix operations
######################


def check_square(matrix: TensorExpression | MatrixExpression, operation: str):
    shape = node_shape(matrix)
    match matrix:
        case TensorConstant(value) | MatrixConstant(value) if len(set(value.dimensions)) > 1:
            raise ShapeMismatchError(operation, shape[:1], shape[1:])
        case _ if shape[0] is not shape[1]:
            raise ShapeMismatchError(operation, shape[:1], shape[1:])


def transpose(matrix: MatrixExpression) -> MatrixExpression:
    match matrix:
        case MatrixConstant(value):
            return MatrixConstant(value.transpose())
        case Transpose(inner):
            return inner
        case Determinant():
            raise VariantMismatchError("transpose", matrix)
        case _:
            return Transpose(matrix)


def inverse(matrix: MatrixExpression) -> MatrixExpression:
    match matrix:
        case MatrixConstant(value):
            check_square(matrix, "inverse")
            return MatrixConstant(value.inverse())
        case Inverse(inner):
            return inner
        case Determinant():
            raise VariantMismatchError("inverse", matrix)
        case _:
            check_square(matrix, "inverse")
            return Inverse(matrix)


def determinant(matrix: MatrixExpression) -> Expression:
    match matrix:
        case MatrixConstant(value):
            check_square(matrix, "determinant")
            return constant(value.determinant())
        case Transpose(inner):
            return determinant(inner)
        case Inverse(inner):
            return divide(1.0, determinant(inner))
        case Determinant():
            raise VariantMismatchError("determinant", matrix)
        case _:
            check_square(matrix, "determinant")
            return Matrix(Determinant(matrix))
