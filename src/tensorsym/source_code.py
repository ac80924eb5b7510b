"""Render trees as Python source over NumPy arrays.

The generated code expects `numpy` imported as `np` and the `contract` and `kronecker_deltas`
functions of `tensorsym.linalg` in scope. Each symbol is a variable holding a float or an array.
"""

from __future__ import annotations

__all__ = ["render_source", "SOURCE_PRELUDE"]

from fractions import Fraction
from functools import singledispatch
from typing import Mapping

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
from .constant_value import MatrixValue, ScalarValue, TensorValue
from .exceptions import UnimplementedError
from .tex_code import BracketsLevel

SOURCE_PRELUDE = "import numpy as np\nfrom tensorsym.linalg import contract, kronecker_deltas\n"


def render_source(node: Node, names: Mapping[str, str] | None = None) -> str:
    """Render a node as a Python expression.

    Args:
        node: The tree to render.
        names: Variable name to use in place of each symbol name. Unmapped names render verbatim.
    """
    return source(node, {} if names is None else names, BracketsLevel.none)


def parens(code: str, wrap: bool) -> str:
    if wrap:
        return f"({code})"
    else:
        return code


def format_number(value: float) -> str:
    if np.isnan(value):
        return "np.nan"
    elif np.isinf(value):
        return "np.inf" if value > 0 else "-np.inf"
    else:
        return repr(float(value))


def format_array(array: np.ndarray) -> str:
    return f"np.array({array.tolist()!r})"


def format_exponent(exponent: Fraction) -> str:
    if exponent.denominator == 1:
        return f"{exponent.numerator}.0"
    else:
        return f"{exponent.numerator} / {exponent.denominator}"


@singledispatch
def source(self: Node, names: Mapping[str, str], level: BracketsLevel) -> str:
    raise NotImplementedError(f"source not implemented for {type(self)}: {self}")


@source.register(Symbol)
@source.register(TensorSymbol)
def source_symbol(self: Symbol | TensorSymbol, names: Mapping[str, str], level: BracketsLevel):
    return names.get(self.name, self.name)


@source.register(Constant)
def source_constant(self: Constant, names: Mapping[str, str], level: BracketsLevel) -> str:
    match self.value:
        case ScalarValue(value):
            code = format_number(value)
            return parens(code, code.startswith("-") and level >= BracketsLevel.for_mul)
        case TensorValue(tensor):
            return format_array(tensor.to_numpy())
        case MatrixValue(matrix):
            return format_array(matrix.to_numpy())


@source.register(TensorConstant)
@source.register(MatrixConstant)
def source_numeric(
    self: TensorConstant | MatrixConstant, names: Mapping[str, str], level: BracketsLevel
) -> str:
    return format_array(self.value.to_numpy())


@source.register(Zero)
def source_zero(self: Zero, names: Mapping[str, str], level: BracketsLevel) -> str:
    return "0.0"


@source.register(Add)
@source.register(TensorAdd)
def source_add(self: Add | TensorAdd, names: Mapping[str, str], level: BracketsLevel) -> str:
    left = source(self.left, names, BracketsLevel.none)
    right = source(self.right, names, BracketsLevel.for_mul)
    return parens(f"{left} + {right}", level >= BracketsLevel.for_mul)


@source.register(Subtract)
@source.register(TensorSubtract)
def source_subtract(
    self: Subtract | TensorSubtract, names: Mapping[str, str], level: BracketsLevel
) -> str:
    left = source(self.left, names, BracketsLevel.none)
    right = source(self.right, names, BracketsLevel.for_mul)
    return parens(f"{left} - {right}", level >= BracketsLevel.for_mul)


def source_product(left: str, right: str, level: BracketsLevel) -> str:
    return parens(f"{left} * {right}", level >= BracketsLevel.for_div)


@source.register(Multiply)
def source_multiply(self: Multiply, names: Mapping[str, str], level: BracketsLevel) -> str:
    left = source(self.left, names, BracketsLevel.for_mul)
    right = source(self.right, names, BracketsLevel.for_div)
    return source_product(left, right, level)


@source.register(MulScalarLhs)
def source_mul_scalar_lhs(self: MulScalarLhs, names: Mapping[str, str], level: BracketsLevel):
    left = source(self.scalar, names, BracketsLevel.for_mul)
    right = source(self.tensor, names, BracketsLevel.for_div)
    return source_product(left, right, level)


@source.register(MulScalarRhs)
def source_mul_scalar_rhs(self: MulScalarRhs, names: Mapping[str, str], level: BracketsLevel):
    left = source(self.tensor, names, BracketsLevel.for_mul)
    right = source(self.scalar, names, BracketsLevel.for_div)
    return source_product(left, right, level)


@source.register(Divide)
def source_divide(self: Divide, names: Mapping[str, str], level: BracketsLevel) -> str:
    # Division is not associative, so the denominator binds tighter than the numerator
    left = source(self.left, names, BracketsLevel.for_mul)
    right = source(self.right, names, BracketsLevel.for_div)
    return parens(f"{left} / {right}", level >= BracketsLevel.for_div)


@source.register(Negate)
@source.register(TensorNegate)
def source_negate(
    self: Negate | TensorNegate, names: Mapping[str, str], level: BracketsLevel
) -> str:
    operand = source(self.operand, names, BracketsLevel.for_mul)
    return parens(f"-{operand}", level >= BracketsLevel.for_mul)


@source.register(Power)
def source_power(self: Power, names: Mapping[str, str], level: BracketsLevel) -> str:
    base = source(self.base, names, BracketsLevel.none)
    return f"np.power({base}, {format_exponent(self.exponent)})"


@source.register(Transcendental)
@source.register(Tensor)
@source.register(Matrix)
@source.register(Mat)
@source.register(AsMatrix)
def source_wrapper(self: Node, names: Mapping[str, str], level: BracketsLevel) -> str:
    match self:
        case Transcendental(function):
            return source(function, names, level)
        case Tensor(tensor) | AsMatrix(tensor):
            return source(tensor, names, level)
        case Matrix(matrix) | Mat(matrix):
            return source(matrix, names, level)


@source.register(TensorElement)
def source_tensor_element(self: TensorElement, names: Mapping[str, str], level: BracketsLevel):
    tensor = source(self.tensor, names, BracketsLevel.for_operation)
    index = ", ".join(str(i) for i in self.index)
    return f"{tensor}[{index}]"


def call(function: str, *arguments: Node, names: Mapping[str, str]) -> str:
    rendered = ", ".join(source(argument, names, BracketsLevel.none) for argument in arguments)
    return f"{function}({rendered})"


@source.register(Abs)
def source_abs(self: Abs, names: Mapping[str, str], level: BracketsLevel) -> str:
    return call("np.abs", self.argument, names=names)


@source.register(Exp)
def source_exp(self: Exp, names: Mapping[str, str], level: BracketsLevel) -> str:
    return call("np.exp", self.argument, names=names)


@source.register(Ln)
def source_ln(self: Ln, names: Mapping[str, str], level: BracketsLevel) -> str:
    return call("np.log", self.argument, names=names)


@source.register(Sin)
def source_sin(self: Sin, names: Mapping[str, str], level: BracketsLevel) -> str:
    return call("np.sin", self.argument, names=names)


@source.register(Cos)
def source_cos(self: Cos, names: Mapping[str, str], level: BracketsLevel) -> str:
    return call("np.cos", self.argument, names=names)


@source.register(Tan)
def source_tan(self: Tan, names: Mapping[str, str], level: BracketsLevel) -> str:
    return call("np.tan", self.argument, names=names)


@source.register(Log)
def source_log(self: Log, names: Mapping[str, str], level: BracketsLevel) -> str:
    antilogarithm = call("np.log", self.antilogarithm, names=names)
    base = call("np.log", self.base, names=names)
    return parens(f"{antilogarithm} / {base}", level >= BracketsLevel.for_div)


@source.register(Pow)
def source_pow(self: Pow, names: Mapping[str, str], level: BracketsLevel) -> str:
    return call("np.power", self.base, self.exponent, names=names)


@source.register(KroneckerDeltas)
def source_kronecker_deltas(self: KroneckerDeltas, names: Mapping[str, str], level: BracketsLevel):
    raise UnimplementedError("source code for Kronecker deltas outside of a contraction")


@source.register(InnerProd)
def source_inner_prod(self: InnerProd, names: Mapping[str, str], level: BracketsLevel) -> str:
    operands = []
    for term in self.terms:
        if isinstance(term, KroneckerDeltas):
            operands.append(f"kronecker_deltas({list(term.pairs)!r})")
        else:
            operands.append(source(term, names, BracketsLevel.none))
    combinations = [dict(combination) for combination in self.rank_combinations]
    return f"contract([{', '.join(operands)}], {combinations!r})"


@source.register(Det)
def source_det(self: Det, names: Mapping[str, str], level: BracketsLevel) -> str:
    return call("np.linalg.det", self.tensor, names=names)


@source.register(Determinant)
def source_determinant(self: Determinant, names: Mapping[str, str], level: BracketsLevel):
    return call("np.linalg.det", self.matrix, names=names)


@source.register(Transpose)
def source_transpose(self: Transpose, names: Mapping[str, str], level: BracketsLevel) -> str:
    return call("np.transpose", self.matrix, names=names)


@source.register(Inverse)
def source_inverse(self: Inverse, names: Mapping[str, str], level: BracketsLevel) -> str:
    return call("np.linalg.inv", self.matrix, names=names)
