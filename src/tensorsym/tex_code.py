"""Render trees as LaTeX math.

Parentheses are added only where precedence requires them. Every node rendering is given the
binding level its parent requires, and wraps itself when it binds more loosely than that.
Contractions render as explicit sums with one index letter per identifier.
"""

from __future__ import annotations

__all__ = ["render_tex", "BracketsLevel"]

from dataclasses import dataclass, field
from enum import IntEnum
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
from .shape import node_shape


class BracketsLevel(IntEnum):
    """How tightly the parent binds the child being rendered."""

    none = 0
    for_mul = 1
    for_div = 2
    for_operation = 3


@dataclass(slots=True)
class TexContext:
    symbols: Mapping[str, str]
    index_base: str
    letters_used: int = field(default=0)

    def allocate_letter(self) -> str:
        code = ord(self.index_base) + self.letters_used
        if code > ord("z"):
            raise UnimplementedError(
                f"more than {self.letters_used} summation indexes starting from {self.index_base}"
            )
        self.letters_used += 1
        return chr(code)


def render_tex(
    node: Node, symbols: Mapping[str, str] | None = None, index_base: str = "i"
) -> str:
    """Render a node as LaTeX.

    Args:
        node: The tree to render.
        symbols: TeX code to use in place of each symbol name. Unmapped names render verbatim.
        index_base: The first letter used for summation indexes.
    """
    context = TexContext({} if symbols is None else symbols, index_base)
    return tex(node, context, BracketsLevel.none)


def parens(code: str, wrap: bool) -> str:
    if wrap:
        return rf"\left({code}\right)"
    else:
        return code


def format_number(value: float) -> str:
    if np.isfinite(value) and float(value).is_integer():
        return str(int(value))
    else:
        return repr(float(value))


def format_exponent(exponent: Fraction) -> str:
    if exponent.denominator == 1:
        return str(exponent.numerator)
    elif exponent < 0:
        return rf"-\frac{{{-exponent.numerator}}}{{{exponent.denominator}}}"
    else:
        return rf"\frac{{{exponent.numerator}}}{{{exponent.denominator}}}"


def format_array(array: np.ndarray) -> str:
    match array.ndim:
        case 0:
            return format_number(float(array))
        case 1:
            rows = r" \\ ".join(format_number(value) for value in array)
        case 2:
            rows = r" \\ ".join(" & ".join(format_number(value) for value in row) for row in array)
        case _:
            rows = " & ".join(format_array(sub_array) for sub_array in array)
    return rf"\begin{{pmatrix}} {rows} \end{{pmatrix}}"


def call(name: str, argument: str) -> str:
    return rf"{name}\left({argument}\right)"


@singledispatch
def tex(self: Node, context: TexContext, level: BracketsLevel) -> str:
    raise NotImplementedError(f"tex not implemented for {type(self)}: {self}")


@tex.register(Symbol)
@tex.register(TensorSymbol)
def tex_symbol(self: Symbol | TensorSymbol, context: TexContext, level: BracketsLevel) -> str:
    return context.symbols.get(self.name, self.name)


@tex.register(Constant)
def tex_constant(self: Constant, context: TexContext, level: BracketsLevel) -> str:
    match self.value:
        case ScalarValue(value):
            return parens(format_number(value), value < 0 and level >= BracketsLevel.for_mul)
        case TensorValue(tensor):
            return format_array(tensor.to_numpy())
        case MatrixValue(matrix):
            return format_array(matrix.to_numpy())


@tex.register(TensorConstant)
@tex.register(MatrixConstant)
def tex_numeric(self: TensorConstant | MatrixConstant, context: TexContext, level: BracketsLevel):
    return format_array(self.value.to_numpy())


@tex.register(Zero)
def tex_zero(self: Zero, context: TexContext, level: BracketsLevel) -> str:
    return "0"


@tex.register(Add)
@tex.register(TensorAdd)
def tex_add(self: Add | TensorAdd, context: TexContext, level: BracketsLevel) -> str:
    left = tex(self.left, context, BracketsLevel.none)
    right = tex(self.right, context, BracketsLevel.none)
    return parens(f"{left} + {right}", level >= BracketsLevel.for_mul)


@tex.register(Subtract)
@tex.register(TensorSubtract)
def tex_subtract(self: Subtract | TensorSubtract, context: TexContext, level: BracketsLevel):
    # The right operand of a subtraction must not be another sum
    left = tex(self.left, context, BracketsLevel.none)
    right = tex(self.right, context, BracketsLevel.for_mul)
    return parens(f"{left} - {right}", level >= BracketsLevel.for_mul)


def tex_product(left: str, right: str, level: BracketsLevel) -> str:
    return parens(rf"{left} \cdot {right}", level >= BracketsLevel.for_operation)


@tex.register(Multiply)
def tex_multiply(self: Multiply, context: TexContext, level: BracketsLevel) -> str:
    left = tex(self.left, context, BracketsLevel.for_mul)
    right = tex(self.right, context, BracketsLevel.for_mul)
    return tex_product(left, right, level)


@tex.register(MulScalarLhs)
def tex_mul_scalar_lhs(self: MulScalarLhs, context: TexContext, level: BracketsLevel) -> str:
    left = tex(self.scalar, context, BracketsLevel.for_mul)
    right = tex(self.tensor, context, BracketsLevel.for_mul)
    return tex_product(left, right, level)


@tex.register(MulScalarRhs)
def tex_mul_scalar_rhs(self: MulScalarRhs, context: TexContext, level: BracketsLevel) -> str:
    left = tex(self.tensor, context, BracketsLevel.for_mul)
    right = tex(self.scalar, context, BracketsLevel.for_mul)
    return tex_product(left, right, level)


@tex.register(Divide)
def tex_divide(self: Divide, context: TexContext, level: BracketsLevel) -> str:
    numerator = tex(self.left, context, BracketsLevel.none)
    denominator = tex(self.right, context, BracketsLevel.none)
    return rf"\frac{{{numerator}}}{{{denominator}}}"


@tex.register(Negate)
@tex.register(TensorNegate)
def tex_negate(self: Negate | TensorNegate, context: TexContext, level: BracketsLevel) -> str:
    operand = tex(self.operand, context, BracketsLevel.for_mul)
    return parens(f"-{operand}", level >= BracketsLevel.for_mul)


@tex.register(Power)
def tex_power(self: Power, context: TexContext, level: BracketsLevel) -> str:
    base = tex(self.base, context, BracketsLevel.for_operation)
    return parens(
        f"{{{base}}}^{{{format_exponent(self.exponent)}}}", level >= BracketsLevel.for_operation
    )


@tex.register(Transcendental)
@tex.register(Tensor)
@tex.register(Matrix)
@tex.register(Mat)
@tex.register(AsMatrix)
def tex_wrapper(self: Node, context: TexContext, level: BracketsLevel) -> str:
    match self:
        case Transcendental(function):
            return tex(function, context, level)
        case Tensor(tensor) | AsMatrix(tensor):
            return tex(tensor, context, level)
        case Matrix(matrix) | Mat(matrix):
            return tex(matrix, context, level)


@tex.register(TensorElement)
def tex_tensor_element(self: TensorElement, context: TexContext, level: BracketsLevel) -> str:
    tensor = tex(self.tensor, context, BracketsLevel.for_operation)
    index = ", ".join(str(i + 1) for i in self.index)
    return f"{{{tensor}}}_{{{index}}}"


@tex.register(Abs)
def tex_abs(self: Abs, context: TexContext, level: BracketsLevel) -> str:
    return rf"\left|{tex(self.argument, context, BracketsLevel.none)}\right|"


@tex.register(Exp)
def tex_exp(self: Exp, context: TexContext, level: BracketsLevel) -> str:
    return call(r"\exp", tex(self.argument, context, BracketsLevel.none))


@tex.register(Ln)
def tex_ln(self: Ln, context: TexContext, level: BracketsLevel) -> str:
    return call(r"\ln", tex(self.argument, context, BracketsLevel.none))


@tex.register(Sin)
def tex_sin(self: Sin, context: TexContext, level: BracketsLevel) -> str:
    return call(r"\sin", tex(self.argument, context, BracketsLevel.none))


@tex.register(Cos)
def tex_cos(self: Cos, context: TexContext, level: BracketsLevel) -> str:
    return call(r"\cos", tex(self.argument, context, BracketsLevel.none))


@tex.register(Tan)
def tex_tan(self: Tan, context: TexContext, level: BracketsLevel) -> str:
    return call(r"\tan", tex(self.argument, context, BracketsLevel.none))


@tex.register(Log)
def tex_log(self: Log, context: TexContext, level: BracketsLevel) -> str:
    base = tex(self.base, context, BracketsLevel.none)
    return call(rf"\log_{{{base}}}", tex(self.antilogarithm, context, BracketsLevel.none))


@tex.register(Pow)
def tex_pow(self: Pow, context: TexContext, level: BracketsLevel) -> str:
    base = tex(self.base, context, BracketsLevel.for_operation)
    exponent = tex(self.exponent, context, BracketsLevel.none)
    return parens(f"{{{base}}}^{{{exponent}}}", level >= BracketsLevel.for_operation)


@tex.register(KroneckerDeltas)
def tex_kronecker_deltas(self: KroneckerDeltas, context: TexContext, level: BracketsLevel):
    return " ".join(rf"\delta_{{[{left}], [{right}]}}" for left, right in self.pairs)


@tex.register(InnerProd)
def tex_inner_prod(self: InnerProd, context: TexContext, level: BracketsLevel) -> str:
    # Letters stay reserved only while the terms of this contraction render
    enclosing_letters_used = context.letters_used
    letters = {}
    for combination in self.rank_combinations:
        for _, identifier in combination:
            if identifier not in letters:
                letters[identifier] = context.allocate_letter()

    rendered_terms = []
    for term, combination in zip(self.terms, self.rank_combinations):
        code = tex(term, context, BracketsLevel.for_operation)
        if len(combination) > 0:
            contracted = dict(combination)
            subscripts = ", ".join(
                letters[contracted[rank]] if rank in contracted else r"\cdot"
                for rank in range(len(node_shape(term)))
            )
            code = f"{{{code}}}_{{{subscripts}}}"
        rendered_terms.append(code)
    context.letters_used = enclosing_letters_used

    product = " ".join(rendered_terms)
    if len(letters) == 0:
        return parens(product, level >= BracketsLevel.for_operation)
    else:
        summation = rf"\sum_{{{', '.join(letters.values())}}} {product}"
        return parens(summation, level >= BracketsLevel.for_mul)


@tex.register(Det)
@tex.register(Determinant)
def tex_determinant(self: Det | Determinant, context: TexContext, level: BracketsLevel):
    match self:
        case Det(tensor):
            argument = tex(tensor, context, BracketsLevel.none)
        case Determinant(matrix):
            argument = tex(matrix, context, BracketsLevel.none)
    return call(r"\det", argument)


@tex.register(Transpose)
def tex_transpose(self: Transpose, context: TexContext, level: BracketsLevel) -> str:
    return rf"{{{tex(self.matrix, context, BracketsLevel.for_operation)}}}^{{\top}}"


@tex.register(Inverse)
def tex_inverse(self: Inverse, context: TexContext, level: BracketsLevel) -> str:
    return f"{{{tex(self.matrix, context, BracketsLevel.for_operation)}}}^{{-1}}"
