from __future__ import annotations

__all__ = [
    "Node",
    "Expression",
    "Symbol",
    "Constant",
    "Add",
    "Subtract",
    "Multiply",
    "Divide",
    "Negate",
    "Power",
    "Transcendental",
    "Tensor",
    "Matrix",
    "TensorElement",
    "TranscendentalExpression",
    "Abs",
    "Pow",
    "Exp",
    "Log",
    "Ln",
    "Sin",
    "Cos",
    "Tan",
    "TensorExpression",
    "TensorSymbol",
    "TensorConstant",
    "Zero",
    "KroneckerDeltas",
    "TensorAdd",
    "TensorSubtract",
    "MulScalarLhs",
    "MulScalarRhs",
    "TensorNegate",
    "InnerProd",
    "Det",
    "Mat",
    "MatrixExpression",
    "AsMatrix",
    "MatrixConstant",
    "Transpose",
    "Inverse",
    "Determinant",
]

from dataclasses import dataclass
from fractions import Fraction
from typing import Iterable, Mapping

from .constant_value import ConstantValue
from .linalg import DenseMatrix, SparseTensor
from .size import Size


class Node:
    """Common base of every node family.

    Nodes are immutable. They should be built through the functions in `tensorsym.operators`
    (or the Python operators, which call those functions) so that trees stay normalized. Calling
    a node class directly skips normalization and validation.
    """

    __slots__ = ()

    def differential(self, variables: Iterable[str]) -> list:
        """Differentiate with respect to each variable, in order."""
        from .differential import differential

        return differential(self, variables)

    def assign(self, bindings: Mapping[str, ConstantValue | SparseTensor | DenseMatrix | float]):
        """Substitute values for symbols and fold the constants this produces."""
        from .assign import assign

        return assign(self, bindings)

    def tex_code(self, symbols: Mapping[str, str] | None = None) -> str:
        from .tex_code import render_tex

        return render_tex(self, symbols)

    def source_code(self, names: Mapping[str, str] | None = None) -> str:
        from .source_code import render_source

        return render_source(self, names)


class Expression(Node):
    __slots__ = ()

    def __add__(self, other):
        from .operators import add

        return add(self, other)

    def __radd__(self, other):
        from .operators import add

        return add(other, self)

    def __sub__(self, other):
        from .operators import subtract

        return subtract(self, other)

    def __rsub__(self, other):
        from .operators import subtract

        return subtract(other, self)

    def __mul__(self, other):
        from .operators import multiply

        return multiply(self, other)

    def __rmul__(self, other):
        from .operators import multiply

        return multiply(other, self)

    def __truediv__(self, other):
        from .operators import divide

        return divide(self, other)

    def __rtruediv__(self, other):
        from .operators import divide

        return divide(other, self)

    def __neg__(self):
        from .operators import negate

        return negate(self)

    def __pow__(self, exponent):
        from .operators import power

        return power(self, exponent)

    def __abs__(self):
        from .operators import absolute

        return absolute(self)

    def __getitem__(self, index):
        return self.element(*index) if isinstance(index, tuple) else self.element(index)

    def exp(self) -> Expression:
        from .operators import exp

        return exp(self)

    def ln(self) -> Expression:
        from .operators import ln

        return ln(self)

    def log(self, base) -> Expression:
        from .operators import log

        return log(base, self)

    def sin(self) -> Expression:
        from .operators import sin

        return sin(self)

    def cos(self) -> Expression:
        from .operators import cos

        return cos(self)

    def tan(self) -> Expression:
        from .operators import tan

        return tan(self)

    def pow(self, exponent) -> Expression:
        from .operators import power

        return power(self, exponent)

    def dot(self, other, rank_pairs: Iterable[tuple[int, int]]) -> Expression:
        """Contract ranks of this expression with ranks of another.

        Each pair is `(rank of self, rank of other)`. Uncontracted ranks of both operands stay at
        their positions.
        """
        from .operators import as_tensor, dot, from_tensor, to_expression

        return from_tensor(dot(as_tensor(self), as_tensor(to_expression(other)), rank_pairs))

    def t(self) -> Expression:
        from .operators import as_matrix_expression, from_matrix, transpose

        return from_matrix(transpose(as_matrix_expression(self)))

    def inv(self) -> Expression:
        from .operators import as_matrix_expression, from_matrix, inverse

        return from_matrix(inverse(as_matrix_expression(self)))

    def det(self) -> Expression:
        from .operators import as_matrix_expression, determinant

        return determinant(as_matrix_expression(self))

    def element(self, *index: int) -> Expression:
        from .operators import as_tensor, tensor_element

        return tensor_element(as_tensor(self), index)


@dataclass(frozen=True, slots=True)
class Symbol(Expression):
    name: str
    shape: tuple[Size, ...] = ()


@dataclass(frozen=True, slots=True)
class Constant(Expression):
    value: ConstantValue


@dataclass(frozen=True, slots=True)
class Add(Expression):
    left: Expression
    right: Expression


@dataclass(frozen=True, slots=True)
class Subtract(Expression):
    left: Expression
    right: Expression


@dataclass(frozen=True, slots=True)
class Multiply(Expression):
    left: Expression
    right: Expression


@dataclass(frozen=True, slots=True)
class Divide(Expression):
    left: Expression
    right: Expression


@dataclass(frozen=True, slots=True)
class Negate(Expression):
    operand: Expression


@dataclass(frozen=True, slots=True)
class Power(Expression):
    base: Expression
    exponent: Fraction


@dataclass(frozen=True, slots=True)
class Transcendental(Expression):
    function: TranscendentalExpression


@dataclass(frozen=True, slots=True)
class Tensor(Expression):
    tensor: TensorExpression


@dataclass(frozen=True, slots=True)
class Matrix(Expression):
    matrix: MatrixExpression


@dataclass(frozen=True, slots=True)
class TensorElement(Expression):
    """Element, or leading-rank slice, of a tensor."""

    tensor: TensorExpression
    index: tuple[int, ...]


class TranscendentalExpression(Node):
    __slots__ = ()


@dataclass(frozen=True, slots=True)
class Abs(TranscendentalExpression):
    argument: Expression


@dataclass(frozen=True, slots=True)
class Pow(TranscendentalExpression):
    base: Expression
    exponent: Expression


@dataclass(frozen=True, slots=True)
class Exp(TranscendentalExpression):
    argument: Expression


@dataclass(frozen=True, slots=True)
class Log(TranscendentalExpression):
    base: Expression
    antilogarithm: Expression


@dataclass(frozen=True, slots=True)
class Ln(TranscendentalExpression):
    argument: Expression


@dataclass(frozen=True, slots=True)
class Sin(TranscendentalExpression):
    argument: Expression


@dataclass(frozen=True, slots=True)
class Cos(TranscendentalExpression):
    argument: Expression


@dataclass(frozen=True, slots=True)
class Tan(TranscendentalExpression):
    argument: Expression


class TensorExpression(Node):
    __slots__ = ()

    def __add__(self, other):
        from .operators import tensor_add, to_tensor

        return tensor_add(self, to_tensor(other))

    def __radd__(self, other):
        from .operators import tensor_add, to_tensor

        return tensor_add(to_tensor(other), self)

    def __sub__(self, other):
        from .operators import tensor_subtract, to_tensor

        return tensor_subtract(self, to_tensor(other))

    def __rsub__(self, other):
        from .operators import tensor_subtract, to_tensor

        return tensor_subtract(to_tensor(other), self)

    def __mul__(self, other):
        from .operators import as_tensor, from_tensor, multiply

        return as_tensor(multiply(from_tensor(self), other))

    def __rmul__(self, other):
        from .operators import as_tensor, from_tensor, multiply

        return as_tensor(multiply(other, from_tensor(self)))

    def __neg__(self):
        from .operators import tensor_negate

        return tensor_negate(self)

    def dot(self, other: TensorExpression, rank_pairs: Iterable[tuple[int, int]]):
        from .operators import dot

        return dot(self, other, rank_pairs)

    def det(self) -> TensorExpression:
        from .operators import det

        return det(self)


@dataclass(frozen=True, slots=True)
class TensorSymbol(TensorExpression):
    name: str
    shape: tuple[Size, ...]


@dataclass(frozen=True, slots=True)
class TensorConstant(TensorExpression):
    value: SparseTensor


@dataclass(frozen=True, slots=True)
class Zero(TensorExpression):
    pass


@dataclass(frozen=True, slots=True)
class KroneckerDeltas(TensorExpression):
    """Product of identity maps between pairs of ranks.

    The rank is one more than the largest paired rank. Paired ranks have many elements; every
    other rank has one.
    """

    pairs: tuple[tuple[int, int], ...]


@dataclass(frozen=True, slots=True)
class TensorAdd(TensorExpression):
    left: TensorExpression
    right: TensorExpression


@dataclass(frozen=True, slots=True)
class TensorSubtract(TensorExpression):
    left: TensorExpression
    right: TensorExpression


@dataclass(frozen=True, slots=True)
class MulScalarLhs(TensorExpression):
    scalar: Expression
    tensor: TensorExpression


@dataclass(frozen=True, slots=True)
class MulScalarRhs(TensorExpression):
    tensor: TensorExpression
    scalar: Expression


@dataclass(frozen=True, slots=True)
class TensorNegate(TensorExpression):
    operand: TensorExpression


@dataclass(frozen=True, slots=True)
class InnerProd(TensorExpression):
    """Sum of products of terms over shared identifiers.

    `rank_combinations[i]` is a sorted tuple of `(rank, identifier)` pairs for `terms[i]`. Ranks
    sharing an identifier are summed over. Every other rank of every term is free and lands at
    the same position in the result.
    """

    terms: tuple[TensorExpression, ...]
    rank_combinations: tuple[tuple[tuple[int, int], ...], ...]


@dataclass(frozen=True, slots=True)
class Det(TensorExpression):
    tensor: TensorExpression


@dataclass(frozen=True, slots=True)
class Mat(TensorExpression):
    matrix: MatrixExpression


class MatrixExpression(Node):
    __slots__ = ()

    def t(self) -> MatrixExpression:
        from .operators import transpose

        return transpose(self)

    def inv(self) -> MatrixExpression:
        from .operators import inverse

        return inverse(self)

    def det(self) -> Expression:
        from .operators import determinant

        return determinant(self)


@dataclass(frozen=True, slots=True)
class AsMatrix(MatrixExpression):
    tensor: TensorExpression


@dataclass(frozen=True, slots=True)
class MatrixConstant(MatrixExpression):
    value: DenseMatrix


@dataclass(frozen=True, slots=True)
class Transpose(MatrixExpression):
    matrix: MatrixExpression


@dataclass(frozen=True, slots=True)
class Inverse(MatrixExpression):
    matrix: MatrixExpression


@dataclass(frozen=True, slots=True)
class Determinant(MatrixExpression):
    """Determinant of a matrix; a scalar, only valid directly inside `Matrix`."""

    matrix: MatrixExpression
