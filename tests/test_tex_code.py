from fractions import Fraction

import pytest

from tensorsym import (
    Size,
    SparseTensor,
    UnimplementedError,
    constant,
    exp,
    log,
    power,
    render_tex,
    symbol,
)
from tensorsym.ast import KroneckerDeltas, Tensor, Zero

a = symbol("a")
b = symbol("b")
c = symbol("c")
x = symbol("x")
y = symbol("y")
v = symbol("v", (Size.many,))
w = symbol("w", (Size.many,))
A = symbol("A", (Size.many, Size.many))
B = symbol("B", (Size.many, Size.many))
M = symbol("M", (Size.many, Size.many))


@pytest.mark.parametrize(
    ("expression", "expected"),
    [
        (a + b, "a + b"),
        (a - (b - c), r"a - \left(b - c\right)"),
        ((a - b) - c, "a - b - c"),
        (a + (b + c), "a + b + c"),
        ((a + b) * c, r"\left(a + b\right) \cdot c"),
        (a * (b * c), r"a \cdot b \cdot c"),
        (-(a + b), r"-\left(a + b\right)"),
        (-(a * b), r"-a \cdot b"),
        (a - (-b), r"a - \left(-b\right)"),
        (a / (b + c), r"\frac{a}{b + c}"),
        ((a + b) / c * a, r"\frac{a + b}{c} \cdot a"),
        (x * -2, r"x \cdot \left(-2\right)"),
        (constant(2.5), "2.5"),
    ],
)
def test_precedence(expression, expected):
    assert render_tex(expression) == expected


@pytest.mark.parametrize(
    ("expression", "expected"),
    [
        (x**2, "{x}^{2}"),
        (x ** Fraction(1, 2), r"{x}^{\frac{1}{2}}"),
        (x ** Fraction(-1, 2), r"{x}^{-\frac{1}{2}}"),
        (x**-1, "{x}^{-1}"),
        ((x + y) ** 2, r"{\left(x + y\right)}^{2}"),
        (x**2 * y, r"{x}^{2} \cdot y"),
        (power(x, y), "{x}^{y}"),
    ],
)
def test_powers(expression, expected):
    assert render_tex(expression) == expected


@pytest.mark.parametrize(
    ("expression", "expected"),
    [
        (exp(x), r"\exp\left(x\right)"),
        (x.ln(), r"\ln\left(x\right)"),
        (x.sin(), r"\sin\left(x\right)"),
        (x.cos(), r"\cos\left(x\right)"),
        (x.tan(), r"\tan\left(x\right)"),
        (abs(x - y), r"\left|x - y\right|"),
        (log(2, x), r"\log_{2}\left(x\right)"),
        (exp(x + y) * 2, r"\exp\left(x + y\right) \cdot 2"),
    ],
)
def test_functions(expression, expected):
    assert render_tex(expression) == expected


@pytest.mark.parametrize(
    ("expression", "expected"),
    [
        (v.dot(w, [(0, 0)]), r"\sum_{i} {v}_{i} {w}_{i}"),
        (A.dot(v, [(1, 0)]), r"\sum_{i} {A}_{\cdot, i} {v}_{i}"),
        (A.dot(B, [(1, 0)]).dot(v, [(1, 0)]), r"\sum_{i, j} {A}_{\cdot, i} {B}_{i, j} {v}_{j}"),
        (v[0], "{v}_{1}"),
        (A[1, 0], "{A}_{2, 1}"),
        (M.t(), r"{M}^{\top}"),
        (M.inv(), "{M}^{-1}"),
        (M.det(), r"\det\left(M\right)"),
        (M.t().det() * x, r"\det\left(M\right) \cdot x"),
        (Tensor(KroneckerDeltas(((0, 1),))), r"\delta_{[0], [1]}"),
        (constant(SparseTensor.from_lol([1, 2])), r"\begin{pmatrix} 1 \\ 2 \end{pmatrix}"),
    ],
)
def test_tensors(expression, expected):
    assert render_tex(expression) == expected


def test_zero():
    assert render_tex(Zero()) == "0"


def test_symbol_substitution():
    assert render_tex(x * y, {"x": r"\alpha"}) == r"\alpha \cdot y"


def test_index_base():
    assert render_tex(v.dot(w, [(0, 0)]), index_base="k") == r"\sum_{k} {v}_{k} {w}_{k}"


def test_index_letters_run_out():
    with pytest.raises(UnimplementedError):
        render_tex(A.dot(B, [(1, 0)]).dot(v, [(1, 0)]), index_base="z")


def test_tex_code_method():
    assert (x + y).tex_code() == "x + y"


def test_sibling_contractions_reuse_index_letters():
    quadratic_forms = [
        v.dot(symbol(f"A_{k}", (Size.many, Size.many)).dot(v, [(1, 0)]), [(0, 0)])
        for k in range(10)
    ]

    code = render_tex(sum(quadratic_forms))

    assert code.count(r"\sum_{i, j}") == 10
