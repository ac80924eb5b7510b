__all__ = ["parse_expression"]

from fractions import Fraction

from parsita import ParseError, ParserContext, lit, opt, reg, rep
from parsita.util import splat
from returns import result

from .ast import Expression
from .exceptions import AlgebraError
from .operators import (
    absolute,
    add,
    constant,
    cos,
    divide,
    exp,
    ln,
    log,
    multiply,
    negate,
    power,
    sin,
    subtract,
    symbol,
    tan,
)

functions = {"exp": exp, "ln": ln, "sin": sin, "cos": cos, "tan": tan, "abs": absolute}


def make_rational(sign, numerator, denominator):
    value = Fraction(int(numerator), int(denominator[0]) if denominator else 1)
    return -value if sign else value


def make_call(name, argument):
    return functions[name](argument)


def make_power(base, exponent):
    if exponent:
        return power(base, exponent[0])
    else:
        return base


def make_negation(signs, operand):
    value = operand
    for _ in signs:
        value = negate(value)
    return value


def make_term(first, rest):
    value = first
    for op, factor in rest:
        match op:
            case "*":
                value = multiply(value, factor)
            case "/":
                value = divide(value, factor)
    return value


def make_expression(first, rest):
    value = first
    for op, term in rest:
        match op:
            case "+":
                value = add(value, term)
            case "-":
                value = subtract(value, term)
    return value


class ExpressionParsers(ParserContext, whitespace=r"[ ]*"):
    name = reg(r"[A-Za-z_][A-Za-z0-9_]*")
    number = reg(r"[0-9]+(\.[0-9]+)?([Ee][+-]?[0-9]+)?") > (lambda x: constant(float(x)))

    natural = reg(r"[0-9]+")
    positive = reg(r"[0-9]*[1-9][0-9]*")
    rational = opt(lit("-")) & natural & opt("/" >> positive) > splat(make_rational)
    exponent = (natural > (lambda x: Fraction(int(x)))) | "(" >> rational << ")"

    function_call = lit(*functions) & "(" >> expression << ")" > splat(make_call)  # noqa: F821
    arguments = "(" >> expression & "," >> expression << ")"  # noqa: F821
    log_call = lit("log") >> arguments > splat(log)
    pow_call = lit("pow") >> arguments > splat(power)
    variable = name > symbol
    parentheses = "(" >> expression << ")"  # noqa: F821
    atom = function_call | log_call | pow_call | number | variable | parentheses

    factor = atom & opt("^" >> exponent) > splat(make_power)
    unary = rep(lit("-")) & factor > splat(make_negation)
    term = unary & rep(lit("*", "/") & unary) > splat(make_term)
    expression = term & rep(lit("+", "-") & term) > splat(make_expression)


def parse_expression(string: str) -> result.Result[Expression, ParseError | AlgebraError]:
    """Parse a scalar formula.

    Every name is a scalar symbol. Supported syntax is numbers, `+ - * /`, unary minus, `^` with
    an integer or parenthesized rational exponent such as `x^(-1/2)`, and the functions `exp`,
    `ln`, `sin`, `cos`, `tan`, `abs`, `log(base, x)`, and `pow(base, exponent)`.
    """
    try:
        return ExpressionParsers.expression.parse(string)
    except AlgebraError as e:
        return result.Failure(e)
