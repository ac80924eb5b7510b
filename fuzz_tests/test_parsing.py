import hypothesis.strategies as st
from hypothesis import given
from parsita import ParseError
from returns.result import Failure, Success

from tensorsym import AlgebraError, parse_expression
from tensorsym.ast import Expression


@given(st.text())
def test_expression_parsing_cannot_crash(string):
    match parse_expression(string):
        case Success(Expression()):
            pass
        case Failure(ParseError() | AlgebraError()):
            pass
        case _:
            raise RuntimeError("Unexpected result")


@given(st.text(alphabet="xyz0123456789+-*/^() .", max_size=30))
def test_arithmetic_parsing_cannot_crash(string):
    match parse_expression(string):
        case Success(Expression()):
            pass
        case Failure(ParseError() | AlgebraError()):
            pass
        case _:
            raise RuntimeError("Unexpected result")
