import operator

import hypothesis.strategies as st

from tensorsym import constant, cos, exp, ln, log, power, sin, symbol, tan
from tensorsym.operators import absolute

names = st.sampled_from(["x", "y", "z"])
numbers = st.floats(min_value=-100, max_value=100, allow_nan=False, allow_infinity=False)
exponents = st.fractions(min_value=-4, max_value=4, max_denominator=4)

leaves = st.builds(symbol, names) | st.builds(constant, numbers)


def extend(children):
    return (
        st.builds(operator.add, children, children)
        | st.builds(operator.sub, children, children)
        | st.builds(operator.mul, children, children)
        | st.builds(operator.truediv, children, children)
        | st.builds(operator.neg, children)
        | st.builds(power, children, exponents)
        | st.builds(power, children, children)
        | st.builds(log, children, children)
        | st.sampled_from([absolute, exp, ln, sin, cos, tan]).flatmap(
            lambda function: st.builds(function, children)
        )
    )


scalar_expressions = st.recursive(leaves, extend, max_leaves=8)


@st.composite
def bindings(draw) -> dict[str, float]:
    return {name: draw(numbers) for name in ["x", "y", "z"]}
