import numpy as np
from hypothesis import given

from tensorsym import differential, from_json, render_source, render_tex, to_json
from tensorsym.variables import variable_names

from .strategies import bindings, scalar_expressions


@given(scalar_expressions)
def test_differentiation_cannot_crash(expression):
    derivatives = differential(expression, ["x", "y", "z"])

    assert len(derivatives) == 3
    for derivative in derivatives:
        assert set(variable_names(derivative)) <= {"x", "y", "z"}
        render_tex(derivative)
        render_source(derivative)


@given(scalar_expressions)
def test_encoding_round_trips(expression):
    # NaN constants are never equal to themselves, so compare the serialized text
    text = to_json(expression)
    assert to_json(from_json(text)) == text


@given(scalar_expressions, bindings())
def test_source_agrees_with_assignment(expression, values):
    with np.errstate(all="ignore"):
        expected = expression.assign(values).value.as_scalar()
        namespace = {name: np.float64(value) for name, value in values.items()}
        actual = eval(render_source(expression), {"np": np}, namespace)

    assert np.isclose(actual, expected, equal_nan=True)
