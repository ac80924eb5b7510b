import numpy as np
import pytest

from tensorsym import Size, SparseTensor, exp, symbol
from tensorsym.shape import node_shape

x = symbol("x", (Size.many,))
mu = symbol("mu", (Size.many,))
precision = symbol("L", (Size.many, Size.many))

displacement = x - mu
density = exp(-0.5 * displacement.dot(precision.dot(displacement, [(1, 0)]), [(0, 0)]))

x_value = np.array([1.0, 2.0])
mu_value = np.array([0.0, 1.0])
precision_value = np.array([[2.0, 0.5], [0.5, 1.0]])

bindings = {
    "x": SparseTensor.from_numpy(x_value),
    "mu": SparseTensor.from_numpy(mu_value),
    "L": SparseTensor.from_numpy(precision_value),
}

d = x_value - mu_value
f = np.exp(-0.5 * d @ precision_value @ d)


def evaluate(expression) -> np.ndarray:
    return expression.assign(bindings).value.as_tensor().to_numpy()


def test_density():
    assert density.assign(bindings).value.as_scalar() == pytest.approx(f)


def test_gradient_shapes():
    dx, dmu, dL = density.differential(["x", "mu", "L"])

    assert node_shape(dx) == (Size.many,)
    assert node_shape(dmu) == (Size.many,)
    assert node_shape(dL) == (Size.many, Size.many)


def test_gradient_with_respect_to_x():
    [dx] = density.differential(["x"])

    assert np.allclose(evaluate(dx), -precision_value @ d * f)


def test_gradient_with_respect_to_mean():
    [dmu] = density.differential(["mu"])

    assert np.allclose(evaluate(dmu), precision_value @ d * f)


def test_gradient_with_respect_to_precision():
    [dL] = density.differential(["L"])

    assert np.allclose(evaluate(dL), -0.5 * np.outer(d, d) * f)
