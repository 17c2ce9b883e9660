import math

import pytest

from arimakit.optimize.interpolation import cubic_minimum, quadratic_minimum, secant


def test_cubic_minimum_recovers_local_minimum():
    # f(x) = x**3 - 3x has its local minimum at x = 1.
    assert cubic_minimum(0.0, 2.0, 0.0, 2.0, -3.0, 9.0) == pytest.approx(1.0)


def test_cubic_minimum_is_symmetric_in_endpoint_order():
    forward = cubic_minimum(0.0, 2.0, 0.0, 2.0, -3.0, 9.0)
    backward = cubic_minimum(2.0, 0.0, 2.0, 0.0, 9.0, -3.0)
    assert forward == pytest.approx(backward)


def test_cubic_minimum_without_local_minimum_is_nan():
    # f(x) = x**3 is monotone.
    assert math.isnan(cubic_minimum(-1.0, 1.0, -1.0, 1.0, 3.0, 3.0))


def test_cubic_minimum_coincident_points_is_nan():
    assert math.isnan(cubic_minimum(1.0, 1.0, 0.0, 0.0, -1.0, 1.0))


def test_quadratic_minimum_of_parabola():
    # f(x) = (x - 0.25)**2 from values at 0 and 1 and f'(0) = -0.5.
    assert quadratic_minimum(0.0, 1.0, 0.0625, 0.5625, -0.5) == pytest.approx(0.25)


def test_quadratic_minimum_concave_is_nan():
    assert math.isnan(quadratic_minimum(0.0, 1.0, 0.0, -1.0, 0.0))


def test_secant_finds_root_of_linear_derivative():
    assert secant(0.0, 2.0, -2.0, 2.0) == pytest.approx(1.0)
    assert math.isnan(secant(0.0, 2.0, 1.0, 1.0))
