import numpy as np
import pytest

from arimakit.exceptions import InvalidArgumentError
from arimakit.optimize.core import relative_change
from arimakit.optimize.utils import approx_grad, forward_grad, is_pos_def


def test_approx_grad_matches_linear_function():
    def fun(x: np.ndarray) -> float:
        return float(3 * x[0] - 2 * x[1])

    grad = approx_grad(fun, np.array([0.2, -0.1]))
    assert np.allclose(grad, np.array([3.0, -2.0]), atol=1e-6)


def test_approx_grad_counts_evaluations():
    grad, evals = approx_grad(lambda x: float(x @ x), np.array([1.0, 2.0, 3.0]), return_evals=True)
    assert np.allclose(grad, [2.0, 4.0, 6.0], atol=1e-6)
    assert evals == 6


def test_forward_grad_reuses_known_value():
    calls = []

    def fun(x: np.ndarray) -> float:
        calls.append(x.copy())
        return float(x[0] ** 2 + 3 * x[1])

    x = np.array([1.0, 0.5])
    grad, evals = forward_grad(fun, x, fx=fun(x), return_evals=True)
    assert evals == 2
    assert len(calls) == 3
    assert np.allclose(grad, [2.0, 3.0], atol=1e-5)


@pytest.mark.parametrize("helper", [approx_grad, forward_grad])
def test_invalid_eps(helper):
    with pytest.raises(InvalidArgumentError):
        helper(lambda x: float(x[0]), np.array([0.0]), eps=0.0)


def test_is_pos_def():
    assert is_pos_def(np.array([[2.0, 0.5], [0.5, 1.0]]))
    assert not is_pos_def(np.array([[1.0, 2.0], [2.0, 1.0]]))


def test_relative_change_uses_unit_floor():
    assert relative_change(1e-3, 0.0) == pytest.approx(1e-3)
    assert relative_change(100.0, 99.0) == pytest.approx(0.01)
