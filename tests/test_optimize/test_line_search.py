import math

import numpy as np
import pytest

from arimakit.exceptions import InvalidArgumentError, NaNStepLengthError
from arimakit.optimize.line_search import LineSearchConfig, strong_wolfe_line_search


def shifted_parabola(center: float):
    def phi(a: float) -> float:
        return (a - center) ** 2

    def dphi(a: float) -> float:
        return 2.0 * (a - center)

    return phi, dphi


def assert_strong_wolfe(phi, dphi, alpha, c1=1e-4, c2=0.9):
    phi0, dphi0 = phi(0.0), dphi(0.0)
    assert phi(alpha) <= phi0 + c1 * alpha * dphi0
    assert abs(dphi(alpha)) <= c2 * abs(dphi0)


def test_unit_step_accepted_when_wolfe():
    phi, dphi = shifted_parabola(2.0)
    res = strong_wolfe_line_search(phi, dphi, phi(0.0), dphi(0.0))
    assert res.converged
    assert res.alpha == 1.0
    assert res.nfev == 1
    assert_strong_wolfe(phi, dphi, res.alpha)


def test_zoom_after_overshoot():
    phi, dphi = shifted_parabola(2.0)
    config = LineSearchConfig(alpha0=10.0, alpha_max=100.0)
    res = strong_wolfe_line_search(phi, dphi, phi(0.0), dphi(0.0), config)
    assert res.converged
    assert 0.0 < res.alpha < 10.0
    assert_strong_wolfe(phi, dphi, res.alpha)


def test_bracketing_extrapolates_towards_distant_minimum():
    phi, dphi = shifted_parabola(50.0)
    res = strong_wolfe_line_search(phi, dphi, phi(0.0), dphi(0.0))
    assert res.converged
    assert res.alpha > 5.0
    assert_strong_wolfe(phi, dphi, res.alpha)


def test_tight_curvature_condition():
    phi, dphi = shifted_parabola(3.0)
    config = LineSearchConfig(c2=0.1, alpha0=0.5)
    res = strong_wolfe_line_search(phi, dphi, phi(0.0), dphi(0.0), config)
    assert res.converged
    assert_strong_wolfe(phi, dphi, res.alpha, c2=0.1)


def test_non_finite_trial_triggers_bisection():
    def phi(a: float) -> float:
        return math.inf if a > 0.6 else (a - 0.3) ** 2

    def dphi(a: float) -> float:
        return 2.0 * (a - 0.3)

    res = strong_wolfe_line_search(phi, dphi, phi(0.0), dphi(0.0))
    assert res.converged
    assert res.alpha == pytest.approx(0.5)
    assert np.isfinite(res.phi)


def test_nan_derivative_raises():
    phi, _ = shifted_parabola(2.0)
    config = LineSearchConfig(alpha0=10.0, alpha_max=100.0)

    def dphi(a: float) -> float:
        return -4.0 if a == 0.0 else math.nan

    with pytest.raises(NaNStepLengthError):
        strong_wolfe_line_search(phi, dphi, 4.0, -4.0, config)


def test_unbounded_objective_stops_at_alpha_max():
    config = LineSearchConfig(alpha_max=10.0)
    res = strong_wolfe_line_search(lambda a: -a, lambda a: -1.0, 0.0, -1.0, config)
    assert not res.converged
    assert res.alpha == 10.0


def test_ascent_direction_raises():
    phi, dphi = shifted_parabola(-1.0)
    with pytest.raises(InvalidArgumentError):
        strong_wolfe_line_search(phi, dphi, phi(0.0), dphi(0.0))


@pytest.mark.parametrize(
    "kwargs",
    [
        {"c1": 0.9, "c2": 0.5},
        {"c2": 1.0},
        {"alpha0": 0.0},
        {"alpha0": 5.0, "alpha_max": 1.0},
        {"extrapolation": -1.0},
        {"max_zoom_iter": 0},
    ],
)
def test_invalid_config_raises(kwargs):
    with pytest.raises(ValueError):
        LineSearchConfig(**kwargs)


def test_zoom_cap_returns_best_point_unconverged():
    # Derivative is +-1 except within about 1e-6 of the kink at 2.
    def phi(a):
        return math.sqrt((a - 2.0) ** 2 + 1e-12)

    def dphi(a):
        return (a - 2.0) / phi(a)

    config = LineSearchConfig(alpha0=10.0, alpha_max=100.0, max_zoom_iter=2)
    res = strong_wolfe_line_search(phi, dphi, phi(0.0), dphi(0.0), config)
    assert not res.converged
    assert res.alpha > 0.0
    assert res.phi < phi(0.0)
    assert res.nfev == 3


def test_bracket_cap_returns_last_descending_step():
    config = LineSearchConfig(alpha_max=1e6, max_bracket_iter=2)
    res = strong_wolfe_line_search(lambda a: -a, lambda a: -1.0, 0.0, -1.0, config)
    assert not res.converged
    assert res.alpha == 5.0
    assert res.phi == -5.0
