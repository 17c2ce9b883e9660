"""Tests for the CSS, USS and ML evaluators."""

from __future__ import annotations

import numpy as np
import pytest

from arimakit.exceptions import InvalidArgumentError, NumericalFailureError
from arimakit.timeseries.diagnostics import aic, aicc, bic
from arimakit.timeseries.estimation import (
    backcast,
    conditional_residuals,
    evaluate_arma,
    fit_css,
    fit_ml,
    fit_uss,
    objective_value,
)
from arimakit.timeseries.kalman import arma_loglike


class TestResiduals:
    """Tests for the residual recursions."""

    def test_ar1_residuals_with_mean(self, rng):
        z = rng.normal(size=20) + 3.0
        e = conditional_residuals(z, [0.6], [], mean=3.0)
        assert e[0] == 0.0
        np.testing.assert_allclose(e[1:], (z[1:] - 3.0) - 0.6 * (z[:-1] - 3.0))

    def test_ma1_residuals(self, rng):
        z = rng.normal(size=15)
        theta = 0.4
        expected = np.zeros_like(z)
        for t in range(z.size):
            expected[t] = z[t] - (theta * expected[t - 1] if t > 0 else 0.0)
        np.testing.assert_allclose(conditional_residuals(z, [], [theta]), expected)

    def test_backcast_ar1(self):
        np.testing.assert_allclose(backcast(np.array([1.0, 2.0]), [0.5], 0.0, 2), [0.25, 0.5])

    def test_backcast_reverts_to_mean(self):
        values = backcast(np.array([4.0, 9.0]), [0.5], 2.0, 3)
        np.testing.assert_allclose(values, [2.25, 2.5, 3.0])


class TestEvaluators:
    """Tests for the fit statistics of each method."""

    def test_css_variance_uses_degrees_of_freedom(self, rng):
        w = rng.normal(size=100)
        info = fit_css(w, [0.3], [0.2], 0.0, npar=2)
        residuals = conditional_residuals(w, [0.3], [0.2])
        assert info.sigma2 == pytest.approx(residuals @ residuals / 98)
        assert info.nobs == 100
        np.testing.assert_allclose(info.fitted + info.residuals, w)

    def test_uss_adds_backcasts(self, rng):
        w = rng.normal(size=60)
        info = fit_uss(w, [0.5, -0.2], [], 0.0, npar=2)
        assert info.residuals.size == 60
        assert info.nobs == 64
        assert info.residuals[0] != 0.0

    def test_uss_without_ar_equals_css(self, rng):
        w = rng.normal(size=40)
        css = fit_css(w, [], [0.5], 0.0, npar=1)
        uss = fit_uss(w, [], [0.5], 0.0, npar=1)
        assert css.sigma2 == pytest.approx(uss.sigma2)

    def test_ml_matches_kalman_filter(self, rng):
        w = rng.normal(size=80) + 1.0
        info = fit_ml(w, [0.4], [0.3], 1.0, npar=3)
        out = arma_loglike(w - 1.0, [0.4], [0.3])
        assert info.npar == 4
        assert info.loglik == pytest.approx(out.loglik)
        assert info.sumlog == pytest.approx(out.sumlog)
        np.testing.assert_allclose(info.residuals, out.innovations)

    def test_css_requires_enough_observations(self):
        with pytest.raises(InvalidArgumentError):
            fit_css(np.array([1.0, 2.0]), [0.5], [], 0.0, npar=2)

    def test_unknown_method_raises(self, rng):
        with pytest.raises(InvalidArgumentError):
            evaluate_arma(rng.normal(size=10), [], [], 0.0, 0, "gls")

    def test_non_stationary_ml_is_numerical_failure(self, rng):
        with pytest.raises(NumericalFailureError):
            evaluate_arma(rng.normal(size=10), [1.1], [], 0.0, 1, "ml")

    def test_objective_values(self, rng):
        w = rng.normal(size=50)
        css = evaluate_arma(w, [0.2], [], 0.0, 1, "css")
        ml = evaluate_arma(w, [0.2], [], 0.0, 1, "ml")
        assert objective_value(css, "css") == pytest.approx(0.5 * np.log(css.sigma2))
        assert objective_value(ml, "ml") == pytest.approx(
            0.5 * (np.log(ml.sigma2) + ml.sumlog / ml.nobs)
        )

    def test_information_criteria(self, rng):
        info = fit_css(rng.normal(size=50), [0.2], [], 0.0, npar=1)
        assert info.aic == pytest.approx(aic(info.loglik, 1))
        assert info.bic == pytest.approx(bic(info.loglik, 1, 50))
        assert info.aicc > info.aic


class TestDiagnostics:
    """Tests for information criteria."""

    def test_values(self):
        assert aic(-100.0, 3) == pytest.approx(206.0)
        assert aicc(-100.0, 3, 50) == pytest.approx(206.0 + 24.0 / 46.0)
        assert bic(-100.0, 3, 50) == pytest.approx(200.0 + 3 * np.log(50))

    def test_aicc_undefined_for_tiny_samples(self):
        assert aicc(-10.0, 4, 5) == np.inf
