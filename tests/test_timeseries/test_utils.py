"""Tests for differencing and simulation helpers."""

from __future__ import annotations

import numpy as np
import pytest

from arimakit.exceptions import InvalidArgumentError
from arimakit.timeseries.arima import ModelCoefficients
from arimakit.timeseries.utils import difference, integrate, simulate


class TestDifferencing:
    """Tests for difference and integrate."""

    def test_seasonal_difference_removes_pattern(self):
        season = np.tile([1.0, 5.0, -2.0, 3.0], 5)
        np.testing.assert_allclose(difference(season, d=0, D=1, period=4), np.zeros(16))

    def test_integrate_inverts_difference(self, rng):
        x = rng.normal(size=30).cumsum()
        w = difference(x, d=1, D=1, period=4)
        np.testing.assert_allclose(integrate(w, x[:5], d=1, D=1, period=4), x)

    def test_integrate_checks_initial_values(self):
        with pytest.raises(InvalidArgumentError):
            integrate(np.ones(5), np.zeros(1), d=2)


class TestSimulate:
    """Tests for simulate."""

    def test_reproducible(self):
        coefficients = ModelCoefficients(ar=[0.5], ma=[0.2])
        a = simulate(coefficients, 100, rng=np.random.default_rng(3))
        b = simulate(coefficients, 100, rng=np.random.default_rng(3))
        np.testing.assert_array_equal(a, b)

    def test_ar1_moments(self, rng):
        y = simulate(ModelCoefficients(ar=[0.8], mean=5.0), 20000, rng=rng)
        assert y.mean() == pytest.approx(5.0, abs=0.2)
        assert y.var() == pytest.approx(1 / (1 - 0.64), rel=0.1)

    def test_integrated_series_differences_to_arma(self, rng):
        coefficients = ModelCoefficients(ma=[0.4], d=1, drift=2.0)
        y = simulate(coefficients, 2000, rng=rng)
        assert y.shape == (2000,)
        assert np.diff(y).mean() == pytest.approx(2.0, abs=0.15)

    def test_seasonal_length(self, rng):
        y = simulate(ModelCoefficients(sar=[0.5], D=1), 48, period=12, rng=rng)
        assert y.shape == (48,)

    @pytest.mark.parametrize("kwargs", [{"n": 0}, {"n": 10, "sigma2": 0.0}, {"n": 10, "burn_in": -1}])
    def test_invalid_arguments(self, kwargs):
        with pytest.raises(InvalidArgumentError):
            simulate(ModelCoefficients(ar=[0.5]), **kwargs)
