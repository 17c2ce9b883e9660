"""Tests for the ARMA Kalman filter likelihood."""

from __future__ import annotations

import numpy as np
import pytest

from arimakit.exceptions import InvalidArgumentError, KalmanFilterError
from arimakit.timeseries.kalman import ArmaStateSpace, KalmanFilter, arma_loglike


def ar1_exact(y: np.ndarray, phi: float) -> tuple[float, float, float]:
    """Closed-form concentrated likelihood of a stationary AR(1)."""
    n = y.size
    ssq = y[0] ** 2 * (1 - phi**2) + np.sum((y[1:] - phi * y[:-1]) ** 2)
    sumlog = -np.log(1 - phi**2)
    sigma2 = ssq / n
    loglik = -0.5 * n * (np.log(2 * np.pi * sigma2) + 1) - 0.5 * sumlog
    return sigma2, sumlog, loglik


class TestArmaStateSpace:
    """Tests for the Harvey representation."""

    def test_matrices(self):
        model = ArmaStateSpace.from_coefficients([0.5, 0.2], [0.3, 0.1, 0.05])
        assert model.dim == 4
        np.testing.assert_allclose(model.T[:, 0], [0.5, 0.2, 0.0, 0.0])
        np.testing.assert_allclose(np.diag(model.T, 1), np.ones(3))
        np.testing.assert_allclose(model.R, [1.0, 0.3, 0.1, 0.05])
        np.testing.assert_allclose(model.Z, [1.0, 0.0, 0.0, 0.0])

    def test_stationary_covariance_solves_lyapunov(self):
        model = ArmaStateSpace.from_coefficients([0.6, -0.2], [0.4])
        P = model.stationary_covariance()
        np.testing.assert_allclose(P, model.T @ P @ model.T.T + np.outer(model.R, model.R), atol=1e-10)

    def test_ar1_variance(self):
        P = ArmaStateSpace.from_coefficients([0.8], []).stationary_covariance()
        assert P[0, 0] == pytest.approx(1 / (1 - 0.64))

    def test_non_stationary_raises(self):
        model = ArmaStateSpace.from_coefficients([1.2], [])
        assert not model.is_stationary()
        with pytest.raises(KalmanFilterError):
            model.stationary_covariance()

    def test_shape_validation(self):
        with pytest.raises(InvalidArgumentError):
            ArmaStateSpace(T=np.eye(2), R=np.ones(3))


class TestKalmanFilter:
    """Tests for the likelihood recursion."""

    def test_ar1_matches_closed_form(self, rng):
        phi = 0.7
        y = rng.normal(size=200)
        out = arma_loglike(y, [phi], [])
        sigma2, sumlog, loglik = ar1_exact(y, phi)
        assert out.nobs == 200
        assert out.sigma2 == pytest.approx(sigma2, abs=1e-6)
        assert out.sumlog == pytest.approx(sumlog, abs=1e-6)
        assert out.loglik == pytest.approx(loglik, abs=1e-6)

    def test_ma1_first_variance(self, rng):
        theta = 0.5
        out = arma_loglike(rng.normal(size=50), [], [theta])
        assert out.variances[0] == pytest.approx(1 + theta**2)
        assert np.all(np.diff(out.variances) <= 1e-12)
        assert out.variances[-1] == pytest.approx(1.0, abs=1e-6)

    def test_white_noise(self, rng):
        y = rng.normal(size=30)
        out = arma_loglike(y, [], [])
        np.testing.assert_allclose(out.innovations, y)
        assert out.sigma2 == pytest.approx(np.mean(y**2))
        assert out.sumlog == pytest.approx(0.0)

    def test_diffuse_initialization_skips_burn_in(self, rng):
        y = rng.normal(size=40)
        model = ArmaStateSpace.from_coefficients([0.5, 0.1], [0.3])
        kf = KalmanFilter(model, initialization="diffuse")
        assert kf.burn_in == 2
        out = kf.run(y)
        assert out.nobs == 38

    def test_diffuse_accepts_unit_root(self, rng):
        y = np.cumsum(rng.normal(size=60))
        out = arma_loglike(y, [1.0], [], initialization="diffuse")
        assert np.isfinite(out.loglik)

    def test_step_accumulates(self):
        kf = KalmanFilter(ArmaStateSpace.from_coefficients([0.5], []))
        state = kf.initial_state()
        state, v, f = kf.step(state, 1.0)
        assert v == 1.0
        assert f == pytest.approx(1 / 0.75)
        assert state.nobs == 1
        assert state.index == 1

    def test_stationary_rejects_unit_root(self, rng):
        with pytest.raises(KalmanFilterError):
            arma_loglike(rng.normal(size=20), [1.0], [])

    def test_invalid_initialization(self):
        with pytest.raises(InvalidArgumentError):
            KalmanFilter(ArmaStateSpace.from_coefficients([0.5], []), initialization="exact")

    def test_zero_series_raises(self):
        with pytest.raises(KalmanFilterError):
            arma_loglike(np.zeros(10), [0.5], [])
