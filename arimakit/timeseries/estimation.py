"""Residual and likelihood evaluators for ARMA models of a differenced series.

Three evaluators are provided, matching the fitting strategies:

- Conditional sum of squares (CSS) conditions on the first ``p`` observations
  and runs the residual recursion ``e = theta(L)^{-1} phi(L) (w - mu)``.
- Unconditional sum of squares (USS) replaces the conditioning values by
  back-forecasts obtained from the time-reversed series.
- Maximum likelihood (ML) filters ``w - mu`` through the ARMA state-space
  model and returns the exact concentrated likelihood.

All coefficient arrays here are *expanded*: seasonal and non-seasonal parts
already multiplied together (see :func:`arimakit.timeseries.lag.expand_ar`).

References:
    - Box, Jenkins & Reinsel (2008): Time Series Analysis, chapter 7
    - Brockwell & Davis (2016): Introduction to Time Series and Forecasting
"""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np

from ..exceptions import InvalidArgumentError, NumericalFailureError
from .diagnostics import aic, aicc, bic
from .kalman import arma_loglike
from .lag import LagPolynomial

METHODS = ("css", "uss", "ml")


@dataclass(frozen=True)
class ModelInformation:
    """Fit statistics of an ARMA model at fixed coefficients.

    Attributes:
        npar: Number of estimated parameters (including sigma^2 for ML).
        sigma2: Innovation variance estimate.
        loglik: Log-likelihood.
        residuals: Residuals aligned with the differenced series. Conditioned
            observations have zero residual.
        fitted: One-step fitted values of the differenced series.
        nobs: Number of observations entering the likelihood.
        sumlog: Sum of log innovation variances (zero for CSS/USS).
    """

    npar: int
    sigma2: float
    loglik: float
    residuals: np.ndarray
    fitted: np.ndarray
    nobs: int
    sumlog: float = 0.0

    @property
    def aic(self) -> float:
        return aic(self.loglik, self.npar)

    @property
    def aicc(self) -> float:
        return aicc(self.loglik, self.npar, self.nobs)

    @property
    def bic(self) -> float:
        return bic(self.loglik, self.npar, self.nobs)


def _gaussian_loglik(sigma2: float, nobs: int) -> float:
    return -0.5 * nobs * (np.log(2.0 * np.pi * sigma2) + 1.0)


def conditional_residuals(
    z: np.ndarray, ar: np.ndarray, ma: np.ndarray, mean: float = 0.0
) -> np.ndarray:
    """Residual recursion conditioned on the first ``len(ar)`` values.

    Computes ``u = phi(L)(z - mean)`` and then solves ``theta(L) e = u`` one
    step at a time with pre-sample residuals set to zero.

    Returns:
        Residuals of the same length as ``z``; the conditioned values have
        zero residual.
    """
    ar_poly = LagPolynomial.autoregressive(ar)
    ma_poly = LagPolynomial.moving_average(ma)
    u = ar_poly.filter(np.asarray(z, dtype=float) - mean)
    e = np.zeros(u.size)
    for t in range(u.size):
        e[t] = ma_poly.apply_inverse(e, t, u[t])
    return np.concatenate((np.zeros(ar_poly.degree), e))


def backcast(w: np.ndarray, ar: np.ndarray, mean: float, steps: int) -> np.ndarray:
    """Back-forecast ``steps`` values preceding ``w``.

    The AR recursion is run forward on the time-reversed series; the result
    is returned in natural time order, ending just before ``w[0]``.
    """
    ar_poly = LagPolynomial.autoregressive(ar)
    extended = np.concatenate((np.asarray(w, dtype=float)[::-1] - mean, np.zeros(steps)))
    n = w.size
    for t in range(n, n + steps):
        extended[t] = ar_poly.predict(extended, t)
    return extended[n:][::-1] + mean


def fit_css(
    w: np.ndarray, ar: np.ndarray, ma: np.ndarray, mean: float, npar: int
) -> ModelInformation:
    """Conditional sum-of-squares fit statistics.

    ``sigma2`` divides the residual sum of squares by ``n - npar``.
    """
    w = np.asarray(w, dtype=float)
    n = w.size
    if n <= npar:
        raise InvalidArgumentError(f"Need more than {npar} observations, got {n}")
    residuals = conditional_residuals(w, ar, ma, mean)
    sigma2 = float(np.dot(residuals, residuals)) / (n - npar)
    return ModelInformation(
        npar=npar,
        sigma2=sigma2,
        loglik=_gaussian_loglik(sigma2, n),
        residuals=residuals,
        fitted=w - residuals,
        nobs=n,
    )


def fit_uss(
    w: np.ndarray, ar: np.ndarray, ma: np.ndarray, mean: float, npar: int
) -> ModelInformation:
    """Unconditional sum-of-squares fit statistics using back-forecasting.

    ``2 * len(ar)`` values are back-forecast and prepended to ``w``; the
    residual recursion then conditions only on the first ``len(ar)`` of
    them, so every observation of ``w`` contributes a residual.
    """
    w = np.asarray(w, dtype=float)
    m = np.asarray(ar).size
    z = np.concatenate((backcast(w, ar, mean, 2 * m), w))
    total = z.size
    if total <= npar:
        raise InvalidArgumentError(f"Need more than {npar} observations, got {w.size}")
    extended = conditional_residuals(z, ar, ma, mean)
    sigma2 = float(np.dot(extended, extended)) / (total - npar)
    residuals = extended[2 * m :]
    return ModelInformation(
        npar=npar,
        sigma2=sigma2,
        loglik=_gaussian_loglik(sigma2, total),
        residuals=residuals,
        fitted=w - residuals,
        nobs=total,
    )


def fit_ml(
    w: np.ndarray,
    ar: np.ndarray,
    ma: np.ndarray,
    mean: float,
    npar: int,
    initialization: str = "stationary",
) -> ModelInformation:
    """Exact Gaussian likelihood fit statistics from the Kalman filter.

    One parameter is added to ``npar`` for the innovation variance.

    Raises:
        KalmanFilterError: If the AR part is not stationary (with the
            stationary initialization) or the recursion breaks down.
    """
    w = np.asarray(w, dtype=float)
    output = arma_loglike(w - mean, ar, ma, initialization=initialization)
    residuals = output.innovations
    return ModelInformation(
        npar=npar + 1,
        sigma2=output.sigma2,
        loglik=output.loglik,
        residuals=residuals,
        fitted=w - residuals,
        nobs=output.nobs,
        sumlog=output.sumlog,
    )


def evaluate_arma(
    w: np.ndarray,
    ar: np.ndarray,
    ma: np.ndarray,
    mean: float,
    npar: int,
    method: str,
    initialization: str = "stationary",
) -> ModelInformation:
    """Dispatch to the evaluator for ``method`` (``"css"``, ``"uss"`` or ``"ml"``)."""
    if method == "css":
        info = fit_css(w, ar, ma, mean, npar)
    elif method == "uss":
        info = fit_uss(w, ar, ma, mean, npar)
    elif method == "ml":
        info = fit_ml(w, ar, ma, mean, npar, initialization=initialization)
    else:
        raise InvalidArgumentError(f"method must be one of {METHODS}, got {method!r}")
    if not np.isfinite(info.sigma2):
        raise NumericalFailureError(f"Innovation variance is not finite for method {method!r}")
    return info


def objective_value(info: ModelInformation, method: str) -> float:
    """Scaled negative log-likelihood minimized by the optimizer.

    ``0.5 * log(sigma2)`` for the sum-of-squares methods and
    ``0.5 * (log(sigma2) + sumlog / n)`` for maximum likelihood.
    """
    if info.sigma2 <= 0.0:
        return float("inf")
    if method == "ml":
        return 0.5 * (np.log(info.sigma2) + info.sumlog / info.nobs)
    return 0.5 * np.log(info.sigma2)


__all__ = [
    "METHODS",
    "ModelInformation",
    "backcast",
    "conditional_residuals",
    "evaluate_arma",
    "fit_css",
    "fit_ml",
    "fit_uss",
    "objective_value",
]
