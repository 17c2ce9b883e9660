"""Seasonal ARIMA estimation for arimakit.

This module provides lag-polynomial algebra, a Kalman filter likelihood for
ARMA processes, conditional and unconditional sum-of-squares evaluators and
the :func:`fit` orchestrator that combines them with BFGS.

Example:
    >>> import numpy as np
    >>> from arimakit.timeseries import ARIMA, ModelCoefficients, simulate
    >>>
    >>> truth = ModelCoefficients(ar=[0.6], ma=[0.3])
    >>> y = simulate(truth, 500, rng=np.random.default_rng(0))
    >>> model = ARIMA(1, 0, 1, constant=False)
    >>> res = model.fit(y, strategy="css-ml")
    >>> fcast, ci = model.predict(steps=10, alpha=0.05)
    >>> print(f"Estimated phi: {res.coefficients.ar[0]:.3f}")  # doctest: +SKIP
    >>> print(f"AIC: {res.aic:.2f}")  # doctest: +SKIP

References:
    - Box, Jenkins & Reinsel (2008): Time Series Analysis
    - Harvey (1989): Forecasting, Structural Time Series Models and the
      Kalman Filter
    - Durbin & Koopman (2012): Time Series Analysis by State Space Methods
"""

from __future__ import annotations

from .arima import (
    FitConfig,
    FittedModel,
    FittingStrategy,
    ModelCoefficients,
    ModelOrder,
    evaluate,
    fit,
)
from .diagnostics import aic, aicc, bic
from .estimation import (
    ModelInformation,
    backcast,
    conditional_residuals,
    evaluate_arma,
    fit_css,
    fit_ml,
    fit_uss,
)
from .forecast import Forecast, forecast, psi_weights
from .kalman import ArmaStateSpace, KalmanFilter, KalmanOutput, KalmanState, arma_loglike
from .lag import LagPolynomial, expand_ar, expand_ma
from .models import ARIMA
from .utils import difference, integrate, simulate

__all__ = [
    # Models
    "ARIMA",
    "ModelOrder",
    "ModelCoefficients",
    "FittingStrategy",
    "FitConfig",
    "FittedModel",
    "fit",
    "evaluate",
    # Lag polynomials
    "LagPolynomial",
    "expand_ar",
    "expand_ma",
    # Estimation
    "ModelInformation",
    "conditional_residuals",
    "backcast",
    "fit_css",
    "fit_uss",
    "fit_ml",
    "evaluate_arma",
    # Kalman filtering
    "ArmaStateSpace",
    "KalmanState",
    "KalmanOutput",
    "KalmanFilter",
    "arma_loglike",
    # Forecasting
    "Forecast",
    "forecast",
    "psi_weights",
    # Utilities
    "difference",
    "integrate",
    "simulate",
    # Diagnostics
    "aic",
    "aicc",
    "bic",
]
