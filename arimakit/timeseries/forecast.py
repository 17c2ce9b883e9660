"""Point forecasts and prediction intervals of fitted ARIMA models.

Forecasts run the ARMA recursion forward on the differenced scale, with
future innovations set to zero, and are then integrated back to the scale of
the observed series. Forecast error variances follow from the psi weights of
the infinite moving-average representation ``theta(L) / (delta(L) phi(L))``.

References:
    - Box, Jenkins & Reinsel (2008): Time Series Analysis, chapter 5
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

import numpy as np
from scipy import stats

from ..exceptions import InvalidArgumentError
from .lag import LagPolynomial

if TYPE_CHECKING:
    from .arima import FittedModel, ModelCoefficients


@dataclass(frozen=True)
class Forecast:
    """Forecasts ``steps`` ahead with ``1 - alpha`` prediction intervals.

    Attributes:
        point: Point forecasts, shape (steps,).
        lower: Lower interval bounds.
        upper: Upper interval bounds.
        stderr: Forecast standard errors.
        alpha: Significance level of the intervals.
    """

    point: np.ndarray
    lower: np.ndarray
    upper: np.ndarray
    stderr: np.ndarray
    alpha: float

    @property
    def steps(self) -> int:
        return self.point.size

    def conf_int(self) -> np.ndarray:
        """Interval bounds stacked as shape (2, steps)."""
        return np.vstack((self.lower, self.upper))


def psi_weights(coefficients: "ModelCoefficients", period: int, steps: int) -> np.ndarray:
    """First ``steps`` weights of the MA(infinity) form of the ARIMA model.

    Example:
        >>> from arimakit.timeseries.arima import ModelCoefficients
        >>> psi_weights(ModelCoefficients(d=1), 1, 3)
        array([1., 1., 1.])
    """
    diff = LagPolynomial.differences(coefficients.d) * LagPolynomial.seasonal_differences(
        period, coefficients.D
    )
    ar_poly = LagPolynomial.autoregressive(coefficients.expanded_ar(period))
    ma_poly = LagPolynomial.moving_average(coefficients.expanded_ma(period))
    inverse = (diff * ar_poly).inverse_coefficients(steps)
    return np.convolve(inverse, ma_poly.coefficients)[:steps]


def forecast(model: "FittedModel", steps: int, alpha: float = 0.05) -> Forecast:
    """Forecast a fitted model ``steps`` periods ahead.

    Args:
        model: Fitted ARIMA model.
        steps: Forecast horizon, >= 1.
        alpha: Significance level; the intervals cover ``1 - alpha``.

    Returns:
        Forecast on the scale of ``model.series``.

    Raises:
        InvalidArgumentError: If ``steps < 1`` or ``alpha`` is not in (0, 1).
    """
    if int(steps) != steps or steps < 1:
        raise InvalidArgumentError(f"steps must be >= 1, got {steps}")
    if not 0.0 < alpha < 1.0:
        raise InvalidArgumentError(f"alpha must be in (0, 1), got {alpha}")
    steps = int(steps)

    coefficients = model.coefficients
    period = model.period
    ar_poly = LagPolynomial.autoregressive(coefficients.expanded_ar(period))
    ma_poly = LagPolynomial.moving_average(coefficients.expanded_ma(period))
    diff_poly = model.order.differencing_polynomial(period)
    mu = model.level

    n = model.differenced.size
    z = np.concatenate((model.differenced - mu, np.zeros(steps)))
    e = np.concatenate((model.info.residuals, np.zeros(steps)))
    for t in range(n, n + steps):
        z[t] = ar_poly.predict(z, t) + ma_poly.apply(e, t)
    w_future = z[n:] + mu

    m = model.series.size
    y = np.concatenate((model.series, np.zeros(steps)))
    for t in range(m, m + steps):
        y[t] = diff_poly.apply_inverse(y, t, w_future[t - m])
    point = y[m:]

    psi = psi_weights(coefficients, period, steps)
    stderr = np.sqrt(model.sigma2 * np.cumsum(psi**2))
    q = stats.norm.ppf(1.0 - alpha / 2.0)
    return Forecast(
        point=point,
        lower=point - q * stderr,
        upper=point + q * stderr,
        stderr=stderr,
        alpha=float(alpha),
    )


__all__ = ["Forecast", "forecast", "psi_weights"]
