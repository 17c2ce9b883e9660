"""Differencing, integration and simulation helpers."""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional

import numpy as np
from scipy import signal

from ..exceptions import InvalidArgumentError
from .lag import LagPolynomial

if TYPE_CHECKING:
    from .arima import ModelCoefficients


def _differencing(d: int, D: int, period: int) -> LagPolynomial:
    return LagPolynomial.differences(d) * LagPolynomial.seasonal_differences(period, D)


def difference(x: np.ndarray, d: int = 1, D: int = 0, period: int = 1) -> np.ndarray:
    """Apply ``(1 - L)^d (1 - L^period)^D`` to ``x``.

    The result is ``d + D * period`` entries shorter than ``x``.

    Example:
        >>> difference(np.array([1.0, 4.0, 9.0, 16.0]), d=2)
        array([2., 2.])
    """
    return _differencing(d, D, period).filter(np.asarray(x, dtype=float))


def integrate(
    w: np.ndarray,
    initial: np.ndarray,
    d: int = 1,
    D: int = 0,
    period: int = 1,
) -> np.ndarray:
    """Invert :func:`difference`.

    Args:
        w: Differenced series.
        initial: The first ``d + D * period`` values of the original series.

    Returns:
        The original series, ``initial`` followed by the integrated values.
    """
    poly = _differencing(d, D, period)
    initial = np.asarray(initial, dtype=float)
    if initial.size != poly.degree:
        raise InvalidArgumentError(
            f"initial must hold {poly.degree} values, got {initial.size}"
        )
    y = np.concatenate((initial, np.zeros(np.asarray(w).size)))
    for t in range(poly.degree, y.size):
        y[t] = poly.apply_inverse(y, t, w[t - poly.degree])
    return y


def simulate(
    coefficients: "ModelCoefficients",
    n: int,
    period: int = 1,
    sigma2: float = 1.0,
    burn_in: int = 100,
    rng: Optional[np.random.Generator] = None,
) -> np.ndarray:
    """Draw a series of length ``n`` from a seasonal ARIMA model.

    Gaussian innovations are passed through ``theta(L) / phi(L)`` with
    ``scipy.signal.lfilter``; the first ``burn_in`` values are discarded, the
    level term is added and the result is integrated starting from zeros.

    Example:
        >>> from arimakit.timeseries.arima import ModelCoefficients
        >>> y = simulate(ModelCoefficients(ar=[0.5]), 50, rng=np.random.default_rng(0))
        >>> y.shape
        (50,)
    """
    if n < 1:
        raise InvalidArgumentError(f"n must be >= 1, got {n}")
    if burn_in < 0:
        raise InvalidArgumentError(f"burn_in must be >= 0, got {burn_in}")
    if not sigma2 > 0:
        raise InvalidArgumentError(f"sigma2 must be > 0, got {sigma2}")
    if rng is None:
        rng = np.random.default_rng()

    ar = coefficients.expanded_ar(period)
    ma = coefficients.expanded_ma(period)
    eps = rng.normal(scale=np.sqrt(sigma2), size=n + burn_in)
    arma = signal.lfilter(np.r_[1.0, ma], np.r_[1.0, -ar], eps)[burn_in:]
    w = arma + coefficients.level(period)

    diff = _differencing(coefficients.d, coefficients.D, period)
    if diff.degree == 0:
        return w
    y = integrate(w, np.zeros(diff.degree), coefficients.d, coefficients.D, period)
    return y[diff.degree :]


__all__ = ["difference", "integrate", "simulate"]
