"""Class interface to seasonal ARIMA estimation.

:class:`ARIMA` wraps :func:`arimakit.timeseries.arima.fit` with the
``.fit()``, ``.predict()`` and ``.simulate()`` methods familiar from other
time-series packages.

References:
    - Box & Jenkins (1976): Time Series Analysis: Forecasting and Control
"""

from __future__ import annotations

from typing import Optional, Tuple

import numpy as np

from .arima import FitConfig, FittedModel, FittingStrategy, ModelOrder, fit
from .utils import simulate


class ARIMA:
    """Seasonal ARIMA(p, d, q)(P, D, Q)[period] model.

    Args:
        p: AR order.
        d: Differencing order.
        q: MA order.
        P: Seasonal AR order.
        D: Seasonal differencing order.
        Q: Seasonal MA order.
        period: Seasonal period. Must be > 1 when any of P, D, Q is set.
        constant: Include a mean; ``None`` includes one only without
            differencing. On a once-differenced model it is fitted as a drift.
        drift: Include a drift term (requires ``d + D == 1``).

    Example:
        >>> from arimakit.timeseries.arima import ModelCoefficients
        >>> from arimakit.timeseries.utils import simulate
        >>> y = simulate(ModelCoefficients(ar=[0.7]), 400, rng=np.random.default_rng(0))
        >>> model = ARIMA(1, 0, 0, constant=False)
        >>> res = model.fit(y, strategy="css")
        >>> forecast, conf_int = model.predict(steps=5)
        >>> conf_int.shape
        (2, 5)
    """

    def __init__(
        self,
        p: int,
        d: int,
        q: int,
        P: int = 0,
        D: int = 0,
        Q: int = 0,
        period: int = 1,
        constant: Optional[bool] = None,
        drift: bool = False,
    ) -> None:
        self.order = ModelOrder(p, d, q, P, D, Q, constant=constant, drift=drift)
        self.period = period
        self.fit_result: Optional[FittedModel] = None

    def fit(
        self,
        x: np.ndarray,
        strategy: FittingStrategy | str = "css-ml",
        config: Optional[FitConfig] = None,
    ) -> FittedModel:
        """Fit the model to ``x``.

        Args:
            x: 1D time series array.
            strategy: ``"css"``, ``"uss"``, ``"ml"``, ``"css-ml"`` (default)
                or ``"uss-ml"``.
            config: Optimizer settings.

        Returns:
            The fitted model, also stored as ``fit_result``.
        """
        self.fit_result = fit(x, self.order, strategy=strategy, period=self.period, config=config)
        return self.fit_result

    def predict(self, steps: int, alpha: float = 0.05) -> Tuple[np.ndarray, np.ndarray]:
        """Forecast ``steps`` ahead.

        Returns:
            Tuple of (point forecasts, confidence interval of shape (2, steps)).
        """
        if self.fit_result is None:
            raise RuntimeError("Model must be fitted before prediction")
        result = self.fit_result.forecast(steps, alpha=alpha)
        return result.point, result.conf_int()

    def simulate(
        self, nsim: int, burn: int = 100, rng: Optional[np.random.Generator] = None
    ) -> np.ndarray:
        """Simulate from the fitted model with its estimated sigma^2."""
        if self.fit_result is None:
            raise RuntimeError("Model must be fitted before simulation")
        return simulate(
            self.fit_result.coefficients,
            nsim,
            period=self.period,
            sigma2=self.fit_result.sigma2,
            burn_in=burn,
            rng=rng,
        )


__all__ = ["ARIMA"]
