"""Seasonal ARIMA estimation.

A seasonal ARIMA(p, d, q)(P, D, Q)[s] model states that the differenced
series ``w = (1 - L)^d (1 - L^s)^D y`` follows the ARMA process

    phi(L) Phi(L^s) (w_t - mu) = theta(L) Theta(L^s) eps_t

where ``mu`` is a mean (no differencing), a drift times the differencing
lag (one difference), or zero. :func:`fit` estimates the coefficients by
minimizing a conditional sum of squares, an unconditional sum of squares or
the negative concentrated log-likelihood with BFGS; the two-phase strategies
start maximum likelihood from a sum-of-squares estimate.

Example:
    >>> import numpy as np
    >>> from arimakit.timeseries.arima import ModelCoefficients, ModelOrder, fit
    >>> from arimakit.timeseries.utils import simulate
    >>> truth = ModelCoefficients(ar=[0.6], ma=[-0.3], d=1)
    >>> y = simulate(truth, 300, rng=np.random.default_rng(1))
    >>> model = fit(y, ModelOrder(1, 1, 1), strategy="css-ml")
    >>> model.coefficients.ar.shape
    (1,)

References:
    - Box, Jenkins & Reinsel (2008): Time Series Analysis, chapters 7 and 9
    - Brockwell & Davis (2016): Introduction to Time Series and Forecasting
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Sequence

import numpy as np

from ..exceptions import InvalidArgumentError, NumericalFailureError
from ..logging import get_logger
from ..optimize import BFGSConfig, OptimizeResult, Problem, Status, bfgs
from .estimation import ModelInformation, evaluate_arma, objective_value
from .forecast import Forecast, forecast
from .lag import LagPolynomial, expand_ar, expand_ma

logger = get_logger(__name__)

_INITIALIZATIONS = ("stationary", "diffuse")


class FittingStrategy(Enum):
    """Objective minimized when fitting an ARIMA model."""

    CSS = "css"
    USS = "uss"
    ML = "ml"
    CSS_ML = "css-ml"
    USS_ML = "uss-ml"

    @classmethod
    def from_string(cls, value: "FittingStrategy | str") -> "FittingStrategy":
        """Parse names such as ``"css"``, ``"CSS-ML"`` or ``"uss_ml"``."""
        if isinstance(value, FittingStrategy):
            return value
        key = str(value).strip().lower().replace("_", "-")
        for strategy in cls:
            if strategy.value == key:
                return strategy
        valid = [s.value for s in cls]
        raise InvalidArgumentError(f"strategy must be one of {valid}, got {value!r}")

    @property
    def phases(self) -> tuple[str, ...]:
        """Estimation methods run in sequence, each starting from the last."""
        if self is FittingStrategy.CSS_ML:
            return ("css", "ml")
        if self is FittingStrategy.USS_ML:
            return ("uss", "ml")
        return (self.value,)


@dataclass(frozen=True)
class ModelOrder:
    """Orders of a seasonal ARIMA model.

    Args:
        p, d, q: Non-seasonal AR order, differencing order and MA order.
        P, D, Q: Seasonal AR order, differencing order and MA order.
        constant: Include a mean. ``None`` (the default) includes one exactly
            when the model has no differencing.
        drift: Include a linear drift. Requires ``d + D == 1``.

    The level terms are normalized on construction: with one difference a
    requested constant becomes a drift, and with two or more differences
    both are dropped.

    Raises:
        InvalidArgumentError: For negative orders, a drift without exactly one
            difference, or a constant and a drift requested together on a
            differenced model.
    """

    p: int
    d: int
    q: int
    P: int = 0
    D: int = 0
    Q: int = 0
    constant: Optional[bool] = None
    drift: bool = False

    def __post_init__(self) -> None:
        for name in ("p", "d", "q", "P", "D", "Q"):
            value = getattr(self, name)
            if int(value) != value or value < 0:
                raise InvalidArgumentError(f"{name} must be >= 0, got {value}")
            object.__setattr__(self, name, int(value))

        ndiff = self.d + self.D
        constant = (ndiff == 0) if self.constant is None else bool(self.constant)
        drift = bool(self.drift)

        if ndiff == 0 and drift:
            raise InvalidArgumentError("drift requires d + D == 1, got d + D == 0")
        if ndiff > 0 and constant and drift:
            raise InvalidArgumentError(
                "constant and drift cannot both be requested for a differenced model"
            )
        if ndiff == 1 and constant:
            logger.warning("Constant on a once-differenced series is fitted as a drift term")
            constant, drift = False, True
        elif ndiff > 1 and (constant or drift):
            logger.warning(
                "Dropping constant and drift: d + D = %d removes any level term", ndiff
            )
            constant, drift = False, False

        object.__setattr__(self, "constant", constant)
        object.__setattr__(self, "drift", drift)

    @property
    def has_level(self) -> bool:
        return bool(self.constant or self.drift)

    @property
    def sum_arma(self) -> int:
        """Number of AR and MA coefficients."""
        return self.p + self.q + self.P + self.Q

    @property
    def npar(self) -> int:
        """Number of free parameters, excluding the innovation variance."""
        return self.sum_arma + int(self.has_level)

    @property
    def is_seasonal(self) -> bool:
        return self.P + self.D + self.Q > 0

    def differencing_polynomial(self, period: int = 1) -> LagPolynomial:
        """``(1 - L)^d (1 - L^period)^D``."""
        return LagPolynomial.differences(self.d) * LagPolynomial.seasonal_differences(
            period, self.D
        )

    def drift_lag(self, period: int = 1) -> int:
        """Lag of the single difference that turns a drift into a level."""
        return 1 if self.d == 1 else period

    def parameter_names(self) -> list[str]:
        names = [f"ar{i}" for i in range(1, self.p + 1)]
        names += [f"ma{i}" for i in range(1, self.q + 1)]
        names += [f"sar{i}" for i in range(1, self.P + 1)]
        names += [f"sma{i}" for i in range(1, self.Q + 1)]
        if self.constant:
            names.append("mean")
        elif self.drift:
            names.append("drift")
        return names

    def __str__(self) -> str:
        text = f"ARIMA({self.p}, {self.d}, {self.q})"
        if self.is_seasonal:
            text += f"({self.P}, {self.D}, {self.Q})"
        if self.constant:
            text += " with mean"
        elif self.drift:
            text += " with drift"
        return text


def _as_coefficient_array(values: Sequence[float] | np.ndarray, name: str) -> np.ndarray:
    array = np.asarray(values, dtype=float).ravel().copy()
    if not np.all(np.isfinite(array)):
        raise InvalidArgumentError(f"{name} coefficients must be finite, got {array}")
    array.setflags(write=False)
    return array


@dataclass(frozen=True)
class ModelCoefficients:
    """Coefficients of a seasonal ARIMA model.

    AR coefficients use the convention ``y_t = phi_1 y_{t-1} + ...`` and MA
    coefficients ``eps_t + theta_1 eps_{t-1} + ...``. An all-zero array is a
    valid way of switching a term off.

    Args:
        ar, ma, sar, sma: Non-seasonal and seasonal AR/MA coefficients.
        d, D: Differencing orders.
        mean: Mean of the series (only with ``d + D == 0``).
        drift: Slope per time step (only with ``d + D == 1``).
    """

    ar: np.ndarray = field(default_factory=lambda: np.array([]))
    ma: np.ndarray = field(default_factory=lambda: np.array([]))
    sar: np.ndarray = field(default_factory=lambda: np.array([]))
    sma: np.ndarray = field(default_factory=lambda: np.array([]))
    d: int = 0
    D: int = 0
    mean: float = 0.0
    drift: float = 0.0

    def __post_init__(self) -> None:
        for name in ("ar", "ma", "sar", "sma"):
            object.__setattr__(self, name, _as_coefficient_array(getattr(self, name), name))
        if self.d < 0:
            raise InvalidArgumentError(f"d must be >= 0, got {self.d}")
        if self.D < 0:
            raise InvalidArgumentError(f"D must be >= 0, got {self.D}")
        ndiff = self.d + self.D
        if self.mean != 0.0 and ndiff > 0:
            raise InvalidArgumentError(
                f"mean requires d + D == 0, got d + D == {ndiff}; use drift instead"
            )
        if self.drift != 0.0 and ndiff != 1:
            raise InvalidArgumentError(f"drift requires d + D == 1, got d + D == {ndiff}")
        object.__setattr__(self, "mean", float(self.mean))
        object.__setattr__(self, "drift", float(self.drift))

    @property
    def order(self) -> ModelOrder:
        """Order implied by the array lengths.

        A level term is included only when the mean or drift is non-zero.
        """
        return ModelOrder(
            p=self.ar.size,
            d=self.d,
            q=self.ma.size,
            P=self.sar.size,
            D=self.D,
            Q=self.sma.size,
            constant=self.mean != 0.0,
            drift=self.drift != 0.0,
        )

    @property
    def intercept(self) -> float:
        """Regression intercept ``mean * (1 - sum(ar)) * (1 - sum(sar))``."""
        return self.mean * (1.0 - self.ar.sum()) * (1.0 - self.sar.sum())

    def level(self, period: int = 1) -> float:
        """Level of the differenced series, the ``mu`` of the ARMA recursion."""
        ndiff = self.d + self.D
        if ndiff == 0:
            return self.mean
        if ndiff == 1:
            lag = 1 if self.d == 1 else period
            return self.drift * lag
        return 0.0

    def all_coefficients(self) -> np.ndarray:
        """``[ar, ma, sar, sma]`` followed by the mean or drift if non-zero."""
        parts = [self.ar, self.ma, self.sar, self.sma]
        if self.mean != 0.0:
            parts.append(np.array([self.mean]))
        elif self.drift != 0.0:
            parts.append(np.array([self.drift]))
        return np.concatenate(parts)

    def expanded_ar(self, period: int = 1) -> np.ndarray:
        return expand_ar(self.ar, self.sar, period)

    def expanded_ma(self, period: int = 1) -> np.ndarray:
        return expand_ma(self.ma, self.sma, period)

    def is_stationary(self) -> bool:
        """True when both AR polynomials have all roots outside the unit circle."""
        return (
            LagPolynomial.autoregressive(self.ar).is_invertible()
            and LagPolynomial.autoregressive(self.sar).is_invertible()
        )

    def is_invertible(self) -> bool:
        """True when both MA polynomials have all roots outside the unit circle."""
        return (
            LagPolynomial.moving_average(self.ma).is_invertible()
            and LagPolynomial.moving_average(self.sma).is_invertible()
        )

    def check_order(self, order: ModelOrder) -> None:
        """Raise if the array lengths disagree with ``order``."""
        expected = (order.p, order.q, order.P, order.Q, order.d, order.D)
        actual = (self.ar.size, self.ma.size, self.sar.size, self.sma.size, self.d, self.D)
        if expected != actual:
            raise InvalidArgumentError(
                f"Coefficients with (p, q, P, Q, d, D) = {actual} do not match "
                f"order {expected}"
            )


@dataclass(frozen=True)
class FitConfig:
    """Settings of :func:`fit`.

    Args:
        optimizer: BFGS stopping rules.
        initialization: Kalman filter initialization for maximum likelihood,
            ``"stationary"`` (exact likelihood) or ``"diffuse"``.
        par_scale_multiplier: The level parameter is optimized in units of
            ``par_scale_multiplier * sd(w) / sqrt(n)`` so that it has the same
            magnitude as the ARMA coefficients.
        check_stationarity: Reject a first-phase estimate with a
            non-stationary AR part before starting maximum likelihood.
    """

    optimizer: BFGSConfig = field(default_factory=BFGSConfig)
    initialization: str = "stationary"
    par_scale_multiplier: float = 10.0
    check_stationarity: bool = True

    def __post_init__(self) -> None:
        if self.initialization not in _INITIALIZATIONS:
            raise InvalidArgumentError(
                f"initialization must be one of {_INITIALIZATIONS}, "
                f"got {self.initialization!r}"
            )
        if not self.par_scale_multiplier > 0:
            raise InvalidArgumentError(
                f"par_scale_multiplier must be > 0, got {self.par_scale_multiplier}"
            )


@dataclass
class FittedModel:
    """An ARIMA model fitted to a series.

    Attributes:
        series: Observed series.
        differenced: Differenced series the ARMA part was fitted to.
        order: Model order.
        period: Seasonal period.
        strategy: Fitting strategy used.
        coefficients: Estimated coefficients.
        info: Fit statistics of the final estimation phase.
        stderr: Standard errors of the free parameters, in the order of
            ``order.parameter_names()``. NaN for models evaluated at fixed
            coefficients.
        covariance: Approximate covariance matrix of the free parameters.
        fitted: One-step fitted values on the scale of ``series``.
        residuals: ``series - fitted``.
        converged: False when the optimizer stopped on an iteration cap or a
            failed line search.
        optimize_result: Result of the final BFGS run, if any.
    """

    series: np.ndarray
    differenced: np.ndarray
    order: ModelOrder
    period: int
    strategy: FittingStrategy
    coefficients: ModelCoefficients
    info: ModelInformation
    stderr: np.ndarray
    covariance: np.ndarray
    fitted: np.ndarray
    residuals: np.ndarray
    converged: bool = True
    optimize_result: Optional[OptimizeResult] = None

    @property
    def sigma2(self) -> float:
        return self.info.sigma2

    @property
    def loglik(self) -> float:
        return self.info.loglik

    @property
    def aic(self) -> float:
        return self.info.aic

    @property
    def aicc(self) -> float:
        return self.info.aicc

    @property
    def bic(self) -> float:
        return self.info.bic

    @property
    def npar(self) -> int:
        return self.info.npar

    @property
    def level(self) -> float:
        """Level of the differenced series."""
        return self.coefficients.level(self.period)

    def standard_errors(self) -> dict[str, float]:
        """Standard errors keyed by parameter name (``ar1``, ``sma1``, ``drift``...)."""
        return dict(zip(self.order.parameter_names(), self.stderr.tolist()))

    def forecast(self, steps: int, alpha: float = 0.05) -> Forecast:
        """Point forecasts with ``1 - alpha`` prediction intervals."""
        return forecast(self, steps, alpha=alpha)

    def summary(self) -> str:
        lines = [f"{self.order} period={self.period} fitted by {self.strategy.value.upper()}"]
        values = _free_values(self.coefficients, self.order)
        for name, value, se in zip(self.order.parameter_names(), values, self.stderr):
            lines.append(f"  {name:>6}: {value: .6f} (se {se:.6f})")
        lines.append(
            f"sigma2: {self.sigma2:.6g}  loglik: {self.loglik:.4f}  "
            f"AIC: {self.aic:.4f}  BIC: {self.bic:.4f}"
        )
        if not self.converged:
            lines.append("warning: optimizer did not converge")
        return "\n".join(lines)


def _free_values(coefficients: ModelCoefficients, order: ModelOrder) -> np.ndarray:
    parts = [coefficients.ar, coefficients.ma, coefficients.sar, coefficients.sma]
    if order.constant:
        parts.append(np.array([coefficients.mean]))
    elif order.drift:
        parts.append(np.array([coefficients.drift]))
    return np.concatenate(parts)


class _ArimaObjective:
    """Maps the optimizer's free vector to coefficients and fit statistics.

    The free vector is ``[ar, ma, sar, sma, level / scale]``.
    """

    def __init__(
        self,
        w: np.ndarray,
        order: ModelOrder,
        period: int,
        scale: float,
        initialization: str,
    ) -> None:
        self.w = w
        self.order = order
        self.period = period
        self.scale = scale
        self.initialization = initialization
        self.nfev = 0

    def split(self, params: np.ndarray) -> tuple[np.ndarray, ...]:
        o = self.order
        bounds = np.cumsum([o.p, o.q, o.P, o.Q])
        ar, ma, sar, sma, rest = np.split(np.asarray(params, dtype=float), bounds)
        level = self.scale * rest[0] if o.has_level else 0.0
        return ar, ma, sar, sma, level

    def coefficients(self, params: np.ndarray) -> ModelCoefficients:
        ar, ma, sar, sma, level = self.split(params)
        o = self.order
        mean = level if o.constant else 0.0
        drift = level / o.drift_lag(self.period) if o.drift else 0.0
        return ModelCoefficients(
            ar=ar, ma=ma, sar=sar, sma=sma, d=o.d, D=o.D, mean=mean, drift=drift
        )

    def information(self, params: np.ndarray, method: str) -> ModelInformation:
        ar, ma, sar, sma, level = self.split(params)
        with np.errstate(over="ignore", invalid="ignore", divide="ignore"):
            return evaluate_arma(
                self.w,
                expand_ar(ar, sar, self.period),
                expand_ma(ma, sma, self.period),
                level,
                self.order.npar,
                method,
                initialization=self.initialization,
            )

    def __call__(self, params: np.ndarray, method: str) -> float:
        self.nfev += 1
        try:
            info = self.information(params, method)
        except NumericalFailureError:
            return float("inf")
        return objective_value(info, method)

    def initial_params(self, start: Optional[ModelCoefficients]) -> np.ndarray:
        o = self.order
        params = np.zeros(o.npar)
        if start is not None:
            params[: o.sum_arma] = np.concatenate((start.ar, start.ma, start.sar, start.sma))
        if o.has_level:
            level = start.level(self.period) if start is not None else 0.0
            if level == 0.0:
                level = float(np.mean(self.w))
            params[-1] = level / self.scale
        return params


def _validate_series(series: Sequence[float] | np.ndarray) -> np.ndarray:
    y = np.asarray(series, dtype=float)
    if y.ndim != 1:
        raise InvalidArgumentError(f"series must be 1D, got shape {y.shape}")
    if y.size == 0:
        raise InvalidArgumentError("series must not be empty")
    if not np.all(np.isfinite(y)):
        raise InvalidArgumentError("series must contain only finite values")
    return y


def _resolve_order(
    order_or_coefficients: ModelOrder | ModelCoefficients,
) -> tuple[ModelOrder, Optional[ModelCoefficients]]:
    if isinstance(order_or_coefficients, ModelCoefficients):
        return order_or_coefficients.order, order_or_coefficients
    if isinstance(order_or_coefficients, ModelOrder):
        return order_or_coefficients, None
    raise InvalidArgumentError(
        "order_or_coefficients must be a ModelOrder or ModelCoefficients, "
        f"got {type(order_or_coefficients).__name__}"
    )


def _prepare(
    y: np.ndarray, order: ModelOrder, period: int
) -> np.ndarray:
    if int(period) != period or period < 1:
        raise InvalidArgumentError(f"period must be >= 1, got {period}")
    if order.is_seasonal and period == 1:
        raise InvalidArgumentError("Seasonal terms require period > 1")
    w = order.differencing_polynomial(period).filter(y)
    p_star = order.p + order.P * period
    required = p_star + order.npar + 1
    if w.size <= required:
        raise InvalidArgumentError(
            f"Series too short for {order}: {w.size} differenced observations, "
            f"need more than {required}"
        )
    if np.ptp(w) == 0.0:
        raise InvalidArgumentError("Differenced series is constant; nothing to fit")
    return w


def _original_scale(
    y: np.ndarray, info: ModelInformation, order: ModelOrder, period: int
) -> tuple[np.ndarray, np.ndarray]:
    """Map differenced-scale fitted values back to the scale of ``y``."""
    diff_poly = order.differencing_polynomial(period)
    k = diff_poly.degree
    fitted = y.copy()
    for t in range(k, y.size):
        fitted[t] = info.fitted[t - k] + diff_poly.predict(y, t)
    return fitted, y - fitted


def _build_model(
    y: np.ndarray,
    w: np.ndarray,
    order: ModelOrder,
    period: int,
    strategy: FittingStrategy,
    objective: _ArimaObjective,
    params: np.ndarray,
    inv_hessian: Optional[np.ndarray],
    result: Optional[OptimizeResult],
    converged: bool,
) -> FittedModel:
    info = objective.information(params, strategy.phases[-1])
    k = order.npar
    if inv_hessian is None:
        covariance = np.full((k, k), np.nan)
    else:
        covariance = inv_hessian / w.size
        if order.has_level:
            covariance[-1, :] *= objective.scale
            covariance[:, -1] *= objective.scale
    stderr = np.sqrt(np.diag(covariance)) if k else np.array([])
    fitted, residuals = _original_scale(y, info, order, period)
    return FittedModel(
        series=y,
        differenced=w,
        order=order,
        period=period,
        strategy=strategy,
        coefficients=objective.coefficients(params),
        info=info,
        stderr=stderr,
        covariance=covariance,
        fitted=fitted,
        residuals=residuals,
        converged=converged,
        optimize_result=result,
    )


def fit(
    series: Sequence[float] | np.ndarray,
    order_or_coefficients: ModelOrder | ModelCoefficients,
    strategy: FittingStrategy | str = FittingStrategy.CSS_ML,
    period: int = 1,
    config: Optional[FitConfig] = None,
) -> FittedModel:
    """Fit a seasonal ARIMA model.

    Args:
        series: Observed series, shape (n,).
        order_or_coefficients: Model order, or coefficients whose lengths give
            the order and whose values are used as starting values.
        strategy: ``FittingStrategy`` or its name (``"css"``, ``"uss"``,
            ``"ml"``, ``"css-ml"``, ``"uss-ml"``).
        period: Seasonal period. Must be > 1 for seasonal terms.
        config: Optimizer and likelihood settings.

    Returns:
        FittedModel with coefficients, sigma^2, log-likelihood, information
        criteria, standard errors and fitted values.

    Raises:
        InvalidArgumentError: For an empty or non-finite series, an invalid
            period, or a series too short for the model.
        NumericalFailureError: If the optimizer breaks down numerically or a
            sum-of-squares phase returns a non-stationary AR part that
            maximum likelihood cannot start from.
    """
    if config is None:
        config = FitConfig()
    strategy = FittingStrategy.from_string(strategy)
    y = _validate_series(series)
    order, start = _resolve_order(order_or_coefficients)
    w = _prepare(y, order, period)

    scale = config.par_scale_multiplier * float(np.std(w)) / np.sqrt(w.size)
    objective = _ArimaObjective(w, order, period, scale, config.initialization)
    params = objective.initial_params(start)
    inv_hessian: Optional[np.ndarray] = None
    result: Optional[OptimizeResult] = None
    converged = True

    for index, method in enumerate(strategy.phases):
        if index > 0:
            if config.check_stationarity and not objective.coefficients(params).is_stationary():
                raise NumericalFailureError(
                    f"Non-stationary AR part after {strategy.phases[index - 1].upper()} "
                    f"phase; try strategy='ml' or different starting values"
                )
            if inv_hessian is not None:
                inv_hessian = np.diag(np.diag(inv_hessian))
        if order.npar == 0:
            logger.info("%s has no free parameters; skipping optimization", order)
            break

        logger.info("Fitting %s by %s", order, method.upper())
        problem = Problem(fun=lambda x, m=method: objective(x, m), dim=order.npar)
        result = bfgs(problem, params, config=config.optimizer, inv_hessian0=inv_hessian)
        if result.status is Status.NUMERICAL_ERROR:
            raise NumericalFailureError(
                f"{method.upper()} estimation of {order} failed: {result.message}"
            )
        params = result.x
        inv_hessian = result.inv_hessian
        converged = result.status is Status.OPTIMAL
        if not converged:
            logger.warning(
                "%s estimation of %s did not converge: %s", method.upper(), order, result.message
            )
        logger.info(
            "%s phase finished after %d iterations, objective %.8g",
            method.upper(),
            result.nit,
            result.fun,
        )

    return _build_model(
        y, w, order, period, strategy, objective, params, inv_hessian, result, converged
    )


def evaluate(
    series: Sequence[float] | np.ndarray,
    coefficients: ModelCoefficients,
    strategy: FittingStrategy | str = FittingStrategy.ML,
    period: int = 1,
    config: Optional[FitConfig] = None,
) -> FittedModel:
    """Fit statistics of fixed coefficients, without optimization.

    Two-phase strategies evaluate with their final method. Standard errors
    are NaN.
    """
    if config is None:
        config = FitConfig()
    strategy = FittingStrategy.from_string(strategy)
    y = _validate_series(series)
    order = coefficients.order
    w = _prepare(y, order, period)
    scale = config.par_scale_multiplier * float(np.std(w)) / np.sqrt(w.size)
    objective = _ArimaObjective(w, order, period, scale, config.initialization)
    params = _free_values(coefficients, order)
    if order.has_level:
        params[-1] = coefficients.level(period) / scale
    return _build_model(y, w, order, period, strategy, objective, params, None, None, True)


__all__ = [
    "FitConfig",
    "FittedModel",
    "FittingStrategy",
    "ModelCoefficients",
    "ModelOrder",
    "evaluate",
    "fit",
]
