"""Polynomials in the lag (backshift) operator.

A lag polynomial ``c(L) = 1 + c_1 L + ... + c_k L^k`` acts on a series by
``(c(L) y)_t = y_t + c_1 y_{t-1} + ... + c_k y_{t-k}``. Differencing, the
autoregressive and moving-average parts of an ARIMA model, and their
seasonal counterparts are all lag polynomials, and composing operators is
multiplication of polynomials.

References:
    - Box & Jenkins (1976): Time Series Analysis: Forecasting and Control
    - Hamilton (1994): Time Series Analysis, chapter 2
"""

from __future__ import annotations

from typing import Sequence

import numpy as np

from ..exceptions import InvalidArgumentError


class LagPolynomial:
    """Immutable lag polynomial with leading coefficient 1.

    Args:
        parameters: Coefficients of ``L, L^2, ...``. The leading 1 is implied.

    Example:
        >>> LagPolynomial.differences(2).coefficients
        array([ 1., -2.,  1.])
        >>> ar = LagPolynomial.autoregressive([0.5])
        >>> (LagPolynomial.first_difference() * ar).coefficients
        array([ 1. , -1.5,  0.5])
    """

    __slots__ = ("_coefficients",)

    def __init__(self, parameters: Sequence[float] | np.ndarray = ()) -> None:
        params = np.asarray(parameters, dtype=float).ravel()
        if not np.all(np.isfinite(params)):
            raise InvalidArgumentError(f"Lag polynomial parameters must be finite, got {params}")
        coefficients = np.concatenate(([1.0], params))
        coefficients.setflags(write=False)
        self._coefficients = coefficients

    # Constructors

    @classmethod
    def from_coefficients(cls, coefficients: Sequence[float] | np.ndarray) -> "LagPolynomial":
        """Build from a full coefficient array whose first entry is 1."""
        coefficients = np.asarray(coefficients, dtype=float).ravel()
        if coefficients.size == 0 or coefficients[0] != 1.0:
            raise InvalidArgumentError(
                f"Leading lag coefficient must be 1, got {coefficients[:1]}"
            )
        return cls(coefficients[1:])

    @classmethod
    def identity(cls) -> "LagPolynomial":
        return cls()

    @classmethod
    def first_difference(cls) -> "LagPolynomial":
        """The first-difference operator ``1 - L``."""
        return cls([-1.0])

    @classmethod
    def differences(cls, d: int) -> "LagPolynomial":
        """The ``d``-th difference operator ``(1 - L)^d``.

        Raises:
            InvalidArgumentError: If ``d < 0``.
        """
        if d < 0:
            raise InvalidArgumentError(f"d must be >= 0, got {d}")
        result = cls.identity()
        first = cls.first_difference()
        for _ in range(d):
            result = result.times(first)
        return result

    @classmethod
    def seasonal_difference(cls, period: int) -> "LagPolynomial":
        """The seasonal difference operator ``1 - L^period``."""
        if period < 1:
            raise InvalidArgumentError(f"period must be >= 1, got {period}")
        params = np.zeros(period)
        params[period - 1] = -1.0
        return cls(params)

    @classmethod
    def seasonal_differences(cls, period: int, D: int) -> "LagPolynomial":
        """The operator ``(1 - L^period)^D``.

        Raises:
            InvalidArgumentError: If ``period < 1`` or ``D < 0``.
        """
        if D < 0:
            raise InvalidArgumentError(f"D must be >= 0, got {D}")
        seasonal = cls.seasonal_difference(period)
        result = cls.identity()
        for _ in range(D):
            result = result.times(seasonal)
        return result

    @classmethod
    def autoregressive(cls, phi: Sequence[float] | np.ndarray) -> "LagPolynomial":
        """The AR operator ``1 - phi_1 L - ... - phi_p L^p``."""
        return cls(-np.asarray(phi, dtype=float))

    @classmethod
    def moving_average(cls, theta: Sequence[float] | np.ndarray) -> "LagPolynomial":
        """The MA operator ``1 + theta_1 L + ... + theta_q L^q``."""
        return cls(theta)

    # Properties

    @property
    def coefficients(self) -> np.ndarray:
        """Full coefficient array, index i holding the coefficient of L^i."""
        return self._coefficients

    @property
    def parameters(self) -> np.ndarray:
        """Coefficients of ``L, L^2, ...`` (everything but the leading 1)."""
        return self._coefficients[1:]

    @property
    def degree(self) -> int:
        return self._coefficients.size - 1

    # Algebra

    def times(self, other: "LagPolynomial") -> "LagPolynomial":
        """Compose two operators by multiplying their polynomials."""
        return LagPolynomial.from_coefficients(
            np.convolve(self._coefficients, other._coefficients)
        )

    def __mul__(self, other: object) -> "LagPolynomial":
        if not isinstance(other, LagPolynomial):
            return NotImplemented
        return self.times(other)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, LagPolynomial):
            return NotImplemented
        return np.array_equal(self._coefficients, other._coefficients)

    def __hash__(self) -> int:
        return hash(tuple(self._coefficients))

    def __repr__(self) -> str:
        return f"LagPolynomial({self.parameters.tolist()})"

    def __str__(self) -> str:
        terms = ["1"]
        for power, coef in enumerate(self.parameters, start=1):
            if coef == 0.0:
                continue
            sign = "-" if coef < 0 else "+"
            lag = "L" if power == 1 else f"L^{power}"
            terms.append(f"{sign} {abs(coef):g}{lag}")
        return " ".join(terms)

    # Application to series

    def apply(self, series: np.ndarray, index: int) -> float:
        """Value of the filtered series at ``index``.

        Observations before the start of ``series`` are taken as zero.
        """
        return float(self._coefficients[0] * series[index] + self._lagged_sum(series, index))

    def apply_inverse(self, series: np.ndarray, index: int, value: float = 0.0) -> float:
        """Series value at ``index`` that makes :meth:`apply` return ``value``.

        Given the earlier observations of ``series``, this solves
        ``c(L) y_t = value`` for ``y_t``. Undoing differencing is
        ``apply_inverse(y, t, w_t)``.
        """
        return float(value - self._lagged_sum(series, index))

    def predict(self, series: np.ndarray, index: int) -> float:
        """Part of ``series[index]`` determined by its past, ``-sum c_i y_{t-i}``."""
        return self.apply_inverse(series, index, 0.0)

    def filter(self, series: np.ndarray) -> np.ndarray:
        """Apply the operator to a whole series.

        The first ``degree`` outputs need pre-sample values and are dropped,
        so the result has ``len(series) - degree`` entries.
        """
        series = np.asarray(series, dtype=float)
        if series.size <= self.degree:
            return np.array([])
        return np.convolve(series, self._coefficients)[self.degree : series.size]

    def inverse_coefficients(self, n: int) -> np.ndarray:
        """First ``n`` coefficients of the power series of ``1 / c(L)``."""
        if n < 0:
            raise InvalidArgumentError(f"n must be >= 0, got {n}")
        psi = np.zeros(n)
        if n == 0:
            return psi
        psi[0] = 1.0
        c = self._coefficients
        for j in range(1, n):
            upper = min(j, self.degree)
            psi[j] = -np.dot(c[1 : upper + 1], psi[j - 1 :: -1][:upper])
        return psi

    def roots(self) -> np.ndarray:
        """Roots of ``c(z)`` in the complex plane."""
        return np.roots(self._coefficients[::-1])

    def is_invertible(self) -> bool:
        """True when every root lies strictly outside the unit circle.

        For an AR polynomial this is stationarity; for an MA polynomial it is
        invertibility.
        """
        roots = self.roots()
        return bool(np.all(np.abs(roots) > 1.0))

    def _lagged_sum(self, series: np.ndarray, index: int) -> float:
        upper = min(self.degree, index)
        if upper <= 0:
            return 0.0
        past = np.asarray(series[index - upper : index], dtype=float)[::-1]
        return float(np.dot(self._coefficients[1 : upper + 1], past))


def _seasonal_spread(coefficients: Sequence[float] | np.ndarray, period: int) -> np.ndarray:
    coefficients = np.asarray(coefficients, dtype=float)
    spread = np.zeros(coefficients.size * period)
    spread[period - 1 :: period] = coefficients
    return spread


def expand_ar(
    ar: Sequence[float] | np.ndarray,
    sar: Sequence[float] | np.ndarray,
    period: int = 1,
) -> np.ndarray:
    """Coefficients of the combined AR operator ``phi(L) Phi(L^period)``.

    The result uses the same sign convention as the inputs, so an AR(1) with
    ``phi = 0.5`` and no seasonal part expands to ``[0.5]``.

    Example:
        >>> expand_ar([0.5], [0.2], period=4)
        array([ 0.5,  0. ,  0. ,  0.2, -0.1])
    """
    if period < 1:
        raise InvalidArgumentError(f"period must be >= 1, got {period}")
    combined = LagPolynomial.autoregressive(ar) * LagPolynomial.autoregressive(
        _seasonal_spread(sar, period)
    )
    return 0.0 - combined.parameters


def expand_ma(
    ma: Sequence[float] | np.ndarray,
    sma: Sequence[float] | np.ndarray,
    period: int = 1,
) -> np.ndarray:
    """Coefficients of the combined MA operator ``theta(L) Theta(L^period)``."""
    if period < 1:
        raise InvalidArgumentError(f"period must be >= 1, got {period}")
    combined = LagPolynomial.moving_average(ma) * LagPolynomial.moving_average(
        _seasonal_spread(sma, period)
    )
    return combined.parameters.copy()


__all__ = ["LagPolynomial", "expand_ar", "expand_ma"]
