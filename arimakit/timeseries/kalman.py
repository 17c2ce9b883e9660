"""Kalman filter likelihood for ARMA processes in state-space form.

An ARMA(p, q) process with combined AR coefficients ``phi`` and MA
coefficients ``theta`` is written in the Harvey form with state dimension
``r = max(p, q + 1)``:

    alpha_{t+1} = T alpha_t + R eps_t
    y_t         = Z alpha_t

where ``T`` carries ``phi`` in its first column and ones on the
superdiagonal, ``Z = e_1`` and ``R = [1, theta_1, ..., theta_q, 0, ...]``.
The innovation variance sigma^2 is profiled out: the filter runs with unit
noise variance and sigma^2 is estimated from the scaled innovations.

References:
    - Harvey (1989): Forecasting, Structural Time Series Models and the
      Kalman Filter, section 3.3
    - Gardner, Harvey & Phillips (1980): Algorithm AS 154
    - Durbin & Koopman (2012): Time Series Analysis by State Space Methods
"""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np
from scipy import linalg

from ..exceptions import InvalidArgumentError, KalmanFilterError

# Initial state variance of the diffuse initialization.
DIFFUSE_KAPPA = 1e6

_INITIALIZATIONS = ("stationary", "diffuse")


@dataclass(frozen=True)
class ArmaStateSpace:
    """State-space matrices of an ARMA process.

    Attributes:
        T: Transition matrix, shape (r, r).
        R: Disturbance loading vector, shape (r,).
    """

    T: np.ndarray
    R: np.ndarray

    def __post_init__(self) -> None:
        r = self.T.shape[0]
        if self.T.shape != (r, r):
            raise InvalidArgumentError(f"T must be square, got shape {self.T.shape}")
        if self.R.shape != (r,):
            raise InvalidArgumentError(f"R must be shape ({r},), got {self.R.shape}")

    @classmethod
    def from_coefficients(cls, ar: np.ndarray, ma: np.ndarray) -> "ArmaStateSpace":
        """Build the Harvey representation from expanded AR and MA coefficients."""
        ar = np.asarray(ar, dtype=float).ravel()
        ma = np.asarray(ma, dtype=float).ravel()
        r = max(ar.size, ma.size + 1)
        T = np.zeros((r, r))
        T[: ar.size, 0] = ar
        T[np.arange(r - 1), np.arange(1, r)] = 1.0
        R = np.zeros(r)
        R[0] = 1.0
        R[1 : ma.size + 1] = ma
        return cls(T=T, R=R)

    @property
    def dim(self) -> int:
        return self.T.shape[0]

    @property
    def Z(self) -> np.ndarray:
        """Observation vector ``e_1``."""
        z = np.zeros(self.dim)
        z[0] = 1.0
        return z

    def is_stationary(self) -> bool:
        """True when every eigenvalue of ``T`` lies inside the unit circle."""
        return bool(np.max(np.abs(np.linalg.eigvals(self.T))) < 1.0)

    def stationary_covariance(self) -> np.ndarray:
        """Unconditional state covariance ``P = T P T' + R R'``.

        Raises:
            KalmanFilterError: If the transition matrix is not stable, in which
                case no stationary covariance exists.
        """
        if not self.is_stationary():
            raise KalmanFilterError(
                "AR part is not stationary; no stationary initial covariance exists"
            )
        P = linalg.solve_discrete_lyapunov(self.T, np.outer(self.R, self.R))
        return 0.5 * (P + P.T)


@dataclass(frozen=True)
class KalmanState:
    """Filter state after ``index`` observations.

    Attributes:
        x: Filtered state mean.
        P: Filtered state covariance.
        ssq: Running sum of ``v^2 / f`` over included observations.
        sumlog: Running sum of ``log f`` over included observations.
        nobs: Number of observations included in the sums.
        index: Number of observations processed.
    """

    x: np.ndarray
    P: np.ndarray
    ssq: float = 0.0
    sumlog: float = 0.0
    nobs: int = 0
    index: int = 0


@dataclass(frozen=True)
class KalmanOutput:
    """Result of filtering a whole series.

    Attributes:
        innovations: One-step prediction errors ``v_t``.
        variances: Innovation variances ``f_t`` (in units of sigma^2).
        residuals: Standardized innovations ``v_t / sqrt(f_t)``.
        ssq: Sum of ``v^2 / f`` over the likelihood sample.
        sumlog: Sum of ``log f`` over the likelihood sample.
        nobs: Size of the likelihood sample.
        sigma2: Profiled innovation variance ``ssq / nobs``.
        loglik: Concentrated Gaussian log-likelihood.
    """

    innovations: np.ndarray
    variances: np.ndarray
    residuals: np.ndarray
    ssq: float
    sumlog: float
    nobs: int
    sigma2: float
    loglik: float


class KalmanFilter:
    """Kalman filter computing the concentrated ARMA likelihood.

    Args:
        model: ARMA state-space matrices.
        initialization: ``"stationary"`` starts from the unconditional state
            distribution and yields the exact likelihood. ``"diffuse"``
            starts from a large state variance and leaves the first ``r``
            observations out of the likelihood.
    """

    def __init__(self, model: ArmaStateSpace, initialization: str = "stationary") -> None:
        if initialization not in _INITIALIZATIONS:
            raise InvalidArgumentError(
                f"initialization must be one of {_INITIALIZATIONS}, got {initialization!r}"
            )
        self.model = model
        self.initialization = initialization
        self._RRt = np.outer(model.R, model.R)

    @property
    def burn_in(self) -> int:
        """Observations excluded from the likelihood sums."""
        return self.model.dim if self.initialization == "diffuse" else 0

    def initial_state(self) -> KalmanState:
        r = self.model.dim
        if self.initialization == "diffuse":
            P0 = DIFFUSE_KAPPA * np.eye(r)
        else:
            P0 = self.model.stationary_covariance()
        return KalmanState(x=np.zeros(r), P=P0)

    def step(self, state: KalmanState, y: float) -> tuple[KalmanState, float, float]:
        """Advance the filter by one observation.

        Returns:
            Tuple of (new state, innovation ``v``, innovation variance ``f``).

        Raises:
            KalmanFilterError: If the innovation variance is not positive.
        """
        T = self.model.T
        x_pred = T @ state.x
        P_pred = T @ state.P @ T.T + self._RRt
        v = float(y - x_pred[0])
        f = float(P_pred[0, 0])
        if not (np.isfinite(f) and f > 0.0):
            raise KalmanFilterError(
                f"Innovation variance {f} is not positive at index {state.index}",
                index=state.index,
            )
        K = P_pred[:, 0] / f
        x = x_pred + K * v
        P = P_pred - np.outer(K, K) * f

        ssq, sumlog, nobs = state.ssq, state.sumlog, state.nobs
        if state.index >= self.burn_in:
            ssq += v * v / f
            sumlog += np.log(f)
            nobs += 1
        return KalmanState(x, P, ssq, sumlog, nobs, state.index + 1), v, f

    def run(self, y: np.ndarray) -> KalmanOutput:
        """Filter a whole (mean-corrected) series.

        Raises:
            InvalidArgumentError: If no observation remains after the burn-in.
            KalmanFilterError: If the recursion loses positive definiteness or
                the stationary initialization does not exist.
        """
        y = np.asarray(y, dtype=float)
        if y.ndim != 1:
            raise InvalidArgumentError(f"y must be 1D, got shape {y.shape}")
        if y.size <= self.burn_in:
            raise InvalidArgumentError(
                f"Need more than {self.burn_in} observations, got {y.size}"
            )

        innovations = np.zeros(y.size)
        variances = np.zeros(y.size)
        state = self.initial_state()
        for t in range(y.size):
            state, innovations[t], variances[t] = self.step(state, y[t])

        sigma2 = state.ssq / state.nobs
        if not sigma2 > 0.0:
            raise KalmanFilterError("Profiled innovation variance is zero")
        loglik = -0.5 * state.nobs * (np.log(2.0 * np.pi * sigma2) + 1.0) - 0.5 * state.sumlog
        return KalmanOutput(
            innovations=innovations,
            variances=variances,
            residuals=innovations / np.sqrt(variances),
            ssq=float(state.ssq),
            sumlog=float(state.sumlog),
            nobs=int(state.nobs),
            sigma2=float(sigma2),
            loglik=float(loglik),
        )


def arma_loglike(
    y: np.ndarray,
    ar: np.ndarray,
    ma: np.ndarray,
    initialization: str = "stationary",
) -> KalmanOutput:
    """Filter ``y`` through the ARMA model with the given coefficients.

    Args:
        y: Mean-corrected, differenced series.
        ar: Expanded AR coefficients.
        ma: Expanded MA coefficients.
        initialization: See :class:`KalmanFilter`.

    Example:
        >>> out = arma_loglike(np.array([0.3, -0.1, 0.4]), ar=[0.5], ma=[])
        >>> out.nobs
        3
    """
    model = ArmaStateSpace.from_coefficients(ar, ma)
    return KalmanFilter(model, initialization=initialization).run(y)


__all__ = [
    "DIFFUSE_KAPPA",
    "ArmaStateSpace",
    "KalmanState",
    "KalmanOutput",
    "KalmanFilter",
    "arma_loglike",
]
