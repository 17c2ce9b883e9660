"""Exception hierarchy for arimakit.

Two kinds of failure abort a computation:

- ``InvalidArgumentError`` for inputs rejected before any iteration starts.
- ``NumericalFailureError`` for objectives or filters that become ill-posed
  at the current point (NaN step lengths, non-positive innovation variances).

Slow convergence is not an error. Optimizers report it through
``Status.MAX_ITER`` and fitted models through ``converged=False``.
"""

from __future__ import annotations

from typing import Optional


class ArimaKitError(Exception):
    """Base class for all errors raised by arimakit."""


class InvalidArgumentError(ArimaKitError, ValueError):
    """Raised when an argument is rejected during validation."""


class NumericalFailureError(ArimaKitError, ArithmeticError):
    """Raised when a computation breaks down numerically."""


class NaNStepLengthError(NumericalFailureError):
    """Raised when the line search produces a NaN trial step."""


class KalmanFilterError(NumericalFailureError):
    """Raised when the Kalman recursion loses positive definiteness."""

    def __init__(self, message: str, index: Optional[int] = None) -> None:
        super().__init__(message)
        self.index = index


__all__ = [
    "ArimaKitError",
    "InvalidArgumentError",
    "NumericalFailureError",
    "NaNStepLengthError",
    "KalmanFilterError",
]
