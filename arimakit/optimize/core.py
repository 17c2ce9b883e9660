"""Core interfaces shared by the line search and the quasi-Newton optimizer."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, List, Optional

import numpy as np

Array = np.ndarray
Objective = Callable[[Array], float]
Gradient = Callable[[Array], Array]

# Square root of machine epsilon, the default tolerance for gradient norms and
# relative objective changes.
SQRT_EPS = float(np.sqrt(np.finfo(float).eps))
ATOL = 1e-10


class Status(Enum):
    """Termination status reported by the optimizers.

    ``MAX_ITER`` and ``LINE_SEARCH_FAILED`` are recoverable: the best iterate
    is returned and the caller decides whether to accept it.
    ``NUMERICAL_ERROR`` means the objective or its gradient broke down.
    """

    OPTIMAL = "optimal"
    MAX_ITER = "max_iter"
    LINE_SEARCH_FAILED = "line_search_failed"
    NUMERICAL_ERROR = "numerical_error"


@dataclass(frozen=True)
class Problem:
    """Container describing an unconstrained minimization problem.

    When ``grad`` is omitted the optimizer falls back to central finite
    differences of ``fun``.
    """

    fun: Objective
    grad: Optional[Gradient] = None
    dim: Optional[int] = None


@dataclass
class OptimizeResult:
    """Result object returned by :func:`arimakit.optimize.bfgs`.

    ``inv_hessian`` is the final inverse-Hessian approximation. Callers use
    it as an approximate parameter covariance or as a warm start for a
    follow-up minimization.
    """

    x: Array
    fun: float
    grad: Array
    inv_hessian: Array
    nit: int
    status: Status
    message: str
    grad_norm: float
    nfev: int
    njev: int
    history: List[Array] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return self.status is Status.OPTIMAL


def check_convergence(grad_norm: float, tol: float) -> bool:
    """Return True if gradient norm satisfies tolerance."""
    return grad_norm <= max(tol, ATOL)


def relative_change(f_prev: float, f_new: float) -> float:
    """Relative decrease of the objective between two iterates."""
    scale = max(abs(f_prev), abs(f_new), 1.0)
    return abs(f_prev - f_new) / scale


__all__ = [
    "Array",
    "Objective",
    "Gradient",
    "Problem",
    "OptimizeResult",
    "Status",
    "check_convergence",
    "relative_change",
    "SQRT_EPS",
    "ATOL",
]
