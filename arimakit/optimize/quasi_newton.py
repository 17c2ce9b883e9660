"""BFGS quasi-Newton minimization with a strong Wolfe line search."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

import numpy as np

from ..exceptions import InvalidArgumentError, NaNStepLengthError
from ..logging import get_logger
from .core import (
    SQRT_EPS,
    OptimizeResult,
    Problem,
    Status,
    check_convergence,
    relative_change,
)
from .line_search import LineSearchConfig, strong_wolfe_line_search
from .utils import approx_grad, forward_grad

logger = get_logger(__name__)

_GRADIENT_RULES = ("central", "forward")


@dataclass(frozen=True)
class BFGSConfig:
    """Stopping rules and numerical settings for :func:`bfgs`.

    Args:
        max_iter: Maximum number of outer iterations.
        gtol: Gradient-norm tolerance.
        ftol: Tolerance on the relative change of the objective between
            iterates.
        xtol: Tolerance on the step norm. Zero disables the test.
        max_skipped_updates: Number of consecutive iterations allowed to fail
            the curvature condition ``s . y > 0`` before the run is declared
            a numerical failure.
        eps: Finite-difference step used when the problem has no gradient.
        gradient: Finite-difference rule, ``"central"`` or ``"forward"``.
        line_search: Parameters passed to the line search.
    """

    max_iter: int = 200
    gtol: float = SQRT_EPS
    ftol: float = SQRT_EPS
    xtol: float = 0.0
    max_skipped_updates: int = 5
    eps: float = 1e-6
    gradient: str = "central"
    line_search: LineSearchConfig = field(default_factory=LineSearchConfig)

    def __post_init__(self) -> None:
        if self.max_iter < 1:
            raise InvalidArgumentError(f"max_iter must be >= 1, got {self.max_iter}")
        if self.gtol < 0 or self.ftol < 0 or self.xtol < 0:
            raise InvalidArgumentError(
                f"Tolerances must be >= 0, got gtol={self.gtol}, "
                f"ftol={self.ftol}, xtol={self.xtol}"
            )
        if self.max_skipped_updates < 0:
            raise InvalidArgumentError(
                f"max_skipped_updates must be >= 0, got {self.max_skipped_updates}"
            )
        if self.eps <= 0:
            raise InvalidArgumentError(f"eps must be positive, got {self.eps}")
        if self.gradient not in _GRADIENT_RULES:
            raise InvalidArgumentError(
                f"gradient must be one of {_GRADIENT_RULES}, got {self.gradient!r}"
            )


def _compute_gradient(
    problem: Problem, x: np.ndarray, fx: float, config: BFGSConfig
) -> tuple[np.ndarray, int, int]:
    if problem.grad is not None:
        return np.asarray(problem.grad(x), dtype=float), 0, 1
    if config.gradient == "forward":
        grad, evals = forward_grad(
            problem.fun, x, fx=fx, eps=config.eps, return_evals=True
        )
    else:
        grad, evals = approx_grad(problem.fun, x, eps=config.eps, return_evals=True)
    return grad, int(evals), 0


def _bfgs_update(
    inv_hessian: np.ndarray, s: np.ndarray, y: np.ndarray, ys: float
) -> np.ndarray:
    rho = 1.0 / ys
    identity = np.eye(s.size)
    outer_sy = np.outer(s, y)
    return (
        (identity - rho * outer_sy) @ inv_hessian @ (identity - rho * outer_sy.T)
        + rho * np.outer(s, s)
    )


def bfgs(
    problem: Problem,
    x0: np.ndarray,
    config: Optional[BFGSConfig] = None,
    inv_hessian0: Optional[np.ndarray] = None,
    history: bool = False,
) -> OptimizeResult:
    """Full-memory BFGS with strong Wolfe line search.

    The inverse-Hessian approximation starts at ``inv_hessian0`` (identity by
    default). Iterations whose step fails the curvature condition keep the
    previous approximation instead of updating it. A search direction that
    is not a descent direction resets the approximation to the identity.

    Args:
        problem: Objective and optional analytic gradient.
        x0: Starting point.
        config: Stopping rules. Defaults to :class:`BFGSConfig`.
        inv_hessian0: Initial inverse-Hessian approximation, shape (n, n).
        history: Record every iterate in ``result.history``.

    Returns:
        OptimizeResult. ``status`` is ``Status.OPTIMAL`` on convergence,
        ``Status.MAX_ITER`` or ``Status.LINE_SEARCH_FAILED`` when the best
        iterate is returned without meeting a tolerance, and
        ``Status.NUMERICAL_ERROR`` when the objective broke down.

    Raises:
        InvalidArgumentError: If ``x0`` or ``inv_hessian0`` has the wrong shape.
    """
    if config is None:
        config = BFGSConfig()
    x = np.asarray(x0, dtype=float).copy()
    if x.ndim != 1:
        raise InvalidArgumentError(f"x0 must be 1D, got shape {x.shape}")
    n = x.size
    if problem.dim is not None and problem.dim != n:
        raise InvalidArgumentError(
            f"x0 has {n} entries but the problem has dim={problem.dim}"
        )
    identity = np.eye(n)
    if inv_hessian0 is None:
        inv_hessian = identity.copy()
    else:
        inv_hessian = np.array(inv_hessian0, dtype=float)
        if inv_hessian.shape != (n, n):
            raise InvalidArgumentError(
                f"inv_hessian0 must be shape ({n}, {n}), got {inv_hessian.shape}"
            )

    hist: list[np.ndarray] = []
    if history:
        hist.append(x.copy())
    nfev = 0
    njev = 0
    nit = 0
    skipped = 0

    fx = float(problem.fun(x))
    nfev += 1
    grad = np.full(n, np.nan)
    status = Status.MAX_ITER
    message = "Maximum iterations reached."

    direction = np.zeros(n)
    # Objective values and gradients seen by the current line search, keyed
    # by step length, so the accepted point is not evaluated twice.
    trial_cache: dict[float, tuple[float, Optional[np.ndarray]]] = {}

    def phi(alpha: float) -> float:
        nonlocal nfev
        value = float(problem.fun(x + alpha * direction))
        nfev += 1
        trial_cache[alpha] = (value, None)
        return value

    def dphi(alpha: float) -> float:
        nonlocal nfev, njev
        value, _ = trial_cache[alpha]
        g, fe, je = _compute_gradient(problem, x + alpha * direction, value, config)
        nfev += fe
        njev += je
        trial_cache[alpha] = (value, g)
        return float(np.dot(g, direction))

    if not np.isfinite(fx):
        status = Status.NUMERICAL_ERROR
        message = "Objective is not finite at the starting point."
    else:
        grad, grad_fev, grad_jev = _compute_gradient(problem, x, fx, config)
        nfev += grad_fev
        njev += grad_jev

    while status is not Status.NUMERICAL_ERROR and nit < config.max_iter:
        if not np.all(np.isfinite(grad)):
            status = Status.NUMERICAL_ERROR
            message = "Gradient is not finite."
            break
        grad_norm = float(np.linalg.norm(grad))
        if check_convergence(grad_norm, config.gtol):
            status = Status.OPTIMAL
            message = "Gradient tolerance satisfied."
            break

        direction = -inv_hessian @ grad
        slope = float(np.dot(grad, direction))
        if not slope < 0:
            logger.debug(
                "Iteration %d: not a descent direction, resetting inverse Hessian", nit
            )
            inv_hessian = identity.copy()
            direction = -grad
            slope = -grad_norm**2

        trial_cache.clear()
        try:
            search = strong_wolfe_line_search(phi, dphi, fx, slope, config.line_search)
        except NaNStepLengthError as exc:
            status = Status.NUMERICAL_ERROR
            message = f"Line search failed: {exc}"
            break

        if not (search.alpha > 0 and search.phi <= fx):
            if np.array_equal(inv_hessian, identity):
                status = Status.LINE_SEARCH_FAILED
                message = "Line search could not reduce the objective."
                break
            logger.debug(
                "Iteration %d: line search made no progress, resetting inverse Hessian",
                nit,
            )
            inv_hessian = identity.copy()
            continue

        s = search.alpha * direction
        x_new = x + s
        f_new = search.phi
        _, grad_new = trial_cache.get(search.alpha, (f_new, None))
        if grad_new is None:
            grad_new, grad_fev, grad_jev = _compute_gradient(problem, x_new, f_new, config)
            nfev += grad_fev
            njev += grad_jev

        y = grad_new - grad
        ys = float(np.dot(y, s))
        if ys > 0:
            inv_hessian = _bfgs_update(inv_hessian, s, y, ys)
            skipped = 0
        else:
            skipped += 1
            logger.debug("Iteration %d: curvature condition failed, skipping update", nit)

        f_prev = fx
        x, fx, grad = x_new, f_new, grad_new
        nit += 1
        if history:
            hist.append(x.copy())
        logger.debug(
            "Iteration %d: f=%.10g |g|=%.3g alpha=%.3g", nit, fx, np.linalg.norm(grad), search.alpha
        )

        if skipped > config.max_skipped_updates:
            status = Status.NUMERICAL_ERROR
            message = f"Curvature condition failed on {skipped} consecutive iterations."
            break
        if relative_change(f_prev, fx) <= config.ftol:
            status = Status.OPTIMAL
            message = "Relative change in objective below tolerance."
            break
        if float(np.linalg.norm(s)) <= config.xtol:
            status = Status.OPTIMAL
            message = "Step size below tolerance."
            break

    if status is Status.MAX_ITER:
        logger.debug("BFGS stopped after %d iterations without converging", nit)

    return OptimizeResult(
        x=x,
        fun=float(fx),
        grad=grad,
        inv_hessian=inv_hessian,
        nit=nit,
        status=status,
        message=message,
        grad_norm=float(np.linalg.norm(grad)),
        nfev=nfev,
        njev=njev,
        history=hist,
    )


__all__ = ["BFGSConfig", "bfgs"]
