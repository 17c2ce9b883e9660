"""Strong Wolfe line search with safeguarded polynomial interpolation.

The search works on the auxiliary function

    psi(a) = phi(a) - phi(0) - c1 * phi'(0) * a

whose non-positivity is exactly the sufficient-decrease condition. A
bracketing phase extrapolates until an interval containing an acceptable step
is found; a zoom phase then shrinks that interval using cubic and quadratic
interpolation, falling back to bisection when the interval stops shrinking or
an endpoint value is not finite.

References:
    - Moré & Thuente (1994): Line search algorithms with guaranteed
      sufficient decrease. ACM TOMS 20(3).
    - Nocedal & Wright (2006): Numerical Optimization, algorithms 3.5 and 3.6.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Callable, Optional

from ..exceptions import InvalidArgumentError, NaNStepLengthError
from ..logging import get_logger
from .interpolation import cubic_minimum, quadratic_minimum, secant

logger = get_logger(__name__)

ScalarFunction = Callable[[float], float]

# Bisect when the bracket has not shrunk below this fraction of its width two
# trials earlier.
_STALL_RATIO = 0.667

# Relative bracket width below which the zoom phase gives up.
_MIN_RELATIVE_WIDTH = 1e-12


@dataclass(frozen=True)
class LineSearchConfig:
    """Parameters of the Strong Wolfe line search.

    Args:
        c1: Sufficient-decrease constant.
        c2: Curvature constant. Requires 0 < c1 < c2 < 1.
        alpha0: Initial trial step.
        alpha_max: Largest step the bracketing phase may try.
        extrapolation: Growth multiplier applied to the last step increment
            while bracketing.
        max_bracket_iter: Iteration cap of the bracketing phase.
        max_zoom_iter: Iteration cap of the zoom phase.
    """

    c1: float = 1e-4
    c2: float = 0.9
    alpha0: float = 1.0
    alpha_max: float = 1000.0
    extrapolation: float = 4.0
    max_bracket_iter: int = 1000
    max_zoom_iter: int = 40

    def __post_init__(self) -> None:
        if not (0 < self.c1 < self.c2 < 1):
            raise InvalidArgumentError(
                f"Require 0 < c1 < c2 < 1, got c1={self.c1}, c2={self.c2}"
            )
        if not self.alpha0 > 0:
            raise InvalidArgumentError(f"alpha0 must be > 0, got {self.alpha0}")
        if self.alpha_max < self.alpha0:
            raise InvalidArgumentError(
                f"alpha_max must be >= alpha0, got alpha_max={self.alpha_max}, "
                f"alpha0={self.alpha0}"
            )
        if not self.extrapolation > 0:
            raise InvalidArgumentError(
                f"extrapolation must be > 0, got {self.extrapolation}"
            )
        if self.max_bracket_iter < 1:
            raise InvalidArgumentError(
                f"max_bracket_iter must be >= 1, got {self.max_bracket_iter}"
            )
        if self.max_zoom_iter < 1:
            raise InvalidArgumentError(
                f"max_zoom_iter must be >= 1, got {self.max_zoom_iter}"
            )


@dataclass(frozen=True)
class LineSearchResult:
    """Outcome of a line search.

    ``converged`` is False when an iteration cap was reached or the bracket
    collapsed; ``alpha`` is then the best step found, which may be zero.
    """

    alpha: float
    phi: float
    dphi: float
    nfev: int
    ngev: int
    converged: bool


@dataclass(frozen=True)
class _Point:
    """Step length together with phi, psi and their derivatives."""

    alpha: float
    phi: float
    dphi: float
    psi: float
    dpsi: float


def strong_wolfe_line_search(
    phi: ScalarFunction,
    dphi: ScalarFunction,
    phi0: float,
    dphi0: float,
    config: Optional[LineSearchConfig] = None,
) -> LineSearchResult:
    """Find a step length satisfying the strong Wolfe conditions.

    Args:
        phi: Objective restricted to the search line, ``phi(a) = f(x + a p)``.
        dphi: Its derivative, ``dphi(a) = grad f(x + a p) . p``.
        phi0: ``phi(0)``.
        dphi0: ``dphi(0)``. Must be negative.
        config: Search parameters. Defaults to :class:`LineSearchConfig`.

    Returns:
        LineSearchResult whose ``alpha`` satisfies
        ``phi(alpha) <= phi0 + c1 * alpha * dphi0`` and
        ``|dphi(alpha)| <= c2 * |dphi0|`` when ``converged`` is True.

    Raises:
        InvalidArgumentError: If ``dphi0 >= 0`` or the starting values are not
            finite.
        NaNStepLengthError: If interpolation yields a NaN trial step, which
            happens when the derivative is NaN at a finite point.
    """
    if config is None:
        config = LineSearchConfig()
    phi0 = float(phi0)
    dphi0 = float(dphi0)
    if not (math.isfinite(phi0) and math.isfinite(dphi0)):
        raise InvalidArgumentError(
            f"phi0 and dphi0 must be finite, got phi0={phi0}, dphi0={dphi0}"
        )
    if dphi0 >= 0:
        raise InvalidArgumentError(
            f"Search direction must be a descent direction, got dphi0={dphi0}"
        )

    c1 = config.c1
    curvature_bound = -config.c2 * dphi0
    nfev = 0
    ngev = 0

    def evaluate(alpha: float) -> _Point:
        nonlocal nfev, ngev
        value = float(phi(alpha))
        nfev += 1
        if not math.isfinite(value):
            # Treated as an infinitely bad step; the derivative is meaningless.
            return _Point(alpha, math.inf, math.nan, math.inf, math.nan)
        slope = float(dphi(alpha))
        ngev += 1
        return _Point(
            alpha,
            value,
            slope,
            value - phi0 - c1 * dphi0 * alpha,
            slope - c1 * dphi0,
        )

    def acceptable(point: _Point) -> bool:
        return point.psi <= 0.0 and abs(point.dphi) <= curvature_bound

    def finish(point: _Point, converged: bool) -> LineSearchResult:
        return LineSearchResult(
            alpha=point.alpha,
            phi=point.phi,
            dphi=point.dphi,
            nfev=nfev,
            ngev=ngev,
            converged=converged,
        )

    lo = _Point(0.0, phi0, dphi0, 0.0, dphi0 * (1.0 - c1))
    t = config.alpha0

    for _ in range(config.max_bracket_iter):
        trial = evaluate(t)
        if trial.psi > lo.psi:
            point, converged = _zoom(lo, trial, evaluate, acceptable, config.max_zoom_iter)
            return finish(point, converged)
        if acceptable(trial):
            return finish(trial, True)
        if trial.dpsi * (lo.alpha - trial.alpha) > 0:
            # Still descending: move the lower end and extrapolate.
            if trial.alpha >= config.alpha_max:
                logger.debug("Line search reached alpha_max=%g without a bracket", config.alpha_max)
                return finish(trial, False)
            prior = lo
            lo = trial
            t = min(
                trial.alpha + config.extrapolation * (trial.alpha - prior.alpha),
                config.alpha_max,
            )
        else:
            point, converged = _zoom(trial, lo, evaluate, acceptable, config.max_zoom_iter)
            return finish(point, converged)

    logger.debug(
        "Line search bracketing stopped after %d iterations", config.max_bracket_iter
    )
    return finish(lo, False)


def _zoom(
    lo: _Point,
    hi: _Point,
    evaluate: Callable[[float], _Point],
    acceptable: Callable[[_Point], bool],
    max_iter: int,
) -> tuple[_Point, bool]:
    """Shrink ``[lo, hi]`` until a step satisfying the Wolfe conditions is found.

    ``lo`` always holds the lowest psi value seen so far, and the derivative
    at ``lo`` points towards ``hi``.
    """
    width = abs(hi.alpha - lo.alpha)
    width_prior = 2.0 * width
    force_bisection = False

    for _ in range(max_iter):
        if force_bisection or not math.isfinite(hi.psi):
            t = 0.5 * (lo.alpha + hi.alpha)
        else:
            t = _interpolate(lo, hi)
            if math.isnan(t):
                raise NaNStepLengthError(
                    f"Interpolated step is NaN on bracket [{lo.alpha}, {hi.alpha}]"
                )
            t = _safeguard(t, lo.alpha, hi.alpha)

        trial = evaluate(t)
        if acceptable(trial):
            return trial, True

        if trial.psi > lo.psi:
            hi = trial
        else:
            if trial.dpsi * (hi.alpha - lo.alpha) >= 0:
                hi = lo
            lo = trial

        new_width = abs(hi.alpha - lo.alpha)
        if new_width <= _MIN_RELATIVE_WIDTH * max(1.0, abs(lo.alpha)):
            logger.debug("Line search bracket collapsed at alpha=%g", lo.alpha)
            return lo, False
        force_bisection = new_width >= _STALL_RATIO * width_prior
        width_prior, width = width, new_width

    logger.debug("Line search zoom stopped after %d iterations", max_iter)
    return lo, False


def _interpolate(lo: _Point, hi: _Point) -> float:
    """Trial step from cubic and quadratic models of psi on the bracket."""
    values = (lo.alpha, hi.alpha, lo.psi, hi.psi, lo.dpsi, hi.dpsi)
    if any(math.isnan(v) for v in values):
        return math.nan

    alpha_c = cubic_minimum(lo.alpha, hi.alpha, lo.psi, hi.psi, lo.dpsi, hi.dpsi)
    alpha_q = quadratic_minimum(lo.alpha, hi.alpha, lo.psi, hi.psi, lo.dpsi)

    if math.isnan(alpha_c) and math.isnan(alpha_q):
        alpha_s = secant(lo.alpha, hi.alpha, lo.dpsi, hi.dpsi)
        if math.isnan(alpha_s):
            return 0.5 * (lo.alpha + hi.alpha)
        return alpha_s
    if math.isnan(alpha_c):
        return alpha_q
    if math.isnan(alpha_q):
        return alpha_c
    if abs(alpha_c - lo.alpha) < abs(alpha_q - lo.alpha):
        return alpha_c
    return 0.5 * (alpha_q + alpha_c)


def _safeguard(t: float, a: float, b: float) -> float:
    """Keep a trial strictly inside the bracket."""
    low, high = (a, b) if a < b else (b, a)
    if not (low < t < high):
        return 0.5 * (low + high)
    return t


__all__ = ["LineSearchConfig", "LineSearchResult", "strong_wolfe_line_search"]
