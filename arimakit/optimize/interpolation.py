"""Polynomial interpolation steps used to pick line-search trial points.

Each helper fits a low-order polynomial to function and derivative values at
two step lengths and returns the minimizer of that polynomial. They return
``nan`` when the model has no local minimum (for example a concave quadratic)
so the caller can fall back to a safer step.

References:
    - Moré & Thuente (1994): Line search algorithms with guaranteed
      sufficient decrease. ACM TOMS 20(3).
    - Nocedal & Wright (2006): Numerical Optimization, section 3.5.
"""

from __future__ import annotations

import math


def cubic_minimum(
    x1: float, x2: float, f1: float, f2: float, d1: float, d2: float
) -> float:
    """Minimizer of the cubic interpolating values and slopes at two points.

    Args:
        x1, x2: Interpolation abscissae. They need not be ordered.
        f1, f2: Function values at ``x1`` and ``x2``.
        d1, d2: Derivatives at ``x1`` and ``x2``.

    Returns:
        The local minimizer of the interpolating cubic, or ``nan`` when the
        cubic has no real local minimum or the points coincide.

    Example:
        >>> cubic_minimum(0.0, 2.0, 0.0, 4.0, 0.0, 4.0)  # f(x) = x**2
        0.0
    """
    if x1 > x2:
        x1, x2 = x2, x1
        f1, f2 = f2, f1
        d1, d2 = d2, d1
    width = x2 - x1
    if width == 0.0:
        return math.nan
    s = 3.0 * (f2 - f1) / width
    z = s - d1 - d2
    discriminant = z * z - d1 * d2
    if discriminant < 0.0:
        return math.nan
    w = math.sqrt(discriminant)
    denominator = d2 - d1 + 2.0 * w
    if denominator == 0.0:
        return math.nan
    return x1 + width * ((w - d1 - z) / denominator)


def quadratic_minimum(x1: float, x2: float, f1: float, f2: float, d1: float) -> float:
    """Minimizer of the quadratic through two values and the slope at ``x1``.

    Returns ``nan`` when the quadratic is not strictly convex.

    Example:
        >>> quadratic_minimum(1.0, 3.0, 1.0, 1.0, -2.0)  # f(x) = (x - 2)**2
        2.0
    """
    dx = x1 - x2
    if dx == 0.0:
        return math.nan
    a = -(f1 - f2 - d1 * dx) / (dx * dx)
    if not a > 0.0:
        return math.nan
    b = d1 - 2.0 * x1 * a
    return -b / (2.0 * a)


def secant(x1: float, x2: float, d1: float, d2: float) -> float:
    """Root of the line through two derivative values.

    Equivalently the minimizer of the quadratic matching both slopes.
    Returns ``nan`` when the slopes are equal.
    """
    if d2 == d1:
        return math.nan
    return x2 - d2 * (x2 - x1) / (d2 - d1)


__all__ = ["cubic_minimum", "quadratic_minimum", "secant"]
