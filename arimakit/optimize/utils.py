"""Finite-difference derivative helpers.

The ARIMA objectives have no closed-form gradient, so the optimizer falls
back to these pure NumPy approximations.
"""

from __future__ import annotations

from typing import Optional

import numpy as np

from ..exceptions import InvalidArgumentError
from .core import Array, Objective


def approx_grad(
    fun: Objective, x: Array, eps: float = 1e-6, return_evals: bool = False
) -> Array | tuple[Array, int]:
    """Compute a central-difference gradient approximation.

    Parameters
    ----------
    fun:
        Objective function returning a scalar given x.
    x:
        Point where the gradient is approximated.
    eps:
        Perturbation size for finite differences.
    return_evals:
        Also return the number of objective evaluations.
    """
    if eps <= 0:
        raise InvalidArgumentError(f"eps must be positive, got {eps}")
    x = np.asarray(x, dtype=float).copy()
    grad = np.zeros_like(x, dtype=float)
    evals = 0
    for i in range(x.size):
        ei = np.zeros_like(x)
        ei[i] = eps
        fx_plus = fun(x + ei)
        fx_minus = fun(x - ei)
        evals += 2
        grad[i] = (fx_plus - fx_minus) / (2.0 * eps)
    if return_evals:
        return grad, evals
    return grad


def forward_grad(
    fun: Objective,
    x: Array,
    fx: Optional[float] = None,
    eps: float = 1e-6,
    return_evals: bool = False,
) -> Array | tuple[Array, int]:
    """Compute a forward-difference gradient approximation.

    Cheaper than :func:`approx_grad` when ``fun(x)`` is already known, at the
    cost of first-order accuracy.

    Parameters
    ----------
    fun:
        Objective function returning a scalar given x.
    x:
        Point where the gradient is approximated.
    fx:
        Value of ``fun(x)`` if already computed.
    eps:
        Perturbation size for finite differences.
    return_evals:
        Also return the number of objective evaluations.
    """
    if eps <= 0:
        raise InvalidArgumentError(f"eps must be positive, got {eps}")
    x = np.asarray(x, dtype=float).copy()
    evals = 0
    if fx is None:
        fx = fun(x)
        evals += 1
    grad = np.zeros_like(x, dtype=float)
    for i in range(x.size):
        ei = np.zeros_like(x)
        ei[i] = eps
        grad[i] = (fun(x + ei) - fx) / eps
        evals += 1
    if return_evals:
        return grad, evals
    return grad


def is_pos_def(mat: Array, tol: float = 1e-12) -> bool:
    """Check if a matrix is positive definite via eigenvalues."""
    sym = 0.5 * (mat + mat.T)
    eigvals = np.linalg.eigvalsh(sym)
    return bool(np.all(eigvals > tol))


__all__ = ["approx_grad", "forward_grad", "is_pos_def"]
