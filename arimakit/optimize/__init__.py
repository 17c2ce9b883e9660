"""Unconstrained minimization used by the ARIMA estimators.

Example
-------
>>> import numpy as np
>>> from arimakit.optimize import Problem, bfgs
>>> def rosen(x):
...     return (1 - x[0])**2 + 100 * (x[1] - x[0]**2)**2
>>> def rosen_grad(x):
...     return np.array([
...         -2 * (1 - x[0]) - 400 * x[0] * (x[1] - x[0] ** 2),
...         200 * (x[1] - x[0] ** 2),
...     ])
>>> res = bfgs(Problem(fun=rosen, grad=rosen_grad, dim=2), np.array([0.5, 1.5]))
>>> res.status
<Status.OPTIMAL: 'optimal'>
"""

from .core import ATOL, SQRT_EPS, OptimizeResult, Problem, Status, check_convergence
from .interpolation import cubic_minimum, quadratic_minimum, secant
from .line_search import LineSearchConfig, LineSearchResult, strong_wolfe_line_search
from .quasi_newton import BFGSConfig, bfgs
from .utils import approx_grad, forward_grad, is_pos_def

__all__ = [
    "ATOL",
    "BFGSConfig",
    "LineSearchConfig",
    "LineSearchResult",
    "OptimizeResult",
    "Problem",
    "SQRT_EPS",
    "Status",
    "approx_grad",
    "bfgs",
    "check_convergence",
    "cubic_minimum",
    "forward_grad",
    "is_pos_def",
    "quadratic_minimum",
    "secant",
    "strong_wolfe_line_search",
]
