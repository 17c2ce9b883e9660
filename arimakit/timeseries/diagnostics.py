"""Information criteria for model selection.

References:
    - Akaike (1974): A new look at the statistical model identification
    - Hurvich & Tsai (1989): Regression and time series model selection in
      small samples
    - Schwarz (1978): Estimating the dimension of a model
"""

from __future__ import annotations

import numpy as np


def aic(loglik: float, npar: int) -> float:
    """Akaike Information Criterion, ``2k - 2 ln(L)``."""
    return 2.0 * npar - 2.0 * loglik


def aicc(loglik: float, npar: int, nobs: int) -> float:
    """AIC with the small-sample correction of Hurvich & Tsai.

    Returns ``inf`` when ``nobs <= npar + 1``, where the correction is
    undefined.
    """
    denominator = nobs - npar - 1
    if denominator <= 0:
        return float("inf")
    return aic(loglik, npar) + 2.0 * npar * (npar + 1) / denominator


def bic(loglik: float, npar: int, nobs: int) -> float:
    """Bayesian Information Criterion, ``ln(n) k - 2 ln(L)``."""
    return float(np.log(nobs)) * npar - 2.0 * loglik


__all__ = ["aic", "aicc", "bic"]
