"""arimakit - seasonal ARIMA estimation with a Kalman likelihood and BFGS."""

__version__ = "0.1.0"

# Errors
from .exceptions import (
    ArimaKitError,
    InvalidArgumentError,
    KalmanFilterError,
    NaNStepLengthError,
    NumericalFailureError,
)

# Logging
from .logging import configure_logging, get_logger, set_log_level, set_verbosity

# Optimization
from .optimize import (
    BFGSConfig,
    LineSearchConfig,
    OptimizeResult,
    Problem,
    Status,
    bfgs,
    strong_wolfe_line_search,
)

# Time series
from .timeseries import (
    ARIMA,
    FitConfig,
    FittedModel,
    FittingStrategy,
    Forecast,
    LagPolynomial,
    ModelCoefficients,
    ModelOrder,
    evaluate,
    fit,
    forecast,
    simulate,
)

__all__ = [
    "__version__",
    # Errors
    "ArimaKitError",
    "InvalidArgumentError",
    "NumericalFailureError",
    "NaNStepLengthError",
    "KalmanFilterError",
    # Logging
    "get_logger",
    "set_log_level",
    "set_verbosity",
    "configure_logging",
    # Optimization
    "Problem",
    "OptimizeResult",
    "Status",
    "BFGSConfig",
    "LineSearchConfig",
    "bfgs",
    "strong_wolfe_line_search",
    # Time series
    "ARIMA",
    "ModelOrder",
    "ModelCoefficients",
    "FittingStrategy",
    "FitConfig",
    "FittedModel",
    "Forecast",
    "LagPolynomial",
    "fit",
    "evaluate",
    "forecast",
    "simulate",
]
