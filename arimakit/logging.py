"""Logging utilities for arimakit.

Fitting routines report progress through module loggers so that callers can
follow optimizer iterations without printing from library code. Messages are
tiered by fitting stage:

- WARNING: order normalization and estimation phases that did not converge.
- INFO: the start and end of each estimation phase (CSS, USS, ML).
- DEBUG: BFGS iterations, inverse-Hessian resets and line-search caps.

:func:`set_verbosity` selects one of these tiers.
"""

from __future__ import annotations

import logging
import sys
from typing import Optional

from .exceptions import InvalidArgumentError

# Default logging level
_DEFAULT_LEVEL = logging.WARNING

_DEFAULT_FORMAT = "[%(levelname)s] %(name)s: %(message)s"

# Levels selected by set_verbosity(0), (1) and (2).
_VERBOSITY_LEVELS = (logging.WARNING, logging.INFO, logging.DEBUG)

# Module-level logger cache
_loggers: dict[str, logging.Logger] = {}


def _coerce_level(level: int | str) -> int:
    if isinstance(level, str):
        return getattr(logging, level.upper(), logging.WARNING)
    return level


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """Get or create a logger for the given module name.

    Loggers are cached to avoid duplicate handlers. The logger name should
    typically be `__name__` from the calling module.

    Args:
        name: Logger name (typically `__name__`). If None, returns the package
            logger.

    Returns:
        Configured logger instance.

    Example:
        >>> from arimakit.logging import get_logger
        >>> logger = get_logger(__name__)
        >>> logger.info("Fitting ARIMA(1, 1, 1)")
    """
    if name is None:
        name = "arimakit"

    logger_name = name if name == "arimakit" or name.startswith("arimakit.") else f"arimakit.{name}"

    if logger_name in _loggers:
        return _loggers[logger_name]

    logger = logging.getLogger(logger_name)

    # Only configure if not already configured (avoid duplicate handlers)
    if not logger.handlers:
        logger.setLevel(_DEFAULT_LEVEL)

        handler = logging.StreamHandler(sys.stderr)
        handler.setLevel(_DEFAULT_LEVEL)
        handler.setFormatter(logging.Formatter(_DEFAULT_FORMAT))

        logger.addHandler(handler)
        logger.propagate = False

    _loggers[logger_name] = logger
    return logger


def set_log_level(level: int | str) -> None:
    """Set the logging level for all arimakit loggers.

    Args:
        level: Logging level (logging.DEBUG, logging.INFO, etc.) or string
            ('DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL').

    Example:
        >>> import logging
        >>> from arimakit.logging import set_log_level
        >>> set_log_level(logging.DEBUG)
    """
    level = _coerce_level(level)

    for logger in _loggers.values():
        logger.setLevel(level)
        for handler in logger.handlers:
            handler.setLevel(level)

    global _DEFAULT_LEVEL
    _DEFAULT_LEVEL = level


def set_verbosity(verbose: int) -> None:
    """Choose how much fitting progress is reported.

    Args:
        verbose: ``0`` reports warnings only, ``1`` adds one line per
            estimation phase and ``2`` or more adds every BFGS iteration.

    Raises:
        InvalidArgumentError: If ``verbose`` is negative.

    Example:
        >>> from arimakit.logging import set_verbosity
        >>> set_verbosity(1)  # log CSS and ML phases of each fit
        >>> set_verbosity(0)
    """
    if verbose < 0:
        raise InvalidArgumentError(f"verbose must be >= 0, got {verbose}")
    set_log_level(_VERBOSITY_LEVELS[min(verbose, len(_VERBOSITY_LEVELS) - 1)])


def configure_logging(
    level: int | str = logging.WARNING,
    format_string: Optional[str] = None,
    stream: Optional[object] = None,
) -> None:
    """Configure logging for arimakit.

    Replaces the handlers of every existing arimakit logger. It should
    typically be called once at application startup.

    Args:
        level: Logging level (default: WARNING).
        format_string: Custom format string. If None, uses default.
        stream: Output stream (default: sys.stderr).
    """
    level = _coerce_level(level)

    if stream is None:
        stream = sys.stderr

    formatter = logging.Formatter(format_string or _DEFAULT_FORMAT)

    for logger in _loggers.values():
        logger.setLevel(level)
        for handler in logger.handlers[:]:
            logger.removeHandler(handler)
        handler = logging.StreamHandler(stream)
        handler.setLevel(level)
        handler.setFormatter(formatter)
        logger.addHandler(handler)

    global _DEFAULT_LEVEL
    _DEFAULT_LEVEL = level


__all__ = ["get_logger", "set_log_level", "set_verbosity", "configure_logging"]
