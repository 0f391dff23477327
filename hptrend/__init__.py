# hptrend/__init__.py
"""
HP Trend Toolbox - Hodrick-Prescott trend filtering for Python

Decomposes multivariate time series into a smooth trend and a cyclical
residual with two estimators:

- a two-sided (full-sample) filter solving the HP pentadiagonal system
- a one-sided (causal) filter running a Kalman recursion on a local
  linear trend model

Quick start:

    >>> import numpy as np
    >>> import hptrend
    >>> y = np.cumsum(np.random.default_rng(0).standard_normal(200))
    >>> trend = hptrend.hp_filter(y, lambda_=1600)
    >>> realtime = hptrend.one_sided_hp_filter(y, lambda_=1600, discard=8)
"""

import logging
from typing import Union

from .version import __author__, __license__, __version__
from .core.config import initialize_config
from .models.time_series.filters import (
    FilterResult, OneSidedHPFilter, TwoSidedHPFilter, hp_filter,
    one_sided_hp_filter
)

# Package-wide logger, configured from the logging configuration section
logger = logging.getLogger("hptrend")

initialize_config()


def get_version() -> str:
    """Return the version of the HP Trend Toolbox."""
    return __version__


def set_log_level(level: Union[str, int]) -> None:
    """
    Set the logging level for the HP Trend Toolbox.

    Args:
        level: Logging level name ('DEBUG', 'INFO', ...) or a logging constant
    """
    if isinstance(level, str):
        level = getattr(logging, level.upper())
    logger.setLevel(level)
    logger.debug(f"Log level set to {logging.getLevelName(level)}")


__all__ = [
    'FilterResult',
    'TwoSidedHPFilter',
    'OneSidedHPFilter',
    'hp_filter',
    'one_sided_hp_filter',
    'get_version',
    'set_log_level',
    '__version__',
    '__author__',
    '__license__',
]
