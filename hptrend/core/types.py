# hptrend/core/types.py

"""
Type aliases for the HP Trend Toolbox.

These aliases document the role of each array in a signature. They carry no
runtime checks; validation lives in hptrend.core.validation.
"""

from enum import Enum
from typing import Any, Dict, Literal, Sequence, Union

import numpy as np
import pandas as pd

# NumPy array aliases
Matrix = np.ndarray  # 2D array
BandMatrix = np.ndarray  # (bandwidth + 1, T) upper band storage
StateVector = np.ndarray  # (2,) level and slope
CovarianceMatrix = np.ndarray  # (2, 2) symmetric positive semi-definite
Panel = np.ndarray  # (T, n) one column per series

# Containers accepted by the filters
TimeSeriesDataFrame = Union[np.ndarray, pd.Series, pd.DataFrame]

# Optional per-column initial conditions for the one-sided filter
InitialState = Union[np.ndarray, Sequence[Sequence[float]]]
InitialCovariance = Union[np.ndarray, Sequence[np.ndarray]]

# Configuration types
ConfigDict = Dict[str, Any]
LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


class FilterSide(Enum):
    """Which observations a trend estimate at time t may use."""
    TWO_SIDED = "two-sided"
    ONE_SIDED = "one-sided"


class ContainerKind(Enum):
    """Container type of the caller's data, restored on output."""
    ARRAY_1D = "array-1d"
    ARRAY_2D = "array-2d"
    SERIES = "series"
    FRAME = "frame"
