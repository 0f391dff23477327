# hptrend/models/time_series/__init__.py
"""
Time series trend filters.

Modules:
    linear_system: HP system matrix and banded Cholesky solver
    kalman: Local linear trend Kalman filter
    filters: Two-sided and one-sided HP filters
"""

from .filters import (
    FilterBase, FilterResult, OneSidedHPFilter, TwoSidedHPFilter, hp_filter,
    one_sided_hp_filter
)
from .kalman import KalmanOutput, LocalLinearTrendKalman, steady_state
from .linear_system import (
    BandedSolver, hp_system_banded, hp_system_matrix, solve_hp_system
)

__all__ = [
    'FilterBase', 'FilterResult', 'OneSidedHPFilter', 'TwoSidedHPFilter',
    'hp_filter', 'one_sided_hp_filter',
    'KalmanOutput', 'LocalLinearTrendKalman', 'steady_state',
    'BandedSolver', 'hp_system_banded', 'hp_system_matrix', 'solve_hp_system',
]
