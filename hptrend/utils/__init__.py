# hptrend/utils/__init__.py
"""Utility functions of the HP Trend Toolbox."""

from .matrix_ops import (
    band_to_dense, ensure_symmetric, is_positive_definite,
    is_positive_semidefinite
)

__all__ = [
    'band_to_dense', 'ensure_symmetric', 'is_positive_definite',
    'is_positive_semidefinite',
]
