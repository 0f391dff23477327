# hptrend/models/__init__.py
"""Filter models of the HP Trend Toolbox."""

from . import time_series

__all__ = ['time_series']
