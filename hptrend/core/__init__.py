# hptrend/core/__init__.py
"""
Core infrastructure of the HP Trend Toolbox: exceptions, type aliases,
configuration, parameter containers, input validation and the model base
class shared by the filters.
"""

from .base import ModelBase
from .config import (
    ConfigManager, FiltersConfig, HPTrendConfig, LoggingConfig,
    NumericalConfig, OutputConfig, get_config, get_config_manager,
    get_filters_config, get_numerical_config, get_output_config,
    reset_config, save_config, set_config
)
from .exceptions import (
    ConfigurationError, DataError, DimensionError, HPTrendError,
    HPTrendWarning, NotFittedError, NumericError, NumericWarning,
    ParameterError, SingularMatrixError
)
from .parameters import HPFilterParameters, OneSidedHPFilterParameters
from .validation import Dataset, restore_container, validate_dataset

__all__ = [
    'ModelBase',
    'ConfigManager', 'FiltersConfig', 'HPTrendConfig', 'LoggingConfig',
    'NumericalConfig', 'OutputConfig', 'get_config', 'get_config_manager',
    'get_filters_config', 'get_numerical_config', 'get_output_config',
    'reset_config', 'save_config', 'set_config',
    'ConfigurationError', 'DataError', 'DimensionError', 'HPTrendError',
    'HPTrendWarning', 'NotFittedError', 'NumericError', 'NumericWarning',
    'ParameterError', 'SingularMatrixError',
    'HPFilterParameters', 'OneSidedHPFilterParameters',
    'Dataset', 'restore_container', 'validate_dataset',
]
