# hptrend/core/parameters.py

"""
Parameter containers and validation helpers for the HP Trend Toolbox.

Parameter containers are dataclasses that validate themselves on
construction, so a filter never holds an invalid smoothing parameter or
discard count. The validate_* helpers raise ParameterError with the
parameter name, value and violated constraint attached.
"""

import math
from dataclasses import asdict, dataclass, is_dataclass
from typing import Any, Dict, Type, TypeVar

import numpy as np

from hptrend.core.exceptions import ParameterError

P = TypeVar('P', bound='ParameterBase')


class ParameterBase:
    """Base class for all parameter containers.

    Provides validation, dictionary/array conversion and copying shared by
    every parameter type.
    """

    def validate(self) -> None:
        """Validate parameter constraints.

        Raises:
            ParameterError: If parameter constraints are violated
        """
        pass

    def to_dict(self) -> Dict[str, Any]:
        """Convert parameters to a dictionary."""
        if is_dataclass(self):
            return asdict(self)
        return {k: v for k, v in self.__dict__.items() if not k.startswith('_')}

    def to_array(self) -> np.ndarray:
        """Convert parameters to a NumPy array.

        Raises:
            NotImplementedError: If not implemented by subclass
        """
        raise NotImplementedError("to_array must be implemented by subclass")

    @classmethod
    def from_array(cls: Type[P], array: np.ndarray, **kwargs: Any) -> P:
        """Create parameters from a NumPy array.

        Raises:
            NotImplementedError: If not implemented by subclass
        """
        raise NotImplementedError("from_array must be implemented by subclass")

    def copy(self: P) -> P:
        """Create a copy of the parameter object."""
        return type(self)(**self.to_dict())


def _check_real(value: Any, param_name: str) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float, np.integer, np.floating)):
        raise ParameterError(
            f"Parameter {param_name} must be a real number, got {type(value).__name__}",
            param_name=param_name,
            param_value=value,
            constraint="real scalar"
        )
    if not math.isfinite(float(value)):
        raise ParameterError(
            f"Parameter {param_name} must be finite, got {value}",
            param_name=param_name,
            param_value=value,
            constraint="finite"
        )
    return float(value)


def validate_positive(value: float, param_name: str) -> float:
    """Validate that a parameter is a finite, strictly positive real.

    Returns:
        float: The validated parameter value

    Raises:
        ParameterError: If the parameter is not positive
    """
    value = _check_real(value, param_name)
    if value <= 0:
        raise ParameterError(
            f"Parameter {param_name} must be positive, got {value}",
            param_name=param_name,
            param_value=value,
            constraint="> 0"
        )
    return value


def validate_non_negative(value: float, param_name: str) -> float:
    """Validate that a parameter is a finite, non-negative real.

    Returns:
        float: The validated parameter value

    Raises:
        ParameterError: If the parameter is negative
    """
    value = _check_real(value, param_name)
    if value < 0:
        raise ParameterError(
            f"Parameter {param_name} must be non-negative, got {value}",
            param_name=param_name,
            param_value=value,
            constraint=">= 0"
        )
    return value


def validate_non_negative_int(value: Any, param_name: str) -> int:
    """Validate that a parameter is a non-negative integer.

    Integral floats such as 3.0 are accepted and converted.

    Raises:
        ParameterError: If the parameter is not a non-negative integer
    """
    if isinstance(value, bool):
        raise ParameterError(
            f"Parameter {param_name} must be an integer, got bool",
            param_name=param_name,
            param_value=value,
            constraint="integer >= 0"
        )
    if isinstance(value, (float, np.floating)) and float(value).is_integer():
        value = int(value)
    if not isinstance(value, (int, np.integer)):
        raise ParameterError(
            f"Parameter {param_name} must be an integer, got {value!r}",
            param_name=param_name,
            param_value=value,
            constraint="integer >= 0"
        )
    if value < 0:
        raise ParameterError(
            f"Parameter {param_name} must be non-negative, got {value}",
            param_name=param_name,
            param_value=value,
            constraint="integer >= 0"
        )
    return int(value)


@dataclass
class HPFilterParameters(ParameterBase):
    """Parameters for the two-sided Hodrick-Prescott filter.

    Attributes:
        lambda_: Smoothing parameter (non-negative; 0 returns the data)
    """

    lambda_: float

    def __post_init__(self) -> None:
        self.validate()

    def validate(self) -> None:
        """Validate HP filter parameter constraints.

        Raises:
            ParameterError: If lambda_ is negative or not finite
        """
        super().validate()
        self.lambda_ = validate_non_negative(self.lambda_, "lambda_")

    def to_array(self) -> np.ndarray:
        return np.array([self.lambda_])

    @classmethod
    def from_array(cls, array: np.ndarray, **kwargs: Any) -> 'HPFilterParameters':
        """Create parameters from a one-element array.

        Raises:
            ValueError: If the array length is not 1
        """
        if len(array) != 1:
            raise ValueError(f"Array length must be 1, got {len(array)}")
        return cls(lambda_=float(array[0]))


@dataclass
class OneSidedHPFilterParameters(ParameterBase):
    """Parameters for the one-sided (Kalman) Hodrick-Prescott filter.

    Attributes:
        lambda_: Smoothing parameter (strictly positive; the process noise
            variance is 1 / lambda_)
        discard: Number of leading filtered rows to drop
    """

    lambda_: float
    discard: int = 0

    def __post_init__(self) -> None:
        self.validate()

    def validate(self) -> None:
        """Validate one-sided filter parameter constraints.

        Raises:
            ParameterError: If lambda_ is not positive or discard is not a
                non-negative integer
        """
        super().validate()
        self.lambda_ = validate_positive(self.lambda_, "lambda_")
        self.discard = validate_non_negative_int(self.discard, "discard")

    @property
    def noise_ratio(self) -> float:
        """Slope innovation variance relative to the observation noise."""
        return 1.0 / self.lambda_

    def to_array(self) -> np.ndarray:
        return np.array([self.lambda_, float(self.discard)])

    @classmethod
    def from_array(cls, array: np.ndarray, **kwargs: Any) -> 'OneSidedHPFilterParameters':
        """Create parameters from a two-element array [lambda_, discard].

        Raises:
            ValueError: If the array length is not 2
        """
        if len(array) != 2:
            raise ValueError(f"Array length must be 2, got {len(array)}")
        return cls(lambda_=float(array[0]), discard=array[1])
