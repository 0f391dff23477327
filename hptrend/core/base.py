'''
Abstract base classes for the HP Trend Toolbox.

ModelBase fixes the life cycle shared by every filter: a named object that
is unfitted until it has processed data, holds the last result afterwards,
and refuses to hand out results before that.
'''

import abc
from typing import Any, Generic, Optional, TypeVar, cast

from hptrend.core.exceptions import NotFittedError

# Type variables for generic base classes
T = TypeVar('T')  # Generic type for parameters
R = TypeVar('R')  # Generic type for results
D = TypeVar('D')  # Generic type for data


class ModelBase(abc.ABC, Generic[T, R, D]):
    """Abstract base class for all models in the HP Trend Toolbox.

    Type Parameters:
        T: The parameter type for this model
        R: The result type for this model
        D: The data type this model accepts
    """

    def __init__(self, name: str = "Model"):
        """Initialize the model with a name.

        Args:
            name: A descriptive name for the model
        """
        self._name = name
        self._fitted = False
        self._results: Optional[R] = None

    @property
    def name(self) -> str:
        return self._name

    @property
    def fitted(self) -> bool:
        """True once the model has processed data."""
        return self._fitted

    @property
    def results(self) -> R:
        """Get the results of the last run.

        Raises:
            NotFittedError: If the model has not processed any data
        """
        if not self._fitted or self._results is None:
            raise NotFittedError(
                f"{self._name} has not been applied. Call filter() first.",
                model_type=self._name,
                operation="results"
            )
        return self._results

    @abc.abstractmethod
    def validate_data(self, data: D) -> Any:
        """Validate the input data before any numerical work.

        Args:
            data: The data to validate

        Raises:
            TypeError: If the data has an incorrect type
            DataError: If the data is invalid
        """
        pass

    def summary(self) -> str:
        """Generate a text summary of the model."""
        if not self._fitted:
            return f"Model: {self._name} (not fitted)"

        if self._results is None:
            return f"Model: {self._name} (fitted, but no results available)"

        if hasattr(self._results, "summary") and callable(getattr(self._results, "summary")):
            return cast(Any, self._results).summary()

        return f"Model: {self._name} (fitted)"

    def __str__(self) -> str:
        return self.summary()

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(name='{self._name}', fitted={self._fitted})"
