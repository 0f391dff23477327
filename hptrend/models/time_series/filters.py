# hptrend/models/time_series/filters.py

"""
Hodrick-Prescott trend filters.

This module separates a (multivariate) time series into a smooth trend and
a cyclical residual with two estimators of the Hodrick-Prescott trend:

* the two-sided filter, which solves the full-sample pentadiagonal system
  ``(I + lambda D'D) tau = y`` once for all columns, and
* the one-sided filter, a Kalman recursion on a local linear trend model
  whose trend estimate at t uses observations up to t only.

Every column is filtered independently with the same smoothing parameter.
Inputs may be 1-D or 2-D NumPy arrays, pandas Series or DataFrames; the
convenience functions return the trend in the caller's container type.

Classes:
    FilterResult: Container for original, trend and cycle components
    FilterBase: Abstract base class for the trend filters
    TwoSidedHPFilter: Full-sample Hodrick-Prescott filter
    OneSidedHPFilter: Causal (Kalman) Hodrick-Prescott filter

Functions:
    hp_filter: Two-sided trend in the input's container type
    one_sided_hp_filter: One-sided trend in the input's container type
"""

import asyncio
import logging
import warnings
from abc import abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, Hashable, List, Optional, Tuple, TypeVar

import numpy as np
import pandas as pd
import matplotlib.pyplot as plt

from hptrend.core.base import ModelBase
from hptrend.core.config import (
    get_filters_config, get_numerical_config, get_output_config
)
from hptrend.core.exceptions import (
    DimensionError, HPTrendError, NotFittedError, raise_numeric_error
)
from hptrend.core.parameters import (
    HPFilterParameters, OneSidedHPFilterParameters, ParameterBase
)
from hptrend.core.types import (
    FilterSide, InitialCovariance, InitialState, Panel, TimeSeriesDataFrame
)
from hptrend.core.validation import (
    Dataset, restore_container, validate_dataset, validate_discard,
    validate_initial_covariance, validate_initial_state
)
from hptrend.models.time_series.kalman import LocalLinearTrendKalman
from hptrend.models.time_series.linear_system import BandedSolver, hp_system_banded

# Set up module-level logger
logger = logging.getLogger("hptrend.models.time_series.filters")

# Type variable for filter parameters
T = TypeVar('T', bound=ParameterBase)


@dataclass
class FilterResult:
    """Result container for trend filtering.

    All arrays have shape (rows, n) with one column per input series. For
    the one-sided filter ``original`` holds the retained rows only, so
    ``trend + cycle == original`` holds for both filters.

    Attributes:
        original: Input rows the trend was reported for
        trend: Trend component
        cycle: Cycle component (original - trend)
        components: Additional components, such as the one-sided slope
        parameters: Filter parameters used
        filter_name: Name of the filter used
        index: Row labels of the retained rows (pandas input only)
        columns: Series labels
        start: Position of the first retained row in the input
        dataset: Validated input, used to restore the caller's container
    """

    original: Panel
    trend: Panel
    cycle: Panel
    components: Dict[str, Panel] = field(default_factory=dict)
    parameters: Dict[str, Any] = field(default_factory=dict)
    filter_name: str = "Unknown Filter"
    index: Optional[pd.Index] = None
    columns: Optional[List[Hashable]] = None
    start: int = 0
    dataset: Optional[Dataset] = field(default=None, repr=False)

    def __post_init__(self) -> None:
        """Validate that all components share the shape of original."""
        shape = self.original.shape
        arrays = {"trend": self.trend, "cycle": self.cycle}
        arrays.update({f"components['{k}']": v for k, v in self.components.items()})
        for name, array in arrays.items():
            if array.shape != shape:
                raise DimensionError(
                    f"{name} shape must match original data shape",
                    array_name=name,
                    expected_shape=shape,
                    actual_shape=array.shape
                )
        if self.columns is None:
            self.columns = list(range(shape[1]))

    @property
    def nobs(self) -> int:
        return self.original.shape[0]

    @property
    def nseries(self) -> int:
        return self.original.shape[1]

    def _row_index(self) -> pd.Index:
        if self.index is not None:
            return self.index
        return pd.RangeIndex(self.start, self.start + self.nobs)

    def to_dict(self) -> Dict[str, Any]:
        """Convert the result object to a dictionary."""
        result_dict = {
            "original": self.original,
            "trend": self.trend,
            "cycle": self.cycle,
            "components": self.components.copy(),
            "parameters": self.parameters.copy(),
            "filter_name": self.filter_name,
            "columns": list(self.columns),
            "start": self.start
        }
        if self.index is not None:
            result_dict["index"] = self.index

        return result_dict

    def to_dataframe(self) -> pd.DataFrame:
        """Convert the result object to a pandas DataFrame.

        Columns form a (component, variable) MultiIndex, rows carry the input
        index of the retained rows (or their integer positions).
        """
        blocks = {"original": self.original, "trend": self.trend, "cycle": self.cycle}
        blocks.update(self.components)

        frames = [pd.DataFrame(values, index=self._row_index(), columns=self.columns)
                  for values in blocks.values()]
        return pd.concat(frames, axis=1, keys=list(blocks), names=["component", "variable"])

    def trend_as_input_type(self) -> TimeSeriesDataFrame:
        """Return the trend in the container type of the filtered data."""
        if self.dataset is None:
            return self.trend.copy()
        return restore_container(self.trend, self.dataset, start=self.start)

    def summary(self) -> str:
        """Generate a text summary of the decomposition."""
        precision = get_output_config().float_precision
        header = f"Filter: {self.filter_name}\n"
        header += "=" * (len(header) - 1) + "\n\n"

        lines = [f"Observations: {self.nobs}", f"Series: {self.nseries}"]
        if self.start:
            lines.append(f"First retained row: {self.start}")
        for name, value in self.parameters.items():
            lines.append(f"{name}: {value}")
        lines.append("")

        lines.append(f"{'variable':>12} {'trend mean':>14} {'cycle std':>14}")
        for k, label in enumerate(self.columns):
            lines.append(
                f"{str(label):>12} {self.trend[:, k].mean():>14.{precision}f} "
                f"{self.cycle[:, k].std(ddof=0):>14.{precision}f}"
            )

        return header + "\n".join(lines) + "\n"

    def plot(self,
             figsize: Optional[Tuple[int, int]] = None,
             components: Optional[List[str]] = None) -> plt.Figure:
        """Plot the filter results.

        Args:
            figsize: Figure size (width, height) in inches; defaults to the
                output configuration
            components: Components to plot (default: original, trend, cycle)

        Returns:
            plt.Figure: Matplotlib figure object
        """
        if figsize is None:
            figsize = get_output_config().plot_figsize
        if components is None:
            components = ["original", "trend", "cycle"]

        available = {"original": self.original, "trend": self.trend, "cycle": self.cycle}
        available.update(self.components)
        selected = []
        for component in components:
            if component not in available:
                warnings.warn(f"Component '{component}' not found in filter results")
                continue
            selected.append(component)

        fig, axes = plt.subplots(max(len(selected), 1), 1, figsize=figsize, sharex=True)
        axes = np.atleast_1d(axes)

        x = self._row_index()
        for ax, component in zip(axes, selected):
            values = available[component]
            for k, label in enumerate(self.columns):
                ax.plot(x, values[:, k], label=str(label))
            ax.set_title(f"{component.capitalize()} Component")
            if self.nseries > 1:
                ax.legend()
            ax.grid(True, alpha=0.3)

        fig.suptitle(f"{self.filter_name} Decomposition", fontsize=14)
        fig.tight_layout()

        return fig


class FilterBase(ModelBase[T, FilterResult, TimeSeriesDataFrame]):
    """Abstract base class for the trend filters.

    Type Parameters:
        T: The parameter type for this filter
    """

    side: FilterSide

    def __init__(self, name: str = "FilterBase"):
        super().__init__(name=name)
        self._dataset: Optional[Dataset] = None
        self._trend: Optional[Panel] = None
        self._cycle: Optional[Panel] = None
        self._components: Dict[str, Panel] = {}

    @property
    def data(self) -> Optional[Panel]:
        """The last filtered data as a (T, n) panel, None before filtering."""
        return None if self._dataset is None else self._dataset.values

    @property
    def index(self) -> Optional[pd.Index]:
        return None if self._dataset is None else self._dataset.index

    def _require_fitted(self, operation: str) -> None:
        if not self._fitted:
            raise NotFittedError(
                "Filter has not been applied. Call filter() first.",
                model_type=self._name,
                operation=operation
            )

    @property
    def trend(self) -> Panel:
        """Trend component of the last call.

        Raises:
            NotFittedError: If the filter has not been applied
        """
        self._require_fitted("trend")
        return self._trend

    @property
    def cycle(self) -> Panel:
        """Cycle component of the last call.

        Raises:
            NotFittedError: If the filter has not been applied
        """
        self._require_fitted("cycle")
        return self._cycle

    @property
    def components(self) -> Dict[str, Panel]:
        self._require_fitted("components")
        return self._components.copy()

    def validate_data(self, data: TimeSeriesDataFrame) -> Dataset:
        """Validate the input data for filtering.

        Args:
            data: Array, Series or DataFrame with time along the rows

        Returns:
            Dataset: The validated (T, n) panel and container metadata

        Raises:
            TypeError: If the data has an incorrect type
            DimensionError: If the data has more than two dimensions
            ParameterError: If the data has fewer than min_observations rows
            DataError: If the data is non-numeric or non-finite
        """
        return validate_dataset(data, min_length=get_filters_config().min_observations)

    @abstractmethod
    def filter(self,
               data: TimeSeriesDataFrame,
               **kwargs: Any) -> FilterResult:
        """Apply the filter to the provided data.

        Args:
            data: The data to filter
            **kwargs: Additional keyword arguments for filtering

        Returns:
            FilterResult: The filter results

        Raises:
            HPTrendError: If the data or parameters are invalid
            NumericError: If the filtering fails
        """
        pass

    async def filter_async(self,
                           data: TimeSeriesDataFrame,
                           **kwargs: Any) -> FilterResult:
        """Asynchronously apply the filter to the provided data.

        The synchronous filter runs in the default thread pool executor so
        that the event loop is not blocked by large panels.
        """
        loop = asyncio.get_event_loop()
        result = await loop.run_in_executor(
            None, lambda: self.filter(data, **kwargs)
        )
        return result

    def _create_result_object(self,
                              dataset: Dataset,
                              trend: Panel,
                              components: Optional[Dict[str, Panel]] = None,
                              parameters: Optional[Dict[str, Any]] = None,
                              start: int = 0) -> FilterResult:
        """Store the components of a run and build its result object."""
        original = dataset.values[start:]
        cycle = original - trend

        self._dataset = dataset
        self._trend = trend
        self._cycle = cycle
        self._components = components or {}
        self._fitted = True

        result = FilterResult(
            original=original,
            trend=trend,
            cycle=cycle,
            components=self._components,
            parameters=parameters or {},
            filter_name=self._name,
            index=None if dataset.index is None else dataset.index[start:],
            columns=dataset.column_labels(),
            start=start,
            dataset=dataset
        )

        self._results = result
        return result


class TwoSidedHPFilter(FilterBase[HPFilterParameters]):
    """Two-sided (full-sample) Hodrick-Prescott filter.

    The trend minimises ``sum (y - tau)^2 + lambda * sum (D2 tau)^2`` over
    the whole sample, so every trend value depends on past and future
    observations. The pentadiagonal system matrix is built and factored
    once per call and all columns are solved against the same factor.

    Attributes:
        lambda_: Smoothing parameter (non-negative; 0 returns the data)
    """

    side = FilterSide.TWO_SIDED

    def __init__(self,
                 lambda_: Optional[float] = None,
                 name: str = "Hodrick-Prescott Filter"):
        """Initialize the HP filter.

        Args:
            lambda_: Smoothing parameter (default from the filters
                configuration, 1600 for quarterly data)
            name: A descriptive name for the filter
        """
        super().__init__(name=name)
        if lambda_ is None:
            lambda_ = get_filters_config().default_lambda
        self.params = HPFilterParameters(lambda_=lambda_)

    @property
    def lambda_(self) -> float:
        return self.params.lambda_

    @lambda_.setter
    def lambda_(self, value: float) -> None:
        """Set the smoothing parameter.

        Raises:
            ParameterError: If the parameter is invalid
        """
        self.params = HPFilterParameters(lambda_=value)

    def filter(self,
               data: TimeSeriesDataFrame,
               lambda_: Optional[float] = None,
               **kwargs: Any) -> FilterResult:
        """Apply the two-sided Hodrick-Prescott filter.

        Args:
            data: The data to filter, T >= 4 rows
            lambda_: Smoothing parameter (overrides the instance parameter if provided)

        Returns:
            FilterResult: Trend and cycle of shape (T, n)

        Raises:
            ParameterError: If lambda_ is negative or T < 4
            DataError: If the data is invalid
            SingularMatrixError: If the system matrix cannot be factored
            NumericError: If the filtering fails
        """
        dataset = self.validate_data(data)
        params = self.params if lambda_ is None else HPFilterParameters(lambda_=lambda_)

        logger.debug(f"Two-sided HP filter: T={dataset.nobs}, n={dataset.nseries}, "
                     f"lambda_={params.lambda_}")
        if params.lambda_ == 0.0:
            logger.warning("lambda_ is 0; the two-sided trend equals the data")

        try:
            solver = BandedSolver(hp_system_banded(params.lambda_, dataset.nobs))
            trend = solver.solve(dataset.values)
        except HPTrendError:
            raise
        except Exception as e:
            raise_numeric_error(
                f"HP filter failed: {e}",
                operation="HP filter",
                error_type="computation",
                details=str(e)
            )

        self.params = params
        return self._create_result_object(
            dataset=dataset,
            trend=trend,
            parameters={"lambda_": params.lambda_}
        )


class OneSidedHPFilter(FilterBase[OneSidedHPFilterParameters]):
    """One-sided (causal) Hodrick-Prescott filter.

    The trend at t is the filtered level of a local linear trend model
    whose slope innovation variance is 1 / lambda relative to the
    observation noise, so it uses observations up to t only. The first
    ``discard`` rows, dominated by the initial conditions, can be dropped.

    Attributes:
        lambda_: Smoothing parameter (strictly positive)
        discard: Number of leading rows dropped from the output
    """

    side = FilterSide.ONE_SIDED

    def __init__(self,
                 lambda_: Optional[float] = None,
                 discard: Optional[int] = None,
                 name: str = "One-Sided Hodrick-Prescott Filter"):
        """Initialize the one-sided HP filter.

        Args:
            lambda_: Smoothing parameter (default from the filters configuration)
            discard: Leading rows to drop (default from the filters configuration)
            name: A descriptive name for the filter
        """
        super().__init__(name=name)
        config = get_filters_config()
        self.params = OneSidedHPFilterParameters(
            lambda_=config.default_lambda if lambda_ is None else lambda_,
            discard=config.default_discard if discard is None else discard
        )

    @property
    def lambda_(self) -> float:
        return self.params.lambda_

    @lambda_.setter
    def lambda_(self, value: float) -> None:
        self.params = OneSidedHPFilterParameters(lambda_=value, discard=self.params.discard)

    @property
    def discard(self) -> int:
        return self.params.discard

    @discard.setter
    def discard(self, value: int) -> None:
        self.params = OneSidedHPFilterParameters(lambda_=self.params.lambda_, discard=value)

    def filter(self,
               data: TimeSeriesDataFrame,
               lambda_: Optional[float] = None,
               x_user: Optional[InitialState] = None,
               P_user: Optional[InitialCovariance] = None,
               discard: Optional[int] = None,
               **kwargs: Any) -> FilterResult:
        """Apply the one-sided Hodrick-Prescott filter.

        Args:
            data: The data to filter, T >= 4 rows
            lambda_: Smoothing parameter (overrides the instance parameter if provided)
            x_user: Initial states, shape (2, n), column k = (level, slope)
                of series k; defaults to an initialization from the first
                two observations
            P_user: Initial covariances, n matrices of shape (2, 2);
                defaults to a diffuse covariance
            discard: Leading rows to drop (overrides the instance parameter if provided)

        Returns:
            FilterResult: Trend, cycle and slope of shape (T - discard, n)

        Raises:
            ParameterError: If lambda_ <= 0, T < 4 or discard is not in [0, T)
            DimensionError: If x_user or P_user have the wrong shape
            DataError: If the data or initial conditions are invalid
            NumericError: If the filtering fails
        """
        dataset = self.validate_data(data)

        params = self.params
        if lambda_ is not None or discard is not None:
            params = OneSidedHPFilterParameters(
                lambda_=params.lambda_ if lambda_ is None else lambda_,
                discard=params.discard if discard is None else discard
            )

        start = validate_discard(params.discard, dataset.nobs)
        x0 = validate_initial_state(x_user, dataset.nseries)
        P0 = validate_initial_covariance(
            P_user, dataset.nseries, tol=get_numerical_config().symmetry_tolerance
        )

        logger.debug(f"One-sided HP filter: T={dataset.nobs}, n={dataset.nseries}, "
                     f"lambda_={params.lambda_}, discard={start}")
        if start > dataset.nobs // 2:
            logger.warning(f"discard={start} drops more than half of the "
                           f"{dataset.nobs} observations")

        kalman = LocalLinearTrendKalman(params.lambda_)
        try:
            output = kalman.run(dataset.values, x0, P0)
        except HPTrendError:
            raise
        except Exception as e:
            raise_numeric_error(
                f"One-sided HP filter failed: {e}",
                operation="one-sided HP filter",
                error_type="computation",
                details=str(e)
            )

        self.params = params
        return self._create_result_object(
            dataset=dataset,
            trend=output.levels[start:],
            components={"slope": output.slopes[start:]},
            parameters={
                "lambda_": params.lambda_,
                "discard": start,
                "steady_state_step": [int(s) for s in output.converged_at]
            },
            start=start
        )


def hp_filter(data: TimeSeriesDataFrame,
              lambda_: Optional[float] = None) -> TimeSeriesDataFrame:
    """Two-sided Hodrick-Prescott trend of every column of data.

    Args:
        data: Array, Series or DataFrame with T >= 4 rows
        lambda_: Smoothing parameter (default 1600 from the filters configuration)

    Returns:
        Trend with the shape, container type and labels of data

    Raises:
        ParameterError: If lambda_ is negative or T < 4
        DataError: If the data is invalid

    Examples:
        >>> import numpy as np
        >>> from hptrend.models.time_series.filters import hp_filter
        >>> np.allclose(hp_filter(np.arange(1.0, 11.0)), np.arange(1.0, 11.0))
        True
    """
    return TwoSidedHPFilter(lambda_=lambda_).filter(data).trend_as_input_type()


def one_sided_hp_filter(data: TimeSeriesDataFrame,
                        lambda_: Optional[float] = None,
                        x_user: Optional[InitialState] = None,
                        P_user: Optional[InitialCovariance] = None,
                        discard: Optional[int] = None) -> TimeSeriesDataFrame:
    """One-sided Hodrick-Prescott trend of every column of data.

    Args:
        data: Array, Series or DataFrame with T >= 4 rows
        lambda_: Smoothing parameter (default 1600 from the filters configuration)
        x_user: Optional initial states, shape (2, n)
        P_user: Optional initial covariances, n matrices of shape (2, 2)
        discard: Leading rows to drop (default 0 from the filters configuration)

    Returns:
        Trend of T - discard rows in the container type of data; pandas
        output keeps the index labels of the retained rows

    Raises:
        ParameterError: If lambda_ <= 0, T < 4 or discard is not in [0, T)
        DimensionError: If x_user or P_user have the wrong shape
        DataError: If the data or initial conditions are invalid
    """
    result = OneSidedHPFilter(lambda_=lambda_, discard=discard).filter(
        data, x_user=x_user, P_user=P_user
    )
    return result.trend_as_input_type()
