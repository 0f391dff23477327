# hptrend/core/validation.py

"""
Validation and shaping of filter inputs.

The filters work on a float (T, n) panel. validate_dataset converts the
containers callers use (1-D or 2-D arrays, pandas Series and DataFrames)
into that panel, remembering enough about the original container to
rebuild it with restore_container. The remaining helpers check the
optional one-sided initial conditions and the discard count.

All checks run before any numerical work so that a failing call produces
no partial output.
"""

import logging
from dataclasses import dataclass
from typing import Any, Hashable, List, Optional

import numpy as np
import pandas as pd

from hptrend.core.exceptions import (
    raise_data_error, raise_dimension_error, raise_parameter_error
)
from hptrend.core.parameters import validate_non_negative_int
from hptrend.core.types import (
    ContainerKind, CovarianceMatrix, InitialCovariance, InitialState, Matrix,
    Panel, TimeSeriesDataFrame
)
from hptrend.utils.matrix_ops import ensure_symmetric, is_positive_semidefinite

logger = logging.getLogger("hptrend.core.validation")


@dataclass
class Dataset:
    """A validated (T, n) panel plus what is needed to restore its container.

    Attributes:
        values: Float array of shape (T, n)
        kind: Container type the caller passed
        index: Row labels of a pandas input, None for arrays
        columns: Column labels of a DataFrame input
        name: Name of a Series input
    """

    values: Panel
    kind: ContainerKind
    index: Optional[pd.Index] = None
    columns: Optional[pd.Index] = None
    name: Optional[Hashable] = None

    @property
    def nobs(self) -> int:
        return self.values.shape[0]

    @property
    def nseries(self) -> int:
        return self.values.shape[1]

    def column_labels(self) -> List[Hashable]:
        """Labels used for the series, falling back to positions."""
        if self.columns is not None:
            return list(self.columns)
        if self.name is not None:
            return [self.name]
        return list(range(self.nseries))


def validate_dataset(data: TimeSeriesDataFrame,
                     min_length: int = 4,
                     data_name: str = "data") -> Dataset:
    """Validate filter input and convert it to a float (T, n) panel.

    Args:
        data: 1-D/2-D array, pandas Series or pandas DataFrame with time
            along the rows
        min_length: Minimum number of observations
        data_name: Name of the data for error messages

    Returns:
        Dataset: The validated panel and container metadata

    Raises:
        TypeError: If data is not a supported container
        DimensionError: If an array has more than two dimensions or no columns
        ParameterError: If data has fewer than min_length rows
        DataError: If data is non-numeric or contains NaN/Inf
    """
    index = columns = name = None

    if isinstance(data, pd.DataFrame):
        kind = ContainerKind.FRAME
        index, columns = data.index, data.columns
        non_numeric = [c for c in data.columns
                       if not pd.api.types.is_numeric_dtype(data[c])
                       or pd.api.types.is_bool_dtype(data[c])]
        if non_numeric:
            raise_data_error(
                f"{data_name} contains non-numeric columns: {non_numeric}",
                data_name=data_name,
                issue="non-numeric columns"
            )
        values = data.to_numpy(dtype=np.float64)
    elif isinstance(data, pd.Series):
        kind = ContainerKind.SERIES
        index, name = data.index, data.name
        if not pd.api.types.is_numeric_dtype(data) or pd.api.types.is_bool_dtype(data):
            raise_data_error(
                f"{data_name} must be numeric, got dtype {data.dtype}",
                data_name=data_name,
                issue="non-numeric dtype"
            )
        values = data.to_numpy(dtype=np.float64).reshape(-1, 1)
    elif isinstance(data, np.ndarray):
        if data.ndim == 1:
            kind = ContainerKind.ARRAY_1D
        elif data.ndim == 2:
            kind = ContainerKind.ARRAY_2D
        else:
            raise_dimension_error(
                f"{data_name} must be 1- or 2-dimensional, got {data.ndim} dimensions",
                array_name=data_name,
                expected_shape="(T,) or (T, n)",
                actual_shape=data.shape
            )
        if not (np.issubdtype(data.dtype, np.integer) or np.issubdtype(data.dtype, np.floating)):
            raise_data_error(
                f"{data_name} must be numeric, got dtype {data.dtype}",
                data_name=data_name,
                issue="non-numeric dtype"
            )
        values = np.array(data, dtype=np.float64, copy=True)
        if values.ndim == 1:
            values = values.reshape(-1, 1)
    else:
        raise TypeError(
            f"{data_name} must be a NumPy array, Pandas Series, or DataFrame, "
            f"got {type(data).__name__}"
        )

    if values.shape[1] == 0:
        raise_dimension_error(
            f"{data_name} has no columns",
            array_name=data_name,
            expected_shape="(T, n) with n >= 1",
            actual_shape=values.shape
        )

    if values.shape[0] < min_length:
        raise_parameter_error(
            f"{data_name} is too short (length {values.shape[0]}), "
            f"minimum required length is {min_length}",
            param_name="nobs",
            param_value=values.shape[0],
            constraint=f">= {min_length}"
        )

    if np.isnan(values).any():
        rows, cols = np.nonzero(np.isnan(values))
        raise_data_error(
            f"{data_name} contains NaN values",
            data_name=data_name,
            issue="contains NaN values",
            index=(int(rows[0]), int(cols[0]))
        )

    if np.isinf(values).any():
        rows, cols = np.nonzero(np.isinf(values))
        raise_data_error(
            f"{data_name} contains infinite values",
            data_name=data_name,
            issue="contains infinite values",
            index=(int(rows[0]), int(cols[0]))
        )

    return Dataset(values=values, kind=kind, index=index, columns=columns, name=name)


def restore_container(values: Panel,
                      dataset: Dataset,
                      start: int = 0) -> TimeSeriesDataFrame:
    """Rebuild the caller's container type around a (T - start, n) panel.

    Args:
        values: Output panel, rows aligned with dataset rows [start, T)
        dataset: Dataset the panel was computed from
        start: Number of leading input rows that were dropped

    Returns:
        Array, Series or DataFrame matching the input container
    """
    if dataset.kind is ContainerKind.ARRAY_1D:
        return values[:, 0].copy()
    if dataset.kind is ContainerKind.ARRAY_2D:
        return values.copy()

    index = dataset.index[start:] if dataset.index is not None else None
    if dataset.kind is ContainerKind.SERIES:
        return pd.Series(values[:, 0], index=index, name=dataset.name)
    return pd.DataFrame(values, index=index, columns=dataset.columns)


def validate_discard(discard: Any, nobs: int) -> int:
    """Validate the number of leading rows dropped by the one-sided filter.

    Raises:
        ParameterError: If discard is not an integer in [0, nobs)
    """
    discard = validate_non_negative_int(discard, "discard")
    if discard >= nobs:
        raise_parameter_error(
            f"Parameter discard must be smaller than the number of observations "
            f"({nobs}), got {discard}",
            param_name="discard",
            param_value=discard,
            constraint=f"0 <= discard < {nobs}"
        )
    return discard


def validate_initial_state(x_user: Optional[InitialState],
                           nseries: int) -> Optional[Matrix]:
    """Validate a user-supplied initial state.

    Args:
        x_user: Matrix of shape (2, n), column k holding (level, slope) of
            series k; a length-2 vector is accepted when n == 1
        nseries: Number of series n

    Returns:
        Float array of shape (2, n), or None when x_user is None

    Raises:
        DimensionError: If the shape is not (2, n)
        DataError: If it contains NaN or Inf
    """
    if x_user is None:
        return None

    state = np.asarray(x_user, dtype=np.float64)
    if state.ndim == 1 and state.shape[0] == 2 and nseries == 1:
        state = state.reshape(2, 1)

    if state.ndim != 2 or state.shape != (2, nseries):
        raise_dimension_error(
            f"x_user must have shape (2, {nseries}), got {state.shape}",
            array_name="x_user",
            expected_shape=(2, nseries),
            actual_shape=state.shape
        )

    if not np.isfinite(state).all():
        raise_data_error(
            "x_user contains NaN or infinite values",
            data_name="x_user",
            issue="non-finite values"
        )

    return state.copy()


def validate_initial_covariance(P_user: Optional[InitialCovariance],
                                nseries: int,
                                tol: float = 1e-8) -> Optional[np.ndarray]:
    """Validate user-supplied initial state covariances.

    Args:
        P_user: n matrices of shape (2, 2), as a sequence or an (n, 2, 2)
            array; a single (2, 2) matrix is accepted when n == 1
        nseries: Number of series n
        tol: Tolerance for the symmetry and semi-definiteness checks

    Returns:
        Float array of shape (n, 2, 2), or None when P_user is None

    Raises:
        DimensionError: If the number or shape of matrices is wrong
        DataError: If a matrix is non-finite, asymmetric or not positive
            semi-definite
    """
    if P_user is None:
        return None

    try:
        covs = np.asarray([np.asarray(p, dtype=np.float64) for p in P_user])
    except (TypeError, ValueError):
        raise_dimension_error(
            "P_user must be a collection of (2, 2) matrices",
            array_name="P_user",
            expected_shape=(nseries, 2, 2)
        )

    # A single (2, 2) matrix iterates as its two rows
    if covs.ndim == 2 and covs.shape == (2, 2) and nseries == 1:
        covs = covs.reshape(1, 2, 2)

    if covs.ndim != 3 or covs.shape != (nseries, 2, 2):
        raise_dimension_error(
            f"P_user must hold {nseries} matrices of shape (2, 2), got shape {covs.shape}",
            array_name="P_user",
            expected_shape=(nseries, 2, 2),
            actual_shape=covs.shape
        )

    covs = covs.copy()
    for k in range(nseries):
        _check_covariance(covs[k], k, tol)
        if covs[k, 0, 1] != covs[k, 1, 0]:
            logger.debug(f"Symmetrizing P_user[{k}] within tolerance {tol}")
            covs[k] = ensure_symmetric(covs[k], tol=0.0)
        if abs(np.linalg.det(covs[k])) <= tol * float(np.abs(covs[k]).max()) ** 2:
            logger.warning(
                f"P_user[{k}] is singular; part of the initial state of series "
                f"{k} is treated as known exactly"
            )

    return covs


def _check_covariance(cov: CovarianceMatrix, k: int, tol: float) -> None:
    name = f"P_user[{k}]"
    if not np.isfinite(cov).all():
        raise_data_error(
            f"{name} contains NaN or infinite values",
            data_name=name,
            issue="non-finite values",
            index=k
        )

    scale = max(1.0, float(np.abs(cov).max()))
    if abs(cov[0, 1] - cov[1, 0]) > tol * scale:
        raise_data_error(
            f"{name} must be symmetric",
            data_name=name,
            issue="asymmetric covariance",
            index=k
        )

    if not is_positive_semidefinite(cov, tol):
        raise_data_error(
            f"{name} must be positive semi-definite",
            data_name=name,
            issue="not positive semi-definite",
            index=k
        )
