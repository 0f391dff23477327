# hptrend/models/time_series/kalman.py

"""
Local linear trend state-space model behind the one-sided HP filter.

The model is

    level_t = level_{t-1} + slope_{t-1}
    slope_t = slope_{t-1} + zeta_t,      Var(zeta_t) = q = 1 / lambda
    y_t     = level_t + eps_t,           Var(eps_t)  = 1

so the second difference of the level is the only innovation and its
variance relative to the observation noise is 1 / lambda. The filtered
level is the Kalman (causal) estimate of the HP trend; in the limit of a
diffuse prior it coincides with the last point of the two-sided HP trend
computed on the data observed so far.

LocalLinearTrendKalman holds the model matrices and runs the recursion
with the numba kernels in _numba_core. The single-step ``predict`` and
``update`` methods are plain NumPy versions of the same recursion for
inspection and step-by-step use.
"""

import logging
from dataclasses import dataclass
from typing import Optional, Tuple

import numpy as np
from scipy import linalg

from hptrend.core.config import get_filters_config
from hptrend.core.exceptions import raise_dimension_error, raise_numeric_error
from hptrend.core.parameters import validate_positive
from hptrend.core.types import CovarianceMatrix, Matrix, Panel, StateVector
from hptrend.core.validation import (
    validate_initial_covariance, validate_initial_state
)
from hptrend.models.time_series._numba_core import llt_filter_panel

logger = logging.getLogger("hptrend.models.time_series.kalman")


@dataclass
class KalmanOutput:
    """Output of a full Kalman pass over a (T, n) panel.

    Attributes:
        levels: Filtered levels, shape (T, n)
        slopes: Filtered slopes, shape (T, n)
        converged_at: Step at which each column's gain was frozen, -1 if
            the exact recursion ran to the end
        predicted_covariance: Last predicted covariance per column, shape
            (n, 2, 2)
    """

    levels: Panel
    slopes: Panel
    converged_at: np.ndarray
    predicted_covariance: np.ndarray


class LocalLinearTrendKalman:
    """
    Kalman filter for the local linear trend model with q = 1 / lambda.

    Args:
        lambda_: Smoothing parameter (strictly positive)
        diffuse_variance: Variance of the default initial covariance
            (defaults to the filters configuration)
        use_steady_state: Freeze the gain once the predicted covariance has
            converged (defaults to the filters configuration)
        steady_state_tol: Relative convergence tolerance (defaults to the
            filters configuration)

    Raises:
        ParameterError: If lambda_ or diffuse_variance is not positive
    """

    transition_matrix = np.array([[1.0, 1.0], [0.0, 1.0]])
    observation_matrix = np.array([[1.0, 0.0]])
    observation_variance = 1.0

    def __init__(self,
                 lambda_: float,
                 diffuse_variance: Optional[float] = None,
                 use_steady_state: Optional[bool] = None,
                 steady_state_tol: Optional[float] = None):
        config = get_filters_config()
        self.lambda_ = validate_positive(lambda_, "lambda_")
        self.diffuse_variance = validate_positive(
            config.diffuse_variance if diffuse_variance is None else diffuse_variance,
            "diffuse_variance"
        )
        self.use_steady_state = bool(
            config.use_steady_state if use_steady_state is None else use_steady_state
        )
        self.steady_state_tol = validate_positive(
            config.steady_state_tol if steady_state_tol is None else steady_state_tol,
            "steady_state_tol"
        )

    @property
    def q(self) -> float:
        """Slope innovation variance."""
        return 1.0 / self.lambda_

    @property
    def state_covariance(self) -> CovarianceMatrix:
        return np.array([[0.0, 0.0], [0.0, self.q]])

    def __repr__(self) -> str:
        return (f"{self.__class__.__name__}(lambda_={self.lambda_}, "
                f"diffuse_variance={self.diffuse_variance}, "
                f"use_steady_state={self.use_steady_state})")

    def default_initial_state(self, y: Panel) -> Matrix:
        """
        Initial states from the first two observations of every column.

        slope_0 = y_2 - y_1 and level_0 = y_1 - slope_0, so the first
        prediction lands on y_1 with slope y_2 - y_1.

        Args:
            y: Observations of shape (T, n), T >= 2

        Returns:
            Array of shape (2, n)
        """
        y = np.asarray(y, dtype=np.float64)
        slope0 = y[1] - y[0]
        level0 = y[0] - slope0
        return np.vstack([level0, slope0])

    def default_initial_covariance(self, nseries: int) -> np.ndarray:
        """Diffuse covariances ``diffuse_variance * I``, shape (n, 2, 2)."""
        return np.tile(self.diffuse_variance * np.eye(2), (nseries, 1, 1))

    def predict(self,
                state: StateVector,
                cov: CovarianceMatrix) -> Tuple[StateVector, CovarianceMatrix]:
        """One prediction step ``x <- F x``, ``P <- F P F' + Q``."""
        F = self.transition_matrix
        return F @ state, F @ cov @ F.T + self.state_covariance

    def update(self,
               state: StateVector,
               cov: CovarianceMatrix,
               observation: float) -> Tuple[StateVector, CovarianceMatrix]:
        """
        One measurement update with the Joseph form covariance.

        Args:
            state: Predicted state (level, slope)
            cov: Predicted covariance
            observation: Observation y_t

        Returns:
            Filtered state and covariance
        """
        H = self.observation_matrix
        innovation = observation - state[0]
        s = cov[0, 0] + self.observation_variance
        gain = cov[:, 0] / s
        state = state + gain * innovation

        ikh = np.eye(2) - np.outer(gain, H[0])
        cov = ikh @ cov @ ikh.T + self.observation_variance * np.outer(gain, gain)
        return state, cov

    def run(self,
            y: Panel,
            x0: Optional[Matrix] = None,
            P0: Optional[np.ndarray] = None) -> KalmanOutput:
        """
        Filter every column of a panel.

        Args:
            y: Observations of shape (T, n) (a 1-D array is one column)
            x0: Initial states of shape (2, n); defaults to
                default_initial_state(y)
            P0: Initial covariances of shape (n, 2, 2); defaults to
                default_initial_covariance(n)

        Returns:
            KalmanOutput with levels and slopes of shape (T, n)

        Raises:
            DimensionError: If y, x0 or P0 have the wrong shape
            DataError: If x0 or P0 are non-finite or P0 is not PSD
            NumericError: If the recursion produces non-finite values
        """
        y = np.asarray(y, dtype=np.float64)
        if y.ndim == 1:
            y = y.reshape(-1, 1)
        if y.ndim != 2 or y.shape[0] < 2:
            raise_dimension_error(
                f"Observations must have shape (T, n) with T >= 2, got {y.shape}",
                array_name="y",
                expected_shape="(T, n)",
                actual_shape=y.shape
            )
        nobs, nseries = y.shape

        if x0 is None:
            x0 = self.default_initial_state(y)
        else:
            x0 = validate_initial_state(x0, nseries)
        if P0 is None:
            P0 = self.default_initial_covariance(nseries)
        else:
            P0 = validate_initial_covariance(P0, nseries)

        logger.debug(f"Kalman pass over {nobs} observations and {nseries} series, "
                     f"q={self.q:.6g}")

        levels, slopes, steps, covs = llt_filter_panel(
            np.ascontiguousarray(y),
            np.ascontiguousarray(x0, dtype=np.float64),
            np.ascontiguousarray(P0, dtype=np.float64),
            self.q,
            self.use_steady_state,
            self.steady_state_tol
        )

        if not (np.isfinite(levels).all() and np.isfinite(slopes).all()):
            raise_numeric_error(
                "Kalman recursion produced non-finite values",
                operation="local linear trend filter",
                error_type="overflow"
            )

        for k, step in enumerate(steps):
            if step >= 0:
                logger.debug(f"Series {k}: gain frozen at step {step}")

        return KalmanOutput(
            levels=levels,
            slopes=slopes,
            converged_at=steps,
            predicted_covariance=covs
        )

    def steady_state(self) -> Tuple[CovarianceMatrix, np.ndarray]:
        """Steady-state predicted covariance and gain for this model."""
        return steady_state(self.lambda_)


def steady_state(lambda_: float) -> Tuple[CovarianceMatrix, np.ndarray]:
    """
    Solve the discrete algebraic Riccati equation of the trend model.

    The predicted covariance of the local linear trend filter converges to
    the solution P_inf of

        P = F P F' - F P H' (H P H' + 1)^-1 H P F' + Q

    for every lambda_ > 0, and the gain to K_inf = P_inf H' / (H P_inf H' + 1).

    Args:
        lambda_: Smoothing parameter (strictly positive)

    Returns:
        Tuple of P_inf (2, 2) and K_inf (2,)

    Raises:
        ParameterError: If lambda_ is not positive
        NumericError: If the Riccati solver fails
    """
    lambda_ = validate_positive(lambda_, "lambda_")
    F = LocalLinearTrendKalman.transition_matrix
    H = LocalLinearTrendKalman.observation_matrix
    Q = np.array([[0.0, 0.0], [0.0, 1.0 / lambda_]])
    R = np.array([[LocalLinearTrendKalman.observation_variance]])

    try:
        P_inf = linalg.solve_discrete_are(F.T, H.T, Q, R)
    except (linalg.LinAlgError, ValueError) as e:
        raise_numeric_error(
            f"Steady-state Riccati equation could not be solved for lambda_={lambda_}",
            operation="solve_discrete_are",
            error_type="convergence",
            details=str(e)
        )

    P_inf = (P_inf + P_inf.T) / 2
    K_inf = P_inf[:, 0] / (P_inf[0, 0] + LocalLinearTrendKalman.observation_variance)
    return P_inf, K_inf
