"""
Numba-accelerated Kalman recursion for the local linear trend model.

The one-sided HP filter is a Kalman filter on the state (level, slope) with

    F = [[1, 1], [0, 1]],  H = [1, 0],  Q = diag(0, q),  R = 1

Every matrix is 2 x 2, so the kernels below write the recursion out in
scalars instead of calling into linear algebra routines. Each column of a
panel is filtered independently with its own state and covariance.

The covariance update uses the Joseph form

    P = (I - K H) P (I - K H)' + K R K'

which keeps P symmetric positive semi-definite in floating point.
"""

import logging
from typing import Tuple

import numpy as np
from numba import jit

# Set up module-level logger
logger = logging.getLogger("hptrend.models.time_series._numba_core")


@jit(nopython=True, cache=True)
def llt_filter_column(y: np.ndarray,
                      level0: float,
                      slope0: float,
                      p00: float,
                      p01: float,
                      p11: float,
                      q: float,
                      use_steady_state: bool,
                      tol: float) -> Tuple[np.ndarray, np.ndarray, int, np.ndarray]:
    """
    Run the local linear trend Kalman filter over one series.

    Args:
        y: Observations of length T
        level0: Initial level
        slope0: Initial slope
        p00: Initial level variance
        p01: Initial level/slope covariance
        p11: Initial slope variance
        q: Slope innovation variance (1 / lambda)
        use_steady_state: Freeze the gain once the predicted covariance has
            converged
        tol: Relative change in the predicted covariance treated as converged

    Returns:
        Tuple of filtered levels (T,), filtered slopes (T,), the step at
        which the gain was frozen (-1 if never) and the last predicted
        covariance as a (2, 2) array
    """
    n = y.shape[0]
    levels = np.empty(n)
    slopes = np.empty(n)
    last_pred = np.empty((2, 2))

    level = level0
    slope = slope0
    frozen = False
    converged_at = -1

    # Predicted covariance and gain, carried across steps
    n00 = 0.0
    n01 = 0.0
    n11 = 0.0
    k0 = 0.0
    k1 = 0.0

    for t in range(n):
        # Predict
        level = level + slope
        if not frozen:
            m00 = p00 + 2.0 * p01 + p11
            m01 = p01 + p11
            m11 = p11 + q

            if use_steady_state and t > 0:
                scale = max(1.0, abs(m00), abs(m11))
                change = max(abs(m00 - n00), abs(m01 - n01), abs(m11 - n11))
                if change <= tol * scale:
                    frozen = True
                    converged_at = t

            n00 = m00
            n01 = m01
            n11 = m11

            s = n00 + 1.0
            k0 = n00 / s
            k1 = n01 / s

            # Joseph form with I - K H = [[1 - k0, 0], [-k1, 1]]
            a00 = (1.0 - k0) * n00
            a01 = (1.0 - k0) * n01
            a10 = n01 - k1 * n00
            a11 = n11 - k1 * n01
            p00 = a00 * (1.0 - k0) + k0 * k0
            p01 = a01 - a00 * k1 + k0 * k1
            p11 = a11 - a10 * k1 + k1 * k1

        # Update
        v = y[t] - level
        level = level + k0 * v
        slope = slope + k1 * v

        levels[t] = level
        slopes[t] = slope

    last_pred[0, 0] = n00
    last_pred[0, 1] = n01
    last_pred[1, 0] = n01
    last_pred[1, 1] = n11

    return levels, slopes, converged_at, last_pred


@jit(nopython=True, cache=True)
def llt_filter_panel(y: np.ndarray,
                     x0: np.ndarray,
                     P0: np.ndarray,
                     q: float,
                     use_steady_state: bool,
                     tol: float) -> Tuple[np.ndarray, np.ndarray, np.ndarray, np.ndarray]:
    """
    Run the local linear trend Kalman filter over every column of a panel.

    Args:
        y: Observations of shape (T, n)
        x0: Initial states of shape (2, n)
        P0: Initial covariances of shape (n, 2, 2)
        q: Slope innovation variance (1 / lambda)
        use_steady_state: Freeze each column's gain once converged
        tol: Relative convergence tolerance

    Returns:
        Tuple of levels (T, n), slopes (T, n), convergence steps (n,) and
        last predicted covariances (n, 2, 2)
    """
    nobs, nseries = y.shape
    levels = np.empty((nobs, nseries))
    slopes = np.empty((nobs, nseries))
    steps = np.empty(nseries, dtype=np.int64)
    covs = np.empty((nseries, 2, 2))

    for k in range(nseries):
        col = np.ascontiguousarray(y[:, k])
        lev, slp, step, last_pred = llt_filter_column(
            col, x0[0, k], x0[1, k],
            P0[k, 0, 0], 0.5 * (P0[k, 0, 1] + P0[k, 1, 0]), P0[k, 1, 1],
            q, use_steady_state, tol
        )
        levels[:, k] = lev
        slopes[:, k] = slp
        steps[k] = step
        covs[k] = last_pred

    return levels, slopes, steps, covs
