# hptrend/models/time_series/linear_system.py

"""
Pentadiagonal system behind the two-sided Hodrick-Prescott filter.

The two-sided trend solves

    min_tau  sum_t (y_t - tau_t)^2 + lambda * sum_t (tau_{t+1} - 2 tau_t + tau_{t-1})^2

whose first-order conditions are ``A tau = y`` with ``A = I + lambda D'D``
and D the (T - 2) x T second-difference operator. A is symmetric,
pentadiagonal and depends only on (lambda, T):

    row 1        [1 + l,  -2l,     l                    ]
    row 2        [-2l,    1 + 5l,  -4l,    l            ]
    row t        [l,      -4l,     1 + 6l, -4l,    l    ]   3 <= t <= T - 2
    rows T-1, T  mirror rows 2, 1

A is stored in upper band form (three rows) and factored once with a
banded Cholesky decomposition; every column of the data is then solved
against the same factor.
"""

import logging
from typing import Literal

import numpy as np
from scipy import linalg, sparse

from hptrend.core.exceptions import (
    SingularMatrixError, raise_dimension_error, raise_parameter_error, warn_numeric
)
from hptrend.core.parameters import validate_non_negative
from hptrend.core.types import BandMatrix, Matrix

logger = logging.getLogger("hptrend.models.time_series.linear_system")

# Number of super-diagonals of the HP system matrix
HP_BANDWIDTH = 2

# Smallest T for which the free-boundary rows are well defined
MIN_NOBS = 4

# Reciprocal condition estimate below which solutions lose most digits
RCOND_WARNING = 1e-10


def _validate_system_inputs(lambda_: float, nobs: int) -> float:
    lambda_ = validate_non_negative(lambda_, "lambda_")
    if isinstance(nobs, bool) or not isinstance(nobs, (int, np.integer)) or nobs < MIN_NOBS:
        raise_parameter_error(
            f"The HP system needs at least {MIN_NOBS} observations, got {nobs}",
            param_name="nobs",
            param_value=nobs,
            constraint=f">= {MIN_NOBS}"
        )
    return lambda_


def hp_diagonals(lambda_: float, nobs: int):
    """
    Return the main, first and second super-diagonals of the HP system.

    Args:
        lambda_: Smoothing parameter (>= 0)
        nobs: Number of observations T (>= 4)

    Returns:
        Tuple of arrays with lengths T, T - 1 and T - 2

    Raises:
        ParameterError: If lambda_ < 0 or nobs < 4
    """
    lambda_ = _validate_system_inputs(lambda_, nobs)

    main = np.full(nobs, 1.0 + 6.0 * lambda_)
    main[[0, -1]] = 1.0 + lambda_
    main[[1, -2]] = 1.0 + 5.0 * lambda_

    first = np.full(nobs - 1, -4.0 * lambda_)
    first[[0, -1]] = -2.0 * lambda_

    second = np.full(nobs - 2, lambda_)

    return main, first, second


def hp_system_banded(lambda_: float, nobs: int) -> BandMatrix:
    """
    Build the HP system matrix in upper symmetric band storage.

    Row 0 holds the second super-diagonal, row 1 the first and row 2 the
    main diagonal, right-aligned, which is the layout expected by
    ``scipy.linalg.cholesky_banded(ab, lower=False)``. Unused leading
    entries are zero.

    Args:
        lambda_: Smoothing parameter (>= 0)
        nobs: Number of observations T (>= 4)

    Returns:
        BandMatrix: Array of shape (3, T)

    Raises:
        ParameterError: If lambda_ < 0 or nobs < 4

    Examples:
        >>> from hptrend.models.time_series.linear_system import hp_system_banded
        >>> hp_system_banded(1.0, 5)
        array([[ 0.,  0.,  1.,  1.,  1.],
               [ 0., -2., -4., -4., -2.],
               [ 2.,  6.,  7.,  6.,  2.]])
    """
    main, first, second = hp_diagonals(lambda_, nobs)

    ab = np.zeros((HP_BANDWIDTH + 1, nobs))
    ab[2] = main
    ab[1, 1:] = first
    ab[0, 2:] = second
    return ab


def hp_system_matrix(lambda_: float,
                     nobs: int,
                     matrix_format: Literal["csc", "csr", "dia", "dense"] = "csc"):
    """
    Build the HP system matrix ``A = I + lambda D'D`` as a sparse matrix.

    Args:
        lambda_: Smoothing parameter (>= 0); 0 gives the identity
        nobs: Number of observations T (>= 4)
        matrix_format: Sparse format, or "dense" for a NumPy array

    Returns:
        scipy.sparse matrix (or ndarray for "dense") of shape (T, T)

    Raises:
        ParameterError: If lambda_ < 0 or nobs < 4
    """
    main, first, second = hp_diagonals(lambda_, nobs)
    sparse_format = "csc" if matrix_format == "dense" else matrix_format
    matrix = sparse.diags(
        [second, first, main, first, second],
        [-2, -1, 0, 1, 2],
        shape=(nobs, nobs),
        format=sparse_format
    )
    if matrix_format == "dense":
        return matrix.toarray()
    return matrix


class BandedSolver:
    """
    Banded Cholesky solver for symmetric positive definite band systems.

    The band matrix is factored once on construction; ``solve`` may then be
    called any number of times with one or many right-hand sides. The
    factor is never modified after construction, so one solver can be
    shared across threads.

    Args:
        ab: Upper band storage of shape (u + 1, T)

    Raises:
        SingularMatrixError: If the matrix is not positive definite
    """

    def __init__(self, ab: BandMatrix):
        ab = np.asarray(ab, dtype=np.float64)
        if ab.ndim != 2 or ab.shape[0] < 1:
            raise_dimension_error(
                "Band storage must be a 2-dimensional array",
                array_name="ab",
                expected_shape="(u + 1, T)",
                actual_shape=ab.shape
            )
        if not np.isfinite(ab).all():
            raise SingularMatrixError(
                "System matrix contains non-finite entries",
                operation="banded Cholesky factorization",
                values=ab
            )

        try:
            self._factor = linalg.cholesky_banded(ab, lower=False, check_finite=False)
        except linalg.LinAlgError as e:
            raise SingularMatrixError(
                "System matrix is not positive definite",
                operation="banded Cholesky factorization",
                details=str(e)
            ) from e

        self._nobs = ab.shape[1]

        diagonal = self._factor[-1]
        rcond = float((diagonal.min() / diagonal.max()) ** 2)
        if rcond < RCOND_WARNING:
            warn_numeric(
                "Band system is ill-conditioned; the solution may be inaccurate",
                operation="banded Cholesky factorization",
                issue="ill-conditioned matrix",
                value=rcond
            )

        logger.debug(f"Factored band system of size {self._nobs} "
                     f"with bandwidth {ab.shape[0] - 1}")

    @property
    def nobs(self) -> int:
        return self._nobs

    @property
    def factor(self) -> BandMatrix:
        """Upper Cholesky factor in band storage (read-only copy)."""
        return self._factor.copy()

    def solve(self, rhs: Matrix) -> Matrix:
        """
        Solve ``A x = rhs`` for one or many right-hand sides.

        Args:
            rhs: Array of shape (T,) or (T, n)

        Returns:
            Solution with the same shape as rhs

        Raises:
            DimensionError: If rhs does not have T rows
        """
        rhs = np.asarray(rhs, dtype=np.float64)
        if rhs.ndim not in (1, 2) or rhs.shape[0] != self._nobs:
            raise_dimension_error(
                f"Right-hand side must have {self._nobs} rows, got shape {rhs.shape}",
                array_name="rhs",
                expected_shape=f"({self._nobs},) or ({self._nobs}, n)",
                actual_shape=rhs.shape
            )
        return linalg.cho_solve_banded((self._factor, False), rhs, check_finite=False)


def solve_hp_system(lambda_: float, rhs: Matrix) -> Matrix:
    """
    Build, factor and solve the HP system for every column of rhs.

    Args:
        lambda_: Smoothing parameter (>= 0)
        rhs: Data of shape (T,) or (T, n), T >= 4

    Returns:
        Two-sided HP trend with the shape of rhs
    """
    rhs = np.asarray(rhs, dtype=np.float64)
    solver = BandedSolver(hp_system_banded(lambda_, rhs.shape[0] if rhs.ndim else 0))
    return solver.solve(rhs)
