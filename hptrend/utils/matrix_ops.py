# hptrend/utils/matrix_ops.py
"""
Matrix Operations Module

Small matrix helpers shared by the filters: symmetry and definiteness
checks for covariance matrices, and conversion of symmetric band storage
to a dense matrix for inspection.

Functions:
    ensure_symmetric: Ensure a matrix is symmetric
    is_positive_definite: Check if a matrix is positive definite
    is_positive_semidefinite: Check if a matrix is positive semi-definite
    band_to_dense: Expand upper symmetric band storage to a dense matrix
"""

import logging

import numpy as np
from scipy import linalg

from hptrend.core.types import BandMatrix, Matrix
from hptrend.core.exceptions import raise_dimension_error

logger = logging.getLogger("hptrend.utils.matrix_ops")


def _require_square(matrix: np.ndarray, name: str = "matrix") -> None:
    if matrix.ndim != 2 or matrix.shape[0] != matrix.shape[1]:
        raise_dimension_error(
            "Input must be a square matrix",
            array_name=name,
            expected_shape="(n, n)",
            actual_shape=matrix.shape
        )


def ensure_symmetric(matrix: Matrix, tol: float = 1e-8) -> Matrix:
    """
    Ensure a matrix is symmetric by averaging with its transpose.

    If the matrix is already symmetric within tol it is returned unchanged.

    Args:
        matrix: Matrix to make symmetric
        tol: Tolerance for checking symmetry

    Returns:
        Symmetric matrix

    Raises:
        DimensionError: If the input matrix is not square

    Examples:
        >>> import numpy as np
        >>> from hptrend.utils.matrix_ops import ensure_symmetric
        >>> ensure_symmetric(np.array([[1.0, 2.000001], [2.0, 3.0]]))
        array([[1.       , 2.0000005],
               [2.0000005, 3.       ]])
    """
    matrix = np.asarray(matrix)
    _require_square(matrix)

    if np.allclose(matrix, matrix.T, rtol=tol, atol=tol):
        return matrix

    return (matrix + matrix.T) / 2


def is_positive_definite(matrix: Matrix, tol: float = 1e-8) -> bool:
    """
    Check if a matrix is positive definite via a Cholesky factorization.

    Examples:
        >>> import numpy as np
        >>> from hptrend.utils.matrix_ops import is_positive_definite
        >>> is_positive_definite(np.array([[2.0, 1.0], [1.0, 2.0]]))
        True
        >>> is_positive_definite(np.array([[1.0, 2.0], [2.0, 1.0]]))
        False
    """
    matrix = np.asarray(matrix, dtype=np.float64)
    if matrix.ndim != 2 or matrix.shape[0] != matrix.shape[1]:
        return False

    matrix = ensure_symmetric(matrix, tol)
    try:
        linalg.cholesky(matrix, lower=True, check_finite=False)
        return True
    except linalg.LinAlgError:
        return False


def is_positive_semidefinite(matrix: Matrix, tol: float = 1e-8) -> bool:
    """
    Check if a symmetric matrix has no eigenvalue below -tol * scale.

    The scale is the largest absolute entry (at least 1), so the check is
    insensitive to the magnitude of diffuse prior variances.
    """
    matrix = np.asarray(matrix, dtype=np.float64)
    if matrix.ndim != 2 or matrix.shape[0] != matrix.shape[1]:
        return False
    if not np.isfinite(matrix).all():
        return False

    scale = max(1.0, float(np.abs(matrix).max()))
    eigenvalues = np.linalg.eigvalsh((matrix + matrix.T) / 2)
    return bool(eigenvalues.min() >= -tol * scale)


def band_to_dense(ab: BandMatrix) -> Matrix:
    """
    Expand upper symmetric band storage to a dense symmetric matrix.

    Row ``u - k`` of ``ab`` holds the k-th super-diagonal, right-aligned,
    as consumed by ``scipy.linalg.cholesky_banded(ab, lower=False)``.

    Args:
        ab: Band storage of shape (u + 1, T)

    Returns:
        Dense (T, T) matrix
    """
    ab = np.asarray(ab, dtype=np.float64)
    if ab.ndim != 2:
        raise_dimension_error(
            "Band storage must be 2-dimensional",
            array_name="ab",
            expected_shape="(u + 1, T)",
            actual_shape=ab.shape
        )

    u = ab.shape[0] - 1
    nobs = ab.shape[1]
    dense = np.diag(ab[u])
    for k in range(1, min(u, nobs - 1) + 1):
        off = ab[u - k, k:]
        dense += np.diag(off, k) + np.diag(off, -k)
    return dense
