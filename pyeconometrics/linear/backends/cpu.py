"""
CPU backend for ordinary least squares.

Uses QR decomposition via LAPACK (through SciPy). The normal equations are
never formed: coefficients come from R b = Q'y by back substitution and
(X'X)^-1 from R^-1 R^-T. Every other linear backend funnels its final
regression through solve_least_squares.
"""

from typing import Any
import numpy as np
from numpy.typing import NDArray

from pyeconometrics.core.result import Result
from pyeconometrics.core.exceptions import InsufficientObservationsError
from pyeconometrics.core.compute.timing import Timer
from pyeconometrics.core.compute.linalg import (
    qr_cpu,
    qr_solve_cpu,
    require_full_rank,
    cross_product_inverse,
    leverage,
)
from pyeconometrics.linear._common import CovarianceSpec, LinearParams
from pyeconometrics.linear._covariance import estimate_covariance
from pyeconometrics.linear.design import LinearDesign


def check_observations(n: int, k: int) -> None:
    """At least one residual degree of freedom is required."""
    if n <= k:
        raise InsufficientObservationsError(
            f"Need more observations than coefficients: n={n}, k={k}",
            n_obs=n,
            n_params=k,
        )


def total_sum_of_squares(y: NDArray[np.floating[Any]], has_intercept: bool) -> float:
    """Centred TSS with an intercept, uncentred otherwise (as R's lm)."""
    if has_intercept:
        return float(np.sum((y - np.mean(y)) ** 2))
    return float(y @ y)


def gaussian_log_likelihood(rss: float, n: int) -> float:
    """Concentrated Gaussian log-likelihood, -n/2 (log 2pi + log(RSS/n) + 1)."""
    with np.errstate(divide='ignore'):
        return float(-0.5 * n * (np.log(2.0 * np.pi) + np.log(rss / n) + 1.0))


def solve_least_squares(
    y: NDArray[np.floating[Any]],
    X: NDArray[np.floating[Any]],
    spec: CovarianceSpec,
    *,
    has_intercept: bool,
    timer: Timer,
) -> LinearParams:
    """
    Least squares fit of y on a full-column-rank X.

    Args:
        y: Response (n,)
        X: Regressors with redundant columns already removed (n x k')
        spec: Covariance selection
        has_intercept: Whether TSS is centred
        timer: Timer receiving the section breakdown

    Returns:
        LinearParams over the k' columns of X

    Raises:
        InsufficientObservationsError: If n <= k'
        SingularMatrixError: If R has a numerically zero diagonal
    """
    n, k = X.shape
    check_observations(n, k)

    with timer.section('qr_decomposition'):
        qr_result = qr_cpu(X)
        require_full_rank(qr_result, 'X')

    with timer.section('solve'):
        coefficients = qr_solve_cpu(qr_result, y)

    with timer.section('residuals'):
        fitted_values = X @ coefficients
        residuals = y - fitted_values

    with timer.section('covariance'):
        bread = cross_product_inverse(qr_result.R)
        covariance = estimate_covariance(
            spec, X, residuals, bread, leverage(qr_result.Q)
        )

    with timer.section('statistics'):
        rss = float(residuals @ residuals)
        tss = total_sum_of_squares(y, has_intercept)
        llf = gaussian_log_likelihood(rss, n)

    return LinearParams(
        coefficients=coefficients,
        covariance=covariance,
        residuals=residuals,
        fitted_values=fitted_values,
        rss=rss,
        tss=tss,
        log_likelihood=llf,
        n_obs=n,
        df_residual=n - k,
    )


class CPUQRBackend:
    """
    CPU backend for OLS using QR decomposition.

    Solves LinearDesign -> Result[LinearParams].
    """

    @property
    def name(self) -> str:
        return 'cpu_qr'

    def solve(self, design: LinearDesign, spec: CovarianceSpec) -> Result[LinearParams]:
        """
        Solve OLS on the kept columns of the design.

        Algorithm:
            1. Compute QR decomposition: X = QR
            2. Solve: beta = R^-1 Q'y
            3. Compute residuals, covariance and fit statistics

        Args:
            design: Validated design
            spec: Covariance selection

        Returns:
            Result containing LinearParams
        """
        timer = Timer()
        timer.start()

        params = solve_least_squares(
            design.y,
            design.X_kept,
            spec,
            has_intercept=design.has_intercept,
            timer=timer,
        )

        timer.stop()

        info: dict[str, Any] = {
            'method': 'ols',
            'rank': design.k_kept,
            'cov_type': spec.label,
        }

        return Result(
            params=params,
            info=info,
            timing=timer.result(),
            backend_name=self.name,
            warnings=design.omission_notes(),
        )
