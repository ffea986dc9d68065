"""
CPU backend for linear GMM.

Moment conditions g(beta) = (1/n) Z'(y - X beta).

Step 1 is 2SLS. Step 2 estimates the moment covariance from the step-1
residuals, S = sum_i e_i^2 z_i z_i' (or its Bartlett HAC version), and
re-solves with weight W = S^-1. The weighted problem is solved through
the Cholesky factor S = L L':

    A = L^-1 Z'X,  b = L^-1 Z'y,  beta = argmin ||b - A beta||

so that Cov(beta) = (X'Z S^-1 Z'X)^-1 = (A'A)^-1 and Hansen's
J = n g'Wg = ||L^-1 Z'e||^2.

Reference:
    Hansen (1982). Econometrica 50(4), 1029-1054.
"""

from dataclasses import replace
from typing import Any
import numpy as np
from numpy.typing import NDArray
from scipy import linalg, stats

from pyeconometrics.core.result import Result
from pyeconometrics.core.exceptions import SingularMatrixError
from pyeconometrics.core.compute.timing import Timer
from pyeconometrics.core.compute.linalg import (
    qr_cpu,
    qr_solve_cpu,
    require_full_rank,
    cross_product_inverse,
)
from pyeconometrics.linear._common import CovarianceSpec, LinearParams
from pyeconometrics.linear._covariance import estimate_covariance, hac_meat
from pyeconometrics.linear.backends.cpu import check_observations
from pyeconometrics.linear.backends.cpu_iv import (
    TwoStageFit,
    check_order_condition,
    iv_params,
    two_stage_least_squares,
)
from pyeconometrics.linear.design import LinearDesign


def moment_cholesky(
    Z: NDArray[np.floating[Any]],
    residuals: NDArray[np.floating[Any]],
    hac_lags: int,
) -> NDArray[np.floating[Any]]:
    """Lower Cholesky factor of the moment covariance S."""
    S = hac_meat(Z * residuals[:, np.newaxis], hac_lags)
    try:
        return linalg.cholesky(S, lower=True)
    except linalg.LinAlgError as e:
        raise SingularMatrixError(
            "Moment covariance S is not positive definite; the instruments "
            "carry no independent variation in the residuals.",
            matrix_name='S',
        ) from e


def j_statistic(
    L: NDArray[np.floating[Any]],
    Z: NDArray[np.floating[Any]],
    residuals: NDArray[np.floating[Any]],
    df: int,
) -> tuple[float, float]:
    """Hansen J and its chi-squared(df) p-value. Exactly identified: (0, 1)."""
    if df == 0:
        return 0.0, 1.0
    scaled = linalg.solve_triangular(L, Z.T @ residuals, lower=True)
    j = float(scaled @ scaled)
    return j, float(stats.chi2.sf(j, df))


class CPUGMMBackend:
    """
    CPU backend for linear GMM.

    Args:
        steps: 1 for the 2SLS-weighted estimate with a robust sandwich
            covariance, 2 for the efficient two-step estimator
        hac_lags: Bartlett truncation lag for S; None for the
            heteroskedasticity-only form
    """

    def __init__(self, steps: int = 2, hac_lags: int | None = None):
        self.steps = steps
        self.hac_lags = 0 if hac_lags is None else hac_lags

    @property
    def name(self) -> str:
        return 'cpu_gmm'

    def solve(self, design: LinearDesign) -> Result[LinearParams]:
        """
        Solve GMM on the kept regressors and instruments.

        Raises:
            OrderConditionError: If l' < k'
            InsufficientObservationsError: If n <= k'
            SingularMatrixError: If the model is not identified or S is
                not positive definite
        """
        check_order_condition(design)
        check_observations(design.n, design.k_kept)

        y, X, Z = design.y, design.X_kept, design.Z_kept
        j_df = Z.shape[1] - X.shape[1]

        timer = Timer()
        timer.start()

        first = two_stage_least_squares(y, X, Z, timer)

        with timer.section('weight_matrix'):
            L = moment_cholesky(Z, first.residuals, self.hac_lags)

        if self.steps == 1:
            with timer.section('covariance'):
                spec = (
                    CovarianceSpec(kind='newey-west', lags=self.hac_lags)
                    if self.hac_lags else CovarianceSpec(kind='HC0')
                )
                covariance = estimate_covariance(
                    spec, first.X_hat, first.residuals, first.bread, first.leverage
                )
            fit = first
        else:
            with timer.section('second_step'):
                A = linalg.solve_triangular(L, Z.T @ X, lower=True)
                b = linalg.solve_triangular(L, Z.T @ y, lower=True)
                qr_a = qr_cpu(A)
                require_full_rank(qr_a, "Z'X")
                coefficients = qr_solve_cpu(qr_a, b)
                covariance = cross_product_inverse(qr_a.R)
            fit = TwoStageFit(
                coefficients=coefficients,
                residuals=y - X @ coefficients,
                X_hat=first.X_hat,
                bread=first.bread,
                leverage=first.leverage,
            )

        with timer.section('j_statistic'):
            j, j_p = j_statistic(L, Z, fit.residuals, j_df)

        timer.stop()

        params = replace(
            iv_params(design, fit, covariance),
            j_statistic=j,
            j_df=j_df,
            j_p_value=j_p,
        )

        info: dict[str, Any] = {
            'method': 'gmm',
            'steps': self.steps,
            'hac_lags': self.hac_lags,
            'rank': design.k_kept,
            'n_instruments': Z.shape[1],
            'cov_type': 'Efficient GMM' if self.steps == 2 else 'Robust (one-step GMM)',
        }

        return Result(
            params=params,
            info=info,
            timing=timer.result(),
            backend_name=self.name,
            warnings=design.omission_notes(),
        )
