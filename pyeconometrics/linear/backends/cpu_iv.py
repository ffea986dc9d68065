"""
CPU backend for instrumental variables (two-stage least squares).

First stage: the kept regressors are projected onto the span of the kept
instruments through the QR factor of Z, X_hat = Q_z Q_z' X.
Second stage: QR least squares of y on X_hat.

Residuals are the structural residuals e = y - X beta computed with the
original regressors, never y - X_hat beta. The covariance estimators see
X_hat as the regressor matrix, so the bread is (X_hat'X_hat)^-1 and the
scores are X_hat_i e_i.
"""

from dataclasses import dataclass
from typing import Any
import numpy as np
from numpy.typing import NDArray

from pyeconometrics.core.result import Result
from pyeconometrics.core.exceptions import OrderConditionError
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
from pyeconometrics.linear.backends.cpu import (
    check_observations,
    total_sum_of_squares,
    gaussian_log_likelihood,
)
from pyeconometrics.linear.design import LinearDesign


@dataclass(frozen=True)
class TwoStageFit:
    """Intermediate quantities of a 2SLS fit reused by GMM."""
    coefficients: NDArray[np.floating[Any]]
    residuals: NDArray[np.floating[Any]]
    X_hat: NDArray[np.floating[Any]]
    bread: NDArray[np.floating[Any]]
    leverage: NDArray[np.floating[Any]]


def check_order_condition(design: LinearDesign) -> None:
    """At least as many independent instruments as kept regressors."""
    n_instruments = design.Z_kept.shape[1]
    if n_instruments < design.k_kept:
        raise OrderConditionError(
            f"Order condition violated: {n_instruments} independent "
            f"instrument(s) for {design.k_kept} regressor(s)",
            n_instruments=n_instruments,
            n_regressors=design.k_kept,
        )


def two_stage_least_squares(
    y: NDArray[np.floating[Any]],
    X: NDArray[np.floating[Any]],
    Z: NDArray[np.floating[Any]],
    timer: Timer,
) -> TwoStageFit:
    """
    2SLS point estimate.

    Args:
        y: Response (n,)
        X: Kept regressors (n x k')
        Z: Kept instruments (n x l'), l' >= k'

    Raises:
        SingularMatrixError: If X_hat loses rank (model not identified)
    """
    with timer.section('first_stage'):
        qr_z = qr_cpu(Z)
        require_full_rank(qr_z, 'Z')
        X_hat = qr_z.Q @ (qr_z.Q.T @ X)

    with timer.section('second_stage'):
        qr_hat = qr_cpu(X_hat)
        require_full_rank(qr_hat, 'X_hat')
        coefficients = qr_solve_cpu(qr_hat, y)

    residuals = y - X @ coefficients

    return TwoStageFit(
        coefficients=coefficients,
        residuals=residuals,
        X_hat=X_hat,
        bread=cross_product_inverse(qr_hat.R),
        leverage=leverage(qr_hat.Q),
    )


def iv_params(
    design: LinearDesign,
    fit: TwoStageFit,
    covariance: NDArray[np.floating[Any]],
) -> LinearParams:
    """Assemble the payload of an IV-type fit on the original regressors."""
    y = design.y
    n = design.n
    residuals = fit.residuals
    rss = float(residuals @ residuals)
    return LinearParams(
        coefficients=fit.coefficients,
        covariance=covariance,
        residuals=residuals,
        fitted_values=y - residuals,
        rss=rss,
        tss=total_sum_of_squares(y, design.has_intercept),
        log_likelihood=gaussian_log_likelihood(rss, n),
        n_obs=n,
        df_residual=n - design.k_kept,
    )


class CPUIVBackend:
    """CPU backend for two-stage least squares."""

    @property
    def name(self) -> str:
        return 'cpu_iv'

    def solve(self, design: LinearDesign, spec: CovarianceSpec) -> Result[LinearParams]:
        """
        Solve 2SLS on the kept regressors and instruments.

        Raises:
            OrderConditionError: If l' < k'
            InsufficientObservationsError: If n <= k'
            SingularMatrixError: If the model is not identified
        """
        check_order_condition(design)
        check_observations(design.n, design.k_kept)

        timer = Timer()
        timer.start()

        fit = two_stage_least_squares(design.y, design.X_kept, design.Z_kept, timer)

        with timer.section('covariance'):
            covariance = estimate_covariance(
                spec, fit.X_hat, fit.residuals, fit.bread, fit.leverage
            )

        timer.stop()

        info: dict[str, Any] = {
            'method': 'iv',
            'rank': design.k_kept,
            'n_instruments': design.Z_kept.shape[1],
            'cov_type': spec.label,
        }

        return Result(
            params=iv_params(design, fit, covariance),
            info=info,
            timing=timer.result(),
            backend_name=self.name,
            warnings=design.omission_notes(),
        )
