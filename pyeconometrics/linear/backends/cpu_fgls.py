"""
CPU backends for feasible generalised least squares.

WLS: rows are scaled by sqrt(w) and solved as OLS. Coefficients and the
covariance come from the transformed regression; residuals and fitted
values are reported on the original scale. RSS, TSS and the
log-likelihood are the weighted versions, matching R's lm(weights=).

Cochrane-Orcutt: AR(1) errors u_t = rho u_{t-1} + e_t. Starting from OLS,
rho is estimated by regressing the residuals on their first lag (no
intercept), y and X are quasi-differenced, z*_t = z_t - rho z_{t-1} for
t >= 2 (the first observation is dropped), and the model is refitted.
Residuals for the next rho are recomputed on the untransformed data.

Reference:
    Cochrane & Orcutt (1949). JASA 44(245), 32-61.
"""

from dataclasses import replace
from typing import Any
import numpy as np
from numpy.typing import NDArray

from pyeconometrics.core.result import Result
from pyeconometrics.core.exceptions import ConvergenceError
from pyeconometrics.core.compute.timing import Timer
from pyeconometrics.core.compute.linalg import qr_cpu, qr_solve_cpu, require_full_rank
from pyeconometrics.core.compute.tolerances import CO_TOLERANCE, CO_MAX_ITER
from pyeconometrics.linear._common import CovarianceSpec, LinearParams
from pyeconometrics.linear.backends.cpu import (
    check_observations,
    gaussian_log_likelihood,
    solve_least_squares,
)
from pyeconometrics.linear.design import LinearDesign


class CPUWLSBackend:
    """CPU backend for weighted least squares."""

    @property
    def name(self) -> str:
        return 'cpu_wls'

    def solve(self, design: LinearDesign, spec: CovarianceSpec) -> Result[LinearParams]:
        """
        Solve WLS with the design's (validated, positive) weights.

        Coefficients are invariant to a global rescaling of the weights.
        """
        timer = Timer()
        timer.start()

        y, X, w = design.y, design.X_kept, design.weights
        sqrt_w = np.sqrt(w)

        with timer.section('transform'):
            y_w = y * sqrt_w
            X_w = X * sqrt_w[:, np.newaxis]

        transformed = solve_least_squares(
            y_w, X_w, spec, has_intercept=design.has_intercept, timer=timer
        )

        with timer.section('statistics'):
            fitted_values = X @ transformed.coefficients
            residuals = y - fitted_values
            rss = float(np.sum(w * residuals ** 2))
            if design.has_intercept:
                y_bar = float(np.sum(w * y) / np.sum(w))
                tss = float(np.sum(w * (y - y_bar) ** 2))
            else:
                tss = float(np.sum(w * y ** 2))
            llf = gaussian_log_likelihood(rss, design.n) + 0.5 * float(np.sum(np.log(w)))

        timer.stop()

        params = replace(
            transformed,
            residuals=residuals,
            fitted_values=fitted_values,
            rss=rss,
            tss=tss,
            log_likelihood=llf,
        )

        info: dict[str, Any] = {
            'method': 'wls',
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


def _ar1_coefficient(u: NDArray[np.floating[Any]]) -> float:
    """Slope of u_t on u_{t-1} without intercept; 0 if the lag is all zero."""
    lagged = u[:-1]
    denom = float(lagged @ lagged)
    if denom == 0.0:
        return 0.0
    return float(lagged @ u[1:]) / denom


def _quasi_difference(
    z: NDArray[np.floating[Any]],
    rho: float,
) -> NDArray[np.floating[Any]]:
    """z_t - rho z_{t-1} for t = 2..n."""
    return z[1:] - rho * z[:-1]


class CPUCochraneOrcuttBackend:
    """
    CPU backend for iterated Cochrane-Orcutt FGLS.

    Args:
        tol: Convergence threshold on |rho_new - rho_old|
        max_iter: Iteration cap
    """

    def __init__(self, tol: float = CO_TOLERANCE, max_iter: int = CO_MAX_ITER):
        self.tol = tol
        self.max_iter = max_iter

    @property
    def name(self) -> str:
        return 'cpu_cochrane_orcutt'

    def solve(self, design: LinearDesign, spec: CovarianceSpec) -> Result[LinearParams]:
        """
        Iterate rho and the quasi-differenced regression to convergence.

        The final regression runs on n - 1 observations, so df_residual is
        (n - 1) - k'.

        Raises:
            InsufficientObservationsError: If n - 1 <= k'
            ConvergenceError: If max_iter is reached without convergence
            ValidationError: If fewer than 2 clusters remain without the
                first observation
        """
        y, X = design.y, design.X_kept
        check_observations(design.n - 1, design.k_kept)
        final_spec = spec.drop_first()

        timer = Timer()
        timer.start()

        with timer.section('initial_ols'):
            qr_result = qr_cpu(X)
            require_full_rank(qr_result, 'X')
            coefficients = qr_solve_cpu(qr_result, y)

        rho = 0.0
        change = float('inf')
        converged = False
        iterations = 0

        while iterations < self.max_iter:
            iterations += 1
            with timer.section('iterations'):
                rho_new = _ar1_coefficient(y - X @ coefficients)
                qr_star = qr_cpu(_quasi_difference(X, rho_new))
                require_full_rank(qr_star, 'X*')
                coefficients = qr_solve_cpu(qr_star, _quasi_difference(y, rho_new))
            change = abs(rho_new - rho)
            rho = rho_new
            if change < self.tol:
                converged = True
                break

        if not converged:
            raise ConvergenceError(
                f"Cochrane-Orcutt did not converge in {self.max_iter} iterations "
                f"(last |change in rho| = {change:.3e}, tol = {self.tol:.1e})",
                iterations=iterations,
                final_change=change,
                reason='max_iterations',
                threshold=self.tol,
            )

        params = solve_least_squares(
            _quasi_difference(y, rho),
            _quasi_difference(X, rho),
            final_spec,
            has_intercept=design.has_intercept,
            timer=timer,
        )

        timer.stop()

        params = replace(params, rho=rho, iterations=iterations)

        info: dict[str, Any] = {
            'method': 'cochrane-orcutt',
            'rank': design.k_kept,
            'cov_type': spec.label,
            'converged': True,
            'iterations': iterations,
            'rho': rho,
        }

        return Result(
            params=params,
            info=info,
            timing=timer.result(),
            backend_name=self.name,
            warnings=design.omission_notes(),
        )
