"""
Solver dispatch for linear estimation.

This module provides the public estimation functions. All input
validation, design construction, covariance selection, backend dispatch
and result wrapping happens here; backends trust what they receive.
"""

import numbers
import warnings
from typing import Any, Literal
from numpy.typing import ArrayLike

from pyeconometrics.core.exceptions import CollinearityWarning, ValidationError
from pyeconometrics.core.compute.tolerances import CO_TOLERANCE, CO_MAX_ITER
from pyeconometrics.linear._common import CovarianceSpec
from pyeconometrics.linear._covariance import covariance_spec
from pyeconometrics.linear.design import LinearDesign
from pyeconometrics.linear.solution import EstimationResult
from pyeconometrics.linear.backends.cpu import CPUQRBackend
from pyeconometrics.linear.backends.cpu_iv import CPUIVBackend
from pyeconometrics.linear.backends.cpu_gmm import CPUGMMBackend
from pyeconometrics.linear.backends.cpu_fgls import (
    CPUWLSBackend,
    CPUCochraneOrcuttBackend,
)


MethodChoice = Literal['ols', 'iv', '2sls', 'gmm']


def _warn_omitted(design: LinearDesign) -> None:
    """Emit one CollinearityWarning per omitted regressor or instrument."""
    for note in design.omission_notes():
        warnings.warn(note, CollinearityWarning, stacklevel=3)


def ols(
    y: ArrayLike,
    X: ArrayLike,
    *,
    cov_type: str | CovarianceSpec = 'nonrobust',
    lags: int | None = None,
    clusters: ArrayLike | None = None,
    clusters2: ArrayLike | None = None,
    names: Any = None,
    has_intercept: bool | None = None,
    distribution: str = 't',
    conf_level: float = 0.95,
) -> EstimationResult:
    """
    Ordinary least squares.

    Solves min_b ||y - X b||^2 after removing columns of X that are linear
    combinations of earlier columns. Omitted columns get NaN coefficients
    and are reported through CollinearityWarning.

    Args:
        y: Response vector (n,)
        X: Design matrix (n x k); include a column of ones for an intercept
        cov_type: 'nonrobust', 'HC0'-'HC4' ('robust' = HC1), 'newey-west',
            'clustered', 'clustered-two-way', or a CovarianceSpec
        lags: Truncation lag for 'newey-west'
        clusters: Cluster ids (n,) for clustered covariance
        clusters2: Second cluster dimension (n,) for two-way clustering
        names: Column names (default 'x0', 'x1', ...)
        has_intercept: Override intercept detection
        distribution: 't' (Student-t, df = n - k') or 'normal'
        conf_level: Confidence level for the intervals

    Returns:
        EstimationResult

    Raises:
        ValidationError: If inputs are invalid
        DimensionError: If row counts are inconsistent
        InsufficientObservationsError: If n <= k'
        RankDeficiencyError: If no independent column remains

    Example:
        >>> import numpy as np
        >>> from pyeconometrics.linear import ols
        >>>
        >>> X = np.column_stack([np.ones(100), np.random.randn(100, 2)])
        >>> y = X @ [1, 2, 3] + np.random.randn(100) * 0.1
        >>>
        >>> result = ols(y, X, cov_type='HC1')
        >>> print(result.coefficients, result.standard_errors)
    """
    # === Input Validation ===
    # This is the boundary - validate here, trust everywhere else
    design = LinearDesign.build(y, X, names=names, has_intercept=has_intercept)
    spec = covariance_spec(
        cov_type, lags=lags, clusters=clusters, clusters2=clusters2, n=design.n
    )
    _warn_omitted(design)

    # === Solve ===
    result = CPUQRBackend().solve(design, spec)

    # === Wrap and Return ===
    return EstimationResult.build(
        result, design, spec, distribution=distribution, conf_level=conf_level
    )


def iv(
    y: ArrayLike,
    X: ArrayLike,
    Z: ArrayLike,
    *,
    cov_type: str | CovarianceSpec = 'nonrobust',
    lags: int | None = None,
    clusters: ArrayLike | None = None,
    clusters2: ArrayLike | None = None,
    names: Any = None,
    instrument_names: Any = None,
    has_intercept: bool | None = None,
    distribution: str = 't',
    conf_level: float = 0.95,
) -> EstimationResult:
    """
    Instrumental variables by two-stage least squares.

    Exogenous regressors (including the intercept) must appear in both X
    and Z. Redundant columns of either matrix are dropped and reported.

    Args:
        y: Response vector (n,)
        X: Regressors (n x k), endogenous and exogenous
        Z: Instruments (n x l), l' >= k' after dropping redundant columns
        instrument_names: Names of the Z columns (default 'z0', 'z1', ...)
        Other arguments as for ols().

    Returns:
        EstimationResult

    Raises:
        OrderConditionError: If fewer independent instruments than regressors
        SingularMatrixError: If the instruments do not identify the model
    """
    design = LinearDesign.build(
        y, X, Z=Z,
        names=names,
        instrument_names=instrument_names,
        has_intercept=has_intercept,
    )
    spec = covariance_spec(
        cov_type, lags=lags, clusters=clusters, clusters2=clusters2, n=design.n
    )
    _warn_omitted(design)

    result = CPUIVBackend().solve(design, spec)

    return EstimationResult.build(
        result, design, spec, distribution=distribution, conf_level=conf_level
    )


def gmm(
    y: ArrayLike,
    X: ArrayLike,
    Z: ArrayLike,
    *,
    steps: int = 2,
    hac_lags: int | None = None,
    names: Any = None,
    instrument_names: Any = None,
    has_intercept: bool | None = None,
    distribution: str = 'normal',
    conf_level: float = 0.95,
) -> EstimationResult:
    """
    Linear generalised method of moments.

    steps=2 (default) gives the efficient two-step estimator with weight
    matrix S^-1 estimated from 2SLS residuals, covariance
    (X'Z S^-1 Z'X)^-1 and Hansen's J test of the over-identifying
    restrictions. steps=1 returns the 2SLS estimate with a robust
    sandwich covariance.

    Args:
        y: Response vector (n,)
        X: Regressors (n x k)
        Z: Instruments (n x l)
        steps: 1 or 2
        hac_lags: Bartlett lag for a HAC moment covariance; None for the
            heteroskedasticity-robust form
        distribution: Reference distribution (default 'normal')
        Other arguments as for iv().

    Returns:
        EstimationResult with j_statistic, j_df and j_p_value
    """
    if steps not in (1, 2):
        raise ValidationError(f"steps: must be 1 or 2, got {steps!r}")
    if hac_lags is not None and (
        isinstance(hac_lags, bool)
        or not isinstance(hac_lags, numbers.Integral)
        or hac_lags < 0
    ):
        raise ValidationError(f"hac_lags: must be a non-negative integer, got {hac_lags!r}")

    design = LinearDesign.build(
        y, X, Z=Z,
        names=names,
        instrument_names=instrument_names,
        has_intercept=has_intercept,
    )
    _warn_omitted(design)

    backend = CPUGMMBackend(
        steps=steps, hac_lags=None if hac_lags is None else int(hac_lags)
    )
    result = backend.solve(design)

    return EstimationResult.build(
        result, design, None, distribution=distribution, conf_level=conf_level
    )


def wls(
    y: ArrayLike,
    X: ArrayLike,
    weights: ArrayLike,
    *,
    cov_type: str | CovarianceSpec = 'nonrobust',
    lags: int | None = None,
    clusters: ArrayLike | None = None,
    clusters2: ArrayLike | None = None,
    names: Any = None,
    has_intercept: bool | None = None,
    distribution: str = 't',
    conf_level: float = 0.95,
) -> EstimationResult:
    """
    Weighted least squares, min_b sum_i w_i (y_i - x_i'b)^2.

    Args:
        weights: Finite, strictly positive weights (n,), e.g. inverse
            error variances
        Other arguments as for ols().

    Raises:
        ValidationError: If any weight is non-finite or not positive
    """
    design = LinearDesign.build(
        y, X, weights=weights, names=names, has_intercept=has_intercept
    )
    spec = covariance_spec(
        cov_type, lags=lags, clusters=clusters, clusters2=clusters2, n=design.n
    )
    _warn_omitted(design)

    result = CPUWLSBackend().solve(design, spec)

    return EstimationResult.build(
        result, design, spec, distribution=distribution, conf_level=conf_level
    )


def cochrane_orcutt(
    y: ArrayLike,
    X: ArrayLike,
    *,
    tol: float = CO_TOLERANCE,
    max_iter: int = CO_MAX_ITER,
    cov_type: str | CovarianceSpec = 'nonrobust',
    lags: int | None = None,
    clusters: ArrayLike | None = None,
    clusters2: ArrayLike | None = None,
    names: Any = None,
    has_intercept: bool | None = None,
    distribution: str = 't',
    conf_level: float = 0.95,
) -> EstimationResult:
    """
    Iterated Cochrane-Orcutt FGLS for AR(1) errors.

    Rows must be in time order. The first observation is dropped by the
    quasi-difference, so n_obs is n - 1 and df_residual is (n - 1) - k'.

    Args:
        tol: Convergence threshold on the change in rho
        max_iter: Iteration cap
        Other arguments as for ols(); cluster ids cover all n rows.

    Returns:
        EstimationResult with rho and iterations

    Raises:
        ConvergenceError: If rho has not converged after max_iter iterations
    """
    if isinstance(tol, bool) or not isinstance(tol, numbers.Real) or not tol > 0:
        raise ValidationError(f"tol: must be positive, got {tol!r}")
    if (
        isinstance(max_iter, bool)
        or not isinstance(max_iter, numbers.Integral)
        or max_iter < 1
    ):
        raise ValidationError(f"max_iter: must be a positive integer, got {max_iter!r}")

    design = LinearDesign.build(y, X, names=names, has_intercept=has_intercept)
    spec = covariance_spec(
        cov_type, lags=lags, clusters=clusters, clusters2=clusters2, n=design.n
    )
    _warn_omitted(design)

    result = CPUCochraneOrcuttBackend(tol=tol, max_iter=int(max_iter)).solve(design, spec)

    return EstimationResult.build(
        result, design, spec, distribution=distribution, conf_level=conf_level
    )


def fit(
    y: ArrayLike,
    X: ArrayLike,
    Z: ArrayLike | None = None,
    *,
    method: MethodChoice | None = None,
    **kwargs: Any,
) -> EstimationResult:
    """
    Fit a linear model, choosing the estimator from the inputs.

    Without instruments the default is OLS; with instruments it is 2SLS.
    Keyword arguments are passed to the selected estimator.

    Args:
        y: Response vector (n,)
        X: Design matrix (n x k)
        Z: Instrument matrix (n x l), optional
        method: 'ols', 'iv' (alias '2sls') or 'gmm'; inferred if None

    Raises:
        ValidationError: Unknown method, or instruments missing for
            'iv'/'gmm' or supplied to 'ols'
    """
    if method is None:
        method = 'ols' if Z is None else 'iv'
    if not isinstance(method, str):
        raise ValidationError(f"method: expected a string, got {method!r}")
    choice = method.lower()

    if choice == 'ols':
        if Z is not None:
            raise ValidationError("method='ols' does not take instruments")
        return ols(y, X, **kwargs)

    if choice in ('iv', '2sls', 'gmm'):
        if Z is None:
            raise ValidationError(f"method={method!r} requires instruments Z")
        if choice == 'gmm':
            return gmm(y, X, Z, **kwargs)
        return iv(y, X, Z, **kwargs)

    raise ValidationError(
        f"method: unknown estimator {method!r}; expected 'ols', 'iv', '2sls' or 'gmm'"
    )


def with_inference(
    result: EstimationResult,
    distribution: str,
    conf_level: float | None = None,
) -> EstimationResult:
    """
    Re-express a fit under another reference distribution.

    Point estimates, covariance, standard errors and statistics are shared
    with `result`; only p-values and confidence intervals change.
    """
    return result.with_inference(distribution, conf_level)
