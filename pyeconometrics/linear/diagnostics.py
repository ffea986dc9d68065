"""
Residual diagnostics and specification tests for fitted linear models.

    durbin_watson       first-order autocorrelation of the residuals
    jarque_bera         normality from residual skewness and kurtosis
    breusch_pagan       heteroskedasticity, Koenker's n R^2 form
    white_test          heteroskedasticity against levels and squares
    breusch_godfrey     serial correlation up to a given lag
    goldfeld_quandt     variance change between the ends of the sample
    reset_test          Ramsey RESET for neglected nonlinearity

The LM tests share one auxiliary least-squares fit; redundant auxiliary
columns (squares of dummies, a constant implied by a full set of dummies)
are removed by the same rank scan the estimators use and do not count
towards the degrees of freedom.

References:
    Durbin & Watson (1950). Biometrika 37(3/4), 409-428.
    Jarque & Bera (1980). Economics Letters 6(3), 255-259.
    Breusch & Pagan (1979). Econometrica 47(5), 1287-1294.
    Koenker (1981). Journal of Econometrics 17(1), 107-112.
    White (1980). Econometrica 48(4), 817-838.
    Breusch (1978). Australian Economic Papers 17(31), 334-355.
    Godfrey (1978). Econometrica 46(6), 1293-1301.
    Goldfeld & Quandt (1965). JASA 60(310), 539-547.
    Ramsey (1969). JRSS B 31(2), 350-371.
"""

import numbers
from dataclasses import dataclass
from typing import Any
import numpy as np
from numpy.typing import ArrayLike, NDArray
from scipy import stats

from pyeconometrics.core.exceptions import (
    InsufficientObservationsError,
    ValidationError,
)
from pyeconometrics.core.compute.linalg import qr_cpu, qr_solve_cpu
from pyeconometrics.core.validation import as_vector
from pyeconometrics.linear._rank import preprocess
from pyeconometrics.linear.solution import EstimationResult


@dataclass(frozen=True)
class DiagnosticTest:
    """
    Outcome of a diagnostic test.

    Chi-squared tests carry their df in `df`; F tests also set `df_denom`.
    """
    name: str
    statistic: float
    df: int
    p_value: float
    df_denom: int | None = None


def _residuals(source: EstimationResult | ArrayLike) -> NDArray[np.floating[Any]]:
    if isinstance(source, EstimationResult):
        return source.residuals
    return as_vector(source, 'residuals')


def _aligned_residuals(result: EstimationResult, test: str) -> NDArray[np.floating[Any]]:
    """Residuals of a fit whose rows match its design rows."""
    e = result.residuals
    if len(e) != result.design.n:
        raise ValidationError(
            f"{test}: residuals do not align with the design rows "
            f"({len(e)} vs {result.design.n}); not available for {result.method!r}"
        )
    return e


def _auxiliary_fit(
    target: NDArray[np.floating[Any]],
    Z: NDArray[np.floating[Any]],
) -> tuple[float, float, int]:
    """
    Least squares of target on the independent columns of Z.

    Returns:
        (rss, centred tss, number of independent columns)
    """
    names = tuple(f'aux{j}' for j in range(Z.shape[1]))
    Z_kept, _ = preprocess(Z, names, matrix_name='auxiliary')
    fitted = Z_kept @ qr_solve_cpu(qr_cpu(Z_kept), target)
    resid = target - fitted
    centred = target - np.mean(target)
    return float(resid @ resid), float(centred @ centred), Z_kept.shape[1]


def _lm_test(
    name: str,
    target: NDArray[np.floating[Any]],
    Z: NDArray[np.floating[Any]],
) -> DiagnosticTest:
    """n R^2 of an auxiliary regression whose first column is the constant."""
    rss, tss, k_aux = _auxiliary_fit(target, Z)
    df = k_aux - 1
    if df < 1:
        raise ValidationError(f"{name}: no auxiliary regressor besides the constant")
    r2 = 0.0 if tss == 0.0 else 1.0 - rss / tss
    lm = len(target) * r2
    return DiagnosticTest(
        name=name,
        statistic=lm,
        df=df,
        p_value=float(stats.chi2.sf(lm, df)),
    )


def _check_count(value: Any, name: str, minimum: int) -> int:
    if isinstance(value, bool) or not isinstance(value, numbers.Integral) or value < minimum:
        raise ValidationError(f"{name}: must be an integer >= {minimum}, got {value!r}")
    return int(value)


def durbin_watson(source: EstimationResult | ArrayLike) -> float:
    """
    Durbin-Watson statistic sum (e_t - e_{t-1})^2 / sum e_t^2.

    Values near 2 indicate no first-order autocorrelation; values toward 0
    positive and toward 4 negative autocorrelation. Returns 0.0 for fewer
    than two residuals or all-zero residuals.
    """
    e = _residuals(source)
    if len(e) < 2:
        return 0.0
    denom = float(e @ e)
    if denom == 0.0:
        return 0.0
    d = np.diff(e)
    return float(d @ d) / denom


def jarque_bera(source: EstimationResult | ArrayLike) -> DiagnosticTest:
    """
    Jarque-Bera test of residual normality.

    JB = n/6 (S^2 + (K - 3)^2 / 4), chi-squared with 2 df under normality.

    Raises:
        ValidationError: If the residuals have zero variance
    """
    e = _residuals(source)
    if np.var(e) == 0.0:
        raise ValidationError("jarque_bera: residuals have zero variance")
    n = len(e)
    skew = float(stats.skew(e))
    kurt = float(stats.kurtosis(e, fisher=False))
    jb = n / 6.0 * (skew ** 2 + (kurt - 3.0) ** 2 / 4.0)
    return DiagnosticTest(
        name='Jarque-Bera',
        statistic=jb,
        df=2,
        p_value=float(stats.chi2.sf(jb, 2)),
    )


def breusch_pagan(result: EstimationResult) -> DiagnosticTest:
    """
    Breusch-Pagan LM test for heteroskedasticity (studentised form).

    Regresses e^2 on a constant and the kept regressors and returns
    LM = n R^2 of that auxiliary regression, chi-squared with as many df
    as non-constant regressors.

    Raises:
        ValidationError: If the fit has no usable regressor set, e.g.
            Cochrane-Orcutt, whose residuals come from the transformed sample
    """
    e = _aligned_residuals(result, 'breusch_pagan')
    X = result.design.X_kept
    Z = np.column_stack([np.ones(len(e)), X])
    return _lm_test('Breusch-Pagan', e ** 2, Z)


def white_test(result: EstimationResult, *, cross_terms: bool = False) -> DiagnosticTest:
    """
    White's LM test for heteroskedasticity.

    Regresses e^2 on a constant, the kept regressors and their squares
    (and, with cross_terms=True, all pairwise products). LM = n R^2 is
    chi-squared with as many df as independent auxiliary regressors
    besides the constant.

    Raises:
        ValidationError: If the residuals do not align with the design, or
            the auxiliary regression has nothing but a constant
    """
    e = _aligned_residuals(result, 'white_test')
    X = result.design.X_kept
    columns = [np.ones(len(e)), *X.T, *(X ** 2).T]
    if cross_terms:
        k = X.shape[1]
        columns.extend(X[:, i] * X[:, j] for i in range(k) for j in range(i + 1, k))
    return _lm_test('White', e ** 2, np.column_stack(columns))


def breusch_godfrey(result: EstimationResult, lags: int = 1) -> DiagnosticTest:
    """
    Breusch-Godfrey LM test for serial correlation up to order `lags`.

    Regresses e_t on a constant, the kept regressors and e_{t-1}, ...,
    e_{t-lags} over t = lags+1..n (the first `lags` rows have no complete
    lag set and are dropped). LM = (n - lags) R^2, chi-squared(lags).

    Raises:
        ValidationError: If lags is not a positive integer below n, or
            the residuals do not align with the design
    """
    e = _aligned_residuals(result, 'breusch_godfrey')
    n = len(e)
    lags = _check_count(lags, 'lags', 1)
    if lags >= n:
        raise ValidationError(f"lags: must be less than n={n}, got {lags}")

    X = result.design.X_kept[lags:]
    lagged = [e[lags - j:n - j] for j in range(1, lags + 1)]
    Z = np.column_stack([np.ones(n - lags), X, *lagged])
    if Z.shape[1] >= n - lags:
        raise InsufficientObservationsError(
            f"breusch_godfrey: {n - lags} rows for {Z.shape[1]} auxiliary columns",
            n_obs=n - lags,
            n_params=Z.shape[1],
        )

    rss, tss, _ = _auxiliary_fit(e[lags:], Z)
    r2 = 0.0 if tss == 0.0 else 1.0 - rss / tss
    lm = (n - lags) * r2
    return DiagnosticTest(
        name='Breusch-Godfrey',
        statistic=lm,
        df=lags,
        p_value=float(stats.chi2.sf(lm, lags)),
    )


def goldfeld_quandt(
    source: EstimationResult | ArrayLike,
    drop_fraction: float = 0.2,
) -> DiagnosticTest:
    """
    Goldfeld-Quandt test for a change of residual variance.

    Rows must be ordered by the variable suspected to drive the variance.
    The middle `drop_fraction` of the sample is discarded and the residual
    sums of squares of the two equal-sized end groups compared. The
    statistic is the larger over the smaller sum, F(m, m) with m the group
    size; the p-value is two-sided.

    Raises:
        ValidationError: If drop_fraction is outside [0, 1), a group has
            fewer than 2 residuals, or a group's residuals are all zero
    """
    e = _residuals(source)
    if not isinstance(drop_fraction, numbers.Real) or not 0.0 <= drop_fraction < 1.0:
        raise ValidationError(
            f"drop_fraction: must be in [0, 1), got {drop_fraction!r}"
        )
    n = len(e)
    m = (n - int(n * drop_fraction)) // 2
    if m < 2:
        raise ValidationError(
            f"goldfeld_quandt: groups of {m} residual(s); need at least 2"
        )

    ssr_first = float(e[:m] @ e[:m])
    ssr_last = float(e[n - m:] @ e[n - m:])
    if ssr_first == 0.0 or ssr_last == 0.0:
        raise ValidationError("goldfeld_quandt: a group has zero residual variance")

    f_stat = max(ssr_first, ssr_last) / min(ssr_first, ssr_last)
    p_value = min(1.0, 2.0 * float(stats.f.sf(f_stat, m, m)))
    return DiagnosticTest(
        name='Goldfeld-Quandt',
        statistic=f_stat,
        df=m,
        p_value=p_value,
        df_denom=m,
    )


def reset_test(result: EstimationResult, power: int = 3) -> DiagnosticTest:
    """
    Ramsey RESET test of functional form.

    Adds yhat^2, ..., yhat^power to the kept regressors, refits, and
    compares with the restricted fit:

        F = ((RSS_r - RSS_u) / q) / (RSS_u / (n - k_u))

    with q the number of powers that add an independent column. Defined
    for OLS fits only.

    Raises:
        ValidationError: If the fit is not OLS, power < 2, or no power of
            the fitted values is independent of the regressors
        InsufficientObservationsError: If the augmented model leaves no
            residual degrees of freedom
    """
    if result.method != 'ols':
        raise ValidationError(
            f"reset_test: defined for OLS fits, got {result.method!r}"
        )
    power = _check_count(power, 'power', 2)

    y = result.design.y
    X = result.design.X_kept
    n, k = X.shape
    # Powers of the rescaled fitted values span the same columns and stay
    # well scaled.
    scale = float(np.max(np.abs(result.fitted_values)))
    yhat = result.fitted_values / scale if scale > 0 else result.fitted_values
    augmented = np.column_stack([X, *(yhat ** p for p in range(2, power + 1))])

    rss_u, _, k_u = _auxiliary_fit(y, augmented)
    q = k_u - k
    if q < 1:
        raise ValidationError(
            "reset_test: powers of the fitted values are collinear with the regressors"
        )
    df_denom = n - k_u
    if df_denom < 1:
        raise InsufficientObservationsError(
            f"reset_test: n={n} for {k_u} augmented coefficients",
            n_obs=n,
            n_params=k_u,
        )

    f_stat = ((result.rss - rss_u) / q) / (rss_u / df_denom)
    return DiagnosticTest(
        name='RESET',
        statistic=f_stat,
        df=q,
        p_value=float(stats.f.sf(f_stat, q, df_denom)),
        df_denom=df_denom,
    )
