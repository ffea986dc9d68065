"""
Inference on estimated coefficients.

Splits into a distribution-free part (standard errors, test statistics,
the Wald statistic for the overall model) computed once per fit, and a
distribution-dependent part (p-values, critical value, confidence bounds)
that is recomputed when the reference distribution changes.
"""

from typing import Any
import numpy as np
from numpy.typing import NDArray
from scipy import linalg, stats

from pyeconometrics.core.exceptions import ValidationError
from pyeconometrics.linear._common import Distribution, InferenceParams


DISTRIBUTIONS = ('t', 'normal')


def check_distribution(distribution: str) -> Distribution:
    """Normalise a distribution name ('t', 'normal'; case insensitive)."""
    if not isinstance(distribution, str):
        raise ValidationError(
            f"distribution: expected 't' or 'normal', got {distribution!r}"
        )
    key = distribution.strip().lower()
    if key in ('t', 'student', 'student-t'):
        return 't'
    if key in ('normal', 'z', 'gaussian'):
        return 'normal'
    raise ValidationError(
        f"distribution: expected 't' or 'normal', got {distribution!r}"
    )


def check_conf_level(conf_level: float) -> float:
    """Confidence level must lie strictly between 0 and 1."""
    try:
        level = float(conf_level)
    except (TypeError, ValueError) as e:
        raise ValidationError(f"conf_level: must be a number, got {conf_level!r}") from e
    if not 0.0 < level < 1.0:
        raise ValidationError(f"conf_level: must be in (0, 1), got {level}")
    return level


def standard_errors(covariance: NDArray[np.floating[Any]]) -> NDArray[np.floating[Any]]:
    """Square roots of the covariance diagonal, NaN where it is negative."""
    var = np.diag(covariance).copy()
    se = np.full(var.shape, np.nan, dtype=np.float64)
    ok = var >= 0
    se[ok] = np.sqrt(var[ok])
    return se


def coefficient_statistics(
    coefficients: NDArray[np.floating[Any]],
    se: NDArray[np.floating[Any]],
) -> NDArray[np.floating[Any]]:
    """beta / se, NaN where the ratio is undefined."""
    with np.errstate(divide='ignore', invalid='ignore'):
        t = coefficients / se
    return np.where(np.isfinite(t), t, np.nan)


def overall_restrictions(
    X: NDArray[np.floating[Any]],
    has_intercept: bool,
    intercept_position: int | None = None,
) -> NDArray[np.floating[Any]]:
    """
    Restriction matrix R (q x k') for "the regressors explain nothing".

    Without an intercept every coefficient is restricted, R = I. With the
    constant among the kept columns (at intercept_position) R selects the
    other coefficients. When the constant was dropped as a combination of
    kept columns (e.g. a full set of dummies) the constant direction c,
    X c = 1, is left free and R spans the k' - 1 contrasts orthogonal to
    it, so H0: R beta = 0 still says the fitted values are constant.
    """
    k = X.shape[1]
    if not has_intercept:
        return np.eye(k)
    if intercept_position is not None:
        return np.delete(np.eye(k), intercept_position, axis=0)
    c, *_ = linalg.lstsq(X, np.ones(X.shape[0]))
    return linalg.null_space(c[np.newaxis, :]).T


def wald_test(
    coefficients: NDArray[np.floating[Any]],
    covariance: NDArray[np.floating[Any]],
    R: NDArray[np.floating[Any]],
) -> tuple[float, int]:
    """
    Wald F statistic for H0: R beta = 0.

    F = (R b)' (R V R')^-1 (R b) / q with q the number of rows of R. Uses
    the covariance the fit was made with, so the test is robust whenever
    the covariance is.

    Returns:
        (F, q); F is NaN when nothing is tested or R V R' is singular
    """
    q = R.shape[0]
    if q == 0:
        return float('nan'), 0

    r = R @ coefficients
    V = R @ covariance @ R.T
    try:
        solved = linalg.solve(V, r, assume_a='sym')
    except (linalg.LinAlgError, ValueError):
        return float('nan'), q
    f_stat = float(r @ solved) / q
    if not np.isfinite(f_stat):
        return float('nan'), q
    return f_stat, q


def distribution_inference(
    coefficients: NDArray[np.floating[Any]],
    se: NDArray[np.floating[Any]],
    statistics: NDArray[np.floating[Any]],
    *,
    distribution: Distribution,
    df: int,
    conf_level: float,
    f_statistic: float,
    f_df: int,
) -> InferenceParams:
    """
    P-values and confidence intervals under the given distribution.

    Args:
        coefficients: Coefficients (k,), NaN where omitted
        se: Their standard errors
        statistics: coefficients / se
        distribution: 't' (Student-t with df) or 'normal'
        df: Residual degrees of freedom
        conf_level: Confidence level in (0, 1)
        f_statistic: Overall Wald statistic (F form)
        f_df: Numerator degrees of freedom of the Wald test

    Returns:
        InferenceParams
    """
    alpha = 1.0 - conf_level
    abs_stat = np.abs(statistics)

    if distribution == 't':
        p_values = 2.0 * stats.t.sf(abs_stat, df)
        critical = float(stats.t.ppf(1.0 - alpha / 2.0, df))
        df_out: int | None = df
    else:
        p_values = 2.0 * stats.norm.sf(abs_stat)
        critical = float(stats.norm.ppf(1.0 - alpha / 2.0))
        df_out = None

    if f_df == 0 or not np.isfinite(f_statistic):
        f_p_value = float('nan')
    elif distribution == 't':
        f_p_value = float(stats.f.sf(f_statistic, f_df, df))
    else:
        f_p_value = float(stats.chi2.sf(f_statistic * f_df, f_df))

    return InferenceParams(
        distribution=distribution,
        conf_level=conf_level,
        df=df_out,
        critical_value=critical,
        p_values=p_values,
        conf_int_lower=coefficients - critical * se,
        conf_int_upper=coefficients + critical * se,
        f_p_value=f_p_value,
    )
