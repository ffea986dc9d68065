"""
Coefficient covariance estimators.

Every estimator is a sandwich B M B around a bread B = (X'X)^-1 of the
effective regressor matrix X (X itself for OLS, the first-stage fitted
values for IV). The variants differ only in the meat M:

    nonrobust           sigma^2 X'X, so V = sigma^2 B
    HC0                 X' diag(e^2) X
    HC1                 HC0 * n / (n - k)
    HC2                 e_i^2 / (1 - h_i)
    HC3                 e_i^2 / (1 - h_i)^2
    HC4                 e_i^2 / (1 - h_i)^delta_i, delta_i = min(4, n h_i / k)
    newey-west          Gamma_0 + sum_j (1 - j/(L+1)) (Gamma_j + Gamma_j')
    clustered           sum_g s_g s_g', scaled by G/(G-1) (n-1)/(n-k)
    clustered-two-way   M_1 + M_2 - M_12 with G = min(G_1, G_2)

HC0 and Newey-West share one code path, so Newey-West with L = 0 is
identical to HC0 bit for bit.

References:
    White (1980). Econometrica 48(4), 817-838.
    MacKinnon & White (1985). Journal of Econometrics 29(3), 305-325.
    Cribari-Neto (2004). Computational Statistics & Data Analysis 45(2).
    Newey & West (1987). Econometrica 55(3), 703-708.
    Cameron, Gelbach & Miller (2011). JBES 29(2), 238-249.
"""

import numbers
from typing import Any
import numpy as np
from numpy.typing import ArrayLike, NDArray

from pyeconometrics.core.exceptions import ValidationError, DimensionError
from pyeconometrics.core.compute.linalg import qr_cpu, leverage as hat_diagonal
from pyeconometrics.core.compute.tolerances import LEVERAGE_TOLERANCE
from pyeconometrics.linear._common import CovarianceSpec


_ALIASES = {
    'nonrobust': 'nonrobust',
    'classical': 'nonrobust',
    'hc0': 'HC0',
    'hc1': 'HC1',
    'robust': 'HC1',
    'hc2': 'HC2',
    'hc3': 'HC3',
    'hc4': 'HC4',
    'newey-west': 'newey-west',
    'neweywest': 'newey-west',
    'hac': 'newey-west',
    'clustered': 'clustered',
    'cluster': 'clustered',
    'clustered-two-way': 'clustered-two-way',
    'two-way': 'clustered-two-way',
}


def covariance_spec(
    cov_type: str | CovarianceSpec = 'nonrobust',
    *,
    lags: int | None = None,
    clusters: ArrayLike | None = None,
    clusters2: ArrayLike | None = None,
    n: int,
) -> CovarianceSpec:
    """
    Normalise a covariance selection into a validated CovarianceSpec.

    Args:
        cov_type: Estimator name (case insensitive; 'robust' means HC1)
            or a ready CovarianceSpec
        lags: Truncation lag for 'newey-west'
        clusters: Cluster ids (n,) of any hashable dtype
        clusters2: Second cluster dimension (n,) for two-way clustering.
            Supplying it with 'clustered' selects two-way clustering.
        n: Number of observations the ids must cover

    Returns:
        CovarianceSpec with cluster ids factorised to 0..G-1

    Raises:
        ValidationError: Unknown name, missing or negative lags, missing
            cluster ids, fewer than 2 clusters
        DimensionError: Cluster ids of the wrong shape or length
    """
    if isinstance(cov_type, CovarianceSpec):
        lags = cov_type.lags if lags is None else lags
        clusters = cov_type.clusters if clusters is None else clusters
        clusters2 = cov_type.clusters2 if clusters2 is None else clusters2
        kind = cov_type.kind
    else:
        if not isinstance(cov_type, str):
            raise ValidationError(
                f"cov_type: expected str or CovarianceSpec, got {type(cov_type).__name__}"
            )
        kind = _ALIASES.get(cov_type.strip().lower())
        if kind is None:
            raise ValidationError(
                f"cov_type: unknown covariance estimator {cov_type!r}; "
                f"expected one of {sorted(set(_ALIASES.values()))}"
            )

    if kind == 'clustered' and clusters2 is not None:
        kind = 'clustered-two-way'

    if kind == 'newey-west':
        if lags is None:
            raise ValidationError("newey-west covariance requires lags=")
        if isinstance(lags, bool) or not isinstance(lags, numbers.Integral) or lags < 0:
            raise ValidationError(f"lags: must be a non-negative integer, got {lags!r}")
        return CovarianceSpec(kind='newey-west', lags=int(lags))

    if kind == 'clustered':
        if clusters is None:
            raise ValidationError("clustered covariance requires clusters=")
        return CovarianceSpec(
            kind='clustered',
            clusters=_factorize(clusters, n, 'clusters'),
        )

    if kind == 'clustered-two-way':
        if clusters is None or clusters2 is None:
            raise ValidationError(
                "two-way clustered covariance requires clusters= and clusters2="
            )
        return CovarianceSpec(
            kind='clustered-two-way',
            clusters=_factorize(clusters, n, 'clusters'),
            clusters2=_factorize(clusters2, n, 'clusters2'),
        )

    return CovarianceSpec(kind=kind)


def _factorize(ids: ArrayLike, n: int, name: str) -> NDArray[np.intp]:
    """Map arbitrary cluster labels to codes 0..G-1."""
    arr = np.asarray(ids)
    if arr.ndim == 2 and arr.shape[1] == 1:
        arr = arr.ravel()
    if arr.ndim != 1:
        raise DimensionError(f"{name}: expected 1D array, got shape {arr.shape}")
    if arr.shape[0] != n:
        raise DimensionError(f"{name}: length {arr.shape[0]} does not match n={n}")
    if np.issubdtype(arr.dtype, np.floating) and not np.all(np.isfinite(arr)):
        raise ValidationError(f"{name}: contains non-finite cluster ids")

    _, codes = np.unique(arr, return_inverse=True)
    codes = codes.ravel().astype(np.intp)
    n_groups = int(codes.max()) + 1 if len(codes) else 0
    if n_groups < 2:
        raise ValidationError(
            f"{name}: clustered covariance needs at least 2 clusters, got {n_groups}"
        )
    return codes


# === Meat components ===

def hac_meat(
    scores: NDArray[np.floating[Any]],
    lags: int,
) -> NDArray[np.floating[Any]]:
    """
    Bartlett-kernel long-run outer product of the score rows.

    With lags=0 this is the plain sum of outer products sum_i s_i s_i'.
    Lags beyond n - 1 contribute nothing and are ignored.
    """
    meat = scores.T @ scores
    n = scores.shape[0]
    for j in range(1, min(lags, n - 1) + 1):
        weight = 1.0 - j / (lags + 1.0)
        gamma = scores[j:].T @ scores[:-j]
        meat += weight * (gamma + gamma.T)
    return meat


def cluster_meat(
    scores: NDArray[np.floating[Any]],
    codes: NDArray[np.intp],
) -> tuple[NDArray[np.floating[Any]], int]:
    """Sum of outer products of within-cluster score totals, and G."""
    n_groups = int(codes.max()) + 1
    totals = np.zeros((n_groups, scores.shape[1]), dtype=np.float64)
    np.add.at(totals, codes, scores)
    return totals.T @ totals, n_groups


def _intersect(
    codes1: NDArray[np.intp],
    codes2: NDArray[np.intp],
) -> NDArray[np.intp]:
    """Codes of the cells of the two-way cluster cross-classification."""
    combined = codes1 * (int(codes2.max()) + 1) + codes2
    _, codes = np.unique(combined, return_inverse=True)
    return codes.ravel().astype(np.intp)


def _leverage_weights(
    kind: str,
    e2: NDArray[np.floating[Any]],
    h: NDArray[np.floating[Any]],
    k: int,
) -> NDArray[np.floating[Any]]:
    """Leverage-adjusted squared residuals for HC2-HC4."""
    one_minus_h = 1.0 - h
    safe = one_minus_h > LEVERAGE_TOLERANCE
    denom = np.where(safe, one_minus_h, 1.0)

    if kind == 'HC2':
        adjusted = e2 / denom
    elif kind == 'HC3':
        adjusted = e2 / denom ** 2
    else:
        delta = np.minimum(4.0, len(h) * h / k)
        adjusted = e2 / denom ** delta

    return np.where(safe, adjusted, e2)


# === Dispatch ===

def estimate_covariance(
    spec: CovarianceSpec,
    X: NDArray[np.floating[Any]],
    residuals: NDArray[np.floating[Any]],
    bread: NDArray[np.floating[Any]],
    leverage: NDArray[np.floating[Any]] | None = None,
) -> NDArray[np.floating[Any]]:
    """
    Covariance matrix of the coefficients under the selected assumption.

    Args:
        spec: Validated estimator selection
        X: Effective regressor matrix (n x k), full column rank
        residuals: Residuals (n,)
        bread: (X'X)^-1 (k x k)
        leverage: Hat-matrix diagonal (n,). Computed from X when an
            HC2-HC4 estimator needs it and it is not supplied.

    Returns:
        Symmetric (k x k) covariance matrix
    """
    n, k = X.shape
    df = n - k
    kind = spec.kind

    if kind == 'nonrobust':
        sigma2 = float(residuals @ residuals) / df
        return sigma2 * bread

    scores = X * residuals[:, np.newaxis]

    if kind in ('HC0', 'HC1'):
        meat = hac_meat(scores, 0)
        if kind == 'HC1':
            meat = meat * (n / df)
    elif kind == 'newey-west':
        meat = hac_meat(scores, spec.lags)
    elif kind in ('HC2', 'HC3', 'HC4'):
        if leverage is None:
            leverage = hat_diagonal(qr_cpu(X).Q)
        omega = _leverage_weights(kind, residuals ** 2, leverage, k)
        meat = X.T @ (X * omega[:, np.newaxis])
    elif kind == 'clustered':
        meat, n_groups = cluster_meat(scores, spec.clusters)
        meat = meat * (n_groups / (n_groups - 1.0)) * ((n - 1.0) / df)
    elif kind == 'clustered-two-way':
        meat1, g1 = cluster_meat(scores, spec.clusters)
        meat2, g2 = cluster_meat(scores, spec.clusters2)
        meat12, _ = cluster_meat(scores, _intersect(spec.clusters, spec.clusters2))
        n_groups = min(g1, g2)
        meat = (meat1 + meat2 - meat12) * (n_groups / (n_groups - 1.0)) * ((n - 1.0) / df)
    else:
        raise ValueError(f"Unknown covariance kind: {kind!r}")

    V = bread @ meat @ bread
    return (V + V.T) / 2.0
