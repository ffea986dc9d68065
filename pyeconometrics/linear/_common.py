"""
Common data types for linear estimation.

Contains the frozen payloads that travel between the design, the backends,
the inference engine and the user-facing EstimationResult. Each payload is
a plain data container; the only behaviour is index bookkeeping.

Index convention: estimators compute on the compacted set of kept columns
(length k'); RankReport.scatter maps those arrays back to the original
column layout (length k) with NaN in omitted slots.
"""

from dataclasses import dataclass
from typing import Any, Literal

import numpy as np
from numpy.typing import NDArray

from pyeconometrics.core.exceptions import ValidationError


CovarianceKind = Literal[
    'nonrobust',
    'HC0',
    'HC1',
    'HC2',
    'HC3',
    'HC4',
    'newey-west',
    'clustered',
    'clustered-two-way',
]

Distribution = Literal['t', 'normal']


@dataclass(frozen=True)
class OmittedColumn:
    """
    A column dropped because it is a combination of earlier columns.

    Attributes:
        index: Position in the original column order
        name: Variable name
        depends_on: Earliest retained index the column is built from,
            or None when the column is identically zero
        depends_on_name: Name of that column, or None
    """
    index: int
    name: str
    depends_on: int | None
    depends_on_name: str | None

    def note(self) -> str:
        """Stata-style note describing the omission."""
        return f"note: {self.name} omitted because of collinearity"


@dataclass(frozen=True)
class RankReport:
    """
    Partition of the k original columns into kept and omitted.

    Invariant: indices in `kept` are increasing, and every omitted column
    depends only on columns that precede it.
    """
    names: tuple[str, ...]
    kept: tuple[int, ...]
    omitted: tuple[OmittedColumn, ...]

    @property
    def n_columns(self) -> int:
        return len(self.names)

    @property
    def rank(self) -> int:
        return len(self.kept)

    @property
    def is_full_rank(self) -> bool:
        return not self.omitted

    @property
    def kept_names(self) -> tuple[str, ...]:
        return tuple(self.names[i] for i in self.kept)

    @property
    def omitted_names(self) -> tuple[str, ...]:
        return tuple(o.name for o in self.omitted)

    def kept_mask(self) -> NDArray[np.bool_]:
        mask = np.zeros(self.n_columns, dtype=bool)
        mask[list(self.kept)] = True
        return mask

    def scatter(
        self,
        values: NDArray[np.floating[Any]],
        fill: float = np.nan,
    ) -> NDArray[np.floating[Any]]:
        """Expand a kept-length vector to the original layout."""
        out = np.full(self.n_columns, fill, dtype=np.float64)
        out[list(self.kept)] = values
        return out


@dataclass(frozen=True, eq=False)
class CovarianceSpec:
    """
    Tagged selection of a coefficient covariance estimator.

    Attributes:
        kind: Which estimator to use
        lags: Bartlett truncation lag for 'newey-west'
        clusters: Integer cluster codes (n,) for 'clustered' and
            'clustered-two-way'
        clusters2: Second dimension codes (n,) for 'clustered-two-way'
    """
    kind: CovarianceKind
    lags: int | None = None
    clusters: NDArray[np.intp] | None = None
    clusters2: NDArray[np.intp] | None = None

    @property
    def label(self) -> str:
        """Human-readable name, e.g. 'Newey-West (L=4)'."""
        if self.kind == 'nonrobust':
            return 'Non-Robust'
        if self.kind == 'newey-west':
            return f'Newey-West (L={self.lags})'
        if self.kind == 'clustered':
            return f'Clustered ({len(np.unique(self.clusters))} clusters)'
        if self.kind == 'clustered-two-way':
            g1 = len(np.unique(self.clusters))
            g2 = len(np.unique(self.clusters2))
            return f'Two-Way Clustered ({g1}x{g2})'
        return f'Robust ({self.kind})'

    def drop_first(self) -> 'CovarianceSpec':
        """
        Same selection for a sample that lost its first observation.

        Raises:
            ValidationError: If fewer than 2 clusters remain
        """
        if self.clusters is None:
            return self
        return CovarianceSpec(
            kind=self.kind,
            lags=self.lags,
            clusters=_recode(self.clusters[1:], 'clusters'),
            clusters2=(
                None if self.clusters2 is None
                else _recode(self.clusters2[1:], 'clusters2')
            ),
        )


def _recode(codes: NDArray[np.intp], name: str) -> NDArray[np.intp]:
    """Compact integer codes back to 0..G-1."""
    _, compact = np.unique(codes, return_inverse=True)
    compact = compact.ravel().astype(np.intp)
    n_groups = int(compact.max()) + 1 if len(compact) else 0
    if n_groups < 2:
        raise ValidationError(
            f"{name}: clustered covariance needs at least 2 clusters after "
            f"dropping the first observation, got {n_groups}"
        )
    return compact


@dataclass(frozen=True)
class LinearParams:
    """
    Parameter payload produced by every linear backend.

    Coefficients and covariance cover the kept columns only. Residuals and
    fitted values belong to the sample the final regression was run on
    (the quasi-differenced sample for Cochrane-Orcutt).
    """
    coefficients: NDArray[np.floating[Any]]   # (k',)
    covariance: NDArray[np.floating[Any]]     # (k', k')
    residuals: NDArray[np.floating[Any]]      # (n,)
    fitted_values: NDArray[np.floating[Any]]  # (n,)
    rss: float
    tss: float
    log_likelihood: float
    n_obs: int
    df_residual: int

    # GMM
    j_statistic: float | None = None
    j_df: int | None = None
    j_p_value: float | None = None

    # Cochrane-Orcutt
    rho: float | None = None
    iterations: int | None = None


@dataclass(frozen=True)
class InferenceParams:
    """
    Distribution-dependent inference over the coefficients.

    This is the only part of an EstimationResult that changes when the
    reference distribution is switched. Arrays use the original column
    layout with NaN in omitted slots.
    """
    distribution: Distribution
    conf_level: float
    df: int | None                       # None for the normal distribution
    critical_value: float
    p_values: NDArray[np.floating[Any]]        # (k,)
    conf_int_lower: NDArray[np.floating[Any]]  # (k,)
    conf_int_upper: NDArray[np.floating[Any]]  # (k,)
    f_p_value: float
