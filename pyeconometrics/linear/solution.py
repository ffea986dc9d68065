"""
Linear estimation results.

EstimationResult is the user-facing, immutable view of one fit. It wraps
the backend Result together with the design's column bookkeeping and
presents every per-coefficient quantity in the original column order with
NaN in the slots of omitted columns. The covariance matrix stays k' x k'
over the kept coefficients.

Switching the reference distribution never refits: with_inference
returns a new EstimationResult sharing the coefficient, covariance,
standard error and statistic arrays of the original and recomputing only
the distribution-dependent part.
"""

from dataclasses import dataclass, replace
from typing import Any
import numpy as np
from numpy.typing import ArrayLike, NDArray

from pyeconometrics.core.result import Result
from pyeconometrics.core.exceptions import DimensionError
from pyeconometrics.core.validation import check_array, check_2d, check_finite
from pyeconometrics.linear._common import (
    CovarianceSpec,
    Distribution,
    InferenceParams,
    LinearParams,
    OmittedColumn,
    RankReport,
)
from pyeconometrics.linear._inference import (
    check_conf_level,
    check_distribution,
    coefficient_statistics,
    distribution_inference,
    overall_restrictions,
    standard_errors,
    wald_test,
)
from pyeconometrics.linear.design import LinearDesign


@dataclass(frozen=True, eq=False)
class EstimationResult:
    """
    Results of a linear estimation.

    Build with EstimationResult.build(); never mutated afterwards.
    """
    _result: Result[LinearParams]
    _design: LinearDesign
    _cov_spec: CovarianceSpec | None
    _coefficients: NDArray[np.floating[Any]]
    _standard_errors: NDArray[np.floating[Any]]
    _statistics: NDArray[np.floating[Any]]
    _f_statistic: float
    _f_df: int
    _inference: InferenceParams

    @classmethod
    def build(
        cls,
        result: Result[LinearParams],
        design: LinearDesign,
        cov_spec: CovarianceSpec | None,
        *,
        distribution: str = 't',
        conf_level: float = 0.95,
    ) -> 'EstimationResult':
        """
        Compute distribution-free inference once and wrap the fit.

        Args:
            result: Backend result
            design: The design the backend solved
            cov_spec: Covariance selection (None for efficient GMM)
            distribution: 't' or 'normal'
            conf_level: Confidence level in (0, 1)
        """
        dist = check_distribution(distribution)
        level = check_conf_level(conf_level)

        params = result.params
        report = design.report

        se_kept = standard_errors(params.covariance)
        stat_kept = coefficient_statistics(params.coefficients, se_kept)

        intercept_position = (
            report.kept.index(design.intercept_index)
            if design.intercept_index in report.kept else None
        )
        R = overall_restrictions(
            design.X_kept, design.has_intercept, intercept_position
        )
        f_stat, f_df = wald_test(params.coefficients, params.covariance, R)

        coefficients = report.scatter(params.coefficients)
        se = report.scatter(se_kept)
        statistics = report.scatter(stat_kept)

        inference = distribution_inference(
            coefficients,
            se,
            statistics,
            distribution=dist,
            df=params.df_residual,
            conf_level=level,
            f_statistic=f_stat,
            f_df=f_df,
        )

        return cls(
            _result=result,
            _design=design,
            _cov_spec=cov_spec,
            _coefficients=coefficients,
            _standard_errors=se,
            _statistics=statistics,
            _f_statistic=f_stat,
            _f_df=f_df,
            _inference=inference,
        )

    def with_inference(
        self,
        distribution: str,
        conf_level: float | None = None,
    ) -> 'EstimationResult':
        """
        Same fit under another reference distribution.

        Coefficients, covariance, standard errors and statistics are the
        same array objects as in self; p-values, the critical value, the
        confidence bounds and the overall test p-value are recomputed.

        Args:
            distribution: 't' or 'normal'
            conf_level: New confidence level; defaults to the current one
        """
        dist = check_distribution(distribution)
        level = self.conf_level if conf_level is None else check_conf_level(conf_level)
        inference = distribution_inference(
            self._coefficients,
            self._standard_errors,
            self._statistics,
            distribution=dist,
            df=self.df_residual,
            conf_level=level,
            f_statistic=self._f_statistic,
            f_df=self._f_df,
        )
        return replace(self, _inference=inference)

    # === Coefficients and inference ===

    @property
    def coefficients(self) -> NDArray[np.floating[Any]]:
        """Coefficients (k,) in the original column order, NaN where omitted."""
        return self._coefficients

    @property
    def standard_errors(self) -> NDArray[np.floating[Any]]:
        return self._standard_errors

    @property
    def statistics(self) -> NDArray[np.floating[Any]]:
        """t (or z) statistics, beta / se."""
        return self._statistics

    @property
    def t_statistics(self) -> NDArray[np.floating[Any]]:
        return self._statistics

    @property
    def p_values(self) -> NDArray[np.floating[Any]]:
        """Two-sided p-values under the current distribution."""
        return self._inference.p_values

    @property
    def conf_int_lower(self) -> NDArray[np.floating[Any]]:
        return self._inference.conf_int_lower

    @property
    def conf_int_upper(self) -> NDArray[np.floating[Any]]:
        return self._inference.conf_int_upper

    def conf_int(self) -> NDArray[np.floating[Any]]:
        """Confidence intervals as a (k, 2) array of [lower, upper]."""
        return np.column_stack([self.conf_int_lower, self.conf_int_upper])

    @property
    def critical_value(self) -> float:
        return self._inference.critical_value

    @property
    def covariance(self) -> NDArray[np.floating[Any]]:
        """Coefficient covariance over the kept columns (k' x k')."""
        return self._result.params.covariance

    @property
    def distribution(self) -> Distribution:
        return self._inference.distribution

    @property
    def conf_level(self) -> float:
        return self._inference.conf_level

    @property
    def cov_type(self) -> str:
        return self._result.info['cov_type']

    # === Fit statistics ===

    @property
    def residuals(self) -> NDArray[np.floating[Any]]:
        return self._result.params.residuals

    @property
    def fitted_values(self) -> NDArray[np.floating[Any]]:
        return self._result.params.fitted_values

    @property
    def rss(self) -> float:
        return self._result.params.rss

    @property
    def tss(self) -> float:
        return self._result.params.tss

    @property
    def r_squared(self) -> float:
        if self.tss == 0:
            return 1.0 if self.rss == 0 else 0.0
        return 1.0 - (self.rss / self.tss)

    @property
    def adjusted_r_squared(self) -> float:
        n = self.n_obs
        df = self.df_residual
        if self.tss == 0:
            return self.r_squared
        numerator = n - 1 if self._design.has_intercept else n
        return 1.0 - (1.0 - self.r_squared) * numerator / df

    @property
    def residual_std_error(self) -> float:
        return float(np.sqrt(self.rss / self.df_residual))

    @property
    def log_likelihood(self) -> float:
        return self._result.params.log_likelihood

    @property
    def aic(self) -> float:
        return -2.0 * self.log_likelihood + 2.0 * self.rank

    @property
    def bic(self) -> float:
        return -2.0 * self.log_likelihood + np.log(self.n_obs) * self.rank

    @property
    def f_statistic(self) -> float:
        """Wald F statistic for all non-intercept coefficients being zero."""
        return self._f_statistic

    @property
    def f_df(self) -> tuple[int, int]:
        """(numerator, denominator) degrees of freedom of the F test."""
        return self._f_df, self.df_residual

    @property
    def f_p_value(self) -> float:
        return self._inference.f_p_value

    @property
    def df_residual(self) -> int:
        return self._result.params.df_residual

    @property
    def n_obs(self) -> int:
        """Observations used by the final regression."""
        return self._result.params.n_obs

    # === Column bookkeeping ===

    @property
    def rank(self) -> int:
        return self._design.k_kept

    @property
    def names(self) -> tuple[str, ...]:
        return self._design.names

    @property
    def design(self) -> LinearDesign:
        """The validated design the model was fitted on."""
        return self._design

    @property
    def rank_report(self) -> RankReport:
        return self._design.report

    @property
    def instrument_report(self) -> RankReport | None:
        return self._design.instrument_report

    @property
    def omitted(self) -> tuple[OmittedColumn, ...]:
        return self._design.report.omitted

    # === Estimator-specific ===

    @property
    def j_statistic(self) -> float | None:
        """Hansen J over-identification statistic (GMM only)."""
        return self._result.params.j_statistic

    @property
    def j_df(self) -> int | None:
        return self._result.params.j_df

    @property
    def j_p_value(self) -> float | None:
        return self._result.params.j_p_value

    @property
    def rho(self) -> float | None:
        """AR(1) coefficient (Cochrane-Orcutt only)."""
        return self._result.params.rho

    @property
    def iterations(self) -> int | None:
        return self._result.params.iterations

    # === Metadata ===

    @property
    def method(self) -> str:
        return self._result.info['method']

    @property
    def info(self) -> dict[str, Any]:
        return self._result.info

    @property
    def timing(self) -> dict[str, float] | None:
        return self._result.timing

    @property
    def backend_name(self) -> str:
        return self._result.backend_name

    @property
    def warnings(self) -> tuple[str, ...]:
        return self._result.warnings

    @property
    def provenance(self) -> dict[str, str]:
        return self._result.provenance

    # === Prediction ===

    def predict(self, X_new: ArrayLike) -> NDArray[np.floating[Any]]:
        """
        Linear prediction for new rows in the original column layout.

        Omitted columns are ignored, as their coefficients are undefined.

        Raises:
            DimensionError: If X_new does not have k columns
        """
        k = self._design.k
        X_arr = check_array(X_new, 'X_new')
        if X_arr.ndim == 1:
            # a single row when k > 1, a single column when k == 1
            X_arr = X_arr.reshape(1, -1) if k > 1 else X_arr.reshape(-1, 1)
        check_2d(X_arr, 'X_new')
        check_finite(X_arr, 'X_new')
        if X_arr.shape[1] != k:
            raise DimensionError(
                f"X_new: expected {k} columns, got {X_arr.shape[1]}"
            )
        kept = list(self.rank_report.kept)
        return X_arr[:, kept] @ self._result.params.coefficients

    def __repr__(self) -> str:
        return (
            f"EstimationResult(method={self.method!r}, n_obs={self.n_obs}, "
            f"rank={self.rank}, cov_type={self.cov_type!r}, "
            f"distribution={self.distribution!r})"
        )
