"""
Linear estimation.

Public API:
    ols(y, X, ...) -> EstimationResult
    wls(y, X, weights, ...) -> EstimationResult
    cochrane_orcutt(y, X, ...) -> EstimationResult
    iv(y, X, Z, ...) -> EstimationResult
    gmm(y, X, Z, ...) -> EstimationResult
    fit(y, X, Z=None, method=None, ...) -> EstimationResult
    with_inference(result, distribution, conf_level=None) -> EstimationResult

Each estimator handles:
    - Input validation
    - Removal of collinear columns (first occurrence wins)
    - Covariance selection
    - Result wrapping

Example:
    >>> from pyeconometrics.linear import ols, with_inference
    >>> result = ols(y, X, cov_type='HC1', names=['const', 'educ', 'exper'])
    >>> print(result.coefficients, result.p_values)
    >>> z_result = with_inference(result, 'normal')
"""

from pyeconometrics.linear._common import (
    CovarianceSpec,
    InferenceParams,
    LinearParams,
    OmittedColumn,
    RankReport,
)
from pyeconometrics.linear._rank import preprocess
from pyeconometrics.linear._covariance import covariance_spec, estimate_covariance
from pyeconometrics.linear.design import LinearDesign
from pyeconometrics.linear.solution import EstimationResult
from pyeconometrics.linear.solvers import (
    ols,
    wls,
    cochrane_orcutt,
    iv,
    gmm,
    fit,
    with_inference,
)
from pyeconometrics.linear.diagnostics import (
    DiagnosticTest,
    durbin_watson,
    jarque_bera,
    breusch_pagan,
    white_test,
    breusch_godfrey,
    goldfeld_quandt,
    reset_test,
)

__all__ = [
    # Estimators
    "ols",
    "wls",
    "cochrane_orcutt",
    "iv",
    "gmm",
    "fit",
    "with_inference",
    # Results and payloads
    "EstimationResult",
    "LinearDesign",
    "LinearParams",
    "InferenceParams",
    "RankReport",
    "OmittedColumn",
    # Covariance
    "CovarianceSpec",
    "covariance_spec",
    "estimate_covariance",
    # Preprocessing
    "preprocess",
    # Diagnostics
    "DiagnosticTest",
    "durbin_watson",
    "jarque_bera",
    "breusch_pagan",
    "white_test",
    "breusch_godfrey",
    "goldfeld_quandt",
    "reset_test",
]
