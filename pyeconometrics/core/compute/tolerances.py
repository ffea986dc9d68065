"""
Numerical tolerances.

Two kinds of constants live here:
- algorithm thresholds used by the estimators (rank scan, leverage guard,
  Cochrane-Orcutt convergence)
- tolerance tiers used by the test suite to compare results
"""

from dataclasses import dataclass


# Relative residual norm below which a column counts as a linear
# combination of the columns retained before it.
RANK_TOLERANCE = 1e-9

# Coefficients smaller than this fraction of the largest one are ignored
# when naming the column an omitted regressor depends on.
DEPENDENCY_TOLERANCE = 1e-8

# HC2-HC4 leave e_i^2 unadjusted when 1 - h_i falls to this level.
LEVERAGE_TOLERANCE = 1e-4

# Cochrane-Orcutt defaults
CO_TOLERANCE = 1e-6
CO_MAX_ITER = 100


@dataclass(frozen=True)
class ToleranceTier:
    """Tolerance specification for numerical comparison."""
    rtol: float
    atol: float
    name: str
    description: str


# Identities that hold algebraically (HC1 vs HC0, fitted + residuals = y)
EXACT = ToleranceTier(
    rtol=1e-12,
    atol=1e-12,
    name='exact',
    description='algebraic identity, only rounding error allowed',
)

# Two different but well-conditioned solution paths (2SLS with Z = X vs OLS)
CPU_FP64 = ToleranceTier(
    rtol=1e-8,
    atol=1e-8,
    name='cpu_fp64',
    description='double precision, different solution paths',
)
