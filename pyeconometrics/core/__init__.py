"""
Core infrastructure for pyeconometrics.

Shared abstractions used by the estimators:
    result: Generic Result[P] envelope
    exceptions: Exception and warning hierarchy
    validation: Input validators
    compute: Timing, tolerances, linear algebra kernels
"""

from pyeconometrics.core.result import Result
from pyeconometrics.core.exceptions import (
    EstimationError,
    ValidationError,
    DimensionError,
    InsufficientObservationsError,
    OrderConditionError,
    NumericalError,
    RankDeficiencyError,
    SingularMatrixError,
    ConvergenceError,
    CollinearityWarning,
)

__all__ = [
    # Result
    "Result",
    # Exceptions
    "EstimationError",
    "ValidationError",
    "DimensionError",
    "InsufficientObservationsError",
    "OrderConditionError",
    "NumericalError",
    "RankDeficiencyError",
    "SingularMatrixError",
    "ConvergenceError",
    # Warnings
    "CollinearityWarning",
]
