"""
Shared compute infrastructure for pyeconometrics.

This module holds numeric infrastructure shared by all estimators:
timing utilities, tolerance constants and linear algebra kernels.
Estimator-specific backends live in linear/backends/.

Submodules:
    timing: Execution timing utilities
    tolerances: Numerical thresholds and test tolerance tiers
    linalg: QR factorisation, triangular solves, rank scan
"""

from pyeconometrics.core.compute.timing import Timer, timed

__all__ = [
    "Timer",
    "timed",
]
