"""
PyEconometrics: linear estimation for econometrics in Python.

OLS, weighted and feasible GLS, instrumental variables and GMM on a
shared QR core, with automatic handling of collinear regressors and
plug-in covariance estimators.

Submodules:
    linear: Linear estimators, covariance estimators, inference, diagnostics
    core: Result envelope, exceptions, validation, numerical kernels
"""

__version__ = "0.1.0"

from pyeconometrics import linear

__all__ = [
    "__version__",
    "linear",
]
