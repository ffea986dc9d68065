"""
Linear estimation backends.

Available backends:
    CPUQRBackend: OLS via economic QR decomposition
    CPUIVBackend: two-stage least squares
    CPUGMMBackend: one-step and two-step efficient GMM
    CPUWLSBackend: weighted least squares
    CPUCochraneOrcuttBackend: iterated AR(1) feasible GLS
"""

from pyeconometrics.linear.backends.cpu import CPUQRBackend
from pyeconometrics.linear.backends.cpu_iv import CPUIVBackend
from pyeconometrics.linear.backends.cpu_gmm import CPUGMMBackend
from pyeconometrics.linear.backends.cpu_fgls import (
    CPUWLSBackend,
    CPUCochraneOrcuttBackend,
)

__all__ = [
    "CPUQRBackend",
    "CPUIVBackend",
    "CPUGMMBackend",
    "CPUWLSBackend",
    "CPUCochraneOrcuttBackend",
]
