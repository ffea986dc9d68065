"""
Linear algebra kernels for pyeconometrics.

All functions follow these conventions:
    - NumPy/SciPy (LAPACK under the hood), float64 throughout
    - Each decomposition returns a structured result dataclass
    - Errors are raised immediately with clear messages
"""

from pyeconometrics.core.compute.linalg.qr import (
    QRResult,
    RankScan,
    qr_cpu,
    qr_solve_cpu,
    require_full_rank,
    cross_product_inverse,
    leverage,
    gram_schmidt_scan,
)

__all__ = [
    "QRResult",
    "RankScan",
    "qr_cpu",
    "qr_solve_cpu",
    "require_full_rank",
    "cross_product_inverse",
    "leverage",
    "gram_schmidt_scan",
]
