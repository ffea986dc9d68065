"""
QR decomposition and the sequential Gram-Schmidt rank scan.

Every least-squares solve in the package goes through an economic QR
factorisation followed by triangular back-substitution; the normal
equations are never formed and inverted explicitly.
"""

from dataclasses import dataclass
from typing import Any
import numpy as np
from numpy.typing import NDArray
from scipy import linalg

from pyeconometrics.core.exceptions import SingularMatrixError
from pyeconometrics.core.compute.tolerances import (
    RANK_TOLERANCE,
    DEPENDENCY_TOLERANCE,
)


@dataclass(frozen=True)
class QRResult:
    """
    Result of an economic QR decomposition.

    Attributes:
        Q: Matrix with orthonormal columns (n x p)
        R: Upper triangular matrix (p x p)
        rank: Numerical rank determined from the R diagonal
    """
    Q: NDArray[np.floating[Any]]
    R: NDArray[np.floating[Any]]
    rank: int


@dataclass(frozen=True)
class RankScan:
    """
    Outcome of a left-to-right Gram-Schmidt scan.

    Attributes:
        kept: Original indices of the retained columns, in order
        omitted: (index, depends_on) for each redundant column, where
            depends_on is the earliest retained index it is a combination
            of, or None for an all-zero column
        Q: Orthonormal basis of the retained columns (n x len(kept))
    """
    kept: tuple[int, ...]
    omitted: tuple[tuple[int, int | None], ...]
    Q: NDArray[np.floating[Any]]


def qr_cpu(X: NDArray[np.floating[Any]]) -> QRResult:
    """
    Economic QR decomposition using LAPACK (via SciPy).

    Args:
        X: Matrix to decompose (n x p), n >= p

    Returns:
        QRResult with Q (n x p), R (p x p) and numerical rank
    """
    Q, R = linalg.qr(X, mode='economic')

    diag_R = np.abs(np.diag(R))
    if len(diag_R) > 0 and diag_R.max() > 0:
        tol = max(X.shape) * np.finfo(X.dtype).eps * diag_R.max()
        rank = int(np.sum(diag_R > tol))
    else:
        rank = 0

    return QRResult(Q=Q, R=R, rank=rank)


def require_full_rank(qr_result: QRResult, matrix_name: str) -> None:
    """
    Raise SingularMatrixError if the factorised matrix lost rank.

    Used after the rank scan has already removed redundant columns, so a
    failure here is a numerical edge case rather than collinearity.
    """
    p = qr_result.R.shape[1]
    if qr_result.rank < p:
        raise SingularMatrixError(
            f"{matrix_name} is numerically singular: rank={qr_result.rank}, "
            f"expected={p}.",
            matrix_name=matrix_name,
            rank=qr_result.rank,
            expected_rank=p,
        )


def qr_solve_cpu(
    qr_result: QRResult,
    y: NDArray[np.floating[Any]],
) -> NDArray[np.floating[Any]]:
    """
    Solve min_b ||y - Xb||^2 given the QR factors of X.

    The solution is computed as b = R^-1 Q'y by back substitution.

    Args:
        qr_result: Factorisation of a full-column-rank X
        y: Right-hand side (n,) or (n, m)

    Returns:
        Coefficients (p,) or (p, m)
    """
    Qty = qr_result.Q.T @ y
    return linalg.solve_triangular(qr_result.R, Qty, lower=False)


def cross_product_inverse(R: NDArray[np.floating[Any]]) -> NDArray[np.floating[Any]]:
    """
    (X'X)^-1 from the triangular factor, as R^-1 R^-T.

    Symmetrised to remove rounding asymmetry.
    """
    p = R.shape[0]
    R_inv = linalg.solve_triangular(R, np.eye(p), lower=False)
    inv = R_inv @ R_inv.T
    return (inv + inv.T) / 2.0


def leverage(Q: NDArray[np.floating[Any]]) -> NDArray[np.floating[Any]]:
    """Diagonal of the hat matrix Q Q'."""
    return np.einsum('ij,ij->i', Q, Q)


def gram_schmidt_scan(
    X: NDArray[np.floating[Any]],
    tol: float = RANK_TOLERANCE,
) -> RankScan:
    """
    Scan columns left to right and keep the linearly independent ones.

    Each column is normalised, projected off the basis of previously
    retained columns (twice, to restore orthogonality lost to rounding),
    and declared redundant when the remaining norm is at most
    max(tol, n * eps) relative to its original norm. An earlier column is
    never dropped in favour of a later one.

    Args:
        X: Matrix to scan (n x k)
        tol: Relative residual-norm threshold

    Returns:
        RankScan with kept indices, omitted indices and their dependencies,
        and the orthonormal basis of the kept columns
    """
    n, k = X.shape
    threshold = max(tol, n * np.finfo(np.float64).eps)
    basis = np.empty((n, min(n, k)), dtype=np.float64)
    kept: list[int] = []
    omitted: list[tuple[int, int | None]] = []

    for j in range(k):
        column = X[:, j]
        norm = float(np.linalg.norm(column))
        if norm == 0.0:
            omitted.append((j, None))
            continue

        r = len(kept)
        if r == basis.shape[1]:
            omitted.append((j, _earliest_dependency(X, kept, column)))
            continue

        v = column / norm
        if r:
            Qr = basis[:, :r]
            v = v - Qr @ (Qr.T @ v)
            v = v - Qr @ (Qr.T @ v)

        residual = float(np.linalg.norm(v))
        if residual <= threshold:
            omitted.append((j, _earliest_dependency(X, kept, column)))
        else:
            basis[:, r] = v / residual
            kept.append(j)

    return RankScan(
        kept=tuple(kept),
        omitted=tuple(omitted),
        Q=basis[:, :len(kept)].copy(),
    )


def _earliest_dependency(
    X: NDArray[np.floating[Any]],
    kept: list[int],
    column: NDArray[np.floating[Any]],
) -> int | None:
    """Earliest kept column that contributes to reproducing `column`."""
    if not kept:
        return None
    X_kept = X[:, kept]
    coef, *_ = linalg.lstsq(X_kept, column)
    contribution = np.abs(coef) * np.linalg.norm(X_kept, axis=0)
    scale = float(np.linalg.norm(column))
    for idx, c in zip(kept, contribution):
        if c > DEPENDENCY_TOLERANCE * scale:
            return idx
    return kept[0]
