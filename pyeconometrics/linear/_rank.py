"""
Design matrix preprocessing: detection and removal of redundant columns.

Columns are scanned left to right with a re-orthogonalised Gram-Schmidt
pass (core.compute.linalg.gram_schmidt_scan). A column that adds no new
direction to the columns already retained is dropped and recorded in a
RankReport together with the earliest column it depends on. This follows
Stata's convention for the dummy variable trap: with an intercept declared
first, the later-declared indicator is omitted, never the intercept.

Reference:
    StataCorp. Stata Base Reference Manual, "regress", section on
    collinear and omitted variables.
"""

from typing import Any
import numpy as np
from numpy.typing import NDArray

from pyeconometrics.core.exceptions import RankDeficiencyError
from pyeconometrics.core.compute.linalg import gram_schmidt_scan
from pyeconometrics.core.compute.tolerances import RANK_TOLERANCE
from pyeconometrics.linear._common import OmittedColumn, RankReport


def preprocess(
    X: NDArray[np.floating[Any]],
    names: tuple[str, ...],
    *,
    min_columns: int = 1,
    matrix_name: str = 'X',
    tol: float = RANK_TOLERANCE,
) -> tuple[NDArray[np.floating[Any]], RankReport]:
    """
    Drop linearly dependent columns from X.

    Args:
        X: Matrix to reduce (n x k). Not modified.
        names: Names parallel to the columns of X
        min_columns: Fewest independent columns the caller can work with
        matrix_name: Name used in error messages
        tol: Relative residual-norm threshold for the rank scan

    Returns:
        (X_kept, report) where X_kept is a new (n x k') array holding the
        retained columns in their original order

    Raises:
        RankDeficiencyError: If fewer than min_columns columns survive
    """
    scan = gram_schmidt_scan(X, tol=tol)

    omitted = tuple(
        OmittedColumn(
            index=idx,
            name=names[idx],
            depends_on=dep,
            depends_on_name=None if dep is None else names[dep],
        )
        for idx, dep in scan.omitted
    )
    report = RankReport(names=tuple(names), kept=scan.kept, omitted=omitted)

    if report.rank < min_columns:
        raise RankDeficiencyError(
            f"{matrix_name}: only {report.rank} linearly independent column(s) "
            f"remain after removing collinear columns "
            f"{list(report.omitted_names)}; at least {min_columns} required.",
            matrix_name=matrix_name,
            rank=report.rank,
            required=min_columns,
        )

    return X[:, list(scan.kept)], report
