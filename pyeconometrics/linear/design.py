"""
Linear estimation design.

LinearDesign is the validated bundle of everything an estimator consumes:
response, design matrix with its column identity, and the optional
instrument matrix and weights. Building it is where inputs are checked
and where redundant columns are removed; backends trust it afterwards.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any
import numpy as np
from numpy.typing import ArrayLike, NDArray

from pyeconometrics.core.exceptions import InsufficientObservationsError, ValidationError
from pyeconometrics.core.validation import (
    as_vector,
    as_matrix,
    check_consistent_length,
    check_names,
    check_positive,
)
from pyeconometrics.linear._common import RankReport
from pyeconometrics.linear._rank import preprocess


@dataclass(frozen=True, eq=False)
class LinearDesign:
    """
    Validated estimation inputs.

    Immutable after construction. All arrays are float64 copies owned by
    the design, never the caller's buffers.

    Construction:
        LinearDesign.build(y, X)
        LinearDesign.build(y, X, Z=Z)                 # instruments
        LinearDesign.build(y, X, weights=w)           # WLS
        LinearDesign.build(y, X, names=['const', 'educ'], has_intercept=True)
    """
    _y: NDArray[np.floating[Any]]
    _X: NDArray[np.floating[Any]]
    _X_kept: NDArray[np.floating[Any]]
    _report: RankReport
    _has_intercept: bool
    _intercept_index: int | None
    _Z: NDArray[np.floating[Any]] | None = None
    _Z_kept: NDArray[np.floating[Any]] | None = None
    _instrument_report: RankReport | None = None
    _weights: NDArray[np.floating[Any]] | None = None

    @classmethod
    def build(
        cls,
        y: ArrayLike,
        X: ArrayLike,
        *,
        Z: ArrayLike | None = None,
        weights: ArrayLike | None = None,
        names: Any = None,
        instrument_names: Any = None,
        has_intercept: bool | None = None,
    ) -> LinearDesign:
        """
        Validate inputs and remove collinear columns.

        Args:
            y: Response (n,)
            X: Design matrix (n, k). A pandas DataFrame supplies its
                column labels as default names.
            Z: Instrument matrix (n, l), optional
            weights: Positive observation weights (n,), optional
            names: Variable names for X columns (default 'x0', 'x1', ...)
            instrument_names: Names for Z columns (default 'z0', 'z1', ...)
            has_intercept: Whether the model contains an intercept. If None,
                it is inferred from the presence of a constant non-zero
                column.

        Returns:
            LinearDesign

        Raises:
            ValidationError: Non-numeric or non-finite input, bad weights,
                or has_intercept=True without a constant column
            DimensionError: Row counts disagree or names don't match columns
            InsufficientObservationsError: If the sample is empty
            RankDeficiencyError: No independent column survives
        """
        if names is None and hasattr(X, 'columns'):
            names = list(X.columns)
        if instrument_names is None and Z is not None and hasattr(Z, 'columns'):
            instrument_names = list(Z.columns)

        y_arr = as_vector(y, 'y')
        X_arr = as_matrix(X, 'X')
        check_consistent_length(y_arr, X_arr, names=('y', 'X'))
        if X_arr.shape[0] == 0:
            raise InsufficientObservationsError(
                "Empty sample: y and X have no rows",
                n_obs=0,
                n_params=X_arr.shape[1],
            )
        x_names = check_names(names, X_arr.shape[1], 'names', prefix='x')

        intercept_index = _constant_column(X_arr)
        if has_intercept is None:
            has_intercept = intercept_index is not None
        elif has_intercept and intercept_index is None:
            raise ValidationError(
                "has_intercept=True but X contains no constant non-zero column"
            )
        elif not has_intercept:
            intercept_index = None

        X_kept, report = preprocess(X_arr, x_names, matrix_name='X')

        Z_arr = Z_kept = z_report = None
        if Z is not None:
            Z_arr = as_matrix(Z, 'Z')
            check_consistent_length(y_arr, Z_arr, names=('y', 'Z'))
            z_names = check_names(
                instrument_names, Z_arr.shape[1], 'instrument_names', prefix='z'
            )
            Z_kept, z_report = preprocess(Z_arr, z_names, matrix_name='Z')

        w_arr = None
        if weights is not None:
            w_arr = as_vector(weights, 'weights')
            check_consistent_length(y_arr, w_arr, names=('y', 'weights'))
            check_positive(w_arr, 'weights')

        return cls(
            _y=y_arr,
            _X=X_arr,
            _X_kept=X_kept,
            _report=report,
            _has_intercept=bool(has_intercept),
            _intercept_index=intercept_index,
            _Z=Z_arr,
            _Z_kept=Z_kept,
            _instrument_report=z_report,
            _weights=w_arr,
        )

    # === Properties ===

    @property
    def y(self) -> NDArray[np.floating[Any]]:
        """Response vector (n,)."""
        return self._y

    @property
    def X(self) -> NDArray[np.floating[Any]]:
        """Original design matrix (n x k)."""
        return self._X

    @property
    def X_kept(self) -> NDArray[np.floating[Any]]:
        """Design matrix restricted to the independent columns (n x k')."""
        return self._X_kept

    @property
    def Z(self) -> NDArray[np.floating[Any]] | None:
        """Original instrument matrix (n x l), if any."""
        return self._Z

    @property
    def Z_kept(self) -> NDArray[np.floating[Any]] | None:
        """Independent instrument columns (n x l'), if any."""
        return self._Z_kept

    @property
    def weights(self) -> NDArray[np.floating[Any]] | None:
        return self._weights

    @property
    def report(self) -> RankReport:
        """Kept/omitted partition of the X columns."""
        return self._report

    @property
    def instrument_report(self) -> RankReport | None:
        """Kept/omitted partition of the Z columns, if any."""
        return self._instrument_report

    @property
    def names(self) -> tuple[str, ...]:
        return self._report.names

    @property
    def has_intercept(self) -> bool:
        return self._has_intercept

    @property
    def intercept_index(self) -> int | None:
        """Original index of the intercept column, if the model has one."""
        return self._intercept_index

    @property
    def n(self) -> int:
        """Number of observations."""
        return self._X.shape[0]

    @property
    def k(self) -> int:
        """Number of columns as supplied."""
        return self._X.shape[1]

    @property
    def k_kept(self) -> int:
        """Number of independent columns."""
        return self._X_kept.shape[1]

    def omission_notes(self) -> tuple[str, ...]:
        """One note per omitted regressor or instrument."""
        notes = [o.note() for o in self._report.omitted]
        if self._instrument_report is not None:
            notes.extend(
                f"note: instrument {o.name} omitted because of collinearity"
                for o in self._instrument_report.omitted
            )
        return tuple(notes)


def _constant_column(X: NDArray[np.floating[Any]]) -> int | None:
    """Index of the first constant non-zero column, or None."""
    constant = np.all(X == X[0], axis=0) & (X[0] != 0)
    hits = np.flatnonzero(constant)
    return int(hits[0]) if len(hits) else None
