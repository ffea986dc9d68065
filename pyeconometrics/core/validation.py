"""
Input validation utilities for pyeconometrics.

Validators fail fast and loud: they raise immediately with the offending
parameter name and the actual values instead of silently correcting input.
Every array that passes through here is converted to a fresh float64 copy,
so estimators never alias or mutate caller-owned buffers.
"""

import numpy as np
from numpy.typing import ArrayLike, NDArray
from typing import Any

from pyeconometrics.core.exceptions import ValidationError, DimensionError


def check_array(
    array: ArrayLike,
    name: str,
) -> NDArray[np.floating[Any]]:
    """
    Validate and convert input to a float64 numpy array.

    Rejects inputs that convert to object dtype (mixed or non-numeric
    data) and non-numeric dtypes such as strings or datetimes.

    Args:
        array: Input to validate
        name: Parameter name for error messages

    Returns:
        float64 numpy.ndarray owned by the caller of this function

    Raises:
        ValidationError: If input cannot be converted to a numeric array
    """
    try:
        result = np.asarray(array)
    except (ValueError, TypeError) as e:
        raise ValidationError(f"{name}: cannot convert to array: {e}") from e

    if result.dtype == object:
        raise ValidationError(
            f"{name}: converted to object dtype, indicating mixed types or non-numeric data"
        )

    if result.dtype == np.bool_:
        return result.astype(np.float64)

    if not np.issubdtype(result.dtype, np.number):
        raise ValidationError(
            f"{name}: non-numeric dtype {result.dtype}, expected numeric data"
        )

    return np.array(result, dtype=np.float64, copy=True)


def check_finite(array: NDArray[np.floating[Any]], name: str) -> None:
    """
    Verify array contains no NaN or Inf values.

    Raises:
        ValidationError: If array contains non-finite values
    """
    if not np.all(np.isfinite(array)):
        n_nan = int(np.sum(np.isnan(array)))
        n_inf = int(np.sum(np.isinf(array)))
        raise ValidationError(
            f"{name}: contains non-finite values ({n_nan} NaN, {n_inf} Inf)"
        )


def check_ndim(array: NDArray[np.floating[Any]], ndim: int, name: str) -> None:
    """
    Verify array has exactly the specified number of dimensions.

    Raises:
        DimensionError: If array has wrong number of dimensions
    """
    if array.ndim != ndim:
        raise DimensionError(
            f"{name}: expected {ndim}D array, got {array.ndim}D with shape {array.shape}"
        )


def check_1d(array: NDArray[np.floating[Any]], name: str) -> None:
    """Verify array is 1-dimensional."""
    check_ndim(array, 1, name)


def check_2d(array: NDArray[np.floating[Any]], name: str) -> None:
    """Verify array is 2-dimensional."""
    check_ndim(array, 2, name)


def as_vector(array: ArrayLike, name: str) -> NDArray[np.floating[Any]]:
    """
    Convert to a finite 1D float64 vector.

    A single-column 2D array (n, 1) is flattened; anything else that is
    not 1D is rejected.
    """
    arr = check_array(array, name)
    if arr.ndim == 2 and arr.shape[1] == 1:
        arr = arr.ravel()
    check_1d(arr, name)
    check_finite(arr, name)
    return arr


def as_matrix(array: ArrayLike, name: str) -> NDArray[np.floating[Any]]:
    """
    Convert to a finite 2D float64 matrix.

    A 1D array is treated as a single column.
    """
    arr = check_array(array, name)
    if arr.ndim == 1:
        arr = arr.reshape(-1, 1)
    check_2d(arr, name)
    check_finite(arr, name)
    if arr.shape[1] == 0:
        raise DimensionError(f"{name}: has no columns")
    return arr


def check_consistent_length(
    *arrays: NDArray[np.floating[Any]],
    names: tuple[str, ...]
) -> None:
    """
    Verify all arrays have the same length (first dimension).

    Raises:
        ValueError: If number of names doesn't match number of arrays
        DimensionError: If arrays have inconsistent lengths
    """
    if len(arrays) != len(names):
        raise ValueError(
            f"Number of arrays ({len(arrays)}) must match number of names ({len(names)})"
        )

    if len(arrays) < 2:
        return

    lengths = [arr.shape[0] for arr in arrays]
    if len(set(lengths)) > 1:
        details = ", ".join(f"{name}={length}" for name, length in zip(names, lengths))
        raise DimensionError(f"Inconsistent lengths: {details}")


def check_positive(array: NDArray[np.floating[Any]], name: str) -> None:
    """
    Verify every element is strictly positive.

    Raises:
        ValidationError: If any element is zero or negative
    """
    bad = np.where(array <= 0)[0]
    if len(bad) > 0:
        raise ValidationError(
            f"{name}: must be strictly positive, found {len(bad)} non-positive "
            f"values (first at index {int(bad[0])})"
        )


def check_names(
    names: Any,
    expected: int,
    name: str,
    prefix: str,
) -> tuple[str, ...]:
    """
    Validate a variable-name list against the column count.

    Args:
        names: Sequence of names, or None to generate '{prefix}0', '{prefix}1', ...
        expected: Number of columns the names must describe
        name: Parameter name for error messages
        prefix: Prefix for generated names

    Returns:
        Tuple of names

    Raises:
        DimensionError: If the number of names differs from the column count
        ValidationError: If names are not unique
    """
    if names is None:
        return tuple(f"{prefix}{i}" for i in range(expected))

    if isinstance(names, str):
        names = [names]
    result = tuple(str(n) for n in names)
    if len(result) != expected:
        raise DimensionError(
            f"{name}: got {len(result)} names for {expected} columns"
        )
    if len(set(result)) != len(result):
        raise ValidationError(f"{name}: names must be unique, got {list(result)}")
    return result
