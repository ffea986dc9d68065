"""
Generic result container for all pyeconometrics computations.

The Result class is the envelope every backend returns. Estimators define
their own parameter payloads; the envelope adds the shared metadata
(method info, timing, backend name, non-fatal warnings, provenance).

Design decisions:
    - Generic over parameter payload P for type safety
    - info dict for flexible metadata (converged, iterations, rank)
    - timing is optional (don't burden unit tests)
    - Immutable (frozen=True) for reproducibility
"""

import platform
from dataclasses import dataclass, field
from typing import TypeVar, Generic, Any

P = TypeVar('P')  # Parameter payload type


def _default_provenance() -> dict[str, str]:
    """Library versions that produced a result."""
    import numpy
    import scipy

    from pyeconometrics import __version__

    return {
        'pyeconometrics_version': __version__,
        'numpy_version': numpy.__version__,
        'scipy_version': scipy.__version__,
        'python_version': platform.python_version(),
    }


@dataclass(frozen=True)
class Result(Generic[P]):
    """
    Immutable result envelope for estimation backends.

    Type Parameters:
        P: The estimator-specific parameter payload type

    Attributes:
        params: Estimator-specific payload (coefficients, residuals, ...)
        info: Structured metadata (method, rank, convergence)
        timing: Execution timing breakdown, or None if not measured
        backend_name: Identifier of the backend that produced this result
        warnings: Non-fatal issues encountered during computation
        provenance: Versions of the libraries that produced the result

    Examples:
        >>> Result(
        ...     params=LinearParams(...),
        ...     info={'method': 'ols', 'rank': 3},
        ...     timing={'total_seconds': 0.01},
        ...     backend_name='cpu_qr'
        ... )
    """
    params: P
    info: dict[str, Any]
    timing: dict[str, float] | None
    backend_name: str
    warnings: tuple[str, ...] = field(default_factory=tuple)
    provenance: dict[str, str] = field(default_factory=_default_provenance)

    def has_warning(self, substring: str) -> bool:
        """Check if any warning contains the given substring."""
        return any(substring in w for w in self.warnings)
