"""
Exception hierarchy for pyeconometrics.

All exceptions inherit from EstimationError so a caller can catch any
failure of a fit with a single except clause. Ordinary collinearity is not
an exception: redundant columns are dropped and reported through
CollinearityWarning.

Design principles:
    - Exceptions carry diagnostic information as attributes
    - Error messages are actionable with actual vs expected values
    - Never catch and re-raise with less information
"""


class EstimationError(Exception):
    """Base exception for all pyeconometrics errors."""
    pass


class ValidationError(EstimationError):
    """
    Input validation failed.

    Raised when user-provided inputs fail validation checks.
    """
    pass


class DimensionError(ValidationError):
    """
    Array dimensions are incorrect or inconsistent.

    Raised when the row counts of y, X, Z, weights or cluster ids disagree,
    or when an array has the wrong number of dimensions.
    """
    pass


class InsufficientObservationsError(ValidationError):
    """
    Not enough observations to estimate the model.

    Raised when n <= k', leaving no residual degrees of freedom.

    Attributes:
        n_obs: Number of observations
        n_params: Number of estimated (kept) coefficients
    """

    def __init__(
        self,
        message: str,
        n_obs: int | None = None,
        n_params: int | None = None,
    ):
        super().__init__(message)
        self.n_obs = n_obs
        self.n_params = n_params


class OrderConditionError(ValidationError):
    """
    Fewer instruments than regressors.

    Raised by IV and GMM when the number of (independent) instrument columns
    is smaller than the number of kept regressors.

    Attributes:
        n_instruments: Number of independent instruments l'
        n_regressors: Number of kept regressors k'
    """

    def __init__(
        self,
        message: str,
        n_instruments: int | None = None,
        n_regressors: int | None = None,
    ):
        super().__init__(message)
        self.n_instruments = n_instruments
        self.n_regressors = n_regressors


class NumericalError(EstimationError):
    """
    Numerical computation failed.

    Base class for errors arising from numerical issues during computation.
    """
    pass


class RankDeficiencyError(NumericalError):
    """
    Too few linearly independent columns remain after dropping.

    Collinearity itself is recoverable; this is raised only when the
    surviving column count falls below what an estimator needs.

    Attributes:
        matrix_name: Name of the matrix that was scanned
        rank: Number of independent columns found
        required: Minimum number of columns the estimator needs
    """

    def __init__(
        self,
        message: str,
        matrix_name: str | None = None,
        rank: int | None = None,
        required: int | None = None,
    ):
        super().__init__(message)
        self.matrix_name = matrix_name
        self.rank = rank
        self.required = required


class SingularMatrixError(NumericalError):
    """
    Matrix is singular or nearly singular.

    Raised when an inversion or factorisation fails even though the
    design passed the rank scan (a residual numerical edge case).

    Attributes:
        matrix_name: Name/description of the problematic matrix
        condition_number: Estimated condition number, if available
        rank: Numerical rank, if computed
        expected_rank: Expected rank
    """

    def __init__(
        self,
        message: str,
        matrix_name: str | None = None,
        condition_number: float | None = None,
        rank: int | None = None,
        expected_rank: int | None = None
    ):
        super().__init__(message)
        self.matrix_name = matrix_name
        self.condition_number = condition_number
        self.rank = rank
        self.expected_rank = expected_rank


class ConvergenceError(EstimationError):
    """
    Iterative algorithm failed to converge.

    Raised when an iterative procedure (Cochrane-Orcutt) exhausts its
    iteration cap without meeting the convergence tolerance.

    Attributes:
        iterations: Number of iterations completed
        final_change: Last absolute change of the tracked quantity
        reason: Why convergence failed (e.g., 'max_iterations')
        threshold: The convergence threshold that was not met
    """

    def __init__(
        self,
        message: str,
        iterations: int,
        final_change: float | None = None,
        reason: str | None = None,
        threshold: float | None = None
    ):
        super().__init__(message)
        self.iterations = iterations
        self.final_change = final_change
        self.reason = reason
        self.threshold = threshold


class CollinearityWarning(UserWarning):
    """A regressor or instrument was omitted because of collinearity."""
    pass
