# Andy Zhao
"""
Exceptions raised by the robust estimators.

Configuration mistakes (bad sizes, out-of-range values) are plain ValueError.
The classes here cover the estimator state machine and estimation failure.
"""


class EstimatorError(Exception):
    """Base class for estimator state and estimation errors."""


class LockedError(EstimatorError):
    """Raised when an estimator is modified (or re-run) while estimate() is in progress."""

    def __init__(self, message: str = "estimator is locked while estimate() is running") -> None:
        super().__init__(message)


class NotReadyError(EstimatorError):
    """Raised when estimate() is called before the estimator has enough data."""

    def __init__(self, message: str = "estimator is not ready") -> None:
        super().__init__(message)


class RobustEstimatorError(EstimatorError):
    """Raised when the consensus loop could not accept any candidate model."""
