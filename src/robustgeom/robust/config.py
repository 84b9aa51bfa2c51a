# Andy Zhao
"""
Estimator settings.

All robust estimators share the same tunables. They are bundled in a frozen
dataclass that validates itself in __post_init__, so an estimator can apply a
change with dataclasses.replace(): an invalid value raises before anything is
assigned and the previous settings stay in place.

Ranges:
    progress_delta  in [0, 1]
    confidence      in (0, 1]
    max_iterations  >= 1
    threshold       > 0
    inlier_factor   >= 1
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional
import os

from .types import RobustEstimatorMethod

# ---------- Defaults ----------
DEFAULT_PROGRESS_DELTA = 0.05
MIN_PROGRESS_DELTA = 0.0
MAX_PROGRESS_DELTA = 1.0

DEFAULT_CONFIDENCE = 0.99
MIN_CONFIDENCE = 0.0
MAX_CONFIDENCE = 1.0

DEFAULT_MAX_ITERATIONS = 5000
MIN_ITERATIONS = 1

DEFAULT_REFINE_RESULT = True
DEFAULT_KEEP_COVARIANCE = False

DEFAULT_COMPUTE_AND_KEEP_INLIERS = False
DEFAULT_COMPUTE_AND_KEEP_RESIDUALS = False

# Threshold used by every method unless a model overrides it.
# For LMedS/PROMedS this is the stop threshold.
DEFAULT_THRESHOLD = 1.0
MIN_THRESHOLD = 0.0

# LMedS inlier factor: inliers are within inlier_factor * robust sigma
DEFAULT_INLIER_FACTOR = 1.5
MIN_INLIER_FACTOR = 1.0

DEFAULT_ROBUST_METHOD = RobustEstimatorMethod.PROMEDS

# Environment switch for verbose logging (see utils.logger.setup_logger)
DEBUG_ENV_VAR = "ROBUSTGEOM_DEBUG"


def debug_enabled() -> bool:
    return os.environ.get(DEBUG_ENV_VAR, "0") == "1"


@dataclass(frozen=True)
class EstimatorSettings:
    """
    Tunables of one robust estimator.

    progress_delta:
        minimum progress change between two progress notifications
    confidence:
        desired probability of having drawn at least one all-inlier sample
    max_iterations:
        hard upper bound of consensus iterations
    threshold:
        inlier threshold (RANSAC/MSAC/PROSAC) or stop threshold (LMedS/PROMedS)
    result_refined / covariance_kept:
        post-processing of the best model
    compute_and_keep_inliers / compute_and_keep_residuals:
        keep the inlier mask / residuals after estimate() (RANSAC, PROSAC)
    inlier_factor:
        LMedS/PROMedS multiplier of the robust standard deviation
    seed:
        RNG seed for reproducible sampling, None for fresh entropy
    """
    progress_delta: float = DEFAULT_PROGRESS_DELTA
    confidence: float = DEFAULT_CONFIDENCE
    max_iterations: int = DEFAULT_MAX_ITERATIONS
    threshold: float = DEFAULT_THRESHOLD
    result_refined: bool = DEFAULT_REFINE_RESULT
    covariance_kept: bool = DEFAULT_KEEP_COVARIANCE
    compute_and_keep_inliers: bool = DEFAULT_COMPUTE_AND_KEEP_INLIERS
    compute_and_keep_residuals: bool = DEFAULT_COMPUTE_AND_KEEP_RESIDUALS
    inlier_factor: float = DEFAULT_INLIER_FACTOR
    seed: Optional[int] = None

    def __post_init__(self) -> None:
        if not (MIN_PROGRESS_DELTA <= self.progress_delta <= MAX_PROGRESS_DELTA):
            raise ValueError(f"progress_delta must be in [0, 1], got {self.progress_delta}")
        if not (MIN_CONFIDENCE < self.confidence <= MAX_CONFIDENCE):
            raise ValueError(f"confidence must be in (0, 1], got {self.confidence}")
        if (isinstance(self.max_iterations, bool) or int(self.max_iterations) != self.max_iterations
                or self.max_iterations < MIN_ITERATIONS):
            raise ValueError(f"max_iterations must be an integer >= {MIN_ITERATIONS}, got {self.max_iterations!r}")
        object.__setattr__(self, "max_iterations", int(self.max_iterations))
        if not self.threshold > MIN_THRESHOLD:
            raise ValueError(f"threshold must be > 0, got {self.threshold}")
        if not self.inlier_factor >= MIN_INLIER_FACTOR:
            raise ValueError(f"inlier_factor must be >= {MIN_INLIER_FACTOR}, got {self.inlier_factor}")
