# Andy Zhao

"""
Shared typed primitives for the robust estimation engine.

Defines:
- Typed NumPy aliases for geometry
    - Points are (N,2) or (N,3) float arrays
    - Transforms are 3x3 homogeneous matrices
- The robust method enum (RANSAC, LMedS, MSAC, PROSAC, PROMedS)
- Generic model protocol consumed by the consensus loop
- Listener protocol notified while an estimation runs
- Inliers container (mask + residuals + stats)
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Protocol, TypeVar, Optional, Sequence, TypeAlias, TYPE_CHECKING

import numpy as np
import numpy.typing as npt

if TYPE_CHECKING:
    from .estimator import RobustEstimator

# ---------- Numpy typing aliases ----------
# standardize numeric dtypes so bugs are easier to spot and code is consistent.
# - float64 for geometry / matrices (more stable for linear algebra)
# - bool_ for masks
# - intp for sample indices

FloatArray: TypeAlias = npt.NDArray[np.float64]
BoolArray: TypeAlias = npt.NDArray[np.bool_]
IndexArray: TypeAlias = npt.NDArray[np.intp]

# Points in 2D image coordinates. Stored as float64 for consistency in math.
Points2D: TypeAlias = FloatArray      # shape: (N, 2)

# Points in 3D world coordinates.
Points3D: TypeAlias = FloatArray      # shape: (N, 3)

# Homogeneous points [x, y, 1] for 3x3 transforms (affine/homography).
PointsHomog: TypeAlias = FloatArray   # shape: (N, 3)

# Boolean inlier mask: True as inlier, False as outlier
Mask: TypeAlias = BoolArray           # shape: (N,)

# 3x3 homogeneous transform matrix.
# Affine/metric are represented as 3x3 with last row [0,0,1].
Mat3x3: TypeAlias = FloatArray        # shape: (3, 3)

# Aligned arrays, one row per correspondence:
#   circle          -> (points,)
#   2D transforms   -> (input_points, output_points)
#   pinhole camera  -> (points_3d, points_2d)
Correspondences: TypeAlias = tuple[FloatArray, ...]

M = TypeVar("M")


# ---------- Robust methods ----------
class RobustEstimatorMethod(Enum):
    """
    Robust fitting strategies sharing the same consensus loop.

    RANSAC  -> uniform sampling, inlier count
    LMEDS   -> uniform sampling, least median of residuals
    MSAC    -> uniform sampling, truncated residual cost
    PROSAC  -> score-ordered progressive sampling, inlier count
    PROMEDS -> score-ordered progressive sampling, least median of residuals
    """
    RANSAC = "ransac"
    LMEDS = "lmeds"
    MSAC = "msac"
    PROSAC = "prosac"
    PROMEDS = "promeds"

    @property
    def requires_quality_scores(self) -> bool:
        return self in (RobustEstimatorMethod.PROSAC, RobustEstimatorMethod.PROMEDS)

    @property
    def is_median_based(self) -> bool:
        return self in (RobustEstimatorMethod.LMEDS, RobustEstimatorMethod.PROMEDS)


# ---------- Generic model typing ----------
class ModelFitter(Protocol[M]):
    """
    Interface that a model must implement to be usable by the robust estimators.

    Steps the engine relies on:
    1) Fit candidate models from a minimal sample
    2) Score all correspondences with a per-item residual error
    3) Refine the best model over its inliers (parameter vector round trip)
    """

    def fit_minimal(self, data: Correspondences) -> list[M]:
        """
        Fit from the minimal number of correspondences required.
        Return an empty list if the sample is degenerate (e.g., collinear points).
        """
        ...

    def errors(self, model: M, data: Correspondences) -> FloatArray:
        """
        Signed error components, one row per correspondence.
        Shape: (N, k). Used as the refinement objective.
        """
        ...

    def residuals(self, model: M, data: Correspondences) -> FloatArray:
        """
        Return a vector of residual errors, one per correspondence.
        Shape: (N,). Smaller = better.
        """
        ...

    def to_params(self, model: M) -> FloatArray:
        """Flatten a model into its parameter vector (length P)."""
        ...

    def from_params(self, params: FloatArray) -> M:
        """Rebuild a model from a parameter vector produced by to_params."""
        ...


# ---------- Listener ----------
class RobustEstimatorListener(Protocol):
    """
    Callbacks fired synchronously from inside estimate().

    The estimator is locked for the whole span, so any setter called from
    a callback raises LockedError.
    """

    def on_estimate_start(self, estimator: "RobustEstimator") -> None: ...

    def on_estimate_end(self, estimator: "RobustEstimator") -> None: ...

    def on_estimate_next_iteration(self, estimator: "RobustEstimator", iteration: int) -> None: ...

    def on_estimate_progress_change(self, estimator: "RobustEstimator", progress: float) -> None: ...


# ---------- Inliers container ----------
# frozen=True means "immutable" after construction
@dataclass(frozen=True)
class InliersData:
    inliers: Optional[Mask]            # boolean mask, None if not kept
    residuals: Optional[FloatArray]    # residual per correspondence, None if not kept
    num_inliers: int                   # count of True values in the mask
    threshold: float                   # fixed threshold, or the estimated one (LMedS/PROMedS)


# ---------- Helper Function ----------
def as_homogeneous(pts: Points2D) -> PointsHomog:
    """
    Convert (N,2) points -> (N,3) homogeneous points: [x, y, 1].
    - 3x3 transforms (affine/homography) are easiest to apply to homogeneous points.
    """
    # Validate shape
    if pts.ndim != 2 or pts.shape[1] != 2:
        raise ValueError(f"Expected points shape (N, 2) but got {pts.shape}")

    # Create a column filled with 1 for the homogeneous coordinate.
    ones = np.ones((pts.shape[0], 1), dtype=np.float64)

    # Horizontally stack [x, y] with [1].
    # Ensure float64
    return np.hstack([pts.astype(np.float64), ones])


def is_valid_mat3x3(T: Mat3x3) -> bool:
    """
    Verify a 3x3 transform matrix.
    Used for rejecting failed fits.
    """
    return isinstance(T, np.ndarray) and T.shape == (3, 3) and bool(np.isfinite(T).all())


def subset(data: Correspondences, indices: Sequence[int] | IndexArray | Mask) -> Correspondences:
    """Select the same rows from every aligned array."""
    return tuple(arr[indices] for arr in data)
