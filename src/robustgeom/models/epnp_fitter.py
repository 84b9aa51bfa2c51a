# Andy Zhao
"""
Adapter: EPnP pose from 3D-2D correspondences -> ModelFitter Protocol.

The minimal solver is OpenCV's EPnP (cv2.solvePnP with SOLVEPNP_EPNP), which
needs at least 4 correspondences. Intrinsics are fixed; only the pose
(rotation vector + translation, 6 parameters) is estimated and refined.
Image points are assumed undistorted.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional
import logging

import cv2
import numpy as np

from ..robust.types import Correspondences, FloatArray, Mat3x3, ModelFitter
from .pinhole import (
    PinholeCamera, params_to_pose, pose_to_params, reprojection_errors, validate_intrinsic,
)

logger = logging.getLogger(__name__)


def solve_epnp(pts3d: np.ndarray, pts2d: np.ndarray, K: Mat3x3) -> Optional[PinholeCamera]:
    """
    Pose from N >= 4 correspondences with EPnP.

    Returns None when OpenCV reports failure or a degenerate configuration.
    """
    if pts3d.shape[0] < 4:
        raise ValueError(f"EPnP needs at least 4 correspondences, got {pts3d.shape[0]}")

    object_points = np.ascontiguousarray(pts3d, dtype=np.float64).reshape(-1, 1, 3)
    image_points = np.ascontiguousarray(pts2d, dtype=np.float64).reshape(-1, 1, 2)

    try:
        success, rvec, tvec = cv2.solvePnP(
            object_points, image_points, K, None, flags=cv2.SOLVEPNP_EPNP
        )
    except cv2.error as e:
        logger.debug("EPnP failed: %s", e)
        return None

    if not success:
        return None

    rvec = np.asarray(rvec, dtype=np.float64).reshape(3)
    tvec = np.asarray(tvec, dtype=np.float64).reshape(3)
    if not (np.isfinite(rvec).all() and np.isfinite(tvec).all()):
        return None

    R, _ = cv2.Rodrigues(rvec)
    return PinholeCamera(K=K, R=R, t=tvec)


@dataclass(frozen=True)
class EPnPFitter(ModelFitter[PinholeCamera]):
    intrinsic: Mat3x3 = field(repr=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "intrinsic", validate_intrinsic(self.intrinsic))

    def fit_minimal(self, data: Correspondences) -> list[PinholeCamera]:
        pts3d, pts2d = data
        camera = solve_epnp(pts3d, pts2d, self.intrinsic)
        return [] if camera is None else [camera]

    def errors(self, model: PinholeCamera, data: Correspondences) -> FloatArray:
        pts3d, pts2d = data
        return reprojection_errors(model, pts3d, pts2d)

    def residuals(self, model: PinholeCamera, data: Correspondences) -> FloatArray:
        return np.linalg.norm(self.errors(model, data), axis=1)

    def to_params(self, model: PinholeCamera) -> FloatArray:
        return pose_to_params(model)

    def from_params(self, params: FloatArray) -> PinholeCamera:
        return params_to_pose(params, self.intrinsic)
