# Andy Zhao
"""
Pinhole camera model with known intrinsics.

World point X (3,) is imaged at

    x ~ K @ (R @ X + t)

with
    K : 3x3 intrinsic matrix (focal lengths, skew, principal point)
    R : 3x3 rotation world -> camera
    t : (3,) translation world -> camera

Pose parameter vector: [rx, ry, rz, tx, ty, tz], where (rx, ry, rz) is the
Rodrigues rotation vector of R (cv2.Rodrigues).
"""

from __future__ import annotations

from dataclasses import dataclass

import cv2
import numpy as np

from ..robust.types import Points2D, Points3D, Mat3x3, FloatArray

# Error assigned to points at or behind the camera plane
BEHIND_CAMERA_ERROR = 1e12


def validate_intrinsic(K: np.ndarray) -> Mat3x3:
    """Return K as a float64 (3,3) array, or raise ValueError if it is unusable."""
    K = np.asarray(K, dtype=np.float64)
    if K.shape != (3, 3):
        raise ValueError(f"Expected intrinsic shape (3,3), got {K.shape}")
    if not np.isfinite(K).all():
        raise ValueError("intrinsic matrix must be finite")
    if abs(np.linalg.det(K)) <= 1e-12:
        raise ValueError("intrinsic matrix must be invertible")
    return K


def intrinsic_matrix(fx: float, fy: float, cx: float, cy: float, skew: float = 0.0) -> Mat3x3:
    return np.array(
        [
            [fx, skew, cx],
            [0.0, fy, cy],
            [0.0, 0.0, 1.0],
        ],
        dtype=np.float64,
    )


@dataclass(frozen=True)
class PinholeCamera:
    K: Mat3x3
    R: Mat3x3
    t: FloatArray   # shape (3,)

    def __post_init__(self) -> None:
        R = np.asarray(self.R, dtype=np.float64)
        t = np.asarray(self.t, dtype=np.float64).reshape(-1)
        if R.shape != (3, 3):
            raise ValueError(f"Expected R shape (3,3), got {R.shape}")
        if t.shape != (3,):
            raise ValueError(f"Expected t shape (3,), got {t.shape}")
        object.__setattr__(self, "K", validate_intrinsic(self.K))
        object.__setattr__(self, "R", R)
        object.__setattr__(self, "t", t)

    @property
    def camera_matrix(self) -> FloatArray:
        """3x4 projection matrix P = K [R | t]."""
        return self.K @ np.hstack([self.R, self.t[:, None]])

    @property
    def center(self) -> FloatArray:
        """Camera center in world coordinates: C = -R^T t."""
        return -self.R.T @ self.t

    @property
    def rotation_vector(self) -> FloatArray:
        rvec, _ = cv2.Rodrigues(self.R)
        return rvec.reshape(3)

    def depths(self, pts3d: Points3D) -> FloatArray:
        """z coordinate of each point in the camera frame, shape (N,)."""
        pts3d = np.asarray(pts3d, dtype=np.float64)
        return (pts3d @ self.R.T + self.t)[:, 2]

    def project(self, pts3d: Points3D) -> Points2D:
        """Project (N,3) world points to (N,2) pixels."""
        pts3d = np.asarray(pts3d, dtype=np.float64)
        if pts3d.ndim != 2 or pts3d.shape[1] != 3:
            raise ValueError(f"Expected pts3d shape (N,3), got {pts3d.shape}")

        pc = pts3d @ self.R.T + self.t          # camera frame (N,3)
        ph = pc @ self.K.T                      # homogeneous pixels (N,3)
        with np.errstate(divide="ignore", invalid="ignore"):
            return ph[:, :2] / ph[:, 2:3]


# ---------- Parameter vector ----------
def pose_to_params(camera: PinholeCamera) -> FloatArray:
    return np.concatenate([camera.rotation_vector, camera.t]).astype(np.float64)


def params_to_pose(params: np.ndarray, K: Mat3x3) -> PinholeCamera:
    p = np.asarray(params, dtype=np.float64)
    if p.shape != (6,):
        raise ValueError(f"Expected 6 pose parameters, got shape {p.shape}")
    R, _ = cv2.Rodrigues(p[:3].reshape(3, 1))
    return PinholeCamera(K=K, R=R, t=p[3:].copy())


# ---------- Residuals ----------
def reprojection_errors(camera: PinholeCamera, pts3d: Points3D, pts2d: Points2D) -> FloatArray:
    """
    Signed reprojection error (N,2): project(X_i) - x_i.

    Points at or behind the camera get a large finite error.
    """
    pts2d = np.asarray(pts2d, dtype=np.float64)
    if pts2d.ndim != 2 or pts2d.shape[1] != 2 or pts2d.shape[0] != np.shape(pts3d)[0]:
        raise ValueError(f"pts3d and pts2d must have the same length, got {np.shape(pts3d)} vs {pts2d.shape}")

    e = camera.project(pts3d) - pts2d
    behind = camera.depths(pts3d) <= 0.0
    e[behind] = BEHIND_CAMERA_ERROR
    return np.nan_to_num(e, nan=BEHIND_CAMERA_ERROR, posinf=BEHIND_CAMERA_ERROR, neginf=-BEHIND_CAMERA_ERROR)
