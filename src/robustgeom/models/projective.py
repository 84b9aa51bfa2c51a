# Andy Zhao
"""
Projective (homography) model utilities.

We estimate a homography H such that:

    [x', y', w']^T  ~  H @ [x, y, 1]^T,      (x'/w', y'/w') = output point

H has 9 entries but only 8 degrees of freedom (overall scale), so 4 point
correspondences in general position are the minimal sample.

Minimal fit = normalized DLT:
    1) translate / scale each point set so its centroid is at the origin and
       its mean distance to the origin is sqrt(2)
    2) stack 2 linear equations per correspondence into A (8x9)
    3) h = right singular vector of A with the smallest singular value
    4) undo the normalization: H = T1^-1 @ Hn @ T0

The parameter vector used for refinement is the 9 entries of H, scaled to
unit Frobenius norm.
"""

from __future__ import annotations

from typing import Optional

import numpy as np

from ..robust.types import Points2D, Mat3x3, FloatArray, as_homogeneous, is_valid_mat3x3
from .affine import apply_T, transfer_errors


# ---------- Normalization ----------
def normalization_transform(pts: Points2D) -> Optional[Mat3x3]:
    """
    Similarity that maps `pts` to zero centroid and mean radius sqrt(2).

    Returns None when all points coincide.
    """
    centroid = pts.mean(axis=0)
    d = np.linalg.norm(pts - centroid, axis=1).mean()
    if not np.isfinite(d) or d <= 1e-12:
        return None

    s = np.sqrt(2.0) / d
    return np.array(
        [
            [s, 0.0, -s * centroid[0]],
            [0.0, s, -s * centroid[1]],
            [0.0, 0.0, 1.0],
        ],
        dtype=np.float64,
    )


def normalize_homography(H: Mat3x3) -> Mat3x3:
    """Scale H to unit Frobenius norm with a positive H[2,2] (when non-zero)."""
    n = np.linalg.norm(H)
    if n <= 0.0:
        raise ValueError("homography must not be zero")
    Hn = H / n
    if Hn[2, 2] < 0.0:
        Hn = -Hn
    return Hn


# ---------- Degeneracy ----------
def has_collinear_triplet(pts: Points2D, eps_area: float = 1e-6) -> bool:
    """True if any 3 of the (4,2) points are (nearly) collinear."""
    n = pts.shape[0]
    for i in range(n):
        for j in range(i + 1, n):
            for k in range(j + 1, n):
                u = pts[j] - pts[i]
                v = pts[k] - pts[i]
                if abs(u[0] * v[1] - u[1] * v[0]) < eps_area:
                    return True
    return False


# ---------- Homography fitting ----------
def fit_homography_dlt(pts0: Points2D, pts1: Points2D, eps_area: float = 1e-6) -> Optional[Mat3x3]:
    """
    Fit a homography from N >= 4 correspondences with the normalized DLT.

    pts0: (N,2) source points
    pts1: (N,2) target points

    Returns:
      unit-norm 3x3 homography, or None if degenerate / solve fails.
    """
    if pts0.shape != pts1.shape or pts0.ndim != 2 or pts0.shape[1] != 2:
        raise ValueError(f"fit_homography_dlt expects matching (N,2) inputs, got {pts0.shape} and {pts1.shape}")
    if pts0.shape[0] < 4:
        raise ValueError(f"fit_homography_dlt needs at least 4 points, got {pts0.shape[0]}")

    if pts0.shape[0] == 4 and (has_collinear_triplet(pts0, eps_area) or has_collinear_triplet(pts1, eps_area)):
        return None

    T0 = normalization_transform(pts0)
    T1 = normalization_transform(pts1)
    if T0 is None or T1 is None:
        return None

    p0 = apply_T(T0, pts0)
    p1 = apply_T(T1, pts1)

    # For each correspondence (x, y) -> (u, v):
    #   [x, y, 1, 0, 0, 0, -u*x, -u*y, -u] . h = 0
    #   [0, 0, 0, x, y, 1, -v*x, -v*y, -v] . h = 0
    n = p0.shape[0]
    A = np.zeros((2 * n, 9), dtype=np.float64)
    ph0 = as_homogeneous(p0)
    A[0::2, 0:3] = ph0
    A[0::2, 6:9] = -p1[:, 0:1] * ph0
    A[1::2, 3:6] = ph0
    A[1::2, 6:9] = -p1[:, 1:2] * ph0

    try:
        _, sv, Vt = np.linalg.svd(A)
    except np.linalg.LinAlgError:
        return None

    # A rank below 8 leaves a family of solutions
    if sv.shape[0] >= 8 and sv[7] <= 1e-12 * max(sv[0], 1.0):
        return None

    Hn = Vt[-1].reshape(3, 3)

    try:
        H = np.linalg.inv(T1) @ Hn @ T0
    except np.linalg.LinAlgError:
        return None

    if not is_valid_mat3x3(H) or abs(np.linalg.det(H)) <= 1e-12 * np.linalg.norm(H) ** 3:
        return None
    return normalize_homography(H)


# ---------- Parameter vector ----------
def homography_to_params(H: Mat3x3) -> FloatArray:
    return normalize_homography(np.asarray(H, dtype=np.float64)).ravel().copy()


def params_to_homography(params: np.ndarray) -> Mat3x3:
    p = np.asarray(params, dtype=np.float64)
    if p.shape != (9,):
        raise ValueError(f"Expected 9 homography parameters, got shape {p.shape}")
    return normalize_homography(p.reshape(3, 3))


# ---------- Residuals ----------
def homography_errors(H: Mat3x3, pts0: Points2D, pts1: Points2D) -> FloatArray:
    """
    Signed transfer error (N,2). Points sent to infinity by H get a large
    finite error so they are always classified as outliers.
    """
    e = transfer_errors(H, pts0, pts1)
    return np.nan_to_num(e, nan=1e12, posinf=1e12, neginf=-1e12)
