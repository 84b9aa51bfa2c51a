# Andy Zhao
"""
2D affine transformation model, in 3x3 homogeneous form:

    T = [[a, b, tx],
         [c, d, ty],
         [0, 0,  1]]

so that an input point p maps to q with  [q, 1]^T = T @ [p, 1]^T.

Six unknowns (a, b, tx, c, d, ty), two equations per correspondence:
three input points in general position pin T down exactly.

apply_T / transfer_errors also serve the metric and projective models,
which use the same 3x3 representation (divide by w for homographies).
"""

from __future__ import annotations

from typing import Optional

import numpy as np

from ..robust.types import (
    Points2D, PointsHomog, Mat3x3, FloatArray,
    as_homogeneous, is_valid_mat3x3)


# ---------- Degeneracy ----------
def twice_triangle_area(pts: Points2D) -> float:
    """
    |(p1 - p0) x (p2 - p0)| for a (3,2) triplet.

    Zero when the three points are collinear.
    """
    if pts.shape != (3, 2):
        raise ValueError(f"Expected (3,2) triplet, got {pts.shape}")
    u = pts[1] - pts[0]
    v = pts[2] - pts[0]
    return float(abs(u[0] * v[1] - u[1] * v[0]))


# ---------- Parameter vector ----------
def theta_to_mat3x3(theta: np.ndarray) -> Mat3x3:
    """[a, b, tx, c, d, ty] -> 3x3 affine matrix."""
    theta = np.asarray(theta, dtype=np.float64)
    if theta.shape != (6,):
        raise ValueError(f"Expected 6 affine parameters, got shape {theta.shape}")
    T = np.eye(3, dtype=np.float64)
    T[:2, :] = theta.reshape(2, 3)
    return T


def mat3x3_to_theta(T: Mat3x3) -> FloatArray:
    """3x3 affine matrix -> [a, b, tx, c, d, ty] (top two rows)."""
    if T.shape != (3, 3):
        raise ValueError(f"Expected T shape (3,3), got {T.shape}")
    return np.asarray(T[:2, :], dtype=np.float64).ravel().copy()


# ---------- Minimal fit ----------
def fit_affine_minimal(pts0: Points2D, pts1: Points2D, eps_area: float = 1e-6) -> Optional[Mat3x3]:
    """
    Exact affine transform from 3 correspondences.

    The x and y rows of T decouple:

        [x0 y0 1] [a ]   [x0']          [x0 y0 1] [c ]   [y0']
        [x1 y1 1] [b ] = [x1']          [x1 y1 1] [d ] = [y1']
        [x2 y2 1] [tx]   [x2']          [x2 y2 1] [ty]   [y2']

    so one 3x3 system with two right-hand sides is enough.

    Returns None for a collinear input triplet (2x area below eps_area)
    or a singular / non-finite solve.
    """
    if pts0.shape != (3, 2) or pts1.shape != (3, 2):
        raise ValueError(f"fit_affine_minimal expects (3,2) inputs, got {pts0.shape} and {pts1.shape}")

    if twice_triangle_area(pts0) < eps_area:
        return None

    A = as_homogeneous(pts0)            # (3,3)
    try:
        rows = np.linalg.solve(A, pts1.astype(np.float64))   # (3,2): columns are T rows
    except np.linalg.LinAlgError:
        return None

    T = np.eye(3, dtype=np.float64)
    T[:2, :] = rows.T
    return T if is_valid_mat3x3(T) else None


# ---------- Mapping + errors ----------
def apply_T(T: Mat3x3, pts: Points2D) -> Points2D:
    """
    Map (N,2) points through a 3x3 transform, with perspective division.

    Points sent to the line at infinity come back as inf / nan.
    """
    if pts.ndim != 2 or pts.shape[1] != 2:
        raise ValueError(f"Expected pts shape (N,2), got {pts.shape}")
    if T.shape != (3, 3):
        raise ValueError(f"Expected T shape (3,3), got {T.shape}")

    # Row-vector convention: q_h = p_h @ T^T
    ph: PointsHomog = as_homogeneous(pts)
    qh = ph @ T.T

    with np.errstate(divide="ignore", invalid="ignore"):
        return (qh[:, :2] / qh[:, 2:3]).astype(np.float64)


def transfer_errors(T: Mat3x3, pts0: Points2D, pts1: Points2D) -> FloatArray:
    """Signed per-axis error T(pts0) - pts1, shape (N,2)."""
    if pts0.shape != pts1.shape:
        raise ValueError(f"pts0 and pts1 must have same shape, got {pts0.shape} vs {pts1.shape}")
    return apply_T(T, pts0) - pts1.astype(np.float64)


def residuals_L2(T: Mat3x3, pts0: Points2D, pts1: Points2D) -> FloatArray:
    """Euclidean transfer error in pixels, shape (N,)."""
    return np.linalg.norm(transfer_errors(T, pts0, pts1), axis=1).astype(np.float64)
