# Andy Zhao
"""
Metric (similarity) model utilities.

A metric transformation is a rotation, a uniform scale and a translation:

    [x']   [s*cos(a)  -s*sin(a)] [x]   [tx]
    [y'] = [s*sin(a)   s*cos(a)] [y] + [ty]

As a 3x3 homogeneous matrix:

    T = [[s*cos(a), -s*sin(a), tx],
         [s*sin(a),  s*cos(a), ty],
         [0,         0,         1]]

Fitting trick: write points as complex numbers z = x + i*y. Then

    z' = q * z + t,      q = s * exp(i*a),  t = tx + i*ty

which is linear in (q, t). With centered points the least squares solution is

    q = sum(conj(zc) * zc') / sum(|zc|^2)
    t = mean(z') - q * mean(z)

Two distinct points already determine (q, t) exactly.
"""

from __future__ import annotations

from typing import Optional

import numpy as np

from ..robust.types import Points2D, Mat3x3, FloatArray, is_valid_mat3x3


# ---------- Parameter vector ----------
def params_to_metric(params: np.ndarray) -> Mat3x3:
    """[scale, angle, tx, ty] -> 3x3 matrix."""
    s, a, tx, ty = map(float, np.asarray(params).tolist())
    c, sn = s * np.cos(a), s * np.sin(a)
    return np.array(
        [
            [c, -sn, tx],
            [sn, c, ty],
            [0.0, 0.0, 1.0],
        ],
        dtype=np.float64,
    )


def metric_to_params(T: Mat3x3) -> FloatArray:
    """3x3 similarity matrix -> [scale, angle, tx, ty]."""
    if T.shape != (3, 3):
        raise ValueError(f"Expected T shape (3,3), got {T.shape}")
    s = float(np.hypot(T[0, 0], T[1, 0]))
    a = float(np.arctan2(T[1, 0], T[0, 0]))
    return np.array([s, a, T[0, 2], T[1, 2]], dtype=np.float64)


# ---------- Fitting ----------
def fit_metric_least_squares(pts0: Points2D, pts1: Points2D, eps: float = 1e-9) -> Optional[Mat3x3]:
    """
    Least squares similarity from N >= 2 correspondences.

    pts0: (N,2) source points
    pts1: (N,2) target points

    Returns:
      3x3 similarity matrix, or None if the source points all coincide
      or the fitted scale collapses to 0.
    """
    if pts0.shape != pts1.shape or pts0.ndim != 2 or pts0.shape[1] != 2:
        raise ValueError(f"fit_metric_least_squares expects matching (N,2) inputs, got {pts0.shape} and {pts1.shape}")
    if pts0.shape[0] < 2:
        raise ValueError(f"fit_metric_least_squares needs at least 2 points, got {pts0.shape[0]}")

    z0 = pts0[:, 0] + 1j * pts0[:, 1]
    z1 = pts1[:, 0] + 1j * pts1[:, 1]

    m0 = z0.mean()
    m1 = z1.mean()
    zc0 = z0 - m0
    zc1 = z1 - m1

    denom = float(np.sum(np.abs(zc0) ** 2))
    if denom <= eps:
        return None

    q = np.sum(np.conj(zc0) * zc1) / denom
    if abs(q) <= eps:
        return None
    t = m1 - q * m0

    T = np.array(
        [
            [q.real, -q.imag, t.real],
            [q.imag, q.real, t.imag],
            [0.0, 0.0, 1.0],
        ],
        dtype=np.float64,
    )
    if not is_valid_mat3x3(T):
        return None
    return T
