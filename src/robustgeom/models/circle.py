# Andy Zhao
"""
Circle model utilities.

A circle is (center c, radius r). For a 2D point p the signed radial error is

    e(p) = ||p - c|| - r

(negative inside, positive outside). |e| is the geometric distance to the
circle, which is what the robust estimators threshold on.

Minimal fit = circumcircle of 3 non-collinear points. Working relative to the
first point a (b' = b - a, c' = c - a):

    d  = 2 * (b'x * c'y - b'y * c'x)
    ux = (c'y * |b'|^2 - b'y * |c'|^2) / d
    uy = (b'x * |c'|^2 - c'x * |b'|^2) / d

    center = a + (ux, uy),  radius = ||(ux, uy)||

d == 0 means the three points are collinear (no finite circle).
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

import numpy as np

from ..robust.types import Points2D, FloatArray


@dataclass(frozen=True)
class Circle:
    center: FloatArray      # shape (2,)
    radius: float

    def __post_init__(self) -> None:
        c = np.asarray(self.center, dtype=np.float64)
        if c.shape != (2,):
            raise ValueError(f"Expected center shape (2,), got {c.shape}")
        if not np.isfinite(self.radius) or self.radius < 0.0:
            raise ValueError(f"radius must be finite and >= 0, got {self.radius}")
        object.__setattr__(self, "center", c)
        object.__setattr__(self, "radius", float(self.radius))

    @property
    def area(self) -> float:
        return float(np.pi * self.radius ** 2)

    @property
    def perimeter(self) -> float:
        return float(2.0 * np.pi * self.radius)

    def signed_distance(self, pts: Points2D) -> FloatArray:
        """Signed radial error for (N,2) points, shape (N,)."""
        pts = np.asarray(pts, dtype=np.float64)
        if pts.ndim != 2 or pts.shape[1] != 2:
            raise ValueError(f"Expected pts shape (N,2), got {pts.shape}")
        return np.linalg.norm(pts - self.center, axis=1) - self.radius

    def distance(self, pts: Points2D) -> FloatArray:
        return np.abs(self.signed_distance(pts))

    def is_locus(self, pts: Points2D, threshold: float = 1e-9) -> np.ndarray:
        """True where a point lies on the circle (within `threshold`)."""
        return self.distance(pts) <= threshold


# ---------- Fitting ----------
def fit_circle_3pts(pts: Points2D, eps: float = 1e-12) -> Optional[Circle]:
    """
    Circumcircle of a (3,2) triplet, or None if the points are collinear.
    """
    if pts.shape != (3, 2):
        raise ValueError(f"fit_circle_3pts expects (3,2) input, got {pts.shape}")

    a = pts[0]
    b = pts[1] - a
    c = pts[2] - a

    d = 2.0 * (b[0] * c[1] - b[1] * c[0])
    scale = max(float(np.dot(b, b)), float(np.dot(c, c)), 1.0)
    if abs(d) <= eps * scale:
        return None

    bb = float(np.dot(b, b))
    cc = float(np.dot(c, c))
    ux = (c[1] * bb - b[1] * cc) / d
    uy = (b[0] * cc - c[0] * bb) / d

    center = a + np.array([ux, uy], dtype=np.float64)
    radius = float(np.hypot(ux, uy))
    if not np.isfinite(center).all() or not np.isfinite(radius):
        return None
    return Circle(center=center, radius=radius)


# ---------- Parameter vector ----------
def circle_to_params(circle: Circle) -> FloatArray:
    return np.array([circle.center[0], circle.center[1], circle.radius], dtype=np.float64)


def params_to_circle(params: np.ndarray) -> Circle:
    cx, cy, r = map(float, np.asarray(params).tolist())
    # LM may cross r = 0; the circle is the same for |r|
    return Circle(center=np.array([cx, cy], dtype=np.float64), radius=abs(r))
