# Andy Zhao
"""
Adapter: makes affine functions conform to the ModelFitter Protocol.

This keeps robust/core.py generic and reusable.
"""

from __future__ import annotations

from dataclasses import dataclass

from ..robust.types import Correspondences, FloatArray, Mat3x3, ModelFitter
from .affine import (
    fit_affine_minimal, mat3x3_to_theta, residuals_L2, theta_to_mat3x3, transfer_errors,
)


@dataclass(frozen=True)
class AffineFitter(ModelFitter[Mat3x3]):
    eps_area: float = 1e-6

    def fit_minimal(self, data: Correspondences) -> list[Mat3x3]:
        pts0, pts1 = data
        T = fit_affine_minimal(pts0, pts1, eps_area=self.eps_area)
        return [] if T is None else [T]

    def errors(self, model: Mat3x3, data: Correspondences) -> FloatArray:
        pts0, pts1 = data
        return transfer_errors(model, pts0, pts1)

    def residuals(self, model: Mat3x3, data: Correspondences) -> FloatArray:
        pts0, pts1 = data
        return residuals_L2(model, pts0, pts1)

    def to_params(self, model: Mat3x3) -> FloatArray:
        return mat3x3_to_theta(model)

    def from_params(self, params: FloatArray) -> Mat3x3:
        return theta_to_mat3x3(params)
