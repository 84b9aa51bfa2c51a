# Andy Zhao
"""
Adapter: homography functions -> ModelFitter Protocol.
"""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np

from ..robust.types import Correspondences, FloatArray, Mat3x3, ModelFitter
from .projective import (
    fit_homography_dlt, homography_errors, homography_to_params, params_to_homography,
)


@dataclass(frozen=True)
class ProjectiveFitter(ModelFitter[Mat3x3]):
    eps_area: float = 1e-6

    def fit_minimal(self, data: Correspondences) -> list[Mat3x3]:
        pts0, pts1 = data
        H = fit_homography_dlt(pts0, pts1, eps_area=self.eps_area)
        return [] if H is None else [H]

    def errors(self, model: Mat3x3, data: Correspondences) -> FloatArray:
        pts0, pts1 = data
        return homography_errors(model, pts0, pts1)

    def residuals(self, model: Mat3x3, data: Correspondences) -> FloatArray:
        return np.linalg.norm(self.errors(model, data), axis=1)

    def to_params(self, model: Mat3x3) -> FloatArray:
        return homography_to_params(model)

    def from_params(self, params: FloatArray) -> Mat3x3:
        return params_to_homography(params)
