# Andy Zhao
"""
Adapter: metric (similarity) functions -> ModelFitter Protocol.
"""

from __future__ import annotations

from dataclasses import dataclass

from ..robust.types import Correspondences, FloatArray, Mat3x3, ModelFitter
from .affine import residuals_L2, transfer_errors
from .metric import fit_metric_least_squares, metric_to_params, params_to_metric


@dataclass(frozen=True)
class MetricFitter(ModelFitter[Mat3x3]):
    eps: float = 1e-9

    def fit_minimal(self, data: Correspondences) -> list[Mat3x3]:
        pts0, pts1 = data
        T = fit_metric_least_squares(pts0, pts1, eps=self.eps)
        return [] if T is None else [T]

    def errors(self, model: Mat3x3, data: Correspondences) -> FloatArray:
        pts0, pts1 = data
        return transfer_errors(model, pts0, pts1)

    def residuals(self, model: Mat3x3, data: Correspondences) -> FloatArray:
        pts0, pts1 = data
        return residuals_L2(model, pts0, pts1)

    def to_params(self, model: Mat3x3) -> FloatArray:
        return metric_to_params(model)

    def from_params(self, params: FloatArray) -> Mat3x3:
        return params_to_metric(params)
