# Andy Zhao
"""
Adapter: circle functions -> ModelFitter Protocol.

Data is a 1-tuple (points,).
"""

from __future__ import annotations

from dataclasses import dataclass

from ..robust.types import Correspondences, FloatArray, ModelFitter
from .circle import Circle, circle_to_params, fit_circle_3pts, params_to_circle


@dataclass(frozen=True)
class CircleFitter(ModelFitter[Circle]):
    eps: float = 1e-12

    def fit_minimal(self, data: Correspondences) -> list[Circle]:
        (pts,) = data
        circle = fit_circle_3pts(pts, eps=self.eps)
        return [] if circle is None else [circle]

    def errors(self, model: Circle, data: Correspondences) -> FloatArray:
        (pts,) = data
        return model.signed_distance(pts)[:, None]

    def residuals(self, model: Circle, data: Correspondences) -> FloatArray:
        (pts,) = data
        return model.distance(pts)

    def to_params(self, model: Circle) -> FloatArray:
        return circle_to_params(model)

    def from_params(self, params: FloatArray) -> Circle:
        return params_to_circle(params)
