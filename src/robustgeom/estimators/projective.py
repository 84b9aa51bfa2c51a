# Andy Zhao
"""
Robust 2D projective transformation (homography) estimator.

The returned homography is scaled to unit Frobenius norm.
"""

from __future__ import annotations

from ..models.projective_fitter import ProjectiveFitter
from .affine import TransformationRobustEstimator


class ProjectiveTransformation2DRobustEstimator(TransformationRobustEstimator):
    MINIMUM_SIZE = 4
    WEAK_MINIMUM_SIZE = 4
    DEFAULT_THRESHOLD = 1.0
    DEFAULT_STOP_THRESHOLD = 1.0

    def _make_fitter(self) -> ProjectiveFitter:
        return ProjectiveFitter()
