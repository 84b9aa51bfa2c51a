# Andy Zhao
"""
Robust 2D metric transformation (rotation + uniform scale + translation).

Two correspondences determine the transformation exactly, but samples of 3
are drawn by default so that every hypothesis is over-determined. Allow the
weak minimum size to sample pairs instead.
"""

from __future__ import annotations

from ..models.metric_fitter import MetricFitter
from .affine import TransformationRobustEstimator


class MetricTransformation2DRobustEstimator(TransformationRobustEstimator):
    MINIMUM_SIZE = 3
    WEAK_MINIMUM_SIZE = 2
    DEFAULT_THRESHOLD = 1.0
    DEFAULT_STOP_THRESHOLD = 1.0

    def _make_fitter(self) -> MetricFitter:
        return MetricFitter()
