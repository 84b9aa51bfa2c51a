# Andy Zhao
"""
Robust estimators per model family.

Every estimator supports the five robust methods and shares the configuration
surface of robust.estimator.RobustEstimator.
"""

from .circle import CircleRobustEstimator

from .affine import TransformationRobustEstimator, AffineTransformation2DRobustEstimator

from .projective import ProjectiveTransformation2DRobustEstimator

from .metric import MetricTransformation2DRobustEstimator

from .epnp import EPnPPinholeCameraRobustEstimator

__all__ = [
    "CircleRobustEstimator",
    "TransformationRobustEstimator", "AffineTransformation2DRobustEstimator",
    "ProjectiveTransformation2DRobustEstimator",
    "MetricTransformation2DRobustEstimator",
    "EPnPPinholeCameraRobustEstimator",
]
