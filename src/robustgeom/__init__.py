# Andy Zhao
"""
robustgeom: robust estimation of geometric models.

RANSAC, LMedS, MSAC, PROSAC and PROMedS share one consensus engine
(robust/), and plug in model fitters (models/) for circles, 2D affine,
projective and metric transformations and EPnP pinhole camera pose.
"""

from .robust import (
    RobustEstimatorMethod, RobustEstimatorListener, RobustEstimator, InliersData,
    EstimatorSettings, EstimatorError, LockedError, NotReadyError, RobustEstimatorError,
    create_estimator,
)

from .models import Circle, PinholeCamera

from .estimators import (
    CircleRobustEstimator,
    AffineTransformation2DRobustEstimator,
    ProjectiveTransformation2DRobustEstimator,
    MetricTransformation2DRobustEstimator,
    EPnPPinholeCameraRobustEstimator,
)

from .utils import setup_logger

__version__ = "0.1.0"

__all__ = [
    "RobustEstimatorMethod", "RobustEstimatorListener", "RobustEstimator", "InliersData",
    "EstimatorSettings", "EstimatorError", "LockedError", "NotReadyError", "RobustEstimatorError",
    "create_estimator",
    "Circle", "PinholeCamera",
    "CircleRobustEstimator",
    "AffineTransformation2DRobustEstimator",
    "ProjectiveTransformation2DRobustEstimator",
    "MetricTransformation2DRobustEstimator",
    "EPnPPinholeCameraRobustEstimator",
    "setup_logger",
]
