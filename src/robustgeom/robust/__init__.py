# Andy Zhao
"""
Robust estimation package

This module provides:
- A reusable consensus loop shared by RANSAC, LMedS, MSAC, PROSAC and PROMedS
- Typed geometry primitives and the model fitter protocol
- The robust estimator base class (configuration, locking, listener)
- Non-linear refinement with parameter covariance
"""

from .types import (
    FloatArray, BoolArray, IndexArray, Points2D, Points3D, PointsHomog, Mask, Mat3x3,
    Correspondences, ModelFitter, RobustEstimatorListener, RobustEstimatorMethod,
    InliersData, as_homogeneous, is_valid_mat3x3, subset,
)

from .errors import EstimatorError, LockedError, NotReadyError, RobustEstimatorError

from .config import EstimatorSettings, DEFAULT_ROBUST_METHOD

from .sampling import UniformSampler, ProgressiveSampler

from .scoring import (
    CandidateScore, ConsensusPolicy, InlierCountScorer, TruncatedCostScorer, MedianScorer,
    build_policy,
)

from .core import ConsensusResult, required_iterations, run_consensus

from .refinement import RefinementResult, refine_model

from .estimator import RobustEstimator

from .factory import create_estimator

__all__ = [
    "FloatArray", "BoolArray", "IndexArray", "Points2D", "Points3D", "PointsHomog", "Mask", "Mat3x3",
    "Correspondences", "ModelFitter", "RobustEstimatorListener", "RobustEstimatorMethod",
    "InliersData", "as_homogeneous", "is_valid_mat3x3", "subset",
    "EstimatorError", "LockedError", "NotReadyError", "RobustEstimatorError",
    "EstimatorSettings", "DEFAULT_ROBUST_METHOD",
    "UniformSampler", "ProgressiveSampler",
    "CandidateScore", "ConsensusPolicy", "InlierCountScorer", "TruncatedCostScorer", "MedianScorer",
    "build_policy",
    "ConsensusResult", "required_iterations", "run_consensus",
    "RefinementResult", "refine_model",
    "RobustEstimator",
    "create_estimator",
]
