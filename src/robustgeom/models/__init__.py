# Andy Zhao
"""
Geometric models

This module provides:
- Minimal-sample solvers, residuals and parameter vectors per model
- ModelFitter adapters consumed by the robust estimation engine
- Support for circle, affine, projective, metric and pinhole camera models
"""

from .affine import (
    fit_affine_minimal, apply_T, transfer_errors, residuals_L2,
    theta_to_mat3x3, mat3x3_to_theta,
)

from .affine_fitter import AffineFitter

from .projective import (
    fit_homography_dlt, homography_errors, homography_to_params, params_to_homography,
    normalize_homography,
)

from .projective_fitter import ProjectiveFitter

from .metric import fit_metric_least_squares, metric_to_params, params_to_metric

from .metric_fitter import MetricFitter

from .circle import Circle, fit_circle_3pts, circle_to_params, params_to_circle

from .circle_fitter import CircleFitter

from .pinhole import (
    PinholeCamera, intrinsic_matrix, validate_intrinsic, reprojection_errors,
    pose_to_params, params_to_pose,
)

from .epnp_fitter import EPnPFitter, solve_epnp

__all__ = [
    "fit_affine_minimal", "apply_T", "transfer_errors", "residuals_L2",
    "theta_to_mat3x3", "mat3x3_to_theta",
    "AffineFitter",
    "fit_homography_dlt", "homography_errors", "homography_to_params", "params_to_homography",
    "normalize_homography",
    "ProjectiveFitter",
    "fit_metric_least_squares", "metric_to_params", "params_to_metric",
    "MetricFitter",
    "Circle", "fit_circle_3pts", "circle_to_params", "params_to_circle",
    "CircleFitter",
    "PinholeCamera", "intrinsic_matrix", "validate_intrinsic", "reprojection_errors",
    "pose_to_params", "params_to_pose",
    "EPnPFitter", "solve_epnp",
]
