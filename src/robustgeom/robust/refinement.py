# Andy Zhao
"""
Non-linear refinement of a consensus model over its inliers.

The best minimal-sample model is only as accurate as the few correspondences
it was built from. Refinement polishes it with Levenberg-Marquardt on the full
inlier set:

    x* = argmin_x  sum_i || e_i(x) ||^2       (i over inliers)

where e_i are the signed error components of the model fitter and x the
model's parameter vector (ModelFitter.to_params / from_params).

Covariance of the parameters (Gauss-Newton approximation):

    Cov(x*) = sigma^2 * (J^T J)^+

J is the Jacobian at the solution and sigma the expected residual standard
deviation (the inlier threshold, or the threshold estimated by LMedS).
The pseudo-inverse keeps gauge freedoms (e.g. homography scale) finite.

Refinement failures are not errors: the caller keeps the unrefined model.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Generic, Optional, TypeVar
import logging

import numpy as np
from scipy.optimize import least_squares

from .types import Correspondences, FloatArray, Mask, ModelFitter, subset

M = TypeVar("M")

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RefinementResult(Generic[M]):
    model: M                        # refined model, or the input model if not improved
    improved: bool                  # True if the refined cost is lower than the initial one
    covariance: Optional[FloatArray]  # (P, P) parameter covariance, if requested


def refine_model(
        model_fitter: ModelFitter[M],
        model: M,
        data: Correspondences,
        inliers: Mask,
        *,
        standard_deviation: float,
        keep_covariance: bool = False,
        max_evaluations: Optional[int] = None,
) -> RefinementResult[M]:
    """
    Refine `model` on the inlier correspondences.

    Raises:
      ValueError / np.linalg.LinAlgError if the problem is degenerate
      (e.g. fewer residuals than parameters); callers treat that as
      "keep the unrefined model".
    """
    inlier_data = subset(data, inliers)
    x0 = np.asarray(model_fitter.to_params(model), dtype=np.float64)

    def objective(params: FloatArray) -> FloatArray:
        return model_fitter.errors(model_fitter.from_params(params), inlier_data).ravel()

    r0 = objective(x0)
    if r0.shape[0] < x0.shape[0]:
        raise ValueError(f"refinement needs at least {x0.shape[0]} residuals, got {r0.shape[0]}")
    if not np.isfinite(r0).all():
        raise ValueError("initial model produces non-finite errors on its inliers")

    initial_cost = 0.5 * float(r0 @ r0)

    result = least_squares(objective, x0, method="lm", max_nfev=max_evaluations)
    if not np.isfinite(result.x).all():
        raise ValueError("refinement diverged")

    improved = bool(result.cost < initial_cost)
    refined = model_fitter.from_params(result.x) if improved else model

    covariance: Optional[FloatArray] = None
    if keep_covariance:
        jac = np.asarray(result.jac, dtype=np.float64)
        covariance = np.linalg.pinv(jac.T @ jac) * float(standard_deviation) ** 2

    logger.debug(
        "refinement: inliers=%d cost %.3e -> %.3e (%s)",
        int(np.count_nonzero(inliers)), initial_cost, result.cost, "improved" if improved else "kept",
    )
    return RefinementResult(model=refined, improved=improved, covariance=covariance)
