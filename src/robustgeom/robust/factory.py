# Andy Zhao
"""
Factory dispatch: (model family, method, optional arguments) -> estimator.

    CircleRobustEstimator.create(RobustEstimatorMethod.PROSAC,
                                 points=pts, quality_scores=scores)

Pure routing: the method picks the consensus policy, named point arguments
are mapped onto the model family's correspondence arrays, and quality scores
are only forwarded to the score-based methods (PROSAC, PROMedS). All argument
validation is done by the estimator itself (ValueError on bad input).
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Optional

from .types import RobustEstimatorMethod

if TYPE_CHECKING:
    from .estimator import RobustEstimator


def create_estimator(
        estimator_cls: type["RobustEstimator[Any]"],
        method: Optional[RobustEstimatorMethod] = None,
        *,
        quality_scores: Optional[Any] = None,
        **kwargs: Any,
) -> "RobustEstimator[Any]":
    """
    Instantiate `estimator_cls` configured for `method`.

    method:
        robust method, defaults to the family's DEFAULT_ROBUST_METHOD (PROMedS)
    quality_scores:
        forwarded to PROSAC / PROMedS, dropped for other methods
    kwargs:
        constructor arguments of the model family (points, listener,
        weak_minimum_size_allowed, intrinsic, ...)
    """
    if method is None:
        method = estimator_cls.DEFAULT_ROBUST_METHOD
    method = RobustEstimatorMethod(method)

    if method.requires_quality_scores and quality_scores is not None:
        kwargs["quality_scores"] = quality_scores

    return estimator_cls(method, **kwargs)
