# Andy Zhao
"""
Robust 2D affine transformation estimator from point correspondences.

    est = AffineTransformation2DRobustEstimator(RobustEstimatorMethod.MSAC,
                                                input_points=pts0, output_points=pts1)
    T = est.estimate()      # 3x3, last row [0, 0, 1]
"""

from __future__ import annotations

from typing import Any, Optional

from ..models.affine_fitter import AffineFitter
from ..robust.config import DEFAULT_ROBUST_METHOD
from ..robust.estimator import RobustEstimator
from ..robust.types import Mat3x3, RobustEstimatorMethod


class TransformationRobustEstimator(RobustEstimator[Mat3x3]):
    """Shared surface of the 2D -> 2D transformation estimators."""
    _POINT_DIMS = (2, 2)

    def __init__(
            self,
            method: RobustEstimatorMethod = DEFAULT_ROBUST_METHOD,
            input_points: Optional[Any] = None,
            output_points: Optional[Any] = None,
            **kwargs: Any,
    ) -> None:
        data = None
        if input_points is not None or output_points is not None:
            data = (input_points, output_points)
        super().__init__(method, data=data, **kwargs)

    @property
    def input_points(self) -> Optional[Any]:
        return None if self._data is None else self._data[0]

    @property
    def output_points(self) -> Optional[Any]:
        return None if self._data is None else self._data[1]


class AffineTransformation2DRobustEstimator(TransformationRobustEstimator):
    MINIMUM_SIZE = 3
    WEAK_MINIMUM_SIZE = 3
    DEFAULT_THRESHOLD = 1.0
    DEFAULT_STOP_THRESHOLD = 1.0

    def _make_fitter(self) -> AffineFitter:
        return AffineFitter()
