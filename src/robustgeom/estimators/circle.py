# Andy Zhao
"""
Robust circle estimator: fits a circle to 2D points contaminated by outliers.

    est = CircleRobustEstimator(RobustEstimatorMethod.RANSAC, points=pts)
    circle = est.estimate()

Residual is the geometric distance of each point to the circle. Points are
expected to lie exactly on the circle, so the default threshold is tight.
"""

from __future__ import annotations

from typing import Any, Optional

from ..models.circle import Circle
from ..models.circle_fitter import CircleFitter
from ..robust.config import DEFAULT_ROBUST_METHOD
from ..robust.estimator import RobustEstimator
from ..robust.types import RobustEstimatorMethod


class CircleRobustEstimator(RobustEstimator[Circle]):
    MINIMUM_SIZE = 3
    WEAK_MINIMUM_SIZE = 3
    DEFAULT_THRESHOLD = 1e-6
    DEFAULT_STOP_THRESHOLD = 1e-6
    _POINT_DIMS = (2,)

    def __init__(
            self,
            method: RobustEstimatorMethod = DEFAULT_ROBUST_METHOD,
            points: Optional[Any] = None,
            **kwargs: Any,
    ) -> None:
        data = None if points is None else (points,)
        super().__init__(method, data=data, **kwargs)

    def _make_fitter(self) -> CircleFitter:
        return CircleFitter()

    @property
    def points(self) -> Optional[Any]:
        return None if self._data is None else self._data[0]

    @points.setter
    def points(self, points: Any) -> None:
        self.set_points(points)
