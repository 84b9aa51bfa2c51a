# Andy Zhao
"""
Robust pinhole camera pose estimator (EPnP) from 3D-2D correspondences.

Intrinsics must be known:

    est = EPnPPinholeCameraRobustEstimator(RobustEstimatorMethod.PROSAC,
                                           points_3d=X, points_2d=x,
                                           intrinsic=K, quality_scores=scores)
    camera = est.estimate()     # PinholeCamera(K, R, t)

EPnP itself works from 4 correspondences; by default 6 are drawn per sample.
"""

from __future__ import annotations

from typing import Any, Optional

import numpy as np

from ..models.epnp_fitter import EPnPFitter
from ..models.pinhole import PinholeCamera, validate_intrinsic
from ..robust.config import DEFAULT_ROBUST_METHOD
from ..robust.estimator import RobustEstimator
from ..robust.types import Mat3x3, RobustEstimatorMethod


class EPnPPinholeCameraRobustEstimator(RobustEstimator[PinholeCamera]):
    MINIMUM_SIZE = 6
    WEAK_MINIMUM_SIZE = 4
    DEFAULT_THRESHOLD = 1.0
    DEFAULT_STOP_THRESHOLD = 1.0
    _POINT_DIMS = (3, 2)

    def __init__(
            self,
            method: RobustEstimatorMethod = DEFAULT_ROBUST_METHOD,
            points_3d: Optional[Any] = None,
            points_2d: Optional[Any] = None,
            *,
            intrinsic: Optional[Any] = None,
            **kwargs: Any,
    ) -> None:
        self._intrinsic: Optional[Mat3x3] = None
        if intrinsic is not None:
            self._intrinsic = validate_intrinsic(intrinsic)

        data = None
        if points_3d is not None or points_2d is not None:
            data = (points_3d, points_2d)
        super().__init__(method, data=data, **kwargs)

    def _make_fitter(self) -> EPnPFitter:
        assert self._intrinsic is not None
        return EPnPFitter(intrinsic=self._intrinsic)

    def _is_model_ready(self) -> bool:
        return self._intrinsic is not None

    @property
    def points_3d(self) -> Optional[Any]:
        return None if self._data is None else self._data[0]

    @property
    def points_2d(self) -> Optional[Any]:
        return None if self._data is None else self._data[1]

    @property
    def intrinsic(self) -> Optional[Mat3x3]:
        return self._intrinsic

    @intrinsic.setter
    def intrinsic(self, intrinsic: Any) -> None:
        self._check_unlocked()
        self._intrinsic = validate_intrinsic(np.asarray(intrinsic))
