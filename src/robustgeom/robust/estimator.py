# Andy Zhao
"""
Robust estimator base class: configuration surface + locking state machine.

A RobustEstimator owns
    - the correspondence arrays (stored by reference, never copied)
    - optional quality scores (PROSAC / PROMedS)
    - an EstimatorSettings instance (see config.py)
    - an optional listener

and runs the consensus loop of core.py with the policy of its method.

State machine:

    IDLE --estimate()--> LOCKED --(return / raise)--> IDLE

While LOCKED every setter, and estimate() itself, raises LockedError.
Getters stay available, so listeners can read state from their callbacks.

Model families subclass this and provide:
    MINIMUM_SIZE / WEAK_MINIMUM_SIZE   minimal sample sizes
    DEFAULT_THRESHOLD / DEFAULT_STOP_THRESHOLD
    _POINT_DIMS                        columns of each correspondence array
    _make_fitter()                     ModelFitter bound to the current config
"""

from __future__ import annotations

from dataclasses import replace
from typing import Any, ClassVar, Generic, Optional, Sequence, TypeVar
import logging

import numpy as np

from .config import DEFAULT_ROBUST_METHOD, EstimatorSettings
from .core import run_consensus
from .errors import LockedError, NotReadyError
from .refinement import refine_model
from .scoring import build_policy
from .types import (
    Correspondences, FloatArray, InliersData, ModelFitter,
    RobustEstimatorListener, RobustEstimatorMethod,
)

M = TypeVar("M")

logger = logging.getLogger(__name__)


class RobustEstimator(Generic[M]):
    MINIMUM_SIZE: ClassVar[int] = 1
    WEAK_MINIMUM_SIZE: ClassVar[int] = 1
    DEFAULT_THRESHOLD: ClassVar[float] = 1.0
    DEFAULT_STOP_THRESHOLD: ClassVar[float] = 1.0
    DEFAULT_ROBUST_METHOD: ClassVar[RobustEstimatorMethod] = DEFAULT_ROBUST_METHOD

    # Number of columns of each aligned correspondence array, e.g. (2, 2)
    _POINT_DIMS: ClassVar[tuple[int, ...]] = (2,)

    def __init__(
            self,
            method: RobustEstimatorMethod = DEFAULT_ROBUST_METHOD,
            *,
            data: Optional[Sequence[Any]] = None,
            quality_scores: Optional[Any] = None,
            listener: Optional[RobustEstimatorListener] = None,
            weak_minimum_size_allowed: bool = False,
            settings: Optional[EstimatorSettings] = None,
            threshold: Optional[float] = None,
    ) -> None:
        self._method = RobustEstimatorMethod(method)
        self._listener = listener
        self._weak_minimum_size_allowed = bool(weak_minimum_size_allowed)

        if settings is None:
            default_threshold = (self.DEFAULT_STOP_THRESHOLD if self._method.is_median_based
                                 else self.DEFAULT_THRESHOLD)
            settings = EstimatorSettings(threshold=default_threshold)
        if threshold is not None:
            settings = replace(settings, threshold=float(threshold))
        self._settings = settings

        self._data: Optional[tuple[Any, ...]] = None
        self._quality_scores: Optional[Any] = None
        self._inliers_data: Optional[InliersData] = None
        self._covariance: Optional[FloatArray] = None
        self._locked = False

        if data is not None:
            self._internal_set_points(tuple(data))
        if quality_scores is not None:
            self._internal_set_quality_scores(quality_scores)

    # ---------- Factory ----------
    @classmethod
    def create(cls, method: Optional[RobustEstimatorMethod] = None, **kwargs: Any) -> "RobustEstimator[M]":
        """Build an estimator of this model family for `method` (see factory.py)."""
        from .factory import create_estimator
        return create_estimator(cls, method, **kwargs)

    # ---------- Hooks for model families ----------
    def _make_fitter(self) -> ModelFitter[M]:
        raise NotImplementedError

    def _is_model_ready(self) -> bool:
        """Extra readiness requirements of a model family (e.g. known intrinsics)."""
        return True

    # ---------- Locking ----------
    @property
    def is_locked(self) -> bool:
        return self._locked

    def _check_unlocked(self) -> None:
        if self._locked:
            raise LockedError()

    def _update_settings(self, **changes: Any) -> None:
        self._check_unlocked()
        # replace() re-runs validation, so a bad value leaves settings untouched
        self._settings = replace(self._settings, **changes)

    # ---------- Queries ----------
    @property
    def method(self) -> RobustEstimatorMethod:
        return self._method

    @property
    def settings(self) -> EstimatorSettings:
        return self._settings

    @property
    def minimum_points(self) -> int:
        return self.WEAK_MINIMUM_SIZE if self._weak_minimum_size_allowed else self.MINIMUM_SIZE

    @property
    def data(self) -> Optional[tuple[Any, ...]]:
        """Correspondence arrays exactly as they were provided."""
        return self._data

    @property
    def inliers_data(self) -> Optional[InliersData]:
        return self._inliers_data

    @property
    def covariance(self) -> Optional[FloatArray]:
        return self._covariance

    def is_ready(self) -> bool:
        if self._data is None:
            return False
        n = len(self._data[0])
        if n < self.minimum_points:
            return False
        if self._method.requires_quality_scores:
            if self._quality_scores is None or len(self._quality_scores) != n:
                return False
        return self._is_model_ready()

    # ---------- Points ----------
    def set_points(self, *arrays: Any) -> None:
        """
        Set the correspondence arrays (one per column group of the model family).

        Arrays are validated but stored as given, so getters return the very
        same objects. Previously computed inliers are discarded.
        """
        self._check_unlocked()
        self._internal_set_points(arrays)

    def _internal_set_points(self, arrays: tuple[Any, ...]) -> None:
        if len(arrays) != len(self._POINT_DIMS):
            raise ValueError(f"expected {len(self._POINT_DIMS)} point arrays, got {len(arrays)}")

        lengths = []
        for arr, dims in zip(arrays, self._POINT_DIMS):
            if arr is None:
                raise ValueError("point arrays must not be None")
            shape = np.shape(arr)
            if len(shape) != 2 or shape[1] != dims:
                raise ValueError(f"Expected points shape (N,{dims}), got {shape}")
            lengths.append(shape[0])

        if len(set(lengths)) != 1:
            raise ValueError(f"point arrays must have the same length, got {lengths}")
        if lengths[0] < self.minimum_points:
            raise ValueError(f"at least {self.minimum_points} points are required, got {lengths[0]}")

        self._data = tuple(arrays)
        self._inliers_data = None

    # ---------- Quality scores ----------
    @property
    def quality_scores(self) -> Optional[Any]:
        """Quality scores, only kept by PROSAC / PROMedS (None otherwise)."""
        return self._quality_scores

    @quality_scores.setter
    def quality_scores(self, quality_scores: Any) -> None:
        self._check_unlocked()
        self._internal_set_quality_scores(quality_scores)

    def _internal_set_quality_scores(self, quality_scores: Any) -> None:
        if not self._method.requires_quality_scores:
            # Methods without score-guided sampling ignore them
            return

        shape = np.shape(quality_scores)
        if len(shape) != 1:
            raise ValueError(f"quality scores must be 1D, got shape {shape}")
        if shape[0] < self.minimum_points:
            raise ValueError(f"at least {self.minimum_points} quality scores are required, got {shape[0]}")
        if self._data is not None and shape[0] != len(self._data[0]):
            raise ValueError(f"expected {len(self._data[0])} quality scores, got {shape[0]}")
        self._quality_scores = quality_scores

    # ---------- Listener ----------
    @property
    def listener(self) -> Optional[RobustEstimatorListener]:
        return self._listener

    @listener.setter
    def listener(self, listener: Optional[RobustEstimatorListener]) -> None:
        self._check_unlocked()
        self._listener = listener

    @property
    def is_listener_available(self) -> bool:
        return self._listener is not None

    # ---------- Weak minimum size ----------
    @property
    def weak_minimum_size_allowed(self) -> bool:
        return self._weak_minimum_size_allowed

    @weak_minimum_size_allowed.setter
    def weak_minimum_size_allowed(self, allowed: bool) -> None:
        self._check_unlocked()
        self._weak_minimum_size_allowed = bool(allowed)

    # ---------- Settings ----------
    @property
    def progress_delta(self) -> float:
        return self._settings.progress_delta

    @progress_delta.setter
    def progress_delta(self, value: float) -> None:
        self._update_settings(progress_delta=float(value))

    @property
    def confidence(self) -> float:
        return self._settings.confidence

    @confidence.setter
    def confidence(self, value: float) -> None:
        self._update_settings(confidence=float(value))

    @property
    def max_iterations(self) -> int:
        return self._settings.max_iterations

    @max_iterations.setter
    def max_iterations(self, value: int) -> None:
        self._update_settings(max_iterations=value)

    @property
    def threshold(self) -> float:
        return self._settings.threshold

    @threshold.setter
    def threshold(self, value: float) -> None:
        self._update_settings(threshold=float(value))

    # LMedS / PROMedS name for the same setting
    stop_threshold = threshold

    @property
    def inlier_factor(self) -> float:
        return self._settings.inlier_factor

    @inlier_factor.setter
    def inlier_factor(self, value: float) -> None:
        self._update_settings(inlier_factor=float(value))

    @property
    def result_refined(self) -> bool:
        return self._settings.result_refined

    @result_refined.setter
    def result_refined(self, value: bool) -> None:
        self._update_settings(result_refined=bool(value))

    @property
    def covariance_kept(self) -> bool:
        return self._settings.covariance_kept

    @covariance_kept.setter
    def covariance_kept(self, value: bool) -> None:
        self._update_settings(covariance_kept=bool(value))

    @property
    def compute_and_keep_inliers(self) -> bool:
        return self._settings.compute_and_keep_inliers

    @compute_and_keep_inliers.setter
    def compute_and_keep_inliers(self, value: bool) -> None:
        self._update_settings(compute_and_keep_inliers=bool(value))

    @property
    def compute_and_keep_residuals(self) -> bool:
        return self._settings.compute_and_keep_residuals

    @compute_and_keep_residuals.setter
    def compute_and_keep_residuals(self, value: bool) -> None:
        self._update_settings(compute_and_keep_residuals=bool(value))

    @property
    def seed(self) -> Optional[int]:
        return self._settings.seed

    @seed.setter
    def seed(self, value: Optional[int]) -> None:
        self._update_settings(seed=value)

    # ---------- Listener notifications ----------
    def _notify_start(self) -> None:
        if self._listener is not None:
            self._listener.on_estimate_start(self)

    def _notify_end(self) -> None:
        if self._listener is not None:
            self._listener.on_estimate_end(self)

    def _notify_iteration(self, iteration: int) -> None:
        if self._listener is not None:
            self._listener.on_estimate_next_iteration(self, iteration)

    def _notify_progress(self, progress: float) -> None:
        if self._listener is not None:
            self._listener.on_estimate_progress_change(self, progress)

    # ---------- Estimation ----------
    def _as_arrays(self) -> Correspondences:
        assert self._data is not None
        return tuple(np.asarray(arr, dtype=np.float64) for arr in self._data)

    def _keeps_inliers_data(self) -> tuple[bool, bool]:
        """(keep mask, keep residuals) after estimate()."""
        if self._method in (RobustEstimatorMethod.RANSAC, RobustEstimatorMethod.PROSAC):
            s = self._settings
            return (s.compute_and_keep_inliers or s.result_refined,
                    s.compute_and_keep_residuals or s.result_refined)
        return True, True

    def estimate(self) -> M:
        """
        Run the robust estimation.

        Raises:
          LockedError           if an estimation is already running
          NotReadyError         if is_ready() is False
          RobustEstimatorError  if no model could be accepted
        """
        self._check_unlocked()
        if not self.is_ready():
            raise NotReadyError()

        self._locked = True
        try:
            self._inliers_data = None
            self._covariance = None
            self._notify_start()

            settings = self._settings
            data = self._as_arrays()
            fitter = self._make_fitter()
            subset_size = self.minimum_points

            policy = build_policy(
                self._method,
                n_total=data[0].shape[0],
                subset_size=subset_size,
                threshold=settings.threshold,
                inlier_factor=settings.inlier_factor,
                max_iterations=settings.max_iterations,
                quality_scores=self._quality_scores,
            )

            result = run_consensus(
                fitter,
                data,
                policy,
                subset_size=subset_size,
                confidence=settings.confidence,
                max_iterations=settings.max_iterations,
                progress_delta=settings.progress_delta,
                rng=np.random.default_rng(settings.seed),
                on_iteration=self._notify_iteration,
                on_progress=self._notify_progress,
            )

            score = result.score
            keep_inliers, keep_residuals = self._keeps_inliers_data()
            self._inliers_data = InliersData(
                inliers=score.inliers if keep_inliers else None,
                residuals=score.residuals if keep_residuals else None,
                num_inliers=score.num_inliers,
                threshold=score.threshold,
            )

            model = self._attempt_refine(fitter, result.model, data, score.inliers, score.threshold)

            self._notify_end()
            return model
        finally:
            self._locked = False

    def _attempt_refine(
            self,
            fitter: ModelFitter[M],
            model: M,
            data: Correspondences,
            inliers: np.ndarray,
            standard_deviation: float,
    ) -> M:
        if not self._settings.result_refined:
            return model

        try:
            refined = refine_model(
                fitter, model, data, inliers,
                standard_deviation=standard_deviation,
                keep_covariance=self._settings.covariance_kept,
            )
        except (ValueError, np.linalg.LinAlgError) as e:
            # refinement failed, so we return input value
            logger.debug("refinement skipped: %s", e)
            return model

        if self._settings.covariance_kept:
            self._covariance = refined.covariance
        return refined.model
