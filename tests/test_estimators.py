"""End-to-end estimation on synthetic data with 20% outliers, every model x every method, exact and noisy."""

import numpy as np
import pytest

from conftest import AFFINE_T, ALL_METHODS, N_INLIERS, RecordingListener, make_transform_data
from robustgeom.estimators import (
    AffineTransformation2DRobustEstimator, CircleRobustEstimator, EPnPPinholeCameraRobustEstimator,
    MetricTransformation2DRobustEstimator, ProjectiveTransformation2DRobustEstimator,
)
from robustgeom.models import Circle, PinholeCamera, apply_T
from robustgeom.robust import RobustEstimatorMethod


def _check_inliers(est):
    data = est.inliers_data
    assert data is not None
    assert data.num_inliers == N_INLIERS
    assert data.inliers[:N_INLIERS].all()
    assert not data.inliers[N_INLIERS:].any()


def _run(est, listener):
    est.seed = 2024
    model = est.estimate()
    assert listener.starts == 1
    assert listener.ends == 1
    assert 0 < len(listener.iterations) <= est.max_iterations
    assert not est.is_locked
    return model


@pytest.mark.parametrize("method", ALL_METHODS)
class TestEndToEnd:

    def test_circle(self, method, circle_data):
        listener = RecordingListener()
        est = CircleRobustEstimator.create(
            method, points=circle_data["points"], quality_scores=circle_data["scores"], listener=listener)
        assert est.is_ready()
        if not method.requires_quality_scores:
            assert est.quality_scores is None

        circle = _run(est, listener)

        assert isinstance(circle, Circle)
        assert np.allclose(circle.center, circle_data["center"], atol=1e-6)
        assert circle.radius == pytest.approx(circle_data["radius"], abs=1e-6)
        _check_inliers(est)

    def test_affine(self, method, affine_data):
        listener = RecordingListener()
        est = AffineTransformation2DRobustEstimator.create(
            method, input_points=affine_data["input_points"], output_points=affine_data["output_points"],
            quality_scores=affine_data["scores"], listener=listener)

        T = _run(est, listener)

        assert np.allclose(T, affine_data["T"], atol=1e-6)
        _check_inliers(est)

    def test_metric(self, method, metric_data):
        listener = RecordingListener()
        est = MetricTransformation2DRobustEstimator.create(
            method, input_points=metric_data["input_points"], output_points=metric_data["output_points"],
            quality_scores=metric_data["scores"], listener=listener)

        T = _run(est, listener)

        assert np.allclose(T, metric_data["T"], atol=1e-6)
        _check_inliers(est)

    def test_metric_weak_minimum(self, method, metric_data):
        listener = RecordingListener()
        est = MetricTransformation2DRobustEstimator.create(
            method, input_points=metric_data["input_points"], output_points=metric_data["output_points"],
            quality_scores=metric_data["scores"], listener=listener, weak_minimum_size_allowed=True)

        T = _run(est, listener)

        assert np.allclose(T, metric_data["T"], atol=1e-6)

    def test_projective(self, method, projective_data):
        listener = RecordingListener()
        est = ProjectiveTransformation2DRobustEstimator.create(
            method, input_points=projective_data["input_points"], output_points=projective_data["output_points"],
            quality_scores=projective_data["scores"], listener=listener)

        H = _run(est, listener)

        H_true = projective_data["T"]
        assert np.linalg.norm(H) == pytest.approx(1.0)
        assert np.allclose(H / H[2, 2], H_true / H_true[2, 2], atol=1e-6)
        _check_inliers(est)

    def test_epnp(self, method, camera_data):
        listener = RecordingListener()
        est = EPnPPinholeCameraRobustEstimator.create(
            method, points_3d=camera_data["points_3d"], points_2d=camera_data["points_2d"],
            intrinsic=camera_data["K"], quality_scores=camera_data["scores"], listener=listener)

        camera = _run(est, listener)

        expected = camera_data["camera"]
        assert isinstance(camera, PinholeCamera)
        assert np.allclose(camera.K, expected.K)
        assert np.allclose(camera.R, expected.R, atol=1e-5)
        assert np.allclose(camera.t, expected.t, atol=1e-4)
        assert np.allclose(camera.center, expected.center, atol=1e-4)
        _check_inliers(est)


# ---------- Noisy inliers ----------
NOISY_THRESHOLD = 2.5       # 5 sigma of the per-axis noise
NOISY_STOP_THRESHOLD = 1.0


def _noisy_threshold(method):
    return NOISY_STOP_THRESHOLD if method.is_median_based else NOISY_THRESHOLD


def _check_noisy_inliers(est):
    data = est.inliers_data
    assert data is not None and data.inliers is not None
    assert not data.inliers[N_INLIERS:].any()
    assert data.inliers[:N_INLIERS].sum() >= 0.9 * N_INLIERS


def _max_transfer_difference(T, T_true, pts):
    return float(np.max(np.linalg.norm(apply_T(T, pts) - apply_T(T_true, pts), axis=1)))


@pytest.mark.parametrize("method", ALL_METHODS)
class TestEndToEndNoisy:
    """Inliers carry 0.5 px gaussian noise, so models are only checked to sub-pixel accuracy."""

    def test_circle(self, method, noisy_circle_data):
        listener = RecordingListener()
        est = CircleRobustEstimator.create(
            method, points=noisy_circle_data["points"], quality_scores=noisy_circle_data["scores"],
            listener=listener, threshold=_noisy_threshold(method))

        circle = _run(est, listener)

        assert np.linalg.norm(circle.center - noisy_circle_data["center"]) < 0.3
        assert circle.radius == pytest.approx(noisy_circle_data["radius"], abs=0.3)
        _check_noisy_inliers(est)

    @pytest.mark.parametrize("estimator_cls, fixture", [
        (AffineTransformation2DRobustEstimator, "noisy_affine_data"),
        (MetricTransformation2DRobustEstimator, "noisy_metric_data"),
        (ProjectiveTransformation2DRobustEstimator, "noisy_projective_data"),
    ])
    def test_transformation(self, method, estimator_cls, fixture, request):
        data = request.getfixturevalue(fixture)
        listener = RecordingListener()
        est = estimator_cls.create(
            method, input_points=data["input_points"], output_points=data["output_points"],
            quality_scores=data["scores"], listener=listener, threshold=_noisy_threshold(method))

        T = _run(est, listener)

        assert _max_transfer_difference(T, data["T"], data["input_points"][:N_INLIERS]) < 1.0
        _check_noisy_inliers(est)

    def test_epnp(self, method, noisy_camera_data):
        listener = RecordingListener()
        est = EPnPPinholeCameraRobustEstimator.create(
            method, points_3d=noisy_camera_data["points_3d"], points_2d=noisy_camera_data["points_2d"],
            intrinsic=noisy_camera_data["K"], quality_scores=noisy_camera_data["scores"],
            listener=listener, threshold=_noisy_threshold(method))

        camera = _run(est, listener)

        pts3d = noisy_camera_data["points_3d"][:N_INLIERS]
        diff = camera.project(pts3d) - noisy_camera_data["camera"].project(pts3d)
        assert np.max(np.linalg.norm(diff, axis=1)) < 1.0
        _check_noisy_inliers(est)


@pytest.mark.parametrize("method", [RobustEstimatorMethod.LMEDS, RobustEstimatorMethod.PROMEDS])
@pytest.mark.parametrize("seed", [0, 1, 2, 3, 4])
def test_median_methods_keep_iterating_past_poor_hypotheses(method, seed):
    """
    With noisy inliers and a quarter of wrong matches the median-derived
    inlier threshold admits many points for a poor hypothesis. Default
    settings must still end on the true transformation.
    """
    rng = np.random.default_rng(seed)
    data = make_transform_data(AFFINE_T, rng, n_inliers=150, n_outliers=50, noise=0.5, min_offset=30.0)

    est = AffineTransformation2DRobustEstimator.create(
        method, input_points=data["input_points"], output_points=data["output_points"],
        quality_scores=data["scores"])
    est.seed = seed
    T = est.estimate()

    assert _max_transfer_difference(T, AFFINE_T, data["input_points"][:150]) < 1.0
    assert not est.inliers_data.inliers[150:].any()
