"""Shared fixtures: synthetic data with outliers and a recording listener."""

import cv2
import numpy as np
import pytest

from robustgeom.models.affine import apply_T
from robustgeom.models.pinhole import PinholeCamera, intrinsic_matrix
from robustgeom.robust import LockedError, RobustEstimatorMethod

ALL_METHODS = list(RobustEstimatorMethod)

N_INLIERS = 80
N_OUTLIERS = 20

# Per-axis pixel noise on inliers for the noisy_* fixtures
NOISE_SIGMA = 0.5


class RecordingListener:
    """Listener recording every callback, optionally running a hook inside each one."""

    def __init__(self, hook=None):
        self.hook = hook
        self.starts = 0
        self.ends = 0
        self.iterations = []
        self.progress = []
        self.hook_errors = []

    def _run_hook(self, estimator):
        if self.hook is not None:
            try:
                self.hook(estimator)
            except LockedError as e:
                self.hook_errors.append(e)

    def on_estimate_start(self, estimator):
        self.starts += 1
        assert estimator.is_locked
        self._run_hook(estimator)

    def on_estimate_end(self, estimator):
        self.ends += 1
        assert estimator.is_locked
        self._run_hook(estimator)

    def on_estimate_next_iteration(self, estimator, iteration):
        self.iterations.append(iteration)
        assert estimator.is_locked
        self._run_hook(estimator)

    def on_estimate_progress_change(self, estimator, progress):
        self.progress.append(progress)
        assert estimator.is_locked
        self._run_hook(estimator)


def quality_scores_for(n_inliers, n_outliers, rng):
    """Inliers score mostly higher than outliers, with overlap."""
    return np.concatenate([
        rng.uniform(0.4, 1.0, n_inliers),
        rng.uniform(0.0, 0.5, n_outliers),
    ])


@pytest.fixture
def rng():
    return np.random.default_rng(1234)


@pytest.fixture
def listener():
    return RecordingListener()


# ---------- Circle ----------
def _circle_data(rng, noise=0.0):
    center = np.array([12.0, -7.5])
    radius = 25.0

    angles = rng.uniform(0.0, 2.0 * np.pi, N_INLIERS)
    inliers = center + radius * np.column_stack([np.cos(angles), np.sin(angles)])

    # Off-circle points: radial offset of at least 3 units
    out_angles = rng.uniform(0.0, 2.0 * np.pi, N_OUTLIERS)
    out_radii = radius + rng.choice([-1.0, 1.0], N_OUTLIERS) * rng.uniform(3.0, 15.0, N_OUTLIERS)
    outliers = center + out_radii[:, None] * np.column_stack([np.cos(out_angles), np.sin(out_angles)])

    points = np.vstack([inliers, outliers])
    scores = quality_scores_for(N_INLIERS, N_OUTLIERS, rng)
    if noise > 0.0:
        points[:N_INLIERS] += rng.normal(0.0, noise, size=(N_INLIERS, 2))
    return dict(points=points, center=center, radius=radius, scores=scores)


@pytest.fixture
def circle_data(rng):
    """Points exactly on a circle plus points scattered off it."""
    return _circle_data(rng)


@pytest.fixture
def noisy_circle_data(rng):
    return _circle_data(rng, noise=NOISE_SIGMA)


# ---------- 2D transformations ----------
AFFINE_T = np.array(
    [[1.05, 0.02, 15.0],
     [-0.01, 0.98, -8.0],
     [0.0, 0.0, 1.0]],
)

_SCALE, _ANGLE = 1.2, np.deg2rad(20.0)
METRIC_T = np.array(
    [[_SCALE * np.cos(_ANGLE), -_SCALE * np.sin(_ANGLE), 30.0],
     [_SCALE * np.sin(_ANGLE), _SCALE * np.cos(_ANGLE), -12.0],
     [0.0, 0.0, 1.0]],
)

PROJECTIVE_H = np.array(
    [[0.9, 0.05, 20.0],
     [-0.03, 1.1, 10.0],
     [1e-4, 2e-4, 1.0]],
)


def make_transform_data(T_true, rng, n_inliers=N_INLIERS, n_outliers=N_OUTLIERS,
                        noise=0.0, min_offset=20.0):
    """
    Correspondences under T_true.

    The first n_inliers are true matches, with gaussian noise of the given
    sigma on the output side. The rest are wrong matches displaced by at
    least min_offset pixels per axis.
    """
    pts0 = rng.uniform([0.0, 0.0], [640.0, 480.0], size=(n_inliers, 2))
    pts1 = apply_T(T_true, pts0)

    o0 = rng.uniform([0.0, 0.0], [640.0, 480.0], size=(n_outliers, 2))
    offset = rng.uniform(min_offset, 80.0, size=(n_outliers, 2)) * rng.choice([-1.0, 1.0], size=(n_outliers, 2))
    o1 = apply_T(T_true, o0) + offset

    scores = quality_scores_for(n_inliers, n_outliers, rng)
    if noise > 0.0:
        pts1 = pts1 + rng.normal(0.0, noise, size=pts1.shape)

    return dict(
        input_points=np.vstack([pts0, o0]),
        output_points=np.vstack([pts1, o1]),
        T=T_true,
        scores=scores,
    )


@pytest.fixture
def affine_data(rng):
    return make_transform_data(AFFINE_T, rng)


@pytest.fixture
def noisy_affine_data(rng):
    return make_transform_data(AFFINE_T, rng, noise=NOISE_SIGMA)


@pytest.fixture
def metric_data(rng):
    return make_transform_data(METRIC_T, rng)


@pytest.fixture
def noisy_metric_data(rng):
    return make_transform_data(METRIC_T, rng, noise=NOISE_SIGMA)


def _projective_data(rng, noise=0.0):
    data = make_transform_data(PROJECTIVE_H, rng, noise=noise)
    data["T"] = PROJECTIVE_H / np.linalg.norm(PROJECTIVE_H)
    return data


@pytest.fixture
def projective_data(rng):
    return _projective_data(rng)


@pytest.fixture
def noisy_projective_data(rng):
    return _projective_data(rng, noise=NOISE_SIGMA)


# ---------- Camera ----------
def _camera_data(rng, noise=0.0):
    K = intrinsic_matrix(800.0, 780.0, 320.0, 240.0)
    R, _ = cv2.Rodrigues(np.array([0.1, -0.2, 0.05]))
    t = np.array([0.3, -0.1, 8.0])
    camera = PinholeCamera(K=K, R=R, t=t)

    pts3d = rng.uniform([-2.0, -2.0, -2.0], [2.0, 2.0, 2.0], size=(N_INLIERS + N_OUTLIERS, 3))
    pts2d = camera.project(pts3d)

    offset = rng.uniform(15.0, 60.0, size=(N_OUTLIERS, 2)) * rng.choice([-1.0, 1.0], size=(N_OUTLIERS, 2))
    pts2d[N_INLIERS:] += offset

    scores = quality_scores_for(N_INLIERS, N_OUTLIERS, rng)
    if noise > 0.0:
        pts2d[:N_INLIERS] += rng.normal(0.0, noise, size=(N_INLIERS, 2))

    return dict(
        points_3d=pts3d,
        points_2d=pts2d,
        camera=camera,
        K=K,
        scores=scores,
    )


@pytest.fixture
def camera_data(rng):
    """3D box points seen by a camera, with some 2D matches displaced."""
    return _camera_data(rng)


@pytest.fixture
def noisy_camera_data(rng):
    return _camera_data(rng, noise=NOISE_SIGMA)
