"""Tests for the geometric models and minimal solvers."""

import cv2
import numpy as np
import pytest

from robustgeom.models import (
    Circle, PinholeCamera, apply_T, fit_affine_minimal, fit_circle_3pts, fit_homography_dlt,
    fit_metric_least_squares, intrinsic_matrix, metric_to_params, normalize_homography,
    params_to_metric, reprojection_errors, solve_epnp,
)


class TestCircle:

    def test_circumcircle(self):
        pts = np.array([[3.0, 2.0], [1.0, 4.0], [-1.0, 2.0]])
        circle = fit_circle_3pts(pts)
        assert np.allclose(circle.center, [1.0, 2.0])
        assert circle.radius == pytest.approx(2.0)
        assert circle.is_locus(pts, 1e-12).all()

    def test_collinear(self):
        assert fit_circle_3pts(np.array([[0.0, 0.0], [1.0, 1.0], [2.0, 2.0]])) is None

    def test_distances(self):
        circle = Circle(center=np.array([0.0, 0.0]), radius=1.0)
        d = circle.signed_distance(np.array([[2.0, 0.0], [0.0, 0.5]]))
        assert np.allclose(d, [1.0, -0.5])
        assert circle.area == pytest.approx(np.pi)
        assert circle.perimeter == pytest.approx(2.0 * np.pi)

    def test_invalid(self):
        with pytest.raises(ValueError):
            Circle(center=np.zeros(3), radius=1.0)
        with pytest.raises(ValueError):
            Circle(center=np.zeros(2), radius=-1.0)


class TestTransforms:

    def test_affine_minimal(self):
        T = np.array([[2.0, 0.5, 3.0], [-0.5, 1.5, -1.0], [0.0, 0.0, 1.0]])
        pts0 = np.array([[0.0, 0.0], [10.0, 0.0], [0.0, 10.0]])
        assert np.allclose(fit_affine_minimal(pts0, apply_T(T, pts0)), T)

    def test_affine_degenerate(self):
        pts0 = np.array([[0.0, 0.0], [1.0, 1.0], [2.0, 2.0]])
        assert fit_affine_minimal(pts0, pts0) is None
        with pytest.raises(ValueError):
            fit_affine_minimal(np.zeros((4, 2)), np.zeros((4, 2)))

    def test_homography_dlt(self):
        H = np.array([[0.9, 0.05, 20.0], [-0.03, 1.1, 10.0], [1e-4, 2e-4, 1.0]])
        pts0 = np.array([[0.0, 0.0], [640.0, 0.0], [640.0, 480.0], [0.0, 480.0]])
        H_est = fit_homography_dlt(pts0, apply_T(H, pts0))
        assert np.linalg.norm(H_est) == pytest.approx(1.0)
        assert np.allclose(H_est, normalize_homography(H), atol=1e-9)

    def test_homography_degenerate(self):
        pts0 = np.array([[0.0, 0.0], [1.0, 1.0], [2.0, 2.0], [5.0, 0.0]])
        assert fit_homography_dlt(pts0, pts0 + 1.0) is None

    def test_metric(self):
        T = params_to_metric([1.5, 0.3, 4.0, -2.0])
        pts0 = np.array([[1.0, 2.0], [5.0, -1.0]])
        T_est = fit_metric_least_squares(pts0, apply_T(T, pts0))
        assert np.allclose(T_est, T)
        assert np.allclose(metric_to_params(T_est), [1.5, 0.3, 4.0, -2.0])

    def test_metric_coincident_points(self):
        pts0 = np.ones((3, 2))
        assert fit_metric_least_squares(pts0, pts0) is None


class TestPinhole:

    @pytest.fixture
    def camera(self):
        R, _ = cv2.Rodrigues(np.array([0.2, 0.1, -0.3]))
        return PinholeCamera(K=intrinsic_matrix(500.0, 500.0, 320.0, 240.0), R=R, t=np.array([0.0, 0.0, 5.0]))

    def test_projection_matches_opencv(self, camera, rng):
        pts3d = rng.uniform(-1.0, 1.0, size=(10, 3))
        expected, _ = cv2.projectPoints(pts3d, camera.rotation_vector, camera.t, camera.K, None)
        assert np.allclose(camera.project(pts3d), expected.reshape(-1, 2))
        assert camera.camera_matrix.shape == (3, 4)
        assert np.allclose(camera.R @ camera.center + camera.t, 0.0)

    def test_behind_camera_is_outlier(self, camera):
        pts3d = np.array([[0.0, 0.0, 0.0], [0.0, 0.0, -20.0]])
        e = reprojection_errors(camera, pts3d, camera.project(pts3d))
        assert np.allclose(e[0], 0.0)
        assert np.all(np.abs(e[1]) >= 1e11)

    def test_solve_epnp(self, camera, rng):
        pts3d = rng.uniform(-1.0, 1.0, size=(8, 3))
        est = solve_epnp(pts3d, camera.project(pts3d), camera.K)
        assert np.allclose(est.R, camera.R, atol=1e-5)
        assert np.allclose(est.t, camera.t, atol=1e-5)
        with pytest.raises(ValueError):
            solve_epnp(pts3d[:3], camera.project(pts3d[:3]), camera.K)
