import numpy as np

from robustgeom.estimators import AffineTransformation2DRobustEstimator
from robustgeom.models.affine import apply_T
from robustgeom.robust import EstimatorSettings, RobustEstimatorError, RobustEstimatorMethod
from robustgeom.utils import setup_logger


class ProgressPrinter:
    def on_estimate_start(self, estimator) -> None:
        print(f"[{estimator.method.value}] start")

    def on_estimate_end(self, estimator) -> None:
        print(f"[{estimator.method.value}] end")

    def on_estimate_next_iteration(self, estimator, iteration: int) -> None:
        pass

    def on_estimate_progress_change(self, estimator, progress: float) -> None:
        print(f"[{estimator.method.value}] progress {progress:.2f}")


def main() -> None:
    setup_logger()
    rng = np.random.default_rng(0)

    # True affine transform
    T_true = np.array(
        [[1.05, 0.02, 15.0],
         [-0.01, 0.98, -8.0],
         [0.0,  0.0,  1.0]],
        dtype=np.float64,
    )

    # Generate inlier points
    n_in = 200
    pts0 = rng.uniform([0, 0], [640, 480], size=(n_in, 2)).astype(np.float64)
    pts1 = apply_T(T_true, pts0)

    # Add Gaussian noise (pixel noise)
    pts1 += rng.normal(0.0, 0.8, size=pts1.shape)

    # Add outliers (wrong matches)
    n_out = 80
    o0 = rng.uniform([0, 0], [640, 480], size=(n_out, 2)).astype(np.float64)
    o1 = rng.uniform([0, 0], [640, 480], size=(n_out, 2)).astype(np.float64)

    pts0_all = np.vstack([pts0, o0]).astype(np.float64)
    pts1_all = np.vstack([pts1, o1]).astype(np.float64)

    # Matching quality: inliers look better than outliers, with some noise
    scores = np.concatenate([rng.uniform(0.5, 1.0, n_in), rng.uniform(0.0, 0.6, n_out)])

    print("T_true:\n", T_true)

    settings = EstimatorSettings(threshold=3.0, progress_delta=0.25, covariance_kept=True, seed=42)

    for method in RobustEstimatorMethod:
        est = AffineTransformation2DRobustEstimator.create(
            method,
            input_points=pts0_all,
            output_points=pts1_all,
            quality_scores=scores,
            listener=ProgressPrinter(),
            settings=settings,
        )

        try:
            T_est = est.estimate()
        except RobustEstimatorError:
            print(f"{method.value} failed.")
            continue

        inliers = est.inliers_data
        print(f"T_est ({method.value}):\n", T_est)
        print("num_inliers:", inliers.num_inliers, "/", pts0_all.shape[0])
        print("threshold:", inliers.threshold)
        if est.covariance is not None:
            print("param std:", np.sqrt(np.diag(est.covariance)))


if __name__ == "__main__":
    main()
