# Andy Zhao
"""
Candidate scoring and the per-method consensus policy.

Each robust method is a combination of
    - a sampler   (how minimal samples are drawn)
    - a scorer    (how a candidate is judged from its residuals)

    RANSAC  = UniformSampler     + InlierCountScorer
    MSAC    = UniformSampler     + TruncatedCostScorer
    LMEDS   = UniformSampler     + MedianScorer
    PROSAC  = ProgressiveSampler + InlierCountScorer
    PROMEDS = ProgressiveSampler + MedianScorer

Every scorer reports a "quality" where larger is better:
    inlier count                 -> quality = #inliers
    truncated cost               -> quality = -sum(min(r_i^2, threshold^2))
    median residual              -> quality = -median(r_i)

Ties are broken by the summed quality scores of the inliers (score-based
methods only, 0 otherwise), then by lower inlier RMS.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Protocol, Union

import numpy as np

from .sampling import ProgressiveSampler, UniformSampler
from .types import FloatArray, IndexArray, Mask, RobustEstimatorMethod

# Rousseeuw's consistency constant for a Gaussian: sigma ~= 1.4826 * MAD
LMEDS_STD_CONSTANT = 1.4826


@dataclass(frozen=True)
class CandidateScore:
    quality: float        # larger is better
    inliers: Mask         # inlier mask under this candidate
    num_inliers: int
    residuals: FloatArray
    threshold: float      # threshold used to classify inliers
    rms: float            # RMS residual over the inliers
    weight: float = 0.0   # summed quality scores of the inliers

    def rank(self) -> tuple[float, float, float]:
        return self.quality, self.weight, -self.rms


def _inlier_rms(residuals: FloatArray, inliers: Mask) -> float:
    if not inliers.any():
        return float("inf")
    inlier_err = residuals[inliers]
    return float(np.sqrt(np.mean(inlier_err * inlier_err)))


def _classify(residuals: FloatArray, threshold: float) -> tuple[Mask, int, float]:
    inliers: Mask = residuals <= threshold
    return inliers, int(np.count_nonzero(inliers)), _inlier_rms(residuals, inliers)


# ---------- Scorers ----------
class Scorer(Protocol):
    def score(self, residuals: FloatArray, subset_size: int) -> CandidateScore: ...

    def should_stop(self, best: CandidateScore) -> bool: ...

    def support(self, best: CandidateScore) -> int: ...


@dataclass(frozen=True)
class InlierCountScorer:
    """RANSAC / PROSAC: count residuals under a fixed threshold."""
    threshold: float

    def score(self, residuals: FloatArray, subset_size: int) -> CandidateScore:
        inliers, num_inliers, rms = _classify(residuals, self.threshold)
        return CandidateScore(
            quality=float(num_inliers),
            inliers=inliers,
            num_inliers=num_inliers,
            residuals=residuals,
            threshold=self.threshold,
            rms=rms,
        )

    def should_stop(self, best: CandidateScore) -> bool:
        return False

    def support(self, best: CandidateScore) -> int:
        return best.num_inliers


@dataclass(frozen=True)
class TruncatedCostScorer:
    """
    MSAC: inliers contribute their squared residual, outliers a constant penalty.

        cost = sum_i min(r_i^2, threshold^2)
    """
    threshold: float

    def score(self, residuals: FloatArray, subset_size: int) -> CandidateScore:
        inliers, num_inliers, rms = _classify(residuals, self.threshold)
        cost = float(np.sum(np.minimum(residuals * residuals, self.threshold * self.threshold)))
        return CandidateScore(
            quality=-cost,
            inliers=inliers,
            num_inliers=num_inliers,
            residuals=residuals,
            threshold=self.threshold,
            rms=rms,
        )

    def should_stop(self, best: CandidateScore) -> bool:
        return False

    def support(self, best: CandidateScore) -> int:
        return best.num_inliers


@dataclass(frozen=True)
class MedianScorer:
    """
    LMedS / PROMedS: minimize the median residual, no threshold required.

    Inliers are then classified with a threshold estimated from the median
    (Rousseeuw & Leroy, small-sample corrected):

        sigma     = 1.4826 * (1 + 5 / (N - m)) * median
        threshold = max(inlier_factor * sigma, stop_threshold)

    The loop stops as soon as the best median drops to stop_threshold.

    The estimated threshold grows with the median, so a poor hypothesis
    would count almost every point as an inlier. The iteration bound uses
    the residuals within stop_threshold instead.
    """
    stop_threshold: float
    inlier_factor: float

    def score(self, residuals: FloatArray, subset_size: int) -> CandidateScore:
        n = residuals.shape[0]
        median = float(np.median(residuals))

        correction = 1.0 + 5.0 / (n - subset_size) if n > subset_size else 1.0
        sigma = LMEDS_STD_CONSTANT * correction * median
        threshold = max(self.inlier_factor * sigma, self.stop_threshold)

        inliers, num_inliers, rms = _classify(residuals, threshold)
        return CandidateScore(
            quality=-median,
            inliers=inliers,
            num_inliers=num_inliers,
            residuals=residuals,
            threshold=threshold,
            rms=rms,
        )

    def should_stop(self, best: CandidateScore) -> bool:
        return -best.quality <= self.stop_threshold

    def support(self, best: CandidateScore) -> int:
        return int(np.count_nonzero(best.residuals <= self.stop_threshold))


# ---------- Policy ----------
Sampler = Union[UniformSampler, ProgressiveSampler]


@dataclass
class ConsensusPolicy:
    """
    Strategy object driven by the consensus loop:
        sample_indices -> score_candidate -> is_better -> should_stop
    """
    method: RobustEstimatorMethod
    sampler: Sampler
    scorer: Scorer
    quality_scores: Optional[FloatArray] = None

    def sample_indices(self, rng: np.random.Generator, iteration: int) -> IndexArray:
        return self.sampler.sample(rng, iteration)

    def score_candidate(self, residuals: FloatArray, subset_size: int) -> CandidateScore:
        # NaN residuals (e.g. points mapped to infinity) never count as inliers
        residuals = np.nan_to_num(np.asarray(residuals, dtype=np.float64), nan=np.inf)
        score = self.scorer.score(residuals, subset_size)
        if self.quality_scores is None:
            return score

        weight = float(np.sum(self.quality_scores[score.inliers]))
        return CandidateScore(
            quality=score.quality,
            inliers=score.inliers,
            num_inliers=score.num_inliers,
            residuals=score.residuals,
            threshold=score.threshold,
            rms=score.rms,
            weight=weight,
        )

    @staticmethod
    def is_better(candidate: CandidateScore, best: Optional[CandidateScore]) -> bool:
        # Primary criterion: quality; ties go to weight, then lower RMS
        return best is None or candidate.rank() > best.rank()

    def should_stop(self, best: CandidateScore) -> bool:
        return self.scorer.should_stop(best)

    def support(self, best: CandidateScore) -> int:
        """Correspondences counted as inliers by the adaptive iteration bound."""
        return self.scorer.support(best)


def build_policy(
        method: RobustEstimatorMethod,
        *,
        n_total: int,
        subset_size: int,
        threshold: float,
        inlier_factor: float,
        max_iterations: int,
        quality_scores: Optional[FloatArray] = None,
) -> ConsensusPolicy:
    """
    Compose the sampler and scorer implementing `method`.

    quality_scores must be provided (and aligned with the data) for PROSAC/PROMedS;
    they are ignored by the other methods.
    """
    scores: Optional[FloatArray] = None
    if method.requires_quality_scores:
        if quality_scores is None:
            raise ValueError(f"{method.name} requires quality scores")
        scores = np.asarray(quality_scores, dtype=np.float64)
        if scores.shape != (n_total,):
            raise ValueError(f"expected {n_total} quality scores, got shape {scores.shape}")
        sampler: Sampler = ProgressiveSampler(scores, subset_size, growth_horizon=max_iterations)
    else:
        sampler = UniformSampler(n_total, subset_size)

    scorer: Scorer
    if method.is_median_based:
        scorer = MedianScorer(stop_threshold=threshold, inlier_factor=inlier_factor)
    elif method is RobustEstimatorMethod.MSAC:
        scorer = TruncatedCostScorer(threshold=threshold)
    else:
        scorer = InlierCountScorer(threshold=threshold)

    return ConsensusPolicy(method=method, sampler=sampler, scorer=scorer, quality_scores=scores)
