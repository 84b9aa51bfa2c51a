# Andy Zhao
"""
Generic consensus loop (model-agnostic, method-agnostic).

Overview:
- Draw a *minimal* subset of correspondences (policy sampler)
- Fit candidate model(s) from that subset (model fitter)
- Score all correspondences by computing residual errors (policy scorer)
- Keep the candidate with the best quality
- Re-estimate how many iterations are still needed for the desired confidence

Uses the ModelFitter Protocol from types.py and the ConsensusPolicy from
scoring.py, so the same loop runs RANSAC, LMedS, MSAC, PROSAC and PROMedS
for circles, 2D transforms and pinhole cameras alike.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Generic, Optional, TypeVar
import logging

import numpy as np

from .config import MIN_ITERATIONS
from .errors import RobustEstimatorError
from .scoring import CandidateScore, ConsensusPolicy
from .types import Correspondences, ModelFitter, subset

M = TypeVar("M")

logger = logging.getLogger(__name__)

IterationCallback = Callable[[int], None]
ProgressCallback = Callable[[float], None]


def required_iterations(
        *,
        confidence: float,
        inlier_ratio: float,
        sample_size: int,
        max_iterations: int,
) -> int:
    """
    Compute the number of iterations needed so that the probability
    of having drawn at least ONE all-inlier minimal sample is >= confidence.

    inlier ratio w = (# inliers) / N, Minimal sample s = sample_size,
    - P(all-inliers) = w^s
    - P(not-all-inliers) = 1 - w^s
    - P(not-all-inlier-for-k-times) = (1 - w^s)^k
    - P(at-least-once-all-inliers) = 1 - (1 - w^s)^k >= p
    - k >= log(1-p)/log(1-w^s)

    Result is clamped to [MIN_ITERATIONS, max_iterations].

    Edge cases:
     - w == 0  -> impossible, return max_iterations
     - w == 1  -> MIN_ITERATIONS is enough
    """
    if sample_size <= 0:
        raise ValueError("sample_size must be >= 1")
    if max_iterations < MIN_ITERATIONS:
        raise ValueError(f"max_iterations must be >= {MIN_ITERATIONS}")

    # Clamp inputs to avoid log(0)
    p = float(np.clip(confidence, 1e-12, 1.0 - 1e-12))
    w = float(np.clip(inlier_ratio, 0.0, 1.0))

    # If w == 1, every point is an inlier
    if w >= 1.0:
        return MIN_ITERATIONS

    # If w == 0, unable to draw an all-inlier sample
    if w <= 0.0:
        return max_iterations

    # Probability a minimal sample is all inliers:
    # if w^s is extremely tiny, log(1 - w^s) close to 0
    w_to_s = float(np.clip(w ** sample_size, 1e-12, 1.0 - 1e-12))

    k = np.ceil(np.log(1.0 - p) / np.log(1.0 - w_to_s))
    return int(min(max(k, MIN_ITERATIONS), max_iterations))


# ---------- Loop output container ----------
@dataclass(frozen=True)
class ConsensusResult(Generic[M]):
    model: M                  # best model found
    score: CandidateScore     # its inliers, residuals and quality
    iterations: int           # how many iterations were actually run


def run_consensus(
        model_fitter: ModelFitter[M],
        data: Correspondences,
        policy: ConsensusPolicy,
        *,
        subset_size: int,
        confidence: float,
        max_iterations: int,
        progress_delta: float,
        rng: np.random.Generator,
        on_iteration: Optional[IterationCallback] = None,
        on_progress: Optional[ProgressCallback] = None,
) -> ConsensusResult[M]:
    """
    Run the consensus loop over `data`.

    Inputs:
    - model_fitter: provides fit_minimal and residuals
    - data: aligned correspondence arrays (same N)
    - policy: sampling + scoring strategy of the robust method
    - subset_size: minimal number of correspondences per sample
    - confidence: desired probability of one all-inlier sample
    - max_iterations: upper bound of iterations
    - progress_delta: minimum change between two progress notifications
    - rng: random generator used for sampling
    - on_iteration / on_progress: listener hooks

    Returns:
    - ConsensusResult with the best model and its score.

    Raises RobustEstimatorError if no candidate was ever accepted.
    """
    # ---------- Input validation ----------
    if not data:
        raise ValueError("data must contain at least one array")
    n = data[0].shape[0]
    if any(arr.shape[0] != n for arr in data):
        raise ValueError(f"all arrays must have the same length, got {[arr.shape[0] for arr in data]}")
    if n < subset_size:
        raise ValueError(f"need at least {subset_size} correspondences, got {n}")

    # Track the best hypothesis
    best_model: Optional[M] = None
    best_score: Optional[CandidateScore] = None

    target_iters = max_iterations
    iters_run = 0
    last_progress = 0.0
    stopped_early = False

    # ---------- Main Loop ----------
    # Keep looping until min(target_iters, max_iters)
    while iters_run < max_iterations and iters_run < target_iters:
        iters_run += 1

        sample_idx = policy.sample_indices(rng, iters_run)

        # Fit model(s) from minimal set, empty if degenerate
        try:
            candidates = model_fitter.fit_minimal(subset(data, sample_idx))
        except np.linalg.LinAlgError:
            candidates = []

        improved = False
        for model in candidates:
            # Compute residuals for all correspondences (shape: (N,))
            err = model_fitter.residuals(model, data)
            score = policy.score_candidate(err, subset_size)

            if score.num_inliers < subset_size:
                # Not enough inliers to be meaningful
                continue

            if policy.is_better(score, best_score):
                best_model = model
                best_score = score
                improved = True

        if improved and best_score is not None:
            # Inlier ratio from current best (median methods: residuals within stop threshold)
            w = policy.support(best_score) / float(n)

            # Compute iterations needed to reach the confidence
            iter_needed = required_iterations(
                confidence=confidence,
                inlier_ratio=w,
                sample_size=subset_size,
                max_iterations=max_iterations,
            )
            target_iters = min(target_iters, max(iter_needed, iters_run))
            logger.debug(
                "%s better model: quality=%.6g inliers=%d/%d w=%.3f target_iters=%d",
                policy.method.name, best_score.quality, best_score.num_inliers, n, w, target_iters,
            )

        if on_iteration is not None:
            on_iteration(iters_run)

        if on_progress is not None:
            progress = min(1.0, iters_run / float(target_iters))
            if progress - last_progress >= progress_delta:
                last_progress = progress
                on_progress(progress)

        if best_score is not None and policy.should_stop(best_score):
            stopped_early = True
            break

    # If valid model not found, fail
    if best_model is None or best_score is None:
        raise RobustEstimatorError(
            f"{policy.method.name} could not find a valid model after {iters_run} iterations")

    logger.debug(
        "%s finished: iterations=%d inliers=%d/%d%s",
        policy.method.name, iters_run, best_score.num_inliers, n,
        " (stop threshold reached)" if stopped_early else "",
    )

    return ConsensusResult(model=best_model, score=best_score, iterations=iters_run)
