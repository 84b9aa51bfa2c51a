# Andy Zhao
"""
Minimal-sample selection.

UniformSampler (RANSAC, LMedS, MSAC):
    every iteration draws `subset_size` distinct indices uniformly from [0, N).

ProgressiveSampler (PROSAC, PROMedS):
    Chum & Matas, "Matching with PROSAC - Progressive Sample Consensus", 2005.

    Correspondences are sorted by descending quality score. Early iterations
    sample only from a short prefix of the sorted list (the most trusted
    matches) and the prefix grows following the PROSAC growth function:

        T_m     = T_N * prod_{i=0}^{m-1} (m - i) / (N - i)
        T_{n+1} = T_n * (n + 1) / (n + 1 - m)
        T'_{n+1} = T'_n + ceil(T_{n+1} - T_n)

    where m is the minimal sample size, n the current prefix length and T_N the
    number of iterations after which sampling becomes uniform over all N items.

    While the prefix is "fresh" (t <= T'_n) the sample is forced to contain the
    newest item u_n plus m-1 items drawn from the first n-1. Once the schedule
    lags behind, m items are drawn from the whole prefix.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field

import numpy as np

from .types import FloatArray, IndexArray


@dataclass
class UniformSampler:
    n_total: int
    subset_size: int

    def __post_init__(self) -> None:
        if self.subset_size < 1:
            raise ValueError("subset_size must be >= 1")
        if self.n_total < self.subset_size:
            raise ValueError(f"need at least {self.subset_size} items to sample, got {self.n_total}")
        # Pre-allocate an array of indices for fast sampling
        self._all_idx = np.arange(self.n_total)

    def sample(self, rng: np.random.Generator, iteration: int) -> IndexArray:
        # Sample unique indices, no replacement
        return rng.choice(self._all_idx, size=self.subset_size, replace=False)


@dataclass
class ProgressiveSampler:
    quality_scores: FloatArray
    subset_size: int
    growth_horizon: int = 200000

    _order: IndexArray = field(init=False, repr=False)
    _n: int = field(init=False, repr=False)
    _t_n: float = field(init=False, repr=False)
    _t_n_prime: int = field(init=False, repr=False)

    def __post_init__(self) -> None:
        scores = np.asarray(self.quality_scores, dtype=np.float64)
        if scores.ndim != 1:
            raise ValueError(f"quality_scores must be 1D, got shape {scores.shape}")
        if self.subset_size < 1:
            raise ValueError("subset_size must be >= 1")
        if scores.shape[0] < self.subset_size:
            raise ValueError(f"need at least {self.subset_size} items to sample, got {scores.shape[0]}")
        if self.growth_horizon < 1:
            raise ValueError("growth_horizon must be >= 1")

        # Descending score, stable so equal scores keep their input order
        self._order = np.argsort(-scores, kind="stable")

        n_total = scores.shape[0]
        m = self.subset_size

        # T_m: expected number of samples drawn only from the top m items
        t_n = float(self.growth_horizon)
        for i in range(m):
            t_n *= (m - i) / (n_total - i)

        self._n = m
        self._t_n = t_n
        self._t_n_prime = 1

    @property
    def n_total(self) -> int:
        return int(self._order.shape[0])

    @property
    def prefix_size(self) -> int:
        """Length of the score-ordered prefix currently sampled from."""
        return self._n

    def _grow(self) -> None:
        m = self.subset_size
        t_next = self._t_n * (self._n + 1) / (self._n + 1 - m)
        self._t_n_prime += int(math.ceil(t_next - self._t_n))
        self._t_n = t_next
        self._n += 1

    def sample(self, rng: np.random.Generator, iteration: int) -> IndexArray:
        """
        Draw the minimal sample for 1-based iteration `iteration`.
        """
        t = int(iteration)
        if t > self._t_n_prime and self._n < self.n_total:
            self._grow()

        m = self.subset_size
        prefix = self._order[: self._n]

        if t <= self._t_n_prime and self._n > m:
            # Newest item u_n plus m-1 items from U_{n-1}
            rest = rng.choice(prefix[:-1], size=m - 1, replace=False)
            return np.append(rest, prefix[-1])

        return rng.choice(prefix, size=m, replace=False)
