"""Tests for uniform and progressive (PROSAC) sampling."""

import numpy as np
import pytest

from robustgeom.robust import ProgressiveSampler, UniformSampler


class TestUniformSampler:

    def test_distinct_indices_in_range(self, rng):
        sampler = UniformSampler(10, 4)
        for it in range(1, 50):
            idx = sampler.sample(rng, it)
            assert idx.shape == (4,)
            assert len(set(idx.tolist())) == 4
            assert idx.min() >= 0 and idx.max() < 10

    def test_too_few_items(self):
        with pytest.raises(ValueError):
            UniformSampler(2, 3)


class TestProgressiveSampler:

    def test_first_sample_is_top_scored(self, rng):
        scores = np.array([0.1, 0.9, 0.3, 0.8, 0.2, 0.7, 0.0])
        sampler = ProgressiveSampler(scores, 3, growth_horizon=1000)
        idx = sampler.sample(rng, 1)
        assert set(idx.tolist()) == {1, 3, 5}

    def test_prefix_grows_to_all_items(self, rng):
        scores = rng.uniform(size=30)
        sampler = ProgressiveSampler(scores, 4, growth_horizon=100)
        order = np.argsort(-scores, kind="stable")

        sizes = []
        for it in range(1, 2000):
            idx = sampler.sample(rng, it)
            allowed = set(order[: sampler.prefix_size].tolist())
            assert set(idx.tolist()) <= allowed
            assert len(set(idx.tolist())) == 4
            sizes.append(sampler.prefix_size)

        assert sizes == sorted(sizes)
        assert sizes[0] == 4
        assert sizes[-1] == 30

    def test_fresh_prefix_contains_newest_item(self, rng):
        scores = np.linspace(1.0, 0.0, 20)
        sampler = ProgressiveSampler(scores, 3, growth_horizon=50)
        # While sampling is growth-limited, the newest prefix item is forced in
        sampler.sample(rng, 1)
        idx = sampler.sample(rng, 2)
        assert sampler.prefix_size == 4
        assert 3 in idx.tolist()

    def test_invalid_scores(self):
        with pytest.raises(ValueError):
            ProgressiveSampler(np.zeros((3, 2)), 2)
        with pytest.raises(ValueError):
            ProgressiveSampler(np.zeros(2), 3)
