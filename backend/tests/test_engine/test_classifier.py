"""Tests for the size classifier."""

from __future__ import annotations

import pytest

from mondrian.engine.classifier import block_weight, classify, weight_from_outputs
from tests.conftest import TIER_WEIGHTS


class TestClassify:
    @pytest.mark.parametrize("weight", [0, None, -5, 0.0])
    def test_degenerate_weights_are_tier_one(self, weight):
        assert classify(weight) == 1

    def test_small_weights_floor_at_one(self):
        assert classify(1) == 1
        assert classify(123) == 1
        assert classify(999_999) == 1

    @pytest.mark.parametrize("tier", sorted(TIER_WEIGHTS))
    def test_known_tiers(self, tier):
        assert classify(TIER_WEIGHTS[tier]) == tier

    def test_unbounded_by_default(self):
        # ceil(log10(5e14)) - 5 = 15 - 5
        assert classify(5e14) == 10

    def test_max_tier_caps(self):
        assert classify(5e14, max_tier=3) == 3
        assert classify(TIER_WEIGHTS[2], max_tier=3) == 2

    def test_never_below_one_even_with_tiny_cap(self):
        assert classify(5e14, max_tier=0) == 1

    def test_monotonic(self):
        weights = sorted([0, 1, 7, 99, 1e5, 1e5 + 1, 3e6, 1e7, 4.2e7, 9e8, 1e9 + 1, 6e10, 2e13])
        tiers = [classify(w) for w in weights]
        assert tiers == sorted(tiers)

    def test_custom_offset(self):
        assert classify(5_000, offset=0) == 4

    def test_nan_is_tier_one(self):
        assert classify(float("nan")) == 1
        assert classify(float("nan"), max_tier=4) == 1

    def test_infinite_weight_takes_the_cap(self):
        assert classify(float("inf"), max_tier=4) == 4
        assert classify(float("inf"), max_tier=0) == 1

    def test_infinite_weight_uncapped_is_largest_finite_tier(self):
        # ceil(log10(1.79e308)) - 5 = 309 - 5
        assert classify(float("inf")) == 304
        assert classify(float("inf")) == classify(1.7e308)

    def test_overflowing_output_sum(self):
        weight = weight_from_outputs([{"value": 1e308}, {"value": 1e308}])
        assert classify(weight, max_tier=5) == 5


class TestWeights:
    def test_sum_of_output_values(self):
        assert weight_from_outputs([{"value": 5}, {"value": 7}]) == 12

    def test_missing_values_count_as_zero(self):
        assert weight_from_outputs([{"value": 5}, {}, {"value": None}]) == 5

    def test_no_outputs(self):
        assert weight_from_outputs(None) == 0
        assert weight_from_outputs([]) == 0

    def test_block_weight(self):
        assert block_weight([3, 3, 3, 1, 1, 1, 1, 1, 1, 1]) == 34
