"""
Tests for matching/price_aggregator.py

Covers: origin entry determinism, completeness and platform order, reuse of
matched prices, synthetic price bounds and rounding, availability
probability, seeded replay, zero prices, and the trace of entry sources.
"""

import random
from dataclasses import replace

import pytest

from config.matching_rules import DEFAULT_MATCHING_RULES
from config.platforms import PLATFORM_IDS, PLATFORMS, PLATFORMS_BY_ID
from matching.cross_platform_matcher import CrossPlatformMatcher
from matching.descriptor_extractor import DescriptorExtractor
from matching.models import RawListing
from matching.price_aggregator import (
    SOURCE_MATCHED,
    SOURCE_ORIGIN,
    SOURCE_SYNTHETIC,
    PriceAggregator,
    round_to_precision_of,
)
from matching.similarity_scorer import SimilarityScorer


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _listing(listing_id, name, category, platform, price) -> RawListing:
    return RawListing(id=listing_id, name=name, category=category, platform=platform, price=price)


def _make_aggregator(seed: int = 7, rules=DEFAULT_MATCHING_RULES, **kwargs) -> PriceAggregator:
    matcher = CrossPlatformMatcher(SimilarityScorer(DescriptorExtractor(rules)))
    return PriceAggregator(matcher=matcher, rng=random.Random(seed), **kwargs)


class _FixedRandom:
    """Random source that always draws the top of the price range."""

    def uniform(self, low, high):
        return high

    def random(self):
        return 0.5


BANANA = _listing("b1", "Fresho! Banana 12 pcs", "Fruits", "blinkit", 60)
BANANA_ZEPTO = _listing("z1", "Organic Banana Pack 12 pcs", "Fruits", "zepto", 58)
CHICKEN = _listing("m1", "Chicken Breast Boneless 500 g", "Meat", "swiggy", 250)
UNRELATED = [
    _listing("z5", "Amul Taaza Toned Milk 500 ml", "Dairy & Milk", "zepto", 27),
    _listing("bb5", "Tomato Hybrid 1 kg", "Vegetables", "bigbasket", 40),
    _listing("d5", "Apple Shimla 4 pcs", "Fruits", "dunzo", 120),
]


# ═══════════════════════════════════════════════════════════════════════════
# Completeness and origin entry
# ═══════════════════════════════════════════════════════════════════════════

class TestCompleteness:
    def test_one_entry_per_platform_in_canonical_order(self):
        prices = _make_aggregator().aggregate(BANANA, [BANANA, BANANA_ZEPTO])
        assert [p.platform for p in prices] == list(PLATFORM_IDS)

    def test_no_duplicates_without_any_candidates(self):
        prices = _make_aggregator().aggregate(CHICKEN, [])
        assert len(prices) == 5
        assert len({p.platform for p in prices}) == 5

    def test_delivery_times_from_platform_table(self):
        prices = _make_aggregator().aggregate(CHICKEN, UNRELATED)
        for entry in prices:
            assert entry.delivery_time == PLATFORMS_BY_ID[entry.platform].delivery_time

    def test_custom_platform_subset(self):
        aggregator = _make_aggregator(platforms=PLATFORMS[:2])
        prices = aggregator.aggregate(BANANA, [BANANA])
        assert [p.platform for p in prices] == ["blinkit", "zepto"]


class TestOriginEntry:
    @pytest.mark.parametrize("seed", range(20))
    def test_origin_entry_is_deterministic(self, seed):
        prices = _make_aggregator(seed=seed).aggregate(CHICKEN, UNRELATED)
        origin = [p for p in prices if p.platform == CHICKEN.platform]
        assert len(origin) == 1
        assert origin[0].price == 250
        assert origin[0].available is True

    def test_origin_not_replaced_by_same_platform_listing(self):
        other_blinkit = _listing("b9", "Banana 12 pcs", "Fruits", "blinkit", 10)
        prices = _make_aggregator().aggregate(BANANA, [BANANA, other_blinkit])
        assert prices[0].price == 60


# ═══════════════════════════════════════════════════════════════════════════
# Matched entries
# ═══════════════════════════════════════════════════════════════════════════

class TestMatchedEntries:
    def test_banana_example(self):
        prices = _make_aggregator().aggregate(BANANA, [BANANA, BANANA_ZEPTO])
        zepto = prices[PLATFORM_IDS.index("zepto")]
        assert zepto.price == 58
        assert zepto.available is True

    def test_best_match_price_used(self):
        weaker = _listing("z2", "Banana Robusta 6 pcs", "Fruits", "zepto", 40)
        prices = _make_aggregator().aggregate(BANANA, [weaker, BANANA_ZEPTO])
        assert prices[PLATFORM_IDS.index("zepto")].price == 58

    def test_trace_records_match(self):
        result = _make_aggregator().aggregate_with_trace(BANANA, [BANANA, BANANA_ZEPTO])
        zepto = result.sources[PLATFORM_IDS.index("zepto")]
        assert zepto.source == SOURCE_MATCHED
        assert zepto.matched_listing_id == "z1"
        assert zepto.similarity == pytest.approx(100.0)
        assert result.sources[0].source == SOURCE_ORIGIN


# ═══════════════════════════════════════════════════════════════════════════
# Synthetic entries
# ═══════════════════════════════════════════════════════════════════════════

class TestSyntheticEntries:
    def test_unmatched_category_is_fully_synthetic(self):
        result = _make_aggregator().aggregate_with_trace(CHICKEN, UNRELATED)
        assert result.synthetic_platforms == ["blinkit", "zepto", "bigbasket", "dunzo"]

    @pytest.mark.parametrize("seed", range(25))
    def test_synthetic_price_within_bounds(self, seed):
        prices = _make_aggregator(seed=seed).aggregate(CHICKEN, UNRELATED)
        for entry in prices:
            if entry.platform != CHICKEN.platform:
                assert 225 <= entry.price <= 275

    def test_synthetic_price_rounded_to_whole_number(self):
        prices = _make_aggregator(seed=3).aggregate(CHICKEN, UNRELATED)
        assert all(entry.price == int(entry.price) for entry in prices)

    def test_injected_random_source(self):
        aggregator = PriceAggregator(rng=_FixedRandom())
        prices = aggregator.aggregate(CHICKEN, [])
        for entry in prices:
            if entry.platform != CHICKEN.platform:
                assert entry.price == 275
                assert entry.available is True

    def test_seeded_runs_replay(self):
        first = _make_aggregator(seed=11).aggregate(CHICKEN, UNRELATED)
        second = _make_aggregator(seed=11).aggregate(CHICKEN, UNRELATED)
        assert first == second

    def test_zero_price_stays_zero(self):
        free = _listing("f1", "Coriander Leaves", "Vegetables", "zepto", 0)
        prices = _make_aggregator().aggregate(free, [])
        assert all(entry.price == 0 for entry in prices)

    def test_never_available_when_probability_zero(self):
        rules = replace(DEFAULT_MATCHING_RULES, synthetic_availability_probability=0.0)
        prices = _make_aggregator(rules=rules).aggregate(CHICKEN, [])
        assert [p.available for p in prices] == [False, False, True, False, False]

    def test_always_available_when_probability_one(self):
        rules = replace(DEFAULT_MATCHING_RULES, synthetic_availability_probability=1.0)
        prices = _make_aggregator(rules=rules).aggregate(CHICKEN, [])
        assert all(p.available for p in prices)


# ═══════════════════════════════════════════════════════════════════════════
# Rounding helper
# ═══════════════════════════════════════════════════════════════════════════

class TestRoundToPrecisionOf:
    def test_half_rounds_up(self):
        assert round_to_precision_of(57.5, 60) == 58

    def test_whole_float_reference(self):
        assert round_to_precision_of(54.04, 60.0) == 54

    def test_two_decimals(self):
        assert round_to_precision_of(3.455, 3.49) == pytest.approx(3.46)

    def test_one_decimal(self):
        assert round_to_precision_of(10.25, 12.5) == pytest.approx(10.3)

    def test_zero(self):
        assert round_to_precision_of(0.0, 0) == 0
