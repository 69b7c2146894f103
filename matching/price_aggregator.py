"""
Price aggregator — one price/availability entry per platform for a listing.

For every platform, in canonical order:
  - the listing's own platform gets the listing's price, always available;
  - a platform with an accepted match gets the best match's price, available;
  - any other platform gets a synthetic entry: the listing price scaled by a
    factor drawn uniformly from [0.9, 1.1], rounded half-up to the listing
    price's precision, and available with probability 0.8.

The random source is injected so tests can replay synthetic entries with a
seeded random.Random.  A listing priced at 0 yields synthetic prices of 0.

Public API:
    PriceAggregator(matcher, platforms, rng).aggregate(listing, all_listings)
        → list[PlatformPrice]
    PriceAggregator(...).aggregate_with_trace(listing, all_listings)
        → AggregationResult
"""

import logging
import random
from dataclasses import dataclass, field
from decimal import ROUND_HALF_UP, Decimal
from typing import Sequence

from config.platforms import PLATFORMS, Platform
from matching.cross_platform_matcher import CrossPlatformMatcher, best_match_per_platform
from matching.models import PlatformPrice, RawListing

logger = logging.getLogger(__name__)

SOURCE_ORIGIN = "origin"
SOURCE_MATCHED = "matched"
SOURCE_SYNTHETIC = "synthetic"


# ═══════════════════════════════════════════════════════════════════════════
# Data classes
# ═══════════════════════════════════════════════════════════════════════════

@dataclass
class PriceSource:
    """Where one platform entry came from."""

    platform: str
    source: str
    matched_listing_id: str | None = None
    similarity: float | None = None


@dataclass
class AggregationResult:
    """Output of aggregate_with_trace()."""

    prices: list[PlatformPrice] = field(default_factory=list)
    sources: list[PriceSource] = field(default_factory=list)

    @property
    def synthetic_platforms(self) -> list[str]:
        return [s.platform for s in self.sources if s.source == SOURCE_SYNTHETIC]


# ═══════════════════════════════════════════════════════════════════════════
# Public API
# ═══════════════════════════════════════════════════════════════════════════

class PriceAggregator:
    """Resolves a PlatformPrice for every known platform."""

    def __init__(
        self,
        matcher: CrossPlatformMatcher | None = None,
        platforms: Sequence[Platform] = PLATFORMS,
        rng: random.Random | None = None,
    ) -> None:
        self.matcher = matcher or CrossPlatformMatcher()
        self.rules = self.matcher.scorer.rules
        self.platforms = tuple(platforms)
        self.rng = rng or random.Random()

    def aggregate(
        self,
        listing: RawListing,
        all_listings: Sequence[RawListing],
    ) -> list[PlatformPrice]:
        """
        Price entries for *listing* on every platform.

        Args:
            listing: The listing being enriched.
            all_listings: The full listing set to match against.

        Returns:
            Exactly one PlatformPrice per platform, in platform order.
        """
        return self.aggregate_with_trace(listing, all_listings).prices

    def aggregate_with_trace(
        self,
        listing: RawListing,
        all_listings: Sequence[RawListing],
    ) -> AggregationResult:
        """Same as aggregate(), also recording the source of every entry."""
        # Matching once and keeping the best per platform is equivalent to
        # running the matcher restricted to each platform in turn.
        matches = self.matcher.find_matches(listing, all_listings)
        best_matches = best_match_per_platform(matches)

        result = AggregationResult()
        for platform in self.platforms:
            if platform.id == listing.platform:
                price = PlatformPrice(
                    platform=platform.id,
                    price=listing.price,
                    available=True,
                    delivery_time=platform.delivery_time,
                )
                source = PriceSource(platform=platform.id, source=SOURCE_ORIGIN)

            elif platform.id in best_matches:
                best = best_matches[platform.id]
                price = PlatformPrice(
                    platform=platform.id,
                    price=best.candidate.price,
                    available=True,
                    delivery_time=platform.delivery_time,
                )
                source = PriceSource(
                    platform=platform.id,
                    source=SOURCE_MATCHED,
                    matched_listing_id=best.candidate.id,
                    similarity=best.similarity,
                )
                logger.debug(
                    f"Found match for {platform.name}: '{best.candidate.name}' "
                    f"({best.similarity:.2f}%)"
                )

            else:
                price = self._synthesize(listing, platform)
                source = PriceSource(platform=platform.id, source=SOURCE_SYNTHETIC)
                logger.debug(
                    f"No match for {platform.name}, generated synthetic price: "
                    f"{price.price} (available={price.available})"
                )

            result.prices.append(price)
            result.sources.append(source)

        return result

    # ═══════════════════════════════════════════════════════════════════════
    # Internal helpers
    # ═══════════════════════════════════════════════════════════════════════

    def _synthesize(self, listing: RawListing, platform: Platform) -> PlatformPrice:
        factor = self.rng.uniform(
            self.rules.synthetic_price_min_factor,
            self.rules.synthetic_price_max_factor,
        )
        available = self.rng.random() < self.rules.synthetic_availability_probability
        return PlatformPrice(
            platform=platform.id,
            price=round_to_precision_of(listing.price * factor, listing.price),
            available=available,
            delivery_time=platform.delivery_time,
        )


def round_to_precision_of(value: float, reference: float) -> float:
    """
    Round *value* half-up to the number of decimals *reference* carries.

    Whole-number references (60, 60.0) round to whole numbers; 3.49 rounds
    to two decimals.
    """
    reference_decimal = Decimal(str(reference))
    if reference_decimal == reference_decimal.to_integral_value():
        decimals = 0
    else:
        decimals = max(-reference_decimal.normalize().as_tuple().exponent, 0)

    quantum = Decimal(1).scaleb(-decimals)
    return float(Decimal(str(value)).quantize(quantum, rounding=ROUND_HALF_UP))
