"""
Batch orchestrator — enriches every raw listing with cross-platform prices.

Steps:
  1. Validate each record; records missing a required field, with an
     unknown platform, a price that is not a finite non-negative number
     (including text the listing loader failed to convert) or an id already
     seen in the batch are skipped with a diagnostic instead of aborting the batch.
  2. Skip listings whose id already has price data in the store
     (unless skip_existing=False).
  3. Aggregate one price entry per platform and build the canonical
     product, backfilling unit and description.
  4. Upsert the products into the store and save it.

All valid listings stay in the matching pool, including the ones skipped
in step 2.

Public API:
    enrich_listings(listings, aggregator, store, skip_existing) → BatchResult
    build_canonical_product(listing, prices, quantity, rules) → CanonicalProduct
    products_to_dataframe(products) → pd.DataFrame
"""

import logging
import math
from dataclasses import dataclass, field
from typing import Iterable, Mapping

import pandas as pd

from config.matching_rules import DEFAULT_MATCHING_RULES, MatchingRules
from config.platforms import PLATFORMS_BY_ID, match_platform
from config.schema import COMPARISON_COLUMNS, REQUIRED_FIELDS
from matching.cross_platform_matcher import CrossPlatformMatcher
from matching.descriptor_extractor import DescriptorExtractor
from matching.models import CanonicalProduct, PlatformPrice, RawListing
from matching.price_aggregator import SOURCE_MATCHED, SOURCE_SYNTHETIC, PriceAggregator
from matching.product_store import JsonProductStore
from matching.similarity_scorer import SimilarityScorer

logger = logging.getLogger(__name__)


# ═══════════════════════════════════════════════════════════════════════════
# Data classes
# ═══════════════════════════════════════════════════════════════════════════

@dataclass
class SkippedRecord:
    """A raw record rejected before matching."""

    index: int
    record_id: str | None
    reason: str


@dataclass
class BatchResult:
    """Output of enrich_listings()."""

    products: list[CanonicalProduct] = field(default_factory=list)
    skipped: list[SkippedRecord] = field(default_factory=list)
    already_enriched: list[str] = field(default_factory=list)
    total_records: int = 0
    matched_entries: int = 0
    synthetic_entries: int = 0


# ═══════════════════════════════════════════════════════════════════════════
# Public API
# ═══════════════════════════════════════════════════════════════════════════

def enrich_listings(
    listings: pd.DataFrame | Iterable[Mapping | RawListing],
    aggregator: PriceAggregator | None = None,
    store: JsonProductStore | None = None,
    skip_existing: bool = True,
) -> BatchResult:
    """
    Enrich a batch of raw listings into canonical products.

    Args:
        listings: Listing DataFrame (as produced by the listing loader),
                  an iterable of mappings with listing fields, or RawListings.
        aggregator: Price aggregator to use.  If omitted, one is built from
                    MatchingRules.from_env() (so MATCH_THRESHOLD applies)
                    with an unseeded random source.
        store: Optional product store to skip already-enriched listings and
               to write the results to.
        skip_existing: Skip listings whose id already has stored prices.

    Returns:
        BatchResult with the products, skipped records and counters.
    """
    aggregator = aggregator or _default_aggregator()
    rules = aggregator.rules
    scorer = aggregator.matcher.scorer
    result = BatchResult()

    valid: list[RawListing] = []
    seen_ids: set[str] = set()
    for index, record in _iter_records(listings):
        result.total_records += 1
        listing, reason = _to_listing(record)
        if listing is not None and listing.id in seen_ids:
            listing, reason = None, f"duplicate id '{listing.id}'"
        if listing is None:
            skipped = SkippedRecord(index=index, record_id=_record_id(record), reason=reason)
            result.skipped.append(skipped)
            logger.warning(f"Skipping record {index} ({skipped.record_id}): {reason}")
            continue
        seen_ids.add(listing.id)
        valid.append(listing)

    for listing in valid:
        if skip_existing and store is not None and store.has_prices(listing.id):
            result.already_enriched.append(listing.id)
            logger.debug(f"'{listing.name}' already has price data, skipping")
            continue

        trace = aggregator.aggregate_with_trace(listing, valid)
        quantity = scorer.descriptor_for(listing).quantity
        result.products.append(
            build_canonical_product(listing, trace.prices, quantity, rules)
        )
        result.matched_entries += sum(1 for s in trace.sources if s.source == SOURCE_MATCHED)
        result.synthetic_entries += sum(1 for s in trace.sources if s.source == SOURCE_SYNTHETIC)

    if store is not None and result.products:
        store.upsert_many(result.products)
        store.save()

    logger.info(
        f"Batch enrichment complete: {len(result.products)} products from "
        f"{result.total_records} records, {len(result.skipped)} skipped, "
        f"{len(result.already_enriched)} already enriched, "
        f"{result.matched_entries} matched / {result.synthetic_entries} synthetic entries"
    )
    return result


def build_canonical_product(
    listing: RawListing,
    prices: list[PlatformPrice],
    quantity: str | None = None,
    rules: MatchingRules = DEFAULT_MATCHING_RULES,
) -> CanonicalProduct:
    """
    Wrap a listing and its price entries into a canonical product.

    unit falls back to the extracted quantity, then to the default unit;
    description falls back to the description template.
    """
    return CanonicalProduct(
        id=listing.id,
        name=listing.name,
        category=listing.category,
        unit=listing.unit or quantity or rules.default_unit,
        description=listing.description or rules.description_template.format(name=listing.name),
        source_platform=listing.platform,
        image=listing.image,
        prices=list(prices),
    )


def products_to_dataframe(products: Iterable[CanonicalProduct]) -> pd.DataFrame:
    """Flatten products into one row per (product, platform)."""
    rows = []
    for product in products:
        for entry in product.prices:
            rows.append({
                "id": product.id,
                "name": product.name,
                "category": product.category,
                "unit": product.unit,
                "source_platform": product.source_platform,
                "platform": entry.platform,
                "price": entry.price,
                "available": entry.available,
                "delivery_time": entry.delivery_time,
            })
    return pd.DataFrame(rows, columns=COMPARISON_COLUMNS)


# ═══════════════════════════════════════════════════════════════════════════
# Internal helpers
# ═══════════════════════════════════════════════════════════════════════════

def _default_aggregator() -> PriceAggregator:
    rules = MatchingRules.from_env()
    scorer = SimilarityScorer(DescriptorExtractor(rules))
    return PriceAggregator(matcher=CrossPlatformMatcher(scorer))


def _iter_records(listings) -> Iterable[tuple[int, Mapping | RawListing]]:
    if isinstance(listings, pd.DataFrame):
        for position, record in enumerate(listings.to_dict(orient="records")):
            yield position, record
    else:
        yield from enumerate(listings)


def _to_listing(record: Mapping | RawListing) -> tuple[RawListing | None, str | None]:
    """
    Validate one record.

    Returns:
        (listing, None) on success, (None, reason) when the record is rejected.
    """
    if isinstance(record, RawListing):
        record = vars(record)
    if not isinstance(record, Mapping):
        return None, f"record is a {type(record).__name__}, not a mapping"

    missing = [name for name in REQUIRED_FIELDS if _is_blank(record.get(name))]
    if missing:
        return None, f"missing required field(s): {', '.join(missing)}"

    platform_label = str(record["platform"])
    platform_id = platform_label if platform_label in PLATFORMS_BY_ID else match_platform(platform_label)
    if platform_id is None:
        return None, f"unknown platform '{platform_label}'"

    price = _to_price(record.get("price"))
    if price is None:
        return None, f"price '{record.get('price')}' is not a finite non-negative number"

    return RawListing(
        id=str(record["id"]).strip(),
        name=str(record["name"]),
        category=str(record["category"]),
        platform=platform_id,
        price=price,
        unit=_optional_text(record.get("unit")),
        description=_optional_text(record.get("description")),
        image=_optional_text(record.get("image")),
    ), None


def _to_price(value: object) -> float | None:
    """Missing price → 0.0; non-numeric, infinite or negative → None."""
    if _is_blank(value):
        return 0.0
    if isinstance(value, bool):
        return None
    try:
        price = float(value)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(price) or price < 0:
        return None
    return price


def _is_blank(value: object) -> bool:
    if isinstance(value, (list, tuple, dict, set)):
        return False
    if pd.isna(value):
        return True
    if isinstance(value, str) and not value.strip():
        return True
    return False


def _optional_text(value: object) -> str | None:
    if _is_blank(value):
        return None
    return str(value)


def _record_id(record: object) -> str | None:
    if isinstance(record, RawListing):
        return record.id
    if isinstance(record, Mapping) and not _is_blank(record.get("id")):
        return str(record["id"])
    return None
