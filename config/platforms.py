"""
Platform table for the five quick-delivery services being compared.

Each platform has a stable id (used as the key everywhere in the pipeline),
a display name, and a fixed delivery-time string shown in the comparison
view.  The order of PLATFORMS is the canonical order of price entries on
every canonical product.

Usage:
    from config.platforms import PLATFORMS, match_platform

    platform_id = match_platform("Swiggy Instamart")  # → "swiggy"
"""

import logging
from dataclasses import dataclass

from rapidfuzz import fuzz

from utils.fuzzy_match import best_match

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Platform:
    """One delivery platform and its static metadata."""

    id: str
    name: str
    delivery_time: str


# ---------------------------------------------------------------------------
# Canonical platform order
# ---------------------------------------------------------------------------
PLATFORMS: tuple[Platform, ...] = (
    Platform(id="blinkit", name="Blinkit", delivery_time="10 mins"),
    Platform(id="zepto", name="Zepto", delivery_time="8 mins"),
    Platform(id="swiggy", name="Swiggy Instamart", delivery_time="15 mins"),
    Platform(id="bigbasket", name="Big Basket", delivery_time="30 mins"),
    Platform(id="dunzo", name="Dunzo Daily", delivery_time="20 mins"),
)

PLATFORM_IDS: tuple[str, ...] = tuple(p.id for p in PLATFORMS)

PLATFORMS_BY_ID: dict[str, Platform] = {p.id: p for p in PLATFORMS}

# ---------------------------------------------------------------------------
# Labels seen in scraped data → platform id (lowercase keys).
# Scrapers write either the id or the display name into the source field.
# ---------------------------------------------------------------------------
PLATFORM_ALIASES: dict[str, str] = {
    **{p.id: p.id for p in PLATFORMS},
    **{p.name.lower(): p.id for p in PLATFORMS},
    "swiggy instamart": "swiggy",
    "instamart": "swiggy",
    "big basket": "bigbasket",
    "bb now": "bigbasket",
    "dunzo daily": "dunzo",
}

PLATFORM_MATCHING_THRESHOLD = 85  # Minimum similarity score (0-100)


def match_platform(
    label: str,
    threshold: int = PLATFORM_MATCHING_THRESHOLD,
) -> str | None:
    """
    Resolve a free-text platform label to a platform id.

    Exact alias lookup first (case-insensitive), then a fuzzy
    token_sort_ratio match against the alias keys to absorb typos such as
    "Zeptto" or "Big-Basket".

    Args:
        label: Platform label as written by the scraper.
        threshold: Minimum similarity score 0-100 for the fuzzy step.

    Returns:
        The platform id, or None if nothing matches.
    """
    if not label or not isinstance(label, str):
        return None

    normalized = " ".join(label.strip().lower().split())
    if not normalized:
        return None

    if normalized in PLATFORM_ALIASES:
        return PLATFORM_ALIASES[normalized]

    platform_id, score = best_match(
        normalized, PLATFORM_ALIASES, threshold=threshold, scorer=fuzz.token_sort_ratio
    )
    if platform_id is not None:
        logger.info(
            f"Platform match: '{label}' → '{platform_id}' (similarity: {score:.0f}%)"
        )
    return platform_id

