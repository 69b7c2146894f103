"""
Deterministic matching tables and scoring constants.

The descriptor extractor, similarity scorer, matcher and price aggregator
never read these module constants directly.  They receive a frozen
MatchingRules instance at construction time; DEFAULT_MATCHING_RULES is
assembled from the constants below, and tests build their own variants with
dataclasses.replace().

Usage:
    from config.matching_rules import DEFAULT_MATCHING_RULES, MatchingRules

    rules = MatchingRules.from_env()   # honours MATCH_THRESHOLD
"""

import logging
import os
from dataclasses import dataclass

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Marketing / brand noise, removed as case-insensitive substrings.
# Longer forms come before their prefixes ("fresho!" before "fresh").
# ---------------------------------------------------------------------------
NOISE_WORDS: tuple[str, ...] = (
    "fresho!",
    "brotos",
    "fresh",
    "organic",
    "natural",
    "special",
    "premium",
)

# ---------------------------------------------------------------------------
# Connectors and punctuation replaced by a space before tokenizing.
# Word connectors only match whole words ("sandwich" keeps its "and").
# ---------------------------------------------------------------------------
CONNECTOR_PATTERN: str = r"\bwith\b|\band\b|&|,|-|/|\(|\)|\+"

# ---------------------------------------------------------------------------
# Quantity units recognised after a number ("500 g", "12pcs", "1.5 kg").
# ---------------------------------------------------------------------------
QUANTITY_UNITS: tuple[str, ...] = ("g", "kg", "ml", "l", "pcs", "pc", "pack")

# ---------------------------------------------------------------------------
# Coarse product type → keyword synonyms.  Scanned in this order; the first
# type with a keyword contained in the cleaned name wins.
# ---------------------------------------------------------------------------
PRODUCT_TYPE_KEYWORDS: tuple[tuple[str, tuple[str, ...]], ...] = (
    ("fruits", (
        "apple", "banana", "orange", "grapes", "watermelon", "kiwi",
        "strawberry", "pineapple", "mango", "papaya", "coconut",
        "pomegranate", "guava", "cherries",
    )),
    ("vegetables", (
        "potato", "onion", "tomato", "carrot", "cucumber", "capsicum",
        "cabbage", "cauliflower", "broccoli", "spinach", "lettuce", "beans",
        "peas", "corn", "garlic", "ginger", "coriander", "mint", "chilli",
        "beetroot", "brinjal",
    )),
    ("dairy", (
        "milk", "curd", "yogurt", "cheese", "butter", "ghee", "paneer",
        "cream",
    )),
    ("meat", (
        "chicken", "mutton", "lamb", "pork", "beef", "fish", "prawns",
        "eggs", "crab",
    )),
)

# ---------------------------------------------------------------------------
# Similarity scoring weights (additive, capped at MAX_SCORE)
# ---------------------------------------------------------------------------
PRODUCT_TYPE_WEIGHT: float = 50.0
TOKEN_OVERLAP_WEIGHT: float = 0.5    # applied to an overlap ratio in 0-100
CATEGORY_WEIGHT: float = 20.0
QUANTITY_WEIGHT: float = 10.0
MAX_SCORE: float = 100.0

# Minimum similarity (0-100) for a cross-platform candidate to be accepted.
MATCH_THRESHOLD: float = 70.0

# ---------------------------------------------------------------------------
# Synthetic price policy for platforms without a real match
# ---------------------------------------------------------------------------
SYNTHETIC_PRICE_MIN_FACTOR: float = 0.9
SYNTHETIC_PRICE_MAX_FACTOR: float = 1.1
SYNTHETIC_AVAILABILITY_PROBABILITY: float = 0.8

# ---------------------------------------------------------------------------
# Defaults used when backfilling canonical products
# ---------------------------------------------------------------------------
DEFAULT_UNIT: str = "1 item"
DESCRIPTION_TEMPLATE: str = "{name} available for quick delivery"


@dataclass(frozen=True)
class MatchingRules:
    """Immutable bundle of every table and constant the engine consumes."""

    noise_words: tuple[str, ...] = NOISE_WORDS
    connector_pattern: str = CONNECTOR_PATTERN
    quantity_units: tuple[str, ...] = QUANTITY_UNITS
    product_type_keywords: tuple[tuple[str, tuple[str, ...]], ...] = PRODUCT_TYPE_KEYWORDS
    product_type_weight: float = PRODUCT_TYPE_WEIGHT
    token_overlap_weight: float = TOKEN_OVERLAP_WEIGHT
    category_weight: float = CATEGORY_WEIGHT
    quantity_weight: float = QUANTITY_WEIGHT
    max_score: float = MAX_SCORE
    match_threshold: float = MATCH_THRESHOLD
    synthetic_price_min_factor: float = SYNTHETIC_PRICE_MIN_FACTOR
    synthetic_price_max_factor: float = SYNTHETIC_PRICE_MAX_FACTOR
    synthetic_availability_probability: float = SYNTHETIC_AVAILABILITY_PROBABILITY
    default_unit: str = DEFAULT_UNIT
    description_template: str = DESCRIPTION_TEMPLATE

    @classmethod
    def from_env(cls) -> "MatchingRules":
        """
        Build rules from the defaults, applying a MATCH_THRESHOLD override.

        An unparseable or out-of-range value is ignored with a warning.
        """
        raw_value = os.getenv("MATCH_THRESHOLD")
        if raw_value is None:
            return cls()

        try:
            threshold = float(raw_value)
        except ValueError:
            logger.warning(
                f"Ignoring MATCH_THRESHOLD='{raw_value}' (not a number)"
            )
            return cls()

        if not 0 <= threshold <= MAX_SCORE:
            logger.warning(
                f"Ignoring MATCH_THRESHOLD={threshold} (must be within 0-{MAX_SCORE:.0f})"
            )
            return cls()

        return cls(match_threshold=threshold)


DEFAULT_MATCHING_RULES = MatchingRules()
