"""
Fuzzy string matching utilities.

best_match() looks a free-text value up in a candidate table.  Two callers
share it:
  - the listing loader resolves raw export column names that are neither a
    known field nor a known rename ("Prodcut Name", "item price") with the
    default thefuzz scorer;
  - config.platforms.match_platform resolves platform label typos
    ("Zeptoo", "Big-Basket") with rapidfuzz's token_sort_ratio.
"""

import logging
from typing import Callable

from thefuzz import fuzz

logger = logging.getLogger(__name__)

Scorer = Callable[[str, str], float]


def best_match(
    value: str,
    candidates: dict[str, str],
    threshold: float = 80,
    scorer: Scorer = fuzz.token_sort_ratio,
) -> tuple[str | None, float]:
    """
    Find the best fuzzy match for *value* among *candidates* keys.

    Args:
        value: The string to match (lowercased and stripped internally).
        candidates: Dict of candidate_key (lowercase) → canonical_value.
        threshold: Minimum score (0-100) to accept a match.
        scorer: Any (a, b) → 0-100 similarity function; the default
                token_sort_ratio tolerates word reordering.

    Returns:
        (canonical_value, score) when the best score reaches threshold,
        otherwise (None, 0).  Ties keep the first candidate in dict order.
    """
    if not value or not candidates:
        return None, 0

    value_lower = value.strip().lower()

    best_key: str | None = None
    best_score: float = 0

    for candidate_key in candidates:
        score = scorer(value_lower, candidate_key)
        if score > best_score:
            best_score = score
            best_key = candidate_key

    if best_key is not None and best_score >= threshold:
        logger.debug(
            f"Fuzzy matched '{value}' → '{candidates[best_key]}' "
            f"via '{best_key}' (score={best_score:.0f})"
        )
        return candidates[best_key], best_score

    logger.debug(
        f"No fuzzy match for '{value}' above threshold {threshold} "
        f"(best was '{best_key}' at {best_score:.0f})"
    )
    return None, 0
