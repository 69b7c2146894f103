"""
Cross-platform matcher — finds the same product on other platforms.

For a source listing, candidates are the listings that share its category,
come from a different platform and are not the listing itself.  Each
candidate is scored and kept when its similarity reaches the threshold.
Results are sorted by descending similarity; ties keep input order.

Public API:
    CrossPlatformMatcher(scorer).find_matches(listing, all_listings, threshold, platform)
        → list[MatchCandidate]
    best_match_per_platform(matches) → dict[str, MatchCandidate]
"""

import logging
from typing import Iterable

from matching.models import MatchCandidate, RawListing
from matching.similarity_scorer import SimilarityScorer

logger = logging.getLogger(__name__)


class CrossPlatformMatcher:
    """Ranks same-category listings from other platforms by similarity."""

    def __init__(self, scorer: SimilarityScorer | None = None) -> None:
        self.scorer = scorer or SimilarityScorer()
        self.threshold = self.scorer.rules.match_threshold

    def find_matches(
        self,
        listing: RawListing,
        all_listings: Iterable[RawListing],
        threshold: float | None = None,
        platform: str | None = None,
    ) -> list[MatchCandidate]:
        """
        Find accepted matches for *listing* among *all_listings*.

        Args:
            listing: The source listing.
            all_listings: Every listing in the batch (the source may be among them).
            threshold: Minimum similarity; defaults to the rules' match threshold.
            platform: If given, only candidates from this platform are considered.

        Returns:
            Accepted MatchCandidates, highest similarity first.
        """
        if threshold is None:
            threshold = self.threshold

        matches: list[MatchCandidate] = []
        for candidate in all_listings:
            if not _is_eligible(listing, candidate):
                continue
            if platform is not None and candidate.platform != platform:
                continue

            similarity = self.scorer.score(listing, candidate)
            if similarity >= threshold:
                matches.append(MatchCandidate(
                    source=listing,
                    candidate=candidate,
                    similarity=similarity,
                ))

        # sorted() is stable with reverse=True: equal scores keep input order
        matches = sorted(matches, key=lambda match: match.similarity, reverse=True)

        logger.debug(
            f"'{listing.name}' ({listing.platform}): {len(matches)} matches "
            f"at threshold {threshold}"
        )
        return matches


def best_match_per_platform(matches: list[MatchCandidate]) -> dict[str, MatchCandidate]:
    """
    Keep the single highest-scoring match per candidate platform.

    Expects *matches* sorted as returned by find_matches(); the first match
    seen for each platform wins.
    """
    best: dict[str, MatchCandidate] = {}
    for match in matches:
        best.setdefault(match.candidate.platform, match)
    return best


def _is_eligible(listing: RawListing, candidate: RawListing) -> bool:
    """Same category, another platform, not the listing itself."""
    return (
        candidate.category == listing.category
        and candidate.platform != listing.platform
        and candidate.id != listing.id
    )
