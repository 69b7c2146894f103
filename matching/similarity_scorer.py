"""
Similarity scorer — 0-100 score for two listings.

The score is additive and capped:
  +50  both product types present and equal
  +0.5 × token overlap ratio (0-100), ratio = min(m/|A|, m/|B|) × 100
       where m is the number of distinct tokens shared by both names
  +20  identical category strings
  +10  both quantities present and identical
  capped at 100.

Every term is symmetric in its two arguments, so score(a, b) == score(b, a).

Public API:
    SimilarityScorer(extractor).score(listing_a, listing_b) → float
"""

import logging

from matching.descriptor_extractor import DescriptorExtractor
from matching.models import ProductDescriptor, RawListing

logger = logging.getLogger(__name__)


class SimilarityScorer:
    """Scores listing pairs with the weights carried by the extractor's rules."""

    def __init__(self, extractor: DescriptorExtractor | None = None) -> None:
        self.extractor = extractor or DescriptorExtractor()
        self.rules = self.extractor.rules
        self._descriptor_cache: dict[tuple[str, str], ProductDescriptor] = {}

    def score(self, listing_a: RawListing, listing_b: RawListing) -> float:
        """
        Compute the similarity of two listings.

        Args:
            listing_a: First listing.
            listing_b: Second listing.

        Returns:
            Similarity in [0, 100].
        """
        info_a = self.descriptor_for(listing_a)
        info_b = self.descriptor_for(listing_b)
        rules = self.rules

        similarity = 0.0

        if info_a.product_type and info_b.product_type and info_a.product_type == info_b.product_type:
            similarity += rules.product_type_weight

        similarity += token_overlap_ratio(info_a.clean_tokens, info_b.clean_tokens) * rules.token_overlap_weight

        if listing_a.category == listing_b.category:
            similarity += rules.category_weight

        if info_a.quantity and info_b.quantity and info_a.quantity == info_b.quantity:
            similarity += rules.quantity_weight

        return min(similarity, rules.max_score)

    def descriptor_for(self, listing: RawListing) -> ProductDescriptor:
        """Descriptor of *listing*, memoized on (name, category)."""
        key = (listing.name, listing.category)
        descriptor = self._descriptor_cache.get(key)
        if descriptor is None:
            descriptor = self.extractor.extract(listing.name, listing.category)
            self._descriptor_cache[key] = descriptor
        return descriptor


def token_overlap_ratio(tokens_a: tuple[str, ...], tokens_b: tuple[str, ...]) -> float:
    """
    Overlap of two token sequences on a 0-100 scale.

    Tokens are compared as sets, so repeated words count once and the ratio
    does not depend on argument order.  Empty input gives 0.
    """
    set_a = set(tokens_a)
    set_b = set(tokens_b)
    if not set_a or not set_b:
        return 0.0

    shared = len(set_a & set_b)
    return min(shared / len(set_a), shared / len(set_b)) * 100
