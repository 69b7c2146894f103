"""
Descriptor extractor — turns a free-text listing name into a ProductDescriptor.

Steps, applied to the lowercased name:
  1. Remove marketing / brand noise words ("fresho!", "organic", ...).
  2. Capture the first quantity ("500 g", "12pcs") and cut it out.
  3. Replace connectors and punctuation with spaces, collapse whitespace.
  4. Look up the coarse product type from the keyword table.

Never raises: names that are blank or not strings produce an empty
descriptor, which simply scores low downstream.

Public API:
    DescriptorExtractor(rules).extract(name, category) → ProductDescriptor
    DescriptorExtractor(rules).describe(listing) → ProductDescriptor
"""

import logging
import re

from config.matching_rules import DEFAULT_MATCHING_RULES, MatchingRules
from matching.models import ProductDescriptor, RawListing

logger = logging.getLogger(__name__)

_WHITESPACE_PATTERN = re.compile(r"\s+")


class DescriptorExtractor:
    """Extracts descriptors using one immutable set of matching rules."""

    def __init__(self, rules: MatchingRules = DEFAULT_MATCHING_RULES) -> None:
        self.rules = rules
        units = "|".join(re.escape(unit) for unit in rules.quantity_units)
        # A unit must not run into further letters: "1 large" is not "1 l".
        self._quantity_pattern = re.compile(
            rf"\d+(?:\.\d+)?\s*(?:{units})(?![a-z])", re.IGNORECASE
        )
        self._connector_pattern = re.compile(rules.connector_pattern, re.IGNORECASE)

    def extract(self, name: str, category: str | None = None) -> ProductDescriptor:
        """
        Build the descriptor for one listing name.

        Args:
            name: Product name as captured by the scraper.
            category: Listing category.  Accepted for call-site symmetry with
                      the scorer; the taxonomy lookup is driven by the name.

        Returns:
            ProductDescriptor with clean tokens, optional quantity and
            optional product type.
        """
        if not isinstance(name, str) or not name.strip():
            return ProductDescriptor()

        text = name.lower()
        text = self._strip_noise(text)

        quantity = None
        quantity_match = self._quantity_pattern.search(text)
        if quantity_match:
            quantity = quantity_match.group(0)
            text = text[:quantity_match.start()] + " " + text[quantity_match.end():]

        text = self._connector_pattern.sub(" ", text)
        text = _WHITESPACE_PATTERN.sub(" ", text).strip()

        product_type = self._lookup_product_type(text)

        descriptor = ProductDescriptor(
            clean_tokens=tuple(text.split()),
            quantity=quantity,
            product_type=product_type,
        )
        logger.debug(f"Extracted '{name}' ({category}) → {descriptor}")
        return descriptor

    def describe(self, listing: RawListing) -> ProductDescriptor:
        return self.extract(listing.name, listing.category)

    # ═══════════════════════════════════════════════════════════════════════
    # Internal helpers
    # ═══════════════════════════════════════════════════════════════════════

    def _strip_noise(self, text: str) -> str:
        for word in self.rules.noise_words:
            text = text.replace(word, " ")
        return text

    def _lookup_product_type(self, text: str) -> str | None:
        """First type whose keyword list has a keyword contained in *text*."""
        if not text:
            return None
        for product_type, keywords in self.rules.product_type_keywords:
            if any(keyword in text for keyword in keywords):
                return product_type
        return None
