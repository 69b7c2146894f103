"""
Product store — JSON-file persistence for canonical products.

Products are keyed by listing id.  The file holds a JSON list of product
documents in the shape produced by CanonicalProduct.to_dict(), which is the
shape the comparison UI reads.

Public API:
    JsonProductStore(path).load() / .save()
    JsonProductStore.get(product_id) → CanonicalProduct | None
    JsonProductStore.has_prices(product_id) → bool
    JsonProductStore.upsert(product) / .upsert_many(products)
"""

import json
import logging
from pathlib import Path
from typing import Iterable

from matching.models import CanonicalProduct

logger = logging.getLogger(__name__)


class JsonProductStore:
    """Canonical products held in memory and persisted to one JSON file."""

    def __init__(self, path: Path | str) -> None:
        self.path = Path(path)
        self._products: dict[str, CanonicalProduct] = {}

    def load(self) -> "JsonProductStore":
        """
        Read the store file if it exists.

        Raises:
            ValueError: If the file does not contain a JSON list.
        """
        self._products = {}
        if not self.path.exists():
            logger.info(f"No product store at '{self.path}', starting empty")
            return self

        with self.path.open(encoding="utf-8") as handle:
            documents = json.load(handle)

        if not isinstance(documents, list):
            raise ValueError(
                f"Product store '{self.path}' must contain a JSON list, "
                f"got {type(documents).__name__}"
            )

        for document in documents:
            product = CanonicalProduct.from_dict(document)
            self._products[product.id] = product

        logger.info(f"Loaded {len(self._products)} products from '{self.path}'")
        return self

    def save(self) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        documents = [product.to_dict() for product in self._products.values()]
        with self.path.open("w", encoding="utf-8") as handle:
            json.dump(documents, handle, ensure_ascii=False, indent=2)
        logger.info(f"Saved {len(documents)} products to '{self.path}'")

    def get(self, product_id: str) -> CanonicalProduct | None:
        return self._products.get(product_id)

    def has_prices(self, product_id: str) -> bool:
        """True when the stored product already carries price entries."""
        product = self._products.get(product_id)
        return product is not None and len(product.prices) > 0

    def upsert(self, product: CanonicalProduct) -> None:
        self._products[product.id] = product

    def upsert_many(self, products: Iterable[CanonicalProduct]) -> None:
        for product in products:
            self.upsert(product)

    def products(self) -> list[CanonicalProduct]:
        return list(self._products.values())

    def __len__(self) -> int:
        return len(self._products)
