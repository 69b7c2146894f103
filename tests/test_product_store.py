"""
Tests for matching/product_store.py

Covers: empty start, save / load, upsert semantics, has_prices, and
rejection of a corrupt store file.
"""

import json

import pytest

from matching.models import CanonicalProduct, PlatformPrice
from matching.product_store import JsonProductStore


# ---------------------------------------------------------------------------
# Helper
# ---------------------------------------------------------------------------

def _make_product(product_id: str = "b1", price: float = 60) -> CanonicalProduct:
    return CanonicalProduct(
        id=product_id,
        name="Fresho! Banana 12 pcs",
        category="Fruits",
        unit="12 pcs",
        description="Fresho! Banana 12 pcs available for quick delivery",
        source_platform="blinkit",
        prices=[
            PlatformPrice("blinkit", price, True, "10 mins"),
            PlatformPrice("zepto", 58, True, "8 mins"),
        ],
    )


# ═══════════════════════════════════════════════════════════════════════════
# Persistence
# ═══════════════════════════════════════════════════════════════════════════

class TestPersistence:
    def test_missing_file_starts_empty(self, tmp_path):
        store = JsonProductStore(tmp_path / "products.json").load()
        assert len(store) == 0

    def test_saved_products_reload(self, tmp_path):
        path = tmp_path / "nested" / "products.json"
        store = JsonProductStore(path)
        store.upsert(_make_product())
        store.save()

        reloaded = JsonProductStore(path).load()
        assert reloaded.get("b1") == _make_product()

    def test_document_shape(self, tmp_path):
        path = tmp_path / "products.json"
        store = JsonProductStore(path)
        store.upsert(_make_product())
        store.save()

        document = json.loads(path.read_text(encoding="utf-8"))[0]
        assert document["source"] == "blinkit"
        assert document["prices"][1] == {
            "platform": "zepto", "price": 58, "available": True, "deliveryTime": "8 mins",
        }

    def test_non_list_file_rejected(self, tmp_path):
        path = tmp_path / "products.json"
        path.write_text(json.dumps({"id": "b1"}), encoding="utf-8")
        with pytest.raises(ValueError, match="JSON list"):
            JsonProductStore(path).load()


# ═══════════════════════════════════════════════════════════════════════════
# Upsert and lookup
# ═══════════════════════════════════════════════════════════════════════════

class TestUpsert:
    def test_upsert_replaces_by_id(self, tmp_path):
        store = JsonProductStore(tmp_path / "products.json")
        store.upsert(_make_product(price=60))
        store.upsert(_make_product(price=55))
        assert len(store) == 1
        assert store.get("b1").price_for("blinkit").price == 55

    def test_upsert_many(self, tmp_path):
        store = JsonProductStore(tmp_path / "products.json")
        store.upsert_many([_make_product("b1"), _make_product("b2")])
        assert [p.id for p in store.products()] == ["b1", "b2"]

    def test_get_unknown(self, tmp_path):
        assert JsonProductStore(tmp_path / "products.json").get("nope") is None

    def test_has_prices(self, tmp_path):
        store = JsonProductStore(tmp_path / "products.json")
        store.upsert(_make_product("b1"))
        empty = _make_product("b2")
        empty.prices = []
        store.upsert(empty)

        assert store.has_prices("b1") is True
        assert store.has_prices("b2") is False
        assert store.has_prices("b3") is False
