"""
Column name mapping configuration.

Maps raw column names found in scraper exports to listing schema fields.
Scrapers for different platforms name the same thing differently
("source" vs "platform", "stock" vs "quantity" vs "unit").
"""

# ---------------------------------------------------------------------------
# Exact matches: raw name (lowercase) → listing field
# ---------------------------------------------------------------------------
EXACT_MATCHES: dict[str, str] = {
    "id": "id",
    "name": "name",
    "category": "category",
    "price": "price",
    "platform": "platform",
    "unit": "unit",
    "description": "description",
    "image": "image",
}

# ---------------------------------------------------------------------------
# Known renames: raw name (lowercase) → listing field
# ---------------------------------------------------------------------------
KNOWN_RENAMES: dict[str, str] = {
    "product id": "id",
    "product_id": "id",
    "sku": "id",
    "product name": "name",
    "title": "name",
    "source": "platform",
    "store": "platform",
    "stock": "unit",
    "quantity": "unit",
    "weight": "unit",
    "pack size": "unit",
    "mrp": "price",
    "selling price": "price",
    "price (inr)": "price",
    "image url": "image",
    "img": "image",
}

# Threshold (0-100) for the fuzzy fallback when neither table matches.
FUZZY_COLUMN_THRESHOLD: int = 85
