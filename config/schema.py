"""
Listing and canonical-product schema definitions.

Defines the raw listing fields, which of them are required for a record to
enter the matching engine, and the column order of the comparison report.
"""

# Raw listing fields in the order the loader emits them.
LISTING_FIELDS: list[str] = [
    "id",
    "name",
    "category",
    "price",
    "platform",
    "unit",
    "description",
    "image",
]

# Fields that must be populated for a listing to be enriched.
# A missing price is allowed and treated as 0.
REQUIRED_FIELDS: list[str] = [
    "id",
    "name",
    "category",
    "platform",
]

# Column order of the flattened comparison report
# (one row per canonical product and platform).
COMPARISON_COLUMNS: list[str] = [
    "id",
    "name",
    "category",
    "unit",
    "source_platform",
    "platform",
    "price",
    "available",
    "delivery_time",
]
