"""
Listing loader — reads a scraper export into a listing DataFrame.

Handles CSV, Excel (.xlsx via openpyxl) and JSON record exports, then:
  1. Maps raw column names to listing fields with a three-step cascade
     (exact name, known rename, fuzzy match via thefuzz).  When several raw
     columns feed the same field ("unit", "stock", "quantity"), the first
     non-blank value wins, exact names before renames.
  2. Converts the price column from text ("₹1,250", "Rs. 60") to float.
  3. Resolves platform labels (id, display name or close typo) to the
     canonical platform id.

Conversion problems are collected in LoadResult.errors, never raised.  A
price that fails to convert keeps its raw text in the DataFrame, so the batch
orchestrator rejects that record instead of reading it as a missing price.

Public API:
    load_listings(file_path) → LoadResult
    prepare_listings(dataframe) → LoadResult
"""

import logging
import math
import re
from dataclasses import dataclass, field
from pathlib import Path

import pandas as pd

from config.column_mapping import EXACT_MATCHES, FUZZY_COLUMN_THRESHOLD, KNOWN_RENAMES
from config.platforms import match_platform
from config.schema import LISTING_FIELDS
from utils.fuzzy_match import best_match

logger = logging.getLogger(__name__)

# Currency symbols / prefixes seen on Indian grocery platforms
_CURRENCY_PATTERN = re.compile(r"₹|\binr\b|\brs\.?|[$€£]", re.IGNORECASE)
_THOUSANDS_SEP_PATTERN = re.compile(r"(?<=\d),(?=\d{3})")

# Words that mean "no price"; converted to blank, not an error
_UNKNOWN_STRINGS: set[str] = {"unknown", "n/a", "na", "-", "—", "none", "null"}

_FIELD_CANDIDATES: dict[str, str] = {name: name for name in LISTING_FIELDS}

_RENAME_ORDER: list[str] = list(KNOWN_RENAMES)


# ═══════════════════════════════════════════════════════════════════════════
# Data classes
# ═══════════════════════════════════════════════════════════════════════════

@dataclass
class LoadResult:
    """Output of load_listings() / prepare_listings()."""

    dataframe: pd.DataFrame = field(default_factory=pd.DataFrame)
    column_mapping: dict[str, str | None] = field(default_factory=dict)
    unmapped_columns: list[str] = field(default_factory=list)
    errors: list[dict] = field(default_factory=list)


# ═══════════════════════════════════════════════════════════════════════════
# Public API
# ═══════════════════════════════════════════════════════════════════════════

def load_listings(file_path: Path | str) -> LoadResult:
    """
    Read a listing export and prepare it for the matching engine.

    Args:
        file_path: Path to a .csv, .xlsx or .json export.

    Returns:
        LoadResult with the prepared DataFrame, the column mapping used,
        unmapped columns and per-cell conversion errors.

    Raises:
        ValueError: If the file extension is not supported.
    """
    path = Path(file_path)
    suffix = path.suffix.lower()

    if suffix == ".csv":
        raw_df = pd.read_csv(path, dtype=str, keep_default_na=True)
    elif suffix in (".xlsx", ".xlsm"):
        raw_df = pd.read_excel(path, engine="openpyxl", dtype=object)
    elif suffix == ".json":
        raw_df = pd.read_json(path, orient="records", dtype=False)
    else:
        raise ValueError(f"Unsupported listing file type: '{path.suffix}'")

    logger.info(f"Read {len(raw_df)} raw listings from '{path.name}'")
    return prepare_listings(raw_df)


def prepare_listings(dataframe: pd.DataFrame) -> LoadResult:
    """
    Map columns, convert prices and resolve platforms on a raw DataFrame.

    Args:
        dataframe: Raw listings with scraper column names.

    Returns:
        LoadResult whose DataFrame has exactly the LISTING_FIELDS columns.
    """
    result = LoadResult()

    for raw_name in dataframe.columns:
        raw_name = str(raw_name)
        if raw_name.startswith("_"):
            continue
        field_name = _map_single_column(raw_name)
        result.column_mapping[raw_name] = field_name
        if field_name is None:
            result.unmapped_columns.append(raw_name)
            logger.info(f"Unmapped column: '{raw_name}' (ignored)")

    listings_df = _apply_mapping(dataframe, result.column_mapping)

    result.errors.extend(_convert_prices(listings_df))
    result.errors.extend(_resolve_platforms(listings_df))

    result.dataframe = listings_df

    logger.info(
        f"Listing preparation complete: {len(listings_df)} listings, "
        f"{len(result.unmapped_columns)} unmapped columns, "
        f"{len(result.errors)} conversion errors"
    )
    return result


# ═══════════════════════════════════════════════════════════════════════════
# Internal helpers
# ═══════════════════════════════════════════════════════════════════════════

def _map_single_column(raw_name: str) -> str | None:
    normalized = raw_name.strip().lower()

    if normalized in EXACT_MATCHES:
        return EXACT_MATCHES[normalized]

    if normalized in KNOWN_RENAMES:
        return KNOWN_RENAMES[normalized]

    field_name, _ = best_match(normalized, _FIELD_CANDIDATES, threshold=FUZZY_COLUMN_THRESHOLD)
    return field_name


def _column_priority(raw_name: str) -> tuple[int, int]:
    """Exact names first, then renames in table order, then fuzzy matches."""
    normalized = raw_name.strip().lower()
    if normalized in EXACT_MATCHES:
        return 0, 0
    if normalized in KNOWN_RENAMES:
        return 1, _RENAME_ORDER.index(normalized)
    return 2, 0


def _apply_mapping(
    dataframe: pd.DataFrame,
    mapping: dict[str, str | None],
) -> pd.DataFrame:
    """Build a DataFrame with one column per listing field."""
    listings_df = pd.DataFrame(index=dataframe.index)

    for field_name in LISTING_FIELDS:
        sources = sorted(
            (raw for raw, mapped in mapping.items() if mapped == field_name),
            key=_column_priority,
        )
        if not sources:
            listings_df[field_name] = None
            continue

        values = dataframe[sources[0]].astype(object)
        for extra in sources[1:]:
            values = values.where(~_blank_mask(values), dataframe[extra].astype(object))
        listings_df[field_name] = values

    # JSON and Excel exports can carry numeric ids
    listings_df["id"] = listings_df["id"].map(
        lambda value: value if pd.isna(value) else _format_id(value)
    )
    return listings_df


def _format_id(value: object) -> str:
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value).strip()


def _blank_mask(values: pd.Series) -> pd.Series:
    return values.isna() | values.map(lambda v: isinstance(v, str) and not v.strip())


def _convert_prices(dataframe: pd.DataFrame) -> list[dict]:
    """
    Convert the price column IN PLACE; return conversion errors.

    Cells that fail to convert keep their raw value; blank and unknown cells
    become None.
    """
    errors: list[dict] = []

    for idx in dataframe.index:
        raw_value = dataframe.at[idx, "price"]

        if pd.isna(raw_value):
            dataframe.at[idx, "price"] = None
            continue

        converted, error = _parse_price(raw_value)
        if error is not None:
            errors.append({
                "row": idx,
                "column": "price",
                "original": str(raw_value),
                "error": error,
            })
            logger.warning(f"Row {idx}: {error}")
        else:
            dataframe.at[idx, "price"] = converted

    return errors


def _parse_price(value: object) -> tuple[float | None, str | None]:
    """
    Convert one price cell to float.

    Returns:
        (price, error_message); error_message is None on success, price is
        None for blank / unknown values.
    """
    if isinstance(value, bool):
        return None, f"Cannot convert '{value}' to price"
    if isinstance(value, (int, float)):
        price = float(value)
        if not math.isfinite(price):
            return None, f"Price '{value}' is not a finite number"
        if price < 0:
            return None, f"Price '{value}' is negative"
        return price, None

    raw_str = str(value).strip()
    if raw_str == "" or raw_str.lower() in _UNKNOWN_STRINGS:
        return None, None

    cleaned = _CURRENCY_PATTERN.sub("", raw_str)
    cleaned = _THOUSANDS_SEP_PATTERN.sub("", cleaned).strip()

    try:
        price = float(cleaned)
    except ValueError:
        return None, f"Cannot convert '{raw_str}' to price"

    if not math.isfinite(price):
        return None, f"Price '{raw_str}' is not a finite number"

    if price < 0:
        return None, f"Price '{raw_str}' is negative"

    return round(price, 2), None


def _resolve_platforms(dataframe: pd.DataFrame) -> list[dict]:
    """Replace platform labels with platform ids IN PLACE; return errors."""
    errors: list[dict] = []

    for idx in dataframe.index:
        label = dataframe.at[idx, "platform"]
        if pd.isna(label):
            continue

        platform_id = match_platform(str(label))
        if platform_id is None:
            errors.append({
                "row": idx,
                "column": "platform",
                "original": str(label),
                "error": f"Unknown platform '{label}'",
            })
            logger.warning(f"Row {idx}: unknown platform '{label}'")
            continue

        dataframe.at[idx, "platform"] = platform_id

    return errors
