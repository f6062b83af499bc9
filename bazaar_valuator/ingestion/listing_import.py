"""
File import for sold and active listings (.json or .csv).

JSON: an array of objects using the listing model field names. The
``display_items`` field may be either the serialized string the storage
layer keeps, or an inline JSON array (re-serialized on import).

CSV: header row with the same field names. Empty cells become ``None``.
``display_items`` cells hold the serialized JSON payload as-is.

Required fields:
  both kinds   → listing_id
  sold         → vocation, level, sold_price

Quest flag cells accept true/1/yes/t/y and false/0/no/f/n; empty → unknown.

All rows are validated before any are returned. If any row fails, one
``ValueError`` is raised listing the first 10 failures.
"""

from __future__ import annotations

import csv
import json
import logging
from enum import StrEnum
from pathlib import Path
from typing import Any, Callable, Optional, Union

from pydantic import ValidationError

from bazaar_valuator.models.listing import ActiveListing, SoldListing

logger = logging.getLogger(__name__)

MAX_ERRORS_SHOWN = 10

_INT_FIELDS = frozenset({
    "listing_id", "level", "magic_level", "fist", "club", "sword", "axe",
    "distance", "shielding", "charm_points", "store_items_count",
    "sold_price", "current_bid",
})
_BOOL_FIELDS = frozenset({
    "primal_ordeal_available", "soul_war_available", "sanguine_blood_available",
})
_TRUE_STRINGS = frozenset({"true", "1", "yes", "t", "y"})
_FALSE_STRINGS = frozenset({"false", "0", "no", "f", "n"})


class ListingKind(StrEnum):
    """Which listing table an import file targets."""

    SOLD = "sold"
    ACTIVE = "active"


Listing = Union[SoldListing, ActiveListing]


def load_listings(path: Path, kind: ListingKind) -> list[Listing]:
    """Parse a listing file, dispatching on its extension.

    Raises:
        FileNotFoundError: If ``path`` does not exist.
        ValueError: On an unsupported extension, malformed file, or any
            row failing validation.
    """
    if not path.exists():
        raise FileNotFoundError(f"Listing file not found: {path}")

    suffix = path.suffix.lower()
    if suffix == ".json":
        listings = _validate_records(_read_json_records(path), kind, path.name)
    elif suffix == ".csv":
        listings = _validate_records(
            _read_csv_records(path), kind, path.name, coerce=_coerce_csv_row
        )
    else:
        raise ValueError(f"Unsupported listing file type '{suffix}'. Use .json or .csv.")

    logger.info("Parsed %d %s listing(s) from %s", len(listings), kind.value, path.name)
    return listings


# ── Readers ────────────────────────────────────────────────────────────────────

def _read_json_records(path: Path) -> list[dict[str, Any]]:
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise ValueError(f"JSON parse error in {path.name}: {exc}") from exc
    if not isinstance(data, list):
        raise ValueError(f"{path.name} must contain a JSON array of listings.")
    records = []
    for entry in data:
        if isinstance(entry, dict):
            payload = entry.get("display_items")
            if isinstance(payload, list):
                entry = {**entry, "display_items": json.dumps(payload)}
        records.append(entry)
    return records


def _read_csv_records(path: Path) -> list[dict[str, str]]:
    with open(path, encoding="utf-8", newline="") as f:
        reader = csv.DictReader(f)
        if reader.fieldnames is None:
            raise ValueError(f"CSV file is empty or has no header row: {path}")
        if "listing_id" not in reader.fieldnames:
            raise ValueError(
                f"CSV missing required column 'listing_id'. "
                f"Found columns: {sorted(reader.fieldnames)}"
            )
        rows = list(reader)

    if not rows:
        logger.warning("Listing CSV is empty (header only): %s", path)
    return rows


# ── Validation ─────────────────────────────────────────────────────────────────

def _validate_records(
    records: list[Any],
    kind: ListingKind,
    source_name: str,
    coerce: Optional[Callable[[dict[str, str]], dict[str, Any]]] = None,
) -> list[Listing]:
    model = SoldListing if kind == ListingKind.SOLD else ActiveListing
    listings: list[Listing] = []
    errors: list[tuple[int, str]] = []

    for idx, record in enumerate(records):
        try:
            if not isinstance(record, dict):
                raise ValueError("Entry is not an object.")
            if coerce is not None:
                record = coerce(record)
            listings.append(model.model_validate(record))
        except (ValueError, ValidationError) as exc:
            errors.append((idx, str(exc)))

    if errors:
        detail = "\n".join(f"  Entry #{i}: {msg}" for i, msg in errors[:MAX_ERRORS_SHOWN])
        suffix = (
            f"\n  ... and {len(errors) - MAX_ERRORS_SHOWN} more"
            if len(errors) > MAX_ERRORS_SHOWN else ""
        )
        raise ValueError(
            f"{len(errors)} listing(s) failed validation in {source_name}:\n{detail}{suffix}"
        )
    return listings


def _coerce_csv_row(row: dict[str, str]) -> dict[str, Any]:
    """Turn CSV strings into typed values; empty cells become ``None``."""
    out: dict[str, Any] = {}
    for key, raw in row.items():
        if key is None:
            continue
        value = (raw or "").strip()
        if not value:
            out[key] = None
        elif key in _INT_FIELDS:
            out[key] = _parse_int(key, value)
        elif key in _BOOL_FIELDS:
            out[key] = _parse_bool(key, value)
        else:
            out[key] = value
    return out


def _parse_int(key: str, value: str) -> int:
    try:
        return int(value)
    except ValueError:
        raise ValueError(f"Invalid integer for '{key}': '{value}'.") from None


def _parse_bool(key: str, value: str) -> Optional[bool]:
    lowered = value.lower()
    if lowered in _TRUE_STRINGS:
        return True
    if lowered in _FALSE_STRINGS:
        return False
    raise ValueError(f"Invalid boolean for '{key}': '{value}'.")
