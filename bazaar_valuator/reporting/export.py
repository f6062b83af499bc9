"""
Export helpers for spreadsheets and manual analysis.

All functions write to disk and return the written ``Path``.
They accept generic ``list[dict]`` data to stay decoupled from the
valuation models.

``flatten_valuations_for_export()`` is the adapter: it joins each
``ValuationResult`` with its active listing into one flat row, with the
comparable sales collapsed to a ``;``-separated id list.
"""

from __future__ import annotations

import csv
import json
import logging
from pathlib import Path
from typing import Iterable, Mapping

import pyarrow as pa
import pyarrow.parquet as pq

from bazaar_valuator.models.listing import ActiveListing
from bazaar_valuator.models.valuation import ValuationResult

logger = logging.getLogger(__name__)

EXPORT_COLUMNS = [
    "listing_id", "external_id", "character_name", "vocation", "level",
    "current_bid", "estimated_value", "min_price", "max_price", "item_bonus",
    "sample_size", "confidence", "comparable_ids",
]

VALUATION_PARQUET_SCHEMA = pa.schema([
    pa.field("listing_id",      pa.int64(),  nullable=False),
    pa.field("external_id",     pa.string()),
    pa.field("character_name",  pa.string()),
    pa.field("vocation",        pa.string()),
    pa.field("level",           pa.int64()),
    pa.field("current_bid",     pa.int64()),
    pa.field("estimated_value", pa.int64(),  nullable=False),
    pa.field("min_price",       pa.int64(),  nullable=False),
    pa.field("max_price",       pa.int64(),  nullable=False),
    pa.field("item_bonus",      pa.int64(),  nullable=False),
    pa.field("sample_size",     pa.int32(),  nullable=False),
    pa.field("confidence",      pa.string(), nullable=False),
    pa.field("comparable_ids",  pa.string()),
])


def export_to_csv(
    records: list[dict],
    path: Path,
    fieldnames: list[str] | None = None,
) -> Path:
    """Write ``records`` to a UTF-8 CSV file.

    Args:
        records:    List of row dicts.
        path:       Destination file path (parent dirs created if missing).
        fieldnames: Column order.  If None, uses the keys of the first record.

    Returns:
        ``path`` as written.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    cols = fieldnames or (list(records[0].keys()) if records else [])
    if not cols:
        path.write_text("", encoding="utf-8")
        return path
    with path.open("w", newline="", encoding="utf-8") as f:
        writer = csv.DictWriter(f, fieldnames=cols, extrasaction="ignore")
        writer.writeheader()
        writer.writerows(records)
    return path


def export_to_json(data: dict | list, path: Path) -> Path:
    """Write ``data`` to a pretty-printed JSON file."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data, indent=2, default=str), encoding="utf-8")
    return path


def export_to_parquet(records: list[dict], path: Path) -> Path:
    """Write flattened valuation rows to a snappy-compressed Parquet file.

    Columns follow ``VALUATION_PARQUET_SCHEMA`` regardless of the order of
    keys in ``records``; missing nullable keys are written as nulls.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    arrays = {
        field.name: pa.array([r.get(field.name) for r in records], type=field.type)
        for field in VALUATION_PARQUET_SCHEMA
    }
    table = pa.table(arrays, schema=VALUATION_PARQUET_SCHEMA)
    pq.write_table(table, str(path), compression="snappy")
    logger.info("Valuation Parquet written: %s (%d rows)", path.name, len(records))
    return path


def flatten_valuations_for_export(
    valuations: Mapping[int, ValuationResult],
    listings: Iterable[ActiveListing],
) -> list[dict]:
    """Join valuations with their listings into flat export rows.

    Listings without a valuation are left out. Rows keep the order of
    ``listings``.

    Returns:
        List of dicts keyed by ``EXPORT_COLUMNS``.
    """
    rows: list[dict] = []
    for listing in listings:
        v = valuations.get(listing.listing_id)
        if v is None:
            continue
        rows.append(
            {
                "listing_id":      listing.listing_id,
                "external_id":     listing.external_id,
                "character_name":  listing.character_name,
                "vocation":        listing.vocation,
                "level":           listing.level,
                "current_bid":     listing.current_bid,
                "estimated_value": v.estimated_value,
                "min_price":       v.min_price,
                "max_price":       v.max_price,
                "item_bonus":      v.item_bonus,
                "sample_size":     v.sample_size,
                "confidence":      v.confidence.value,
                "comparable_ids":  ";".join(str(c.listing_id) for c in v.comparables),
            }
        )
    return rows
