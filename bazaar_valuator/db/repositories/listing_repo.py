"""
Repository for sold and active character listings.

``fetch_sold_corpus()`` is the valuation engine's bulk read contract:
every sale with a positive price, a known level and a known vocation.
"""

from __future__ import annotations

import logging
import sqlite3
from typing import Any, Optional

from bazaar_valuator.db.repositories.base import BaseRepository, from_db_bool, to_db_bool
from bazaar_valuator.models.listing import ActiveListing, ListingAttributes, SoldListing

logger = logging.getLogger(__name__)

_ATTRIBUTE_COLUMNS = (
    "listing_id", "external_id", "character_name", "vocation", "level",
    "magic_level", "fist", "club", "sword", "axe", "distance", "shielding",
    "charm_points", "primal_ordeal_available", "soul_war_available",
    "sanguine_blood_available", "store_items_count", "display_items", "url",
)
_BOOL_COLUMNS = frozenset({
    "primal_ordeal_available", "soul_war_available", "sanguine_blood_available",
})


def _upsert_sql(table: str, columns: tuple[str, ...]) -> str:
    column_list = ", ".join(columns)
    placeholders = ", ".join("?" for _ in columns)
    updates = ",\n                ".join(
        f"{c} = excluded.{c}" for c in columns if c != "listing_id"
    )
    return f"""
        INSERT INTO {table} ({column_list})
        VALUES ({placeholders})
        ON CONFLICT(listing_id) DO UPDATE SET
                {updates};
    """


_SOLD_COLUMNS = _ATTRIBUTE_COLUMNS + ("sold_price",)
_ACTIVE_COLUMNS = _ATTRIBUTE_COLUMNS + ("current_bid",)
_UPSERT_SOLD = _upsert_sql("sold_listings", _SOLD_COLUMNS)
_UPSERT_ACTIVE = _upsert_sql("active_listings", _ACTIVE_COLUMNS)


class ListingRepository(BaseRepository):
    """Read/write access to ``sold_listings`` and ``active_listings``."""

    # ── Sold listings ─────────────────────────────────────────────────────────

    def upsert_sold_batch(self, listings: list[SoldListing]) -> int:
        """Insert or replace sold listings keyed by ``listing_id``.

        Returns:
            Number of rows written.
        """
        if not listings:
            return 0
        self.executemany(_UPSERT_SOLD, [_to_params(s, _SOLD_COLUMNS) for s in listings])
        return len(listings)

    def fetch_sold_corpus(self) -> list[SoldListing]:
        """Return every usable sale, ordered by level."""
        rows = self.fetchall(
            """
            SELECT * FROM sold_listings
            WHERE sold_price > 0
              AND level IS NOT NULL
              AND vocation IS NOT NULL
              AND vocation <> ''
            ORDER BY level;
            """
        )
        logger.debug("Fetched %d sold listing(s) for the corpus.", len(rows))
        return [_row_to_sold(r) for r in rows]

    # ── Active listings ───────────────────────────────────────────────────────

    def upsert_active_batch(self, listings: list[ActiveListing]) -> int:
        """Insert or replace active listings keyed by ``listing_id``."""
        if not listings:
            return 0
        self.executemany(
            _UPSERT_ACTIVE, [_to_params(a, _ACTIVE_COLUMNS) for a in listings]
        )
        return len(listings)

    def fetch_active(self) -> list[ActiveListing]:
        """Return active listings ordered by ``listing_id``."""
        rows = self.fetchall("SELECT * FROM active_listings ORDER BY listing_id;")
        return [_row_to_active(r) for r in rows]

    def get_active(self, listing_id: int) -> Optional[ActiveListing]:
        row = self.fetchone(
            "SELECT * FROM active_listings WHERE listing_id = ?;", (listing_id,)
        )
        return _row_to_active(row) if row else None


# ── Private helpers ────────────────────────────────────────────────────────────

def _to_params(listing: ListingAttributes, columns: tuple[str, ...]) -> tuple[Any, ...]:
    values = []
    for col in columns:
        val = getattr(listing, col)
        values.append(to_db_bool(val) if col in _BOOL_COLUMNS else val)
    return tuple(values)


def _attributes(row: sqlite3.Row) -> dict[str, Any]:
    return {
        col: from_db_bool(row[col]) if col in _BOOL_COLUMNS else row[col]
        for col in _ATTRIBUTE_COLUMNS
    }


def _row_to_sold(row: sqlite3.Row) -> SoldListing:
    return SoldListing(**_attributes(row), sold_price=row["sold_price"])


def _row_to_active(row: sqlite3.Row) -> ActiveListing:
    return ActiveListing(**_attributes(row), current_bid=row["current_bid"])
