"""
SQLite schema DDL for the listing store.

All statements use ``IF NOT EXISTS`` so ``apply_schema()`` is idempotent.

Tables:
  1. sold_listings        (no FKs)  — historical corpus, one row per sale
  2. active_listings      (no FKs)  — live listings awaiting valuation
  3. run_metadata         (no FKs)  — pipeline audit log
  4. listing_valuations   (→ active_listings, run_metadata) — cached results
"""

from __future__ import annotations

import logging
import sqlite3

logger = logging.getLogger(__name__)

# Shared character attribute columns (sold and active listings).
_LISTING_COLUMNS = """
    external_id              TEXT,
    character_name           TEXT,
    vocation                 TEXT,
    level                    INTEGER,
    magic_level              INTEGER,
    fist                     INTEGER,
    club                     INTEGER,
    sword                    INTEGER,
    axe                      INTEGER,
    distance                 INTEGER,
    shielding                INTEGER,
    charm_points             INTEGER,
    primal_ordeal_available  INTEGER,
    soul_war_available       INTEGER,
    sanguine_blood_available INTEGER,
    store_items_count        INTEGER,
    display_items            TEXT,
    url                      TEXT,"""

_DDL_SOLD_LISTINGS = f"""
CREATE TABLE IF NOT EXISTS sold_listings (
    listing_id               INTEGER PRIMARY KEY AUTOINCREMENT,{_LISTING_COLUMNS}
    sold_price               INTEGER NOT NULL,
    created_at               TEXT    NOT NULL DEFAULT (strftime('%Y-%m-%dT%H:%M:%SZ', 'now'))
);
CREATE INDEX IF NOT EXISTS idx_sold_vocation_level
    ON sold_listings(vocation, level);
CREATE INDEX IF NOT EXISTS idx_sold_external_id
    ON sold_listings(external_id);
"""

_DDL_ACTIVE_LISTINGS = f"""
CREATE TABLE IF NOT EXISTS active_listings (
    listing_id               INTEGER PRIMARY KEY AUTOINCREMENT,{_LISTING_COLUMNS}
    current_bid              INTEGER,
    created_at               TEXT    NOT NULL DEFAULT (strftime('%Y-%m-%dT%H:%M:%SZ', 'now'))
);
CREATE INDEX IF NOT EXISTS idx_active_external_id
    ON active_listings(external_id);
"""

_DDL_RUN_METADATA = """
CREATE TABLE IF NOT EXISTS run_metadata (
    run_id          INTEGER PRIMARY KEY AUTOINCREMENT,
    run_slug        TEXT    NOT NULL UNIQUE,
    pipeline_stage  TEXT    NOT NULL,
    status          TEXT    NOT NULL DEFAULT 'started',
    config_snapshot TEXT    NOT NULL,
    rows_processed  INTEGER NOT NULL DEFAULT 0,
    error_message   TEXT,
    started_at      TEXT    NOT NULL DEFAULT (strftime('%Y-%m-%dT%H:%M:%SZ', 'now')),
    finished_at     TEXT
);
"""

_DDL_LISTING_VALUATIONS = """
CREATE TABLE IF NOT EXISTS listing_valuations (
    listing_id      INTEGER PRIMARY KEY REFERENCES active_listings(listing_id)
                        ON DELETE CASCADE,
    run_id          INTEGER REFERENCES run_metadata(run_id),
    estimated_value INTEGER NOT NULL,
    min_price       INTEGER NOT NULL,
    max_price       INTEGER NOT NULL,
    sample_size     INTEGER NOT NULL,
    item_bonus      INTEGER NOT NULL DEFAULT 0,
    confidence      TEXT    NOT NULL,
    valued_at       TEXT    NOT NULL DEFAULT (strftime('%Y-%m-%dT%H:%M:%SZ', 'now'))
);
"""

_ALL_DDL = [
    _DDL_SOLD_LISTINGS,
    _DDL_ACTIVE_LISTINGS,
    _DDL_RUN_METADATA,
    _DDL_LISTING_VALUATIONS,
]

ALL_TABLE_NAMES = [
    "sold_listings",
    "active_listings",
    "run_metadata",
    "listing_valuations",
]


def apply_schema(conn: sqlite3.Connection) -> None:
    """Apply all DDL statements to ``conn`` (idempotent).

    Args:
        conn: An open ``sqlite3.Connection``.
    """
    logger.debug("Applying schema to database...")

    for ddl in _ALL_DDL:
        for statement in _split_ddl(ddl):
            conn.execute(statement)

    conn.commit()
    logger.info("Schema applied: %d tables, indexes created/verified.", len(ALL_TABLE_NAMES))


def _split_ddl(ddl: str) -> list[str]:
    """Split a multi-statement DDL block on semicolons."""
    return [s.strip() for s in ddl.split(";") if s.strip()]


def get_existing_tables(conn: sqlite3.Connection) -> list[str]:
    """Return table names present in the database, sorted alphabetically."""
    rows = conn.execute(
        "SELECT name FROM sqlite_master WHERE type='table' ORDER BY name;"
    ).fetchall()
    return [row["name"] for row in rows]


def get_existing_indexes(conn: sqlite3.Connection) -> list[str]:
    """Return explicitly created index names, sorted alphabetically."""
    rows = conn.execute(
        "SELECT name FROM sqlite_master "
        "WHERE type='index' AND name NOT LIKE 'sqlite_%' ORDER BY name;"
    ).fetchall()
    return [row["name"] for row in rows]
