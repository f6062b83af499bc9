"""
Sequential schema migrations for the listing store.

Not a migration framework: a ``schema_versions`` table records applied
migration IDs and ``run_migrations()`` applies the rest in registry order.
The base schema comes from ``apply_schema()``; migrations only carry
incremental changes.

Adding a migration:
  1. Define ``migration_NNNN_description(conn)`` below.
  2. Register it in ``MIGRATIONS`` under ``"NNNN_description"``.
"""

from __future__ import annotations

import logging
import sqlite3
from collections.abc import Callable

logger = logging.getLogger(__name__)

MigrationFn = Callable[[sqlite3.Connection], None]


def _ensure_version_table(conn: sqlite3.Connection) -> None:
    conn.execute("""
        CREATE TABLE IF NOT EXISTS schema_versions (
            version_id  TEXT    NOT NULL PRIMARY KEY,
            applied_at  TEXT    NOT NULL DEFAULT (strftime('%Y-%m-%dT%H:%M:%SZ', 'now')),
            description TEXT
        );
    """)
    conn.commit()


def _get_applied_versions(conn: sqlite3.Connection) -> set[str]:
    rows = conn.execute("SELECT version_id FROM schema_versions;").fetchall()
    return {row[0] for row in rows}


def _mark_applied(conn: sqlite3.Connection, version_id: str, description: str) -> None:
    conn.execute(
        "INSERT INTO schema_versions(version_id, description) VALUES (?, ?);",
        (version_id, description),
    )
    conn.commit()


# ── Migration functions ────────────────────────────────────────────────────────

def migration_0001_baseline(conn: sqlite3.Connection) -> None:
    """Anchor the version baseline; the base schema needs no changes."""


def migration_0002_valuation_comparables(conn: sqlite3.Connection) -> None:
    """Store the displayed comparables of each cached valuation as JSON."""
    existing = {
        row[1] for row in conn.execute("PRAGMA table_info(listing_valuations);").fetchall()
    }
    if "comparables_json" not in existing:
        conn.execute("ALTER TABLE listing_valuations ADD COLUMN comparables_json TEXT;")
    conn.commit()


def migration_0003_sold_price_index(conn: sqlite3.Connection) -> None:
    """Index the corpus read filter on sold price."""
    conn.execute(
        "CREATE INDEX IF NOT EXISTS idx_sold_price ON sold_listings(sold_price) "
        "WHERE sold_price > 0;"
    )
    conn.commit()


# ── Registry ──────────────────────────────────────────────────────────────────

MIGRATIONS: dict[str, tuple[MigrationFn, str]] = {
    "0001_baseline": (
        migration_0001_baseline,
        "Baseline: schema_versions table created",
    ),
    "0002_valuation_comparables": (
        migration_0002_valuation_comparables,
        "Add comparables_json to listing_valuations",
    ),
    "0003_sold_price_index": (
        migration_0003_sold_price_index,
        "Add partial index on sold_listings.sold_price",
    ),
}


def run_migrations(conn: sqlite3.Connection) -> int:
    """Apply all pending migrations.

    Returns:
        Number of migrations applied in this call.
    """
    _ensure_version_table(conn)
    applied = _get_applied_versions(conn)

    count = 0
    for version_id, (fn, description) in MIGRATIONS.items():
        if version_id in applied:
            logger.debug("Migration %s already applied; skipping.", version_id)
            continue

        logger.info("Applying migration %s: %s", version_id, description)
        try:
            fn(conn)
            _mark_applied(conn, version_id, description)
            count += 1
        except Exception as exc:
            conn.rollback()
            logger.error("Migration %s FAILED: %s", version_id, exc)
            raise

    if count:
        logger.info("Applied %d migration(s).", count)
    return count


def initialize_database(conn: sqlite3.Connection) -> int:
    """Apply the base schema, then any pending migrations.

    Returns:
        Number of migrations applied.
    """
    from bazaar_valuator.db.schema import apply_schema

    apply_schema(conn)
    return run_migrations(conn)
