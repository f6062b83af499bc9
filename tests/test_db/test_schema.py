"""Tests for SQLite schema — idempotency, tables, indexes, migrations, FK enforcement."""

from __future__ import annotations

import sqlite3

import pytest

from bazaar_valuator.db.migrations import MIGRATIONS, initialize_database, run_migrations
from bazaar_valuator.db.schema import (
    ALL_TABLE_NAMES,
    apply_schema,
    get_existing_indexes,
    get_existing_tables,
)


class TestApplySchema:
    def test_all_tables_created(self, in_memory_db):
        tables = get_existing_tables(in_memory_db)
        for expected_table in ALL_TABLE_NAMES:
            assert expected_table in tables, (
                f"Expected table '{expected_table}' not found. Found: {tables}"
            )

    def test_idempotent_double_apply(self, in_memory_db):
        """apply_schema() called twice must not raise errors."""
        apply_schema(in_memory_db)
        assert set(ALL_TABLE_NAMES) <= set(get_existing_tables(in_memory_db))

    def test_expected_indexes(self, in_memory_db):
        indexes = get_existing_indexes(in_memory_db)
        for name in (
            "idx_sold_vocation_level",
            "idx_sold_external_id",
            "idx_active_external_id",
            "idx_sold_price",
        ):
            assert name in indexes

    def test_sold_price_not_null(self, in_memory_db):
        with pytest.raises(sqlite3.IntegrityError):
            in_memory_db.execute(
                "INSERT INTO sold_listings (vocation, level, sold_price) VALUES ('Knight', 10, NULL);"
            )


class TestForeignKeys:
    def test_valuation_requires_active_listing(self, in_memory_db):
        with pytest.raises(sqlite3.IntegrityError):
            in_memory_db.execute(
                "INSERT INTO listing_valuations "
                "(listing_id, estimated_value, min_price, max_price, sample_size, confidence) "
                "VALUES (999, 1, 1, 1, 3, 'low');"
            )

    def test_deleting_active_listing_cascades(self, in_memory_db):
        in_memory_db.execute("INSERT INTO active_listings (listing_id, vocation) VALUES (1, 'Knight');")
        in_memory_db.execute(
            "INSERT INTO listing_valuations "
            "(listing_id, estimated_value, min_price, max_price, sample_size, confidence) "
            "VALUES (1, 10, 5, 15, 3, 'low');"
        )
        in_memory_db.execute("DELETE FROM active_listings WHERE listing_id = 1;")
        count = in_memory_db.execute("SELECT COUNT(*) FROM listing_valuations;").fetchone()[0]
        assert count == 0


class TestMigrations:
    def test_all_applied_by_fixture(self, in_memory_db):
        rows = in_memory_db.execute("SELECT version_id FROM schema_versions;").fetchall()
        assert {r[0] for r in rows} == set(MIGRATIONS)

    def test_rerun_applies_nothing(self, in_memory_db):
        assert run_migrations(in_memory_db) == 0

    def test_fresh_database_applies_all(self):
        conn = sqlite3.connect(":memory:")
        conn.row_factory = sqlite3.Row
        try:
            assert initialize_database(conn) == len(MIGRATIONS)
            assert initialize_database(conn) == 0
        finally:
            conn.close()

    def test_comparables_column_added(self, in_memory_db):
        columns = {
            row[1] for row in in_memory_db.execute("PRAGMA table_info(listing_valuations);")
        }
        assert "comparables_json" in columns
