"""
Shared pytest fixtures for the Bazaar Valuator test suite.

Provides:
  - ``in_memory_db``: A fresh in-memory SQLite connection with the full
    schema and migrations applied. Created anew for each test.
  - ``make_sold`` / ``make_active``: listing factories with realistic
    defaults; pass keyword overrides for the fields under test.
  - ``knight_corpus``: ten tightly clustered Knight sales (levels 300..309).
"""

from __future__ import annotations

import json
import sqlite3
from typing import Callable, Generator

import pytest

from bazaar_valuator.db.migrations import initialize_database
from bazaar_valuator.models.listing import ActiveListing, SoldListing

_BASE_ATTRIBUTES = dict(
    vocation="Elite Knight",
    level=305,
    magic_level=12,
    fist=10,
    club=12,
    sword=110,
    axe=12,
    distance=20,
    shielding=105,
    charm_points=2500,
    primal_ordeal_available=True,
    soul_war_available=False,
    sanguine_blood_available=False,
    store_items_count=5,
    display_items=None,
)


def display_payload(*entries) -> str:
    """Serialize display-item entries the way the storage layer stores them."""
    return json.dumps(list(entries))


# ── Database fixture ──────────────────────────────────────────────────────────

@pytest.fixture
def in_memory_db() -> Generator[sqlite3.Connection, None, None]:
    """Yield a fresh in-memory SQLite connection with the full schema applied.

    Foreign key enforcement is ON. Connection is closed after the test.
    """
    conn = sqlite3.connect(":memory:")
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA foreign_keys = ON;")
    initialize_database(conn)
    yield conn
    conn.close()


# ── Sample domain object factories ────────────────────────────────────────────

@pytest.fixture
def make_sold() -> Callable[..., SoldListing]:
    """Factory for ``SoldListing``; ids auto-increment unless given."""
    counter = {"next": 1}

    def _make(**overrides) -> SoldListing:
        fields = {**_BASE_ATTRIBUTES, "sold_price": 500, **overrides}
        if "listing_id" not in fields:
            fields["listing_id"] = counter["next"]
            counter["next"] += 1
        return SoldListing(**fields)

    return _make


@pytest.fixture
def make_active() -> Callable[..., ActiveListing]:
    """Factory for ``ActiveListing``; ids start at 1000 unless given."""
    counter = {"next": 1000}

    def _make(**overrides) -> ActiveListing:
        fields = {**_BASE_ATTRIBUTES, **overrides}
        if "listing_id" not in fields:
            fields["listing_id"] = counter["next"]
            counter["next"] += 1
        return ActiveListing(**fields)

    return _make


@pytest.fixture
def knight_corpus(make_sold) -> list[SoldListing]:
    """Ten Knight sales at levels 300..309, all sold for 500."""
    return [
        make_sold(vocation="Knight" if i % 2 else "Elite Knight", level=300 + i)
        for i in range(10)
    ]
