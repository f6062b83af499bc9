"""Tests for bazaar_valuator.reporting.formatters."""

from __future__ import annotations

from bazaar_valuator.models.valuation import Confidence
from bazaar_valuator.reporting.formatters import (
    format_deals_table,
    format_valuation_table,
    format_weight_table,
)
from bazaar_valuator.valuation.deals import Deal
from bazaar_valuator.valuation.similarity import SIMILARITY_WEIGHTS


def _row(**overrides) -> dict:
    row = {
        "listing_id": 1, "character_name": "Sir Bid", "vocation": "Elite Knight",
        "level": 305, "estimated_value": 1_250_000, "min_price": 900_000,
        "max_price": 1_400_000, "sample_size": 12, "confidence": "high",
    }
    row.update(overrides)
    return row


def test_valuation_table_lists_rows() -> None:
    """Each valuation appears with grouped amounts and its band."""
    text = format_valuation_table([_row()], total_listings=3)
    assert "Valued: 1 of 3" in text
    assert "Sir Bid" in text
    assert "1,250,000" in text
    assert "900,000 - 1,400,000" in text


def test_valuation_table_empty() -> None:
    text = format_valuation_table([], total_listings=0)
    assert "no valuations available" in text


def test_valuation_table_truncates_long_names() -> None:
    text = format_valuation_table([_row(character_name="X" * 40)], total_listings=1)
    assert "X" * 22 in text
    assert "X" * 23 not in text


def test_weight_table_shows_percentages() -> None:
    text = format_weight_table(SIMILARITY_WEIGHTS)
    assert "level" in text
    assert "30%" in text


def test_deals_table() -> None:
    deal = Deal(
        listing_id=4, character_name=None, vocation="Royal Paladin", level=410,
        current_bid=500, estimated_value=1000, discount_pct=50,
        confidence=Confidence.LOW,
    )
    text = format_deals_table([deal], min_discount_pct=20)
    assert "at least 20%" in text
    assert "Royal Paladin" in text
    assert "50%" in text


def test_deals_table_empty() -> None:
    assert "no deals found" in format_deals_table([], min_discount_pct=20)
