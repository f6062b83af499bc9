"""
Valuation output models.

``ValuationResult`` is produced fresh per request and has no lifecycle beyond
the response (or cache row) that carries it. A result is only ever emitted
when at least ``min_sample_size`` comparable sales were used; an absent
result means "valuation unavailable", never a degraded estimate.
"""

from __future__ import annotations

from enum import StrEnum
from typing import Optional

from pydantic import BaseModel, ConfigDict, field_validator


class Confidence(StrEnum):
    """Coarse trust tier for an estimate."""

    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class ComparableSale(BaseModel):
    """A historical sale shown next to an estimate.

    Attributes:
        listing_id: Storage key of the sold listing.
        external_id: Auction house identifier, if known.
        character_name: Character name, if known.
        level: Level at time of sale.
        vocation: Raw vocation name.
        sold_price: Final sale price.
        similarity: Similarity to the target as an integer percentage (0–100).
        url: Link to the auction page, if known.
    """

    model_config = ConfigDict(frozen=True)

    listing_id: int
    external_id: Optional[str] = None
    character_name: Optional[str] = None
    level: int
    vocation: str
    sold_price: int
    similarity: int
    url: Optional[str] = None

    @field_validator("similarity")
    @classmethod
    def validate_similarity_pct(cls, v: int) -> int:
        if not 0 <= v <= 100:
            raise ValueError(f"similarity must be in [0, 100], got {v}.")
        return v


class ValuationResult(BaseModel):
    """Estimated worth of one active listing.

    Attributes:
        estimated_value: Similarity-weighted mean sale price plus item bonus.
        min_price: 25th percentile of comparable sale prices (no bonus).
        max_price: 75th percentile of comparable sale prices plus item bonus.
        sample_size: Number of comparables used.
        item_bonus: Additive display-item adjustment.
        confidence: ``high`` / ``medium`` / ``low``.
        comparables: Most similar sales, best first.
    """

    model_config = ConfigDict(frozen=True)

    estimated_value: int
    min_price: int
    max_price: int
    sample_size: int
    item_bonus: int = 0
    confidence: Confidence
    comparables: list[ComparableSale] = []

    @field_validator("estimated_value", "min_price", "max_price", "item_bonus")
    @classmethod
    def validate_non_negative(cls, v: int) -> int:
        if v < 0:
            raise ValueError("Valuation amounts must be non-negative.")
        return v

    @field_validator("sample_size")
    @classmethod
    def validate_sample_size(cls, v: int) -> int:
        if v < 1:
            raise ValueError("sample_size must be positive.")
        return v
