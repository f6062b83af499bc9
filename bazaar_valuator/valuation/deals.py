"""
Deal screen: active listings whose current bid sits well below their estimate.

    discount_pct = round_half_up((estimated_value − current_bid) / estimated_value × 100)

Listings without a current bid, without a valuation, or with a
non-positive estimate are skipped. Results are sorted by discount, largest
first.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Mapping, Optional

from bazaar_valuator.models.listing import ActiveListing
from bazaar_valuator.models.valuation import Confidence, ValuationResult
from bazaar_valuator.valuation.item_bonus import round_half_up

DEFAULT_MIN_DISCOUNT_PCT = 20


@dataclass(frozen=True)
class Deal:
    """An under-priced active listing."""

    listing_id:      int
    character_name:  Optional[str]
    vocation:        str
    level:           int
    current_bid:     int
    estimated_value: int
    discount_pct:    int
    confidence:      Confidence

    def to_dict(self) -> dict:
        return {
            "listing_id":      self.listing_id,
            "character_name":  self.character_name,
            "vocation":        self.vocation,
            "level":           self.level,
            "current_bid":     self.current_bid,
            "estimated_value": self.estimated_value,
            "discount_pct":    self.discount_pct,
            "confidence":      self.confidence.value,
        }


def discount_pct(estimated_value: int, current_bid: int) -> int:
    """Percentage by which ``current_bid`` undercuts ``estimated_value``."""
    if estimated_value <= 0:
        raise ValueError("estimated_value must be positive.")
    return round_half_up((estimated_value - current_bid) / estimated_value * 100)


def find_deals(
    listings: Iterable[ActiveListing],
    valuations: Mapping[int, ValuationResult],
    min_discount_pct: int = DEFAULT_MIN_DISCOUNT_PCT,
    limit: Optional[int] = None,
) -> list[Deal]:
    """Return listings discounted by at least ``min_discount_pct``.

    Args:
        listings:         Active listings (with ``current_bid`` where known).
        valuations:       Output of ``compute_valuations()``.
        min_discount_pct: Inclusive discount threshold.
        limit:            Maximum number of deals to return.
    """
    deals: list[Deal] = []
    for listing in listings:
        valuation = valuations.get(listing.listing_id)
        if valuation is None or not listing.current_bid:
            continue
        if valuation.estimated_value <= 0:
            continue
        pct = discount_pct(valuation.estimated_value, listing.current_bid)
        if pct < min_discount_pct:
            continue
        deals.append(Deal(
            listing_id=listing.listing_id,
            character_name=listing.character_name,
            vocation=listing.vocation or "",
            level=listing.level or 0,
            current_bid=listing.current_bid,
            estimated_value=valuation.estimated_value,
            discount_pct=pct,
            confidence=valuation.confidence,
        ))

    deals.sort(key=lambda d: d.discount_pct, reverse=True)
    return deals[:limit] if limit is not None else deals
