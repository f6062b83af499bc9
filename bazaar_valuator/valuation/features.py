"""
Feature normalizer: listing model → canonical feature vector.

The only non-trivial feature is the display-item score, derived from the
opaque ``display_items`` payload:

    for each structured entry:
        + TIER_VALUES[tier]  (tier × 10 for unrecognized tiers; tier must be > 0)
        + 10 if the name contains a high-value keyword (case-insensitive)

Payload decoding is a tagged-union step:
  - whole payload not JSON, or not a JSON array  → no entries
  - entry is a plain string (legacy URL-only format) → skipped
  - entry does not match ``{name?: str, tier?: int}`` → skipped
  - otherwise → ``DisplayItem``

Decoding is total: nothing raised here escapes the normalizer.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from types import MappingProxyType
from typing import Mapping, Optional, Union

from pydantic import ValidationError

from bazaar_valuator.models.listing import ActiveListing, DisplayItem, SoldListing
from bazaar_valuator.taxonomy.vocation_taxonomy import PrimarySkill, classify_vocation

logger = logging.getLogger(__name__)

# Tier → currency-equivalent points.
TIER_VALUES: Mapping[int, int] = MappingProxyType({1: 2, 2: 5, 3: 12, 4: 25, 5: 50})

HIGH_VALUE_KEYWORDS: tuple[str, ...] = (
    "sanguine", "falcon", "cobra", "soul", "lion",
    "eldritch", "spiritthorn", "alicorn",
)

KEYWORD_POINTS = 10
UNKNOWN_TIER_MULTIPLIER = 10

Listing = Union[SoldListing, ActiveListing]


@dataclass(frozen=True)
class ListingFeatures:
    """Canonical, comparison-ready view of one listing.

    Attributes:
        family:               Vocation family (identity for unknown names).
        primary_skill:        Class-defining skill for ``family``.
        level:                Character level, or ``None``.
        magic_level:          Magic level, or ``None``.
        skills:               All skill values keyed by ``PrimarySkill``.
        charm_points:         Charm points, or ``None``.
        quest_flags:          (primal ordeal, soul war, sanguine blood).
        store_items_count:    Store item count, or ``None``.
        display_item_score:   Points from decorative items (0 when unparsable).
    """

    family:             str
    primary_skill:      PrimarySkill
    level:              Optional[int]
    magic_level:        Optional[int]
    skills:             Mapping[PrimarySkill, Optional[int]]
    charm_points:       Optional[int]
    quest_flags:        tuple[Optional[bool], Optional[bool], Optional[bool]]
    store_items_count:  Optional[int]
    display_item_score: int

    @property
    def primary_skill_value(self) -> Optional[int]:
        return self.skills[self.primary_skill]


def parse_display_items(payload: Optional[str]) -> list[DisplayItem]:
    """Decode a display-item payload into structured entries.

    Args:
        payload: Serialized JSON list, or ``None``.

    Returns:
        Structured entries only. Empty when the payload is missing,
        unparsable or not a list.
    """
    if not payload:
        return []
    try:
        parsed = json.loads(payload)
    except (TypeError, ValueError):
        logger.debug("Unparsable display_items payload ignored: %.80s", payload)
        return []
    if not isinstance(parsed, list):
        return []

    items: list[DisplayItem] = []
    for entry in parsed:
        if not isinstance(entry, dict):
            # Legacy entries are bare image URLs with no name/tier.
            continue
        try:
            items.append(DisplayItem.model_validate(entry))
        except ValidationError:
            continue
    return items


def item_points(item: DisplayItem) -> int:
    """Return the point value of one display item."""
    points = 0
    if item.tier is not None and item.tier > 0:
        points += TIER_VALUES.get(item.tier, item.tier * UNKNOWN_TIER_MULTIPLIER)
    if item.name:
        lower = item.name.lower()
        if any(kw in lower for kw in HIGH_VALUE_KEYWORDS):
            points += KEYWORD_POINTS
    return points


def display_item_score(payload: Optional[str]) -> int:
    """Total display-item points for a raw payload (0 if malformed)."""
    return sum(item_points(item) for item in parse_display_items(payload))


def normalize_listing(listing: Listing) -> ListingFeatures:
    """Build the feature vector for a sold or active listing.

    Raises:
        ValueError: If the listing has no vocation. The engine skips such
            listings before normalizing.
    """
    if not listing.vocation:
        raise ValueError(f"Listing {listing.listing_id} has no vocation.")
    family, primary_skill = classify_vocation(listing.vocation)
    skills = MappingProxyType({
        skill: listing.skill(skill.value) for skill in PrimarySkill
    })
    return ListingFeatures(
        family=family,
        primary_skill=primary_skill,
        level=listing.level,
        magic_level=listing.magic_level,
        skills=skills,
        charm_points=listing.charm_points,
        quest_flags=(
            listing.primal_ordeal_available,
            listing.soul_war_available,
            listing.sanguine_blood_available,
        ),
        store_items_count=listing.store_items_count,
        display_item_score=display_item_score(listing.display_items),
    )
