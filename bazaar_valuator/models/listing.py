"""
Character listing models — historical sales and live valuation targets.

Two listing shapes share one set of character attributes:
  1. ``SoldListing``   — a concluded auction with a positive sale price.
                         Historical fact; never mutated after creation.
  2. ``ActiveListing`` — a live (unsold) auction being valued. Same shape
                         minus the sale price; vocation and level may be
                         missing, in which case the engine skips it.

``display_items`` is kept as the opaque serialized payload exactly as the
storage layer delivers it. Decoding happens in the feature normalizer,
which is the only place allowed to interpret (and tolerate) its contents.

All models are frozen (immutable) after construction.
"""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, field_validator

_SKILL_FIELDS = (
    "magic_level", "fist", "club", "sword", "axe", "distance", "shielding",
)


class DisplayItem(BaseModel):
    """One structured entry of a decorative/display-item payload.

    Attributes:
        name: Item name, or ``None`` if the entry carries only a tier.
        tier: Item tier (normally 0–5), or ``None`` if untiered.
    """

    model_config = ConfigDict(frozen=True, extra="ignore")

    name: Optional[str] = None
    tier: Optional[int] = None


class ListingAttributes(BaseModel):
    """Character attributes common to sold and active listings.

    Attributes:
        listing_id: Storage primary key.
        external_id: Auction house identifier, if known.
        character_name: Character name, if known.
        vocation: Raw vocation name (base or promoted).
        level: Character level.
        magic_level, fist, club, sword, axe, distance, shielding: Skill values.
        charm_points: Total charm points.
        primal_ordeal_available: Quest-access flag.
        soul_war_available: Quest-access flag.
        sanguine_blood_available: Quest-access flag.
        store_items_count: Number of store items on the character.
        display_items: Opaque serialized list of ``{name, tier}`` entries.
        url: Link to the auction page.
    """

    model_config = ConfigDict(frozen=True)

    listing_id: int
    external_id: Optional[str] = None
    character_name: Optional[str] = None
    vocation: Optional[str] = None
    level: Optional[int] = None
    magic_level: Optional[int] = None
    fist: Optional[int] = None
    club: Optional[int] = None
    sword: Optional[int] = None
    axe: Optional[int] = None
    distance: Optional[int] = None
    shielding: Optional[int] = None
    charm_points: Optional[int] = None
    primal_ordeal_available: Optional[bool] = None
    soul_war_available: Optional[bool] = None
    sanguine_blood_available: Optional[bool] = None
    store_items_count: Optional[int] = None
    display_items: Optional[str] = None
    url: Optional[str] = None

    @field_validator("level", *_SKILL_FIELDS, "charm_points", "store_items_count")
    @classmethod
    def validate_non_negative(cls, v: Optional[int]) -> Optional[int]:
        if v is not None and v < 0:
            raise ValueError("Levels, skills and counts must be non-negative.")
        return v

    def skill(self, name: str) -> Optional[int]:
        """Return the skill value named ``name`` (e.g. ``"sword"``)."""
        if name not in _SKILL_FIELDS:
            raise KeyError(f"Unknown skill '{name}'.")
        return getattr(self, name)


class SoldListing(ListingAttributes):
    """A completed sale in the historical corpus.

    The bulk read contract guarantees ``vocation`` and ``level`` are known,
    so both are required here.
    """

    vocation: str
    level: int
    sold_price: int

    @field_validator("sold_price")
    @classmethod
    def validate_price_non_negative(cls, v: int) -> int:
        if v < 0:
            raise ValueError("sold_price must be non-negative.")
        return v


class ActiveListing(ListingAttributes):
    """A live listing to be valued.

    Attributes:
        current_bid: Current highest bid (or minimum bid), if known. Only the
            deal screen reads it; the valuation itself ignores it.
    """

    current_bid: Optional[int] = None

    @field_validator("current_bid")
    @classmethod
    def validate_bid_non_negative(cls, v: Optional[int]) -> Optional[int]:
        if v is not None and v < 0:
            raise ValueError("current_bid must be non-negative.")
        return v
