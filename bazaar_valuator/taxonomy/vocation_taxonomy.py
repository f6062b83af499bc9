"""
Vocation taxonomy: collapses base/promoted vocation names into one family
and names the skill that defines each family's combat role.

Design principle: comparisons are always family-to-family. An "Elite Knight"
sale prices a plain "Knight" listing because both classify to ``Knight``.

The lookup tables are read-only mappings built once at import time:
  - ``VOCATION_FAMILY``: every known vocation name → exactly one family.
  - ``PRIMARY_SKILL``:   every family → its ``PrimarySkill``.

Unknown vocation names are their own family (identity fallback) and use
``PrimarySkill.MAGIC_LEVEL`` as the neutral default, so ``classify_vocation``
is total and never raises.

This module has NO imports from any other ``bazaar_valuator`` package.
"""

from enum import StrEnum
from types import MappingProxyType
from typing import Mapping, NamedTuple


class PrimarySkill(StrEnum):
    """Skill attribute names, matching the listing model field names."""

    MAGIC_LEVEL = "magic_level"
    FIST = "fist"
    CLUB = "club"
    SWORD = "sword"
    AXE = "axe"
    DISTANCE = "distance"
    SHIELDING = "shielding"


VOCATION_FAMILY: Mapping[str, str] = MappingProxyType({
    "Knight":          "Knight",
    "Elite Knight":    "Knight",
    "Paladin":         "Paladin",
    "Royal Paladin":   "Paladin",
    "Sorcerer":        "Sorcerer",
    "Master Sorcerer": "Sorcerer",
    "Druid":           "Druid",
    "Elder Druid":     "Druid",
    "Monk":            "Monk",
    "Exalted Monk":    "Monk",
    "None":            "None",
})

# Knights can train sword, axe or club; sword is by far the most common.
PRIMARY_SKILL: Mapping[str, PrimarySkill] = MappingProxyType({
    "Knight":   PrimarySkill.SWORD,
    "Paladin":  PrimarySkill.DISTANCE,
    "Sorcerer": PrimarySkill.MAGIC_LEVEL,
    "Druid":    PrimarySkill.MAGIC_LEVEL,
    "Monk":     PrimarySkill.FIST,
    "None":     PrimarySkill.MAGIC_LEVEL,
})

DEFAULT_PRIMARY_SKILL = PrimarySkill.MAGIC_LEVEL


class VocationClass(NamedTuple):
    """Result of classifying a vocation name."""

    family: str
    primary_skill: PrimarySkill


def vocation_family(vocation: str) -> str:
    """Return the family for ``vocation``; unknown names map to themselves."""
    return VOCATION_FAMILY.get(vocation, vocation)


def classify_vocation(vocation: str) -> VocationClass:
    """Classify a vocation name into ``(family, primary_skill)``.

    Args:
        vocation: Raw vocation name as it appears on a listing.

    Returns:
        ``VocationClass`` — never raises, even for unseen names.
    """
    family = vocation_family(vocation)
    return VocationClass(family, PRIMARY_SKILL.get(family, DEFAULT_PRIMARY_SKILL))
