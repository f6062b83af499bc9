"""Tests for the vocation taxonomy — family collapse and primary skill lookup."""

from __future__ import annotations

import pytest

from bazaar_valuator.taxonomy.vocation_taxonomy import (
    DEFAULT_PRIMARY_SKILL,
    PRIMARY_SKILL,
    VOCATION_FAMILY,
    PrimarySkill,
    classify_vocation,
    vocation_family,
)
from bazaar_valuator.models.listing import ListingAttributes


class TestPrimarySkillEnum:
    def test_values_match_listing_skill_fields(self):
        """Every skill name must be readable from a listing via ``skill()``."""
        listing = ListingAttributes(listing_id=1)
        for member in PrimarySkill:
            assert listing.skill(member.value) is None

    def test_no_duplicate_values(self):
        values = [m.value for m in PrimarySkill]
        assert len(values) == len(set(values))


class TestLookupTables:
    def test_every_family_has_a_primary_skill(self):
        for family in set(VOCATION_FAMILY.values()):
            assert family in PRIMARY_SKILL, f"Family '{family}' has no primary skill"

    def test_tables_are_read_only(self):
        with pytest.raises(TypeError):
            VOCATION_FAMILY["Paladin"] = "Knight"  # type: ignore[index]
        with pytest.raises(TypeError):
            PRIMARY_SKILL["Knight"] = PrimarySkill.AXE  # type: ignore[index]

    def test_default_primary_skill_is_magic_level(self):
        assert DEFAULT_PRIMARY_SKILL == PrimarySkill.MAGIC_LEVEL


class TestClassifyVocation:
    @pytest.mark.parametrize(
        "base, promoted",
        [
            ("Knight", "Elite Knight"),
            ("Paladin", "Royal Paladin"),
            ("Sorcerer", "Master Sorcerer"),
            ("Druid", "Elder Druid"),
            ("Monk", "Exalted Monk"),
        ],
    )
    def test_promoted_and_base_classify_identically(self, base, promoted):
        assert classify_vocation(base) == classify_vocation(promoted)

    @pytest.mark.parametrize(
        "vocation, skill",
        [
            ("Elite Knight", PrimarySkill.SWORD),
            ("Royal Paladin", PrimarySkill.DISTANCE),
            ("Master Sorcerer", PrimarySkill.MAGIC_LEVEL),
            ("Elder Druid", PrimarySkill.MAGIC_LEVEL),
            ("Exalted Monk", PrimarySkill.FIST),
        ],
    )
    def test_primary_skill_per_family(self, vocation, skill):
        assert classify_vocation(vocation).primary_skill == skill

    def test_unknown_vocation_is_its_own_family(self):
        result = classify_vocation("Necromancer")
        assert result.family == "Necromancer"
        assert result.primary_skill == PrimarySkill.MAGIC_LEVEL

    def test_empty_string_does_not_raise(self):
        assert classify_vocation("").family == ""

    def test_result_unpacks_as_tuple(self):
        family, skill = classify_vocation("Elite Knight")
        assert family == "Knight"
        assert skill == PrimarySkill.SWORD


class TestFamilyHelpers:
    def test_vocation_family_identity_fallback(self):
        assert vocation_family("Unknown Class") == "Unknown Class"
