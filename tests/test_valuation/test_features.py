"""
Tests for the feature normalizer and display-item scoring.

What we test
------------
1. Tier values: 1→2, 2→5, 3→12, 4→25, 5→50; unknown tiers → tier × 10.
2. Keyword bonus: flat 10 points, case-insensitive substring match.
3. Tolerant decoding: malformed JSON, non-list payloads, legacy string
   entries and wrongly typed entries score 0 and never raise.
4. normalize_listing(): family/primary skill resolution and field mapping.
"""

from __future__ import annotations

import json

import pytest

from bazaar_valuator.models.listing import DisplayItem
from bazaar_valuator.taxonomy.vocation_taxonomy import PrimarySkill
from bazaar_valuator.valuation.features import (
    display_item_score,
    item_points,
    normalize_listing,
    parse_display_items,
)


# ── item_points ───────────────────────────────────────────────────────────────

class TestItemPoints:
    @pytest.mark.parametrize("tier, points", [(1, 2), (2, 5), (3, 12), (4, 25), (5, 50)])
    def test_known_tiers(self, tier, points):
        assert item_points(DisplayItem(name="Plain Shield", tier=tier)) == points

    def test_unknown_tier_falls_back_to_times_ten(self):
        assert item_points(DisplayItem(tier=7)) == 70

    def test_tier_zero_scores_nothing(self):
        assert item_points(DisplayItem(name="Plain Shield", tier=0)) == 0

    def test_keyword_is_case_insensitive(self):
        assert item_points(DisplayItem(name="SANGUINE Blade")) == 10
        assert item_points(DisplayItem(name="falcon longsword")) == 10

    def test_keyword_and_tier_add_up(self):
        assert item_points(DisplayItem(name="Soulcutter", tier=3)) == 22

    def test_keyword_counted_once_per_item(self):
        assert item_points(DisplayItem(name="Soul Lion Cobra Crown")) == 10


# ── parse_display_items / display_item_score ──────────────────────────────────

class TestDisplayItemScore:
    def test_structured_payload(self):
        payload = json.dumps([
            {"name": "Sanguine Bow", "tier": 2},
            {"name": "Leather Boots", "tier": 1},
        ])
        assert display_item_score(payload) == 10 + 5 + 2

    def test_none_and_empty_payloads(self):
        assert display_item_score(None) == 0
        assert display_item_score("") == 0
        assert display_item_score("[]") == 0

    def test_malformed_json_scores_zero(self):
        assert display_item_score("[{name: 'broken'") == 0

    def test_non_list_json_scores_zero(self):
        assert display_item_score('{"name": "Sanguine Bow", "tier": 5}') == 0

    def test_legacy_string_entries_are_skipped(self):
        payload = json.dumps([
            "https://static.example.com/items/123.gif",
            {"name": "Falcon Shield", "tier": 1},
        ])
        assert display_item_score(payload) == 12

    def test_wrongly_typed_entries_are_skipped(self):
        payload = json.dumps([
            {"name": "Odd Item", "tier": "high"},
            {"name": "Lion Amulet"},
            42,
            None,
        ])
        assert display_item_score(payload) == 10

    def test_parse_returns_structured_entries_only(self):
        payload = json.dumps(["legacy.gif", {"name": "Cobra Hood", "tier": 4}])
        items = parse_display_items(payload)
        assert items == [DisplayItem(name="Cobra Hood", tier=4)]


# ── normalize_listing ─────────────────────────────────────────────────────────

class TestNormalizeListing:
    def test_promoted_knight_maps_to_family(self, make_active):
        features = normalize_listing(make_active(vocation="Elite Knight", sword=112))
        assert features.family == "Knight"
        assert features.primary_skill == PrimarySkill.SWORD
        assert features.primary_skill_value == 112

    def test_fields_are_copied(self, make_sold):
        sold = make_sold(
            level=410, magic_level=9, charm_points=3100, store_items_count=7,
            primal_ordeal_available=None,
        )
        features = normalize_listing(sold)
        assert features.level == 410
        assert features.magic_level == 9
        assert features.charm_points == 3100
        assert features.store_items_count == 7
        assert features.quest_flags == (None, False, False)

    def test_display_items_scored(self, make_active):
        payload = json.dumps([{"name": "Eldritch Staff", "tier": 5}])
        assert normalize_listing(make_active(display_items=payload)).display_item_score == 60

    def test_malformed_display_items_do_not_raise(self, make_active):
        features = normalize_listing(make_active(display_items="not json at all"))
        assert features.display_item_score == 0

    def test_missing_vocation_raises(self, make_active):
        with pytest.raises(ValueError, match="no vocation"):
            normalize_listing(make_active(vocation=None))

    def test_unknown_vocation_uses_magic_level(self, make_active):
        features = normalize_listing(make_active(vocation="Necromancer", magic_level=40))
        assert features.family == "Necromancer"
        assert features.primary_skill_value == 40
