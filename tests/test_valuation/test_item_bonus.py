"""
Tests for the item bonus estimator.

What we test
------------
1. Scenario C: score 60 → raw bonus 120; under the cap at base 1000,
   capped to 60 at base 200.
2. Cap: bonus never exceeds round(0.30 × base).
3. Monotonic non-decreasing in score; zero score → zero bonus.
4. round_half_up() rounds halves upward.
"""

from __future__ import annotations

import pytest

from bazaar_valuator.valuation.item_bonus import (
    compute_item_bonus,
    item_bonus_cap,
    round_half_up,
)


class TestRoundHalfUp:
    @pytest.mark.parametrize(
        "value, expected",
        [(0.5, 1), (1.5, 2), (2.5, 3), (2.49, 2), (499.5, 500), (0.0, 0)],
    )
    def test_halves_round_up(self, value, expected):
        assert round_half_up(value) == expected


class TestComputeItemBonus:
    def test_scenario_c_under_cap(self):
        assert compute_item_bonus(60, 1000) == 120

    def test_scenario_c_capped(self):
        assert compute_item_bonus(60, 200) == 60

    def test_zero_score_zero_bonus(self):
        assert compute_item_bonus(0, 10_000) == 0

    def test_zero_base_zero_bonus(self):
        assert compute_item_bonus(50, 0) == 0

    @pytest.mark.parametrize("base", [1, 7, 95, 333, 1000, 123_457])
    def test_never_exceeds_cap(self, base):
        for score in range(0, 400, 7):
            assert compute_item_bonus(score, base) <= round_half_up(0.30 * base)

    def test_monotonic_in_score(self):
        bonuses = [compute_item_bonus(score, 850) for score in range(0, 300)]
        assert bonuses == sorted(bonuses)

    def test_custom_rate_and_ratio(self):
        assert compute_item_bonus(10, 1000, points_to_currency=5, max_ratio=0.5) == 50
        assert item_bonus_cap(1000, 0.5) == 500
