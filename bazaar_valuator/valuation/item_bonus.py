"""
Item bonus estimator: additive price adjustment from display items.

    bonus = min(display_item_score × points_to_currency,
                round_half_up(max_ratio × base_estimate))

Monotonic non-decreasing in the score, bounded by the cap, and 0 whenever
the score is 0 (including unparsable payloads, which score 0).
"""

from __future__ import annotations

import math

POINTS_TO_CURRENCY = 2
MAX_ITEM_BONUS_RATIO = 0.30


def round_half_up(value: float) -> int:
    """Round to the nearest integer, with halves rounded up.

    Python's ``round()`` uses banker's rounding; price figures here round
    ``x.5`` upward.
    """
    return math.floor(value + 0.5)


def item_bonus_cap(base_estimate: int, max_ratio: float = MAX_ITEM_BONUS_RATIO) -> int:
    """Largest bonus allowed for ``base_estimate``."""
    return max(0, round_half_up(base_estimate * max_ratio))


def compute_item_bonus(
    display_item_score: int,
    base_estimate: int,
    points_to_currency: int = POINTS_TO_CURRENCY,
    max_ratio: float = MAX_ITEM_BONUS_RATIO,
) -> int:
    """Return the capped item bonus for a target.

    Args:
        display_item_score: Target's display-item points.
        base_estimate:      Rounded similarity-weighted estimate.
        points_to_currency: Currency units per point.
        max_ratio:          Cap as a fraction of ``base_estimate``.
    """
    if display_item_score <= 0:
        return 0
    raw = display_item_score * points_to_currency
    return min(raw, item_bonus_cap(base_estimate, max_ratio))
