"""
Similarity scorer: weighted proximity between a target and one sold listing.

Score formula (convex combination, weights sum to exactly 1.0)
---------------------------------------------------------------
    similarity = (
        level          * 0.30   # max diff 200
        + magic_level  * 0.15   # max diff 50
        + primary      * 0.15   # max diff 30 (reuses magic level score
                                #   when the primary skill IS magic level)
        + charm        * 0.10   # max diff 5000
        + quests       * 0.10   # agreement ratio over comparable flags
        + store_items  * 0.10   # max diff 50
        + display      * 0.10   # max diff 100 (display-item points)
    )

Proximity for a numeric pair ``(a, b)`` with bound ``d``:
    clamp(1 − |a − b| / d, 0, 1), or 0.5 when either side is missing.

Missing data is neutral, not maximally dissimilar. Every component is
symmetric, so swapping target and candidate (same family) gives the same score.
"""

from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType
from typing import Mapping, Optional

from bazaar_valuator.taxonomy.vocation_taxonomy import PrimarySkill
from bazaar_valuator.valuation.features import ListingFeatures

NEUTRAL_SCORE = 0.5

SIMILARITY_WEIGHTS: Mapping[str, float] = MappingProxyType({
    "level":         0.30,
    "magic_level":   0.15,
    "primary_skill": 0.15,
    "charm":         0.10,
    "quests":        0.10,
    "store_items":   0.10,
    "display_items": 0.10,
})

MAX_DIFF: Mapping[str, float] = MappingProxyType({
    "level":         200,
    "magic_level":   50,
    "primary_skill": 30,
    "charm":         5000,
    "store_items":   50,
    "display_items": 100,
})


def _clamp(value: float, lo: float, hi: float) -> float:
    return max(lo, min(hi, value))


def proximity_score(a: Optional[float], b: Optional[float], max_diff: float) -> float:
    """Closeness of two values in [0, 1]; 0.5 when either is missing."""
    if a is None or b is None:
        return NEUTRAL_SCORE
    return _clamp(1.0 - abs(a - b) / max_diff, 0.0, 1.0)


def quest_match_ratio(
    target_flags: tuple[Optional[bool], ...],
    candidate_flags: tuple[Optional[bool], ...],
) -> float:
    """Fraction of agreeing quest flags among pairs known on both sides.

    Returns 0.5 when no pair is comparable.
    """
    comparable = [
        (t, c) for t, c in zip(target_flags, candidate_flags)
        if t is not None and c is not None
    ]
    if not comparable:
        return NEUTRAL_SCORE
    return sum(1 for t, c in comparable if t == c) / len(comparable)


@dataclass(frozen=True)
class SimilarityBreakdown:
    """Per-feature proximity scores for one target/candidate pair."""

    level:         float
    magic_level:   float
    primary_skill: float
    charm:         float
    quests:        float
    store_items:   float
    display_items: float

    @property
    def total(self) -> float:
        """Weighted similarity in [0, 1]."""
        w = SIMILARITY_WEIGHTS
        return (
            w["level"]           * self.level
            + w["magic_level"]   * self.magic_level
            + w["primary_skill"] * self.primary_skill
            + w["charm"]         * self.charm
            + w["quests"]        * self.quests
            + w["store_items"]   * self.store_items
            + w["display_items"] * self.display_items
        )


def score_components(
    target: ListingFeatures,
    candidate: ListingFeatures,
) -> SimilarityBreakdown:
    """Compute every proximity component for a pair.

    The primary skill is the target family's; candidates are always drawn
    from the same family, so both sides agree on it.
    """
    ml_score = proximity_score(
        target.magic_level, candidate.magic_level, MAX_DIFF["magic_level"]
    )

    skill = target.primary_skill
    if skill == PrimarySkill.MAGIC_LEVEL:
        primary_score = ml_score
    else:
        primary_score = proximity_score(
            target.skills[skill], candidate.skills[skill], MAX_DIFF["primary_skill"]
        )

    return SimilarityBreakdown(
        level=proximity_score(target.level, candidate.level, MAX_DIFF["level"]),
        magic_level=ml_score,
        primary_skill=primary_score,
        charm=proximity_score(
            target.charm_points, candidate.charm_points, MAX_DIFF["charm"]
        ),
        quests=quest_match_ratio(target.quest_flags, candidate.quest_flags),
        store_items=proximity_score(
            target.store_items_count, candidate.store_items_count, MAX_DIFF["store_items"]
        ),
        display_items=proximity_score(
            target.display_item_score,
            candidate.display_item_score,
            MAX_DIFF["display_items"],
        ),
    )


def compute_similarity(target: ListingFeatures, candidate: ListingFeatures) -> float:
    """Weighted similarity in [0, 1] between a target and one candidate."""
    return score_components(target, candidate).total
