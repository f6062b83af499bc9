"""
Valuation aggregator: ranked comparables → price estimate, band and confidence.

Steps
-----
1. Score every candidate; drop similarity <= ``min_similarity``.
2. Sort by similarity descending; keep the top ``max_comparables``.
3. Fewer than ``min_sample_size`` left → no result.
4. Base estimate = Σ(price · sim) / Σ(sim), rounded half-up.
5. Band = nearest-rank 25th / 75th percentile of the unweighted prices.
6. Confidence:
       HIGH   : n >= 10 and mean similarity > 0.60
       MEDIUM : n >= 5  and mean similarity > 0.45
       LOW    : otherwise
7. Item bonus is added to the estimate and to ``max_price`` only.
   ``min_price`` stays unadjusted so the floor remains conservative.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Optional, Sequence

from bazaar_valuator.config import ValuationConfig
from bazaar_valuator.models.valuation import ComparableSale, Confidence, ValuationResult
from bazaar_valuator.valuation.features import ListingFeatures
from bazaar_valuator.valuation.item_bonus import compute_item_bonus, round_half_up
from bazaar_valuator.valuation.selector import CorpusEntry
from bazaar_valuator.valuation.similarity import compute_similarity

logger = logging.getLogger(__name__)

HIGH_CONFIDENCE_MIN_SAMPLE = 10
HIGH_CONFIDENCE_MIN_SIMILARITY = 0.60
MEDIUM_CONFIDENCE_MIN_SAMPLE = 5
MEDIUM_CONFIDENCE_MIN_SIMILARITY = 0.45


@dataclass(frozen=True)
class ScoredCandidate:
    """A candidate sale with its similarity to the target."""

    entry:      CorpusEntry
    similarity: float

    @property
    def sold_price(self) -> int:
        return self.entry.sold_price


def rank_candidates(
    target: ListingFeatures,
    candidates: Sequence[CorpusEntry],
    min_similarity: float,
    max_comparables: int,
) -> list[ScoredCandidate]:
    """Score, threshold and rank candidates (steps 1–2)."""
    scored = [
        ScoredCandidate(entry, compute_similarity(target, entry.features))
        for entry in candidates
    ]
    kept = [s for s in scored if s.similarity > min_similarity]
    kept.sort(key=lambda s: s.similarity, reverse=True)
    return kept[:max_comparables]


def nearest_rank_percentile(sorted_prices: Sequence[int], q: float) -> int:
    """Element at index ``floor(n · q)`` of an ascending, non-empty list."""
    if not sorted_prices:
        raise ValueError("Cannot take a percentile of an empty price list.")
    index = min(math.floor(len(sorted_prices) * q), len(sorted_prices) - 1)
    return sorted_prices[index]


def determine_confidence(sample_size: int, mean_similarity: float) -> Confidence:
    """Map sample size and mean similarity to a confidence tier."""
    if (
        sample_size >= HIGH_CONFIDENCE_MIN_SAMPLE
        and mean_similarity > HIGH_CONFIDENCE_MIN_SIMILARITY
    ):
        return Confidence.HIGH
    if (
        sample_size >= MEDIUM_CONFIDENCE_MIN_SAMPLE
        and mean_similarity > MEDIUM_CONFIDENCE_MIN_SIMILARITY
    ):
        return Confidence.MEDIUM
    return Confidence.LOW


def weighted_mean_price(ranked: Sequence[ScoredCandidate]) -> float:
    """Similarity-weighted mean sale price."""
    total_weight = sum(s.similarity for s in ranked)
    return sum(s.sold_price * (s.similarity / total_weight) for s in ranked)


def _to_comparable(scored: ScoredCandidate) -> ComparableSale:
    listing = scored.entry.listing
    return ComparableSale(
        listing_id=listing.listing_id,
        external_id=listing.external_id,
        character_name=listing.character_name,
        level=listing.level,
        vocation=listing.vocation,
        sold_price=listing.sold_price,
        similarity=min(100, round_half_up(scored.similarity * 100)),
        url=listing.url,
    )


def aggregate(
    target: ListingFeatures,
    candidates: Sequence[CorpusEntry],
    config: Optional[ValuationConfig] = None,
) -> Optional[ValuationResult]:
    """Produce a valuation for ``target`` from its candidate sales.

    Args:
        target:     Target features.
        candidates: Output of the candidate selector (may be empty).
        config:     Thresholds; defaults to ``ValuationConfig()``.

    Returns:
        ``ValuationResult``, or ``None`` when too few comparables survive.
    """
    cfg = config or ValuationConfig()

    ranked = rank_candidates(target, candidates, cfg.min_similarity, cfg.max_comparables)
    if len(ranked) < cfg.min_sample_size:
        logger.debug(
            "Insufficient comparables: %d of %d candidate(s) above similarity %.2f.",
            len(ranked), len(candidates), cfg.min_similarity,
        )
        return None

    base_estimate = round_half_up(weighted_mean_price(ranked))

    prices = sorted(s.sold_price for s in ranked)
    p25 = nearest_rank_percentile(prices, 0.25)
    p75 = nearest_rank_percentile(prices, 0.75)

    mean_similarity = sum(s.similarity for s in ranked) / len(ranked)
    confidence = determine_confidence(len(ranked), mean_similarity)

    item_bonus = compute_item_bonus(
        target.display_item_score,
        base_estimate,
        points_to_currency=cfg.points_to_currency,
        max_ratio=cfg.item_bonus_ratio,
    )

    return ValuationResult(
        estimated_value=base_estimate + item_bonus,
        min_price=p25,
        max_price=p75 + item_bonus,
        sample_size=len(ranked),
        item_bonus=item_bonus,
        confidence=confidence,
        comparables=[_to_comparable(s) for s in ranked[: cfg.display_comparables]],
    )
