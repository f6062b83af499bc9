"""
Sold-listing corpus and candidate selection.

``SoldCorpus`` is an immutable snapshot of the historical corpus, grouped by
vocation family and normalized once, so that a batch of targets shares one
bulk fetch and one normalization pass.

Candidate selection is a fixed window: same family, level within
``[max(1, level − window), level + window]``. The window is never widened;
a sparse window is handed to the aggregator as-is so that it can return
"no result".
"""

from __future__ import annotations

import logging
from bisect import bisect_left, bisect_right
from collections import defaultdict
from dataclasses import dataclass
from typing import Iterable, Mapping

from bazaar_valuator.models.listing import SoldListing
from bazaar_valuator.valuation.features import ListingFeatures, normalize_listing

logger = logging.getLogger(__name__)

DEFAULT_LEVEL_WINDOW = 200


@dataclass(frozen=True)
class CorpusEntry:
    """A sold listing paired with its precomputed features."""

    listing:  SoldListing
    features: ListingFeatures

    @property
    def level(self) -> int:
        return self.listing.level

    @property
    def sold_price(self) -> int:
        return self.listing.sold_price


class SoldCorpus:
    """Sold listings grouped by vocation family, each group sorted by level.

    Build with :meth:`from_listings`. Listings without a positive price or
    with a blank vocation are dropped, mirroring the storage read contract.
    """

    def __init__(self, groups: Mapping[str, tuple[CorpusEntry, ...]]) -> None:
        self._groups = dict(groups)
        self._levels = {
            family: [e.level for e in entries] for family, entries in self._groups.items()
        }

    @classmethod
    def from_listings(cls, listings: Iterable[SoldListing]) -> "SoldCorpus":
        grouped: dict[str, list[CorpusEntry]] = defaultdict(list)
        skipped = 0
        unclassified = 0
        for listing in listings:
            if listing.sold_price <= 0:
                skipped += 1
                continue
            if not listing.vocation:
                unclassified += 1
                continue
            features = normalize_listing(listing)
            grouped[features.family].append(CorpusEntry(listing, features))

        if skipped:
            logger.debug("SoldCorpus: skipped %d listing(s) without a sale price.", skipped)
        if unclassified:
            logger.warning(
                "SoldCorpus: skipped %d listing(s) with a blank vocation.", unclassified
            )

        groups = {
            family: tuple(sorted(entries, key=lambda e: e.level))
            for family, entries in grouped.items()
        }
        corpus = cls(groups)
        logger.info(
            "SoldCorpus built: %d sales across %d families.", len(corpus), len(groups)
        )
        return corpus

    def __len__(self) -> int:
        return sum(len(entries) for entries in self._groups.values())

    @property
    def families(self) -> list[str]:
        return sorted(self._groups)

    def family(self, family: str) -> tuple[CorpusEntry, ...]:
        """All entries of ``family`` (empty tuple for unseen families)."""
        return self._groups.get(family, ())

    def level_range(self, family: str, level_min: int, level_max: int) -> list[CorpusEntry]:
        """Entries of ``family`` with ``level_min <= level <= level_max``."""
        entries = self._groups.get(family)
        if not entries:
            return []
        levels = self._levels[family]
        lo = bisect_left(levels, level_min)
        hi = bisect_right(levels, level_max)
        return list(entries[lo:hi])


def level_bounds(level: int, window: int = DEFAULT_LEVEL_WINDOW) -> tuple[int, int]:
    """Inclusive candidate level bounds for a target level."""
    return max(1, level - window), level + window


def select_candidates(
    target: ListingFeatures,
    corpus: SoldCorpus,
    window: int = DEFAULT_LEVEL_WINDOW,
) -> list[CorpusEntry]:
    """Return same-family sales within ``±window`` levels of the target.

    Args:
        target: Target features; ``target.level`` must be set.
        corpus: Pre-grouped sold corpus.
        window: Half-width of the level window.

    Returns:
        Candidate entries, ordered by level. May be empty.
    """
    if target.level is None:
        raise ValueError("Cannot select candidates for a target without a level.")
    level_min, level_max = level_bounds(target.level, window)
    return corpus.level_range(target.family, level_min, level_max)
