"""
Batch valuation entry point.

Flow per invocation
-------------------
1. Fetch the sold corpus once through the caller-supplied ``fetch_sold``
   callable (the only I/O). Any failure there raises
   ``CorpusUnavailableError`` and fails the whole batch.
2. Group and normalize the corpus (``SoldCorpus``).
3. For every active listing with a known vocation and level:
   normalize → select candidates → aggregate.
4. Return ``{listing_id: ValuationResult}``. Listings that were skipped or
   had too few comparables are simply absent.

No state survives between calls; two concurrent invocations each fetch
(or receive) their own immutable snapshot.
"""

from __future__ import annotations

import logging
from typing import Callable, Iterable, Optional

from bazaar_valuator.config import ValuationConfig
from bazaar_valuator.models.listing import ActiveListing, SoldListing
from bazaar_valuator.models.valuation import ValuationResult
from bazaar_valuator.valuation.aggregator import aggregate
from bazaar_valuator.valuation.features import normalize_listing
from bazaar_valuator.valuation.selector import SoldCorpus, select_candidates

logger = logging.getLogger(__name__)

SoldFetcher = Callable[[], Iterable[SoldListing]]


class CorpusUnavailableError(RuntimeError):
    """Raised when the sold-listing corpus cannot be read.

    Fatal for the whole batch: no partial valuation is meaningful without
    the corpus. The original exception is chained as ``__cause__``.
    """


def load_corpus(fetch_sold: SoldFetcher) -> SoldCorpus:
    """Run the bulk corpus read and build a grouped snapshot.

    Raises:
        CorpusUnavailableError: If ``fetch_sold`` raises.
    """
    try:
        sold = list(fetch_sold())
    except Exception as exc:
        raise CorpusUnavailableError(f"Sold-listing corpus read failed: {exc}") from exc
    return SoldCorpus.from_listings(sold)


def is_valuable(listing: ActiveListing) -> bool:
    """True if the listing carries the vocation and level needed for selection."""
    return bool(listing.vocation) and bool(listing.level)


def estimate_listing(
    listing: ActiveListing,
    corpus: SoldCorpus,
    config: Optional[ValuationConfig] = None,
) -> Optional[ValuationResult]:
    """Value one listing against an already-built corpus.

    Returns ``None`` when the listing lacks vocation/level or when too few
    comparable sales exist.
    """
    cfg = config or ValuationConfig()
    if not is_valuable(listing):
        logger.debug("Listing %d skipped: missing vocation or level.", listing.listing_id)
        return None

    target = normalize_listing(listing)
    candidates = select_candidates(target, corpus, cfg.level_window)
    result = aggregate(target, candidates, cfg)
    if result is None:
        logger.debug(
            "Listing %d: no estimate (%d candidate(s) in %s window).",
            listing.listing_id, len(candidates), target.family,
        )
    return result


def compute_valuations(
    listings: Iterable[ActiveListing],
    corpus: SoldCorpus,
    config: Optional[ValuationConfig] = None,
) -> dict[int, ValuationResult]:
    """Value a batch of active listings against one corpus snapshot.

    Args:
        listings: Active listings to value.
        corpus:   Grouped sold corpus shared by the whole batch.
        config:   Thresholds; defaults to ``ValuationConfig()``.

    Returns:
        Mapping of ``listing_id`` → ``ValuationResult`` for valued listings only.
    """
    cfg = config or ValuationConfig()
    results: dict[int, ValuationResult] = {}
    total = 0
    skipped = 0

    for listing in listings:
        total += 1
        if not is_valuable(listing):
            skipped += 1
            continue
        result = estimate_listing(listing, corpus, cfg)
        if result is not None:
            results[listing.listing_id] = result

    logger.info(
        "Valued %d of %d listing(s) (%d skipped for missing vocation/level).",
        len(results), total, skipped,
    )
    return results


def value_listings(
    listings: Iterable[ActiveListing],
    fetch_sold: SoldFetcher,
    config: Optional[ValuationConfig] = None,
) -> dict[int, ValuationResult]:
    """Fetch the corpus once, then value every listing in the batch.

    Raises:
        CorpusUnavailableError: If the corpus read fails.
    """
    corpus = load_corpus(fetch_sold)
    return compute_valuations(listings, corpus, config)
