"""
Auction valuation engine: prices a live character listing from similar
completed sales.

Modules
-------
features    : ListingFeatures + normalize_listing() + display-item scoring.
selector    : SoldCorpus (family-grouped snapshot) + select_candidates().
similarity  : SIMILARITY_WEIGHTS + proximity_score() + compute_similarity().
aggregator  : aggregate() — ranking, weighted estimate, band, confidence.
item_bonus  : compute_item_bonus() — capped display-item adjustment.
engine      : compute_valuations() / value_listings() — batch entry points.
deals       : find_deals() — listings bid well below their estimate.

Everything here is pure, synchronous computation; the only I/O is the
corpus fetch callable handed to ``value_listings()``.
"""

from bazaar_valuator.valuation.engine import (
    CorpusUnavailableError,
    compute_valuations,
    estimate_listing,
    load_corpus,
    value_listings,
)
from bazaar_valuator.valuation.selector import SoldCorpus
from bazaar_valuator.valuation.similarity import SIMILARITY_WEIGHTS

__all__ = [
    "CorpusUnavailableError",
    "SIMILARITY_WEIGHTS",
    "SoldCorpus",
    "compute_valuations",
    "estimate_listing",
    "load_corpus",
    "value_listings",
]
