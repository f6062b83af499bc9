"""
ValuationStage — value every active listing and refresh the valuation cache.

Processing steps:
  1. Load active listings from ``active_listings``.
  2. Bulk-read the sold corpus once (``ListingRepository.fetch_sold_corpus``).
     A failing read aborts the whole batch with ``CorpusUnavailableError``.
  3. Run the similarity valuation for every listing against that snapshot.
  4. Replace ``listing_valuations`` with the new results.

Returns the number of listings that received an estimate.
"""

from __future__ import annotations

import logging

from bazaar_valuator.models.meta import RunMetadata
from bazaar_valuator.pipeline.base import PipelineStage

logger = logging.getLogger(__name__)


class ValuationStage(PipelineStage):
    """Batch-value all active listings against the current sold corpus."""

    stage_name = "valuation"

    def _execute(self, run: RunMetadata, **kwargs) -> int:
        from bazaar_valuator.db.connection import get_connection
        from bazaar_valuator.db.repositories.listing_repo import ListingRepository
        from bazaar_valuator.db.repositories.valuation_repo import ValuationRepository
        from bazaar_valuator.valuation.engine import compute_valuations, load_corpus

        with get_connection(
            self.db_path,
            wal_mode=self.config.database.wal_mode,
            busy_timeout_ms=self.config.database.busy_timeout_ms,
        ) as conn:
            listings = ListingRepository(conn)
            active = listings.fetch_active()
            if not active:
                logger.info("ValuationStage: no active listings to value.")
                ValuationRepository(conn).replace_all({}, run_id=run.run_id)
                return 0

            corpus = load_corpus(listings.fetch_sold_corpus)
            valuations = compute_valuations(active, corpus, self.config.valuation)
            written = ValuationRepository(conn).replace_all(valuations, run_id=run.run_id)

        logger.info(
            "ValuationStage: %d of %d active listing(s) valued against %d sale(s).",
            written, len(active), len(corpus),
        )
        return written
