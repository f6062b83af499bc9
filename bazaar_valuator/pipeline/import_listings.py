"""
ImportStage: listing file (.json / .csv) → ``sold_listings`` or ``active_listings``.

Execution sequence
------------------
1. Parse and validate every row of the file (``load_listings``).
   Any invalid row aborts the stage before the database is touched.
2. Upsert the listings keyed by ``listing_id``.
3. Record the row count on the run record.

Re-importing the same file is idempotent; a changed row overwrites the
stored one.
"""

from __future__ import annotations

import logging
from pathlib import Path

from bazaar_valuator.ingestion.listing_import import ListingKind, load_listings
from bazaar_valuator.models.meta import RunMetadata
from bazaar_valuator.pipeline.base import PipelineStage

logger = logging.getLogger(__name__)


class ImportStage(PipelineStage):
    """Load one listing file into the database.

    ``run(path=..., kind=...)`` kwargs:
        path: Listing file to import.
        kind: ``ListingKind.SOLD`` or ``ListingKind.ACTIVE``.
    """

    stage_name = "import"

    def _execute(self, run: RunMetadata, path: Path, kind: ListingKind, **kwargs) -> int:
        from bazaar_valuator.db.connection import get_connection
        from bazaar_valuator.db.repositories.listing_repo import ListingRepository

        kind = ListingKind(kind)
        listings = load_listings(Path(path), kind)

        with get_connection(
            self.db_path,
            wal_mode=self.config.database.wal_mode,
            busy_timeout_ms=self.config.database.busy_timeout_ms,
        ) as conn:
            repo = ListingRepository(conn)
            if kind == ListingKind.SOLD:
                written = repo.upsert_sold_batch(listings)
            else:
                written = repo.upsert_active_batch(listings)

        logger.info("ImportStage: %d %s listing(s) upserted from %s.", written, kind.value, path)
        return written
