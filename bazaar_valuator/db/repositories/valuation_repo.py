"""
Repository for cached valuation results and pipeline run records.

The valuation engine itself persists nothing; this cache is written by the
batch ``ValuationStage`` so the web layer can read estimates without
recomputing them per request. Every batch replaces the whole cache so a
listing that lost its estimate does not keep a stale one.
"""

from __future__ import annotations

import json
import logging
import sqlite3
from typing import Mapping, Optional

from bazaar_valuator.db.repositories.base import BaseRepository
from bazaar_valuator.models.meta import RunMetadata
from bazaar_valuator.models.valuation import ComparableSale, Confidence, ValuationResult

logger = logging.getLogger(__name__)


class ValuationRepository(BaseRepository):
    """Read/write access to ``listing_valuations``."""

    def replace_all(
        self,
        valuations: Mapping[int, ValuationResult],
        run_id: Optional[int] = None,
    ) -> int:
        """Replace the cache with ``valuations``.

        Args:
            valuations: ``listing_id`` → result, as returned by the engine.
            run_id: Run that produced the results, if recorded.

        Returns:
            Number of rows written.
        """
        self.execute("DELETE FROM listing_valuations;")
        if not valuations:
            return 0
        self.executemany(
            """
            INSERT INTO listing_valuations (
                listing_id, run_id, estimated_value, min_price, max_price,
                sample_size, item_bonus, confidence, comparables_json
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?);
            """,
            [
                (
                    listing_id, run_id, v.estimated_value, v.min_price, v.max_price,
                    v.sample_size, v.item_bonus, v.confidence.value,
                    json.dumps([c.model_dump() for c in v.comparables]),
                )
                for listing_id, v in valuations.items()
            ],
        )
        return len(valuations)

    def get(self, listing_id: int) -> Optional[ValuationResult]:
        row = self.fetchone(
            "SELECT * FROM listing_valuations WHERE listing_id = ?;", (listing_id,)
        )
        return _row_to_valuation(row) if row else None

    def get_all(self) -> dict[int, ValuationResult]:
        """Return every cached valuation keyed by ``listing_id``."""
        rows = self.fetchall("SELECT * FROM listing_valuations ORDER BY listing_id;")
        return {row["listing_id"]: _row_to_valuation(row) for row in rows}


class RunMetadataRepository(BaseRepository):
    """Read/write access to ``run_metadata``."""

    def insert_run(self, run: RunMetadata) -> int:
        """Insert a run record and return its ``run_id``."""
        self.execute(
            """
            INSERT INTO run_metadata (
                run_slug, pipeline_stage, status, config_snapshot,
                rows_processed, error_message, started_at, finished_at
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?);
            """,
            (
                run.run_slug,
                run.pipeline_stage,
                run.status,
                json.dumps(run.config_snapshot),
                run.rows_processed,
                run.error_message,
                run.started_at.isoformat(),
                run.finished_at.isoformat() if run.finished_at else None,
            ),
        )
        return self.last_insert_rowid()

    def update_run(self, run: RunMetadata) -> None:
        """Update the mutable fields of an existing run record.

        Raises:
            ValueError: If ``run.run_id`` is ``None``.
        """
        if run.run_id is None:
            raise ValueError("Cannot update RunMetadata without a run_id.")
        self.execute(
            """
            UPDATE run_metadata SET
                status         = ?,
                rows_processed = ?,
                error_message  = ?,
                finished_at    = ?
            WHERE run_id = ?;
            """,
            (
                run.status,
                run.rows_processed,
                run.error_message,
                run.finished_at.isoformat() if run.finished_at else None,
                run.run_id,
            ),
        )


# ── Private helpers ────────────────────────────────────────────────────────────

def _row_to_valuation(row: sqlite3.Row) -> ValuationResult:
    comparables_raw = row["comparables_json"]
    comparables = (
        [ComparableSale(**c) for c in json.loads(comparables_raw)]
        if comparables_raw else []
    )
    return ValuationResult(
        estimated_value=row["estimated_value"],
        min_price=row["min_price"],
        max_price=row["max_price"],
        sample_size=row["sample_size"],
        item_bonus=row["item_bonus"],
        confidence=Confidence(row["confidence"]),
        comparables=comparables,
    )
