"""
Abstract base class for audited batch stages.

Contract:
  1. Receive ``AppConfig`` at construction.
  2. ``run(**kwargs)`` is the sole public API.
  3. ``run()`` records a ``RunMetadata`` row with ``status='started'``,
     calls ``_execute()``, then updates the row with the final status.
  4. ``_execute()`` is the stage-specific implementation.

Stages never swallow exceptions: a failing ``_execute()`` is recorded as
``status='failed'`` and re-raised to the caller.

Usage::

    class MyStage(PipelineStage):
        stage_name = "valuation"

        def _execute(self, run: RunMetadata, **kwargs) -> int:
            return 42

    run = MyStage(config=app_config).run()
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from uuid import uuid4

from bazaar_valuator.config import AppConfig
from bazaar_valuator.models.meta import RunMetadata
from bazaar_valuator.utils.time_utils import utcnow

logger = logging.getLogger(__name__)


class PipelineStage(ABC):
    """Abstract base for audited stages.

    Attributes:
        stage_name: A valid ``RunMetadata.pipeline_stage`` value.
        config: The application configuration for this run.
        db_path: SQLite path (defaults to ``config.database.db_path``).
    """

    stage_name: str

    def __init__(self, config: AppConfig, db_path: str | None = None) -> None:
        self.config = config
        self.db_path = db_path or config.database.db_path

    def run(self, **kwargs) -> RunMetadata:
        """Execute this stage and return the finalized run record.

        Raises:
            Exception: Re-raises any exception from ``_execute()`` after
                recording ``status='failed'``.
        """
        run = RunMetadata(
            run_slug=str(uuid4()),
            pipeline_stage=self.stage_name,
            config_snapshot=self.config.model_dump(),
            started_at=utcnow(),
        )
        logger.info("Stage [%s] starting | run_slug=%s", self.stage_name, run.run_slug)
        self._persist_run(run)

        try:
            rows = self._execute(run=run, **kwargs)
        except Exception as exc:
            run.status = "failed"
            run.error_message = str(exc)
            run.finished_at = utcnow()
            logger.error(
                "Stage [%s] FAILED: %s | run_slug=%s", self.stage_name, exc, run.run_slug
            )
            self._persist_run(run)
            raise

        run.status = "success"
        run.rows_processed = rows
        run.finished_at = utcnow()
        logger.info(
            "Stage [%s] completed | rows=%d | run_slug=%s",
            self.stage_name, rows, run.run_slug,
        )
        self._persist_run(run)
        return run

    @abstractmethod
    def _execute(self, run: RunMetadata, **kwargs) -> int:
        """Stage-specific implementation.

        Args:
            run: The in-progress ``RunMetadata`` record (``run_id`` set when
                the initial insert succeeded).

        Returns:
            Count of records processed.
        """
        ...

    def _persist_run(self, run: RunMetadata) -> None:
        """Insert or update the run record.

        Persistence failures are logged, not raised, so they never mask the
        stage's own outcome.
        """
        try:
            from bazaar_valuator.db.connection import get_connection
            from bazaar_valuator.db.repositories.valuation_repo import RunMetadataRepository

            with get_connection(
                self.db_path,
                wal_mode=self.config.database.wal_mode,
                busy_timeout_ms=self.config.database.busy_timeout_ms,
            ) as conn:
                repo = RunMetadataRepository(conn)
                if run.run_id is None:
                    run.run_id = repo.insert_run(run)
                else:
                    repo.update_run(run)
        except Exception as exc:
            logger.error(
                "Failed to persist RunMetadata for run_slug=%s: %s", run.run_slug, exc
            )
