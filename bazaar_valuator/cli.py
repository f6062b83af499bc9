"""
Bazaar Valuator — CLI entry point.

All commands follow this pattern:
  1. Load ``AppConfig`` via ``load_config()``.
  2. Configure logging.
  3. Validate inputs.
  4. Execute action (DB init, listing import, valuation batch, etc.).
  5. Report result to stdout.

Install and run::

    pip install -e .
    bazaar-valuator --help
    bazaar-valuator init-db
    bazaar-valuator import-listings --kind sold --file data/raw/sold.json
    bazaar-valuator import-listings --kind active --file data/raw/active.csv
    bazaar-valuator value-listings --export parquet
    bazaar-valuator show-valuation 1042
    bazaar-valuator show-deals --min-discount 25
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Optional

import typer

app = typer.Typer(
    name="bazaar-valuator",
    help="Character auction valuation by comparable sales.",
    add_completion=False,
)

_EXPORT_FORMATS = ("csv", "json", "parquet")


# ── Helpers ───────────────────────────────────────────────────────────────────

def _load_config_or_exit(config_path: Optional[str] = None):
    """Load AppConfig, printing a friendly error and exiting on failure."""
    from bazaar_valuator.config import load_config

    try:
        cfg_path = Path(config_path) if config_path else None
        return load_config(cfg_path)
    except FileNotFoundError as exc:
        typer.echo(f"[ERROR] {exc}", err=True)
        raise typer.Exit(code=1)
    except Exception as exc:
        typer.echo(f"[ERROR] Config validation failed: {exc}", err=True)
        raise typer.Exit(code=1)


def _configure_logging(config):
    """Set up logging from config."""
    from bazaar_valuator.utils.logging import configure_logging
    configure_logging(config.logging)


def _ensure_schema(config, target_db: str) -> None:
    """Apply schema and migrations (idempotent)."""
    from bazaar_valuator.db.connection import get_connection
    from bazaar_valuator.db.migrations import initialize_database

    with get_connection(
        target_db,
        wal_mode=config.database.wal_mode,
        busy_timeout_ms=config.database.busy_timeout_ms,
    ) as conn:
        initialize_database(conn)


def _read_cached(config, target_db: str):
    """Return ``(active_listings, cached_valuations)`` from the database."""
    from bazaar_valuator.db.connection import get_connection
    from bazaar_valuator.db.repositories.listing_repo import ListingRepository
    from bazaar_valuator.db.repositories.valuation_repo import ValuationRepository

    with get_connection(
        target_db,
        wal_mode=config.database.wal_mode,
        busy_timeout_ms=config.database.busy_timeout_ms,
    ) as conn:
        active = ListingRepository(conn).fetch_active()
        valuations = ValuationRepository(conn).get_all()
    return active, valuations


# ── Commands ──────────────────────────────────────────────────────────────────

@app.command("init-db")
def init_db(
    db_path: Optional[str] = typer.Option(
        None,
        "--db-path",
        help="Override DB path from config (e.g. data/db/test.db).",
    ),
    config_path: Optional[str] = typer.Option(
        None,
        "--config",
        help="Path to TOML config file.",
    ),
) -> None:
    """Initialize the SQLite database and apply the full schema.

    Safe to run multiple times — all DDL uses IF NOT EXISTS.
    Also runs pending schema migrations.
    """
    from bazaar_valuator.db.connection import get_connection
    from bazaar_valuator.db.migrations import initialize_database
    from bazaar_valuator.db.schema import ALL_TABLE_NAMES

    config = _load_config_or_exit(config_path)
    _configure_logging(config)

    target_path = db_path or config.database.db_path
    typer.echo(f"Initializing database at: {target_path}")

    with get_connection(
        target_path,
        wal_mode=config.database.wal_mode,
        busy_timeout_ms=config.database.busy_timeout_ms,
    ) as conn:
        migrations_applied = initialize_database(conn)

    typer.echo(f"  Tables: {len(ALL_TABLE_NAMES)} created/verified.")
    typer.echo(f"  Migrations applied: {migrations_applied}")
    typer.echo("[OK] Database ready.")


@app.command("validate-config")
def validate_config(
    config_path: Optional[str] = typer.Option(
        None,
        "--config",
        help="Path to TOML config file (default: config/default.toml).",
    ),
    show_full: bool = typer.Option(
        False,
        "--full",
        help="Print full config including all fields.",
    ),
) -> None:
    """Validate the configuration file and print parsed values.

    Exits with code 1 if the config fails validation.
    """
    config = _load_config_or_exit(config_path)
    val = config.valuation

    typer.echo("Configuration validated successfully.")
    typer.echo("")
    typer.echo(f"  Database path:     {config.database.db_path}")
    typer.echo(f"  Level window:      ±{val.level_window}")
    typer.echo(f"  Min similarity:    >{val.min_similarity:.2f}")
    typer.echo(f"  Comparables:       {val.min_sample_size}..{val.max_comparables}")
    typer.echo(f"  Item bonus cap:    {val.item_bonus_ratio:.0%} of base")
    typer.echo(f"  Deal threshold:    {config.deals.min_discount_pct}%")
    typer.echo(f"  Log level:         {config.logging.level}")
    typer.echo(f"  Debug mode:        {config.debug}")

    if show_full:
        typer.echo("")
        typer.echo("Full config (JSON):")
        typer.echo(json.dumps(config.model_dump(), indent=2, default=str))

    typer.echo("")
    typer.echo("[OK] Config valid.")


@app.command("import-listings")
def import_listings(
    kind: str = typer.Option(
        ...,
        "--kind",
        "-k",
        help="Target table: 'sold' (historical sales) or 'active' (live listings).",
    ),
    listings_file: str = typer.Option(
        ...,
        "--file",
        "-f",
        help="Path to listings file (.json or .csv).",
    ),
    db_path: Optional[str] = typer.Option(
        None, "--db-path", help="Override DB path from config."
    ),
    config_path: Optional[str] = typer.Option(
        None, "--config", help="Path to TOML config file."
    ),
    dry_run: bool = typer.Option(
        False,
        "--dry-run",
        help="Validate listings but do not write to the database.",
    ),
) -> None:
    """Import character listings from a JSON or CSV file.

    \b
      .json — Array of listing objects (display_items may be an inline array).
      .csv  — Header row with listing field names; empty cells are unknown.

    Uses UPSERT semantics — existing listings with the same listing_id are
    updated. A file with any invalid row is rejected as a whole.
    """
    from bazaar_valuator.ingestion.listing_import import ListingKind, load_listings
    from bazaar_valuator.pipeline.import_listings import ImportStage

    config = _load_config_or_exit(config_path)
    _configure_logging(config)

    try:
        listing_kind = ListingKind(kind.lower())
    except ValueError:
        typer.echo(f"[ERROR] --kind must be 'sold' or 'active', got '{kind}'.", err=True)
        raise typer.Exit(code=1)

    path = Path(listings_file)
    if not path.exists():
        typer.echo(f"[ERROR] Listings file not found: {path}", err=True)
        raise typer.Exit(code=1)

    typer.echo(f"Loading {listing_kind.value} listings from: {path}")

    if dry_run:
        try:
            listings = load_listings(path, listing_kind)
        except ValueError as exc:
            typer.echo(f"[ERROR] Import failed:\n{exc}", err=True)
            raise typer.Exit(code=1)
        typer.echo(f"[DRY RUN] {len(listings)} listing(s) valid; nothing written.")
        return

    target_db = db_path or config.database.db_path
    _ensure_schema(config, target_db)

    try:
        run = ImportStage(config=config, db_path=target_db).run(path=path, kind=listing_kind)
    except (FileNotFoundError, ValueError) as exc:
        typer.echo(f"[ERROR] Import failed:\n{exc}", err=True)
        raise typer.Exit(code=1)

    typer.echo(f"  Upserted {run.rows_processed} {listing_kind.value} listing(s).")
    typer.echo("[OK] Listings imported.")


@app.command("value-listings")
def value_listings(
    as_json: bool = typer.Option(
        False, "--json", help="Print valuations as JSON instead of a table."
    ),
    export_format: Optional[str] = typer.Option(
        None,
        "--export",
        help="Also write the valuations to data/outputs/valuations (csv, json or parquet).",
    ),
    db_path: Optional[str] = typer.Option(
        None, "--db-path", help="Override DB path from config."
    ),
    config_path: Optional[str] = typer.Option(
        None, "--config", help="Path to TOML config file."
    ),
) -> None:
    """Value every active listing against the sold corpus and cache the results.

    Listings missing vocation or level, or with fewer than the minimum number
    of comparable sales, get no estimate.
    """
    from bazaar_valuator.pipeline.valuation import ValuationStage
    from bazaar_valuator.reporting.export import (
        EXPORT_COLUMNS,
        export_to_csv,
        export_to_json,
        export_to_parquet,
        flatten_valuations_for_export,
    )
    from bazaar_valuator.reporting.formatters import format_valuation_table
    from bazaar_valuator.utils.time_utils import export_stamp
    from bazaar_valuator.valuation.engine import CorpusUnavailableError

    config = _load_config_or_exit(config_path)
    _configure_logging(config)

    if export_format is not None and export_format.lower() not in _EXPORT_FORMATS:
        typer.echo(
            f"[ERROR] --export must be one of {', '.join(_EXPORT_FORMATS)}, "
            f"got '{export_format}'.",
            err=True,
        )
        raise typer.Exit(code=1)

    target_db = db_path or config.database.db_path
    _ensure_schema(config, target_db)

    try:
        ValuationStage(config=config, db_path=target_db).run()
    except CorpusUnavailableError as exc:
        typer.echo(f"[ERROR] {exc}", err=True)
        raise typer.Exit(code=1)

    active, valuations = _read_cached(config, target_db)
    rows = flatten_valuations_for_export(valuations, active)

    if as_json:
        payload = {
            str(listing_id): v.model_dump(mode="json")
            for listing_id, v in valuations.items()
        }
        typer.echo(json.dumps(payload, indent=2))
    else:
        typer.echo(format_valuation_table(rows, total_listings=len(active)))

    if export_format is not None:
        fmt = export_format.lower()
        out_path = Path(config.data.export_dir) / f"valuations_{export_stamp()}.{fmt}"
        if fmt == "csv":
            export_to_csv(rows, out_path, fieldnames=EXPORT_COLUMNS)
        elif fmt == "json":
            export_to_json(rows, out_path)
        else:
            export_to_parquet(rows, out_path)
        typer.echo(f"  Exported {len(rows)} row(s) to {out_path}", err=as_json)

    if not as_json:
        typer.echo("")
        typer.echo("[OK] Valuation complete.")


@app.command("show-valuation")
def show_valuation(
    listing_id: int = typer.Argument(..., help="Active listing id."),
    db_path: Optional[str] = typer.Option(
        None, "--db-path", help="Override DB path from config."
    ),
    config_path: Optional[str] = typer.Option(
        None, "--config", help="Path to TOML config file."
    ),
) -> None:
    """Value one active listing and show its most similar sales."""
    from bazaar_valuator.db.connection import get_connection
    from bazaar_valuator.db.repositories.listing_repo import ListingRepository
    from bazaar_valuator.reporting.formatters import format_weight_table
    from bazaar_valuator.valuation import (
        SIMILARITY_WEIGHTS,
        CorpusUnavailableError,
        estimate_listing,
        load_corpus,
    )

    config = _load_config_or_exit(config_path)
    _configure_logging(config)

    target_db = db_path or config.database.db_path
    _ensure_schema(config, target_db)

    with get_connection(
        target_db,
        wal_mode=config.database.wal_mode,
        busy_timeout_ms=config.database.busy_timeout_ms,
    ) as conn:
        repo = ListingRepository(conn)
        listing = repo.get_active(listing_id)
        if listing is None:
            typer.echo(f"[ERROR] No active listing with id {listing_id}.", err=True)
            raise typer.Exit(code=1)
        try:
            corpus = load_corpus(repo.fetch_sold_corpus)
        except CorpusUnavailableError as exc:
            typer.echo(f"[ERROR] {exc}", err=True)
            raise typer.Exit(code=1)

    result = estimate_listing(listing, corpus, config.valuation)
    label = listing.character_name or f"listing {listing_id}"
    typer.echo(f"{label} | {listing.vocation or '?'} | level {listing.level or '?'}")

    if result is None:
        typer.echo("  Valuation unavailable (missing vocation/level or too few comparable sales).")
        return

    typer.echo(f"  Estimate:   {result.estimated_value:,}")
    typer.echo(f"  Range:      {result.min_price:,} - {result.max_price:,}")
    typer.echo(f"  Item bonus: {result.item_bonus:,}")
    typer.echo(f"  Based on {result.sample_size} sale(s), confidence {result.confidence.value}")
    if result.comparables:
        typer.echo("  Comparable sales:")
        for c in result.comparables:
            typer.echo(
                f"    {c.external_id or c.listing_id:<12} level {c.level:>4}  "
                f"{c.sold_price:>12,}  {c.similarity:>3}% similar"
            )
    typer.echo(format_weight_table(SIMILARITY_WEIGHTS))


@app.command("show-deals")
def show_deals(
    min_discount: Optional[int] = typer.Option(
        None,
        "--min-discount",
        help="Minimum discount below estimate, in percent (default from config).",
    ),
    limit: Optional[int] = typer.Option(
        None, "--limit", help="Maximum deals to show (default from config)."
    ),
    db_path: Optional[str] = typer.Option(
        None, "--db-path", help="Override DB path from config."
    ),
    config_path: Optional[str] = typer.Option(
        None, "--config", help="Path to TOML config file."
    ),
) -> None:
    """List active listings whose current bid is well below the cached estimate.

    Reads the valuation cache written by 'value-listings'.
    """
    from bazaar_valuator.reporting.formatters import format_deals_table
    from bazaar_valuator.valuation.deals import find_deals

    config = _load_config_or_exit(config_path)
    _configure_logging(config)

    threshold = min_discount if min_discount is not None else config.deals.min_discount_pct
    max_results = limit if limit is not None else config.deals.max_results

    target_db = db_path or config.database.db_path
    _ensure_schema(config, target_db)

    active, valuations = _read_cached(config, target_db)
    deals = find_deals(active, valuations, min_discount_pct=threshold, limit=max_results)
    typer.echo(format_deals_table(deals, threshold))


# ── Entry point ───────────────────────────────────────────────────────────────

if __name__ == "__main__":
    app()
