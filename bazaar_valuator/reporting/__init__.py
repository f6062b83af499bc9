"""
bazaar_valuator.reporting — Valuation formatting and flat-file export.

This package never computes estimates; it formats and writes what the
valuation engine (or the ``listing_valuations`` cache) already produced.

Modules:
  formatters — ASCII terminal table formatters for Typer CLI commands.
  export     — CSV/JSON/Parquet flat-file export helpers.
"""
