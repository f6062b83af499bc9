"""
ASCII terminal formatters for CLI reporting commands.

All formatters accept flat row dicts (see ``export.flatten_valuations_for_export``)
or ``Deal`` objects and return plain multi-line strings suitable for
``typer.echo()``.

No third-party dependencies (no ``rich``, no ``colorama``).
"""

from __future__ import annotations

from typing import Mapping, Sequence

from bazaar_valuator.valuation.deals import Deal


def _fmt_amount(value: int | None) -> str:
    return f"{value:,}" if isinstance(value, int) else "-"


# ── Valuations ─────────────────────────────────────────────────────────────────


def format_valuation_table(rows: list[dict], total_listings: int) -> str:
    """Format flattened valuation rows as an ASCII table.

    Args:
        rows:           Output of ``flatten_valuations_for_export()``.
        total_listings: Number of active listings considered (header only).

    Returns:
        Multi-line string.
    """
    lines: list[str] = [""]
    lines.append("=== Listing Valuations ===")
    lines.append(f"  Valued: {len(rows)} of {total_listings} active listing(s)")

    if not rows:
        lines.append("")
        lines.append("  (no valuations available — import sold listings first)")
        return "\n".join(lines)

    header = (
        f"  {'ID':>8}  {'Character':<22}  {'Vocation':<18}  {'Level':>5}  "
        f"{'Estimate':>12}  {'Range':>25}  {'N':>3}  {'Conf':<6}"
    )
    lines.append("")
    lines.append(header)
    lines.append("  " + "-" * (len(header) - 2))
    for r in rows:
        name = (r.get("character_name") or "")[:22]
        vocation = (r.get("vocation") or "")[:18]
        band = f"{_fmt_amount(r.get('min_price'))} - {_fmt_amount(r.get('max_price'))}"
        lines.append(
            f"  {r.get('listing_id', ''):>8}  {name:<22}  {vocation:<18}  "
            f"{r.get('level') or '':>5}  {_fmt_amount(r.get('estimated_value')):>12}  "
            f"{band:>25}  {r.get('sample_size', ''):>3}  {r.get('confidence', ''):<6}"
        )
    return "\n".join(lines)


def format_weight_table(weights: Mapping[str, float]) -> str:
    """One line per similarity factor with its weight as a percentage."""
    lines = ["  Similarity factors:"]
    for factor, weight in weights.items():
        lines.append(f"    {factor:<16} {weight:>6.0%}")
    return "\n".join(lines)


# ── Deals ──────────────────────────────────────────────────────────────────────


def format_deals_table(deals: Sequence[Deal], min_discount_pct: int) -> str:
    """Format under-priced listings, largest discount first."""
    lines: list[str] = [""]
    lines.append(f"=== Deals (bid at least {min_discount_pct}% below estimate) ===")

    if not deals:
        lines.append("")
        lines.append("  (no deals found — run 'value-listings' first)")
        return "\n".join(lines)

    header = (
        f"  {'ID':>8}  {'Character':<22}  {'Vocation':<18}  {'Level':>5}  "
        f"{'Bid':>12}  {'Estimate':>12}  {'Disc':>5}  {'Conf':<6}"
    )
    lines.append("")
    lines.append(header)
    lines.append("  " + "-" * (len(header) - 2))
    for d in deals:
        lines.append(
            f"  {d.listing_id:>8}  {(d.character_name or '')[:22]:<22}  "
            f"{d.vocation[:18]:<18}  {d.level:>5}  {_fmt_amount(d.current_bid):>12}  "
            f"{_fmt_amount(d.estimated_value):>12}  {d.discount_pct:>4}%  "
            f"{d.confidence.value:<6}"
        )
    return "\n".join(lines)
