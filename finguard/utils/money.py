"""Rupee formatting helpers shared by deterministic messages and prompts.

Rounding is half-up rather than Python's banker's rounding, so 92.5
renders as "93".
"""

from __future__ import annotations

from decimal import Decimal, ROUND_HALF_UP, localcontext

from finguard.config import settings


def round_half_up(value: float, places: int = 0) -> Decimal:
    """Half-up rounding at any magnitude; infinities pass through unchanged."""
    d = Decimal(repr(float(value)))
    if not d.is_finite():
        return d
    with localcontext() as ctx:
        # quantize fails once the result needs more digits than the precision
        ctx.prec = max(ctx.prec, d.adjusted() + places + 2)
        return d.quantize(Decimal(1).scaleb(-places), rounding=ROUND_HALF_UP)


def pct(value: float, places: int = 0) -> str:
    """Render a percentage number without the % sign, e.g. pct(91.666) -> '92'."""
    return f"{round_half_up(value, places):f}"


def format_amount(value: float) -> str:
    """Whole-rupee amount with en-IN digit grouping: 150000 -> '1,50,000'."""
    r = round_half_up(value)
    if not r.is_finite():
        return f"{r:f}"
    n = int(r)
    sign = "-" if n < 0 else ""
    digits = str(abs(n))
    if len(digits) <= 3:
        return sign + digits
    head, tail = digits[:-3], digits[-3:]
    groups = []
    while len(head) > 2:
        groups.insert(0, head[-2:])
        head = head[:-2]
    if head:
        groups.insert(0, head)
    return sign + ",".join(groups + [tail])


def rs(value: float) -> str:
    """Amount with the configured currency prefix: 'Rs.1,500'."""
    return f"{settings.CURRENCY_PREFIX}{format_amount(value)}"


def format_compact(value: float) -> str:
    """Short rupee form used in prompts: Rs.950, Rs.1.5K, Rs.2.3L, Rs.1.2Cr."""
    prefix = settings.CURRENCY_PREFIX
    if value >= 10_000_000:
        return f"{prefix}{round_half_up(value / 10_000_000, 1)}Cr"
    if value >= 100_000:
        return f"{prefix}{round_half_up(value / 100_000, 1)}L"
    if value >= 1_000:
        return f"{prefix}{round_half_up(value / 1_000, 1)}K"
    return f"{prefix}{round_half_up(value)}"


__all__ = ["round_half_up", "pct", "format_amount", "rs", "format_compact"]
