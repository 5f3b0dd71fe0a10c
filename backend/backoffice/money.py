# Overview: Decimal money helpers shared by every pipeline.

"""
Money Policy

All monetary values are Decimal with two fractional digits. Every stored
or returned amount passes through round2(), which rounds half-up
(0.005 -> 0.01), matching the cash-register convention rather than
Python's default banker's rounding.
"""

from __future__ import annotations

from decimal import Decimal, ROUND_HALF_UP, InvalidOperation

CENT = Decimal("0.01")
ZERO = Decimal("0.00")


def to_money(value) -> Decimal:
    """Convert a boundary value (int, str, float, Decimal) to Decimal."""
    if isinstance(value, Decimal):
        return value
    if isinstance(value, bool):
        raise ValueError("Boolean is not a monetary amount")
    if isinstance(value, float):
        # str() avoids binary float artefacts: 0.1 -> Decimal("0.1")
        value = str(value)
    try:
        return Decimal(value)
    except (InvalidOperation, TypeError) as exc:
        raise ValueError(f"Invalid monetary amount: {value!r}") from exc


def round2(value) -> Decimal:
    return to_money(value).quantize(CENT, rounding=ROUND_HALF_UP)


def percent_of(amount, pct) -> Decimal:
    """round2(amount * pct / 100)"""
    return round2(to_money(amount) * to_money(pct) / Decimal(100))


def money_str(value) -> str | None:
    """Serialize a monetary amount for JSON ("21.60")."""
    if value is None:
        return None
    return str(round2(value))
