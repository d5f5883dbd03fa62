"""Decimal helpers for monetary amounts."""
from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal
from typing import Any

CENT = Decimal("0.01")
ZERO = Decimal("0.00")


def to_decimal(value: Any) -> Decimal:
    """Coerce ints, floats, strings and ``None`` into a Decimal (``None`` -> 0)."""

    if value is None:
        return Decimal("0")
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def money(value: Any) -> Decimal:
    """Quantize to cents, rounding half up."""

    return to_decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def line_amount(quantity: Any, unit_price: Any) -> Decimal:
    """Extended amount of a document line (quantity x unit price)."""

    return money(to_decimal(quantity) * to_decimal(unit_price))
