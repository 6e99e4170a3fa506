"""
Domain: money arithmetic.

All amounts are `Decimal` with two fractional digits. Floats are only
accepted through their string form, never through binary arithmetic.
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any, Iterable

CENT = Decimal("0.01")
ZERO = Decimal("0.00")


def to_money(value: Any) -> Decimal:
    """
    Convert a value to a two-place Decimal.

    Accepts Decimal, int and numeric strings. Database drivers return
    NUMERIC columns as Decimal and PostgREST returns them as JSON numbers,
    so floats coming from the wire are converted through `str()` first.
    """

    if isinstance(value, bool):
        raise TypeError("Money amount cannot be a boolean")
    if isinstance(value, float):
        value = str(value)
    try:
        amount = Decimal(value)
    except (InvalidOperation, TypeError, ValueError) as exc:
        raise ValueError(f"Invalid money amount: {value!r}") from exc
    if not amount.is_finite():
        raise ValueError(f"Invalid money amount: {value!r}")
    return amount.quantize(CENT, rounding=ROUND_HALF_UP)


def line_subtotal(unit_price: Decimal, quantity: int) -> Decimal:
    """Subtotal for one line item: unit price times quantity, exact to the cent."""
    return to_money(unit_price * quantity)


def sum_money(amounts: Iterable[Decimal]) -> Decimal:
    return to_money(sum(amounts, ZERO))


__all__ = ["CENT", "ZERO", "to_money", "line_subtotal", "sum_money"]
