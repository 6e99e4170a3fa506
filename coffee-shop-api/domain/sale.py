"""
Domain: Sales and their line items.

Contract excerpts relevant here:
- A Sale and its SaleItems are created together or not at all.
- A SaleItem's unit price is a snapshot taken at sale time. Later catalog
  price changes never alter historical items or totals.
- subtotal == quantity * unit_price, and a sale's total is the sum of its
  subtotals, both exact to the cent.

This module only captures the records. Stock enforcement and persistence
live in the sale processor and the sale store.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Optional, Tuple
from uuid import UUID

from .money import ZERO, line_subtotal, sum_money
from .time import require_utc_timestamp

MAX_QUANTITY_PER_ITEM = 100
MAX_ITEMS_PER_SALE = 50


@dataclass(frozen=True, slots=True)
class SaleLineRequest:
    """One requested (product, quantity) pair."""

    product_id: UUID
    quantity: int

    def __post_init__(self) -> None:
        if isinstance(self.quantity, bool) or not isinstance(self.quantity, int):
            raise TypeError("quantity must be an integer")
        if self.quantity < 1:
            raise ValueError("quantity must be positive")
        if self.quantity > MAX_QUANTITY_PER_ITEM:
            raise ValueError(f"quantity cannot exceed {MAX_QUANTITY_PER_ITEM} per item")


@dataclass(frozen=True, slots=True)
class SaleItem:
    """Immutable record of one persisted line item."""

    sale_item_id: UUID
    sale_id: UUID
    product_id: UUID
    quantity: int
    unit_price: Decimal
    subtotal: Decimal
    created_at: Optional[datetime] = None
    product_name: Optional[str] = None  # joined from products on read

    def __post_init__(self) -> None:
        if self.quantity < 1:
            raise ValueError("quantity must be positive")
        if self.unit_price < 0:
            raise ValueError("unit_price cannot be negative")
        if self.subtotal != line_subtotal(self.unit_price, self.quantity):
            raise ValueError("subtotal must equal quantity * unit_price")
        if self.created_at is not None:
            require_utc_timestamp("created_at", self.created_at)


@dataclass(frozen=True, slots=True)
class Sale:
    """
    Immutable record of a committed sale.

    `items` is empty when the sale was loaded without its lines (listing
    queries); when present, the total must match the lines.
    """

    sale_id: UUID
    customer_id: UUID
    total: Decimal
    created_at: Optional[datetime] = None
    items: Tuple[SaleItem, ...] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        if self.total < ZERO:
            raise ValueError("total cannot be negative")
        if self.items and sum_money(item.subtotal for item in self.items) != self.total:
            raise ValueError("total must equal the sum of item subtotals")
        if self.created_at is not None:
            require_utc_timestamp("created_at", self.created_at)

    @property
    def items_count(self) -> int:
        return len(self.items)


__all__ = [
    "MAX_ITEMS_PER_SALE",
    "MAX_QUANTITY_PER_ITEM",
    "Sale",
    "SaleItem",
    "SaleLineRequest",
]
