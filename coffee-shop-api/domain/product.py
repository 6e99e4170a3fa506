"""
Domain: Catalog products.

Products are soft-deleted through `is_active`; rows referenced by sale items
are never removed. Stock and price are never negative.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Optional
from uuid import UUID

from .time import require_utc_timestamp


@dataclass(frozen=True, slots=True)
class Product:
    """
    Snapshot of a product row.

    `price` is the current catalog price. Sale items copy it at sale time;
    they never read it back later.
    """

    product_id: UUID
    name: str
    price: Decimal
    stock: int
    is_active: bool = True
    description: Optional[str] = None
    image_url: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def __post_init__(self) -> None:
        if self.price < 0:
            raise ValueError("price cannot be negative")
        if self.stock < 0:
            raise ValueError("stock cannot be negative")
        if self.created_at is not None:
            require_utc_timestamp("created_at", self.created_at)
        if self.updated_at is not None:
            require_utc_timestamp("updated_at", self.updated_at)

    def can_fulfil(self, quantity: int) -> bool:
        """True when the current stock covers `quantity` units."""
        return quantity <= self.stock


__all__ = ["Product"]
