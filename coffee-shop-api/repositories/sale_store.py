"""
Sale store: the transactional persistence capability used by the sale processor.

A store hands out one `SaleTransaction` per `run_in_transaction` call. Every
write made through the handle commits together when the callback returns, or
is discarded together when it raises. The processor receives the store as an
argument; it never reaches for a module-level connection.

Locking contract:
- `get_product_for_update` locks the product row until the transaction ends,
  so a concurrent sale of the same product waits instead of reading stale
  stock.
- `decrement_stock` re-checks stock at write time and raises
  `StockConflictError` instead of letting stock go negative.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from decimal import Decimal
from typing import Callable, Optional, TypeVar
from uuid import UUID

from domain.customer import Customer, CustomerDetails
from domain.product import Product

T = TypeVar("T")


class StoreError(Exception):
    """The store could not complete an operation (unreachable, constraint, commit failure)."""


class StockConflictError(StoreError):
    """
    A concurrent transaction won the race for a product row.

    Raised on a failed conditional stock update, a deadlock, a lock timeout or
    a serialization failure. The whole transaction has been rolled back and
    can be resubmitted.
    """


class SaleTransaction(ABC):
    """Operations available inside one open transaction."""

    @abstractmethod
    def find_customer_by_email(self, email: str) -> Optional[Customer]:
        """Return the customer with this (normalized) email, or None."""

    @abstractmethod
    def upsert_customer(self, details: CustomerDetails) -> Customer:
        """Create the customer, or overwrite its names and touch updated_at."""

    @abstractmethod
    def get_product_for_update(self, product_id: UUID) -> Optional[Product]:
        """Read a product and hold its row lock until the transaction ends."""

    @abstractmethod
    def insert_sale(self, customer_id: UUID, provisional_total: Decimal) -> UUID:
        """Insert a sale header and return its id."""

    @abstractmethod
    def insert_sale_item(
        self,
        sale_id: UUID,
        product_id: UUID,
        quantity: int,
        unit_price: Decimal,
        subtotal: Decimal,
    ) -> UUID:
        """Insert one line item and return its id."""

    @abstractmethod
    def decrement_stock(self, product_id: UUID, quantity: int) -> int:
        """
        Subtract `quantity` from stock and return the remaining stock.

        Raises:
            StockConflictError: if stock is below `quantity` at write time
        """

    @abstractmethod
    def increment_stock(self, product_id: UUID, quantity: int) -> int:
        """Add `quantity` to stock and return the new stock."""

    @abstractmethod
    def finalize_sale_total(self, sale_id: UUID, total: Decimal) -> None:
        """Write the final total onto the sale header."""


class SaleStore(ABC):
    """Factory for transactions."""

    @abstractmethod
    def run_in_transaction(self, fn: Callable[[SaleTransaction], T]) -> T:
        """
        Run `fn` inside a single transaction.

        Commits all of fn's effects if it returns, none of them if it raises.
        The exception from `fn` propagates unchanged; store-level failures are
        raised as StoreError / StockConflictError.
        """


__all__ = [
    "SaleStore",
    "SaleTransaction",
    "StockConflictError",
    "StoreError",
]
