"""
Postgres-backed sale store.

Runs each sale inside one database transaction on a direct connection
(SQLAlchemy Core, `engine.begin()`):

- Product rows are read with SELECT ... FOR UPDATE, so concurrent sales of the
  same product queue on the row lock and see the committed stock.
- Stock is decremented with a conditional UPDATE (stock >= :quantity); a
  miss raises StockConflictError rather than driving stock negative. The
  `stock >= 0` CHECK constraint backs this up.
- Customers are upserted with INSERT ... ON CONFLICT (email), so two first
  purchases under the same email cannot create two rows.
- lock_timeout is set per transaction so a stuck lock surfaces as a conflict
  instead of hanging the request.

Postgres conflict SQLSTATEs (serialization failure, deadlock, lock not
available) become StockConflictError; every other database error becomes
StoreError.
"""

from __future__ import annotations

import logging
from decimal import Decimal
from typing import Callable, Optional, TypeVar
from uuid import UUID

from sqlalchemy import text
from sqlalchemy.engine import Connection, Engine
from sqlalchemy.exc import DBAPIError, SQLAlchemyError

from domain.customer import Customer, CustomerDetails, normalize_email
from domain.product import Product
from repositories.rows import CUSTOMER_COLUMNS, PRODUCT_COLUMNS, row_to_customer, row_to_product
from repositories.sale_store import SaleStore, SaleTransaction, StockConflictError, StoreError

logger = logging.getLogger(__name__)

T = TypeVar("T")

# serialization_failure, deadlock_detected, lock_not_available
CONFLICT_SQLSTATES = frozenset({"40001", "40P01", "55P03"})


def _sqlstate(exc: DBAPIError) -> Optional[str]:
    """Extract the SQLSTATE from the driver exception (psycopg 3 or psycopg2)."""

    orig = getattr(exc, "orig", None)
    return getattr(orig, "sqlstate", None) or getattr(orig, "pgcode", None)


def is_conflict_error(exc: DBAPIError) -> bool:
    return _sqlstate(exc) in CONFLICT_SQLSTATES


class PostgresSaleTransaction(SaleTransaction):
    """SaleTransaction bound to one open connection."""

    def __init__(self, connection: Connection) -> None:
        self._connection = connection

    def find_customer_by_email(self, email: str) -> Optional[Customer]:
        row = self._connection.execute(
            text(f"SELECT {CUSTOMER_COLUMNS} FROM customers WHERE email = :email"),
            {"email": normalize_email(email)},
        ).mappings().first()
        return row_to_customer(row) if row else None

    def upsert_customer(self, details: CustomerDetails) -> Customer:
        row = self._connection.execute(
            text(
                f"""
                INSERT INTO customers (first_name, last_name, email)
                VALUES (:first_name, :last_name, :email)
                ON CONFLICT (email) DO UPDATE
                  SET first_name = EXCLUDED.first_name,
                      last_name = EXCLUDED.last_name,
                      updated_at = NOW()
                RETURNING {CUSTOMER_COLUMNS}
                """
            ),
            {
                "first_name": details.first_name,
                "last_name": details.last_name,
                "email": details.email,
            },
        ).mappings().first()
        if row is None:
            raise StoreError("Customer upsert returned no row")
        return row_to_customer(row)

    def get_product_for_update(self, product_id: UUID) -> Optional[Product]:
        row = self._connection.execute(
            text(f"SELECT {PRODUCT_COLUMNS} FROM products WHERE id = CAST(:id AS uuid) FOR UPDATE"),
            {"id": str(product_id)},
        ).mappings().first()
        return row_to_product(row) if row else None

    def insert_sale(self, customer_id: UUID, provisional_total: Decimal) -> UUID:
        row = self._connection.execute(
            text(
                """
                INSERT INTO sales (customer_id, total)
                VALUES (CAST(:customer_id AS uuid), :total)
                RETURNING id
                """
            ),
            {"customer_id": str(customer_id), "total": provisional_total},
        ).mappings().first()
        if row is None:
            raise StoreError("Sale insert returned no row")
        return UUID(str(row["id"]))

    def insert_sale_item(
        self,
        sale_id: UUID,
        product_id: UUID,
        quantity: int,
        unit_price: Decimal,
        subtotal: Decimal,
    ) -> UUID:
        row = self._connection.execute(
            text(
                """
                INSERT INTO sale_items (sale_id, product_id, quantity, unit_price, subtotal)
                VALUES (
                  CAST(:sale_id AS uuid),
                  CAST(:product_id AS uuid),
                  :quantity,
                  :unit_price,
                  :subtotal
                )
                RETURNING id
                """
            ),
            {
                "sale_id": str(sale_id),
                "product_id": str(product_id),
                "quantity": quantity,
                "unit_price": unit_price,
                "subtotal": subtotal,
            },
        ).mappings().first()
        if row is None:
            raise StoreError("Sale item insert returned no row")
        return UUID(str(row["id"]))

    def decrement_stock(self, product_id: UUID, quantity: int) -> int:
        row = self._connection.execute(
            text(
                """
                UPDATE products
                SET stock = stock - :quantity,
                    updated_at = NOW()
                WHERE id = CAST(:id AS uuid)
                  AND stock >= :quantity
                RETURNING stock
                """
            ),
            {"id": str(product_id), "quantity": quantity},
        ).mappings().first()
        if row is None:
            raise StockConflictError(
                f"Stock for product {product_id} changed before it could be decremented"
            )
        return int(row["stock"])

    def increment_stock(self, product_id: UUID, quantity: int) -> int:
        row = self._connection.execute(
            text(
                """
                UPDATE products
                SET stock = stock + :quantity,
                    updated_at = NOW()
                WHERE id = CAST(:id AS uuid)
                RETURNING stock
                """
            ),
            {"id": str(product_id), "quantity": quantity},
        ).mappings().first()
        if row is None:
            raise StoreError(f"Product {product_id} disappeared during restock")
        return int(row["stock"])

    def finalize_sale_total(self, sale_id: UUID, total: Decimal) -> None:
        result = self._connection.execute(
            text("UPDATE sales SET total = :total WHERE id = CAST(:id AS uuid)"),
            {"id": str(sale_id), "total": total},
        )
        if result.rowcount != 1:
            raise StoreError(f"Sale {sale_id} not found when writing its total")


class PostgresSaleStore(SaleStore):
    """
    SaleStore over a SQLAlchemy engine.

    Args:
        engine: engine connected to the Postgres database
        lock_timeout_ms: maximum wait for a row lock before the transaction
            is aborted as a conflict (0 disables the timeout)
    """

    def __init__(self, engine: Engine, lock_timeout_ms: int = 5000) -> None:
        self._engine = engine
        self._lock_timeout_ms = lock_timeout_ms

    def run_in_transaction(self, fn: Callable[[SaleTransaction], T]) -> T:
        try:
            with self._engine.begin() as connection:
                connection.execute(
                    text("SELECT set_config('lock_timeout', :timeout, true)"),
                    {"timeout": f"{self._lock_timeout_ms}ms"},
                )
                return fn(PostgresSaleTransaction(connection))
        except StoreError:
            raise
        except DBAPIError as exc:
            if is_conflict_error(exc):
                logger.warning("Transaction aborted by concurrent writer (sqlstate=%s)", _sqlstate(exc))
                raise StockConflictError("Concurrent update on the same product") from exc
            raise StoreError(f"Database error: {exc.__class__.__name__}") from exc
        except SQLAlchemyError as exc:
            raise StoreError(f"Database error: {exc.__class__.__name__}") from exc


__all__ = [
    "CONFLICT_SQLSTATES",
    "PostgresSaleStore",
    "PostgresSaleTransaction",
    "is_conflict_error",
]
