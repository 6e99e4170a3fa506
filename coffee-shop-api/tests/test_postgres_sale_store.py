"""
Tests for `repositories/postgres_sale_store.py` without a database.

A fake engine records the SQL sent through the connection and returns canned
rows, which is enough to check:
- Postgres conflict SQLSTATEs become StockConflictError.
- Other database errors become StoreError.
- A conditional stock decrement that matches no row is a conflict.
- Exceptions raised by the callback propagate unchanged.
- lock_timeout is set at the start of every transaction.
"""

from __future__ import annotations

from contextlib import contextmanager
from decimal import Decimal
from typing import Any, List, Optional
from uuid import UUID, uuid4

import pytest
from sqlalchemy.exc import IntegrityError, OperationalError

from domain.customer import CustomerDetails
from repositories.postgres_sale_store import (
    PostgresSaleStore,
    PostgresSaleTransaction,
    is_conflict_error,
)
from repositories.sale_store import StockConflictError, StoreError

PRODUCT_ID = UUID("00000000-0000-0000-0000-000000000010")


class FakePgError(Exception):
    def __init__(self, sqlstate: str) -> None:
        super().__init__(f"sqlstate {sqlstate}")
        self.sqlstate = sqlstate


class FakeResult:
    def __init__(self, row: Optional[dict] = None, rowcount: int = 1) -> None:
        self._row = row
        self.rowcount = rowcount

    def mappings(self) -> "FakeResult":
        return self

    def first(self) -> Optional[dict]:
        return self._row


class FakeConnection:
    def __init__(self, results: Optional[List[FakeResult]] = None) -> None:
        self.statements: List[tuple] = []
        self._results = list(results or [])

    def execute(self, statement: Any, params: Optional[dict] = None) -> FakeResult:
        self.statements.append((str(statement), params))
        return self._results.pop(0) if self._results else FakeResult()


class FakeEngine:
    def __init__(self, connection: FakeConnection) -> None:
        self.connection = connection

    @contextmanager
    def begin(self):
        yield self.connection


def _operational_error(sqlstate: str) -> OperationalError:
    return OperationalError("UPDATE products ...", {}, FakePgError(sqlstate))


@pytest.mark.parametrize("sqlstate", ["40001", "40P01", "55P03"])
def test_conflict_sqlstates_become_stock_conflict(sqlstate: str) -> None:
    store = PostgresSaleStore(FakeEngine(FakeConnection()))

    def callback(tx):
        raise _operational_error(sqlstate)

    with pytest.raises(StockConflictError):
        store.run_in_transaction(callback)


def test_other_database_errors_become_store_error() -> None:
    store = PostgresSaleStore(FakeEngine(FakeConnection()))

    def callback(tx):
        raise IntegrityError("INSERT ...", {}, FakePgError("23514"))

    with pytest.raises(StoreError) as excinfo:
        store.run_in_transaction(callback)
    assert not isinstance(excinfo.value, StockConflictError)


def test_is_conflict_error_reads_psycopg2_pgcode() -> None:
    orig = Exception("deadlock")
    orig.pgcode = "40P01"  # type: ignore[attr-defined]
    assert is_conflict_error(OperationalError("stmt", {}, orig)) is True
    assert is_conflict_error(_operational_error("23505")) is False


def test_callback_exceptions_propagate_unchanged() -> None:
    store = PostgresSaleStore(FakeEngine(FakeConnection()))

    class Boom(Exception):
        pass

    def callback(tx):
        raise Boom()

    with pytest.raises(Boom):
        store.run_in_transaction(callback)


def test_lock_timeout_is_set_per_transaction() -> None:
    connection = FakeConnection()
    store = PostgresSaleStore(FakeEngine(connection), lock_timeout_ms=750)

    result = store.run_in_transaction(lambda tx: "done")

    assert result == "done"
    sql, params = connection.statements[0]
    assert "set_config('lock_timeout'" in sql
    assert params == {"timeout": "750ms"}


def test_decrement_without_matching_row_is_a_conflict() -> None:
    tx = PostgresSaleTransaction(FakeConnection([FakeResult(row=None)]))

    with pytest.raises(StockConflictError):
        tx.decrement_stock(PRODUCT_ID, 3)


def test_decrement_is_conditional_on_stock() -> None:
    connection = FakeConnection([FakeResult(row={"stock": 4})])
    tx = PostgresSaleTransaction(connection)

    assert tx.decrement_stock(PRODUCT_ID, 3) == 4
    sql, params = connection.statements[0]
    assert "stock >= :quantity" in sql
    assert params == {"id": str(PRODUCT_ID), "quantity": 3}


def test_product_rows_are_locked_for_update() -> None:
    row = {
        "id": str(PRODUCT_ID),
        "name": "Latte",
        "description": None,
        "price": Decimal("4.50"),
        "stock": 10,
        "image_url": None,
        "is_active": True,
        "created_at": None,
        "updated_at": None,
    }
    connection = FakeConnection([FakeResult(row=row)])
    tx = PostgresSaleTransaction(connection)

    product = tx.get_product_for_update(PRODUCT_ID)

    assert product is not None and product.stock == 10
    assert connection.statements[0][0].rstrip().endswith("FOR UPDATE")


def test_upsert_customer_uses_on_conflict_email() -> None:
    customer_id = uuid4()
    connection = FakeConnection(
        [
            FakeResult(
                row={
                    "id": str(customer_id),
                    "first_name": "Ann",
                    "last_name": "Lee",
                    "email": "ann@example.com",
                    "created_at": "2026-01-19T10:00:00Z",
                    "updated_at": "2026-01-19T10:00:00Z",
                }
            )
        ]
    )
    tx = PostgresSaleTransaction(connection)

    customer = tx.upsert_customer(
        CustomerDetails(first_name="Ann", last_name="Lee", email="ANN@example.com")
    )

    assert customer.customer_id == customer_id
    sql, params = connection.statements[0]
    assert "ON CONFLICT (email) DO UPDATE" in sql
    assert params["email"] == "ann@example.com"


def test_finalize_total_requires_exactly_one_row() -> None:
    tx = PostgresSaleTransaction(FakeConnection([FakeResult(rowcount=0)]))

    with pytest.raises(StoreError):
        tx.finalize_sale_total(uuid4(), Decimal("1.00"))
