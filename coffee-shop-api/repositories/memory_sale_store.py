"""
In-memory sale store.

Process-local implementation of the SaleStore contract, used by the test suite
and for running the API without a database.

Isolation model: one lock is held for the whole transaction (the coarsest form
of row locking), and the transaction writes to a copy of the tables that
replaces the live tables only on commit. Rolling back is dropping the copy.
Records are frozen dataclasses, so copying the dicts is enough.

Transactions must not be nested: calling run_in_transaction from inside a
callback on the same store blocks forever.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass, field, replace
from datetime import datetime
from decimal import Decimal
from typing import Callable, Dict, List, Optional, TypeVar
from uuid import UUID, uuid4

from domain.customer import Customer, CustomerDetails, normalize_email
from domain.money import to_money
from domain.product import Product
from domain.sale import Sale, SaleItem
from domain.time import utc_now
from repositories.sale_store import SaleStore, SaleTransaction, StockConflictError, StoreError

T = TypeVar("T")


@dataclass(slots=True)
class _SaleHeader:
    sale_id: UUID
    customer_id: UUID
    total: Decimal
    created_at: datetime


@dataclass(slots=True)
class _Tables:
    customers: Dict[UUID, Customer] = field(default_factory=dict)
    products: Dict[UUID, Product] = field(default_factory=dict)
    sales: Dict[UUID, _SaleHeader] = field(default_factory=dict)
    sale_items: Dict[UUID, SaleItem] = field(default_factory=dict)

    def copy(self) -> "_Tables":
        return _Tables(
            customers=dict(self.customers),
            products=dict(self.products),
            sales={key: replace(header) for key, header in self.sales.items()},
            sale_items=dict(self.sale_items),
        )


class InMemorySaleTransaction(SaleTransaction):
    """Transaction over a private copy of the tables."""

    def __init__(self, tables: _Tables) -> None:
        self._tables = tables

    def _customer_by_email(self, email: str) -> Optional[Customer]:
        wanted = normalize_email(email)
        for customer in self._tables.customers.values():
            if customer.email == wanted:
                return customer
        return None

    def find_customer_by_email(self, email: str) -> Optional[Customer]:
        return self._customer_by_email(email)

    def upsert_customer(self, details: CustomerDetails) -> Customer:
        now = utc_now()
        existing = self._customer_by_email(details.email)
        if existing is None:
            customer = Customer(
                customer_id=uuid4(),
                first_name=details.first_name,
                last_name=details.last_name,
                email=details.email,
                created_at=now,
                updated_at=now,
            )
        else:
            customer = replace(
                existing,
                first_name=details.first_name,
                last_name=details.last_name,
                updated_at=now,
            )
        self._tables.customers[customer.customer_id] = customer
        return customer

    def get_product_for_update(self, product_id: UUID) -> Optional[Product]:
        return self._tables.products.get(product_id)

    def insert_sale(self, customer_id: UUID, provisional_total: Decimal) -> UUID:
        if customer_id not in self._tables.customers:
            raise StoreError(f"Customer {customer_id} does not exist")
        sale_id = uuid4()
        self._tables.sales[sale_id] = _SaleHeader(
            sale_id=sale_id,
            customer_id=customer_id,
            total=to_money(provisional_total),
            created_at=utc_now(),
        )
        return sale_id

    def insert_sale_item(
        self,
        sale_id: UUID,
        product_id: UUID,
        quantity: int,
        unit_price: Decimal,
        subtotal: Decimal,
    ) -> UUID:
        if sale_id not in self._tables.sales:
            raise StoreError(f"Sale {sale_id} does not exist")
        if product_id not in self._tables.products:
            raise StoreError(f"Product {product_id} does not exist")
        try:
            item = SaleItem(
                sale_item_id=uuid4(),
                sale_id=sale_id,
                product_id=product_id,
                quantity=quantity,
                unit_price=unit_price,
                subtotal=subtotal,
                created_at=utc_now(),
            )
        except ValueError as exc:
            # mirrors the CHECK constraints on sale_items
            raise StoreError(str(exc)) from exc
        self._tables.sale_items[item.sale_item_id] = item
        return item.sale_item_id

    def decrement_stock(self, product_id: UUID, quantity: int) -> int:
        product = self._tables.products.get(product_id)
        if product is None or product.stock < quantity:
            raise StockConflictError(
                f"Stock for product {product_id} changed before it could be decremented"
            )
        updated = replace(product, stock=product.stock - quantity, updated_at=utc_now())
        self._tables.products[product_id] = updated
        return updated.stock

    def increment_stock(self, product_id: UUID, quantity: int) -> int:
        product = self._tables.products.get(product_id)
        if product is None:
            raise StoreError(f"Product {product_id} disappeared during restock")
        updated = replace(product, stock=product.stock + quantity, updated_at=utc_now())
        self._tables.products[product_id] = updated
        return updated.stock

    def finalize_sale_total(self, sale_id: UUID, total: Decimal) -> None:
        header = self._tables.sales.get(sale_id)
        if header is None:
            raise StoreError(f"Sale {sale_id} not found when writing its total")
        header.total = to_money(total)


class InMemorySaleStore(SaleStore):
    """SaleStore keeping everything in process memory."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._tables = _Tables()

    def run_in_transaction(self, fn: Callable[[SaleTransaction], T]) -> T:
        with self._lock:
            working = self._tables.copy()
            result = fn(InMemorySaleTransaction(working))
            self._tables = working
            return result

    # Seeding and inspection helpers. These bypass transactions and are meant
    # for tests and local development only.

    def add_product(
        self,
        name: str,
        price: Decimal | str,
        stock: int,
        *,
        is_active: bool = True,
        product_id: Optional[UUID] = None,
    ) -> Product:
        now = utc_now()
        product = Product(
            product_id=product_id or uuid4(),
            name=name,
            price=to_money(price),
            stock=stock,
            is_active=is_active,
            created_at=now,
            updated_at=now,
        )
        with self._lock:
            self._tables.products[product.product_id] = product
        return product

    def set_price(self, product_id: UUID, price: Decimal | str) -> Product:
        with self._lock:
            product = replace(self._tables.products[product_id], price=to_money(price))
            self._tables.products[product_id] = product
        return product

    def get_product(self, product_id: UUID) -> Optional[Product]:
        with self._lock:
            return self._tables.products.get(product_id)

    def list_customers(self) -> List[Customer]:
        with self._lock:
            return list(self._tables.customers.values())

    def get_sale(self, sale_id: UUID) -> Optional[Sale]:
        with self._lock:
            header = self._tables.sales.get(sale_id)
            if header is None:
                return None
            items = sorted(
                (item for item in self._tables.sale_items.values() if item.sale_id == sale_id),
                key=lambda item: item.created_at,
            )
            return Sale(
                sale_id=header.sale_id,
                customer_id=header.customer_id,
                total=header.total,
                created_at=header.created_at,
                items=tuple(items),
            )

    def list_sales(self) -> List[Sale]:
        with self._lock:
            sale_ids = list(self._tables.sales)
        return [sale for sale in (self.get_sale(sale_id) for sale_id in sale_ids) if sale]

    def count_sale_items(self) -> int:
        with self._lock:
            return len(self._tables.sale_items)


__all__ = ["InMemorySaleStore", "InMemorySaleTransaction"]
