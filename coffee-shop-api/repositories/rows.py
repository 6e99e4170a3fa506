"""
Row mappers shared by the Supabase repositories and the Postgres sale store.

Both sources use the same column names (snake_case, `id` primary keys);
Supabase returns JSON-decoded values, psycopg2 returns native ones, so every
mapper goes through `str()` / `to_money()` before building domain objects.
"""

from __future__ import annotations

from typing import Any, Mapping, Optional
from uuid import UUID

from domain.customer import Customer
from domain.money import to_money
from domain.product import Product
from domain.sale import SaleItem
from domain.time import parse_optional_utc_datetime

CUSTOMER_COLUMNS = "id, first_name, last_name, email, created_at, updated_at"
PRODUCT_COLUMNS = (
    "id, name, description, price, stock, image_url, is_active, created_at, updated_at"
)


def row_to_customer(row: Mapping[str, Any]) -> Customer:
    """Convert a customers row into a Customer."""

    return Customer(
        customer_id=UUID(str(row["id"])),
        first_name=str(row["first_name"]),
        last_name=str(row["last_name"]),
        email=str(row["email"]),
        created_at=parse_optional_utc_datetime(row.get("created_at")),
        updated_at=parse_optional_utc_datetime(row.get("updated_at")),
    )


def row_to_product(row: Mapping[str, Any]) -> Product:
    """Convert a products row into a Product."""

    is_active = row.get("is_active")
    return Product(
        product_id=UUID(str(row["id"])),
        name=str(row["name"]),
        price=to_money(row["price"]),
        stock=int(row["stock"]),
        # is_active defaults to true in the schema; NULL means never toggled
        is_active=True if is_active is None else bool(is_active),
        description=row.get("description"),
        image_url=row.get("image_url"),
        created_at=parse_optional_utc_datetime(row.get("created_at")),
        updated_at=parse_optional_utc_datetime(row.get("updated_at")),
    )


def row_to_sale_item(row: Mapping[str, Any], product_name: Optional[str] = None) -> SaleItem:
    """Convert a sale_items row into a SaleItem."""

    return SaleItem(
        sale_item_id=UUID(str(row["id"])),
        sale_id=UUID(str(row["sale_id"])),
        product_id=UUID(str(row["product_id"])),
        quantity=int(row["quantity"]),
        unit_price=to_money(row["unit_price"]),
        subtotal=to_money(row["subtotal"]),
        created_at=parse_optional_utc_datetime(row.get("created_at")),
        product_name=product_name,
    )


__all__ = [
    "CUSTOMER_COLUMNS",
    "PRODUCT_COLUMNS",
    "row_to_customer",
    "row_to_product",
    "row_to_sale_item",
]
