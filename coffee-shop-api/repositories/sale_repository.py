"""
Sale repository (reads).

Sales are written only by the sale processor through a SaleStore
transaction. This module provides the history queries: a sale with its
items, paginated listings, and per-customer totals. It does not enforce
business rules.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Any, List, Mapping, Optional, Tuple
from uuid import UUID

from supabase import Client  # type: ignore[import-not-found]

from domain.customer import Customer
from domain.money import ZERO, sum_money, to_money
from domain.sale import Sale
from domain.time import parse_optional_utc_datetime, require_utc_timestamp
from repositories.client import get_supabase
from repositories.pagination import Page, PageParams
from repositories.rows import row_to_sale_item

# Supabase table names for sale records.
# Keep these aligned with database/schema.sql.
_SALES_TABLE: str = "sales"
_SALE_ITEMS_TABLE: str = "sale_items"


@dataclass(frozen=True, slots=True)
class SaleSummary:
    """Read model for sale listings (no line items, just their count)."""
    sale_id: UUID
    customer: Customer
    total: Decimal
    items_count: int
    created_at: Optional[datetime]


@dataclass(frozen=True, slots=True)
class SaleDetail:
    """A sale with its line items and the buying customer."""
    sale: Sale
    customer: Customer


@dataclass(frozen=True, slots=True)
class SaleQueryFilters:
    """Filter criteria for sale listings."""
    date_from: Optional[datetime] = None
    date_to: Optional[datetime] = None
    customer_id: Optional[UUID] = None


def _embedded_customer(row: Mapping[str, Any]) -> Customer:
    """Build a Customer from a sales row with an embedded `customers` object."""

    embedded = row.get("customers") or {}
    return Customer(
        customer_id=UUID(str(row["customer_id"])),
        first_name=str(embedded.get("first_name", "")),
        last_name=str(embedded.get("last_name", "")),
        email=str(embedded.get("email", "")),
    )


def _items_count(row: Mapping[str, Any]) -> int:
    # PostgREST returns `sale_items(count)` as [{"count": n}]
    embedded = row.get("sale_items") or []
    if embedded and isinstance(embedded, list):
        return int(embedded[0].get("count", 0))
    return 0


def _to_iso_utc(dt: datetime, *, name: str) -> str:
    require_utc_timestamp(name, dt)
    return dt.isoformat()


def get_sale_with_items(sale_id: UUID, client: Optional[Client] = None) -> Optional[SaleDetail]:
    """
    Retrieve a sale with its customer and line items.

    Items are ordered by creation time.

    Returns:
        SaleDetail or None if not found
    """
    client = client or get_supabase()
    response = (
        client.table(_SALES_TABLE)
        .select("id, customer_id, total, created_at, customers!inner(first_name, last_name, email)")
        .eq("id", str(sale_id))
        .limit(1)
        .execute()
    )
    error = getattr(response, "error", None)
    if error:
        raise RuntimeError(f"Failed to get sale: {error}")

    rows = getattr(response, "data", None) or []
    if not rows:
        return None
    sale_row = rows[0]

    items_response = (
        client.table(_SALE_ITEMS_TABLE)
        .select("id, sale_id, product_id, quantity, unit_price, subtotal, created_at, products!inner(name)")
        .eq("sale_id", str(sale_id))
        .order("created_at", desc=False)
        .execute()
    )
    error = getattr(items_response, "error", None)
    if error:
        raise RuntimeError(f"Failed to fetch sale items: {error}")

    item_rows = getattr(items_response, "data", None) or []
    items = tuple(
        row_to_sale_item(row, product_name=(row.get("products") or {}).get("name"))
        for row in item_rows
    )

    sale = Sale(
        sale_id=UUID(str(sale_row["id"])),
        customer_id=UUID(str(sale_row["customer_id"])),
        total=to_money(sale_row["total"]),
        created_at=parse_optional_utc_datetime(sale_row.get("created_at")),
        items=items,
    )
    return SaleDetail(sale=sale, customer=_embedded_customer(sale_row))


def list_sales(
    filters: SaleQueryFilters,
    params: PageParams,
    client: Optional[Client] = None,
) -> Page:
    """
    List sales newest first.

    Args:
        filters: optional date window (inclusive) and customer id
        params: page and limit

    Returns:
        Page of SaleSummary with the total matching count
    """
    client = client or get_supabase()
    query = client.table(_SALES_TABLE).select(
        "id, customer_id, total, created_at, "
        "customers!inner(first_name, last_name, email), sale_items(count)",
        count="exact",
    )

    if filters.date_from is not None:
        query = query.gte("created_at", _to_iso_utc(filters.date_from, name="date_from"))

    if filters.date_to is not None:
        query = query.lte("created_at", _to_iso_utc(filters.date_to, name="date_to"))

    if filters.customer_id is not None:
        query = query.eq("customer_id", str(filters.customer_id))

    query = query.order("created_at", desc=True).range(params.offset, params.range_end)
    response = query.execute()

    error = getattr(response, "error", None)
    if error:
        raise RuntimeError(f"Failed to list sales: {error}")

    rows = getattr(response, "data", None) or []
    total = getattr(response, "count", None) or 0
    summaries = [
        SaleSummary(
            sale_id=UUID(str(row["id"])),
            customer=_embedded_customer(row),
            total=to_money(row["total"]),
            items_count=_items_count(row),
            created_at=parse_optional_utc_datetime(row.get("created_at")),
        )
        for row in rows
    ]
    return Page(items=summaries, total=total, params=params)


def get_customer_sales_totals(
    customer_id: UUID, client: Optional[Client] = None
) -> Tuple[int, Decimal]:
    """
    Number of purchases and total spent by a customer.

    Returns:
        (purchase_count, total_spent)
    """
    client = client or get_supabase()
    response = (
        client.table(_SALES_TABLE)
        .select("total")
        .eq("customer_id", str(customer_id))
        .execute()
    )
    error = getattr(response, "error", None)
    if error:
        raise RuntimeError(f"Failed to fetch customer purchases: {error}")

    rows: List[Mapping[str, Any]] = getattr(response, "data", None) or []
    if not rows:
        return 0, ZERO
    return len(rows), sum_money(to_money(row["total"]) for row in rows)


__all__ = [
    "SaleDetail",
    "SaleQueryFilters",
    "SaleSummary",
    "get_customer_sales_totals",
    "get_sale_with_items",
    "list_sales",
]
