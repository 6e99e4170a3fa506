"""
Product repository (catalog).

Catalog queries and edits over Supabase. Only active products are listed or
fetched; soft-deleted rows stay in the table for sale history.

Stock is only written here as the opening stock of a new product. Restocks go
through the SaleStore transaction (services.catalog_service) and sales through
the sale processor.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Dict, Optional
from uuid import UUID

from supabase import Client  # type: ignore[import-not-found]

from domain.money import ZERO, to_money
from domain.product import Product
from domain.time import utc_now
from repositories.client import get_supabase
from repositories.pagination import Page, PageParams
from repositories.rows import row_to_product

_PRODUCTS_TABLE: str = "products"

NAME_MIN_LENGTH = 2
NAME_MAX_LENGTH = 100
DESCRIPTION_MAX_LENGTH = 500
MAX_PRICE = Decimal("1000000.00")
MAX_INITIAL_STOCK = 10_000

# API sort keys -> column names
PRODUCT_SORT_COLUMNS = {
    "name": "name",
    "price": "price",
    "createdAt": "created_at",
    "stock": "stock",
}


@dataclass(frozen=True, slots=True)
class ProductQueryFilters:
    """Filter criteria for catalog listing."""
    search: Optional[str] = None  # case-insensitive substring of name
    min_price: Optional[Decimal] = None
    max_price: Optional[Decimal] = None
    in_stock: bool = False
    sort_by: str = "createdAt"
    sort_order: str = "desc"


def get_product_by_id(product_id: UUID, client: Optional[Client] = None) -> Optional[Product]:
    """
    Get an active product by id.

    Returns:
        Product or None if it does not exist or is inactive
    """
    client = client or get_supabase()
    response = (
        client.table(_PRODUCTS_TABLE)
        .select("*")
        .eq("id", str(product_id))
        .eq("is_active", True)
        .limit(1)
        .execute()
    )

    error = getattr(response, "error", None)
    if error:
        raise RuntimeError(f"Failed to fetch product: {error}")

    rows = getattr(response, "data", None) or []
    if not rows:
        return None
    return row_to_product(rows[0])


def list_products(
    filters: ProductQueryFilters,
    params: PageParams,
    client: Optional[Client] = None,
) -> Page:
    """
    List active products with filters and pagination.

    Args:
        filters: ProductQueryFilters
        params: page and limit

    Returns:
        Page of Product with the total matching count
    """
    client = client or get_supabase()
    query = (
        client.table(_PRODUCTS_TABLE)
        .select("*", count="exact")
        .eq("is_active", True)
    )

    if filters.search:
        query = query.ilike("name", f"%{filters.search}%")

    if filters.min_price is not None:
        query = query.gte("price", str(filters.min_price))

    if filters.max_price is not None:
        query = query.lte("price", str(filters.max_price))

    if filters.in_stock:
        query = query.gt("stock", 0)

    column = PRODUCT_SORT_COLUMNS.get(filters.sort_by, "created_at")
    query = query.order(column, desc=filters.sort_order != "asc")
    query = query.range(params.offset, params.range_end)

    response = query.execute()

    error = getattr(response, "error", None)
    if error:
        raise RuntimeError(f"Failed to fetch products: {error}")

    rows = getattr(response, "data", None) or []
    total = getattr(response, "count", None) or 0
    return Page(items=[row_to_product(row) for row in rows], total=total, params=params)


def _check_name(name: str) -> str:
    name = name.strip()
    if not NAME_MIN_LENGTH <= len(name) <= NAME_MAX_LENGTH:
        raise ValueError(f"name must be between {NAME_MIN_LENGTH} and {NAME_MAX_LENGTH} characters")
    return name


def _check_description(description: Optional[str]) -> Optional[str]:
    if description is not None and len(description) > DESCRIPTION_MAX_LENGTH:
        raise ValueError(f"description must not exceed {DESCRIPTION_MAX_LENGTH} characters")
    return description


def _check_price(price: Decimal | str | int) -> Decimal:
    amount = to_money(price)
    if not ZERO < amount <= MAX_PRICE:
        raise ValueError(f"price must be positive and at most {MAX_PRICE}")
    return amount


def create_product(
    name: str,
    price: Decimal | str | int,
    stock: int = 0,
    *,
    description: Optional[str] = None,
    image_url: Optional[str] = None,
    client: Optional[Client] = None,
) -> Product:
    """
    Add a product to the catalog.

    Args:
        name: 2-100 characters
        price: positive, at most 1,000,000
        stock: opening stock (0..10,000); later changes go through restock_product
        description: up to 500 characters
        image_url: public image URL

    Returns:
        Created Product as stored

    Raises:
        ValueError: if a field is out of range
        RuntimeError: if Supabase rejects the insert
    """
    if isinstance(stock, bool) or not isinstance(stock, int):
        raise ValueError("stock must be an integer")
    if not 0 <= stock <= MAX_INITIAL_STOCK:
        raise ValueError(f"stock must be between 0 and {MAX_INITIAL_STOCK}")

    payload = {
        "name": _check_name(name),
        "description": _check_description(description),
        "price": str(_check_price(price)),
        "stock": stock,
        "image_url": image_url,
    }

    client = client or get_supabase()
    response = client.table(_PRODUCTS_TABLE).insert(payload).execute()

    error = getattr(response, "error", None)
    if error:
        raise RuntimeError(f"Failed to create product: {error}")

    rows = getattr(response, "data", None) or []
    if not rows:
        raise RuntimeError("Failed to create product: no row returned")
    return row_to_product(rows[0])


def update_product(
    product_id: UUID,
    *,
    name: Optional[str] = None,
    price: Decimal | str | int | None = None,
    description: Optional[str] = None,
    image_url: Optional[str] = None,
    is_active: Optional[bool] = None,
    client: Optional[Client] = None,
) -> Optional[Product]:
    """
    Change catalog fields of a product, active or not.

    Only the fields passed are written. Stock is not one of them: it changes
    through sales and restock_product, which hold the row lock.

    Returns:
        Updated Product, or None if no product has this id

    Raises:
        ValueError: if no field is given or a field is out of range
        RuntimeError: if Supabase rejects the update
    """
    payload: Dict[str, Any] = {}
    if name is not None:
        payload["name"] = _check_name(name)
    if price is not None:
        payload["price"] = str(_check_price(price))
    if description is not None:
        payload["description"] = _check_description(description)
    if image_url is not None:
        payload["image_url"] = image_url
    if is_active is not None:
        payload["is_active"] = bool(is_active)
    if not payload:
        raise ValueError("Nothing to update")
    payload["updated_at"] = utc_now().isoformat()

    client = client or get_supabase()
    response = (
        client.table(_PRODUCTS_TABLE)
        .update(payload)
        .eq("id", str(product_id))
        .execute()
    )

    error = getattr(response, "error", None)
    if error:
        raise RuntimeError(f"Failed to update product: {error}")

    rows = getattr(response, "data", None) or []
    if not rows:
        return None
    return row_to_product(rows[0])


def deactivate_product(product_id: UUID, client: Optional[Client] = None) -> bool:
    """
    Soft-delete a product.

    Returns:
        True if an active product was deactivated, False if none matched
    """
    client = client or get_supabase()
    response = (
        client.table(_PRODUCTS_TABLE)
        .update({"is_active": False, "updated_at": utc_now().isoformat()})
        .eq("id", str(product_id))
        .eq("is_active", True)
        .execute()
    )

    error = getattr(response, "error", None)
    if error:
        raise RuntimeError(f"Failed to deactivate product: {error}")

    rows = getattr(response, "data", None) or []
    return bool(rows)


__all__ = [
    "PRODUCT_SORT_COLUMNS",
    "ProductQueryFilters",
    "create_product",
    "deactivate_product",
    "get_product_by_id",
    "list_products",
    "update_product",
]
