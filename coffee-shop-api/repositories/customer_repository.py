"""
Customer repository (reads).

Customers are created and renamed only by the sale processor, inside the
sale transaction. This module provides the lookups used by the API.
"""

from __future__ import annotations

from typing import Optional
from uuid import UUID

from supabase import Client  # type: ignore[import-not-found]

from domain.customer import Customer, normalize_email
from repositories.client import get_supabase
from repositories.pagination import Page, PageParams
from repositories.rows import row_to_customer

_CUSTOMERS_TABLE: str = "customers"

CUSTOMER_SORT_COLUMNS = {
    "firstName": "first_name",
    "lastName": "last_name",
    "createdAt": "created_at",
}

# PostgREST `or` filters are comma separated; these characters would break
# the filter string if they appeared in a search term.
_OR_FILTER_RESERVED = str.maketrans({",": " ", "(": " ", ")": " "})


def get_customer_by_id(customer_id: UUID, client: Optional[Client] = None) -> Optional[Customer]:
    """
    Get a customer by id.

    Returns:
        Customer or None if not found
    """
    client = client or get_supabase()
    response = (
        client.table(_CUSTOMERS_TABLE)
        .select("*")
        .eq("id", str(customer_id))
        .limit(1)
        .execute()
    )

    error = getattr(response, "error", None)
    if error:
        raise RuntimeError(f"Failed to fetch customer: {error}")

    rows = getattr(response, "data", None) or []
    if not rows:
        return None
    return row_to_customer(rows[0])


def get_customer_by_email(email: str, client: Optional[Client] = None) -> Optional[Customer]:
    """
    Get a customer by email (case-insensitive).

    Example:
        customer = get_customer_by_email("Ann@Example.com")
    """
    client = client or get_supabase()
    response = (
        client.table(_CUSTOMERS_TABLE)
        .select("*")
        .eq("email", normalize_email(email))
        .limit(1)
        .execute()
    )

    error = getattr(response, "error", None)
    if error:
        raise RuntimeError(f"Failed to fetch customer: {error}")

    rows = getattr(response, "data", None) or []
    if not rows:
        return None
    return row_to_customer(rows[0])


def list_customers(
    params: PageParams,
    search: Optional[str] = None,
    sort_by: str = "createdAt",
    sort_order: str = "desc",
    client: Optional[Client] = None,
) -> Page:
    """
    List customers, optionally searching first name, last name and email.

    Returns:
        Page of Customer with the total matching count
    """
    client = client or get_supabase()
    query = client.table(_CUSTOMERS_TABLE).select("*", count="exact")

    if search:
        term = search.translate(_OR_FILTER_RESERVED).strip()
        if term:
            query = query.or_(
                f"first_name.ilike.%{term}%,last_name.ilike.%{term}%,email.ilike.%{term}%"
            )

    column = CUSTOMER_SORT_COLUMNS.get(sort_by, "created_at")
    query = query.order(column, desc=sort_order != "asc")
    query = query.range(params.offset, params.range_end)

    response = query.execute()

    error = getattr(response, "error", None)
    if error:
        raise RuntimeError(f"Failed to fetch customers: {error}")

    rows = getattr(response, "data", None) or []
    total = getattr(response, "count", None) or 0
    return Page(items=[row_to_customer(row) for row in rows], total=total, params=params)


__all__ = [
    "CUSTOMER_SORT_COLUMNS",
    "get_customer_by_email",
    "get_customer_by_id",
    "list_customers",
]
