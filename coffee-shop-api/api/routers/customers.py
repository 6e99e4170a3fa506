"""
Customers API Endpoints.

Customers are created by sales; these endpoints only read them.
"""

from typing import Literal, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from supabase import Client  # type: ignore[import-not-found]

from api.dependencies import get_supabase_client
from api.errors import ApiError
from api.models import (
    CustomerDetailResponse,
    CustomerDetailView,
    CustomerListResponse,
    CustomerStats,
    CustomerView,
    ErrorResponse,
    PaginationMeta,
    SaleListItem,
)
from repositories.customer_repository import get_customer_by_id, list_customers
from repositories.pagination import PageParams
from repositories.sale_repository import SaleQueryFilters, get_customer_sales_totals, list_sales

router = APIRouter()

RECENT_PURCHASES_LIMIT = 10


@router.get(
    "/customers",
    response_model=CustomerListResponse,
    summary="List Customers",
    description="List customers, optionally searching name and email.",
)
def get_customers(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    search: Optional[str] = Query(None, max_length=100),
    sort_by: Literal["firstName", "lastName", "createdAt"] = Query("createdAt", alias="sortBy"),
    sort_order: Literal["asc", "desc"] = Query("desc", alias="sortOrder"),
    client: Client = Depends(get_supabase_client),
):
    result = list_customers(
        PageParams.from_query(page, limit),
        search=search,
        sort_by=sort_by,
        sort_order=sort_order,
        client=client,
    )
    return CustomerListResponse(
        data=[CustomerView.from_domain(customer) for customer in result.items],
        meta=PaginationMeta.from_page(result),
    )


@router.get(
    "/customers/{customer_id}",
    response_model=CustomerDetailResponse,
    responses={404: {"model": ErrorResponse}},
    summary="Get Customer",
    description="Get a customer with recent purchases and lifetime totals.",
)
def get_customer(customer_id: UUID, client: Client = Depends(get_supabase_client)):
    customer = get_customer_by_id(customer_id, client=client)
    if customer is None:
        raise ApiError.not_found("Customer not found")

    recent = list_sales(
        SaleQueryFilters(customer_id=customer_id),
        PageParams(page=1, limit=RECENT_PURCHASES_LIMIT),
        client=client,
    )
    purchase_count, total_spent = get_customer_sales_totals(customer_id, client=client)

    return CustomerDetailResponse(
        data=CustomerDetailView(
            customer=CustomerView.from_domain(customer),
            purchases=[SaleListItem.from_summary(summary) for summary in recent.items],
            stats=CustomerStats(total_purchases=purchase_count, total_spent=total_spent),
        )
    )
