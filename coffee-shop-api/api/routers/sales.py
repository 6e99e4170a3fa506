"""
Sales API Endpoints.

Endpoints for recording sales and reading sale history.
"""

from datetime import datetime
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from supabase import Client  # type: ignore[import-not-found]

from api.dependencies import get_sale_store, get_supabase_client
from api.errors import ApiError
from api.models import (
    CreateSaleRequest,
    ErrorResponse,
    PaginationMeta,
    SaleCreatedData,
    SaleCreatedResponse,
    SaleDetailResponse,
    SaleDetailView,
    SaleListItem,
    SaleListResponse,
)
from domain.sale_outcome import FailureReason, RejectionReason, SaleConfirmed, SaleRejected
from domain.time import parse_utc_datetime
from repositories.pagination import PageParams
from repositories.sale_repository import SaleQueryFilters, get_sale_with_items, list_sales
from repositories.sale_store import SaleStore
from services.sale_processor import process_sale

router = APIRouter()


@router.post(
    "/sales",
    status_code=201,
    response_model=SaleCreatedResponse,
    responses={400: {"model": ErrorResponse}, 409: {"model": ErrorResponse}, 422: {"model": ErrorResponse}},
    summary="Create Sale",
    description="Record a sale atomically: customer upsert, stock check, line items and stock decrement.",
)
def create_sale(request: CreateSaleRequest, store: SaleStore = Depends(get_sale_store)):
    """
    Create a new sale.

    **All-or-nothing:** either the customer upsert, the sale, every line item
    and every stock decrement are committed together, or none of them are.

    **Error codes:**
    - `PRODUCT_NOT_FOUND`, `PRODUCT_INACTIVE`, `INSUFFICIENT_STOCK` (400):
      fix the request; retrying it unchanged will fail again
    - `INVALID_INPUT` / `VALIDATION_ERROR` (422): malformed request
    - `STOCK_CONFLICT` (409): another sale won the race; resubmit
    - `PROCESSING_FAILED` (500): store failure; nothing was recorded

    Resubmitting after a lost response can record the sale twice; requests
    are not deduplicated.
    """
    outcome = process_sale(
        store,
        customer=request.customer.model_dump(),
        items=[item.model_dump() for item in request.items],
    )

    if isinstance(outcome, SaleConfirmed):
        return SaleCreatedResponse(
            data=SaleCreatedData(
                sale_id=outcome.sale_id,
                customer_id=outcome.customer_id,
                total=outcome.total,
            ),
            message="Sale created successfully",
        )

    if isinstance(outcome, SaleRejected):
        status_code = 422 if outcome.reason is RejectionReason.INVALID_INPUT else 400
        raise ApiError(status_code, outcome.reason.value, outcome.message, dict(outcome.details))

    status_code = 409 if outcome.reason is FailureReason.STOCK_CONFLICT else 500
    raise ApiError(status_code, outcome.reason.value, outcome.message)


@router.get(
    "/sales",
    response_model=SaleListResponse,
    summary="List Sales",
    description="List sales newest first, optionally filtered by date window and customer.",
)
def get_sales(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    date_from: Optional[datetime] = Query(None, alias="from", description="ISO-8601 lower bound (inclusive)"),
    date_to: Optional[datetime] = Query(None, alias="to", description="ISO-8601 upper bound (inclusive)"),
    customer_id: Optional[UUID] = Query(None, alias="customerId"),
    client: Client = Depends(get_supabase_client),
):
    """
    **Example usage:**
    - `GET /api/v1/sales?page=2&limit=20`
    - `GET /api/v1/sales?from=2026-01-01T00:00:00Z&to=2026-01-31T23:59:59Z`
    """
    filters = SaleQueryFilters(
        date_from=parse_utc_datetime(date_from) if date_from else None,
        date_to=parse_utc_datetime(date_to) if date_to else None,
        customer_id=customer_id,
    )
    result = list_sales(filters, PageParams.from_query(page, limit), client=client)
    return SaleListResponse(
        data=[SaleListItem.from_summary(summary) for summary in result.items],
        meta=PaginationMeta.from_page(result),
    )


@router.get(
    "/sales/{sale_id}",
    response_model=SaleDetailResponse,
    responses={404: {"model": ErrorResponse}},
    summary="Get Sale",
    description="Get a sale with its customer and line items.",
)
def get_sale(sale_id: UUID, client: Client = Depends(get_supabase_client)):
    detail = get_sale_with_items(sale_id, client=client)
    if detail is None:
        raise ApiError.not_found("Sale not found")
    return SaleDetailResponse(data=SaleDetailView.from_detail(detail))
