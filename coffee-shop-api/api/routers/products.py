"""
Products API Endpoints.

Read-only catalog browsing. Stock changes happen through sales and through
the restock script.
"""

from decimal import Decimal
from typing import Literal, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from supabase import Client  # type: ignore[import-not-found]

from api.dependencies import get_supabase_client
from api.errors import ApiError
from api.models import ErrorResponse, PaginationMeta, ProductListResponse, ProductResponse, ProductView
from repositories.pagination import PageParams
from repositories.product_repository import ProductQueryFilters, get_product_by_id, list_products

router = APIRouter()


@router.get(
    "/products",
    response_model=ProductListResponse,
    summary="List Products",
    description="Browse active products with search, price and stock filters.",
)
def get_products(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    search: Optional[str] = Query(None, max_length=100, description="Substring of the product name"),
    min_price: Optional[Decimal] = Query(None, alias="minPrice", ge=0),
    max_price: Optional[Decimal] = Query(None, alias="maxPrice", ge=0),
    in_stock: bool = Query(False, alias="inStock"),
    sort_by: Literal["name", "price", "createdAt", "stock"] = Query("createdAt", alias="sortBy"),
    sort_order: Literal["asc", "desc"] = Query("desc", alias="sortOrder"),
    client: Client = Depends(get_supabase_client),
):
    """
    **Example usage:**
    - `GET /api/v1/products?search=latte`
    - `GET /api/v1/products?minPrice=2&maxPrice=5&inStock=true&sortBy=price&sortOrder=asc`
    """
    if min_price is not None and max_price is not None and min_price > max_price:
        raise ApiError.bad_request("minPrice cannot be greater than maxPrice")

    filters = ProductQueryFilters(
        search=search,
        min_price=min_price,
        max_price=max_price,
        in_stock=in_stock,
        sort_by=sort_by,
        sort_order=sort_order,
    )
    result = list_products(filters, PageParams.from_query(page, limit), client=client)
    return ProductListResponse(
        data=[ProductView.from_domain(product) for product in result.items],
        meta=PaginationMeta.from_page(result),
    )


@router.get(
    "/products/{product_id}",
    response_model=ProductResponse,
    responses={404: {"model": ErrorResponse}},
    summary="Get Product",
)
def get_product(product_id: UUID, client: Client = Depends(get_supabase_client)):
    product = get_product_by_id(product_id, client=client)
    if product is None:
        raise ApiError.not_found("Product not found")
    return ProductResponse(data=ProductView.from_domain(product))
