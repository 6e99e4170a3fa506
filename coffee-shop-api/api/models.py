"""
API Request and Response Models.

Pydantic models for validating API requests and serializing responses.
JSON uses camelCase; Python attributes stay snake_case. Money is serialized
as a decimal string ("15.00") so totals never pass through a float.
"""

from datetime import datetime
from decimal import Decimal
from typing import Any, List, Optional
from uuid import UUID

from pydantic import BaseModel, EmailStr, Field
from pydantic.alias_generators import to_camel

from domain.customer import NAME_MAX_LENGTH, NAME_MIN_LENGTH, Customer
from domain.product import Product
from domain.sale import MAX_ITEMS_PER_SALE, MAX_QUANTITY_PER_ITEM, SaleItem
from repositories.pagination import Page
from repositories.sale_repository import SaleDetail, SaleSummary


class CamelModel(BaseModel):
    """Base model: camelCase on the wire, snake_case in Python."""

    class Config:
        alias_generator = to_camel
        populate_by_name = True


# ============================================================================
# Envelope Models
# ============================================================================

class PaginationMeta(CamelModel):
    page: int
    limit: int
    total: int
    total_pages: int

    @classmethod
    def from_page(cls, page: Page) -> "PaginationMeta":
        return cls(
            page=page.params.page,
            limit=page.params.limit,
            total=page.total,
            total_pages=page.total_pages,
        )


class ErrorBody(CamelModel):
    code: str
    message: str
    details: Optional[Any] = None


class ErrorResponse(CamelModel):
    """Standard error response."""
    success: bool = False
    error: ErrorBody

    class Config:
        json_schema_extra = {
            "example": {
                "success": False,
                "error": {
                    "code": "INSUFFICIENT_STOCK",
                    "message": "Insufficient stock for product: Latte (available: 2, requested: 5)",
                    "details": {"productId": "123e4567-e89b-12d3-a456-426614174000", "available": 2, "requested": 5},
                },
            }
        }


# ============================================================================
# Sale Models
# ============================================================================

class CustomerInput(CamelModel):
    """Customer descriptor sent with a purchase."""
    first_name: str = Field(..., min_length=NAME_MIN_LENGTH, max_length=NAME_MAX_LENGTH)
    last_name: str = Field(..., min_length=NAME_MIN_LENGTH, max_length=NAME_MAX_LENGTH)
    email: EmailStr


class SaleItemInput(CamelModel):
    product_id: UUID
    quantity: int = Field(..., gt=0, le=MAX_QUANTITY_PER_ITEM)


class CreateSaleRequest(CamelModel):
    """Request to record a sale."""
    customer: CustomerInput
    items: List[SaleItemInput] = Field(..., min_length=1, max_length=MAX_ITEMS_PER_SALE)

    class Config:
        json_schema_extra = {
            "example": {
                "customer": {"firstName": "Juan", "lastName": "Perez", "email": "juan.perez@example.com"},
                "items": [{"productId": "123e4567-e89b-12d3-a456-426614174000", "quantity": 2}],
            }
        }


class SaleCreatedData(CamelModel):
    sale_id: UUID
    customer_id: UUID
    total: Decimal


class SaleCreatedResponse(CamelModel):
    """Response after a committed sale."""
    success: bool = True
    data: SaleCreatedData
    message: Optional[str] = None

    class Config:
        json_schema_extra = {
            "example": {
                "success": True,
                "data": {
                    "saleId": "123e4567-e89b-12d3-a456-426614174003",
                    "customerId": "123e4567-e89b-12d3-a456-426614174002",
                    "total": "15.00",
                },
                "message": "Sale created successfully",
            }
        }


class CustomerSummary(CamelModel):
    id: UUID
    first_name: str
    last_name: str
    email: str

    @classmethod
    def from_domain(cls, customer: Customer) -> "CustomerSummary":
        return cls(
            id=customer.customer_id,
            first_name=customer.first_name,
            last_name=customer.last_name,
            email=customer.email,
        )


class SaleListItem(CamelModel):
    id: UUID
    customer: CustomerSummary
    total: Decimal
    items_count: int
    created_at: Optional[datetime] = None

    @classmethod
    def from_summary(cls, summary: SaleSummary) -> "SaleListItem":
        return cls(
            id=summary.sale_id,
            customer=CustomerSummary.from_domain(summary.customer),
            total=summary.total,
            items_count=summary.items_count,
            created_at=summary.created_at,
        )


class SaleListResponse(CamelModel):
    success: bool = True
    data: List[SaleListItem]
    meta: PaginationMeta


class SaleItemView(CamelModel):
    id: UUID
    product_id: UUID
    product_name: Optional[str] = None
    quantity: int
    unit_price: Decimal
    subtotal: Decimal

    @classmethod
    def from_domain(cls, item: SaleItem) -> "SaleItemView":
        return cls(
            id=item.sale_item_id,
            product_id=item.product_id,
            product_name=item.product_name,
            quantity=item.quantity,
            unit_price=item.unit_price,
            subtotal=item.subtotal,
        )


class SaleDetailView(CamelModel):
    id: UUID
    customer: CustomerSummary
    total: Decimal
    items: List[SaleItemView]
    created_at: Optional[datetime] = None

    @classmethod
    def from_detail(cls, detail: SaleDetail) -> "SaleDetailView":
        return cls(
            id=detail.sale.sale_id,
            customer=CustomerSummary.from_domain(detail.customer),
            total=detail.sale.total,
            items=[SaleItemView.from_domain(item) for item in detail.sale.items],
            created_at=detail.sale.created_at,
        )


class SaleDetailResponse(CamelModel):
    success: bool = True
    data: SaleDetailView


# ============================================================================
# Product Models
# ============================================================================

class ProductView(CamelModel):
    id: UUID
    name: str
    description: Optional[str] = None
    price: Decimal
    stock: int
    image_url: Optional[str] = None
    is_active: bool
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @classmethod
    def from_domain(cls, product: Product) -> "ProductView":
        return cls(
            id=product.product_id,
            name=product.name,
            description=product.description,
            price=product.price,
            stock=product.stock,
            image_url=product.image_url,
            is_active=product.is_active,
            created_at=product.created_at,
            updated_at=product.updated_at,
        )


class ProductListResponse(CamelModel):
    success: bool = True
    data: List[ProductView]
    meta: PaginationMeta


class ProductResponse(CamelModel):
    success: bool = True
    data: ProductView


# ============================================================================
# Customer Models
# ============================================================================

class CustomerView(CustomerSummary):
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @classmethod
    def from_domain(cls, customer: Customer) -> "CustomerView":
        return cls(
            id=customer.customer_id,
            first_name=customer.first_name,
            last_name=customer.last_name,
            email=customer.email,
            created_at=customer.created_at,
            updated_at=customer.updated_at,
        )


class CustomerListResponse(CamelModel):
    success: bool = True
    data: List[CustomerView]
    meta: PaginationMeta


class CustomerStats(CamelModel):
    total_purchases: int
    total_spent: Decimal


class CustomerDetailView(CamelModel):
    customer: CustomerView
    purchases: List[SaleListItem]
    stats: CustomerStats


class CustomerDetailResponse(CamelModel):
    success: bool = True
    data: CustomerDetailView
