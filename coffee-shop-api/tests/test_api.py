"""
Tests for the HTTP API.

The sale store is replaced with an InMemorySaleStore and the Supabase client
with the fake from conftest, through `app.dependency_overrides`.

Covers:
- POST /api/v1/sales status codes per outcome (201, 400, 409, 422, 500).
- The error envelope {success: false, error: {code, message, details}}.
- camelCase JSON with money as decimal strings.
- Read endpoints, 404s for missing records and unknown routes.
"""

from __future__ import annotations

from uuid import UUID

import pytest
from fastapi.testclient import TestClient

from api.dependencies import get_sale_store, get_supabase_client
from api.main import create_app
from repositories.memory_sale_store import InMemorySaleTransaction
from repositories.sale_store import StockConflictError, StoreError
from repositories.settings import Settings

CUSTOMER = {"firstName": "Juan", "lastName": "Perez", "email": "Juan.Perez@Example.com"}
CUSTOMER_ID = "00000000-0000-0000-0000-000000000030"
SALE_ID = "00000000-0000-0000-0000-000000000020"


@pytest.fixture
def app(store, fake_supabase):
    application = create_app(Settings(app_env="test"))
    application.dependency_overrides[get_sale_store] = lambda: store
    application.dependency_overrides[get_supabase_client] = lambda: fake_supabase
    return application


@pytest.fixture
def client(app) -> TestClient:
    return TestClient(app)


def _sale_body(*items):
    return {"customer": CUSTOMER, "items": list(items)}


def _line(product, quantity: int) -> dict:
    return {"productId": str(product.product_id), "quantity": quantity}


# ----------------------------------------------------------------------------
# POST /api/v1/sales
# ----------------------------------------------------------------------------

def test_create_sale_returns_201(client, store, catalog) -> None:
    response = client.post(
        "/api/v1/sales",
        json=_sale_body(_line(catalog.latte, 2), _line(catalog.croissant, 1)),
    )

    assert response.status_code == 201
    body = response.json()
    assert body["success"] is True
    assert body["message"] == "Sale created successfully"
    assert body["data"]["total"] == "12.25"
    UUID(body["data"]["saleId"])
    UUID(body["data"]["customerId"])

    assert store.get_product(catalog.latte.product_id).stock == 8
    assert store.list_customers()[0].email == "juan.perez@example.com"


def test_insufficient_stock_returns_400(client, store, catalog) -> None:
    response = client.post("/api/v1/sales", json=_sale_body(_line(catalog.croissant, 6)))

    assert response.status_code == 400
    error = response.json()["error"]
    assert response.json()["success"] is False
    assert error["code"] == "INSUFFICIENT_STOCK"
    assert error["message"] == "Insufficient stock for product: Croissant (available: 5, requested: 6)"
    assert error["details"]["available"] == 5
    assert store.list_sales() == []


def test_inactive_and_unknown_products_return_400(client, catalog) -> None:
    inactive = client.post("/api/v1/sales", json=_sale_body(_line(catalog.retired, 1)))
    unknown = client.post(
        "/api/v1/sales",
        json=_sale_body({"productId": "00000000-0000-0000-0000-00000000dead", "quantity": 1}),
    )

    assert inactive.status_code == 400
    assert inactive.json()["error"]["code"] == "PRODUCT_INACTIVE"
    assert unknown.status_code == 400
    assert unknown.json()["error"]["code"] == "PRODUCT_NOT_FOUND"


@pytest.mark.parametrize(
    "body,field",
    [
        ({"customer": CUSTOMER, "items": []}, "items"),
        ({"customer": {**CUSTOMER, "email": "not-an-email"}, "items": []}, "customer.email"),
        ({"customer": {**CUSTOMER, "firstName": "J"}, "items": []}, "customer.firstName"),
        (
            {"customer": CUSTOMER, "items": [{"productId": "x", "quantity": 1}]},
            "items.0.productId",
        ),
        (
            {
                "customer": CUSTOMER,
                "items": [{"productId": "00000000-0000-0000-0000-000000000001", "quantity": 101}],
            },
            "items.0.quantity",
        ),
    ],
)
def test_malformed_sale_returns_422(client, store, body, field) -> None:
    response = client.post("/api/v1/sales", json=body)

    assert response.status_code == 422
    error = response.json()["error"]
    assert error["code"] == "VALIDATION_ERROR"
    assert field in [detail["field"] for detail in error["details"]]
    assert store.list_customers() == []


def test_stock_conflict_returns_409(client, catalog, monkeypatch) -> None:
    def lose_the_race(self, product_id, quantity):
        raise StockConflictError("lost")

    monkeypatch.setattr(InMemorySaleTransaction, "decrement_stock", lose_the_race)

    response = client.post("/api/v1/sales", json=_sale_body(_line(catalog.latte, 1)))

    assert response.status_code == 409
    assert response.json()["error"]["code"] == "STOCK_CONFLICT"


def test_store_failure_returns_generic_500(client, catalog, monkeypatch) -> None:
    def broken(self, *args, **kwargs):
        raise StoreError("password authentication failed for user postgres")

    monkeypatch.setattr(InMemorySaleTransaction, "insert_sale", broken)

    response = client.post("/api/v1/sales", json=_sale_body(_line(catalog.latte, 1)))

    assert response.status_code == 500
    error = response.json()["error"]
    assert error["code"] == "PROCESSING_FAILED"
    assert error["message"] == "Failed to process sale"
    assert "password" not in response.text


# ----------------------------------------------------------------------------
# Reads
# ----------------------------------------------------------------------------

def test_list_products_returns_camel_case_page(client, fake_supabase) -> None:
    fake_supabase.respond(
        "products",
        data=[
            {
                "id": "00000000-0000-0000-0000-000000000010",
                "name": "Latte",
                "description": None,
                "price": 4.5,
                "stock": 10,
                "image_url": "https://cdn.example.com/latte.png",
                "is_active": True,
                "created_at": "2026-01-19T10:00:00Z",
                "updated_at": "2026-01-19T10:00:00Z",
            }
        ],
        count=11,
    )

    response = client.get("/api/v1/products", params={"limit": 10, "sortBy": "price", "inStock": "true"})

    assert response.status_code == 200
    body = response.json()
    assert body["meta"] == {"page": 1, "limit": 10, "total": 11, "totalPages": 2}
    product = body["data"][0]
    assert product["price"] == "4.50"
    assert product["imageUrl"] == "https://cdn.example.com/latte.png"
    assert product["isActive"] is True


def test_list_products_rejects_inverted_price_range(client) -> None:
    response = client.get("/api/v1/products", params={"minPrice": 5, "maxPrice": 2})

    assert response.status_code == 400
    assert response.json()["error"]["code"] == "BAD_REQUEST"


def test_get_product_not_found(client) -> None:
    response = client.get("/api/v1/products/00000000-0000-0000-0000-000000000099")

    assert response.status_code == 404
    assert response.json() == {
        "success": False,
        "error": {"code": "NOT_FOUND", "message": "Product not found"},
    }


def test_get_sale_detail(client, fake_supabase) -> None:
    fake_supabase.respond(
        "sales",
        data=[
            {
                "id": SALE_ID,
                "customer_id": CUSTOMER_ID,
                "total": "9.00",
                "created_at": "2026-01-19T10:00:00Z",
                "customers": {"first_name": "Juan", "last_name": "Perez", "email": "juan@example.com"},
            }
        ],
    )
    fake_supabase.respond(
        "sale_items",
        data=[
            {
                "id": "00000000-0000-0000-0000-000000000101",
                "sale_id": SALE_ID,
                "product_id": "00000000-0000-0000-0000-000000000010",
                "quantity": 2,
                "unit_price": "4.50",
                "subtotal": "9.00",
                "created_at": "2026-01-19T10:00:00Z",
                "products": {"name": "Latte"},
            }
        ],
    )

    response = client.get(f"/api/v1/sales/{SALE_ID}")

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["total"] == "9.00"
    assert data["customer"]["firstName"] == "Juan"
    assert data["items"][0]["productName"] == "Latte"
    assert data["items"][0]["unitPrice"] == "4.50"


def test_get_sale_not_found(client) -> None:
    response = client.get(f"/api/v1/sales/{SALE_ID}")

    assert response.status_code == 404
    assert response.json()["error"]["message"] == "Sale not found"


def test_list_sales_passes_window_to_query(client, fake_supabase) -> None:
    response = client.get(
        "/api/v1/sales",
        params={"from": "2026-01-01T00:00:00Z", "to": "2026-01-31T23:59:59+00:00"},
    )

    assert response.status_code == 200
    assert response.json()["data"] == []
    query = fake_supabase.queries[0]
    assert query.called("gte")[0][1] == ("created_at", "2026-01-01T00:00:00+00:00")
    assert query.called("lte")[0][1] == ("created_at", "2026-01-31T23:59:59+00:00")


def test_get_customer_with_purchases(client, fake_supabase) -> None:
    fake_supabase.respond(
        "customers",
        data=[
            {
                "id": CUSTOMER_ID,
                "first_name": "Juan",
                "last_name": "Perez",
                "email": "juan@example.com",
                "created_at": "2026-01-19T10:00:00Z",
                "updated_at": "2026-01-19T10:00:00Z",
            }
        ],
    )
    fake_supabase.respond(
        "sales",
        data=[
            {
                "id": SALE_ID,
                "customer_id": CUSTOMER_ID,
                "total": "9.00",
                "created_at": "2026-01-19T10:00:00Z",
                "customers": {"first_name": "Juan", "last_name": "Perez", "email": "juan@example.com"},
                "sale_items": [{"count": 1}],
            }
        ],
        count=1,
    )
    fake_supabase.respond("sales", data=[{"total": "9.00"}, {"total": "3.25"}])

    response = client.get(f"/api/v1/customers/{CUSTOMER_ID}")

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["customer"]["email"] == "juan@example.com"
    assert data["purchases"][0]["itemsCount"] == 1
    assert data["stats"] == {"totalPurchases": 2, "totalSpent": "12.25"}


def test_list_customers_with_search(client, fake_supabase) -> None:
    fake_supabase.respond(
        "customers",
        data=[
            {
                "id": CUSTOMER_ID,
                "first_name": "Juan",
                "last_name": "Perez",
                "email": "juan@example.com",
            }
        ],
        count=1,
    )

    response = client.get("/api/v1/customers", params={"search": "juan", "sortBy": "lastName"})

    assert response.status_code == 200
    body = response.json()
    assert body["data"][0]["lastName"] == "Perez"
    assert body["meta"]["totalPages"] == 1
    assert fake_supabase.queries[0].called("order") == [("order", ("last_name",), {"desc": True})]


def test_get_customer_not_found(client) -> None:
    response = client.get(f"/api/v1/customers/{CUSTOMER_ID}")
    assert response.status_code == 404


# ----------------------------------------------------------------------------
# Envelope
# ----------------------------------------------------------------------------

def test_unknown_route_uses_envelope(client) -> None:
    response = client.get("/api/v1/nope")

    assert response.status_code == 404
    assert response.json()["error"]["message"] == "Route GET /api/v1/nope not found"


def test_unexpected_error_hides_details_outside_development(app, fake_supabase) -> None:
    def broken_client():
        raise RuntimeError("supabase key leaked in message")

    app.dependency_overrides[get_supabase_client] = broken_client
    client = TestClient(app, raise_server_exceptions=False)

    response = client.get("/api/v1/products")

    assert response.status_code == 500
    assert response.json()["error"] == {
        "code": "INTERNAL_ERROR",
        "message": "An unexpected error occurred",
    }


def test_health_and_root(client) -> None:
    health = client.get("/health").json()
    root = client.get("/").json()

    assert health["status"] == "healthy"
    assert health["service"] == "coffee-shop-sales-api"
    assert root["docs"] == "/docs"
