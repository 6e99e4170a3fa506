"""
Sale processor: turns a purchase request into a committed sale.

Handles:
- Input shaping before any database work (item count, quantity bounds, ids)
- Customer upsert by email
- Stock validation against locked product rows
- Line pricing from the catalog price at sale time
- Stock decrement, sale and line item persistence
- All-or-nothing commit through SaleStore.run_in_transaction

The processor never raises for expected outcomes. It returns a SaleOutcome:
SaleConfirmed, SaleRejected (input or business rule) or SaleFailed (store
failure or lost race). It performs no retries.
"""

from __future__ import annotations

import logging
from collections import OrderedDict
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple
from uuid import UUID, uuid4

from domain.customer import CustomerDetails
from domain.money import ZERO, line_subtotal, to_money
from domain.product import Product
from domain.sale import MAX_ITEMS_PER_SALE, SaleLineRequest
from domain.sale_outcome import (
    FailureReason,
    RejectionReason,
    SaleConfirmed,
    SaleFailed,
    SaleOutcome,
    SaleRejected,
    SaleState,
)
from repositories.sale_store import SaleStore, SaleTransaction, StockConflictError, StoreError

logger = logging.getLogger(__name__)

PROCESSING_FAILED_MESSAGE = "Failed to process sale"
STOCK_CONFLICT_MESSAGE = (
    "Stock changed while the sale was being processed. Please submit the sale again."
)


@dataclass(frozen=True, slots=True)
class SaleRequest:
    """A validated purchase request."""

    customer: CustomerDetails
    items: Tuple[SaleLineRequest, ...]


class InvalidSaleRequest(ValueError):
    """
    Raised by `parse_sale_request` when the request shape is wrong.

    errors: list of {"field": ..., "message": ...}
    """

    def __init__(self, errors: List[Dict[str, str]]) -> None:
        super().__init__("; ".join(f"{e['field']}: {e['message']}" for e in errors))
        self.errors = errors


class _BusinessRejection(Exception):
    """Aborts the open transaction and carries the rejection out of it."""

    def __init__(self, rejection: SaleRejected) -> None:
        super().__init__(rejection.message)
        self.rejection = rejection


def parse_sale_request(
    customer: Mapping[str, Any],
    items: Sequence[Mapping[str, Any]],
) -> SaleRequest:
    """
    Validate raw request data and build a SaleRequest.

    Args:
        customer: {"first_name", "last_name", "email"}
        items: [{"product_id", "quantity"}, ...] in the order they were requested

    Raises:
        InvalidSaleRequest: with every field error found
    """

    errors: List[Dict[str, str]] = []

    details: Optional[CustomerDetails] = None
    if not isinstance(customer, Mapping):
        errors.append({"field": "customer", "message": "Customer must be an object"})
    else:
        try:
            details = CustomerDetails(
                first_name=str(customer.get("first_name") or ""),
                last_name=str(customer.get("last_name") or ""),
                email=str(customer.get("email") or ""),
            )
        except (TypeError, ValueError) as exc:
            errors.append({"field": "customer", "message": str(exc)})

    if items is not None and (
        isinstance(items, (str, bytes, Mapping)) or not isinstance(items, Sequence)
    ):
        errors.append({"field": "items", "message": "Items must be a list"})
        items = ()
    elif not items:
        errors.append({"field": "items", "message": "At least one item is required"})
    elif len(items) > MAX_ITEMS_PER_SALE:
        errors.append(
            {"field": "items", "message": f"Cannot exceed {MAX_ITEMS_PER_SALE} items per sale"}
        )

    lines: List[SaleLineRequest] = []
    for index, item in enumerate(items or ()):
        if not isinstance(item, Mapping):
            errors.append({"field": f"items.{index}", "message": "Item must be an object"})
            continue
        try:
            product_id = UUID(str(item.get("product_id")))
        except ValueError:
            errors.append({"field": f"items.{index}.product_id", "message": "Invalid product ID"})
            continue
        try:
            lines.append(SaleLineRequest(product_id=product_id, quantity=item.get("quantity")))
        except (TypeError, ValueError) as exc:
            errors.append({"field": f"items.{index}.quantity", "message": str(exc)})

    if errors or details is None:
        raise InvalidSaleRequest(errors)

    return SaleRequest(customer=details, items=tuple(lines))


def _requested_quantities(items: Sequence[SaleLineRequest]) -> "OrderedDict[UUID, int]":
    """Total quantity per product, keyed in first-appearance order."""

    totals: "OrderedDict[UUID, int]" = OrderedDict()
    for line in items:
        totals[line.product_id] = totals.get(line.product_id, 0) + line.quantity
    return totals


def _lock_products(
    tx: SaleTransaction, product_ids: Sequence[UUID]
) -> Dict[UUID, Optional[Product]]:
    """
    Lock every requested product row.

    Rows are locked in ascending id order so that two sales touching the same
    products always acquire locks in the same order and cannot deadlock.
    """

    return {
        product_id: tx.get_product_for_update(product_id)
        for product_id in sorted(product_ids, key=str)
    }


def _validate_items(
    requested: "OrderedDict[UUID, int]",
    products: Mapping[UUID, Optional[Product]],
) -> Dict[UUID, Product]:
    """
    Check existence, active flag and stock; raise on the first failing product.

    Returns the validated products keyed by id.
    """

    validated: Dict[UUID, Product] = {}
    for product_id, quantity in requested.items():
        product = products.get(product_id)
        if product is None:
            raise _BusinessRejection(
                SaleRejected(
                    reason=RejectionReason.PRODUCT_NOT_FOUND,
                    message=f"Product not found: {product_id}",
                    details={"productId": str(product_id)},
                )
            )
        if not product.is_active:
            raise _BusinessRejection(
                SaleRejected(
                    reason=RejectionReason.PRODUCT_INACTIVE,
                    message=f"Product is not active: {product.name}",
                    details={"productId": str(product_id), "productName": product.name},
                )
            )
        if not product.can_fulfil(quantity):
            raise _BusinessRejection(
                SaleRejected(
                    reason=RejectionReason.INSUFFICIENT_STOCK,
                    message=(
                        f"Insufficient stock for product: {product.name} "
                        f"(available: {product.stock}, requested: {quantity})"
                    ),
                    details={
                        "productId": str(product_id),
                        "productName": product.name,
                        "available": product.stock,
                        "requested": quantity,
                    },
                )
            )
        validated[product_id] = product
    return validated


def _run_sale(tx: SaleTransaction, request: SaleRequest, attempt: str) -> SaleConfirmed:
    """Every step of the sale. Runs inside one transaction."""

    customer = tx.upsert_customer(request.customer)
    logger.debug(
        "sale %s: %s (customer %s)", attempt, SaleState.CUSTOMER_RESOLVED.value, customer.customer_id
    )

    requested = _requested_quantities(request.items)
    products = _validate_items(requested, _lock_products(tx, list(requested)))
    logger.debug("sale %s: %s (%d lines)", attempt, SaleState.ITEMS_VALIDATED.value, len(request.items))

    sale_id = tx.insert_sale(customer.customer_id, ZERO)

    total = ZERO
    for line in request.items:
        unit_price: Decimal = products[line.product_id].price
        subtotal = line_subtotal(unit_price, line.quantity)
        tx.insert_sale_item(sale_id, line.product_id, line.quantity, unit_price, subtotal)
        total += subtotal
        tx.decrement_stock(line.product_id, line.quantity)

    total = to_money(total)
    tx.finalize_sale_total(sale_id, total)
    logger.debug("sale %s: %s (sale %s, total %s)", attempt, SaleState.PERSISTED.value, sale_id, total)

    return SaleConfirmed(sale_id=sale_id, customer_id=customer.customer_id, total=total)


def process_sale(
    store: SaleStore,
    customer: Mapping[str, Any],
    items: Sequence[Mapping[str, Any]],
) -> SaleOutcome:
    """
    Process a sale atomically.

    Process:
    1. Validate the request shape (no store access on failure)
    2. Upsert the customer by email
    3. Lock and validate every product (exists, active, enough stock)
    4. Insert the sale, then each line item in input order, decrementing stock
    5. Write the final total and commit

    Any failure after step 1 rolls back everything, including the customer
    upsert.

    Args:
        store: SaleStore the sale is written to
        customer: {"first_name", "last_name", "email"}
        items: [{"product_id", "quantity"}, ...]

    Returns:
        SaleConfirmed, SaleRejected or SaleFailed

    Example:
        outcome = process_sale(
            store,
            {"first_name": "Ann", "last_name": "Lee", "email": "ann@example.com"},
            [{"product_id": latte.product_id, "quantity": 2}],
        )
        if isinstance(outcome, SaleConfirmed):
            print(f"Sale {outcome.sale_id} total {outcome.total}")
    """

    attempt = uuid4().hex[:8]
    logger.debug("sale %s: %s", attempt, SaleState.RECEIVED.value)

    try:
        request = parse_sale_request(customer, items)
    except InvalidSaleRequest as exc:
        logger.info("sale %s: %s (invalid input: %s)", attempt, SaleState.REJECTED.value, exc)
        return SaleRejected(
            reason=RejectionReason.INVALID_INPUT,
            message="Invalid sale request",
            details={"errors": exc.errors},
        )

    try:
        confirmed = store.run_in_transaction(lambda tx: _run_sale(tx, request, attempt))
    except _BusinessRejection as exc:
        logger.info(
            "sale %s: %s (%s: %s)",
            attempt,
            SaleState.REJECTED.value,
            exc.rejection.reason.value,
            exc.rejection.message,
        )
        return exc.rejection
    except StockConflictError as exc:
        logger.warning("sale %s: %s (stock conflict: %s)", attempt, SaleState.REJECTED.value, exc)
        return SaleFailed(
            reason=FailureReason.STOCK_CONFLICT,
            message=STOCK_CONFLICT_MESSAGE,
            retryable=True,
        )
    except StoreError:
        logger.exception("sale %s: %s (store failure)", attempt, SaleState.REJECTED.value)
        return SaleFailed(reason=FailureReason.PROCESSING_FAILED, message=PROCESSING_FAILED_MESSAGE)
    except Exception:
        logger.exception("sale %s: %s (unexpected error)", attempt, SaleState.REJECTED.value)
        return SaleFailed(reason=FailureReason.PROCESSING_FAILED, message=PROCESSING_FAILED_MESSAGE)

    logger.info(
        "sale %s: %s (sale %s, customer %s, total %s)",
        attempt,
        SaleState.COMMITTED.value,
        confirmed.sale_id,
        confirmed.customer_id,
        confirmed.total,
    )
    return confirmed


__all__ = [
    "InvalidSaleRequest",
    "SaleRequest",
    "parse_sale_request",
    "process_sale",
]
