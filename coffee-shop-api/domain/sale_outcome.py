"""
Domain: outcome of a sale attempt.

A sale attempt ends in exactly one of three shapes:

- SaleConfirmed: committed; carries the sale id, customer id and total.
- SaleRejected: the request was wrong (bad input, unknown/inactive product,
  not enough stock). Nothing was persisted. The caller should fix the
  request rather than retry it.
- SaleFailed: the store failed or lost a race. Nothing was persisted. The
  message is generic; the caller may resubmit the whole request.

Callers branch on the type (or on `reason`) instead of catching exceptions.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Any, Mapping, Union
from uuid import UUID


class SaleState(str, Enum):
    """Progress of a single sale attempt."""

    RECEIVED = "RECEIVED"
    CUSTOMER_RESOLVED = "CUSTOMER_RESOLVED"
    ITEMS_VALIDATED = "ITEMS_VALIDATED"
    PERSISTED = "PERSISTED"
    COMMITTED = "COMMITTED"
    REJECTED = "REJECTED"


class RejectionReason(str, Enum):
    INVALID_INPUT = "INVALID_INPUT"
    PRODUCT_NOT_FOUND = "PRODUCT_NOT_FOUND"
    PRODUCT_INACTIVE = "PRODUCT_INACTIVE"
    INSUFFICIENT_STOCK = "INSUFFICIENT_STOCK"


class FailureReason(str, Enum):
    STOCK_CONFLICT = "STOCK_CONFLICT"
    PROCESSING_FAILED = "PROCESSING_FAILED"


@dataclass(frozen=True, slots=True)
class SaleConfirmed:
    sale_id: UUID
    customer_id: UUID
    total: Decimal

    @property
    def success(self) -> bool:
        return True


@dataclass(frozen=True, slots=True)
class SaleRejected:
    """
    Business or input rejection.

    details: machine-readable context, e.g. {"productId": ..., "available": 2,
    "requested": 5} for INSUFFICIENT_STOCK, or a list of field errors for
    INVALID_INPUT.
    """

    reason: RejectionReason
    message: str
    details: Mapping[str, Any] = field(default_factory=dict)

    @property
    def success(self) -> bool:
        return False


@dataclass(frozen=True, slots=True)
class SaleFailed:
    """Infrastructure failure or concurrency conflict."""

    reason: FailureReason
    message: str
    retryable: bool = False

    @property
    def success(self) -> bool:
        return False


SaleOutcome = Union[SaleConfirmed, SaleRejected, SaleFailed]


__all__ = [
    "FailureReason",
    "RejectionReason",
    "SaleConfirmed",
    "SaleFailed",
    "SaleOutcome",
    "SaleRejected",
    "SaleState",
]
