"""
Domain: Customers.

A customer is identified by email. The first purchase under an email creates
the record; later purchases under the same email overwrite the name fields
with whatever the latest request carried. Customers are never deleted by the
sale flow.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional
from uuid import UUID

from email_validator import EmailNotValidError, validate_email

from .time import require_utc_timestamp

NAME_MIN_LENGTH = 2
NAME_MAX_LENGTH = 50


def normalize_email(email: str) -> str:
    """Emails are compared case-insensitively; store them lower-cased."""
    return email.strip().lower()


@dataclass(frozen=True, slots=True)
class CustomerDetails:
    """
    Customer descriptor supplied with a purchase.

    Fields are normalized on construction (names stripped, email checked with
    email-validator and lower-cased), so two requests for "Ann@X.com" and "ann@x.com " resolve to
    the same customer.
    """

    first_name: str
    last_name: str
    email: str

    def __post_init__(self) -> None:
        first_name = self.first_name.strip()
        last_name = self.last_name.strip()
        email = normalize_email(self.email)

        for field_name, value in (("first_name", first_name), ("last_name", last_name)):
            if not NAME_MIN_LENGTH <= len(value) <= NAME_MAX_LENGTH:
                raise ValueError(
                    f"{field_name} must be between {NAME_MIN_LENGTH} and "
                    f"{NAME_MAX_LENGTH} characters"
                )
        try:
            email = normalize_email(validate_email(email, check_deliverability=False).normalized)
        except EmailNotValidError as exc:
            raise ValueError(f"email must be a valid email address: {exc}") from exc

        object.__setattr__(self, "first_name", first_name)
        object.__setattr__(self, "last_name", last_name)
        object.__setattr__(self, "email", email)


@dataclass(frozen=True, slots=True)
class Customer:
    """Persisted customer record."""

    customer_id: UUID
    first_name: str
    last_name: str
    email: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def __post_init__(self) -> None:
        if self.created_at is not None:
            require_utc_timestamp("created_at", self.created_at)
        if self.updated_at is not None:
            require_utc_timestamp("updated_at", self.updated_at)

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"


__all__ = ["Customer", "CustomerDetails", "normalize_email"]
