#!/usr/bin/env python3
"""
End-to-end check of the sale flow against the configured database.

Demonstrates:
1. Catalog lookup
2. Sale processing (customer upsert, stock check, decrement)
3. Reading the sale back with its items
4. A rejected sale leaving stock untouched
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path
from uuid import UUID

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from domain.sale_outcome import SaleConfirmed
from repositories.database import get_engine
from repositories.postgres_sale_store import PostgresSaleStore
from repositories.product_repository import get_product_by_id
from repositories.sale_repository import get_sale_with_items
from repositories.settings import get_settings
from services.sale_processor import process_sale


def print_section(title: str) -> None:
    """Print a section header."""
    print()
    print("=" * 80)
    print(title)
    print("=" * 80)


def run(product_id: UUID, quantity: int, email: str) -> int:
    store = PostgresSaleStore(get_engine(), lock_timeout_ms=get_settings().db_lock_timeout_ms)

    print_section("1. Catalog lookup")
    product = get_product_by_id(product_id)
    if product is None:
        print(f"   ERROR: product {product_id} not found or inactive")
        return 1
    print(f"   {product.name}: price {product.price}, stock {product.stock}")

    print_section("2. Processing sale")
    outcome = process_sale(
        store,
        {"first_name": "Juan", "last_name": "Perez", "email": email},
        [{"product_id": product_id, "quantity": quantity}],
    )
    print(f"   Outcome: {outcome}")
    if not isinstance(outcome, SaleConfirmed):
        return 1

    print_section("3. Reading the sale back")
    detail = get_sale_with_items(outcome.sale_id)
    if detail is None:
        print("   ERROR: committed sale not found")
        return 1
    print(f"   Customer: {detail.customer.full_name} <{detail.customer.email}>")
    print(f"   Total: {detail.sale.total}")
    for item in detail.sale.items:
        print(f"     {item.quantity} x {item.product_name} @ {item.unit_price} = {item.subtotal}")

    after = get_product_by_id(product_id)
    print(f"   Stock after sale: {after.stock if after else 'n/a'}")

    print_section("4. Oversized sale is rejected")
    stock_before = after.stock if after else 0
    if stock_before >= 100:
        print("   Skipped: stock exceeds the per-item quantity limit")
        return 0
    rejected = process_sale(
        store,
        {"first_name": "Juan", "last_name": "Perez", "email": email},
        [{"product_id": product_id, "quantity": stock_before + 1}],
    )
    print(f"   Outcome: {rejected}")
    final = get_product_by_id(product_id)
    print(f"   Stock unchanged: {final is not None and final.stock == stock_before}")
    return 0


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Run a sale against the configured database")
    parser.add_argument("product_id", type=UUID, help="Active product to sell")
    parser.add_argument("--quantity", "-q", type=int, default=2)
    parser.add_argument("--email", default="juan.perez@example.com")
    args = parser.parse_args()
    sys.exit(run(args.product_id, args.quantity, args.email))
