#!/usr/bin/env python3
"""
Catalog maintenance: create, edit, restock or deactivate a product.

Restocks run through the same locked transaction as sales, so they are safe
to run while the API is taking orders. Creating and editing go through
Supabase and never touch stock after the opening count.
"""

from __future__ import annotations

import argparse
import sys
from decimal import Decimal
from pathlib import Path
from uuid import UUID

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from domain.product import Product
from repositories.database import get_engine
from repositories.postgres_sale_store import PostgresSaleStore
from repositories.product_repository import create_product, deactivate_product, update_product
from repositories.sale_store import StoreError
from repositories.settings import get_settings
from services.catalog_service import ProductNotFoundError, restock_product


def _print_product(product: Product) -> None:
    status = "active" if product.is_active else "inactive"
    print(f"{product.product_id}  {product.name}  ${product.price}  stock={product.stock}  ({status})")


def _create(args: argparse.Namespace) -> int:
    product = create_product(
        args.name,
        args.price,
        args.stock,
        description=args.description,
        image_url=args.image_url,
    )
    print("Created:")
    _print_product(product)
    return 0


def _update(args: argparse.Namespace) -> int:
    is_active = None
    if args.activate:
        is_active = True
    elif args.deactivate:
        is_active = False

    product = update_product(
        args.product_id,
        name=args.name,
        price=args.price,
        description=args.description,
        image_url=args.image_url,
        is_active=is_active,
    )
    if product is None:
        print(f"No product with id {args.product_id}")
        return 1
    print("Updated:")
    _print_product(product)
    return 0


def _restock(args: argparse.Namespace) -> int:
    store = PostgresSaleStore(get_engine(), lock_timeout_ms=get_settings().db_lock_timeout_ms)
    try:
        product = restock_product(store, args.product_id, args.quantity)
    except ProductNotFoundError as e:
        print(f"ERROR: {e}")
        return 1
    except StoreError as e:
        print(f"ERROR: restock failed: {e}")
        return 1

    print(f"{product.name}: stock is now {product.stock}")
    return 0


def _deactivate(args: argparse.Namespace) -> int:
    if deactivate_product(args.product_id):
        print(f"Product {args.product_id} deactivated")
        return 0
    print(f"No active product with id {args.product_id}")
    return 1


def main() -> int:
    parser = argparse.ArgumentParser(
        description="Create, edit, restock or deactivate a product",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Add a product with 40 units of opening stock
  python manage_product.py create "Flat White" 4.25 --stock 40

  # Change the price (past sales keep the price they were sold at)
  python manage_product.py update 123e4567-e89b-12d3-a456-426614174000 --price 4.75

  # Bring a soft-deleted product back
  python manage_product.py update 123e4567-e89b-12d3-a456-426614174000 --activate

  # Add 24 units
  python manage_product.py restock 123e4567-e89b-12d3-a456-426614174000 24

  # Soft-delete a product (it stays referenced by past sales)
  python manage_product.py deactivate 123e4567-e89b-12d3-a456-426614174000
        """
    )
    commands = parser.add_subparsers(dest="command", required=True)

    create = commands.add_parser("create", help="Add a product")
    create.add_argument("name", help="Product name (2-100 characters)")
    create.add_argument("price", type=Decimal, help="Unit price, e.g. 4.50")
    create.add_argument("--stock", "-s", type=int, default=0, help="Opening stock (default: 0)")
    create.add_argument("--description", "-d", help="Description (up to 500 characters)")
    create.add_argument("--image-url", help="Public image URL")
    create.set_defaults(handler=_create)

    update = commands.add_parser("update", help="Edit name, price, description, image or active flag")
    update.add_argument("product_id", type=UUID, help="Product ID")
    update.add_argument("--name", help="New name")
    update.add_argument("--price", type=Decimal, help="New unit price")
    update.add_argument("--description", "-d", help="New description")
    update.add_argument("--image-url", help="New image URL")
    active = update.add_mutually_exclusive_group()
    active.add_argument("--activate", action="store_true", help="Mark the product active")
    active.add_argument("--deactivate", action="store_true", help="Mark the product inactive")
    update.set_defaults(handler=_update)

    restock = commands.add_parser("restock", help="Add units to stock")
    restock.add_argument("product_id", type=UUID, help="Product ID")
    restock.add_argument("quantity", type=int, help="Units to add (1-10,000)")
    restock.set_defaults(handler=_restock)

    deactivate = commands.add_parser("deactivate", help="Soft-delete a product")
    deactivate.add_argument("product_id", type=UUID, help="Product ID")
    deactivate.set_defaults(handler=_deactivate)

    args = parser.parse_args()

    try:
        return args.handler(args)
    except (ValueError, RuntimeError) as e:
        print(f"ERROR: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
