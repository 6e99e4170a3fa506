"""
Check catalog stock status - how many products are in stock, low or sold out.
"""

import argparse
import sys
from pathlib import Path

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from repositories.client import get_supabase


def check_stock_status(low_stock_threshold: int) -> None:
    """Print active product counts and the products running low."""

    supabase = get_supabase()

    total_response = (
        supabase.table("products")
        .select("id", count="exact")
        .eq("is_active", True)
        .execute()
    )
    total_count = getattr(total_response, "count", 0) or 0

    sold_out_response = (
        supabase.table("products")
        .select("id", count="exact")
        .eq("is_active", True)
        .eq("stock", 0)
        .execute()
    )
    sold_out_count = getattr(sold_out_response, "count", 0) or 0

    inactive_response = (
        supabase.table("products")
        .select("id", count="exact")
        .eq("is_active", False)
        .execute()
    )
    inactive_count = getattr(inactive_response, "count", 0) or 0

    print("=" * 50)
    print("STOCK STATUS")
    print("=" * 50)
    print(f"Active products:           {total_count}")
    print(f"Sold out:                  {sold_out_count}")
    print(f"Inactive (soft-deleted):   {inactive_count}")
    print("=" * 50)

    low_response = (
        supabase.table("products")
        .select("name, stock, price")
        .eq("is_active", True)
        .lte("stock", low_stock_threshold)
        .order("stock")
        .limit(100)
        .execute()
    )
    rows = getattr(low_response, "data", []) or []

    print(f"\nProducts with stock <= {low_stock_threshold}:")
    print("-" * 50)
    for row in rows:
        print(f"{row.get('name', 'Unknown'):<30} {row.get('stock', 0):>5} units  @ {row.get('price')}")
    if not rows:
        print("(none)")
    print("-" * 50)


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Show catalog stock levels")
    parser.add_argument("--threshold", type=int, default=5, help="Low stock threshold (default: 5)")
    args = parser.parse_args()
    check_stock_status(args.threshold)
