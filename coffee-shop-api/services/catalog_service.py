"""
Catalog service: stock changes that do not come from sales.

Restocks touch the same counter that sales decrement, so they go through the
same SaleStore transaction and row lock instead of a read-modify-write over
PostgREST.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from uuid import UUID

from domain.product import Product
from repositories.sale_store import SaleStore, SaleTransaction

logger = logging.getLogger(__name__)

MAX_RESTOCK_QUANTITY = 10_000


class ProductNotFoundError(LookupError):
    """The product does not exist."""


def restock_product(store: SaleStore, product_id: UUID, quantity: int) -> Product:
    """
    Add `quantity` units to a product's stock.

    Args:
        store: SaleStore holding the product
        product_id: product to restock
        quantity: units to add (1..10,000)

    Returns:
        Product snapshot with the new stock

    Raises:
        ValueError: if quantity is out of range
        ProductNotFoundError: if the product does not exist
        StoreError: if the store fails
    """

    if isinstance(quantity, bool) or not isinstance(quantity, int):
        raise ValueError("quantity must be an integer")
    if not 1 <= quantity <= MAX_RESTOCK_QUANTITY:
        raise ValueError(f"quantity must be between 1 and {MAX_RESTOCK_QUANTITY}")

    def _restock(tx: SaleTransaction) -> Product:
        product = tx.get_product_for_update(product_id)
        if product is None:
            raise ProductNotFoundError(f"Product not found: {product_id}")
        new_stock = tx.increment_stock(product_id, quantity)
        return replace(product, stock=new_stock)

    product = store.run_in_transaction(_restock)
    logger.info("Restocked product %s by %d (stock now %d)", product_id, quantity, product.stock)
    return product


__all__ = ["MAX_RESTOCK_QUANTITY", "ProductNotFoundError", "restock_product"]
