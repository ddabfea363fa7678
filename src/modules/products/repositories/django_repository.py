"""Django ORM implementation of the Product repository.

Satisfies ``IProductRepository`` using Django's QuerySet API.
Error handling follows the Null Object pattern: methods return ``None``
instead of raising HTTP-level exceptions; the Service Layer decides
how to translate a missing entity into an API response.  Storage errors
(``DatabaseError``) are not caught here.
"""

from __future__ import annotations

from typing import Optional

import structlog

from django.core.exceptions import ValidationError
from django.db.models import F
from django.utils import timezone

from modules.products.dtos import ProductAvailability
from modules.products.models import Product
from modules.products.repositories.interfaces import IProductRepository

logger = structlog.get_logger(__name__)


class ProductDjangoRepository(IProductRepository):
    """Concrete Product repository backed by Django ORM."""

    def get_by_id(self, id: int) -> Optional[Product]:
        """Retrieve a product by primary key.

        Returns ``None`` for non-existent or invalid IDs.
        """
        try:
            return Product.objects.filter(id=id).first()
        except (ValueError, TypeError, OverflowError, ValidationError):
            return None

    def check_availability(
        self, id: int, quantity: int
    ) -> Optional[ProductAvailability]:
        try:
            row = (
                Product.objects.filter(id=id)
                .values("id", "name", "price", "stock_quantity")
                .first()
            )
        except (ValueError, TypeError, OverflowError, ValidationError):
            return None
        if row is None:
            return None
        return ProductAvailability(
            product_id=row["id"],
            name=row["name"],
            stock_quantity=row["stock_quantity"],
            current_price=row["price"],
            requested_quantity=quantity,
            is_available=row["stock_quantity"] >= quantity,
        )

    def decrement_stock(self, id: int, quantity: int) -> bool:
        """Conditional decrement: ``UPDATE … WHERE id = ? AND stock >= ?``.

        The comparison and the write happen in one statement, so concurrent
        orders can never drive stock below zero.
        """
        updated = Product.objects.filter(id=id, stock_quantity__gte=quantity).update(
            stock_quantity=F("stock_quantity") - quantity,
            updated_at=timezone.now(),
        )
        if updated:
            logger.info("product.stock_decremented", product_id=id, quantity=quantity)
        else:
            logger.warning(
                "product.stock_decrement_rejected", product_id=id, quantity=quantity
            )
        return bool(updated)
