"""Product catalog row read by the order engine.

Business rules implemented:
- SKU must be unique in the system (stored upper-cased).
- Price must be greater than zero (DB check constraint).
- Stock quantity cannot be negative (unsigned column + DB check).

Catalog CRUD lives outside this service: the order engine only reads
price/stock and performs the conditional stock decrement.
"""

from __future__ import annotations

from decimal import Decimal

import structlog

from django.core.exceptions import ValidationError
from django.core.validators import MinValueValidator
from django.db import models

from modules.core.models import BaseModel

logger = structlog.get_logger(__name__)


class Product(BaseModel):
    """Catalog product with authoritative price and live stock.

    ``sku`` is normalised to uppercase on save to prevent visual duplicates
    (e.g. "sku-01" vs "SKU-01").
    """

    sku = models.CharField(max_length=64, unique=True)
    name = models.CharField(max_length=255)
    description = models.TextField(blank=True, default="")
    price = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        validators=[MinValueValidator(Decimal("0.01"))],
    )
    stock_quantity = models.PositiveIntegerField(default=0)

    class Meta:
        db_table = "products"
        ordering = ["name"]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(price__gt=0),
                name="products_price_positive",
            ),
        ]

    # ------------------------------------------------------------------
    # Validation
    # ------------------------------------------------------------------

    def clean(self) -> None:
        super().clean()
        if self.sku:
            self.sku = self.sku.strip().upper()
        if self.price is not None and self.price <= 0:
            raise ValidationError({"price": "Price must be greater than zero."})

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def save(self, *args, **kwargs) -> None:
        is_new = self._state.adding
        if self.sku:
            self.sku = self.sku.strip().upper()
        super().save(*args, **kwargs)
        if is_new:
            logger.info(
                "product_created",
                product_id=self.id,
                sku=self.sku,
                name=self.name,
            )

    def __str__(self) -> str:
        return f"{self.sku} - {self.name}"
