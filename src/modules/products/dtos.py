"""Product DTOs for the Service Layer.

``ProductAvailability`` is an ephemeral snapshot produced per request
while pricing an order.  It is never persisted nor cached.
"""

from __future__ import annotations

from decimal import Decimal

from pydantic import BaseModel, ConfigDict


class ProductAvailability(BaseModel):
    """Immutable price/stock snapshot of one product for one request."""

    model_config = ConfigDict(frozen=True)

    product_id: int
    name: str
    stock_quantity: int
    current_price: Decimal
    requested_quantity: int
    is_available: bool
