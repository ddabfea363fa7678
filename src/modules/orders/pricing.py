"""Order pricing.

Turns a validated ``CreateOrderDTO`` into a priced ``OrderDraft`` using
authoritative catalog prices.  Totals are accumulated with ``Decimal``
and never rounded mid-way.
"""

from __future__ import annotations

from decimal import Decimal
from typing import TYPE_CHECKING, Dict, List, Tuple

import structlog

from modules.orders.constants import OrderStatus
from modules.orders.dtos import OrderDraft, OrderDraftItem
from modules.orders.exceptions import InsufficientStock

if TYPE_CHECKING:
    from modules.orders.dtos import CreateOrderDTO
    from modules.products.dtos import ProductAvailability
    from modules.products.services import ProductService

logger = structlog.get_logger(__name__)


class OrderPricingService:
    """Prices every requested line against live price and stock."""

    def __init__(self, product_service: ProductService) -> None:
        self._product_service = product_service

    def price(
        self, dto: CreateOrderDTO
    ) -> Tuple[OrderDraft, Dict[int, ProductAvailability]]:
        """Resolve each item and accumulate the order total.

        The first unavailable product aborts the whole attempt; no partial
        draft is ever returned.  The availability map is keyed by product
        id so the writer can reuse the snapshots.

        Raises:
            ProductNotFound: an item references an unknown product.
            InsufficientStock: an item asks for more than is in stock.
        """
        total = Decimal("0")
        items: List[OrderDraftItem] = []
        availability: Dict[int, ProductAvailability] = {}
        # Quantity already claimed by earlier lines of the same product.
        claimed: Dict[int, int] = {}

        for item in dto.items:
            snapshot = self._product_service.resolve_availability(
                item.product_id, item.quantity
            )
            already = claimed.get(item.product_id, 0)
            remaining = max(snapshot.stock_quantity - already, 0)
            if not snapshot.is_available or item.quantity > remaining:
                logger.warning(
                    "order.pricing_insufficient_stock",
                    product_id=item.product_id,
                    requested=item.quantity,
                    available=remaining,
                )
                raise InsufficientStock(snapshot.name, item.quantity, remaining)

            claimed[item.product_id] = already + item.quantity
            availability[item.product_id] = snapshot
            draft_item = OrderDraftItem(
                product_id=item.product_id,
                product_name=snapshot.name,
                quantity=item.quantity,
                unit_price=snapshot.current_price,
            )
            items.append(draft_item)
            total += draft_item.subtotal

        draft = OrderDraft(
            user_id=dto.user_id,
            status=OrderStatus.PLACED,
            total_amount=total,
            items=items,
        )
        return draft, availability
