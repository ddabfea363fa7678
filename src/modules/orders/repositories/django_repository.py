"""Django ORM implementation of the Order repository.

Satisfies ``IOrderRepository`` using Django's QuerySet API.  The
repository does not open transactions: the service layer owns the
unit-of-work boundary (``bounded_atomic``).

Status updates use optimistic concurrency: the ``UPDATE`` is filtered
on the expected ``version``, so a stale writer matches zero rows.
"""

from __future__ import annotations

from datetime import date
from typing import Optional, Tuple

import structlog

from django.core.exceptions import ValidationError
from django.db.models import F, QuerySet
from django.utils import timezone

from modules.orders.dtos import ListOrdersDTO, OrderDraft
from modules.orders.filters import OrderFilter
from modules.orders.models import Order, OrderItem
from modules.orders.repositories.interfaces import IOrderRepository

logger = structlog.get_logger(__name__)

# ``created_at``/``total_amount`` ties are broken on id, newest first.
_SORT_ORDERING = {
    "created_at": ["created_at", "id"],
    "-created_at": ["-created_at", "-id"],
    "total_amount": ["total_amount", "id"],
    "-total_amount": ["-total_amount", "-id"],
}


class OrderDjangoRepository(IOrderRepository):
    """Concrete Order repository backed by Django ORM."""

    # ------------------------------------------------------------------
    # Create (aggregate root + children)
    # ------------------------------------------------------------------

    def create(self, draft: OrderDraft) -> Order:
        order = Order.objects.create(
            user_id=draft.user_id,
            status=draft.status,
            total_amount=draft.total_amount,
        )
        OrderItem.objects.bulk_create(
            [
                OrderItem(
                    order=order,
                    product_id=item.product_id,
                    product_name=item.product_name,
                    quantity=item.quantity,
                    unit_price=item.unit_price,
                )
                for item in draft.items
            ]
        )

        log = logger.bind(order_id=order.id, item_count=len(draft.items))
        log.info("order.persisted")
        return order

    # ------------------------------------------------------------------
    # Update
    # ------------------------------------------------------------------

    def update_status(self, id: int, new_status: str, expected_version: int) -> bool:
        updated = Order.objects.filter(id=id, version=expected_version).update(
            status=new_status,
            version=F("version") + 1,
            updated_at=timezone.now(),
        )
        return updated == 1

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    def _with_relations(self) -> QuerySet:
        return Order.objects.select_related("user").prefetch_related("items")

    def get_by_id(self, id: int) -> Optional[Order]:
        """Retrieve an order with eager-loaded user and items.

        Returns ``None`` for non-existent or invalid IDs.
        """
        try:
            return self._with_relations().filter(id=id).first()
        except (ValueError, TypeError, OverflowError, ValidationError):
            return None

    def list_page(self, query: ListOrdersDTO) -> Tuple[list[Order], int]:
        queryset = self._with_relations()
        if query.user_id is not None:
            queryset = queryset.filter(user_id=query.user_id)
        queryset = OrderFilter(
            {"name": query.name, "status": query.status}, queryset=queryset
        ).qs
        total = queryset.count()
        ordered = queryset.order_by(*_SORT_ORDERING[query.sort])
        page = list(ordered[query.offset : query.offset + query.page_size])
        return page, total

    def in_date_range(self, start: date, end: date) -> QuerySet:
        return OrderFilter(
            {"start_date": start, "end_date": end}, queryset=Order.objects.all()
        ).qs
