"""Order repository interface.

Extends ``IRepository[Order]`` with the writes the Order aggregate needs:
creation of the header plus items, and the version-checked status update.

The Service Layer depends exclusively on this contract (DIP).
"""

from __future__ import annotations

from abc import abstractmethod
from typing import TYPE_CHECKING, Tuple

from modules.core.repositories.interfaces import IRepository

if TYPE_CHECKING:
    from datetime import date

    from django.db.models import QuerySet

    from modules.orders.dtos import ListOrdersDTO, OrderDraft
    from modules.orders.models import Order


class IOrderRepository(IRepository["Order"]):
    """Repository contract for the Order aggregate root.

    The Order aggregate includes its OrderItem children.
    """

    @abstractmethod
    def create(self, draft: OrderDraft) -> Order:
        """Insert the order header and each item with its frozen price."""

    @abstractmethod
    def update_status(
        self, id: int, new_status: str, expected_version: int
    ) -> bool:
        """Compare-and-swap the status.

        Applies ``new_status`` and ``version + 1`` only while the stored
        version equals ``expected_version``.  Returns ``False`` when no
        row matched.
        """

    @abstractmethod
    def list_page(self, query: ListOrdersDTO) -> Tuple[list[Order], int]:
        """Return one page of orders and the total number of matches."""

    @abstractmethod
    def in_date_range(self, start: date, end: date) -> QuerySet:
        """Orders created between ``start`` and ``end`` (inclusive dates)."""
