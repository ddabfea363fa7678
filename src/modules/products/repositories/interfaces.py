"""Product repository interface.

The order engine only reads catalog rows and decrements stock, so the
contract stays narrow.
"""

from __future__ import annotations

from abc import abstractmethod
from typing import TYPE_CHECKING, Optional

from modules.core.repositories.interfaces import IRepository

if TYPE_CHECKING:
    from modules.products.dtos import ProductAvailability
    from modules.products.models import Product


class IProductRepository(IRepository["Product"]):
    """Repository contract for the Product catalog."""

    @abstractmethod
    def check_availability(
        self, id: int, quantity: int
    ) -> Optional[ProductAvailability]:
        """Snapshot price and stock of a product for ``quantity`` units.

        Returns ``None`` when the product does not exist.  Never mutates.
        """

    @abstractmethod
    def decrement_stock(self, id: int, quantity: int) -> bool:
        """Atomically remove ``quantity`` units if enough stock remains.

        Returns ``False`` (and changes nothing) when the stock is short.
        """
