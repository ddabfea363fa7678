"""Product service layer (Use Cases).

Resolves price and availability of catalog products for the order
engine.  Read-only: stock is only ever changed through the repository's
conditional decrement during order creation.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog

from modules.products.exceptions import ProductNotFound

if TYPE_CHECKING:
    from modules.products.dtos import ProductAvailability
    from modules.products.repositories.interfaces import IProductRepository

logger = structlog.get_logger(__name__)


class ProductService:
    """Application service for Product use-cases.

    Receives an ``IProductRepository`` via constructor injection (DIP).
    """

    def __init__(self, repository: IProductRepository) -> None:
        self._repo = repository

    def resolve_availability(
        self, product_id: int, requested_quantity: int
    ) -> ProductAvailability:
        """Return the current price and whether stock covers the request.

        Raises:
            ValueError: ``requested_quantity`` is not positive.
            ProductNotFound: the product does not exist.
        """
        if requested_quantity <= 0:
            raise ValueError("requested_quantity must be greater than 0.")

        availability = self._repo.check_availability(product_id, requested_quantity)
        if availability is None:
            logger.warning("product.not_found", product_id=product_id)
            raise ProductNotFound(product_id)
        return availability
