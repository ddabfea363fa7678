"""Customer profile repository interface."""

from __future__ import annotations

from abc import abstractmethod
from typing import TYPE_CHECKING, Optional

from modules.core.repositories.interfaces import IRepository

if TYPE_CHECKING:
    from modules.customers.models import CustomerProfile


class ICustomerProfileRepository(IRepository["CustomerProfile"]):
    """Repository contract for customer profiles."""

    @abstractmethod
    def get_by_user_id(self, user_id: int) -> Optional[CustomerProfile]:
        """Retrieve the profile of a user, or ``None`` if it has none."""
