"""Django ORM implementation of the customer profile repository.

Error handling follows the Null Object pattern: methods return ``None``
instead of raising; the caller decides what a missing profile means.
"""

from __future__ import annotations

from typing import Optional

from django.core.exceptions import ValidationError

from modules.customers.models import CustomerProfile
from modules.customers.repositories.interfaces import ICustomerProfileRepository


class CustomerProfileDjangoRepository(ICustomerProfileRepository):
    """Concrete profile repository backed by Django ORM."""

    def get_by_id(self, id: int) -> Optional[CustomerProfile]:
        try:
            return CustomerProfile.objects.filter(id=id).first()
        except (ValueError, TypeError, OverflowError, ValidationError):
            return None

    def get_by_user_id(self, user_id: int) -> Optional[CustomerProfile]:
        try:
            return (
                CustomerProfile.objects.select_related("user")
                .filter(user_id=user_id)
                .first()
            )
        except (ValueError, TypeError, OverflowError, ValidationError):
            return None
