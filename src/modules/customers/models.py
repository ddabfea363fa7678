"""Customer profile attached to the auth user.

Business rules implemented:
- One profile per user (one-to-one).
- ``phone_number`` keeps only digits and a leading ``+`` (sanitised on save).
- Phone numbers are masked in ``__str__`` and logs.
"""

from __future__ import annotations

import re

import structlog

from django.conf import settings
from django.db import models

from modules.core.models import BaseModel

logger = structlog.get_logger(__name__)


class CustomerProfile(BaseModel):
    """Contact details used by the notification collaborators."""

    user = models.OneToOneField(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="customer_profile",
    )
    phone_number = models.CharField(max_length=20, blank=True, default="")

    class Meta:
        db_table = "customer_profiles"

    @staticmethod
    def _sanitize_phone(value: str) -> str:
        """Strip everything except digits and ``+``."""
        return re.sub(r"[^\d+]", "", value)

    def save(self, *args, **kwargs) -> None:
        if self.phone_number:
            self.phone_number = self._sanitize_phone(self.phone_number)
        super().save(*args, **kwargs)

    def __str__(self) -> str:
        suffix = self.phone_number[-3:] if self.phone_number else "???"
        return f"Profile of user {self.user_id} (phone: ***{suffix})"
