"""Order domain constants.

Defines status choices and valid status transitions for the order
state machine, plus the paging/sorting limits of the list query.
"""

from django.db import models


class OrderStatus(models.TextChoices):
    PLACED = "PLACED", "Placed"
    PROCESSING = "PROCESSING", "Processing"
    SHIPPED = "SHIPPED", "Shipped"
    DELIVERED = "DELIVERED", "Delivered"
    CANCELLED = "CANCELLED", "Cancelled"


VALID_TRANSITIONS: dict[str, set[str]] = {
    OrderStatus.PLACED: {OrderStatus.PROCESSING, OrderStatus.CANCELLED},
    OrderStatus.PROCESSING: {OrderStatus.SHIPPED, OrderStatus.CANCELLED},
    OrderStatus.SHIPPED: {OrderStatus.DELIVERED},
    OrderStatus.DELIVERED: set(),
    OrderStatus.CANCELLED: set(),
}

TERMINAL_STATES: set[str] = {OrderStatus.DELIVERED, OrderStatus.CANCELLED}

INITIAL_VERSION = 1

# List query limits
MAX_PAGE = 10_000_000
MAX_PAGE_SIZE = 100
DEFAULT_PAGE_SIZE = 20
DEFAULT_SORT = "-created_at"
SORT_SAFELIST = ("created_at", "-created_at", "total_amount", "-total_amount")

# Statistics default window (days)
STATISTICS_DEFAULT_DAYS = 30
