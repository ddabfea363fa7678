"""Order domain exceptions.

Raised by the Service Layer when business rules are violated.
The API layer (Views) catches these and translates them into
appropriate HTTP responses.  Every exception derives from
``OrderError`` so callers can handle the whole family at once.
"""

from __future__ import annotations

from typing import Dict


class OrderError(Exception):
    """Base class for order engine failures."""


class OrderValidationFailed(OrderError):
    """Caller input is malformed.

    ``errors`` maps every offending field (e.g. ``items[1].quantity``) to
    a human-readable message.
    """

    def __init__(self, errors: Dict[str, str]) -> None:
        self.errors = dict(errors)
        super().__init__(f"Validation failed: {', '.join(sorted(self.errors))}")


class OrderNotFound(OrderError):
    """The requested order does not exist."""


class InsufficientStock(OrderError):
    """A product cannot satisfy the requested quantity."""

    def __init__(self, product_name: str, requested: int, available: int) -> None:
        self.product_name = product_name
        self.requested = requested
        self.available = available
        super().__init__(f"Insufficient stock for product '{product_name}'.")


class EditConflict(OrderError):
    """The order was modified since the caller last read it (stale version)."""


class InvalidTransition(OrderError):
    """The requested status is not reachable from the current status."""

    def __init__(self, current: str, requested: str) -> None:
        self.current = current
        self.requested = requested
        super().__init__(f"Cannot transition from {current} to {requested}.")


class OrderInternalError(OrderError):
    """Storage failure or timeout; nothing was committed."""
