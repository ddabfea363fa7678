"""Domain events for the Orders bounded context."""

from __future__ import annotations

from dataclasses import dataclass

from shared.domain.events import DomainEvent


@dataclass(frozen=True)
class OrderCreated(DomainEvent):
    """Raised after an order and its items are committed."""

    user_id: int = 0


@dataclass(frozen=True)
class OrderStatusChanged(DomainEvent):
    """Raised after an order status change is committed."""

    old_status: str = ""
    new_status: str = ""
    version: int = 0
