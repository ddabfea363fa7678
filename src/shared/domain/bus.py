"""Domain bus interfaces for in-process event handling."""

from __future__ import annotations

from typing import Generic, Protocol, Type, TypeVar

from shared.domain.events import DomainEvent, DomainEventMixin

E = TypeVar("E", bound=DomainEvent, contravariant=True)


class IEventHandler(Protocol, Generic[E]):
    """Handler interface for domain events."""

    def handle(self, event: E) -> None: ...


class IEventBus(Protocol):
    """Event bus interface.

    ``publish`` delivers an event right away; ``publish_on_commit`` defers
    every pending event of an aggregate until the surrounding database
    transaction commits.
    """

    def publish(self, event: DomainEvent) -> None: ...

    def publish_on_commit(self, aggregate: DomainEventMixin) -> None: ...

    def subscribe(self, event_class: Type[E], handler: IEventHandler[E]) -> None: ...
