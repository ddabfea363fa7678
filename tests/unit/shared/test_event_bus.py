import pytest
from django.db import transaction

from modules.orders.events import OrderCreated, OrderStatusChanged
from modules.orders.models import Order
from shared.infrastructure.bus import InMemoryEventBus

pytestmark = pytest.mark.unit


class RecordingHandler:
    def __init__(self):
        self.events = []

    def handle(self, event):
        self.events.append(event)


class FailingHandler:
    def handle(self, event):
        raise RuntimeError("smtp down")


class TestDomainEvents:
    def test_event_name_is_class_name(self):
        event = OrderCreated(aggregate_id=1, user_id=2)
        assert event.event_name == "OrderCreated"
        assert event.event_id is not None
        assert event.occurred_on is not None

    def test_aggregate_collects_and_clears(self):
        order = Order()
        order.add_domain_event(OrderCreated(aggregate_id=1))

        assert len(order.domain_events) == 1
        order.clear_domain_events()
        assert order.domain_events == []


class TestInMemoryEventBus:
    def test_dispatches_by_event_type(self):
        bus = InMemoryEventBus()
        created = RecordingHandler()
        changed = RecordingHandler()
        bus.subscribe(OrderCreated, created)
        bus.subscribe(OrderStatusChanged, changed)

        bus.publish(OrderCreated(aggregate_id=1))

        assert len(created.events) == 1
        assert changed.events == []

    def test_subscribe_is_idempotent(self):
        bus = InMemoryEventBus()
        handler = RecordingHandler()
        bus.subscribe(OrderCreated, handler)
        bus.subscribe(OrderCreated, handler)

        bus.publish(OrderCreated(aggregate_id=1))

        assert len(handler.events) == 1

    def test_failing_handler_does_not_stop_others(self):
        bus = InMemoryEventBus()
        recorder = RecordingHandler()
        bus.subscribe(OrderCreated, FailingHandler())
        bus.subscribe(OrderCreated, recorder)

        bus.publish(OrderCreated(aggregate_id=1))

        assert len(recorder.events) == 1

    def test_publish_without_handlers(self):
        InMemoryEventBus().publish(OrderCreated(aggregate_id=1))

    def test_publish_on_commit_defers_until_commit(
        self, django_capture_on_commit_callbacks
    ):
        bus = InMemoryEventBus()
        recorder = RecordingHandler()
        bus.subscribe(OrderCreated, recorder)
        order = Order()
        order.add_domain_event(OrderCreated(aggregate_id=5))

        with django_capture_on_commit_callbacks(execute=True):
            with transaction.atomic():
                bus.publish_on_commit(order)
                assert recorder.events == []

        assert [e.aggregate_id for e in recorder.events] == [5]
        assert order.domain_events == []

    def test_publish_on_commit_discarded_on_rollback(
        self, django_capture_on_commit_callbacks
    ):
        bus = InMemoryEventBus()
        recorder = RecordingHandler()
        bus.subscribe(OrderCreated, recorder)
        order = Order()
        order.add_domain_event(OrderCreated(aggregate_id=5))

        with django_capture_on_commit_callbacks(execute=True) as callbacks:
            with pytest.raises(RuntimeError):
                with transaction.atomic():
                    bus.publish_on_commit(order)
                    raise RuntimeError("rollback")

        assert callbacks == []
        assert recorder.events == []
