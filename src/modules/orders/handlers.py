"""Event handlers for Orders domain events.

Handlers only enqueue Celery tasks; the actual email/SMS work runs on a
worker.  Each enqueue is independent: a failure to queue one notification is
logged and does not stop the others.
"""

from __future__ import annotations

from typing import Any

import structlog

from modules.notifications.tasks import (
    send_admin_order_notification,
    send_order_confirmation_email,
    send_order_confirmation_sms,
    send_order_status_update_email,
)
from modules.orders.events import OrderCreated, OrderStatusChanged
from shared.domain.bus import IEventHandler

logger = structlog.get_logger(__name__)


def _enqueue(task: Any, *args: Any) -> None:
    """Queue one notification; a broker failure is logged and skipped."""
    try:
        task.delay(*args)
    except Exception:
        logger.exception(
            "order.notification_enqueue_failed", task=task.name, order_id=args[0]
        )


class OrderCreatedHandler(IEventHandler[OrderCreated]):
    def handle(self, event: OrderCreated) -> None:
        logger.info(
            "order.notifications_enqueued",
            order_id=event.aggregate_id,
            event_name=event.event_name,
        )
        _enqueue(send_order_confirmation_email, event.aggregate_id)
        _enqueue(send_admin_order_notification, event.aggregate_id)
        _enqueue(send_order_confirmation_sms, event.aggregate_id)


class OrderStatusChangedHandler(IEventHandler[OrderStatusChanged]):
    def handle(self, event: OrderStatusChanged) -> None:
        logger.info(
            "order.notifications_enqueued",
            order_id=event.aggregate_id,
            event_name=event.event_name,
            new_status=event.new_status,
        )
        _enqueue(
            send_order_status_update_email,
            event.aggregate_id,
            event.old_status,
            event.new_status,
        )


order_created_handler = OrderCreatedHandler()
order_status_changed_handler = OrderStatusChangedHandler()
