"""Order emails rendered from Django templates.

Each function sends synchronously through the configured email backend
and lets backend errors propagate; the Celery tasks decide what a
failure means.
"""

from __future__ import annotations

from smtplib import SMTPException
from typing import TYPE_CHECKING, Any, Dict, List, Tuple

import structlog
from django.conf import settings
from django.contrib.auth import get_user_model
from django.core.mail import send_mail
from django.template.loader import render_to_string

from modules.orders.constants import OrderStatus

if TYPE_CHECKING:
    from modules.orders.models import Order

logger = structlog.get_logger(__name__)


def _customer_name(order: Order) -> str:
    user = order.user
    return user.get_full_name() or user.get_username()


def _order_context(order: Order) -> Dict[str, Any]:
    return {
        "order": order,
        "items": list(order.items.all()),
        "customer_name": _customer_name(order),
        "currency": settings.CURRENCY_CODE,
    }


def _send(template: str, subject: str, context: Dict[str, Any], to: str) -> None:
    body = render_to_string(f"notifications/{template}", context)
    send_mail(
        subject,
        body,
        settings.DEFAULT_FROM_EMAIL,
        [to],
        fail_silently=False,
    )


def send_order_confirmation(order: Order) -> None:
    _send(
        "order_confirmation.txt",
        f"Order #{order.id} confirmed",
        _order_context(order),
        order.user.email,
    )


def send_status_update(order: Order, old_status: str, new_status: str) -> None:
    context = _order_context(order)
    context.update(
        old_status=OrderStatus(old_status).label if old_status else "",
        new_status=OrderStatus(new_status).label,
        tracking_url=(
            settings.ORDER_TRACKING_URL.format(order_id=order.id)
            if new_status == OrderStatus.SHIPPED
            else ""
        ),
    )
    _send(
        "order_status_update.txt",
        f"Order #{order.id} is now {context['new_status']}",
        context,
        order.user.email,
    )


def admin_recipients() -> List[str]:
    """Emails of active superusers, deduplicated case-insensitively."""
    emails = (
        get_user_model()
        .objects.filter(is_superuser=True, is_active=True)
        .exclude(email="")
        .order_by("id")
        .values_list("email", flat=True)
    )
    seen: Dict[str, str] = {}
    for email in emails:
        seen.setdefault(email.strip().lower(), email.strip())
    return list(seen.values())


def send_admin_notification(order: Order) -> Tuple[int, int]:
    """Notify every admin; returns ``(sent, failed)``.

    A failure for one recipient does not stop delivery to the others.
    """
    context = _order_context(order)
    context.update(
        customer_email=order.user.email,
        admin_dashboard_url=settings.ADMIN_DASHBOARD_URL,
    )
    sent = failed = 0
    for recipient in admin_recipients():
        try:
            _send(
                "admin_order_notification.txt",
                f"New order #{order.id} received",
                context,
                recipient,
            )
        except (SMTPException, OSError):
            failed += 1
            logger.exception(
                "notification.admin_email_failed",
                order_id=order.id,
                recipient=recipient,
            )
        else:
            sent += 1
    return sent, failed
