"""Celery tasks that deliver order notifications.

Fire-and-forget: every task re-reads the order, logs delivery failures
and returns a small status dict.  Nothing here can touch the order or
report back to the request that created it.
"""

from __future__ import annotations

from smtplib import SMTPException
from typing import Any, Dict, Optional

import structlog
from celery import shared_task
from django.conf import settings

from modules.customers.repositories.django_repository import (
    CustomerProfileDjangoRepository,
)
from modules.notifications import emails
from modules.notifications.exceptions import SMSDeliveryFailed, SMSDisabled
from modules.notifications.sms import TwilioSMSClient, order_confirmation_message
from modules.orders.models import Order
from modules.orders.repositories.django_repository import OrderDjangoRepository

logger = structlog.get_logger(__name__)


def _load_order(order_id: int) -> Optional[Order]:
    order = OrderDjangoRepository().get_by_id(order_id)
    if order is None:
        logger.warning("notification.order_not_found", order_id=order_id)
    return order


def _skipped(reason: str) -> Dict[str, Any]:
    return {"status": "skipped", "reason": reason}


@shared_task(name="notifications.send_order_confirmation_email")
def send_order_confirmation_email(order_id: int) -> Dict[str, Any]:
    order = _load_order(order_id)
    if order is None:
        return _skipped("order_not_found")
    if not order.user.email:
        return _skipped("no_email")

    try:
        emails.send_order_confirmation(order)
    except (SMTPException, OSError):
        logger.exception("notification.confirmation_email_failed", order_id=order_id)
        return {"status": "failed"}

    logger.info("notification.confirmation_email_sent", order_id=order_id)
    return {"status": "sent"}


@shared_task(name="notifications.send_admin_order_notification")
def send_admin_order_notification(order_id: int) -> Dict[str, Any]:
    order = _load_order(order_id)
    if order is None:
        return _skipped("order_not_found")

    sent, failed = emails.send_admin_notification(order)
    if not sent and not failed:
        logger.warning("notification.no_admin_recipients", order_id=order_id)
        return _skipped("no_recipients")

    logger.info(
        "notification.admin_emails_completed",
        order_id=order_id,
        sent=sent,
        failed=failed,
    )
    return {"status": "sent" if sent else "failed", "sent": sent, "failed": failed}


@shared_task(name="notifications.send_order_confirmation_sms")
def send_order_confirmation_sms(order_id: int) -> Dict[str, Any]:
    order = _load_order(order_id)
    if order is None:
        return _skipped("order_not_found")

    profile = CustomerProfileDjangoRepository().get_by_user_id(order.user_id)
    if profile is None or not profile.phone_number:
        return _skipped("no_phone_number")

    client = TwilioSMSClient.from_settings()
    message = order_confirmation_message(
        order.id, order.total_amount, settings.CURRENCY_CODE, settings.SMS_SHOP_NAME
    )
    try:
        result = client.send(profile.phone_number, message)
    except SMSDisabled:
        logger.info("notification.sms_disabled", order_id=order_id)
        return _skipped("sms_disabled")
    except SMSDeliveryFailed as exc:
        logger.warning("notification.sms_failed", order_id=order_id, error=str(exc))
        return {"status": "failed"}

    return {"status": "sent", "message_sid": result.message_sid}


@shared_task(name="notifications.send_order_status_update_email")
def send_order_status_update_email(
    order_id: int, old_status: str, new_status: str
) -> Dict[str, Any]:
    order = _load_order(order_id)
    if order is None:
        return _skipped("order_not_found")
    if not order.user.email:
        return _skipped("no_email")

    try:
        emails.send_status_update(order, old_status, new_status)
    except (SMTPException, OSError):
        logger.exception("notification.status_email_failed", order_id=order_id)
        return {"status": "failed"}

    logger.info(
        "notification.status_email_sent", order_id=order_id, new_status=new_status
    )
    return {"status": "sent"}
