"""SMS delivery through the Twilio REST API.

Uses ``httpx`` with basic auth (account SID / auth token).  The client is
disabled, not broken, when credentials are missing: ``send`` raises
``SMSDisabled`` and callers skip the notification.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Dict

import httpx
import structlog
from django.conf import settings

from modules.notifications.exceptions import SMSDeliveryFailed, SMSDisabled

logger = structlog.get_logger(__name__)

# Twilio error codes returned for trial accounts / unverified recipients.
TWILIO_RESTRICTED_CODES = {21608, 21612}


def format_phone_number(phone_number: str, country_code: str = "+254") -> str:
    """Normalise a phone number to international format.

    Keeps digits and ``+``.  A national number with a trunk ``0`` prefix
    (10+ digits) or a bare 9-digit subscriber number gets ``country_code``.
    """
    cleaned = re.sub(r"[^\d+]", "", phone_number)
    if len(cleaned) >= 10 and cleaned.startswith("0"):
        return country_code + cleaned[1:]
    if cleaned and not cleaned.startswith("+") and len(cleaned) == 9:
        return country_code + cleaned
    return cleaned


def order_confirmation_message(
    order_id: int, total_amount: Decimal, currency: str, shop_name: str
) -> str:
    return (
        f"Hi! Your {shop_name} order #{order_id} has been received and will be "
        f"processed soon. Total: {currency} {total_amount}. "
        "Thank you for shopping with us!"
    )


@dataclass(frozen=True)
class SMSResult:
    message_sid: str
    status: str
    to: str
    from_number: str


class TwilioSMSClient:
    def __init__(
        self,
        account_sid: str,
        auth_token: str,
        from_number: str,
        base_url: str = "https://api.twilio.com/2010-04-01",
        timeout: float = 10.0,
        country_code: str = "+254",
    ) -> None:
        self.account_sid = account_sid
        self.auth_token = auth_token
        self.from_number = from_number
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.country_code = country_code

    @classmethod
    def from_settings(cls) -> TwilioSMSClient:
        return cls(
            account_sid=settings.TWILIO_ACCOUNT_SID,
            auth_token=settings.TWILIO_AUTH_TOKEN,
            from_number=settings.TWILIO_FROM_NUMBER,
            base_url=settings.TWILIO_API_BASE_URL,
            timeout=settings.SMS_HTTP_TIMEOUT,
            country_code=settings.SMS_DEFAULT_COUNTRY_CODE,
        )

    @property
    def enabled(self) -> bool:
        return bool(self.account_sid and self.auth_token and self.from_number)

    def send(self, phone_number: str, message: str) -> SMSResult:
        """Send ``message`` to ``phone_number``.

        Raises:
            SMSDisabled: credentials or sender number missing.
            ValueError: empty phone number or message.
            SMSDeliveryFailed: Twilio rejected the message or was unreachable.
        """
        if not self.enabled:
            raise SMSDisabled("SMS service is disabled.")
        if not phone_number:
            raise ValueError("phone number is required")
        if not message:
            raise ValueError("message is required")

        to = format_phone_number(phone_number, self.country_code)
        log = logger.bind(to=to, message_preview=message[:50])
        log.info("sms.sending")

        url = f"{self.base_url}/Accounts/{self.account_sid}/Messages.json"
        try:
            with httpx.Client(
                timeout=self.timeout, auth=(self.account_sid, self.auth_token)
            ) as client:
                response = client.post(
                    url, data={"To": to, "From": self.from_number, "Body": message}
                )
        except httpx.HTTPError as exc:
            log.warning("sms.transport_error", error=str(exc))
            raise SMSDeliveryFailed(f"Could not reach Twilio: {exc}") from exc

        payload = self._json(response)
        if response.status_code >= 400:
            code = payload.get("code")
            if code in TWILIO_RESTRICTED_CODES:
                log.warning("sms.restricted_recipient", twilio_error=code)
                raise SMSDeliveryFailed(
                    "SMS sending restricted: the recipient must be verified "
                    "for trial accounts."
                )
            log.error("sms.rejected", status_code=response.status_code, twilio_error=code)
            raise SMSDeliveryFailed(
                f"Twilio rejected the message (HTTP {response.status_code})."
            )

        result = SMSResult(
            message_sid=payload.get("sid", ""),
            status=payload.get("status", ""),
            to=payload.get("to", to),
            from_number=payload.get("from", self.from_number),
        )
        log.info("sms.sent", message_sid=result.message_sid, status=result.status)
        return result

    @staticmethod
    def _json(response: Any) -> Dict[str, Any]:
        try:
            data = response.json()
        except ValueError:
            return {}
        return data if isinstance(data, dict) else {}
