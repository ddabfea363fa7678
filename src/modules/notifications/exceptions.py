"""Notification delivery exceptions.

Raised by the SMS client; tasks log them and report a failed delivery.
They never reach the order engine.
"""

from __future__ import annotations


class SMSDisabled(Exception):
    """Twilio credentials or sender number are not configured."""


class SMSDeliveryFailed(Exception):
    """Twilio refused the message or could not be reached."""
