"""Twilio SMS notification delivery."""

import logging

from twilio.rest import Client

from .config import TwilioConfig
from .models import Notification
from .notifications import DeliveryBackend

logger = logging.getLogger(__name__)


def format_sms(notification: Notification) -> str:
    """Render a notification as a single SMS body."""
    return f"{notification.title}: {notification.body}"


class SmsBackend(DeliveryBackend):
    """Delivers notifications as SMS via Twilio."""

    def __init__(self, config: TwilioConfig):
        self.config = config
        self.client = Client(config.account_sid, config.auth_token)

    def deliver(self, notification: Notification) -> None:
        """
        Send the notification as an SMS.

        Raises:
            Exception: If SMS sending fails.
        """
        if not notification.body or not notification.body.strip():
            logger.info("Notification body is empty; not sending SMS.")
            return

        message = format_sms(notification)

        try:
            message_obj = self.client.messages.create(
                body=message,
                from_=self.config.from_number,
                to=self.config.to_number,
            )
            logger.info(f"SMS sent successfully. SID: {message_obj.sid}")
            logger.debug(f"Message preview: {message[:50]}...")
        except Exception as e:
            error_str = str(e)
            if "20003" in error_str or "Authenticate" in error_str or "401" in error_str:
                logger.error(
                    "Twilio authentication failed (Error 20003). "
                    "Check TWILIO_ACCOUNT_SID and TWILIO_AUTH_TOKEN. "
                    f"Current Account SID (first 10 chars): {self.config.account_sid[:10]}..."
                )
            else:
                logger.error(f"Failed to send SMS: {e}")
            raise
