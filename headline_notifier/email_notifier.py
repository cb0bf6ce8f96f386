"""E-mail notification delivery over SMTP."""

import logging
import smtplib
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText

from .config import SmtpConfig
from .models import Notification
from .notifications import DeliveryBackend

logger = logging.getLogger(__name__)

SMTP_TIMEOUT_SECONDS = 30


class EmailBackend(DeliveryBackend):
    """Delivers notifications as plain-text e-mail."""

    def __init__(self, config: SmtpConfig):
        self.config = config

    def deliver(self, notification: Notification) -> None:
        """
        Send the notification by e-mail.

        Port 465 uses implicit TLS; any other port uses STARTTLS.

        Raises:
            smtplib.SMTPException: If the SMTP exchange fails.
        """
        if not notification.body or not notification.body.strip():
            logger.info("Notification body is empty; not sending email.")
            return

        msg = MIMEMultipart()
        msg["From"] = self.config.username
        msg["To"] = self.config.to_email
        msg["Subject"] = notification.title
        msg.attach(MIMEText(notification.body, "plain"))

        logger.debug(f"Connecting to SMTP server: {self.config.host}:{self.config.port}")
        try:
            if self.config.port == 465:
                server = smtplib.SMTP_SSL(self.config.host, self.config.port, timeout=SMTP_TIMEOUT_SECONDS)
            else:
                server = smtplib.SMTP(self.config.host, self.config.port, timeout=SMTP_TIMEOUT_SECONDS)
                server.starttls()

            server.login(self.config.username, self.config.password)
            server.send_message(msg)
            server.quit()
            logger.info(f"Email sent successfully to {self.config.to_email}")
        except smtplib.SMTPAuthenticationError as e:
            logger.error(
                f"SMTP authentication failed for {self.config.username}. "
                f"For Gmail use an App Password. Error details: {e}"
            )
            raise
        except (smtplib.SMTPException, ConnectionError, TimeoutError) as e:
            logger.error(f"Failed to send email: {e}")
            raise
