"""Notification surface: channels, visible notifications and delivery."""

import logging
import threading
from abc import ABC, abstractmethod
from typing import Dict, List, Optional

from .models import Notification, NotificationChannel

logger = logging.getLogger(__name__)


class DeliveryBackend(ABC):
    """Abstract base class for notification delivery."""

    @abstractmethod
    def deliver(self, notification: Notification) -> None:
        """
        Deliver a posted notification to the user.

        Args:
            notification: The notification that was just posted.

        Raises:
            Exception: If delivery fails.
        """
        pass


class LogBackend(DeliveryBackend):
    """Delivers notifications to the application log."""

    def deliver(self, notification: Notification) -> None:
        logger.info(f"[{notification.channel_id}#{notification.id}] {notification.title}: {notification.body}")


class NotificationManager:
    """Owns notification channels and the notifications currently visible.

    Posting a notification under an id that is already visible replaces it,
    so at most one notification per id is ever shown.
    """

    def __init__(self, backend: Optional[DeliveryBackend] = None):
        self.backend = backend or LogBackend()
        self._channels: Dict[str, NotificationChannel] = {}
        self._active: Dict[int, Notification] = {}
        self._lock = threading.Lock()

    def create_notification_channel(self, channel: NotificationChannel) -> NotificationChannel:
        """
        Create a channel if it does not exist yet.

        Returns:
            The registered channel; an existing channel with the same id is
            left untouched and returned.
        """
        with self._lock:
            existing = self._channels.get(channel.id)
            if existing is not None:
                return existing
            self._channels[channel.id] = channel
        logger.info(f"Created notification channel '{channel.id}' ({channel.name})")
        return channel

    def get_notification_channel(self, channel_id: str) -> Optional[NotificationChannel]:
        with self._lock:
            return self._channels.get(channel_id)

    def notify(self, notification: Notification) -> None:
        """
        Post a notification, replacing any visible one with the same id.

        Raises:
            ValueError: If the notification's channel has not been created.
        """
        with self._lock:
            if notification.channel_id not in self._channels:
                raise ValueError(f"Unknown notification channel: {notification.channel_id}")

        # Only delivered notifications become visible
        self.backend.deliver(notification)

        with self._lock:
            replaced = notification.id in self._active
            self._active[notification.id] = notification
        if replaced:
            logger.debug(f"Replaced notification {notification.id}")

    def cancel(self, notification_id: int) -> None:
        with self._lock:
            self._active.pop(notification_id, None)

    def tap(self, notification_id: int) -> None:
        """Run a visible notification's tap action, dismissing it if auto-cancel."""
        with self._lock:
            notification = self._active.get(notification_id)
        if notification is None:
            raise KeyError(notification_id)
        if notification.on_tap is not None:
            notification.on_tap()
        if notification.auto_cancel:
            with self._lock:
                if self._active.get(notification_id) is notification:
                    del self._active[notification_id]

    def active_notifications(self) -> List[Notification]:
        with self._lock:
            return [self._active[key] for key in sorted(self._active)]
