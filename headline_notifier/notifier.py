"""Headline notification presentation."""

import logging
from typing import Callable, Optional

from .models import SMALL_ICON, Importance, Notification, NotificationChannel, Priority
from .notifications import NotificationManager

logger = logging.getLogger(__name__)

CHANNEL_ID = "news_channel"
CHANNEL_NAME = "News Updates"
NOTIFICATION_ID = 1
NOTIFICATION_TITLE = "Latest News"

NEWS_CHANNEL = NotificationChannel(id=CHANNEL_ID, name=CHANNEL_NAME, importance=Importance.HIGH)


class HeadlineNotifier:
    """Shows the latest headline as a single, replaceable notification."""

    def __init__(
        self,
        manager: NotificationManager,
        open_main_screen: Optional[Callable[[], None]] = None,
    ):
        """
        Args:
            manager: Notification surface to post to.
            open_main_screen: Tap action; opens the application's main screen.
        """
        self.manager = manager
        self.open_main_screen = open_main_screen

    def ensure_channel(self) -> None:
        self.manager.create_notification_channel(NEWS_CHANNEL)

    def show_headline(self, headline: str) -> Notification:
        """
        Post the headline under the reserved notification id.

        Args:
            headline: Notification body.

        Returns:
            The posted notification.
        """
        self.ensure_channel()
        notification = Notification(
            id=NOTIFICATION_ID,
            channel_id=CHANNEL_ID,
            title=NOTIFICATION_TITLE,
            body=headline,
            priority=Priority.HIGH,
            small_icon=SMALL_ICON,
            auto_cancel=True,
            on_tap=self.open_main_screen,
        )
        self.manager.notify(notification)
        logger.info(f"Notified headline: {headline}")
        return notification
