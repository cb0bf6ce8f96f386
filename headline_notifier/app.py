"""Application wiring: builds the client, notifier and scheduler from config."""

import logging
from datetime import timedelta
from typing import Optional, TextIO

import requests

from .config import AppConfig
from .email_notifier import EmailBackend
from .main_screen import MainScreen
from .models import JobResult
from .network import AlwaysConnected, NetworkMonitor, SocketNetworkMonitor
from .news_client import NewsApiClient
from .notifications import DeliveryBackend, LogBackend, NotificationManager
from .notifier import HeadlineNotifier
from .scheduler import (
    Clock,
    Constraints,
    ExistingPeriodicWorkPolicy,
    PeriodicWorkRequest,
    WorkInfo,
    WorkScheduler,
)
from .twilio_notifier import SmsBackend
from .worker import WORK_NAME, NewsFetchWorker

logger = logging.getLogger(__name__)


def create_backend(config: AppConfig) -> DeliveryBackend:
    """Create a delivery backend based on configuration."""
    if config.notification_method == "sms":
        if config.twilio is None:
            raise ValueError("NOTIFICATION_METHOD is sms but Twilio is not configured")
        return SmsBackend(config.twilio)
    elif config.notification_method == "email":
        if config.smtp is None:
            raise ValueError("NOTIFICATION_METHOD is email but SMTP is not configured")
        return EmailBackend(config.smtp)
    else:
        return LogBackend()


def create_network_monitor(config: AppConfig) -> NetworkMonitor:
    if not config.scheduler.require_network:
        return AlwaysConnected()
    return SocketNetworkMonitor(
        host=config.scheduler.network_check_host,
        port=config.scheduler.network_check_port,
    )


class NewsApplication:
    """Owns every long-lived component; nothing is held in module globals."""

    def __init__(
        self,
        config: AppConfig,
        session: Optional[requests.Session] = None,
        backend: Optional[DeliveryBackend] = None,
        clock: Optional[Clock] = None,
        network: Optional[NetworkMonitor] = None,
        stream: Optional[TextIO] = None,
    ):
        self.config = config
        self.client = NewsApiClient.from_config(config.news, session=session)
        self.notification_manager = NotificationManager(backend or create_backend(config))
        self.scheduler = WorkScheduler(clock=clock, network=network or create_network_monitor(config))
        self.main_screen = MainScreen(self.notification_manager, self.scheduler, stream=stream)
        self.notifier = HeadlineNotifier(self.notification_manager, open_main_screen=self.main_screen.open)

    def create_worker(self) -> NewsFetchWorker:
        return NewsFetchWorker(
            self.client,
            self.notifier,
            retry_on_fetch_failure=self.config.scheduler.retry_on_fetch_failure,
        )

    def on_create(self) -> WorkInfo:
        """Register the periodic fetch job; a no-op if it is already scheduled."""
        self.notifier.ensure_channel()
        request = PeriodicWorkRequest(
            worker_factory=self.create_worker,
            repeat_interval=timedelta(minutes=self.config.scheduler.interval_minutes),
            constraints=Constraints(requires_network=self.config.scheduler.require_network),
        )
        return self.scheduler.enqueue_unique_periodic_work(
            WORK_NAME, ExistingPeriodicWorkPolicy.KEEP, request
        )

    def run_once(self) -> JobResult:
        """Run the fetch job body once, outside the scheduler."""
        return self.create_worker().do_work()

    def close(self) -> None:
        self.client.close()

    def __enter__(self) -> "NewsApplication":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()
