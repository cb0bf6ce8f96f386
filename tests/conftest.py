"""Shared test fixtures."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from unittest.mock import MagicMock

import pytest
import requests

from headline_notifier.config import AppConfig, NewsApiConfig, SchedulerConfig
from headline_notifier.network import NetworkMonitor
from headline_notifier.notifications import DeliveryBackend
from headline_notifier.scheduler import Clock


class FakeClock(Clock):
    def __init__(self, start: datetime | None = None):
        self.current = start or datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)

    def now(self) -> datetime:
        return self.current

    def advance(self, **kwargs) -> None:
        self.current += timedelta(**kwargs)


class FakeNetwork(NetworkMonitor):
    def __init__(self, connected: bool = True):
        self.connected = connected

    def is_connected(self) -> bool:
        return self.connected


def make_response(payload=None, status_error: Exception | None = None, json_error: Exception | None = None):
    response = MagicMock()
    if status_error is not None:
        response.raise_for_status.side_effect = status_error
    if json_error is not None:
        response.json.side_effect = json_error
    else:
        response.json.return_value = payload
    return response


@pytest.fixture
def test_config():
    """Config with test values - no real API keys."""
    return AppConfig(
        news=NewsApiConfig(api_key="test-news-key", country="us"),
        scheduler=SchedulerConfig(interval_minutes=15, require_network=True),
    )


@pytest.fixture
def mock_session():
    session = MagicMock(spec=requests.Session)
    session.get.return_value = make_response({"articles": []})
    return session


@pytest.fixture
def mock_backend():
    return MagicMock(spec=DeliveryBackend)


@pytest.fixture
def fake_clock():
    return FakeClock()


@pytest.fixture
def fake_network():
    return FakeNetwork()
