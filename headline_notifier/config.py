"""Configuration management."""

import os
from dataclasses import dataclass
from typing import Optional

from dotenv import find_dotenv, load_dotenv

DEFAULT_BASE_URL = "https://newsapi.org/v2"
NOTIFICATION_METHODS = ("log", "sms", "email")


def load_env_file() -> None:
    """Load a .env file from the working directory without overriding set variables."""
    load_dotenv(find_dotenv(usecwd=True))


@dataclass
class NewsApiConfig:
    """News API configuration."""
    api_key: str
    country: str = "us"
    base_url: str = DEFAULT_BASE_URL
    timeout: Optional[float] = None  # None keeps the requests default


@dataclass
class SchedulerConfig:
    """Periodic job configuration."""
    interval_minutes: int = 15
    require_network: bool = True
    network_check_host: str = "newsapi.org"
    network_check_port: int = 443
    retry_on_fetch_failure: bool = False


@dataclass
class TwilioConfig:
    """Twilio SMS configuration."""
    account_sid: str
    auth_token: str
    from_number: str
    to_number: str


@dataclass
class SmtpConfig:
    """SMTP configuration for e-mail delivery."""
    host: str
    port: int
    username: str
    password: str
    to_email: str


@dataclass
class AppConfig:
    """Complete application configuration."""
    news: NewsApiConfig
    scheduler: SchedulerConfig
    notification_method: str = "log"
    twilio: Optional[TwilioConfig] = None
    smtp: Optional[SmtpConfig] = None


def _parse_bool_env(key: str, default: bool) -> bool:
    """Parse a true/false flag from an environment variable."""
    value = os.getenv(key)
    if value is None or not value.strip():
        return default
    return value.strip().lower() in ("true", "1", "yes")


def load_config() -> AppConfig:
    """
    Load configuration from environment variables.

    A ``.env`` file in the working directory is read first; variables already
    set in the environment take precedence.

    Raises:
        ValueError: If required configuration values are missing or invalid.
    """
    load_env_file()

    missing = []

    api_key = os.getenv("NEWS_API_KEY", "")
    if not api_key:
        missing.append("NEWS_API_KEY")

    timeout_str = os.getenv("NEWS_API_TIMEOUT", "")
    news = NewsApiConfig(
        api_key=api_key,
        country=os.getenv("NEWS_COUNTRY", "us"),
        base_url=os.getenv("NEWS_API_BASE_URL", DEFAULT_BASE_URL).rstrip("/"),
        timeout=float(timeout_str) if timeout_str else None,
    )

    scheduler = SchedulerConfig(
        interval_minutes=int(os.getenv("FETCH_INTERVAL_MINUTES", "15")),
        require_network=_parse_bool_env("REQUIRE_NETWORK", True),
        network_check_host=os.getenv("NETWORK_CHECK_HOST", "newsapi.org"),
        network_check_port=int(os.getenv("NETWORK_CHECK_PORT", "443")),
        retry_on_fetch_failure=_parse_bool_env("RETRY_ON_FETCH_FAILURE", False),
    )

    method = os.getenv("NOTIFICATION_METHOD", "log").lower()
    if method not in NOTIFICATION_METHODS:
        raise ValueError(
            f"NOTIFICATION_METHOD must be one of {', '.join(NOTIFICATION_METHODS)}, got {method!r}"
        )

    twilio = None
    if method == "sms":
        twilio_vars = {
            "TWILIO_ACCOUNT_SID": os.getenv("TWILIO_ACCOUNT_SID"),
            "TWILIO_AUTH_TOKEN": os.getenv("TWILIO_AUTH_TOKEN"),
            "TWILIO_FROM_NUMBER": os.getenv("TWILIO_FROM_NUMBER"),
            "TWILIO_TO_NUMBER": os.getenv("TWILIO_TO_NUMBER"),
        }
        missing.extend(key for key, value in twilio_vars.items() if not value)
        twilio = TwilioConfig(
            account_sid=twilio_vars["TWILIO_ACCOUNT_SID"] or "",
            auth_token=twilio_vars["TWILIO_AUTH_TOKEN"] or "",
            from_number=twilio_vars["TWILIO_FROM_NUMBER"] or "",
            to_number=twilio_vars["TWILIO_TO_NUMBER"] or "",
        )

    smtp = None
    if method == "email":
        smtp_vars = {
            "SMTP_HOST": os.getenv("SMTP_HOST"),
            "SMTP_USERNAME": os.getenv("SMTP_USERNAME"),
            "SMTP_PASSWORD": os.getenv("SMTP_PASSWORD"),
            "NOTIFICATION_EMAIL": os.getenv("NOTIFICATION_EMAIL"),
        }
        missing.extend(key for key, value in smtp_vars.items() if not value)
        smtp = SmtpConfig(
            host=smtp_vars["SMTP_HOST"] or "",
            port=int(os.getenv("SMTP_PORT", "587")),
            username=smtp_vars["SMTP_USERNAME"] or "",
            # App passwords are often pasted with spaces
            password=(smtp_vars["SMTP_PASSWORD"] or "").replace(" ", ""),
            to_email=smtp_vars["NOTIFICATION_EMAIL"] or "",
        )

    if missing:
        raise ValueError(
            f"Missing required environment variables: {', '.join(missing)}"
        )

    return AppConfig(
        news=news,
        scheduler=scheduler,
        notification_method=method,
        twilio=twilio,
        smtp=smtp,
    )
