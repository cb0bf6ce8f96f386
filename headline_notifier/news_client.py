"""News API client for the latest top headline."""

import logging
from typing import Optional

import requests

from .config import DEFAULT_BASE_URL, NewsApiConfig
from .models import (
    NO_NEWS_HEADLINE,
    FetchFailed,
    HeadlineResult,
    NewsResponse,
    Ok,
)

logger = logging.getLogger(__name__)


class FetchError(Exception):
    """Network, HTTP status or decode failure while fetching headlines."""


class NewsApiClient:
    """Client for the ``top-headlines`` endpoint.

    The client owns its HTTP session. Construct one per application and
    close it (or use it as a context manager) when done.
    """

    def __init__(
        self,
        api_key: str,
        country: str = "us",
        base_url: str = DEFAULT_BASE_URL,
        session: Optional[requests.Session] = None,
        timeout: Optional[float] = None,
    ):
        """
        Initialize the client.

        Args:
            api_key: Static API key sent as the ``apiKey`` query parameter.
            country: Default two-letter country code.
            base_url: API root, without the endpoint path.
            session: HTTP session to use; a new one is created if omitted.
            timeout: Request timeout in seconds, or None for the library default.
        """
        self.api_key = api_key
        self.country = country
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._owns_session = session is None
        self.session = session if session is not None else requests.Session()

    @classmethod
    def from_config(cls, config: NewsApiConfig, session: Optional[requests.Session] = None) -> "NewsApiClient":
        return cls(
            api_key=config.api_key,
            country=config.country,
            base_url=config.base_url,
            session=session,
            timeout=config.timeout,
        )

    def get_top_headlines(
        self,
        country: Optional[str] = None,
        api_key: Optional[str] = None,
    ) -> NewsResponse:
        """
        Fetch top headlines with a single GET request.

        Args:
            country: Country code; defaults to the client's country.
            api_key: API key; defaults to the client's key.

        Returns:
            The decoded response.

        Raises:
            FetchError: If the request fails, returns a non-2xx status,
                or the body cannot be decoded.
        """
        url = f"{self.base_url}/top-headlines"
        params = {
            "country": country or self.country,
            "apiKey": api_key or self.api_key,
        }

        try:
            response = self.session.get(url, params=params, timeout=self.timeout)
            response.raise_for_status()
        except requests.RequestException as e:
            raise FetchError(f"Request to {url} failed: {_redact(str(e), params['apiKey'])}") from e

        try:
            news = NewsResponse.from_json(response.json())
        except ValueError as e:
            raise FetchError(f"Could not decode response from {url}: {e}") from e

        logger.debug(f"Fetched {len(news.articles)} articles for country={params['country']}")
        return news

    def fetch_headline(self) -> HeadlineResult:
        """
        Fetch headlines and reduce them to a single display headline.

        Returns:
            Ok with the first article's title (or the no-news fallback when
            the list is empty), or FetchFailed with the failure reason.
        """
        try:
            news = self.get_top_headlines()
        except FetchError as e:
            logger.warning(f"Fetching headlines failed: {e}")
            return FetchFailed(reason=str(e))

        if not news.articles:
            logger.info("No articles in response")
            return Ok(headline=NO_NEWS_HEADLINE)
        return Ok(headline=news.articles[0].title)

    def close(self) -> None:
        if self._owns_session:
            self.session.close()

    def __enter__(self) -> "NewsApiClient":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


def _redact(text: str, secret: str) -> str:
    """Strip the API key from error text that may echo the request URL."""
    if not secret:
        return text
    return text.replace(secret, "***")
