"""Data models for headlines, notifications and job results."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Optional, Tuple, Union

NO_NEWS_HEADLINE = "No news available"
FETCH_FAILED_HEADLINE = "Failed to fetch news"
SMALL_ICON = "ic_notification"


@dataclass(frozen=True)
class Article:
    """A single article from a top-headlines response."""
    title: str
    description: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Any) -> "Article":
        """Decode one JSON article object."""
        if not isinstance(data, dict):
            raise ValueError(f"Article must be a JSON object, got {type(data).__name__}")
        title = data.get("title") or ""
        description = data.get("description")
        return cls(
            title=str(title),
            description=str(description) if description is not None else None,
        )


@dataclass(frozen=True)
class NewsResponse:
    """Decoded top-headlines response; lives only for one fetch."""
    articles: Tuple[Article, ...] = ()

    @classmethod
    def from_json(cls, payload: Any) -> "NewsResponse":
        """
        Decode the JSON body of a top-headlines response.

        Args:
            payload: Parsed JSON value.

        Returns:
            A NewsResponse; a missing ``articles`` key yields no articles.

        Raises:
            ValueError: If the payload does not have the expected shape.
        """
        if not isinstance(payload, dict):
            raise ValueError(f"Response must be a JSON object, got {type(payload).__name__}")
        articles = payload.get("articles")
        if articles is None:
            return cls()
        if not isinstance(articles, list):
            raise ValueError("'articles' must be a JSON array")
        return cls(articles=tuple(Article.from_dict(a) for a in articles))


@dataclass(frozen=True)
class Ok:
    """A fetch that produced a headline."""
    headline: str

    def display_text(self) -> str:
        return self.headline


@dataclass(frozen=True)
class FetchFailed:
    """A fetch that failed with a network or decode error."""
    reason: str

    def display_text(self) -> str:
        return FETCH_FAILED_HEADLINE


HeadlineResult = Union[Ok, FetchFailed]


class JobResult(Enum):
    """Outcome of one periodic job invocation, as reported to the scheduler."""
    SUCCESS = "success"
    RETRY = "retry"


class Importance(Enum):
    """Notification channel importance."""
    LOW = 2
    DEFAULT = 3
    HIGH = 4


class Priority(Enum):
    """Notification priority."""
    LOW = -1
    DEFAULT = 0
    HIGH = 1


@dataclass(frozen=True)
class NotificationChannel:
    """Grouping for notifications that controls importance."""
    id: str
    name: str
    importance: Importance = Importance.DEFAULT


@dataclass
class Notification:
    """A notification posted under a fixed id; a new post replaces the old one."""
    id: int
    channel_id: str
    title: str
    body: str
    priority: Priority = Priority.DEFAULT
    small_icon: str = SMALL_ICON
    auto_cancel: bool = False
    on_tap: Optional[Callable[[], None]] = field(default=None, compare=False, repr=False)
