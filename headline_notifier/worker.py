"""The periodic news fetch job."""

import logging

from .models import FetchFailed, JobResult
from .news_client import NewsApiClient
from .notifier import HeadlineNotifier
from .scheduler import Worker

logger = logging.getLogger(__name__)

WORK_NAME = "NewsFetchWork"


class NewsFetchWorker(Worker):
    """Fetches the top headline and shows it as a notification."""

    def __init__(
        self,
        client: NewsApiClient,
        notifier: HeadlineNotifier,
        retry_on_fetch_failure: bool = False,
    ):
        """
        Args:
            client: News API client.
            notifier: Headline notifier.
            retry_on_fetch_failure: If True, a failed fetch reports RETRY
                without notifying. If False, the fallback headline is shown
                and the job reports SUCCESS.
        """
        self.client = client
        self.notifier = notifier
        self.retry_on_fetch_failure = retry_on_fetch_failure

    def do_work(self) -> JobResult:
        try:
            result = self.client.fetch_headline()

            if isinstance(result, FetchFailed) and self.retry_on_fetch_failure:
                logger.info(f"Fetch failed, asking for retry: {result.reason}")
                return JobResult.RETRY

            headline = result.display_text()
            if headline:
                self.notifier.show_headline(headline)
            return JobResult.SUCCESS
        except Exception as e:
            logger.error(f"News fetch job failed: {e}", exc_info=True)
            return JobResult.RETRY
