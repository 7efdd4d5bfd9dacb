import logging
import time
from typing import Callable, Optional

from reviewcrawl.domain.fetched_page import FetchedPage
from reviewcrawl.exceptions import HttpFetchError

logger = logging.getLogger(__name__)


class RetryingFetcher:
    """Wraps a fetcher with linear-backoff retries.

    Up to `max_attempts` attempts are made. The wait before attempt n (n >= 2)
    is `base_delay * (n - 1)`. The last HttpFetchError is re-raised once all
    attempts are used up. Only HttpFetchError is retried; anything else is a
    bug and propagates immediately.
    """

    def __init__(self, fetcher, max_attempts: int = 3, base_delay: float = 1.0, sleep: Callable[[float], None] = time.sleep):
        if max_attempts < 1:
            raise ValueError("max_attempts must be >= 1")
        if base_delay < 0:
            raise ValueError("base_delay must be >= 0")
        self.fetcher = fetcher
        self.max_attempts = int(max_attempts)
        self.base_delay = float(base_delay)
        self._sleep = sleep

    def fetch(self, url: str) -> FetchedPage:
        last_error: Optional[HttpFetchError] = None
        for attempt in range(1, self.max_attempts + 1):
            try:
                return self.fetcher.fetch(url)
            except HttpFetchError as e:
                last_error = e
                if attempt >= self.max_attempts:
                    break
                wait = self.base_delay * attempt
                logger.warning(
                    "Attempt #%s failed for %s: %s. Retrying in %.2fs...",
                    attempt, url, e, wait,
                )
                self._sleep(wait)
        logger.error("Failed to fetch %s after %s attempts", url, self.max_attempts)
        raise last_error
