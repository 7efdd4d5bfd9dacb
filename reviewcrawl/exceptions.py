"""Custom exceptions for ReviewCrawl services."""
from typing import Optional


class HttpFetchError(Exception):
    """Raised when an HTTP fetch fails due to network/transport errors or a non-2xx status."""

    def __init__(self, url: str, original: Optional[Exception] = None, status_code: Optional[int] = None):
        self.url = url
        self.original = original
        self.status_code = status_code
        if original is not None:
            reason = str(original)
        else:
            reason = f"HTTP status {status_code}"
        super().__init__(f"HTTP fetch failed for {url}: {reason}")


class FatalRunError(Exception):
    """Raised when a crawl run cannot proceed at all (index unreachable, clear failed)."""


class TopicError(Exception):
    """Raised when a topic listing cannot be fetched or parsed."""

    def __init__(self, topic: str, url: str, original: Exception):
        self.topic = topic
        self.url = url
        self.original = original
        super().__init__(f"Failed to crawl topic {topic} ({url}): {original}")


class ItemFetchError(Exception):
    """Raised when a review detail page cannot be fetched after all retries."""

    def __init__(self, url: str, original: Exception):
        self.url = url
        self.original = original
        super().__init__(f"Error fetching review page {url}: {original}")


class ItemExtractionError(Exception):
    """Raised when a fetched detail page lacks required fields such as the title."""

    def __init__(self, url: str, reason: str):
        self.url = url
        self.reason = reason
        super().__init__(f"Failed to extract review data from {url}: {reason}")


class InvalidStatusTransition(ValueError):
    """Raised when a review is moved to a crawl status it cannot reach."""

    def __init__(self, current: str, target: str):
        self.current = current
        self.target = target
        super().__init__(f"Cannot move review from {current} to {target}")
