from datetime import date, datetime
from enum import Enum
from typing import List, NamedTuple, Optional, Union

from reviewcrawl.exceptions import InvalidStatusTransition
from reviewcrawl.utils.datetime_utils import utc_now


class CrawlStatus(str, Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"

    @classmethod
    def coerce(cls, value: Union["CrawlStatus", str]) -> "CrawlStatus":
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            raise ValueError(f"Unknown crawl status: {value!r}") from None


class Review:
    """A harvested review record. Identity is the source URL."""

    def __init__(
        self,
        url: str,
        topic: Optional[str] = None,
        title: Optional[str] = None,
        authors: Optional[str] = None,
        publication_date: Optional[date] = None,
        content: Optional[str] = None,
        crawl_status: Union[CrawlStatus, str] = CrawlStatus.PENDING,
        last_updated: Optional[datetime] = None,
        review_id: Optional[int] = None,
    ):
        if not url:
            raise ValueError("url is required")
        self.review_id = review_id
        self.url = url
        self.topic = topic
        self.title = title
        self.authors = authors
        self.publication_date = publication_date
        self.content = content
        self._crawl_status = CrawlStatus.coerce(crawl_status)
        self.last_updated = last_updated or utc_now()

    @property
    def crawl_status(self) -> CrawlStatus:
        return self._crawl_status

    def transition_to(self, status: Union[CrawlStatus, str]) -> None:
        target = CrawlStatus.coerce(status)
        # Once a review has been crawled it never goes back to pending.
        if target is CrawlStatus.PENDING and self._crawl_status is not CrawlStatus.PENDING:
            raise InvalidStatusTransition(self._crawl_status.value, target.value)
        self._crawl_status = target
        self.last_updated = utc_now()

    def mark_completed(self) -> None:
        self.transition_to(CrawlStatus.COMPLETED)

    def mark_failed(self) -> None:
        self.transition_to(CrawlStatus.FAILED)

    def to_dict(self) -> dict:
        return {
            "review_id": self.review_id,
            "url": self.url,
            "topic": self.topic,
            "title": self.title,
            "authors": self.authors,
            "publication_date": self.publication_date.isoformat() if self.publication_date else None,
            "content": self.content,
            "crawl_status": self._crawl_status.value,
            "last_updated": self.last_updated.isoformat() if self.last_updated else None,
        }

    def __repr__(self):
        return f"<Review id={self.review_id} url={self.url} status={self._crawl_status.value}>"


class ReviewFields(NamedTuple):
    """Fields extracted from a review detail page."""
    title: str
    authors: Optional[str] = None
    content: str = ""
    publication_date: Optional[date] = None


class TopicLink(NamedTuple):
    name: str
    url: str


class ReviewPage(NamedTuple):
    """One page of a paginated review query."""
    items: List[Review]
    total: int
    page: int
    size: int

    @property
    def total_pages(self) -> int:
        if self.size <= 0:
            return 0
        return (self.total + self.size - 1) // self.size
