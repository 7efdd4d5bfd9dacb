"""Domain objects for ReviewCrawl - explicit re-exports to satisfy linters."""
from .review import Review as Review
from .review import CrawlStatus as CrawlStatus
from .review import ReviewFields as ReviewFields
from .review import ReviewPage as ReviewPage
from .review import TopicLink as TopicLink
from .crawl_result import CrawlResult as CrawlResult
from .fetched_page import FetchedPage as FetchedPage
from .run_statistics import RunStatistics as RunStatistics
from .run_statistics import StatisticsSnapshot as StatisticsSnapshot
from .seen_urls import SeenUrls as SeenUrls
from .settings import CrawlerSettings as CrawlerSettings
from .status import CrawlerStatus as CrawlerStatus

__all__ = [
    "Review",
    "CrawlStatus",
    "ReviewFields",
    "ReviewPage",
    "TopicLink",
    "CrawlResult",
    "FetchedPage",
    "RunStatistics",
    "StatisticsSnapshot",
    "SeenUrls",
    "CrawlerSettings",
    "CrawlerStatus",
]
