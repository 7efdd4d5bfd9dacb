from __future__ import annotations

from dataclasses import asdict, dataclass

DEFAULT_BASE_URL = "https://www.cochranelibrary.com/cdsr/reviews/topics"
DEFAULT_USER_AGENT = "Mozilla/5.0 (compatible; ReviewCrawl/0.1)"


@dataclass(frozen=True)
class CrawlerSettings:
    """Values the crawl engine consumes. Times are in seconds."""

    base_url: str = DEFAULT_BASE_URL
    user_agent: str = DEFAULT_USER_AGENT
    request_timeout: float = 10.0
    follow_redirects: bool = True
    max_retries: int = 3
    retry_delay: float = 1.0
    crawl_delay: float = 0.5
    schedule: str = "0 0 * * *"
    auto_schedule: bool = True
    full_refresh_on_schedule: bool = True

    def __post_init__(self):
        if not self.base_url:
            raise ValueError("base_url is required")
        if self.max_retries < 1:
            raise ValueError("max_retries must be >= 1")
        if self.request_timeout <= 0:
            raise ValueError("request_timeout must be > 0")
        if self.retry_delay < 0 or self.crawl_delay < 0:
            raise ValueError("delays must be >= 0")

    def to_dict(self) -> dict:
        return asdict(self)
