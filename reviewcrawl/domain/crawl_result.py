"""Crawl result data model."""
from typing import NamedTuple, Optional


class CrawlResult(NamedTuple):
    """Result of a crawl run.

    Lets callers log outcomes and distinguish completion, cancellation and
    fatal failure without the run raising.
    """
    total_processed: int
    """Number of review detail pages attempted"""

    successful_reviews: int

    failed_reviews: int

    stopped: bool
    """True if the run was stopped early via stop(), False otherwise"""

    error: Optional[str] = None
    """Message of the fatal error that aborted the run, if any"""

    @property
    def ok(self) -> bool:
        return self.error is None
