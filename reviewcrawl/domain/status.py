from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Iterable, Optional, Tuple

from reviewcrawl.domain.review import Review
from reviewcrawl.domain.run_statistics import StatisticsSnapshot


def _iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


@dataclass(frozen=True)
class CrawlerStatus:
    """Read-only view of the engine: run state, latest statistics and new reviews."""

    running: bool
    state: str
    last_run: Optional[datetime]
    started_at: Optional[datetime]
    finished_at: Optional[datetime]
    total_topics: int
    processed_topics: Tuple[str, ...]
    failed_topics: Tuple[str, ...]
    total_processed: int
    successful_reviews: int
    failed_reviews: int
    current_topic: Optional[str]
    current_review: Optional[str]
    last_processed_url: Optional[str]
    error_log: Tuple[str, ...]
    items_per_minute: float
    new_reviews: Tuple[Review, ...]

    @property
    def processed_topic_count(self) -> int:
        return len(self.processed_topics)

    @classmethod
    def from_parts(
        cls,
        *,
        running: bool,
        state: str,
        last_run: Optional[datetime],
        stats: StatisticsSnapshot,
        new_reviews: Iterable[Review],
    ) -> "CrawlerStatus":
        return cls(
            running=running,
            state=state,
            last_run=last_run,
            started_at=stats.started_at,
            finished_at=stats.finished_at,
            total_topics=stats.total_topics,
            processed_topics=stats.processed_topics,
            failed_topics=stats.failed_topics,
            total_processed=stats.total_processed,
            successful_reviews=stats.successful_reviews,
            failed_reviews=stats.failed_reviews,
            current_topic=stats.current_topic,
            current_review=stats.current_review,
            last_processed_url=stats.last_processed_url,
            error_log=stats.error_log,
            items_per_minute=stats.items_per_minute,
            new_reviews=tuple(new_reviews),
        )

    def to_dict(self, include_content: bool = False) -> dict:
        reviews = []
        for r in self.new_reviews:
            d = r.to_dict()
            if not include_content:
                d.pop("content", None)
            reviews.append(d)
        return {
            "running": self.running,
            "state": self.state,
            "last_run": _iso(self.last_run),
            "started_at": _iso(self.started_at),
            "finished_at": _iso(self.finished_at),
            "total_topics": self.total_topics,
            "processed_topic_count": self.processed_topic_count,
            "processed_topics": list(self.processed_topics),
            "failed_topics": list(self.failed_topics),
            "total_processed": self.total_processed,
            "successful_reviews": self.successful_reviews,
            "failed_reviews": self.failed_reviews,
            "current_topic": self.current_topic,
            "current_review": self.current_review,
            "last_processed_url": self.last_processed_url,
            "error_log": list(self.error_log),
            "items_per_minute": self.items_per_minute,
            "new_reviews": reviews,
        }
