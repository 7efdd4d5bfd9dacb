from __future__ import annotations

import threading
from collections import deque
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Deque, List, Optional, Tuple

from reviewcrawl.utils.datetime_utils import utc_now

ERROR_LOG_SIZE = 10


@dataclass(frozen=True)
class StatisticsSnapshot:
    """Immutable copy of a run's statistics at one point in time."""

    started_at: Optional[datetime]
    finished_at: Optional[datetime]
    running: bool
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

    @property
    def processed_topic_count(self) -> int:
        return len(self.processed_topics)


class RunStatistics:
    """Mutable progress record for one crawl run.

    The crawl worker is the only writer; status readers call `snapshot()`.
    Every update and read holds the instance lock, so a reader never observes
    a half-applied change, and the lock is never held across network I/O.
    """

    def __init__(self, clock: Callable[[], datetime] = utc_now):
        self._clock = clock
        self._lock = threading.Lock()
        self.started_at: Optional[datetime] = None
        self.finished_at: Optional[datetime] = None
        self.running = False
        self.total_topics = 0
        self.processed_topics: List[str] = []
        self.failed_topics: List[str] = []
        self.total_processed = 0
        self.successful_reviews = 0
        self.failed_reviews = 0
        self.current_topic: Optional[str] = None
        self.current_review: Optional[str] = None
        self.last_processed_url: Optional[str] = None
        self.error_log: Deque[str] = deque(maxlen=ERROR_LOG_SIZE)
        self.items_per_minute = 0.0

    def begin(self) -> None:
        with self._lock:
            self.started_at = self._clock()
            self.finished_at = None
            self.running = True

    def finalize(self) -> None:
        with self._lock:
            self.running = False
            self.finished_at = self._clock()
            self._recompute_throughput_locked()

    def add_error(self, message: str) -> None:
        """Append a timestamped entry, evicting the oldest beyond the last 10."""
        with self._lock:
            self.error_log.append(f"{self._clock().isoformat()}: {message}")

    def set_total_topics(self, count: int) -> None:
        with self._lock:
            self.total_topics = int(count)

    def set_current_topic(self, name: Optional[str]) -> None:
        with self._lock:
            self.current_topic = name

    def set_last_processed_url(self, url: Optional[str]) -> None:
        with self._lock:
            self.last_processed_url = url

    def record_processed_topic(self, name: str) -> None:
        with self._lock:
            self.processed_topics.append(name)

    def record_failed_topic(self, name: str) -> None:
        with self._lock:
            self.failed_topics.append(name)

    def record_success(self, label: Optional[str]) -> None:
        with self._lock:
            self.total_processed += 1
            self.successful_reviews += 1
            self.current_review = label
            self._recompute_throughput_locked()

    def record_failure(self, label: Optional[str], error: Optional[str] = None) -> None:
        with self._lock:
            self.total_processed += 1
            self.failed_reviews += 1
            self.current_review = label
            if error:
                self.error_log.append(f"{self._clock().isoformat()}: {error}")
            self._recompute_throughput_locked()

    def recompute_throughput(self) -> None:
        """items_per_minute = total_processed / whole minutes since start."""
        with self._lock:
            self._recompute_throughput_locked()

    def _recompute_throughput_locked(self) -> None:
        if self.started_at is None:
            return
        elapsed_minutes = int((self._clock() - self.started_at).total_seconds() // 60)
        # Keep the previous value during the first minute.
        if elapsed_minutes > 0:
            self.items_per_minute = self.total_processed / elapsed_minutes

    def snapshot(self) -> StatisticsSnapshot:
        with self._lock:
            return StatisticsSnapshot(
                started_at=self.started_at,
                finished_at=self.finished_at,
                running=self.running,
                total_topics=self.total_topics,
                processed_topics=tuple(self.processed_topics),
                failed_topics=tuple(self.failed_topics),
                total_processed=self.total_processed,
                successful_reviews=self.successful_reviews,
                failed_reviews=self.failed_reviews,
                current_topic=self.current_topic,
                current_review=self.current_review,
                last_processed_url=self.last_processed_url,
                error_log=tuple(self.error_log),
                items_per_minute=self.items_per_minute,
            )
