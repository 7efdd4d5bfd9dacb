import logging
import threading
import time
from datetime import datetime
from typing import Callable, Iterable, List, Optional

from reviewcrawl.domain import (
    CrawlerSettings,
    CrawlerStatus,
    CrawlResult,
    CrawlStatus,
    Review,
    RunStatistics,
    SeenUrls,
    StatisticsSnapshot,
    TopicLink,
)
from reviewcrawl.exceptions import (
    FatalRunError,
    HttpFetchError,
    ItemExtractionError,
    ItemFetchError,
    TopicError,
)
from reviewcrawl.services.fetcher import Fetcher
from reviewcrawl.services.run_guard import RunGuard, RunState
from reviewcrawl.utils.datetime_utils import utc_now

logger = logging.getLogger(__name__)


class CrawlOrchestrator:
    """Walks topic index -> topic listings -> review detail pages.

    Owns the crawl control-flow: single-flight start, cooperative stop,
    dedup, per-item failure handling, politeness delays and run statistics.
    It does NOT construct its collaborators (that stays in the DI layer).

    Fetches happen one at a time in document order. `stop()` is observed
    between topics and between review items, never in the middle of a fetch.
    """

    def __init__(
        self,
        *,
        fetcher: Fetcher,
        extractor,
        reviews_repo,
        settings: CrawlerSettings,
        seen_urls: Optional[SeenUrls] = None,
        statistics_repo=None,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.fetcher = fetcher
        self.extractor = extractor
        self.reviews_repo = reviews_repo
        self.settings = settings
        self.seen_urls = seen_urls if seen_urls is not None else SeenUrls()
        self.statistics_repo = statistics_repo
        self._sleep = sleep
        self._clock = clock

        self._guard = RunGuard()
        self._stats: Optional[RunStatistics] = None
        self._restored_stats: Optional[StatisticsSnapshot] = None
        self._new_reviews: List[Review] = []
        self._new_reviews_lock = threading.Lock()
        self._last_run: Optional[datetime] = None
        self._thread: Optional[threading.Thread] = None

    # -- control ---------------------------------------------------------

    def start(self, full_refresh: bool = False) -> bool:
        """Start a crawl on a background thread. Returns False if one is already in flight."""
        if not self._guard.try_begin():
            logger.warning("Crawler is already running, not starting a new run")
            return False
        thread = threading.Thread(
            target=self._run_in_background,
            args=(full_refresh,),
            name="review-crawl",
            daemon=True,
        )
        self._thread = thread
        try:
            thread.start()
        except RuntimeError:
            self._guard.finish()
            raise
        logger.info("Crawl started in background (full_refresh=%s)", full_refresh)
        return True

    def stop(self) -> bool:
        """Ask the in-flight run to stop at its next loop boundary."""
        if not self._guard.request_stop():
            logger.info("Stop requested but no crawl is running")
            return False
        logger.info("Stop requested; crawl will halt at the next topic/review boundary")
        return True

    def run(self, full_refresh: bool = False) -> Optional[CrawlResult]:
        """Run a crawl on the calling thread.

        Returns None without side effects when another run is in flight.
        Never raises for crawl failures; a fatal error is reported through
        `CrawlResult.error` and the status error log.
        """
        if not self._guard.try_begin():
            logger.warning("Crawler is already running, skipping run")
            return None
        return self._execute(full_refresh)

    def wait(self, timeout: Optional[float] = None) -> bool:
        """Join the background thread of the last start(). Returns True if it has finished."""
        thread = self._thread
        if thread is None:
            return True
        thread.join(timeout)
        return not thread.is_alive()

    # -- status ----------------------------------------------------------

    def restore_latest_statistics(self) -> Optional[StatisticsSnapshot]:
        """Load the last persisted run statistics so status() has something to show after a restart."""
        if self.statistics_repo is None:
            return None
        try:
            snapshot = self.statistics_repo.latest()
        except Exception:
            logger.exception("Could not load latest crawl statistics")
            return None
        self._restored_stats = snapshot
        if snapshot is not None and self._last_run is None:
            self._last_run = snapshot.finished_at
        return snapshot

    def status(self) -> CrawlerStatus:
        stats = self._stats
        if stats is not None:
            snapshot = stats.snapshot()
        elif self._restored_stats is not None:
            snapshot = self._restored_stats
        else:
            snapshot = RunStatistics(self._clock).snapshot()
        with self._new_reviews_lock:
            new_reviews = tuple(self._new_reviews)
        state = self._guard.state
        return CrawlerStatus.from_parts(
            running=state is not RunState.IDLE,
            state=state.value,
            last_run=self._last_run,
            stats=snapshot,
            new_reviews=new_reviews,
        )

    # -- retry -----------------------------------------------------------

    def retry_failed(self, records: Iterable[Review]) -> int:
        """Re-fetch and re-extract the given reviews one by one.

        Does not take the run flag, so it may overlap a full run; it keeps its
        own statistics and never touches the active run's counters. Returns
        the number of reviews that ended up completed.
        """
        records = list(records)
        stats = RunStatistics(self._clock)
        stats.begin()
        logger.info("Retrying content extraction for %s failed reviews", len(records))
        retried = 0
        for review in records:
            stored = self._process_review(review.url, review.topic, stats, existing=review, track_new=False)
            if stored is not None and stored.crawl_status is CrawlStatus.COMPLETED:
                retried += 1
            self._sleep(self.settings.crawl_delay)
        stats.finalize()
        logger.info("Successfully retried content extraction for %s out of %s reviews", retried, len(records))
        return retried

    # -- traversal -------------------------------------------------------

    def _run_in_background(self, full_refresh: bool) -> None:
        try:
            result = self._execute(full_refresh)
            if result.error:
                logger.error("Background crawl aborted: %s", result.error)
        except Exception:
            logger.exception("Unhandled error in crawler thread")

    def _execute(self, full_refresh: bool) -> CrawlResult:
        """Traverse the hierarchy. Caller must already hold the run flag."""
        logger.info("Starting crawl with full_refresh=%s", full_refresh)
        stats = RunStatistics(self._clock)
        stats.begin()
        self._stats = stats
        with self._new_reviews_lock:
            self._new_reviews = []

        error: Optional[str] = None
        stopped = False
        try:
            self._prepare(full_refresh)
            topics = self._fetch_topics()
            stats.set_total_topics(len(topics))
            logger.info("Found %s topics to crawl", len(topics))

            for topic in topics:
                if not self._guard.should_continue():
                    logger.info("Crawler stop requested, breaking topic processing loop")
                    break
                self._crawl_topic_safely(topic, full_refresh, stats)
                stats.recompute_throughput()
                if self._guard.should_continue():
                    self._sleep(self.settings.crawl_delay)
        except FatalRunError as e:
            error = str(e)
            logger.error("Critical error during crawl: %s", e)
            stats.add_error(f"Critical error during crawl: {e}")
        except Exception as e:
            error = f"Unexpected error: {e}"
            logger.exception("Unexpected error during crawl")
            stats.add_error(f"Critical error during crawl: {e}")
        finally:
            stopped = self._guard.state is RunState.STOP_REQUESTED
            self._finalize(stats)

        snapshot = stats.snapshot()
        logger.info(
            "Crawl finished. processed=%s, successful=%s, failed=%s, stopped=%s",
            snapshot.total_processed,
            snapshot.successful_reviews,
            snapshot.failed_reviews,
            stopped,
        )
        return CrawlResult(
            total_processed=snapshot.total_processed,
            successful_reviews=snapshot.successful_reviews,
            failed_reviews=snapshot.failed_reviews,
            stopped=stopped,
            error=error,
        )

    def _prepare(self, full_refresh: bool) -> None:
        if not full_refresh:
            return
        logger.info("Clearing existing data for full refresh")
        try:
            deleted = self.reviews_repo.delete_all()
        except Exception as e:
            raise FatalRunError(f"Could not clear reviews for full refresh: {e}") from e
        self.seen_urls.clear()
        logger.info("Cleared %s reviews before full refresh", deleted)

    def _fetch_topics(self) -> List[TopicLink]:
        url = self.settings.base_url
        logger.info("Fetching topics from base URL: %s", url)
        try:
            page = self.fetcher.fetch(url)
        except HttpFetchError as e:
            raise FatalRunError(f"Topic index unreachable: {e}") from e
        try:
            return list(self.extractor.parse_topic_index(page))
        except Exception as e:
            raise FatalRunError(f"Could not parse topic index {url}: {e}") from e

    def _crawl_topic_safely(self, topic: TopicLink, full_refresh: bool, stats: RunStatistics) -> None:
        logger.info("Processing topic: %s (URL: %s)", topic.name, topic.url)
        stats.set_current_topic(topic.name)
        try:
            completed = self._crawl_topic(topic, full_refresh, stats)
        except TopicError as e:
            logger.error("%s", e)
            stats.add_error(str(e))
            stats.record_failed_topic(topic.name)
            return
        if completed:
            stats.record_processed_topic(topic.name)
            logger.info("Successfully processed topic: %s", topic.name)

    def _crawl_topic(self, topic: TopicLink, full_refresh: bool, stats: RunStatistics) -> bool:
        """Crawl one topic listing. Returns False if a stop cut it short."""
        try:
            page = self.fetcher.fetch(topic.url)
            review_urls = self.extractor.parse_listing(page)
        except Exception as e:
            raise TopicError(topic.name, topic.url, e) from e

        logger.info("Found %s potential review links for topic: %s", len(review_urls), topic.name)
        processed = 0
        for url in review_urls:
            if not self._guard.should_continue():
                logger.info("Crawler stop requested, breaking review loop for topic %s", topic.name)
                return False
            if url in self.seen_urls:
                continue
            if not full_refresh:
                try:
                    known = self.reviews_repo.exists(url)
                except Exception as e:
                    msg = f"Storage error while checking {url}: {e}"
                    logger.error(msg)
                    stats.set_last_processed_url(url)
                    stats.record_failure(None, msg)
                    continue
                if known:
                    self.seen_urls.add(url)
                    continue

            logger.debug("Processing new review URL: %s", url)
            self.seen_urls.add(url)
            self._process_review(url, topic.name, stats)
            processed += 1
            self._sleep(self.settings.crawl_delay)

        logger.info("Completed processing %s new reviews for topic: %s", processed, topic.name)
        return True

    def _process_review(
        self,
        url: str,
        topic: Optional[str],
        stats: RunStatistics,
        existing: Optional[Review] = None,
        track_new: bool = True,
    ) -> Optional[Review]:
        """Fetch, extract and store one review. Failures are recorded, never raised."""
        stats.set_last_processed_url(url)
        try:
            page = self.fetcher.fetch(url)
        except HttpFetchError as e:
            err = ItemFetchError(url, e)
            logger.error("%s", err)
            stats.record_failure("Error fetching detail", str(err))
            self._store_fetch_failure(url, topic, existing)
            return None

        try:
            fields = self.extractor.parse_detail(page)
        except Exception as e:
            err = e if isinstance(e, ItemExtractionError) else ItemExtractionError(url, str(e))
            logger.warning("%s", err)
            stats.record_failure("Failed to parse detail", str(err))
            return None

        review = Review(
            url=url,
            topic=topic,
            title=fields.title,
            authors=fields.authors,
            publication_date=fields.publication_date,
            content=fields.content,
        )
        # A review without body content is a partial extraction.
        if fields.content:
            review.mark_completed()
        else:
            review.mark_failed()

        try:
            is_new = not self.reviews_repo.exists(url)
            stored = self.reviews_repo.upsert(review)
        except Exception as e:
            msg = f"Storage error while saving {url}: {e}"
            logger.error(msg, exc_info=True)
            stats.record_failure(fields.title, msg)
            return None

        if stored.crawl_status is CrawlStatus.COMPLETED:
            stats.record_success(stored.title)
            logger.info("Successfully processed review: %s (%s)", stored.title, url)
        else:
            msg = f"Failed to get content: {stored.title} ({url})"
            logger.warning(msg)
            stats.record_failure(stored.title, msg)

        if is_new and track_new:
            logger.info("Added new review: %s (%s)", stored.title, url)
            with self._new_reviews_lock:
                self._new_reviews.append(stored)
        return stored

    def _store_fetch_failure(self, url: str, topic: Optional[str], existing: Optional[Review]) -> None:
        """Keep a failed row so retry_failed() can pick the review up later."""
        if existing is not None:
            review = existing
            review.mark_failed()
        else:
            review = Review(url=url, topic=topic, crawl_status=CrawlStatus.FAILED)
        try:
            self.reviews_repo.upsert(review)
        except Exception as e:
            logger.warning("Could not record failed review %s: %s", url, e)

    def _finalize(self, stats: RunStatistics) -> None:
        logger.info("Finalizing crawler state")
        stats.finalize()
        self._last_run = self._clock()
        if self.statistics_repo is not None:
            try:
                self.statistics_repo.save(stats.snapshot())
            except Exception as e:
                logger.warning("Failed to persist crawl statistics: %s", e)
        self._guard.finish()
