from typing import Any, Optional
import logging

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.cron import CronTrigger

from reviewcrawl.domain import CrawlerSettings

logger = logging.getLogger(__name__)

JOB_ID = "scheduled_crawl"


def _parse_schedule(schedule: Any):
    """Return an APScheduler CronTrigger from a cron schedule string.

    Accepts cron strings like '0 0 * * *' (crontab format).
    Returns None if schedule is invalid or cannot be parsed.
    """
    if schedule is None:
        return None
    if isinstance(schedule, str):
        try:
            return CronTrigger.from_crontab(schedule)
        except Exception:
            logger.exception("Error parsing cron schedule: %s", schedule)
            return None
    logger.warning("Unsupported schedule format: %s (only cron strings supported)", type(schedule))
    return None


def is_valid_schedule(schedule: Any) -> bool:
    return _parse_schedule(schedule) is not None


class SchedulerService:
    """Fires a crawl on the configured cron schedule.

    The job goes through `CrawlOrchestrator.run()`, so a scheduled firing that
    lands while another run is in flight is skipped instead of overlapping it.
    """

    def __init__(self, orchestrator, settings: CrawlerSettings):
        self.orchestrator = orchestrator
        self.settings = settings
        self._sched: Optional[BackgroundScheduler] = None

    @property
    def running(self) -> bool:
        return self._sched is not None

    def start(self):
        if self._sched is not None:
            return
        if not self.settings.auto_schedule:
            logger.info("Automatic crawling disabled; scheduler not started")
            return
        trig = _parse_schedule(self.settings.schedule)
        if trig is None:
            logger.warning("No valid crawl schedule configured; scheduler not started")
            return
        self._sched = BackgroundScheduler()
        self._sched.start()
        logger.info("Scheduler started")
        self._register_job(trig)

    def apply_settings(self, settings: CrawlerSettings):
        """Swap in new settings and re-register the cron job, or drop it if scheduling is now off."""
        self.settings = settings
        trig = _parse_schedule(settings.schedule) if settings.auto_schedule else None
        if trig is None:
            if self._sched is not None:
                logger.info("Automatic crawling disabled; stopping scheduler")
            self.shutdown(wait=False)
            return
        if self._sched is None:
            self.start()
            return
        self._register_job(trig)

    def _register_job(self, trig):
        try:
            self._sched.add_job(
                self._run_scheduled,
                trigger=trig,
                id=JOB_ID,
                max_instances=1,
                coalesce=True,
                replace_existing=True,
            )
            logger.info("Scheduled job %s -> %s", JOB_ID, self.settings.schedule)
        except Exception:
            logger.exception("Could not schedule crawl job")

    def shutdown(self, wait: bool = True):
        if not self._sched:
            return
        try:
            self._sched.shutdown(wait=wait)
            logger.info("Scheduler shut down")
        finally:
            self._sched = None

    def next_run_time(self):
        if not self._sched:
            return None
        job = self._sched.get_job(JOB_ID)
        return job.next_run_time if job is not None else None

    def _run_scheduled(self):
        """Run one scheduled crawl on the scheduler's worker thread."""
        full_refresh = self.settings.full_refresh_on_schedule
        logger.info("Starting scheduled crawl (full_refresh=%s)", full_refresh)
        try:
            result = self.orchestrator.run(full_refresh)
        except Exception:
            logger.exception("Error running scheduled crawl")
            return
        if result is None:
            logger.info("Scheduled crawl skipped: a crawl is already running")
        elif result.error:
            logger.error("Scheduled crawl aborted: %s", result.error)
        else:
            logger.info(
                "Scheduled crawl finished: %s processed, %s successful, %s failed",
                result.total_processed,
                result.successful_reviews,
                result.failed_reviews,
            )
