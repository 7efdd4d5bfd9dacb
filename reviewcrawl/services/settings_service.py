import logging
import threading
from dataclasses import replace
from typing import Mapping

from reviewcrawl.domain import CrawlerSettings
from reviewcrawl.services.scheduler_service import is_valid_schedule
from reviewcrawl.services.settings_loader import coerce_settings

logger = logging.getLogger(__name__)


class CrawlerSettingsService:
    """Holds the live CrawlerSettings and pushes updates to the services that read them.

    An update is validated in full before anything is applied, so a rejected
    update leaves every service on the previous settings. A crawl already in
    flight picks up the new delays and retry policy at its next fetch.
    """

    def __init__(self, settings: CrawlerSettings, orchestrator, http_service, retrying_fetcher, scheduler):
        self._settings = settings
        self.orchestrator = orchestrator
        self.http_service = http_service
        self.retrying_fetcher = retrying_fetcher
        self.scheduler = scheduler
        self._lock = threading.Lock()

    @property
    def current(self) -> CrawlerSettings:
        return self._settings

    def update(self, changes: Mapping) -> CrawlerSettings:
        """Apply a partial update. Raises ValueError if the result would be invalid."""
        with self._lock:
            updated = replace(self._settings, **coerce_settings(changes))
            if (updated.auto_schedule or "schedule" in changes) and not is_valid_schedule(updated.schedule):
                raise ValueError(f"Invalid cron schedule: {updated.schedule!r}")

            self.http_service.user_agent = updated.user_agent
            self.http_service.timeout = updated.request_timeout
            self.http_service.follow_redirects = updated.follow_redirects
            self.retrying_fetcher.max_attempts = updated.max_retries
            self.retrying_fetcher.base_delay = updated.retry_delay
            self.orchestrator.settings = updated
            self.scheduler.apply_settings(updated)
            self._settings = updated

        logger.info("Crawler settings updated: %s", ", ".join(sorted(changes)))
        return updated
