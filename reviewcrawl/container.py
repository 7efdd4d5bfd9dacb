"""Dependency injection container for the application."""
from dependency_injector import containers, providers
import requests
from sqlalchemy.orm import sessionmaker

from reviewcrawl import config as env
from reviewcrawl.db.engine import init_orm, make_engine
from reviewcrawl.domain import SeenUrls
from reviewcrawl.domain.settings import DEFAULT_BASE_URL, DEFAULT_USER_AGENT
from reviewcrawl.repository.reviews import ReviewsRepository
from reviewcrawl.repository.statistics import StatisticsRepository
from reviewcrawl.services.crawl_orchestrator import CrawlOrchestrator
from reviewcrawl.services.fetcher import HttpPageFetcher
from reviewcrawl.services.http_service import HttpService
from reviewcrawl.services.retrying_fetcher import RetryingFetcher
from reviewcrawl.services.review_extractor import ReviewExtractor
from reviewcrawl.services.scheduler_service import SchedulerService
from reviewcrawl.services.settings_loader import build_settings
from reviewcrawl.services.settings_service import CrawlerSettingsService


# Environment variables used by the container (read via `reviewcrawl.config` helpers).
#
# Notes:
# - Types are enforced by the helper used (`get_int_env`, `get_float_env`, etc.).
# - Defaults shown here are the effective defaults used when the env var is unset.
# - Crawl engine values are folded into one frozen `CrawlerSettings` by
#   `build_settings`, which also applies REVIEWCRAWL_SETTINGS_FILE on top.
#
# DATABASE_URL (str | optional)
#   SQLAlchemy connection string. If unset, `make_engine()` falls back to
#   a local SQLite file (sqlite:///reviewcrawl.db).
#
# REVIEWCRAWL_BASE_URL (str, default: the review library topic index)
#   URL of the topic index page the crawl starts from.
#
# USER_AGENT (str, default: "Mozilla/5.0 (compatible; ReviewCrawl/0.1)")
#   User-Agent header for outbound HTTP requests.
#
# HTTP_TIMEOUT (float seconds, default: 10)
#   Timeout for outbound HTTP requests.
#
# HTTP_FOLLOW_REDIRECTS (bool, default: true)
#
# MAX_RETRIES (int, default: 3)
#   Attempts per fetch, including the first one.
#
# RETRY_DELAY (float seconds, default: 1.0)
#   Base of the linear backoff: the wait before attempt n is RETRY_DELAY * (n - 1).
#
# CRAWL_DELAY (float seconds, default: 0.5)
#   Politeness delay after every topic and every review detail fetch.
#
# CRAWL_SCHEDULE (str crontab, default: "0 0 * * *")
#
# CRAWL_AUTO_SCHEDULE (bool, default: true)
#   Whether the scheduler registers the periodic crawl at startup.
#
# CRAWL_FULL_REFRESH_ON_SCHEDULE (bool, default: true)
#   Whether scheduled runs clear stored reviews before crawling.
#
# REVIEWCRAWL_SETTINGS_FILE (str path | optional)
#   YAML file with CrawlerSettings field names; its values win over the env.
#
# API_HOST (str, default: "0.0.0.0") / API_PORT (int, default: 8000)
#   Bind address for the HTTP API started by run.py.
ENV = {
    "DATABASE_URL": env.get_optional_str_env("DATABASE_URL"),
    "REVIEWCRAWL_BASE_URL": env.get_str_env("REVIEWCRAWL_BASE_URL", DEFAULT_BASE_URL),
    "USER_AGENT": env.get_str_env("USER_AGENT", DEFAULT_USER_AGENT),
    "HTTP_TIMEOUT": env.get_float_env("HTTP_TIMEOUT", 10.0),
    "HTTP_FOLLOW_REDIRECTS": env.get_bool_env("HTTP_FOLLOW_REDIRECTS", True),
    "MAX_RETRIES": env.get_int_env("MAX_RETRIES", 3),
    "RETRY_DELAY": env.get_float_env("RETRY_DELAY", 1.0),
    "CRAWL_DELAY": env.get_float_env("CRAWL_DELAY", 0.5),
    "CRAWL_SCHEDULE": env.get_str_env("CRAWL_SCHEDULE", "0 0 * * *"),
    "CRAWL_AUTO_SCHEDULE": env.get_bool_env("CRAWL_AUTO_SCHEDULE", True),
    "CRAWL_FULL_REFRESH_ON_SCHEDULE": env.get_bool_env("CRAWL_FULL_REFRESH_ON_SCHEDULE", True),
    "REVIEWCRAWL_SETTINGS_FILE": env.get_optional_str_env("REVIEWCRAWL_SETTINGS_FILE"),
    "API_HOST": env.get_str_env("API_HOST", "0.0.0.0"),
    "API_PORT": env.get_int_env("API_PORT", 8000),
}


class Container(containers.DeclarativeContainer):
    """Dependency injection container for ReviewCrawl application."""

    # Configuration
    config = providers.Configuration(default=ENV)

    # Database engine - Singleton to reuse connection pool; tables created on first use
    db_engine = providers.Singleton(
        init_orm,
        providers.Singleton(make_engine, database_url=config.DATABASE_URL),
    )
    # Session factory bound to the engine
    session_factory = providers.Factory(
        sessionmaker,
        bind=db_engine,
        future=True
    )

    # Repositories - Singleton instances
    reviews_repository = providers.Singleton(
        ReviewsRepository,
        session_factory=session_factory
    )

    statistics_repository = providers.Singleton(
        StatisticsRepository,
        session_factory=session_factory
    )

    crawler_settings = providers.Singleton(
        build_settings,
        env=config,
        settings_file=config.REVIEWCRAWL_SETTINGS_FILE,
    )

    # Services - Singleton instances
    http_service = providers.Singleton(
        HttpService,
        user_agent=crawler_settings.provided.user_agent,
        http_client=providers.Object(requests.get),
        timeout=crawler_settings.provided.request_timeout,
        follow_redirects=crawler_settings.provided.follow_redirects,
    )

    page_fetcher = providers.Singleton(
        HttpPageFetcher,
        http_service=http_service,
    )

    retrying_fetcher = providers.Singleton(
        RetryingFetcher,
        fetcher=page_fetcher,
        max_attempts=crawler_settings.provided.max_retries,
        base_delay=crawler_settings.provided.retry_delay,
    )

    review_extractor = providers.Singleton(
        ReviewExtractor
    )

    seen_urls = providers.Singleton(
        SeenUrls
    )

    # One orchestrator per process; the API and the scheduler share it.
    crawl_orchestrator = providers.Singleton(
        CrawlOrchestrator,
        fetcher=retrying_fetcher,
        extractor=review_extractor,
        reviews_repo=reviews_repository,
        settings=crawler_settings,
        seen_urls=seen_urls,
        statistics_repo=statistics_repository,
    )

    # Scheduler - Singleton instance
    scheduler_service = providers.Singleton(
        SchedulerService,
        orchestrator=crawl_orchestrator,
        settings=crawler_settings,
    )

    # Live settings; PUT /crawler/config goes through here
    settings_service = providers.Singleton(
        CrawlerSettingsService,
        settings=crawler_settings,
        orchestrator=crawl_orchestrator,
        http_service=http_service,
        retrying_fetcher=retrying_fetcher,
        scheduler=scheduler_service,
    )
