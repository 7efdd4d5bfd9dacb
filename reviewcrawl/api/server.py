import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from reviewcrawl.api.middleware import RequestLoggingMiddleware
from reviewcrawl.api.routers import (
    create_crawler_router,
    create_reviews_router,
    create_systems_router,
)

logger = logging.getLogger(__name__)


def create_app(container) -> FastAPI:
    """Build the FastAPI app from a wired container.

    The scheduler is started and stopped with the app lifespan; a crawl that
    is still running at shutdown is asked to stop at its next boundary.
    """
    orchestrator = container.crawl_orchestrator()
    scheduler = container.scheduler_service()
    reviews_repo = container.reviews_repository()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        orchestrator.restore_latest_statistics()
        scheduler.start()
        try:
            yield
        finally:
            scheduler.shutdown(wait=False)
            if orchestrator.stop():
                logger.info("Asked running crawl to stop on shutdown")

    app = FastAPI(title="ReviewCrawl API", version="0.1.0", lifespan=lifespan)
    app.add_middleware(RequestLoggingMiddleware)
    app.include_router(
        create_crawler_router(
            orchestrator,
            container.settings_service(),
            reviews_repo,
            container.statistics_repository(),
        )
    )
    app.include_router(create_reviews_router(reviews_repo, orchestrator))
    app.include_router(create_systems_router(container.config(), scheduler))
    return app
