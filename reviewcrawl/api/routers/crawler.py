import logging
from typing import Optional

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel, ConfigDict

logger = logging.getLogger(__name__)


class StartRequest(BaseModel):
    full_refresh: bool = False


class ConfigUpdate(BaseModel):
    """Partial settings update; omitted fields keep their current value."""

    model_config = ConfigDict(extra="forbid")

    base_url: Optional[str] = None
    user_agent: Optional[str] = None
    request_timeout: Optional[float] = None
    follow_redirects: Optional[bool] = None
    max_retries: Optional[int] = None
    retry_delay: Optional[float] = None
    crawl_delay: Optional[float] = None
    schedule: Optional[str] = None
    auto_schedule: Optional[bool] = None
    full_refresh_on_schedule: Optional[bool] = None


def _snapshot_to_dict(s):
    return {
        "started_at": s.started_at,
        "finished_at": s.finished_at,
        "total_topics": s.total_topics,
        "processed_topic_count": s.processed_topic_count,
        "failed_topics": list(s.failed_topics),
        "total_processed": s.total_processed,
        "successful_reviews": s.successful_reviews,
        "failed_reviews": s.failed_reviews,
        "items_per_minute": s.items_per_minute,
        "error_log": list(s.error_log),
    }


def create_crawler_router(orchestrator, settings_service, reviews_repo, statistics_repo=None):
    router = APIRouter(prefix="/crawler", tags=["Crawler"])

    @router.post("/start", status_code=202)
    def start(req: Optional[StartRequest] = None):
        full_refresh = bool(req.full_refresh) if req is not None else False
        accepted = orchestrator.start(full_refresh)
        if not accepted:
            raise HTTPException(status_code=409, detail="crawler is already running")
        return {"accepted": True, "status": orchestrator.status().to_dict()}

    @router.post("/stop")
    def stop():
        acknowledged = orchestrator.stop()
        return {"acknowledged": acknowledged, "status": orchestrator.status().to_dict()}

    @router.get("/status")
    def status(include_content: Optional[bool] = None):
        return orchestrator.status().to_dict(include_content=bool(include_content))

    @router.get("/config")
    def get_config():
        return settings_service.current.to_dict()

    @router.put("/config")
    def update_config(req: ConfigUpdate):
        changes = req.model_dump(exclude_unset=True)
        if not changes:
            return settings_service.current.to_dict()
        try:
            updated = settings_service.update(changes)
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e))
        return updated.to_dict()

    @router.get("/stats")
    def stats():
        try:
            topics = reviews_repo.list_topics()
            total = reviews_repo.count()
        except Exception:
            logger.exception("Could not compute crawler stats")
            raise HTTPException(status_code=500, detail="could not compute stats")
        return {"total_reviews": total, "unique_topics": len(topics), "topics": topics}

    @router.get("/runs")
    def list_runs(limit: Optional[int] = 20):
        """Return the last `limit` crawl runs (most recent first)."""
        if statistics_repo is None:
            return []
        if limit is not None and limit <= 0:
            raise HTTPException(status_code=400, detail="limit must be positive")
        try:
            runs = statistics_repo.list_recent(limit=limit or 20)
        except Exception:
            logger.exception("Could not list crawl runs")
            raise HTTPException(status_code=500, detail="could not list runs")
        return [_snapshot_to_dict(r) for r in runs]

    return router
